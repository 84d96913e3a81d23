"""Tests for MongoDocumentStore against an in-process stand-in for pymongo."""

import itertools

import pytest
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from chatguard.engine import Engine
from chatguard.errors import DuplicateDocument, TransientStoreFailure
from chatguard.store.base import COLLECTIONS, apply_update, matches, seed_from_filter
from chatguard.store.mongo import MongoDocumentStore

_oids = itertools.count(1)


class FakeResult:
    def __init__(self, matched_count=0, modified_count=0, upserted_id=None):
        self.matched_count = matched_count
        self.modified_count = modified_count
        self.upserted_id = upserted_id


class FakeCollection:
    """Implements the slice of ``pymongo.collection.Collection`` the store uses."""

    def __init__(self):
        self.docs = []
        self.indexes = []
        self.updates = []

    def create_index(self, keys, unique=False):
        self.indexes.append((keys, unique))

    def find_one(self, filter):
        for doc in self.docs:
            if matches(doc, filter):
                return dict(doc)
        return None

    def find(self, filter):
        return [dict(d) for d in self.docs if matches(d, filter)]

    def count_documents(self, filter):
        return len(self.find(filter))

    def insert_one(self, document):
        if any(d["id"] == document["id"] for d in self.docs):
            raise DuplicateKeyError("E11000 duplicate key error")
        document["_id"] = next(_oids)
        self.docs.append(document)

    def update_one(self, filter, update, upsert=False):
        self.updates.append(update)
        unset = list(update.get("$unset", {}))
        for doc in self.docs:
            if matches(doc, filter):
                changed = apply_update(doc, set=update.get("$set"), unset=unset, inc=update.get("$inc"))
                return FakeResult(matched_count=1, modified_count=int(changed))
        if not upsert:
            return FakeResult()
        doc = seed_from_filter(filter)
        apply_update(doc, set=update.get("$setOnInsert"))
        apply_update(doc, set=update.get("$set"), unset=unset, inc=update.get("$inc"))
        self.insert_one(doc)
        return FakeResult(upserted_id=doc["_id"])


class RacingCollection(FakeCollection):
    """First upsert loses to a concurrent writer that creates the same id."""

    raced = False

    def update_one(self, filter, update, upsert=False):
        if upsert and not self.raced:
            self.raced = True
            self.insert_one({"id": filter["id"], "connected": True, "reportCount": 0})
            raise DuplicateKeyError("E11000 duplicate key error")
        return super().update_one(filter, update, upsert=upsert)


class UnreachableCollection(FakeCollection):
    def _down(self, *args, **kwargs):
        raise ServerSelectionTimeoutError("no servers available")

    find_one = find = count_documents = insert_one = update_one = _down


class FakeDatabase:
    def __init__(self, collection_type):
        self.collections = {}
        self.collection_type = collection_type

    def __getitem__(self, name):
        return self.collections.setdefault(name, self.collection_type())


class FakeClient:
    def __init__(self, collection_type=FakeCollection):
        self.db = FakeDatabase(collection_type)
        self.collections = self.db.collections
        self.closed = False

    def __getitem__(self, database):
        return self.db

    def close(self):
        self.closed = True


def _store(collection_type=FakeCollection):
    client = FakeClient(collection_type)
    return MongoDocumentStore(client=client, database="videochat"), client


def test_creates_unique_id_index_per_collection():
    _, client = _store()
    assert sorted(client.collections) == sorted(COLLECTIONS)
    for coll in client.collections.values():
        assert coll.indexes == [([("id", 1)], True)]


def test_insert_and_find_strip_object_id():
    store, _ = _store()
    store.insert_one("users", {"id": "u1", "connected": True})

    assert store.find_one("users", {"id": "u1"}) == {"id": "u1", "connected": True}
    assert store.find("users", {"connected": True}) == [{"id": "u1", "connected": True}]
    assert store.count("users") == 1
    assert store.find_one("users", {"id": "nope"}) is None


def test_insert_does_not_mutate_argument():
    store, _ = _store()
    doc = {"id": "c1"}
    store.insert_one("calls", doc)
    assert doc == {"id": "c1"}


def test_duplicate_insert_is_duplicate_document():
    store, _ = _store()
    store.insert_one("calls", {"id": "c1"})
    with pytest.raises(DuplicateDocument):
        store.insert_one("calls", {"id": "c1"})


def test_update_translates_operators():
    store, client = _store()
    store.insert_one("users", {"id": "u1", "ip": "203.0.113.7", "reportCount": 0})
    res = store.update_one(
        "users", {"id": "u1"}, set={"connected": False}, unset=["ip"], inc={"reportCount": 1}
    )

    assert client.collections["users"].updates[-1] == {
        "$set": {"connected": False},
        "$unset": {"ip": ""},
        "$inc": {"reportCount": 1},
    }
    assert res.matched_count == 1
    assert res.modified_count == 1
    assert res.upserted_id is None
    assert store.find_one("users", {"id": "u1"}) == {"id": "u1", "reportCount": 1, "connected": False}


def test_upsert_reports_document_id():
    store, client = _store()
    res = store.update_one(
        "users", {"id": "u1"}, set={"connected": True}, set_on_insert={"reportCount": 0}, upsert=True
    )
    assert client.collections["users"].updates[-1]["$setOnInsert"] == {"reportCount": 0}
    assert res.upserted_id == "u1"
    assert res.modified_count == 1
    assert res.matched_count == 0

    again = store.update_one(
        "users", {"id": "u1"}, set={"connected": True}, set_on_insert={"reportCount": 5}, upsert=True
    )
    assert again.upserted_id is None
    assert again.modified_count == 0
    assert store.find_one("users", {"id": "u1"})["reportCount"] == 0


def test_conditional_update_misses_on_stale_value():
    store, _ = _store()
    store.insert_one("users", {"id": "u1", "quarantineStatus": {"endTime": "t1"}})
    res = store.update_one(
        "users", {"id": "u1", "quarantineStatus.endTime": "t0"}, set={"quarantineStatus": None}
    )
    assert res.matched_count == 0
    assert store.find_one("users", {"id": "u1"})["quarantineStatus"] == {"endTime": "t1"}


def test_empty_update_reports_match_only():
    store, client = _store()
    store.insert_one("users", {"id": "u1"})
    assert store.update_one("users", {"id": "u1"}).matched_count == 1
    assert store.update_one("users", {"id": "u2"}).matched_count == 0
    assert client.collections["users"].updates == []


def test_upsert_race_is_retried():
    store, client = _store(RacingCollection)
    res = store.update_one(
        "users", {"id": "u1"}, set={"connected": False}, set_on_insert={"reportCount": 0}, upsert=True
    )
    assert res.matched_count == 1
    assert res.upserted_id is None
    assert store.find_one("users", {"id": "u1"})["connected"] is False
    assert len(client.collections["users"].docs) == 1


def test_connection_ping_racing_registration_succeeds():
    store, _ = _store(RacingCollection)
    with Engine(store) as engine:
        user = engine.presence.set_connection("u1", False)
    assert user.id == "u1"
    assert not user.connected


def test_duplicate_key_without_upsert_is_duplicate_document():
    class Clashing(FakeCollection):
        def update_one(self, filter, update, upsert=False):
            raise DuplicateKeyError("E11000 duplicate key error")

    store, _ = _store(Clashing)
    with pytest.raises(DuplicateDocument):
        store.update_one("users", {"id": "u1"}, set={"id": "u2"})


def test_driver_errors_are_transient():
    store, _ = _store(UnreachableCollection)

    with pytest.raises(TransientStoreFailure):
        store.find_one("users", {"id": "u1"})
    with pytest.raises(TransientStoreFailure):
        store.find("users")
    with pytest.raises(TransientStoreFailure):
        store.count("users")
    with pytest.raises(TransientStoreFailure):
        store.insert_one("users", {"id": "u1"})
    with pytest.raises(TransientStoreFailure):
        store.update_one("users", {"id": "u1"}, set={"connected": True}, upsert=True)


def test_index_failure_on_connect_is_transient():
    class NoIndexes(FakeCollection):
        def create_index(self, keys, unique=False):
            raise ServerSelectionTimeoutError("no servers available")

    with pytest.raises(TransientStoreFailure):
        _store(NoIndexes)


def test_close_leaves_injected_client_open():
    store, client = _store()
    store.close()
    assert not client.closed
