"""Tests for the DocumentStore backends."""

import tempfile
import threading
from pathlib import Path

import pytest

from chatguard.errors import DuplicateDocument, InvalidArgument, TransientStoreFailure
from chatguard.store.json_store import JsonDocumentStore
from chatguard.store.memory import MemoryDocumentStore


@pytest.fixture(params=["memory", "json"])
def backend(request, tmp_path):
    if request.param == "memory":
        return MemoryDocumentStore()
    return JsonDocumentStore(str(tmp_path / "data"))


def test_insert_and_find(backend):
    backend.insert_one("users", {"id": "u1", "connected": True})
    backend.insert_one("users", {"id": "u2", "connected": False})

    assert backend.find_one("users", {"id": "u1"})["connected"] is True
    assert backend.find_one("users", {"id": "nope"}) is None
    assert [d["id"] for d in backend.find("users", {"connected": False})] == ["u2"]
    assert backend.count("users") == 2


def test_insert_duplicate_rejected(backend):
    backend.insert_one("calls", {"id": "c1"})
    with pytest.raises(DuplicateDocument):
        backend.insert_one("calls", {"id": "c1"})
    assert backend.count("calls") == 1


def test_insert_requires_id(backend):
    with pytest.raises(InvalidArgument):
        backend.insert_one("calls", {"user1Id": "a"})


def test_update_set_unset_inc(backend):
    backend.insert_one("users", {"id": "u1", "reportCount": 0, "ip": "1.2.3.4"})
    res = backend.update_one("users", {"id": "u1"}, set={"connected": True}, unset=["ip"], inc={"reportCount": 2})
    assert res.matched_count == 1
    assert res.modified_count == 1

    doc = backend.find_one("users", {"id": "u1"})
    assert doc["connected"] is True
    assert doc["reportCount"] == 2
    assert "ip" not in doc


def test_update_reports_unchanged_document(backend):
    backend.insert_one("users", {"id": "u1", "connected": True})
    res = backend.update_one("users", {"id": "u1"}, set={"connected": True})
    assert res.matched_count == 1
    assert res.modified_count == 0


def test_update_missing_without_upsert(backend):
    res = backend.update_one("users", {"id": "ghost"}, set={"connected": True})
    assert res.matched_count == 0
    assert backend.find_one("users", {"id": "ghost"}) is None


def test_upsert_uses_set_on_insert_only_when_creating(backend):
    res = backend.update_one(
        "users", {"id": "u1"},
        set={"connected": True},
        set_on_insert={"reportCount": 0},
        upsert=True,
    )
    assert res.upserted_id == "u1"
    assert backend.find_one("users", {"id": "u1"}) == {"id": "u1", "connected": True, "reportCount": 0}

    backend.update_one("users", {"id": "u1"}, inc={"reportCount": 1})
    res = backend.update_one(
        "users", {"id": "u1"},
        set={"connected": False},
        set_on_insert={"reportCount": 0},
        upsert=True,
    )
    assert res.upserted_id is None
    assert backend.find_one("users", {"id": "u1"})["reportCount"] == 1


def test_dotted_filter_acts_as_condition(backend):
    backend.insert_one("users", {"id": "u1", "quarantineStatus": {"endTime": "t1"}})

    stale = backend.update_one(
        "users", {"id": "u1", "quarantineStatus.endTime": "t0"}, set={"quarantineStatus": None}
    )
    assert stale.matched_count == 0
    assert backend.find_one("users", {"id": "u1"})["quarantineStatus"] == {"endTime": "t1"}

    current = backend.update_one(
        "users", {"id": "u1", "quarantineStatus.endTime": "t1"}, set={"quarantineStatus": None}
    )
    assert current.modified_count == 1
    assert backend.find_one("users", {"id": "u1"})["quarantineStatus"] is None


def test_missing_field_matches_none(backend):
    backend.insert_one("users", {"id": "u1"})
    assert backend.find("users", {"bannedStatus.isBanned": None})[0]["id"] == "u1"
    assert backend.find("users", {"bannedStatus.isBanned": True}) == []


def test_returned_documents_are_copies(backend):
    backend.insert_one("users", {"id": "u1", "quarantineStatus": {"level": 1}})
    doc = backend.find_one("users", {"id": "u1"})
    doc["quarantineStatus"]["level"] = 3
    assert backend.find_one("users", {"id": "u1"})["quarantineStatus"]["level"] == 1


# --- JSON backend specifics ---


def test_json_store_persists_across_instances():
    with tempfile.TemporaryDirectory() as tmpdir:
        first = JsonDocumentStore(tmpdir)
        first.insert_one("reports", {"id": "r1", "status": "pending"})

        second = JsonDocumentStore(tmpdir)
        assert second.find_one("reports", {"id": "r1"})["status"] == "pending"
        assert (Path(tmpdir) / "reports.json").exists()


def test_json_store_corrupt_file_is_transient_failure():
    with tempfile.TemporaryDirectory() as tmpdir:
        (Path(tmpdir) / "users.json").write_text("{not json")
        store = JsonDocumentStore(tmpdir)
        with pytest.raises(TransientStoreFailure):
            store.find_one("users", {"id": "u1"})


def test_json_stores_sharing_a_directory_do_not_lose_writes():
    with tempfile.TemporaryDirectory() as tmpdir:
        first = JsonDocumentStore(tmpdir)
        second = JsonDocumentStore(tmpdir)
        first.insert_one("users", {"id": "u1", "reportCount": 0})
        second.insert_one("users", {"id": "u2", "connected": True})
        errors = []

        def bump(store):
            try:
                for _ in range(200):
                    store.update_one("users", {"id": "u1"}, inc={"reportCount": 1})
            except TransientStoreFailure as exc:
                errors.append(exc)

        workers = [threading.Thread(target=bump, args=(s,)) for s in (first, second)]
        for w in workers:
            w.start()
        for w in workers:
            w.join()

        assert errors == []
        assert first.find_one("users", {"id": "u1"})["reportCount"] == 400
        # A write through one instance never drops another document
        assert second.find_one("users", {"id": "u2"})["connected"] is True
        assert list(Path(tmpdir).glob("*.tmp")) == []


def test_json_store_write_on_one_instance_visible_to_other():
    with tempfile.TemporaryDirectory() as tmpdir:
        web = JsonDocumentStore(tmpdir)
        cli = JsonDocumentStore(tmpdir)
        web.insert_one("users", {"id": "u1"})
        web.insert_one("users", {"id": "u2"})

        cli.update_one("users", {"id": "u1"}, set={"bannedStatus": {"isBanned": True}})
        web.update_one("users", {"id": "u2"}, set={"connected": True})

        assert cli.find_one("users", {"id": "u1"})["bannedStatus"] == {"isBanned": True}
        assert web.find_one("users", {"id": "u1"})["bannedStatus"] == {"isBanned": True}
