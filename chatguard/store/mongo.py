"""MongoDB DocumentStore backed by pymongo."""

from __future__ import annotations

from typing import Any, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.errors import DuplicateKeyError, PyMongoError

from chatguard.errors import DuplicateDocument, TransientStoreFailure
from chatguard.logger import get_logger
from chatguard.store.base import COLLECTIONS, DocumentStore, UpdateResult

log = get_logger("store.mongo")


def _strip(document: Optional[dict]) -> Optional[dict]:
    if document is None:
        return None
    document = dict(document)
    document.pop("_id", None)
    return document


class MongoDocumentStore(DocumentStore):
    """DocumentStore over a MongoDB database.

    Parameters
    ----------
    uri:
        Connection string; ignored when ``client`` is supplied.
    database:
        Database name (``videochat`` by default).
    client:
        An existing ``MongoClient`` (or compatible object) to use instead of
        opening a new connection.
    """

    def __init__(
        self,
        uri: str = "",
        database: str = "videochat",
        client: Any = None,
    ) -> None:
        if client is None:
            if not uri:
                raise TransientStoreFailure("MongoDB URI is not configured")
            client = MongoClient(uri)
            self._owns_client = True
        else:
            self._owns_client = False
        self._client = client
        self._db = client[database]
        try:
            for name in COLLECTIONS:
                self._db[name].create_index([("id", ASCENDING)], unique=True)
        except PyMongoError as exc:
            log.error("Failed to prepare MongoDB indexes: %s", exc)
            raise TransientStoreFailure("MongoDB unavailable") from exc
        log.info("Connected to MongoDB database %s", database)

    def find_one(self, collection: str, filter: dict[str, Any]) -> Optional[dict]:
        try:
            return _strip(self._db[collection].find_one(filter))
        except PyMongoError as exc:
            log.error("find_one on %s failed: %s", collection, exc)
            raise TransientStoreFailure(str(exc)) from exc

    def find(self, collection: str, filter: Optional[dict[str, Any]] = None) -> list[dict]:
        try:
            return [_strip(d) for d in self._db[collection].find(filter or {})]
        except PyMongoError as exc:
            log.error("find on %s failed: %s", collection, exc)
            raise TransientStoreFailure(str(exc)) from exc

    def count(self, collection: str, filter: Optional[dict[str, Any]] = None) -> int:
        try:
            return self._db[collection].count_documents(filter or {})
        except PyMongoError as exc:
            log.error("count on %s failed: %s", collection, exc)
            raise TransientStoreFailure(str(exc)) from exc

    def insert_one(self, collection: str, document: dict) -> str:
        try:
            # insert_one mutates its argument with an _id
            self._db[collection].insert_one(dict(document))
        except DuplicateKeyError as exc:
            raise DuplicateDocument(f"{collection}/{document.get('id')} already exists") from exc
        except PyMongoError as exc:
            log.error("insert_one on %s failed: %s", collection, exc)
            raise TransientStoreFailure(str(exc)) from exc
        return document["id"]

    def update_one(
        self,
        collection: str,
        filter: dict[str, Any],
        *,
        set: Optional[dict[str, Any]] = None,
        unset: Optional[list[str]] = None,
        inc: Optional[dict[str, int]] = None,
        set_on_insert: Optional[dict[str, Any]] = None,
        upsert: bool = False,
    ) -> UpdateResult:
        update: dict[str, Any] = {}
        if set:
            update["$set"] = set
        if unset:
            update["$unset"] = {path: "" for path in unset}
        if inc:
            update["$inc"] = inc
        if set_on_insert:
            update["$setOnInsert"] = set_on_insert
        if not update:
            return UpdateResult(matched_count=int(self.find_one(collection, filter) is not None))
        try:
            try:
                res = self._db[collection].update_one(filter, update, upsert=upsert)
            except DuplicateKeyError:
                if not upsert:
                    raise
                # Lost an upsert race; the document now exists, so the retry matches it
                log.info("Upsert on %s collided on id; retrying", collection)
                res = self._db[collection].update_one(filter, update, upsert=upsert)
        except DuplicateKeyError as exc:
            raise DuplicateDocument(f"{collection} update collided on id") from exc
        except PyMongoError as exc:
            log.error("update_one on %s failed: %s", collection, exc)
            raise TransientStoreFailure(str(exc)) from exc
        upserted = filter.get("id") if res.upserted_id is not None else None
        return UpdateResult(
            matched_count=res.matched_count,
            modified_count=res.modified_count + (1 if upserted else 0),
            upserted_id=upserted,
        )

    def close(self) -> None:
        if self._owns_client:
            self._client.close()
