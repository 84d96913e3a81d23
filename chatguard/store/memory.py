"""In-memory DocumentStore used by tests and the ``memory`` backend."""

from __future__ import annotations

import copy
import threading
from typing import Any, Optional

from chatguard.errors import DuplicateDocument, InvalidArgument
from chatguard.store.base import (
    DocumentStore,
    UpdateResult,
    apply_update,
    matches,
    seed_from_filter,
)


class MemoryDocumentStore(DocumentStore):
    """Collections held as lists of dicts behind a single lock.

    Subclasses persist elsewhere by overriding :meth:`_load` and :meth:`_save`,
    and widen the lock by overriding :meth:`_locked`. Every public operation is
    one load / modify / save cycle inside ``_locked()``.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._collections: dict[str, list[dict]] = {}

    # ------------------------------------------------------------------
    # Persistence hooks
    # ------------------------------------------------------------------

    def _load(self, collection: str) -> list[dict]:
        return self._collections.setdefault(collection, [])

    def _save(self, collection: str, documents: list[dict]) -> None:
        self._collections[collection] = documents

    def _locked(self):
        return self._lock

    # ------------------------------------------------------------------
    # DocumentStore API
    # ------------------------------------------------------------------

    def find_one(self, collection: str, filter: dict[str, Any]) -> Optional[dict]:
        with self._locked():
            for doc in self._load(collection):
                if matches(doc, filter):
                    return copy.deepcopy(doc)
        return None

    def find(self, collection: str, filter: Optional[dict[str, Any]] = None) -> list[dict]:
        with self._locked():
            return [copy.deepcopy(d) for d in self._load(collection) if matches(d, filter)]

    def insert_one(self, collection: str, document: dict) -> str:
        doc_id = document.get("id")
        if not doc_id:
            raise InvalidArgument("Documents must carry an 'id'")
        with self._locked():
            documents = self._load(collection)
            if any(d.get("id") == doc_id for d in documents):
                raise DuplicateDocument(f"{collection}/{doc_id} already exists")
            documents.append(copy.deepcopy(document))
            self._save(collection, documents)
        return doc_id

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
        with self._locked():
            documents = self._load(collection)
            for doc in documents:
                if matches(doc, filter):
                    changed = apply_update(doc, set=set, unset=unset, inc=inc)
                    if changed:
                        self._save(collection, documents)
                    return UpdateResult(matched_count=1, modified_count=int(changed))

            if not upsert:
                return UpdateResult()

            doc = seed_from_filter(filter)
            apply_update(doc, set=set_on_insert)
            apply_update(doc, set=set, unset=unset, inc=inc)
            if not doc.get("id"):
                raise InvalidArgument("Upsert filter must identify the document by 'id'")
            documents.append(doc)
            self._save(collection, documents)
            return UpdateResult(modified_count=1, upserted_id=doc["id"])
