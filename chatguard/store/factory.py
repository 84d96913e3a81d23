"""Build the configured DocumentStore."""

from __future__ import annotations

from chatguard.config import Settings
from chatguard.errors import InvalidArgument
from chatguard.store.base import DocumentStore


def open_store(settings: Settings) -> DocumentStore:
    """Return a store for ``settings.store`` (memory | json | mongo)."""
    if settings.store == "memory":
        from chatguard.store.memory import MemoryDocumentStore

        return MemoryDocumentStore()
    if settings.store == "json":
        from chatguard.store.json_store import JsonDocumentStore

        return JsonDocumentStore(settings.data_dir)
    if settings.store == "mongo":
        from chatguard.store.mongo import MongoDocumentStore

        return MongoDocumentStore(settings.mongodb_uri, settings.mongo_db)
    raise InvalidArgument(f"Unknown store backend '{settings.store}'")
