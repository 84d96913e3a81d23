"""File-based JSON DocumentStore.

One ``<collection>.json`` file per collection under ``~/.chatguard/data/``
(or the configured data directory), each holding a list of document dicts.
Every operation holds an inter-process file lock on the directory, so several
processes (the web app and CLI invocations) can share one data directory.
"""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from chatguard.errors import TransientStoreFailure
from chatguard.logger import get_logger
from chatguard.store.memory import MemoryDocumentStore

log = get_logger("store.json")

LOCK_FILE = ".chatguard.lock"


class JsonDocumentStore(MemoryDocumentStore):
    """Durable variant of the in-memory store.

    Storage path: ``<base_dir>/`` with one file per collection, e.g.
    - ``users.json`` -- list of user documents
    - ``calls.json`` -- list of call documents
    """

    def __init__(self, base_dir: Optional[str] = None, lock_timeout: float = 10.0) -> None:
        super().__init__()
        if base_dir is None:
            self._base = Path.home() / ".chatguard" / "data"
        else:
            self._base = Path(base_dir)
        self._base.mkdir(parents=True, exist_ok=True)
        self._file_lock = FileLock(str(self._base / LOCK_FILE))
        self._lock_timeout = lock_timeout

    def _path(self, collection: str) -> Path:
        return self._base / f"{collection}.json"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @contextmanager
    def _locked(self):
        with self._lock:
            try:
                self._file_lock.acquire(timeout=self._lock_timeout)
            except Timeout as exc:
                log.error("Timed out waiting for %s", self._file_lock.lock_file)
                raise TransientStoreFailure("Data directory is locked by another process") from exc
            try:
                yield
            finally:
                self._file_lock.release()

    def _read_json(self, path: Path) -> list[dict]:
        if not path.exists():
            return []
        try:
            data = json.loads(path.read_text())
        except (json.JSONDecodeError, OSError) as exc:
            log.error("Failed to read %s: %s", path, exc)
            raise TransientStoreFailure(f"Could not read {path.name}") from exc
        return data if isinstance(data, list) else []

    def _write_json(self, path: Path, data: list[dict]) -> None:
        tmp_name = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", dir=self._base, prefix=f".{path.stem}-", suffix=".tmp", delete=False
            ) as tmp:
                tmp_name = tmp.name
                json.dump(data, tmp, indent=2, default=str)
            os.replace(tmp_name, path)
        except OSError as exc:
            log.error("Failed to write %s: %s", path, exc)
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise TransientStoreFailure(f"Could not write {path.name}") from exc

    def _load(self, collection: str) -> list[dict]:
        return self._read_json(self._path(collection))

    def _save(self, collection: str, documents: list[dict]) -> None:
        self._write_json(self._path(collection), documents)
