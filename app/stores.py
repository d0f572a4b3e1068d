"""Blob stores for the persisted field and entry collections."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict

from entrydesk.canonical_json import canonical_dumps, canonical_loads


FIELDS_BLOB = "data-entry-tool-fields"
ENTRIES_BLOB = "data-entry-tool-entries"

_logger = logging.getLogger("entrydesk.stores")


class PersistenceError(RuntimeError):
    pass


class MemoryBlobStore:
    def __init__(self, blobs: Dict[str, Any] | None = None) -> None:
        self._blobs: Dict[str, str] = {}
        for key, value in (blobs or {}).items():
            self._blobs[key] = canonical_dumps(value)

    def load(self, key: str) -> Any | None:
        raw = self._blobs.get(key)
        if raw is None:
            return None
        try:
            return canonical_loads(raw)
        except ValueError as exc:
            raise PersistenceError(f"Corrupt blob {key}: {exc}") from exc

    def save_many(self, blobs: Dict[str, Any]) -> None:
        try:
            encoded = {key: canonical_dumps(value) for key, value in blobs.items()}
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Blob not serializable: {exc}") from exc
        self._blobs.update(encoded)

    def put_raw(self, key: str, raw: str) -> None:
        self._blobs[key] = raw


class FileBlobStore:
    """One ``<key>.json`` file per blob inside ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def load(self, key: str) -> Any | None:
        path = self._path(key)
        if not path.exists():
            return None
        try:
            return canonical_loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise PersistenceError(f"Failed to read {path}: {exc}") from exc

    def save_many(self, blobs: Dict[str, Any]) -> None:
        try:
            encoded = {key: canonical_dumps(value) for key, value in blobs.items()}
        except (TypeError, ValueError) as exc:
            raise PersistenceError(f"Blob not serializable: {exc}") from exc
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            for key, data in encoded.items():
                fd, tmp_name = tempfile.mkstemp(dir=self.root, prefix=f".{key}.", suffix=".tmp")
                try:
                    with os.fdopen(fd, "w", encoding="utf-8") as handle:
                        handle.write(data)
                    os.replace(tmp_name, self._path(key))
                except BaseException:
                    if os.path.exists(tmp_name):
                        os.unlink(tmp_name)
                    raise
                _logger.info("blob_written key=%s bytes=%s", key, len(data))
        except OSError as exc:
            raise PersistenceError(f"Failed to write blobs under {self.root}: {exc}") from exc
