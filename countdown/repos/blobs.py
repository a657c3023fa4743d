"""Key/value blob stores backing the persisted event collection."""

from __future__ import annotations

import os
import threading
from pathlib import Path
from typing import Protocol


class BlobStore(Protocol):
    def read_blob(self, key: str) -> bytes | None: ...

    def write_blob(self, key: str, data: bytes) -> None: ...


class InMemoryBlobStore:
    """Dict-backed blob store, keyed by name."""

    def __init__(self, blobs: dict[str, bytes] | None = None) -> None:
        self._blobs: dict[str, bytes] = dict(blobs or {})

    def read_blob(self, key: str) -> bytes | None:
        return self._blobs.get(key)

    def write_blob(self, key: str, data: bytes) -> None:
        self._blobs[key] = bytes(data)


class FileBlobStore:
    """One file per key under *root*.

    Writes go to a temporary file that is renamed over the old one, so a
    concurrent reader (the widget) sees either the old or the new blob.
    """

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        self._lock = threading.Lock()

    def _path(self, key: str) -> Path:
        return self.root / f"{key}.json"

    def read_blob(self, key: str) -> bytes | None:
        try:
            return self._path(key).read_bytes()
        except FileNotFoundError:
            return None

    def write_blob(self, key: str, data: bytes) -> None:
        path = self._path(key)
        with self._lock:
            self.root.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            try:
                tmp.write_bytes(data)
                os.replace(tmp, path)
            except BaseException:
                tmp.unlink(missing_ok=True)
                raise
