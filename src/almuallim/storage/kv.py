"""Durable key-value storage for whole-value snapshots (JSON file + fcntl.flock + atomic write)."""

import fcntl
import os
import tempfile
from pathlib import Path
from typing import Protocol

import structlog

logger = structlog.get_logger()


class KeyValueStorage(Protocol):
    """String-valued storage addressed by key; absent keys read as ``None``."""

    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...

    def delete(self, key: str) -> None: ...


class MemoryStorage:
    """In-process storage, used for tests and ephemeral sessions."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._data: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class JsonFileStorage:
    """Stores each key as ``<key>.json`` under a directory.

    Writes go through a temp file and ``os.replace`` so readers never see a
    half-written value. Writers to the same key are serialized by an exclusive
    ``flock`` on ``<key>.json.lock``; the last writer wins. A failed write
    removes its temp file and leaves the previous value in place.

    Args:
        directory: Directory holding the value files.
    """

    def __init__(self, directory: Path):
        self.directory = directory
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        if not key or "/" in key or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.directory / f"{key}.json"

    def get(self, key: str) -> str | None:
        path = self._path(key)
        if not path.exists():
            return None
        with open(path, encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_SH)
            data = f.read()
            fcntl.flock(f, fcntl.LOCK_UN)
        return data

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        lock_path = self.directory / f"{key}.json.lock"
        with open(lock_path, "w") as lock_file:
            fcntl.flock(lock_file, fcntl.LOCK_EX)
            tmp = tempfile.NamedTemporaryFile(
                "w", dir=self.directory, delete=False, suffix=".tmp", encoding="utf-8"
            )
            try:
                with tmp:
                    tmp.write(value)
                os.replace(tmp.name, path)
            except Exception:
                Path(tmp.name).unlink(missing_ok=True)
                raise
        logger.debug("storage_written", key=key, bytes=len(value))

    def delete(self, key: str) -> None:
        path = self._path(key)
        path.unlink(missing_ok=True)
        logger.debug("storage_deleted", key=key)
