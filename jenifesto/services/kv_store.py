from __future__ import annotations

import asyncio
import copy
import json
import os
import tempfile
from hashlib import sha256
from pathlib import Path
from typing import Any, Protocol

from jenifesto.config import settings
from jenifesto.services.errors import CacheUnavailable

STORE_VERSION = 1


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Any | None: ...
    async def set(self, key: str, value: Any) -> None: ...
    async def delete(self, key: str) -> None: ...


class MemoryKeyValueStore:
    """Process-local store. Values are copied in and out so callers cannot alias them."""

    def __init__(self) -> None:
        self._data: dict[str, Any] = {}

    async def get(self, key: str) -> Any | None:
        value = self._data.get(key)
        return copy.deepcopy(value) if value is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class FileKeyValueStore:
    """One JSON document per key under a directory.

    Blocking file I/O runs in a worker thread. Any I/O or decode failure is
    raised as CacheUnavailable.
    """

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        digest = sha256(key.encode("utf-8")).hexdigest()
        return self.root / f"{digest}.json"

    def _read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            raise CacheUnavailable(f"Failed to read {path}: {e}") from e
        if not isinstance(payload, dict) or payload.get("key") != key:
            return None
        return payload.get("value")

    def _write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        payload = {"version": STORE_VERSION, "key": key, "value": value}
        tmp_name = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            # Each write gets its own temp file so concurrent writers never share one.
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f"{path.stem}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_name = handle.name
                json.dump(payload, handle, ensure_ascii=True)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            raise CacheUnavailable(f"Failed to write {path}: {e}") from e

    def _remove(self, key: str) -> None:
        try:
            self.path_for(key).unlink(missing_ok=True)
        except OSError as e:
            raise CacheUnavailable(f"Failed to delete {key}: {e}") from e

    async def get(self, key: str) -> Any | None:
        return await asyncio.to_thread(self._read, key)

    async def set(self, key: str, value: Any) -> None:
        await asyncio.to_thread(self._write, key, value)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._remove, key)


_store: KeyValueStore | None = None


def get_store() -> KeyValueStore:
    global _store
    if _store is None:
        backend = settings.store_backend.lower().strip()
        if backend == "file":
            _store = FileKeyValueStore(settings.store_path)
        elif backend == "memory":
            _store = MemoryKeyValueStore()
        else:
            raise ValueError(f"Unsupported STORE_BACKEND: {settings.store_backend}")
    return _store
