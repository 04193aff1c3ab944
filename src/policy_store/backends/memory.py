"""InMemoryBackend — zero-config, dict-backed backend for development and testing."""

from __future__ import annotations

from collections.abc import Sequence

from policy_store.backends.base import KeyValueBackend


class InMemoryBackend(KeyValueBackend):
    """In-memory backend using plain dicts.  Data is lost on process exit.

    Each method completes without awaiting, so every call is atomic with
    respect to other coroutines on the same event loop.
    """

    def __init__(self) -> None:
        self._values: dict[str, bytes] = {}
        self._hashes: dict[str, dict[str, bytes]] = {}

    async def set_if_absent(self, key: str, value: bytes) -> bool:
        if key in self._values:
            return False
        self._values[key] = value
        return True

    async def get(self, key: str) -> bytes | None:
        return self._values.get(key)

    async def set(self, key: str, value: bytes) -> None:
        self._values[key] = value

    async def delete(self, key: str) -> bool:
        existed = key in self._values or key in self._hashes
        self._values.pop(key, None)
        self._hashes.pop(key, None)
        return existed

    async def hash_set(self, key: str, field: str, value: bytes) -> None:
        self._hashes.setdefault(key, {})[field] = value

    async def hash_get(self, key: str, field: str) -> bytes | None:
        return self._hashes.get(key, {}).get(field)

    async def hash_delete(self, key: str, field: str) -> bool:
        fields = self._hashes.get(key)
        if fields is None or field not in fields:
            return False
        del fields[field]
        # Redis drops a hash once its last field is gone
        if not fields:
            del self._hashes[key]
        return True

    async def hash_get_all(self, key: str) -> dict[str, bytes]:
        return dict(self._hashes.get(key, {}))

    async def list_keys(self, prefix: str) -> list[str]:
        keys = [k for k in self._values if k.startswith(prefix)]
        keys.extend(k for k in self._hashes if k.startswith(prefix))
        return keys

    async def multi_get(self, keys: Sequence[str]) -> list[bytes | None]:
        return [self._values.get(k) for k in keys]
