"""RedisBackend — remote backend using redis.asyncio."""

from __future__ import annotations

import re
from collections.abc import Sequence
from typing import Any

try:
    import redis.asyncio as aioredis
    from redis.exceptions import RedisError
except ImportError as exc:
    raise ImportError(
        "RedisBackend requires the 'redis' package. "
        "Install it with: pip install policy-store[redis]"
    ) from exc

from policy_store.backends.base import KeyValueBackend
from policy_store.exceptions import UnavailableError

_GLOB_SPECIAL = re.compile(r"([*?\[\]\\])")


def _glob_escape(prefix: str) -> str:
    """Escape Redis MATCH glob metacharacters so *prefix* matches literally."""
    return _GLOB_SPECIAL.sub(r"\\\1", prefix)


def _text(value: bytes | str) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisBackend(KeyValueBackend):
    """Backend over a Redis server.

    Pass an existing ``redis.asyncio.Redis`` client to share one connection
    pool between several stores; the backend then leaves closing it to the
    caller.  Otherwise a client is created from *url* and owned here.

    The client must be created with ``decode_responses=False``: values are
    opaque bytes.

    Parameters:
        url:        Connection URL, e.g. ``"redis://localhost:6379/0"``.
        client:     Pre-built client to use instead of *url*.
        scan_count: ``COUNT`` hint for ``SCAN`` when listing keys.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        *,
        client: aioredis.Redis | None = None,
        scan_count: int = 500,
    ) -> None:
        self._owns_client = client is None
        self._client: aioredis.Redis = client or aioredis.from_url(url, decode_responses=False)
        self._scan_count = scan_count

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(self, operation: str, method: str, *args: Any, **kwargs: Any) -> Any:
        try:
            return await getattr(self._client, method)(*args, **kwargs)
        except RedisError as e:
            raise UnavailableError(operation, str(e)) from e

    # ── KeyValueBackend protocol ─────────────────────────────

    async def set_if_absent(self, key: str, value: bytes) -> bool:
        # SET NX replies None when the key already exists
        return bool(await self._call("set_if_absent", "set", key, value, nx=True))

    async def get(self, key: str) -> bytes | None:
        result: bytes | None = await self._call("get", "get", key)
        return result

    async def set(self, key: str, value: bytes) -> None:
        await self._call("set", "set", key, value)

    async def delete(self, key: str) -> bool:
        return await self._call("delete", "delete", key) > 0

    async def hash_set(self, key: str, field: str, value: bytes) -> None:
        await self._call("hash_set", "hset", key, field, value)

    async def hash_get(self, key: str, field: str) -> bytes | None:
        result: bytes | None = await self._call("hash_get", "hget", key, field)
        return result

    async def hash_delete(self, key: str, field: str) -> bool:
        return await self._call("hash_delete", "hdel", key, field) > 0

    async def hash_get_all(self, key: str) -> dict[str, bytes]:
        fields = await self._call("hash_get_all", "hgetall", key)
        return {_text(name): value for name, value in fields.items()}

    async def list_keys(self, prefix: str) -> list[str]:
        pattern = _glob_escape(prefix) + "*"
        keys: list[str] = []
        try:
            async for key in self._client.scan_iter(match=pattern, count=self._scan_count):
                keys.append(_text(key))
        except RedisError as e:
            raise UnavailableError("list_keys", str(e)) from e
        # SCAN may return a key more than once across iterations
        return list(dict.fromkeys(keys))

    async def multi_get(self, keys: Sequence[str]) -> list[bytes | None]:
        if not keys:
            return []
        values: list[bytes | None] = await self._call("multi_get", "mget", list(keys))
        return values
