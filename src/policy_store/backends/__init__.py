"""Key-value backends the policy store persists into.

``SQLiteBackend`` and ``RedisBackend`` are imported on first access so that
their optional dependencies are only required when actually used.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from policy_store.backends.base import KeyValueBackend
from policy_store.backends.memory import InMemoryBackend

if TYPE_CHECKING:
    from policy_store.backends.redis import RedisBackend
    from policy_store.backends.sqlite import SQLiteBackend

__all__ = ["InMemoryBackend", "KeyValueBackend", "RedisBackend", "SQLiteBackend"]


def __getattr__(name: str) -> Any:
    if name == "SQLiteBackend":
        from policy_store.backends.sqlite import SQLiteBackend

        return SQLiteBackend
    if name == "RedisBackend":
        from policy_store.backends.redis import RedisBackend

        return RedisBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
