"""Backend protocol — atomic single-key primitives the policy store is built on."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence


class KeyValueBackend(ABC):
    """Abstract base for all key-value backends.

    Every method is a single atomic operation on one key (or one field of
    one hash key).  Nothing here spans keys transactionally; the policy store
    orders its calls so that a failure between two of them is harmless.

    Plain keys and hash keys share one keyspace, so ``list_keys`` returns
    both kinds.  Backends translate their library's transport errors into
    :class:`~policy_store.exceptions.UnavailableError`.
    """

    @abstractmethod
    async def set_if_absent(self, key: str, value: bytes) -> bool:
        """Store *value* only if *key* does not exist.  Return ``True`` if written."""
        ...

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the stored value, or ``None`` if not found."""
        ...

    @abstractmethod
    async def set(self, key: str, value: bytes) -> None:
        """Create or overwrite a value."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> bool:
        """Delete a key.  Return ``True`` if it existed."""
        ...

    @abstractmethod
    async def hash_set(self, key: str, field: str, value: bytes) -> None:
        """Create or overwrite one field of a hash."""
        ...

    @abstractmethod
    async def hash_get(self, key: str, field: str) -> bytes | None:
        """Return one field of a hash, or ``None`` if not found."""
        ...

    @abstractmethod
    async def hash_delete(self, key: str, field: str) -> bool:
        """Delete one field of a hash.  Return ``True`` if it existed."""
        ...

    @abstractmethod
    async def hash_get_all(self, key: str) -> dict[str, bytes]:
        """Return every field of a hash (empty dict if the hash does not exist)."""
        ...

    @abstractmethod
    async def list_keys(self, prefix: str) -> list[str]:
        """Return all keys starting with *prefix*."""
        ...

    @abstractmethod
    async def multi_get(self, keys: Sequence[str]) -> list[bytes | None]:
        """Return the values of *keys*, ``None`` for each missing one, in order."""
        ...

    async def close(self) -> None:
        """Release connections.  Default is a no-op."""
        return None
