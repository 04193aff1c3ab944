"""Configuration schemas and factories for backends and stores.

Example::

    config = StoreConfigSchema.model_validate_json(
        '{"key_prefix": "acme", "backend": {"type": "sqlite", "path": "acme.db"}}'
    )
    async with create_store(config) as store:
        await store.create(policy)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Literal

from pydantic import BaseModel, Field

from policy_store.backends.memory import InMemoryBackend
from policy_store.exceptions import ConfigError
from policy_store.resolver import IndexStrategy
from policy_store.store import PolicyStore

if TYPE_CHECKING:
    from policy_store.backends.base import KeyValueBackend


class BackendConfigSchema(BaseModel):
    """Backend configuration.

    Attributes:
        type: Backend type ("memory", "sqlite" or "redis")
        path: Path to SQLite database file (for sqlite type)
        url: Connection URL (for redis type)
    """

    type: Literal["memory", "sqlite", "redis"] = "memory"
    path: str = ""
    url: str = "redis://localhost:6379/0"


class StoreConfigSchema(BaseModel):
    """Policy store configuration.

    Attributes:
        key_prefix: Namespace for every key the store writes (no ':')
        strategy: Candidate strategy ("indexed" or "full_scan")
        pattern_delimiter: Substring marking a subject/resource as a pattern
        backend: Backend configuration
    """

    key_prefix: str = Field(default="policies", min_length=1, pattern=r"^[^:]+$")
    strategy: IndexStrategy = IndexStrategy.INDEXED
    pattern_delimiter: str = "<"
    backend: BackendConfigSchema = Field(default_factory=BackendConfigSchema)


def create_backend(config: BackendConfigSchema) -> KeyValueBackend:
    """Create a backend from configuration.

    Raises:
        ConfigError: If a required setting for the backend type is missing
    """
    if config.type == "sqlite":
        if not config.path:
            raise ConfigError("SQLite backend requires 'path' configuration")
        from policy_store.backends.sqlite import SQLiteBackend

        return SQLiteBackend(config.path)

    if config.type == "redis":
        if not config.url:
            raise ConfigError("Redis backend requires 'url' configuration")
        from policy_store.backends.redis import RedisBackend

        return RedisBackend(config.url)

    return InMemoryBackend()


def create_store(
    config: StoreConfigSchema, backend: KeyValueBackend | None = None
) -> PolicyStore:
    """Create a store from configuration.

    Args:
        config: Store configuration
        backend: Optional backend to use instead of creating one from
                 ``config.backend``.  An injected backend is shared, so the
                 store will not close it.

    Returns:
        PolicyStore instance
    """
    owns_backend = backend is None
    return PolicyStore(
        backend or create_backend(config.backend),
        key_prefix=config.key_prefix,
        strategy=config.strategy,
        pattern_delimiter=config.pattern_delimiter,
        owns_backend=owns_backend,
    )
