"""Tests for configuration schemas and factories."""

import pytest
from pydantic import ValidationError

from policy_store import (
    BackendConfigSchema,
    ConfigError,
    IndexStrategy,
    InMemoryBackend,
    StoreConfigSchema,
    create_backend,
    create_store,
)
from policy_store.backends import RedisBackend, SQLiteBackend


def test_defaults():
    config = StoreConfigSchema()
    assert config.key_prefix == "policies"
    assert config.strategy is IndexStrategy.INDEXED
    assert config.backend.type == "memory"


def test_parse_from_json():
    config = StoreConfigSchema.model_validate_json(
        '{"key_prefix": "acme", "strategy": "full_scan",'
        ' "backend": {"type": "sqlite", "path": "acme.db"}}'
    )
    assert config.strategy is IndexStrategy.FULL_SCAN
    assert config.backend.path == "acme.db"


def test_unknown_backend_type_rejected():
    with pytest.raises(ValidationError):
        BackendConfigSchema(type="cassandra")


def test_empty_prefix_rejected():
    with pytest.raises(ValidationError):
        StoreConfigSchema(key_prefix="")


def test_prefix_with_separator_rejected():
    with pytest.raises(ValidationError):
        StoreConfigSchema(key_prefix="acme:policy")


def test_create_memory_backend():
    assert isinstance(create_backend(BackendConfigSchema()), InMemoryBackend)


def test_create_sqlite_backend(tmp_path):
    backend = create_backend(BackendConfigSchema(type="sqlite", path=str(tmp_path / "p.db")))
    assert isinstance(backend, SQLiteBackend)


def test_sqlite_requires_path():
    with pytest.raises(ConfigError):
        create_backend(BackendConfigSchema(type="sqlite"))


def test_redis_requires_url():
    with pytest.raises(ConfigError):
        create_backend(BackendConfigSchema(type="redis", url=""))


def test_create_redis_backend():
    backend = create_backend(BackendConfigSchema(type="redis", url="redis://localhost:6399/1"))
    assert isinstance(backend, RedisBackend)


def test_create_store_applies_settings():
    store = create_store(StoreConfigSchema(key_prefix="acme", strategy="full_scan"))
    assert store.key_prefix == "acme"
    assert not store.indexed


async def test_create_store_with_shared_backend(backend, alice_policy):
    first = create_store(StoreConfigSchema(key_prefix="one"), backend=backend)
    second = create_store(StoreConfigSchema(key_prefix="two"), backend=backend)
    assert first.backend is second.backend is backend

    await first.create(alice_policy)
    assert not await second.exists(alice_policy.id)


async def test_sqlite_store_end_to_end(tmp_path, alice_policy):
    backend_config = BackendConfigSchema(type="sqlite", path=str(tmp_path / "p.db"))
    config = StoreConfigSchema(backend=backend_config)

    async with create_store(config) as store:
        await store.create(alice_policy)

    async with create_store(config) as store:
        assert await store.get(alice_policy.id) == alice_policy
        candidates = await store.find_candidates("group:eng", "doc:none")
        assert [p.id for p in candidates] == [alice_policy.id]
