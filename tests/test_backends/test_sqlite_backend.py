"""SQLiteBackend-specific tests."""

import pytest

from policy_store.backends import SQLiteBackend
from policy_store.exceptions import UnavailableError


async def test_persists_across_connections(tmp_path):
    path = str(tmp_path / "policies.db")

    backend = SQLiteBackend(path)
    await backend.set("k", b"v")
    await backend.hash_set("h", "f", b"1")
    await backend.close()

    reopened = SQLiteBackend(path)
    try:
        assert await reopened.get("k") == b"v"
        assert await reopened.hash_get_all("h") == {"f": b"1"}
    finally:
        await reopened.close()


async def test_multi_get_large_batch():
    backend = SQLiteBackend(":memory:")
    try:
        keys = [f"k{i}" for i in range(1200)]
        for key in keys[::2]:
            await backend.set(key, key.encode())
        values = await backend.multi_get(keys)
        assert values[0] == b"k0"
        assert values[1] is None
        assert values[1198] == b"k1198"
        assert sum(v is not None for v in values) == 600
    finally:
        await backend.close()


async def test_unopenable_path_is_unavailable(tmp_path):
    backend = SQLiteBackend(str(tmp_path / "missing-dir" / "db.sqlite"))
    with pytest.raises(UnavailableError) as exc_info:
        await backend.get("k")
    assert exc_info.value.operation == "connect"


async def test_delete_clears_value_and_hash_together():
    backend = SQLiteBackend(":memory:")
    try:
        await backend.set("k", b"v")
        await backend.hash_set("k", "f", b"1")
        assert await backend.delete("k")
        assert await backend.get("k") is None
        assert await backend.hash_get_all("k") == {}
        assert not await backend.delete("k")
    finally:
        await backend.close()


async def test_failed_delete_rolls_back():
    backend = SQLiteBackend(":memory:")
    try:
        await backend.set("k", b"v")
        db = await backend._connect()
        await db.execute("DROP TABLE kv_hashes")
        await db.commit()

        with pytest.raises(UnavailableError) as exc_info:
            await backend.delete("k")
        assert exc_info.value.operation == "delete"
        assert await backend.get("k") == b"v"
    finally:
        await backend.close()
