"""SQLiteBackend — durable, single-file backend using aiosqlite."""

from __future__ import annotations

import asyncio
import sqlite3
from collections.abc import Sequence
from typing import Any

try:
    import aiosqlite
except ImportError as exc:
    raise ImportError(
        "SQLiteBackend requires the 'aiosqlite' package. "
        "Install it with: pip install policy-store[sqlite]"
    ) from exc

from policy_store.backends.base import KeyValueBackend
from policy_store.exceptions import UnavailableError

_CREATE_TABLES = (
    """
    CREATE TABLE IF NOT EXISTS kv_values (
        key   TEXT PRIMARY KEY,
        value BLOB NOT NULL
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS kv_hashes (
        key   TEXT NOT NULL,
        field TEXT NOT NULL,
        value BLOB NOT NULL,
        PRIMARY KEY (key, field)
    )
    """,
)

# Stays well under SQLITE_MAX_VARIABLE_NUMBER on older builds
_MULTI_GET_CHUNK = 500


class SQLiteBackend(KeyValueBackend):
    """Persistent backend backed by a single SQLite file.

    Every method commits once, so each call is atomic on its own.  Plain
    values and hash fields live in two tables.

    Parameters:
        db_path: Path to the SQLite database file.  Use ``":memory:"``
                 for an in-memory database (useful for testing).
    """

    def __init__(self, db_path: str = "policy_store.db") -> None:
        self._db_path = db_path
        self._db: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    async def _connect(self) -> aiosqlite.Connection:
        async with self._connect_lock:
            if self._db is None:
                try:
                    db = await aiosqlite.connect(self._db_path)
                    for statement in _CREATE_TABLES:
                        await db.execute(statement)
                    await db.commit()
                except sqlite3.Error as e:
                    raise UnavailableError("connect", str(e)) from e
                self._db = db
        return self._db

    async def close(self) -> None:
        if self._db:
            await self._db.close()
            self._db = None

    async def _execute(self, operation: str, sql: str, params: Sequence[object]) -> int:
        """Run a write statement, commit, and return the affected row count."""
        return await self._execute_all(operation, [(sql, params)])

    async def _execute_all(
        self, operation: str, statements: Sequence[tuple[str, Sequence[object]]]
    ) -> int:
        """Run write statements in one transaction and return the total row count."""
        db = await self._connect()
        rowcount = 0
        try:
            for sql, params in statements:
                cursor = await db.execute(sql, params)
                rowcount += cursor.rowcount
            await db.commit()
        except sqlite3.Error as e:
            await db.rollback()
            raise UnavailableError(operation, str(e)) from e
        return rowcount

    async def _fetchall(
        self, operation: str, sql: str, params: Sequence[object]
    ) -> list[tuple[Any, ...]]:
        db = await self._connect()
        try:
            cursor = await db.execute(sql, params)
            rows = await cursor.fetchall()
        except sqlite3.Error as e:
            raise UnavailableError(operation, str(e)) from e
        return list(rows)

    # ── KeyValueBackend protocol ─────────────────────────────

    async def set_if_absent(self, key: str, value: bytes) -> bool:
        written = await self._execute(
            "set_if_absent",
            "INSERT OR IGNORE INTO kv_values (key, value) VALUES (?, ?)",
            (key, value),
        )
        return written == 1

    async def get(self, key: str) -> bytes | None:
        rows = await self._fetchall(
            "get",
            "SELECT value FROM kv_values WHERE key = ?",
            (key,),
        )
        return bytes(rows[0][0]) if rows else None

    async def set(self, key: str, value: bytes) -> None:
        await self._execute(
            "set",
            "INSERT OR REPLACE INTO kv_values (key, value) VALUES (?, ?)",
            (key, value),
        )

    async def delete(self, key: str) -> bool:
        removed = await self._execute_all(
            "delete",
            [
                ("DELETE FROM kv_values WHERE key = ?", (key,)),
                ("DELETE FROM kv_hashes WHERE key = ?", (key,)),
            ],
        )
        return removed > 0

    async def hash_set(self, key: str, field: str, value: bytes) -> None:
        await self._execute(
            "hash_set",
            "INSERT OR REPLACE INTO kv_hashes (key, field, value) VALUES (?, ?, ?)",
            (key, field, value),
        )

    async def hash_get(self, key: str, field: str) -> bytes | None:
        rows = await self._fetchall(
            "hash_get",
            "SELECT value FROM kv_hashes WHERE key = ? AND field = ?",
            (key, field),
        )
        return bytes(rows[0][0]) if rows else None

    async def hash_delete(self, key: str, field: str) -> bool:
        removed = await self._execute(
            "hash_delete",
            "DELETE FROM kv_hashes WHERE key = ? AND field = ?",
            (key, field),
        )
        return removed == 1

    async def hash_get_all(self, key: str) -> dict[str, bytes]:
        rows = await self._fetchall(
            "hash_get_all",
            "SELECT field, value FROM kv_hashes WHERE key = ?",
            (key,),
        )
        return {row[0]: bytes(row[1]) for row in rows}

    async def list_keys(self, prefix: str) -> list[str]:
        # substr() instead of LIKE so '%' and '_' in prefixes stay literal
        rows = await self._fetchall(
            "list_keys",
            "SELECT key FROM kv_values WHERE substr(key, 1, ?) = ? "
            "UNION SELECT DISTINCT key FROM kv_hashes WHERE substr(key, 1, ?) = ?",
            (len(prefix), prefix, len(prefix), prefix),
        )
        return [row[0] for row in rows]

    async def multi_get(self, keys: Sequence[str]) -> list[bytes | None]:
        found: dict[str, bytes] = {}
        for start in range(0, len(keys), _MULTI_GET_CHUNK):
            chunk = tuple(keys[start : start + _MULTI_GET_CHUNK])
            placeholders = ", ".join("?" for _ in chunk)
            rows = await self._fetchall(
                "multi_get",
                f"SELECT key, value FROM kv_values WHERE key IN ({placeholders})",
                chunk,
            )
            found.update((row[0], bytes(row[1])) for row in rows)
        return [found.get(k) for k in keys]
