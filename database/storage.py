"""Key-value storage port and its implementations.

The RSVP services only ever see ``KeyValueStore``: per-key get/set/delete of
JSON-compatible values, last write wins, no multi-key transactions.
"""

from __future__ import annotations

import json
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

from core import get_logger
from core.exceptions import StorageError

logger = get_logger(__name__)


class KeyValueStore:
    """Async key-value store holding JSON documents."""

    async def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    async def set(self, key: str, value: Any) -> None:
        raise NotImplementedError

    async def delete(self, key: str) -> None:
        raise NotImplementedError

    async def close(self) -> None:
        """Release resources held by the store."""


class InMemoryStore(KeyValueStore):
    """Process-local store used by tests and single-process development.

    Values are kept as serialized JSON so callers never share mutable state
    with the store, matching what a remote store would hand back.
    """

    def __init__(self) -> None:
        self._data: Dict[str, str] = {}

    async def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    async def set(self, key: str, value: Any) -> None:
        self._data[key] = json.dumps(value, ensure_ascii=False)

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return sorted(self._data)


class SQLiteKeyValueStore(KeyValueStore):
    """Durable store backed by a single SQLite table.

    Each call opens its own aiosqlite connection, so the store can be shared
    by request handlers running on different event loops.
    """

    def __init__(self, database_path: str, busy_timeout_ms: int = 5000) -> None:
        self.database_path = Path(database_path)
        self.busy_timeout_ms = busy_timeout_ms
        self._initialized = False

    async def init_schema(self) -> None:
        if self._initialized:
            return

        if not self.database_path.parent.exists():
            self.database_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._connection() as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_store (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await conn.commit()

        self._initialized = True
        logger.info(f"Key-value store ready at {self.database_path}")

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        try:
            async with aiosqlite.connect(self.database_path.as_posix()) as conn:
                await conn.execute(f"PRAGMA busy_timeout={self.busy_timeout_ms}")
                await conn.execute("PRAGMA synchronous=NORMAL")
                yield conn
        except aiosqlite.Error as e:
            raise StorageError(f"SQLite store failure: {e}") from e

    async def get(self, key: str) -> Optional[Any]:
        await self.init_schema()
        async with self._connection() as conn:
            cursor = await conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,))
            row = await cursor.fetchone()
        return json.loads(row[0]) if row else None

    async def set(self, key: str, value: Any) -> None:
        await self.init_schema()
        payload = json.dumps(value, ensure_ascii=False)
        async with self._connection() as conn:
            await conn.execute(
                """
                INSERT INTO kv_store (key, value, updated_at)
                VALUES (?, ?, datetime('now'))
                ON CONFLICT(key) DO UPDATE SET
                    value=excluded.value,
                    updated_at=datetime('now')
                """,
                (key, payload)
            )
            await conn.commit()

    async def delete(self, key: str) -> None:
        await self.init_schema()
        async with self._connection() as conn:
            await conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
            await conn.commit()
