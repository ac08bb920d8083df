"""SQLite-backed key-value store for conversation history."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import sqlite3
from pathlib import Path
from typing import Any

from page_chat.exceptions import StorageError
from page_chat.storage.base import BaseKeyValueStore

logger = logging.getLogger(__name__)

DEFAULT_DB_PATH = Path(
    os.environ.get("PAGECHAT_DB_PATH", str(Path.home() / ".page_chat" / "history.db"))
)

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL
)
"""


class SqliteKeyValueStore(BaseKeyValueStore):
    """Persist JSON values in a single-table SQLite file.

    Each call opens a short-lived connection in a worker thread so the event
    loop is never blocked on disk I/O.

    Args:
        path: Database file. Parent directories are created on first use.
    """

    def __init__(self, path: str | Path | None = None):
        self.path = Path(path) if path else DEFAULT_DB_PATH
        self._initialized = False

    async def get(self, key: str) -> Any | None:
        rows = await asyncio.to_thread(
            self._query, "SELECT value FROM kv WHERE key = ?", (key,)
        )
        if not rows:
            return None
        return self._decode(key, rows[0]["value"])

    async def get_all(self) -> dict[str, Any]:
        rows = await asyncio.to_thread(self._query, "SELECT key, value FROM kv ORDER BY key", ())
        return {row["key"]: self._decode(row["key"], row["value"]) for row in rows}

    async def set(self, key: str, value: Any) -> None:
        try:
            encoded = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise StorageError(f"Value for {key!r} is not JSON-serializable: {e}") from e
        await asyncio.to_thread(
            self._execute,
            "INSERT INTO kv (key, value) VALUES (?, ?) "
            "ON CONFLICT(key) DO UPDATE SET value = excluded.value",
            (key, encoded),
        )

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._execute, "DELETE FROM kv WHERE key = ?", (key,))

    async def clear(self) -> None:
        await asyncio.to_thread(self._execute, "DELETE FROM kv", ())

    def _connect(self) -> sqlite3.Connection:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.path))
            conn.row_factory = sqlite3.Row
            if not self._initialized:
                conn.execute(_SCHEMA)
                conn.commit()
                self._initialized = True
        except (sqlite3.Error, OSError) as e:
            raise StorageError(f"Cannot open history database {self.path}: {e}") from e
        return conn

    def _query(self, sql: str, params: tuple) -> list[sqlite3.Row]:
        conn = self._connect()
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            raise StorageError(f"Failed reading history database: {e}") from e
        finally:
            conn.close()

    def _execute(self, sql: str, params: tuple) -> None:
        conn = self._connect()
        try:
            conn.execute(sql, params)
            conn.commit()
        except sqlite3.Error as e:
            raise StorageError(f"Failed writing history database: {e}") from e
        finally:
            conn.close()

    @staticmethod
    def _decode(key: str, raw: str) -> Any | None:
        try:
            return json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Skipping corrupt value for key %s", key)
            return None
