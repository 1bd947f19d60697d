"""SQLite state store adapter.

Implements the core StateStorePort as a single key/value table. SQLite calls
are blocking, so they run in a worker thread to keep the event loop free.
"""

from __future__ import annotations

import asyncio
import sqlite3
from datetime import datetime, timezone
from typing import Optional


class SQLiteStateStore:
    """Thin SQLite wrapper that satisfies the StateStorePort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the kv_state table if it does not exist.

        Fields:
        - key: dedup key, e.g. DF:CodeUpdate:GitHub:owner/repo:main
        - value: JSON marker record
        - updated_at: last write, for debugging stale entries
        """

        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_state (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at TIMESTAMP NOT NULL
                )
                """
            )

    def _get(self, key: str) -> Optional[str]:
        with self._connect() as conn:
            row = conn.execute("SELECT value FROM kv_state WHERE key = ?", (key,)).fetchone()
        return row["value"] if row else None

    def _set(self, key: str, value: str) -> None:
        now = datetime.now(timezone.utc)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO kv_state (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, now.isoformat()),
            )

    async def get(self, key: str) -> Optional[str]:
        """Return the stored value for a key, if any."""

        return await asyncio.to_thread(self._get, key)

    async def set(self, key: str, value: str) -> None:
        """Upsert the value for a key."""

        await asyncio.to_thread(self._set, key, value)

    def count_keys(self, prefix: str = "") -> int:
        """Return how many keys start with ``prefix``."""

        with self._connect() as conn:
            row = conn.execute(
                "SELECT COUNT(*) AS total FROM kv_state WHERE key LIKE ? ESCAPE '\\'",
                (_escape_like(prefix) + "%",),
            ).fetchone()
        return int(row["total"])


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
