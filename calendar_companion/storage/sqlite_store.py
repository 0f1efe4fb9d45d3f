"""SQLite-backed blob store."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import List

import aiosqlite

from ..errors import NotFoundError
from .base import BlobInfo, BlobStore

logger = logging.getLogger(__name__)


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SQLiteBlobStore(BlobStore):
    """Stores blobs in a single SQLite table."""

    def __init__(self, db_path: str = "data/chats.db"):
        """
        Initialize blob store.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize database schema."""
        if self._initialized:
            return

        Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                CREATE TABLE IF NOT EXISTS blobs (
                    key TEXT PRIMARY KEY,
                    data BLOB NOT NULL,
                    content_type TEXT NOT NULL,
                    created_at TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
                """
            )
            await db.execute(
                """
                CREATE INDEX IF NOT EXISTS idx_blobs_updated_at
                ON blobs(updated_at)
                """
            )
            await db.commit()

        logger.debug(f"Blob store ready at {self.db_path}")
        self._initialized = True

    async def ensure_namespace(self) -> None:
        await self.initialize()

    async def put(self, key: str, data: bytes, content_type: str = "application/json") -> None:
        """Upsert a blob; creation time is kept on overwrite."""
        await self.initialize()

        now = datetime.now(timezone.utc).isoformat()

        async with aiosqlite.connect(self.db_path) as db:
            await db.execute(
                """
                INSERT INTO blobs (key, data, content_type, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    content_type = excluded.content_type,
                    updated_at = excluded.updated_at
                """,
                (key, data, content_type, now, now),
            )
            await db.commit()

    async def get(self, key: str) -> bytes:
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            async with db.execute(
                "SELECT data FROM blobs WHERE key = ?",
                (key,),
            ) as cursor:
                row = await cursor.fetchone()

        if row is None:
            raise NotFoundError(f"Object not found: {key}")
        return bytes(row[0])

    async def list(self, prefix: str, limit: int) -> List[BlobInfo]:
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            db.row_factory = aiosqlite.Row
            async with db.execute(
                """
                SELECT key, created_at, updated_at
                FROM blobs
                WHERE key LIKE ? ESCAPE '\\'
                ORDER BY updated_at DESC
                LIMIT ?
                """,
                (_escape_like(prefix) + "%", limit),
            ) as cursor:
                rows = await cursor.fetchall()

        return [
            BlobInfo(
                key=row["key"],
                created_at=datetime.fromisoformat(row["created_at"]),
                updated_at=datetime.fromisoformat(row["updated_at"]),
            )
            for row in rows
        ]

    async def delete(self, key: str) -> bool:
        await self.initialize()

        async with aiosqlite.connect(self.db_path) as db:
            cursor = await db.execute("DELETE FROM blobs WHERE key = ?", (key,))
            await db.commit()
            return cursor.rowcount > 0
