# Copyright 2024 Heinrich Krupp
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
SQLite storage backend.

One row per log entry. The relational columns ``id, content, is_private,
created_at`` match the edge deployment's table; ``tags``,
``edited_at`` and ``versions`` carry the rest of the entry (tags and
versions as JSON). ``seq`` preserves append order.

Tables created by the edge deployment (integer ``id`` primary key, no
``seq``) are rebuilt in place on first open. Their rows keep ``tags`` NULL
and are surfaced in their legacy shape so the migration layer upgrades them
on the next listing.
"""

import json
import logging
import os
from typing import Any

import aiosqlite

from ..config import PRIVATE_TAG
from ..models.log_entry import LogEntry
from ..utils.errors import NotFoundError, StorageError
from .base import LogStorage

logger = logging.getLogger(__name__)

_CREATE_LOGS = """
    CREATE TABLE IF NOT EXISTS logs (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL UNIQUE,
        content TEXT NOT NULL,
        is_private INTEGER NOT NULL DEFAULT 0,
        created_at TEXT NOT NULL,
        tags TEXT,
        edited_at TEXT,
        versions TEXT
    )
"""

_CREATE_TAGS = """
    CREATE TABLE IF NOT EXISTS known_tags (
        position INTEGER PRIMARY KEY AUTOINCREMENT,
        tag TEXT NOT NULL UNIQUE
    )
"""


def _row_params(record: dict[str, Any]) -> tuple[Any, ...]:
    tags = record.get("tags") or []
    versions = record.get("versions")
    return (
        str(record["id"]),
        record["content"],
        1 if PRIVATE_TAG in tags else 0,
        record["timestamp"],
        json.dumps(tags, ensure_ascii=False),
        record.get("editedAt"),
        json.dumps(versions, ensure_ascii=False) if versions is not None else None,
    )


def _row_to_record(row: aiosqlite.Row) -> dict[str, Any]:
    """Convert a row into a raw record; rows without tags keep their legacy shape."""
    if row["tags"] is None:
        return {
            "id": row["id"],
            "content": row["content"],
            "is_private": row["is_private"],
            "created_at": row["created_at"],
        }

    record: dict[str, Any] = {
        "id": row["id"],
        "content": row["content"],
        "tags": json.loads(row["tags"]),
        "timestamp": row["created_at"],
    }
    if row["edited_at"] is not None:
        record["editedAt"] = row["edited_at"]
    if row["versions"] is not None:
        record["versions"] = json.loads(row["versions"])
    return record


class SqliteLogStorage(LogStorage):
    """Async SQLite storage for log entries and the known-tag set."""

    backend_name = "sqlite"

    def __init__(self, db_path: str):
        """
        Initialize SQLite storage.

        Args:
            db_path: Path to SQLite database file
        """
        super().__init__()
        self.db_path = str(db_path)
        self._initialized = False

    async def initialize(self) -> None:
        """Initialize database schema if not exists, rebuilding legacy tables."""
        if self._initialized:
            return

        directory = os.path.dirname(self.db_path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)

            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute("PRAGMA table_info(logs)")
                columns = {row[1] for row in await cursor.fetchall()}

                if columns and "seq" not in columns:
                    await self._rebuild_legacy_table(db, columns)
                else:
                    await db.execute(_CREATE_LOGS)

                await db.execute(_CREATE_TAGS)
                await db.commit()
        except (OSError, aiosqlite.Error) as e:
            raise StorageError(f"Cannot open log database: {e}") from e

        self._initialized = True
        logger.info(f"SQLite storage initialized at {self.db_path}")

    async def _rebuild_legacy_table(self, db: aiosqlite.Connection, columns: set[str]) -> None:
        logger.info(f"Rebuilding legacy logs table in {self.db_path}")
        await db.execute("ALTER TABLE logs RENAME TO logs_legacy")
        await db.execute(_CREATE_LOGS)

        private_expr = "COALESCE(is_private, 0)" if "is_private" in columns else "0"
        order = "id" if "id" in columns else "rowid"
        await db.execute(
            f"""
            INSERT INTO logs (id, content, is_private, created_at)
            SELECT CAST({order} AS TEXT), COALESCE(content, ''), {private_expr}, COALESCE(created_at, '')
            FROM logs_legacy ORDER BY {order}
            """
        )
        await db.execute("DROP TABLE logs_legacy")

    # ------------------------------------------------------------------
    # Log records
    # ------------------------------------------------------------------

    async def append(self, entry: LogEntry) -> LogEntry:
        if not self._initialized:
            await self.initialize()

        async with self._write_lock:
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute(
                        """
                        INSERT INTO logs (id, content, is_private, created_at, tags, edited_at, versions)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        _row_params(entry.to_dict()),
                    )
                    await db.commit()
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to save log: {e}") from e
        return entry

    async def list_records(self) -> list[dict[str, Any]]:
        if not self._initialized:
            await self.initialize()

        try:
            async with aiosqlite.connect(self.db_path) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    "SELECT id, content, is_private, created_at, tags, edited_at, versions FROM logs ORDER BY seq"
                )
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to read logs: {e}") from e

        records = []
        for row in rows:
            try:
                records.append(_row_to_record(row))
            except json.JSONDecodeError:
                logger.warning(f"Skipping log {row['id']} with undecodable JSON columns")
        return records

    async def update(self, entry: LogEntry) -> LogEntry:
        if not self._initialized:
            await self.initialize()

        log_id, content, is_private, _, tags, edited_at, versions = _row_params(entry.to_dict())
        async with self._write_lock:
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    cursor = await db.execute(
                        """
                        UPDATE logs
                        SET content = ?, is_private = ?, tags = ?, edited_at = ?, versions = ?
                        WHERE id = ?
                        """,
                        (content, is_private, tags, edited_at, versions, log_id),
                    )
                    await db.commit()
                    updated = cursor.rowcount
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to update log: {e}") from e

        if updated == 0:
            raise NotFoundError(entry.id)
        return entry

    async def replace_all(self, records: list[dict[str, Any]]) -> None:
        if not self._initialized:
            await self.initialize()

        async with self._write_lock:
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute("DELETE FROM logs")
                    await db.executemany(
                        """
                        INSERT INTO logs (id, content, is_private, created_at, tags, edited_at, versions)
                        VALUES (?, ?, ?, ?, ?, ?, ?)
                        """,
                        [_row_params(r) for r in records],
                    )
                    await db.commit()
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to rewrite logs: {e}") from e
        logger.info(f"Rewrote {len(records)} rows in {self.db_path}")

    # ------------------------------------------------------------------
    # Known tags
    # ------------------------------------------------------------------

    async def load_tags(self) -> list[str] | None:
        if not self._initialized:
            await self.initialize()

        try:
            async with aiosqlite.connect(self.db_path) as db:
                cursor = await db.execute("SELECT tag FROM known_tags ORDER BY position")
                rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError(f"Failed to read tags: {e}") from e

        if not rows:
            return None
        return [row[0] for row in rows]

    async def save_tags(self, tags: list[str]) -> None:
        if not self._initialized:
            await self.initialize()

        async with self._write_lock:
            try:
                async with aiosqlite.connect(self.db_path) as db:
                    await db.execute("DELETE FROM known_tags")
                    await db.executemany("INSERT INTO known_tags (tag) VALUES (?)", [(t,) for t in tags])
                    await db.commit()
            except aiosqlite.Error as e:
                raise StorageError(f"Failed to save tags: {e}") from e
