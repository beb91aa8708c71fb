"""Tests for the SQLite backend, including legacy table rebuilds."""

import aiosqlite
import pytest

from echo_log_service.models.log_entry import LogEntry
from echo_log_service.services.log_service import LogService
from echo_log_service.storage.sqlite_storage import SqliteLogStorage
from echo_log_service.utils.errors import NotFoundError


@pytest.mark.asyncio
async def test_append_and_list_in_order(sqlite_storage):
    await sqlite_storage.append(LogEntry(id="a", content="one", tags=["work", "private"], timestamp="t1"))
    await sqlite_storage.append(LogEntry(id="b", content="two", timestamp="t2"))

    records = await sqlite_storage.list_records()

    assert records == [
        {"id": "a", "content": "one", "tags": ["work", "private"], "timestamp": "t1"},
        {"id": "b", "content": "two", "tags": ["needs review"], "timestamp": "t2"},
    ]


@pytest.mark.asyncio
async def test_private_column_tracks_tag(sqlite_storage):
    await sqlite_storage.append(LogEntry(id="a", content="one", tags=["private"]))

    async with aiosqlite.connect(sqlite_storage.db_path) as db:
        cursor = await db.execute("SELECT is_private FROM logs WHERE id = 'a'")
        row = await cursor.fetchone()

    assert row[0] == 1


@pytest.mark.asyncio
async def test_update_persists_versions(sqlite_storage):
    entry = LogEntry(id="a", content="one", timestamp="t1")
    await sqlite_storage.append(entry)

    await sqlite_storage.update(entry.with_content("two", edited_at="t2"))

    (record,) = await sqlite_storage.list_records()
    assert record["content"] == "two"
    assert record["editedAt"] == "t2"
    assert record["versions"] == [{"content": "one", "editedAt": "t1"}]


@pytest.mark.asyncio
async def test_update_unknown_id_raises(sqlite_storage):
    with pytest.raises(NotFoundError):
        await sqlite_storage.update(LogEntry(id="missing", content="x"))


@pytest.mark.asyncio
async def test_known_tags_preserve_order(sqlite_storage):
    assert await sqlite_storage.load_tags() is None

    await sqlite_storage.save_tags(["needs review", "work", "home"])

    assert await sqlite_storage.load_tags() == ["needs review", "work", "home"]


@pytest.mark.asyncio
async def test_legacy_table_is_rebuilt_and_upgraded(tmp_path):
    db_path = str(tmp_path / "legacy.db")
    async with aiosqlite.connect(db_path) as db:
        await db.execute(
            """
            CREATE TABLE logs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                content TEXT NOT NULL,
                is_private INTEGER DEFAULT 0,
                created_at TEXT
            )
            """
        )
        await db.execute(
            "INSERT INTO logs (content, is_private, created_at) VALUES ('public note', 0, '2024-01-01 09:00:00')"
        )
        await db.execute(
            "INSERT INTO logs (content, is_private, created_at) VALUES ('secret note', 1, '2024-01-02 09:00:00')"
        )
        await db.commit()

    storage = SqliteLogStorage(db_path)
    await storage.initialize()

    raw = await storage.list_records()
    assert raw[0] == {"id": "1", "content": "public note", "is_private": 0, "created_at": "2024-01-01 09:00:00"}

    entries = await LogService(storage).list_logs()

    assert [e.id for e in entries] == ["1", "2"]
    assert entries[0].tags == ["needs review"]
    assert entries[1].tags == ["needs review", "private"]
    assert entries[1].timestamp == "2024-01-02 09:00:00"

    # Upgraded rows were written back in the current shape
    assert await storage.list_records() == [e.to_dict() for e in entries]
