"""Tests for the JSONL to SQLite import script."""

import importlib.util
import json
from pathlib import Path

import pytest

from echo_log_service.storage.sqlite_storage import SqliteLogStorage

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "migrate_jsonl_to_sqlite.py"


@pytest.fixture(scope="module")
def migrate_module():
    spec = importlib.util.spec_from_file_location("migrate_jsonl_to_sqlite", SCRIPT)
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def jsonl_files(tmp_path):
    logs = tmp_path / "logs.jsonl"
    logs.write_text(
        json.dumps({"id": "a", "content": "first", "timestamp": "2024-01-01T00:00:00.000Z", "private": True})
        + "\n"
        + "garbage line\n"
        + json.dumps({"id": "b", "content": "second", "tags": ["work"], "timestamp": "2024-01-02T00:00:00.000Z"})
        + "\n",
        encoding="utf-8",
    )
    (tmp_path / "tags.json").write_text(json.dumps({"tags": ["needs review", "work"]}), encoding="utf-8")
    return logs


@pytest.mark.asyncio
async def test_migrate_imports_upgraded_records(migrate_module, jsonl_files, tmp_path):
    db_path = tmp_path / "logs.db"

    stats = await migrate_module.migrate(jsonl_files, db_path)

    assert stats == {"records": 2, "upgraded": True, "invalid": 0, "duplicates": 0, "tags": 2}
    storage = SqliteLogStorage(str(db_path))
    records = await storage.list_records()
    assert [r["id"] for r in records] == ["a", "b"]
    assert records[0]["tags"] == ["needs review", "private"]
    assert await storage.load_tags() == ["needs review", "work"]


@pytest.mark.asyncio
async def test_dry_run_writes_nothing(migrate_module, jsonl_files, tmp_path):
    db_path = tmp_path / "logs.db"

    stats = await migrate_module.migrate(jsonl_files, db_path, dry_run=True)

    assert stats["records"] == 2
    assert not db_path.exists()


@pytest.mark.asyncio
async def test_invalid_and_duplicate_records_skipped(migrate_module, tmp_path):
    logs = tmp_path / "logs.jsonl"
    logs.write_text(
        json.dumps({"id": "a", "content": "kept", "tags": ["work"], "timestamp": "2024-01-01T00:00:00.000Z"})
        + "\n"
        + json.dumps({"id": "b", "tags": ["work"], "timestamp": "2024-01-02T00:00:00.000Z"})
        + "\n"
        + json.dumps({"id": "a", "content": "repeat", "tags": ["work"], "timestamp": "2024-01-03T00:00:00.000Z"})
        + "\n"
        + json.dumps({"id": "c", "content": "also kept", "tags": ["work"], "timestamp": "2024-01-04T00:00:00.000Z"})
        + "\n",
        encoding="utf-8",
    )
    db_path = tmp_path / "logs.db"

    stats = await migrate_module.migrate(logs, db_path)

    assert stats["records"] == 2
    assert stats["invalid"] == 1
    assert stats["duplicates"] == 1
    records = await SqliteLogStorage(str(db_path)).list_records()
    assert [(r["id"], r["content"]) for r in records] == [("a", "kept"), ("c", "also kept")]
