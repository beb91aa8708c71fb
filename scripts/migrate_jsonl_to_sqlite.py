#!/usr/bin/env python3
"""Import a JSONL log file (and its tag file) into the SQLite backend.

Records are upgraded to the current shape on the way in, so files written
by any earlier version can be imported. Malformed lines are skipped;
records that still fail validation (e.g. no content) or repeat an earlier
id are skipped and counted. Existing rows in the target database are replaced.

Usage:
    python scripts/migrate_jsonl_to_sqlite.py ./logs.jsonl ./logs.db [--tags ./tags.json] [--dry-run]
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from echo_log_service.config import settings  # noqa: E402
from echo_log_service.models.log_entry import LogEntry  # noqa: E402
from echo_log_service.storage.jsonl_storage import JsonlLogStorage  # noqa: E402
from echo_log_service.storage.migrations import normalize_records  # noqa: E402
from echo_log_service.storage.sqlite_storage import SqliteLogStorage  # noqa: E402
from echo_log_service.utils.errors import StorageError  # noqa: E402

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


async def migrate(
    logs_path: Path,
    db_path: Path,
    tags_path: Path | None = None,
    dry_run: bool = False,
    default_tag: str | None = None,
) -> dict:
    """Copy every record (and the tag set, if present) from JSONL files into SQLite.

    Returns:
        Stats dict with counts of imported, skipped and duplicate records and tags.
    """
    default_tag = default_tag or settings.storage.default_tag
    source = JsonlLogStorage(logs_path, tags_path or logs_path.with_name("tags.json"))
    raw = await source.list_records()
    normalized, changed = normalize_records(raw, default_tag=default_tag)
    tags = await source.load_tags()

    records = []
    seen_ids = set()
    invalid = duplicates = 0
    for index, record in enumerate(normalized, start=1):
        try:
            entry = LogEntry.from_dict(record)
        except ValueError as e:
            logger.warning(f"Skipping record {index} ({record.get('id')}): {e}")
            invalid += 1
            continue
        if entry.id in seen_ids:
            logger.warning(f"Skipping record {index}: duplicate id {entry.id}")
            duplicates += 1
            continue
        seen_ids.add(entry.id)
        records.append(entry.to_dict())

    stats = {
        "records": len(records),
        "upgraded": changed,
        "invalid": invalid,
        "duplicates": duplicates,
        "tags": len(tags) if tags else 0,
    }
    logger.info(
        f"Read {len(normalized)} records from {logs_path} "
        f"(legacy shapes upgraded: {changed}, invalid: {invalid}, duplicates: {duplicates})"
    )

    if dry_run:
        logger.info("Dry run - nothing written")
        return stats

    target = SqliteLogStorage(str(db_path))
    await target.initialize()
    await target.replace_all(records)
    if tags:
        await target.save_tags(tags)
    await target.close()

    logger.info(f"Wrote {len(records)} records and {stats['tags']} tags to {db_path}")
    return stats


def main() -> None:
    parser = argparse.ArgumentParser(description="Import a JSONL log file into the SQLite backend")
    parser.add_argument("logs", type=Path, help="Path to logs.jsonl")
    parser.add_argument("database", type=Path, help="Path to the target SQLite database")
    parser.add_argument(
        "--tags",
        type=Path,
        default=None,
        help="Path to the tag file (default: tags.json next to the log file)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Read and upgrade records without writing the database",
    )
    args = parser.parse_args()

    if not args.logs.exists():
        logger.error(f"File not found: {args.logs}")
        sys.exit(1)

    try:
        asyncio.run(migrate(args.logs, args.database, tags_path=args.tags, dry_run=args.dry_run))
    except StorageError as e:
        logger.error(f"Migration failed: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
