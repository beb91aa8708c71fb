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
Flat-file storage backend.

Log entries live in an append-only newline-delimited JSON file, one record
per line; the known-tag set is a single JSON object ``{"tags": [...]}`` in a
sibling file. Every read loads and parses the whole file. Blocking file I/O
runs in a worker thread.
"""

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

from ..models.log_entry import LogEntry
from ..utils.errors import NotFoundError, StorageError
from .base import LogStorage

logger = logging.getLogger(__name__)


def _atomic_write_text(path: Path, text: str) -> None:
    """Write via a temp file in the same directory, then rename over the target."""
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(text)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _dump_line(record: dict[str, Any]) -> str:
    return json.dumps(record, ensure_ascii=False) + "\n"


class JsonlLogStorage(LogStorage):
    """Append-only JSONL log file plus a JSON tag file."""

    backend_name = "jsonl"

    def __init__(self, logs_path: str | Path, tags_path: str | Path):
        """
        Initialize flat-file storage.

        Args:
            logs_path: Path to the newline-delimited JSON log file
            tags_path: Path to the JSON file holding the known-tag set
        """
        super().__init__()
        self.logs_path = Path(logs_path)
        self.tags_path = Path(tags_path)

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self.logs_path.parent.mkdir, parents=True, exist_ok=True)
            await asyncio.to_thread(self.tags_path.parent.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create data directory: {e}") from e
        logger.info(f"JSONL storage initialized at {self.logs_path}")

    # ------------------------------------------------------------------
    # Log records
    # ------------------------------------------------------------------

    def _read_records(self) -> list[dict[str, Any]]:
        if not self.logs_path.exists():
            return []

        records = []
        with self.logs_path.open("r", encoding="utf-8") as fh:
            for lineno, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    record = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning(f"Skipping malformed line {lineno} in {self.logs_path}")
                    continue
                if not isinstance(record, dict):
                    logger.warning(f"Skipping non-object line {lineno} in {self.logs_path}")
                    continue
                records.append(record)
        return records

    def _append_record(self, record: dict[str, Any]) -> None:
        with self.logs_path.open("a", encoding="utf-8") as fh:
            fh.write(_dump_line(record))

    def _write_records(self, records: list[dict[str, Any]]) -> None:
        _atomic_write_text(self.logs_path, "".join(_dump_line(r) for r in records))

    async def append(self, entry: LogEntry) -> LogEntry:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._append_record, entry.to_dict())
            except OSError as e:
                raise StorageError(f"Failed to save log: {e}") from e
        return entry

    async def list_records(self) -> list[dict[str, Any]]:
        try:
            return await asyncio.to_thread(self._read_records)
        except OSError as e:
            raise StorageError(f"Failed to read logs: {e}") from e

    async def update(self, entry: LogEntry) -> LogEntry:
        async with self._write_lock:
            records = await self.list_records()
            for index, record in enumerate(records):
                if record.get("id") == entry.id:
                    records[index] = entry.to_dict()
                    break
            else:
                raise NotFoundError(entry.id)

            try:
                await asyncio.to_thread(self._write_records, records)
            except OSError as e:
                raise StorageError(f"Failed to update log: {e}") from e
        return entry

    async def replace_all(self, records: list[dict[str, Any]]) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self._write_records, records)
            except OSError as e:
                raise StorageError(f"Failed to rewrite logs: {e}") from e
        logger.info(f"Rewrote {len(records)} records in {self.logs_path}")

    # ------------------------------------------------------------------
    # Known tags
    # ------------------------------------------------------------------

    def _read_tags(self) -> list[str] | None:
        if not self.tags_path.exists():
            return None
        try:
            data = json.loads(self.tags_path.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning(f"Tag file {self.tags_path} is not valid JSON, ignoring it")
            return None
        tags = data.get("tags") if isinstance(data, dict) else None
        if not isinstance(tags, list):
            return None
        return [str(t) for t in tags]

    async def load_tags(self) -> list[str] | None:
        try:
            return await asyncio.to_thread(self._read_tags)
        except OSError as e:
            raise StorageError(f"Failed to read tags: {e}") from e

    async def save_tags(self, tags: list[str]) -> None:
        payload = json.dumps({"tags": tags}, ensure_ascii=False, indent=2)
        async with self._write_lock:
            try:
                await asyncio.to_thread(_atomic_write_text, self.tags_path, payload)
            except OSError as e:
                raise StorageError(f"Failed to save tags: {e}") from e
