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
Log Service - business logic for log entries.

Sits between the HTTP handlers and the storage backend: tag normalisation,
migration-on-read, content versioning and tag registry upkeep all happen
here so every storage backend behaves the same.
"""

import asyncio
import logging
from typing import Any

from ..config import PRIVATE_TAG, settings
from ..models.log_entry import LogEntry
from ..models.validators import normalize_tag, normalize_tags
from ..storage.base import LogStorage
from ..storage.migrations import normalize_records
from ..utils.context import non_private, render_context
from ..utils.errors import NotFoundError, ValidationError
from ..utils.timestamps import now_iso
from .tag_registry import TagRegistry

logger = logging.getLogger(__name__)


def _apply_private_flag(tags: list[str], private: bool | None) -> list[str]:
    """Translate the ``private`` request shorthand into presence of the private tag."""
    if private is True and PRIVATE_TAG not in tags:
        return [*tags, PRIVATE_TAG]
    if private is False:
        return [t for t in tags if t != PRIVATE_TAG]
    return tags


class LogService:
    """
    Shared service for log operations with consistent business logic.

    One instance is shared per storage backend; its lock serializes the
    read-modify-write cycles (migration rewrite, update, tag registration)
    within the process.
    """

    def __init__(
        self,
        storage: LogStorage,
        tag_registry: TagRegistry | None = None,
        default_tag: str | None = None,
    ):
        self.storage = storage
        self.default_tag = default_tag or settings.storage.default_tag
        self.tag_registry = tag_registry or TagRegistry(storage, default_tag=self.default_tag)
        self._lock = asyncio.Lock()

    def _resolve_tags(self, tags: Any, private: bool | None) -> list[str]:
        # Same result as upgrading a legacy record carrying the private flag
        resolved = _apply_private_flag(normalize_tags(tags) or [self.default_tag], private)
        return resolved or [self.default_tag]

    async def create_log(
        self,
        content: str | None,
        tags: list[str] | None = None,
        private: bool | None = None,
    ) -> LogEntry:
        """
        Append a new entry and register its tags.

        Args:
            content: Log text; missing or blank is rejected
            tags: Optional tags (normalized; defaults to the default tag)
            private: Shorthand for adding the private tag; a "private" tag
                given in ``tags`` is kept either way

        Returns:
            The stored entry with id and timestamp assigned
        """
        if not content or not content.strip():
            raise ValidationError("Content is required")

        entry = LogEntry(content=content, tags=self._resolve_tags(tags, True if private else None))
        async with self._lock:
            await self.storage.append(entry)
        await self.tag_registry.add_known(entry.tags)

        logger.info(f"Stored log {entry.id} with tags {entry.tags}")
        return entry

    async def _load_entries(self) -> list[LogEntry]:
        """Read, upgrade and (if needed) rewrite the record set. Caller holds the lock."""
        raw = await self.storage.list_records()
        records, changed = normalize_records(raw, default_tag=self.default_tag)
        if changed:
            logger.info(f"Migrated legacy log records, rewriting {len(records)} entries")
            await self.storage.replace_all(records)

        entries = []
        for record in records:
            try:
                entries.append(LogEntry.from_dict(record))
            except ValueError as e:
                logger.warning(f"Skipping invalid log record {record.get('id')}: {e}")
        return entries

    async def list_logs(self) -> list[LogEntry]:
        """
        Load every entry in storage order, upgrading legacy records.

        When any record changed shape the normalized batch is written back
        before returning.
        """
        async with self._lock:
            return await self._load_entries()

    async def update_log(
        self,
        log_id: str,
        content: str | None = None,
        tags: list[str] | None = None,
        private: bool | None = None,
    ) -> LogEntry:
        """
        Partially update an entry.

        Changing ``content`` versions the previous value; ``tags`` replaces
        the tag list wholesale; ``private`` adds or removes the private tag
        after any tag replacement.

        Raises:
            ValidationError: If nothing to update or content is blank
            NotFoundError: If no entry has ``log_id``
        """
        if content is None and tags is None and private is None:
            raise ValidationError("Nothing to update: provide content, tags or private")
        if content is not None and not content.strip():
            raise ValidationError("Content cannot be empty")

        async with self._lock:
            entry = next((e for e in await self._load_entries() if e.id == log_id), None)
            if entry is None:
                raise NotFoundError(log_id)

            if content is not None:
                entry = entry.with_content(content, edited_at=now_iso())

            if tags is not None or private is not None:
                base = normalize_tags(tags) if tags is not None else entry.tags
                entry = entry.with_tags(self._resolve_tags(base, private))

            await self.storage.update(entry)

        await self.tag_registry.add_known(entry.tags)
        logger.info(f"Updated log {entry.id}")
        return entry

    async def list_tags(self) -> list[str]:
        return await self.tag_registry.list_tags()

    async def add_tag(self, tag: str | None) -> list[str]:
        """Register a single tag; blank after trim/lowercase or reserved is rejected."""
        normalized = normalize_tag(tag)
        if not normalized:
            raise ValidationError("Tag is required")
        if normalized == PRIVATE_TAG:
            raise ValidationError(f"'{PRIVATE_TAG}' is a reserved tag")
        return await self.tag_registry.add_known([normalized])

    async def build_chat_context(self) -> str:
        """Render all non-private entries, oldest first, for the chat model."""
        return render_context(non_private(await self.list_logs()))
