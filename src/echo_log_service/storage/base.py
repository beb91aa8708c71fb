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
Abstract storage interface for log entries and the known-tag set.

Backends deal in raw record dicts on the read side so that the migration
layer sees legacy shapes exactly as they were persisted.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Any

from ..models.log_entry import LogEntry


class LogStorage(ABC):
    """Abstract base class for log storage backends."""

    backend_name: str = "abstract"

    def __init__(self) -> None:
        # Serializes read-modify-write cycles within one process
        self._write_lock = asyncio.Lock()

    @abstractmethod
    async def initialize(self) -> None:
        """Create files, directories or tables as needed."""

    @abstractmethod
    async def append(self, entry: LogEntry) -> LogEntry:
        """
        Persist a new entry as the last record.

        Args:
            entry: Entry to store; its id and timestamp are already assigned

        Returns:
            The stored entry
        """

    @abstractmethod
    async def list_records(self) -> list[dict[str, Any]]:
        """
        Return every raw record in storage (append) order.

        Malformed individual records are skipped and logged; a missing
        store yields an empty list.
        """

    @abstractmethod
    async def update(self, entry: LogEntry) -> LogEntry:
        """
        Replace the stored record with the same id.

        Raises:
            NotFoundError: If no record has that id
        """

    @abstractmethod
    async def replace_all(self, records: list[dict[str, Any]]) -> None:
        """Rewrite the whole record set, preserving the given order."""

    @abstractmethod
    async def load_tags(self) -> list[str] | None:
        """Return the persisted tag set, or None if none was ever saved."""

    @abstractmethod
    async def save_tags(self, tags: list[str]) -> None:
        """Persist the full tag set."""

    async def close(self) -> None:
        """Release any held resources."""
        return None
