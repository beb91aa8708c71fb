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
Storage backend factory for the Echo Log Service.

Creates and initializes the configured backend (flat JSONL files or SQLite).
"""

import logging

from ..config import StorageSettings
from .base import LogStorage
from .jsonl_storage import JsonlLogStorage
from .sqlite_storage import SqliteLogStorage

logger = logging.getLogger(__name__)


async def create_storage_instance(storage_settings: StorageSettings | None = None) -> LogStorage:
    """
    Create and initialize the storage backend instance.

    Args:
        storage_settings: Storage configuration; defaults to the global settings

    Returns:
        Initialized LogStorage instance
    """
    if storage_settings is None:
        from ..config import settings

        storage_settings = settings.storage

    logger.info(f"Creating {storage_settings.backend} storage backend instance...")

    if storage_settings.backend == "sqlite":
        storage: LogStorage = SqliteLogStorage(str(storage_settings.sqlite_path))
        logger.info(f"Using SQLite storage: {storage_settings.sqlite_path}")
    else:
        storage = JsonlLogStorage(storage_settings.logs_path, storage_settings.tags_path)
        logger.info(f"Using JSONL storage: {storage_settings.logs_path}")

    await storage.initialize()
    logger.info(f"{type(storage).__name__} initialized successfully")

    return storage
