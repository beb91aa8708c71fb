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
FastAPI dependencies for the HTTP interface.
"""

import logging

from fastapi import HTTPException

from ..config import settings
from ..services.chat_service import ChatService
from ..services.log_service import LogService
from ..storage.base import LogStorage

logger = logging.getLogger(__name__)

# Global log service instance (shared so its lock spans requests)
_log_service: LogService | None = None
# Global chat service instance
_chat_service: ChatService | None = None


def set_storage(storage: LogStorage) -> None:
    """Build the shared log service around the initialized storage backend."""
    global _log_service
    _log_service = LogService(storage, default_tag=settings.storage.default_tag)
    logger.info(f"LogService ready on {storage.backend_name} storage")


def set_chat_service(chat_service: ChatService | None) -> None:
    """Set the global chat service instance."""
    global _chat_service
    _chat_service = chat_service


def get_log_service() -> LogService:
    """Get the shared LogService instance."""
    if _log_service is None:
        raise HTTPException(status_code=503, detail="Storage not initialized")
    return _log_service


def get_chat_service() -> ChatService:
    """Get the chat service, creating one from settings on first use."""
    global _chat_service
    if _chat_service is None:
        _chat_service = ChatService(settings.chat)
    return _chat_service


async def create_storage_backend() -> LogStorage:
    """
    Create and initialize storage backend for web interface based on configuration.

    Returns:
        Initialized storage backend
    """
    from ..storage.factory import create_storage_instance

    logger.info("Creating storage backend for web interface...")

    return await create_storage_instance(settings.storage)
