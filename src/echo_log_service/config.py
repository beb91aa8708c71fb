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
Configuration for the Echo Log Service.

Every group is a pydantic-settings model with its own environment prefix,
so ``ECHO_STORAGE_BACKEND=sqlite`` or ``ECHO_CHAT_DEFAULT_MODEL=mistral``
override the defaults without touching code.
"""

import logging
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)

DEFAULT_TAG = "needs review"
PRIVATE_TAG = "private"

_DEFAULT_DATA_DIR = Path.home() / ".local" / "share" / "echo-log-service"

DEFAULT_SYSTEM_PROMPT = (
    "You are Echo, a thoughtful companion who has read the user's personal logs. "
    "Use the logs below as background when answering. Refer to specific entries "
    "when they are relevant, and say so plainly when the logs do not cover a question."
)


class StorageSettings(BaseSettings):
    """Where and how log entries and known tags are persisted."""

    model_config = SettingsConfigDict(env_prefix="ECHO_STORAGE_", extra="ignore")

    backend: Literal["jsonl", "sqlite"] = "jsonl"
    data_dir: Path = _DEFAULT_DATA_DIR
    logs_file: str = "logs.jsonl"
    tags_file: str = "tags.json"
    sqlite_file: str = "logs.db"
    default_tag: str = Field(default=DEFAULT_TAG, min_length=1)

    @property
    def logs_path(self) -> Path:
        return self.data_dir / self.logs_file

    @property
    def tags_path(self) -> Path:
        return self.data_dir / self.tags_file

    @property
    def sqlite_path(self) -> Path:
        return self.data_dir / self.sqlite_file


class ChatSettings(BaseSettings):
    """Upstream Ollama chat endpoint."""

    model_config = SettingsConfigDict(env_prefix="ECHO_CHAT_", extra="ignore")

    base_url: str = "http://localhost:11434"
    default_model: str = "llama3.2"
    timeout_seconds: float = Field(default=60.0, gt=0)
    probe_timeout_seconds: float = Field(default=5.0, gt=0)
    system_prompt: str = DEFAULT_SYSTEM_PROMPT


class HTTPSettings(BaseSettings):
    """HTTP server binding and static frontend."""

    model_config = SettingsConfigDict(env_prefix="ECHO_HTTP_", extra="ignore")

    host: str = "127.0.0.1"
    port: int = Field(default=3000, ge=1, le=65535)
    static_dir: Path | None = None
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings object aggregating every group."""

    model_config = SettingsConfigDict(extra="ignore")

    storage: StorageSettings = Field(default_factory=StorageSettings)
    chat: ChatSettings = Field(default_factory=ChatSettings)
    http: HTTPSettings = Field(default_factory=HTTPSettings)


settings = Settings()
