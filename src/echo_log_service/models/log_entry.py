"""Log entry data models.

The stored shape uses camelCase ``editedAt`` so records written by this
service stay readable by older clients of the same files; Python code uses
``edited_at`` through the alias.
"""

import logging
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..config import PRIVATE_TAG, settings
from ..utils.timestamps import generate_log_id, now_iso
from .validators import Content, LogId, Tags

logger = logging.getLogger(__name__)


class LogVersion(BaseModel):
    """Snapshot of a previous content value."""

    model_config = ConfigDict(populate_by_name=True)

    content: str
    edited_at: str = Field(alias="editedAt")

class LogEntry(BaseModel):
    """A single log record in its current shape."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: LogId = Field(default_factory=generate_log_id)
    content: Content
    tags: Tags = Field(default_factory=lambda: [settings.storage.default_tag])
    timestamp: str = Field(default_factory=now_iso)
    edited_at: str | None = Field(default=None, alias="editedAt")
    versions: list[LogVersion] | None = None

    @model_validator(mode="after")
    def ensure_tags(self) -> Self:
        """An entry always carries at least one tag."""
        if not self.tags:
            self.tags = [settings.storage.default_tag]
        return self

    @property
    def is_private(self) -> bool:
        return PRIVATE_TAG in self.tags

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted record shape, omitting unset optional fields."""
        return self.model_dump(by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LogEntry":
        """Create a LogEntry from a normalized storage record."""
        return cls.model_validate(data)

    def with_content(self, content: str, edited_at: str | None = None) -> "LogEntry":
        """
        Return a copy carrying new content.

        The previous content is pushed onto ``versions`` together with the
        time it became current (its ``editedAt``, or the creation timestamp
        for never-edited entries). Setting identical content is a no-op.
        """
        if content == self.content:
            return self

        stamp = edited_at or now_iso()
        previous = LogVersion(content=self.content, edited_at=self.edited_at or self.timestamp)
        versions = [*(self.versions or []), previous]
        return self.model_copy(update={"content": content, "edited_at": stamp, "versions": versions})

    def with_tags(self, tags: list[str]) -> "LogEntry":
        """Return a copy whose tag list is replaced wholesale."""
        return self.model_copy(update={"tags": list(tags) or [settings.storage.default_tag]})
