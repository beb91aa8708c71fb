"""Request bodies accepted by the HTTP interface.

Required-ness of ``content``, ``message`` and ``tag`` is checked in the
service layer so that missing and blank values produce the same 400 error.
"""

from pydantic import BaseModel, Field

from .validators import Tags


class LogCreateRequest(BaseModel):
    """Request model for appending a new log entry."""

    content: str | None = Field(None, description="The log text")
    tags: Tags = Field(default_factory=list, description="Tags to attach (lowercased)")
    private: bool | None = Field(None, description="Shorthand for adding the 'private' tag")


class LogUpdateRequest(BaseModel):
    """Request model for a partial update; omitted fields are left unchanged."""

    content: str | None = Field(None, description="Replacement content (previous value is versioned)")
    tags: Tags | None = Field(None, description="Replacement tag list (not merged)")
    private: bool | None = Field(None, description="Add (true) or remove (false) the 'private' tag")


class TagAddRequest(BaseModel):
    """Request model for registering a known tag."""

    tag: str | None = Field(None, description="Tag to add to the autocomplete registry")


class ChatRequest(BaseModel):
    """Request model for a chat turn against the local model."""

    message: str | None = Field(None, description="The user's message")
    stream: bool = Field(False, description="Relay the reply as server-sent events")
    model: str | None = Field(None, description="Upstream model name; defaults to the configured model")
