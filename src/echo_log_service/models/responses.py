"""Service-layer response models.

Typed Pydantic models for everything the HTTP interface returns other
than log entries themselves (which are serialised from ``LogEntry``).
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TagListResponse(BaseModel):
    """Known tags, in registration order."""

    tags: list[str] = Field(default_factory=list)


class ChatReply(BaseModel):
    """Non-streaming chat reply."""

    response: str
    model: str


class ModelListResponse(BaseModel):
    """Models available upstream plus the configured default."""

    models: list[str] = Field(default_factory=list)
    default: str


class StatusResponse(BaseModel):
    """Upstream liveness probe result."""

    status: str
    models: list[str] | None = None


class HealthResponse(BaseModel):
    """Local process health."""

    status: str = "ok"
    version: str
    backend: str


class ErrorResponse(BaseModel):
    """JSON body for every error response."""

    error: str
