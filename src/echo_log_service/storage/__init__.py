"""Storage backends for log entries and known tags."""

from .base import LogStorage

__all__ = ["LogStorage"]
