"""Data models for log entries, requests and responses."""

from .log_entry import LogEntry, LogVersion
from .validators import Tags, normalize_tag, normalize_tags

__all__ = ["LogEntry", "LogVersion", "Tags", "normalize_tag", "normalize_tags"]
