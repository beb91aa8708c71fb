"""Render non-private log entries into the chat model's background context."""

from collections.abc import Iterable

from ..config import PRIVATE_TAG
from ..models.log_entry import LogEntry
from .timestamps import format_for_context, parse_timestamp

NO_LOGS_SENTINEL = "No logs available."
ENTRY_SEPARATOR = "\n\n---\n\n"


def non_private(entries: Iterable[LogEntry]) -> list[LogEntry]:
    """Drop entries tagged private and sort the rest by ascending creation time."""
    visible = [entry for entry in entries if PRIVATE_TAG not in entry.tags]
    return sorted(visible, key=lambda entry: parse_timestamp(entry.timestamp))


def render_entry(entry: LogEntry) -> str:
    return f"[{format_for_context(entry.timestamp)}] {entry.content}"


def render_context(entries: Iterable[LogEntry]) -> str:
    """
    Join entries into one text block, in the order given.

    Callers pass the output of ``non_private``; an empty sequence renders
    the fixed sentinel.
    """
    rendered = [render_entry(entry) for entry in entries]
    if not rendered:
        return NO_LOGS_SENTINEL
    return ENTRY_SEPARATOR.join(rendered)
