"""Shared Pydantic types and validators for reuse across models.

Tag normalisation and content constraints used by request models and
stored entries alike.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BeforeValidator, Field

# ---------------------------------------------------------------------------
# Tag normalisation
# ---------------------------------------------------------------------------


def normalize_tag(v: Any) -> str:
    """Trim and lowercase a single tag; ``None`` becomes ``""``."""
    if v is None:
        return ""
    return str(v).strip().lower()


def normalize_tags(v: Any) -> list[str]:
    """Accept ``str | list | None`` and return a clean, lowercase ``list[str]``.

    * ``"Work, Ideas"`` → ``["work", "ideas"]``
    * ``["a", None, " B ", "a"]`` → ``["a", "b"]``
    * ``None`` → ``[]``

    Order of first occurrence is preserved and duplicates are dropped.
    """
    if v is None:
        return []
    if isinstance(v, str):
        items: list[Any] = v.split(",")
    elif isinstance(v, (list, tuple, set, frozenset)):
        items = list(v)
    else:
        return []

    seen: dict[str, None] = {}
    for item in items:
        tag = normalize_tag(item)
        if tag:
            seen.setdefault(tag, None)
    return list(seen)


Tags = Annotated[list[str], BeforeValidator(normalize_tags)]
"""Flexible tag input: accepts str, list or None; always outputs a lowercase list[str]."""


# ---------------------------------------------------------------------------
# String constraints
# ---------------------------------------------------------------------------

LogId = Annotated[str, Field(min_length=1)]
"""Non-empty opaque log identifier."""

Content = Annotated[str, Field(min_length=1)]
"""Non-empty log content."""
