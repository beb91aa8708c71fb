"""Registry of known tags used for autocomplete."""

import asyncio
import logging
from collections.abc import Iterable

from ..config import PRIVATE_TAG, settings
from ..models.validators import normalize_tags
from ..storage.base import LogStorage

logger = logging.getLogger(__name__)


class TagRegistry:
    """Grow-only set of lowercase tags, persisted through the storage backend."""

    def __init__(self, storage: LogStorage, default_tag: str | None = None):
        self.storage = storage
        self.default_tag = default_tag or settings.storage.default_tag
        self._lock = asyncio.Lock()

    async def list_tags(self) -> list[str]:
        """Return the known tags, or the built-in default if none were ever saved."""
        tags = await self.storage.load_tags()
        if tags is None:
            return [self.default_tag]
        return tags

    async def add_known(self, tags: Iterable[str]) -> list[str]:
        """
        Union ``tags`` into the registry and return the full set.

        The reserved private tag and blanks are never registered. Storage is
        only written when the set actually grew.
        """
        candidates = [t for t in normalize_tags(list(tags)) if t != PRIVATE_TAG]

        async with self._lock:
            known = await self.list_tags()
            added = [t for t in candidates if t not in known]
            if not added:
                return known

            updated = known + added
            await self.storage.save_tags(updated)

        logger.info(f"Registered new tags: {', '.join(added)}")
        return updated
