"""
Tagged In-Process Cache

A small TTL cache whose entries carry tags, so a whole family of
entries can be dropped at once when the underlying data changes
(e.g. every menu mutation invalidates the ``menu`` tag).

Only the cached public menu read uses it; everything else queries
the database directly.
"""

import logging
import time
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Any, Awaitable, Callable, Iterable, Optional

from menuhub.core.config import get_settings

logger = logging.getLogger(__name__)

MENU_TAG = "menu"
MENU_SECTIONS_KEY = "menu-sections"


@dataclass
class _Entry:
    value: Any
    expires_at: float
    tags: frozenset


@dataclass
class TaggedCache:
    default_ttl: float = 5.0
    clock: Callable[[], float] = time.monotonic
    _entries: dict[str, _Entry] = field(default_factory=dict)
    _generations: dict[str, int] = field(default_factory=dict)

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self.clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    def set(
        self,
        key: str,
        value: Any,
        tags: Iterable[str] = (),
        ttl: Optional[float] = None,
    ) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        self._entries[key] = _Entry(value, self.clock() + ttl, frozenset(tags))

    async def get_or_load(
        self,
        key: str,
        loader: Callable[[], Awaitable[Any]],
        tags: Iterable[str] = (),
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value, or await ``loader`` and cache its result.

        A tag invalidated while the loader is running means the loaded value
        may predate the change: it is returned but not cached.
        """
        value = self.get(key)
        if value is not None:
            return value

        tags = tuple(tags)
        generations = self._generations_of(tags)
        value = await loader()
        if self._generations_of(tags) == generations:
            self.set(key, value, tags=tags, ttl=ttl)
        else:
            logger.debug(f"Not caching '{key}': invalidated during load")
        return value

    def _generations_of(self, tags: tuple[str, ...]) -> list[int]:
        return [self._generations.get(tag, 0) for tag in tags]

    def invalidate_tag(self, tag: str) -> int:
        """Drop every entry carrying ``tag``; returns how many were dropped."""
        self._generations[tag] = self._generations.get(tag, 0) + 1
        doomed = [key for key, entry in self._entries.items() if tag in entry.tags]
        for key in doomed:
            del self._entries[key]
        if doomed:
            logger.debug(f"Invalidated {len(doomed)} cache entries tagged '{tag}'")
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()


@lru_cache()
def get_menu_cache() -> TaggedCache:
    return TaggedCache(default_ttl=get_settings().menu_cache_ttl_seconds)


def invalidate_menu() -> None:
    get_menu_cache().invalidate_tag(MENU_TAG)
