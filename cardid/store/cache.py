"""In-memory caches for set listings, card prices and card metadata."""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, Generic, Hashable, List, Optional, Tuple, TypeVar

from ..core.types import CanonicalSet, Game, Language
from ..utils.config import settings
from ..utils.log import get_logger

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")

_MISSING = object()


class TTLCache(Generic[K, V]):
    """Read-through cache whose entries are replaced wholesale, never mutated.

    ``ttl_s=None`` disables expiry; entries then live until invalidated.
    """

    def __init__(self, name: str, ttl_s: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.name = name
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: Dict[K, Tuple[V, Optional[float]]] = {}
        self._locks: Dict[K, asyncio.Lock] = {}
        self.hits = 0
        self.misses = 0
        self.logger = get_logger(__name__)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: K) -> bool:
        return self._lookup(key) is not _MISSING

    def _lookup(self, key: K) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            self._entries.pop(key, None)
            self.logger.debug("Cache entry expired", cache=self.name, key=str(key))
            return _MISSING
        return value

    def get(self, key: K, default: Optional[V] = None) -> Optional[V]:
        value = self._lookup(key)
        if value is _MISSING:
            self.misses += 1
            return default
        self.hits += 1
        return value

    def put(self, key: K, value: V) -> None:
        expires_at = self._clock() + self.ttl_s if self.ttl_s is not None else None
        self._entries[key] = (value, expires_at)

    async def get_or_load(self, key: K, loader: Callable[[], Awaitable[V]], store_empty: bool = False) -> V:
        """Return the cached value or populate it once, even under concurrent misses."""
        value = self._lookup(key)
        if value is not _MISSING:
            self.hits += 1
            return value

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            value = self._lookup(key)
            if value is not _MISSING:
                self.hits += 1
                return value

            self.misses += 1
            value = await loader()
            if value or store_empty:
                self.put(key, value)
            else:
                self.logger.debug("Not caching empty value", cache=self.name, key=str(key))
            return value

    def invalidate(self, predicate: Optional[Callable[[K], bool]] = None) -> int:
        """Drop every entry (or those whose key matches predicate); returns the count removed."""
        keys = [k for k in self._entries if predicate is None or predicate(k)]
        for k in keys:
            self._entries.pop(k, None)
        return len(keys)

    def clear(self) -> None:
        self._entries.clear()
        self._locks.clear()


class CacheManager:
    """Process-lifetime caches shared by catalog clients, the set directory and pricing."""

    def __init__(
        self,
        price_ttl_s: Optional[float] = None,
        metadata_ttl_s: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.logger = get_logger(__name__)
        self.sets: TTLCache[Tuple[Game, Language], Tuple[CanonicalSet, ...]] = TTLCache("sets", None, clock)
        self.prices: TTLCache[Tuple[Game, str], Any] = TTLCache(
            "prices", settings.price_ttl_s if price_ttl_s is None else price_ttl_s, clock
        )
        self.metadata: TTLCache[Tuple[Game, str], Any] = TTLCache(
            "metadata", settings.metadata_ttl_s if metadata_ttl_s is None else metadata_ttl_s, clock
        )

    async def get_sets(
        self,
        game: Game,
        language: Language,
        loader: Callable[[], Awaitable[List[CanonicalSet]]],
    ) -> Tuple[CanonicalSet, ...]:
        async def load() -> Tuple[CanonicalSet, ...]:
            sets = await loader()
            self.logger.info("Set listing loaded", game=game.value, language=language.value, count=len(sets))
            return tuple(sets)

        return await self.sets.get_or_load((game, language), load)

    def invalidate_sets(self, game: Optional[Game] = None, language: Optional[Language] = None) -> int:
        removed = self.sets.invalidate(
            lambda key: (game is None or key[0] == game) and (language is None or key[1] == language)
        )
        self.logger.info(
            "Set listings invalidated",
            game=game.value if game else None,
            language=language.value if language else None,
            removed=removed,
        )
        return removed

    def clear(self) -> None:
        for cache in (self.sets, self.prices, self.metadata):
            cache.clear()
        self.logger.debug("All caches cleared")

    def stats(self) -> Dict[str, Dict[str, int]]:
        return {
            cache.name: {"entries": len(cache), "hits": cache.hits, "misses": cache.misses}
            for cache in (self.sets, self.prices, self.metadata)
        }
