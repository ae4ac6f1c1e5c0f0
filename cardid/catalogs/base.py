"""Shared HTTP plumbing for the card catalog clients."""

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import aiohttp

from ..core.constants import BACKOFF_S, MIN_REQUEST_INTERVAL_S, RETRYABLE_STATUS
from ..core.types import CanonicalSet, Candidate, CardDetail, Game, Language
from ..store.cache import CacheManager
from ..utils.config import settings
from ..utils.error_handler import CatalogError, ErrorContext, handle_error
from ..utils.log import LoggerMixin


class CatalogClient(LoggerMixin, ABC):
    """Read-only client for one upstream card catalog.

    Every public query degrades to ``None`` or ``[]`` on transport errors,
    non-2xx statuses and malformed payloads; nothing here raises for an
    unreachable or confused catalog.
    """

    game: Game
    base_url: str

    def __init__(
        self,
        cache: Optional[CacheManager] = None,
        timeout_s: Optional[float] = None,
        user_agent: Optional[str] = None,
        min_request_interval: float = MIN_REQUEST_INTERVAL_S,
    ):
        self.cache = cache
        self.timeout = aiohttp.ClientTimeout(total=timeout_s or settings.HTTP_TIMEOUT_S)
        self.headers = {"User-Agent": user_agent or settings.USER_AGENT, "Accept": "application/json"}
        self.min_request_interval = min_request_interval
        self.session: Optional[aiohttp.ClientSession] = None
        self.last_request_time = 0.0
        self._rate_lock = asyncio.Lock()

    async def _ensure_session(self) -> None:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(headers=self.headers, timeout=self.timeout)

    async def _rate_limit(self) -> None:
        """Keep a minimum spacing between requests to the same catalog, concurrent callers included."""
        async with self._rate_lock:
            loop = asyncio.get_running_loop()
            wait = self.min_request_interval - (loop.time() - self.last_request_time)
            if wait > 0:
                await asyncio.sleep(wait)
            self.last_request_time = loop.time()

    async def _request_with_backoff(self, url: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """GET a JSON document, backing off on 429/5xx. Raises CatalogError."""
        await self._ensure_session()
        await self._rate_limit()

        for attempt, delay in enumerate([0.0, *BACKOFF_S]):
            if delay > 0:
                await asyncio.sleep(delay)

            try:
                async with self.session.get(url, params=params) as response:
                    if response.status in RETRYABLE_STATUS and attempt < len(BACKOFF_S):
                        continue
                    if response.status >= 400:
                        raise CatalogError(
                            f"{self.game.value} catalog returned HTTP {response.status}",
                            status=response.status,
                            details={"url": url, "params": params},
                        )
                    return await response.json(content_type=None)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                if attempt < len(BACKOFF_S):
                    continue
                raise CatalogError(
                    f"{self.game.value} catalog request failed: {type(e).__name__}",
                    details={"url": url, "params": params, "error": str(e)},
                ) from e
            except ValueError as e:
                raise CatalogError(
                    f"{self.game.value} catalog returned malformed JSON",
                    details={"url": url, "error": str(e)},
                ) from e

        raise CatalogError(
            f"{self.game.value} catalog still failing after {len(BACKOFF_S)} retries",
            details={"url": url, "params": params},
        )

    async def _get_json(self, url: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """Like _request_with_backoff, but failures come back as None."""
        try:
            return await self._request_with_backoff(url, params)
        except CatalogError as e:
            # a 404 is the normal "no such card" answer, not worth a warning
            level = "debug" if e.status in (400, 404) else "warning"
            context = ErrorContext(
                operation="catalog_get",
                module=type(self).__module__,
                function="_get_json",
                input_data={"url": url, "params": params},
            )
            return handle_error(e, context, self.logger, reraise=False, default_return=None, level=level)

    async def cached_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        """Set listing, read through the shared cache when one is attached."""
        language = self.listing_language(language)
        if self.cache is None:
            return await self.list_sets(language)
        sets = await self.cache.get_sets(self.game, language, lambda: self.list_sets(language))
        return list(sets)

    def listing_language(self, language: Language) -> Language:
        """Only catalogs with per-language listings keep the requested language."""
        return Language.EN

    @staticmethod
    def dedupe_sets(sets: List[CanonicalSet]) -> List[CanonicalSet]:
        seen = set()
        unique = []
        for s in sets:
            if not s.code or s.code in seen:
                continue
            seen.add(s.code)
            unique.append(s)
        return unique

    @abstractmethod
    async def list_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        """Every set the catalog knows, uncached."""

    @abstractmethod
    async def fetch_by_id(self, card_id: str, language: Language = Language.EN) -> Optional[Candidate]:
        """One card by its catalog-native id."""

    @abstractmethod
    async def fetch_by_set(self, set_code: str, language: Language = Language.EN) -> List[Candidate]:
        """All cards of one set."""

    @abstractmethod
    async def fetch_by_name(self, name: str, language: Language = Language.EN) -> List[Candidate]:
        """Cards named like ``name`` across all sets."""

    @abstractmethod
    async def fetch_detail(self, card_id: str, language: Language = Language.EN) -> Optional[CardDetail]:
        """Card metadata including a market price when the catalog has one."""

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self.session and not self.session.closed:
            await self.session.close()
        self.session = None


def parse_price(value: Any) -> Optional[float]:
    """Catalog prices arrive as floats, numeric strings or "0.00"; zero means unknown."""
    if value is None or value == "":
        return None
    try:
        price = float(value)
    except (TypeError, ValueError):
        return None
    return price if price > 0 else None
