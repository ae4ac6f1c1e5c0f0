"""Collection valuation: price many cards with bounded concurrency."""

import asyncio
from typing import Any, Iterable, List, Mapping, Optional

from ..catalogs.base import CatalogClient
from ..core.types import CardDetail, CardRef, CollectionValue, Game, PriceQuote
from ..store.cache import CacheManager
from ..utils.config import settings
from ..utils.error_handler import ErrorContext, handle_error
from ..utils.log import LoggerMixin


def refs_from_payload(items: Iterable[Mapping[str, Any]]) -> List[CardRef]:
    """Build CardRefs from ``[{"game": ..., "cardId": ...}]``; raises ValueError on a bad entry."""
    refs = []
    for i, item in enumerate(items):
        if not isinstance(item, Mapping):
            raise ValueError(f"Entry {i} is not an object")
        try:
            game = Game(str(item.get("game", "")).strip().lower())
        except ValueError:
            raise ValueError(f"Entry {i} has unknown game {item.get('game')!r}")
        card_id = str(item.get("cardId") or "").strip()
        if not card_id:
            raise ValueError(f"Entry {i} has no cardId")
        refs.append(CardRef(game=game, card_id=card_id))
    return refs


class CollectionValuator(LoggerMixin):
    """Prices CardRefs through the price cache, the metadata cache, then the catalog."""

    def __init__(
        self,
        clients: Mapping[Game, CatalogClient],
        cache: CacheManager,
        concurrency: Optional[int] = None,
    ):
        self.clients = clients
        self.cache = cache
        self.concurrency = concurrency or settings.PRICE_CONCURRENCY

    async def get_card_detail(self, ref: CardRef) -> Optional[CardDetail]:
        client = self.clients.get(ref.game)
        if client is None:
            return None
        return await self.cache.metadata.get_or_load(
            (ref.game, ref.card_id),
            lambda: client.fetch_detail(ref.card_id),
        )

    async def price_card(self, ref: CardRef, semaphore: asyncio.Semaphore) -> PriceQuote:
        key = (ref.game, ref.card_id)
        cached = self.cache.prices.get(key)
        if cached is not None:
            return cached

        async with semaphore:
            try:
                detail = await self.get_card_detail(ref)
            except Exception as e:
                context = ErrorContext(
                    operation="price_card",
                    module=__name__,
                    function="price_card",
                    input_data={"game": ref.game.value, "card_id": ref.card_id},
                )
                detail = handle_error(e, context, self.logger, reraise=False, default_return=None, level="warning")

        quote = PriceQuote(
            game=ref.game,
            card_id=ref.card_id,
            name=detail.name if detail else ref.card_id,
            price=detail.price if detail else None,
        )
        if quote.price is not None:
            self.cache.prices.put(key, quote)
        return quote

    async def value_collection(self, cards: List[CardRef]) -> CollectionValue:
        """Total market value; each distinct card is looked up once, every copy counts."""
        context = self.log_start("value_collection", cards=len(cards))
        unique = list(dict.fromkeys(cards))
        semaphore = asyncio.Semaphore(self.concurrency)

        priced = await asyncio.gather(*(self.price_card(ref, semaphore) for ref in unique))
        by_ref = dict(zip(unique, priced))
        quotes = [by_ref[ref] for ref in cards]

        total = round(sum(q.price or 0.0 for q in quotes), 2)
        result = CollectionValue(total_value=total, quotes=quotes)
        self.log_success(context, distinct=len(unique), priced=result.priced_count, total_value=total)
        return result
