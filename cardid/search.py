"""Name search across one or all card catalogs."""

import asyncio
from typing import List, Mapping, Optional

from rapidfuzz import fuzz

from .catalogs.base import CatalogClient
from .core.constants import SEARCH_LIMIT_PER_GAME, SEARCH_LIMIT_SINGLE_GAME, SEARCH_LIMIT_TOTAL
from .core.types import Candidate, Game, SearchHit
from .utils.log import get_logger

logger = get_logger(__name__)


def _image_url(candidate: Candidate) -> Optional[str]:
    extras = candidate.extras
    if extras.get("card_image"):
        return extras["card_image"]
    if extras.get("image"):
        return f"{extras['image']}/low.png"
    return None


def _rank(game: Game, query: str, candidates: List[Candidate], limit: int) -> List[SearchHit]:
    seen = set()
    hits = []
    for c in candidates:
        # YGOProDeck returns one candidate per printing; keep one per card
        key = c.extras.get("konami_id") or c.card_id
        if key in seen:
            continue
        seen.add(key)
        hits.append(SearchHit(
            game=game,
            card_id=c.card_id,
            name=c.name,
            set_code=c.set_code,
            score=fuzz.WRatio(query, c.name),
            image_url=_image_url(c),
        ))
    hits.sort(key=lambda h: h.score, reverse=True)
    return hits[:limit]


async def search_cards(
    clients: Mapping[Game, CatalogClient],
    query: str,
    game: Optional[Game] = None,
    limit: Optional[int] = None,
) -> List[SearchHit]:
    """Search catalogs by name and rank hits by similarity to the query."""
    query = (query or "").strip()
    if not query:
        raise ValueError("Search query is required")

    if game is not None:
        selected = {game: clients[game]} if game in clients else {}
        per_game = SEARCH_LIMIT_SINGLE_GAME
    else:
        selected = dict(clients)
        per_game = SEARCH_LIMIT_PER_GAME

    games = list(selected)
    results = await asyncio.gather(
        *(selected[g].fetch_by_name(query) for g in games),
        return_exceptions=True,
    )

    hits: List[SearchHit] = []
    for g, result in zip(games, results):
        if isinstance(result, BaseException):
            logger.warning("Catalog search failed", game=g.value, query=query, error=str(result), error_type=type(result).__name__)
            continue
        hits.extend(_rank(g, query, result, per_game))

    hits.sort(key=lambda h: h.score, reverse=True)
    hits = hits[:limit or SEARCH_LIMIT_TOTAL]
    logger.info("Search completed", query=query, game=game.value if game else None, hits=len(hits))
    return hits
