"""Catalog clients, one per supported game."""

from typing import Dict, Optional

from ..core.types import Game
from ..store.cache import CacheManager
from .base import CatalogClient
from .optcg import OPTCGClient
from .scryfall import ScryfallClient
from .tcgdex import TCGdexClient
from .ygoprodeck import YGOProDeckClient

CLIENT_TYPES = {
    Game.POKEMON: TCGdexClient,
    Game.YUGIOH: YGOProDeckClient,
    Game.ONEPIECE: OPTCGClient,
    Game.MTG: ScryfallClient,
}


def build_clients(cache: Optional[CacheManager] = None, **kwargs) -> Dict[Game, CatalogClient]:
    """One client per game, all sharing the same cache service."""
    return {game: client_type(cache=cache, **kwargs) for game, client_type in CLIENT_TYPES.items()}


__all__ = [
    "CLIENT_TYPES",
    "CatalogClient",
    "OPTCGClient",
    "ScryfallClient",
    "TCGdexClient",
    "YGOProDeckClient",
    "build_clients",
]
