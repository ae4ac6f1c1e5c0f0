"""Per-game card verifiers, selected by game through VERIFIER_TYPES."""

from typing import Dict, Mapping

from ..catalogs.base import CatalogClient
from ..core.types import Game
from .base import CardVerifier, StepOutcome
from .mtg import MTGVerifier
from .onepiece import OnePieceVerifier
from .pokemon import PokemonVerifier
from .yugioh import YugiohVerifier

VERIFIER_TYPES = {
    Game.POKEMON: PokemonVerifier,
    Game.YUGIOH: YugiohVerifier,
    Game.ONEPIECE: OnePieceVerifier,
    Game.MTG: MTGVerifier,
}


def build_verifiers(clients: Mapping[Game, CatalogClient]) -> Dict[Game, CardVerifier]:
    return {game: VERIFIER_TYPES[game](client) for game, client in clients.items()}


__all__ = [
    "CardVerifier",
    "MTGVerifier",
    "OnePieceVerifier",
    "PokemonVerifier",
    "StepOutcome",
    "VERIFIER_TYPES",
    "YugiohVerifier",
    "build_verifiers",
]
