from typing import List, Optional

from ..core.types import Candidate, Game, LookupQuery
from ..match.normalize import parse_number
from .base import CardVerifier


class PokemonVerifier(CardVerifier):
    """TCGdex ids are "<set>-<localId>"; localIds are padded inconsistently across eras."""

    game = Game.POKEMON

    def direct_ids(self, query: LookupQuery) -> List[str]:
        if not query.set_code:
            return []
        return [f"{query.set_code}-{v}" for v in self.variants(query)]

    def disambiguate(self, query: LookupQuery, matches: List[Candidate]) -> Optional[Candidate]:
        # reprints of one Pokemon in a set (regular, full art, secret) sit far apart
        target = parse_number(query.number)
        if target is None:
            return None
        numbered = [(abs(n - target), c) for c in matches for n in [parse_number(c.number)] if n is not None]
        if not numbered:
            return None
        return min(numbered, key=lambda pair: pair[0])[1]
