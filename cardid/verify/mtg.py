from typing import List

from ..catalogs.scryfall import ScryfallClient
from ..core.types import Candidate, Game, LookupQuery
from .base import CardVerifier, Step, StepOutcome

GLOBAL_TEXT = "global_text"


class MTGVerifier(CardVerifier):
    """Scryfall collector numbers are never zero-padded and the newest printing is the default."""

    game = Game.MTG
    client: ScryfallClient

    def variants(self, query: LookupQuery) -> List[str]:
        number = (query.number or "").strip()
        if not number:
            return []
        stripped = number.lstrip("0") or "0"
        return [number] if stripped == number else [number, stripped]

    def direct_ids(self, query: LookupQuery) -> List[str]:
        if not query.set_code:
            return []
        return [f"{query.set_code.lower()}/{v}" for v in self.variants(query)]

    def default_global_pick(self, candidates: List[Candidate]) -> Candidate:
        # max() keeps the first of equal dates, and searches already arrive newest first
        return max(candidates, key=lambda c: c.release_date or "")

    def extra_steps(self) -> List[Step]:
        return [self.global_text]

    async def global_text(self, query: LookupQuery) -> StepOutcome:
        """Loose full-text search for names the exact search could not find."""
        candidates = await self.client.search_text(query.name)
        if not candidates:
            return StepOutcome(GLOBAL_TEXT)
        pool = self.named(query, candidates)
        by_number = next((c for c in pool if self.number_matches(query, c)), None)
        return StepOutcome(GLOBAL_TEXT, match=by_number or self.default_global_pick(pool))
