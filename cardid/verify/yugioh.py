import re
from typing import List, Optional

from ..core.constants import NUMBER_PAD_WIDTH
from ..core.types import Candidate, Game, LookupQuery
from ..match.normalize import id_suffix, number_variants
from .base import DIRECT_ID, CardVerifier, StepOutcome

REGION_PATTERN = re.compile(r"^[A-Za-z]+")


def bare_number(number: Optional[str]) -> str:
    """Drop a printed region code: "EN005" -> "005"."""
    return REGION_PATTERN.sub("", (number or "").strip())


def rarity_matches(wanted: str, rarity: Optional[str]) -> bool:
    return bool(wanted) and wanted in (rarity or "").casefold()


def pick_rarity(rarity: Optional[str], printings: List[Candidate]) -> Optional[Candidate]:
    """Printing whose rarity equals the guess, else the first one containing it."""
    wanted = (rarity or "").strip().casefold()
    if not wanted:
        return None
    exact = next((c for c in printings if (c.rarity or "").casefold() == wanted), None)
    return exact or next((c for c in printings if rarity_matches(wanted, c.rarity)), None)


class YugiohVerifier(CardVerifier):
    """Printing codes are "<set>-<region><num>"; one code may be printed at several rarities."""

    game = Game.YUGIOH

    def variants(self, query: LookupQuery) -> List[str]:
        return number_variants(bare_number(query.number), NUMBER_PAD_WIDTH)

    def candidate_number(self, candidate: Candidate) -> str:
        return bare_number(candidate.number)

    def direct_ids(self, query: LookupQuery) -> List[str]:
        number = bare_number(query.number)
        if not query.set_code or not number:
            return []
        padded = number.zfill(NUMBER_PAD_WIDTH)
        return [f"{query.set_code}-EN{padded}", f"{query.set_code}-{padded}"]

    async def direct_id(self, query: LookupQuery) -> StepOutcome:
        outcome = await super().direct_id(query)
        hit = outcome.match
        wanted = (query.rarity or "").strip().casefold()
        if hit is None or not wanted or rarity_matches(wanted, hit.rarity):
            return outcome

        # cardsetsinfo.php answers with a single printing; the set listing has every rarity of the code
        printings = [c for c in await self.client.fetch_by_set(hit.set_code, query.language) if c.card_id == hit.card_id]
        picked = pick_rarity(query.rarity, printings)
        if picked is None:
            self.logger.debug("No printing at guessed rarity", card_id=hit.card_id, rarity=query.rarity, found=hit.rarity)
            return outcome
        return StepOutcome(DIRECT_ID, match=picked, fallback=outcome.fallback)

    def disambiguate(self, query: LookupQuery, matches: List[Candidate]) -> Optional[Candidate]:
        picked = pick_rarity(query.rarity, matches)
        if picked is not None:
            return picked

        number = bare_number(query.number)
        if number:
            for c in matches:
                if number in id_suffix(c.card_id):
                    return c
        return None
