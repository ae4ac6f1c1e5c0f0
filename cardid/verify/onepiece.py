from typing import List, Optional

from ..core.constants import NUMBER_PAD_WIDTH
from ..core.types import Game, LookupQuery
from ..sets.directory import onepiece_rewrites
from .base import CardVerifier


def set_spellings(set_code: str) -> List[str]:
    """The guessed spelling first, then its dashed/undashed twins ("OP01" -> "OP01", "OP-01")."""
    spellings: List[str] = []
    for code in (set_code, *onepiece_rewrites(set_code)):
        if code and code not in spellings:
            spellings.append(code)
    return spellings


class OnePieceVerifier(CardVerifier):
    game = Game.ONEPIECE

    def set_codes(self, query: LookupQuery) -> List[str]:
        return set_spellings(query.set_code) if query.set_code else []

    def set_key(self, code: Optional[str]) -> str:
        return (code or "").replace("-", "").lower()

    def direct_ids(self, query: LookupQuery) -> List[str]:
        if not query.set_code or not query.number:
            return []
        number = (query.number.lstrip("0") or "0").zfill(NUMBER_PAD_WIDTH)
        return [f"{code}-{number}" for code in self.set_codes(query)]
