"""One Piece card catalog backed by optcgapi.com."""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..core.constants import OPTCG_BASE
from ..core.types import CanonicalSet, Candidate, CardDetail, Game, Language
from .base import CatalogClient, parse_price


def is_starter_deck(set_code: str) -> bool:
    return set_code.upper().startswith("ST")


class OPTCGClient(CatalogClient):
    game = Game.ONEPIECE

    def __init__(self, *args, base_url: str = OPTCG_BASE, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url

    def _to_candidate(self, card: Dict[str, Any], set_code: str = "") -> Optional[Candidate]:
        card_id = card.get("card_set_id")
        name = card.get("card_name")
        if not card_id or not name:
            return None
        card_id = str(card_id)
        head, _, number = card_id.rpartition("-")
        return Candidate(
            name=str(name),
            card_id=card_id,
            set_code=str(card.get("set_id") or set_code or head),
            number=number or None,
            rarity=card.get("rarity"),
            extras={k: card[k] for k in ("set_name", "card_image") if card.get(k)},
        )

    def _unique(self, data: Any, set_code: str = "") -> List[Candidate]:
        """Alternate arts repeat card_set_id; keep the first printing of each."""
        if not isinstance(data, list):
            return []
        seen = set()
        candidates = []
        for card in data:
            if not isinstance(card, dict):
                continue
            candidate = self._to_candidate(card, set_code)
            if candidate is None or candidate.card_id in seen:
                continue
            seen.add(candidate.card_id)
            candidates.append(candidate)
        return candidates

    async def list_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        boosters, decks = await asyncio.gather(
            self._get_json(f"{self.base_url}/allSets/"),
            self._get_json(f"{self.base_url}/allDecks/"),
        )
        sets = []
        for s in boosters if isinstance(boosters, list) else []:
            if isinstance(s, dict) and s.get("set_id"):
                sets.append(CanonicalSet(code=str(s["set_id"]), display_name=str(s.get("set_name") or s["set_id"])))
        for d in decks if isinstance(decks, list) else []:
            if isinstance(d, dict) and d.get("structure_deck_id"):
                sets.append(CanonicalSet(
                    code=str(d["structure_deck_id"]),
                    display_name=str(d.get("structure_deck_name") or d["structure_deck_id"]),
                ))
        return self.dedupe_sets(sets)

    async def _fetch_card(self, card_id: str) -> Optional[Dict[str, Any]]:
        encoded = quote(card_id, safe="")
        for path in (f"sets/card/{encoded}/", f"decks/card/{encoded}/"):
            data = await self._get_json(f"{self.base_url}/{path}")
            if isinstance(data, list) and data and isinstance(data[0], dict):
                return data[0]
        return None

    async def fetch_by_id(self, card_id: str, language: Language = Language.EN) -> Optional[Candidate]:
        card = await self._fetch_card(card_id)
        return self._to_candidate(card) if card else None

    async def fetch_by_set(self, set_code: str, language: Language = Language.EN) -> List[Candidate]:
        kind = "decks" if is_starter_deck(set_code) else "sets"
        data = await self._get_json(f"{self.base_url}/{kind}/{quote(set_code, safe='')}/")
        return self._unique(data, set_code)

    async def fetch_by_name(self, name: str, language: Language = Language.EN) -> List[Candidate]:
        if not name.strip():
            return []
        data = await self._get_json(f"{self.base_url}/cards/search/{quote(name, safe='')}/")
        return self._unique(data)

    async def fetch_detail(self, card_id: str, language: Language = Language.EN) -> Optional[CardDetail]:
        card = await self._fetch_card(card_id)
        candidate = self._to_candidate(card) if card else None
        if candidate is None:
            return None
        price = parse_price(card.get("market_price"))
        if price is None:
            price = parse_price(card.get("inventory_price"))
        return CardDetail(
            game=self.game,
            card_id=candidate.card_id,
            name=candidate.name,
            set_code=candidate.set_code,
            set_name=card.get("set_name"),
            number=candidate.number,
            rarity=candidate.rarity,
            image_url=card.get("card_image"),
            price=price,
        )
