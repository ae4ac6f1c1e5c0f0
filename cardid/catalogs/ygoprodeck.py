"""Yu-Gi-Oh! card catalog backed by the YGOProDeck API.

YGOProDeck is card-centric: one card carries every printing it ever had in
``card_sets``. Candidates here are printings, so a card reprinted at three
rarities in one set yields three candidates sharing a name.
"""

from typing import Any, Dict, List, Optional

from ..core.constants import YGOPRODECK_BASE
from ..core.types import CanonicalSet, Candidate, CardDetail, Game, Language
from .base import CatalogClient, parse_price


def split_printing_code(code: str) -> tuple:
    """"LOB-EN005" -> ("LOB", "EN005"); codes without a dash are all prefix."""
    prefix, sep, suffix = code.partition("-")
    return (prefix, suffix) if sep else (code, "")


class YGOProDeckClient(CatalogClient):
    game = Game.YUGIOH

    def __init__(self, *args, base_url: str = YGOPRODECK_BASE, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url

    def _printings(self, card: Dict[str, Any], set_prefix: Optional[str] = None) -> List[Candidate]:
        """Explode a card into one candidate per printing, optionally limited to one set."""
        name = card.get("name")
        printings = card.get("card_sets") or []
        if not name or not isinstance(printings, list):
            return []

        wanted = f"{set_prefix.upper()}-" if set_prefix else None
        rarities: Dict[str, List[str]] = {}
        ordered: List[Dict[str, Any]] = []
        for p in printings:
            code = str(p.get("set_code") or "")
            if not code or (wanted and not code.upper().startswith(wanted)):
                continue
            rarities.setdefault(code, []).append(str(p.get("set_rarity") or ""))
            ordered.append(p)

        candidates = []
        for p in ordered:
            code = str(p["set_code"])
            prefix, suffix = split_printing_code(code)
            candidates.append(Candidate(
                name=str(name),
                card_id=code,
                set_code=prefix,
                number=suffix or None,
                rarity=p.get("set_rarity"),
                extras={
                    "set_name": p.get("set_name"),
                    "rarities": tuple(r for r in rarities[code] if r),
                    "konami_id": card.get("id"),
                },
            ))
        return candidates

    async def _card_info(self, **params: str) -> List[Dict[str, Any]]:
        data = await self._get_json(f"{self.base_url}/cardinfo.php", params=params)
        cards = data.get("data") if isinstance(data, dict) else None
        return [c for c in cards if isinstance(c, dict)] if isinstance(cards, list) else []

    async def list_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        data = await self._get_json(f"{self.base_url}/cardsets.php")
        if not isinstance(data, list):
            return []
        sets = [
            CanonicalSet(
                code=str(s["set_code"]),
                display_name=str(s.get("set_name") or s["set_code"]),
                total_card_count=int(s.get("num_of_cards") or 0),
                release_date=s.get("tcg_date"),
            )
            for s in data
            if isinstance(s, dict) and s.get("set_code")
        ]
        return self.dedupe_sets(sets)

    async def _printing_info(self, card_id: str) -> Optional[Dict[str, Any]]:
        data = await self._get_json(f"{self.base_url}/cardsetsinfo.php", params={"setcode": card_id})
        if isinstance(data, list):
            data = data[0] if data else None
        return data if isinstance(data, dict) and data.get("name") else None

    async def fetch_by_id(self, card_id: str, language: Language = Language.EN) -> Optional[Candidate]:
        info = await self._printing_info(card_id)
        if not info:
            return None
        code = str(info.get("set_code") or card_id)
        prefix, suffix = split_printing_code(code)
        rarity = info.get("set_rarity")
        return Candidate(
            name=str(info["name"]),
            card_id=code,
            set_code=prefix,
            number=suffix or None,
            rarity=rarity,
            extras={
                "set_name": info.get("set_name"),
                "rarities": (rarity,) if rarity else (),
                "konami_id": info.get("id"),
            },
        )

    async def fetch_by_set(self, set_code: str, language: Language = Language.EN) -> List[Candidate]:
        # cardinfo.php filters by set *name*, so go through the listing first
        sets = await self.cached_sets()
        wanted = set_code.upper()
        match = next((s for s in sets if s.code.upper() == wanted), None)
        set_name = match.display_name if match else set_code

        cards = await self._card_info(cardset=set_name)
        candidates: List[Candidate] = []
        for card in cards:
            candidates.extend(self._printings(card, set_prefix=set_code))
        return candidates

    async def fetch_by_name(self, name: str, language: Language = Language.EN) -> List[Candidate]:
        if not name.strip():
            return []
        cards = await self._card_info(name=name)
        if not cards:
            cards = await self._card_info(fname=name)
        candidates: List[Candidate] = []
        for card in cards:
            candidates.extend(self._printings(card))
        return candidates

    async def fetch_detail(self, card_id: str, language: Language = Language.EN) -> Optional[CardDetail]:
        info = await self._printing_info(card_id)
        if not info:
            return None

        price = parse_price(info.get("set_price"))
        image_url = None
        cards = await self._card_info(name=str(info["name"]))
        if cards:
            card = cards[0]
            images = card.get("card_images") or [{}]
            image_url = images[0].get("image_url")
            if price is None:
                prices = (card.get("card_prices") or [{}])[0]
                price = parse_price(prices.get("tcgplayer_price"))

        code = str(info.get("set_code") or card_id)
        prefix, suffix = split_printing_code(code)
        return CardDetail(
            game=self.game,
            card_id=code,
            name=str(info["name"]),
            set_code=prefix,
            set_name=info.get("set_name"),
            number=suffix or None,
            rarity=info.get("set_rarity"),
            image_url=image_url,
            price=price,
        )
