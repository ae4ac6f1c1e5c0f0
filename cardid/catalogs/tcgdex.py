"""Pokemon card catalog backed by the TCGdex REST API."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..core.constants import TCGDEX_BASE
from ..core.types import CanonicalSet, Candidate, CardDetail, Game, Language
from .base import CatalogClient, parse_price


def set_code_from_card_id(card_id: str, fallback: str = "") -> str:
    """TCGdex ids are "<set>-<localId>"; set ids may themselves contain dots but not dashes."""
    head, sep, _ = card_id.rpartition("-")
    return head if sep and head else fallback


def _first_price(pricing: Optional[Dict[str, Any]]) -> tuple:
    """(price, currency) from a TCGdex pricing block, preferring TCGplayer USD."""
    pricing = pricing or {}
    tcg = pricing.get("tcgplayer") or {}
    for variant in ("holofoil", "normal", "reverseHolofoil"):
        block = tcg.get(variant) or {}
        price = parse_price(block.get("marketPrice")) or parse_price(block.get("midPrice"))
        if price is not None:
            return price, "USD"
    trend = parse_price((pricing.get("cardmarket") or {}).get("trend"))
    if trend is not None:
        return trend, "EUR"
    return None, "USD"


class TCGdexClient(CatalogClient):
    game = Game.POKEMON

    def __init__(self, *args, base_url: str = TCGDEX_BASE, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url

    def listing_language(self, language: Language) -> Language:
        return language

    def _url(self, language: Language, path: str) -> str:
        return f"{self.base_url}/{language.value}/{path}"

    def _to_candidate(self, card: Dict[str, Any], set_code: str = "", release_date: Optional[str] = None) -> Optional[Candidate]:
        try:
            card_id = str(card["id"])
            set_info = card.get("set") or {}
            return Candidate(
                name=str(card["name"]),
                card_id=card_id,
                set_code=set_info.get("id") or set_code_from_card_id(card_id, set_code),
                number=str(card.get("localId") or "") or None,
                rarity=card.get("rarity"),
                release_date=release_date,
                extras={"image": card.get("image")} if card.get("image") else {},
            )
        except (KeyError, TypeError, AttributeError):
            return None

    async def list_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        data = await self._get_json(self._url(language, "sets"))
        if not isinstance(data, list):
            return []
        sets = []
        for s in data:
            if not isinstance(s, dict) or not s.get("id"):
                continue
            sets.append(CanonicalSet(
                code=str(s["id"]),
                display_name=str(s.get("name") or s["id"]),
                total_card_count=int((s.get("cardCount") or {}).get("total") or 0),
                release_date=s.get("releaseDate"),
            ))
        return self.dedupe_sets(sets)

    async def _fetch_card(self, card_id: str, language: Language) -> Optional[Dict[str, Any]]:
        data = await self._get_json(self._url(language, f"cards/{quote(card_id, safe='')}"))
        return data if isinstance(data, dict) and data.get("id") else None

    async def fetch_by_id(self, card_id: str, language: Language = Language.EN) -> Optional[Candidate]:
        card = await self._fetch_card(card_id, language)
        return self._to_candidate(card) if card else None

    async def fetch_by_set(self, set_code: str, language: Language = Language.EN) -> List[Candidate]:
        data = await self._get_json(self._url(language, f"sets/{quote(set_code, safe='')}"))
        if not isinstance(data, dict) or not isinstance(data.get("cards"), list):
            return []
        code = str(data.get("id") or set_code)
        release = data.get("releaseDate")
        return [c for c in (self._to_candidate(card, code, release) for card in data["cards"]) if c]

    async def fetch_by_name(self, name: str, language: Language = Language.EN) -> List[Candidate]:
        if not name.strip():
            return []
        data = await self._get_json(self._url(language, "cards"), params={"name": name})
        if not isinstance(data, list):
            return []
        return [c for c in (self._to_candidate(card) for card in data if isinstance(card, dict)) if c]

    async def fetch_detail(self, card_id: str, language: Language = Language.EN) -> Optional[CardDetail]:
        card = await self._fetch_card(card_id, language)
        if not card:
            return None
        set_info = card.get("set") or {}
        price, currency = _first_price(card.get("pricing"))
        return CardDetail(
            game=self.game,
            card_id=str(card["id"]),
            name=str(card.get("name") or card["id"]),
            set_code=set_info.get("id") or set_code_from_card_id(str(card["id"])),
            set_name=set_info.get("name"),
            number=card.get("localId"),
            rarity=card.get("rarity"),
            image_url=f"{card['image']}/high.png" if card.get("image") else None,
            price=price,
            price_currency=currency,
        )
