"""Magic: The Gathering card catalog backed by the Scryfall API."""

import asyncio
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from ..core.constants import SCRYFALL_BASE, SCRYFALL_MAX_PAGES, SCRYFALL_PAGE_DELAY_S
from ..core.types import CanonicalSet, Candidate, CardDetail, Game, Language
from .base import CatalogClient, parse_price


def _image_url(card: Dict[str, Any]) -> Optional[str]:
    uris = card.get("image_uris") or ((card.get("card_faces") or [{}])[0].get("image_uris")) or {}
    return uris.get("large") or uris.get("normal") or uris.get("small")


class ScryfallClient(CatalogClient):
    game = Game.MTG

    def __init__(self, *args, base_url: str = SCRYFALL_BASE, max_pages: int = SCRYFALL_MAX_PAGES, **kwargs):
        super().__init__(*args, **kwargs)
        self.base_url = base_url
        self.max_pages = max_pages

    def _to_candidate(self, card: Dict[str, Any]) -> Optional[Candidate]:
        if not isinstance(card, dict) or not card.get("id") or not card.get("name"):
            return None
        return Candidate(
            name=str(card["name"]),
            card_id=str(card["id"]),
            set_code=str(card.get("set") or ""),
            number=card.get("collector_number"),
            rarity=card.get("rarity"),
            release_date=card.get("released_at"),
            extras={"set_name": card.get("set_name")} if card.get("set_name") else {},
        )

    async def _search(self, query: str, **params: str) -> List[Candidate]:
        """Run a card search and follow has_more/next_page up to max_pages."""
        url: Optional[str] = f"{self.base_url}/cards/search"
        request_params: Optional[Dict[str, str]] = {"q": query, "unique": "prints", **params}
        candidates: List[Candidate] = []

        for page in range(self.max_pages):
            if page:
                await asyncio.sleep(SCRYFALL_PAGE_DELAY_S)
            data = await self._get_json(url, params=request_params)
            if not isinstance(data, dict):
                break
            for card in data.get("data") or []:
                candidate = self._to_candidate(card)
                if candidate:
                    candidates.append(candidate)
            if not data.get("has_more") or not data.get("next_page"):
                break
            # next_page already carries the full query string
            url, request_params = data["next_page"], None

        return candidates

    async def list_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        data = await self._get_json(f"{self.base_url}/sets")
        rows = data.get("data") if isinstance(data, dict) else None
        if not isinstance(rows, list):
            return []
        sets = [
            CanonicalSet(
                code=str(s["code"]),
                display_name=str(s.get("name") or s["code"]),
                total_card_count=int(s.get("card_count") or 0),
                release_date=s.get("released_at"),
            )
            for s in rows
            if isinstance(s, dict) and s.get("code")
        ]
        return self.dedupe_sets(sets)

    async def _fetch_card(self, card_id: str) -> Optional[Dict[str, Any]]:
        if "/" in card_id:
            set_code, _, number = card_id.partition("/")
            url = f"{self.base_url}/cards/{quote(set_code.lower(), safe='')}/{quote(number, safe='')}"
        else:
            url = f"{self.base_url}/cards/{quote(card_id, safe='')}"
        data = await self._get_json(url)
        return data if isinstance(data, dict) and data.get("object") != "error" and data.get("id") else None

    async def fetch_by_id(self, card_id: str, language: Language = Language.EN) -> Optional[Candidate]:
        """Accepts a Scryfall UUID or "<set>/<collector number>"."""
        card = await self._fetch_card(card_id)
        return self._to_candidate(card) if card else None

    async def fetch_by_set(self, set_code: str, language: Language = Language.EN) -> List[Candidate]:
        return await self._search(f"set:{set_code.lower()}", order="set")

    async def fetch_by_name(self, name: str, language: Language = Language.EN) -> List[Candidate]:
        if not name.strip():
            return []
        exact = name.replace('"', "")
        return await self._search(f'!"{exact}"', order="released", dir="desc")

    async def search_text(self, text: str) -> List[Candidate]:
        """Loose full-text search over every printing, newest first."""
        if not text.strip():
            return []
        return await self._search(text, order="released", dir="desc")

    async def fetch_detail(self, card_id: str, language: Language = Language.EN) -> Optional[CardDetail]:
        card = await self._fetch_card(card_id)
        if not card:
            return None
        prices = card.get("prices") or {}
        price = parse_price(prices.get("usd"))
        if price is None:
            price = parse_price(prices.get("usd_foil"))
        return CardDetail(
            game=self.game,
            card_id=str(card["id"]),
            name=str(card.get("name") or card["id"]),
            set_code=str(card.get("set") or ""),
            set_name=card.get("set_name"),
            number=card.get("collector_number"),
            rarity=card.get("rarity"),
            image_url=_image_url(card),
            price=price,
        )
