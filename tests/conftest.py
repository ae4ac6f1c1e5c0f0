"""Pytest configuration and shared fixtures for cardid tests."""

from typing import Dict, List, Optional, Sequence

import pytest

from cardid.catalogs.base import CatalogClient
from cardid.core.types import CanonicalSet, Candidate, CardDetail, Game, Language
from cardid.store.cache import CacheManager


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no I/O")
    config.addinivalue_line("markers", "integration: tests wiring several components together")
    config.addinivalue_line("markers", "slow: tests that take noticeable time")


class FakeCatalogClient(CatalogClient):
    """In-memory catalog that records every query it receives."""

    def __init__(
        self,
        game: Game,
        sets: Sequence[CanonicalSet] = (),
        by_id: Optional[Dict[str, Candidate]] = None,
        by_set: Optional[Dict[str, List[Candidate]]] = None,
        by_name: Optional[Dict[str, List[Candidate]]] = None,
        by_text: Optional[Dict[str, List[Candidate]]] = None,
        details: Optional[Dict[str, CardDetail]] = None,
        cache: Optional[CacheManager] = None,
    ):
        super().__init__(cache=cache)
        self.game = game
        self.sets = list(sets)
        self.by_id = by_id or {}
        self.by_set = by_set or {}
        self.by_name = by_name or {}
        self.by_text = by_text or {}
        self.details = details or {}
        self.calls = []

    def called(self, method: str) -> list:
        return [arg for name, arg in self.calls if name == method]

    async def list_sets(self, language: Language = Language.EN) -> List[CanonicalSet]:
        self.calls.append(("list_sets", language))
        return list(self.sets)

    async def fetch_by_id(self, card_id: str, language: Language = Language.EN) -> Optional[Candidate]:
        self.calls.append(("fetch_by_id", card_id))
        return self.by_id.get(card_id)

    async def fetch_by_set(self, set_code: str, language: Language = Language.EN) -> List[Candidate]:
        self.calls.append(("fetch_by_set", set_code))
        return list(self.by_set.get(set_code, []))

    async def fetch_by_name(self, name: str, language: Language = Language.EN) -> List[Candidate]:
        self.calls.append(("fetch_by_name", name))
        return list(self.by_name.get(name, []))

    async def search_text(self, text: str) -> List[Candidate]:
        self.calls.append(("search_text", text))
        return list(self.by_text.get(text, []))

    async def fetch_detail(self, card_id: str, language: Language = Language.EN) -> Optional[CardDetail]:
        self.calls.append(("fetch_detail", card_id))
        return self.details.get(card_id)


@pytest.fixture
def fake_catalog():
    """Factory for FakeCatalogClient instances."""
    return FakeCatalogClient


@pytest.fixture
def cache_manager():
    return CacheManager(price_ttl_s=3600, metadata_ttl_s=3600)


@pytest.fixture
def pokemon_sets():
    return [
        CanonicalSet("base1", "Base Set", 102, "1999/01/09"),
        CanonicalSet("sv03", "Obsidian Flames", 230, "2023/08/11"),
        CanonicalSet("sv03.5", "151", 207, "2023/09/22"),
        CanonicalSet("sv04.5", "Paldean Fates", 245, "2024/01/26"),
        CanonicalSet("swsh12", "Silver Tempest", 215, "2022/11/11"),
    ]


@pytest.fixture
def yugioh_sets():
    return [
        CanonicalSet("LOB", "Legend of Blue Eyes White Dragon", 126, "2002-03-08"),
        CanonicalSet("MRD", "Metal Raiders", 144, "2002-06-26"),
        CanonicalSet("SDK", "Starter Deck: Kaiba", 50, "2002-03-29"),
    ]


@pytest.fixture
def onepiece_sets():
    return [
        CanonicalSet("OP-01", "Romance Dawn"),
        CanonicalSet("OP-02", "Paramount War"),
        CanonicalSet("ST-01", "Straw Hat Crew"),
    ]


@pytest.fixture
def mtg_sets():
    return [
        CanonicalSet("lea", "Limited Edition Alpha", 295, "1993-08-05"),
        CanonicalSet("dmu", "Dominaria United", 281, "2022-09-09"),
        CanonicalSet("woe", "Wilds of Eldraine", 276, "2023-09-08"),
    ]
