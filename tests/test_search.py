"""Tests for cross-catalog name search."""

import pytest

from cardid.core.constants import SEARCH_LIMIT_PER_GAME, SEARCH_LIMIT_TOTAL
from cardid.core.types import Candidate, Game
from cardid.search import search_cards


def _ygo_printing(card_id, konami_id):
    return Candidate("Dark Magician", card_id, card_id.split("-")[0], None, extras={"konami_id": konami_id})


@pytest.fixture
def clients(fake_catalog):
    return {
        Game.POKEMON: fake_catalog(Game.POKEMON, by_name={"Dark Magician": [
            Candidate("Dark Magician Girl Cosplay", "xx-1", "xx", "1", extras={"image": "https://assets.tcgdex.net/en/xx/1"}),
        ]}),
        Game.YUGIOH: fake_catalog(Game.YUGIOH, by_name={"Dark Magician": [
            _ygo_printing("LOB-EN005", 46986414),
            _ygo_printing("SDY-006", 46986414),
            Candidate("Dark Magician Girl", "MFC-000", "MFC", "000", extras={"konami_id": 38033121}),
        ]}),
        Game.ONEPIECE: fake_catalog(Game.ONEPIECE),
        Game.MTG: fake_catalog(Game.MTG),
    }


class TestSearchCards:
    """Test fan-out, ranking, de-duplication and caps."""

    @pytest.mark.asyncio
    async def test_ranked_by_similarity(self, clients):
        hits = await search_cards(clients, "Dark Magician")

        assert hits[0].name == "Dark Magician"
        assert hits[0].game is Game.YUGIOH
        scores = [h.score for h in hits]
        assert scores == sorted(scores, reverse=True)

    @pytest.mark.asyncio
    async def test_yugioh_printings_collapse(self, clients):
        hits = await search_cards(clients, "Dark Magician", game=Game.YUGIOH)

        assert [h.card_id for h in hits] == ["LOB-EN005", "MFC-000"]

    @pytest.mark.asyncio
    async def test_single_game_only_queries_that_catalog(self, clients):
        await search_cards(clients, "Dark Magician", game=Game.YUGIOH)

        assert clients[Game.YUGIOH].called("fetch_by_name") == ["Dark Magician"]
        assert clients[Game.POKEMON].called("fetch_by_name") == []

    @pytest.mark.asyncio
    async def test_image_urls(self, clients):
        hits = await search_cards(clients, "Dark Magician", game=Game.POKEMON)

        assert hits[0].image_url == "https://assets.tcgdex.net/en/xx/1/low.png"

    @pytest.mark.asyncio
    async def test_failed_catalog_is_skipped(self, clients, fake_catalog):
        class Down(fake_catalog):
            async def fetch_by_name(self, name, language=None):
                raise RuntimeError("down")

        clients[Game.MTG] = Down(Game.MTG)

        hits = await search_cards(clients, "Dark Magician")

        assert {h.game for h in hits} == {Game.POKEMON, Game.YUGIOH}

    @pytest.mark.asyncio
    async def test_caps(self, fake_catalog):
        many = [Candidate(f"Island {i}", f"id-{i}", "x", str(i)) for i in range(50)]
        clients = {game: fake_catalog(game, by_name={"Island": many}) for game in Game}

        all_games = await search_cards(clients, "Island")
        one_game = await search_cards(clients, "Island", game=Game.MTG)
        limited = await search_cards(clients, "Island", limit=5)

        assert len(all_games) == min(SEARCH_LIMIT_TOTAL, SEARCH_LIMIT_PER_GAME * len(Game))
        for game in Game:
            assert sum(1 for h in all_games if h.game is game) <= SEARCH_LIMIT_PER_GAME
        assert len(one_game) == 30
        assert len(limited) == 5

    @pytest.mark.asyncio
    @pytest.mark.parametrize("query", ["", "   ", None])
    async def test_empty_query(self, clients, query):
        with pytest.raises(ValueError):
            await search_cards(clients, query)

    @pytest.mark.asyncio
    async def test_game_without_client(self, clients):
        del clients[Game.MTG]
        assert await search_cards(clients, "Dark Magician", game=Game.MTG) == []
