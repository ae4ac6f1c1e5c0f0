"""Tests for the catalog clients: HTTP backoff and per-catalog payload mapping."""

import asyncio
from unittest.mock import AsyncMock, MagicMock, patch

import aiohttp
import pytest

from cardid.catalogs import build_clients
from cardid.catalogs.base import parse_price
from cardid.catalogs.optcg import OPTCGClient
from cardid.catalogs.scryfall import ScryfallClient
from cardid.catalogs.tcgdex import TCGdexClient, _first_price, set_code_from_card_id
from cardid.catalogs.ygoprodeck import YGOProDeckClient, split_printing_code
from cardid.core.constants import BACKOFF_S
from cardid.core.types import Game, Language
from cardid.utils.error_handler import CatalogError


def _response(status, payload=None, json_error=None):
    response = MagicMock()
    response.status = status
    response.json = AsyncMock(return_value=payload, side_effect=json_error)
    ctx = MagicMock()
    ctx.__aenter__ = AsyncMock(return_value=response)
    ctx.__aexit__ = AsyncMock(return_value=None)
    return ctx


def _session(*responses):
    session = MagicMock()
    session.closed = False
    session.get.side_effect = list(responses)
    return session


DARK_MAGICIAN = {
    "id": 46986414,
    "name": "Dark Magician",
    "card_sets": [
        {"set_name": "Legend of Blue Eyes White Dragon", "set_code": "LOB-EN005", "set_rarity": "Ultra Rare", "set_price": "45.00"},
        {"set_name": "Starter Deck: Yugi", "set_code": "SDY-006", "set_rarity": "Ultra Rare", "set_price": "3.10"},
    ],
    "card_images": [{"image_url": "https://images.ygoprodeck.com/images/cards/46986414.jpg"}],
    "card_prices": [{"tcgplayer_price": "0.25"}],
}


class TestRequestBackoff:
    """Test the shared request/backoff plumbing."""

    @pytest.mark.asyncio
    async def test_429_then_200(self):
        client = TCGdexClient(min_request_interval=0)
        client.session = _session(_response(429), _response(200, {"ok": True}))

        with patch("cardid.catalogs.base.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await client._get_json("https://example/cards")

        assert result == {"ok": True}
        assert client.session.get.call_count == 2
        mock_sleep.assert_awaited_once_with(BACKOFF_S[0])

    @pytest.mark.asyncio
    async def test_gives_up_after_backoff_schedule(self):
        client = TCGdexClient(min_request_interval=0)
        client.session = _session(*[_response(503) for _ in range(len(BACKOFF_S) + 1)])

        with patch("cardid.catalogs.base.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = await client._get_json("https://example/cards")

        assert result is None
        assert client.session.get.call_count == len(BACKOFF_S) + 1
        assert [c.args[0] for c in mock_sleep.await_args_list] == BACKOFF_S

    @pytest.mark.asyncio
    async def test_404_is_not_retried(self):
        client = TCGdexClient(min_request_interval=0)
        client.session = _session(_response(404))

        with pytest.raises(CatalogError) as exc_info:
            await client._request_with_backoff("https://example/cards/nope")

        assert exc_info.value.status == 404
        assert client.session.get.call_count == 1

    @pytest.mark.asyncio
    async def test_transport_error_is_retried(self):
        client = TCGdexClient(min_request_interval=0)
        client.session = _session(aiohttp.ClientConnectionError("reset"), _response(200, [1, 2]))

        with patch("cardid.catalogs.base.asyncio.sleep", new_callable=AsyncMock):
            result = await client._get_json("https://example/sets")

        assert result == [1, 2]

    @pytest.mark.asyncio
    async def test_malformed_json_becomes_none(self):
        client = TCGdexClient(min_request_interval=0)
        client.session = _session(_response(200, json_error=ValueError("Expecting value")))

        assert await client._get_json("https://example/cards") is None

    @pytest.mark.asyncio
    async def test_close_resets_session(self):
        client = TCGdexClient()
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()
        client.session = session

        await client.close()

        session.close.assert_awaited_once()
        assert client.session is None


class TestRateLimit:
    """Test request spacing within one catalog."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_are_spaced(self):
        client = ScryfallClient(min_request_interval=0.2)
        loop = asyncio.get_running_loop()
        released = []

        async def request():
            await client._rate_limit()
            released.append(loop.time())

        await asyncio.gather(*[request() for _ in range(5)])

        released.sort()
        gaps = [b - a for a, b in zip(released, released[1:])]
        assert released[-1] - released[0] >= 0.72
        assert all(gap >= 0.18 for gap in gaps)

    @pytest.mark.asyncio
    async def test_zero_interval_does_not_sleep(self):
        client = ScryfallClient(min_request_interval=0)

        with patch("cardid.catalogs.base.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            await asyncio.gather(*[client._rate_limit() for _ in range(3)])

        mock_sleep.assert_not_awaited()


class TestHelpers:
    """Test small parsing helpers."""

    @pytest.mark.parametrize("value,expected", [
        ("12.50", 12.5),
        (3, 3.0),
        ("0.00", None),
        ("", None),
        (None, None),
        ("n/a", None),
    ])
    def test_parse_price(self, value, expected):
        assert parse_price(value) == expected

    def test_set_code_from_card_id(self):
        assert set_code_from_card_id("sv03.5-198") == "sv03.5"
        assert set_code_from_card_id("nodash", "fallback") == "fallback"

    def test_split_printing_code(self):
        assert split_printing_code("LOB-EN005") == ("LOB", "EN005")
        assert split_printing_code("LOB") == ("LOB", "")

    def test_first_price_prefers_tcgplayer(self):
        pricing = {"tcgplayer": {"normal": {"midPrice": 2.0}}, "cardmarket": {"trend": 1.5}}
        assert _first_price(pricing) == (2.0, "USD")

    def test_first_price_falls_back_to_cardmarket(self):
        assert _first_price({"cardmarket": {"trend": 1.5}}) == (1.5, "EUR")
        assert _first_price(None) == (None, "USD")

    def test_build_clients_shares_cache(self, cache_manager):
        clients = build_clients(cache_manager)
        assert set(clients) == set(Game)
        assert all(c.cache is cache_manager for c in clients.values())
        assert clients[Game.MTG].game is Game.MTG


class TestTCGdexClient:
    """Test TCGdex payload mapping."""

    @pytest.mark.asyncio
    async def test_fetch_by_id(self):
        client = TCGdexClient()
        payload = {
            "id": "sv03.5-198",
            "localId": "198",
            "name": "Pikachu ex",
            "rarity": "Special illustration rare",
            "set": {"id": "sv03.5", "name": "151"},
        }
        with patch.object(client, "_get_json", new=AsyncMock(return_value=payload)) as mock_get:
            card = await client.fetch_by_id("sv03.5-198")

        mock_get.assert_awaited_once_with("https://api.tcgdex.net/v2/en/cards/sv03.5-198")
        assert card.card_id == "sv03.5-198"
        assert card.set_code == "sv03.5"
        assert card.number == "198"

    @pytest.mark.asyncio
    async def test_language_in_url(self):
        client = TCGdexClient()
        with patch.object(client, "_get_json", new=AsyncMock(return_value=None)) as mock_get:
            assert await client.fetch_by_id("SV2a-001", Language.JA) is None

        mock_get.assert_awaited_once_with("https://api.tcgdex.net/v2/ja/cards/SV2a-001")

    @pytest.mark.asyncio
    async def test_fetch_by_set(self):
        client = TCGdexClient()
        payload = {
            "id": "sv03.5",
            "releaseDate": "2023-09-22",
            "cards": [
                {"id": "sv03.5-025", "localId": "025", "name": "Pikachu"},
                {"id": "sv03.5-198", "localId": "198", "name": "Pikachu ex"},
            ],
        }
        with patch.object(client, "_get_json", new=AsyncMock(return_value=payload)):
            cards = await client.fetch_by_set("sv03.5")

        assert [c.card_id for c in cards] == ["sv03.5-025", "sv03.5-198"]
        assert all(c.set_code == "sv03.5" and c.release_date == "2023-09-22" for c in cards)

    @pytest.mark.asyncio
    async def test_fetch_by_name_derives_set_from_id(self):
        client = TCGdexClient()
        payload = [{"id": "swsh12-050", "localId": "050", "name": "Pikachu"}]
        with patch.object(client, "_get_json", new=AsyncMock(return_value=payload)) as mock_get:
            cards = await client.fetch_by_name("Pikachu")

        assert mock_get.await_args.kwargs["params"] == {"name": "Pikachu"}
        assert cards[0].set_code == "swsh12"

    @pytest.mark.asyncio
    async def test_unreachable_catalog_gives_empty_results(self):
        client = TCGdexClient()
        with patch.object(client, "_get_json", new=AsyncMock(return_value=None)):
            assert await client.fetch_by_name("Pikachu") == []
            assert await client.fetch_by_set("sv03.5") == []
            assert await client.list_sets() == []
            assert await client.fetch_detail("sv03.5-198") is None

    @pytest.mark.asyncio
    async def test_list_sets_dedupes(self):
        client = TCGdexClient()
        payload = [
            {"id": "base1", "name": "Base Set", "cardCount": {"total": 102}},
            {"id": "base1", "name": "Base Set (duplicate)"},
            {"name": "no id"},
        ]
        with patch.object(client, "_get_json", new=AsyncMock(return_value=payload)):
            sets = await client.list_sets()

        assert len(sets) == 1
        assert sets[0].display_name == "Base Set"
        assert sets[0].total_card_count == 102

    @pytest.mark.asyncio
    async def test_fetch_detail(self):
        client = TCGdexClient()
        payload = {
            "id": "base1-4",
            "localId": "4",
            "name": "Charizard",
            "set": {"id": "base1", "name": "Base Set"},
            "image": "https://assets.tcgdex.net/en/base/base1/4",
            "pricing": {"tcgplayer": {"holofoil": {"marketPrice": 350.5}}},
        }
        with patch.object(client, "_get_json", new=AsyncMock(return_value=payload)):
            detail = await client.fetch_detail("base1-4")

        assert detail.price == 350.5
        assert detail.price_currency == "USD"
        assert detail.set_name == "Base Set"
        assert detail.image_url == "https://assets.tcgdex.net/en/base/base1/4/high.png"


class TestYGOProDeckClient:
    """Test YGOProDeck payload mapping."""

    @pytest.mark.asyncio
    async def test_fetch_by_name_explodes_printings(self):
        client = YGOProDeckClient()
        with patch.object(client, "_get_json", new=AsyncMock(return_value={"data": [DARK_MAGICIAN]})):
            cards = await client.fetch_by_name("Dark Magician")

        assert [c.card_id for c in cards] == ["LOB-EN005", "SDY-006"]
        first = cards[0]
        assert first.set_code == "LOB"
        assert first.number == "EN005"
        assert first.rarity == "Ultra Rare"
        assert first.extras["rarities"] == ("Ultra Rare",)
        assert first.extras["konami_id"] == 46986414

    @pytest.mark.asyncio
    async def test_fetch_by_name_falls_back_to_fuzzy(self):
        client = YGOProDeckClient()
        mock_get = AsyncMock(side_effect=[None, {"data": [DARK_MAGICIAN]}])
        with patch.object(client, "_get_json", new=mock_get):
            cards = await client.fetch_by_name("Dark Magi")

        assert mock_get.await_args_list[0].kwargs["params"] == {"name": "Dark Magi"}
        assert mock_get.await_args_list[1].kwargs["params"] == {"fname": "Dark Magi"}
        assert len(cards) == 2

    @pytest.mark.asyncio
    async def test_fetch_by_set_uses_set_name(self):
        client = YGOProDeckClient()

        async def fake_get(url, params=None):
            if url.endswith("cardsets.php"):
                return [{"set_name": "Legend of Blue Eyes White Dragon", "set_code": "LOB", "num_of_cards": 126}]
            assert params == {"cardset": "Legend of Blue Eyes White Dragon"}
            return {"data": [DARK_MAGICIAN]}

        with patch.object(client, "_get_json", new=AsyncMock(side_effect=fake_get)):
            cards = await client.fetch_by_set("LOB")

        assert [c.card_id for c in cards] == ["LOB-EN005"]

    @pytest.mark.asyncio
    async def test_fetch_by_id(self):
        client = YGOProDeckClient()
        info = {
            "id": 46986414,
            "name": "Dark Magician",
            "set_name": "Legend of Blue Eyes White Dragon",
            "set_code": "LOB-EN005",
            "set_rarity": "Ultra Rare",
            "set_price": "45.00",
        }
        with patch.object(client, "_get_json", new=AsyncMock(return_value=info)) as mock_get:
            card = await client.fetch_by_id("LOB-EN005")

        assert mock_get.await_args.kwargs["params"] == {"setcode": "LOB-EN005"}
        assert card.name == "Dark Magician"
        assert card.set_code == "LOB"

    @pytest.mark.asyncio
    async def test_fetch_detail(self):
        client = YGOProDeckClient()
        info = {"id": 46986414, "name": "Dark Magician", "set_code": "LOB-EN005", "set_rarity": "Ultra Rare", "set_price": "0.00"}
        with patch.object(client, "_get_json", new=AsyncMock(side_effect=[info, {"data": [DARK_MAGICIAN]}])):
            detail = await client.fetch_detail("LOB-EN005")

        assert detail.price == 0.25
        assert detail.image_url == "https://images.ygoprodeck.com/images/cards/46986414.jpg"


class TestOPTCGClient:
    """Test OPTCG payload mapping."""

    @pytest.mark.asyncio
    async def test_fetch_by_id_falls_back_to_deck_endpoint(self):
        client = OPTCGClient()
        deck_card = [{"card_set_id": "ST01-001", "card_name": "Monkey.D.Luffy", "set_id": "ST-01", "rarity": "L"}]
        mock_get = AsyncMock(side_effect=[[], deck_card])
        with patch.object(client, "_get_json", new=mock_get):
            card = await client.fetch_by_id("ST01-001")

        assert mock_get.await_args_list[0].args[0] == "https://optcgapi.com/api/sets/card/ST01-001/"
        assert mock_get.await_args_list[1].args[0] == "https://optcgapi.com/api/decks/card/ST01-001/"
        assert card.set_code == "ST-01"
        assert card.number == "001"

    @pytest.mark.asyncio
    async def test_fetch_by_set_dedupes_alternate_arts(self):
        client = OPTCGClient()
        payload = [
            {"card_set_id": "OP01-001", "card_name": "Roronoa Zoro", "set_id": "OP-01"},
            {"card_set_id": "OP01-001", "card_name": "Roronoa Zoro", "set_id": "OP-01"},
            {"card_set_id": "OP01-002", "card_name": "Trafalgar Law", "set_id": "OP-01"},
        ]
        with patch.object(client, "_get_json", new=AsyncMock(return_value=payload)) as mock_get:
            cards = await client.fetch_by_set("OP-01")

        mock_get.assert_awaited_once_with("https://optcgapi.com/api/sets/OP-01/")
        assert [c.card_id for c in cards] == ["OP01-001", "OP01-002"]

    @pytest.mark.asyncio
    async def test_starter_decks_use_deck_endpoint(self):
        client = OPTCGClient()
        with patch.object(client, "_get_json", new=AsyncMock(return_value=[])) as mock_get:
            await client.fetch_by_set("ST-01")

        mock_get.assert_awaited_once_with("https://optcgapi.com/api/decks/ST-01/")

    @pytest.mark.asyncio
    async def test_list_sets_merges_boosters_and_decks(self):
        client = OPTCGClient()

        async def fake_get(url, params=None):
            if url.endswith("allSets/"):
                return [{"set_id": "OP-01", "set_name": "Romance Dawn"}]
            return [{"structure_deck_id": "ST-01", "structure_deck_name": "Straw Hat Crew"}]

        with patch.object(client, "_get_json", new=AsyncMock(side_effect=fake_get)):
            sets = await client.list_sets()

        assert [s.code for s in sets] == ["OP-01", "ST-01"]

    @pytest.mark.asyncio
    async def test_fetch_detail_inventory_price_fallback(self):
        client = OPTCGClient()
        card = [{"card_set_id": "OP01-001", "card_name": "Roronoa Zoro", "set_id": "OP-01", "market_price": None, "inventory_price": 1.75}]
        with patch.object(client, "_get_json", new=AsyncMock(return_value=card)):
            detail = await client.fetch_detail("OP01-001")

        assert detail.price == 1.75


class TestScryfallClient:
    """Test Scryfall payload mapping and pagination."""

    SHEOLDRED = {
        "id": "d67be074-cdd4-41d9-ac89-0a0456c4e4b2",
        "name": "Sheoldred, the Apocalypse",
        "set": "dmu",
        "set_name": "Dominaria United",
        "collector_number": "107",
        "rarity": "mythic",
        "released_at": "2022-09-09",
        "prices": {"usd": None, "usd_foil": "95.10"},
        "image_uris": {"large": "https://cards.scryfall.io/large/front/d/6/d67be074.jpg"},
    }

    @pytest.mark.asyncio
    async def test_fetch_by_id_set_and_number(self):
        client = ScryfallClient()
        with patch.object(client, "_get_json", new=AsyncMock(return_value=self.SHEOLDRED)) as mock_get:
            card = await client.fetch_by_id("DMU/107")

        mock_get.assert_awaited_once_with("https://api.scryfall.com/cards/dmu/107")
        assert card.card_id == self.SHEOLDRED["id"]
        assert card.set_code == "dmu"
        assert card.number == "107"
        assert card.release_date == "2022-09-09"

    @pytest.mark.asyncio
    async def test_error_object_is_no_card(self):
        client = ScryfallClient()
        error = {"object": "error", "code": "not_found", "status": 404}
        with patch.object(client, "_get_json", new=AsyncMock(return_value=error)):
            assert await client.fetch_by_id("dmu/999") is None

    @pytest.mark.asyncio
    async def test_fetch_by_name_is_exact_and_newest_first(self):
        client = ScryfallClient()
        page = {"data": [self.SHEOLDRED], "has_more": False}
        with patch.object(client, "_get_json", new=AsyncMock(return_value=page)) as mock_get:
            cards = await client.fetch_by_name("Sheoldred, the Apocalypse")

        params = mock_get.await_args.kwargs["params"]
        assert params["q"] == '!"Sheoldred, the Apocalypse"'
        assert params["unique"] == "prints"
        assert params["order"] == "released"
        assert params["dir"] == "desc"
        assert len(cards) == 1

    @pytest.mark.asyncio
    async def test_search_follows_next_page(self):
        client = ScryfallClient()
        second = dict(self.SHEOLDRED, id="other-id", collector_number="415")
        pages = [
            {"data": [self.SHEOLDRED], "has_more": True, "next_page": "https://api.scryfall.com/cards/search?page=2"},
            {"data": [second], "has_more": False},
        ]
        mock_get = AsyncMock(side_effect=pages)
        with patch.object(client, "_get_json", new=mock_get), \
             patch("cardid.catalogs.scryfall.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            cards = await client.fetch_by_set("dmu")

        assert [c.number for c in cards] == ["107", "415"]
        assert mock_get.await_args_list[1].args[0] == "https://api.scryfall.com/cards/search?page=2"
        assert mock_get.await_args_list[1].kwargs["params"] is None
        mock_sleep.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_search_stops_at_page_cap(self):
        client = ScryfallClient(max_pages=2)
        page = {"data": [self.SHEOLDRED], "has_more": True, "next_page": "https://api.scryfall.com/cards/search?page=n"}
        mock_get = AsyncMock(return_value=page)
        with patch.object(client, "_get_json", new=mock_get), \
             patch("cardid.catalogs.scryfall.asyncio.sleep", new_callable=AsyncMock):
            cards = await client.search_text("sheoldred")

        assert mock_get.await_count == 2
        assert len(cards) == 2

    @pytest.mark.asyncio
    async def test_fetch_detail_foil_price_fallback(self):
        client = ScryfallClient()
        with patch.object(client, "_get_json", new=AsyncMock(return_value=self.SHEOLDRED)):
            detail = await client.fetch_detail(self.SHEOLDRED["id"])

        assert detail.price == 95.10
        assert detail.set_name == "Dominaria United"
        assert detail.image_url.endswith("d67be074.jpg")
