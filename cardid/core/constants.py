from typing import Final, List

TCGDEX_BASE: Final[str] = "https://api.tcgdex.net/v2"
YGOPRODECK_BASE: Final[str] = "https://db.ygoprodeck.com/api/v7"
OPTCG_BASE: Final[str] = "https://optcgapi.com/api"
SCRYFALL_BASE: Final[str] = "https://api.scryfall.com"

# Collector numbers are zero-padded to this width when building catalog ids
NUMBER_PAD_WIDTH: Final[int] = 3

# Global name search only accepts a nearest-number candidate within this distance
NUMBER_PROXIMITY_LIMIT: Final[int] = 5

# Set names shorter than this (normalized) are never fuzzy-matched
MIN_FUZZY_SET_NAME: Final[int] = 3

RETRYABLE_STATUS: Final[tuple] = (429, 500, 502, 503, 504)
BACKOFF_S: Final[List[float]] = [0.2, 1.0, 3.0]
MIN_REQUEST_INTERVAL_S: Final[float] = 0.1

# Scryfall pagination
SCRYFALL_PAGE_DELAY_S: Final[float] = 0.1
SCRYFALL_MAX_PAGES: Final[int] = 8

SEARCH_LIMIT_PER_GAME: Final[int] = 10
SEARCH_LIMIT_SINGLE_GAME: Final[int] = 30
SEARCH_LIMIT_TOTAL: Final[int] = 30
