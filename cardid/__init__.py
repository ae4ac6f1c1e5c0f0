"""cardid - identify trading cards from vision guesses and verify them against public catalogs."""

__version__ = "1.0.0"
__author__ = "cardid Team"
__description__ = "Resolve uncertain trading card guesses to catalog-verified identities"

from .app import Services, build_services
from .core.types import CardGuess, CardRef, Game, Language, VerifiedIdentity
from .orchestrator import ResolutionOrchestrator
from .search import search_cards
from .utils.config import settings
from .utils.log import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__description__",
    # Core components
    "configure_logging",
    "get_logger",
    "settings",
    "build_services",
    "Services",
    "ResolutionOrchestrator",
    "search_cards",
    "CardGuess",
    "CardRef",
    "Game",
    "Language",
    "VerifiedIdentity",
]
