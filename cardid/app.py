"""Application wiring: build every service from settings."""

from dataclasses import dataclass
from typing import Dict, Optional

from .catalogs import build_clients
from .catalogs.base import CatalogClient
from .core.types import Game
from .oracle.base import VisionOracle
from .oracle.openai_vision import OpenAIVisionOracle
from .orchestrator import ResolutionOrchestrator
from .pricing.valuation import CollectionValuator
from .sets.directory import SetDirectory
from .store.cache import CacheManager
from .utils.config import Settings, settings as default_settings
from .utils.log import get_logger
from .verify import build_verifiers
from .verify.base import CardVerifier

logger = get_logger(__name__)


@dataclass
class Services:
    settings: Settings
    cache: CacheManager
    clients: Dict[Game, CatalogClient]
    set_directory: SetDirectory
    verifiers: Dict[Game, CardVerifier]
    orchestrator: ResolutionOrchestrator
    valuator: CollectionValuator
    oracle: Optional[VisionOracle] = None

    async def aclose(self) -> None:
        """Close every catalog session."""
        for client in self.clients.values():
            await client.close()


def build_services(settings: Optional[Settings] = None, oracle: Optional[VisionOracle] = None) -> Services:
    """Wire caches, clients, the set directory, verifiers and the orchestrator.

    Without an explicit oracle one is built from OPENAI_API_KEY; when no key is
    set the services still work for everything except identify_card.
    """
    settings = settings or default_settings

    cache = CacheManager(price_ttl_s=settings.price_ttl_s, metadata_ttl_s=settings.metadata_ttl_s)
    clients = build_clients(cache, timeout_s=settings.HTTP_TIMEOUT_S, user_agent=settings.USER_AGENT)
    set_directory = SetDirectory(clients, cache)
    verifiers = build_verifiers(clients)

    if oracle is None and settings.OPENAI_API_KEY:
        oracle = OpenAIVisionOracle(
            api_key=settings.OPENAI_API_KEY,
            model=settings.OPENAI_MODEL,
            base_url=settings.OPENAI_BASE_URL,
        )
    if oracle is None:
        logger.info("No vision oracle configured; identify is unavailable")

    return Services(
        settings=settings,
        cache=cache,
        clients=clients,
        set_directory=set_directory,
        verifiers=verifiers,
        orchestrator=ResolutionOrchestrator(set_directory, verifiers, oracle, settings.MAX_ORACLE_RETRIES),
        valuator=CollectionValuator(clients, cache, settings.PRICE_CONCURRENCY),
        oracle=oracle,
    )
