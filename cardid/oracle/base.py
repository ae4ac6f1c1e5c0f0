from abc import ABC, abstractmethod

from ..core.types import CardGuess, VerifiedIdentity


class VisionOracle(ABC):
    """Turns a card photo into a best-guess CardGuess. Implementations raise OracleError."""

    @abstractmethod
    async def identify(self, image: bytes) -> CardGuess:
        """First look at the image."""

    @abstractmethod
    async def reidentify(self, image: bytes, previous: CardGuess, identity: VerifiedIdentity) -> CardGuess:
        """Second look, told which guess the catalogs could not confirm."""
