"""Guess -> set resolution -> verification, with one corrective oracle retry."""

import asyncio
from dataclasses import replace
from typing import Awaitable, Mapping, Optional, TypeVar

from .core.types import CardGuess, Game, LookupQuery, VerifiedIdentity
from .match.normalize import clean_collector_number
from .oracle.base import VisionOracle
from .sets.directory import SetDirectory
from .utils.config import settings
from .utils.error_handler import CardNotIdentifiedError, ConfigurationError, OracleError
from .utils.log import LoggerMixin
from .verify.base import CardVerifier

T = TypeVar("T")


class _Deadline:
    """Remaining time for one request; None means unbounded."""

    def __init__(self, timeout: Optional[float]):
        loop = asyncio.get_running_loop()
        self._loop = loop
        self._expires_at = loop.time() + timeout if timeout is not None else None

    def remaining(self) -> Optional[float]:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._loop.time())

    async def run(self, awaitable: Awaitable[T]) -> T:
        # wait_for cancels the awaitable, and with it its in-flight catalog calls, on expiry
        return await asyncio.wait_for(awaitable, self.remaining())


class ResolutionOrchestrator(LoggerMixin):
    def __init__(
        self,
        set_directory: SetDirectory,
        verifiers: Mapping[Game, CardVerifier],
        oracle: Optional[VisionOracle] = None,
        max_retries: Optional[int] = None,
    ):
        self.set_directory = set_directory
        self.verifiers = verifiers
        self.oracle = oracle
        self.max_retries = settings.MAX_ORACLE_RETRIES if max_retries is None else max_retries

    async def build_query(self, guess: CardGuess) -> LookupQuery:
        resolved = await self.set_directory.resolve_set_id(guess.game, guess.set_id, guess.set_name, guess.language)
        if resolved and resolved != guess.set_id:
            self.logger.info("Set resolved", game=guess.game.value, guessed=guess.set_id, resolved=resolved)
        return LookupQuery(
            game=guess.game,
            name=guess.name,
            set_code=resolved or guess.set_id,
            original_set_id=guess.set_id,
            number=clean_collector_number(guess.card_number),
            rarity=guess.rarity,
            language=guess.language,
        )

    async def _resolve(self, guess: CardGuess, attempts: int) -> VerifiedIdentity:
        verifier = self.verifiers.get(guess.game)
        if verifier is None:
            raise ConfigurationError(f"No verifier configured for {guess.game.value}")

        query = await self.build_query(guess)
        identity = await verifier.verify(query)

        set_name = identity.set_name or guess.set_name
        if identity.verified and identity.set_code:
            set_name = await self.set_directory.display_name(guess.game, identity.set_code, guess.language) or set_name
        return replace(identity, set_name=set_name, attempts=attempts)

    async def verify_guess(self, guess: CardGuess) -> VerifiedIdentity:
        """One resolution pass over a known guess, no oracle involved."""
        return await self._resolve(guess, attempts=1)

    def _unverified(self, guess: CardGuess, attempts: int) -> VerifiedIdentity:
        return VerifiedIdentity(
            name=guess.name,
            card_id=None,
            set_code=guess.set_id,
            verified=False,
            game=guess.game,
            set_name=guess.set_name,
            attempts=attempts,
        )

    async def _resolve_within(self, deadline: _Deadline, guess: CardGuess, attempts: int) -> VerifiedIdentity:
        try:
            return await deadline.run(self._resolve(guess, attempts))
        except asyncio.TimeoutError:
            self.logger.warning("Verification deadline expired", game=guess.game.value, name=guess.name, attempts=attempts)
            return self._unverified(guess, attempts)

    async def identify_card(self, image: bytes, timeout: Optional[float] = None) -> VerifiedIdentity:
        """Identify a scanned card; unverified results are returned, not raised."""
        if self.oracle is None:
            raise ConfigurationError("No vision oracle configured")

        context = self.log_start("identify_card", image_bytes=len(image), timeout=timeout)
        deadline = _Deadline(timeout)

        try:
            guess = await deadline.run(self.oracle.identify(image))
        except asyncio.TimeoutError as e:
            self.log_error(context, e)
            raise CardNotIdentifiedError("Timed out waiting for the vision oracle", details={"timeout": timeout}) from e
        except OracleError as e:
            self.log_error(context, e)
            raise CardNotIdentifiedError("Could not identify card", details={"reason": e.message, **e.details}) from e

        identity = await self._resolve_within(deadline, guess, attempts=1)
        if identity.verified or self.max_retries < 1:
            self.log_success(context, verified=identity.verified, card_id=identity.card_id, attempts=identity.attempts)
            return identity

        self.logger.info("Verification failed, asking oracle to look again", name=guess.name, set_id=guess.set_id, number=guess.card_number)
        try:
            corrected = await deadline.run(self.oracle.reidentify(image, guess, identity))
        except (OracleError, asyncio.TimeoutError) as e:
            self.logger.warning("Corrective oracle call failed", error=str(e), error_type=type(e).__name__)
            self.log_success(context, verified=False, card_id=None, attempts=identity.attempts)
            return identity

        identity = await self._resolve_within(deadline, corrected, attempts=2)
        self.log_success(context, verified=identity.verified, card_id=identity.card_id, attempts=identity.attempts)
        return identity
