"""Fallback ladder shared by the per-game card verifiers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

from rapidfuzz import fuzz

from ..catalogs.base import CatalogClient
from ..core.constants import NUMBER_PAD_WIDTH, NUMBER_PROXIMITY_LIMIT
from ..core.types import Candidate, Game, LookupQuery, VerifiedIdentity
from ..match.normalize import drop_last_word, id_suffix, names_match, number_variants, parse_number
from ..utils.log import LoggerMixin

DIRECT_ID = "direct_id"
IN_SET = "in_set"
GLOBAL_NAME = "global_name"
PARTIAL_NAME = "partial_name"
NUMBER_ONLY = "number_only"


@dataclass(frozen=True)
class StepOutcome:
    """What one ladder step found: an accepted match, a number-only fallback, or neither."""
    strategy: str
    match: Optional[Candidate] = None
    fallback: Optional[Candidate] = None


Step = Callable[[LookupQuery], Awaitable[StepOutcome]]


class CardVerifier(LoggerMixin, ABC):
    """Runs the fallback ladder for one game against its catalog client.

    Steps, first accepted match wins:
        1. direct_id     exact catalog ids built from set code and number
        2. in_set        name matches inside the resolved set
        3. global_name   name search across all sets
        4. partial_name  same search without the last word
        5. extra_steps   game-specific
        6. number_only   a step-1 hit whose name disagreed with the guess
    """

    game: Game

    def __init__(self, client: CatalogClient):
        self.client = client

    # -- per-game hooks -------------------------------------------------

    @abstractmethod
    def direct_ids(self, query: LookupQuery) -> List[str]:
        """Catalog-native ids to probe, in order."""

    def variants(self, query: LookupQuery) -> List[str]:
        return number_variants(query.number, NUMBER_PAD_WIDTH)

    def set_codes(self, query: LookupQuery) -> List[str]:
        """Set spellings the in-set search tries."""
        return [query.set_code] if query.set_code else []

    def set_key(self, code: Optional[str]) -> str:
        return (code or "").lower()

    def candidate_number(self, candidate: Candidate) -> str:
        return candidate.number or ""

    def disambiguate(self, query: LookupQuery, matches: List[Candidate]) -> Optional[Candidate]:
        """Pick among several same-set name matches; None defers to the best name ratio."""
        variants = self.variants(query)
        for c in matches:
            if self.candidate_number(c) in variants:
                return c
        if query.number:
            for c in matches:
                if query.number in id_suffix(c.card_id):
                    return c
        return None

    def default_global_pick(self, candidates: List[Candidate]) -> Candidate:
        return candidates[0]

    def extra_steps(self) -> List[Step]:
        return []

    # -- helpers --------------------------------------------------------

    def in_guessed_set(self, query: LookupQuery, candidate: Candidate) -> bool:
        wanted = {self.set_key(code) for code in (query.set_code, query.original_set_id) if code}
        return self.set_key(candidate.set_code) in wanted

    def number_matches(self, query: LookupQuery, candidate: Candidate) -> bool:
        number = self.candidate_number(candidate)
        return bool(number) and number in self.variants(query)

    def nearest_number(self, query: LookupQuery, candidates: List[Candidate]) -> Optional[Candidate]:
        target = parse_number(query.number)
        if target is None:
            return None
        best, best_distance = None, None
        for c in candidates:
            n = parse_number(self.candidate_number(c))
            if n is None:
                continue
            distance = abs(n - target)
            if best_distance is None or distance < best_distance:
                best, best_distance = c, distance
        if best is not None and best_distance <= NUMBER_PROXIMITY_LIMIT:
            return best
        return None

    def best_name_ratio(self, query: LookupQuery, candidates: List[Candidate]) -> Candidate:
        return max(candidates, key=lambda c: fuzz.ratio(query.name.lower(), c.name.lower()))

    def named(self, query: LookupQuery, candidates: List[Candidate]) -> List[Candidate]:
        """Candidates whose name matches the guess, or all of them when none does."""
        matching = [c for c in candidates if names_match(query.name, c.name)]
        return matching or candidates

    # -- ladder steps ---------------------------------------------------

    async def direct_id(self, query: LookupQuery) -> StepOutcome:
        fallback = None
        for card_id in self.direct_ids(query):
            hit = await self.client.fetch_by_id(card_id, query.language)
            if hit is None:
                continue
            if names_match(query.name, hit.name):
                return StepOutcome(DIRECT_ID, match=hit, fallback=fallback)
            self.logger.debug("Direct id hit with different name", card_id=card_id, found=hit.name, guessed=query.name)
            if fallback is None:
                fallback = hit
        return StepOutcome(DIRECT_ID, fallback=fallback)

    async def in_set(self, query: LookupQuery) -> StepOutcome:
        for code in self.set_codes(query):
            candidates = await self.client.fetch_by_set(code, query.language)
            matches = [c for c in candidates if names_match(query.name, c.name)]
            if len(matches) == 1:
                return StepOutcome(IN_SET, match=matches[0])
            if matches:
                picked = self.disambiguate(query, matches) or self.best_name_ratio(query, matches)
                return StepOutcome(IN_SET, match=picked)
        return StepOutcome(IN_SET)

    def pick_global(self, query: LookupQuery, candidates: List[Candidate]) -> Candidate:
        in_set = [c for c in candidates if self.in_guessed_set(query, c)]
        if in_set:
            return next((c for c in in_set if self.number_matches(query, c)), in_set[0])

        by_number = next((c for c in candidates if self.number_matches(query, c)), None)
        if by_number:
            return by_number

        return self.nearest_number(query, candidates) or self.default_global_pick(candidates)

    async def global_name(self, query: LookupQuery) -> StepOutcome:
        candidates = await self.client.fetch_by_name(query.name, query.language)
        if not candidates:
            return StepOutcome(GLOBAL_NAME)
        return StepOutcome(GLOBAL_NAME, match=self.pick_global(query, self.named(query, candidates)))

    async def partial_name(self, query: LookupQuery) -> StepOutcome:
        base_name = drop_last_word(query.name)
        if not base_name:
            return StepOutcome(PARTIAL_NAME)
        candidates = await self.client.fetch_by_name(base_name, query.language)

        in_set = [c for c in candidates if self.in_guessed_set(query, c)]
        if in_set:
            return StepOutcome(PARTIAL_NAME, match=next((c for c in in_set if self.number_matches(query, c)), in_set[0]))
        by_number = next((c for c in candidates if self.number_matches(query, c)), None)
        return StepOutcome(PARTIAL_NAME, match=by_number)

    # -- driver ---------------------------------------------------------

    def steps(self) -> List[Step]:
        return [self.direct_id, self.in_set, self.global_name, self.partial_name, *self.extra_steps()]

    async def verify(self, query: LookupQuery) -> VerifiedIdentity:
        fallback: Optional[Candidate] = None

        for step in self.steps():
            outcome = await step(query)
            if fallback is None:
                fallback = outcome.fallback
            if outcome.match is not None:
                self.logger.info(
                    "Card verified",
                    game=self.game.value,
                    strategy=outcome.strategy,
                    card_id=outcome.match.card_id,
                    name=outcome.match.name,
                )
                return self.identity(query, outcome.match, outcome.strategy)
            self.logger.debug("Ladder step found nothing", game=self.game.value, strategy=outcome.strategy)

        if fallback is not None:
            self.logger.info(
                "Accepting number-only match",
                game=self.game.value,
                card_id=fallback.card_id,
                found=fallback.name,
                guessed=query.name,
            )
            return self.identity(query, fallback, NUMBER_ONLY, low_confidence=True)

        self.logger.info("All strategies failed", game=self.game.value, name=query.name, set_code=query.set_code, number=query.number)
        return VerifiedIdentity(
            name=query.name,
            card_id=None,
            set_code=query.set_code,
            verified=False,
            game=self.game,
        )

    def identity(self, query: LookupQuery, candidate: Candidate, strategy: str, low_confidence: bool = False) -> VerifiedIdentity:
        return VerifiedIdentity(
            name=candidate.name,
            card_id=candidate.card_id,
            set_code=candidate.set_code or query.set_code,
            verified=True,
            game=self.game,
            set_name=candidate.extras.get("set_name"),
            rarity=candidate.rarity,
            strategy=strategy,
            low_confidence=low_confidence,
        )
