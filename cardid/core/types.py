from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from ..utils.error_handler import OracleError


class Game(str, Enum):
    POKEMON = "pokemon"
    YUGIOH = "yugioh"
    ONEPIECE = "onepiece"
    MTG = "mtg"


class Language(str, Enum):
    EN = "en"
    JA = "ja"

    @classmethod
    def coerce(cls, value: Any) -> "Language":
        """Map anything that is not a known language code to English."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str) and value.strip().lower() == "ja":
            return cls.JA
        return cls.EN


@dataclass(frozen=True)
class CardGuess:
    """The vision oracle's unverified best guess at a scanned card."""
    game: Game
    name: str
    set_id: str
    card_number: str
    set_name: Optional[str] = None
    rarity: Optional[str] = None
    language: Language = Language.EN
    estimated_value: float = 0.0

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "CardGuess":
        if not isinstance(payload, Mapping):
            raise OracleError("Oracle payload is not an object", details={"payload": repr(payload)})
        if payload.get("error"):
            raise OracleError(str(payload["error"]), details={"payload": dict(payload)})

        try:
            game = Game(str(payload.get("game", "")).strip().lower())
        except ValueError:
            raise OracleError("Oracle returned an unknown game", details={"game": payload.get("game")})

        name = str(payload.get("name") or "").strip()
        if not name:
            raise OracleError("Oracle returned no card name", details={"payload": dict(payload)})

        try:
            value = float(payload.get("estimatedValue") or 0.0)
        except (TypeError, ValueError):
            value = 0.0

        return cls(
            game=game,
            name=name,
            set_id=str(payload.get("setId") or "").strip(),
            card_number=str(payload.get("cardNumber") or "").strip(),
            set_name=(str(payload["setName"]).strip() or None) if payload.get("setName") else None,
            rarity=(str(payload["rarity"]).strip() or None) if payload.get("rarity") else None,
            language=Language.coerce(payload.get("language")),
            estimated_value=value,
        )


@dataclass(frozen=True)
class LookupQuery:
    """A normalized guess, ready for a card verifier."""
    game: Game
    name: str
    set_code: str
    original_set_id: str
    number: str
    rarity: Optional[str] = None
    language: Language = Language.EN


@dataclass(frozen=True)
class CanonicalSet:
    code: str
    display_name: str
    total_card_count: int = 0
    release_date: Optional[str] = None


@dataclass(frozen=True)
class Candidate:
    name: str
    card_id: str
    set_code: str
    number: Optional[str] = None
    rarity: Optional[str] = None
    release_date: Optional[str] = None
    extras: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VerifiedIdentity:
    name: str
    card_id: Optional[str]
    set_code: Optional[str]
    verified: bool
    game: Optional[Game] = None
    set_name: Optional[str] = None
    rarity: Optional[str] = None
    strategy: Optional[str] = None
    low_confidence: bool = False
    attempts: int = 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "game": self.game.value if self.game else None,
            "name": self.name,
            "cardId": self.card_id,
            "setCode": self.set_code,
            "setName": self.set_name,
            "rarity": self.rarity,
            "verified": self.verified,
            "strategy": self.strategy,
            "lowConfidence": self.low_confidence,
            "attempts": self.attempts,
        }


@dataclass(frozen=True)
class CardDetail:
    game: Game
    card_id: str
    name: str
    set_code: str
    set_name: Optional[str] = None
    number: Optional[str] = None
    rarity: Optional[str] = None
    image_url: Optional[str] = None
    price: Optional[float] = None
    price_currency: str = "USD"


@dataclass(frozen=True)
class CardRef:
    game: Game
    card_id: str


@dataclass(frozen=True)
class PriceQuote:
    game: Game
    card_id: str
    name: str
    price: Optional[float]


@dataclass
class CollectionValue:
    total_value: float
    quotes: List[PriceQuote]

    @property
    def priced_count(self) -> int:
        return sum(1 for q in self.quotes if q.price is not None)


@dataclass(frozen=True)
class SearchHit:
    game: Game
    card_id: str
    name: str
    set_code: str
    score: float
    image_url: Optional[str] = None
