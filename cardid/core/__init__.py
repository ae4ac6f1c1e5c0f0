"""Core data types and constants."""

from .types import (
    CanonicalSet,
    Candidate,
    CardDetail,
    CardGuess,
    CardRef,
    CollectionValue,
    Game,
    Language,
    LookupQuery,
    PriceQuote,
    SearchHit,
    VerifiedIdentity,
)

__all__ = [
    "CanonicalSet",
    "Candidate",
    "CardDetail",
    "CardGuess",
    "CardRef",
    "CollectionValue",
    "Game",
    "Language",
    "LookupQuery",
    "PriceQuote",
    "SearchHit",
    "VerifiedIdentity",
]
