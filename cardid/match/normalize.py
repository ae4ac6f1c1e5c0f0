"""Collector-number cleanup and tolerant card-name matching.

Names read off foil or full-art cards are often partially right (the right
creature with the wrong suffix, or the reverse), so ``names_match`` walks a
ladder of progressively looser comparisons instead of demanding equality.
"""

import re
from typing import List, Optional

# "OP01-001", "ST10-005", "LOB-EN005", "P-001": set code (and YGO region) before the number
SET_PREFIX_PATTERN = re.compile(r"^[A-Za-z]{1,6}\d{0,3}[A-Za-z]?-(?:[A-Za-z]{2}(?=\d))?")
OF_PATTERN = re.compile(r"\s+of\s+", re.IGNORECASE)
LEADING_NUMBER_PATTERN = re.compile(r"^\d+")

VARIANT_SUFFIX_PATTERN = re.compile(r"(?:[\s\-]+(?:ex|gx|v|vmax|vstar))+$")
MEGA_PREFIX_PATTERN = re.compile(r"^(?:mega|m)\s+")
WORD_SPLIT_PATTERN = re.compile(r"[\s\-]+")

MIN_TOKEN_LENGTH = 3
TOKEN_OVERLAP_RATIO = 0.5


def clean_collector_number(raw: Optional[str]) -> str:
    """
    Reduce a printed collector number to the part catalogs index by.

    Examples:
        >>> clean_collector_number("198/165")
        '198'
        >>> clean_collector_number("#25 of 102")
        '25'
        >>> clean_collector_number("OP01-001")
        '001'
    """
    if raw is None:
        return ""
    num = str(raw).strip()
    if "/" in num:
        num = num.split("/")[0].strip()
    num = OF_PATTERN.split(num)[0].strip()
    num = re.sub(r"^#\s*", "", num)

    stripped = SET_PREFIX_PATTERN.sub("", num).strip()
    return stripped or num


def number_variants(number: str, width: int = 3) -> List[str]:
    """As-given, zero-padded and zero-stripped spellings of a collector number."""
    number = (number or "").strip()
    if not number:
        return []
    padded = number.zfill(width)
    unpadded = number.lstrip("0") or "0"

    variants: List[str] = []
    for v in (number, padded, unpadded):
        if v not in variants:
            variants.append(v)
    return variants


def parse_number(value: Optional[str]) -> Optional[int]:
    """Leading integer of a collector number, or None ("TG05" has none)."""
    if not value:
        return None
    match = LEADING_NUMBER_PATTERN.match(str(value).strip())
    return int(match.group(0)) if match else None


def normalize_key(text: Optional[str]) -> str:
    """Casefold and drop everything that is not a letter or digit."""
    if not text:
        return ""
    return "".join(ch for ch in str(text).casefold() if ch.isalnum())


def id_suffix(card_id: str) -> str:
    """Part of a catalog id after its last dash ("LOB-EN005" -> "EN005")."""
    return card_id.rsplit("-", 1)[-1] if card_id else ""


def drop_last_word(name: str) -> Optional[str]:
    words = (name or "").split()
    if len(words) < 2:
        return None
    return " ".join(words[:-1])


def _simplify(text: str) -> str:
    text = "".join(ch if (ch.isalnum() or ch in " -") else " " for ch in text.casefold())
    return " ".join(text.split())


def _strip_variant_tokens(simplified: str) -> str:
    stripped = VARIANT_SUFFIX_PATTERN.sub("", simplified)
    stripped = MEGA_PREFIX_PATTERN.sub("", stripped)
    return normalize_key(stripped)


def _contains_either(a: str, b: str) -> bool:
    return bool(a) and bool(b) and (a in b or b in a)


def _token_overlap(a: str, b: str) -> bool:
    words_a = {w for w in WORD_SPLIT_PATTERN.split(a) if len(w) >= MIN_TOKEN_LENGTH}
    words_b = {w for w in WORD_SPLIT_PATTERN.split(b) if len(w) >= MIN_TOKEN_LENGTH}
    if not words_a or not words_b:
        return False

    smaller, larger = (words_a, words_b) if len(words_a) <= len(words_b) else (words_b, words_a)
    overlap = sum(1 for w in smaller if any(w in o or o in w for o in larger))
    return overlap > 0 and overlap >= TOKEN_OVERLAP_RATIO * len(smaller)


def names_match(a: Optional[str], b: Optional[str]) -> bool:
    """Tolerant equality for card names; first rule that fires wins."""
    key_a, key_b = normalize_key(a), normalize_key(b)
    if not key_a or not key_b:
        return False

    if key_a == key_b:
        return True

    if _contains_either(key_a, key_b):
        return True

    simple_a, simple_b = _simplify(a), _simplify(b)
    if _contains_either(_strip_variant_tokens(simple_a), _strip_variant_tokens(simple_b)):
        return True

    return _token_overlap(simple_a, simple_b)
