"""
Text normalization and name matching.
"""

from .normalize import (
    clean_collector_number,
    drop_last_word,
    id_suffix,
    names_match,
    normalize_key,
    number_variants,
    parse_number,
)

__all__ = [
    "clean_collector_number",
    "drop_last_word",
    "id_suffix",
    "names_match",
    "normalize_key",
    "number_variants",
    "parse_number",
]
