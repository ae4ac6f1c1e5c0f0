"""Resolve an uncertain set code or set name to a catalog's canonical set code."""

import re
from typing import Callable, Dict, List, Mapping, Optional

from rapidfuzz import fuzz

from ..catalogs.base import CatalogClient
from ..core.constants import MIN_FUZZY_SET_NAME
from ..core.types import CanonicalSet, Game, Language
from ..match.normalize import normalize_key
from ..store.cache import CacheManager
from ..utils.log import LoggerMixin

SV_CODE_PATTERN = re.compile(r"^sv(\d+)(?:pt|\.)?(\d+)?$", re.IGNORECASE)
PT_PATTERN = re.compile(r"pt", re.IGNORECASE)
ONEPIECE_PREFIX_PATTERN = re.compile(r"^(OP|ST|EB|PRB)-?(\d+)$", re.IGNORECASE)


def pokemon_rewrites(code: str) -> List[str]:
    """
    Alternative TCGdex spellings of a guessed Pokemon set code.

    Examples:
        >>> pokemon_rewrites("sv3pt5")
        ['sv3.5', 'sv03.5']
        >>> pokemon_rewrites("sv03")
        ['sv03', 'sv3']
    """
    rewrites = [PT_PATTERN.sub(".", code.replace(".", ""))]
    sv = SV_CODE_PATTERN.match(code)
    if sv:
        major, minor = int(sv.group(1)), sv.group(2)
        suffix = f".{minor}" if minor else ""
        rewrites.append(f"sv{major:02d}{suffix}")
        rewrites.append(f"sv{major}{suffix}")
    return _unique(rewrites)


def onepiece_rewrites(code: str) -> List[str]:
    """"OP1" / "OP01" / "OP-01" all name the same One Piece set."""
    match = ONEPIECE_PREFIX_PATTERN.match(code.strip())
    if not match:
        return [code.replace("-", "")]
    prefix, number = match.group(1).upper(), int(match.group(2))
    return _unique([f"{prefix}-{number:02d}", f"{prefix}{number:02d}"])


def mtg_rewrites(code: str) -> List[str]:
    return [code.lower()]


def _unique(values: List[str]) -> List[str]:
    seen: List[str] = []
    for v in values:
        if v and v not in seen:
            seen.append(v)
    return seen


CODE_REWRITES: Dict[Game, Callable[[str], List[str]]] = {
    Game.POKEMON: pokemon_rewrites,
    Game.ONEPIECE: onepiece_rewrites,
    Game.MTG: mtg_rewrites,
}

# One Piece codes compare dash-insensitively
CODE_KEYS: Dict[Game, Callable[[str], str]] = {
    Game.ONEPIECE: lambda code: code.replace("-", "").lower(),
}


class SetDirectory(LoggerMixin):
    """Per-game set listings (read through the cache) and set-code resolution."""

    def __init__(self, clients: Mapping[Game, CatalogClient], cache: Optional[CacheManager] = None):
        self.clients = clients
        self.cache = cache

    async def list_sets(self, game: Game, language: Language = Language.EN) -> List[CanonicalSet]:
        client = self.clients.get(game)
        if client is None:
            return []
        return await client.cached_sets(language)

    async def get_set(self, game: Game, code: str, language: Language = Language.EN) -> Optional[CanonicalSet]:
        if not code:
            return None
        wanted = code.lower()
        for s in await self.list_sets(game, language):
            if s.code.lower() == wanted:
                return s
        return None

    async def display_name(self, game: Game, code: str, language: Language = Language.EN) -> Optional[str]:
        found = await self.get_set(game, code, language)
        return found.display_name if found else None

    def refresh(self, game: Optional[Game] = None, language: Optional[Language] = None) -> int:
        """Drop cached listings so the next lookup reloads them."""
        if self.cache is None:
            return 0
        return self.cache.invalidate_sets(game, language)

    async def resolve_set_id(
        self,
        game: Game,
        guessed_id: str,
        guessed_name: Optional[str] = None,
        language: Language = Language.EN,
    ) -> Optional[str]:
        """Canonical set code for a guessed code/name, or None when nothing fits."""
        guessed_id = (guessed_id or "").strip()
        sets = await self.list_sets(game, language)
        if not sets or not (guessed_id or guessed_name):
            return None

        code = self._match_code(game, guessed_id, sets)
        rule = "code"
        if code is None:
            code = self._match_name(guessed_id, guessed_name, sets)
            rule = "name"
        if code is None:
            code = self._match_contained(guessed_id, guessed_name, sets)
            rule = "contains"

        self.logger.debug(
            "Set resolution",
            game=game.value,
            guessed_id=guessed_id,
            guessed_name=guessed_name,
            resolved=code,
            rule=rule if code else None,
        )
        return code

    def _match_code(self, game: Game, guessed_id: str, sets: List[CanonicalSet]) -> Optional[str]:
        if not guessed_id:
            return None
        key = CODE_KEYS.get(game, str.lower)
        by_key: Dict[str, str] = {}
        for s in sets:
            by_key.setdefault(key(s.code), s.code)

        rewrite = CODE_REWRITES.get(game, lambda code: [])
        for attempt in [guessed_id, *rewrite(guessed_id)]:
            found = by_key.get(key(attempt))
            if found:
                return found
        return None

    def _match_name(self, guessed_id: str, guessed_name: Optional[str], sets: List[CanonicalSet]) -> Optional[str]:
        targets = {t for t in (normalize_key(guessed_id), normalize_key(guessed_name)) if t}
        for s in sets:
            if normalize_key(s.display_name) in targets:
                return s.code
        return None

    def _match_contained(self, guessed_id: str, guessed_name: Optional[str], sets: List[CanonicalSet]) -> Optional[str]:
        targets = [
            t for t in (normalize_key(guessed_name), normalize_key(guessed_id))
            if len(t) >= MIN_FUZZY_SET_NAME
        ]
        if not targets:
            return None

        hits = []
        for s in sets:
            set_key = normalize_key(s.display_name)
            if len(set_key) < MIN_FUZZY_SET_NAME:
                continue
            if any(t in set_key or set_key in t for t in targets):
                score = max(fuzz.ratio(t, set_key) for t in targets)
                hits.append((score, s.code))

        if not hits:
            return None
        # max() keeps the first of equal scores, so listing order breaks ties
        return max(hits, key=lambda hit: hit[0])[1]
