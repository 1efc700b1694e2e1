# impulse/services/location_resolver.py
# Free-text campus location resolution.
#
# Matchers run in a fixed order. Each matcher sees the whole gazetteer and
# either picks exactly one location or passes; the first matcher that picks
# wins. New rules are appended to DEFAULT_MATCHERS.

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Protocol, Sequence, Tuple

import structlog

from impulse.models.dto import CampusLocation, Gazetteer, MatchResult, MatchRule
from impulse.utils.text import normalize, strip_generic_words, tokens

log = structlog.get_logger(__name__)

LIBRARY_ID = "library"

_LOCATION_FRAGMENT = re.compile(r"\blocation\s*:\s*([^\n]+)", re.IGNORECASE)


@dataclass(frozen=True)
class IndexedLocation:
    """A gazetteer entry with its match keys precomputed."""
    location: CampusLocation
    name: str
    aliases: Tuple[str, ...]
    stripped: Tuple[str, ...]
    name_tokens: Tuple[str, ...]

    @classmethod
    def build(cls, location: CampusLocation) -> "IndexedLocation":
        stripped_name = strip_generic_words(location.name)
        stripped = [stripped_name] + [strip_generic_words(a) for a in location.aliases]
        return cls(
            location=location,
            name=normalize(location.name),
            aliases=tuple(normalize(a) for a in location.aliases),
            stripped=tuple(s for s in stripped if s),
            name_tokens=tuple(tokens(stripped_name)),
        )


@dataclass(frozen=True)
class LocationQuery:
    raw: str
    normalized: str
    stripped: str
    tokens: Tuple[str, ...]

    @classmethod
    def parse(cls, raw: str) -> "LocationQuery":
        stripped = strip_generic_words(raw)
        return cls(raw=raw, normalized=normalize(raw), stripped=stripped, tokens=tuple(tokens(stripped)))


class GazetteerIndex:
    """Read-only view of a gazetteer in declaration order, plus an id lookup."""

    def __init__(self, gazetteer: Gazetteer):
        self.entries: Tuple[IndexedLocation, ...] = tuple(
            IndexedLocation.build(loc) for loc in gazetteer.locations
        )
        self.by_id: Dict[str, CampusLocation] = {loc.id: loc for loc in gazetteer.locations}


# --- Matchers ---

class Matcher(Protocol):
    rule: MatchRule

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]: ...


class LibraryMatcher:
    """Any mention of the library wins outright."""
    rule = MatchRule.LIBRARY
    KEYWORDS = ("library", "mcdermott")

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        if any(word in query.normalized for word in self.KEYWORDS):
            return index.by_id.get(LIBRARY_ID)
        return None


class ExactNameMatcher:
    rule = MatchRule.EXACT_NAME

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        for entry in index.entries:
            if entry.name == query.normalized:
                return entry.location
        return None


class ExactAliasMatcher:
    rule = MatchRule.EXACT_ALIAS

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        for entry in index.entries:
            if query.normalized in entry.aliases:
                return entry.location
        return None


class CanonicalKeyMatcher:
    """Raw, unnormalized equality with the stored name (legacy building-name lookups)."""
    rule = MatchRule.CANONICAL_KEY

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        for entry in index.entries:
            if entry.location.name == query.raw:
                return entry.location
        return None


class ContainmentMatcher:
    """
    Stripped query contains a stripped name/alias, or the other way round.

    The longest matching key wins; equal lengths keep the first-declared location.
    """
    rule = MatchRule.CONTAINMENT

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        if not query.stripped:
            return None

        best: Optional[CampusLocation] = None
        best_len = 0
        for entry in index.entries:
            for key in entry.stripped:
                if key in query.stripped or query.stripped in key:
                    if len(key) > best_len:
                        best, best_len = entry.location, len(key)
        return best


class WordPrefixMatcher:
    """Abbreviated words, e.g. "nat sci" for "Natural Sciences"."""
    rule = MatchRule.WORD_PREFIX
    MIN_TOKEN_LEN = 3

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        for entry in index.entries:
            for q_token in query.tokens:
                for n_token in entry.name_tokens:
                    if len(q_token) >= self.MIN_TOKEN_LEN and n_token.startswith(q_token):
                        return entry.location
                    if len(n_token) >= self.MIN_TOKEN_LEN and q_token.startswith(n_token):
                        return entry.location
        return None


class EngineeringMatcher:
    """ECS building codes and their spelled-out compass forms."""
    rule = MatchRule.ENGINEERING
    BUILDINGS = (
        ("ecsw", "west"),
        ("ecss", "south"),
        ("ecsn", "north"),
    )

    def match(self, query: LocationQuery, index: GazetteerIndex) -> Optional[CampusLocation]:
        text = query.normalized
        for code, direction in self.BUILDINGS:
            if code in text or ("engineering" in text and direction in text):
                return index.by_id.get(code)
        return None


DEFAULT_MATCHERS: Tuple[Matcher, ...] = (
    LibraryMatcher(),
    ExactNameMatcher(),
    ExactAliasMatcher(),
    CanonicalKeyMatcher(),
    ContainmentMatcher(),
    WordPrefixMatcher(),
    EngineeringMatcher(),
)


# --- Resolver ---

class LocationResolver:
    """Resolves free text to a single campus location.

    - `resolve` / `match` walk the matcher chain.
    - `get_by_id` is an exact dictionary lookup.
    - `search_prefix` is the loose location-picker search.

    Instances hold only immutable data and are safe to share across threads.
    """

    def __init__(self, gazetteer: Gazetteer, matchers: Sequence[Matcher] = DEFAULT_MATCHERS):
        self.gazetteer = gazetteer
        self.index = GazetteerIndex(gazetteer)
        self.matchers: Tuple[Matcher, ...] = tuple(matchers)

    @property
    def locations(self) -> Tuple[CampusLocation, ...]:
        return self.gazetteer.locations

    def match(self, query: str) -> MatchResult:
        """Run the matcher chain and report which rule decided."""
        if not query or not query.strip():
            return MatchResult(query=query or "")

        parsed = LocationQuery.parse(query)
        for matcher in self.matchers:
            location = matcher.match(parsed, self.index)
            if location is not None:
                log.debug("location_resolved", query=query, rule=matcher.rule.value, location_id=location.id)
                return MatchResult(query=query, location=location, rule=matcher.rule)

        log.debug("location_unresolved", query=query)
        return MatchResult(query=query)

    def resolve(self, query: str) -> Optional[CampusLocation]:
        """Best location for `query`, or None when nothing matches."""
        return self.match(query).location

    def resolve_text(self, text: str) -> MatchResult:
        """
        Resolve an event description. A "Location: X" line is tried first,
        then the description as a whole.
        """
        fragment = _LOCATION_FRAGMENT.search(text or "")
        if fragment:
            result = self.match(fragment.group(1))
            if result.resolved:
                return result
        return self.match(text)

    def get_by_id(self, location_id: str) -> Optional[CampusLocation]:
        return self.index.by_id.get(location_id)

    def search_prefix(self, query: str) -> List[CampusLocation]:
        """Locations whose name or alias contains `query`, in declaration order.

        An empty query lists the whole gazetteer.
        """
        needle = normalize(query or "")
        if not needle:
            return list(self.locations)
        return [
            entry.location
            for entry in self.index.entries
            if needle in entry.name or any(needle in alias for alias in entry.aliases)
        ]
