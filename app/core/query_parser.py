"""
Free-text query parsing for influencer search.

Turns a search box phrase such as ``"usa fashion blogger 50k+"`` into the
structured intent the search engine filters on: keyword tokens, a minimum
follower count, platform names and a country.
"""
import re
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from types import MappingProxyType
from typing import Dict, List, Optional, Tuple

STOP_WORDS = frozenset([
    'a', 'an', 'the', 'and', 'or', 'but', 'with', 'for', 'in', 'on', 'at',
    'to', 'of', 'is', 'are', 'was', 'were', 'be', 'been', 'being', 'have',
    'has', 'had', 'do', 'does', 'did', 'will', 'would', 'could', 'should',
    'may', 'might', 'can', 'shall', 'not', 'no', 'from', 'by', 'about',
    'between', 'through', 'during', 'before', 'after', 'above', 'below',
    'up', 'down', 'out', 'off', 'over', 'under', 'again', 'further', 'then',
    'once', 'here', 'there', 'when', 'where', 'why', 'how', 'all', 'each',
    'every', 'both', 'few', 'more', 'most', 'other', 'some', 'such', 'than',
    'too', 'very', 'just', 'also', 'who', 'whom', 'which', 'that', 'this',
    'these', 'those', 'i', 'me', 'my', 'we', 'our', 'you', 'your', 'he',
    'him', 'his', 'she', 'her', 'it', 'its', 'they', 'them', 'their',
    'what', 'am', 'want', 'need', 'looking', 'find', 'search', 'show',
    'get', 'give', 'like', 'plus',
])

KNOWN_PLATFORMS = (
    'instagram', 'youtube', 'tiktok', 'facebook', 'twitter',
    'linkedin', 'pinterest', 'snapchat', 'twitch',
)

# Declaration order matters for multi-word lookups
COUNTRY_ALIASES = MappingProxyType({
    'usa': 'United States', 'us': 'United States', 'america': 'United States',
    'united states': 'United States',
    'uk': 'United Kingdom', 'britain': 'United Kingdom', 'england': 'United Kingdom',
    'united kingdom': 'United Kingdom',
    'canada': 'Canada', 'australia': 'Australia', 'germany': 'Germany', 'france': 'France',
    'india': 'India', 'brazil': 'Brazil', 'china': 'China', 'japan': 'Japan',
    'mexico': 'Mexico', 'south korea': 'South Korea', 'korea': 'South Korea',
    'spain': 'Spain', 'italy': 'Italy', 'russia': 'Russia', 'indonesia': 'Indonesia',
    'pakistan': 'Pakistan', 'nigeria': 'Nigeria', 'bangladesh': 'Bangladesh',
    'philippines': 'Philippines', 'egypt': 'Egypt', 'turkey': 'Turkey',
    'thailand': 'Thailand', 'vietnam': 'Vietnam', 'uae': 'United Arab Emirates',
    'dubai': 'United Arab Emirates', 'saudi': 'Saudi Arabia', 'saudi arabia': 'Saudi Arabia',
})

_MULTIPLIERS = {'k': 1_000, 'm': 1_000_000}

_FOLLOWER_WORD = r"(?:\s*(?:followers?|subscribers?|subs?)(?![a-z0-9]))?"
_ABBREVIATED_COUNT_RE = re.compile(
    r"(\d+(?:\.\d+)?)\s*([km])(?![a-z0-9])\+?" + _FOLLOWER_WORD
)
_GROUPED_COUNT_RE = re.compile(
    r"(?<!\d)(?<!\d,)(\d{1,3}(?:,\d{3})+)(?!,?\d)\+?" + _FOLLOWER_WORD
)
_TOKEN_SPLIT_RE = re.compile(r"[\s,;.]+")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9]")


@dataclass(frozen=True)
class ParsedQuery:
    """Structured intent extracted from a free-text search phrase."""

    search_words: Tuple[str, ...] = ()
    min_followers: Optional[int] = None
    # Reserved for range queries ("50k-100k"); never populated yet.
    max_followers: Optional[int] = None
    detected_platforms: Tuple[str, ...] = ()
    detected_country: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not (
            self.search_words
            or self.min_followers is not None
            or self.max_followers is not None
            or self.detected_platforms
            or self.detected_country
        )

    def to_dict(self) -> Dict[str, object]:
        return {
            "search_words": list(self.search_words),
            "min_followers": self.min_followers,
            "max_followers": self.max_followers,
            "detected_platforms": list(self.detected_platforms),
            "detected_country": self.detected_country,
        }


@dataclass
class _ParseState:
    text: str
    tokens: List[str] = field(default_factory=list)
    min_followers: Optional[int] = None
    platforms: List[str] = field(default_factory=list)
    country: Optional[str] = None


def _scale_count(number: str, unit: str) -> int:
    scaled = Decimal(number) * _MULTIPLIERS[unit]
    return int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))


class QueryParser:
    """Parse search phrases into :class:`ParsedQuery` values.

    The parser holds no per-call state, so a single instance can be shared
    across requests and threads.
    """

    def __init__(
        self,
        *,
        stop_words=STOP_WORDS,
        platforms=KNOWN_PLATFORMS,
        country_aliases=COUNTRY_ALIASES,
    ) -> None:
        self.stop_words = frozenset(stop_words)
        self.platforms = frozenset(platforms)
        self.country_aliases = MappingProxyType(dict(country_aliases))
        self._phrase_aliases = tuple(
            (alias, country) for alias, country in self.country_aliases.items() if " " in alias
        )

    def parse(self, text: Optional[str]) -> ParsedQuery:
        if not text or not text.strip():
            return ParsedQuery()

        state = _ParseState(text=text.strip().lower())
        self._extract_follower_count(state)
        state.tokens = self._tokenize(state.text)
        self._extract_platforms(state)
        self._extract_country(state)
        if state.country is None:
            self._extract_phrase_country(state)

        words = tuple(
            token for token in state.tokens
            if len(token) > 1 and token not in self.stop_words
        )
        return ParsedQuery(
            search_words=words,
            min_followers=state.min_followers,
            detected_platforms=tuple(state.platforms),
            detected_country=state.country,
        )

    def _extract_follower_count(self, state: _ParseState) -> None:
        match = _ABBREVIATED_COUNT_RE.search(state.text)
        if match:
            state.min_followers = _scale_count(match.group(1), match.group(2))
        else:
            match = _GROUPED_COUNT_RE.search(state.text)
            if match:
                state.min_followers = int(match.group(1).replace(",", ""))

        if match:
            state.text = state.text[: match.start()] + " " + state.text[match.end():]

    @staticmethod
    def _tokenize(text: str) -> List[str]:
        tokens = []
        for raw in _TOKEN_SPLIT_RE.split(text):
            token = _NON_ALNUM_RE.sub("", raw)
            if token:
                tokens.append(token)
        return tokens

    def _extract_platforms(self, state: _ParseState) -> None:
        remaining = []
        for token in state.tokens:
            if token in self.platforms:
                if token not in state.platforms:
                    state.platforms.append(token)
            else:
                remaining.append(token)
        state.tokens = remaining

    def _extract_country(self, state: _ParseState) -> None:
        tokens = state.tokens
        for idx, token in enumerate(tokens):
            if token not in self.country_aliases:
                continue
            # A phrase alias ("saudi arabia", "south korea") wins over its words
            if idx + 1 < len(tokens) and f"{token} {tokens[idx + 1]}" in self.country_aliases:
                state.country = self.country_aliases[f"{token} {tokens[idx + 1]}"]
                state.tokens = tokens[:idx] + tokens[idx + 2:]
                return
            if idx > 0 and f"{tokens[idx - 1]} {token}" in self.country_aliases:
                state.country = self.country_aliases[f"{tokens[idx - 1]} {token}"]
                state.tokens = tokens[: idx - 1] + tokens[idx + 1:]
                return
            state.country = self.country_aliases[token]
            state.tokens = tokens[:idx] + tokens[idx + 1:]
            return

    def _extract_phrase_country(self, state: _ParseState) -> None:
        joined = " ".join(state.tokens)
        for alias, country in self._phrase_aliases:
            if alias not in joined:
                continue
            state.country = country
            for word in alias.split(" "):
                if word in state.tokens:
                    state.tokens.remove(word)
            return


default_parser = QueryParser()


def parse_search_query(text: Optional[str]) -> ParsedQuery:
    """Parse ``text`` with the default vocabulary tables."""
    return default_parser.parse(text)
