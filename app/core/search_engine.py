"""
Influencer search engine built on the in-memory profile store.
Combines explicit request filters with intent parsed from free text, then
scores, sorts and paginates the matching profiles.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Sequence

import pandas as pd

from app.core.match_scorer import MatchScorer, ScoringInput, default_scorer
from app.core.profile_store import ProfileStore, as_list
from app.core.query_parser import COUNTRY_ALIASES, ParsedQuery, QueryParser, default_parser

logger = logging.getLogger("search_engine")

SORT_FIELDS = {
    "followers": "total_followers",
    "engagement": "avg_engagement",
    "rating": "rating_average",
    "totalCollaborations": "total_collaborations",
    "total_collaborations": "total_collaborations",
    "createdAt": "created_at",
    "created_at": "created_at",
    "name": "name",
    "matchScore": "match_score",
    "match_score": "match_score",
}

TEXT_SORT_FIELDS = {"name", "created_at"}

FILTER_OPTION_LIMIT = 20
SUGGESTION_LIMIT = 5

# Platform-entry thresholds per campaign objective for recommendations
RECOMMENDATION_THRESHOLDS = {
    "awareness": {"min_followers": 50_000, "min_engagement": 2.0},
    "sales": {"min_engagement": 4.0},
}
DEFAULT_RECOMMENDATION_THRESHOLD = {"min_followers": 10_000, "min_engagement": 3.0}


@dataclass
class InfluencerResult:
    """A single influencer returned by the search engine"""
    id: str
    name: str
    bio: str = ""
    country: str = ""
    city: str = ""
    status: str = "available"
    niche: List[str] = field(default_factory=list)
    categories: List[str] = field(default_factory=list)
    keywords: List[str] = field(default_factory=list)
    platforms: List[Dict[str, Any]] = field(default_factory=list)
    platform_list: List[str] = field(default_factory=list)
    total_followers: int = 0
    avg_engagement: float = 0.0
    rating_average: float = 0.0
    rating_count: int = 0
    total_collaborations: int = 0
    is_verified: bool = False
    created_at: str = ""
    # Ranking
    match_score: Optional[int] = None
    recommendation_score: Optional[int] = None

    @property
    def platform_count(self) -> int:
        return len(self.platforms)


@dataclass
class SearchPage:
    """One page of sorted results plus the size of the full match set."""
    results: List[InfluencerResult]
    total: int
    parsed_query: Optional[ParsedQuery] = None


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


class InfluencerSearchEngine:
    """Search orchestration over a :class:`ProfileStore`."""

    def __init__(
        self,
        store: ProfileStore,
        *,
        parser: QueryParser = default_parser,
        scorer: MatchScorer = default_scorer,
    ):
        self.store = store
        self.parser = parser
        self.scorer = scorer

    def _convert_to_result(self, row: Dict[str, Any]) -> InfluencerResult:
        """Convert a store record to an InfluencerResult with native Python types"""
        def safe_int(value, default=0):
            try:
                return int(value)
            except (ValueError, TypeError):
                return default

        def safe_float(value, default=0.0):
            try:
                number = float(value)
            except (ValueError, TypeError):
                return default
            return default if number != number else number

        platforms = [
            {
                "platform": str(entry.get("platform", "")),
                "username": str(entry.get("username", "")),
                "profile_url": str(entry.get("profile_url", "")),
                "followers": safe_int(entry.get("followers")),
                "engagement": safe_float(entry.get("engagement")),
                "verified": bool(entry.get("verified", False)),
                "pricing_post": safe_float(entry.get("pricing_post")),
            }
            for entry in as_list(row.get("platforms"))
        ]

        return InfluencerResult(
            id=str(row.get("id", "")),
            name=str(row.get("name", "")),
            bio=str(row.get("bio", "")),
            country=str(row.get("country", "")),
            city=str(row.get("city", "")),
            status=str(row.get("status", "") or "available"),
            niche=[str(v) for v in as_list(row.get("niche"))],
            categories=[str(v) for v in as_list(row.get("categories"))],
            keywords=[str(v) for v in as_list(row.get("keywords"))],
            platforms=platforms,
            platform_list=[p["platform"] for p in platforms],
            total_followers=safe_int(row.get("total_followers")),
            avg_engagement=safe_float(row.get("avg_engagement")),
            rating_average=safe_float(row.get("rating_average")),
            rating_count=safe_int(row.get("rating_count")),
            total_collaborations=safe_int(row.get("total_collaborations")),
            is_verified=bool(row.get("is_verified", False)),
            created_at=str(row.get("created_at", "")),
        )

    def _score(self, result: InfluencerResult, bonus_tag_ids: Iterable[str] = ()) -> int:
        scoring_input = ScoringInput.from_profile(
            {
                "avg_engagement": result.avg_engagement,
                "total_followers": result.total_followers,
                "is_verified": result.is_verified,
                "rating_average": result.rating_average,
                "total_collaborations": result.total_collaborations,
                "keywords": result.keywords,
            },
            bonus_tag_ids,
        )
        return self.scorer.score(scoring_input)

    def parse_query(self, text: Optional[str]) -> ParsedQuery:
        return self.parser.parse(text)

    def _term_mask(self, term: str) -> pd.Series:
        store = self.store
        return (
            store.name_contains(term)
            | store.username_contains(term)
            | store.bio_contains(term)
            | store.niche_contains(term)
            | store.category_contains(term)
        )

    def search_influencers(
        self,
        *,
        search: Optional[str] = None,
        platforms: Optional[Sequence[str]] = None,
        niche: Optional[str] = None,
        location: Optional[str] = None,
        keywords: Optional[str] = None,
        min_followers: Optional[int] = None,
        max_followers: Optional[int] = None,
        min_engagement: Optional[float] = None,
        max_engagement: Optional[float] = None,
        campaign_objective: Optional[str] = None,
        sort_by: Optional[str] = "followers",
        sort_order: str = "desc",
        limit: Optional[int] = None,
        skip: int = 0,
    ) -> SearchPage:
        """Run a filtered, scored and sorted influencer search."""

        store = self.store
        mask = store.all()
        matched_keyword_ids: List[str] = []
        explicit_platforms = [p.strip() for p in (platforms or []) if p and p.strip()]
        location_given = not _is_blank(location) and location.strip().lower() != "all"

        parsed: Optional[ParsedQuery] = None
        if not _is_blank(search):
            parsed = self.parser.parse(search)
            logger.info("Parsed search query | %s", parsed.to_dict())

            if parsed.search_words:
                keyword_ids = store.match_keywords(parsed.search_words)
                matched_keyword_ids.extend(keyword_ids)

                word_mask = store.none()
                for word in parsed.search_words:
                    word_mask |= self._term_mask(word)
                if keyword_ids:
                    word_mask |= store.has_any_keyword(keyword_ids)
                mask &= word_mask

            if parsed.min_followers and not min_followers:
                mask &= store.platform_metrics_between(min_followers=parsed.min_followers)

            if parsed.detected_platforms and not explicit_platforms:
                mask &= store.on_platforms(parsed.detected_platforms)

            if parsed.detected_country and not location_given:
                mask &= store.located_in(parsed.detected_country)

        if explicit_platforms:
            mask &= store.on_platforms(explicit_platforms)

        if not _is_blank(niche) and niche.strip().lower() != "all":
            niche_term = niche.strip()
            niche_keyword_ids = store.match_keywords([niche_term])
            matched_keyword_ids.extend(niche_keyword_ids)

            niche_mask = store.niche_contains(niche_term) | store.category_contains(niche_term)
            if niche_keyword_ids:
                niche_mask |= store.has_any_keyword(niche_keyword_ids)
            mask &= niche_mask

        if location_given:
            place = location.strip()
            country = COUNTRY_ALIASES.get(place.lower(), place)
            mask &= store.located_in(country)

        if not _is_blank(keywords):
            keyword_terms = [k.strip() for k in keywords.split(",") if k.strip()]
            if keyword_terms:
                keyword_ids = store.match_keywords(keyword_terms)
                matched_keyword_ids.extend(keyword_ids)

                keyword_mask = store.none()
                for term in keyword_terms:
                    keyword_mask |= (
                        store.bio_contains(term)
                        | store.niche_contains(term)
                        | store.category_contains(term)
                        | store.name_contains(term)
                    )
                if keyword_ids:
                    keyword_mask |= store.has_any_keyword(keyword_ids)
                mask &= keyword_mask

        follower_lower = int(min_followers) if min_followers and min_followers > 0 else None
        follower_upper = int(max_followers) if max_followers and max_followers > 0 else None
        if follower_lower is not None or follower_upper is not None:
            mask &= store.platform_metrics_between(
                min_followers=follower_lower, max_followers=follower_upper
            )

        eng_lower = float(min_engagement) if min_engagement is not None and min_engagement >= 0 else None
        eng_upper = float(max_engagement) if max_engagement and max_engagement > 0 else None
        if eng_lower is not None or eng_upper is not None:
            mask &= store.platform_metrics_between(
                min_engagement=eng_lower, max_engagement=eng_upper
            )

        results = [self._convert_to_result(row) for row in store.select(mask)]
        logger.info("Found %d influencers", len(results))

        for item in results:
            item.match_score = self._score(item, matched_keyword_ids)

        sort_field = self._resolve_sort_field(sort_by, campaign_objective)
        results = self._sort_results(results, sort_field, sort_order)

        total = len(results)
        if limit and limit > 0:
            start = max(0, skip or 0)
            results = results[start:start + limit]

        return SearchPage(results=results, total=total, parsed_query=parsed)

    @staticmethod
    def _resolve_sort_field(sort_by: Optional[str], campaign_objective: Optional[str]) -> str:
        sort_field = SORT_FIELDS.get(sort_by or "followers", sort_by or "total_followers")

        if campaign_objective == "awareness":
            return "total_followers"
        if campaign_objective == "sales":
            return "avg_engagement"
        if campaign_objective in (None, "", "both") and sort_by in (None, "", "followers"):
            return "match_score"
        return sort_field

    @staticmethod
    def _sort_results(
        results: List[InfluencerResult],
        sort_field: str,
        sort_order: str = "desc",
    ) -> List[InfluencerResult]:
        if sort_field in TEXT_SORT_FIELDS:
            def key(item):
                return str(getattr(item, sort_field, "") or "").casefold()
        else:
            def key(item):
                value = getattr(item, sort_field, None)
                return value if isinstance(value, (int, float)) else 0

        return sorted(results, key=key, reverse=(sort_order != "asc"))

    def get_all_influencers(self) -> List[InfluencerResult]:
        """Every influencer, scored without query bonuses, most followed first."""
        results = [self._convert_to_result(row) for row in self.store.select()]
        for item in results:
            item.match_score = self._score(item)
        return sorted(results, key=lambda r: r.total_followers, reverse=True)

    def get_influencer(self, influencer_id: str) -> Optional[InfluencerResult]:
        if not influencer_id:
            return None
        row = self.store.get(influencer_id.strip())
        if row is None:
            return None
        result = self._convert_to_result(row)
        result.match_score = self._score(result)
        return result

    def get_search_suggestions(self, q: Optional[str]) -> Dict[str, List[str]]:
        """Autocomplete candidates for a partial search term."""
        term = (q or "").strip()
        if len(term) < 2:
            return {"names": [], "niches": [], "categories": [], "keywords": []}

        store = self.store
        return {
            "names": store.names_containing(term, SUGGESTION_LIMIT),
            "niches": store.distinct_values_containing("niche", term, SUGGESTION_LIMIT),
            "categories": store.distinct_values_containing("categories", term, SUGGESTION_LIMIT),
            "keywords": store.keyword_display_names_containing(term, SUGGESTION_LIMIT),
        }

    def get_filter_options(self) -> Dict[str, Any]:
        """Available filter values with counts and numeric ranges."""
        store = self.store
        followers = store.platform_metric_stats("followers")
        engagement = store.platform_metric_stats("engagement")

        return {
            "platforms": store.platform_counts(),
            "niches": store.value_counts("niche", FILTER_OPTION_LIMIT),
            "categories": store.value_counts("categories", FILTER_OPTION_LIMIT),
            "countries": store.value_counts("country", FILTER_OPTION_LIMIT),
            "follower_range": (
                {
                    "min_followers": followers["min"],
                    "max_followers": followers["max"],
                    "avg_followers": followers["avg"],
                }
                if followers
                else {"min_followers": 0, "max_followers": 500000, "avg_followers": 0}
            ),
            "engagement_range": (
                {
                    "min_engagement": engagement["min"],
                    "max_engagement": engagement["max"],
                    "avg_engagement": engagement["avg"],
                }
                if engagement
                else {"min_engagement": 0, "max_engagement": 100, "avg_engagement": 0}
            ),
        }

    def get_recommendations(
        self,
        *,
        campaign_objective: Optional[str] = None,
        platforms: Optional[Sequence[str]] = None,
        niche: Optional[str] = None,
        budget: Optional[float] = None,
        limit: int = 10,
    ) -> List[InfluencerResult]:
        """Recommend influencers for a campaign brief."""
        store = self.store
        mask = store.all()

        explicit_platforms = [p.strip() for p in (platforms or []) if p and p.strip()]
        if explicit_platforms:
            mask &= store.on_platforms(explicit_platforms)

        if not _is_blank(niche):
            niche_term = niche.strip()
            niche_keyword_ids = store.match_keywords([niche_term])
            niche_mask = store.niche_contains(niche_term) | store.category_contains(niche_term)
            if niche_keyword_ids:
                niche_mask |= store.has_any_keyword(niche_keyword_ids)
            mask &= niche_mask

        thresholds = RECOMMENDATION_THRESHOLDS.get(
            campaign_objective or "", DEFAULT_RECOMMENDATION_THRESHOLD
        )
        mask &= store.platform_metrics_between(**thresholds)

        if budget and budget > 0:
            mask &= store.post_price_at_most(float(budget))

        # Limit applies in store order, before ranking
        rows = store.select(mask)[: max(1, limit)]
        results = [self._convert_to_result(row) for row in rows]
        for item in results:
            item.recommendation_score = self._score(item)

        return sorted(results, key=lambda r: r.recommendation_score or 0, reverse=True)


def build_search_engine(
    db_path: str,
    *,
    influencers_table: str = "influencers",
    keywords_table: str = "keywords",
) -> InfluencerSearchEngine:
    store = ProfileStore.from_lancedb(
        db_path,
        influencers_table=influencers_table,
        keywords_table=keywords_table,
    )
    return InfluencerSearchEngine(store)


__all__ = [
    "InfluencerResult",
    "InfluencerSearchEngine",
    "SearchPage",
    "build_search_engine",
]
