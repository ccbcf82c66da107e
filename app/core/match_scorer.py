"""Heuristic 0-100 relevance score used to rank influencer search results."""
import math
from dataclasses import dataclass, field
from typing import Any, FrozenSet, Iterable, Mapping, Optional, Tuple


@dataclass(frozen=True)
class ScoringWeights:
    """Point table for :class:`MatchScorer`."""

    engagement_multiplier: float = 4.0
    engagement_cap: float = 40.0
    # (minimum followers, points), highest threshold first
    follower_tiers: Tuple[Tuple[int, float], ...] = (
        (100_000, 20.0),
        (50_000, 15.0),
        (10_000, 10.0),
    )
    follower_floor: float = 5.0
    verified_bonus: float = 10.0
    rating_multiplier: float = 3.0
    collaboration_multiplier: float = 3.0
    collaboration_cap: float = 15.0
    tag_match_bonus: float = 5.0


DEFAULT_WEIGHTS = ScoringWeights()


def _number(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def _id_set(values: Optional[Iterable[Any]]) -> FrozenSet[str]:
    if values is None:
        return frozenset()
    return frozenset(str(value) for value in values if value is not None)


@dataclass(frozen=True)
class ScoringInput:
    """Scoring-relevant fields of one profile plus the query's matched tags."""

    engagement_rate: float = 0.0
    follower_count: int = 0
    verified: bool = False
    rating_average: float = 0.0
    total_collaborations: int = 0
    tag_ids: FrozenSet[str] = field(default_factory=frozenset)
    bonus_tag_ids: FrozenSet[str] = field(default_factory=frozenset)

    @classmethod
    def from_profile(
        cls,
        profile: Mapping[str, Any],
        bonus_tag_ids: Optional[Iterable[Any]] = None,
    ) -> "ScoringInput":
        """Build an input from a profile mapping, defaulting absent fields.

        Missing or unparsable numbers count as 0 and a missing verification
        flag counts as unverified. Tag identifiers are compared as strings.
        """
        return cls(
            engagement_rate=_number(profile.get("avg_engagement")),
            follower_count=int(_number(profile.get("total_followers"))),
            verified=bool(profile.get("is_verified") or False),
            rating_average=_number(profile.get("rating_average")),
            total_collaborations=int(_number(profile.get("total_collaborations"))),
            tag_ids=_id_set(profile.get("keywords")),
            bonus_tag_ids=_id_set(bonus_tag_ids),
        )


class MatchScorer:
    """Compute bounded match scores; stateless and safe to share."""

    def __init__(self, weights: ScoringWeights = DEFAULT_WEIGHTS) -> None:
        self.weights = weights

    def follower_tier(self, follower_count: float) -> float:
        for threshold, points in self.weights.follower_tiers:
            if follower_count >= threshold:
                return points
        return self.weights.follower_floor

    def score(self, item: ScoringInput) -> int:
        w = self.weights
        total = min(item.engagement_rate * w.engagement_multiplier, w.engagement_cap)
        total += self.follower_tier(item.follower_count)
        if item.verified:
            total += w.verified_bonus
        total += item.rating_average * w.rating_multiplier
        total += min(item.total_collaborations * w.collaboration_multiplier, w.collaboration_cap)
        if item.bonus_tag_ids:
            total += len(item.tag_ids & item.bonus_tag_ids) * w.tag_match_bonus

        # Half-up rounding, then clamp
        rounded = math.floor(total + 0.5)
        return int(max(0, min(100, rounded)))


default_scorer = MatchScorer()


def calculate_match_score(
    profile: Mapping[str, Any],
    matched_keyword_ids: Optional[Iterable[Any]] = None,
) -> int:
    """Score a profile mapping with the default weights."""
    return default_scorer.score(ScoringInput.from_profile(profile, matched_keyword_ids))
