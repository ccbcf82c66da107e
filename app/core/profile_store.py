"""
Read-only influencer and keyword tables held as pandas DataFrames.

Tables are loaded once from LanceDB (or built from plain records in tests) and
queried through boolean masks that the search engine combines with ``&``/``|``.
"""
import logging
import math
import os
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence

import lancedb
import pandas as pd

logger = logging.getLogger("profile_store")

INFLUENCER_COLUMNS: Dict[str, Any] = {
    "id": "",
    "name": "",
    "bio": "",
    "niche": None,
    "categories": None,
    "keywords": None,
    "country": "",
    "city": "",
    "platforms": None,
    "rating_average": 0.0,
    "rating_count": 0,
    "total_collaborations": 0,
    "is_verified": False,
    "status": "available",
    "created_at": "",
}

KEYWORD_COLUMNS: Dict[str, Any] = {
    "id": "",
    "name": "",
    "display_name": "",
    "is_active": True,
}


def as_list(value: Any) -> List[Any]:
    """Normalize list-like cells (lists, numpy/arrow arrays, None) to a list."""
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        return []
    if isinstance(value, (str, bytes, dict)):
        return [value]
    if hasattr(value, "tolist"):
        value = value.tolist()
    try:
        return list(value)
    except TypeError:
        return [value]


def _safe_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return default if math.isnan(number) else number


def _safe_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, float) and math.isnan(value):
        return ""
    return str(value)


def _safe_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, float) and math.isnan(value):
        return default
    if isinstance(value, str):
        return value.strip().lower() in {"true", "1", "yes", "y"}
    return bool(value)


def _normalize_platform(entry: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "platform": _safe_str(entry.get("platform")).lower(),
        "username": _safe_str(entry.get("username")),
        "profile_url": _safe_str(entry.get("profile_url")),
        "followers": int(_safe_float(entry.get("followers"))),
        "engagement": _safe_float(entry.get("engagement")),
        "verified": _safe_bool(entry.get("verified")),
        "pricing_post": _safe_float(entry.get("pricing_post")),
    }


def _prepare_influencers(frame: pd.DataFrame) -> pd.DataFrame:
    frame = frame.copy()
    for column, default in INFLUENCER_COLUMNS.items():
        if column not in frame.columns:
            frame[column] = [default] * len(frame)

    for column in ("niche", "categories"):
        frame[column] = frame[column].apply(lambda v: [_safe_str(x) for x in as_list(v)])
    frame["keywords"] = frame["keywords"].apply(lambda v: [str(x) for x in as_list(v)])
    frame["platforms"] = frame["platforms"].apply(
        lambda v: [_normalize_platform(p) for p in as_list(v) if isinstance(p, Mapping)]
    )
    for column in ("id", "name", "bio", "country", "city", "status", "created_at"):
        frame[column] = frame[column].apply(_safe_str)
    frame["rating_average"] = frame["rating_average"].apply(_safe_float)
    frame["rating_count"] = frame["rating_count"].apply(lambda v: int(_safe_float(v)))
    frame["total_collaborations"] = frame["total_collaborations"].apply(lambda v: int(_safe_float(v)))
    frame["is_verified"] = frame["is_verified"].apply(_safe_bool)

    frame["total_followers"] = frame["platforms"].apply(
        lambda ps: sum(p["followers"] for p in ps)
    )
    frame["avg_engagement"] = frame["platforms"].apply(
        lambda ps: round(sum(p["engagement"] for p in ps) / len(ps), 2) if ps else 0.0
    )
    frame["platform_list"] = frame["platforms"].apply(lambda ps: [p["platform"] for p in ps])
    return frame.reset_index(drop=True)


def _prepare_keywords(frame: pd.DataFrame) -> pd.DataFrame:
    frame = frame.copy()
    for column, default in KEYWORD_COLUMNS.items():
        if column not in frame.columns:
            frame[column] = [default] * len(frame)
    for column in ("id", "name", "display_name"):
        frame[column] = frame[column].apply(_safe_str)
    frame["is_active"] = frame["is_active"].apply(lambda v: _safe_bool(v, default=True)).astype(bool)
    return frame.reset_index(drop=True)


class ProfileStore:
    """In-memory view over the influencer directory."""

    def __init__(self, influencers: pd.DataFrame, keywords: Optional[pd.DataFrame] = None) -> None:
        self.influencers = _prepare_influencers(influencers)
        if keywords is None:
            keywords = pd.DataFrame(columns=list(KEYWORD_COLUMNS))
        self.keywords = _prepare_keywords(keywords)

    @classmethod
    def from_records(
        cls,
        influencers: Iterable[Mapping[str, Any]],
        keywords: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> "ProfileStore":
        influencer_frame = pd.DataFrame(list(influencers))
        if influencer_frame.empty:
            influencer_frame = pd.DataFrame(columns=list(INFLUENCER_COLUMNS))
        keyword_frame = pd.DataFrame(list(keywords or []))
        if keyword_frame.empty:
            keyword_frame = pd.DataFrame(columns=list(KEYWORD_COLUMNS))
        return cls(influencer_frame, keyword_frame)

    @classmethod
    def from_lancedb(
        cls,
        db_path: str,
        *,
        influencers_table: str = "influencers",
        keywords_table: str = "keywords",
    ) -> "ProfileStore":
        if not os.path.exists(db_path):
            raise FileNotFoundError(f"Database not found at: {db_path}")

        db = lancedb.connect(db_path)
        influencers = db.open_table(influencers_table).to_pandas()
        try:
            keywords = db.open_table(keywords_table).to_pandas()
        except (FileNotFoundError, ValueError) as exc:
            logger.warning("Keyword table '%s' unavailable: %s", keywords_table, exc)
            keywords = None

        logger.info(
            "Loaded %d influencers and %d keywords from %s",
            len(influencers),
            0 if keywords is None else len(keywords),
            db_path,
        )
        return cls(influencers, keywords)

    def __len__(self) -> int:
        return len(self.influencers)

    # ------------------------------------------------------------------
    # Masks
    # ------------------------------------------------------------------
    def all(self) -> pd.Series:
        return pd.Series(True, index=self.influencers.index, dtype=bool)

    def none(self) -> pd.Series:
        return pd.Series(False, index=self.influencers.index, dtype=bool)

    def _text_contains(self, column: str, term: str) -> pd.Series:
        return (
            self.influencers[column]
            .astype(str)
            .str.contains(term, case=False, regex=False)
            .astype(bool)
        )

    def _list_contains(self, column: str, term: str) -> pd.Series:
        needle = term.lower()
        return self.influencers[column].apply(
            lambda values: any(needle in str(v).lower() for v in values)
        ).astype(bool)

    def _any_platform(self, predicate: Callable[[Dict[str, Any]], bool]) -> pd.Series:
        return self.influencers["platforms"].apply(
            lambda entries: any(predicate(entry) for entry in entries)
        ).astype(bool)

    def name_contains(self, term: str) -> pd.Series:
        return self._text_contains("name", term)

    def bio_contains(self, term: str) -> pd.Series:
        return self._text_contains("bio", term)

    def niche_contains(self, term: str) -> pd.Series:
        return self._list_contains("niche", term)

    def category_contains(self, term: str) -> pd.Series:
        return self._list_contains("categories", term)

    def username_contains(self, term: str) -> pd.Series:
        needle = term.lower()
        return self._any_platform(lambda p: needle in p["username"].lower())

    def has_any_keyword(self, keyword_ids: Iterable[str]) -> pd.Series:
        wanted = {str(k) for k in keyword_ids}
        if not wanted:
            return self.none()
        return self.influencers["keywords"].apply(
            lambda ids: any(k in wanted for k in ids)
        ).astype(bool)

    def on_platforms(self, platforms: Iterable[str]) -> pd.Series:
        wanted = {p.strip().lower() for p in platforms if p and p.strip()}
        return self._any_platform(lambda p: p["platform"] in wanted)

    def platform_metrics_between(
        self,
        *,
        min_followers: Optional[int] = None,
        max_followers: Optional[int] = None,
        min_engagement: Optional[float] = None,
        max_engagement: Optional[float] = None,
    ) -> pd.Series:
        """Profiles with at least one platform entry satisfying every bound."""

        def matches(entry: Dict[str, Any]) -> bool:
            if min_followers is not None and entry["followers"] < min_followers:
                return False
            if max_followers is not None and entry["followers"] > max_followers:
                return False
            if min_engagement is not None and entry["engagement"] < min_engagement:
                return False
            if max_engagement is not None and entry["engagement"] > max_engagement:
                return False
            return True

        return self._any_platform(matches)

    def located_in(self, place: str) -> pd.Series:
        return self._text_contains("country", place) | self._text_contains("city", place)

    def post_price_at_most(self, budget: float) -> pd.Series:
        return self._any_platform(lambda p: p["pricing_post"] <= budget)

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def select(self, mask: Optional[pd.Series] = None) -> List[Dict[str, Any]]:
        frame = self.influencers if mask is None else self.influencers[mask]
        return frame.to_dict(orient="records")

    def get(self, influencer_id: str) -> Optional[Dict[str, Any]]:
        matches = self.influencers[self.influencers["id"] == str(influencer_id)]
        if matches.empty:
            return None
        return matches.iloc[0].to_dict()

    def match_keywords(self, terms: Sequence[str]) -> List[str]:
        """Ids of active keywords whose name or display name contains any term."""
        terms = [t for t in terms if t]
        if not terms or self.keywords.empty:
            return []

        active = self.keywords[self.keywords["is_active"].astype(bool)]
        mask = pd.Series(False, index=active.index, dtype=bool)
        for term in terms:
            mask |= active["name"].str.contains(term, case=False, regex=False).astype(bool)
            mask |= active["display_name"].str.contains(term, case=False, regex=False).astype(bool)
        return active.loc[mask, "id"].tolist()

    # ------------------------------------------------------------------
    # Aggregates
    # ------------------------------------------------------------------
    def names_containing(self, term: str, limit: int = 5) -> List[str]:
        return self.influencers.loc[self.name_contains(term), "name"].head(limit).tolist()

    def distinct_values_containing(self, column: str, term: str, limit: int = 5) -> List[str]:
        needle = term.lower()
        seen: List[str] = []
        for values in self.influencers[column]:
            for value in values:
                if needle in value.lower() and value not in seen:
                    seen.append(value)
                    if len(seen) >= limit:
                        return seen
        return seen

    def keyword_display_names_containing(self, term: str, limit: int = 5) -> List[str]:
        ids = set(self.match_keywords([term]))
        matched = self.keywords[self.keywords["id"].isin(ids)]
        return matched["display_name"].head(limit).tolist()

    def value_counts(self, column: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Count occurrences of list-column members (or scalar values), most common first."""
        counter: Counter = Counter()
        for value in self.influencers[column]:
            if isinstance(value, list):
                counter.update(v for v in value if v)
            elif value:
                counter[value] += 1
        return [{"value": v, "count": c} for v, c in counter.most_common(limit)]

    def platform_counts(self) -> List[Dict[str, Any]]:
        counter: Counter = Counter()
        for entries in self.influencers["platforms"]:
            counter.update(p["platform"] for p in entries)
        return [{"value": v, "count": c} for v, c in counter.most_common()]

    def platform_metric_stats(self, metric: str) -> Optional[Dict[str, float]]:
        """Min, max and mean of a platform metric; follower bounds stay whole numbers."""
        values = [p[metric] for entries in self.influencers["platforms"] for p in entries]
        if not values:
            return None
        series = pd.Series(values, dtype=float)
        bound = int if metric == "followers" else float
        return {"min": bound(series.min()), "max": bound(series.max()), "avg": float(series.mean())}
