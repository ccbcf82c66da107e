import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from app.main import app  # noqa: E402
from app.core.query_parser import parse_search_query  # noqa: E402
from app.core.search_engine import InfluencerResult, SearchPage  # noqa: E402
from app.dependencies import get_optional_search_engine, get_search_engine  # noqa: E402


def _influencer(**overrides) -> InfluencerResult:
    values = dict(
        id="inf-1",
        name="Creator",
        bio="Lifestyle creator in SF",
        country="United States",
        city="San Francisco",
        niche=["lifestyle"],
        platforms=[
            {
                "platform": "instagram",
                "username": "creator",
                "profile_url": "https://instagram.com/creator",
                "followers": 125000,
                "engagement": 4.5,
                "verified": True,
                "pricing_post": 500.0,
            }
        ],
        platform_list=["instagram"],
        total_followers=125000,
        avg_engagement=4.5,
        match_score=58,
    )
    values.update(overrides)
    return InfluencerResult(**values)


class StubSearchEngine:
    def __init__(self) -> None:
        self.calls = []
        self.search_handler = None

    def search_influencers(self, **kwargs):
        self.calls.append(("search", kwargs))
        if self.search_handler is not None:
            return self.search_handler(**kwargs)
        search = kwargs.get("search")
        return SearchPage(
            results=[_influencer()],
            total=3,
            parsed_query=parse_search_query(search) if search and search.strip() else None,
        )

    def get_all_influencers(self):
        self.calls.append(("all", {}))
        return [_influencer(), _influencer(id="inf-2", name="Second", total_followers=900)]

    def get_search_suggestions(self, q):
        self.calls.append(("suggestions", {"q": q}))
        return {"names": ["Creator"], "niches": [], "categories": [], "keywords": ["Fitness"]}

    def get_filter_options(self):
        return {
            "platforms": [{"value": "instagram", "count": 1}],
            "niches": [],
            "categories": [],
            "countries": [],
            "follower_range": {"min_followers": 0, "max_followers": 500000, "avg_followers": 0},
            "engagement_range": {"min_engagement": 0, "max_engagement": 100, "avg_engagement": 0},
        }

    def get_recommendations(self, **kwargs):
        self.calls.append(("recommendations", kwargs))
        return [_influencer(match_score=None, recommendation_score=61)]

    def get_influencer(self, influencer_id):
        if influencer_id == "inf-1":
            return _influencer()
        return None


@pytest.fixture()
def api_client():
    stub = StubSearchEngine()
    app.dependency_overrides[get_search_engine] = lambda: stub
    client = TestClient(app)
    try:
        yield client, stub
    finally:
        app.dependency_overrides.pop(get_search_engine, None)


def test_search_forwards_filters(api_client):
    client, stub = api_client
    response = client.post(
        "/search/",
        json={
            "search": "fitness",
            "platforms": ["youtube"],
            "min_followers": 5000,
            "sort_by": "engagement",
            "sort_order": "asc",
            "limit": 10,
            "skip": 20,
        },
    )
    assert response.status_code == 200
    _, call = stub.calls[-1]
    assert call["search"] == "fitness"
    assert call["platforms"] == ["youtube"]
    assert call["min_followers"] == 5000
    assert call["sort_by"] == "engagement"
    assert call["sort_order"] == "asc"
    assert call["limit"] == 10
    assert call["skip"] == 20


def test_search_response_envelope(api_client):
    client, _ = api_client
    response = client.post("/search/", json={"search": "usa fashion blogger 50k+"})
    assert response.status_code == 200
    payload = response.json()
    assert payload["success"] is True
    assert payload["count"] == 1
    assert payload["total"] == 3
    assert payload["data"][0]["id"] == "inf-1"
    assert payload["data"][0]["followers_formatted"] == "125.0K"
    assert payload["data"][0]["platform_count"] == 1
    assert payload["parsed_query"]["detected_country"] == "United States"
    assert payload["parsed_query"]["min_followers"] == 50000


def test_search_defaults(api_client):
    client, stub = api_client
    response = client.post("/search/", json={})
    assert response.status_code == 200
    assert response.json()["parsed_query"] is None
    _, call = stub.calls[-1]
    assert call["sort_by"] == "followers"
    assert call["sort_order"] == "desc"
    assert call["limit"] is None
    assert call["skip"] == 0


def test_search_rejects_negative_followers(api_client):
    client, _ = api_client
    response = client.post("/search/", json={"min_followers": -1})
    assert response.status_code == 422


def test_search_value_error_maps_to_400(api_client):
    client, stub = api_client

    def search_handler(**kwargs):
        raise ValueError("bad sort field")

    stub.search_handler = search_handler
    response = client.post("/search/", json={"search": "fitness"})
    assert response.status_code == 400
    assert response.json()["detail"] == "bad sort field"


def test_search_unexpected_error_maps_to_500(api_client):
    client, stub = api_client

    def search_handler(**kwargs):
        raise RuntimeError("store exploded")

    stub.search_handler = search_handler
    response = client.post("/search/", json={"search": "fitness"})
    assert response.status_code == 500
    assert response.json()["detail"] == "Search failed"


def test_all_influencers(api_client):
    client, _ = api_client
    response = client.get("/search/all")
    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 2
    assert payload["total"] == 2
    assert [item["id"] for item in payload["data"]] == ["inf-1", "inf-2"]


def test_suggestions_pass_query(api_client):
    client, stub = api_client
    response = client.get("/search/suggestions", params={"q": "fit"})
    assert response.status_code == 200
    assert response.json()["data"]["keywords"] == ["Fitness"]
    assert stub.calls[-1] == ("suggestions", {"q": "fit"})


def test_filter_options(api_client):
    client, _ = api_client
    response = client.get("/search/filters")
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["platforms"] == [{"value": "instagram", "count": 1}]
    assert data["follower_range"]["max_followers"] == 500000


def test_recommendations(api_client):
    client, stub = api_client
    response = client.post(
        "/search/recommendations",
        json={"campaign_objective": "sales", "budget": 1000, "limit": 5},
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["count"] == 1
    assert payload["data"][0]["recommendation_score"] == 61
    _, call = stub.calls[-1]
    assert call["campaign_objective"] == "sales"
    assert call["budget"] == 1000
    assert call["limit"] == 5


def test_recommendations_reject_unknown_objective(api_client):
    client, _ = api_client
    response = client.post("/search/recommendations", json={"campaign_objective": "virality"})
    assert response.status_code == 422


def test_parse_endpoint(api_client):
    client, _ = api_client
    response = client.post("/search/parse", json={"query": "youtube tech reviewer"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["detected_platforms"] == ["youtube"]
    assert data["search_words"] == ["tech", "reviewer"]
    assert data["max_followers"] is None


def test_influencer_detail(api_client):
    client, _ = api_client
    response = client.get("/influencers/inf-1")
    assert response.status_code == 200
    assert response.json()["data"]["name"] == "Creator"


def test_influencer_detail_not_found(api_client):
    client, _ = api_client
    response = client.get("/influencers/missing")
    assert response.status_code == 404


def test_search_unavailable_without_engine():
    app.dependency_overrides.pop(get_search_engine, None)
    client = TestClient(app)
    response = client.post("/search/", json={"search": "fitness"})
    assert response.status_code == 503


def test_parse_works_without_engine():
    app.dependency_overrides.pop(get_search_engine, None)
    client = TestClient(app)
    response = client.post("/search/parse", json={"query": "usa fashion blogger 50k+"})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["detected_country"] == "United States"
    assert data["min_followers"] == 50000


def test_recommendations_ignore_target_audience(api_client):
    client, stub = api_client
    response = client.post(
        "/search/recommendations",
        json={"campaign_objective": "awareness", "target_audience": "gen z"},
    )
    assert response.status_code == 200
    _, call = stub.calls[-1]
    assert "target_audience" not in call
    assert call["campaign_objective"] == "awareness"


def test_health_reports_ok_with_engine():
    app.dependency_overrides[get_optional_search_engine] = lambda: StubSearchEngine()
    try:
        response = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.pop(get_optional_search_engine, None)
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["search_engine"] is True


def test_health_reports_degraded_without_engine():
    app.dependency_overrides[get_optional_search_engine] = lambda: None
    try:
        response = TestClient(app).get("/health")
    finally:
        app.dependency_overrides.pop(get_optional_search_engine, None)
    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "degraded"
    assert payload["search_engine"] is False
