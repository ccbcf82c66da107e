"""Influencer search API endpoints."""
import logging
from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, Query

from app.config import settings
from app.core.query_parser import default_parser
from app.dependencies import get_search_engine
from app.models.search import (
    SearchRequest,
    RecommendationRequest,
    ParseRequest,
    SearchResponse,
    InfluencerListResponse,
    RecommendationResponse,
    SuggestionResponse,
    FilterOptionsResponse,
    ParseResponse,
)

router = APIRouter()

logger = logging.getLogger("search_api")
if not logger.handlers:
    handler = logging.StreamHandler()
    formatter = logging.Formatter("[SearchAPI] %(asctime)s %(levelname)s: %(message)s")
    handler.setFormatter(formatter)
    logger.addHandler(handler)
logger.setLevel(getattr(logging, settings.LOG_LEVEL, logging.INFO))


def _format_number(value: int) -> str:
    if value >= 1_000_000:
        return f"{value / 1_000_000:.1f}M"
    if value >= 1_000:
        return f"{value / 1_000:.1f}K"
    return str(int(value))


def result_to_dict(result) -> Dict[str, Any]:
    payload = asdict(result)
    payload["followers_formatted"] = _format_number(result.total_followers)
    payload["platform_count"] = result.platform_count
    return payload


@router.post("/", response_model=SearchResponse)
async def search_influencers(request: SearchRequest, search_engine=Depends(get_search_engine)):
    logger.info(
        "Search request | search=%s platforms=%s niche=%s location=%s sort=%s/%s limit=%s skip=%s",
        request.search,
        request.platforms,
        request.niche,
        request.location,
        request.sort_by,
        request.sort_order,
        request.limit,
        request.skip,
    )

    try:
        page = search_engine.search_influencers(
            search=request.search,
            platforms=request.platforms,
            niche=request.niche,
            location=request.location,
            keywords=request.keywords,
            min_followers=request.min_followers,
            max_followers=request.max_followers,
            min_engagement=request.min_engagement,
            max_engagement=request.max_engagement,
            campaign_objective=request.campaign_objective,
            sort_by=request.sort_by,
            sort_order=request.sort_order,
            limit=request.limit,
            skip=request.skip,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Search failed: %s", exc)
        raise HTTPException(status_code=500, detail="Search failed") from exc

    payload = [result_to_dict(result) for result in page.results]
    return SearchResponse(
        success=True,
        count=len(payload),
        total=page.total,
        data=payload,
        parsed_query=page.parsed_query.to_dict() if page.parsed_query else None,
    )


@router.get("/all", response_model=InfluencerListResponse)
async def get_all_influencers(search_engine=Depends(get_search_engine)):
    try:
        results = search_engine.get_all_influencers()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Listing influencers failed: %s", exc)
        raise HTTPException(status_code=500, detail="Listing influencers failed") from exc

    payload = [result_to_dict(result) for result in results]
    return InfluencerListResponse(success=True, count=len(payload), total=len(payload), data=payload)


@router.get("/suggestions", response_model=SuggestionResponse)
async def get_search_suggestions(
    q: str = Query(default="", description="Partial search term"),
    search_engine=Depends(get_search_engine),
):
    try:
        suggestions = search_engine.get_search_suggestions(q)
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Suggestions failed: %s", exc)
        raise HTTPException(status_code=500, detail="Suggestions failed") from exc

    return {"success": True, "data": suggestions}


@router.get("/filters", response_model=FilterOptionsResponse)
async def get_filter_options(search_engine=Depends(get_search_engine)):
    try:
        options = search_engine.get_filter_options()
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Filter options failed: %s", exc)
        raise HTTPException(status_code=500, detail="Filter options failed") from exc

    return {"success": True, "data": options}


@router.post("/recommendations", response_model=RecommendationResponse)
async def get_recommendations(request: RecommendationRequest, search_engine=Depends(get_search_engine)):
    logger.info(
        "Recommendations | objective=%s platforms=%s niche=%s budget=%s limit=%s",
        request.campaign_objective,
        request.platforms,
        request.niche,
        request.budget,
        request.limit,
    )

    try:
        results = search_engine.get_recommendations(
            campaign_objective=request.campaign_objective,
            platforms=request.platforms,
            niche=request.niche,
            budget=request.budget,
            limit=request.limit,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:  # pylint: disable=broad-except
        logger.exception("Recommendations failed: %s", exc)
        raise HTTPException(status_code=500, detail="Recommendations failed") from exc

    payload = [result_to_dict(result) for result in results]
    return RecommendationResponse(success=True, count=len(payload), data=payload)


@router.post("/parse", response_model=ParseResponse)
async def parse_search_query(request: ParseRequest):
    parsed = default_parser.parse(request.query)
    return {"success": True, "data": parsed.to_dict()}
