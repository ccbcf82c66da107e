"""Influencer profile API endpoints"""
from fastapi import APIRouter, HTTPException, Depends

from app.api.v1.search import result_to_dict
from app.dependencies import get_search_engine
from app.models.search import InfluencerResponse


router = APIRouter()


@router.get("/{influencer_id}", response_model=InfluencerResponse)
async def get_influencer_detail(
    influencer_id: str,
    search_engine=Depends(get_search_engine)
):
    """Get a single influencer with computed totals and its match score"""
    sanitized = influencer_id.strip()
    if not sanitized:
        raise HTTPException(status_code=400, detail="Influencer id is required")

    result = search_engine.get_influencer(sanitized)
    if result is None:
        raise HTTPException(status_code=404, detail="Influencer not found")
    return {"success": True, "data": result_to_dict(result)}
