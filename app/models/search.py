"""Search-related Pydantic models for the influencer API."""
from typing import List, Optional, Dict, Any, Literal

from pydantic import BaseModel, Field


class SearchRequest(BaseModel):
    search: Optional[str] = Field(default=None, description="Free-text search phrase")
    platforms: List[str] = Field(default_factory=list)
    niche: Optional[str] = Field(default=None)
    location: Optional[str] = Field(default=None)
    keywords: Optional[str] = Field(default=None, description="Comma-separated keyword terms")

    min_followers: Optional[int] = Field(default=None, ge=0)
    max_followers: Optional[int] = Field(default=None, ge=0)
    min_engagement: Optional[float] = Field(default=None, ge=0.0)
    max_engagement: Optional[float] = Field(default=None, ge=0.0)

    campaign_objective: Optional[Literal["awareness", "sales", "both"]] = Field(default=None)
    sort_by: str = Field(default="followers")
    sort_order: Literal["asc", "desc"] = Field(default="desc")
    limit: Optional[int] = Field(default=None, ge=0, le=500)
    skip: int = Field(default=0, ge=0)


class RecommendationRequest(BaseModel):
    campaign_objective: Optional[Literal["awareness", "sales", "both"]] = Field(default=None)
    budget: Optional[float] = Field(default=None, ge=0.0)
    platforms: List[str] = Field(default_factory=list)
    niche: Optional[str] = Field(default=None)
    limit: int = Field(default=10, ge=1, le=100)


class ParseRequest(BaseModel):
    query: str = Field(default="", description="Free-text search phrase to parse")


class ParsedQueryModel(BaseModel):
    search_words: List[str]
    min_followers: Optional[int] = None
    max_followers: Optional[int] = None
    detected_platforms: List[str]
    detected_country: Optional[str] = None


class SearchResponse(BaseModel):
    success: bool
    count: int
    total: int
    data: List[Dict[str, Any]]
    parsed_query: Optional[ParsedQueryModel] = None


class InfluencerListResponse(BaseModel):
    success: bool
    count: int
    total: int
    data: List[Dict[str, Any]]


class RecommendationResponse(BaseModel):
    success: bool
    count: int
    data: List[Dict[str, Any]]


class SuggestionData(BaseModel):
    names: List[str]
    niches: List[str]
    categories: List[str]
    keywords: List[str]


class SuggestionResponse(BaseModel):
    success: bool
    data: SuggestionData


class FilterOptionsResponse(BaseModel):
    success: bool
    data: Dict[str, Any]


class ParseResponse(BaseModel):
    success: bool
    data: ParsedQueryModel


class InfluencerResponse(BaseModel):
    success: bool
    data: Dict[str, Any]
