from __future__ import annotations

from typing import List, Optional, Tuple

from pydantic import BaseModel, Field

from playstore.filters import INSTALLS_BOUNDS, RATING_BOUNDS


class FilterCriteriaModel(BaseModel):
    selected_categories: List[str] = Field(default_factory=list)
    rating_range: Tuple[float, float] = RATING_BOUNDS
    selected_sentiments: List[str] = Field(default_factory=list)
    selected_app_types: List[str] = Field(default_factory=list)
    installs_range: Tuple[int, int] = INSTALLS_BOUNDS
    selected_content_ratings: List[str] = Field(default_factory=list)
    recently_updated_only: bool = False


class CompareRequest(BaseModel):
    filters: FilterCriteriaModel = Field(default_factory=FilterCriteriaModel)
    names: List[str] = Field(default_factory=list, max_length=2)


class StatusResponse(BaseModel):
    status: str
    error: Optional[str] = None
    apps: int = 0
    reviews: int = 0


class MetaOptionsResponse(BaseModel):
    categories: List[str]
    content_ratings: List[str]
    app_types: List[str]
    sentiments: List[str]
