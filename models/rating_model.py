from pydantic import BaseModel, Field
from typing import Optional


class RatingIn(BaseModel):
    recipe_id: str
    rating: int = Field(..., ge=1, le=5, description="Rating must be between 1 and 5 stars")


class RatingOut(BaseModel):
    ok: bool = True
    rating: Optional[int] = None


class RatingAggregateOut(BaseModel):
    """Recipe aggregate after a rating write"""
    ok: bool = True
    avg_rating: float
    ratings_count: int
