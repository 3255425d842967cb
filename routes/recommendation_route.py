"""
# routes/recommendation_route.py
Personalized feed from ratings + favorites, with a global trending feed for cold start.
"""

from fastapi import APIRouter, Depends, Query, HTTPException
from typing import List
from datetime import datetime, timezone
from pydantic import BaseModel
import logging

from core.auth.dependencies import get_current_user_id
from database.mongo import get_database
from models.recipe_model import RecipeOut, recipe_helper
from models.recommendation_engine import RecipeRecommendationEngine, DEFAULT_LIMIT

router = APIRouter()
logger = logging.getLogger(__name__)


class RecommendationResponse(BaseModel):
    recipes: List[RecipeOut]
    total: int
    algorithm: str
    generated_at: datetime


def _response(recipes, algorithm: str) -> RecommendationResponse:
    return RecommendationResponse(
        recipes=[recipe_helper(r) for r in recipes],
        total=len(recipes),
        algorithm=algorithm,
        generated_at=datetime.now(timezone.utc),
    )


@router.get("", response_model=RecommendationResponse)
async def get_recommendations(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100, description="Maximum number of recipes"),
    user_id: str = Depends(get_current_user_id),
    db=Depends(get_database),
):
    """Recipes the user has not rated or favorited, best match first"""
    try:
        engine = RecipeRecommendationEngine(db)
        recipes, algorithm = await engine.get_recommendations(user_id, limit)
    except Exception as e:
        logger.error(f"Recommendation error for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to build recommendations")

    return _response(recipes, algorithm)


@router.get("/trending", response_model=RecommendationResponse)
async def get_trending_recipes(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=100, description="Maximum number of recipes"),
    db=Depends(get_database),
):
    """Global feed sorted by avg_rating desc then ratings_count desc"""
    try:
        recipes = await RecipeRecommendationEngine(db).get_trending_recipes(limit)
    except Exception as e:
        logger.error(f"Trending feed error: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch trending recipes")

    return _response(recipes, "trending")
