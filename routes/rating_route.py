from fastapi import APIRouter, Depends

from core.auth.dependencies import get_current_user_id
from database.mongo import get_database
from models.rating_model import RatingIn, RatingOut, RatingAggregateOut
from utils.rating_handlers import get_user_rating_handler, rate_recipe_handler

router = APIRouter()


@router.get("", response_model=RatingOut)
async def get_rating(recipe_id: str, user_id: str = Depends(get_current_user_id), db=Depends(get_database)):
    return await get_user_rating_handler(db, recipe_id, user_id)


@router.post("", response_model=RatingAggregateOut)
async def rate_recipe(payload: RatingIn, user_id: str = Depends(get_current_user_id), db=Depends(get_database)):
    return await rate_recipe_handler(db, payload, user_id)
