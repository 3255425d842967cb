from fastapi import APIRouter, Depends

from core.auth.dependencies import get_current_user_id
from database.mongo import get_database
from models.favorite_model import FavoriteIn, FavoriteListOut, FavoriteToggleOut
from utils.favorite_handlers import list_favorites_handler, add_favorite_handler, remove_favorite_handler

router = APIRouter()


@router.get("", response_model=FavoriteListOut)
async def list_favorites(user_id: str = Depends(get_current_user_id), db=Depends(get_database)):
    return await list_favorites_handler(db, user_id)


@router.post("", response_model=FavoriteToggleOut)
async def add_favorite(payload: FavoriteIn, user_id: str = Depends(get_current_user_id), db=Depends(get_database)):
    return await add_favorite_handler(db, payload, user_id)


@router.delete("", response_model=FavoriteToggleOut)
async def remove_favorite(recipe_id: str, user_id: str = Depends(get_current_user_id), db=Depends(get_database)):
    return await remove_favorite_handler(db, recipe_id, user_id)
