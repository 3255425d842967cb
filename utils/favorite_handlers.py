"""
Favorite Route Handlers
A favorite is a bare (user, recipe) membership fact
"""
import logging
from datetime import datetime, timezone
from fastapi import HTTPException

from models.favorite_model import FavoriteIn, FavoriteListOut, FavoriteToggleOut
from utils.recipe_handlers import _validate_object_id, require_recipe

logger = logging.getLogger(__name__)


async def list_favorites_handler(db, user_id: str) -> FavoriteListOut:
    try:
        docs = await db.favorites.find({"user_id": user_id}).to_list(length=None)
    except Exception as e:
        logger.error(f"Failed to read favorites of {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to read favorites")

    return FavoriteListOut(recipe_ids=[str(d["recipe_id"]) for d in docs])


async def add_favorite_handler(db, payload: FavoriteIn, user_id: str) -> FavoriteToggleOut:
    recipe_oid = _validate_object_id(payload.recipe_id, "recipe ID")

    try:
        await require_recipe(db, recipe_oid)
        # Idempotent: favoriting twice keeps a single document
        await db.favorites.update_one(
            {"user_id": user_id, "recipe_id": recipe_oid},
            {"$setOnInsert": {
                "user_id": user_id,
                "recipe_id": recipe_oid,
                "created_at": datetime.now(timezone.utc),
            }},
            upsert=True,
        )
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to favorite {payload.recipe_id} for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to add favorite")

    logger.info(f"➕ {user_id} favorited {payload.recipe_id}")
    return FavoriteToggleOut(is_favorite=True)


async def remove_favorite_handler(db, recipe_id: str, user_id: str) -> FavoriteToggleOut:
    recipe_oid = _validate_object_id(recipe_id, "recipe ID")

    try:
        result = await db.favorites.delete_one({"user_id": user_id, "recipe_id": recipe_oid})
    except Exception as e:
        logger.error(f"Failed to unfavorite {recipe_id} for {user_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to remove favorite")

    if result.deleted_count:
        logger.info(f"➖ {user_id} unfavorited {recipe_id}")
    return FavoriteToggleOut(is_favorite=False)
