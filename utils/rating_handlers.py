"""
Rating Route Handlers
One rating per (user, recipe); every write recomputes the recipe aggregate
"""
import logging
from datetime import datetime, timezone
from fastapi import HTTPException

from models.rating_model import RatingIn, RatingOut, RatingAggregateOut
from utils.recipe_handlers import _validate_object_id, require_recipe

logger = logging.getLogger(__name__)


def _rating_aggregate_pipeline(match: dict) -> list:
    return [
        {"$match": match},
        {"$group": {
            "_id": "$recipe_id",
            "count": {"$sum": 1},
            "avg": {"$avg": "$rating"},
        }},
    ]


async def recompute_rating_aggregate(db, recipe_oid) -> dict:
    """
    Recompute avg_rating/ratings_count of one recipe from the ratings collection.
    The aggregate is never incremented in place, so it cannot drift.
    """
    agg = await db.ratings.aggregate(_rating_aggregate_pipeline({"recipe_id": recipe_oid})).to_list(length=1)

    if agg:
        avg_rating = float(agg[0]["avg"])
        ratings_count = int(agg[0]["count"])
    else:
        avg_rating, ratings_count = 0.0, 0

    await db.recipes.update_one(
        {"_id": recipe_oid},
        {"$set": {
            "avg_rating": avg_rating,
            "ratings_count": ratings_count,
            "updated_at": datetime.now(timezone.utc),
        }},
    )
    return {"avg_rating": avg_rating, "ratings_count": ratings_count}


async def get_user_rating_handler(db, recipe_id: str, user_id: str) -> RatingOut:
    recipe_oid = _validate_object_id(recipe_id, "recipe ID")

    try:
        doc = await db.ratings.find_one({"user_id": user_id, "recipe_id": recipe_oid})
    except Exception as e:
        logger.error(f"Failed to read rating of {user_id} for {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to read rating")

    return RatingOut(rating=doc["rating"] if doc else None)


async def rate_recipe_handler(db, payload: RatingIn, user_id: str) -> RatingAggregateOut:
    """
    Upsert the user's rating (re-rating overwrites) and refresh the recipe aggregate
    """
    recipe_oid = _validate_object_id(payload.recipe_id, "recipe ID")

    try:
        await require_recipe(db, recipe_oid)

        now = datetime.now(timezone.utc)
        await db.ratings.update_one(
            {"user_id": user_id, "recipe_id": recipe_oid},
            {
                "$set": {"rating": payload.rating, "updated_at": now},
                "$setOnInsert": {"created_at": now},
            },
            upsert=True,
        )

        aggregate = await recompute_rating_aggregate(db, recipe_oid)

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to rate recipe {payload.recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to rate recipe")

    logger.info(
        f"Recipe {payload.recipe_id} rated by {user_id}: {payload.rating} "
        f"(avg: {aggregate['avg_rating']:.2f}, count: {aggregate['ratings_count']})"
    )
    return RatingAggregateOut(**aggregate)


async def reconcile_rating_aggregates(db) -> dict:
    """
    Recompute every recipe aggregate from the ratings collection.
    Repairs recipes left stale by a failed write between upsert and recompute.
    """
    stats = {"recipes_updated": 0, "recipes_reset": 0}
    now = datetime.now(timezone.utc)

    groups = await db.ratings.aggregate(_rating_aggregate_pipeline({})).to_list(length=None)
    rated_ids = []
    for group in groups:
        rated_ids.append(group["_id"])
        await db.recipes.update_one(
            {"_id": group["_id"]},
            {"$set": {
                "avg_rating": float(group["avg"]),
                "ratings_count": int(group["count"]),
                "updated_at": now,
            }},
        )
        stats["recipes_updated"] += 1

    # Recipes whose ratings are all gone
    result = await db.recipes.update_many(
        {"_id": {"$nin": rated_ids}, "ratings_count": {"$gt": 0}},
        {"$set": {"avg_rating": 0.0, "ratings_count": 0, "updated_at": now}},
    )
    stats["recipes_reset"] = result.modified_count

    logger.info(f"✅ Rating aggregates reconciled: {stats}")
    return stats
