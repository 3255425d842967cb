"""
Recipe Route Handlers
Saved-recipe catalogue: list/seed, save, check, delete
"""
import logging
from datetime import datetime, timezone
from fastapi import HTTPException
from bson import ObjectId

from models.recipe_model import RecipeIn, RecipeOut, RecipeListOut, RecipeCheckOut, recipe_helper

logger = logging.getLogger(__name__)


SEED_RECIPES = [
    {
        "name": "Margherita Pizza",
        "description": "Neapolitan classic with tomato, mozzarella and basil",
        "cuisine": "Italian",
        "ingredients": ["Pizza dough", "Tomato sauce", "Mozzarella", "Basil", "Olive oil", "Salt"],
        "instructions": [
            "Preheat oven to 250°C/480°F",
            "Spread sauce on dough",
            "Top with mozzarella",
            "Bake 7-10 min until bubbly",
            "Finish with basil and olive oil",
        ],
        "nutrition": {"calories": 280, "protein": 12, "carbs": 36, "fat": 9},
        "tags": ["Vegetarian"],
        "difficulty": "Medium",
        "time": "30 minutes",
        "servings": 2,
    },
    {
        "name": "Chicken Stir-Fry",
        "description": "Quick weeknight stir-fry with crisp vegetables",
        "cuisine": "Chinese",
        "ingredients": ["Chicken breast", "Bell pepper", "Broccoli", "Garlic", "Soy sauce", "Ginger"],
        "instructions": [
            "Slice chicken and vegetables",
            "Sear chicken in a hot wok, 3-4 min",
            "Add garlic and ginger, 30 sec",
            "Add vegetables and cook 3 min",
            "Glaze with soy sauce and serve over rice",
        ],
        "nutrition": {"calories": 350, "protein": 32, "carbs": 18, "fat": 14},
        "tags": ["High-Protein", "Dairy-Free"],
        "difficulty": "Easy",
        "time": "20 minutes",
        "servings": 2,
    },
    {
        "name": "Chickpea Curry",
        "description": "Creamy tomato and coconut curry",
        "cuisine": "Indian",
        "ingredients": ["Chickpeas", "Onion", "Garlic", "Tomato", "Coconut milk", "Garam masala"],
        "instructions": [
            "Sweat onion and garlic 5 min",
            "Bloom spices 1 min",
            "Add tomato, chickpeas and coconut milk",
            "Simmer 15 min and season",
        ],
        "nutrition": {"calories": 420, "protein": 14, "carbs": 48, "fat": 19},
        "tags": ["Vegan", "Gluten-Free"],
        "difficulty": "Easy",
        "time": "30 minutes",
        "servings": 4,
    },
    {
        "name": "Beef Bourguignon",
        "description": "Slow-braised beef in red wine",
        "cuisine": "French",
        "ingredients": ["Beef chuck", "Red wine", "Carrot", "Onion", "Mushrooms", "Bacon"],
        "instructions": [
            "Brown bacon and beef in batches",
            "Soften carrot and onion",
            "Deglaze with wine and braise 2.5 h at 160°C",
            "Add sautéed mushrooms and reduce the sauce",
        ],
        "nutrition": {"calories": 610, "protein": 45, "carbs": 14, "fat": 34},
        "tags": ["High-Protein"],
        "difficulty": "Hard",
        "time": "3 h",
        "servings": 6,
    },
    {
        "name": "Greek Salad",
        "description": "Tomato, cucumber and feta with oregano dressing",
        "cuisine": "Greek",
        "ingredients": ["Tomato", "Cucumber", "Red onion", "Feta", "Olives", "Olive oil"],
        "instructions": [
            "Chop vegetables into bite-size pieces",
            "Whisk olive oil, vinegar and oregano",
            "Toss and top with feta",
        ],
        "nutrition": {"calories": 230, "protein": 7, "carbs": 10, "fat": 19},
        "tags": ["Vegetarian", "Gluten-Free"],
        "difficulty": "Easy",
        "time": "15 minutes",
        "servings": 2,
    },
]


# ==================== HELPER FUNCTIONS ====================

def _validate_object_id(object_id: str, field_name: str = "ID") -> ObjectId:
    """
    Validate and convert string to ObjectId
    Raises HTTPException if invalid
    """
    if not object_id or not isinstance(object_id, str):
        raise HTTPException(status_code=400, detail=f"Invalid {field_name}: empty or not string")

    if not ObjectId.is_valid(object_id):
        raise HTTPException(status_code=400, detail=f"Invalid {field_name} format")

    return ObjectId(object_id)


def _new_recipe_document(data: dict) -> dict:
    now = datetime.now(timezone.utc)
    doc = dict(data)
    # Backend-managed fields
    doc["avg_rating"] = 0.0
    doc["ratings_count"] = 0
    doc["created_at"] = now
    doc["updated_at"] = now
    return doc


async def seed_recipes_if_empty(db) -> int:
    """Insert the sample catalogue into an empty collection; returns inserted count"""
    count = await db.recipes.estimated_document_count()
    if count > 0:
        return 0
    result = await db.recipes.insert_many([_new_recipe_document(r) for r in SEED_RECIPES])
    logger.info(f"🌱 Seeded {len(result.inserted_ids)} sample recipes")
    return len(result.inserted_ids)


async def require_recipe(db, recipe_oid: ObjectId) -> dict:
    recipe = await db.recipes.find_one({"_id": recipe_oid})
    if not recipe:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return recipe


# ==================== RECIPE HANDLERS ====================

async def list_recipes_handler(db) -> RecipeListOut:
    """
    All saved recipes, newest first. Seeds the sample catalogue on first use.
    """
    try:
        await seed_recipes_if_empty(db)
    except Exception as e:
        logger.error(f"Seeding error: {e}")

    try:
        recipes = await db.recipes.find({}).sort("created_at", -1).to_list(length=None)
    except Exception as e:
        logger.error(f"Failed to fetch recipes: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch recipes")

    return RecipeListOut(count=len(recipes), recipes=[recipe_helper(r) for r in recipes])


async def create_recipe_handler(db, recipe: RecipeIn) -> RecipeOut:
    """
    Persist a generated or hand-entered recipe
    """
    try:
        result = await db.recipes.insert_one(_new_recipe_document(recipe.dict()))
        created = await db.recipes.find_one({"_id": result.inserted_id})
    except Exception as e:
        logger.error(f"Failed to create recipe {recipe.name!r}: {e}")
        raise HTTPException(status_code=500, detail="Failed to create recipe")

    logger.info(f"Recipe created: {result.inserted_id} ({recipe.name})")
    return recipe_helper(created)


async def get_recipe_handler(db, recipe_id: str) -> RecipeOut:
    recipe_oid = _validate_object_id(recipe_id, "recipe ID")

    try:
        recipe = await require_recipe(db, recipe_oid)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to fetch recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to fetch recipe")

    return recipe_helper(recipe)


async def check_recipe_handler(db, recipe_id: str) -> RecipeCheckOut:
    """Whether a recipe id is already saved"""
    recipe_oid = _validate_object_id(recipe_id, "recipe ID")

    try:
        recipe = await db.recipes.find_one({"_id": recipe_oid}, {"_id": 1})
    except Exception as e:
        logger.error(f"Failed to check recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to check recipe")

    return RecipeCheckOut(is_saved=recipe is not None)


async def delete_recipe_handler(db, recipe_id: str = None, delete_all: bool = False) -> dict:
    """
    Delete one recipe (or all) together with its ratings and favorites
    """
    if not recipe_id and not delete_all:
        raise HTTPException(status_code=400, detail="Provide id or all=true")

    try:
        if delete_all:
            result = await db.recipes.delete_many({})
            await db.ratings.delete_many({})
            await db.favorites.delete_many({})
            logger.info(f"🗑️ Deleted all recipes ({result.deleted_count})")
            return {"ok": True, "deleted_all": True, "deleted_count": result.deleted_count}

        recipe_oid = _validate_object_id(recipe_id, "recipe ID")
        result = await db.recipes.delete_one({"_id": recipe_oid})
        if result.deleted_count == 0:
            raise HTTPException(status_code=404, detail="Recipe not found")

        ratings_result = await db.ratings.delete_many({"recipe_id": recipe_oid})
        favorites_result = await db.favorites.delete_many({"recipe_id": recipe_oid})
        logger.info(
            f"🗑️ Deleted recipe {recipe_id} "
            f"({ratings_result.deleted_count} ratings, {favorites_result.deleted_count} favorites)"
        )
        return {"ok": True}

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Failed to delete recipe {recipe_id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to delete recipe")
