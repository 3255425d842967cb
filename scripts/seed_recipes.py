"""
Script to seed the sample recipe catalogue into MongoDB
Run: python scripts/seed_recipes.py
"""

import asyncio
import sys
import os

# Add parent directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from database.mongo import db, ensure_indexes
from utils.recipe_handlers import seed_recipes_if_empty
from utils.rating_handlers import reconcile_rating_aggregates


async def seed_recipes():
    """Seed sample recipes into MongoDB"""
    try:
        print(f"🔄 Connecting to MongoDB: {os.getenv('DATABASE_NAME', 'recipe_app')}")
        await ensure_indexes(db)

        existing_count = await db.recipes.count_documents({})
        print(f"📊 Existing recipes: {existing_count}")

        inserted = await seed_recipes_if_empty(db)
        if not inserted:
            print("ℹ️  Database already has recipes. Skipping seed.")
        else:
            print(f"✅ Successfully inserted {inserted} recipes!")

        stats = await reconcile_rating_aggregates(db)
        print(f"✅ Rating aggregates: {stats}")

        first_recipe = await db.recipes.find_one({})
        if first_recipe:
            print(f"\n📋 Sample recipe:")
            print(f"  - Name: {first_recipe['name']}")
            print(f"  - Cuisine: {first_recipe.get('cuisine')}")
            print(f"  - Rating: {first_recipe.get('avg_rating', 0)} ⭐ ({first_recipe.get('ratings_count', 0)})")

    except Exception as e:
        print(f"❌ Error seeding recipes: {e}")
        import traceback
        traceback.print_exc()


if __name__ == "__main__":
    asyncio.run(seed_recipes())
