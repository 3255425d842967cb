import motor.motor_asyncio
import os
import logging
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

MONGODB_URI = os.getenv("MONGODB_URI", "mongodb://localhost:27017")
DB_NAME = os.getenv("DATABASE_NAME", "recipe_app")
MONGODB_TLS = os.getenv("MONGODB_TLS", "False").lower() == "true"

# ASYNC MongoDB client (Motor)
client = motor.motor_asyncio.AsyncIOMotorClient(
    MONGODB_URI,
    tls=MONGODB_TLS,
    serverSelectionTimeoutMS=30000,
)
db = client[DB_NAME]


def get_database():
    """FastAPI dependency returning the shared database handle"""
    return db


async def ensure_indexes(database) -> None:
    """
    Create the indexes the rating/favorite upserts and the trending sort rely on
    """
    try:
        # Re-rating overwrites: one rating per user and recipe
        await database.ratings.create_index([("user_id", 1), ("recipe_id", 1)], unique=True)
        await database.ratings.create_index("user_id")
        await database.ratings.create_index("recipe_id")

        await database.favorites.create_index([("user_id", 1), ("recipe_id", 1)], unique=True)
        await database.favorites.create_index("user_id")

        await database.recipes.create_index("name")
        await database.recipes.create_index("cuisine")
        await database.recipes.create_index("tags")
        await database.recipes.create_index([("avg_rating", -1), ("ratings_count", -1)])

        logger.info("✅ Indexes ensured")
    except Exception as e:
        logger.warning(f"⚠️ Index creation failed (may already exist): {e}")
