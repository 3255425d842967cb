import os
DEBUG = os.getenv("DEBUG", "False").lower() == "true"

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from dotenv import load_dotenv
from datetime import datetime, timezone
import logging
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

load_dotenv()

from core.auth.dependencies import init_firebase
from database.mongo import client, db, ensure_indexes
from utils.rating_handlers import reconcile_rating_aggregates
from routes import recipe_route, rating_route, favorite_route, recommendation_route, generation_route

# ==== Logging ====
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# ==== Init Firebase Admin (optional) ====
FIREBASE_ENABLED = init_firebase()

RATING_RECONCILE_HOUR = int(os.getenv("RATING_RECONCILE_HOUR", "3"))

# ==== FastAPI app ====
app = FastAPI(title="Recipe Recommendation API", version="1.0.0")


# ==== Health Check Endpoint ====
@app.api_route("/", methods=["GET", "HEAD"])
async def root():
    """Root endpoint for health checks"""
    return {
        "status": "ok",
        "message": "Recipe API is running",
        "version": "1.0.0",
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


@app.api_route("/health", methods=["GET", "HEAD"])
async def health_check():
    """Detailed health check endpoint"""
    try:
        await db.command("ping")
        mongo_status = "connected"
    except Exception as e:
        mongo_status = f"error: {str(e)}"

    return {
        "status": "ok",
        "services": {
            "api": "running",
            "mongodb": mongo_status,
            "firebase": "configured" if FIREBASE_ENABLED else "not configured",
        },
        "timestamp": datetime.now(timezone.utc).isoformat()
    }


# ==== Background Scheduler ====
scheduler = AsyncIOScheduler()


async def reconcile_ratings_job():
    """
    Recompute every recipe's avg_rating/ratings_count from the ratings collection.
    Runs daily at RATING_RECONCILE_HOUR server time.
    """
    try:
        logger.info("🔄 Reconciling rating aggregates...")
        await reconcile_rating_aggregates(db)
    except Exception as e:
        logger.error(f"❌ Error in reconcile_ratings_job: {e}")


# ==== Startup Events ====
@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    await ensure_indexes(db)

    # Catch up on anything a crashed write left stale
    await reconcile_ratings_job()

    if not scheduler.running:
        scheduler.add_job(
            reconcile_ratings_job,
            CronTrigger(hour=RATING_RECONCILE_HOUR, minute=0),
            id="reconcile_rating_aggregates",
            name="Recompute recipe rating aggregates",
            replace_existing=True
        )
        scheduler.start()
        logger.info(f"✅ Background scheduler started - Daily reconcile at {RATING_RECONCILE_HOUR}:00")

    logger.info("🚀 Backend services initialized")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    if scheduler.running:
        scheduler.shutdown()
        logger.info("🛑 Background scheduler stopped")
    client.close()


# ==== Routers ====
app.include_router(recipe_route.router, prefix="/recipes", tags=["Recipes"])
app.include_router(rating_route.router, prefix="/api/ratings", tags=["Ratings"])
app.include_router(favorite_route.router, prefix="/api/favorites", tags=["Favorites"])
app.include_router(recommendation_route.router, prefix="/api/recommendations", tags=["Recommendations"])
app.include_router(generation_route.router, prefix="/api/ai", tags=["AI"])

# ==== CORS ====
ALLOWED_ORIGINS = [
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:8000",
]

# Add production frontend URL if exists
FRONTEND_URL = os.getenv("FRONTEND_URL")
if FRONTEND_URL:
    ALLOWED_ORIGINS.append(FRONTEND_URL.rstrip("/"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ==== Logging middleware ====
@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Request: {request.method} {request.url}")
    response = await call_next(request)
    logger.info(f"Response: {response.status_code}")
    return response


@app.exception_handler(Exception)
async def general_exception_handler(request, exc):
    logger.exception("Unhandled error")  # full stacktrace
    detail = str(exc) if DEBUG else "Internal server error"
    return JSONResponse(status_code=500, content={"detail": detail})
