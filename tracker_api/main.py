from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager
import logging

from tracker_api import __version__
from tracker_api.config import settings
from tracker_api.database import apply_schema, get_pool, close_pool
from tracker_api.routers import analytics, auth, health, playlists
from tracker_api.auth.firebase import initialize_firebase


# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    logger.info("Starting up Playlist Tracker API...")
    pool = await get_pool()
    logger.info("Database connection pool created")

    if settings.AUTO_MIGRATE:
        await apply_schema(pool)

    if initialize_firebase():
        logger.info("Firebase Admin SDK initialized")
    else:
        logger.warning("Firebase Admin SDK not initialized - authentication disabled")

    if not settings.YOUTUBE_API_KEY:
        logger.warning("YOUTUBE_API_KEY not set - playlist import will fail")

    yield
    logger.info("Shutting down Playlist Tracker API...")
    await close_pool()
    logger.info("Database connection pool closed")


app = FastAPI(
    title="Playlist Tracker API",
    description="Playlist progress, streaks and learning analytics",
    version=__version__,
    lifespan=lifespan
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(auth.router, prefix="/api/auth", tags=["Auth"])
app.include_router(playlists.router, prefix="/api/playlists", tags=["Playlists"])
app.include_router(analytics.router, prefix="/api/analytics", tags=["Analytics"])


@app.get("/")
async def root():
    return {"message": "Playlist Tracker API", "version": __version__}


def run():
    """Console entry point."""
    import uvicorn

    uvicorn.run("tracker_api.main:app", host=settings.API_HOST, port=settings.API_PORT)
