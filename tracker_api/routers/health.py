import logging
from datetime import datetime, timezone

import asyncpg
from fastapi import APIRouter, Depends

from tracker_api import __version__
from tracker_api.config import settings
from tracker_api.database import get_pool
from tracker_api.models.system import HealthStatus

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health", response_model=HealthStatus)
async def health_check(pool: asyncpg.Pool = Depends(get_pool)):
    """Check API and dependencies health status."""
    db_status = "healthy"
    try:
        async with pool.acquire() as conn:
            await conn.fetchval("SELECT 1")
    except (asyncpg.PostgresError, OSError) as e:
        logger.warning(f"Health check database failure: {e}")
        db_status = f"unhealthy: {str(e)}"

    return HealthStatus(
        status="healthy" if db_status == "healthy" else "degraded",
        database=db_status,
        youtube="configured" if settings.YOUTUBE_API_KEY else "not_configured",
        version=__version__,
        timestamp=datetime.now(timezone.utc)
    )
