from datetime import date
from typing import Any, Dict, List

import asyncpg
from fastapi import APIRouter, Depends, HTTPException, Query

from tracker_api.auth.dependencies import require_auth
from tracker_api.config import settings
from tracker_api.database import get_pool
from tracker_api.models.analytics import (
    CalendarDay,
    DailyActivity,
    OverallProgress,
    StreakState,
    TotalStats,
    TrackWatchRequest,
)
from tracker_api.models.auth import CurrentUser
from tracker_api.services.activity import fetch_overall_progress, load_ledger, record_activity
from tracker_api.services.clock import get_today
from tracker_api.services.heatmap import render_calendar
from tracker_api.services.ledger import ActivityEvent
from tracker_api.services.streaks import effective_current

router = APIRouter()


def transform_streak(streak: StreakState, today: date) -> Dict[str, Any]:
    return {
        "current": effective_current(streak, today),
        "longest": streak.longest,
        "lastActive": streak.last_active_date.isoformat() if streak.last_active_date else None,
    }


def transform_total_stats(overall: OverallProgress, totals: TotalStats) -> Dict[str, Any]:
    """Playlist completion recomputed from videos, plus the ledger's running counters."""
    return {
        "totalWatched": overall.total_watched,
        "totalVideos": overall.total_videos,
        "completionPercentage": overall.completion_percentage,
        "totalVideosWatched": totals.total_videos_watched,
        "totalWatchTimeMinutes": totals.total_watch_time_minutes,
        "totalActiveDays": totals.total_active_days,
    }


def transform_activity(entry: DailyActivity) -> Dict[str, Any]:
    return {
        "date": entry.date.isoformat(),
        "videosWatched": entry.videos_watched,
        "watchTimeMinutes": entry.watch_time_minutes,
        "videosCompleted": list(entry.completed_video_ids),
    }


def transform_calendar(calendar: List[CalendarDay]) -> List[Dict[str, Any]]:
    return [
        {"date": day.date.isoformat(), "count": day.count, "intensity": day.intensity}
        for day in calendar
    ]


@router.get("/user-stats")
async def get_user_stats(
    user: CurrentUser = Depends(require_auth),
    today: date = Depends(get_today),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Streak, totals, the yearly heatmap and the last seven active days."""
    async with pool.acquire() as conn:
        ledger = await load_ledger(conn, user.id, today)
        overall = await fetch_overall_progress(conn, user.id)

    calendar = render_calendar(
        ledger.entries.values(),
        reference_date=today,
        window_days=settings.CALENDAR_WINDOW_DAYS,
    )

    return {
        "streak": transform_streak(ledger.streak, today),
        "totalStats": transform_total_stats(overall, ledger.totals),
        "calendarData": transform_calendar(calendar),
        "recentActivity": [transform_activity(e) for e in ledger.recent(7)],
    }


@router.get("/calendar")
async def get_calendar(
    days: int = Query(364, ge=1, le=366),
    user: CurrentUser = Depends(require_auth),
    today: date = Depends(get_today),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Heatmap cells for the trailing `days` days, oldest first."""
    async with pool.acquire() as conn:
        ledger = await load_ledger(conn, user.id, today)

    return transform_calendar(render_calendar(ledger.entries.values(), reference_date=today, window_days=days))


@router.post("/track-watch")
async def track_watch(
    payload: TrackWatchRequest,
    user: CurrentUser = Depends(require_auth),
    today: date = Depends(get_today),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Add watched minutes to today's activity."""
    async with pool.acquire() as conn:
        async with conn.transaction():
            ledger, update = await record_activity(
                conn,
                user.id,
                payload.video_id,
                today,
                ActivityEvent.watch_time(payload.watch_time_minutes)
            )

    return {
        "success": True,
        "todayActivity": transform_activity(update.entry),
        "streak": transform_streak(ledger.streak, today),
        "totalWatchTimeMinutes": ledger.totals.total_watch_time_minutes,
    }


@router.get("/profile")
async def get_profile(
    user: CurrentUser = Depends(require_auth),
    today: date = Depends(get_today),
    pool: asyncpg.Pool = Depends(get_pool)
):
    """Profile card: identity plus headline stats."""
    async with pool.acquire() as conn:
        row = await conn.fetchrow(
            "SELECT email, display_name, created_at FROM users WHERE id = $1",
            user.id
        )
        if row is None:
            raise HTTPException(status_code=404, detail="User not found")

        total_playlists = await conn.fetchval(
            "SELECT COUNT(*) FROM playlists WHERE user_id = $1",
            user.id
        )
        ledger = await load_ledger(conn, user.id, today)
        overall = await fetch_overall_progress(conn, user.id)

    return {
        "email": row["email"],
        "displayName": row["display_name"],
        "createdAt": row["created_at"].isoformat() if row["created_at"] else None,
        "stats": {
            "totalWatched": overall.total_watched,
            "totalPlaylists": total_playlists or 0,
            "currentStreak": effective_current(ledger.streak, today),
            "longestStreak": ledger.streak.longest,
            "totalWatchTime": ledger.totals.total_watch_time_minutes,
            "totalActiveDays": ledger.totals.total_active_days,
        },
    }
