"""
Persistence for the activity ledger.

record_activity() must run inside a transaction: it locks the user's
learning_stats row first, so concurrent events for one user apply one after
another instead of overwriting each other's counters.
"""

import logging
from datetime import date, timedelta
from typing import Optional
from uuid import UUID

import asyncpg

from tracker_api.config import settings
from tracker_api.models.analytics import DailyActivity, OverallProgress, StreakState, TotalStats
from tracker_api.services.ledger import ActivityEvent, ActivityLedger, LedgerUpdate
from tracker_api.services.progress import compute_overall_progress

logger = logging.getLogger(__name__)


def row_to_activity(row) -> DailyActivity:
    return DailyActivity(
        date=row["activity_date"],
        videos_watched=row["videos_watched"],
        watch_time_minutes=row["watch_time_minutes"],
        completed_video_ids=list(row["completed_video_ids"] or []),
    )


def row_to_streak(row) -> StreakState:
    if row is None:
        return StreakState()
    return StreakState(
        current=row["streak_current"],
        longest=row["streak_longest"],
        last_active_date=row["last_active_date"],
    )


def row_to_totals(row) -> TotalStats:
    if row is None:
        return TotalStats()
    return TotalStats(
        total_videos_watched=row["total_videos_watched"],
        total_watch_time_minutes=row["total_watch_time_minutes"],
        total_active_days=row["total_active_days"],
    )


async def record_activity(
    conn: asyncpg.Connection,
    user_id: UUID,
    video_id: str,
    day: date,
    event: ActivityEvent,
    retention_days: Optional[int] = None,
) -> tuple[ActivityLedger, LedgerUpdate]:
    """Apply one event to a user's ledger for `day` and persist the result."""
    retention_days = retention_days or settings.ACTIVITY_RETENTION_DAYS

    await conn.execute(
        "INSERT INTO learning_stats (user_id) VALUES ($1) ON CONFLICT (user_id) DO NOTHING",
        user_id
    )
    stats = await conn.fetchrow(
        "SELECT * FROM learning_stats WHERE user_id = $1 FOR UPDATE",
        user_id
    )

    # Only today and yesterday matter for one event
    rows = await conn.fetch(
        """
        SELECT * FROM daily_activity
        WHERE user_id = $1 AND activity_date = ANY($2::date[])
        """,
        user_id,
        [day, day - timedelta(days=1)]
    )

    ledger = ActivityLedger(
        entries=[row_to_activity(r) for r in rows],
        streak=row_to_streak(stats),
        totals=row_to_totals(stats),
        retention_days=retention_days,
    )
    update = ledger.record_event(video_id, day, event)
    entry = update.entry

    if update.changed:
        await conn.execute(
            """
            INSERT INTO daily_activity (
                user_id, activity_date, videos_watched, watch_time_minutes, completed_video_ids
            ) VALUES ($1, $2, $3, $4, $5)
            ON CONFLICT (user_id, activity_date) DO UPDATE
              SET videos_watched      = EXCLUDED.videos_watched,
                  watch_time_minutes  = EXCLUDED.watch_time_minutes,
                  completed_video_ids = EXCLUDED.completed_video_ids
            """,
            user_id,
            entry.date,
            entry.videos_watched,
            entry.watch_time_minutes,
            entry.completed_video_ids
        )

        await conn.execute(
            """
            UPDATE learning_stats
            SET streak_current = $2,
                streak_longest = $3,
                last_active_date = $4,
                total_videos_watched = $5,
                total_watch_time_minutes = $6,
                total_active_days = $7
            WHERE user_id = $1
            """,
            user_id,
            ledger.streak.current,
            ledger.streak.longest,
            ledger.streak.last_active_date,
            ledger.totals.total_videos_watched,
            ledger.totals.total_watch_time_minutes,
            ledger.totals.total_active_days
        )

    await conn.execute(
        "DELETE FROM daily_activity WHERE user_id = $1 AND activity_date < $2",
        user_id,
        ledger.retention_cutoff(day)
    )

    if update.new_day:
        logger.info(f"User {user_id} active on {day}, streak {ledger.streak.current}")

    return ledger, update


async def load_ledger(
    conn: asyncpg.Connection,
    user_id: UUID,
    today: date,
    retention_days: Optional[int] = None,
) -> ActivityLedger:
    """Read-only view of a user's retained ledger, streak and totals."""
    retention_days = retention_days or settings.ACTIVITY_RETENTION_DAYS
    ledger = ActivityLedger(retention_days=retention_days)

    stats = await conn.fetchrow(
        "SELECT * FROM learning_stats WHERE user_id = $1",
        user_id
    )
    rows = await conn.fetch(
        """
        SELECT * FROM daily_activity
        WHERE user_id = $1 AND activity_date >= $2
        ORDER BY activity_date
        """,
        user_id,
        ledger.retention_cutoff(today)
    )

    ledger.entries = {r["activity_date"]: row_to_activity(r) for r in rows}
    ledger.streak = row_to_streak(stats)
    ledger.totals = row_to_totals(stats)
    return ledger


async def fetch_overall_progress(conn: asyncpg.Connection, user_id: UUID) -> OverallProgress:
    """Completion across all of the user's playlists, recomputed from the videos."""
    rows = await conn.fetch(
        """
        SELECT
            p.id,
            COUNT(v.video_id) FILTER (WHERE v.completed) AS completed,
            COUNT(v.video_id) AS total
        FROM playlists p
        LEFT JOIN playlist_videos v ON v.playlist_uuid = p.id
        WHERE p.user_id = $1
        GROUP BY p.id
        """,
        user_id
    )
    return compute_overall_progress((row["completed"], row["total"]) for row in rows)
