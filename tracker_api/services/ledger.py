"""
Per-user learning activity ledger.

Holds the day -> DailyActivity map together with the streak and running
totals it drives. The ledger never reads the clock: every event carries its
day. Persistence lives in services/activity.py, which loads the relevant
slice of a user's ledger under a row lock, applies one event here and writes
the result back.
"""

import logging
from datetime import date, timedelta
from enum import Enum
from typing import Dict, Iterable, List, Optional

from pydantic import BaseModel, Field

from tracker_api.models.analytics import DailyActivity, StreakState, TotalStats
from tracker_api.services.streaks import advance_streak

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 365


class EventKind(str, Enum):
    MARKED_COMPLETE = "marked_complete"
    MARKED_INCOMPLETE = "marked_incomplete"
    WATCH_TIME_REPORTED = "watch_time_reported"


class ActivityEvent(BaseModel):
    kind: EventKind
    minutes: int = Field(0, ge=0)

    @classmethod
    def completed(cls) -> "ActivityEvent":
        return cls(kind=EventKind.MARKED_COMPLETE)

    @classmethod
    def uncompleted(cls) -> "ActivityEvent":
        return cls(kind=EventKind.MARKED_INCOMPLETE)

    @classmethod
    def watch_time(cls, minutes: int) -> "ActivityEvent":
        return cls(kind=EventKind.WATCH_TIME_REPORTED, minutes=minutes)


class LedgerUpdate(BaseModel):
    """What one recorded event did to the ledger."""
    entry: DailyActivity
    new_day: bool = False
    changed: bool = False
    pruned: List[date] = []


class ActivityLedger:
    """Indexed day -> entry map plus the streak and totals derived from it."""

    def __init__(
        self,
        entries: Optional[Iterable[DailyActivity]] = None,
        streak: Optional[StreakState] = None,
        totals: Optional[TotalStats] = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        self.entries: Dict[date, DailyActivity] = {e.date: e for e in entries or []}
        self.streak = streak or StreakState()
        self.totals = totals or TotalStats()
        self.retention_days = retention_days

    def __contains__(self, day: date) -> bool:
        return day in self.entries

    def __len__(self) -> int:
        return len(self.entries)

    def get(self, day: date) -> Optional[DailyActivity]:
        return self.entries.get(day)

    def days(self) -> List[date]:
        return sorted(self.entries)

    def recent(self, limit: int = 7) -> List[DailyActivity]:
        """The latest `limit` entries, oldest first."""
        return [self.entries[d] for d in self.days()[-limit:]]

    def _open_day(self, day: date) -> tuple[DailyActivity, bool]:
        entry = self.entries.get(day)
        if entry is not None:
            return entry, False

        entry = DailyActivity(date=day)
        self.entries[day] = entry
        self.streak = advance_streak(self.streak, day, (day - timedelta(days=1)) in self.entries)
        self.totals.total_active_days += 1
        logger.debug(f"Opened activity day {day}, streak now {self.streak.current}")
        return entry, True

    def record_event(self, video_id: str, day: date, event: ActivityEvent) -> LedgerUpdate:
        """
        Apply one event to `day`.

        Completion toggles are idempotent per day through completed_video_ids;
        counters never drop below zero. Watch time always accumulates.
        """
        entry, new_day = self._open_day(day)
        changed = new_day

        if event.kind == EventKind.MARKED_COMPLETE:
            if video_id not in entry.completed_video_ids:
                entry.completed_video_ids.append(video_id)
                entry.videos_watched += 1
                self.totals.total_videos_watched += 1
                changed = True

        elif event.kind == EventKind.MARKED_INCOMPLETE:
            if video_id in entry.completed_video_ids:
                entry.completed_video_ids.remove(video_id)
                entry.videos_watched = max(0, entry.videos_watched - 1)
                self.totals.total_videos_watched = max(0, self.totals.total_videos_watched - 1)
                changed = True

        elif event.kind == EventKind.WATCH_TIME_REPORTED:
            entry.watch_time_minutes += event.minutes
            self.totals.total_watch_time_minutes += event.minutes
            changed = changed or event.minutes > 0

        pruned = self.prune(day)
        return LedgerUpdate(entry=entry, new_day=new_day, changed=changed, pruned=pruned)

    def retention_cutoff(self, today: date) -> date:
        return today - timedelta(days=self.retention_days)

    def prune(self, today: date) -> List[date]:
        """Drop entries older than the retention window before `today`."""
        cutoff = self.retention_cutoff(today)
        expired = [d for d in self.entries if d < cutoff]
        for d in expired:
            del self.entries[d]
        return sorted(expired)
