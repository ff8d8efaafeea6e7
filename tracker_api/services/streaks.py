from datetime import date, timedelta
from typing import Iterable

from tracker_api.models.analytics import StreakState


def advance_streak(state: StreakState, day: date, active_yesterday: bool) -> StreakState:
    """
    Apply the first activity of `day` to a streak.

    Only called when a day's ledger entry is created, never per event.
    """
    current = state.current + 1 if active_yesterday else 1
    return StreakState(
        current=current,
        longest=max(state.longest, current),
        last_active_date=day,
    )


def replay_streak(days: Iterable[date]) -> StreakState:
    """Rebuild a streak from every active day, in any order."""
    state = StreakState()
    seen = set()
    for day in sorted(set(days)):
        state = advance_streak(state, day, (day - timedelta(days=1)) in seen)
        seen.add(day)
    return state


def effective_current(state: StreakState, today: date) -> int:
    """The current streak as of `today`: 0 once a full day has been missed."""
    if state.last_active_date is None:
        return 0
    if state.last_active_date < today - timedelta(days=1):
        return 0
    return state.current
