"""
Tests for streak transitions, replay and the "as of today" view.
"""

from datetime import date, timedelta

from tracker_api.models.analytics import StreakState
from tracker_api.services.streaks import advance_streak, effective_current, replay_streak

D = date(2024, 3, 10)


class TestAdvanceStreak:

    def test_first_day(self):
        state = advance_streak(StreakState(), D, active_yesterday=False)
        assert state.current == 1
        assert state.longest == 1
        assert state.last_active_date == D

    def test_consecutive_days(self):
        state = StreakState()
        for offset in range(3):
            day = D + timedelta(days=offset)
            state = advance_streak(state, day, active_yesterday=offset > 0)
        assert state.current == 3
        assert state.longest == 3
        assert state.last_active_date == D + timedelta(days=2)

    def test_gap_resets_current_keeps_longest(self):
        state = StreakState(current=5, longest=5, last_active_date=D)
        state = advance_streak(state, D + timedelta(days=3), active_yesterday=False)
        assert state.current == 1
        assert state.longest == 5

    def test_input_not_mutated(self):
        original = StreakState(current=2, longest=4, last_active_date=D)
        advance_streak(original, D + timedelta(days=1), active_yesterday=True)
        assert original.current == 2


class TestReplayStreak:

    def test_matches_incremental(self):
        days = [D, D + timedelta(days=1), D + timedelta(days=2), D + timedelta(days=5), D + timedelta(days=6)]
        state = replay_streak(days)
        assert state.current == 2
        assert state.longest == 3
        assert state.last_active_date == D + timedelta(days=6)

    def test_order_and_duplicates_ignored(self):
        days = [D + timedelta(days=1), D, D + timedelta(days=1)]
        assert replay_streak(days) == replay_streak([D, D + timedelta(days=1)])

    def test_no_days(self):
        assert replay_streak([]) == StreakState()


class TestEffectiveCurrent:

    def test_active_today(self):
        assert effective_current(StreakState(current=4, longest=4, last_active_date=D), D) == 4

    def test_active_yesterday(self):
        state = StreakState(current=4, longest=4, last_active_date=D)
        assert effective_current(state, D + timedelta(days=1)) == 4

    def test_missed_full_day(self):
        state = StreakState(current=4, longest=6, last_active_date=D)
        assert effective_current(state, D + timedelta(days=2)) == 0
        assert state.current == 4

    def test_never_active(self):
        assert effective_current(StreakState(), D) == 0
