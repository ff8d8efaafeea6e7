"""
Analytics endpoints: streak view, heatmap, watch-time reporting and profile.
"""

from datetime import datetime, timedelta, timezone

import pytest

from fakes import TODAY

pytestmark = pytest.mark.asyncio


def _stats(**overrides):
    row = {
        "streak_current": 3,
        "streak_longest": 6,
        "last_active_date": TODAY,
        "total_videos_watched": 12,
        "total_watch_time_minutes": 240,
        "total_active_days": 9,
    }
    row.update(overrides)
    return row


def _day(offset, videos_watched=1, minutes=0):
    return {
        "activity_date": TODAY - timedelta(days=offset),
        "videos_watched": videos_watched,
        "watch_time_minutes": minutes,
        "completed_video_ids": [f"v{offset}-{i}" for i in range(videos_watched)],
    }


class TestUserStats:

    async def test_user_stats(self, auth_client):
        client, conn, _ = auth_client
        conn.fetchrow.return_value = _stats()
        conn.fetch.side_effect = [
            [_day(offset, videos_watched=offset) for offset in range(10, 0, -1)] + [_day(0, 6)],
            [{"id": 1, "completed": 4, "total": 10}],
        ]

        resp = await client.get("/api/analytics/user-stats")

        assert resp.status_code == 200
        body = resp.json()
        assert body["streak"] == {"current": 3, "longest": 6, "lastActive": TODAY.isoformat()}
        assert body["totalStats"]["completionPercentage"] == 40.0
        assert body["totalStats"]["totalActiveDays"] == 9

        calendar = body["calendarData"]
        assert len(calendar) == 364
        assert calendar[-1] == {"date": TODAY.isoformat(), "count": 6, "intensity": 4}
        assert calendar[-2]["intensity"] == 1

        recent = body["recentActivity"]
        assert len(recent) == 7
        assert recent[-1]["date"] == TODAY.isoformat()

    async def test_stale_streak_reported_as_zero(self, auth_client):
        client, conn, _ = auth_client
        conn.fetchrow.return_value = _stats(last_active_date=TODAY - timedelta(days=2))

        resp = await client.get("/api/analytics/user-stats")

        body = resp.json()
        assert body["streak"]["current"] == 0
        assert body["streak"]["longest"] == 6

    async def test_new_user(self, auth_client):
        client, _, _ = auth_client
        resp = await client.get("/api/analytics/user-stats")

        assert resp.status_code == 200
        body = resp.json()
        assert body["streak"] == {"current": 0, "longest": 0, "lastActive": None}
        assert body["recentActivity"] == []
        assert all(day["count"] == 0 for day in body["calendarData"])


class TestCalendar:

    async def test_custom_window(self, auth_client):
        client, conn, _ = auth_client
        conn.fetch.return_value = [_day(0, 2)]

        resp = await client.get("/api/analytics/calendar", params={"days": 7})

        assert resp.status_code == 200
        body = resp.json()
        assert len(body) == 7
        assert body[0]["date"] == (TODAY - timedelta(days=6)).isoformat()
        assert body[-1]["count"] == 2

    @pytest.mark.parametrize("days", [0, 400])
    async def test_window_bounds(self, auth_client, days):
        client, _, _ = auth_client
        resp = await client.get("/api/analytics/calendar", params={"days": days})
        assert resp.status_code == 422


class TestTrackWatch:

    async def test_adds_minutes(self, auth_client):
        client, conn, _ = auth_client
        conn.fetchrow.return_value = _stats(last_active_date=TODAY - timedelta(days=1))
        conn.fetch.return_value = [_day(0, videos_watched=0, minutes=20)]

        resp = await client.post(
            "/api/analytics/track-watch",
            json={"videoId": "v1", "watchTimeMinutes": 15}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["success"] is True
        assert body["todayActivity"]["watchTimeMinutes"] == 35
        assert body["todayActivity"]["videosWatched"] == 0
        assert body["totalWatchTimeMinutes"] == 255
        conn.transaction.assert_called_once()

    async def test_first_activity_of_day_starts_streak(self, auth_client):
        client, _, _ = auth_client
        resp = await client.post(
            "/api/analytics/track-watch",
            json={"videoId": "v1", "watchTimeMinutes": 5}
        )

        body = resp.json()
        assert body["streak"]["current"] == 1
        assert body["todayActivity"]["date"] == TODAY.isoformat()

    @pytest.mark.parametrize("minutes", [-1, 2000])
    async def test_invalid_minutes(self, auth_client, minutes):
        client, _, _ = auth_client
        resp = await client.post(
            "/api/analytics/track-watch",
            json={"videoId": "v1", "watchTimeMinutes": minutes}
        )
        assert resp.status_code == 422


class TestProfile:

    async def test_profile(self, auth_client):
        client, conn, _ = auth_client
        conn.fetchrow.side_effect = [
            {
                "email": "learner@example.com",
                "display_name": "Learner",
                "created_at": datetime(2024, 1, 1, tzinfo=timezone.utc),
            },
            _stats(),
        ]
        conn.fetchval.return_value = 2
        conn.fetch.side_effect = [
            [_day(0, 2)],
            [{"id": 1, "completed": 5, "total": 8}],
        ]

        resp = await client.get("/api/analytics/profile")

        assert resp.status_code == 200
        body = resp.json()
        assert body["displayName"] == "Learner"
        assert body["stats"] == {
            "totalWatched": 5,
            "totalPlaylists": 2,
            "currentStreak": 3,
            "longestStreak": 6,
            "totalWatchTime": 240,
            "totalActiveDays": 9,
        }

    async def test_profile_missing_user(self, auth_client):
        client, _, _ = auth_client
        resp = await client.get("/api/analytics/profile")
        assert resp.status_code == 404
