"""
Integration tests for profiles, preferences and the notification feed.
"""

import uuid

import pytest

from tenderalert.models import UserAlert

pytestmark = pytest.mark.integration


@pytest.fixture
def make_alert(db):
    async def _make(user_id, title="New match", is_read=False) -> UserAlert:
        alert = UserAlert(user_id=user_id, type="tender_match", title=title, message="", data={}, is_read=is_read)
        db.add(alert)
        await db.commit()
        return alert

    return _make


class TestProfiles:
    async def test_get_and_update(self, action, make_profile):
        user = await make_profile(first_name="Achieng")

        updated = await action("profiles", "update", user_id=user.id, updates={"company_name": "Lakeside Supplies"})
        fetched = await action("profiles", "get", user_id=user.id)

        assert updated.status_code == 200
        data = fetched.json()["data"]
        assert data["first_name"] == "Achieng"
        assert data["company_name"] == "Lakeside Supplies"
        assert data["subscription_type"] == "free"

    async def test_unknown_profile(self, action):
        response = await action("profiles", "get", user_id=uuid.uuid4())

        assert response.status_code == 404

    async def test_loyalty_points_accumulate(self, action, make_profile):
        user = await make_profile()

        await action("profiles", "add-loyalty-points", user_id=user.id, points=50)
        response = await action("profiles", "add-loyalty-points", user_id=user.id, points=25)
        rejected = await action("profiles", "add-loyalty-points", user_id=user.id, points=-5)

        assert response.json()["loyalty_points"] == 75
        assert rejected.status_code == 422

    async def test_update_subscription_starts_period(self, action, make_profile):
        user = await make_profile()

        response = await action(
            "profiles",
            "update-subscription",
            user_id=user.id,
            subscription_type="pro",
            subscription_status="active",
        )

        data = response.json()["data"]
        assert data["subscription_status"] == "active"
        assert data["subscription_end_date"] is not None


class TestPreferences:
    async def test_missing_preferences_are_null(self, action, make_profile):
        user = await make_profile()

        response = await action("profiles", "get-preferences", user_id=user.id)

        assert response.json()["data"] is None

    async def test_upsert_then_partial_update(self, action, make_profile):
        user = await make_profile()

        created = await action(
            "profiles",
            "update-preferences",
            user_id=user.id,
            preferences={"sectors": ["ICT"], "counties": ["Nairobi"], "budget_max": 5_000_000},
        )
        updated = await action(
            "profiles",
            "update-preferences",
            user_id=user.id,
            preferences={"keywords": ["networking"], "budget_max": None},
        )

        assert created.json()["data"]["notification_email"] is True
        data = updated.json()["data"]
        assert data["sectors"] == ["ICT"]
        assert data["keywords"] == ["networking"]
        assert data["budget_max"] is None

    async def test_budget_range_is_validated(self, action, make_profile):
        user = await make_profile()

        response = await action(
            "profiles",
            "update-preferences",
            user_id=user.id,
            preferences={"budget_min": 10, "budget_max": 5},
        )

        assert response.status_code == 422


class TestNotifications:
    async def test_feed_and_read_state(self, action, make_profile, make_alert):
        user = await make_profile()
        first = await make_alert(user.id, "First")
        await make_alert(user.id, "Second")
        await make_alert(user.id, "Old", is_read=True)

        unread = await action("notifications", "unread-count", user_id=user.id)
        feed = await action("notifications", "get-alerts", user_id=user.id, unread_only=True)
        marked = await action("notifications", "mark-read", user_id=user.id, alert_id=first.id)
        after_one = await action("notifications", "unread-count", user_id=user.id)
        all_read = await action("notifications", "mark-all-read", user_id=user.id)
        after_all = await action("notifications", "unread-count", user_id=user.id)

        assert unread.json()["count"] == 2
        assert {a["title"] for a in feed.json()["data"]} == {"First", "Second"}
        assert marked.json()["data"]["is_read"] is True
        assert after_one.json()["count"] == 1
        assert all_read.json()["updated"] == 1
        assert after_all.json()["count"] == 0

    async def test_cannot_mark_someone_elses_alert(self, action, make_profile, make_alert):
        owner = await make_profile()
        other = await make_profile()
        alert = await make_alert(owner.id)

        response = await action("notifications", "mark-read", user_id=other.id, alert_id=alert.id)

        assert response.status_code == 404

    async def test_feed_limit(self, action, make_profile, make_alert):
        user = await make_profile()
        for i in range(5):
            await make_alert(user.id, f"Alert {i}")

        response = await action("notifications", "get-alerts", user_id=user.id, limit=3)

        assert len(response.json()["data"]) == 3
