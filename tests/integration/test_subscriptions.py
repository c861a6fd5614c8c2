"""
Integration tests for the subscription lifecycle.

Covers:
- Plan activation and calendar-month periods
- The daily expiry sweep and its once-a-day reminders
- The founding-member program
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import select

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import EntityNotFoundException, ValidationException
from tenderalert.db.base import as_utc, utcnow
from tenderalert.models import AlertType, SubscriptionStatus, SubscriptionType, UserAlert
from tenderalert.services.subscriptions import (
    activate_subscription,
    add_months,
    check_access,
    check_subscription_expiry,
    grant_early_access,
)

pytestmark = pytest.mark.integration


def subscriber(make_profile, ends_in: timedelta, plan=SubscriptionType.PRO):
    now = utcnow()
    return make_profile(
        subscription_type=plan,
        subscription_status=SubscriptionStatus.ACTIVE,
        subscription_start_date=now - timedelta(days=30),
        subscription_end_date=now + ends_in,
    )


@pytest.mark.unit
class TestAddMonths:
    def test_clamps_to_month_end(self):
        assert add_months(datetime(2026, 1, 31, tzinfo=timezone.utc), 1).day == 28

    def test_rolls_over_the_year(self):
        result = add_months(datetime(2026, 11, 15, tzinfo=timezone.utc), 12)

        assert (result.year, result.month, result.day) == (2027, 11, 15)


class TestActivation:
    async def test_monthly_plan(self, db, make_profile):
        profile = await make_profile()
        now = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)

        activated = await activate_subscription(db, profile.id, "business", reference="ref-1", now=now)

        assert activated.subscription_type == SubscriptionType.BUSINESS
        assert activated.subscription_status == SubscriptionStatus.ACTIVE
        assert as_utc(activated.subscription_end_date) == datetime(2026, 4, 30, 12, 0, tzinfo=timezone.utc)

    async def test_annual_plan(self, db, make_profile):
        profile = await make_profile()
        now = datetime(2026, 3, 1, tzinfo=timezone.utc)

        activated = await activate_subscription(db, profile.id, "pro_annual", now=now)

        assert activated.subscription_type == SubscriptionType.PRO
        assert as_utc(activated.subscription_end_date) == datetime(2027, 3, 1, tzinfo=timezone.utc)

    async def test_unknown_plan(self, db, make_profile):
        profile = await make_profile()

        with pytest.raises(ValidationException):
            await activate_subscription(db, profile.id, "enterprise")

    async def test_unknown_user(self, db):
        with pytest.raises(EntityNotFoundException):
            await activate_subscription(db, uuid.uuid4(), "pro")

    async def test_check_access(self, db, make_profile):
        paid = await subscriber(make_profile, timedelta(days=10))
        lapsed = await subscriber(make_profile, timedelta(days=-1))
        free = await make_profile()

        assert (await check_access(db, paid.id)).has_access
        assert not (await check_access(db, lapsed.id)).has_access
        assert not (await check_access(db, free.id)).has_access


class TestExpirySweep:
    async def test_expires_lapsed_subscriptions(self, db, make_profile):
        lapsed = await subscriber(make_profile, timedelta(days=-2))

        stats = await check_subscription_expiry(db)

        assert stats["expired"] == 1
        await db.refresh(lapsed)
        assert lapsed.subscription_status == SubscriptionStatus.EXPIRED
        assert lapsed.subscription_type == SubscriptionType.FREE
        alert = await db.scalar(select(UserAlert).where(UserAlert.user_id == lapsed.id))
        assert alert.type == AlertType.SUBSCRIPTION_EXPIRED.value
        assert alert.data == {"previous_plan": "pro"}

    async def test_reminds_expiring_users_once_a_day(self, db, make_profile):
        urgent = await subscriber(make_profile, timedelta(days=2))
        await subscriber(make_profile, timedelta(days=6))
        await subscriber(make_profile, timedelta(days=40))

        first = await check_subscription_expiry(db)
        second = await check_subscription_expiry(db)

        assert first == {"expired": 0, "expiring_soon": 2, "expiring_urgent": 1, "reminders_sent": 2}
        assert second["expiring_soon"] == 2
        assert second["reminders_sent"] == 0

        reminder = await db.scalar(select(UserAlert).where(UserAlert.user_id == urgent.id))
        assert reminder.title == "Subscription expires in 2 days"
        assert reminder.data["days_remaining"] == 2

    async def test_check_expiry_action(self, action, make_profile):
        await subscriber(make_profile, timedelta(days=-3))

        response = await action("subscriptions", "check-expiry")

        assert response.status_code == 200
        assert response.json()["stats"]["expired"] == 1


class TestEarlyAccess:
    async def test_grants_free_pro_months(self, db, make_profile):
        profile = await make_profile()
        now = datetime(2026, 2, 1, tzinfo=timezone.utc)

        result = await grant_early_access(db, profile.id, now=now)

        assert result["success"] is True
        assert result["early_user_number"] == 1
        assert result["spots_remaining"] == get_settings().early_user_limit - 1
        assert profile.is_early_user
        assert profile.subscription_type == SubscriptionType.PRO
        assert as_utc(profile.subscription_end_date) == datetime(2027, 2, 1, tzinfo=timezone.utc)

    async def test_already_enrolled(self, db, make_profile):
        profile = await make_profile(is_early_user=True)

        result = await grant_early_access(db, profile.id)

        assert result["already_enrolled"] is True

    async def test_program_full(self, db, make_profile, monkeypatch):
        monkeypatch.setattr(get_settings(), "early_user_limit", 1)
        await make_profile(is_early_user=True)
        latecomer = await make_profile()

        result = await grant_early_access(db, latecomer.id)

        assert result == {
            "success": False,
            "message": "The founding member program is full",
            "spots_remaining": 0,
        }
        assert not latecomer.is_early_user

    async def test_full_program_reported_over_http(self, action, make_profile, monkeypatch):
        monkeypatch.setattr(get_settings(), "early_user_limit", 1)
        await make_profile(is_early_user=True)
        latecomer = await make_profile()

        response = await action("subscriptions", "grant-early-access", user_id=latecomer.id)

        assert response.status_code == 200
        assert response.json()["success"] is False
