"""
Subscription lifecycle: activation after payment, access checks, the daily
expiry sweep and the founding-member (early user) program.
"""

import calendar
import math
import uuid
from datetime import datetime, time, timedelta, timezone
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import EntityNotFoundException
from tenderalert.core.logging import get_logger
from tenderalert.db.base import as_utc, utcnow
from tenderalert.models.alert import AlertType, UserAlert
from tenderalert.models.profile import Profile, SubscriptionStatus, SubscriptionType
from tenderalert.schemas.profile import AccessCheck, SubscriptionUpdate
from tenderalert.services.automation import log_automation
from tenderalert.services.paystack import get_plan

logger = get_logger(__name__)

EXPIRY_REMINDER_DAYS = 7
EXPIRY_URGENT_DAYS = 3


def add_months(value: datetime, months: int) -> datetime:
    """Calendar-month arithmetic, clamping the day (Jan 31 + 1 -> Feb 28/29)."""
    month_index = value.month - 1 + months
    year = value.year + month_index // 12
    month = month_index % 12 + 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return value.replace(year=year, month=month, day=day)


async def get_profile(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None:
        raise EntityNotFoundException("Profile", str(user_id))
    return profile


async def activate_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    plan_key: str,
    reference: str | None = None,
    amount: float | None = None,
    now: datetime | None = None,
) -> Profile:
    """Grant the plan's tier for one billing period starting now."""
    now = as_utc(now) if now else utcnow()
    plan = get_plan(plan_key)
    profile = await get_profile(db, user_id)

    profile.subscription_type = (
        SubscriptionType.BUSINESS if "business" in plan.key else SubscriptionType.PRO
    )
    profile.subscription_status = SubscriptionStatus.ACTIVE
    profile.subscription_start_date = now
    profile.subscription_end_date = add_months(now, 12 if plan.is_annual else 1)

    await log_automation(
        db,
        "paystack-payment",
        {
            "action": "subscription_activated",
            "user_id": str(user_id),
            "plan": plan.key,
            "reference": reference,
            "amount": amount,
        },
    )
    logger.info(
        "Subscription activated",
        user_id=str(user_id),
        plan=plan.key,
        ends=profile.subscription_end_date.isoformat(),
    )
    return profile


async def update_subscription(
    db: AsyncSession,
    user_id: uuid.UUID,
    data: SubscriptionUpdate,
    now: datetime | None = None,
) -> Profile:
    """Direct subscription change; ``active`` starts a fresh one-month period."""
    now = as_utc(now) if now else utcnow()
    profile = await get_profile(db, user_id)
    profile.subscription_type = data.subscription_type
    profile.subscription_status = data.subscription_status
    if data.subscription_status == SubscriptionStatus.ACTIVE:
        profile.subscription_start_date = now
        profile.subscription_end_date = add_months(now, 1)
    await db.flush()
    return profile


async def check_access(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> AccessCheck:
    profile = await db.get(Profile, user_id)
    if profile is None:
        return AccessCheck(has_access=False, reason="no_profile")

    return AccessCheck(
        has_access=profile.has_paid_access(as_utc(now) if now else None),
        subscription_type=profile.subscription_type.value,
        subscription_status=profile.subscription_status.value,
        subscription_end_date=profile.subscription_end_date,
    )


def _days_remaining(end: datetime, now: datetime) -> int:
    return max(0, math.ceil((as_utc(end) - now).total_seconds() / 86400))


async def check_subscription_expiry(
    db: AsyncSession,
    now: datetime | None = None,
) -> dict[str, Any]:
    """
    Expire lapsed subscriptions and remind users whose plan ends within a week.

    Reminders go out at most once per user per UTC day.
    """
    now = as_utc(now) if now else utcnow()
    start_of_today = datetime.combine(now.date(), time.min, tzinfo=timezone.utc)
    stats = {"expired": 0, "expiring_soon": 0, "expiring_urgent": 0, "reminders_sent": 0}

    expired_profiles = (
        await db.execute(
            select(Profile).where(
                Profile.subscription_status == SubscriptionStatus.ACTIVE,
                Profile.subscription_end_date.is_not(None),
                Profile.subscription_end_date < start_of_today,
            )
        )
    ).scalars().all()

    for profile in expired_profiles:
        previous = profile.subscription_type.value
        profile.subscription_status = SubscriptionStatus.EXPIRED
        profile.subscription_type = SubscriptionType.FREE
        db.add(
            UserAlert(
                user_id=profile.id,
                type=AlertType.SUBSCRIPTION_EXPIRED.value,
                title="Your subscription has expired",
                message=(
                    f"Your {previous.title()} plan has ended. Renew to keep receiving "
                    "smart tender alerts and bid insights."
                ),
                data={"previous_plan": previous},
            )
        )
        stats["expired"] += 1

    expiring_profiles = (
        await db.execute(
            select(Profile).where(
                Profile.subscription_status == SubscriptionStatus.ACTIVE,
                Profile.subscription_end_date >= start_of_today,
                Profile.subscription_end_date <= now + timedelta(days=EXPIRY_REMINDER_DAYS),
            )
        )
    ).scalars().all()

    for profile in expiring_profiles:
        stats["expiring_soon"] += 1
        days_left = _days_remaining(profile.subscription_end_date, now)
        if days_left <= EXPIRY_URGENT_DAYS:
            stats["expiring_urgent"] += 1

        already_sent = await db.scalar(
            select(UserAlert.id)
            .where(
                UserAlert.user_id == profile.id,
                UserAlert.type == AlertType.SUBSCRIPTION_EXPIRING.value,
                UserAlert.created_at >= start_of_today,
            )
            .limit(1)
        )
        if already_sent is not None:
            continue

        db.add(
            UserAlert(
                user_id=profile.id,
                type=AlertType.SUBSCRIPTION_EXPIRING.value,
                title=f"Subscription expires in {days_left} day{'s' if days_left != 1 else ''}",
                message="Renew now to avoid missing new tender matches.",
                data={
                    "days_remaining": days_left,
                    "subscription_end_date": as_utc(profile.subscription_end_date).isoformat(),
                },
            )
        )
        stats["reminders_sent"] += 1

    await db.flush()
    await log_automation(db, "check-subscription-expiry", stats)
    logger.info("Subscription expiry check completed", **stats)
    return stats


async def grant_early_access(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Enrol a user as a founding member while spots remain."""
    settings = get_settings()
    now = as_utc(now) if now else utcnow()
    profile = await get_profile(db, user_id)

    if profile.is_early_user:
        return {
            "success": True,
            "message": "You are already a founding member",
            "already_enrolled": True,
        }

    enrolled = await db.scalar(
        select(func.count(Profile.id)).where(Profile.is_early_user.is_(True))
    ) or 0
    if enrolled >= settings.early_user_limit:
        return {
            "success": False,
            "message": "The founding member program is full",
            "spots_remaining": 0,
        }

    months = settings.early_user_free_months
    profile.is_early_user = True
    profile.subscription_type = SubscriptionType.PRO
    profile.subscription_status = SubscriptionStatus.ACTIVE
    profile.subscription_start_date = now
    profile.subscription_end_date = add_months(now, months)

    early_user_number = enrolled + 1
    db.add(
        UserAlert(
            user_id=profile.id,
            type=AlertType.EARLY_USER_WELCOME.value,
            title=f"Welcome, founding member #{early_user_number}!",
            message=f"You have {months} months of TenderAlert Pro free.",
            data={
                "early_user_number": early_user_number,
                "free_until": profile.subscription_end_date.isoformat(),
            },
        )
    )
    await db.flush()

    logger.info("Early access granted", user_id=str(user_id), number=early_user_number)
    return {
        "success": True,
        "message": f"Founding member access granted for {months} months",
        "early_user_number": early_user_number,
        "spots_remaining": settings.early_user_limit - early_user_number,
        "subscription_end_date": profile.subscription_end_date.isoformat(),
    }
