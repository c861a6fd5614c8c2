"""
Smart tender matcher.

Runs the match pipeline for one user (profile -> candidates -> ranking ->
alerts) and the batch job that repeats it for every user with
notifications switched on.
"""

import uuid
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenderalert.core.logging import get_logger, log_context
from tenderalert.db.base import as_utc, utcnow
from tenderalert.db.session import get_db_context
from tenderalert.models.profile import UserPreferences
from tenderalert.schemas.matching import (
    BatchRunResponse,
    MatchTendersResponse,
    PreferenceSummary,
)
from tenderalert.services.alert_writer import write_match_alerts
from tenderalert.services.preferences import load_match_profile
from tenderalert.services.scoring import rank_matches
from tenderalert.services.tender_repository import list_match_candidates

logger = get_logger(__name__)

TOP_MATCHES_RETURNED = 20


async def match_tenders_for_user(
    db: AsyncSession,
    user_id: uuid.UUID,
    now: datetime | None = None,
) -> MatchTendersResponse:
    now = as_utc(now) if now else utcnow()

    profile = await load_match_profile(db, user_id)
    candidates = await list_match_candidates(db, today=now.date())
    matches = rank_matches(profile, candidates, now)
    alerts = await write_match_alerts(db, user_id, matches)

    logger.info(
        "Tenders matched",
        user_id=str(user_id),
        candidates=len(candidates),
        matches=len(matches),
        alerts_created=len(alerts),
    )

    return MatchTendersResponse(
        total_tenders=len(candidates),
        matches_found=len(matches),
        alerts_created=len(alerts),
        preferences=PreferenceSummary(
            categories=sorted(profile.categories),
            locations=sorted(profile.locations),
            keyword_count=len(profile.keywords),
        ),
        top_matches=[m.summary() for m in matches[:TOP_MATCHES_RETURNED]],
    )


async def notifiable_user_ids(db: AsyncSession) -> list[uuid.UUID]:
    result = await db.execute(
        select(UserPreferences.user_id).where(
            or_(
                UserPreferences.notification_email.is_(True),
                UserPreferences.notification_push.is_(True),
            )
        )
    )
    return list(result.scalars().all())


async def run_for_all_users(
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    now: datetime | None = None,
) -> BatchRunResponse:
    """
    Match every notifiable user, one at a time, each in its own session.

    A failing user is logged and skipped; the batch always completes.
    """
    now = as_utc(now) if now else utcnow()

    async with get_db_context(session_factory) as db:
        user_ids = await notifiable_user_ids(db)

    users_processed = 0
    total_alerts = 0
    failed: list[str] = []

    for user_id in user_ids:
        with log_context(batch="run-for-all-users"):
            try:
                async with get_db_context(session_factory) as db:
                    result = await match_tenders_for_user(db, user_id, now)
            except Exception as e:
                logger.error("Matching failed for user", user_id=str(user_id), error=str(e))
                failed.append(str(user_id))
                continue

        if result.alerts_created > 0:
            users_processed += 1
            total_alerts += result.alerts_created

    logger.info(
        "Batch matching completed",
        users=len(user_ids),
        users_processed=users_processed,
        total_alerts_created=total_alerts,
        failed=len(failed),
    )
    return BatchRunResponse(
        users_processed=users_processed,
        total_alerts_created=total_alerts,
        failed_users=failed,
    )
