"""
Alert writer.

Persists ``tender_match`` alerts for a user's strongest matches, at most
once per (user, tender). The existence check and the insert are separate
statements, so two overlapping runs for the same user can both insert.
"""

import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.logging import get_logger
from tenderalert.models.alert import AlertType, UserAlert
from tenderalert.schemas.matching import TenderMatch

logger = get_logger(__name__)

ALERT_TOP_N = 10
ALERT_MIN_SCORE = 40
ALERT_TITLE_CHARS = 60
ALERT_MESSAGE_REASONS = 3


async def match_alert_exists(db: AsyncSession, user_id: uuid.UUID, tender_id: uuid.UUID) -> bool:
    found = await db.scalar(
        select(UserAlert.id)
        .where(
            UserAlert.user_id == user_id,
            UserAlert.type == AlertType.TENDER_MATCH.value,
            UserAlert.data["tender_id"].as_string() == str(tender_id),
        )
        .limit(1)
    )
    return found is not None


def build_match_alert(user_id: uuid.UUID, match: TenderMatch) -> UserAlert:
    tender = match.tender
    return UserAlert(
        user_id=user_id,
        type=AlertType.TENDER_MATCH.value,
        title=f"{match.level}: {tender.title[:ALERT_TITLE_CHARS]}...",
        message=" • ".join(match.reasons[:ALERT_MESSAGE_REASONS]),
        data={
            "tender_id": str(tender.id),
            "match_score": match.score,
            "match_level": match.level,
            "match_reasons": match.reasons,
            "tender_deadline": tender.deadline.isoformat(),
            "tender_budget": tender.budget_estimate,
        },
        is_read=False,
    )


async def write_match_alerts(
    db: AsyncSession,
    user_id: uuid.UUID,
    matches: Sequence[TenderMatch],
) -> list[UserAlert]:
    """
    Insert alerts for the top matches that clear the alert threshold.

    ``matches`` must already be ranked best-first.
    """
    created: list[UserAlert] = []

    for match in matches[:ALERT_TOP_N]:
        if match.score < ALERT_MIN_SCORE:
            continue
        if await match_alert_exists(db, user_id, match.tender.id):
            continue

        alert = build_match_alert(user_id, match)
        db.add(alert)
        created.append(alert)

    if created:
        await db.flush()

    logger.info("Match alerts written", user_id=str(user_id), created=len(created))
    return created
