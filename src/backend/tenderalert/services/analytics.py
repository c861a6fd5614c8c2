"""
Dashboard counters and trending tenders.
"""

import uuid
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.models.analytics import TenderAnalytics
from tenderalert.models.consortium import ConsortiumMember
from tenderalert.models.rfq import Rfq
from tenderalert.models.tender import SavedTender, Tender, TenderStatus

TRENDING_LIMIT = 10


async def _count(db: AsyncSession, stmt) -> int:
    return await db.scalar(stmt) or 0


async def dashboard_stats(db: AsyncSession, user_id: uuid.UUID) -> dict[str, int]:
    return {
        "saved_tenders": await _count(
            db, select(func.count(SavedTender.id)).where(SavedTender.user_id == user_id)
        ),
        "active_tenders": await _count(
            db, select(func.count(Tender.id)).where(Tender.status == TenderStatus.ACTIVE)
        ),
        "my_rfqs": await _count(db, select(func.count(Rfq.id)).where(Rfq.user_id == user_id)),
        "consortiums": await _count(
            db,
            select(func.count(ConsortiumMember.id)).where(ConsortiumMember.user_id == user_id),
        ),
    }


async def trending_tenders(db: AsyncSession, limit: int = TRENDING_LIMIT) -> list[dict[str, Any]]:
    """Active tenders with the most views, ties broken by saves."""
    rows = (
        await db.execute(
            select(Tender, TenderAnalytics)
            .join(TenderAnalytics, TenderAnalytics.tender_id == Tender.id)
            .where(Tender.status == TenderStatus.ACTIVE)
            .order_by(TenderAnalytics.views_count.desc(), TenderAnalytics.saves_count.desc())
            .limit(limit)
        )
    ).all()
    return [
        {
            "tender_id": str(tender.id),
            "title": tender.title,
            "organization": tender.organization,
            "category": tender.category,
            "deadline": tender.deadline.isoformat(),
            "views_count": analytics.views_count,
            "saves_count": analytics.saves_count,
        }
        for tender, analytics in rows
    ]
