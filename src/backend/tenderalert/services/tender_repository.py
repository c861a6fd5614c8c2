"""
Tender repository.

Queries over the tenders table shared by browsing, admin actions, saved
tenders and the matcher. Only ``active`` tenders are returned to browsing
and matching callers unless a status is asked for explicitly.
"""

import uuid
from datetime import date

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.exceptions import (
    DuplicateEntityException,
    EntityNotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from tenderalert.core.logging import get_logger
from tenderalert.db.base import utcnow
from tenderalert.models.analytics import TenderAnalytics
from tenderalert.models.profile import Profile
from tenderalert.models.tender import (
    ALLOWED_STATUS_TRANSITIONS,
    SavedTender,
    Tender,
    TenderStatus,
)
from tenderalert.schemas.matching import TenderCandidate
from tenderalert.schemas.tender import TenderCreate, TenderFilters

logger = get_logger(__name__)

MATCH_CANDIDATE_LIMIT = 100


async def list_match_candidates(
    db: AsyncSession,
    today: date | None = None,
    limit: int = MATCH_CANDIDATE_LIMIT,
) -> list[TenderCandidate]:
    """Active tenders whose deadline has not passed, newest first."""
    today = today or utcnow().date()
    result = await db.execute(
        select(Tender)
        .where(Tender.status == TenderStatus.ACTIVE, Tender.deadline >= today)
        .order_by(Tender.created_at.desc())
        .limit(limit)
    )
    return [TenderCandidate.model_validate(row) for row in result.scalars().all()]


async def list_tenders(db: AsyncSession, filters: TenderFilters) -> tuple[list[Tender], int]:
    status = filters.status or TenderStatus.ACTIVE
    conditions = [Tender.status == status]

    if filters.category:
        conditions.append(Tender.category == filters.category)
    if filters.location:
        conditions.append(Tender.location.ilike(f"%{filters.location}%"))
    if filters.search:
        pattern = f"%{filters.search}%"
        conditions.append(or_(Tender.title.ilike(pattern), Tender.description.ilike(pattern)))

    total = await db.scalar(select(func.count(Tender.id)).where(*conditions)) or 0
    result = await db.execute(
        select(Tender)
        .where(*conditions)
        .order_by(Tender.created_at.desc())
        .offset(filters.offset)
        .limit(filters.limit)
    )
    return list(result.scalars().all()), total


async def get_tender(db: AsyncSession, tender_id: uuid.UUID) -> Tender:
    tender = await db.get(Tender, tender_id)
    if tender is None:
        raise EntityNotFoundException("Tender", str(tender_id))
    return tender


async def require_admin(db: AsyncSession, user_id: uuid.UUID) -> Profile:
    profile = await db.get(Profile, user_id)
    if profile is None or not profile.is_admin:
        raise PermissionDeniedException("Admin access required")
    return profile


async def create_tender(db: AsyncSession, data: TenderCreate) -> Tender:
    tender = Tender(**data.model_dump(), status=TenderStatus.ACTIVE)
    db.add(tender)
    await db.flush()
    logger.info("Tender created", tender_id=str(tender.id), title=tender.title[:80])
    return tender


async def update_tender_status(
    db: AsyncSession,
    tender_id: uuid.UUID,
    new_status: TenderStatus,
) -> Tender:
    """Apply a lifecycle transition; tender content itself never changes."""
    tender = await get_tender(db, tender_id)
    if new_status not in ALLOWED_STATUS_TRANSITIONS[tender.status]:
        raise ValidationException(
            f"Cannot move tender from {tender.status.value} to {new_status.value}",
            {"status": [f"allowed: {sorted(s.value for s in ALLOWED_STATUS_TRANSITIONS[tender.status])}"]},
        )
    tender.status = new_status
    await db.flush()
    logger.info("Tender status changed", tender_id=str(tender_id), status=new_status.value)
    return tender


async def delete_tender(db: AsyncSession, tender_id: uuid.UUID) -> None:
    tender = await get_tender(db, tender_id)
    await db.delete(tender)
    await db.flush()
    logger.info("Tender deleted", tender_id=str(tender_id))


async def expire_overdue_tenders(db: AsyncSession, today: date | None = None) -> int:
    today = today or utcnow().date()
    result = await db.execute(
        update(Tender)
        .where(Tender.status == TenderStatus.ACTIVE, Tender.deadline < today)
        .values(status=TenderStatus.EXPIRED)
        .execution_options(synchronize_session=False)
    )
    expired = result.rowcount or 0
    logger.info("Overdue tenders expired", count=expired)
    return expired


# Saved tenders

async def bump_analytics(
    db: AsyncSession,
    tender_id: uuid.UUID,
    *,
    views: int = 0,
    saves: int = 0,
) -> TenderAnalytics:
    """Create the analytics row on first use, then increment counters."""
    analytics = await db.scalar(
        select(TenderAnalytics).where(TenderAnalytics.tender_id == tender_id)
    )
    if analytics is None:
        analytics = TenderAnalytics(tender_id=tender_id, views_count=0, saves_count=0)
        db.add(analytics)
    analytics.views_count += views
    analytics.saves_count += saves
    if views:
        analytics.last_viewed = utcnow()
    await db.flush()
    return analytics


async def save_tender(db: AsyncSession, user_id: uuid.UUID, tender_id: uuid.UUID) -> SavedTender:
    await get_tender(db, tender_id)
    existing = await db.scalar(
        select(SavedTender).where(
            SavedTender.user_id == user_id, SavedTender.tender_id == tender_id
        )
    )
    if existing is not None:
        raise DuplicateEntityException("SavedTender", "tender_id", str(tender_id))

    saved = SavedTender(user_id=user_id, tender_id=tender_id)
    db.add(saved)
    await bump_analytics(db, tender_id, saves=1)
    logger.info("Tender saved", user_id=str(user_id), tender_id=str(tender_id))
    return saved


async def unsave_tender(db: AsyncSession, user_id: uuid.UUID, tender_id: uuid.UUID) -> bool:
    result = await db.execute(
        delete(SavedTender).where(
            SavedTender.user_id == user_id, SavedTender.tender_id == tender_id
        )
    )
    return bool(result.rowcount)


async def is_saved(db: AsyncSession, user_id: uuid.UUID, tender_id: uuid.UUID) -> bool:
    found = await db.scalar(
        select(SavedTender.id).where(
            SavedTender.user_id == user_id, SavedTender.tender_id == tender_id
        )
    )
    return found is not None


async def list_saved_tenders(db: AsyncSession, user_id: uuid.UUID) -> list[Tender]:
    result = await db.execute(
        select(Tender)
        .join(SavedTender, SavedTender.tender_id == Tender.id)
        .where(SavedTender.user_id == user_id)
        .order_by(SavedTender.created_at.desc())
    )
    return list(result.scalars().all())
