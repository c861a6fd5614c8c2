"""
RFQ marketplace and consortium operations.

Ownership rules live here so the endpoints stay thin: only the RFQ owner may
edit it or accept a quote, only the supplier may edit their quote, and a
consortium lead cannot leave the group they run.
"""

import uuid

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.exceptions import (
    DuplicateEntityException,
    EntityNotFoundException,
    PermissionDeniedException,
    ValidationException,
)
from tenderalert.core.logging import get_logger
from tenderalert.models.alert import AlertType, UserAlert
from tenderalert.models.consortium import Consortium, ConsortiumMember, ConsortiumStatus, MemberRole
from tenderalert.models.rfq import QuoteStatus, Rfq, RfqQuote, RfqStatus
from tenderalert.schemas.collaboration import (
    ConsortiumCreate,
    QuoteCreate,
    QuoteUpdate,
    RfqCreate,
    RfqFilters,
    RfqUpdate,
)

logger = get_logger(__name__)


async def get_rfq(db: AsyncSession, rfq_id: uuid.UUID) -> Rfq:
    rfq = await db.get(Rfq, rfq_id)
    if rfq is None:
        raise EntityNotFoundException("RFQ", str(rfq_id))
    return rfq


async def get_owned_rfq(db: AsyncSession, rfq_id: uuid.UUID, user_id: uuid.UUID) -> Rfq:
    rfq = await get_rfq(db, rfq_id)
    if rfq.user_id != user_id:
        raise PermissionDeniedException("Only the RFQ owner can do that")
    return rfq


async def create_rfq(db: AsyncSession, user_id: uuid.UUID, data: RfqCreate) -> Rfq:
    rfq = Rfq(user_id=user_id, **data.model_dump())
    db.add(rfq)
    await db.flush()
    logger.info("RFQ created", rfq_id=str(rfq.id), user_id=str(user_id))
    return rfq


async def update_rfq(
    db: AsyncSession,
    rfq_id: uuid.UUID,
    user_id: uuid.UUID,
    data: RfqUpdate,
) -> Rfq:
    rfq = await get_owned_rfq(db, rfq_id, user_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(rfq, field, value)
    await db.flush()
    return rfq


async def delete_rfq(db: AsyncSession, rfq_id: uuid.UUID, user_id: uuid.UUID) -> None:
    rfq = await get_owned_rfq(db, rfq_id, user_id)
    await db.delete(rfq)
    await db.flush()
    logger.info("RFQ deleted", rfq_id=str(rfq_id))


async def list_rfqs(
    db: AsyncSession,
    filters: RfqFilters,
    user_id: uuid.UUID | None = None,
) -> list[Rfq]:
    stmt = select(Rfq)
    if filters.my_rfqs:
        if user_id is None:
            raise ValidationException("user_id is required for my_rfqs", {"user_id": ["required"]})
        stmt = stmt.where(Rfq.user_id == user_id)
    if filters.category:
        stmt = stmt.where(Rfq.category == filters.category)
    if filters.status:
        stmt = stmt.where(Rfq.status == filters.status)
    result = await db.execute(stmt.order_by(Rfq.created_at.desc()))
    return list(result.scalars().all())


async def submit_quote(
    db: AsyncSession,
    rfq_id: uuid.UUID,
    supplier_id: uuid.UUID,
    data: QuoteCreate,
) -> RfqQuote:
    rfq = await get_rfq(db, rfq_id)
    if rfq.status != RfqStatus.OPEN:
        raise ValidationException(
            "This RFQ is no longer accepting quotes",
            {"rfq_id": [f"status is {rfq.status.value}"]},
        )
    if rfq.user_id == supplier_id:
        raise PermissionDeniedException("You cannot quote on your own RFQ")

    quote = RfqQuote(rfq_id=rfq.id, supplier_id=supplier_id, **data.model_dump())
    db.add(quote)
    db.add(
        UserAlert(
            user_id=rfq.user_id,
            type=AlertType.RFQ_QUOTE.value,
            title=f"New quote on: {rfq.title[:60]}",
            message=f"A supplier quoted KES {data.amount:,.0f}",
            data={"rfq_id": str(rfq.id), "amount": data.amount},
        )
    )
    await db.flush()
    logger.info("Quote submitted", rfq_id=str(rfq.id), quote_id=str(quote.id))
    return quote


async def get_quote(db: AsyncSession, quote_id: uuid.UUID) -> RfqQuote:
    quote = await db.get(RfqQuote, quote_id)
    if quote is None:
        raise EntityNotFoundException("Quote", str(quote_id))
    return quote


async def update_quote(
    db: AsyncSession,
    quote_id: uuid.UUID,
    supplier_id: uuid.UUID,
    data: QuoteUpdate,
) -> RfqQuote:
    quote = await get_quote(db, quote_id)
    if quote.supplier_id != supplier_id:
        raise PermissionDeniedException("Only the supplier can edit this quote")
    if quote.status != QuoteStatus.PENDING:
        raise ValidationException("Only pending quotes can be edited", {"quote_id": ["not pending"]})
    for field, value in data.model_dump(exclude_unset=True).items():
        setattr(quote, field, value)
    await db.flush()
    return quote


async def accept_quote(db: AsyncSession, quote_id: uuid.UUID, user_id: uuid.UUID) -> RfqQuote:
    quote = await get_quote(db, quote_id)
    rfq = await get_owned_rfq(db, quote.rfq_id, user_id)

    quote.status = QuoteStatus.ACCEPTED
    rfq.status = RfqStatus.AWARDED
    db.add(
        UserAlert(
            user_id=quote.supplier_id,
            type=AlertType.QUOTE_ACCEPTED.value,
            title=f"Your quote was accepted: {rfq.title[:60]}",
            message=f"Your quote of KES {quote.amount:,.0f} was accepted.",
            data={"rfq_id": str(rfq.id), "quote_id": str(quote.id)},
        )
    )
    await db.flush()
    logger.info("Quote accepted", rfq_id=str(rfq.id), quote_id=str(quote.id))
    return quote


async def list_quotes(db: AsyncSession, rfq_id: uuid.UUID) -> list[RfqQuote]:
    await get_rfq(db, rfq_id)
    result = await db.execute(
        select(RfqQuote).where(RfqQuote.rfq_id == rfq_id).order_by(RfqQuote.amount.asc())
    )
    return list(result.scalars().all())


async def get_consortium(db: AsyncSession, consortium_id: uuid.UUID) -> Consortium:
    consortium = await db.get(Consortium, consortium_id)
    if consortium is None:
        raise EntityNotFoundException("Consortium", str(consortium_id))
    return consortium


async def member_count(db: AsyncSession, consortium_id: uuid.UUID) -> int:
    return await db.scalar(
        select(func.count(ConsortiumMember.id)).where(
            ConsortiumMember.consortium_id == consortium_id
        )
    ) or 0


async def list_consortiums(db: AsyncSession, user_id: uuid.UUID | None = None) -> list[Consortium]:
    stmt = select(Consortium)
    if user_id is not None:
        stmt = stmt.join(ConsortiumMember).where(ConsortiumMember.user_id == user_id)
    result = await db.execute(stmt.order_by(Consortium.created_at.desc()))
    return list(result.scalars().unique().all())


async def create_consortium(db: AsyncSession, user_id: uuid.UUID, data: ConsortiumCreate) -> Consortium:
    consortium = Consortium(created_by=user_id, **data.model_dump(exclude={"expertise"}))
    db.add(consortium)
    await db.flush()
    db.add(
        ConsortiumMember(
            consortium_id=consortium.id,
            user_id=user_id,
            role=MemberRole.LEAD,
            expertise=data.expertise,
        )
    )
    await db.flush()
    logger.info("Consortium created", consortium_id=str(consortium.id), user_id=str(user_id))
    return consortium


async def _membership(
    db: AsyncSession,
    consortium_id: uuid.UUID,
    user_id: uuid.UUID,
) -> ConsortiumMember | None:
    return await db.scalar(
        select(ConsortiumMember).where(
            ConsortiumMember.consortium_id == consortium_id,
            ConsortiumMember.user_id == user_id,
        )
    )


async def join_consortium(
    db: AsyncSession,
    consortium_id: uuid.UUID,
    user_id: uuid.UUID,
    expertise: str | None = None,
) -> ConsortiumMember:
    consortium = await get_consortium(db, consortium_id)
    if await _membership(db, consortium_id, user_id) is not None:
        raise DuplicateEntityException("ConsortiumMember", "user_id", str(user_id))
    if consortium.status == ConsortiumStatus.CLOSED:
        raise ValidationException("Consortium is closed", {"consortium_id": ["closed"]})
    if await member_count(db, consortium_id) >= consortium.max_members:
        raise ValidationException("Consortium is full", {"consortium_id": ["full"]})

    member = ConsortiumMember(
        consortium_id=consortium_id,
        user_id=user_id,
        role=MemberRole.MEMBER,
        expertise=expertise,
    )
    db.add(member)
    await db.flush()
    logger.info("Consortium joined", consortium_id=str(consortium_id), user_id=str(user_id))
    return member


async def leave_consortium(db: AsyncSession, consortium_id: uuid.UUID, user_id: uuid.UUID) -> None:
    member = await _membership(db, consortium_id, user_id)
    if member is None:
        raise EntityNotFoundException("ConsortiumMember", str(user_id))
    if member.role == MemberRole.LEAD:
        raise PermissionDeniedException("The consortium lead cannot leave")
    await db.delete(member)
    await db.flush()


async def list_members(db: AsyncSession, consortium_id: uuid.UUID) -> list[ConsortiumMember]:
    await get_consortium(db, consortium_id)
    result = await db.execute(
        select(ConsortiumMember)
        .where(ConsortiumMember.consortium_id == consortium_id)
        .order_by(ConsortiumMember.created_at.asc())
    )
    return list(result.scalars().all())
