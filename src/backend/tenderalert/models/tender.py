"""
Tender model - core entity for government procurement notices.

Tenders are scraped from Kenyan procurement portals (or created by admins)
and are immutable once stored, apart from the status lifecycle.
"""

import enum
import uuid
from datetime import date
from typing import TYPE_CHECKING, Any

from sqlalchemy import Date, Enum, ForeignKey, Numeric, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenderalert.db.base import Base, JSONType, TimestampMixin, enum_values

if TYPE_CHECKING:
    from tenderalert.models.analytics import TenderAnalytics


class TenderStatus(str, enum.Enum):
    """Lifecycle status of a tender."""

    ACTIVE = "active"       # Open for bids, eligible for matching
    CLOSED = "closed"       # Withdrawn or awarded
    EXPIRED = "expired"     # Deadline passed


# Only active tenders may move, and only to a terminal state
ALLOWED_STATUS_TRANSITIONS: dict[TenderStatus, set[TenderStatus]] = {
    TenderStatus.ACTIVE: {TenderStatus.CLOSED, TenderStatus.EXPIRED},
    TenderStatus.CLOSED: set(),
    TenderStatus.EXPIRED: set(),
}


class Tender(Base, TimestampMixin):
    """
    A published procurement opportunity.

    ``status`` is the single eligibility flag: only ``active`` tenders are
    browsed, matched or alerted on.
    """

    __tablename__ = "tenders"

    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    organization: Mapped[str] = mapped_column(String(300), nullable=False, index=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(100), nullable=False, default="Kenya", index=True)

    budget_estimate: Mapped[float | None] = mapped_column(
        Numeric(15, 2, asdecimal=False),
        nullable=True,
        comment="Estimated value in KES",
    )
    deadline: Mapped[date] = mapped_column(Date, nullable=False, index=True)

    status: Mapped[TenderStatus] = mapped_column(
        Enum(TenderStatus, name="tenderstatus", values_callable=enum_values),
        default=TenderStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    tender_number: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    requirements: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    contact_phone: Mapped[str | None] = mapped_column(String(50), nullable=True)
    source_url: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    scraped_from: Mapped[str | None] = mapped_column(
        String(100),
        nullable=True,
        comment="Source key the tender was scraped from; NULL for manual entries",
    )
    raw_data: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)

    analytics: Mapped["TenderAnalytics | None"] = relationship(
        "TenderAnalytics",
        back_populates="tender",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def is_active(self) -> bool:
        return self.status == TenderStatus.ACTIVE

    def __repr__(self) -> str:
        return f"<Tender(id={self.id}, title='{self.title[:50]}...', status='{self.status}')>"


class SavedTender(Base, TimestampMixin):
    """
    A user's bookmark on a tender.

    Saved tenders double as an implicit preference signal for matching.
    """

    __tablename__ = "saved_tenders"
    __table_args__ = (
        UniqueConstraint("user_id", "tender_id", name="uq_saved_tenders_user_tender"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    tender: Mapped[Tender] = relationship("Tender", lazy="joined")

    def __repr__(self) -> str:
        return f"<SavedTender(user_id={self.user_id}, tender_id={self.tender_id})>"
