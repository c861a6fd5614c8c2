"""
Requests for quotation posted by buyers, and supplier quotes against them.
"""

import enum
import uuid
from datetime import date

from sqlalchemy import Date, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenderalert.db.base import Base, TimestampMixin, enum_values


class RfqStatus(str, enum.Enum):
    OPEN = "open"
    AWARDED = "awarded"
    CLOSED = "closed"


class QuoteStatus(str, enum.Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class Rfq(Base, TimestampMixin):
    __tablename__ = "rfqs"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    location: Mapped[str | None] = mapped_column(String(100), nullable=True)
    budget: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)
    deadline: Mapped[date | None] = mapped_column(Date, nullable=True)
    status: Mapped[RfqStatus] = mapped_column(
        Enum(RfqStatus, name="rfqstatus", values_callable=enum_values),
        default=RfqStatus.OPEN,
        nullable=False,
        index=True,
    )

    quotes: Mapped[list["RfqQuote"]] = relationship(
        "RfqQuote",
        back_populates="rfq",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Rfq(id={self.id}, title='{self.title[:50]}', status='{self.status}')>"


class RfqQuote(Base, TimestampMixin):
    __tablename__ = "rfq_quotes"

    rfq_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("rfqs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    supplier_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[float] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=False)
    delivery_days: Mapped[int | None] = mapped_column(Integer, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[QuoteStatus] = mapped_column(
        Enum(QuoteStatus, name="quotestatus", values_callable=enum_values),
        default=QuoteStatus.PENDING,
        nullable=False,
    )

    rfq: Mapped[Rfq] = relationship("Rfq", back_populates="quotes")

    def __repr__(self) -> str:
        return f"<RfqQuote(id={self.id}, rfq_id={self.rfq_id}, amount={self.amount})>"
