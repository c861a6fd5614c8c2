"""
Historical tender awards (PPIP contract award exports).

Reference data: bulk-loaded by the CSV importer, read by the
win-probability engine.
"""

from datetime import date

from sqlalchemy import Date, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tenderalert.db.base import Base, TimestampMixin


class HistoricalTenderAward(Base, TimestampMixin):
    __tablename__ = "historical_tender_awards"

    organization: Mapped[str] = mapped_column(String(300), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    location: Mapped[str] = mapped_column(String(100), nullable=False, default="Kenya", index=True)
    tender_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    awarded_amount: Mapped[float] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=False)
    winner_name: Mapped[str | None] = mapped_column(String(300), nullable=True)
    winner_type: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        comment="youth, women, pwd, consortium, sme, large_enterprise",
    )
    award_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    bid_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    competition_level: Mapped[str | None] = mapped_column(
        String(20),
        nullable=True,
        comment="low, medium, high",
    )
    source: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<HistoricalTenderAward(id={self.id}, category='{self.category}', "
            f"amount={self.awarded_amount})>"
        )
