"""
Per-tender engagement counters, cached bid analyses and job run logs.
"""

import enum
import uuid
from datetime import datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenderalert.db.base import Base, JSONType, TimestampMixin, enum_values

if TYPE_CHECKING:
    from tenderalert.models.tender import Tender


class TenderAnalytics(Base, TimestampMixin):
    __tablename__ = "tender_analytics"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    views_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    saves_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_viewed: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    tender: Mapped["Tender"] = relationship("Tender", back_populates="analytics")

    def __repr__(self) -> str:
        return f"<TenderAnalytics(tender_id={self.tender_id}, views={self.views_count})>"


class AiAnalysis(Base, TimestampMixin):
    """Cached bid analysis for a tender; regenerated only on request."""

    __tablename__ = "ai_analyses"

    tender_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("tenders.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )
    estimated_value_min: Mapped[float | None] = mapped_column(
        Numeric(15, 2, asdecimal=False), nullable=True
    )
    estimated_value_max: Mapped[float | None] = mapped_column(
        Numeric(15, 2, asdecimal=False), nullable=True
    )
    win_probability: Mapped[int | None] = mapped_column(Integer, nullable=True)
    confidence_score: Mapped[float | None] = mapped_column(
        Numeric(4, 2, asdecimal=False), nullable=True
    )
    recommendations: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    analysis_data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
    model_version: Mapped[str] = mapped_column(String(50), nullable=False)

    def __repr__(self) -> str:
        return f"<AiAnalysis(tender_id={self.tender_id}, win={self.win_probability})>"


class AutomationStatus(str, enum.Enum):
    COMPLETED = "completed"
    FAILED = "failed"


class AutomationLog(Base, TimestampMixin):
    """One row per scheduled job run (scrape, expiry check, payment activation)."""

    __tablename__ = "automation_logs"

    function_name: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    status: Mapped[AutomationStatus] = mapped_column(
        Enum(AutomationStatus, name="automationstatus", values_callable=enum_values),
        nullable=False,
    )
    result_data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<AutomationLog(function='{self.function_name}', status='{self.status}')>"
