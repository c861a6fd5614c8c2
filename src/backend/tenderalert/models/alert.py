"""
User alerts - the in-app notification feed.

Alerts are append-only; the only mutable column is ``is_read``.
"""

import enum
import uuid
from typing import Any

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tenderalert.db.base import Base, JSONType, TimestampMixin


class AlertType(str, enum.Enum):
    """Known alert types. Stored as plain strings."""

    TENDER_MATCH = "tender_match"
    RFQ_QUOTE = "rfq_quote"
    QUOTE_ACCEPTED = "quote_accepted"
    SUBSCRIPTION_EXPIRED = "subscription_expired"
    SUBSCRIPTION_EXPIRING = "subscription_expiring"
    EARLY_USER_WELCOME = "early_user_welcome"


class UserAlert(Base, TimestampMixin):
    __tablename__ = "user_alerts"
    __table_args__ = (
        Index("ix_user_alerts_user_type", "user_id", "type"),
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    type: Mapped[str] = mapped_column(String(50), nullable=False)
    title: Mapped[str] = mapped_column(String(300), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    data: Mapped[dict[str, Any]] = mapped_column(JSONType, default=dict, nullable=False)
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"<UserAlert(id={self.id}, user_id={self.user_id}, type='{self.type}')>"
