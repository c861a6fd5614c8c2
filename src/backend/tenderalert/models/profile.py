"""
User profile and matching preferences.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from tenderalert.db.base import Base, JSONType, TimestampMixin, as_utc, enum_values, utcnow


class UserRole(str, enum.Enum):
    USER = "user"
    ADMIN = "admin"


class SubscriptionType(str, enum.Enum):
    FREE = "free"
    PRO = "pro"
    BUSINESS = "business"


class SubscriptionStatus(str, enum.Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class Profile(Base, TimestampMixin):
    """
    A registered user. ``id`` is the identity provider's user id.
    """

    __tablename__ = "profiles"

    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    company_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    phone: Mapped[str | None] = mapped_column(String(50), nullable=True)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="userrole", values_callable=enum_values),
        default=UserRole.USER,
        nullable=False,
    )

    subscription_type: Mapped[SubscriptionType] = mapped_column(
        Enum(SubscriptionType, name="subscriptiontype", values_callable=enum_values),
        default=SubscriptionType.FREE,
        nullable=False,
        index=True,
    )
    subscription_status: Mapped[SubscriptionStatus] = mapped_column(
        Enum(SubscriptionStatus, name="subscriptionstatus", values_callable=enum_values),
        default=SubscriptionStatus.INACTIVE,
        nullable=False,
        index=True,
    )
    subscription_start_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    subscription_end_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True, index=True
    )

    is_early_user: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    loyalty_points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    preferences: Mapped["UserPreferences | None"] = relationship(
        "UserPreferences",
        back_populates="profile",
        cascade="all, delete-orphan",
        uselist=False,
    )

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def has_paid_access(self, now: datetime | None = None) -> bool:
        """Active Pro/Business subscription whose end date (if any) is still ahead."""
        now = now or utcnow()
        if self.subscription_status != SubscriptionStatus.ACTIVE:
            return False
        if self.subscription_type not in (SubscriptionType.PRO, SubscriptionType.BUSINESS):
            return False
        return self.subscription_end_date is None or as_utc(self.subscription_end_date) > now

    def __repr__(self) -> str:
        return f"<Profile(id={self.id}, email='{self.email}', plan='{self.subscription_type}')>"


class UserPreferences(Base, TimestampMixin):
    """
    Explicit matching preferences. At most one row per user.
    """

    __tablename__ = "user_preferences"

    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("profiles.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
        index=True,
    )

    sectors: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    counties: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    keywords: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    eligibility_types: Mapped[list[str]] = mapped_column(JSONType, default=list, nullable=False)
    budget_min: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)
    budget_max: Mapped[float | None] = mapped_column(Numeric(15, 2, asdecimal=False), nullable=True)

    notification_email: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notification_push: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    notification_sms: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    profile: Mapped[Profile] = relationship("Profile", back_populates="preferences")

    def __repr__(self) -> str:
        return f"<UserPreferences(user_id={self.user_id}, sectors={self.sectors})>"
