"""
Schemas for profiles, preferences and subscription state.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from tenderalert.models.profile import SubscriptionStatus, SubscriptionType, UserRole
from tenderalert.schemas.common import BaseSchema


class ProfileResponse(BaseSchema):
    id: UUID
    email: str
    first_name: str | None = None
    last_name: str | None = None
    company_name: str | None = None
    phone: str | None = None
    role: UserRole
    subscription_type: SubscriptionType
    subscription_status: SubscriptionStatus
    subscription_start_date: datetime | None = None
    subscription_end_date: datetime | None = None
    is_early_user: bool
    loyalty_points: int


class ProfileUpdate(BaseModel):
    """Fields a user may edit on their own profile."""

    model_config = ConfigDict(extra="ignore")

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    company_name: str | None = Field(default=None, max_length=255)
    phone: str | None = Field(default=None, max_length=50)


class SubscriptionUpdate(BaseModel):
    subscription_type: SubscriptionType
    subscription_status: SubscriptionStatus


class PreferencesUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    sectors: list[str] | None = None
    counties: list[str] | None = None
    keywords: list[str] | None = None
    eligibility_types: list[str] | None = None
    budget_min: float | None = Field(default=None, ge=0)
    budget_max: float | None = Field(default=None, ge=0)
    notification_email: bool | None = None
    notification_push: bool | None = None
    notification_sms: bool | None = None

    @model_validator(mode="after")
    def check_budget_range(self) -> "PreferencesUpdate":
        if (
            self.budget_min is not None
            and self.budget_max is not None
            and self.budget_min > self.budget_max
        ):
            raise ValueError("budget_min must not exceed budget_max")
        return self


class PreferencesResponse(BaseSchema):
    user_id: UUID
    sectors: list[str]
    counties: list[str]
    keywords: list[str]
    eligibility_types: list[str]
    budget_min: float | None = None
    budget_max: float | None = None
    notification_email: bool
    notification_push: bool
    notification_sms: bool


class AccessCheck(BaseModel):
    has_access: bool
    subscription_type: str | None = None
    subscription_status: str | None = None
    subscription_end_date: datetime | None = None
    reason: str | None = None
