"""
Schemas for tender browsing, admin management and saved tenders.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tenderalert.models.tender import TenderStatus
from tenderalert.schemas.common import BaseSchema


class TenderCreate(BaseModel):
    """Schema for an admin creating a tender."""

    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    organization: str = Field(min_length=1, max_length=300)
    category: str = Field(min_length=1, max_length=100)
    location: str = Field(default="Kenya", max_length=100)
    budget_estimate: float | None = Field(default=None, ge=0)
    deadline: date
    tender_number: str | None = None
    requirements: list[str] = Field(default_factory=list)
    contact_email: str | None = None
    contact_phone: str | None = None
    source_url: str | None = None


class TenderStatusUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    status: TenderStatus


class TenderFilters(BaseModel):
    """Filters for the ``list`` action."""

    category: str | None = None
    status: TenderStatus | None = None
    location: str | None = None
    search: str | None = Field(default=None, max_length=200)
    limit: int = Field(default=50, ge=1, le=100)
    offset: int = Field(default=0, ge=0)


class TenderResponse(BaseSchema):
    id: UUID
    title: str
    description: str | None = None
    organization: str
    category: str
    location: str
    budget_estimate: float | None = None
    deadline: date
    status: TenderStatus
    tender_number: str | None = None
    requirements: list[str] = Field(default_factory=list)
    contact_email: str | None = None
    contact_phone: str | None = None
    source_url: str | None = None
    scraped_from: str | None = None
    created_at: datetime
