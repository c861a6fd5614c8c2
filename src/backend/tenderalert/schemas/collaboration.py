"""
Schemas for RFQs, quotes and consortiums.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from tenderalert.models.consortium import ConsortiumStatus, MemberRole
from tenderalert.models.rfq import QuoteStatus, RfqStatus
from tenderalert.schemas.common import BaseSchema


class RfqCreate(BaseModel):
    title: str = Field(min_length=1, max_length=300)
    description: str | None = None
    category: str | None = None
    location: str | None = None
    budget: float | None = Field(default=None, ge=0)
    deadline: date | None = None


class RfqUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    title: str | None = Field(default=None, min_length=1, max_length=300)
    description: str | None = None
    category: str | None = None
    location: str | None = None
    budget: float | None = Field(default=None, ge=0)
    deadline: date | None = None
    status: RfqStatus | None = None


class RfqFilters(BaseModel):
    my_rfqs: bool = False
    category: str | None = None
    status: RfqStatus | None = None


class RfqResponse(BaseSchema):
    id: UUID
    user_id: UUID
    title: str
    description: str | None = None
    category: str | None = None
    location: str | None = None
    budget: float | None = None
    deadline: date | None = None
    status: RfqStatus
    created_at: datetime


class QuoteCreate(BaseModel):
    amount: float = Field(gt=0)
    delivery_days: int | None = Field(default=None, ge=0)
    notes: str | None = None


class QuoteUpdate(BaseModel):
    model_config = ConfigDict(extra="ignore")

    amount: float | None = Field(default=None, gt=0)
    delivery_days: int | None = Field(default=None, ge=0)
    notes: str | None = None


class QuoteResponse(BaseSchema):
    id: UUID
    rfq_id: UUID
    supplier_id: UUID
    amount: float
    delivery_days: int | None = None
    notes: str | None = None
    status: QuoteStatus
    created_at: datetime


class ConsortiumCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    tender_id: UUID | None = None
    max_members: int = Field(default=5, ge=2, le=50)
    required_skills: str | None = None
    expertise: str | None = None


class ConsortiumResponse(BaseSchema):
    id: UUID
    name: str
    description: str | None = None
    tender_id: UUID | None = None
    created_by: UUID
    max_members: int
    required_skills: str | None = None
    status: ConsortiumStatus
    created_at: datetime


class ConsortiumMemberResponse(BaseSchema):
    id: UUID
    consortium_id: UUID
    user_id: UUID
    role: MemberRole
    expertise: str | None = None
    created_at: datetime
