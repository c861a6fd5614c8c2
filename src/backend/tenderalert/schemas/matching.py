"""
Schemas for the smart tender matcher.

ORM rows are validated into these models before any scoring happens.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tenderalert.models.tender import TenderStatus


class TenderCandidate(BaseModel):
    """A tender as seen by the scoring function."""

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: UUID
    title: str
    description: str | None = None
    organization: str = ""
    category: str = ""
    location: str = ""
    budget_estimate: float | None = None
    deadline: date
    status: TenderStatus = TenderStatus.ACTIVE
    created_at: datetime
    source_url: str | None = None

    @property
    def search_text(self) -> str:
        return f"{self.title} {self.description or ''} {self.organization}".lower()


class MatchProfile(BaseModel):
    """
    A user's effective preferences: explicit settings merged with signals
    inferred from their saved tenders.
    """

    model_config = ConfigDict(frozen=True)

    categories: frozenset[str] = frozenset()
    locations: frozenset[str] = frozenset()
    keywords: tuple[str, ...] = ()
    budget_min: float | None = None
    budget_max: float | None = None
    saved_organizations: frozenset[str] = frozenset()

    @field_validator("keywords", mode="before")
    @classmethod
    def normalise_keywords(cls, v):
        # lower-case and de-duplicate, keeping first-seen order
        seen: dict[str, None] = {}
        for kw in v or ():
            kw = str(kw).strip().lower()
            if kw:
                seen.setdefault(kw, None)
        return tuple(seen)

    @property
    def has_budget(self) -> bool:
        return self.budget_min is not None or self.budget_max is not None


class TenderMatch(BaseModel):
    """Result of scoring one tender for one user."""

    tender: TenderCandidate
    score: int = Field(ge=0)
    reasons: list[str] = Field(default_factory=list)
    level: str

    def summary(self) -> dict:
        t = self.tender
        return {
            "id": str(t.id),
            "title": t.title,
            "organization": t.organization,
            "category": t.category,
            "location": t.location,
            "deadline": t.deadline.isoformat(),
            "budget": t.budget_estimate,
            "score": self.score,
            "level": self.level,
            "reasons": self.reasons,
            "source_url": t.source_url,
        }


class PreferenceSummary(BaseModel):
    categories: list[str]
    locations: list[str]
    keyword_count: int


class MatchTendersResponse(BaseModel):
    success: bool = True
    total_tenders: int
    matches_found: int
    alerts_created: int
    preferences: PreferenceSummary
    top_matches: list[dict]


class BatchRunResponse(BaseModel):
    success: bool = True
    users_processed: int
    total_alerts_created: int
    failed_users: list[str] = Field(default_factory=list)
