"""
Schemas for scraped tenders and scrape runs.
"""

from datetime import date

from pydantic import BaseModel, Field


class ScrapedTender(BaseModel):
    """A normalised tender ready for insertion."""

    title: str = Field(min_length=1, max_length=500)
    description: str | None = None
    organization: str = "Government of Kenya"
    category: str = "Other"
    location: str = "Nairobi"
    deadline: date
    budget_estimate: float | None = None
    tender_number: str | None = None
    requirements: list[str] = Field(default_factory=list)
    contact_email: str | None = None
    source_url: str | None = None
    scraped_from: str


class SourceResult(BaseModel):
    source: str
    found: int = 0
    inserted: int = 0
    duplicates: int = 0
    method: str | None = None
    error: str | None = None


class ScrapeRunResponse(BaseModel):
    success: bool = True
    total_found: int
    total_inserted: int
    sources: list[SourceResult]
