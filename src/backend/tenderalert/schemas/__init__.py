"""
Pydantic schemas for API request/response validation.
"""

from tenderalert.schemas.collaboration import (
    ConsortiumCreate,
    ConsortiumMemberResponse,
    ConsortiumResponse,
    QuoteCreate,
    QuoteResponse,
    QuoteUpdate,
    RfqCreate,
    RfqFilters,
    RfqResponse,
    RfqUpdate,
)
from tenderalert.schemas.common import (
    ActionRequest,
    BaseSchema,
    ErrorResponse,
    HealthResponse,
)
from tenderalert.schemas.matching import (
    BatchRunResponse,
    MatchProfile,
    MatchTendersResponse,
    PreferenceSummary,
    TenderCandidate,
    TenderMatch,
)
from tenderalert.schemas.profile import (
    AccessCheck,
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    SubscriptionUpdate,
)
from tenderalert.schemas.scraper import ScrapedTender, ScrapeRunResponse, SourceResult
from tenderalert.schemas.tender import (
    TenderCreate,
    TenderFilters,
    TenderResponse,
    TenderStatusUpdate,
)

__all__ = [
    # Common
    "ActionRequest",
    "BaseSchema",
    "ErrorResponse",
    "HealthResponse",
    # Matching
    "BatchRunResponse",
    "MatchProfile",
    "MatchTendersResponse",
    "PreferenceSummary",
    "TenderCandidate",
    "TenderMatch",
    # Tenders
    "TenderCreate",
    "TenderFilters",
    "TenderResponse",
    "TenderStatusUpdate",
    # Profiles
    "AccessCheck",
    "PreferencesResponse",
    "PreferencesUpdate",
    "ProfileResponse",
    "ProfileUpdate",
    "SubscriptionUpdate",
    # Collaboration
    "ConsortiumCreate",
    "ConsortiumMemberResponse",
    "ConsortiumResponse",
    "QuoteCreate",
    "QuoteResponse",
    "QuoteUpdate",
    "RfqCreate",
    "RfqFilters",
    "RfqResponse",
    "RfqUpdate",
    # Scraper
    "ScrapedTender",
    "ScrapeRunResponse",
    "SourceResult",
]
