"""
SQLAlchemy ORM models for TenderAlert Pro.
"""

from tenderalert.models.alert import AlertType, UserAlert
from tenderalert.models.analytics import (
    AiAnalysis,
    AutomationLog,
    AutomationStatus,
    TenderAnalytics,
)
from tenderalert.models.consortium import (
    Consortium,
    ConsortiumMember,
    ConsortiumStatus,
    MemberRole,
)
from tenderalert.models.historical_award import HistoricalTenderAward
from tenderalert.models.profile import (
    Profile,
    SubscriptionStatus,
    SubscriptionType,
    UserPreferences,
    UserRole,
)
from tenderalert.models.rfq import QuoteStatus, Rfq, RfqQuote, RfqStatus
from tenderalert.models.tender import (
    ALLOWED_STATUS_TRANSITIONS,
    SavedTender,
    Tender,
    TenderStatus,
)

__all__ = [
    # Tender
    "Tender",
    "TenderStatus",
    "ALLOWED_STATUS_TRANSITIONS",
    "SavedTender",
    # Profile
    "Profile",
    "UserPreferences",
    "UserRole",
    "SubscriptionType",
    "SubscriptionStatus",
    # Alerts
    "UserAlert",
    "AlertType",
    # Reference data
    "HistoricalTenderAward",
    # Collaboration
    "Consortium",
    "ConsortiumMember",
    "ConsortiumStatus",
    "MemberRole",
    "Rfq",
    "RfqQuote",
    "RfqStatus",
    "QuoteStatus",
    # Analytics
    "TenderAnalytics",
    "AiAnalysis",
    "AutomationLog",
    "AutomationStatus",
]
