"""
Main API router that aggregates all endpoint routers.
"""

from fastapi import APIRouter

from tenderalert.api.endpoints import (
    analysis,
    analytics,
    consortiums,
    historical,
    matcher,
    notifications,
    payments,
    profiles,
    rfqs,
    scraper,
    subscriptions,
    tenders,
    win_probability,
)

api_router = APIRouter()

# Matching
api_router.include_router(matcher.router, prefix="/smart-tender-matcher", tags=["Smart Matcher"])
api_router.include_router(tenders.router, prefix="/tenders", tags=["Tenders"])
api_router.include_router(notifications.router, prefix="/notifications", tags=["Notifications"])

# Accounts and billing
api_router.include_router(profiles.router, prefix="/profiles", tags=["Profiles"])
api_router.include_router(payments.router, prefix="/payments", tags=["Payments"])
api_router.include_router(subscriptions.router, prefix="/subscriptions", tags=["Subscriptions"])

# Collaboration
api_router.include_router(rfqs.router, prefix="/rfqs", tags=["RFQs"])
api_router.include_router(consortiums.router, prefix="/consortiums", tags=["Consortiums"])

# Insights
api_router.include_router(win_probability.router, prefix="/win-probability", tags=["Win Probability"])
api_router.include_router(analysis.router, prefix="/analysis", tags=["Bid Analysis"])
api_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])

# Data ingestion
api_router.include_router(scraper.router, prefix="/scraper", tags=["Scraper"])
api_router.include_router(historical.router, prefix="/historical", tags=["Historical Data"])
