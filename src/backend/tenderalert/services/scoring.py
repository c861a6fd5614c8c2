"""
Tender match scoring.

Pure functions: a user's ``MatchProfile`` and a ``TenderCandidate`` go in,
an additive score with human-readable reasons comes out. Nothing here
touches the database or the clock unless ``now`` is omitted.

Point table:

    category in preferred sectors          +30
    location in preferred counties         +25
    budget inside [min, max]               +20
    budget within 30% of nearer bound      +10
    keyword hit (max 2 distinct)           +15 each
    deadline in 1-7 days                   +15
    deadline in 8-14 days                  +10
    organization of a saved tender         +10
    posted in the last 24h                 +10
    posted in the last 72h                  +5
"""

import math
from collections.abc import Iterable
from datetime import datetime, time, timezone

from tenderalert.db.base import as_utc, utcnow
from tenderalert.models.tender import TenderStatus
from tenderalert.schemas.matching import MatchProfile, TenderCandidate, TenderMatch

CATEGORY_POINTS = 30
LOCATION_POINTS = 25
BUDGET_IN_RANGE_POINTS = 20
BUDGET_NEAR_POINTS = 10
BUDGET_NEAR_RATIO = 0.3
KEYWORD_POINTS = 15
MAX_KEYWORD_HITS = 2
URGENT_POINTS = 15
URGENT_DAYS = 7
SOON_POINTS = 10
SOON_DAYS = 14
ORGANIZATION_POINTS = 10
FRESH_POINTS = 10
FRESH_HOURS = 24
RECENT_POINTS = 5
RECENT_HOURS = 72

MIN_MATCH_SCORE = 25

MATCH_LEVELS: tuple[tuple[int, str], ...] = (
    (80, "High Chance"),
    (55, "Good Fit"),
    (35, "Moderate"),
)
LOWEST_LEVEL = "Low Fit"


def match_level(score: int) -> str:
    for threshold, label in MATCH_LEVELS:
        if score >= threshold:
            return label
    return LOWEST_LEVEL


def days_until_deadline(tender: TenderCandidate, now: datetime) -> int:
    """Whole days (rounded up) from ``now`` to the start of the deadline day, UTC."""
    deadline_start = datetime.combine(tender.deadline, time.min, tzinfo=timezone.utc)
    return math.ceil((deadline_start - now).total_seconds() / 86400)


def _budget_points(profile: MatchProfile, budget: float | None) -> tuple[int, str | None]:
    if not profile.has_budget or not budget or budget <= 0:
        return 0, None

    low = profile.budget_min if profile.budget_min is not None else 0.0
    high = profile.budget_max if profile.budget_max is not None else math.inf

    if low <= budget <= high:
        return BUDGET_IN_RANGE_POINTS, f"Budget: KES {budget / 1_000_000:.1f}M (within range)"

    if budget < low:
        distance = (low - budget) / low
    elif high > 0:
        distance = (budget - high) / high
    else:
        return 0, None

    if distance < BUDGET_NEAR_RATIO:
        return BUDGET_NEAR_POINTS, "Budget close to preferences"
    return 0, None


def score_tender(
    profile: MatchProfile,
    tender: TenderCandidate,
    now: datetime | None = None,
) -> TenderMatch:
    """
    Score one tender against one profile.

    Contributions are additive and uncapped. An empty profile can only earn
    urgency and recency points.
    """
    now = as_utc(now) if now else utcnow()
    score = 0
    reasons: list[str] = []

    if tender.category and tender.category in profile.categories:
        score += CATEGORY_POINTS
        reasons.append(f"Sector match: {tender.category}")

    if tender.location and tender.location in profile.locations:
        score += LOCATION_POINTS
        reasons.append(f"Location: {tender.location}")

    points, reason = _budget_points(profile, tender.budget_estimate)
    if points:
        score += points
        reasons.append(reason)

    if profile.keywords:
        text = tender.search_text
        hits = [kw for kw in profile.keywords if kw in text][:MAX_KEYWORD_HITS]
        if hits:
            score += KEYWORD_POINTS * len(hits)
            reasons.append(f'Keyword match: "{hits[0]}"')

    days_left = days_until_deadline(tender, now)
    if 0 < days_left <= URGENT_DAYS:
        score += URGENT_POINTS
        reasons.append(f"Urgent: {days_left} days left")
    elif URGENT_DAYS < days_left <= SOON_DAYS:
        score += SOON_POINTS
        reasons.append(f"{days_left} days remaining")

    if tender.organization and tender.organization in profile.saved_organizations:
        score += ORGANIZATION_POINTS
        reasons.append(f"Previously interested in {tender.organization}")

    hours_old = (now - as_utc(tender.created_at)).total_seconds() / 3600
    if hours_old <= FRESH_HOURS:
        score += FRESH_POINTS
        reasons.append("Posted today")
    elif hours_old <= RECENT_HOURS:
        score += RECENT_POINTS
        reasons.append("Recently posted")

    return TenderMatch(tender=tender, score=score, reasons=reasons, level=match_level(score))


def rank_matches(
    profile: MatchProfile,
    tenders: Iterable[TenderCandidate],
    now: datetime | None = None,
    min_score: int = MIN_MATCH_SCORE,
) -> list[TenderMatch]:
    """
    Score, filter and order candidates.

    Non-active tenders are never scored. Ties keep the candidate order
    (``sorted`` is stable), which is newest-first when candidates come from
    the repository.
    """
    now = as_utc(now) if now else utcnow()
    matches = [
        score_tender(profile, tender, now)
        for tender in tenders
        if tender.status == TenderStatus.ACTIVE
    ]
    matches = [m for m in matches if m.score >= min_score]
    return sorted(matches, key=lambda m: m.score, reverse=True)
