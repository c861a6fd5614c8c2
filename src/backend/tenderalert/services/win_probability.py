"""
Win-probability engine.

Estimates the chance of winning a tender from historical awards in the same
category, with amounts adjusted to today's shillings using CBK inflation
rates. The computation is a pure function over award rows; only
``estimate_for_tender`` touches the database.
"""

import math
import re
import uuid
from collections import Counter
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.logging import get_logger
from tenderalert.models.historical_award import HistoricalTenderAward
from tenderalert.services.tender_repository import get_tender

logger = get_logger(__name__)

# CBK average annual inflation, percent
INFLATION_RATES: dict[int, float] = {
    2019: 5.2,
    2020: 5.4,
    2021: 6.1,
    2022: 7.6,
    2023: 7.7,
    2024: 6.9,
    2025: 5.5,
    2026: 5.0,
}
DEFAULT_INFLATION_RATE = 5.0

HISTORY_LIMIT = 500
NATIONWIDE = "Kenya"
BID_UNCERTAINTY = 0.20
DEFAULT_PRICE_VARIANCE = 30.0

FACTOR_WEIGHTS = {
    "category": 0.25,
    "location": 0.20,
    "budget_fit": 0.20,
    "trend": 0.20,
    "competition": 0.15,
}
COMPETITION_SCORES = {"low": 80, "medium": 55, "high": 35}

DISCLAIMER = (
    "Estimates are based on historical PPIP award data adjusted for inflation. "
    "They indicate relative competitiveness only and do not guarantee an award."
)


def year_of(value: date | str | None, current_year: int) -> int:
    """Award year; undated awards are assumed to be from last year."""
    if isinstance(value, date):
        return value.year
    if value:
        found = re.search(r"\d{4}", str(value))
        if found:
            return int(found.group())
    return current_year - 1


def adjust_for_inflation(amount: float, award_year: int, current_year: int) -> float:
    """Compound ``amount`` through every year from ``award_year`` up to ``current_year``."""
    adjusted = amount
    for year in range(award_year, current_year):
        adjusted *= 1 + INFLATION_RATES.get(year, DEFAULT_INFLATION_RATE) / 100
    return adjusted


def competition_level(award: HistoricalTenderAward) -> str:
    if award.competition_level in COMPETITION_SCORES:
        return award.competition_level
    if award.bid_count is not None:
        if award.bid_count <= 3:
            return "low"
        if award.bid_count <= 8:
            return "medium"
        return "high"
    return "medium"


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values) if values else 0.0


def _population_std(values: Sequence[float]) -> float:
    if not values:
        return 0.0
    mean = _mean(values)
    return math.sqrt(sum((v - mean) ** 2 for v in values) / len(values))


@dataclass
class WinEstimate:
    win_probability: int
    confidence_score: int
    percentage_error: int
    factor_scores: dict[str, int]
    bid_range: dict[str, float]
    historical: dict[str, Any]
    disclaimer: str = DISCLAIMER

    def to_dict(self) -> dict[str, Any]:
        return {
            "win_probability": self.win_probability,
            "confidence_score": self.confidence_score,
            "percentage_error": self.percentage_error,
            "factor_scores": self.factor_scores,
            "bid_range": self.bid_range,
            "historical": self.historical,
            "disclaimer": self.disclaimer,
        }


def estimate_win_probability(
    awards: Sequence[HistoricalTenderAward],
    location: str | None,
    budget: float | None,
    current_year: int | None = None,
) -> WinEstimate:
    current_year = current_year or date.today().year

    original = [float(a.awarded_amount) for a in awards if a.awarded_amount]
    adjusted = [
        adjust_for_inflation(float(a.awarded_amount), year_of(a.award_date, current_year), current_year)
        for a in awards
        if a.awarded_amount
    ]
    avg_original = _mean(original)
    avg_adjusted = _mean(adjusted)
    std_adjusted = _population_std(adjusted)
    price_variance = (std_adjusted / avg_adjusted * 100) if avg_adjusted else DEFAULT_PRICE_VARIANCE

    optimal = avg_adjusted or float(budget or 0)
    bid_range = {
        "low": round(optimal * (1 - BID_UNCERTAINTY)),
        "optimal": round(optimal),
        "high": round(optimal * (1 + BID_UNCERTAINTY)),
    }

    winner_types = Counter(a.winner_type for a in awards if a.winner_type)
    competition = Counter(competition_level(a) for a in awards)
    dominant_competition = competition.most_common(1)[0][0] if competition else "medium"

    n = len(awards)
    factors: dict[str, int] = {"category": 80 if n else 40}

    if n and location:
        matching = sum(1 for a in awards if a.location == location)
        factors["location"] = round(min(90, matching / n * 100))
    else:
        factors["location"] = 50

    if budget and avg_adjusted:
        factors["budget_fit"] = round(max(20, 100 - abs(budget - avg_adjusted) / avg_adjusted * 50))
    else:
        factors["budget_fit"] = 50

    if n >= 10:
        factors["trend"] = 75
    elif n >= 5:
        factors["trend"] = 60
    elif n >= 2:
        factors["trend"] = 45
    else:
        factors["trend"] = 30

    factors["competition"] = COMPETITION_SCORES[dominant_competition]

    weighted = sum(factors[name] * weight for name, weight in FACTOR_WEIGHTS.items())
    win_probability = min(95, max(5, round(weighted)))

    confidence = 30 + 2 * n + (20 if price_variance < 30 else 0)
    confidence = min(95, max(30, confidence))
    percentage_error = min(50, max(10, round(20 + price_variance / 2 + (100 - confidence) / 5)))

    return WinEstimate(
        win_probability=win_probability,
        confidence_score=confidence,
        percentage_error=percentage_error,
        factor_scores=factors,
        bid_range=bid_range,
        historical={
            "sample_size": n,
            "average_award": round(avg_original),
            "average_award_adjusted": round(avg_adjusted),
            "price_variance": round(price_variance, 1),
            "common_winner_types": [t for t, _ in winner_types.most_common(3)],
            "competition_level": dominant_competition,
        },
    )


async def load_awards(
    db: AsyncSession,
    category: str,
    location: str | None,
) -> list[HistoricalTenderAward]:
    stmt = select(HistoricalTenderAward).where(HistoricalTenderAward.category == category)
    if location and location != NATIONWIDE:
        stmt = stmt.where(
            or_(
                HistoricalTenderAward.location == location,
                HistoricalTenderAward.location == NATIONWIDE,
            )
        )
    result = await db.execute(stmt.limit(HISTORY_LIMIT))
    return list(result.scalars().all())


async def estimate_for_tender(
    db: AsyncSession,
    tender_id: uuid.UUID | None = None,
    category: str | None = None,
    location: str | None = None,
    budget: float | None = None,
) -> dict[str, Any]:
    """Estimate for a stored tender, with explicit values overriding its fields."""
    if tender_id is not None:
        tender = await get_tender(db, tender_id)
        category = category or tender.category
        location = location or tender.location
        budget = budget if budget is not None else tender.budget_estimate

    awards = await load_awards(db, category or "Other", location)
    estimate = estimate_win_probability(awards, location, budget)
    logger.info(
        "Win probability estimated",
        tender_id=str(tender_id) if tender_id else None,
        category=category,
        sample_size=len(awards),
        win_probability=estimate.win_probability,
    )
    return {"tender_id": str(tender_id) if tender_id else None, **estimate.to_dict()}
