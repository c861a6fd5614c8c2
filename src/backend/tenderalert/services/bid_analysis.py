"""
Bid analysis for a single tender.

A heuristic analysis (complexity, competition, value range, win
probability, recommendations) is always computed. When an LLM is
configured its recommendations replace the heuristic ones. Results are
cached in ``ai_analyses`` until a regeneration is requested.
"""

import uuid
from dataclasses import dataclass
from datetime import date
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.config import get_settings
from tenderalert.core.exceptions import AIServiceException
from tenderalert.core.logging import get_logger
from tenderalert.db.base import model_to_dict
from tenderalert.models.analytics import AiAnalysis
from tenderalert.models.historical_award import HistoricalTenderAward
from tenderalert.models.tender import Tender
from tenderalert.services.llm import LLMClient
from tenderalert.services.tender_repository import get_tender

logger = get_logger(__name__)

HEURISTIC_MODEL_VERSION = "heuristic-v1"
MAX_RECOMMENDATIONS = 5

BASE_WIN_RATE = 75.0
DEFAULT_COMPETITORS = 7

HIGH_COMPLEXITY_CATEGORIES = {"ICT", "Healthcare", "Construction"}
HIGH_COMPETITION_CATEGORIES = {"ICT", "Construction", "Healthcare"}
PROMINENT_BUYERS = ("Ministry", "Kenya Urban Roads Authority", "World Bank")

CATEGORY_RECOMMENDATIONS: dict[str, tuple[str, ...]] = {
    "Construction": (
        "Include environmental impact assessments",
        "Demonstrate experience with large-scale projects",
    ),
    "ICT": (
        "Highlight cybersecurity measures and compliance",
        "Provide comprehensive training and support packages",
    ),
    "Healthcare": (
        "Ensure compliance with medical regulations and standards",
        "Include maintenance and calibration services",
    ),
    "Education": (
        "Focus on community engagement and local capacity building",
        "Include teacher training and curriculum support",
    ),
}

LLM_SYSTEM_PROMPT = (
    "You are a Kenyan public procurement bid consultant. Answer ONLY with a JSON object."
)
LLM_USER_PROMPT = """Assess this tender for a small or medium Kenyan bidder.

Title: {title}
Procuring entity: {organization}
Category: {category}
Location: {location}
Budget (KES): {budget}
Deadline: {deadline}
Requirements: {requirements}
Description: {description}

Return {{"summary": "...", "recommendations": ["..."], "risks": ["..."]}} with at most 5 recommendations."""


@dataclass
class HistoricalContext:
    average_budget: float
    competitor_count: int


def complexity_score(tender: Tender, today: date) -> float:
    budget = tender.budget_estimate or 0
    score = 0.3 if budget > 50_000_000 else 0.2 if budget > 20_000_000 else 0.1

    requirements = len(tender.requirements or [])
    score += 0.3 if requirements > 10 else 0.2 if requirements > 5 else 0.1

    if tender.category in HIGH_COMPLEXITY_CATEGORIES:
        score += 0.2

    days_left = (tender.deadline - today).days
    score += 0.3 if days_left < 14 else 0.2 if days_left < 30 else 0.1

    return round(min(1.0, score), 2)


def competition_score(tender: Tender, context: HistoricalContext) -> float:
    budget = tender.budget_estimate or 0
    average = context.average_budget
    if average and budget > average * 1.5:
        score = 0.4
    elif average and budget > average:
        score = 0.3
    else:
        score = 0.2

    if any(buyer in tender.organization for buyer in PROMINENT_BUYERS):
        score += 0.3
    if tender.category in HIGH_COMPETITION_CATEGORIES:
        score += 0.2

    return round(min(1.0, score), 2)


def heuristic_recommendations(
    tender: Tender,
    context: HistoricalContext,
    complexity: float,
    competition: float,
    today: date,
) -> list[str]:
    recommendations: list[str] = []

    if complexity > 0.7:
        recommendations += [
            "Form strategic partnerships to handle complex requirements",
            "Allocate additional time for proposal preparation",
        ]
    elif complexity > 0.4:
        recommendations.append("Highlight relevant past experience in similar projects")

    if competition > 0.7:
        recommendations += [
            "Focus on unique value propositions and differentiators",
            "Consider competitive pricing while maintaining quality",
        ]
    elif competition > 0.4:
        recommendations.append("Balance competitive pricing with quality delivery")

    recommendations += CATEGORY_RECOMMENDATIONS.get(tender.category, ())

    if tender.budget_estimate and context.average_budget and tender.budget_estimate > context.average_budget:
        recommendations.append("Break down costs transparently with detailed line items")

    if (tender.deadline - today).days < 21:
        recommendations.append("Prioritize proposal completion with a dedicated team")

    if not recommendations:
        recommendations.append("Submit a complete, compliant bid well before the deadline")

    return recommendations[:MAX_RECOMMENDATIONS]


def heuristic_analysis(tender: Tender, context: HistoricalContext, today: date) -> dict[str, Any]:
    complexity = complexity_score(tender, today)
    competition = competition_score(tender, context)

    base = tender.budget_estimate or context.average_budget
    spread = 1 + complexity * 0.2 + competition * 0.15
    win = max(20, min(95, BASE_WIN_RATE - complexity * 15 - competition * 20))
    confidence = max(60, min(95, int(90 - complexity * 10 - competition * 5)))

    return {
        "estimated_value_min": float(int(base * 0.85 * spread)),
        "estimated_value_max": float(int(base * 1.15 * spread)),
        "win_probability": int(win),
        "confidence_score": confidence,
        "recommendations": heuristic_recommendations(tender, context, complexity, competition, today),
        "analysis_data": {
            "complexity_score": complexity,
            "competition_level": competition,
            "category_average_budget": round(context.average_budget),
            "average_competitors": context.competitor_count,
        },
    }


async def load_context(db: AsyncSession, tender: Tender) -> HistoricalContext:
    average_budget = await db.scalar(
        select(func.avg(Tender.budget_estimate)).where(
            Tender.category == tender.category,
            Tender.budget_estimate.is_not(None),
        )
    )
    average_bids = await db.scalar(
        select(func.avg(HistoricalTenderAward.bid_count)).where(
            HistoricalTenderAward.category == tender.category,
            HistoricalTenderAward.bid_count.is_not(None),
        )
    )
    return HistoricalContext(
        average_budget=float(average_budget or 0),
        competitor_count=round(average_bids) if average_bids else DEFAULT_COMPETITORS,
    )


class BidAnalysisService:
    def __init__(self, llm: LLMClient | None = None) -> None:
        if llm is None and get_settings().llm_enabled:
            llm = LLMClient()
        self.llm = llm

    async def _llm_review(self, tender: Tender) -> dict[str, Any]:
        return await self.llm.complete_json(
            LLM_SYSTEM_PROMPT,
            LLM_USER_PROMPT.format(
                title=tender.title,
                organization=tender.organization,
                category=tender.category,
                location=tender.location,
                budget=f"{tender.budget_estimate:,.0f}" if tender.budget_estimate else "not stated",
                deadline=tender.deadline.isoformat(),
                requirements="; ".join(tender.requirements or []) or "not stated",
                description=(tender.description or "")[:2000],
            ),
            expect=dict,
            temperature=0.2,
            max_tokens=1500,
        )

    async def analyze(
        self,
        db: AsyncSession,
        tender_id: uuid.UUID,
        force_regenerate: bool = False,
        today: date | None = None,
    ) -> tuple[AiAnalysis, bool]:
        """Returns the analysis and whether it came from the cache."""
        today = today or date.today()
        tender = await get_tender(db, tender_id)

        cached = await db.scalar(select(AiAnalysis).where(AiAnalysis.tender_id == tender_id))
        if cached is not None and not force_regenerate:
            return cached, True

        result = heuristic_analysis(tender, await load_context(db, tender), today)
        model_version = HEURISTIC_MODEL_VERSION

        if self.llm is not None:
            try:
                review = await self._llm_review(tender)
            except AIServiceException as e:
                logger.warning("LLM analysis failed, keeping heuristic", tender_id=str(tender_id), error=e.message)
            else:
                llm_recommendations = [str(r) for r in review.get("recommendations") or []]
                if llm_recommendations:
                    result["recommendations"] = llm_recommendations[:MAX_RECOMMENDATIONS]
                result["analysis_data"]["llm"] = {
                    "summary": review.get("summary"),
                    "risks": review.get("risks") or [],
                }
                model_version = self.llm.model

        analysis = cached or AiAnalysis(tender_id=tender_id)
        for field, value in result.items():
            setattr(analysis, field, value)
        analysis.model_version = model_version
        if cached is None:
            db.add(analysis)
        await db.flush()

        logger.info(
            "Bid analysis generated",
            tender_id=str(tender_id),
            model_version=model_version,
            win_probability=analysis.win_probability,
        )
        return analysis, False


def analysis_to_dict(analysis: AiAnalysis) -> dict[str, Any]:
    return model_to_dict(analysis)
