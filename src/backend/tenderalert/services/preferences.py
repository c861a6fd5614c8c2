"""
Preference store.

Reads a user's explicit preferences and saved tenders and merges them into
the ``MatchProfile`` the scorer works with.
"""

import string
import uuid
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from tenderalert.core.logging import get_logger
from tenderalert.models.profile import UserPreferences
from tenderalert.models.tender import SavedTender, Tender
from tenderalert.schemas.matching import MatchProfile
from tenderalert.schemas.profile import PreferencesUpdate

logger = get_logger(__name__)

SAVED_TENDER_LIMIT = 50
# Title words longer than this become inferred keywords
TITLE_KEYWORD_MIN_CHARS = 5

LIST_FIELDS = frozenset({"sectors", "counties", "keywords", "eligibility_types"})
NULLABLE_FIELDS = frozenset({"budget_min", "budget_max"})


async def get_preferences(db: AsyncSession, user_id: uuid.UUID) -> UserPreferences | None:
    return await db.scalar(
        select(UserPreferences).where(UserPreferences.user_id == user_id)
    )


async def upsert_preferences(
    db: AsyncSession,
    user_id: uuid.UUID,
    data: PreferencesUpdate,
) -> UserPreferences:
    """Create the user's single preferences row or update the provided fields."""
    preferences = await get_preferences(db, user_id)
    changes = data.model_dump(exclude_unset=True)

    if preferences is None:
        preferences = UserPreferences(
            user_id=user_id,
            sectors=[],
            counties=[],
            keywords=[],
            eligibility_types=[],
            notification_email=True,
            notification_push=True,
            notification_sms=False,
        )
        db.add(preferences)

    for field, value in changes.items():
        if value is None:
            if field in LIST_FIELDS:
                value = []
            elif field not in NULLABLE_FIELDS:
                continue
        setattr(preferences, field, value)

    await db.flush()
    logger.info("Preferences saved", user_id=str(user_id), fields=sorted(changes))
    return preferences


async def get_saved_tenders(
    db: AsyncSession,
    user_id: uuid.UUID,
    limit: int = SAVED_TENDER_LIMIT,
) -> list[Tender]:
    result = await db.execute(
        select(Tender)
        .join(SavedTender, SavedTender.tender_id == Tender.id)
        .where(SavedTender.user_id == user_id)
        .order_by(SavedTender.created_at.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def title_keywords(title: str) -> list[str]:
    words = (word.strip(string.punctuation) for word in title.lower().split())
    return [word for word in words if len(word) > TITLE_KEYWORD_MIN_CHARS]


def build_match_profile(
    preferences: UserPreferences | None,
    saved_tenders: Sequence[Tender],
) -> MatchProfile:
    """
    Merge explicit preferences with signals inferred from saved tenders.

    Missing preferences yield an empty profile rather than an error.
    """
    categories: set[str] = set()
    locations: set[str] = set()
    keywords: list[str] = []
    budget_min = budget_max = None

    if preferences is not None:
        categories.update(preferences.sectors or [])
        locations.update(preferences.counties or [])
        keywords.extend(preferences.keywords or [])
        budget_min = preferences.budget_min
        budget_max = preferences.budget_max

    organizations: set[str] = set()
    for tender in saved_tenders:
        if tender.category:
            categories.add(tender.category)
        if tender.location:
            locations.add(tender.location)
        if tender.organization:
            organizations.add(tender.organization)
        keywords.extend(title_keywords(tender.title or ""))

    return MatchProfile(
        categories=frozenset(categories),
        locations=frozenset(locations),
        keywords=keywords,
        budget_min=budget_min,
        budget_max=budget_max,
        saved_organizations=frozenset(organizations),
    )


async def load_match_profile(db: AsyncSession, user_id: uuid.UUID) -> MatchProfile:
    preferences = await get_preferences(db, user_id)
    saved = await get_saved_tenders(db, user_id)
    return build_match_profile(preferences, saved)
