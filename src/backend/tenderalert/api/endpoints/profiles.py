"""
Profile endpoints: profile data, subscription state, loyalty points and
matching preferences.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.core.logging import get_logger
from tenderalert.schemas.common import ActionRequest
from tenderalert.schemas.profile import (
    PreferencesResponse,
    PreferencesUpdate,
    ProfileResponse,
    ProfileUpdate,
    SubscriptionUpdate,
)
from tenderalert.services.preferences import get_preferences, upsert_preferences
from tenderalert.services.subscriptions import get_profile, update_subscription

logger = get_logger(__name__)
router = APIRouter()


class LoyaltyPoints(BaseModel):
    points: int = Field(gt=0, le=100_000)


def _serialize(profile) -> dict[str, Any]:
    return ProfileResponse.model_validate(profile).model_dump(mode="json")


async def get(db, params: dict[str, Any]) -> dict[str, Any]:
    profile = await get_profile(db, require_user(params))
    return {"data": _serialize(profile)}


async def update(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    changes = parse_params(ProfileUpdate, params.get("updates") or params)
    profile = await get_profile(db, user_id)
    for field, value in changes.model_dump(exclude_unset=True).items():
        setattr(profile, field, value)
    await db.flush()
    logger.info("Profile updated", user_id=str(user_id))
    return {"data": _serialize(profile)}


async def change_subscription(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    data = parse_params(SubscriptionUpdate, params)
    profile = await update_subscription(db, user_id, data)
    logger.info(
        "Subscription updated",
        user_id=str(user_id),
        type=data.subscription_type.value,
        status=data.subscription_status.value,
    )
    return {"data": _serialize(profile)}


async def add_loyalty_points(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    points = parse_params(LoyaltyPoints, params).points
    profile = await get_profile(db, user_id)
    profile.loyalty_points += points
    await db.flush()
    return {"loyalty_points": profile.loyalty_points}


async def get_prefs(db, params: dict[str, Any]) -> dict[str, Any]:
    preferences = await get_preferences(db, require_user(params))
    if preferences is None:
        return {"data": None}
    return {"data": PreferencesResponse.model_validate(preferences).model_dump(mode="json")}


async def update_prefs(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    data = parse_params(PreferencesUpdate, params.get("preferences") or params)
    preferences = await upsert_preferences(db, user_id, data)
    return {"data": PreferencesResponse.model_validate(preferences).model_dump(mode="json")}


HANDLERS: dict[str, Handler] = {
    "get": get,
    "update": update,
    "update-subscription": change_subscription,
    "add-loyalty-points": add_loyalty_points,
    "get-preferences": get_prefs,
    "update-preferences": update_prefs,
}


@router.post("")
async def profile_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
