"""
Subscription maintenance endpoints.

``check-expiry`` is meant to be called once a day by an external scheduler.
"""

from typing import Any

from fastapi import APIRouter

from tenderalert.api.deps import DB, Handler, dispatch, require_user
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.subscriptions import check_subscription_expiry, grant_early_access

router = APIRouter()


async def check_expiry(db, params: dict[str, Any]) -> dict[str, Any]:
    return {"stats": await check_subscription_expiry(db)}


async def early_access(db, params: dict[str, Any]) -> dict[str, Any]:
    return await grant_early_access(db, require_user(params))


HANDLERS: dict[str, Handler] = {
    "check-expiry": check_expiry,
    "grant-early-access": early_access,
}


@router.post("")
async def subscription_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
