"""
Tender analytics endpoints.
"""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.analytics import dashboard_stats, trending_tenders
from tenderalert.services.tender_repository import bump_analytics, get_tender

router = APIRouter()


class TenderRef(BaseModel):
    tender_id: uuid.UUID


async def _track(db, params: dict[str, Any], *, views: int = 0, saves: int = 0) -> dict[str, Any]:
    ref = parse_params(TenderRef, params)
    await get_tender(db, ref.tender_id)
    analytics = await bump_analytics(db, ref.tender_id, views=views, saves=saves)
    return {
        "data": {
            "tender_id": str(ref.tender_id),
            "views_count": analytics.views_count,
            "saves_count": analytics.saves_count,
        }
    }


async def track_view(db, params: dict[str, Any]) -> dict[str, Any]:
    return await _track(db, params, views=1)


async def track_save(db, params: dict[str, Any]) -> dict[str, Any]:
    return await _track(db, params, saves=1)


async def get_dashboard_stats(db, params: dict[str, Any]) -> dict[str, Any]:
    return {"data": await dashboard_stats(db, require_user(params))}


async def get_trending(db, params: dict[str, Any]) -> dict[str, Any]:
    return {"data": await trending_tenders(db)}


HANDLERS: dict[str, Handler] = {
    "track-tender-view": track_view,
    "track-tender-save": track_save,
    "get-dashboard-stats": get_dashboard_stats,
    "get-trending-tenders": get_trending,
}


@router.post("")
async def analytics_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
