"""
Tender endpoints: browsing, admin management and saved tenders.
"""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.core.exceptions import EntityNotFoundException
from tenderalert.core.logging import get_logger
from tenderalert.schemas.common import ActionRequest
from tenderalert.schemas.tender import (
    TenderCreate,
    TenderFilters,
    TenderResponse,
    TenderStatusUpdate,
)
from tenderalert.services import tender_repository as repo

logger = get_logger(__name__)
router = APIRouter()


class TenderRef(BaseModel):
    tender_id: uuid.UUID


def _serialize(tender) -> dict[str, Any]:
    return TenderResponse.model_validate(tender).model_dump(mode="json")


async def list_tenders(db, params: dict[str, Any]) -> dict[str, Any]:
    filters = parse_params(TenderFilters, params.get("filters") or params)
    tenders, total = await repo.list_tenders(db, filters)
    return {"data": [_serialize(t) for t in tenders], "count": total}


async def get_tender(db, params: dict[str, Any]) -> dict[str, Any]:
    ref = parse_params(TenderRef, params)
    tender = await repo.get_tender(db, ref.tender_id)
    return {"data": _serialize(tender)}


async def create_tender(db, params: dict[str, Any]) -> dict[str, Any]:
    await repo.require_admin(db, require_user(params))
    data = parse_params(TenderCreate, params.get("tender") or params)
    tender = await repo.create_tender(db, data)
    return {"data": _serialize(tender)}


async def update_status(db, params: dict[str, Any]) -> dict[str, Any]:
    await repo.require_admin(db, require_user(params))
    ref = parse_params(TenderRef, params)
    change = parse_params(TenderStatusUpdate, {"status": params.get("status")})
    tender = await repo.update_tender_status(db, ref.tender_id, change.status)
    return {"data": _serialize(tender)}


async def delete_tender(db, params: dict[str, Any]) -> dict[str, Any]:
    await repo.require_admin(db, require_user(params))
    ref = parse_params(TenderRef, params)
    await repo.delete_tender(db, ref.tender_id)
    return {"message": "Tender deleted"}


async def expire_overdue(db, params: dict[str, Any]) -> dict[str, Any]:
    return {"expired": await repo.expire_overdue_tenders(db)}


async def save(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(TenderRef, params)
    saved = await repo.save_tender(db, user_id, ref.tender_id)
    return {"data": {"id": str(saved.id), "tender_id": str(ref.tender_id)}}


async def unsave(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(TenderRef, params)
    if not await repo.unsave_tender(db, user_id, ref.tender_id):
        raise EntityNotFoundException("SavedTender", str(ref.tender_id))
    return {"message": "Tender removed from saved list"}


async def list_saved(db, params: dict[str, Any]) -> dict[str, Any]:
    tenders = await repo.list_saved_tenders(db, require_user(params))
    return {"data": [_serialize(t) for t in tenders], "count": len(tenders)}


async def is_saved(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(TenderRef, params)
    return {"saved": await repo.is_saved(db, user_id, ref.tender_id)}


HANDLERS: dict[str, Handler] = {
    "list": list_tenders,
    "get": get_tender,
    "create": create_tender,
    "update-status": update_status,
    "delete": delete_tender,
    "expire-overdue": expire_overdue,
    "save": save,
    "unsave": unsave,
    "list-saved": list_saved,
    "is-saved": is_saved,
}


@router.post("")
async def tender_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
