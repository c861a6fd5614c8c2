"""
In-app notification feed endpoints.
"""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field
from sqlalchemy import func, select, update

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.core.exceptions import EntityNotFoundException
from tenderalert.db.base import model_to_dict
from tenderalert.models.alert import UserAlert
from tenderalert.schemas.common import ActionRequest

router = APIRouter()


class AlertQuery(BaseModel):
    limit: int = Field(default=20, ge=1, le=100)
    unread_only: bool = False


class AlertRef(BaseModel):
    alert_id: uuid.UUID


async def get_alerts(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    query = parse_params(AlertQuery, params)

    stmt = select(UserAlert).where(UserAlert.user_id == user_id)
    if query.unread_only:
        stmt = stmt.where(UserAlert.is_read.is_(False))
    result = await db.execute(stmt.order_by(UserAlert.created_at.desc()).limit(query.limit))
    return {"data": [model_to_dict(a) for a in result.scalars().all()]}


async def mark_read(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(AlertRef, params)
    alert = await db.get(UserAlert, ref.alert_id)
    if alert is None or alert.user_id != user_id:
        raise EntityNotFoundException("Alert", str(ref.alert_id))
    alert.is_read = True
    await db.flush()
    return {"data": {"id": str(alert.id), "is_read": True}}


async def mark_all_read(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    result = await db.execute(
        update(UserAlert)
        .where(UserAlert.user_id == user_id, UserAlert.is_read.is_(False))
        .values(is_read=True)
        .execution_options(synchronize_session=False)
    )
    return {"updated": result.rowcount or 0}


async def unread_count(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    count = await db.scalar(
        select(func.count(UserAlert.id)).where(
            UserAlert.user_id == user_id, UserAlert.is_read.is_(False)
        )
    )
    return {"count": count or 0}


HANDLERS: dict[str, Handler] = {
    "get-alerts": get_alerts,
    "mark-read": mark_read,
    "mark-all-read": mark_all_read,
    "unread-count": unread_count,
}


@router.post("")
async def notification_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
