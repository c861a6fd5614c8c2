"""
Consortium endpoints for bidders teaming up on a tender.
"""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.schemas.collaboration import (
    ConsortiumCreate,
    ConsortiumMemberResponse,
    ConsortiumResponse,
)
from tenderalert.schemas.common import ActionRequest
from tenderalert.services import collaboration

router = APIRouter()


class ConsortiumRef(BaseModel):
    consortium_id: uuid.UUID


class JoinParams(ConsortiumRef):
    expertise: str | None = None


class OptionalUser(BaseModel):
    user_id: uuid.UUID | None = None


def _consortium(consortium, members: int | None = None) -> dict[str, Any]:
    data = ConsortiumResponse.model_validate(consortium).model_dump(mode="json")
    if members is not None:
        data["member_count"] = members
    return data


def _member(member) -> dict[str, Any]:
    return ConsortiumMemberResponse.model_validate(member).model_dump(mode="json")


async def list_consortiums(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = parse_params(OptionalUser, params).user_id
    consortiums = await collaboration.list_consortiums(db, user_id)
    data = [_consortium(c, await collaboration.member_count(db, c.id)) for c in consortiums]
    return {"data": data, "count": len(data)}


async def get_consortium(db, params: dict[str, Any]) -> dict[str, Any]:
    ref = parse_params(ConsortiumRef, params)
    consortium = await collaboration.get_consortium(db, ref.consortium_id)
    return {"data": _consortium(consortium, await collaboration.member_count(db, consortium.id))}


async def create_consortium(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    data = parse_params(ConsortiumCreate, params.get("consortium") or params)
    consortium = await collaboration.create_consortium(db, user_id, data)
    return {"data": _consortium(consortium, 1)}


async def join(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    data = parse_params(JoinParams, params)
    member = await collaboration.join_consortium(db, data.consortium_id, user_id, data.expertise)
    return {"data": _member(member)}


async def leave(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(ConsortiumRef, params)
    await collaboration.leave_consortium(db, ref.consortium_id, user_id)
    return {"message": "Left consortium"}


async def members(db, params: dict[str, Any]) -> dict[str, Any]:
    ref = parse_params(ConsortiumRef, params)
    rows = await collaboration.list_members(db, ref.consortium_id)
    return {"data": [_member(m) for m in rows], "count": len(rows)}


HANDLERS: dict[str, Handler] = {
    "list": list_consortiums,
    "get": get_consortium,
    "create": create_consortium,
    "join": join,
    "leave": leave,
    "members": members,
}


@router.post("")
async def consortium_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
