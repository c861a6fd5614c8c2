"""
RFQ marketplace endpoints.
"""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from tenderalert.api.deps import DB, Handler, dispatch, parse_params, require_user
from tenderalert.schemas.collaboration import (
    QuoteCreate,
    QuoteResponse,
    QuoteUpdate,
    RfqCreate,
    RfqFilters,
    RfqResponse,
    RfqUpdate,
)
from tenderalert.schemas.common import ActionRequest
from tenderalert.services import collaboration

router = APIRouter()


class RfqRef(BaseModel):
    rfq_id: uuid.UUID


class QuoteRef(BaseModel):
    quote_id: uuid.UUID


class OptionalUser(BaseModel):
    user_id: uuid.UUID | None = None


def _rfq(rfq) -> dict[str, Any]:
    return RfqResponse.model_validate(rfq).model_dump(mode="json")


def _quote(quote) -> dict[str, Any]:
    return QuoteResponse.model_validate(quote).model_dump(mode="json")


async def create_rfq(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    data = parse_params(RfqCreate, params.get("rfq") or params)
    return {"data": _rfq(await collaboration.create_rfq(db, user_id, data))}


async def update_rfq(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(RfqRef, params)
    data = parse_params(RfqUpdate, params.get("updates") or {})
    return {"data": _rfq(await collaboration.update_rfq(db, ref.rfq_id, user_id, data))}


async def delete_rfq(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(RfqRef, params)
    await collaboration.delete_rfq(db, ref.rfq_id, user_id)
    return {"message": "RFQ deleted"}


async def list_rfqs(db, params: dict[str, Any]) -> dict[str, Any]:
    filters = parse_params(RfqFilters, params.get("filters") or {})
    user_id = parse_params(OptionalUser, params).user_id
    rfqs = await collaboration.list_rfqs(db, filters, user_id)
    return {"data": [_rfq(r) for r in rfqs], "count": len(rfqs)}


async def submit_quote(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(RfqRef, params)
    data = parse_params(QuoteCreate, params.get("quote") or params)
    return {"data": _quote(await collaboration.submit_quote(db, ref.rfq_id, user_id, data))}


async def update_quote(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(QuoteRef, params)
    data = parse_params(QuoteUpdate, params.get("updates") or {})
    return {"data": _quote(await collaboration.update_quote(db, ref.quote_id, user_id, data))}


async def accept_quote(db, params: dict[str, Any]) -> dict[str, Any]:
    user_id = require_user(params)
    ref = parse_params(QuoteRef, params)
    return {"data": _quote(await collaboration.accept_quote(db, ref.quote_id, user_id))}


async def list_quotes(db, params: dict[str, Any]) -> dict[str, Any]:
    ref = parse_params(RfqRef, params)
    quotes = await collaboration.list_quotes(db, ref.rfq_id)
    return {"data": [_quote(q) for q in quotes], "count": len(quotes)}


HANDLERS: dict[str, Handler] = {
    "create-rfq": create_rfq,
    "update-rfq": update_rfq,
    "delete-rfq": delete_rfq,
    "list-rfqs": list_rfqs,
    "submit-quote": submit_quote,
    "update-quote": update_quote,
    "accept-quote": accept_quote,
    "list-quotes": list_quotes,
}


@router.post("")
async def rfq_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
