"""
Win-probability estimates from historical award data.
"""

import uuid
from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field, model_validator

from tenderalert.api.deps import DB, Handler, dispatch, parse_params
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.win_probability import estimate_for_tender

router = APIRouter()


class EstimateParams(BaseModel):
    tender_id: uuid.UUID | None = None
    category: str | None = None
    location: str | None = None
    budget_estimate: float | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def need_tender_or_category(self) -> "EstimateParams":
        if self.tender_id is None and not self.category:
            raise ValueError("tender_id or category is required")
        return self


async def estimate(db, params: dict[str, Any]) -> dict[str, Any]:
    data = parse_params(EstimateParams, params)
    result = await estimate_for_tender(
        db,
        tender_id=data.tender_id,
        category=data.category,
        location=data.location,
        budget=data.budget_estimate,
    )
    return {"data": result}


HANDLERS: dict[str, Handler] = {"estimate": estimate}


@router.post("")
async def win_probability_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
