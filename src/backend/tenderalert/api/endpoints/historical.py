"""
Historical award data import.
"""

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel, Field

from tenderalert.api.deps import DB, Handler, dispatch, parse_params
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.historical_import import award_stats, import_awards_csv

router = APIRouter()


class ImportParams(BaseModel):
    csv_text: str = Field(min_length=1)
    limit: int | None = Field(default=None, ge=1)
    offset: int = Field(default=0, ge=0)


async def import_csv(db, params: dict[str, Any]) -> dict[str, Any]:
    data = parse_params(ImportParams, params)
    return await import_awards_csv(db, data.csv_text, limit=data.limit, offset=data.offset)


async def stats(db, params: dict[str, Any]) -> dict[str, Any]:
    return {"data": await award_stats(db)}


HANDLERS: dict[str, Handler] = {
    "import-csv": import_csv,
    "stats": stats,
}


@router.post("")
async def historical_action(payload: ActionRequest, db: DB) -> dict[str, Any]:
    return await dispatch(HANDLERS, payload, db)
