"""
Bid analysis endpoint.
"""

import uuid
from functools import partial
from typing import Annotated, Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from tenderalert.api.deps import DB, Handler, dispatch, parse_params
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.bid_analysis import BidAnalysisService, analysis_to_dict

router = APIRouter()


def get_analysis_service() -> BidAnalysisService:
    return BidAnalysisService()


AnalysisService = Annotated[BidAnalysisService, Depends(get_analysis_service)]


class AnalyzeParams(BaseModel):
    tender_id: uuid.UUID
    force_regenerate: bool = False


async def analyze(db, params: dict[str, Any], service: BidAnalysisService) -> dict[str, Any]:
    data = parse_params(AnalyzeParams, params)
    analysis, cached = await service.analyze(db, data.tender_id, data.force_regenerate)
    return {"data": analysis_to_dict(analysis), "cached": cached}


@router.post("")
async def analysis_action(
    payload: ActionRequest,
    db: DB,
    service: AnalysisService,
) -> dict[str, Any]:
    handlers: dict[str, Handler] = {"analyze": partial(analyze, service=service)}
    return await dispatch(handlers, payload, db)
