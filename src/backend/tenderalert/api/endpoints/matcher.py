"""
Smart tender matcher endpoint.

Actions:
    match-tenders      score active tenders for one user and write alerts
    run-for-all-users  batch job over every user with notifications on
"""

from typing import Any

from fastapi import APIRouter

from tenderalert.api.deps import DB, SessionFactory, require_user
from tenderalert.core.exceptions import InvalidActionException
from tenderalert.core.logging import get_logger
from tenderalert.schemas.common import ActionRequest
from tenderalert.services.matcher import match_tenders_for_user, run_for_all_users

logger = get_logger(__name__)
router = APIRouter()

ACTIONS = ["match-tenders", "run-for-all-users"]


@router.post("")
async def matcher_action(
    payload: ActionRequest,
    db: DB,
    session_factory: SessionFactory,
) -> dict[str, Any]:
    if payload.action == "match-tenders":
        user_id = require_user(payload.params)
        result = await match_tenders_for_user(db, user_id)
        return result.model_dump(mode="json")

    if payload.action == "run-for-all-users":
        logger.info("Batch matching requested")
        result = await run_for_all_users(session_factory)
        return result.model_dump(mode="json")

    raise InvalidActionException(payload.action, ACTIONS)
