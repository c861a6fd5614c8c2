"""
Shared endpoint dependencies and the action dispatcher.

Every function endpoint takes ``{"action": ..., ...params}``; handlers are
plain async functions registered in a dict per router.
"""

import uuid
from collections.abc import Awaitable, Callable
from typing import Annotated, Any, TypeVar

from fastapi import Depends
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from tenderalert.core.exceptions import InvalidActionException, ValidationException
from tenderalert.db.session import get_db, get_session_factory
from tenderalert.schemas.common import ActionRequest

DB = Annotated[AsyncSession, Depends(get_db)]
SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]

Handler = Callable[[AsyncSession, dict[str, Any]], Awaitable[dict[str, Any]]]
SchemaT = TypeVar("SchemaT", bound=BaseModel)


class UserParams(BaseModel):
    user_id: uuid.UUID


def parse_params(schema: type[SchemaT], params: dict[str, Any]) -> SchemaT:
    """Validate action params, mapping pydantic errors onto a 422."""
    try:
        return schema.model_validate(params)
    except ValidationError as e:
        field_errors: dict[str, list[str]] = {}
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "params"
            field_errors.setdefault(field, []).append(error["msg"])
        raise ValidationException("Invalid parameters", field_errors) from None


def require_user(params: dict[str, Any]) -> uuid.UUID:
    return parse_params(UserParams, params).user_id


async def dispatch(
    handlers: dict[str, Handler],
    payload: ActionRequest,
    db: AsyncSession,
) -> dict[str, Any]:
    handler = handlers.get(payload.action)
    if handler is None:
        raise InvalidActionException(payload.action, list(handlers))
    result = await handler(db, payload.params)
    return {"success": True, **result}
