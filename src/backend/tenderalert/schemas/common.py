"""
Common schemas used across the API.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


class ActionRequest(BaseModel):
    """
    Body of every action endpoint: ``{"action": "...", ...params}``.

    Parameters may be sent either flat next to ``action`` or nested under
    a ``params`` key.
    """

    model_config = ConfigDict(extra="allow")

    action: str | None = Field(default=None, max_length=64)

    @property
    def params(self) -> dict[str, Any]:
        extra = dict(self.model_extra or {})
        nested = extra.pop("params", None)
        if isinstance(nested, dict):
            return {**extra, **nested}
        return extra


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    version: str
    environment: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ErrorResponse(BaseModel):
    """Standard error envelope."""

    success: bool = False
    error: str
    code: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)
