"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from pydantic import BaseModel, Field


class HealthStatus(BaseModel):
    """Liveness payload."""

    status: str = Field("ok", description="Always ``ok`` while the process serves requests.")
    detail: str | None = None


class PublishFailure(BaseModel):
    """Error body returned when a record could not be published."""

    detail: str = Field(..., description="Reason reported by the messaging client.")
