"""Shared API response models.

Domain models (Reservation, Payment, Payout, etc.) live in campreserv.models
and are returned directly; this module only holds HTTP-layer wrappers.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from campreserv.models.errors import ErrorCode, ErrorResponse

__all__ = [
    "ErrorCode",
    "ErrorResponse",
    "SuccessMessage",
    "WebhookResponse",
    "PreferencesResponse",
    "HealthResponse",
]


class SuccessMessage(BaseModel):
    """Generic success response for operations without data payload."""

    model_config = ConfigDict(strict=True)

    success: bool = True
    message: str = Field(
        default="Operation completed successfully",
        description="Human-readable success message",
    )


class HealthResponse(BaseModel):
    model_config = ConfigDict(strict=True)

    status: str = Field(..., examples=["ok", "degraded"])
    timestamp: str
    service: str = "campreserv-api"
    checks: dict[str, str] = Field(default_factory=dict)


class WebhookResponse(BaseModel):
    """Acknowledgement returned to Stripe."""

    received: bool
    event_id: str | None = None
    event_type: str | None = None
    processing_result: str = Field(..., examples=["success", "duplicate", "skipped", "error"])
    message: str | None = None


class PreferencesResponse(BaseModel):
    """All stored preferences of a user, keyed by preference key."""

    user_id: str
    preferences: dict[str, Any]
