"""Stripe webhook event model for idempotency and auditing."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class StripeWebhookEvent(BaseModel):
    """Log of a received Stripe webhook event.

    Used for:
    - Idempotency: prevent processing same event twice
    - Auditing: track payout and dispute deliveries
    """

    model_config = ConfigDict(strict=True)

    event_id: str = Field(
        ...,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["payout.paid", "charge.dispute.created"],
    )
    processed_at: datetime
    payload_hash: str = Field(..., description="SHA-256 hash of payload")
    campground_id: str | None = None
    object_id: str | None = Field(
        default=None,
        description="ID of the Stripe object carried by the event",
        examples=["po_1ABC123", "dp_1ABC123"],
    )
    processing_result: str = Field(
        default="success",
        description="Result of processing: success, duplicate, skipped, error",
    )
    error_message: str | None = None
