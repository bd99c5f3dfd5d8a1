"""Stripe dispute model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import DisputeStatus


class Dispute(BaseModel):
    """A card dispute (chargeback) raised against a campground payment."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Internal dispute ID", examples=["DSP-1A2B3C4D5E6F"])
    stripe_dispute_id: str = Field(..., examples=["dp_1ABC123"])
    stripe_charge_id: str | None = None
    stripe_payment_intent_id: str | None = None
    campground_id: str
    reservation_id: str | None = None
    payout_id: str | None = None
    amount_cents: int = Field(..., ge=0)
    currency: str = "usd"
    reason: str | None = Field(default=None, examples=["fraudulent"])
    status: DisputeStatus = DisputeStatus.NEEDS_RESPONSE
    evidence_due_by: datetime | None = None
    notes: str | None = None
    created_at: datetime
    updated_at: datetime
