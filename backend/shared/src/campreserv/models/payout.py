"""Stripe payout models and reconciliation summary."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import PayoutStatus, ReconStatus


class PayoutLine(BaseModel):
    """A balance transaction included in a payout."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., examples=["txn_1ABC"])
    type: str = Field(..., examples=["charge", "refund", "adjustment", "stripe_fee"])
    amount_cents: int
    currency: str = "usd"
    description: str | None = None
    reservation_id: str | None = None
    payment_intent_id: str | None = None
    charge_id: str | None = None
    balance_transaction_id: str | None = None


class Payout(BaseModel):
    """A Stripe payout to a campground's bank account."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Payout ID", examples=["po_1ABC123"])
    campground_id: str
    amount_cents: int
    fee_cents: int = 0
    currency: str = "usd"
    status: PayoutStatus
    arrival_date: datetime | None = None
    paid_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class PayoutDetail(Payout):
    """A payout with its lines."""

    lines: list[PayoutLine] = Field(default_factory=list)


class PayoutReconSummary(BaseModel):
    """Payout vs lines vs ledger comparison."""

    model_config = ConfigDict(strict=True)

    payout_id: str
    campground_id: str
    payout_amount_cents: int
    payout_fee_cents: int
    payout_net_cents: int
    line_sum_cents: int
    ledger_net_cents: int
    drift_vs_lines_cents: int
    drift_vs_ledger_cents: int
    status: ReconStatus
