"""Payment and ledger models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import LedgerDirection, PaymentMethod, TransactionStatus


class Payment(BaseModel):
    """A payment transaction for a reservation.

    Amounts are in cents. Refunds are stored as separate records with a
    negative amount.
    """

    model_config = ConfigDict(strict=True)

    payment_id: str = Field(..., description="Unique payment ID", examples=["PAY-3F9A0B1C2D4E"])
    reservation_id: str = Field(..., description="Reference to Reservation")
    campground_id: str
    amount: int = Field(..., description="Amount in cents (negative for refunds)")
    currency: str = Field(default="USD", description="Currency code")
    status: TransactionStatus
    payment_method: PaymentMethod
    cash_received_cents: int | None = Field(default=None, ge=0)
    change_due_cents: int | None = Field(default=None, ge=0)
    stripe_payment_intent_id: str | None = Field(
        default=None,
        description="Stripe PaymentIntent ID (pi_xxx)",
        examples=["pi_3ABC123DEF456"],
    )
    stripe_charge_id: str | None = Field(default=None, examples=["ch_3ABC123DEF456"])
    stripe_refund_id: str | None = Field(default=None, examples=["re_3ABC123DEF456"])
    refunded_amount: int = Field(default=0, ge=0, description="Cents refunded against this payment")
    original_payment_id: str | None = Field(
        default=None, description="For refund records, the payment being refunded"
    )
    note: str | None = None
    created_at: datetime
    completed_at: datetime | None = None
    error_message: str | None = None


class PaymentResult(BaseModel):
    """Result of a payment or refund operation."""

    model_config = ConfigDict(strict=True)

    payment_id: str
    status: TransactionStatus
    amount: int = 0
    change_due_cents: int | None = None
    client_secret: str | None = Field(
        default=None, description="Stripe PaymentIntent client secret for card capture"
    )
    error_message: str | None = None


class LedgerEntry(BaseModel):
    """A single credit or debit against a reservation."""

    model_config = ConfigDict(strict=True)

    entry_id: str
    campground_id: str
    reservation_id: str
    direction: LedgerDirection
    amount_cents: int = Field(..., ge=0)
    description: str
    source: str = Field(..., examples=["payment", "refund", "dispute"])
    created_at: datetime
