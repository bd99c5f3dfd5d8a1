"""Reservation models."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import PaymentMethod, PaymentStatus, ReservationStatus


class Reservation(BaseModel):
    """A site reservation.

    All amounts are in cents.
    """

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Reservation ID", examples=["RES-2026-4F7A1C"])
    campground_id: str
    site_id: str
    guest_id: str
    arrival_date: date
    departure_date: date
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    status: ReservationStatus
    total_amount: int = Field(..., ge=0, description="Total in cents")
    paid_amount: int = Field(default=0, ge=0, description="Paid so far in cents")
    balance_amount: int = Field(default=0, ge=0, description="Outstanding in cents")
    payment_status: PaymentStatus = PaymentStatus.UNPAID
    deposit_required_cents: int = Field(default=0, ge=0)
    base_subtotal: int = Field(default=0, ge=0, description="Quote base subtotal in cents")
    rules_delta: int = Field(default=0, description="Quote pricing rule delta in cents")
    rig_type: str | None = None
    rig_length: int | None = None
    notes: str | None = None
    override_reason: str | None = None
    override_approved_by: str | None = None
    source: str = Field(default="admin", examples=["admin", "online"])
    hold_id: str | None = None
    cancelled_at: datetime | None = None
    created_at: datetime
    updated_at: datetime

    @property
    def nights(self) -> int:
        return max(1, (self.departure_date - self.arrival_date).days)


class ReservationCreate(BaseModel):
    """Data required to create a reservation.

    Either site_id or site_class_id must be provided; with only a class the
    booking service auto-assigns a compatible site.
    """

    model_config = ConfigDict(
        # strict=False allows ISO date strings from JSON
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "campground_id": "cg-pinecrest",
                    "guest_id": "guest-8f2c",
                    "site_id": "site-a01",
                    "arrival_date": "2026-07-10",
                    "departure_date": "2026-07-13",
                    "adults": 2,
                    "children": 1,
                    "rig_type": "travel-trailer",
                    "rig_length": 28,
                    "paid_amount": 5000,
                    "payment_method": "cash",
                    "status": "confirmed",
                }
            ]
        },
    )

    campground_id: str
    guest_id: str
    site_id: str | None = None
    site_class_id: str | None = None
    arrival_date: date
    departure_date: date
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    rig_type: str | None = None
    rig_length: int | None = Field(default=None, ge=0)
    requires_accessible: bool = False
    required_amenities: list[str] = Field(default_factory=list)
    total_amount: int | None = Field(
        default=None, ge=0, description="Manual total override in cents"
    )
    paid_amount: int = Field(default=0, ge=0)
    payment_method: PaymentMethod | None = None
    status: ReservationStatus | None = Field(
        default=None,
        description="Initial status; defaults to confirmed when paid_amount > 0, else pending",
    )
    notes: str | None = None
    hold_id: str | None = None
    override_reason: str | None = None
    override_approved_by: str | None = None
    source: str = "admin"


class DepositCalculation(BaseModel):
    """Deposit due and remaining balance for a reservation."""

    model_config = ConfigDict(strict=True)

    reservation_id: str
    deposit_rule: str
    deposit_amount: int = Field(..., ge=0)
    remaining_balance: int = Field(..., ge=0)


class CancellationResult(BaseModel):
    """Outcome of cancelling a reservation."""

    model_config = ConfigDict(strict=True)

    reservation: Reservation
    refund_amount: int = Field(..., ge=0, description="Refund actually issued, in cents")
    refund_percentage: int = Field(..., ge=0, le=100)
    policy_tier: str
    days_until_arrival: int
    description: str
    refund_payment_id: str | None = None
    refund_failed_cents: int = Field(
        default=0, ge=0, description="Refund owed under the policy that could not be issued"
    )
    refund_error: str | None = None
