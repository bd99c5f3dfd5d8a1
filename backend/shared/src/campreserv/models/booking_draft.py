"""Booking draft models for the staff booking flow.

A draft captures the operator's in-progress selections; the summary is the
state derived from it (nights, totals, cash change, readiness).
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from .enums import CardMode, PaymentMethod, ReservationStatus


class DraftCampground(BaseModel):
    model_config = ConfigDict(strict=False)

    id: str
    site_selection_fee_cents: int = Field(default=0, ge=0)


class DraftSite(BaseModel):
    model_config = ConfigDict(strict=False)

    id: str
    site_type: str
    site_class_id: str | None = None
    default_rate: int | None = Field(default=None, ge=0)


class DraftSiteClass(BaseModel):
    model_config = ConfigDict(strict=False)

    id: str
    name: str
    default_rate: int | None = Field(default=None, ge=0)


class BookingDraft(BaseModel):
    """Operator selections in the booking flow.

    Money typed by the operator arrives as decimal strings ("125.50").
    """

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "campground": {"id": "cg-pinecrest", "site_selection_fee_cents": 1500},
                    "site": {
                        "id": "site-a01",
                        "site_type": "rv",
                        "site_class_id": "sc-full-hookup",
                    },
                    "site_classes": [
                        {"id": "sc-full-hookup", "name": "Full Hookup", "default_rate": 6500}
                    ],
                    "guest_id": "guest-8f2c",
                    "arrival_date": "2026-07-10",
                    "departure_date": "2026-07-13",
                    "lock_site": True,
                    "payment_method": "cash",
                    "payment_amount": "210.00",
                    "cash_received": "220.00",
                }
            ]
        },
    )

    campground: DraftCampground | None = None
    site: DraftSite | None = None
    site_classes: list[DraftSiteClass] = Field(default_factory=list)
    quote_total_cents: int | None = Field(default=None, description="Server quote, if fetched")
    quote_error: bool = Field(default=False, description="Quote request failed")
    guest_id: str | None = None
    arrival_date: date | None = None
    departure_date: date | None = None
    adults: int = Field(default=1, ge=0)
    children: int = Field(default=0, ge=0)
    rig_type: str | None = None
    rig_length: int | None = Field(default=None, ge=0)
    lock_site: bool = False
    payment_method: PaymentMethod | None = None
    payment_amount: str | None = None
    cash_received: str | None = None
    card_mode: CardMode = CardMode.MANUAL
    override_approved_by: str | None = None
    notes: str | None = None
    hold_id: str | None = None


class BookingDraftSummary(BaseModel):
    """State derived from a booking draft. Amounts in cents."""

    model_config = ConfigDict(strict=True)

    arrival_date: date | None
    departure_date: date | None
    nights: int
    date_range_valid: bool
    fallback_nightly_rate: int | None
    fallback_subtotal: int | None
    pricing_total: int | None
    is_estimate: bool
    lock_fee: int
    estimated_total: int | None
    total_cents: int
    payment_amount_cents: int
    payment_amount_default: str | None
    change_due_cents: int
    cash_short_cents: int
    cash_note: str | None
    payment_ready: bool
    can_create: bool
    reservation_status: ReservationStatus
    paid_amount: int
    balance_amount: int
    override_reason: str | None
    needs_override_approval: bool
    override_ready: bool
