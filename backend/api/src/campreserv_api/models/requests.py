"""API request bodies.

JSON has no native date type, so every request model uses strict=False to
let ISO strings coerce to date.
"""

from datetime import date, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from campreserv.models.campground import CancellationRule
from campreserv.models.enums import FeeType, PaymentMethod


class QuoteRequest(BaseModel):
    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {"site_id": "site-a01", "arrival_date": "2026-07-10", "departure_date": "2026-07-13"}
            ]
        },
    )

    site_id: str
    arrival_date: date
    departure_date: date


class CancellationRuleInput(BaseModel):
    model_config = ConfigDict(strict=False)

    id: str
    days_before_arrival: int = Field(..., ge=0)
    fee_type: FeeType
    fee_amount: int = Field(default=0, ge=0)
    applies_to: list[str] = Field(default_factory=list)

    def to_rule(self) -> CancellationRule:
        return CancellationRule(**self.model_dump())


class CancellationPolicyRequest(BaseModel):
    """Either a preset name or a custom list of tiers."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={"examples": [{"preset": "moderate"}]},
    )

    preset: str | None = Field(default=None, examples=["flexible", "moderate", "strict"])
    rules: list[CancellationRuleInput] | None = None


class HoldCreateRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    campground_id: str
    site_id: str
    arrival_date: date
    departure_date: date
    hold_minutes: int = Field(default=30, description="Between 1 and 1440")
    note: str | None = Field(default=None, max_length=500)


class CancelReservationRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    cancellation_date: date | None = Field(
        default=None, description="Defaults to today; used for policy tier lookup"
    )
    reason: str | None = Field(default=None, max_length=500)


class PaymentRequest(BaseModel):
    """Payment taken at the desk or started for card capture."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [{"method": "cash", "amount_cents": 10000, "cash_received_cents": 12000}]
        },
    )

    method: PaymentMethod
    amount_cents: int
    cash_received_cents: int | None = Field(default=None, ge=0)
    note: str | None = Field(default=None, max_length=500)


class FxRateInput(BaseModel):
    model_config = ConfigDict(strict=False)

    base: str
    quote: str
    rate: float = Field(..., gt=0)
    as_of: datetime | None = None


class CurrencyConfigUpdateRequest(BaseModel):
    """Partial update; omitted fields keep their stored value."""

    model_config = ConfigDict(
        strict=False,
        json_schema_extra={
            "examples": [
                {
                    "reporting_currency": "CAD",
                    "fx_rates": [{"base": "USD", "quote": "CAD", "rate": 1.36}],
                }
            ]
        },
    )

    base_currency: str | None = None
    reporting_currency: str | None = None
    fx_provider: str | None = None
    fx_rates: list[FxRateInput] | None = None


class ConvertRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    amount: float
    from_currency: str
    to_currency: str


class HelpFeedbackRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    helpful: bool


class PreferenceValueRequest(BaseModel):
    model_config = ConfigDict(strict=False)

    value: Any
