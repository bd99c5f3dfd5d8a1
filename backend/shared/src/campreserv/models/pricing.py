"""Pricing models: seasonal rates, pricing rules and quotes.

All amounts are in cents.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field


class SeasonalRate(BaseModel):
    """A nightly rate that replaces the class default within a season."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., examples=["rate-summer-2026"])
    campground_id: str
    site_class_id: str | None = Field(default=None, description="None = all classes")
    name: str = Field(..., examples=["Summer 2026"])
    amount: int = Field(..., ge=0, description="Nightly rate in cents", examples=[7500])
    start_date: date | None = None
    end_date: date | None = None
    min_nights: int = Field(default=1, ge=1, description="Stay length needed to qualify")
    is_active: bool = True


class PricingRule(BaseModel):
    """A nightly adjustment applied on top of the base rate."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., examples=["rule-weekend"])
    campground_id: str
    site_class_id: str | None = Field(default=None, description="None = all classes")
    label: str = Field(..., examples=["Weekend premium"])
    is_active: bool = True
    min_nights: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    day_of_week: int | None = Field(
        default=None, ge=0, le=6, description="0 = Sunday ... 6 = Saturday"
    )
    flat_adjust: int = Field(default=0, description="Cents added per matching night")
    percent_adjust: float = Field(
        default=0.0, description="Fraction of the base rate added per matching night"
    )


class Quote(BaseModel):
    """Computed price for a stay."""

    model_config = ConfigDict(strict=True)

    site_id: str | None = None
    arrival_date: date
    departure_date: date
    nights: int = Field(..., ge=1)
    base_subtotal_cents: int = Field(..., ge=0)
    rules_delta_cents: int
    total_cents: int
    per_night_cents: list[int] = Field(default_factory=list)
    seasonal_rate_id: str | None = None
