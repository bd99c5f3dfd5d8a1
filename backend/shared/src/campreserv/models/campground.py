"""Campground, site class and site models."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import DepositRule, FeeType, SiteStatus, SiteType


class CancellationRule(BaseModel):
    """A single cancellation tier.

    The meaning of fee_amount depends on fee_type:
    - flat: fee in cents
    - percent: refund percentage (0-100)
    - nights: number of nights forfeited
    - full: ignored (no refund)
    """

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Rule ID", examples=["moderate-7"])
    days_before_arrival: int = Field(
        ...,
        ge=0,
        description="Tier applies when cancelling at least this many days before arrival",
        examples=[7],
    )
    fee_type: FeeType = Field(..., description="How the fee is computed")
    fee_amount: int = Field(default=0, ge=0, description="Fee amount (see fee_type)")
    applies_to: list[str] = Field(
        default_factory=list,
        description="Site class IDs this rule applies to (empty = all)",
    )


class Campground(BaseModel):
    """A campground / RV park."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Campground ID", examples=["cg-pinecrest"])
    name: str = Field(..., description="Display name", examples=["Pinecrest RV Park"])
    slug: str = Field(..., description="URL slug", examples=["pinecrest"])
    currency: str = Field(default="USD", description="ISO currency code")
    site_selection_fee_cents: int = Field(
        default=0,
        ge=0,
        description="Fee charged to lock a specific site, in cents",
        examples=[1500],
    )
    deposit_rule: DepositRule = Field(
        default=DepositRule.NONE,
        description="Deposit required at booking time",
    )
    deposit_percentage: int | None = Field(
        default=None,
        ge=0,
        le=100,
        description="Deposit percentage when deposit_rule is 'percentage'",
    )
    cancellation_rules: list[CancellationRule] = Field(
        default_factory=list,
        description="Cancellation tiers sorted by days_before_arrival descending",
    )
    created_at: datetime | None = None
    updated_at: datetime | None = None


class SiteClass(BaseModel):
    """A class of interchangeable sites sharing a default rate."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Site class ID", examples=["sc-full-hookup"])
    campground_id: str
    name: str = Field(..., examples=["Full Hookup"])
    default_rate: int = Field(
        ..., ge=0, description="Default nightly rate in cents", examples=[6500]
    )
    site_type: SiteType = Field(default=SiteType.RV)
    max_occupancy: int | None = Field(default=None, ge=1)
    rig_max_length: int | None = Field(
        default=None, ge=0, description="Maximum rig length in feet"
    )
    is_active: bool = True


class Site(BaseModel):
    """A bookable site."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Site ID", examples=["site-a01"])
    campground_id: str
    name: str = Field(..., examples=["A01"])
    site_number: str = Field(..., examples=["A01"])
    site_type: SiteType
    site_class_id: str | None = None
    max_occupancy: int | None = Field(default=None, ge=1)
    rig_max_length: int | None = Field(
        default=None, ge=0, description="Site-level rig length limit in feet"
    )
    accessible: bool = False
    amenity_tags: list[str] = Field(default_factory=list)
    default_rate: int | None = Field(
        default=None, ge=0, description="Site-level nightly rate override in cents"
    )
    is_active: bool = True


class SiteWithStatus(BaseModel):
    """A site with its status for a date window."""

    model_config = ConfigDict(strict=True)

    id: str
    campground_id: str
    name: str
    site_number: str
    site_type: SiteType
    site_class_id: str | None = None
    site_class_name: str | None = None
    max_occupancy: int | None = None
    rig_max_length: int | None = None
    default_rate: int | None = Field(
        default=None, description="Nightly rate of the site's class in cents"
    )
    status: SiteStatus
    status_detail: str | None = Field(
        default=None,
        description="Guest name, maintenance title or blackout reason",
        examples=["Jane Camper"],
    )


class BlackoutDate(BaseModel):
    """A closed date range for a whole campground or a single site."""

    model_config = ConfigDict(strict=True)

    id: str
    campground_id: str
    site_id: str | None = Field(default=None, description="None = whole campground")
    start_date: date
    end_date: date
    reason: str | None = None


class MaintenanceTicket(BaseModel):
    """A maintenance ticket that may block a site."""

    model_config = ConfigDict(strict=True)

    id: str
    campground_id: str
    site_id: str | None = None
    title: str
    status: str = Field(default="open", examples=["open", "in_progress", "closed"])
