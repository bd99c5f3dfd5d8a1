"""Pricing service for nightly rate and quote calculation."""

import datetime as dt
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from campreserv.models import (
    CampreservError,
    ErrorCode,
    PricingRule,
    Quote,
    SeasonalRate,
    SiteClass,
)
from campreserv.utils.items import as_date, as_float, as_int, round_half_up

if TYPE_CHECKING:
    from .campgrounds import CampgroundService
    from .dynamodb import DynamoDBService


def compute_nights(arrival: dt.date, departure: dt.date) -> int:
    """Nights between two dates, never less than 1."""
    if departure <= arrival:
        return 1
    return max(1, (departure - arrival).days)


def _class_matches(scope_class_id: str | None, site_class_id: str | None) -> bool:
    return scope_class_id is None or scope_class_id == site_class_id


def find_applicable_seasonal_rate(
    rates: list[SeasonalRate],
    site_class_id: str | None,
    nights: int,
    arrival: dt.date,
) -> SeasonalRate | None:
    """Pick the seasonal rate for a stay.

    The most specific stay-length tier wins; equal tiers take the cheaper rate.
    """
    qualifying = [
        rate
        for rate in rates
        if rate.is_active
        and _class_matches(rate.site_class_id, site_class_id)
        and (rate.start_date is None or rate.start_date <= arrival)
        and (rate.end_date is None or arrival <= rate.end_date)
        and rate.min_nights <= nights
    ]
    if not qualifying:
        return None
    return min(qualifying, key=lambda rate: (-rate.min_nights, rate.amount))


def _rule_applies(rule: PricingRule, day: dt.date, nights: int) -> bool:
    if rule.min_nights and nights < rule.min_nights:
        return False
    if rule.start_date and day < rule.start_date:
        return False
    if rule.end_date and day > rule.end_date:
        return False
    # Sunday = 0
    weekday = (day.weekday() + 1) % 7
    if rule.day_of_week is not None and rule.day_of_week != weekday:
        return False
    return True


def compute_price(
    site_class: SiteClass | None,
    seasonal_rates: list[SeasonalRate],
    rules: list[PricingRule],
    arrival: dt.date,
    departure: dt.date,
    *,
    site_id: str | None = None,
    fallback_rate: int | None = None,
) -> Quote:
    """Compute a quote for a stay.

    Args:
        site_class: Class of the site, used for its default rate and scoping
        seasonal_rates: Candidate seasonal rates for the campground
        rules: Candidate pricing rules for the campground
        arrival: First night
        departure: Departure day (not charged)
        site_id: Site being quoted, echoed on the quote
        fallback_rate: Nightly rate when there is neither class nor season

    Returns:
        Quote with per-night totals
    """
    nights = compute_nights(arrival, departure)
    site_class_id = site_class.id if site_class else None

    seasonal = find_applicable_seasonal_rate(seasonal_rates, site_class_id, nights, arrival)
    if seasonal:
        base_rate = seasonal.amount
    elif site_class:
        base_rate = site_class.default_rate
    else:
        base_rate = fallback_rate or 0

    applicable = [
        rule for rule in rules if rule.is_active and _class_matches(rule.site_class_id, site_class_id)
    ]

    per_night = []
    rules_delta = 0
    for offset in range(nights):
        day = arrival + dt.timedelta(days=offset)
        delta = 0
        for rule in applicable:
            if not _rule_applies(rule, day, nights):
                continue
            delta += rule.flat_adjust
            if rule.percent_adjust:
                delta += int(round_half_up(Decimal(str(rule.percent_adjust)) * base_rate))
        rules_delta += delta
        per_night.append(base_rate + delta)

    base_subtotal = base_rate * nights
    return Quote(
        site_id=site_id,
        arrival_date=arrival,
        departure_date=departure,
        nights=nights,
        base_subtotal_cents=base_subtotal,
        rules_delta_cents=rules_delta,
        total_cents=base_subtotal + rules_delta,
        per_night_cents=per_night,
        seasonal_rate_id=seasonal.id if seasonal else None,
    )


class QuoteService:
    """Loads pricing inputs for a site and prices a stay."""

    SEASONAL_RATES_TABLE = "seasonal-rates"
    PRICING_RULES_TABLE = "pricing-rules"

    def __init__(self, db: "DynamoDBService", campgrounds: "CampgroundService") -> None:
        self.db = db
        self.campgrounds = campgrounds

    def get_seasonal_rates(self, campground_id: str) -> list[SeasonalRate]:
        items = self.db.query_by_campground(self.SEASONAL_RATES_TABLE, campground_id)
        return [self._item_to_seasonal_rate(item) for item in items]

    def get_pricing_rules(self, campground_id: str) -> list[PricingRule]:
        items = self.db.query_by_campground(self.PRICING_RULES_TABLE, campground_id)
        return [self._item_to_pricing_rule(item) for item in items]

    def get_quote(
        self,
        campground_id: str,
        site_id: str,
        arrival: dt.date,
        departure: dt.date,
    ) -> Quote:
        """Price a stay on a site.

        Raises:
            CampreservError: INVALID_DATE_RANGE, SITE_NOT_FOUND or
                SITE_CLASS_NOT_FOUND
        """
        if departure <= arrival:
            raise CampreservError(ErrorCode.INVALID_DATE_RANGE)

        site = self.campgrounds.get_site(site_id, campground_id)
        site_class = None
        if site.site_class_id:
            site_class = self.campgrounds.get_site_class(site.site_class_id)
        if site_class is None and site.default_rate is None:
            raise CampreservError(
                ErrorCode.SITE_CLASS_NOT_FOUND,
                details={"site_id": site_id, "site_class_id": site.site_class_id or ""},
            )

        return compute_price(
            site_class,
            self.get_seasonal_rates(campground_id),
            self.get_pricing_rules(campground_id),
            arrival,
            departure,
            site_id=site_id,
            fallback_rate=site.default_rate,
        )

    def _item_to_seasonal_rate(self, item: dict[str, Any]) -> SeasonalRate:
        """Convert DynamoDB item to SeasonalRate model."""
        return SeasonalRate(
            id=item["rate_id"],
            campground_id=item["campground_id"],
            site_class_id=item.get("site_class_id"),
            name=item.get("name", item["rate_id"]),
            amount=int(item["amount"]),
            start_date=as_date(item.get("start_date")),
            end_date=as_date(item.get("end_date")),
            min_nights=as_int(item.get("min_nights"), 1),
            is_active=bool(item.get("is_active", True)),
        )

    def _item_to_pricing_rule(self, item: dict[str, Any]) -> PricingRule:
        """Convert DynamoDB item to PricingRule model."""
        return PricingRule(
            id=item["rule_id"],
            campground_id=item["campground_id"],
            site_class_id=item.get("site_class_id"),
            label=item.get("label", item["rule_id"]),
            is_active=bool(item.get("is_active", True)),
            min_nights=as_int(item.get("min_nights")),
            start_date=as_date(item.get("start_date")),
            end_date=as_date(item.get("end_date")),
            day_of_week=as_int(item.get("day_of_week")),
            flat_adjust=as_int(item.get("flat_adjust"), 0),
            percent_adjust=as_float(item.get("percent_adjust"), 0.0),
        )
