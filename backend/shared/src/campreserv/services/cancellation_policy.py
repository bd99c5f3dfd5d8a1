"""Cancellation policy service for calculating refund amounts.

A campground's policy is a list of tiered rules. Each rule applies when the
guest cancels at least `days_before_arrival` days ahead; the tier with the
largest threshold that is met wins. Fee types:
- flat: refund everything paid minus a fixed fee
- percent: refund that percentage of what was paid
- nights: forfeit N nights at the average nightly price
- full: no refund

All amounts are in cents.
"""

import datetime as dt
from typing import TYPE_CHECKING, TypedDict

from campreserv.models import (
    Campground,
    CampreservError,
    CancellationRule,
    ErrorCode,
    FeeType,
)
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .campgrounds import CampgroundService

logger = get_logger(__name__)


class RefundCalculation(TypedDict):
    """Result of cancellation policy calculation."""

    refund_amount: int  # cents
    refund_percentage: int  # of the paid amount
    policy_tier: str  # rule id, or "none"
    days_until_arrival: int
    description: str


def _preset(name: str, tiers: list[tuple[int, FeeType, int]]) -> list[CancellationRule]:
    return [
        CancellationRule(
            id=f"{name}-{index}",
            days_before_arrival=days,
            fee_type=fee_type,
            fee_amount=amount,
        )
        for index, (days, fee_type, amount) in enumerate(tiers, start=1)
    ]


PRESETS: dict[str, list[CancellationRule]] = {
    "flexible": _preset("flexible", [(1, FeeType.FLAT, 0), (0, FeeType.FULL, 0)]),
    "moderate": _preset("moderate", [(7, FeeType.FLAT, 0), (0, FeeType.PERCENT, 50)]),
    "strict": _preset(
        "strict", [(30, FeeType.FLAT, 0), (7, FeeType.NIGHTS, 1), (0, FeeType.FULL, 0)]
    ),
}

RECOMMENDED_PRESET = "moderate"


def sort_rules(rules: list[CancellationRule]) -> list[CancellationRule]:
    """Sort rules from the longest notice period to the shortest."""
    return sorted(rules, key=lambda rule: rule.days_before_arrival, reverse=True)


def get_preset(name: str) -> list[CancellationRule]:
    """Rules for a named preset. "customize" starts from the recommended one.

    Raises:
        CampreservError: INVALID_CANCELLATION_POLICY for unknown names
    """
    key = RECOMMENDED_PRESET if name == "customize" else name
    if key not in PRESETS:
        raise CampreservError(ErrorCode.INVALID_CANCELLATION_POLICY, details={"preset": name})
    return sort_rules([rule.model_copy() for rule in PRESETS[key]])


def describe_rule(rule: CancellationRule) -> str:
    if rule.fee_type == FeeType.FLAT:
        return f"${rule.fee_amount / 100:.2f} fee"
    if rule.fee_type == FeeType.PERCENT:
        return f"{rule.fee_amount}% refund"
    if rule.fee_type == FeeType.NIGHTS:
        unit = "night" if rule.fee_amount == 1 else "nights"
        return f"{rule.fee_amount} {unit} forfeited"
    return "No refund"


def calculate_refund(
    rules: list[CancellationRule],
    paid_amount: int,
    total_amount: int,
    nights: int,
    arrival: dt.date,
    cancellation_date: dt.date,
    site_class_id: str | None = None,
) -> RefundCalculation:
    """Calculate the refund owed when a stay is cancelled.

    Args:
        rules: Campground cancellation rules (any order)
        paid_amount: Amount paid so far in cents
        total_amount: Reservation total in cents
        nights: Nights in the stay
        arrival: Arrival date
        cancellation_date: Date of cancellation request
        site_class_id: Class of the reserved site, for class-scoped rules

    Returns:
        RefundCalculation with refund amount and the tier applied
    """
    days = (arrival - cancellation_date).days

    rule = None
    if days >= 0:
        for candidate in sort_rules(rules):
            if days < candidate.days_before_arrival:
                continue
            if candidate.applies_to and site_class_id not in candidate.applies_to:
                continue
            rule = candidate
            break

    if rule is None:
        if days < 0:
            description = "No refund: cancelled after arrival date"
        else:
            description = "No refund: no cancellation tier applies"
        return RefundCalculation(
            refund_amount=0,
            refund_percentage=0,
            policy_tier="none",
            days_until_arrival=days,
            description=description,
        )

    if rule.fee_type == FeeType.FLAT:
        refund = max(0, paid_amount - rule.fee_amount)
    elif rule.fee_type == FeeType.PERCENT:
        refund = (paid_amount * rule.fee_amount) // 100
    elif rule.fee_type == FeeType.NIGHTS:
        nightly = total_amount // max(1, nights)
        refund = max(0, paid_amount - nightly * rule.fee_amount)
    else:
        refund = 0
    refund = min(refund, paid_amount)

    percentage = (refund * 100) // paid_amount if paid_amount > 0 else 0
    return RefundCalculation(
        refund_amount=refund,
        refund_percentage=percentage,
        policy_tier=rule.id,
        days_until_arrival=days,
        description=(
            f"{describe_rule(rule)}: cancelled {days} days before arrival "
            f"(tier: {rule.days_before_arrival}+ days)"
        ),
    )


class CancellationPolicyService:
    """Reads and applies campground cancellation policies."""

    def __init__(self, campgrounds: "CampgroundService") -> None:
        self.campgrounds = campgrounds

    def get_rules(self, campground_id: str) -> list[CancellationRule]:
        return sort_rules(self.campgrounds.get_campground(campground_id).cancellation_rules)

    def apply_policy(
        self,
        campground_id: str,
        preset: str | None = None,
        rules: list[CancellationRule] | None = None,
    ) -> Campground:
        """Store a preset or custom rule list on a campground.

        Raises:
            CampreservError: INVALID_CANCELLATION_POLICY unless exactly one of
                preset or rules is given, or the preset is unknown
        """
        if (preset is None) == (rules is None):
            raise CampreservError(
                ErrorCode.INVALID_CANCELLATION_POLICY,
                details={"reason": "Provide either a preset or rules"},
            )
        new_rules = get_preset(preset) if preset is not None else sort_rules(rules or [])
        campground = self.campgrounds.set_cancellation_rules(campground_id, new_rules)
        logger.info(
            "Cancellation policy for %s set to %s (%d tiers)",
            campground_id,
            preset or "custom",
            len(new_rules),
        )
        return campground
