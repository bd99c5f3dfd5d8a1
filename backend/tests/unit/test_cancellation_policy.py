"""Unit tests for cancellation policy refund calculation.

Tests verify refunds are calculated from the tier with the largest notice
period that the cancellation still meets:
- flat: refund what was paid minus a fee
- percent: refund a percentage of what was paid
- nights: forfeit N nights at the average nightly price
- full: no refund

Test categories:
- Tier selection and boundaries
- Fee types
- Class-scoped rules
- Presets and stored policies
"""

import datetime as dt

import pytest

from campreserv.models import CampreservError, CancellationRule, ErrorCode, FeeType
from campreserv.services.cancellation_policy import (
    PRESETS,
    calculate_refund,
    describe_rule,
    get_preset,
)

# === Test Configuration ===

TEST_PAID = 20000  # $200.00
TEST_TOTAL = 20000
TEST_NIGHTS = 4
ARRIVAL = dt.date(2026, 7, 20)


def refund_for(rules, cancellation_date, paid=TEST_PAID, total=TEST_TOTAL, site_class_id=None):
    return calculate_refund(
        rules, paid, total, TEST_NIGHTS, ARRIVAL, cancellation_date, site_class_id
    )


# === Tier Selection ===


class TestTierSelection:
    """Moderate preset: full refund 7+ days out, 50% after that."""

    def test_full_refund_10_days_before(self) -> None:
        result = refund_for(PRESETS["moderate"], dt.date(2026, 7, 10))

        assert result["refund_amount"] == TEST_PAID
        assert result["refund_percentage"] == 100
        assert result["policy_tier"] == "moderate-1"
        assert result["days_until_arrival"] == 10

    def test_exactly_7_days_before_uses_longer_tier(self) -> None:
        """The threshold is inclusive."""
        result = refund_for(PRESETS["moderate"], dt.date(2026, 7, 13))

        assert result["policy_tier"] == "moderate-1"
        assert result["refund_amount"] == TEST_PAID

    def test_6_days_before_gets_half(self) -> None:
        result = refund_for(PRESETS["moderate"], dt.date(2026, 7, 14))

        assert result["policy_tier"] == "moderate-2"
        assert result["refund_amount"] == 10000
        assert result["refund_percentage"] == 50

    def test_same_day_matches_zero_day_tier(self) -> None:
        result = refund_for(PRESETS["moderate"], ARRIVAL)

        assert result["policy_tier"] == "moderate-2"
        assert result["days_until_arrival"] == 0

    def test_after_arrival_gets_nothing(self) -> None:
        result = refund_for(PRESETS["moderate"], dt.date(2026, 7, 21))

        assert result["refund_amount"] == 0
        assert result["policy_tier"] == "none"
        assert result["days_until_arrival"] == -1
        assert "after arrival" in result["description"]

    def test_rule_order_does_not_matter(self) -> None:
        rules = list(reversed(PRESETS["moderate"]))

        result = refund_for(rules, dt.date(2026, 7, 10))

        assert result["policy_tier"] == "moderate-1"

    def test_no_rules_means_no_refund(self) -> None:
        result = refund_for([], dt.date(2026, 7, 1))

        assert result["refund_amount"] == 0
        assert result["policy_tier"] == "none"
        assert "no cancellation tier" in result["description"]

    def test_no_tier_met(self) -> None:
        rules = [CancellationRule(id="early", days_before_arrival=30, fee_type=FeeType.FLAT)]

        result = refund_for(rules, dt.date(2026, 7, 10))

        assert result["policy_tier"] == "none"
        assert result["refund_amount"] == 0


# === Fee Types ===


class TestFeeTypes:
    def test_flat_fee_is_deducted(self) -> None:
        rules = [
            CancellationRule(
                id="fee", days_before_arrival=0, fee_type=FeeType.FLAT, fee_amount=2500
            )
        ]

        result = refund_for(rules, dt.date(2026, 7, 18))

        assert result["refund_amount"] == 17500
        assert result["refund_percentage"] == 87
        assert "$25.00 fee" in result["description"]

    def test_flat_fee_larger_than_paid_refunds_nothing(self) -> None:
        rules = [
            CancellationRule(
                id="fee", days_before_arrival=0, fee_type=FeeType.FLAT, fee_amount=5000
            )
        ]

        result = refund_for(rules, dt.date(2026, 7, 18), paid=3000)

        assert result["refund_amount"] == 0

    def test_nights_forfeits_average_nightly_price(self) -> None:
        """Strict preset, 10 days out: one night ($50) forfeited."""
        result = refund_for(PRESETS["strict"], dt.date(2026, 7, 10))

        assert result["policy_tier"] == "strict-2"
        assert result["refund_amount"] == 15000
        assert result["refund_percentage"] == 75

    def test_nights_never_refunds_more_than_paid(self) -> None:
        result = refund_for(PRESETS["strict"], dt.date(2026, 7, 10), paid=5000)

        assert result["refund_amount"] == 0

    def test_full_means_no_refund(self) -> None:
        result = refund_for(PRESETS["strict"], dt.date(2026, 7, 17))

        assert result["policy_tier"] == "strict-3"
        assert result["refund_amount"] == 0
        assert result["refund_percentage"] == 0
        assert result["description"].startswith("No refund")

    def test_nothing_paid_refunds_nothing(self) -> None:
        result = refund_for(PRESETS["moderate"], dt.date(2026, 7, 10), paid=0)

        assert result["refund_amount"] == 0
        assert result["refund_percentage"] == 0


# === Class-scoped Rules ===


class TestAppliesTo:
    RULES = [
        CancellationRule(
            id="cabins-free",
            days_before_arrival=7,
            fee_type=FeeType.FLAT,
            applies_to=["sc-cabin"],
        ),
        CancellationRule(id="half", days_before_arrival=0, fee_type=FeeType.PERCENT, fee_amount=50),
    ]

    def test_rule_applies_to_listed_class(self) -> None:
        result = refund_for(self.RULES, dt.date(2026, 7, 10), site_class_id="sc-cabin")

        assert result["policy_tier"] == "cabins-free"

    def test_rule_skipped_for_other_classes(self) -> None:
        result = refund_for(self.RULES, dt.date(2026, 7, 10), site_class_id="sc-rv")

        assert result["policy_tier"] == "half"
        assert result["refund_amount"] == 10000


# === Presets ===


class TestPresets:
    def test_customize_starts_from_moderate(self) -> None:
        assert [r.id for r in get_preset("customize")] == [r.id for r in PRESETS["moderate"]]

    def test_presets_are_sorted_longest_notice_first(self) -> None:
        days = [rule.days_before_arrival for rule in get_preset("strict")]

        assert days == sorted(days, reverse=True)

    def test_unknown_preset_raises(self) -> None:
        with pytest.raises(CampreservError) as exc_info:
            get_preset("lenient")

        assert exc_info.value.code == ErrorCode.INVALID_CANCELLATION_POLICY

    @pytest.mark.parametrize(
        ("fee_type", "amount", "expected"),
        [
            (FeeType.PERCENT, 50, "50% refund"),
            (FeeType.NIGHTS, 1, "1 night forfeited"),
            (FeeType.NIGHTS, 2, "2 nights forfeited"),
            (FeeType.FULL, 0, "No refund"),
        ],
    )
    def test_describe_rule(self, fee_type, amount, expected) -> None:
        rule = CancellationRule(id="r", days_before_arrival=0, fee_type=fee_type, fee_amount=amount)

        assert describe_rule(rule) == expected


class TestCancellationPolicyService:
    def test_apply_preset_stores_rules(self, policy_service) -> None:
        campground = policy_service.apply_policy("cg-test", preset="strict")

        assert [r.id for r in campground.cancellation_rules] == ["strict-1", "strict-2", "strict-3"]
        assert [r.id for r in policy_service.get_rules("cg-test")] == [
            "strict-1",
            "strict-2",
            "strict-3",
        ]

    def test_apply_custom_rules_sorts_them(self, policy_service) -> None:
        rules = [
            CancellationRule(id="late", days_before_arrival=0, fee_type=FeeType.FULL),
            CancellationRule(id="early", days_before_arrival=14, fee_type=FeeType.FLAT),
        ]

        campground = policy_service.apply_policy("cg-test", rules=rules)

        assert [r.id for r in campground.cancellation_rules] == ["early", "late"]

    def test_preset_and_rules_together_rejected(self, policy_service) -> None:
        with pytest.raises(CampreservError) as exc_info:
            policy_service.apply_policy("cg-test", preset="strict", rules=[])

        assert exc_info.value.code == ErrorCode.INVALID_CANCELLATION_POLICY

    def test_neither_preset_nor_rules_rejected(self, policy_service) -> None:
        with pytest.raises(CampreservError):
            policy_service.apply_policy("cg-test")

    def test_unknown_campground(self, policy_service) -> None:
        with pytest.raises(CampreservError) as exc_info:
            policy_service.apply_policy("cg-missing", preset="flexible")

        assert exc_info.value.code == ErrorCode.CAMPGROUND_NOT_FOUND
