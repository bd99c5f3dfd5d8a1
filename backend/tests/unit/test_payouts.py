"""Unit tests for payout upserts and reconciliation.

A $97.00 card payment is settled on a pending reservation, then payouts of
various amounts are reconciled against it.
"""

import pytest

from campreserv.models import CampreservError, ErrorCode, PaymentMethod, PayoutStatus, ReconStatus

CG = "cg-test"
ARRIVAL_EPOCH = 1910000000


def payout_obj(payout_id: str = "po_1", amount: int = 9700, **overrides) -> dict:
    obj = {
        "id": payout_id,
        "amount": amount,
        "currency": "USD",
        "status": "paid",
        "arrival_date": ARRIVAL_EPOCH,
    }
    obj.update(overrides)
    return obj


CHARGE_LINE = {
    "id": "txn_1",
    "type": "charge",
    "amount": 9700,
    "currency": "usd",
    "source": "ch_1",
    "payment_intent": None,
}


@pytest.fixture
def charged_reservation(payment_service, pending_reservation):
    payment_service.record_payment(pending_reservation.id, PaymentMethod.CARD, 9700)
    payment_service.confirm_card_payment("pi_test_1", charge_id="ch_1")
    return pending_reservation


class TestUpsertPayout:
    def test_creates_payout_with_lines(self, payout_service, charged_reservation) -> None:
        payout = payout_service.upsert_payout_from_stripe(payout_obj(), CG, [CHARGE_LINE])

        assert payout.status == PayoutStatus.PAID
        assert payout.currency == "usd"
        assert payout.paid_at == payout.arrival_date

        detail = payout_service.get_payout(CG, "po_1")
        assert len(detail.lines) == 1
        line = detail.lines[0]
        assert line.reservation_id == charged_reservation.id
        assert line.charge_id == "ch_1"
        assert line.balance_transaction_id == "txn_1"

    def test_line_without_matching_payment(self, payout_service) -> None:
        payout_service.upsert_payout_from_stripe(
            payout_obj(), CG, [dict(CHARGE_LINE, source="ch_unknown")]
        )

        assert payout_service.get_payout(CG, "po_1").lines[0].reservation_id is None

    def test_refresh_keeps_created_at(self, payout_service) -> None:
        first = payout_service.upsert_payout_from_stripe(payout_obj(status="in_transit"), CG)
        second = payout_service.upsert_payout_from_stripe(payout_obj(), CG)

        assert second.created_at == first.created_at
        assert second.status == PayoutStatus.PAID
        assert first.paid_at is None

    def test_unknown_status_is_pending(self, payout_service) -> None:
        payout = payout_service.upsert_payout_from_stripe(payout_obj(status="mystery"), CG)

        assert payout.status == PayoutStatus.PENDING


class TestListAndGet:
    def test_list_filters_by_status(self, payout_service) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj("po_1"), CG)
        payout_service.upsert_payout_from_stripe(payout_obj("po_2", status="failed"), CG)

        assert {p.id for p in payout_service.list_payouts(CG)} == {"po_1", "po_2"}
        assert [p.id for p in payout_service.list_payouts(CG, PayoutStatus.FAILED)] == ["po_2"]

    def test_payout_of_other_campground(self, payout_service) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(), "cg-other")

        with pytest.raises(CampreservError) as exc_info:
            payout_service.get_payout(CG, "po_1")

        assert exc_info.value.code == ErrorCode.PAYOUT_NOT_FOUND


class TestReconciliation:
    def test_matched(self, payout_service, charged_reservation) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(), CG, [CHARGE_LINE])

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.status == ReconStatus.MATCHED
        assert summary.payout_net_cents == 9700
        assert summary.line_sum_cents == 9700
        assert summary.ledger_net_cents == 9700

    def test_drift_above_threshold(self, payout_service, charged_reservation) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(amount=10000), CG, [CHARGE_LINE])

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.status == ReconStatus.DRIFT
        assert summary.drift_vs_lines_cents == 300
        assert summary.drift_vs_ledger_cents == 300

    def test_small_drift_is_pending(self, payout_service, charged_reservation) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(amount=9750), CG, [CHARGE_LINE])

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.status == ReconStatus.PENDING

    def test_fee_reduces_payout_net(self, payout_service, charged_reservation) -> None:
        payout_service.upsert_payout_from_stripe(
            payout_obj(amount=10000, fee=300), CG, [CHARGE_LINE]
        )

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.payout_net_cents == 9700
        assert summary.status == ReconStatus.MATCHED

    def test_threshold_from_environment(
        self, payout_service, charged_reservation, monkeypatch
    ) -> None:
        monkeypatch.setenv("PAYOUT_DRIFT_THRESHOLD_CENTS", "500")
        payout_service.upsert_payout_from_stripe(payout_obj(amount=10000), CG, [CHARGE_LINE])

        assert payout_service.compute_recon_summary(CG, "po_1").status == ReconStatus.PENDING

    def test_explicit_threshold(self, payout_service, charged_reservation) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(amount=9750), CG, [CHARGE_LINE])

        summary = payout_service.compute_recon_summary(CG, "po_1", threshold_cents=10)

        assert summary.status == ReconStatus.DRIFT

    def test_refund_after_payout_shows_as_ledger_drift(
        self, payout_service, payment_service, charged_reservation
    ) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(), CG, [CHARGE_LINE])
        payment = payment_service.find_by_charge("ch_1")
        payment_service.process_refund(payment.payment_id, 2000)

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.ledger_net_cents == 7700
        assert summary.drift_vs_lines_cents == 0
        assert summary.drift_vs_ledger_cents == 2000
        assert summary.status == ReconStatus.DRIFT


# === Fees and chargebacks ===


class TestFeeLedger:
    FEE_CHARGE = dict(CHARGE_LINE, fee=282)

    def test_fee_bearing_charge_matches(self, payout_service, charged_reservation) -> None:
        payout_service.upsert_payout_from_stripe(payout_obj(amount=9418), CG, [self.FEE_CHARGE])

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.status == ReconStatus.MATCHED
        assert summary.line_sum_cents == 9418
        assert summary.ledger_net_cents == 9418
        fee_line = payout_service.get_payout(CG, "po_1").lines[1]
        assert (fee_line.id, fee_line.type) == ("txn_1-fee", "stripe_fee")
        assert fee_line.amount_cents == -282
        assert fee_line.reservation_id == charged_reservation.id

    def test_redelivery_posts_fee_once(
        self, payout_service, ledger_service, charged_reservation
    ) -> None:
        for _ in range(2):
            payout_service.upsert_payout_from_stripe(
                payout_obj(amount=9418), CG, [self.FEE_CHARGE]
            )

        assert ledger_service.net_for_reservations([charged_reservation.id]) == 9418
        assert len(payout_service.get_payout(CG, "po_1").lines) == 2

    def test_application_fee_is_debited(self, payout_service, charged_reservation) -> None:
        application_fee = {
            "id": "txn_2",
            "type": "application_fee",
            "amount": -150,
            "currency": "usd",
            "source": "fee_1",
            "payment_intent": "pi_test_1",
        }
        payout_service.upsert_payout_from_stripe(
            payout_obj(amount=9268), CG, [self.FEE_CHARGE, application_fee]
        )

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.status == ReconStatus.MATCHED
        assert summary.ledger_net_cents == 9268

    def test_chargeback_and_dispute_fee_match(
        self, payout_service, dispute_service, charged_reservation
    ) -> None:
        dispute_service.upsert_dispute(
            {"id": "dp_1", "amount": 5000, "payment_intent": "pi_test_1", "status": "lost"}, CG
        )
        dispute_line = {
            "id": "txn_3",
            "type": "dispute",
            "amount": -5000,
            "fee": 1500,
            "currency": "usd",
            "source": "dp_1",
            "payment_intent": "pi_test_1",
        }
        payout_service.upsert_payout_from_stripe(
            payout_obj(amount=2918), CG, [self.FEE_CHARGE, dispute_line]
        )

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.line_sum_cents == 2918
        assert summary.ledger_net_cents == 2918
        assert summary.status == ReconStatus.MATCHED

    def test_fee_without_reservation_only_adds_lines(self, payout_service) -> None:
        payout_service.upsert_payout_from_stripe(
            payout_obj(amount=9418), CG, [dict(self.FEE_CHARGE, source="ch_unknown")]
        )

        summary = payout_service.compute_recon_summary(CG, "po_1")

        assert summary.line_sum_cents == 9418
        assert summary.ledger_net_cents == 0
        assert summary.status == ReconStatus.DRIFT
