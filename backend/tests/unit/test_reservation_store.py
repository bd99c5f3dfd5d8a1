"""Unit tests for ReservationStore payment bookkeeping.

Covers paid/balance recomputation and the conditional write that keeps two
concurrent payment updates from overwriting each other.
"""

import pytest

from campreserv.models import CampreservError, ErrorCode, PaymentStatus
from campreserv.services.reservation_store import ReservationStore


class TestApplyPaymentDelta:
    def test_partial_then_paid(self, reservation_store, pending_reservation) -> None:
        partial = reservation_store.apply_payment_delta(pending_reservation.id, 5000)
        paid = reservation_store.apply_payment_delta(pending_reservation.id, 10000)

        assert partial.payment_status == PaymentStatus.PARTIAL
        assert paid.paid_amount == 15000
        assert paid.balance_amount == 0
        stored = reservation_store.require(pending_reservation.id)
        assert stored.payment_status == PaymentStatus.PAID

    def test_paid_never_negative(self, reservation_store, pending_reservation) -> None:
        updated = reservation_store.apply_payment_delta(pending_reservation.id, -500)

        assert updated.paid_amount == 0
        assert updated.balance_amount == 15000

    def test_concurrent_update_is_not_lost(
        self, seeded, reservation_store, pending_reservation, monkeypatch
    ) -> None:
        other_writer = ReservationStore(seeded)
        read = reservation_store.require
        raced = []

        def read_then_race(reservation_id):
            snapshot = read(reservation_id)
            if not raced:
                raced.append(reservation_id)
                other_writer.apply_payment_delta(reservation_id, 2000)
            return snapshot

        monkeypatch.setattr(reservation_store, "require", read_then_race)

        updated = reservation_store.apply_payment_delta(pending_reservation.id, 5000)

        assert updated.paid_amount == 7000
        assert read(pending_reservation.id).paid_amount == 7000
        assert read(pending_reservation.id).balance_amount == 8000

    def test_gives_up_after_repeated_conflicts(
        self, reservation_store, pending_reservation, monkeypatch
    ) -> None:
        monkeypatch.setattr(reservation_store.db, "update_item", lambda *args, **kwargs: None)

        with pytest.raises(CampreservError) as exc_info:
            reservation_store.apply_payment_delta(pending_reservation.id, 5000)

        assert exc_info.value.code == ErrorCode.CONCURRENT_UPDATE
        monkeypatch.undo()
        assert reservation_store.require(pending_reservation.id).paid_amount == 0

    def test_unknown_reservation(self, reservation_store) -> None:
        with pytest.raises(CampreservError) as exc_info:
            reservation_store.apply_payment_delta("RES-NOPE", 100)

        assert exc_info.value.code == ErrorCode.RESERVATION_NOT_FOUND
