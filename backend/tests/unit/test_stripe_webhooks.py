"""Unit tests for Stripe webhook handling.

Tests verify webhook signature validation and event processing
without making actual Stripe API calls. All interactions are mocked.

Test categories:
- Webhook signature validation
- payment_intent.succeeded handling
- Payout and dispute events
- Event idempotency
"""

from unittest.mock import MagicMock, patch

import pytest
import stripe

from campreserv.models import PaymentMethod, ReservationStatus
from campreserv.services.stripe_service import StripeService, StripeServiceError


# === Test Configuration ===

TEST_WEBHOOK_SECRET = "whsec_test_secret123"
PAYLOAD_HASH = "0" * 64


# === Test Fixtures ===


@pytest.fixture
def mock_ssm_service():
    """Mock SSM service for credential retrieval."""
    with patch("campreserv.services.stripe_service.get_ssm_service") as mock_get_ssm:
        mock_ssm = MagicMock()
        mock_ssm.get_parameter.side_effect = lambda param: {
            "/campreserv/dev/stripe/secret_key": "sk_test_abc123",
            "/campreserv/dev/stripe/webhook_secret": TEST_WEBHOOK_SECRET,
        }.get(param, None)
        mock_get_ssm.return_value = mock_ssm
        yield mock_ssm


@pytest.fixture
def stripe_service(mock_ssm_service) -> StripeService:
    """Create StripeService instance with mocked SSM."""
    from campreserv.services.stripe_service import get_stripe_service

    get_stripe_service.cache_clear()
    return StripeService(environment="dev")


def make_event(event_id: str, event_type: str, obj: dict) -> dict:
    return {"id": event_id, "type": event_type, "data": {"object": obj}}


def succeeded_event(event_id: str = "evt_pi_1", **intent) -> dict:
    obj = {"id": "pi_test_1", "latest_charge": "ch_1", "metadata": {"campground_id": "cg-test"}}
    obj.update(intent)
    return make_event(event_id, "payment_intent.succeeded", obj)


def payout_event(event_id: str = "evt_po_1", metadata: dict | None = None) -> dict:
    return make_event(
        event_id,
        "payout.paid",
        {
            "id": "po_1",
            "amount": 9700,
            "currency": "usd",
            "status": "paid",
            "arrival_date": 1910000000,
            "metadata": {"campground_id": "cg-test"} if metadata is None else metadata,
        },
    )


# === Webhook Signature Validation Tests ===


class TestWebhookSignatureValidation:
    """Test webhook signature verification."""

    def test_valid_signature_returns_parsed_event(self, stripe_service: StripeService):
        """Valid signature returns the parsed webhook event."""
        payload = b'{"id": "evt_test_123", "type": "payout.paid"}'
        signature = "t=1234567890,v1=valid_signature_abc123"

        with patch("stripe.Webhook.construct_event") as mock_construct:
            mock_construct.return_value = {"id": "evt_test_123", "type": "payout.paid"}

            result = stripe_service.verify_webhook_signature(payload=payload, signature=signature)

        assert result["id"] == "evt_test_123"
        mock_construct.assert_called_once_with(payload, signature, TEST_WEBHOOK_SECRET)

    @pytest.mark.parametrize(
        "message",
        ["Invalid signature", "Timestamp outside tolerance", "No signature found"],
    )
    def test_rejected_signature_raises_error(self, stripe_service: StripeService, message):
        """Any verification failure is reported the same way."""
        with patch(
            "stripe.Webhook.construct_event",
            side_effect=stripe.SignatureVerificationError(message, "sig_header"),
        ):
            with pytest.raises(StripeServiceError) as exc_info:
                stripe_service.verify_webhook_signature(payload=b"{}", signature="t=1,v1=x")

        assert "Invalid webhook signature" in str(exc_info.value)

    def test_malformed_payload_raises_error(self, stripe_service: StripeService):
        with patch("stripe.Webhook.construct_event", side_effect=ValueError("bad json")):
            with pytest.raises(StripeServiceError):
                stripe_service.verify_webhook_signature(payload=b"not json", signature="t=1,v1=x")

    def test_payload_hash_is_stable(self):
        payload = b'{"id": "evt_1"}'

        assert StripeService.compute_payload_hash(payload) == StripeService.compute_payload_hash(
            payload
        )
        assert StripeService.compute_payload_hash(payload) != StripeService.compute_payload_hash(
            b'{"id": "evt_2"}'
        )


# === payment_intent.succeeded Handling ===


class TestPaymentIntentSucceeded:
    def test_confirms_pending_card_payment(
        self, webhook_handler, payment_service, reservation_store, pending_reservation
    ):
        payment_service.record_payment(pending_reservation.id, PaymentMethod.CARD, 5000)

        result, error = webhook_handler.handle_event(succeeded_event(), PAYLOAD_HASH)

        assert (result, error) == ("success", None)
        reservation = reservation_store.require(pending_reservation.id)
        assert reservation.paid_amount == 5000
        assert reservation.status == ReservationStatus.CONFIRMED
        assert payment_service.find_by_charge("ch_1") is not None

    def test_unknown_intent_is_skipped(self, webhook_handler):
        result, error = webhook_handler.handle_event(
            succeeded_event(id="pi_unknown"), PAYLOAD_HASH
        )

        assert result == "skipped"
        assert "pi_unknown" in error


# === Payout and Dispute Events ===


class TestPayoutEvents:
    def test_payout_is_upserted_with_lines(self, webhook_handler, payout_service, fake_stripe):
        fake_stripe.list_payout_balance_transactions.return_value = [
            {"id": "txn_1", "type": "charge", "amount": 9700, "currency": "usd",
             "source": "ch_x", "payment_intent": None}
        ]

        result, _ = webhook_handler.handle_event(payout_event(), PAYLOAD_HASH)

        assert result == "success"
        fake_stripe.list_payout_balance_transactions.assert_called_once_with("po_1")
        detail = payout_service.get_payout("cg-test", "po_1")
        assert [line.id for line in detail.lines] == ["txn_1"]

    def test_payout_without_campground_is_an_error(self, webhook_handler, seeded):
        result, error = webhook_handler.handle_event(payout_event(metadata={}), PAYLOAD_HASH)

        assert result == "error"
        assert "campground_id" in error
        logged = seeded.get_item("stripe-webhook-events", {"event_id": "evt_po_1"})
        assert logged["processing_result"] == "error"

    def test_stripe_failure_is_an_error(self, webhook_handler, fake_stripe):
        fake_stripe.list_payout_balance_transactions.side_effect = StripeServiceError("timeout")

        result, error = webhook_handler.handle_event(payout_event(), PAYLOAD_HASH)

        assert result == "error"
        assert "timeout" in error


class TestDisputeEvents:
    def test_campground_resolved_from_payment(
        self, webhook_handler, payment_service, dispute_service, pending_reservation
    ):
        payment_service.record_payment(pending_reservation.id, PaymentMethod.CARD, 15000)
        payment_service.confirm_card_payment("pi_test_1", charge_id="ch_d")
        event = make_event(
            "evt_dp_1",
            "charge.dispute.created",
            {"id": "dp_1", "amount": 5000, "charge": "ch_d", "status": "needs_response"},
        )

        result, _ = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "success"
        dispute = dispute_service.get_by_stripe_id("dp_1")
        assert dispute.campground_id == "cg-test"
        assert dispute.reservation_id == pending_reservation.id

    def test_unresolvable_dispute_is_an_error(self, webhook_handler):
        event = make_event("evt_dp_2", "charge.dispute.created", {"id": "dp_2", "charge": "ch_none"})

        result, _ = webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert result == "error"


# === Event Idempotency ===


class TestWebhookEventIdempotency:
    def test_creates_webhook_event_record(self, webhook_handler, seeded):
        webhook_handler.handle_event(make_event("evt_x", "customer.created", {"id": "cus_1"}), PAYLOAD_HASH)

        logged = seeded.get_item("stripe-webhook-events", {"event_id": "evt_x"})
        assert logged["event_type"] == "customer.created"
        assert logged["payload_hash"] == PAYLOAD_HASH
        assert logged["processing_result"] == "skipped"
        assert logged["object_id"] == "cus_1"

    def test_replayed_event_is_duplicate(
        self, webhook_handler, payment_service, reservation_store, pending_reservation
    ):
        payment_service.record_payment(pending_reservation.id, PaymentMethod.CARD, 5000)
        webhook_handler.handle_event(succeeded_event(), PAYLOAD_HASH)

        result, _ = webhook_handler.handle_event(succeeded_event(), PAYLOAD_HASH)

        assert result == "duplicate"
        assert reservation_store.require(pending_reservation.id).paid_amount == 5000

    def test_skipped_event_is_not_reprocessed(self, webhook_handler):
        event = make_event("evt_y", "customer.created", {"id": "cus_1"})
        webhook_handler.handle_event(event, PAYLOAD_HASH)

        assert webhook_handler.handle_event(event, PAYLOAD_HASH) == ("duplicate", None)

    def test_errored_event_can_be_retried(self, webhook_handler, payout_service):
        webhook_handler.handle_event(payout_event(metadata={}), PAYLOAD_HASH)

        result, _ = webhook_handler.handle_event(payout_event(), PAYLOAD_HASH)

        assert result == "success"
        assert payout_service.get_payout("cg-test", "po_1").amount_cents == 9700
