"""Webhook handler for processing Stripe events.

Business logic for webhook events, separate from HTTP routing so it can be
unit tested without a request. Every event is logged to
stripe-webhook-events; a successfully handled event ID is never handled twice.
"""

from typing import TYPE_CHECKING, Any, Callable

from botocore.exceptions import ClientError

from campreserv.models import CampreservError, StripeWebhookEvent
from campreserv.utils.items import utc_now
from campreserv.utils.logging import get_logger, log_webhook_event

from .stripe_service import StripeServiceError, get_stripe_service

if TYPE_CHECKING:
    from .disputes import DisputeService
    from .dynamodb import DynamoDBService
    from .payment_service import PaymentService
    from .payouts import PayoutService
    from .stripe_service import StripeService

logger = get_logger(__name__)

PAYOUT_EVENTS = frozenset({"payout.created", "payout.updated", "payout.paid", "payout.failed"})
DISPUTE_EVENTS = frozenset(
    {"charge.dispute.created", "charge.dispute.updated", "charge.dispute.closed"}
)
PAYMENT_SUCCEEDED = "payment_intent.succeeded"

# results that end processing of an event ID; errors may be retried by Stripe
FINAL_RESULTS = frozenset({"success", "skipped"})


class WebhookHandler:
    """Handler for processing Stripe webhook events."""

    WEBHOOK_EVENTS_TABLE = "stripe-webhook-events"

    def __init__(
        self,
        db: "DynamoDBService",
        payments: "PaymentService",
        payouts: "PayoutService",
        disputes: "DisputeService",
        stripe_provider: Callable[[], "StripeService"] = get_stripe_service,
    ) -> None:
        self.db = db
        self.payments = payments
        self.payouts = payouts
        self.disputes = disputes
        self._stripe_provider = stripe_provider

    def is_event_already_processed(self, event_id: str) -> bool:
        existing = self.db.get_item(self.WEBHOOK_EVENTS_TABLE, {"event_id": event_id})
        return existing is not None and existing.get("processing_result") in FINAL_RESULTS

    def log_event(self, event: StripeWebhookEvent) -> None:
        item: dict[str, Any] = {
            "event_id": event.event_id,
            "event_type": event.event_type,
            "processed_at": event.processed_at.isoformat(),
            "payload_hash": event.payload_hash,
            "processing_result": event.processing_result,
        }
        if event.campground_id:
            item["campground_id"] = event.campground_id
        if event.object_id:
            item["object_id"] = event.object_id
        if event.error_message:
            item["error_message"] = event.error_message
        self.db.put_item(self.WEBHOOK_EVENTS_TABLE, item)

    def handle_event(self, event: dict[str, Any], payload_hash: str) -> tuple[str, str | None]:
        """Dispatch a verified event.

        Returns:
            Tuple of (processing_result, error_message); result is one of
            success, duplicate, skipped or error
        """
        event_id = event.get("id", "")
        event_type = event.get("type", "")
        obj = (event.get("data") or {}).get("object") or {}
        object_id = obj.get("id")
        campground_id = (obj.get("metadata") or {}).get("campground_id")

        if self.is_event_already_processed(event_id):
            log_webhook_event(logger, event_type, event_id, object_id=object_id, result="duplicate")
            return "duplicate", None

        error: str | None = None
        try:
            if event_type == PAYMENT_SUCCEEDED:
                result, error = self._payment_succeeded(obj)
            elif event_type in PAYOUT_EVENTS:
                result, error = self._payout_event(obj, campground_id)
            elif event_type in DISPUTE_EVENTS:
                if not campground_id:
                    campground_id = self._campground_for_dispute(obj)
                result, error = self._dispute_event(obj, campground_id)
            else:
                result, error = "skipped", f"Unhandled event type {event_type}"
        except (CampreservError, StripeServiceError, ClientError) as e:
            result, error = "error", str(e)

        log_webhook_event(
            logger,
            event_type,
            event_id,
            campground_id=campground_id,
            object_id=object_id,
            result=result,
            error=error,
        )
        self.log_event(
            StripeWebhookEvent(
                event_id=event_id,
                event_type=event_type,
                processed_at=utc_now(),
                payload_hash=payload_hash,
                campground_id=campground_id,
                object_id=object_id,
                processing_result=result,
                error_message=error,
            )
        )
        return result, error

    def _payment_succeeded(self, intent: dict[str, Any]) -> tuple[str, str | None]:
        metadata = intent.get("metadata") or {}
        payment = self.payments.confirm_card_payment(
            intent["id"],
            charge_id=intent.get("latest_charge"),
            payment_id=metadata.get("payment_id"),
        )
        if payment is None:
            return "skipped", f"No payment for PaymentIntent {intent['id']}"
        return "success", None

    def _payout_event(
        self, payout_obj: dict[str, Any], campground_id: str | None
    ) -> tuple[str, str | None]:
        if not campground_id:
            return "error", "Missing campground_id in payout metadata"
        lines = self._stripe_provider().list_payout_balance_transactions(payout_obj["id"])
        self.payouts.upsert_payout_from_stripe(payout_obj, campground_id, lines)
        return "success", None

    def _dispute_event(
        self, dispute_obj: dict[str, Any], campground_id: str | None
    ) -> tuple[str, str | None]:
        if not campground_id:
            return "error", "Could not resolve campground for dispute"
        self.disputes.upsert_dispute(dispute_obj, campground_id)
        return "success", None

    def _campground_for_dispute(self, dispute_obj: dict[str, Any]) -> str | None:
        payment = self.payments.find_by_charge(
            dispute_obj.get("charge"), dispute_obj.get("payment_intent")
        )
        return payment.campground_id if payment else None
