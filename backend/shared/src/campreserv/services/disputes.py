"""Card disputes (chargebacks) and their effect on reservation balances."""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from campreserv.models import Dispute, DisputeStatus, LedgerDirection
from campreserv.utils.items import as_datetime, compact, utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .ledger import LedgerService
    from .payment_service import PaymentService
    from .reservation_store import ReservationStore

logger = get_logger(__name__)


def _dispute_status(value: str | None) -> DisputeStatus:
    try:
        return DisputeStatus(value or DisputeStatus.NEEDS_RESPONSE.value)
    except ValueError:
        logger.warning("Unknown dispute status %s", value)
        return DisputeStatus.NEEDS_RESPONSE


def _evidence_due_by(dispute_obj: dict[str, Any]) -> dt.datetime | None:
    due_by = (dispute_obj.get("evidence_details") or {}).get("due_by")
    return dt.datetime.fromtimestamp(int(due_by), tz=dt.UTC) if due_by else None


class DisputeService:
    """Tracks Stripe disputes per campground."""

    TABLE = "disputes"

    def __init__(
        self,
        db: "DynamoDBService",
        reservations: "ReservationStore",
        payments: "PaymentService",
        ledger: "LedgerService",
    ) -> None:
        self.db = db
        self.reservations = reservations
        self.payments = payments
        self.ledger = ledger

    def list_disputes(
        self, campground_id: str, status: DisputeStatus | None = None
    ) -> list[Dispute]:
        items = self.db.query_by_campground(self.TABLE, campground_id)
        disputes = [self._item_to_dispute(item) for item in items]
        if status is not None:
            disputes = [d for d in disputes if d.status == status]
        return sorted(disputes, key=lambda d: d.created_at, reverse=True)

    def get_by_stripe_id(self, stripe_dispute_id: str) -> Dispute | None:
        items = self.db.query_by_gsi(
            self.TABLE, "stripe_dispute_id-index", "stripe_dispute_id", stripe_dispute_id
        )
        return self._item_to_dispute(items[0]) if items else None

    def upsert_dispute(self, dispute_obj: dict[str, Any], campground_id: str) -> Dispute:
        """Create or refresh a dispute from a Stripe dispute object.

        The first time a dispute is seen, the disputed amount is taken off the
        reservation's paid amount. Later deliveries only refresh status,
        reason, evidence due date and amount.
        """
        stripe_id = dispute_obj["id"]
        amount = int(dispute_obj.get("amount") or 0)
        now = utc_now()
        existing = self.get_by_stripe_id(stripe_id)

        if existing:
            updated = existing.model_copy(
                update={
                    "amount_cents": amount,
                    "status": _dispute_status(dispute_obj.get("status")),
                    "reason": dispute_obj.get("reason"),
                    "evidence_due_by": _evidence_due_by(dispute_obj),
                    "updated_at": now,
                }
            )
            self.db.put_item(self.TABLE, self._dispute_to_item(updated))
            logger.info("Dispute %s updated: %s", stripe_id, updated.status.value)
            return updated

        charge_id = dispute_obj.get("charge")
        payment_intent_id = dispute_obj.get("payment_intent")
        reservation_id = (dispute_obj.get("metadata") or {}).get("reservation_id")
        if not reservation_id and (charge_id or payment_intent_id):
            payment = self.payments.find_by_charge(charge_id, payment_intent_id)
            if payment:
                reservation_id = payment.reservation_id

        dispute = Dispute(
            id=f"DSP-{uuid.uuid4().hex[:12].upper()}",
            stripe_dispute_id=stripe_id,
            stripe_charge_id=charge_id,
            stripe_payment_intent_id=payment_intent_id,
            campground_id=campground_id,
            reservation_id=reservation_id,
            amount_cents=amount,
            currency=(dispute_obj.get("currency") or "usd").lower(),
            reason=dispute_obj.get("reason"),
            status=_dispute_status(dispute_obj.get("status")),
            evidence_due_by=_evidence_due_by(dispute_obj),
            notes=(dispute_obj.get("evidence") or {}).get("product_description"),
            created_at=now,
            updated_at=now,
        )
        self.db.put_item(self.TABLE, self._dispute_to_item(dispute))
        logger.info("Dispute %s created for reservation %s", stripe_id, reservation_id)

        if reservation_id and amount > 0:
            self._adjust_reservation(dispute)
        return dispute

    def _adjust_reservation(self, dispute: Dispute) -> None:
        """Take the disputed amount off the reservation, once per dispute."""
        if self.reservations.get(dispute.reservation_id) is None:
            logger.warning(
                "Reservation %s not found for dispute %s",
                dispute.reservation_id,
                dispute.stripe_dispute_id,
            )
            return

        posted = self.ledger.post_entry(
            dispute.campground_id,
            dispute.reservation_id,
            LedgerDirection.DEBIT,
            dispute.amount_cents,
            f"Chargeback: dispute {dispute.stripe_dispute_id}",
            "dispute",
            dedupe_key=f"dispute:{dispute.stripe_dispute_id}:balance_adjustment",
        )
        if not posted:
            return

        updated = self.reservations.apply_payment_delta(
            dispute.reservation_id, -dispute.amount_cents
        )
        logger.warning(
            "Chargeback on %s: %.2f disputed (%s), paid now %d, balance %d",
            dispute.reservation_id,
            dispute.amount_cents / 100,
            dispute.reason or "unknown",
            updated.paid_amount,
            updated.balance_amount,
        )

    def _dispute_to_item(self, dispute: Dispute) -> dict[str, Any]:
        return compact(
            {
                "dispute_id": dispute.id,
                "stripe_dispute_id": dispute.stripe_dispute_id,
                "stripe_charge_id": dispute.stripe_charge_id,
                "stripe_payment_intent_id": dispute.stripe_payment_intent_id,
                "campground_id": dispute.campground_id,
                "reservation_id": dispute.reservation_id,
                "payout_id": dispute.payout_id,
                "amount_cents": dispute.amount_cents,
                "currency": dispute.currency,
                "reason": dispute.reason,
                "status": dispute.status.value,
                "evidence_due_by": (
                    dispute.evidence_due_by.isoformat() if dispute.evidence_due_by else None
                ),
                "notes": dispute.notes,
                "created_at": dispute.created_at.isoformat(),
                "updated_at": dispute.updated_at.isoformat(),
            }
        )

    def _item_to_dispute(self, item: dict[str, Any]) -> Dispute:
        return Dispute(
            id=item["dispute_id"],
            stripe_dispute_id=item["stripe_dispute_id"],
            stripe_charge_id=item.get("stripe_charge_id"),
            stripe_payment_intent_id=item.get("stripe_payment_intent_id"),
            campground_id=item["campground_id"],
            reservation_id=item.get("reservation_id"),
            payout_id=item.get("payout_id"),
            amount_cents=int(item.get("amount_cents", 0)),
            currency=item.get("currency", "usd"),
            reason=item.get("reason"),
            status=DisputeStatus(item.get("status", DisputeStatus.NEEDS_RESPONSE.value)),
            evidence_due_by=as_datetime(item.get("evidence_due_by")),
            notes=item.get("notes"),
            created_at=as_datetime(item["created_at"]),
            updated_at=as_datetime(item["updated_at"]),
        )
