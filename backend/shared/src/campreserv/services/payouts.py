"""Stripe payouts and their reconciliation against the ledger.

A payout's net (amount minus fee) should equal both the sum of the balance
transactions it settled and the ledger net of the reservations behind them.
Processing fees become their own negative payout lines and ledger debits, so
a fee-bearing charge still nets out. Chargeback debits come from disputes.
Any difference is drift; drift above the configured threshold is alerted.
"""

import datetime as dt
import os
from typing import TYPE_CHECKING, Any

from campreserv.models import (
    CampreservError,
    ErrorCode,
    LedgerDirection,
    Payout,
    PayoutDetail,
    PayoutLine,
    PayoutReconSummary,
    PayoutStatus,
    ReconStatus,
)
from campreserv.utils.items import as_datetime, as_int, compact, utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .ledger import LedgerService
    from .payment_service import PaymentService

logger = get_logger(__name__)

DEFAULT_DRIFT_THRESHOLD_CENTS = 100
WITHHELD_FEE_TYPES = frozenset({"application_fee", "stripe_fee"})


def drift_threshold_cents() -> int:
    return int(os.environ.get("PAYOUT_DRIFT_THRESHOLD_CENTS", DEFAULT_DRIFT_THRESHOLD_CENTS))


def _from_epoch(value: Any) -> dt.datetime | None:
    if not value:
        return None
    return dt.datetime.fromtimestamp(int(value), tz=dt.UTC)


class PayoutService:
    """Payout records, payout lines and reconciliation."""

    PAYOUTS_TABLE = "payouts"
    LINES_TABLE = "payout-lines"

    def __init__(
        self,
        db: "DynamoDBService",
        ledger: "LedgerService",
        payments: "PaymentService",
    ) -> None:
        self.db = db
        self.ledger = ledger
        self.payments = payments

    def list_payouts(
        self, campground_id: str, status: PayoutStatus | None = None
    ) -> list[Payout]:
        items = self.db.query_by_campground(self.PAYOUTS_TABLE, campground_id)
        payouts = [self._item_to_payout(item) for item in items]
        if status is not None:
            payouts = [p for p in payouts if p.status == status]
        return sorted(payouts, key=lambda p: p.created_at, reverse=True)

    def get_payout(self, campground_id: str, payout_id: str) -> PayoutDetail:
        """Get a payout with its lines.

        Raises:
            CampreservError: PAYOUT_NOT_FOUND if missing or owned by another campground
        """
        item = self.db.get_item(self.PAYOUTS_TABLE, {"payout_id": payout_id})
        if not item or item.get("campground_id") != campground_id:
            raise CampreservError(ErrorCode.PAYOUT_NOT_FOUND, details={"payout_id": payout_id})
        payout = self._item_to_payout(item)
        return PayoutDetail(**payout.model_dump(), lines=self.get_lines(payout_id))

    def get_lines(self, payout_id: str) -> list[PayoutLine]:
        items = self.db.query_by_gsi(self.LINES_TABLE, "payout_id-index", "payout_id", payout_id)
        return sorted((self._item_to_line(item) for item in items), key=lambda line: line.id)

    def upsert_payout_from_stripe(
        self,
        payout_obj: dict[str, Any],
        campground_id: str,
        lines: list[dict[str, Any]] | None = None,
    ) -> Payout:
        """Create or refresh a payout from a Stripe payout object.

        Args:
            payout_obj: Stripe payout (id, amount, fee?, currency, status, arrival_date)
            campground_id: Owning campground
            lines: Balance transactions from StripeService.list_payout_balance_transactions
        """
        payout_id = payout_obj["id"]
        existing = self.db.get_item(self.PAYOUTS_TABLE, {"payout_id": payout_id})
        now = utc_now()

        try:
            status = PayoutStatus(payout_obj.get("status") or PayoutStatus.PENDING.value)
        except ValueError:
            logger.warning("Unknown payout status %s on %s", payout_obj.get("status"), payout_id)
            status = PayoutStatus.PENDING
        arrival = _from_epoch(payout_obj.get("arrival_date"))

        payout = Payout(
            id=payout_id,
            campground_id=campground_id,
            amount_cents=int(payout_obj.get("amount") or 0),
            fee_cents=int(payout_obj.get("fee") or 0),
            currency=(payout_obj.get("currency") or "usd").lower(),
            status=status,
            arrival_date=arrival,
            paid_at=arrival if status == PayoutStatus.PAID else None,
            created_at=as_datetime(existing["created_at"]) if existing else now,
            updated_at=now,
        )
        self.db.put_item(self.PAYOUTS_TABLE, self._payout_to_item(payout))

        for tx in lines or []:
            self._put_line(payout_id, campground_id, tx)

        logger.info(
            "Payout %s upserted for %s: %s, %d cents, %d lines",
            payout_id,
            campground_id,
            status.value,
            payout.amount_cents,
            len(lines or []),
        )
        return payout

    def _put_line(self, payout_id: str, campground_id: str, tx: dict[str, Any]) -> None:
        charge_id = tx.get("source")
        tx_type = tx.get("type", "charge")
        amount = int(tx.get("amount") or 0)
        payment = self.payments.find_by_charge(charge_id, tx.get("payment_intent"))
        reservation_id = payment.reservation_id if payment else None
        line = PayoutLine(
            id=tx["id"],
            type=tx_type,
            amount_cents=amount,
            currency=(tx.get("currency") or "usd").lower(),
            description=f"BTX {tx['id']} ({tx_type})",
            reservation_id=reservation_id,
            payment_intent_id=tx.get("payment_intent"),
            charge_id=charge_id,
            balance_transaction_id=tx["id"],
        )
        lines = [line]
        fee = int(tx.get("fee") or 0)
        if fee > 0:
            lines.append(
                line.model_copy(
                    update={
                        "id": f"{tx['id']}-fee",
                        "type": "stripe_fee",
                        "amount_cents": -fee,
                        "description": f"Stripe fee BTX {tx['id']}",
                    }
                )
            )
        for payout_line in lines:
            item = self._line_to_item(payout_line)
            item.update({"payout_id": payout_id, "campground_id": campground_id})
            self.db.put_item(self.LINES_TABLE, item)

        # withheld fee transactions carry the fee as a negative amount
        if tx_type in WITHHELD_FEE_TYPES:
            fee += abs(amount)
        if fee > 0:
            self._post_fee(campground_id, reservation_id, tx["id"], fee)

    def _post_fee(
        self, campground_id: str, reservation_id: str | None, tx_id: str, fee_cents: int
    ) -> None:
        if reservation_id is None:
            logger.warning("Fee of %d cents on BTX %s has no reservation", fee_cents, tx_id)
            return
        self.ledger.post_entry(
            campground_id,
            reservation_id,
            LedgerDirection.DEBIT,
            fee_cents,
            f"Stripe fee BTX {tx_id}",
            "payout",
            dedupe_key=f"fee:{tx_id}",
        )

    def compute_recon_summary(
        self,
        campground_id: str,
        payout_id: str,
        threshold_cents: int | None = None,
    ) -> PayoutReconSummary:
        """Compare a payout with its lines and the ledger.

        Raises:
            CampreservError: PAYOUT_NOT_FOUND
        """
        payout = self.get_payout(campground_id, payout_id)
        threshold = drift_threshold_cents() if threshold_cents is None else threshold_cents

        line_sum = sum(line.amount_cents for line in payout.lines)
        reservation_ids = {line.reservation_id for line in payout.lines if line.reservation_id}
        ledger_net = self.ledger.net_for_reservations(reservation_ids) if reservation_ids else 0

        payout_net = payout.amount_cents - payout.fee_cents
        drift_vs_lines = payout_net - line_sum
        drift_vs_ledger = payout_net - ledger_net

        if drift_vs_lines == 0 and drift_vs_ledger == 0:
            status = ReconStatus.MATCHED
        elif abs(drift_vs_ledger) > threshold:
            status = ReconStatus.DRIFT
        else:
            status = ReconStatus.PENDING

        if abs(drift_vs_ledger) > threshold:
            logger.warning(
                "Payout drift detected: payout %s campground %s drift_vs_ledger=%d cents "
                "(threshold %d)",
                payout_id,
                campground_id,
                drift_vs_ledger,
                threshold,
            )

        return PayoutReconSummary(
            payout_id=payout_id,
            campground_id=campground_id,
            payout_amount_cents=payout.amount_cents,
            payout_fee_cents=payout.fee_cents,
            payout_net_cents=payout_net,
            line_sum_cents=line_sum,
            ledger_net_cents=ledger_net,
            drift_vs_lines_cents=drift_vs_lines,
            drift_vs_ledger_cents=drift_vs_ledger,
            status=status,
        )

    def _payout_to_item(self, payout: Payout) -> dict[str, Any]:
        return compact(
            {
                "payout_id": payout.id,
                "campground_id": payout.campground_id,
                "amount_cents": payout.amount_cents,
                "fee_cents": payout.fee_cents,
                "currency": payout.currency,
                "status": payout.status.value,
                "arrival_date": payout.arrival_date.isoformat() if payout.arrival_date else None,
                "paid_at": payout.paid_at.isoformat() if payout.paid_at else None,
                "created_at": payout.created_at.isoformat(),
                "updated_at": payout.updated_at.isoformat(),
            }
        )

    def _item_to_payout(self, item: dict[str, Any]) -> Payout:
        return Payout(
            id=item["payout_id"],
            campground_id=item["campground_id"],
            amount_cents=int(item["amount_cents"]),
            fee_cents=as_int(item.get("fee_cents"), 0),
            currency=item.get("currency", "usd"),
            status=PayoutStatus(item.get("status", PayoutStatus.PENDING.value)),
            arrival_date=as_datetime(item.get("arrival_date")),
            paid_at=as_datetime(item.get("paid_at")),
            created_at=as_datetime(item["created_at"]),
            updated_at=as_datetime(item.get("updated_at") or item["created_at"]),
        )

    def _line_to_item(self, line: PayoutLine) -> dict[str, Any]:
        return compact(
            {
                "line_id": line.id,
                "type": line.type,
                "amount_cents": line.amount_cents,
                "currency": line.currency,
                "description": line.description,
                "reservation_id": line.reservation_id,
                "payment_intent_id": line.payment_intent_id,
                "charge_id": line.charge_id,
                "balance_transaction_id": line.balance_transaction_id,
            }
        )

    def _item_to_line(self, item: dict[str, Any]) -> PayoutLine:
        return PayoutLine(
            id=item["line_id"],
            type=item.get("type", "charge"),
            amount_cents=int(item["amount_cents"]),
            currency=item.get("currency", "usd"),
            description=item.get("description"),
            reservation_id=item.get("reservation_id"),
            payment_intent_id=item.get("payment_intent_id"),
            charge_id=item.get("charge_id"),
            balance_transaction_id=item.get("balance_transaction_id"),
        )
