"""Payment service for desk payments, card payments and refunds.

Cash, check and folio payments complete immediately. Card payments create a
Stripe PaymentIntent and stay pending until the payment_intent.succeeded
webhook confirms them. Every completed movement of money posts a ledger entry.
"""

import uuid
from typing import TYPE_CHECKING, Any, Callable

from boto3.dynamodb.conditions import Attr

from campreserv.models import (
    CampreservError,
    ErrorCode,
    LedgerDirection,
    Payment,
    PaymentMethod,
    PaymentResult,
    Reservation,
    ReservationStatus,
    TransactionStatus,
    get_user_friendly_stripe_message,
)
from campreserv.utils.items import as_datetime, as_int, compact, utc_now
from campreserv.utils.logging import get_logger, log_payment_operation

from .stripe_service import StripeServiceError, get_stripe_service

if TYPE_CHECKING:
    from .campgrounds import CampgroundService
    from .dynamodb import DynamoDBService
    from .ledger import LedgerService
    from .reservation_store import ReservationStore
    from .stripe_service import StripeService

logger = get_logger(__name__)


class PaymentService:
    """Service for processing payments and managing transactions."""

    PAYMENTS_TABLE = "payments"

    def __init__(
        self,
        db: "DynamoDBService",
        reservations: "ReservationStore",
        ledger: "LedgerService",
        campgrounds: "CampgroundService",
        stripe_provider: Callable[[], "StripeService"] = get_stripe_service,
    ) -> None:
        """Initialize payment service.

        Args:
            db: DynamoDB service instance
            reservations: Reservation store for paid/balance updates
            ledger: Ledger for credits and debits
            campgrounds: Campground lookups (currency)
            stripe_provider: Returns the Stripe service; resolved lazily so
                desk payments never touch SSM
        """
        self.db = db
        self.reservations = reservations
        self.ledger = ledger
        self.campgrounds = campgrounds
        self._stripe_provider = stripe_provider

    @property
    def stripe(self) -> "StripeService":
        return self._stripe_provider()

    def _generate_payment_id(self, prefix: str = "PAY") -> str:
        """Generate a unique ID like PAY-ABC123DEF456 or RFD-ABC123DEF456."""
        return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"

    def record_payment(
        self,
        reservation_id: str,
        method: PaymentMethod,
        amount_cents: int,
        cash_received_cents: int | None = None,
        note: str | None = None,
    ) -> PaymentResult:
        """Take a payment against a reservation.

        Raises:
            CampreservError: INVALID_PAYMENT_AMOUNT, RESERVATION_NOT_FOUND,
                RESERVATION_NOT_PAYABLE, CASH_SHORT or STRIPE_API_ERROR
        """
        if amount_cents <= 0:
            raise CampreservError(
                ErrorCode.INVALID_PAYMENT_AMOUNT, details={"amount": str(amount_cents)}
            )
        reservation = self.reservations.require(reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            raise CampreservError(
                ErrorCode.RESERVATION_NOT_PAYABLE,
                details={"reservation_id": reservation_id, "status": reservation.status.value},
            )

        if method == PaymentMethod.CARD:
            return self._start_card_payment(reservation, amount_cents, note)

        change_due = None
        if method == PaymentMethod.CASH:
            received = cash_received_cents if cash_received_cents is not None else amount_cents
            if received < amount_cents:
                raise CampreservError(
                    ErrorCode.CASH_SHORT,
                    details={"short_by": str(amount_cents - received)},
                )
            change_due = received - amount_cents
            cash_received_cents = received

        now = utc_now()
        payment = Payment(
            payment_id=self._generate_payment_id(),
            reservation_id=reservation.id,
            campground_id=reservation.campground_id,
            amount=amount_cents,
            currency=self._currency(reservation.campground_id),
            status=TransactionStatus.COMPLETED,
            payment_method=method,
            cash_received_cents=cash_received_cents,
            change_due_cents=change_due,
            note=note,
            created_at=now,
            completed_at=now,
        )
        self.db.put_item(self.PAYMENTS_TABLE, self._payment_to_item(payment))
        self._settle(payment, reservation)

        log_payment_operation(
            logger,
            "record_payment",
            payment_id=payment.payment_id,
            reservation_id=reservation.id,
            amount_cents=amount_cents,
            status=payment.status.value,
            method=method.value,
        )
        return PaymentResult(
            payment_id=payment.payment_id,
            status=payment.status,
            amount=amount_cents,
            change_due_cents=change_due,
        )

    def record_booking_payment(
        self,
        reservation: Reservation,
        method: PaymentMethod,
        amount_cents: int,
        note: str | None = None,
    ) -> Payment:
        """Record money taken while creating a reservation.

        The reservation already carries the paid amount, so only the payment
        record and ledger credit are written.
        """
        now = utc_now()
        payment = Payment(
            payment_id=self._generate_payment_id(),
            reservation_id=reservation.id,
            campground_id=reservation.campground_id,
            amount=amount_cents,
            currency=self._currency(reservation.campground_id),
            status=TransactionStatus.COMPLETED,
            payment_method=method,
            note=note,
            created_at=now,
            completed_at=now,
        )
        self.db.put_item(self.PAYMENTS_TABLE, self._payment_to_item(payment))
        self._post_credit(payment)
        return payment

    def _start_card_payment(
        self, reservation: Reservation, amount_cents: int, note: str | None
    ) -> PaymentResult:
        payment_id = self._generate_payment_id()
        currency = self._currency(reservation.campground_id)
        try:
            intent = self.stripe.create_payment_intent(
                reservation_id=reservation.id,
                payment_id=payment_id,
                amount_cents=amount_cents,
                currency=currency,
                campground_id=reservation.campground_id,
                description=f"Reservation {reservation.id}",
            )
        except StripeServiceError as e:
            log_payment_operation(
                logger,
                "create_payment_intent",
                payment_id=payment_id,
                reservation_id=reservation.id,
                amount_cents=amount_cents,
                error=str(e),
            )
            raise CampreservError(
                ErrorCode.STRIPE_API_ERROR,
                details={"message": get_user_friendly_stripe_message(e.stripe_error_code)},
            ) from e

        payment = Payment(
            payment_id=payment_id,
            reservation_id=reservation.id,
            campground_id=reservation.campground_id,
            amount=amount_cents,
            currency=currency,
            status=TransactionStatus.PENDING,
            payment_method=PaymentMethod.CARD,
            stripe_payment_intent_id=intent["payment_intent_id"],
            note=note,
            created_at=utc_now(),
        )
        self.db.put_item(self.PAYMENTS_TABLE, self._payment_to_item(payment))
        log_payment_operation(
            logger,
            "create_payment_intent",
            payment_id=payment_id,
            reservation_id=reservation.id,
            amount_cents=amount_cents,
            status=payment.status.value,
            payment_intent_id=intent["payment_intent_id"],
        )
        return PaymentResult(
            payment_id=payment_id,
            status=TransactionStatus.PENDING,
            amount=amount_cents,
            client_secret=intent["client_secret"],
        )

    def confirm_card_payment(
        self,
        payment_intent_id: str,
        charge_id: str | None = None,
        payment_id: str | None = None,
    ) -> Payment | None:
        """Complete a pending card payment once Stripe reports success.

        Safe to call repeatedly: only the first call moves money.

        Returns:
            The payment, or None if no payment matches the intent
        """
        payment = self.get_payment(payment_id) if payment_id else None
        if payment is None:
            payment = self.find_by_payment_intent(payment_intent_id)
        if payment is None:
            logger.warning("No payment found for PaymentIntent %s", payment_intent_id)
            return None
        if payment.status != TransactionStatus.PENDING:
            return payment

        now = utc_now()
        attrs = self.db.update_item(
            self.PAYMENTS_TABLE,
            {"payment_id": payment.payment_id},
            "SET #status = :completed, completed_at = :now, stripe_charge_id = :charge",
            {
                ":completed": TransactionStatus.COMPLETED.value,
                ":pending": TransactionStatus.PENDING.value,
                ":now": now.isoformat(),
                ":charge": charge_id or "",
            },
            {"#status": "status"},
            condition_expression="#status = :pending",
        )
        if attrs is None:
            # another delivery completed it first
            return self.get_payment(payment.payment_id)

        completed = self._item_to_payment(attrs)
        self._settle(completed, self.reservations.require(completed.reservation_id))
        log_payment_operation(
            logger,
            "confirm_card_payment",
            payment_id=completed.payment_id,
            reservation_id=completed.reservation_id,
            amount_cents=completed.amount,
            status=completed.status.value,
            payment_intent_id=payment_intent_id,
        )
        return completed

    def get_payment(self, payment_id: str) -> Payment | None:
        item = self.db.get_item(self.PAYMENTS_TABLE, {"payment_id": payment_id})
        return self._item_to_payment(item) if item else None

    def find_by_payment_intent(self, payment_intent_id: str) -> Payment | None:
        items = self.db.scan(
            self.PAYMENTS_TABLE,
            filter_expression=Attr("stripe_payment_intent_id").eq(payment_intent_id),
        )
        payments = [self._item_to_payment(item) for item in items if int(item["amount"]) > 0]
        return payments[0] if payments else None

    def find_by_charge(
        self, charge_id: str | None, payment_intent_id: str | None = None
    ) -> Payment | None:
        """Find the original payment for a Stripe charge or PaymentIntent."""
        conditions = []
        if charge_id:
            conditions.append(Attr("stripe_charge_id").eq(charge_id))
        if payment_intent_id:
            conditions.append(Attr("stripe_payment_intent_id").eq(payment_intent_id))
        if not conditions:
            return None
        filter_expression = conditions[0]
        for condition in conditions[1:]:
            filter_expression = filter_expression | condition
        items = self.db.scan(self.PAYMENTS_TABLE, filter_expression=filter_expression)
        payments = [self._item_to_payment(item) for item in items if int(item["amount"]) > 0]
        return payments[0] if payments else None

    def get_payments_for_reservation(self, reservation_id: str) -> list[Payment]:
        items = self.db.query_by_gsi(
            self.PAYMENTS_TABLE,
            "reservation_id-index",
            "reservation_id",
            reservation_id,
        )
        payments = [self._item_to_payment(item) for item in items]
        return sorted(payments, key=lambda p: p.created_at)

    def process_refund(
        self,
        payment_id: str,
        amount: int,
        reason: str | None = None,
    ) -> PaymentResult:
        """Refund part or all of a completed payment.

        Card payments with a PaymentIntent are refunded through Stripe; other
        methods are recorded as money handed back at the desk.

        Raises:
            CampreservError: PAYMENT_NOT_FOUND or INVALID_PAYMENT_AMOUNT
        """
        original = self.get_payment(payment_id)
        if original is None:
            raise CampreservError(ErrorCode.PAYMENT_NOT_FOUND, details={"payment_id": payment_id})

        if original.status != TransactionStatus.COMPLETED:
            return PaymentResult(
                payment_id=payment_id,
                status=TransactionStatus.FAILED,
                error_message="Can only refund completed payments.",
            )

        refundable = original.amount - original.refunded_amount
        if amount <= 0 or amount > refundable:
            raise CampreservError(
                ErrorCode.INVALID_PAYMENT_AMOUNT,
                details={"amount": str(amount), "refundable": str(refundable)},
            )

        stripe_refund_id = None
        if original.payment_method == PaymentMethod.CARD and original.stripe_payment_intent_id:
            try:
                refund = self.stripe.create_refund(
                    payment_intent_id=original.stripe_payment_intent_id,
                    amount_cents=amount,
                    reason=reason,
                )
            except StripeServiceError as e:
                log_payment_operation(
                    logger,
                    "process_refund",
                    payment_id=payment_id,
                    reservation_id=original.reservation_id,
                    amount_cents=amount,
                    error=str(e),
                )
                return PaymentResult(
                    payment_id=payment_id,
                    status=TransactionStatus.FAILED,
                    error_message=get_user_friendly_stripe_message(
                        e.stripe_error_code, "Refund could not be processed."
                    ),
                )
            stripe_refund_id = refund["refund_id"]

        now = utc_now()
        refund_payment = Payment(
            payment_id=self._generate_payment_id(prefix="RFD"),
            reservation_id=original.reservation_id,
            campground_id=original.campground_id,
            amount=-amount,
            currency=original.currency,
            status=TransactionStatus.COMPLETED,
            payment_method=original.payment_method,
            stripe_payment_intent_id=original.stripe_payment_intent_id,
            stripe_refund_id=stripe_refund_id,
            original_payment_id=original.payment_id,
            note=reason,
            created_at=now,
            completed_at=now,
        )
        self.db.put_item(self.PAYMENTS_TABLE, self._payment_to_item(refund_payment))

        refunded_total = original.refunded_amount + amount
        self.db.update_item(
            self.PAYMENTS_TABLE,
            {"payment_id": original.payment_id},
            "SET refunded_amount = :refunded, #status = :status",
            {
                ":refunded": refunded_total,
                ":status": (
                    TransactionStatus.REFUNDED.value
                    if refunded_total >= original.amount
                    else TransactionStatus.COMPLETED.value
                ),
            },
            {"#status": "status"},  # status is a reserved word
        )

        self.reservations.apply_payment_delta(original.reservation_id, -amount)
        self.ledger.post_entry(
            original.campground_id,
            original.reservation_id,
            LedgerDirection.DEBIT,
            amount,
            f"Refund {refund_payment.payment_id} of {original.payment_id}",
            "refund",
            dedupe_key=f"refund:{refund_payment.payment_id}",
        )
        log_payment_operation(
            logger,
            "process_refund",
            payment_id=refund_payment.payment_id,
            reservation_id=original.reservation_id,
            amount_cents=-amount,
            status=refund_payment.status.value,
            original_payment_id=original.payment_id,
        )
        return PaymentResult(
            payment_id=refund_payment.payment_id,
            status=TransactionStatus.COMPLETED,
            amount=-amount,
        )

    def refund_reservation(
        self, reservation_id: str, amount: int, reason: str | None = None
    ) -> list[PaymentResult]:
        """Spread a refund across a reservation's payments, newest first."""
        remaining = amount
        results = []
        payments = [
            p
            for p in self.get_payments_for_reservation(reservation_id)
            if p.amount > 0 and p.status == TransactionStatus.COMPLETED
        ]
        for payment in reversed(payments):
            if remaining <= 0:
                break
            portion = min(remaining, payment.amount - payment.refunded_amount)
            if portion <= 0:
                continue
            result = self.process_refund(payment.payment_id, portion, reason)
            results.append(result)
            if result.status == TransactionStatus.COMPLETED:
                remaining -= portion
        if remaining > 0:
            logger.warning(
                "Refund for %s left %d cents unallocated to any payment",
                reservation_id,
                remaining,
            )
        return results

    def _settle(self, payment: Payment, reservation: Reservation) -> None:
        """Apply a completed payment to its reservation and the ledger."""
        self.reservations.apply_payment_delta(reservation.id, payment.amount)
        if reservation.status == ReservationStatus.PENDING:
            self.reservations.set_status(
                reservation.id, ReservationStatus.CONFIRMED, expected=[ReservationStatus.PENDING]
            )
        self._post_credit(payment)

    def _post_credit(self, payment: Payment) -> None:
        self.ledger.post_entry(
            payment.campground_id,
            payment.reservation_id,
            LedgerDirection.CREDIT,
            payment.amount,
            f"{payment.payment_method.value.title()} payment {payment.payment_id}",
            "payment",
            dedupe_key=f"payment:{payment.payment_id}",
        )

    def _currency(self, campground_id: str) -> str:
        return self.campgrounds.get_campground(campground_id).currency

    # Conversion helpers

    def _payment_to_item(self, payment: Payment) -> dict[str, Any]:
        """Convert Payment model to DynamoDB item."""
        return compact(
            {
                "payment_id": payment.payment_id,
                "reservation_id": payment.reservation_id,
                "campground_id": payment.campground_id,
                "amount": payment.amount,
                "currency": payment.currency,
                "status": payment.status.value,
                "payment_method": payment.payment_method.value,
                "cash_received_cents": payment.cash_received_cents,
                "change_due_cents": payment.change_due_cents,
                "stripe_payment_intent_id": payment.stripe_payment_intent_id,
                "stripe_charge_id": payment.stripe_charge_id,
                "stripe_refund_id": payment.stripe_refund_id,
                "refunded_amount": payment.refunded_amount,
                "original_payment_id": payment.original_payment_id,
                "note": payment.note,
                "created_at": payment.created_at.isoformat(),
                "completed_at": payment.completed_at.isoformat() if payment.completed_at else None,
                "error_message": payment.error_message,
            }
        )

    def _item_to_payment(self, item: dict[str, Any]) -> Payment:
        """Convert DynamoDB item to Payment model."""
        return Payment(
            payment_id=item["payment_id"],
            reservation_id=item["reservation_id"],
            campground_id=item["campground_id"],
            amount=int(item["amount"]),
            currency=item.get("currency", "USD"),
            status=TransactionStatus(item["status"]),
            payment_method=PaymentMethod(item["payment_method"]),
            cash_received_cents=as_int(item.get("cash_received_cents")),
            change_due_cents=as_int(item.get("change_due_cents")),
            stripe_payment_intent_id=item.get("stripe_payment_intent_id"),
            stripe_charge_id=item.get("stripe_charge_id") or None,
            stripe_refund_id=item.get("stripe_refund_id"),
            refunded_amount=as_int(item.get("refunded_amount"), 0),
            original_payment_id=item.get("original_payment_id"),
            note=item.get("note"),
            created_at=as_datetime(item["created_at"]),
            completed_at=as_datetime(item.get("completed_at")),
            error_message=item.get("error_message"),
        )
