"""Booking service: reservation creation, lifecycle and cancellation."""

import datetime as dt
import math
import uuid
from typing import TYPE_CHECKING

from campreserv.models import (
    CampreservError,
    CancellationResult,
    DepositCalculation,
    DepositRule,
    ErrorCode,
    PaymentMethod,
    Reservation,
    ReservationCreate,
    ReservationStatus,
    TransactionStatus,
)
from campreserv.utils.items import utc_now
from campreserv.utils.logging import get_logger, log_reservation_operation

from .availability import validate_assignment_constraints
from .cancellation_policy import calculate_refund
from .reservation_store import compute_payment_status

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .campgrounds import CampgroundService
    from .guests import GuestService
    from .holds import HoldService
    from .payment_service import PaymentService
    from .pricing import QuoteService
    from .reservation_store import ReservationStore

logger = get_logger(__name__)

CANCELLABLE_STATUSES = [
    ReservationStatus.PENDING,
    ReservationStatus.CONFIRMED,
    ReservationStatus.CHECKED_IN,
]


def compute_deposit_required(
    rule: DepositRule | str | None,
    total_cents: int,
    nights: int,
    percentage: int | None = None,
) -> int:
    """Deposit due at booking time, in cents.

    Args:
        rule: Campground deposit rule (case-insensitive; None means none)
        total_cents: Reservation total
        nights: Nights in the stay
        percentage: Percentage for the "percentage" rule

    Returns:
        Deposit in cents, rounded up
    """
    normalized = str(getattr(rule, "value", rule) or "none").lower()
    if normalized == DepositRule.FULL.value:
        return total_cents
    if normalized in (DepositRule.HALF.value, DepositRule.PERCENTAGE_50.value):
        return math.ceil(total_cents / 2)
    if normalized in (DepositRule.FIRST_NIGHT.value, DepositRule.FIRST_NIGHT_FEES.value):
        return math.ceil(total_cents / max(1, nights))
    if normalized == DepositRule.PERCENTAGE.value:
        if not percentage or percentage <= 0:
            return 0
        return math.ceil(total_cents * percentage / 100)
    return 0


class BookingService:
    """Service for creating and managing reservations."""

    def __init__(
        self,
        reservations: "ReservationStore",
        campgrounds: "CampgroundService",
        guests: "GuestService",
        availability: "AvailabilityService",
        holds: "HoldService",
        quotes: "QuoteService",
        payments: "PaymentService",
    ) -> None:
        self.reservations = reservations
        self.campgrounds = campgrounds
        self.guests = guests
        self.availability = availability
        self.holds = holds
        self.quotes = quotes
        self.payments = payments

    def _generate_reservation_id(self, year: int) -> str:
        """Generate an ID like RES-2026-4F7A1C."""
        return f"RES-{year}-{uuid.uuid4().hex[:6].upper()}"

    def create_reservation(self, data: ReservationCreate) -> Reservation:
        """Validate, price and store a new reservation.

        Raises:
            CampreservError: see the error codes named in each step
        """
        arrival, departure = data.arrival_date, data.departure_date
        if departure <= arrival:
            raise CampreservError(
                ErrorCode.INVALID_DATE_RANGE,
                details={"arrival_date": arrival.isoformat(), "departure_date": departure.isoformat()},
            )
        if not data.site_id and not data.site_class_id:
            raise CampreservError(ErrorCode.SITE_REQUIRED)

        self.guests.get_guest(data.guest_id)
        campground = self.campgrounds.get_campground(data.campground_id)

        constraints = {
            "adults": data.adults,
            "children": data.children,
            "rig_type": data.rig_type,
            "rig_length": data.rig_length,
            "requires_accessible": data.requires_accessible,
            "required_amenities": data.required_amenities,
        }

        if data.site_id:
            site = self.campgrounds.get_site(data.site_id, campground.id)
            site_class = (
                self.campgrounds.get_site_class(site.site_class_id) if site.site_class_id else None
            )
        else:
            site_class = self.campgrounds.get_site_class(data.site_class_id)
            if site_class is None or site_class.campground_id != campground.id:
                raise CampreservError(
                    ErrorCode.SITE_CLASS_NOT_FOUND,
                    details={"site_class_id": data.site_class_id},
                )
            site = self.availability.find_assignable_site(
                campground.id, site_class, arrival, departure, **constraints
            )
            if site is None:
                raise CampreservError(
                    ErrorCode.SITE_UNAVAILABLE,
                    details={"site_class_id": site_class.id, "conflict": "no_free_site"},
                )

        validate_assignment_constraints(site, site_class, **constraints)

        if data.hold_id:
            self.holds.validate_hold_for_reservation(
                data.hold_id, campground.id, site.id, arrival, departure
            )
        conflict = self.availability.find_conflict(
            campground.id, site.id, arrival, departure, ignore_hold_id=data.hold_id
        )
        if conflict:
            raise CampreservError(
                ErrorCode.SITE_UNAVAILABLE, details={"site_id": site.id, "conflict": conflict}
            )

        quote = self.quotes.get_quote(campground.id, site.id, arrival, departure)
        total = data.total_amount if data.total_amount is not None else quote.total_cents
        if total != quote.total_cents and not (
            data.override_reason and data.override_approved_by
        ):
            raise CampreservError(
                ErrorCode.OVERRIDE_APPROVAL_REQUIRED,
                details={"quote_total": str(quote.total_cents), "requested_total": str(total)},
            )

        paid = data.paid_amount
        if paid > 0 and data.payment_method == PaymentMethod.CARD:
            # card money only moves through a confirmed PaymentIntent
            raise CampreservError(
                ErrorCode.CARD_PREPAYMENT_NOT_ALLOWED, details={"paid_amount": str(paid)}
            )
        status = data.status or (
            ReservationStatus.CONFIRMED if paid > 0 else ReservationStatus.PENDING
        )
        deposit = compute_deposit_required(
            campground.deposit_rule, total, quote.nights, campground.deposit_percentage
        )
        if status == ReservationStatus.CONFIRMED and paid < deposit:
            raise CampreservError(
                ErrorCode.DEPOSIT_REQUIRED,
                details={"deposit_required": str(deposit), "paid_amount": str(paid)},
            )

        now = utc_now()
        reservation = Reservation(
            id=self._generate_reservation_id(arrival.year),
            campground_id=campground.id,
            site_id=site.id,
            guest_id=data.guest_id,
            arrival_date=arrival,
            departure_date=departure,
            adults=data.adults,
            children=data.children,
            status=status,
            total_amount=total,
            paid_amount=paid,
            balance_amount=max(0, total - paid),
            payment_status=compute_payment_status(total, paid),
            deposit_required_cents=deposit,
            base_subtotal=quote.base_subtotal_cents,
            rules_delta=quote.rules_delta_cents,
            rig_type=data.rig_type,
            rig_length=data.rig_length,
            notes=data.notes,
            override_reason=data.override_reason,
            override_approved_by=data.override_approved_by,
            source=data.source,
            hold_id=data.hold_id,
            created_at=now,
            updated_at=now,
        )

        if not self.reservations.create(reservation):
            # ID collision, retry once with a fresh ID
            reservation = reservation.model_copy(
                update={"id": self._generate_reservation_id(arrival.year)}
            )
            if not self.reservations.create(reservation):
                raise CampreservError(
                    ErrorCode.RESERVATION_ID_CONFLICT, details={"reservation_id": reservation.id}
                )

        if data.hold_id:
            self.holds.convert_hold(data.hold_id)
        if paid > 0:
            self.payments.record_booking_payment(
                reservation, data.payment_method or PaymentMethod.CASH, paid, note=data.notes
            )

        log_reservation_operation(
            logger,
            "create",
            reservation_id=reservation.id,
            campground_id=campground.id,
            site_id=site.id,
            status=reservation.status.value,
            total_cents=total,
        )
        return reservation

    def get_reservation(self, reservation_id: str) -> Reservation:
        return self.reservations.require(reservation_id)

    def list_reservations(
        self, campground_id: str, status: ReservationStatus | None = None
    ) -> list[Reservation]:
        reservations = self.reservations.list_for_campground(campground_id)
        if status is not None:
            reservations = [r for r in reservations if r.status == status]
        return reservations

    def calculate_deposit(self, reservation_id: str) -> DepositCalculation:
        reservation = self.reservations.require(reservation_id)
        campground = self.campgrounds.get_campground(reservation.campground_id)
        deposit = compute_deposit_required(
            campground.deposit_rule,
            reservation.total_amount,
            reservation.nights,
            campground.deposit_percentage,
        )
        return DepositCalculation(
            reservation_id=reservation.id,
            deposit_rule=campground.deposit_rule.value,
            deposit_amount=deposit,
            remaining_balance=max(0, reservation.total_amount - deposit),
        )

    def check_in(self, reservation_id: str) -> Reservation:
        return self._transition(
            reservation_id,
            ReservationStatus.CHECKED_IN,
            [ReservationStatus.CONFIRMED, ReservationStatus.PENDING],
        )

    def check_out(self, reservation_id: str) -> Reservation:
        return self._transition(
            reservation_id, ReservationStatus.CHECKED_OUT, [ReservationStatus.CHECKED_IN]
        )

    def _transition(
        self,
        reservation_id: str,
        status: ReservationStatus,
        allowed_from: list[ReservationStatus],
    ) -> Reservation:
        updated = self.reservations.set_status(reservation_id, status, expected=allowed_from)
        if updated is None:
            current = self.reservations.require(reservation_id)
            raise CampreservError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": current.status.value, "to": status.value},
            )
        log_reservation_operation(
            logger,
            status.value,
            reservation_id=reservation_id,
            campground_id=updated.campground_id,
            status=status.value,
        )
        return updated

    def cancel_reservation(
        self,
        reservation_id: str,
        cancellation_date: dt.date | None = None,
        reason: str | None = None,
    ) -> CancellationResult:
        """Cancel a reservation and refund per the campground policy.

        Raises:
            CampreservError: RESERVATION_NOT_FOUND, RESERVATION_ALREADY_CANCELLED
                or INVALID_STATUS_TRANSITION (already checked out)
        """
        reservation = self.reservations.require(reservation_id)
        if reservation.status == ReservationStatus.CANCELLED:
            raise CampreservError(
                ErrorCode.RESERVATION_ALREADY_CANCELLED,
                details={"reservation_id": reservation_id},
            )
        if reservation.status not in CANCELLABLE_STATUSES:
            raise CampreservError(
                ErrorCode.INVALID_STATUS_TRANSITION,
                details={"from": reservation.status.value, "to": ReservationStatus.CANCELLED.value},
            )

        campground = self.campgrounds.get_campground(reservation.campground_id)
        site_class_id = None
        try:
            site_class_id = self.campgrounds.get_site(reservation.site_id).site_class_id
        except CampreservError:
            logger.warning("Site %s missing while cancelling %s", reservation.site_id, reservation_id)

        calculation = calculate_refund(
            campground.cancellation_rules,
            reservation.paid_amount,
            reservation.total_amount,
            reservation.nights,
            reservation.arrival_date,
            cancellation_date or dt.date.today(),
            site_class_id,
        )
        refund_due = min(calculation["refund_amount"], reservation.paid_amount)

        cancelled = self.reservations.set_status(
            reservation_id, ReservationStatus.CANCELLED, expected=CANCELLABLE_STATUSES
        )
        if cancelled is None:
            raise CampreservError(
                ErrorCode.RESERVATION_ALREADY_CANCELLED,
                details={"reservation_id": reservation_id},
            )

        refund_payment_id = None
        refund_error = None
        refunded = 0
        if refund_due > 0:
            results = self.payments.refund_reservation(
                reservation_id, refund_due, reason or "Reservation cancelled"
            )
            completed = [r for r in results if r.status == TransactionStatus.COMPLETED]
            refunded = sum(-r.amount for r in completed)
            if completed:
                refund_payment_id = completed[0].payment_id
            failures = [r.error_message for r in results if r.status == TransactionStatus.FAILED]
            if refunded < refund_due:
                refund_error = next(
                    (message for message in failures if message),
                    "Refund could not be allocated to a completed payment",
                )
                logger.error(
                    "Cancellation of %s refunded %d of %d cents: %s",
                    reservation_id,
                    refunded,
                    refund_due,
                    refund_error,
                )

        log_reservation_operation(
            logger,
            "cancel",
            reservation_id=reservation_id,
            campground_id=reservation.campground_id,
            status=ReservationStatus.CANCELLED.value,
            refund_cents=refunded,
            policy_tier=calculation["policy_tier"],
        )
        return CancellationResult(
            reservation=self.reservations.require(reservation_id),
            refund_amount=refunded,
            refund_percentage=calculation["refund_percentage"],
            policy_tier=calculation["policy_tier"],
            days_until_arrival=calculation["days_until_arrival"],
            description=calculation["description"],
            refund_payment_id=refund_payment_id,
            refund_failed_cents=refund_due - refunded,
            refund_error=refund_error,
        )
