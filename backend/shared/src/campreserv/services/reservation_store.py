"""Reservation persistence shared by availability, booking and payments."""

import datetime as dt
from typing import TYPE_CHECKING, Any

from boto3.dynamodb.conditions import Attr

from campreserv.models import (
    CampreservError,
    ErrorCode,
    PaymentStatus,
    Reservation,
    ReservationStatus,
)
from campreserv.utils.items import as_date, as_datetime, as_int, compact, utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

PAYMENT_DELTA_ATTEMPTS = 5


def compute_payment_status(total: int, paid: int) -> PaymentStatus:
    """Derive the reservation payment status from total and paid cents."""
    if not total or total <= 0:
        return PaymentStatus.UNPAID
    if paid >= total:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def dates_overlap(
    arrival: dt.date, departure: dt.date, other_arrival: dt.date, other_departure: dt.date
) -> bool:
    """Half-open overlap: a stay departing on another's arrival day does not overlap."""
    return other_departure > arrival and other_arrival < departure


class ReservationStore:
    """Read/write access to the reservations table."""

    RESERVATIONS_TABLE = "reservations"

    def __init__(self, db: "DynamoDBService") -> None:
        self.db = db

    def get(self, reservation_id: str) -> Reservation | None:
        item = self.db.get_item(self.RESERVATIONS_TABLE, {"reservation_id": reservation_id})
        return self.item_to_reservation(item) if item else None

    def require(self, reservation_id: str) -> Reservation:
        """Get a reservation or raise RESERVATION_NOT_FOUND."""
        reservation = self.get(reservation_id)
        if reservation is None:
            raise CampreservError(
                ErrorCode.RESERVATION_NOT_FOUND,
                details={"reservation_id": reservation_id},
            )
        return reservation

    def put(self, reservation: Reservation) -> None:
        self.db.put_item(self.RESERVATIONS_TABLE, self.reservation_to_item(reservation))

    def create(self, reservation: Reservation) -> bool:
        """Insert a new reservation; False if the ID already exists."""
        return self.db.put_item(
            self.RESERVATIONS_TABLE,
            self.reservation_to_item(reservation),
            condition_expression="attribute_not_exists(reservation_id)",
        )

    def list_for_campground(
        self,
        campground_id: str,
        *,
        include_cancelled: bool = True,
    ) -> list[Reservation]:
        filter_expression = None
        if not include_cancelled:
            filter_expression = Attr("status").ne(ReservationStatus.CANCELLED.value)
        items = self.db.query_by_campground(
            self.RESERVATIONS_TABLE, campground_id, filter_expression=filter_expression
        )
        reservations = [self.item_to_reservation(item) for item in items]
        return sorted(reservations, key=lambda r: (r.arrival_date, r.id))

    def list_for_guest(self, guest_id: str) -> list[Reservation]:
        items = self.db.query_by_gsi(
            self.RESERVATIONS_TABLE, "guest_id-index", "guest_id", guest_id
        )
        return [self.item_to_reservation(item) for item in items]

    def apply_payment_delta(self, reservation_id: str, delta_cents: int) -> Reservation:
        """Add (or subtract) paid cents and recompute balance and payment status.

        Paid never drops below zero. The write only lands if paid and total are
        unchanged since the read; otherwise it is recomputed from a fresh read.

        Raises:
            CampreservError: RESERVATION_NOT_FOUND, or CONCURRENT_UPDATE when
                every attempt lost a race
        """
        for _ in range(PAYMENT_DELTA_ATTEMPTS):
            reservation = self.require(reservation_id)
            paid = max(0, reservation.paid_amount + delta_cents)
            updated = reservation.model_copy(
                update={
                    "paid_amount": paid,
                    "balance_amount": max(0, reservation.total_amount - paid),
                    "payment_status": compute_payment_status(reservation.total_amount, paid),
                    "updated_at": utc_now(),
                }
            )
            stored = self.db.update_item(
                self.RESERVATIONS_TABLE,
                {"reservation_id": reservation_id},
                "SET paid_amount = :paid, balance_amount = :balance, "
                "payment_status = :payment_status, updated_at = :now",
                {
                    ":paid": updated.paid_amount,
                    ":balance": updated.balance_amount,
                    ":payment_status": updated.payment_status.value,
                    ":now": updated.updated_at.isoformat(),
                    ":prev_paid": reservation.paid_amount,
                    ":prev_total": reservation.total_amount,
                },
                condition_expression="paid_amount = :prev_paid AND total_amount = :prev_total",
            )
            if stored is not None:
                return updated
            logger.info("Reservation %s changed during payment update, retrying", reservation_id)
        raise CampreservError(
            ErrorCode.CONCURRENT_UPDATE,
            details={"reservation_id": reservation_id, "delta_cents": str(delta_cents)},
        )

    def set_status(
        self,
        reservation_id: str,
        status: ReservationStatus,
        expected: list[ReservationStatus] | None = None,
    ) -> Reservation | None:
        """Set the status; with `expected`, only from one of those statuses.

        Returns:
            Updated reservation, or None if the condition failed
        """
        values: dict[str, Any] = {
            ":status": status.value,
            ":now": utc_now().isoformat(),
        }
        condition = "attribute_exists(reservation_id)"
        if expected:
            placeholders = []
            for index, allowed in enumerate(expected):
                values[f":allowed{index}"] = allowed.value
                placeholders.append(f":allowed{index}")
            condition += f" AND #status IN ({', '.join(placeholders)})"

        update = "SET #status = :status, updated_at = :now"
        if status == ReservationStatus.CANCELLED:
            update += ", cancelled_at = :now"

        attrs = self.db.update_item(
            self.RESERVATIONS_TABLE,
            {"reservation_id": reservation_id},
            update,
            values,
            {"#status": "status"},  # status is reserved word
            condition_expression=condition,
        )
        return self.item_to_reservation(attrs) if attrs else None

    def reservation_to_item(self, reservation: Reservation) -> dict[str, Any]:
        return compact(
            {
                "reservation_id": reservation.id,
                "campground_id": reservation.campground_id,
                "site_id": reservation.site_id,
                "guest_id": reservation.guest_id,
                "arrival_date": reservation.arrival_date.isoformat(),
                "departure_date": reservation.departure_date.isoformat(),
                "adults": reservation.adults,
                "children": reservation.children,
                "status": reservation.status.value,
                "total_amount": reservation.total_amount,
                "paid_amount": reservation.paid_amount,
                "balance_amount": reservation.balance_amount,
                "payment_status": reservation.payment_status.value,
                "deposit_required_cents": reservation.deposit_required_cents,
                "base_subtotal": reservation.base_subtotal,
                "rules_delta": reservation.rules_delta,
                "rig_type": reservation.rig_type,
                "rig_length": reservation.rig_length,
                "notes": reservation.notes,
                "override_reason": reservation.override_reason,
                "override_approved_by": reservation.override_approved_by,
                "source": reservation.source,
                "hold_id": reservation.hold_id,
                "cancelled_at": (
                    reservation.cancelled_at.isoformat() if reservation.cancelled_at else None
                ),
                "created_at": reservation.created_at.isoformat(),
                "updated_at": reservation.updated_at.isoformat(),
            }
        )

    def item_to_reservation(self, item: dict[str, Any]) -> Reservation:
        return Reservation(
            id=item["reservation_id"],
            campground_id=item["campground_id"],
            site_id=item["site_id"],
            guest_id=item["guest_id"],
            arrival_date=as_date(item["arrival_date"]),
            departure_date=as_date(item["departure_date"]),
            adults=as_int(item.get("adults"), 1),
            children=as_int(item.get("children"), 0),
            status=ReservationStatus(item["status"]),
            total_amount=as_int(item.get("total_amount"), 0),
            paid_amount=as_int(item.get("paid_amount"), 0),
            balance_amount=as_int(item.get("balance_amount"), 0),
            payment_status=PaymentStatus(item.get("payment_status", PaymentStatus.UNPAID.value)),
            deposit_required_cents=as_int(item.get("deposit_required_cents"), 0),
            base_subtotal=as_int(item.get("base_subtotal"), 0),
            rules_delta=as_int(item.get("rules_delta"), 0),
            rig_type=item.get("rig_type"),
            rig_length=as_int(item.get("rig_length")),
            notes=item.get("notes"),
            override_reason=item.get("override_reason"),
            override_approved_by=item.get("override_approved_by"),
            source=item.get("source", "admin"),
            hold_id=item.get("hold_id"),
            cancelled_at=as_datetime(item.get("cancelled_at")),
            created_at=as_datetime(item["created_at"]),
            updated_at=as_datetime(item["updated_at"]),
        )
