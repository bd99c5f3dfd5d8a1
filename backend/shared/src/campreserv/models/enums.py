"""Enumeration types for the reservation platform."""

from enum import Enum


class ReservationStatus(str, Enum):
    """Status of a reservation."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment state of a reservation, derived from total and paid amounts."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(str, Enum):
    """How a payment is tendered at the desk."""

    CARD = "card"
    CASH = "cash"
    CHECK = "check"
    FOLIO = "folio"


class TransactionStatus(str, Enum):
    """Status of an individual payment transaction."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    REFUNDED = "refunded"


class HoldStatus(str, Enum):
    """Lifecycle of a site hold."""

    ACTIVE = "active"
    RELEASED = "released"
    CONVERTED = "converted"
    EXPIRED = "expired"


class SiteType(str, Enum):
    """Physical type of a site."""

    RV = "rv"
    TENT = "tent"
    CABIN = "cabin"
    GROUP = "group"
    GLAMPING = "glamping"


class SiteStatus(str, Enum):
    """Status of a site for a date window."""

    AVAILABLE = "available"
    OCCUPIED = "occupied"
    MAINTENANCE = "maintenance"


class RigType(str, Enum):
    """Guest rig (camping unit) types."""

    CLASS_A = "class-a"
    CLASS_B = "class-b"
    CLASS_C = "class-c"
    TRAVEL_TRAILER = "travel-trailer"
    FIFTH_WHEEL = "fifth-wheel"
    TOY_HAULER = "toy-hauler"
    POP_UP = "pop-up"
    TRUCK_CAMPER = "truck-camper"
    RV_OTHER = "rv-other"
    TENT = "tent"
    CABIN = "cabin"
    OTHER = "other"


RV_RIG_TYPES: frozenset[str] = frozenset(
    {
        RigType.CLASS_A.value,
        RigType.CLASS_B.value,
        RigType.CLASS_C.value,
        RigType.TRAVEL_TRAILER.value,
        RigType.FIFTH_WHEEL.value,
        RigType.TOY_HAULER.value,
        RigType.POP_UP.value,
        RigType.TRUCK_CAMPER.value,
        RigType.RV_OTHER.value,
    }
)


class PayoutStatus(str, Enum):
    """Stripe payout status."""

    PENDING = "pending"
    IN_TRANSIT = "in_transit"
    PAID = "paid"
    FAILED = "failed"
    CANCELED = "canceled"


class DisputeStatus(str, Enum):
    """Stripe dispute status."""

    WARNING_NEEDS_RESPONSE = "warning_needs_response"
    WARNING_UNDER_REVIEW = "warning_under_review"
    WARNING_CLOSED = "warning_closed"
    NEEDS_RESPONSE = "needs_response"
    UNDER_REVIEW = "under_review"
    WON = "won"
    LOST = "lost"
    CHARGE_REFUNDED = "charge_refunded"


class ReconStatus(str, Enum):
    """Outcome of payout reconciliation."""

    MATCHED = "matched"
    DRIFT = "drift"
    PENDING = "pending"


class CardMode(str, Enum):
    """How a card is captured in the booking flow."""

    MANUAL = "manual"
    READER = "reader"


class FeeType(str, Enum):
    """Cancellation fee types."""

    FLAT = "flat"
    PERCENT = "percent"
    NIGHTS = "nights"
    FULL = "full"


class DepositRule(str, Enum):
    """Campground deposit rules."""

    NONE = "none"
    FULL = "full"
    HALF = "half"
    PERCENTAGE_50 = "percentage_50"
    FIRST_NIGHT = "first_night"
    FIRST_NIGHT_FEES = "first_night_fees"
    PERCENTAGE = "percentage"


class LedgerDirection(str, Enum):
    """Direction of a ledger entry."""

    CREDIT = "credit"
    DEBIT = "debit"
