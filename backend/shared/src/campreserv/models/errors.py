"""Standard error codes for the reservation platform.

Every service raises CampreservError with one of these codes; the API layer
maps codes to HTTP statuses and renders ErrorResponse bodies.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict


class ErrorCode(str, Enum):
    """Stable error codes shared by services, API and client."""

    # Lookup errors
    CAMPGROUND_NOT_FOUND = "ERR_CG_001"
    SITE_NOT_FOUND = "ERR_CG_002"
    SITE_CLASS_NOT_FOUND = "ERR_CG_003"
    GUEST_NOT_FOUND = "ERR_CG_004"
    PORTFOLIO_NOT_FOUND = "ERR_CG_005"

    # Reservation errors
    INVALID_DATE_RANGE = "ERR_RES_001"
    SITE_REQUIRED = "ERR_RES_002"
    SITE_UNAVAILABLE = "ERR_RES_003"
    OCCUPANCY_EXCEEDED = "ERR_RES_004"
    RIG_INCOMPATIBLE = "ERR_RES_005"
    ACCESSIBILITY_REQUIRED = "ERR_RES_006"
    AMENITIES_MISSING = "ERR_RES_007"
    DEPOSIT_REQUIRED = "ERR_RES_008"
    OVERRIDE_APPROVAL_REQUIRED = "ERR_RES_009"
    RESERVATION_NOT_FOUND = "ERR_RES_010"
    RESERVATION_ALREADY_CANCELLED = "ERR_RES_011"
    INVALID_STATUS_TRANSITION = "ERR_RES_012"
    RESERVATION_ID_CONFLICT = "ERR_RES_013"
    CONCURRENT_UPDATE = "ERR_RES_014"

    # Hold errors
    HOLD_NOT_FOUND = "ERR_HOLD_001"
    HOLD_EXPIRED = "ERR_HOLD_002"
    HOLD_MISMATCH = "ERR_HOLD_003"
    INVALID_HOLD_DURATION = "ERR_HOLD_004"

    # Policy / configuration errors
    INVALID_CANCELLATION_POLICY = "ERR_POL_001"
    INVALID_PREFERENCE_KEY = "ERR_PREF_001"
    INVALID_PREFERENCE_VALUE = "ERR_PREF_002"
    INVALID_CURRENCY = "ERR_FX_001"

    # Payment errors
    INVALID_PAYMENT_AMOUNT = "ERR_PAY_001"
    CASH_SHORT = "ERR_PAY_002"
    RESERVATION_NOT_PAYABLE = "ERR_PAY_003"
    PAYMENT_NOT_FOUND = "ERR_PAY_004"
    PAYMENT_FAILED = "ERR_PAY_005"
    PAYOUT_NOT_FOUND = "ERR_PAY_006"
    CARD_PREPAYMENT_NOT_ALLOWED = "ERR_PAY_007"

    # Stripe errors
    INVALID_WEBHOOK_SIGNATURE = "ERR_STRIPE_001"
    STRIPE_API_ERROR = "ERR_STRIPE_002"


ERROR_MESSAGES: dict[ErrorCode, str] = {
    ErrorCode.CAMPGROUND_NOT_FOUND: "Campground not found",
    ErrorCode.SITE_NOT_FOUND: "Site not found",
    ErrorCode.SITE_CLASS_NOT_FOUND: "Site class not found",
    ErrorCode.GUEST_NOT_FOUND: "Guest not found",
    ErrorCode.PORTFOLIO_NOT_FOUND: "Portfolio not found",
    ErrorCode.INVALID_DATE_RANGE: "Departure date must be after arrival date",
    ErrorCode.SITE_REQUIRED: "Either a site or a site class is required",
    ErrorCode.SITE_UNAVAILABLE: "The site is not available for the requested dates",
    ErrorCode.OCCUPANCY_EXCEEDED: "Occupancy exceeds max for this site",
    ErrorCode.RIG_INCOMPATIBLE: "Rig type or length is not compatible with this site",
    ErrorCode.ACCESSIBILITY_REQUIRED: "An ADA accessible site is required for this reservation",
    ErrorCode.AMENITIES_MISSING: "Site is missing required amenities",
    ErrorCode.DEPOSIT_REQUIRED: "Deposit required by campground rule has not been paid",
    ErrorCode.OVERRIDE_APPROVAL_REQUIRED: "Price override requires a reason and an approver",
    ErrorCode.RESERVATION_NOT_FOUND: "Reservation not found",
    ErrorCode.RESERVATION_ALREADY_CANCELLED: "Reservation is already cancelled",
    ErrorCode.INVALID_STATUS_TRANSITION: "Reservation status does not allow this action",
    ErrorCode.RESERVATION_ID_CONFLICT: "Could not allocate a unique reservation ID",
    ErrorCode.CONCURRENT_UPDATE: "Reservation changed while it was being updated",
    ErrorCode.HOLD_NOT_FOUND: "Hold not found",
    ErrorCode.HOLD_EXPIRED: "Hold is no longer active",
    ErrorCode.HOLD_MISMATCH: "Hold does not match the requested site or dates",
    ErrorCode.INVALID_HOLD_DURATION: "Hold duration must be between 1 and 1440 minutes",
    ErrorCode.INVALID_CANCELLATION_POLICY: "Cancellation policy is invalid",
    ErrorCode.INVALID_PREFERENCE_KEY: "Unknown preference key",
    ErrorCode.INVALID_PREFERENCE_VALUE: "Preference value has the wrong shape for its key",
    ErrorCode.INVALID_CURRENCY: "Currency code is invalid",
    ErrorCode.INVALID_PAYMENT_AMOUNT: "Payment amount must be greater than zero",
    ErrorCode.CASH_SHORT: "Cash received is less than the payment amount",
    ErrorCode.RESERVATION_NOT_PAYABLE: "Reservation is not in a payable state",
    ErrorCode.PAYMENT_NOT_FOUND: "Payment not found",
    ErrorCode.PAYMENT_FAILED: "Payment processing failed",
    ErrorCode.PAYOUT_NOT_FOUND: "Payout not found",
    ErrorCode.CARD_PREPAYMENT_NOT_ALLOWED: "Card payments cannot be recorded when booking",
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Invalid webhook signature",
    ErrorCode.STRIPE_API_ERROR: "Stripe API error occurred",
}

ERROR_RECOVERY: dict[ErrorCode, str] = {
    ErrorCode.CAMPGROUND_NOT_FOUND: "Select a campground from GET /api/campgrounds",
    ErrorCode.SITE_NOT_FOUND: "Pick a site from the campground's site list",
    ErrorCode.SITE_CLASS_NOT_FOUND: "Pick a site class from the campground's site classes",
    ErrorCode.GUEST_NOT_FOUND: "Search for the guest or create a guest profile first",
    ErrorCode.PORTFOLIO_NOT_FOUND: "Verify the portfolio ID",
    ErrorCode.INVALID_DATE_RANGE: "Choose a departure date after the arrival date",
    ErrorCode.SITE_REQUIRED: "Provide site_id or site_class_id",
    ErrorCode.SITE_UNAVAILABLE: "Check site status for the dates and choose another site",
    ErrorCode.OCCUPANCY_EXCEEDED: "Reduce the party size or choose a larger site",
    ErrorCode.RIG_INCOMPATIBLE: "Choose an RV site that fits the rig length",
    ErrorCode.ACCESSIBILITY_REQUIRED: "Choose an accessible site",
    ErrorCode.AMENITIES_MISSING: "Choose a site offering the required amenities",
    ErrorCode.DEPOSIT_REQUIRED: "Collect at least the required deposit or book as pending",
    ErrorCode.OVERRIDE_APPROVAL_REQUIRED: "Provide override_reason and override_approved_by",
    ErrorCode.RESERVATION_NOT_FOUND: "Verify the reservation ID",
    ErrorCode.RESERVATION_ALREADY_CANCELLED: "No action needed",
    ErrorCode.INVALID_STATUS_TRANSITION: "Check the reservation status first",
    ErrorCode.RESERVATION_ID_CONFLICT: "Retry the booking",
    ErrorCode.CONCURRENT_UPDATE: "Reload the reservation and retry",
    ErrorCode.HOLD_NOT_FOUND: "Create a new hold",
    ErrorCode.HOLD_EXPIRED: "Create a new hold and retry",
    ErrorCode.HOLD_MISMATCH: "Use a hold created for this site and these dates",
    ErrorCode.INVALID_HOLD_DURATION: "Use a hold duration between 1 and 1440 minutes",
    ErrorCode.INVALID_CANCELLATION_POLICY: "Use a preset (flexible, moderate, strict) or custom rules",
    ErrorCode.INVALID_PREFERENCE_KEY: "Use one of the campreserv:* preference keys",
    ErrorCode.INVALID_PREFERENCE_VALUE: (
        "Send a list of IDs for pins and recent, a map of booleans for feedback, text otherwise"
    ),
    ErrorCode.INVALID_CURRENCY: "Use a three-letter ISO currency code",
    ErrorCode.INVALID_PAYMENT_AMOUNT: "Enter a positive payment amount",
    ErrorCode.CASH_SHORT: "Collect the remaining cash or lower the payment amount",
    ErrorCode.RESERVATION_NOT_PAYABLE: "Verify the reservation is not cancelled",
    ErrorCode.PAYMENT_NOT_FOUND: "Verify the payment ID",
    ErrorCode.PAYMENT_FAILED: "Try again or use a different payment method",
    ErrorCode.PAYOUT_NOT_FOUND: "Verify the payout ID and campground",
    ErrorCode.CARD_PREPAYMENT_NOT_ALLOWED: (
        "Book as pending, then take the card through POST /api/reservations/{id}/payments"
    ),
    ErrorCode.INVALID_WEBHOOK_SIGNATURE: "Verify webhook secret configuration",
    ErrorCode.STRIPE_API_ERROR: "Try again or contact support",
}


class ErrorResponse(BaseModel):
    """Standard error envelope returned for domain failures."""

    model_config = ConfigDict(strict=True)

    success: bool = False
    error_code: ErrorCode
    message: str
    recovery: str
    details: Optional[dict[str, str]] = None

    @classmethod
    def from_code(
        cls,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ) -> "ErrorResponse":
        """Create an ErrorResponse from an error code.

        Args:
            code: The error code
            details: Optional additional context about the error

        Returns:
            An ErrorResponse with the message and recovery hint for the code.
        """
        return cls(
            error_code=code,
            message=ERROR_MESSAGES[code],
            recovery=ERROR_RECOVERY[code],
            details=details,
        )


class CampreservError(Exception):
    """Exception raised by domain services."""

    def __init__(
        self,
        code: ErrorCode,
        details: Optional[dict[str, str]] = None,
    ):
        self.code = code
        self.message = ERROR_MESSAGES[code]
        self.recovery = ERROR_RECOVERY[code]
        self.details = details
        super().__init__(self.message)

    def to_error_response(self) -> ErrorResponse:
        """Convert this exception to an ErrorResponse body."""
        return ErrorResponse.from_code(self.code, self.details)


# Stripe error code to user-friendly message mapping
STRIPE_ERROR_MESSAGES: dict[str, str] = {
    "card_declined": "The card was declined. Please try a different card.",
    "expired_card": "The card has expired. Please use a different card.",
    "insufficient_funds": "The card has insufficient funds. Please try a different card.",
    "incorrect_cvc": "The security code (CVC) is incorrect. Please check and try again.",
    "incorrect_number": "The card number is incorrect. Please check and try again.",
    "invalid_expiry_month": "The expiration month is invalid. Please check and try again.",
    "invalid_expiry_year": "The expiration year is invalid. Please check and try again.",
    "processing_error": "A processing error occurred. Please try again.",
    "rate_limit": "Too many requests. Please wait a moment and try again.",
    "generic_decline": "The card was declined. Please try a different card.",
}


def get_user_friendly_stripe_message(
    stripe_error_code: Optional[str],
    default_message: str = "Payment could not be processed. Please try again.",
) -> str:
    """Get a user-friendly message for a Stripe error code.

    Args:
        stripe_error_code: The Stripe error code (e.g., 'card_declined').
        default_message: Message to use if error code is unknown.

    Returns:
        User-friendly error message.
    """
    if stripe_error_code and stripe_error_code in STRIPE_ERROR_MESSAGES:
        return STRIPE_ERROR_MESSAGES[stripe_error_code]
    return default_message
