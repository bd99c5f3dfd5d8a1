"""Pydantic models for campreserv data entities."""

from .booking_draft import (
    BookingDraft,
    BookingDraftSummary,
    DraftCampground,
    DraftSite,
    DraftSiteClass,
)
from .campground import (
    BlackoutDate,
    Campground,
    CancellationRule,
    MaintenanceTicket,
    Site,
    SiteClass,
    SiteWithStatus,
)
from .dispute import Dispute
from .enums import (
    RV_RIG_TYPES,
    CardMode,
    DepositRule,
    DisputeStatus,
    FeeType,
    HoldStatus,
    LedgerDirection,
    PaymentMethod,
    PaymentStatus,
    PayoutStatus,
    ReconStatus,
    ReservationStatus,
    RigType,
    SiteStatus,
    SiteType,
    TransactionStatus,
)
from .errors import (
    ERROR_MESSAGES,
    ERROR_RECOVERY,
    CampreservError,
    ErrorCode,
    ErrorResponse,
    get_user_friendly_stripe_message,
)
from .fx import (
    ConversionResult,
    CurrencyTaxConfig,
    FxRate,
    Portfolio,
    PortfolioPark,
    PortfolioParkMetrics,
    PortfolioReport,
    PortfolioReportRow,
    PortfolioReportView,
    PortfolioRollup,
)
from .guest import Guest, GuestMatch
from .help import HelpLink, HelpSearchResult, HelpState, HelpTopic
from .hold import Hold
from .payment import LedgerEntry, Payment, PaymentResult
from .payout import Payout, PayoutDetail, PayoutLine, PayoutReconSummary
from .pricing import PricingRule, Quote, SeasonalRate
from .reservation import (
    CancellationResult,
    DepositCalculation,
    Reservation,
    ReservationCreate,
)
from .stripe_webhook import StripeWebhookEvent

__all__ = [
    # Enums
    "RV_RIG_TYPES",
    "CardMode",
    "DepositRule",
    "DisputeStatus",
    "FeeType",
    "HoldStatus",
    "LedgerDirection",
    "PaymentMethod",
    "PaymentStatus",
    "PayoutStatus",
    "ReconStatus",
    "ReservationStatus",
    "RigType",
    "SiteStatus",
    "SiteType",
    "TransactionStatus",
    # Campground
    "BlackoutDate",
    "Campground",
    "CancellationRule",
    "MaintenanceTicket",
    "Site",
    "SiteClass",
    "SiteWithStatus",
    # Guest
    "Guest",
    "GuestMatch",
    # Reservation
    "CancellationResult",
    "DepositCalculation",
    "Reservation",
    "ReservationCreate",
    "Hold",
    # Pricing
    "PricingRule",
    "Quote",
    "SeasonalRate",
    # Booking draft
    "BookingDraft",
    "BookingDraftSummary",
    "DraftCampground",
    "DraftSite",
    "DraftSiteClass",
    # Payments
    "LedgerEntry",
    "Payment",
    "PaymentResult",
    "Payout",
    "PayoutDetail",
    "PayoutLine",
    "PayoutReconSummary",
    "Dispute",
    "StripeWebhookEvent",
    # FX
    "ConversionResult",
    "CurrencyTaxConfig",
    "FxRate",
    "Portfolio",
    "PortfolioPark",
    "PortfolioParkMetrics",
    "PortfolioReport",
    "PortfolioReportRow",
    "PortfolioReportView",
    "PortfolioRollup",
    # Help
    "HelpLink",
    "HelpSearchResult",
    "HelpState",
    "HelpTopic",
    # Errors
    "ERROR_MESSAGES",
    "ERROR_RECOVERY",
    "CampreservError",
    "ErrorCode",
    "ErrorResponse",
    "get_user_friendly_stripe_message",
]
