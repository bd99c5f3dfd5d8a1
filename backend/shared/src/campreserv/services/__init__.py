"""Backend services for the campground reservation platform."""

from .availability import AvailabilityService
from .booking import BookingService
from .campgrounds import CampgroundService
from .cancellation_policy import CancellationPolicyService
from .disputes import DisputeService
from .dynamodb import DynamoDBService
from .fx import CurrencyService, PortfolioService
from .guests import GuestService
from .help import HelpService
from .holds import HoldService
from .ledger import LedgerService
from .payment_service import PaymentService
from .payouts import PayoutService
from .preferences import PreferencesService
from .pricing import QuoteService
from .reservation_store import ReservationStore
from .ssm_service import SSMService, SSMServiceError, get_ssm_service
from .stripe_service import StripeService, StripeServiceError, get_stripe_service
from .webhook_handler import WebhookHandler

__all__ = [
    "DynamoDBService",
    "AvailabilityService",
    "BookingService",
    "CampgroundService",
    "CancellationPolicyService",
    "CurrencyService",
    "DisputeService",
    "GuestService",
    "HelpService",
    "HoldService",
    "LedgerService",
    "PaymentService",
    "PayoutService",
    "PortfolioService",
    "PreferencesService",
    "QuoteService",
    "ReservationStore",
    "SSMService",
    "SSMServiceError",
    "get_ssm_service",
    "StripeService",
    "StripeServiceError",
    "get_stripe_service",
    "WebhookHandler",
]
