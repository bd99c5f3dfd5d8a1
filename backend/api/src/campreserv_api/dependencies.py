"""FastAPI dependency injection providers for shared services.

Services are lazily instantiated and cached with @lru_cache so every request
shares one instance per process.

Usage in routes:
    from campreserv_api.dependencies import get_booking_service

    @router.get("/reservations/{reservation_id}")
    async def get_reservation(
        reservation_id: str,
        service: BookingService = Depends(get_booking_service),
    ):
        ...

Service Dependency Graph:
    DynamoDBService (singleton via get_dynamodb_service)
        ├── CampgroundService
        │       ├── CancellationPolicyService
        │       └── QuoteService
        ├── ReservationStore
        │       ├── GuestService
        │       └── AvailabilityService
        │               └── HoldService
        ├── LedgerService
        │       └── PaymentService
        │               ├── BookingService
        │               ├── PayoutService
        │               └── DisputeService
        │                       └── WebhookHandler
        ├── CurrencyService
        │       └── PortfolioService
        └── PreferencesService
                └── HelpService

Testing:
    Use reset_services() to clear cached instances between tests.
"""

from functools import lru_cache

from fastapi import Header, HTTPException
from starlette.status import HTTP_400_BAD_REQUEST

from campreserv.services.availability import AvailabilityService
from campreserv.services.booking import BookingService
from campreserv.services.campgrounds import CampgroundService
from campreserv.services.cancellation_policy import CancellationPolicyService
from campreserv.services.disputes import DisputeService
from campreserv.services.dynamodb import get_dynamodb_service
from campreserv.services.fx import CurrencyService, PortfolioService
from campreserv.services.guests import GuestService
from campreserv.services.help import HelpService
from campreserv.services.holds import HoldService
from campreserv.services.ledger import LedgerService
from campreserv.services.payment_service import PaymentService
from campreserv.services.payouts import PayoutService
from campreserv.services.preferences import PreferencesService
from campreserv.services.pricing import QuoteService
from campreserv.services.reservation_store import ReservationStore
from campreserv.services.webhook_handler import WebhookHandler


@lru_cache
def get_campground_service() -> CampgroundService:
    return CampgroundService(db=get_dynamodb_service())


@lru_cache
def get_reservation_store() -> ReservationStore:
    return ReservationStore(db=get_dynamodb_service())


@lru_cache
def get_guest_service() -> GuestService:
    return GuestService(db=get_dynamodb_service(), reservations=get_reservation_store())


@lru_cache
def get_availability_service() -> AvailabilityService:
    return AvailabilityService(
        db=get_dynamodb_service(),
        campgrounds=get_campground_service(),
        reservations=get_reservation_store(),
    )


@lru_cache
def get_hold_service() -> HoldService:
    return HoldService(
        db=get_dynamodb_service(),
        campgrounds=get_campground_service(),
        availability=get_availability_service(),
    )


@lru_cache
def get_quote_service() -> QuoteService:
    return QuoteService(db=get_dynamodb_service(), campgrounds=get_campground_service())


@lru_cache
def get_cancellation_policy_service() -> CancellationPolicyService:
    return CancellationPolicyService(campgrounds=get_campground_service())


@lru_cache
def get_ledger_service() -> LedgerService:
    return LedgerService(db=get_dynamodb_service())


@lru_cache
def get_payment_service() -> PaymentService:
    """Get cached PaymentService; Stripe is resolved only for card payments."""
    return PaymentService(
        db=get_dynamodb_service(),
        reservations=get_reservation_store(),
        ledger=get_ledger_service(),
        campgrounds=get_campground_service(),
    )


@lru_cache
def get_booking_service() -> BookingService:
    return BookingService(
        reservations=get_reservation_store(),
        campgrounds=get_campground_service(),
        guests=get_guest_service(),
        availability=get_availability_service(),
        holds=get_hold_service(),
        quotes=get_quote_service(),
        payments=get_payment_service(),
    )


@lru_cache
def get_payout_service() -> PayoutService:
    return PayoutService(
        db=get_dynamodb_service(),
        ledger=get_ledger_service(),
        payments=get_payment_service(),
    )


@lru_cache
def get_dispute_service() -> DisputeService:
    return DisputeService(
        db=get_dynamodb_service(),
        reservations=get_reservation_store(),
        payments=get_payment_service(),
        ledger=get_ledger_service(),
    )


@lru_cache
def get_webhook_handler() -> WebhookHandler:
    return WebhookHandler(
        db=get_dynamodb_service(),
        payments=get_payment_service(),
        payouts=get_payout_service(),
        disputes=get_dispute_service(),
    )


@lru_cache
def get_currency_service() -> CurrencyService:
    return CurrencyService(db=get_dynamodb_service())


@lru_cache
def get_portfolio_service() -> PortfolioService:
    return PortfolioService(db=get_dynamodb_service(), currency=get_currency_service())


@lru_cache
def get_preferences_service() -> PreferencesService:
    return PreferencesService(db=get_dynamodb_service())


@lru_cache
def get_help_service() -> HelpService:
    return HelpService(preferences=get_preferences_service())


def get_user_id(x_user_id: str | None = Header(default=None)) -> str:
    """Require the X-User-Id header that scopes preferences and help state."""
    if not x_user_id:
        raise HTTPException(status_code=HTTP_400_BAD_REQUEST, detail="X-User-Id header required")
    return x_user_id


def reset_services() -> None:
    """Clear all cached service instances.

    Call this in test fixtures to ensure clean state between tests.
    Also resets the underlying DynamoDB singleton.
    """
    from campreserv.services.dynamodb import reset_dynamodb_service

    for getter in (
        get_campground_service,
        get_reservation_store,
        get_guest_service,
        get_availability_service,
        get_hold_service,
        get_quote_service,
        get_cancellation_policy_service,
        get_ledger_service,
        get_payment_service,
        get_booking_service,
        get_payout_service,
        get_dispute_service,
        get_webhook_handler,
        get_currency_service,
        get_portfolio_service,
        get_preferences_service,
        get_help_service,
    ):
        getter.cache_clear()

    reset_dynamodb_service()
