"""Pytest configuration and fixtures for campreserv backend tests.

This module provides reusable fixtures for testing:
- DynamoDB mocking with moto (every table and GSI the services use)
- A seeded campground with site classes, sites and guests
- Services wired together the way the API wires them, with Stripe mocked
"""

import datetime as dt
import os
from typing import Any, Generator
from unittest.mock import MagicMock

import boto3
import pytest
from moto import mock_aws

# === Environment Setup ===

# Set environment variables for testing before imports
os.environ.setdefault("AWS_DEFAULT_REGION", "us-east-1")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ["DYNAMODB_TABLE_PREFIX"] = "test-campreserv"

if not os.environ.get("AWS_PROFILE") and not os.environ.get("AWS_ACCESS_KEY_ID"):
    os.environ.setdefault("AWS_ACCESS_KEY_ID", "testing")
    os.environ.setdefault("AWS_SECRET_ACCESS_KEY", "testing")

from campreserv.models import ReservationCreate  # noqa: E402
from campreserv.services.availability import AvailabilityService  # noqa: E402
from campreserv.services.booking import BookingService  # noqa: E402
from campreserv.services.campgrounds import CampgroundService  # noqa: E402
from campreserv.services.cancellation_policy import CancellationPolicyService  # noqa: E402
from campreserv.services.disputes import DisputeService  # noqa: E402
from campreserv.services.dynamodb import DynamoDBService, reset_dynamodb_service  # noqa: E402
from campreserv.services.fx import CurrencyService, PortfolioService  # noqa: E402
from campreserv.services.guests import GuestService  # noqa: E402
from campreserv.services.holds import HoldService  # noqa: E402
from campreserv.services.ledger import LedgerService  # noqa: E402
from campreserv.services.payment_service import PaymentService  # noqa: E402
from campreserv.services.payouts import PayoutService  # noqa: E402
from campreserv.services.preferences import PreferencesService  # noqa: E402
from campreserv.services.pricing import QuoteService  # noqa: E402
from campreserv.services.reservation_store import ReservationStore  # noqa: E402
from campreserv.services.webhook_handler import WebhookHandler  # noqa: E402

TABLE_PREFIX = "test-campreserv"
CAMPGROUND_ID = "cg-test"
GUEST_ID = "guest-1"

# Wednesday; the stay covers Wed, Thu and Fri nights
ARRIVAL = dt.date(2030, 7, 10)
DEPARTURE = dt.date(2030, 7, 13)

# table -> (hash key, range key, extra GSI hash keys)
TABLES: dict[str, tuple[str, str | None, list[str]]] = {
    "campgrounds": ("campground_id", None, []),
    "site-classes": ("site_class_id", None, ["campground_id"]),
    "sites": ("site_id", None, ["campground_id"]),
    "guests": ("guest_id", None, []),
    "reservations": ("reservation_id", None, ["campground_id", "guest_id"]),
    "holds": ("hold_id", None, ["campground_id"]),
    "blackout-dates": ("blackout_id", None, ["campground_id"]),
    "maintenance-tickets": ("ticket_id", None, ["campground_id"]),
    "seasonal-rates": ("rate_id", None, ["campground_id"]),
    "pricing-rules": ("rule_id", None, ["campground_id"]),
    "payments": ("payment_id", None, ["reservation_id"]),
    "ledger-entries": ("entry_id", None, ["reservation_id"]),
    "payouts": ("payout_id", None, ["campground_id"]),
    "payout-lines": ("line_id", None, ["payout_id"]),
    "disputes": ("dispute_id", None, ["campground_id", "stripe_dispute_id"]),
    "stripe-webhook-events": ("event_id", None, []),
    "currency-config": ("config_id", None, []),
    "portfolios": ("portfolio_id", None, []),
    "user-preferences": ("user_id", "pref_key", []),
}


def create_tables(client: Any) -> None:
    """Create all required DynamoDB tables for testing."""
    for table, (hash_key, range_key, gsi_keys) in TABLES.items():
        key_schema = [{"AttributeName": hash_key, "KeyType": "HASH"}]
        attributes = {hash_key}
        if range_key:
            key_schema.append({"AttributeName": range_key, "KeyType": "RANGE"})
            attributes.add(range_key)
        attributes.update(gsi_keys)

        config: dict[str, Any] = {
            "TableName": f"{TABLE_PREFIX}-{table}",
            "KeySchema": key_schema,
            "AttributeDefinitions": [
                {"AttributeName": name, "AttributeType": "S"} for name in sorted(attributes)
            ],
            "BillingMode": "PAY_PER_REQUEST",
        }
        if gsi_keys:
            config["GlobalSecondaryIndexes"] = [
                {
                    "IndexName": f"{key}-index",
                    "KeySchema": [{"AttributeName": key, "KeyType": "HASH"}],
                    "Projection": {"ProjectionType": "ALL"},
                }
                for key in gsi_keys
            ]
        client.create_table(**config)


# === DynamoDB Fixtures ===


@pytest.fixture(autouse=True)
def reset_dynamodb_singleton() -> Generator[None, None, None]:
    """Reset DynamoDB singleton before and after each test.

    This ensures tests using mock_aws get a fresh service instance
    inside the mock context rather than reusing a singleton from
    a previous test or non-mocked context.
    """
    reset_dynamodb_service()
    yield
    reset_dynamodb_service()


@pytest.fixture
def aws_credentials() -> None:
    """Mocked AWS Credentials for moto."""
    if not os.environ.get("AWS_PROFILE"):
        os.environ["AWS_ACCESS_KEY_ID"] = "testing"
        os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
        os.environ["AWS_SECURITY_TOKEN"] = "testing"
        os.environ["AWS_SESSION_TOKEN"] = "testing"
    os.environ["AWS_DEFAULT_REGION"] = "us-east-1"


@pytest.fixture
def dynamodb_tables(aws_credentials: None) -> Generator[None, None, None]:
    """Mocked DynamoDB with every campreserv table created."""
    with mock_aws():
        create_tables(boto3.client("dynamodb", region_name="us-east-1"))
        yield


@pytest.fixture
def db(dynamodb_tables: None) -> DynamoDBService:
    return DynamoDBService()


# === Sample Data Fixtures ===


def sample_campground_item(**overrides: Any) -> dict[str, Any]:
    item = {
        "campground_id": CAMPGROUND_ID,
        "name": "Test Pines",
        "slug": "test-pines",
        "currency": "USD",
        "site_selection_fee_cents": 1500,
        "deposit_rule": "first_night",
        "cancellation_rules": [
            {"id": "moderate-1", "days_before_arrival": 7, "fee_type": "flat",
             "fee_amount": 0, "applies_to": []},
            {"id": "moderate-2", "days_before_arrival": 0, "fee_type": "percent",
             "fee_amount": 50, "applies_to": []},
        ],
        "created_at": "2026-01-01T00:00:00+00:00",
        "updated_at": "2026-01-01T00:00:00+00:00",
    }
    item.update(overrides)
    return item


@pytest.fixture
def seeded(db: DynamoDBService) -> DynamoDBService:
    """One campground with RV and tent classes, three sites and two guests.

    site-a1: RV, 35 ft (from its class), accessible, fire ring and sewer
    site-a2: RV, 40 ft site override, fire ring
    site-t1: tent, max 4 people
    """
    db.put_item("campgrounds", sample_campground_item())

    db.put_item(
        "site-classes",
        {"site_class_id": "sc-rv", "campground_id": CAMPGROUND_ID, "name": "Full Hookup",
         "default_rate": 5000, "site_type": "rv", "max_occupancy": 6, "rig_max_length": 35,
         "is_active": True},
    )
    db.put_item(
        "site-classes",
        {"site_class_id": "sc-tent", "campground_id": CAMPGROUND_ID, "name": "Tent",
         "default_rate": 2500, "site_type": "tent", "max_occupancy": 4, "is_active": True},
    )

    db.put_item(
        "sites",
        {"site_id": "site-a1", "campground_id": CAMPGROUND_ID, "name": "A1", "site_number": "A1",
         "site_type": "rv", "site_class_id": "sc-rv", "max_occupancy": 6, "accessible": True,
         "amenity_tags": ["fire_ring", "sewer"], "is_active": True},
    )
    db.put_item(
        "sites",
        {"site_id": "site-a2", "campground_id": CAMPGROUND_ID, "name": "A2", "site_number": "A2",
         "site_type": "rv", "site_class_id": "sc-rv", "max_occupancy": 6, "rig_max_length": 40,
         "accessible": False, "amenity_tags": ["fire_ring"], "is_active": True},
    )
    db.put_item(
        "sites",
        {"site_id": "site-t1", "campground_id": CAMPGROUND_ID, "name": "T1", "site_number": "T1",
         "site_type": "tent", "site_class_id": "sc-tent", "max_occupancy": 4,
         "accessible": False, "amenity_tags": [], "is_active": True},
    )

    db.put_item(
        "guests",
        {"guest_id": GUEST_ID, "primary_first_name": "Jane", "primary_last_name": "Camper",
         "email": "jane@example.com", "phone": "555-0101",
         "created_at": "2026-01-01T00:00:00+00:00"},
    )
    db.put_item(
        "guests",
        {"guest_id": "guest-2", "primary_first_name": "Sam", "primary_last_name": "Okafor",
         "email": "sam@example.com", "phone": "555-0102",
         "created_at": "2026-01-01T00:00:00+00:00"},
    )
    return db


# === Service Fixtures ===


@pytest.fixture
def fake_stripe() -> MagicMock:
    """StripeService stand-in; no network or SSM access."""
    stripe_service = MagicMock()
    stripe_service.create_payment_intent.return_value = {
        "payment_intent_id": "pi_test_1",
        "client_secret": "pi_test_1_secret_abc",
        "status": "requires_payment_method",
    }
    stripe_service.create_refund.return_value = {
        "refund_id": "re_test_1",
        "amount": 0,
        "status": "succeeded",
    }
    stripe_service.list_payout_balance_transactions.return_value = []
    return stripe_service


@pytest.fixture
def campground_service(seeded: DynamoDBService) -> CampgroundService:
    return CampgroundService(seeded)


@pytest.fixture
def reservation_store(seeded: DynamoDBService) -> ReservationStore:
    return ReservationStore(seeded)


@pytest.fixture
def guest_service(seeded: DynamoDBService, reservation_store: ReservationStore) -> GuestService:
    return GuestService(seeded, reservation_store)


@pytest.fixture
def availability_service(
    seeded: DynamoDBService,
    campground_service: CampgroundService,
    reservation_store: ReservationStore,
) -> AvailabilityService:
    return AvailabilityService(seeded, campground_service, reservation_store)


@pytest.fixture
def hold_service(
    seeded: DynamoDBService,
    campground_service: CampgroundService,
    availability_service: AvailabilityService,
) -> HoldService:
    return HoldService(seeded, campground_service, availability_service)


@pytest.fixture
def quote_service(seeded: DynamoDBService, campground_service: CampgroundService) -> QuoteService:
    return QuoteService(seeded, campground_service)


@pytest.fixture
def policy_service(campground_service: CampgroundService) -> CancellationPolicyService:
    return CancellationPolicyService(campground_service)


@pytest.fixture
def ledger_service(seeded: DynamoDBService) -> LedgerService:
    return LedgerService(seeded)


@pytest.fixture
def payment_service(
    seeded: DynamoDBService,
    reservation_store: ReservationStore,
    ledger_service: LedgerService,
    campground_service: CampgroundService,
    fake_stripe: MagicMock,
) -> PaymentService:
    return PaymentService(
        seeded,
        reservation_store,
        ledger_service,
        campground_service,
        stripe_provider=lambda: fake_stripe,
    )


@pytest.fixture
def booking_service(
    reservation_store: ReservationStore,
    campground_service: CampgroundService,
    guest_service: GuestService,
    availability_service: AvailabilityService,
    hold_service: HoldService,
    quote_service: QuoteService,
    payment_service: PaymentService,
) -> BookingService:
    return BookingService(
        reservation_store,
        campground_service,
        guest_service,
        availability_service,
        hold_service,
        quote_service,
        payment_service,
    )


@pytest.fixture
def payout_service(
    seeded: DynamoDBService, ledger_service: LedgerService, payment_service: PaymentService
) -> PayoutService:
    return PayoutService(seeded, ledger_service, payment_service)


@pytest.fixture
def dispute_service(
    seeded: DynamoDBService,
    reservation_store: ReservationStore,
    payment_service: PaymentService,
    ledger_service: LedgerService,
) -> DisputeService:
    return DisputeService(seeded, reservation_store, payment_service, ledger_service)


@pytest.fixture
def webhook_handler(
    seeded: DynamoDBService,
    payment_service: PaymentService,
    payout_service: PayoutService,
    dispute_service: DisputeService,
    fake_stripe: MagicMock,
) -> WebhookHandler:
    return WebhookHandler(
        seeded,
        payment_service,
        payout_service,
        dispute_service,
        stripe_provider=lambda: fake_stripe,
    )


@pytest.fixture
def currency_service(db: DynamoDBService) -> CurrencyService:
    return CurrencyService(db)


@pytest.fixture
def portfolio_service(db: DynamoDBService, currency_service: CurrencyService) -> PortfolioService:
    return PortfolioService(db, currency_service)


@pytest.fixture
def preferences_service(db: DynamoDBService) -> PreferencesService:
    return PreferencesService(db)


# === Reservation Fixtures ===


@pytest.fixture
def make_request():
    """Factory for a three-night stay (2030-07-10 to 07-13) on site-a1 for guest-1."""

    def factory(**overrides: Any) -> ReservationCreate:
        data: dict[str, Any] = {
            "campground_id": CAMPGROUND_ID,
            "guest_id": GUEST_ID,
            "site_id": "site-a1",
            "arrival_date": ARRIVAL,
            "departure_date": DEPARTURE,
            "adults": 2,
        }
        data.update(overrides)
        return ReservationCreate(**data)

    return factory


@pytest.fixture
def confirmed_reservation(booking_service: BookingService, make_request):
    """Fully paid cash reservation on site-a1: 3 nights x $50 = $150."""
    return booking_service.create_reservation(
        make_request(paid_amount=15000, payment_method="cash")
    )


@pytest.fixture
def pending_reservation(booking_service: BookingService, make_request):
    """Unpaid reservation on site-a2."""
    return booking_service.create_reservation(make_request(site_id="site-a2"))
