"""Fixtures for API route tests.

Routes run against the seeded moto tables. Anything that would reach Stripe
is swapped for the services built on the fake Stripe client.
"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient

from campreserv.services.stripe_service import get_stripe_service
from campreserv_api.dependencies import (
    get_payment_service,
    get_webhook_handler,
    reset_services,
)
from campreserv_api.main import app


@pytest.fixture
def client(seeded, payment_service, webhook_handler, fake_stripe) -> Generator[TestClient, None, None]:
    """Test client over the seeded campground."""
    reset_services()
    app.dependency_overrides[get_payment_service] = lambda: payment_service
    app.dependency_overrides[get_webhook_handler] = lambda: webhook_handler
    app.dependency_overrides[get_stripe_service] = lambda: fake_stripe
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
        reset_services()
