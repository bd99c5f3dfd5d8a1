"""Unit tests for StripeService.

Tests verify the service logic without making actual Stripe API calls.
All Stripe interactions are mocked.

Test categories:
- Initialization and credential retrieval
- create_payment_intent() method
- create_refund() method
- list_payout_balance_transactions() method
- Error handling
"""

from unittest.mock import MagicMock, patch

import pytest
import stripe

from campreserv.services.ssm_service import SSMServiceError
from campreserv.services.stripe_service import (
    StripeService,
    StripeServiceError,
)


# === Test Configuration ===

TEST_SECRET_KEY = "sk_test_abc123xyz"
TEST_WEBHOOK_SECRET = "whsec_test_secret123"
TEST_RESERVATION_ID = "RES-2030-ABC123"
TEST_PAYMENT_ID = "PAY-3F9A0B1C2D4E"


# === Test Fixtures ===


@pytest.fixture
def mock_ssm_service():
    """Mock SSM service for credential retrieval."""
    with patch("campreserv.services.stripe_service.get_ssm_service") as mock_get_ssm:
        mock_ssm = MagicMock()
        mock_ssm.get_parameter.side_effect = lambda param: {
            "/campreserv/dev/stripe/secret_key": TEST_SECRET_KEY,
            "/campreserv/dev/stripe/webhook_secret": TEST_WEBHOOK_SECRET,
        }.get(param, None)
        mock_get_ssm.return_value = mock_ssm
        yield mock_ssm


@pytest.fixture
def stripe_service(mock_ssm_service) -> StripeService:
    """Create StripeService instance with mocked SSM."""
    # Clear any cached instance
    from campreserv.services.stripe_service import get_stripe_service

    get_stripe_service.cache_clear()
    return StripeService(environment="dev")


@pytest.fixture
def mock_stripe_client():
    """Mock Stripe client for API calls."""
    with patch("campreserv.services.stripe_service.StripeClient") as mock_client_class:
        mock_client = MagicMock()
        mock_client_class.return_value = mock_client
        yield mock_client


@pytest.fixture
def mock_intent(mock_stripe_client):
    intent = MagicMock()
    intent.id = "pi_test_456"
    intent.client_secret = "pi_test_456_secret_xyz"
    intent.status = "requires_payment_method"
    mock_stripe_client.payment_intents.create.return_value = intent
    return intent


def create_intent(service: StripeService, **overrides):
    kwargs = {
        "reservation_id": TEST_RESERVATION_ID,
        "payment_id": TEST_PAYMENT_ID,
        "amount_cents": 19500,
        "currency": "USD",
        "campground_id": "cg-test",
    }
    kwargs.update(overrides)
    return service.create_payment_intent(**kwargs)


# === Initialization Tests ===


class TestStripeServiceInitialization:
    """Test service initialization and credential handling."""

    def test_initializes_with_environment(self, mock_ssm_service):
        """Service accepts explicit environment parameter."""
        service = StripeService(environment="prod")
        assert service._environment == "prod"

    def test_defaults_to_dev_environment(self, mock_ssm_service):
        """Service defaults to 'dev' when no environment specified."""
        with patch.dict("os.environ", {}, clear=True):
            service = StripeService()
            assert service._environment == "dev"

    def test_uses_environment_variable(self, mock_ssm_service):
        """Service uses ENVIRONMENT env var when set."""
        with patch.dict("os.environ", {"ENVIRONMENT": "staging"}):
            service = StripeService()
            assert service._environment == "staging"

    def test_client_lazy_initialized(self, stripe_service):
        """Client is not created until first use."""
        assert stripe_service._client is None

    def test_client_built_from_ssm_secret(self, stripe_service):
        with patch("campreserv.services.stripe_service.StripeClient") as mock_client_class:
            stripe_service._get_client()
            stripe_service._get_client()

        mock_client_class.assert_called_once_with(TEST_SECRET_KEY)

    def test_raises_error_when_ssm_fails(self, mock_ssm_service, mock_stripe_client):
        """Raises StripeServiceError when SSM retrieval fails."""
        mock_ssm_service.get_parameter.side_effect = SSMServiceError("SSM error")
        service = StripeService(environment="dev")

        with pytest.raises(StripeServiceError) as exc_info:
            service._get_client()

        assert "Failed to initialize Stripe client" in str(exc_info.value)

    def test_webhook_secret_failure(self, mock_ssm_service):
        mock_ssm_service.get_parameter.side_effect = SSMServiceError("SSM error")
        service = StripeService(environment="dev")

        with pytest.raises(StripeServiceError) as exc_info:
            service.verify_webhook_signature(payload=b"{}", signature="t=1,v1=x")

        assert "Failed to get webhook secret" in str(exc_info.value)


# === create_payment_intent() Tests ===


class TestCreatePaymentIntent:
    """Test PaymentIntent creation for desk card payments."""

    def test_returns_intent_fields(self, stripe_service, mock_intent):
        result = create_intent(stripe_service)

        assert result == {
            "payment_intent_id": "pi_test_456",
            "client_secret": "pi_test_456_secret_xyz",
            "status": "requires_payment_method",
        }

    def test_params_and_metadata(self, stripe_service, mock_stripe_client, mock_intent):
        create_intent(stripe_service, description="Site A1, Jul 10-13")

        params = mock_stripe_client.payment_intents.create.call_args.kwargs["params"]
        assert params["amount"] == 19500
        assert params["currency"] == "usd"
        assert params["description"] == "Site A1, Jul 10-13"
        assert params["automatic_payment_methods"] == {"enabled": True}
        assert params["metadata"] == {
            "reservation_id": TEST_RESERVATION_ID,
            "payment_id": TEST_PAYMENT_ID,
            "campground_id": "cg-test",
        }

    def test_campground_omitted_when_unknown(self, stripe_service, mock_stripe_client, mock_intent):
        create_intent(stripe_service, campground_id=None)

        params = mock_stripe_client.payment_intents.create.call_args.kwargs["params"]
        assert "campground_id" not in params["metadata"]
        assert "description" not in params

    def test_uses_idempotency_key(self, stripe_service, mock_stripe_client, mock_intent):
        """Uses payment_id as idempotency key."""
        create_intent(stripe_service)

        call_kwargs = mock_stripe_client.payment_intents.create.call_args
        assert call_kwargs.kwargs["options"]["idempotency_key"] == f"payment_{TEST_PAYMENT_ID}"

    def test_raises_error_on_stripe_failure(self, stripe_service, mock_stripe_client):
        """Raises StripeServiceError when Stripe API fails."""
        mock_stripe_client.payment_intents.create.side_effect = stripe.StripeError(
            "Card declined"
        )

        with pytest.raises(StripeServiceError) as exc_info:
            create_intent(stripe_service)

        assert "Failed to create payment intent" in str(exc_info.value)

    def test_preserves_stripe_error_code(self, stripe_service, mock_stripe_client):
        """Preserves Stripe error code in exception."""
        error = stripe.StripeError("Card declined")
        error.code = "card_declined"
        mock_stripe_client.payment_intents.create.side_effect = error

        with pytest.raises(StripeServiceError) as exc_info:
            create_intent(stripe_service)

        assert exc_info.value.stripe_error_code == "card_declined"


# === create_refund() Tests ===


class TestCreateRefund:
    """Test refund creation."""

    @pytest.fixture
    def mock_refund(self, mock_stripe_client):
        refund = MagicMock()
        refund.id = "re_test_123"
        refund.amount = 19500
        refund.status = "succeeded"
        mock_stripe_client.refunds.create.return_value = refund
        return refund

    def test_creates_full_refund(self, stripe_service, mock_stripe_client, mock_refund):
        """Creates full refund when amount not specified."""
        result = stripe_service.create_refund(payment_intent_id="pi_test_456")

        assert result == {"refund_id": "re_test_123", "amount": 19500, "status": "succeeded"}

        # Verify amount not included in params (full refund)
        call_kwargs = mock_stripe_client.refunds.create.call_args
        assert call_kwargs.kwargs["params"] == {"payment_intent": "pi_test_456"}

    def test_creates_partial_refund_with_reason(
        self, stripe_service, mock_stripe_client, mock_refund
    ):
        stripe_service.create_refund(
            payment_intent_id="pi_test_456", amount_cents=7500, reason="Cancelled 3 days out"
        )

        params = mock_stripe_client.refunds.create.call_args.kwargs["params"]
        assert params["amount"] == 7500
        assert params["metadata"] == {"reason": "Cancelled 3 days out"}

    def test_raises_error_on_stripe_failure(self, stripe_service, mock_stripe_client):
        mock_stripe_client.refunds.create.side_effect = stripe.StripeError("Already refunded")

        with pytest.raises(StripeServiceError) as exc_info:
            stripe_service.create_refund(payment_intent_id="pi_test_456")

        assert "Failed to create refund" in str(exc_info.value)


# === list_payout_balance_transactions() Tests ===


class TestListPayoutBalanceTransactions:
    """Test payout line retrieval."""

    def _tx(self, tx_id, tx_type, amount, source):
        tx = MagicMock()
        tx.id = tx_id
        tx.type = tx_type
        tx.amount = amount
        tx.fee = 300
        tx.currency = "usd"
        tx.source = source
        return tx

    def test_flattens_expanded_sources(self, stripe_service, mock_stripe_client):
        charge = MagicMock()
        charge.id = "ch_1"
        charge.payment_intent = "pi_1"
        page = MagicMock()
        page.auto_paging_iter.return_value = iter(
            [self._tx("txn_1", "charge", 9700, charge), self._tx("txn_2", "adjustment", -100, "adj_1")]
        )
        mock_stripe_client.balance_transactions.list.return_value = page

        lines = stripe_service.list_payout_balance_transactions("po_1")

        assert lines[0] == {
            "id": "txn_1",
            "type": "charge",
            "amount": 9700,
            "fee": 300,
            "currency": "usd",
            "source": "ch_1",
            "payment_intent": "pi_1",
        }
        assert lines[1]["source"] == "adj_1"
        assert lines[1]["payment_intent"] is None
        params = mock_stripe_client.balance_transactions.list.call_args.kwargs["params"]
        assert params["payout"] == "po_1"

    def test_raises_error_on_stripe_failure(self, stripe_service, mock_stripe_client):
        mock_stripe_client.balance_transactions.list.side_effect = stripe.StripeError("nope")

        with pytest.raises(StripeServiceError) as exc_info:
            stripe_service.list_payout_balance_transactions("po_1")

        assert "Failed to list payout transactions" in str(exc_info.value)


# === Singleton Tests ===


class TestGetStripeService:
    def test_returns_cached_instance(self, mock_ssm_service):
        from campreserv.services.stripe_service import get_stripe_service

        get_stripe_service.cache_clear()
        try:
            assert get_stripe_service() is get_stripe_service()
        finally:
            get_stripe_service.cache_clear()
