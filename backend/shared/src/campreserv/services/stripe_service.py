"""Stripe service for card payments, refunds, payouts and webhooks.

Provides integration with Stripe using the v8+ StripeClient pattern.
Retrieves API keys from SSM Parameter Store.
"""

import hashlib
import os
from functools import lru_cache
from typing import Any

import stripe
from stripe import StripeClient

from campreserv.utils.logging import get_logger

from .ssm_service import SSMServiceError, get_ssm_service, parameter_path

logger = get_logger(__name__)


class StripeServiceError(Exception):
    """Raised when a Stripe operation fails."""

    def __init__(self, message: str, stripe_error_code: str | None = None) -> None:
        """Initialize with message and optional Stripe error code.

        Args:
            message: Human-readable error message.
            stripe_error_code: Stripe-specific error code if available.
        """
        super().__init__(message)
        self.stripe_error_code = stripe_error_code


class StripeService:
    """Service for Stripe operations.

    Handles:
    - PaymentIntent creation for card payments at the desk
    - Refunds against a PaymentIntent
    - Payout balance transaction listing for reconciliation
    - Webhook signature validation

    Usage:
        stripe_svc = get_stripe_service()
        intent = stripe_svc.create_payment_intent(
            reservation_id="RES-2026-4F7A1C",
            payment_id="PAY-3F9A0B1C2D4E",
            amount_cents=19500,
            currency="USD",
        )
    """

    def __init__(self, environment: str | None = None) -> None:
        """Initialize Stripe service with credentials from SSM.

        Args:
            environment: Environment name (dev, prod). Defaults to ENVIRONMENT env var.
        """
        self._environment = environment or os.environ.get("ENVIRONMENT", "dev")
        self._ssm = get_ssm_service()
        self._client: StripeClient | None = None
        self._webhook_secret: str | None = None

    def _get_client(self) -> StripeClient:
        """Get or create the Stripe client (lazy initialization).

        Raises:
            StripeServiceError: If credentials cannot be retrieved.
        """
        if self._client is None:
            try:
                secret_key = self._ssm.get_parameter(
                    parameter_path("stripe/secret_key", self._environment)
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to initialize Stripe client: {e}") from e
            self._client = StripeClient(secret_key)
            logger.info("Stripe client initialized for environment: %s", self._environment)
        return self._client

    def _get_webhook_secret(self) -> str:
        if self._webhook_secret is None:
            try:
                self._webhook_secret = self._ssm.get_parameter(
                    parameter_path("stripe/webhook_secret", self._environment)
                )
            except SSMServiceError as e:
                raise StripeServiceError(f"Failed to get webhook secret: {e}") from e
        return self._webhook_secret

    def _wrap(self, action: str, e: stripe.StripeError) -> StripeServiceError:
        error_code = getattr(e, "code", None)
        logger.error("Stripe %s failed: %s (code: %s)", action, str(e), error_code)
        return StripeServiceError(f"Failed to {action}: {e}", stripe_error_code=error_code)

    def create_payment_intent(
        self,
        *,
        reservation_id: str,
        payment_id: str,
        amount_cents: int,
        currency: str,
        campground_id: str | None = None,
        description: str | None = None,
    ) -> dict[str, Any]:
        """Create a PaymentIntent for a card payment.

        The payment ID is the idempotency key, so retries reuse the intent.

        Returns:
            Dict with payment_intent_id, client_secret and status

        Raises:
            StripeServiceError: If creation fails.
        """
        client = self._get_client()
        metadata = {"reservation_id": reservation_id, "payment_id": payment_id}
        if campground_id:
            metadata["campground_id"] = campground_id

        params: dict[str, Any] = {
            "amount": amount_cents,
            "currency": currency.lower(),
            "metadata": metadata,
            "automatic_payment_methods": {"enabled": True},
        }
        if description:
            params["description"] = description

        try:
            logger.info(
                "Creating PaymentIntent for reservation %s, amount %d cents",
                reservation_id,
                amount_cents,
            )
            intent = client.payment_intents.create(
                params=params,
                options={"idempotency_key": f"payment_{payment_id}"},
            )
        except stripe.StripeError as e:
            raise self._wrap("create payment intent", e) from e

        return {
            "payment_intent_id": intent.id,
            "client_secret": intent.client_secret,
            "status": intent.status,
        }

    def create_refund(
        self,
        *,
        payment_intent_id: str,
        amount_cents: int | None = None,
        reason: str | None = None,
    ) -> dict[str, Any]:
        """Create a refund for a payment.

        Args:
            payment_intent_id: Stripe PaymentIntent ID (pi_xxx).
            amount_cents: Refund amount in cents. If None, full refund.
            reason: Reason for refund (for records).

        Returns:
            Dict with refund_id, amount and status

        Raises:
            StripeServiceError: If refund creation fails.
        """
        client = self._get_client()

        params: dict[str, Any] = {"payment_intent": payment_intent_id}
        if amount_cents is not None:
            params["amount"] = amount_cents
        if reason:
            params["metadata"] = {"reason": reason}

        try:
            logger.info(
                "Creating refund for PaymentIntent %s, amount %s cents",
                payment_intent_id,
                amount_cents or "full",
            )
            refund = client.refunds.create(params=params)
        except stripe.StripeError as e:
            raise self._wrap("create refund", e) from e

        logger.info("Refund created: %s for PaymentIntent %s", refund.id, payment_intent_id)
        return {"refund_id": refund.id, "amount": refund.amount, "status": refund.status}

    def list_payout_balance_transactions(self, payout_id: str) -> list[dict[str, Any]]:
        """List the balance transactions settled by a payout.

        Returns:
            Dicts with id, type, amount, fee, currency, source and payment_intent

        Raises:
            StripeServiceError: If listing fails.
        """
        client = self._get_client()
        try:
            page = client.balance_transactions.list(
                params={"payout": payout_id, "limit": 100, "expand": ["data.source"]}
            )
            transactions = []
            for tx in page.auto_paging_iter():
                source = getattr(tx, "source", None)
                payment_intent = None
                if source is not None and not isinstance(source, str):
                    # expanded charge/refund object
                    payment_intent = getattr(source, "payment_intent", None)
                    source = getattr(source, "id", None)
                transactions.append(
                    {
                        "id": tx.id,
                        "type": tx.type,
                        "amount": tx.amount,
                        "fee": getattr(tx, "fee", 0) or 0,
                        "currency": tx.currency,
                        "source": source,
                        "payment_intent": payment_intent,
                    }
                )
        except stripe.StripeError as e:
            raise self._wrap("list payout transactions", e) from e

        logger.info("Fetched %d balance transactions for payout %s", len(transactions), payout_id)
        return transactions

    def verify_webhook_signature(self, payload: bytes, signature: str) -> dict[str, Any]:
        """Verify a webhook signature and parse the event.

        Raises:
            StripeServiceError: If signature is invalid.
        """
        webhook_secret = self._get_webhook_secret()

        try:
            event = stripe.Webhook.construct_event(payload, signature, webhook_secret)
        except (stripe.SignatureVerificationError, ValueError) as e:
            logger.warning("Invalid webhook signature: %s", str(e))
            raise StripeServiceError("Invalid webhook signature") from e

        logger.info("Webhook signature verified for event: %s", event["id"])
        return event.to_dict() if hasattr(event, "to_dict") else dict(event)

    @staticmethod
    def compute_payload_hash(payload: bytes) -> str:
        """SHA-256 of a webhook payload, stored for auditing."""
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_stripe_service() -> StripeService:
    """Get the shared StripeService instance."""
    return StripeService()
