"""Webhook endpoints for Stripe.

These endpoints do NOT require authentication; payloads are verified with the
Stripe webhook signing secret.
"""

from fastapi import APIRouter, Depends, Request

from campreserv.models import CampreservError, ErrorCode, ErrorResponse
from campreserv.services.stripe_service import StripeService, StripeServiceError, get_stripe_service
from campreserv.services.webhook_handler import WebhookHandler
from campreserv.utils.logging import get_logger, log_webhook_event
from campreserv_api.dependencies import get_webhook_handler
from campreserv_api.models.common import WebhookResponse

logger = get_logger(__name__)

router = APIRouter(tags=["webhooks"])


@router.post(
    "/webhooks/stripe",
    summary="Receive Stripe webhook events",
    description="""
Handles:
- payment_intent.succeeded: completes the card payment and credits the reservation
- payout.created / updated / paid / failed: upserts the payout and its lines
- charge.dispute.created / updated / closed: upserts the dispute; a new
  dispute takes the disputed amount off the reservation

**Idempotent**: an event ID already handled returns 200 with 'duplicate'.
Events that errored are logged and may be retried by Stripe.
""",
    response_model=WebhookResponse,
    responses={
        200: {"description": "Event received and processed (or acknowledged)"},
        400: {"description": "Invalid signature or missing header", "model": ErrorResponse},
    },
)
async def handle_stripe_webhook(
    request: Request,
    stripe_service: StripeService = Depends(get_stripe_service),
    handler: WebhookHandler = Depends(get_webhook_handler),
) -> WebhookResponse:
    signature = request.headers.get("Stripe-Signature")
    if not signature:
        logger.warning("Webhook request missing Stripe-Signature header")
        raise CampreservError(
            ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"message": "Missing Stripe-Signature header"},
        )

    payload = await request.body()
    try:
        event = stripe_service.verify_webhook_signature(payload, signature)
    except StripeServiceError as e:
        raise CampreservError(
            ErrorCode.INVALID_WEBHOOK_SIGNATURE,
            details={"message": "Invalid webhook signature"},
        ) from e

    event_id = event.get("id")
    event_type = event.get("type")
    log_webhook_event(logger, event_type, event_id, result="received")

    result, error = handler.handle_event(event, StripeService.compute_payload_hash(payload))
    return WebhookResponse(
        received=True,
        event_id=event_id,
        event_type=event_type,
        processing_result=result,
        message=error,
    )
