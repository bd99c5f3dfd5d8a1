"""Payment endpoints and the booking draft summary."""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from campreserv.models import BookingDraft, BookingDraftSummary, Payment, PaymentResult
from campreserv.services import booking_draft
from campreserv.services.booking import BookingService
from campreserv.services.payment_service import PaymentService
from campreserv_api.dependencies import get_booking_service, get_payment_service
from campreserv_api.models.requests import PaymentRequest

router = APIRouter(tags=["payments"])


@router.post(
    "/reservations/{reservation_id}/payments",
    summary="Take a payment",
    description="""
Record a cash, check or folio payment, or start a card payment.

**Notes:**
- Cash with `cash_received_cents` below the amount is rejected; change due is returned
- Card payments return a Stripe `client_secret`; the reservation is credited
  when Stripe confirms the PaymentIntent by webhook
""",
    response_model=PaymentResult,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid amount, short cash or reservation not payable"},
        404: {"description": "Reservation not found"},
        502: {"description": "Stripe unavailable"},
    },
)
async def record_payment(
    reservation_id: str,
    body: PaymentRequest,
    service: PaymentService = Depends(get_payment_service),
) -> PaymentResult:
    return service.record_payment(
        reservation_id,
        body.method,
        body.amount_cents,
        cash_received_cents=body.cash_received_cents,
        note=body.note,
    )


@router.get(
    "/reservations/{reservation_id}/payments",
    summary="List payments",
    description="Payments and refunds of a reservation, oldest first.",
    response_model=list[Payment],
)
async def list_payments(
    reservation_id: str,
    booking: BookingService = Depends(get_booking_service),
    service: PaymentService = Depends(get_payment_service),
) -> list[Payment]:
    booking.get_reservation(reservation_id)
    return service.get_payments_for_reservation(reservation_id)


@router.post(
    "/booking-draft/summary",
    summary="Summarize a booking draft",
    description="Derived totals, cash change, readiness and override state of the booking form.",
    response_model=BookingDraftSummary,
)
async def summarize_booking_draft(body: BookingDraft) -> BookingDraftSummary:
    return booking_draft.summarize(body)
