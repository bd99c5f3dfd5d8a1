"""Reservation endpoints for booking management."""

from fastapi import APIRouter, Body, Depends, Query
from starlette.status import HTTP_201_CREATED

from campreserv.models import (
    CancellationResult,
    DepositCalculation,
    Reservation,
    ReservationCreate,
    ReservationStatus,
)
from campreserv.services.booking import BookingService
from campreserv_api.dependencies import get_booking_service
from campreserv_api.models.requests import CancelReservationRequest

router = APIRouter(tags=["reservations"])


@router.post(
    "/reservations",
    summary="Create reservation",
    description="""
Create a reservation on a specific site, or on any compatible site of a class.

Validates dates, occupancy, rig fit, accessibility and amenities, checks for
conflicts and prices the stay.

**Notes:**
- A total that differs from the quote needs `override_reason` and `override_approved_by`
- A confirmed reservation must cover the campground deposit
- `hold_id` converts the given hold into this reservation
""",
    response_model=Reservation,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid request or constraint violation"},
        402: {"description": "Deposit not covered"},
        404: {"description": "Guest, campground, site or class not found"},
        409: {"description": "Site unavailable or hold mismatch"},
    },
)
async def create_reservation(
    body: ReservationCreate,
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.create_reservation(body)


@router.get(
    "/reservations/{reservation_id}",
    summary="Get reservation",
    response_model=Reservation,
    responses={404: {"description": "Reservation not found"}},
)
async def get_reservation(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.get_reservation(reservation_id)


@router.get(
    "/campgrounds/{campground_id}/reservations",
    summary="List campground reservations",
    response_model=list[Reservation],
)
async def list_reservations(
    campground_id: str,
    status: ReservationStatus | None = Query(default=None),
    service: BookingService = Depends(get_booking_service),
) -> list[Reservation]:
    return service.list_reservations(campground_id, status)


@router.post(
    "/reservations/{reservation_id}/cancel",
    summary="Cancel reservation",
    description="Cancels and refunds what the campground cancellation policy allows.",
    response_model=CancellationResult,
    responses={
        404: {"description": "Reservation not found"},
        409: {"description": "Already cancelled or checked out"},
    },
)
async def cancel_reservation(
    reservation_id: str,
    body: CancelReservationRequest | None = Body(default=None),
    service: BookingService = Depends(get_booking_service),
) -> CancellationResult:
    body = body or CancelReservationRequest()
    return service.cancel_reservation(
        reservation_id, cancellation_date=body.cancellation_date, reason=body.reason
    )


@router.post(
    "/reservations/{reservation_id}/check-in",
    summary="Check in",
    response_model=Reservation,
    responses={409: {"description": "Not pending or confirmed"}},
)
async def check_in(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.check_in(reservation_id)


@router.post(
    "/reservations/{reservation_id}/check-out",
    summary="Check out",
    response_model=Reservation,
    responses={409: {"description": "Not checked in"}},
)
async def check_out(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> Reservation:
    return service.check_out(reservation_id)


@router.get(
    "/reservations/{reservation_id}/deposit",
    summary="Deposit due",
    response_model=DepositCalculation,
)
async def get_deposit(
    reservation_id: str,
    service: BookingService = Depends(get_booking_service),
) -> DepositCalculation:
    return service.calculate_deposit(reservation_id)
