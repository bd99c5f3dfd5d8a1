"""Payout and dispute endpoints."""

from fastapi import APIRouter, Depends, Query

from campreserv.models import (
    Dispute,
    DisputeStatus,
    Payout,
    PayoutDetail,
    PayoutReconSummary,
    PayoutStatus,
)
from campreserv.services.disputes import DisputeService
from campreserv.services.payouts import PayoutService
from campreserv_api.dependencies import get_dispute_service, get_payout_service

router = APIRouter(tags=["payouts"])


@router.get(
    "/campgrounds/{campground_id}/payouts",
    summary="List payouts",
    description="Newest first.",
    response_model=list[Payout],
)
async def list_payouts(
    campground_id: str,
    status: PayoutStatus | None = Query(default=None),
    service: PayoutService = Depends(get_payout_service),
) -> list[Payout]:
    return service.list_payouts(campground_id, status)


@router.get(
    "/campgrounds/{campground_id}/payouts/{payout_id}",
    summary="Get payout with lines",
    response_model=PayoutDetail,
    responses={404: {"description": "Payout not found"}},
)
async def get_payout(
    campground_id: str,
    payout_id: str,
    service: PayoutService = Depends(get_payout_service),
) -> PayoutDetail:
    return service.get_payout(campground_id, payout_id)


@router.get(
    "/campgrounds/{campground_id}/payouts/{payout_id}/recon",
    summary="Reconcile payout",
    description="""
Compare the payout net with its balance transaction lines and with the ledger
net of the reservations behind them. Drift above `PAYOUT_DRIFT_THRESHOLD_CENTS`
is flagged and logged.
""",
    response_model=PayoutReconSummary,
    responses={404: {"description": "Payout not found"}},
)
async def get_payout_recon(
    campground_id: str,
    payout_id: str,
    service: PayoutService = Depends(get_payout_service),
) -> PayoutReconSummary:
    return service.compute_recon_summary(campground_id, payout_id)


@router.get(
    "/campgrounds/{campground_id}/disputes",
    summary="List disputes",
    response_model=list[Dispute],
)
async def list_disputes(
    campground_id: str,
    status: DisputeStatus | None = Query(default=None),
    service: DisputeService = Depends(get_dispute_service),
) -> list[Dispute]:
    return service.list_disputes(campground_id, status)
