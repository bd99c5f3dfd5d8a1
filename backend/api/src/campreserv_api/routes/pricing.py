"""Quote and cancellation policy endpoints."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from campreserv.models import CancellationRule, Quote
from campreserv.services.cancellation_policy import (
    PRESETS,
    RECOMMENDED_PRESET,
    CancellationPolicyService,
)
from campreserv.services.pricing import QuoteService
from campreserv_api.dependencies import get_cancellation_policy_service, get_quote_service
from campreserv_api.models.requests import CancellationPolicyRequest, QuoteRequest

router = APIRouter(tags=["pricing"])


class PolicyPresetsResponse(BaseModel):
    recommended: str
    presets: dict[str, list[CancellationRule]]


@router.post(
    "/campgrounds/{campground_id}/quote",
    summary="Price a stay",
    description="Nightly rates from seasonal rates or the site class, plus pricing rules.",
    response_model=Quote,
    responses={
        400: {"description": "Invalid date range"},
        404: {"description": "Site or site class not found"},
    },
)
async def get_quote(
    campground_id: str,
    body: QuoteRequest,
    service: QuoteService = Depends(get_quote_service),
) -> Quote:
    return service.get_quote(campground_id, body.site_id, body.arrival_date, body.departure_date)


@router.get(
    "/campgrounds/{campground_id}/cancellation-policy",
    summary="Get cancellation policy",
    response_model=list[CancellationRule],
)
async def get_cancellation_policy(
    campground_id: str,
    service: CancellationPolicyService = Depends(get_cancellation_policy_service),
) -> list[CancellationRule]:
    return service.get_rules(campground_id)


@router.put(
    "/campgrounds/{campground_id}/cancellation-policy",
    summary="Set cancellation policy",
    description="Apply a preset (flexible, moderate, strict, customize) or a custom tier list.",
    response_model=list[CancellationRule],
    responses={400: {"description": "Invalid policy"}},
)
async def set_cancellation_policy(
    campground_id: str,
    body: CancellationPolicyRequest,
    service: CancellationPolicyService = Depends(get_cancellation_policy_service),
) -> list[CancellationRule]:
    rules = [rule.to_rule() for rule in body.rules] if body.rules is not None else None
    campground = service.apply_policy(campground_id, preset=body.preset, rules=rules)
    return campground.cancellation_rules


@router.get(
    "/cancellation-policies/presets",
    summary="List cancellation policy presets",
    response_model=PolicyPresetsResponse,
)
async def list_presets() -> PolicyPresetsResponse:
    return PolicyPresetsResponse(recommended=RECOMMENDED_PRESET, presets=PRESETS)
