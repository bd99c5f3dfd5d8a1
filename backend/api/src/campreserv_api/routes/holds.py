"""Site hold endpoints."""

from fastapi import APIRouter, Depends
from starlette.status import HTTP_201_CREATED

from campreserv.models import Hold
from campreserv.services.holds import HoldService
from campreserv_api.dependencies import get_hold_service
from campreserv_api.models.requests import HoldCreateRequest

router = APIRouter(tags=["holds"])


@router.post(
    "/holds",
    summary="Hold a site",
    description="""
Block a site for a date range while the guest decides.

**Notes:**
- `hold_minutes` must be between 1 and 1440 (default 30)
- Conflicts with reservations, active holds, maintenance or blackouts return 409
""",
    response_model=Hold,
    status_code=HTTP_201_CREATED,
    responses={
        400: {"description": "Invalid dates or hold duration"},
        404: {"description": "Campground or site not found"},
        409: {"description": "Site unavailable"},
    },
)
async def create_hold(
    body: HoldCreateRequest,
    service: HoldService = Depends(get_hold_service),
) -> Hold:
    return service.create_hold(
        body.campground_id,
        body.site_id,
        body.arrival_date,
        body.departure_date,
        hold_minutes=body.hold_minutes,
        note=body.note,
    )


@router.delete(
    "/holds/{hold_id}",
    summary="Release a hold",
    description="Idempotent: releasing a released hold returns it unchanged.",
    response_model=Hold,
    responses={404: {"description": "Hold not found"}},
)
async def release_hold(
    hold_id: str,
    service: HoldService = Depends(get_hold_service),
) -> Hold:
    return service.release_hold(hold_id)


@router.get(
    "/holds/campgrounds/{campground_id}",
    summary="List active holds",
    response_model=list[Hold],
)
async def list_holds(
    campground_id: str,
    service: HoldService = Depends(get_hold_service),
) -> list[Hold]:
    return service.list_active_holds(campground_id)
