"""Campground, site and guest lookup endpoints."""

import datetime as dt

from fastapi import APIRouter, Depends, Query

from campreserv.models import Campground, GuestMatch, Site, SiteClass, SiteWithStatus
from campreserv.services.availability import AvailabilityService, filter_sites
from campreserv.services.campgrounds import CampgroundService
from campreserv.services.guests import GuestService
from campreserv_api.dependencies import (
    get_availability_service,
    get_campground_service,
    get_guest_service,
)

router = APIRouter(tags=["campgrounds"])


@router.get("/campgrounds", summary="List campgrounds", response_model=list[Campground])
async def list_campgrounds(
    service: CampgroundService = Depends(get_campground_service),
) -> list[Campground]:
    return service.list_campgrounds()


@router.get(
    "/campgrounds/{campground_id}",
    summary="Get campground",
    response_model=Campground,
    responses={404: {"description": "Campground not found"}},
)
async def get_campground(
    campground_id: str,
    service: CampgroundService = Depends(get_campground_service),
) -> Campground:
    return service.get_campground(campground_id)


@router.get(
    "/campgrounds/{campground_id}/site-classes",
    summary="List site classes",
    response_model=list[SiteClass],
)
async def list_site_classes(
    campground_id: str,
    service: CampgroundService = Depends(get_campground_service),
) -> list[SiteClass]:
    service.get_campground(campground_id)
    return service.list_site_classes(campground_id)


@router.get("/campgrounds/{campground_id}/sites", summary="List sites", response_model=list[Site])
async def list_sites(
    campground_id: str,
    service: CampgroundService = Depends(get_campground_service),
) -> list[Site]:
    service.get_campground(campground_id)
    return service.list_sites(campground_id)


@router.get(
    "/campgrounds/{campground_id}/sites/status",
    summary="Site status for a date window",
    description="""
Every active site with its status (available, occupied, maintenance) for the
window. Blackouts win over maintenance, which wins over occupancy.

Optional filters narrow the list the way the booking flow does.
""",
    response_model=list[SiteWithStatus],
    responses={400: {"description": "Invalid date range"}, 404: {"description": "Campground not found"}},
)
async def get_sites_with_status(
    campground_id: str,
    arrival_date: dt.date = Query(..., alias="arrivalDate"),
    departure_date: dt.date = Query(..., alias="departureDate"),
    available_only: bool = Query(default=False, alias="availableOnly"),
    site_type: str | None = Query(default=None, alias="siteType"),
    site_class_id: str | None = Query(default=None, alias="siteClassId"),
    rig_type: str | None = Query(default=None, alias="rigType"),
    rig_length: int | None = Query(default=None, alias="rigLength", ge=0),
    availability: AvailabilityService = Depends(get_availability_service),
    campgrounds: CampgroundService = Depends(get_campground_service),
) -> list[SiteWithStatus]:
    sites = availability.get_sites_with_status(campground_id, arrival_date, departure_date)
    return filter_sites(
        sites,
        site_classes=campgrounds.list_site_classes(campground_id),
        available_only=available_only,
        site_type=site_type,
        site_class_id=site_class_id,
        rig_type=rig_type,
        rig_length=rig_length,
    )


@router.get(
    "/campgrounds/{campground_id}/guests/search",
    summary="Search guests",
    description="Matches name, email or phone; flags guests who stayed here before.",
    response_model=list[GuestMatch],
)
async def search_guests(
    campground_id: str,
    q: str = Query(default=""),
    service: GuestService = Depends(get_guest_service),
) -> list[GuestMatch]:
    return service.search(campground_id, q)
