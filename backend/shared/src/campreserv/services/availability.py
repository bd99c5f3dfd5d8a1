"""Site availability, status projection and assignment constraints."""

import datetime as dt
from typing import TYPE_CHECKING, Iterable

from campreserv.models import (
    RV_RIG_TYPES,
    CampreservError,
    ErrorCode,
    Site,
    SiteClass,
    SiteStatus,
    SiteType,
    SiteWithStatus,
)
from campreserv.utils.items import utc_now

from .holds import HOLDS_TABLE, item_to_hold
from .reservation_store import dates_overlap

if TYPE_CHECKING:
    from .campgrounds import CampgroundService
    from .dynamodb import DynamoDBService
    from .reservation_store import ReservationStore

NON_RV_RIG_TYPES = frozenset({"tent", "cabin", "car", "walkin", "walk-in"})
NON_RV_SITE_TYPES = frozenset({SiteType.TENT.value, SiteType.CABIN.value})


def is_rig_compatible(
    site_type: str,
    rig_max_length: int | None,
    rig_type: str | None,
    rig_length: int | None,
) -> bool:
    """Check a rig can park on a site.

    Tents, cabins, cars and walk-ins carry no rig constraints. Any other rig
    needs an RV site and must fit its max length when both are known.
    """
    if not rig_type and not rig_length:
        return True
    normalized = (rig_type or "").lower()
    if normalized in NON_RV_RIG_TYPES:
        return True
    if site_type != SiteType.RV.value:
        return False
    if rig_length and rig_max_length and rig_length > rig_max_length:
        return False
    return True


def validate_assignment_constraints(
    site: Site,
    site_class: SiteClass | None,
    *,
    adults: int = 0,
    children: int = 0,
    rig_type: str | None = None,
    rig_length: int | None = None,
    requires_accessible: bool = False,
    required_amenities: Iterable[str] = (),
) -> None:
    """Raise if the party, rig or needs do not fit the site.

    Raises:
        CampreservError: OCCUPANCY_EXCEEDED, RIG_INCOMPATIBLE,
            ACCESSIBILITY_REQUIRED or AMENITIES_MISSING
    """
    occupancy = (adults or 0) + (children or 0)
    if site.max_occupancy and occupancy > site.max_occupancy:
        raise CampreservError(
            ErrorCode.OCCUPANCY_EXCEEDED,
            details={"requested": str(occupancy), "maximum": str(site.max_occupancy)},
        )

    max_length = site.rig_max_length
    if max_length is None and site_class is not None:
        max_length = site_class.rig_max_length
    if not is_rig_compatible(site.site_type.value, max_length, rig_type, rig_length):
        details = {"site_type": site.site_type.value, "rig_type": rig_type or ""}
        if max_length is not None:
            details["rig_max_length"] = str(max_length)
        raise CampreservError(ErrorCode.RIG_INCOMPATIBLE, details=details)

    if requires_accessible and not site.accessible:
        raise CampreservError(ErrorCode.ACCESSIBILITY_REQUIRED, details={"site_id": site.id})

    wanted = [amenity for amenity in required_amenities if amenity]
    if wanted:
        present = {tag.lower() for tag in site.amenity_tags}
        missing = [amenity for amenity in wanted if amenity.lower() not in present]
        if missing:
            raise CampreservError(
                ErrorCode.AMENITIES_MISSING, details={"missing": ", ".join(missing)}
            )


def filter_sites(
    sites: list[SiteWithStatus],
    *,
    site_classes: list[SiteClass] | None = None,
    available_only: bool = False,
    site_type: str | None = None,
    site_class_id: str | None = None,
    rig_type: str | None = None,
    rig_length: int | None = None,
) -> list[SiteWithStatus]:
    """Filter a site status list the way the booking flow narrows choices."""
    class_limits = {sc.id: sc.rig_max_length for sc in site_classes or []}
    is_rv_rig = bool(rig_type) and rig_type in RV_RIG_TYPES

    result = []
    for site in sites:
        if available_only and site.status != SiteStatus.AVAILABLE:
            continue
        if site_type and site.site_type.value != site_type:
            continue
        if site_class_id and site.site_class_id != site_class_id:
            continue
        if is_rv_rig and site.site_type.value in NON_RV_SITE_TYPES:
            continue
        if rig_length:
            limit = site.rig_max_length
            if limit is None and site.site_class_id:
                limit = class_limits.get(site.site_class_id)
            if limit is not None and rig_length > limit:
                continue
        result.append(site)
    return result


class AvailabilityService:
    """Answers which sites are free for a date window and why not."""

    GUESTS_TABLE = "guests"

    def __init__(
        self,
        db: "DynamoDBService",
        campgrounds: "CampgroundService",
        reservations: "ReservationStore",
    ) -> None:
        self.db = db
        self.campgrounds = campgrounds
        self.reservations = reservations

    def get_sites_with_status(
        self,
        campground_id: str,
        arrival: dt.date,
        departure: dt.date,
    ) -> list[SiteWithStatus]:
        """Project every active site with its status for the window.

        Blackouts win over maintenance, which wins over occupancy.

        Raises:
            CampreservError: INVALID_DATE_RANGE or CAMPGROUND_NOT_FOUND
        """
        if departure <= arrival:
            raise CampreservError(ErrorCode.INVALID_DATE_RANGE)
        self.campgrounds.get_campground(campground_id)

        sites = self.campgrounds.list_sites(campground_id)
        classes = {sc.id: sc for sc in self.campgrounds.list_site_classes(campground_id)}

        occupied: dict[str, str] = {}
        for reservation in self.reservations.list_for_campground(
            campground_id, include_cancelled=False
        ):
            if dates_overlap(
                arrival, departure, reservation.arrival_date, reservation.departure_date
            ):
                occupied[reservation.site_id] = reservation.guest_id
        guest_names = self._guest_names(set(occupied.values()))

        maintenance = {
            ticket.site_id: ticket.title
            for ticket in self.campgrounds.list_open_maintenance(campground_id)
        }

        blacked_out_sites: dict[str, str] = {}
        campground_closed = False
        for blackout in self.campgrounds.list_blackouts(campground_id):
            if not dates_overlap(arrival, departure, blackout.start_date, blackout.end_date):
                continue
            if blackout.site_id:
                blacked_out_sites[blackout.site_id] = blackout.reason or "Blacked out"
            else:
                campground_closed = True

        result = []
        for site in sites:
            status = SiteStatus.AVAILABLE
            detail: str | None = None
            if campground_closed or site.id in blacked_out_sites:
                status = SiteStatus.MAINTENANCE
                detail = blacked_out_sites.get(site.id) or "Campground closed"
            elif site.id in maintenance:
                status = SiteStatus.MAINTENANCE
                detail = maintenance[site.id] or "Under maintenance"
            elif site.id in occupied:
                status = SiteStatus.OCCUPIED
                detail = guest_names.get(occupied[site.id])

            site_class = classes.get(site.site_class_id) if site.site_class_id else None
            result.append(
                SiteWithStatus(
                    id=site.id,
                    campground_id=site.campground_id,
                    name=site.name,
                    site_number=site.site_number,
                    site_type=site.site_type,
                    site_class_id=site.site_class_id,
                    site_class_name=site_class.name if site_class else None,
                    max_occupancy=site.max_occupancy,
                    rig_max_length=site.rig_max_length,
                    default_rate=site_class.default_rate if site_class else None,
                    status=status,
                    status_detail=detail,
                )
            )
        return result

    def find_conflict(
        self,
        campground_id: str,
        site_id: str,
        arrival: dt.date,
        departure: dt.date,
        *,
        ignore_hold_id: str | None = None,
        ignore_reservation_id: str | None = None,
    ) -> str | None:
        """Return what blocks a site for the window, or None if it is free.

        Returns:
            One of "blackout", "maintenance", "reservation", "hold" or None
        """
        for blackout in self.campgrounds.list_blackouts(campground_id):
            if blackout.site_id in (None, site_id) and dates_overlap(
                arrival, departure, blackout.start_date, blackout.end_date
            ):
                return "blackout"

        for ticket in self.campgrounds.list_open_maintenance(campground_id):
            if ticket.site_id == site_id:
                return "maintenance"

        for reservation in self.reservations.list_for_campground(
            campground_id, include_cancelled=False
        ):
            if reservation.id == ignore_reservation_id or reservation.site_id != site_id:
                continue
            if dates_overlap(
                arrival, departure, reservation.arrival_date, reservation.departure_date
            ):
                return "reservation"

        now = utc_now()
        for item in self.db.query_by_campground(HOLDS_TABLE, campground_id):
            hold = item_to_hold(item)
            if hold.id == ignore_hold_id or hold.site_id != site_id:
                continue
            if hold.is_active(now) and dates_overlap(
                arrival, departure, hold.arrival_date, hold.departure_date
            ):
                return "hold"

        return None

    def find_assignable_site(
        self,
        campground_id: str,
        site_class: SiteClass,
        arrival: dt.date,
        departure: dt.date,
        **constraints,
    ) -> Site | None:
        """Pick the first free site of a class that satisfies the constraints."""
        for site in self.campgrounds.list_sites(campground_id):
            if site.site_class_id != site_class.id:
                continue
            try:
                validate_assignment_constraints(site, site_class, **constraints)
            except CampreservError:
                continue
            if self.find_conflict(campground_id, site.id, arrival, departure) is None:
                return site
        return None

    def _guest_names(self, guest_ids: set[str]) -> dict[str, str]:
        if not guest_ids:
            return {}
        items = self.db.batch_get(
            self.GUESTS_TABLE, [{"guest_id": guest_id} for guest_id in sorted(guest_ids)]
        )
        return {
            item["guest_id"]: f"{item.get('primary_first_name', '')} "
            f"{item.get('primary_last_name', '')}".strip()
            for item in items
        }
