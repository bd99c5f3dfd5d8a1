"""Site hold service.

A hold blocks a site for a date range for a limited number of minutes while
an operator completes a booking. Expiry is evaluated lazily: a hold whose
expires_at has passed is treated as inactive without being rewritten.
"""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from campreserv.models import CampreservError, ErrorCode, Hold, HoldStatus
from campreserv.utils.items import as_date, as_datetime, compact, utc_now
from campreserv.utils.logging import get_logger

if TYPE_CHECKING:
    from .availability import AvailabilityService
    from .campgrounds import CampgroundService
    from .dynamodb import DynamoDBService

logger = get_logger(__name__)

HOLDS_TABLE = "holds"
DEFAULT_HOLD_MINUTES = 30
MAX_HOLD_MINUTES = 24 * 60


def item_to_hold(item: dict[str, Any]) -> Hold:
    return Hold(
        id=item["hold_id"],
        campground_id=item["campground_id"],
        site_id=item["site_id"],
        arrival_date=as_date(item["arrival_date"]),
        departure_date=as_date(item["departure_date"]),
        expires_at=as_datetime(item["expires_at"]),
        status=HoldStatus(item.get("status", HoldStatus.ACTIVE.value)),
        note=item.get("note"),
        created_at=as_datetime(item["created_at"]),
    )


def hold_to_item(hold: Hold) -> dict[str, Any]:
    return compact(
        {
            "hold_id": hold.id,
            "campground_id": hold.campground_id,
            "site_id": hold.site_id,
            "arrival_date": hold.arrival_date.isoformat(),
            "departure_date": hold.departure_date.isoformat(),
            "expires_at": hold.expires_at.isoformat(),
            "status": hold.status.value,
            "note": hold.note,
            "created_at": hold.created_at.isoformat(),
        }
    )


class HoldService:
    """Create, release, list and validate site holds."""

    def __init__(
        self,
        db: "DynamoDBService",
        campgrounds: "CampgroundService",
        availability: "AvailabilityService",
    ) -> None:
        self.db = db
        self.campgrounds = campgrounds
        self.availability = availability

    def _generate_hold_id(self) -> str:
        return f"HOLD-{uuid.uuid4().hex[:12].upper()}"

    def create_hold(
        self,
        campground_id: str,
        site_id: str,
        arrival: dt.date,
        departure: dt.date,
        hold_minutes: int = DEFAULT_HOLD_MINUTES,
        note: str | None = None,
    ) -> Hold:
        """Hold a site for a date range.

        Raises:
            CampreservError: INVALID_DATE_RANGE, INVALID_HOLD_DURATION,
                CAMPGROUND_NOT_FOUND, SITE_NOT_FOUND or SITE_UNAVAILABLE
        """
        if departure <= arrival:
            raise CampreservError(ErrorCode.INVALID_DATE_RANGE)
        if hold_minutes < 1 or hold_minutes > MAX_HOLD_MINUTES:
            raise CampreservError(
                ErrorCode.INVALID_HOLD_DURATION, details={"hold_minutes": str(hold_minutes)}
            )

        self.campgrounds.get_campground(campground_id)
        self.campgrounds.get_site(site_id, campground_id)

        conflict = self.availability.find_conflict(campground_id, site_id, arrival, departure)
        if conflict:
            raise CampreservError(
                ErrorCode.SITE_UNAVAILABLE, details={"site_id": site_id, "conflict": conflict}
            )

        now = utc_now()
        hold = Hold(
            id=self._generate_hold_id(),
            campground_id=campground_id,
            site_id=site_id,
            arrival_date=arrival,
            departure_date=departure,
            expires_at=now + dt.timedelta(minutes=hold_minutes),
            status=HoldStatus.ACTIVE,
            note=note,
            created_at=now,
        )
        self.db.put_item(HOLDS_TABLE, hold_to_item(hold))
        logger.info(
            "Hold %s created for site %s (%s to %s), expires %s",
            hold.id,
            site_id,
            arrival,
            departure,
            hold.expires_at.isoformat(),
        )
        return hold

    def get_hold(self, hold_id: str) -> Hold:
        item = self.db.get_item(HOLDS_TABLE, {"hold_id": hold_id})
        if not item:
            raise CampreservError(ErrorCode.HOLD_NOT_FOUND, details={"hold_id": hold_id})
        return item_to_hold(item)

    def release_hold(self, hold_id: str) -> Hold:
        """Release a hold. Releasing twice returns the released hold."""
        hold = self.get_hold(hold_id)
        if hold.status == HoldStatus.RELEASED:
            return hold
        return self._set_status(hold, HoldStatus.RELEASED)

    def convert_hold(self, hold_id: str) -> Hold:
        """Mark a hold as consumed by a reservation."""
        return self._set_status(self.get_hold(hold_id), HoldStatus.CONVERTED)

    def list_active_holds(self, campground_id: str) -> list[Hold]:
        now = utc_now()
        items = self.db.query_by_campground(HOLDS_TABLE, campground_id)
        holds = [item_to_hold(item) for item in items]
        active = [hold for hold in holds if hold.is_active(now)]
        return sorted(active, key=lambda h: h.expires_at)

    def validate_hold_for_reservation(
        self,
        hold_id: str,
        campground_id: str,
        site_id: str,
        arrival: dt.date,
        departure: dt.date,
    ) -> Hold:
        """Check a hold can back a reservation for this site and stay.

        Raises:
            CampreservError: HOLD_NOT_FOUND, HOLD_EXPIRED or HOLD_MISMATCH
        """
        hold = self.get_hold(hold_id)
        if not hold.is_active(utc_now()):
            raise CampreservError(ErrorCode.HOLD_EXPIRED, details={"hold_id": hold_id})
        if hold.site_id != site_id or hold.campground_id != campground_id:
            raise CampreservError(
                ErrorCode.HOLD_MISMATCH,
                details={"hold_id": hold_id, "hold_site_id": hold.site_id},
            )
        if hold.arrival_date > arrival or hold.departure_date < departure:
            raise CampreservError(
                ErrorCode.HOLD_MISMATCH,
                details={
                    "hold_id": hold_id,
                    "hold_arrival": hold.arrival_date.isoformat(),
                    "hold_departure": hold.departure_date.isoformat(),
                },
            )
        return hold

    def _set_status(self, hold: Hold, status: HoldStatus) -> Hold:
        self.db.update_item(
            HOLDS_TABLE,
            {"hold_id": hold.id},
            "SET #status = :status",
            {":status": status.value},
            {"#status": "status"},
        )
        logger.info("Hold %s -> %s", hold.id, status.value)
        return hold.model_copy(update={"status": status})
