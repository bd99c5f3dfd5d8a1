"""Guest profile lookups and search."""

import datetime as dt
import uuid
from typing import TYPE_CHECKING, Any

from campreserv.models import CampreservError, ErrorCode, Guest, GuestMatch
from campreserv.utils.items import as_datetime, as_int, compact, utc_now

from .booking_draft import has_stayed, search_guests

if TYPE_CHECKING:
    from .dynamodb import DynamoDBService
    from .reservation_store import ReservationStore


class GuestService:
    """Service for guest profiles."""

    TABLE = "guests"

    def __init__(self, db: "DynamoDBService", reservations: "ReservationStore") -> None:
        self.db = db
        self.reservations = reservations

    def get_guest(self, guest_id: str) -> Guest:
        """Get a guest by ID.

        Raises:
            CampreservError: GUEST_NOT_FOUND if the guest does not exist
        """
        item = self.db.get_item(self.TABLE, {"guest_id": guest_id})
        if not item:
            raise CampreservError(ErrorCode.GUEST_NOT_FOUND, details={"guest_id": guest_id})
        return self._item_to_guest(item)

    def list_guests(self) -> list[Guest]:
        guests = [self._item_to_guest(item) for item in self.db.scan(self.TABLE)]
        return sorted(guests, key=lambda g: (g.primary_last_name.lower(), g.primary_first_name.lower()))

    def create_guest(
        self,
        first_name: str,
        last_name: str,
        email: str | None = None,
        phone: str | None = None,
        rig_type: str | None = None,
        rig_length: int | None = None,
    ) -> Guest:
        guest = Guest(
            id=f"guest-{uuid.uuid4().hex[:8]}",
            primary_first_name=first_name,
            primary_last_name=last_name,
            email=email.lower() if email else None,
            phone=phone,
            rig_type=rig_type,
            rig_length=rig_length,
            created_at=utc_now(),
        )
        self.db.put_item(self.TABLE, self._guest_to_item(guest))
        return guest

    def search(
        self, campground_id: str, query: str, today: dt.date | None = None
    ) -> list[GuestMatch]:
        """Search guests and flag who has stayed at this campground."""
        matches = search_guests(self.list_guests(), query)
        if not matches:
            return []
        today = today or dt.date.today()
        reservations = self.reservations.list_for_campground(campground_id)
        return [
            GuestMatch(guest=guest, has_stayed=has_stayed(guest.id, reservations, today))
            for guest in matches
        ]

    def _guest_to_item(self, guest: Guest) -> dict[str, Any]:
        return compact(
            {
                "guest_id": guest.id,
                "primary_first_name": guest.primary_first_name,
                "primary_last_name": guest.primary_last_name,
                "email": guest.email,
                "phone": guest.phone,
                "rig_type": guest.rig_type,
                "rig_length": guest.rig_length,
                "created_at": guest.created_at.isoformat() if guest.created_at else None,
            }
        )

    def _item_to_guest(self, item: dict[str, Any]) -> Guest:
        return Guest(
            id=item["guest_id"],
            primary_first_name=item.get("primary_first_name", ""),
            primary_last_name=item.get("primary_last_name", ""),
            email=item.get("email"),
            phone=item.get("phone"),
            rig_type=item.get("rig_type"),
            rig_length=as_int(item.get("rig_length")),
            created_at=as_datetime(item.get("created_at")),
        )
