"""Site hold model."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from .enums import HoldStatus


class Hold(BaseModel):
    """A short-lived hold that blocks a site for a date range."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Hold ID", examples=["HOLD-1A2B3C4D5E6F"])
    campground_id: str
    site_id: str
    arrival_date: date
    departure_date: date
    expires_at: datetime = Field(..., description="When the hold lapses (UTC)")
    status: HoldStatus = HoldStatus.ACTIVE
    note: str | None = None
    created_at: datetime

    def is_active(self, now: datetime) -> bool:
        """Check the hold is active and has not lapsed at `now`."""
        return self.status == HoldStatus.ACTIVE and self.expires_at > now
