"""Guest model."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class Guest(BaseModel):
    """A guest profile."""

    model_config = ConfigDict(strict=True)

    id: str = Field(..., description="Guest ID", examples=["guest-8f2c"])
    primary_first_name: str = Field(..., examples=["Jane"])
    primary_last_name: str = Field(..., examples=["Camper"])
    email: str | None = Field(default=None, examples=["jane@example.com"])
    phone: str | None = Field(default=None, examples=["+15551234567"])
    rig_type: str | None = Field(default=None, examples=["travel-trailer"])
    rig_length: int | None = Field(default=None, ge=0, description="Rig length in feet")
    created_at: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.primary_first_name} {self.primary_last_name}"


class GuestMatch(BaseModel):
    """Guest search result with stay history flag."""

    model_config = ConfigDict(strict=True)

    guest: Guest
    has_stayed: bool = Field(
        default=False,
        description="Guest has a completed or in-progress stay at this campground",
    )
