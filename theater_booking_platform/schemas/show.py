"""
Show schemas for request/response validation.
"""

import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ShowCreate(BaseModel):
    """Schema for creating a new show."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = Field(..., min_length=1, max_length=255, description="Show title")
    date: datetime.date = Field(..., description="Performance day")
    time: str = Field(..., pattern=TIME_PATTERN, description="Start time, HH:MM")
    display_label: str = Field(
        ..., min_length=1, max_length=255, alias="displayLabel",
        description="Label shown to visitors, e.g. 'Friday 19:30'"
    )
    total_seats: Optional[int] = Field(
        None, gt=0, alias="totalSeats",
        description="Seat numbers in the hall including blocked ones"
    )


class ShowUpdate(BaseModel):
    """Schema for updating an existing show."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    date: Optional[datetime.date] = None
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    display_label: Optional[str] = Field(None, min_length=1, max_length=255, alias="displayLabel")
    total_seats: Optional[int] = Field(None, gt=0, alias="totalSeats")


class ShowSummary(BaseModel):
    """One entry of the public show listing."""

    id: str
    title: str
    date: str
    time: str
    displayLabel: str
    totalSeats: int
    bookedSeats: int
    availableSeats: int
    isSoldOut: bool


class ShowListResponse(BaseModel):
    """Schema for the public show listing."""

    shows: List[ShowSummary]


class ShowSeatsResponse(BaseModel):
    """Seat map of one show."""

    showId: str
    bookedSeats: List[int]
    totalSeats: int = Field(..., description="Assignable seats, blocked numbers excluded")
    availableSeats: int


class AdminShowResponse(BaseModel):
    """Show as seen by staff."""

    id: str
    title: str
    date: str
    time: str
    displayLabel: str
    totalSeats: int = Field(..., description="Seat numbers in the hall including blocked ones")
    capacity: int = Field(..., description="Assignable seats")
    activeBookings: Optional[int] = None


class AdminShowListResponse(BaseModel):
    """Schema for the admin show listing."""

    shows: List[AdminShowResponse]
