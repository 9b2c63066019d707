"""
Practitioner, schedule and slot models.

A Schedule is one practitioner's bookable day; it is split into Slots that
appointments point at.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

# FHIR Slot.status values used by the demo calendar
FREE = "free"
BUSY = "busy"


class Practitioner(BaseModel):
    """A doctor patients can be booked with."""

    id: str = Field(description="Record store identifier", min_length=1)
    prefix: Optional[str] = Field(default=None, description="Title, e.g. Dr.")
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)

    @property
    def display_name(self) -> str:
        return " ".join(part for part in (self.prefix, self.first_name, self.last_name) if part)


class Schedule(BaseModel):
    """A practitioner's planning horizon for one clinic day."""

    id: str
    practitioner_id: str
    practitioner_name: str
    day: date
    start: datetime = Field(description="Start of the planning horizon")
    end: datetime = Field(description="End of the planning horizon")


class Slot(BaseModel):
    """One bookable interval of a schedule."""

    id: str
    schedule_id: str
    status: str = Field(default=FREE, description="FHIR slot status")
    start: datetime
    end: datetime
