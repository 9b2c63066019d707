"""
Appointment data models.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

# FHIR Appointment.status values the front desk acts on
BOOKED = "booked"
ARRIVED = "arrived"


class Appointment(BaseModel):
    """
    A scheduled appointment for one patient.

    The status is kept as the raw FHIR code so that statuses the practice
    does not act on are preserved rather than rejected.
    """

    id: str = Field(description="Appointment identifier")
    patient_id: str = Field(description="Referenced patient identifier")
    patient_name: str = Field(default="Unbekannt")
    status: str = Field(default=BOOKED, description="FHIR appointment status")
    day: date = Field(description="Scheduled clinic calendar day")
    start: Optional[datetime] = Field(default=None)
    end: Optional[datetime] = Field(default=None)
    reason: Optional[str] = Field(default=None)
    practitioner: Optional[str] = Field(default=None, description="Practitioner name")
    practitioner_id: Optional[str] = Field(default=None)
    slot_id: Optional[str] = Field(default=None, description="Booked schedule slot")


class AppointmentStats(BaseModel):
    """Booked/arrived figures for today's appointments."""

    total: int = 0
    booked: int = 0
    arrived: int = 0
