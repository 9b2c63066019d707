"""
Waiting-queue data models.

A queue entry is a FHIR Encounter for today's visit. Status and priority
use the practice's workflow vocabulary; the record store mapping lives in
the record store client.
"""

from datetime import date, datetime
from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class QueueStatus(str, Enum):
    """Where the patient is in today's visit."""

    EXPECTED = "expected"
    WAITING = "waiting"
    CALLED = "called"
    IN_TREATMENT = "in_treatment"
    FINISHED = "finished"


class Priority(str, Enum):
    """Triage priority as stored on the encounter."""

    ROUTINE = "routine"
    URGENT = "urgent"
    EMERGENCY = "emergency"


class Urgency(str, Enum):
    """Two-way urgency classification used by the queue statistics."""

    URGENT = "urgent"
    REGULAR = "regular"


# Sort order for the queue display: emergencies first
PRIORITY_ORDER: Dict[Priority, int] = {
    Priority.EMERGENCY: 0,
    Priority.URGENT: 1,
    Priority.ROUTINE: 2,
}


class Encounter(BaseModel):
    """
    A queue entry: one patient's visit on one clinic day.
    """

    id: str = Field(description="Encounter identifier")
    patient_id: str = Field(description="Referenced patient identifier")
    patient_name: str = Field(default="Unbekannt", description="Patient display name")
    appointment_id: Optional[str] = Field(default=None, description="Linked appointment")
    status: QueueStatus = Field(default=QueueStatus.EXPECTED)
    priority: Priority = Field(default=Priority.ROUTINE)
    day: date = Field(description="Clinic calendar day the visit belongs to")
    reason: Optional[str] = Field(default=None, description="Reason for the visit")
    room: Optional[str] = Field(default=None, description="Treatment room")
    doctor: Optional[str] = Field(default=None, description="Assigned practitioner name")
    practitioner_id: Optional[str] = Field(default=None)
    arrival_time: Optional[datetime] = Field(default=None)
    created_at: Optional[datetime] = Field(default=None)

    @property
    def urgency(self) -> Urgency:
        """Emergencies count as urgent."""
        if self.priority in (Priority.URGENT, Priority.EMERGENCY):
            return Urgency.URGENT
        return Urgency.REGULAR

    @property
    def sort_key(self) -> tuple:
        created = self.created_at.timestamp() if self.created_at else 0.0
        return (PRIORITY_ORDER[self.priority], created)


class QueueStats(BaseModel):
    """Occupancy and urgency figures for today's queue."""

    total: int = 0
    urgent: int = 0
    regular: int = 0
    emergency: int = Field(default=0, description="Emergencies, also counted in urgent")
    expected: int = 0
    waiting: int = 0
    called: int = 0
    in_treatment: int = 0
