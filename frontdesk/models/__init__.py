"""
Data models for the Ignis front-desk service.
"""

from .appointment import Appointment, AppointmentStats
from .demo import (
    ClearResult,
    DemoDataSet,
    KindReport,
    ResourceError,
    SetupResult,
    StatusSnapshot,
)
from .patient import Patient
from .queue import Encounter, Priority, QueueStats, QueueStatus, Urgency
from .schedule import Practitioner, Schedule, Slot

__all__ = [
    "Patient",
    "Practitioner",
    "Schedule",
    "Slot",
    "Encounter",
    "Priority",
    "QueueStatus",
    "Urgency",
    "QueueStats",
    "Appointment",
    "AppointmentStats",
    "DemoDataSet",
    "KindReport",
    "ResourceError",
    "SetupResult",
    "ClearResult",
    "StatusSnapshot",
]
