"""
Demo data lifecycle models.

DemoDataSet tracks exactly which resources the demo setup may have written,
so that clear deletes those and nothing else. The report models are what
the /api/demo endpoints return.
"""

from datetime import date
from typing import Dict, List

from pydantic import BaseModel, Field, computed_field

from frontdesk.models.appointment import AppointmentStats
from frontdesk.models.queue import QueueStats

PRACTITIONERS = "practitioners"
PATIENTS = "patients"
SCHEDULES = "schedules"
SLOTS = "slots"
APPOINTMENTS = "appointments"
ENCOUNTERS = "encounters"

# Dependency order: each kind only references kinds listed before it
RESOURCE_KINDS = (PRACTITIONERS, PATIENTS, SCHEDULES, SLOTS, APPOINTMENTS, ENCOUNTERS)


class DemoDataSet(BaseModel):
    """
    Ids of demo resources that may be live in the record store, per kind.

    An id is recorded before its write is attempted and stays recorded if
    the write fails, since a timed-out write may still have been committed.
    Deleting an id the store never saw is harmless (404 counts as deleted).
    """

    resources: Dict[str, List[str]] = Field(
        default_factory=lambda: {kind: [] for kind in RESOURCE_KINDS}
    )

    def record(self, kind: str, resource_id: str) -> None:
        """Track a resource. Re-recording is a no-op."""
        ids = self.resources[kind]
        if resource_id not in ids:
            ids.append(resource_id)

    def discard(self, kind: str, resource_id: str) -> None:
        """Stop tracking a resource that was deleted."""
        ids = self.resources[kind]
        if resource_id in ids:
            ids.remove(resource_id)

    def ids(self, kind: str) -> List[str]:
        return list(self.resources[kind])

    def reset(self) -> None:
        for kind in RESOURCE_KINDS:
            self.resources[kind] = []

    @property
    def total(self) -> int:
        return sum(len(ids) for ids in self.resources.values())

    @property
    def is_empty(self) -> bool:
        return self.total == 0


class ResourceError(BaseModel):
    """One resource that failed to be written or deleted."""

    id: str
    message: str


class KindReport(BaseModel):
    """Outcome of the writes or deletes for one resource kind."""

    attempted: int = 0
    succeeded: int = 0
    errors: List[ResourceError] = Field(default_factory=list)

    def add_success(self) -> None:
        self.attempted += 1
        self.succeeded += 1

    def add_failure(self, resource_id: str, message: str) -> None:
        self.attempted += 1
        self.errors.append(ResourceError(id=resource_id, message=message))


class _LifecycleResult(BaseModel):
    practitioners: KindReport = Field(default_factory=KindReport)
    patients: KindReport = Field(default_factory=KindReport)
    schedules: KindReport = Field(default_factory=KindReport)
    slots: KindReport = Field(default_factory=KindReport)
    appointments: KindReport = Field(default_factory=KindReport)
    encounters: KindReport = Field(default_factory=KindReport)

    def report(self, kind: str) -> KindReport:
        return getattr(self, kind)

    @property
    def error_count(self) -> int:
        return sum(len(self.report(kind).errors) for kind in RESOURCE_KINDS)

    @computed_field
    @property
    def success(self) -> bool:
        return self.error_count == 0

    @computed_field
    @property
    def attempted(self) -> int:
        return sum(self.report(kind).attempted for kind in RESOURCE_KINDS)


class SetupResult(_LifecycleResult):
    """Result of seeding today's demo data."""

    today: date


class ClearResult(_LifecycleResult):
    """Result of deleting the tracked demo data."""

    @computed_field
    @property
    def cleared(self) -> int:
        return sum(self.report(kind).succeeded for kind in RESOURCE_KINDS)


class StatusSnapshot(BaseModel):
    """Today's queue and appointment figures in one consistent read."""

    today: date
    queue: QueueStats
    appointments: AppointmentStats
