"""
Shared fixtures: an in-memory record store and services bound to it.
"""

import asyncio
from datetime import date, datetime, timezone
from typing import Dict, List, Optional, Set
from zoneinfo import ZoneInfo

import pytest

from frontdesk.exceptions import RecordStoreError
from frontdesk.models.appointment import Appointment
from frontdesk.models.patient import Patient
from frontdesk.models.queue import Encounter, QueueStats, QueueStatus
from frontdesk.models.schedule import Practitioner, Schedule, Slot
from frontdesk.services.aggregation import QueueAggregator
from frontdesk.services.demo import DemoDataOrchestrator
from frontdesk.services.status import StatusReporter

BERLIN = ZoneInfo("Europe/Berlin")

# 10:30 in Berlin on 2026-03-10
FIXED_NOW = datetime(2026, 3, 10, 9, 30, tzinfo=timezone.utc)
FIXED_DAY = date(2026, 3, 10)

QUEUE_READ = "queue"
APPOINTMENTS_READ = "appointments"


class FakeRecordStore:
    """
    In-memory stand-in for the FHIR record store.

    Writes are upserts keyed by id, like PUT on the real store. Individual
    ids can be made to fail, every write can be held on a gate, and reads
    can be gated, failed or hung one by one to test concurrency.
    """

    def __init__(self):
        self.practitioners: Dict[str, Practitioner] = {}
        self.patients: Dict[str, Patient] = {}
        self.schedules: Dict[str, Schedule] = {}
        self.slots: Dict[str, Slot] = {}
        self.encounters: Dict[str, Encounter] = {}
        self.appointments: Dict[str, Appointment] = {}
        self.fail_writes: Set[str] = set()
        self.fail_deletes: Set[str] = set()
        self.write_delay = 0.0
        # Ids whose write is committed but only acknowledged after ack_delay
        self.late_acks: Set[str] = set()
        self.ack_delay = 0.5
        self.gate: Optional[asyncio.Event] = None
        self.write_calls = 0
        self.delete_calls = 0
        self.written: List[str] = []
        self.deleted: List[str] = []

        self.read_error: Optional[Exception] = None
        self.read_errors: Dict[str, Exception] = {}
        self.hang_reads = False
        self.hanging_reads: Set[str] = set()
        self.read_gate: Optional[asyncio.Event] = None
        self.reads_started: List[str] = []
        self.reads_cancelled: List[str] = []

    @property
    def total(self) -> int:
        return sum(
            len(bucket)
            for bucket in (
                self.practitioners, self.patients, self.schedules,
                self.slots, self.encounters, self.appointments,
            )
        )

    async def _enter(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        if self.write_delay:
            await asyncio.sleep(self.write_delay)

    async def _write(self, bucket: dict, resource) -> None:
        self.write_calls += 1
        await self._enter()
        if resource.id in self.fail_writes:
            raise RecordStoreError(f"FHIR PUT {resource.id} failed: 422 Unprocessable Entity")
        bucket[resource.id] = resource
        self.written.append(resource.id)
        if resource.id in self.late_acks:
            await asyncio.sleep(self.ack_delay)

    async def _delete(self, bucket: dict, resource_id: str) -> None:
        self.delete_calls += 1
        await self._enter()
        if resource_id in self.fail_deletes:
            raise RecordStoreError(f"FHIR DELETE {resource_id} failed: 409 Conflict")
        bucket.pop(resource_id, None)
        self.deleted.append(resource_id)

    async def create_practitioner(self, practitioner: Practitioner) -> None:
        await self._write(self.practitioners, practitioner)

    async def create_patient(self, patient: Patient) -> None:
        await self._write(self.patients, patient)

    async def create_schedule(self, schedule: Schedule) -> None:
        await self._write(self.schedules, schedule)

    async def create_slot(self, slot: Slot) -> None:
        await self._write(self.slots, slot)

    async def create_encounter(self, encounter: Encounter) -> None:
        await self._write(self.encounters, encounter)

    async def create_appointment(self, appointment: Appointment) -> None:
        await self._write(self.appointments, appointment)

    async def delete_practitioner(self, practitioner_id: str) -> None:
        await self._delete(self.practitioners, practitioner_id)

    async def delete_patient(self, patient_id: str) -> None:
        await self._delete(self.patients, patient_id)

    async def delete_schedule(self, schedule_id: str) -> None:
        await self._delete(self.schedules, schedule_id)

    async def delete_slot(self, slot_id: str) -> None:
        await self._delete(self.slots, slot_id)

    async def delete_encounter(self, encounter_id: str) -> None:
        await self._delete(self.encounters, encounter_id)

    async def delete_appointment(self, appointment_id: str) -> None:
        await self._delete(self.appointments, appointment_id)

    async def _read(self, name: str) -> None:
        self.reads_started.append(name)
        try:
            if self.read_gate is not None:
                await self.read_gate.wait()
            if self.hang_reads or name in self.hanging_reads:
                await asyncio.sleep(3600)
        except asyncio.CancelledError:
            self.reads_cancelled.append(name)
            raise
        error = self.read_errors.get(name) or self.read_error
        if error is not None:
            raise error

    async def get_today_queue(self, day: date) -> List[Encounter]:
        await self._read(QUEUE_READ)
        queue = [
            e for e in self.encounters.values()
            if e.day == day and e.status != QueueStatus.FINISHED
        ]
        return sorted(queue, key=lambda e: e.sort_key)

    async def get_queue_stats(self, day: date) -> QueueStats:
        return QueueAggregator().aggregate(await self.get_today_queue(day))

    async def get_today_appointments(self, day: date) -> List[Appointment]:
        await self._read(APPOINTMENTS_READ)
        return [a for a in self.appointments.values() if a.day == day]


@pytest.fixture
def fake_store() -> FakeRecordStore:
    return FakeRecordStore()


@pytest.fixture
def orchestrator(fake_store) -> DemoDataOrchestrator:
    return DemoDataOrchestrator(
        fake_store, call_timeout=1.0, tz=BERLIN, clock=lambda: FIXED_NOW
    )


@pytest.fixture
def reporter(fake_store) -> StatusReporter:
    return StatusReporter(fake_store, call_timeout=1.0, tz=BERLIN, clock=lambda: FIXED_NOW)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def fixed_day() -> date:
    return FIXED_DAY


@pytest.fixture
def berlin() -> ZoneInfo:
    return BERLIN
