"""
Demo Data Service - seeds and tears down a day of synthetic clinic data.

Setup writes a fixed set of practitioners and patients, a schedule with
30 minute slots per practitioner, and one appointment and encounter per
patient for today. Every id setup touches is tracked; clear deletes
exactly those ids. Both are fail-soft: each resource is attempted on its
own and failures are reported per item instead of aborting the batch.

Kinds are written in dependency order (practitioners and patients, then
schedules, slots, appointments, encounters) and deleted in reverse.

At most one setup or clear runs at a time; a second request while one is
in flight is rejected with Busy.
"""

import asyncio
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Awaitable, Callable, Dict, List, NamedTuple, Optional, Sequence
from zoneinfo import ZoneInfo

from loguru import logger

from frontdesk.config import (
    DEMO_DAY_END_HOUR,
    DEMO_DAY_START_HOUR,
    DEMO_PATIENTS,
    DEMO_PRACTITIONERS,
    DEMO_QUEUE_SCRIPT,
    DEMO_SLOT_MINUTES,
    get_settings,
)
from frontdesk.exceptions import (
    Busy,
    FrontDeskError,
    ResourceDeleteFailure,
    ResourceWriteFailure,
    UnexpectedFailure,
)
from frontdesk.models.appointment import ARRIVED, BOOKED, Appointment
from frontdesk.models.demo import (
    APPOINTMENTS,
    ENCOUNTERS,
    PATIENTS,
    PRACTITIONERS,
    SCHEDULES,
    SLOTS,
    ClearResult,
    DemoDataSet,
    KindReport,
    SetupResult,
)
from frontdesk.models.patient import Patient
from frontdesk.models.queue import Encounter, Priority, QueueStatus
from frontdesk.models.schedule import BUSY, Practitioner, Schedule, Slot
from frontdesk.services.calendar import clinic_datetime, clinic_day_of, clinic_timezone, format_day
from frontdesk.services.record_store import RecordStoreClient, get_record_store

# Kinds within a wave are independent; each wave only references earlier ones
SETUP_WAVES = (
    (PRACTITIONERS, PATIENTS),
    (SCHEDULES,),
    (SLOTS,),
    (APPOINTMENTS,),
    (ENCOUNTERS,),
)
CLEAR_WAVES = tuple(reversed(SETUP_WAVES))


class DemoResources(NamedTuple):
    """The demo resources for one clinic day. Field names match the kinds."""

    practitioners: List[Practitioner]
    patients: List[Patient]
    schedules: List[Schedule]
    slots: List[Slot]
    appointments: List[Appointment]
    encounters: List[Encounter]


def demo_practitioner_id(index: int) -> str:
    return f"practitioner-demo-{index + 1}"


def demo_patient_id(index: int) -> str:
    return f"patient-demo-{index + 1}"


def demo_schedule_id(practitioner_id: str, day: date) -> str:
    return f"schedule-{practitioner_id}-{format_day(day)}"


def demo_slot_id(schedule_id: str, start: datetime) -> str:
    return f"slot-{schedule_id}-{start:%H%M}"


def demo_appointment_id(day: date, index: int) -> str:
    return f"appointment-demo-{format_day(day)}-{index + 1}"


def demo_encounter_id(day: date, index: int) -> str:
    return f"encounter-demo-{format_day(day)}-{index + 1}"


def build_demo_resources(now: datetime, tz: ZoneInfo) -> DemoResources:
    """
    Build the fixed demo dataset for the clinic day containing ``now``.

    Ids are deterministic per day, so building twice on the same day yields
    the same resources. Every practitioner gets a schedule for opening
    hours, split into 30 minute slots. Appointments take consecutive slot
    times from the start of the day with practitioners assigned
    round-robin; the slot each appointment books is marked busy.

    Args:
        now: Timezone-aware reference instant
        tz: Clinic timezone

    Returns:
        DemoResources for that day
    """
    day = clinic_day_of(now, tz)
    now = now.astimezone(tz)
    slot_length = timedelta(minutes=DEMO_SLOT_MINUTES)
    day_start = clinic_datetime(day, DEMO_DAY_START_HOUR, tz=tz)
    day_end = clinic_datetime(day, DEMO_DAY_END_HOUR, tz=tz)

    resources = DemoResources([], [], [], [], [], [])
    slots_by_time: Dict[tuple, Slot] = {}

    for index, data in enumerate(DEMO_PRACTITIONERS):
        practitioner = Practitioner(id=demo_practitioner_id(index), **data)
        schedule = Schedule(
            id=demo_schedule_id(practitioner.id, day),
            practitioner_id=practitioner.id,
            practitioner_name=practitioner.display_name,
            day=day,
            start=day_start,
            end=day_end,
        )
        resources.practitioners.append(practitioner)
        resources.schedules.append(schedule)

        start = day_start
        while start + slot_length <= day_end:
            slot = Slot(
                id=demo_slot_id(schedule.id, start),
                schedule_id=schedule.id,
                start=start,
                end=start + slot_length,
            )
            resources.slots.append(slot)
            slots_by_time[(practitioner.id, start)] = slot
            start += slot_length

    for index, (patient_data, script) in enumerate(zip(DEMO_PATIENTS, DEMO_QUEUE_SCRIPT)):
        patient = Patient(id=demo_patient_id(index), created_at=now, **patient_data)
        practitioner = resources.practitioners[index % len(resources.practitioners)]
        status = QueueStatus(script["status"])

        start = day_start + slot_length * index
        slot = slots_by_time.get((practitioner.id, start))
        if slot is not None:
            slot.status = BUSY

        appointment = Appointment(
            id=demo_appointment_id(day, index),
            patient_id=patient.id,
            patient_name=patient.full_name,
            status=BOOKED if status == QueueStatus.EXPECTED else ARRIVED,
            day=day,
            start=start,
            end=start + slot_length,
            reason=script["reason"],
            practitioner=practitioner.display_name,
            practitioner_id=practitioner.id,
            slot_id=slot.id if slot is not None else None,
        )
        encounter = Encounter(
            id=demo_encounter_id(day, index),
            patient_id=patient.id,
            patient_name=patient.full_name,
            appointment_id=appointment.id,
            status=status,
            priority=Priority(script["priority"]),
            day=day,
            reason=script["reason"],
            doctor=practitioner.display_name,
            practitioner_id=practitioner.id,
            arrival_time=now if status == QueueStatus.WAITING else None,
            created_at=now,
        )

        resources.patients.append(patient)
        resources.appointments.append(appointment)
        resources.encounters.append(encounter)

    return resources


def describe_failure(error: BaseException, timeout: float) -> str:
    """Human-readable message for a failed record store call."""
    if isinstance(error, asyncio.TimeoutError):
        return f"Record store call timed out after {timeout:g}s"
    return str(error) or error.__class__.__name__


class DemoDataOrchestrator:
    """
    Drives creation and teardown of the demo dataset.

    Re-running setup on the same day rewrites the same ids (the store
    upserts on PUT), so repeated setups never duplicate demo resources.
    """

    def __init__(
        self,
        record_store: RecordStoreClient,
        call_timeout: Optional[float] = None,
        tz: Optional[ZoneInfo] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        settings = get_settings()
        self._store = record_store
        self._call_timeout = call_timeout or settings.record_store_timeout
        self._tz = tz or clinic_timezone(settings.clinic_timezone)
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._dataset = DemoDataSet()
        self._lock = asyncio.Lock()

    @property
    def dataset(self) -> DemoDataSet:
        """Snapshot of the tracked demo resources."""
        return self._dataset.model_copy(deep=True)

    @property
    def is_busy(self) -> bool:
        return self._lock.locked()

    @asynccontextmanager
    async def _single_flight(self, operation: str):
        # No await between the check and the acquire, so this cannot race
        if self._lock.locked():
            logger.warning(f"Demo {operation} rejected: another demo operation is in progress")
            raise Busy("Another demo data operation is in progress")
        async with self._lock:
            yield

    async def _call(self, call: Awaitable[None]) -> None:
        await asyncio.wait_for(call, timeout=self._call_timeout)

    def _writers(self) -> Dict[str, Callable[..., Awaitable[None]]]:
        store = self._store
        return {
            PRACTITIONERS: store.create_practitioner,
            PATIENTS: store.create_patient,
            SCHEDULES: store.create_schedule,
            SLOTS: store.create_slot,
            APPOINTMENTS: store.create_appointment,
            ENCOUNTERS: store.create_encounter,
        }

    def _deleters(self) -> Dict[str, Callable[[str], Awaitable[None]]]:
        store = self._store
        return {
            PRACTITIONERS: store.delete_practitioner,
            PATIENTS: store.delete_patient,
            SCHEDULES: store.delete_schedule,
            SLOTS: store.delete_slot,
            APPOINTMENTS: store.delete_appointment,
            ENCOUNTERS: store.delete_encounter,
        }

    async def setup(self) -> SetupResult:
        """
        Seed today's demo data.

        Kinds are written wave by wave so references always point at
        resources that were attempted first; a failed write never stops
        the later waves.

        Returns:
            SetupResult with per-kind attempted/succeeded counts and errors

        Raises:
            Busy: Another setup or clear is running
            UnexpectedFailure: Anything outside the per-resource writes failed
        """
        async with self._single_flight("setup"):
            try:
                now = self._clock()
                resources = build_demo_resources(now, self._tz)
                result = SetupResult(today=clinic_day_of(now, self._tz))
                logger.info(f"Demo setup: starting for {format_day(result.today)}")

                writers = self._writers()
                for wave in SETUP_WAVES:
                    await asyncio.gather(
                        *(
                            self._write_all(
                                kind, getattr(resources, kind), writers[kind], result.report(kind)
                            )
                            for kind in wave
                        )
                    )
            except FrontDeskError:
                raise
            except Exception as e:
                logger.error(f"Demo setup failed unexpectedly: {e}")
                raise UnexpectedFailure(str(e) or e.__class__.__name__) from e

            logger.info(
                f"Demo setup: {result.practitioners.succeeded} practitioners, "
                f"{result.patients.succeeded} patients, "
                f"{result.schedules.succeeded} schedules, "
                f"{result.slots.succeeded} slots, "
                f"{result.appointments.succeeded} appointments, "
                f"{result.encounters.succeeded} encounters, "
                f"{result.error_count} errors"
            )
            return result

    async def clear(self) -> ClearResult:
        """
        Delete every tracked demo resource.

        Kinds are deleted in reverse dependency order, so encounters go
        first and practitioners and patients last. Resources that fail to
        delete stay tracked for the next clear. With nothing tracked this
        is a no-op that succeeds.

        Raises:
            Busy: Another setup or clear is running
            UnexpectedFailure: Anything outside the per-resource deletes failed
        """
        async with self._single_flight("clear"):
            result = ClearResult()
            if self._dataset.is_empty:
                logger.info("Demo clear: nothing to clear")
                return result

            logger.info(f"Demo clear: deleting {self._dataset.total} tracked resources")
            try:
                deleters = self._deleters()
                for wave in CLEAR_WAVES:
                    await asyncio.gather(
                        *(
                            self._delete_all(kind, deleters[kind], result.report(kind))
                            for kind in wave
                        )
                    )
            except Exception as e:
                logger.error(f"Demo clear failed unexpectedly: {e}")
                raise UnexpectedFailure(str(e) or e.__class__.__name__) from e

            if result.success:
                self._dataset.reset()
            logger.info(f"Demo clear: {result.cleared} deleted, {result.error_count} errors")
            return result

    async def _write_all(
        self,
        kind: str,
        items: Sequence,
        write: Callable[..., Awaitable[None]],
        report: KindReport,
    ) -> None:
        async def write_one(item) -> Optional[ResourceWriteFailure]:
            # Tracked up front: a write that fails or times out may still have landed
            self._dataset.record(kind, item.id)
            try:
                await self._call(write(item))
            except Exception as e:
                message = describe_failure(e, self._call_timeout)
                logger.warning(f"Demo setup: failed to write {kind} {item.id}: {message}")
                return ResourceWriteFailure(kind, item.id, message)
            return None

        failures = await asyncio.gather(*(write_one(item) for item in items))
        for failure in failures:
            if failure is None:
                report.add_success()
            else:
                report.add_failure(failure.resource_id, failure.message)

    async def _delete_all(
        self,
        kind: str,
        delete: Callable[[str], Awaitable[None]],
        report: KindReport,
    ) -> None:
        ids = self._dataset.ids(kind)

        async def delete_one(resource_id: str) -> Optional[ResourceDeleteFailure]:
            try:
                await self._call(delete(resource_id))
            except Exception as e:
                message = describe_failure(e, self._call_timeout)
                logger.warning(f"Demo clear: failed to delete {kind} {resource_id}: {message}")
                return ResourceDeleteFailure(kind, resource_id, message)
            self._dataset.discard(kind, resource_id)
            return None

        failures = await asyncio.gather(*(delete_one(resource_id) for resource_id in ids))
        for failure in failures:
            if failure is None:
                report.add_success()
            else:
                report.add_failure(failure.resource_id, failure.message)


# Singleton instance
_demo_orchestrator: Optional[DemoDataOrchestrator] = None


def get_demo_orchestrator() -> DemoDataOrchestrator:
    """Get the singleton demo orchestrator, bound to the shared record store."""
    global _demo_orchestrator
    if _demo_orchestrator is None:
        _demo_orchestrator = DemoDataOrchestrator(get_record_store())
    return _demo_orchestrator
