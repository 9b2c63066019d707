"""
Unit tests for the status reporter.
"""

import asyncio
from datetime import date

import pytest

from frontdesk.exceptions import RecordStoreError, UpstreamFailure
from frontdesk.models.appointment import Appointment
from frontdesk.models.queue import Encounter, Priority, QueueStatus
from frontdesk.services.status import StatusReporter

QUEUE_READ = "queue"
APPOINTMENTS_READ = "appointments"


def seed_day(store, day: date) -> None:
    """5 encounters (2 urgent, 3 regular) and 4 appointments (3 booked, 1 arrived)."""
    priorities = [Priority.URGENT, Priority.EMERGENCY, Priority.ROUTINE, Priority.ROUTINE, Priority.ROUTINE]
    for n, priority in enumerate(priorities):
        store.encounters[f"enc-{n}"] = Encounter(
            id=f"enc-{n}", patient_id=f"pat-{n}", priority=priority,
            status=QueueStatus.WAITING, day=day,
        )
    for n, status in enumerate(["booked", "booked", "booked", "arrived"]):
        store.appointments[f"appt-{n}"] = Appointment(
            id=f"appt-{n}", patient_id=f"pat-{n}", status=status, day=day,
        )


class TestStatusReporter:
    """Test the combined status snapshot."""

    @pytest.mark.asyncio
    async def test_snapshot_figures(self, reporter, fake_store, fixed_day):
        seed_day(fake_store, fixed_day)

        snapshot = await reporter.status()

        assert snapshot.today == fixed_day
        assert snapshot.queue.total == 5
        assert snapshot.queue.urgent == 2
        assert snapshot.queue.regular == 3
        assert snapshot.appointments.total == 4
        assert snapshot.appointments.booked == 3
        assert snapshot.appointments.arrived == 1

    @pytest.mark.asyncio
    async def test_empty_day(self, reporter):
        snapshot = await reporter.status()
        assert snapshot.queue.total == 0
        assert snapshot.appointments.total == 0

    @pytest.mark.asyncio
    async def test_other_days_are_ignored(self, reporter, fake_store, fixed_day):
        seed_day(fake_store, date(2026, 3, 9))
        snapshot = await reporter.status()
        assert snapshot.queue.total == 0
        assert snapshot.appointments.total == 0

    @pytest.mark.asyncio
    async def test_finished_encounters_not_in_queue(self, reporter, fake_store, fixed_day):
        fake_store.encounters["done"] = Encounter(
            id="done", patient_id="pat-1", status=QueueStatus.FINISHED, day=fixed_day
        )
        snapshot = await reporter.status()
        assert snapshot.queue.total == 0

    @pytest.mark.asyncio
    async def test_read_failure_is_upstream_failure(self, reporter, fake_store):
        """Any failed read fails the whole snapshot with the cause message."""
        fake_store.read_error = RecordStoreError("FHIR GET Encounter failed: 503 Service Unavailable")

        with pytest.raises(UpstreamFailure, match="503") as exc_info:
            await reporter.status()
        assert isinstance(exc_info.value.__cause__, RecordStoreError)

    @pytest.mark.asyncio
    async def test_non_store_error_is_upstream_failure(self, reporter, fake_store):
        fake_store.read_error = ConnectionResetError("connection reset by peer")

        with pytest.raises(UpstreamFailure, match="connection reset"):
            await reporter.status()

    @pytest.mark.asyncio
    async def test_timeout_is_upstream_failure(self, fake_store, berlin, fixed_now):
        fake_store.hang_reads = True
        reporter = StatusReporter(fake_store, call_timeout=0.01, tz=berlin, clock=lambda: fixed_now)

        with pytest.raises(UpstreamFailure, match="timed out"):
            await reporter.status()

    @pytest.mark.asyncio
    async def test_reads_run_concurrently(self, reporter, fake_store):
        """Both reads are in flight before either one completes."""
        fake_store.read_gate = asyncio.Event()
        task = asyncio.create_task(reporter.status())

        for _ in range(50):
            if len(fake_store.reads_started) == 2:
                break
            await asyncio.sleep(0)

        assert sorted(fake_store.reads_started) == [APPOINTMENTS_READ, QUEUE_READ]
        fake_store.read_gate.set()
        snapshot = await task
        assert snapshot.queue.total == 0

    @pytest.mark.asyncio
    async def test_first_failure_cancels_other_read(self, fake_store, berlin, fixed_now):
        """A failing read aborts the snapshot without waiting on its sibling."""
        fake_store.read_errors[QUEUE_READ] = RecordStoreError("FHIR GET Encounter failed: 500")
        fake_store.hanging_reads.add(APPOINTMENTS_READ)
        reporter = StatusReporter(fake_store, call_timeout=5.0, tz=berlin, clock=lambda: fixed_now)

        with pytest.raises(UpstreamFailure, match="500"):
            await asyncio.wait_for(reporter.status(), 1.0)

        assert fake_store.reads_cancelled == [APPOINTMENTS_READ]
