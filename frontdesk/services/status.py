"""
Status Service - today's queue and appointment figures.

Unlike demo setup/clear this read path is all-or-nothing: if either fetch
fails the whole snapshot fails, so the UI never shows half the picture.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from loguru import logger

from frontdesk.config import get_settings
from frontdesk.exceptions import UpstreamFailure
from frontdesk.models.demo import StatusSnapshot
from frontdesk.services.aggregation import AppointmentAggregator, QueueAggregator
from frontdesk.services.calendar import clinic_timezone, clinic_today, format_day
from frontdesk.services.record_store import RecordStoreClient, get_record_store


class StatusReporter:
    """Composes the queue and appointment aggregators into one snapshot."""

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
        self._queue_aggregator = QueueAggregator()
        self._appointment_aggregator = AppointmentAggregator()

    async def status(self) -> StatusSnapshot:
        """
        Build today's status snapshot.

        The encounter and appointment reads run concurrently; the first
        failure cancels the other read.

        Raises:
            UpstreamFailure: A read failed or timed out
        """
        today = clinic_today(self._tz, self._clock())

        tasks = [
            asyncio.ensure_future(
                asyncio.wait_for(self._store.get_today_queue(today), self._call_timeout)
            ),
            asyncio.ensure_future(
                asyncio.wait_for(self._store.get_today_appointments(today), self._call_timeout)
            ),
        ]
        try:
            queue, appointments = await asyncio.gather(*tasks)
        except asyncio.TimeoutError as e:
            message = f"Record store read timed out after {self._call_timeout:g}s"
            logger.error(f"Status for {format_day(today)} failed: {message}")
            raise UpstreamFailure(message) from e
        except Exception as e:
            logger.error(f"Status for {format_day(today)} failed: {e}")
            raise UpstreamFailure(str(e) or e.__class__.__name__) from e
        finally:
            pending = [task for task in tasks if not task.done()]
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        return StatusSnapshot(
            today=today,
            queue=self._queue_aggregator.aggregate(queue),
            appointments=self._appointment_aggregator.aggregate(appointments),
        )


# Singleton instance
_status_reporter: Optional[StatusReporter] = None


def get_status_reporter() -> StatusReporter:
    """Get the singleton status reporter, bound to the shared record store."""
    global _status_reporter
    if _status_reporter is None:
        _status_reporter = StatusReporter(get_record_store())
    return _status_reporter
