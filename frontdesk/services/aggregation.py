"""
Queue and appointment aggregation.

Both aggregators are pure: the result depends only on the multiset of
inputs, and an empty input gives all-zero statistics.
"""

from typing import Iterable

from frontdesk.models.appointment import ARRIVED, BOOKED, Appointment, AppointmentStats
from frontdesk.models.queue import Encounter, Priority, QueueStats, QueueStatus, Urgency

_STATUS_FIELDS = {
    QueueStatus.EXPECTED: "expected",
    QueueStatus.WAITING: "waiting",
    QueueStatus.CALLED: "called",
    QueueStatus.IN_TREATMENT: "in_treatment",
}


class QueueAggregator:
    """Computes occupancy and urgency figures for a collection of encounters."""

    def aggregate(self, encounters: Iterable[Encounter]) -> QueueStats:
        stats = QueueStats()
        for encounter in encounters:
            stats.total += 1
            if encounter.urgency == Urgency.URGENT:
                stats.urgent += 1
            if encounter.priority == Priority.EMERGENCY:
                stats.emergency += 1
            field = _STATUS_FIELDS.get(encounter.status)
            if field:
                setattr(stats, field, getattr(stats, field) + 1)
        stats.regular = stats.total - stats.urgent
        return stats


class AppointmentAggregator:
    """Computes booked/arrived figures for a collection of appointments."""

    def aggregate(self, appointments: Iterable[Appointment]) -> AppointmentStats:
        stats = AppointmentStats()
        for appointment in appointments:
            stats.total += 1
            if appointment.status == BOOKED:
                stats.booked += 1
            elif appointment.status == ARRIVED:
                stats.arrived += 1
        return stats
