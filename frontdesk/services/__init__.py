"""
Services layer for the Ignis front-desk service.
"""

from .aggregation import AppointmentAggregator, QueueAggregator
from .demo import DemoDataOrchestrator
from .record_store import FhirRecordStoreClient, RecordStoreClient
from .status import StatusReporter

__all__ = [
    "AppointmentAggregator",
    "QueueAggregator",
    "DemoDataOrchestrator",
    "FhirRecordStoreClient",
    "RecordStoreClient",
    "StatusReporter",
]
