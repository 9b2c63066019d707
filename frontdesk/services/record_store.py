"""
Record Store Client - access to the FHIR (Aidbox) clinical record store.

RecordStoreClient is the capability the demo and status services depend
on; FhirRecordStoreClient is the HTTP implementation, using a pooled async
client with Basic auth and a bounded timeout.
"""

from datetime import date
from typing import Any, List, Optional, Protocol

import httpx
from loguru import logger

from frontdesk.config import Settings, get_settings
from frontdesk.exceptions import RecordStoreError
from frontdesk.models.appointment import Appointment
from frontdesk.models.patient import Patient
from frontdesk.models.queue import Encounter, QueueStats, QueueStatus
from frontdesk.models.schedule import Practitioner, Schedule, Slot
from frontdesk.services.aggregation import QueueAggregator
from frontdesk.services.calendar import clinic_timezone, format_day
from frontdesk.services.fhir import (
    appointment_to_fhir,
    encounter_to_fhir,
    fhir_to_appointment,
    fhir_to_encounter,
    patient_to_fhir,
    practitioner_to_fhir,
    schedule_to_fhir,
    slot_to_fhir,
)

FHIR_CONTENT_TYPE = "application/fhir+json"

# Search page size; further pages are followed through the bundle's next link
SEARCH_PAGE_SIZE = 100


class RecordStoreClient(Protocol):
    """Operations the front desk needs from the clinical record store."""

    async def create_practitioner(self, practitioner: Practitioner) -> None: ...

    async def create_schedule(self, schedule: Schedule) -> None: ...

    async def create_slot(self, slot: Slot) -> None: ...

    async def create_patient(self, patient: Patient) -> None: ...

    async def create_encounter(self, encounter: Encounter) -> None: ...

    async def create_appointment(self, appointment: Appointment) -> None: ...

    async def delete_practitioner(self, practitioner_id: str) -> None: ...

    async def delete_schedule(self, schedule_id: str) -> None: ...

    async def delete_slot(self, slot_id: str) -> None: ...

    async def delete_patient(self, patient_id: str) -> None: ...

    async def delete_encounter(self, encounter_id: str) -> None: ...

    async def delete_appointment(self, appointment_id: str) -> None: ...

    async def get_today_queue(self, day: date) -> List[Encounter]: ...

    async def get_queue_stats(self, day: date) -> QueueStats: ...

    async def get_today_appointments(self, day: date) -> List[Appointment]: ...


class FhirRecordStoreClient:
    """
    Async client for an Aidbox FHIR R4 endpoint.

    Creates use PUT with client-chosen ids, so writing the same resource
    twice updates it instead of duplicating it. Deleting a resource that is
    already gone counts as success.
    """

    def __init__(self, settings: Optional[Settings] = None, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings or get_settings()
        self._tz = clinic_timezone(self.settings.clinic_timezone)
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._aggregator = QueueAggregator()

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with connection pooling."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.settings.record_store_url + "/",
                auth=httpx.BasicAuth(
                    self.settings.record_store_user,
                    self.settings.record_store_password,
                ),
                headers={"Accept": FHIR_CONTENT_TYPE, "Content-Type": FHIR_CONTENT_TYPE},
                timeout=httpx.Timeout(self.settings.record_store_timeout),
                limits=httpx.Limits(
                    max_connections=self.settings.connection_pool_size,
                    max_keepalive_connections=self.settings.connection_pool_size // 2,
                ),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        json: Optional[dict] = None,
        params: Optional[dict] = None,
        allow_missing: bool = False,
    ) -> Any:
        """
        Send one request to the record store.

        Args:
            method: HTTP method
            path: Path relative to the FHIR base, or an absolute URL
            json: FHIR resource body
            params: Search parameters
            allow_missing: Treat 404/410 as an empty result instead of an error

        Returns:
            Decoded JSON body, or None for empty responses

        Raises:
            RecordStoreError: On timeouts, transport errors and non-2xx responses
        """
        client = await self._get_client()
        path = path.lstrip("/")

        try:
            response = await client.request(method, path, json=json, params=params)
        except httpx.TimeoutException as e:
            logger.error(f"FHIR {method} {path} timed out: {e}")
            raise RecordStoreError(
                f"FHIR {method} {path} timed out", method=method, path=path
            ) from e
        except httpx.RequestError as e:
            logger.error(f"FHIR {method} {path} request error: {e}")
            raise RecordStoreError(
                f"FHIR {method} {path} failed: {e}", method=method, path=path
            ) from e

        if allow_missing and response.status_code in (404, 410):
            return None

        if response.is_error:
            body = response.text[:500]
            logger.error(f"FHIR {method} {path} returned {response.status_code}")
            raise RecordStoreError(
                f"FHIR {method} {path} failed: {response.status_code} "
                f"{response.reason_phrase} - {body}",
                method=method,
                path=path,
                status_code=response.status_code,
            )

        if not response.content:
            return None
        return response.json()

    async def _search(self, resource_type: str, params: dict) -> List[dict]:
        """Run a FHIR search and collect matching resources across pages."""
        resources: List[dict] = []
        next_path: Optional[str] = resource_type
        next_params: Optional[dict] = {**params, "_count": SEARCH_PAGE_SIZE}

        while next_path:
            bundle = await self._request("GET", next_path, params=next_params) or {}
            for entry in bundle.get("entry") or []:
                resource = entry.get("resource") or {}
                if resource.get("resourceType") == resource_type:
                    resources.append(resource)

            next_path = next(
                (link.get("url") for link in bundle.get("link") or [] if link.get("relation") == "next"),
                None,
            )
            next_params = None

        return resources

    # ==================== Writes ====================

    async def create_practitioner(self, practitioner: Practitioner) -> None:
        await self._request(
            "PUT", f"Practitioner/{practitioner.id}", json=practitioner_to_fhir(practitioner)
        )
        logger.debug(f"Wrote Practitioner/{practitioner.id}")

    async def create_schedule(self, schedule: Schedule) -> None:
        await self._request("PUT", f"Schedule/{schedule.id}", json=schedule_to_fhir(schedule))
        logger.debug(f"Wrote Schedule/{schedule.id}")

    async def create_slot(self, slot: Slot) -> None:
        await self._request("PUT", f"Slot/{slot.id}", json=slot_to_fhir(slot))

    async def create_patient(self, patient: Patient) -> None:
        await self._request("PUT", f"Patient/{patient.id}", json=patient_to_fhir(patient))
        logger.debug(f"Wrote Patient/{patient.id}")

    async def create_encounter(self, encounter: Encounter) -> None:
        await self._request("PUT", f"Encounter/{encounter.id}", json=encounter_to_fhir(encounter))
        logger.debug(f"Wrote Encounter/{encounter.id}")

    async def create_appointment(self, appointment: Appointment) -> None:
        await self._request(
            "PUT", f"Appointment/{appointment.id}", json=appointment_to_fhir(appointment)
        )
        logger.debug(f"Wrote Appointment/{appointment.id}")

    async def delete_practitioner(self, practitioner_id: str) -> None:
        await self._request("DELETE", f"Practitioner/{practitioner_id}", allow_missing=True)

    async def delete_schedule(self, schedule_id: str) -> None:
        await self._request("DELETE", f"Schedule/{schedule_id}", allow_missing=True)

    async def delete_slot(self, slot_id: str) -> None:
        await self._request("DELETE", f"Slot/{slot_id}", allow_missing=True)

    async def delete_patient(self, patient_id: str) -> None:
        await self._request("DELETE", f"Patient/{patient_id}", allow_missing=True)

    async def delete_encounter(self, encounter_id: str) -> None:
        await self._request("DELETE", f"Encounter/{encounter_id}", allow_missing=True)

    async def delete_appointment(self, appointment_id: str) -> None:
        await self._request("DELETE", f"Appointment/{appointment_id}", allow_missing=True)

    # ==================== Reads ====================

    async def get_today_queue(self, day: date) -> List[Encounter]:
        """
        Open (not finished) encounters of one clinic day.

        Sorted emergencies first, then by creation time. Entries the store
        returns for neighbouring days are dropped.
        """
        resources = await self._search(
            "Encounter",
            {"date": format_day(day), "status:not": "finished", "_sort": "-_lastUpdated"},
        )

        queue = []
        for resource in resources:
            encounter = fhir_to_encounter(resource, self._tz)
            if encounter is None or encounter.day != day:
                continue
            if encounter.status == QueueStatus.FINISHED:
                continue
            queue.append(encounter)

        queue.sort(key=lambda e: e.sort_key)
        logger.info(f"Found {len(queue)} queue entries for {format_day(day)}")
        return queue

    async def get_queue_stats(self, day: date) -> QueueStats:
        return self._aggregator.aggregate(await self.get_today_queue(day))

    async def get_today_appointments(self, day: date) -> List[Appointment]:
        resources = await self._search("Appointment", {"date": format_day(day)})

        appointments = []
        for resource in resources:
            appointment = fhir_to_appointment(resource, self._tz)
            if appointment is not None and appointment.day == day:
                appointments.append(appointment)

        logger.info(f"Found {len(appointments)} appointments for {format_day(day)}")
        return appointments


# Singleton instance for reuse
_record_store: Optional[FhirRecordStoreClient] = None


def get_record_store() -> FhirRecordStoreClient:
    """Get the singleton record store client instance."""
    global _record_store
    if _record_store is None:
        _record_store = FhirRecordStoreClient()
    return _record_store
