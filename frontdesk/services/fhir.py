"""
Translation between front-desk models and FHIR R4 resources.

Queue status to Encounter.status:
- expected -> planned
- waiting -> arrived
- called -> arrived (plus the encounter-called extension)
- in_treatment -> in-progress
- finished -> finished

Priority is stored as an ActPriority coding: routine R, urgent U, emergency EM.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from zoneinfo import ZoneInfo

from frontdesk.models.appointment import BOOKED, Appointment
from frontdesk.models.patient import Patient
from frontdesk.models.queue import Encounter, Priority, QueueStatus
from frontdesk.models.schedule import Practitioner, Schedule, Slot
from frontdesk.services.calendar import clinic_day_of

EXT_BASE = "http://ignis.hackathon"
EXT_CREATED_AT = f"{EXT_BASE}/created-at"
EXT_CALLED = f"{EXT_BASE}/encounter-called"
EXT_ARRIVAL_TIME = f"{EXT_BASE}/arrival-time"
EXT_PATIENT_FLAG = f"{EXT_BASE}/patient-flag"
EXT_RETURNING_PATIENT = f"{EXT_BASE}/returning-patient"

ACT_CODE_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ActCode"
ACT_PRIORITY_SYSTEM = "http://terminology.hl7.org/CodeSystem/v3-ActPriority"

STATUS_TO_FHIR: Dict[QueueStatus, str] = {
    QueueStatus.EXPECTED: "planned",
    QueueStatus.WAITING: "arrived",
    QueueStatus.CALLED: "arrived",
    QueueStatus.IN_TREATMENT: "in-progress",
    QueueStatus.FINISHED: "finished",
}

FHIR_TO_STATUS: Dict[str, QueueStatus] = {
    "planned": QueueStatus.EXPECTED,
    "arrived": QueueStatus.WAITING,
    "in-progress": QueueStatus.IN_TREATMENT,
    "finished": QueueStatus.FINISHED,
}

PRIORITY_TO_FHIR: Dict[Priority, Dict[str, str]] = {
    Priority.ROUTINE: {"code": "R", "display": "routine"},
    Priority.URGENT: {"code": "U", "display": "urgent"},
    Priority.EMERGENCY: {"code": "EM", "display": "emergency"},
}

FHIR_TO_PRIORITY: Dict[str, Priority] = {
    "R": Priority.ROUTINE,
    "U": Priority.URGENT,
    "EM": Priority.EMERGENCY,
}


def parse_instant(value: Optional[str]) -> Optional[datetime]:
    """Parse a FHIR dateTime/instant; returns None for missing or partial values."""
    if not value or "T" not in value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def reference_id(reference: Optional[str], resource_type: str) -> Optional[str]:
    """Extract the id from a reference like ``Patient/123``."""
    prefix = f"{resource_type}/"
    if reference and reference.startswith(prefix):
        return reference[len(prefix):]
    return None


def _extension(resource: dict, url: str) -> Optional[dict]:
    for ext in resource.get("extension") or []:
        if ext.get("url") == url:
            return ext
    return None


# ============================================================================
# Patient
# ============================================================================


def patient_to_fhir(patient: Patient) -> dict:
    telecom = [{"system": "phone", "value": patient.phone, "use": "mobile"}]
    if patient.email:
        telecom.append({"system": "email", "value": patient.email})

    extension: List[dict] = [
        {"url": EXT_PATIENT_FLAG, "valueString": flag} for flag in patient.flags
    ]
    if patient.returning_patient is not None:
        extension.append(
            {"url": EXT_RETURNING_PATIENT, "valueBoolean": patient.returning_patient}
        )
    if patient.created_at is not None:
        extension.append(
            {"url": EXT_CREATED_AT, "valueDateTime": patient.created_at.isoformat()}
        )

    resource: Dict[str, Any] = {
        "resourceType": "Patient",
        "id": patient.id,
        "active": True,
        "name": [
            {"use": "official", "family": patient.last_name, "given": [patient.first_name]}
        ],
        "telecom": telecom,
        "birthDate": patient.birth_date.isoformat(),
    }
    if extension:
        resource["extension"] = extension
    return resource


# ============================================================================
# Practitioner, Schedule, Slot
# ============================================================================


def practitioner_to_fhir(practitioner: Practitioner) -> dict:
    name: Dict[str, Any] = {
        "use": "official",
        "family": practitioner.last_name,
        "given": [practitioner.first_name],
    }
    if practitioner.prefix:
        name["prefix"] = [practitioner.prefix]
    return {
        "resourceType": "Practitioner",
        "id": practitioner.id,
        "active": True,
        "name": [name],
    }


def schedule_to_fhir(schedule: Schedule) -> dict:
    return {
        "resourceType": "Schedule",
        "id": schedule.id,
        "active": True,
        "actor": [
            {
                "reference": f"Practitioner/{schedule.practitioner_id}",
                "display": schedule.practitioner_name,
            }
        ],
        "planningHorizon": {
            "start": schedule.start.isoformat(),
            "end": schedule.end.isoformat(),
        },
    }


def slot_to_fhir(slot: Slot) -> dict:
    return {
        "resourceType": "Slot",
        "id": slot.id,
        "schedule": {"reference": f"Schedule/{slot.schedule_id}"},
        "status": slot.status,
        "start": slot.start.isoformat(),
        "end": slot.end.isoformat(),
    }


def _practitioner_reference(practitioner_id: Optional[str], display: str) -> dict:
    """Reference to a known practitioner, or a display-only reference."""
    reference = {"display": display}
    if practitioner_id:
        reference["reference"] = f"Practitioner/{practitioner_id}"
    return reference


# ============================================================================
# Encounter (queue entry)
# ============================================================================


def encounter_to_fhir(encounter: Encounter, now: Optional[datetime] = None) -> dict:
    """
    Convert a queue entry to a FHIR Encounter.

    ``now`` stamps the called extension and the end of a finished
    encounter; it defaults to the current UTC time.
    """
    now = now or datetime.now(timezone.utc)
    created_at = encounter.created_at or now
    start = encounter.arrival_time or created_at
    priority = PRIORITY_TO_FHIR[encounter.priority]

    resource: Dict[str, Any] = {
        "resourceType": "Encounter",
        "id": encounter.id,
        "status": STATUS_TO_FHIR[encounter.status],
        "class": {"system": ACT_CODE_SYSTEM, "code": "AMB", "display": "ambulatory"},
        "priority": {"coding": [{"system": ACT_PRIORITY_SYSTEM, **priority}]},
        "subject": {
            "reference": f"Patient/{encounter.patient_id}",
            "display": encounter.patient_name,
        },
        "period": {"start": start.isoformat()},
        "extension": [{"url": EXT_CREATED_AT, "valueDateTime": created_at.isoformat()}],
    }

    if encounter.appointment_id:
        resource["appointment"] = [{"reference": f"Appointment/{encounter.appointment_id}"}]
    if encounter.reason:
        resource["reasonCode"] = [{"text": encounter.reason}]
    if encounter.room:
        resource["location"] = [{"location": {"display": encounter.room}, "status": "active"}]
    if encounter.doctor:
        resource["participant"] = [
            {"individual": _practitioner_reference(encounter.practitioner_id, encounter.doctor)}
        ]
    if encounter.status == QueueStatus.CALLED:
        resource["extension"].append({"url": EXT_CALLED, "valueDateTime": now.isoformat()})
    if encounter.status != QueueStatus.EXPECTED and encounter.arrival_time:
        resource["extension"].append(
            {"url": EXT_ARRIVAL_TIME, "valueDateTime": encounter.arrival_time.isoformat()}
        )
    if encounter.status == QueueStatus.FINISHED:
        resource["period"]["end"] = now.isoformat()

    return resource


def fhir_to_encounter(resource: dict, tz: ZoneInfo) -> Optional[Encounter]:
    """
    Convert a FHIR Encounter to a queue entry.

    Returns None when the encounter carries no usable timestamp, since it
    cannot be placed on a clinic day.
    """
    created_ext = _extension(resource, EXT_CREATED_AT)
    arrival_ext = _extension(resource, EXT_ARRIVAL_TIME)
    period_start = parse_instant((resource.get("period") or {}).get("start"))
    created_at = parse_instant(created_ext.get("valueDateTime")) if created_ext else None
    anchor = period_start or created_at
    if anchor is None:
        return None

    status = FHIR_TO_STATUS.get(resource.get("status", ""), QueueStatus.EXPECTED)
    if status == QueueStatus.WAITING and _extension(resource, EXT_CALLED):
        status = QueueStatus.CALLED

    coding = ((resource.get("priority") or {}).get("coding") or [{}])[0]
    priority = FHIR_TO_PRIORITY.get(coding.get("code", "R"), Priority.ROUTINE)

    subject = resource.get("subject") or {}
    appointment_ref = ((resource.get("appointment") or [{}])[0]).get("reference")
    reason = ((resource.get("reasonCode") or [{}])[0]).get("text")
    room = (((resource.get("location") or [{}])[0]).get("location") or {}).get("display")
    individual = ((resource.get("participant") or [{}])[0]).get("individual") or {}

    return Encounter(
        id=resource.get("id", ""),
        patient_id=reference_id(subject.get("reference"), "Patient") or "",
        patient_name=subject.get("display") or "Unbekannt",
        appointment_id=reference_id(appointment_ref, "Appointment"),
        status=status,
        priority=priority,
        day=clinic_day_of(anchor, tz),
        reason=reason,
        room=room,
        doctor=individual.get("display"),
        practitioner_id=reference_id(individual.get("reference"), "Practitioner"),
        arrival_time=(
            parse_instant(arrival_ext.get("valueDateTime")) if arrival_ext else period_start
        ),
        created_at=created_at or period_start,
    )


# ============================================================================
# Appointment
# ============================================================================


def appointment_to_fhir(appointment: Appointment) -> dict:
    resource: Dict[str, Any] = {
        "resourceType": "Appointment",
        "id": appointment.id,
        "status": appointment.status,
        "participant": [
            {
                "actor": {
                    "reference": f"Patient/{appointment.patient_id}",
                    "display": appointment.patient_name,
                },
                "status": "accepted",
            }
        ],
    }
    if appointment.start:
        resource["start"] = appointment.start.isoformat()
    if appointment.end:
        resource["end"] = appointment.end.isoformat()
    if appointment.reason:
        resource["description"] = appointment.reason
    if appointment.slot_id:
        resource["slot"] = [{"reference": f"Slot/{appointment.slot_id}"}]
    if appointment.practitioner:
        resource["participant"].append(
            {
                "actor": _practitioner_reference(
                    appointment.practitioner_id, appointment.practitioner
                ),
                "status": "accepted",
            }
        )
    return resource


def fhir_to_appointment(resource: dict, tz: ZoneInfo) -> Optional[Appointment]:
    """Convert a FHIR Appointment; None when it has no start time."""
    start = parse_instant(resource.get("start"))
    if start is None:
        return None

    patient = None
    practitioner = None
    for participant in resource.get("participant") or []:
        actor = participant.get("actor") or {}
        reference = actor.get("reference") or ""
        if reference.startswith("Patient/"):
            patient = patient or actor
        elif not reference or reference.startswith("Practitioner/"):
            practitioner = practitioner or actor

    slot_ref = ((resource.get("slot") or [{}])[0]).get("reference")

    return Appointment(
        id=resource.get("id", ""),
        patient_id=reference_id((patient or {}).get("reference"), "Patient") or "",
        patient_name=(patient or {}).get("display") or "Unbekannt",
        status=resource.get("status") or BOOKED,
        day=clinic_day_of(start, tz),
        start=start,
        end=parse_instant(resource.get("end")),
        reason=resource.get("description"),
        practitioner=(practitioner or {}).get("display"),
        practitioner_id=reference_id((practitioner or {}).get("reference"), "Practitioner"),
        slot_id=reference_id(slot_ref, "Slot"),
    )
