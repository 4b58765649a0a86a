"""Request bodies and response serializers shared by the routers."""

from __future__ import annotations

from pydantic import BaseModel, Field

from app.application.ports.ticket_repo import TicketMetrics
from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.ticket import Ticket
from app.domain.entities.trip import Trip
from app.domain.value_objects.enums import TripStatus

# Identifiers and timestamps arrive as strings; the use cases parse them so
# malformed values surface as 400 {"error": ...} like every other domain error.


class CreateTicketRequest(BaseModel):
    cleaning_area_id: str
    contractor_id: str
    contract_id: str
    planned_start_at: str
    planned_end_at: str
    description: str | None = None


class CreateAssignmentRequest(BaseModel):
    driver_id: str
    vehicle_id: str


class RecordTripRequest(BaseModel):
    entry_at: str
    ticket_id: str | None = None
    ticket_assignment_id: str | None = None
    driver_id: str | None = None
    vehicle_id: str | None = None
    camera_id: str | None = None
    polygon_id: str | None = None
    vehicle_plate_number: str = ""
    detected_plate_number: str = ""
    entry_lpr_event_id: str | None = None
    exit_lpr_event_id: str | None = None
    entry_volume_event_id: str | None = None
    exit_volume_event_id: str | None = None
    detected_volume_entry: float | None = Field(default=None, ge=0)
    detected_volume_exit: float | None = None
    exit_at: str | None = None
    status: TripStatus = TripStatus.OK


class CloseTripRequest(BaseModel):
    exit_at: str
    exit_lpr_event_id: str | None = None
    exit_volume_event_id: str | None = None
    detected_volume_exit: float | None = None


def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _str(value) -> str | None:
    return str(value) if value is not None else None


def serialize_ticket(t: Ticket, metrics: TicketMetrics | None = None) -> dict:
    data = {
        "id": _str(t.id),
        "cleaning_area_id": _str(t.cleaning_area_id),
        "contractor_id": _str(t.contractor_id),
        "created_by_org_id": _str(t.created_by_org_id),
        "contract_id": _str(t.contract_id),
        "status": t.status.value,
        "planned_start_at": _iso(t.planned_start_at),
        "planned_end_at": _iso(t.planned_end_at),
        "fact_start_at": _iso(t.fact_start_at),
        "fact_end_at": _iso(t.fact_end_at),
        "description": t.description,
    }
    if metrics is not None:
        data["metrics"] = {
            "total_trips": metrics.total_trips,
            "total_volume_m3": metrics.total_volume_m3,
            "has_violations": metrics.has_violations,
        }
    return data


def serialize_assignment(a: TicketAssignment) -> dict:
    return {
        "id": _str(a.id),
        "ticket_id": _str(a.ticket_id),
        "driver_id": _str(a.driver_id),
        "vehicle_id": _str(a.vehicle_id),
        "driver_mark_status": a.driver_mark_status.value,
        "trip_started_at": _iso(a.trip_started_at),
        "trip_finished_at": _iso(a.trip_finished_at),
        "assigned_at": _iso(a.assigned_at),
        "unassigned_at": _iso(a.unassigned_at),
        "is_active": a.is_active,
    }


def serialize_trip(t: Trip) -> dict:
    return {
        "id": _str(t.id),
        "ticket_id": _str(t.ticket_id),
        "ticket_assignment_id": _str(t.ticket_assignment_id),
        "driver_id": _str(t.driver_id),
        "vehicle_id": _str(t.vehicle_id),
        "vehicle_plate_number": t.vehicle_plate_number,
        "detected_plate_number": t.detected_plate_number,
        "entry_at": _iso(t.entry_at),
        "exit_at": _iso(t.exit_at),
        "detected_volume_entry": t.detected_volume_entry,
        "detected_volume_exit": t.detected_volume_exit,
        "total_volume_m3": t.total_volume_m3,
        "status": t.status.value,
        "violation_reason": t.violation_reason,
        "auto_created": t.auto_created,
    }
