"""TripRecordingUseCase: persist sensor-observed trips and classify their compliance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.application.parsing import (
    parse_optional_timestamp,
    parse_optional_uuid,
    parse_timestamp,
    parse_uuid,
)
from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.trip_repo import TripRepository
from app.application.ports.vehicle_repo import VehiclePositionRepository, VehicleRepository
from app.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.trip import Trip
from app.domain.entities.vehicle import Vehicle, VehiclePosition
from app.domain.errors import ConflictError, InvalidInputError, NotFoundError
from app.domain.policies.trip_classification import TripSignals, explain
from app.domain.value_objects.enums import TripStatus
from app.domain.value_objects.plate import normalize_plate
from app.domain.value_objects.thresholds import ComplianceThresholds

logger = logging.getLogger(__name__)

# violation_reason marker for a status supplied by the caller.
EXTERNAL_REASON = "external"


@dataclass
class RecordTripInput:
    entry_at: str | datetime
    ticket_id: str | UUID | None = None
    ticket_assignment_id: str | UUID | None = None
    driver_id: str | UUID | None = None
    vehicle_id: str | UUID | None = None
    camera_id: str | UUID | None = None
    polygon_id: str | UUID | None = None
    vehicle_plate_number: str = ""
    detected_plate_number: str = ""
    entry_lpr_event_id: str | UUID | None = None
    exit_lpr_event_id: str | UUID | None = None
    entry_volume_event_id: str | UUID | None = None
    exit_volume_event_id: str | UUID | None = None
    detected_volume_entry: float | None = None
    detected_volume_exit: float | None = None
    exit_at: str | datetime | None = None
    status: TripStatus = TripStatus.OK


@dataclass
class CloseTripInput:
    exit_at: str | datetime
    exit_lpr_event_id: str | UUID | None = None
    exit_volume_event_id: str | UUID | None = None
    detected_volume_exit: float | None = None


@dataclass
class _Context:
    """Reference data the classifier needs, resolved once per call."""

    assignment: TicketAssignment | None
    assigned_vehicle: Vehicle | None
    resolved_vehicle: Vehicle | None
    last_position: VehiclePosition | None


class TripRecordingUseCase:
    """Record and close trips reported by the sensor pipeline."""

    def __init__(
        self,
        trip_repo: TripRepository,
        assignment_repo: AssignmentRepository,
        vehicle_repo: VehicleRepository,
        position_repo: VehiclePositionRepository,
        lifecycle: TicketLifecycleUseCase,
        thresholds: ComplianceThresholds,
    ):
        self._trips = trip_repo
        self._assignments = assignment_repo
        self._vehicles = vehicle_repo
        self._positions = position_repo
        self._lifecycle = lifecycle
        self._thresholds = thresholds

    async def record(self, data: RecordTripInput) -> Trip:
        entry_at = parse_timestamp(data.entry_at, "entry_at")
        exit_at = parse_optional_timestamp(data.exit_at, "exit_at")
        if exit_at is not None and exit_at < entry_at:
            raise InvalidInputError("exit_at precedes entry_at")

        driver_id = parse_optional_uuid(data.driver_id, "driver_id")
        vehicle_id = parse_optional_uuid(data.vehicle_id, "vehicle_id")
        assignment = await self._resolve_assignment(
            parse_optional_uuid(data.ticket_assignment_id, "ticket_assignment_id"),
            driver_id,
            vehicle_id,
        )

        ticket_id = parse_optional_uuid(data.ticket_id, "ticket_id")
        if assignment is not None:
            ticket_id = assignment.ticket_id
            driver_id = assignment.driver_id
        if ticket_id is not None:
            ticket = await self._lifecycle.get(ticket_id)
            if ticket.is_terminal():
                raise ConflictError(f"Ticket {ticket_id} is {ticket.status.value}")

        detected_plate = normalize_plate(data.detected_plate_number)
        ctx = await self._load_context(assignment, vehicle_id, detected_plate)

        trip = Trip(
            id=None,
            entry_at=entry_at,
            exit_at=exit_at,
            ticket_id=ticket_id,
            ticket_assignment_id=assignment.id if assignment else None,
            driver_id=driver_id,
            vehicle_id=vehicle_id or (assignment.vehicle_id if assignment else None),
            camera_id=parse_optional_uuid(data.camera_id, "camera_id"),
            polygon_id=parse_optional_uuid(data.polygon_id, "polygon_id"),
            vehicle_plate_number=normalize_plate(data.vehicle_plate_number)
            or (normalize_plate(ctx.assigned_vehicle.plate_number) if ctx.assigned_vehicle else ""),
            detected_plate_number=detected_plate,
            entry_lpr_event_id=parse_optional_uuid(data.entry_lpr_event_id, "entry_lpr_event_id"),
            exit_lpr_event_id=parse_optional_uuid(data.exit_lpr_event_id, "exit_lpr_event_id"),
            entry_volume_event_id=parse_optional_uuid(
                data.entry_volume_event_id, "entry_volume_event_id"
            ),
            exit_volume_event_id=parse_optional_uuid(
                data.exit_volume_event_id, "exit_volume_event_id"
            ),
            detected_volume_entry=data.detected_volume_entry,
            detected_volume_exit=data.detected_volume_exit,
            vehicle_body_volume_m3=self._body_volume(ctx),
        )
        self._classify(trip, ctx, base_status=data.status, provided_vehicle_id=vehicle_id)

        trip = await self._trips.save(trip)
        logger.info(
            "Trip %s recorded: ticket %s, status %s (%s)",
            trip.id, trip.ticket_id, trip.status.value, trip.violation_reason or "clean",
        )

        if trip.ticket_id is not None:
            await self._lifecycle.on_trip_created(trip.ticket_id)
            if not trip.is_open():
                await self._lifecycle.try_auto_complete(trip.ticket_id)
        return trip

    async def close(self, trip_id: str | UUID, data: CloseTripInput) -> Trip:
        trip_uuid = parse_uuid(trip_id, "trip_id")
        trip = await self._trips.get_by_id(trip_uuid)
        if trip is None:
            raise NotFoundError(f"Trip {trip_uuid} not found")

        trip.close(parse_timestamp(data.exit_at, "exit_at"))
        exit_lpr = parse_optional_uuid(data.exit_lpr_event_id, "exit_lpr_event_id")
        exit_volume = parse_optional_uuid(data.exit_volume_event_id, "exit_volume_event_id")
        if exit_lpr is not None:
            trip.exit_lpr_event_id = exit_lpr
        if exit_volume is not None:
            trip.exit_volume_event_id = exit_volume
        if data.detected_volume_exit is not None:
            trip.detected_volume_exit = data.detected_volume_exit

        assignment = None
        if trip.ticket_assignment_id is not None:
            assignment = await self._assignments.get_by_id(trip.ticket_assignment_id)
        ctx = await self._load_context(assignment, trip.vehicle_id, trip.detected_plate_number)

        # A caller-supplied violation survives re-classification.
        base = trip.status if trip.violation_reason == EXTERNAL_REASON else TripStatus.OK
        self._classify(trip, ctx, base_status=base, provided_vehicle_id=trip.vehicle_id)

        trip = await self._trips.update(trip)
        logger.info("Trip %s closed with status %s", trip.id, trip.status.value)

        if trip.ticket_id is not None:
            await self._lifecycle.try_auto_complete(trip.ticket_id)
        return trip

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _resolve_assignment(
        self,
        assignment_id: UUID | None,
        driver_id: UUID | None,
        vehicle_id: UUID | None,
    ) -> TicketAssignment | None:
        """Explicit id first, then the driver's, then the vehicle's active assignment."""
        if assignment_id is not None:
            assignment = await self._assignments.get_by_id(assignment_id)
            if assignment is None:
                raise NotFoundError(f"Assignment {assignment_id} not found")
            if not assignment.is_active:
                raise ConflictError(f"Assignment {assignment_id} is no longer active")
            return assignment
        if driver_id is not None:
            assignment = await self._assignments.find_active_by_driver(driver_id)
            if assignment is not None:
                return assignment
        if vehicle_id is not None:
            return await self._assignments.find_active_by_vehicle(vehicle_id)
        return None

    async def _load_context(
        self,
        assignment: TicketAssignment | None,
        vehicle_id: UUID | None,
        detected_plate: str,
    ) -> _Context:
        assigned_vehicle = None
        if assignment is not None:
            assigned_vehicle = await self._vehicles.get_by_id(assignment.vehicle_id)

        resolved_vehicle = None
        if detected_plate:
            resolved_vehicle = await self._vehicles.get_by_plate(detected_plate)

        tracked_id = assignment.vehicle_id if assignment is not None else vehicle_id
        if tracked_id is None and resolved_vehicle is not None:
            tracked_id = resolved_vehicle.id
        last_position = None
        if tracked_id is not None:
            last_position = await self._positions.get_last(tracked_id)

        return _Context(
            assignment=assignment,
            assigned_vehicle=assigned_vehicle,
            resolved_vehicle=resolved_vehicle,
            last_position=last_position,
        )

    @staticmethod
    def _body_volume(ctx: _Context) -> float | None:
        if ctx.assigned_vehicle is not None:
            return ctx.assigned_vehicle.body_volume_m3
        if ctx.resolved_vehicle is not None:
            return ctx.resolved_vehicle.body_volume_m3
        return None

    def _classify(
        self,
        trip: Trip,
        ctx: _Context,
        base_status: TripStatus,
        provided_vehicle_id: UUID | None,
    ) -> None:
        expected_plate = trip.vehicle_plate_number
        if ctx.assigned_vehicle is not None:
            expected_plate = ctx.assigned_vehicle.plate_number

        signals = TripSignals(
            base_status=base_status,
            assignment=ctx.assignment,
            provided_vehicle_id=provided_vehicle_id,
            resolved_vehicle_id=ctx.resolved_vehicle.id if ctx.resolved_vehicle else None,
            expected_plate=expected_plate,
            detected_plate=trip.detected_plate_number,
            entry_volume=trip.detected_volume_entry,
            exit_volume=trip.detected_volume_exit,
            body_volume=trip.vehicle_body_volume_m3,
            exit_plate_event_present=trip.exit_lpr_event_id is not None,
            exit_volume_event_present=trip.exit_volume_event_id is not None,
            entry_at=trip.entry_at,
            exit_at=trip.exit_at,
            last_position=ctx.last_position,
        )
        trip.status, trip.violation_reason = explain(signals, self._thresholds)
