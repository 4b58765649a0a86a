"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.models import (
    TicketAssignmentModel,
    TicketModel,
    TripModel,
    VehicleModel,
    VehiclePositionModel,
)
from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.ticket_repo import TicketMetrics, TicketRepository
from app.application.ports.trip_repo import TripRepository
from app.application.ports.vehicle_repo import VehiclePositionRepository, VehicleRepository
from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.ticket import Ticket
from app.domain.entities.trip import Trip
from app.domain.entities.vehicle import Vehicle, VehiclePosition
from app.domain.value_objects.enums import DriverMarkStatus, TicketStatus, TripStatus
from app.domain.value_objects.geo_point import GeoPoint
from app.domain.value_objects.plate import normalize_plate

# ─── Mappers ─────────────────────────────────────────────────────────


def _ticket_to_domain(m: TicketModel) -> Ticket:
    return Ticket(
        id=m.id,
        cleaning_area_id=m.cleaning_area_id,
        contractor_id=m.contractor_id,
        created_by_org_id=m.created_by_org_id,
        contract_id=m.contract_id,
        planned_start_at=m.planned_start_at,
        planned_end_at=m.planned_end_at,
        status=TicketStatus(m.status),
        fact_start_at=m.fact_start_at,
        fact_end_at=m.fact_end_at,
        description=m.description,
    )


def _assignment_to_domain(m: TicketAssignmentModel) -> TicketAssignment:
    return TicketAssignment(
        id=m.id,
        ticket_id=m.ticket_id,
        driver_id=m.driver_id,
        vehicle_id=m.vehicle_id,
        driver_mark_status=DriverMarkStatus(m.driver_mark_status),
        trip_started_at=m.trip_started_at,
        trip_finished_at=m.trip_finished_at,
        assigned_at=m.assigned_at,
        unassigned_at=m.unassigned_at,
        is_active=m.is_active,
    )


# Columns shared by the domain Trip and TripModel, copied on save/update.
_TRIP_FIELDS = (
    "ticket_id",
    "ticket_assignment_id",
    "driver_id",
    "vehicle_id",
    "camera_id",
    "polygon_id",
    "vehicle_plate_number",
    "detected_plate_number",
    "entry_lpr_event_id",
    "exit_lpr_event_id",
    "entry_volume_event_id",
    "exit_volume_event_id",
    "detected_volume_entry",
    "detected_volume_exit",
    "vehicle_body_volume_m3",
    "total_volume_m3",
    "entry_at",
    "exit_at",
    "violation_reason",
    "auto_created",
)


def _trip_values(trip: Trip) -> dict:
    values = {name: getattr(trip, name) for name in _TRIP_FIELDS}
    values["status"] = trip.status.value
    return values


def _trip_to_domain(m: TripModel) -> Trip:
    return Trip(
        id=m.id,
        status=TripStatus(m.status),
        **{name: getattr(m, name) for name in _TRIP_FIELDS},
    )


def _vehicle_to_domain(m: VehicleModel) -> Vehicle:
    return Vehicle(id=m.id, plate_number=m.plate_number, body_volume_m3=m.body_volume_m3)


def _position_to_domain(m: VehiclePositionModel) -> VehiclePosition:
    return VehiclePosition(
        vehicle_id=m.vehicle_id,
        location=GeoPoint(latitude=m.latitude, longitude=m.longitude),
        recorded_at=m.recorded_at,
        inside_cleaning_area=m.inside_cleaning_area,
        inside_polygon=m.inside_polygon,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlTicketRepository(TicketRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, ticket: Ticket) -> Ticket:
        m = TicketModel(
            cleaning_area_id=ticket.cleaning_area_id,
            contractor_id=ticket.contractor_id,
            created_by_org_id=ticket.created_by_org_id,
            contract_id=ticket.contract_id,
            status=ticket.status.value,
            planned_start_at=ticket.planned_start_at,
            planned_end_at=ticket.planned_end_at,
            fact_start_at=ticket.fact_start_at,
            fact_end_at=ticket.fact_end_at,
            description=ticket.description,
        )
        self._s.add(m)
        await self._s.flush()
        ticket.id = m.id
        return ticket

    async def get_by_id(self, ticket_id: UUID) -> Ticket | None:
        m = await self._s.get(TicketModel, ticket_id)
        return _ticket_to_domain(m) if m else None

    async def update(self, ticket: Ticket) -> Ticket:
        await self._s.execute(
            update(TicketModel)
            .where(TicketModel.id == ticket.id)
            .values(
                status=ticket.status.value,
                fact_start_at=ticket.fact_start_at,
                fact_end_at=ticket.fact_end_at,
                description=ticket.description,
            )
        )
        await self._s.flush()
        return ticket

    async def count_trips(self, ticket_id: UUID) -> int:
        return await self._count(TripModel, TripModel.ticket_id == ticket_id)

    async def count_incomplete_trips(self, ticket_id: UUID) -> int:
        # Reconciliation-derived trips carry no sensor references.
        missing_exit_events = and_(
            TripModel.auto_created.is_(False),
            or_(
                TripModel.exit_lpr_event_id.is_(None),
                TripModel.exit_volume_event_id.is_(None),
            ),
        )
        return await self._count(
            TripModel,
            TripModel.ticket_id == ticket_id,
            or_(TripModel.exit_at.is_(None), missing_exit_events),
        )

    async def count_incomplete_assignments(self, ticket_id: UUID) -> int:
        return await self._count(
            TicketAssignmentModel,
            TicketAssignmentModel.ticket_id == ticket_id,
            TicketAssignmentModel.is_active.is_(True),
            TicketAssignmentModel.driver_mark_status != DriverMarkStatus.COMPLETED.value,
        )

    async def count_invalid_exit_volume_trips(self, ticket_id: UUID, tolerance: float) -> int:
        return await self._count(
            TripModel,
            TripModel.ticket_id == ticket_id,
            TripModel.detected_volume_exit.is_not(None),
            func.abs(TripModel.detected_volume_exit) > tolerance,
        )

    async def get_metrics(self, ticket_id: UUID) -> TicketMetrics:
        volume = func.coalesce(TripModel.total_volume_m3, TripModel.detected_volume_entry, 0.0)
        result = await self._s.execute(
            select(
                func.count(TripModel.id),
                func.coalesce(func.sum(volume), 0.0),
            ).where(TripModel.ticket_id == ticket_id)
        )
        total_trips, total_volume = result.one()
        violations = await self._count(
            TripModel,
            TripModel.ticket_id == ticket_id,
            TripModel.status != TripStatus.OK.value,
        )
        return TicketMetrics(
            total_trips=total_trips,
            total_volume_m3=float(total_volume),
            has_violations=violations > 0,
        )

    async def _count(self, model, *conditions) -> int:
        result = await self._s.execute(
            select(func.count()).select_from(model).where(*conditions)
        )
        return result.scalar_one()


class SqlAssignmentRepository(AssignmentRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, assignment: TicketAssignment) -> TicketAssignment:
        m = TicketAssignmentModel(
            ticket_id=assignment.ticket_id,
            driver_id=assignment.driver_id,
            vehicle_id=assignment.vehicle_id,
            driver_mark_status=assignment.driver_mark_status.value,
            trip_started_at=assignment.trip_started_at,
            trip_finished_at=assignment.trip_finished_at,
            is_active=assignment.is_active,
        )
        if assignment.assigned_at is not None:
            m.assigned_at = assignment.assigned_at
        self._s.add(m)
        await self._s.flush()
        assignment.id = m.id
        return assignment

    async def get_by_id(self, assignment_id: UUID) -> TicketAssignment | None:
        m = await self._s.get(TicketAssignmentModel, assignment_id)
        return _assignment_to_domain(m) if m else None

    async def find_active_by_driver(self, driver_id: UUID) -> TicketAssignment | None:
        return await self._find_active(TicketAssignmentModel.driver_id == driver_id)

    async def find_active_by_vehicle(self, vehicle_id: UUID) -> TicketAssignment | None:
        return await self._find_active(TicketAssignmentModel.vehicle_id == vehicle_id)

    async def start_trip(self, assignment_id: UUID, started_at: datetime) -> bool:
        return await self._compare_and_set(
            assignment_id,
            TicketAssignmentModel.trip_started_at.is_(None),
            trip_started_at=started_at,
            driver_mark_status=DriverMarkStatus.IN_WORK.value,
        )

    async def finish_trip(self, assignment_id: UUID, finished_at: datetime) -> bool:
        return await self._compare_and_set(
            assignment_id,
            TicketAssignmentModel.trip_started_at.is_not(None),
            TicketAssignmentModel.trip_finished_at.is_(None),
            trip_finished_at=finished_at,
            driver_mark_status=DriverMarkStatus.COMPLETED.value,
        )

    async def unassign(self, assignment_id: UUID, unassigned_at: datetime) -> bool:
        return await self._compare_and_set(
            assignment_id,
            TicketAssignmentModel.is_active.is_(True),
            is_active=False,
            unassigned_at=unassigned_at,
        )

    async def _find_active(self, condition) -> TicketAssignment | None:
        result = await self._s.execute(
            select(TicketAssignmentModel)
            .where(condition, TicketAssignmentModel.is_active.is_(True))
            .order_by(TicketAssignmentModel.assigned_at.desc())
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _assignment_to_domain(m) if m else None

    async def _compare_and_set(self, assignment_id: UUID, *guards, **values) -> bool:
        """Conditional UPDATE; False when a guard no longer holds (lost race)."""
        result = await self._s.execute(
            update(TicketAssignmentModel)
            .where(TicketAssignmentModel.id == assignment_id, *guards)
            .values(**values)
        )
        await self._s.flush()
        return result.rowcount == 1


class SqlTripRepository(TripRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, trip: Trip) -> Trip:
        m = TripModel(**_trip_values(trip))
        self._s.add(m)
        await self._s.flush()
        trip.id = m.id
        return trip

    async def update(self, trip: Trip) -> Trip:
        await self._s.execute(
            update(TripModel).where(TripModel.id == trip.id).values(**_trip_values(trip))
        )
        await self._s.flush()
        return trip

    async def get_by_id(self, trip_id: UUID) -> Trip | None:
        m = await self._s.get(TripModel, trip_id)
        return _trip_to_domain(m) if m else None

    async def find_by_assignment(self, assignment_id: UUID) -> Trip | None:
        result = await self._s.execute(
            select(TripModel)
            .where(TripModel.ticket_assignment_id == assignment_id)
            .order_by(TripModel.entry_at.desc())
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _trip_to_domain(m) if m else None

    async def get_first_by_ticket(self, ticket_id: UUID) -> Trip | None:
        result = await self._s.execute(
            select(TripModel)
            .where(TripModel.ticket_id == ticket_id)
            .order_by(TripModel.entry_at.asc())
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _trip_to_domain(m) if m else None


class SqlVehicleRepository(VehicleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, vehicle_id: UUID) -> Vehicle | None:
        m = await self._s.get(VehicleModel, vehicle_id)
        return _vehicle_to_domain(m) if m else None

    async def get_by_plate(self, plate: str) -> Vehicle | None:
        plate = normalize_plate(plate)
        if not plate:
            return None
        stored = func.upper(
            func.replace(func.replace(VehicleModel.plate_number, " ", ""), "-", "")
        )
        result = await self._s.execute(select(VehicleModel).where(stored == plate).limit(1))
        m = result.scalar_one_or_none()
        return _vehicle_to_domain(m) if m else None


class SqlVehiclePositionRepository(VehiclePositionRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_last(self, vehicle_id: UUID) -> VehiclePosition | None:
        result = await self._s.execute(
            select(VehiclePositionModel)
            .where(VehiclePositionModel.vehicle_id == vehicle_id)
            .order_by(VehiclePositionModel.recorded_at.desc())
            .limit(1)
        )
        m = result.scalar_one_or_none()
        return _position_to_domain(m) if m else None
