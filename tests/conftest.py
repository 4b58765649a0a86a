"""Shared fixtures: in-memory repositories, a controllable clock and wired use cases."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from app.application.ports.assignment_repo import AssignmentRepository
from app.application.ports.sensor_feed_port import SensorFeedPort
from app.application.ports.ticket_repo import TicketMetrics, TicketRepository
from app.application.ports.trip_repo import TripRepository
from app.application.ports.vehicle_repo import VehiclePositionRepository, VehicleRepository
from app.application.use_cases.assignment_marks import AssignmentMarkUseCase
from app.application.use_cases.reconcile_volume import VolumeReconciliationUseCase
from app.application.use_cases.record_trip import TripRecordingUseCase
from app.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.principal import Principal
from app.domain.entities.sensor_event import SensorEvent
from app.domain.entities.ticket import Ticket
from app.domain.entities.trip import Trip
from app.domain.entities.vehicle import Vehicle, VehiclePosition
from app.domain.value_objects.enums import DriverMarkStatus, EventDirection, Role, TicketStatus, TripStatus
from app.domain.value_objects.thresholds import ComplianceThresholds

NOW = datetime(2026, 1, 15, 10, 0, tzinfo=timezone.utc)

# ─── In-memory fakes ────────────────────────────────────────────────


class Store:
    """Shared state behind all fake repositories, like one database."""

    def __init__(self):
        self.tickets: dict[UUID, Ticket] = {}
        self.assignments: dict[UUID, TicketAssignment] = {}
        self.trips: dict[UUID, Trip] = {}
        self.vehicles: dict[UUID, Vehicle] = {}
        self.positions: list[VehiclePosition] = []


class FakeTicketRepo(TicketRepository):
    def __init__(self, store: Store):
        self._store = store

    async def save(self, ticket):
        ticket.id = ticket.id or uuid4()
        self._store.tickets[ticket.id] = replace(ticket)
        return ticket

    async def get_by_id(self, ticket_id):
        t = self._store.tickets.get(ticket_id)
        return replace(t) if t else None

    async def update(self, ticket):
        self._store.tickets[ticket.id] = replace(ticket)
        return ticket

    def _trips(self, ticket_id):
        return [t for t in self._store.trips.values() if t.ticket_id == ticket_id]

    async def count_trips(self, ticket_id):
        return len(self._trips(ticket_id))

    async def count_incomplete_trips(self, ticket_id):
        return sum(1 for t in self._trips(ticket_id) if not t.is_closed_out())

    async def count_incomplete_assignments(self, ticket_id):
        return sum(
            1
            for a in self._store.assignments.values()
            if a.ticket_id == ticket_id and a.is_active and not a.is_completed()
        )

    async def count_invalid_exit_volume_trips(self, ticket_id, tolerance):
        return sum(
            1
            for t in self._trips(ticket_id)
            if t.detected_volume_exit is not None and abs(t.detected_volume_exit) > tolerance
        )

    async def get_metrics(self, ticket_id):
        trips = self._trips(ticket_id)
        return TicketMetrics(
            total_trips=len(trips),
            total_volume_m3=sum(
                (t.total_volume_m3 if t.total_volume_m3 is not None else t.detected_volume_entry) or 0.0
                for t in trips
            ),
            has_violations=any(t.status != TripStatus.OK for t in trips),
        )


class FakeAssignmentRepo(AssignmentRepository):
    def __init__(self, store: Store):
        self._store = store
        self.lose_next_race = False

    async def save(self, assignment):
        assignment.id = assignment.id or uuid4()
        self._store.assignments[assignment.id] = replace(assignment)
        return assignment

    async def get_by_id(self, assignment_id):
        a = self._store.assignments.get(assignment_id)
        return replace(a) if a else None

    def _active(self, predicate):
        matches = [a for a in self._store.assignments.values() if a.is_active and predicate(a)]
        matches.sort(key=lambda a: a.assigned_at or NOW, reverse=True)
        return replace(matches[0]) if matches else None

    async def find_active_by_driver(self, driver_id):
        return self._active(lambda a: a.driver_id == driver_id)

    async def find_active_by_vehicle(self, vehicle_id):
        return self._active(lambda a: a.vehicle_id == vehicle_id)

    def _race_lost(self) -> bool:
        lost, self.lose_next_race = self.lose_next_race, False
        return lost

    async def start_trip(self, assignment_id, started_at):
        a = self._store.assignments[assignment_id]
        if self._race_lost() or a.trip_started_at is not None:
            return False
        a.trip_started_at = started_at
        a.driver_mark_status = DriverMarkStatus.IN_WORK
        return True

    async def finish_trip(self, assignment_id, finished_at):
        a = self._store.assignments[assignment_id]
        if self._race_lost() or a.trip_started_at is None or a.trip_finished_at is not None:
            return False
        a.trip_finished_at = finished_at
        a.driver_mark_status = DriverMarkStatus.COMPLETED
        return True

    async def unassign(self, assignment_id, unassigned_at):
        a = self._store.assignments[assignment_id]
        if not a.is_active:
            return False
        a.is_active = False
        a.unassigned_at = unassigned_at
        return True


class FakeTripRepo(TripRepository):
    def __init__(self, store: Store):
        self._store = store

    async def save(self, trip):
        trip.id = trip.id or uuid4()
        self._store.trips[trip.id] = replace(trip)
        return trip

    async def update(self, trip):
        self._store.trips[trip.id] = replace(trip)
        return trip

    async def get_by_id(self, trip_id):
        t = self._store.trips.get(trip_id)
        return replace(t) if t else None

    async def find_by_assignment(self, assignment_id):
        for t in self._store.trips.values():
            if t.ticket_assignment_id == assignment_id:
                return replace(t)
        return None

    async def get_first_by_ticket(self, ticket_id):
        trips = sorted(
            (t for t in self._store.trips.values() if t.ticket_id == ticket_id),
            key=lambda t: t.entry_at,
        )
        return replace(trips[0]) if trips else None


class FakeVehicleRepo(VehicleRepository):
    def __init__(self, store: Store):
        self._store = store

    async def get_by_id(self, vehicle_id):
        return self._store.vehicles.get(vehicle_id)

    async def get_by_plate(self, plate):
        return next(
            (v for v in self._store.vehicles.values() if plate and v.normalized_plate == plate),
            None,
        )


class FakePositionRepo(VehiclePositionRepository):
    def __init__(self, store: Store):
        self._store = store

    async def get_last(self, vehicle_id):
        fixes = [p for p in self._store.positions if p.vehicle_id == vehicle_id]
        return max(fixes, key=lambda p: p.recorded_at) if fixes else None


class FakeSensorFeed(SensorFeedPort):
    """Replays scripted responses: a list of events, or an exception to raise."""

    def __init__(self):
        self.responses: list[list[SensorEvent] | BaseException] = []
        self.calls: list[tuple[str, datetime, datetime]] = []

    async def get_entry_events(self, plate, start_time, end_time):
        self.calls.append((plate, start_time, end_time))
        response = self.responses.pop(0) if self.responses else []
        if isinstance(response, BaseException):
            raise response
        return response


class RecordingSleep:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class Clock:
    def __init__(self, now: datetime = NOW):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ─── Fixtures ───────────────────────────────────────────────────────


@pytest.fixture
def store() -> Store:
    return Store()


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def thresholds() -> ComplianceThresholds:
    return ComplianceThresholds(min_entry_volume_ratio=0.5, exit_volume_tolerance=0.3)


@pytest.fixture
def assignment_repo(store) -> FakeAssignmentRepo:
    return FakeAssignmentRepo(store)


@pytest.fixture
def feed() -> FakeSensorFeed:
    return FakeSensorFeed()


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def lifecycle(store, thresholds, clock) -> TicketLifecycleUseCase:
    return TicketLifecycleUseCase(
        ticket_repo=FakeTicketRepo(store),
        trip_repo=FakeTripRepo(store),
        thresholds=thresholds,
        clock=clock,
    )


@pytest.fixture
def reconciliation(store, feed, sleep, lifecycle) -> VolumeReconciliationUseCase:
    return VolumeReconciliationUseCase(
        sensor_feed=feed,
        trip_repo=FakeTripRepo(store),
        vehicle_repo=FakeVehicleRepo(store),
        lifecycle=lifecycle,
        max_attempts=3,
        backoff_seconds=0.5,
        sleep=sleep,
    )


@pytest.fixture
def marks(assignment_repo, lifecycle, reconciliation, clock) -> AssignmentMarkUseCase:
    return AssignmentMarkUseCase(
        assignment_repo=assignment_repo,
        lifecycle=lifecycle,
        reconciliation=reconciliation,
        clock=clock,
    )


@pytest.fixture
def recording(store, assignment_repo, lifecycle, thresholds) -> TripRecordingUseCase:
    return TripRecordingUseCase(
        trip_repo=FakeTripRepo(store),
        assignment_repo=assignment_repo,
        vehicle_repo=FakeVehicleRepo(store),
        position_repo=FakePositionRepo(store),
        lifecycle=lifecycle,
        thresholds=thresholds,
    )


# ─── Scenario builders ──────────────────────────────────────────────


@pytest.fixture
def kgu() -> Principal:
    return Principal(user_id=uuid4(), org_id=uuid4(), role=Role.KGU)


@pytest.fixture
def contractor() -> Principal:
    return Principal(user_id=uuid4(), org_id=uuid4(), role=Role.CONTRACTOR)


@pytest.fixture
def vehicle(store) -> Vehicle:
    v = Vehicle(id=uuid4(), plate_number="777 KZA 02", body_volume_m3=10.0)
    store.vehicles[v.id] = v
    return v


@pytest.fixture
def ticket(store, kgu, contractor) -> Ticket:
    t = Ticket(
        id=uuid4(),
        cleaning_area_id=uuid4(),
        contractor_id=contractor.org_id,
        created_by_org_id=kgu.org_id,
        contract_id=uuid4(),
        planned_start_at=NOW,
        planned_end_at=NOW + timedelta(hours=12),
        status=TicketStatus.PLANNED,
    )
    store.tickets[t.id] = replace(t)
    return t


@pytest.fixture
def add_assignment(store, vehicle):
    """Factory: persist an active assignment of a fresh driver to the ticket."""

    def _add(ticket: Ticket, vehicle_: Vehicle | None = None, **kwargs) -> TicketAssignment:
        a = TicketAssignment(
            id=uuid4(),
            ticket_id=ticket.id,
            driver_id=uuid4(),
            vehicle_id=(vehicle_ or vehicle).id,
            assigned_at=NOW,
            **kwargs,
        )
        store.assignments[a.id] = replace(a)
        return a

    return _add


@pytest.fixture
def driver_of():
    def _principal(assignment: TicketAssignment) -> Principal:
        return Principal(
            user_id=uuid4(), org_id=uuid4(), role=Role.DRIVER, driver_id=assignment.driver_id
        )

    return _principal


@pytest.fixture
def assignment(add_assignment, ticket) -> TicketAssignment:
    return add_assignment(ticket)


@pytest.fixture
def entry_event():
    def _event(volume: float | None, plate: str = "777KZA02") -> SensorEvent:
        return SensorEvent(
            id=str(uuid4()), plate=plate, event_time=NOW,
            direction=EventDirection.ENTRY, snow_volume_m3=volume,
        )

    return _event
