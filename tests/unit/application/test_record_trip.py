"""Tests for TripRecordingUseCase: assignment resolution, classification, ticket hooks."""

from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from app.application.use_cases.record_trip import CloseTripInput, RecordTripInput
from app.domain.entities.vehicle import Vehicle, VehiclePosition
from app.domain.errors import ConflictError, InvalidInputError, NotFoundError
from app.domain.value_objects.enums import DriverMarkStatus, TicketStatus, TripStatus
from app.domain.value_objects.geo_point import GeoPoint


def _complete_input(assignment, clock, **overrides) -> RecordTripInput:
    data = dict(
        entry_at=clock.now.isoformat(),
        exit_at=(clock.now + timedelta(minutes=25)).isoformat(),
        ticket_assignment_id=str(assignment.id),
        detected_plate_number="777-kza-02",
        entry_lpr_event_id=str(uuid4()),
        exit_lpr_event_id=str(uuid4()),
        entry_volume_event_id=str(uuid4()),
        exit_volume_event_id=str(uuid4()),
        detected_volume_entry=8.0,
        detected_volume_exit=0.0,
    )
    data.update(overrides)
    return RecordTripInput(**data)


def _position(vehicle, at, inside_area=True, inside_polygon=True) -> VehiclePosition:
    return VehiclePosition(
        vehicle_id=vehicle.id,
        location=GeoPoint(latitude=51.16, longitude=71.47),
        recorded_at=at,
        inside_cleaning_area=inside_area,
        inside_polygon=inside_polygon,
    )


# ─── record ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_clean_trip_is_ok_and_starts_ticket(recording, assignment, ticket, store, clock, vehicle):
    trip = await recording.record(_complete_input(assignment, clock))

    assert trip.status == TripStatus.OK
    assert trip.violation_reason is None
    assert trip.ticket_id == ticket.id
    assert trip.driver_id == assignment.driver_id
    assert trip.vehicle_id == vehicle.id
    assert trip.vehicle_plate_number == "777KZA02"
    assert trip.detected_plate_number == "777KZA02"
    assert trip.vehicle_body_volume_m3 == 10.0
    assert store.tickets[ticket.id].status == TicketStatus.IN_PROGRESS
    assert store.tickets[ticket.id].fact_start_at == clock.now


@pytest.mark.asyncio
async def test_without_assignment_is_no_assignment(recording, store, clock):
    trip = await recording.record(
        RecordTripInput(entry_at=clock.now.isoformat(), detected_plate_number="999ZZZ01")
    )

    assert trip.status == TripStatus.NO_ASSIGNMENT
    assert trip.ticket_id is None
    assert trip.id in store.trips


@pytest.mark.asyncio
async def test_assignment_resolved_by_driver(recording, assignment, clock):
    trip = await recording.record(
        _complete_input(assignment, clock, ticket_assignment_id=None, driver_id=str(assignment.driver_id))
    )
    assert trip.ticket_assignment_id == assignment.id
    assert trip.status == TripStatus.OK


@pytest.mark.asyncio
async def test_assignment_resolved_by_vehicle(recording, assignment, vehicle, clock):
    trip = await recording.record(
        _complete_input(assignment, clock, ticket_assignment_id=None, vehicle_id=str(vehicle.id))
    )
    assert trip.ticket_assignment_id == assignment.id


@pytest.mark.asyncio
async def test_unknown_assignment(recording, clock):
    with pytest.raises(NotFoundError):
        await recording.record(
            RecordTripInput(entry_at=clock.now.isoformat(), ticket_assignment_id=str(uuid4()))
        )


@pytest.mark.asyncio
async def test_inactive_assignment_conflicts(recording, assignment, store, clock):
    store.assignments[assignment.id].is_active = False
    with pytest.raises(ConflictError):
        await recording.record(_complete_input(assignment, clock))


@pytest.mark.asyncio
async def test_terminal_ticket_conflicts(recording, assignment, ticket, store, clock):
    store.tickets[ticket.id].status = TicketStatus.CLOSED
    with pytest.raises(ConflictError):
        await recording.record(_complete_input(assignment, clock))
    assert store.trips == {}


@pytest.mark.asyncio
async def test_malformed_identifier(recording, assignment, clock):
    with pytest.raises(InvalidInputError):
        await recording.record(_complete_input(assignment, clock, camera_id="cam-1"))


@pytest.mark.asyncio
async def test_exit_before_entry_rejected(recording, assignment, clock):
    with pytest.raises(InvalidInputError):
        await recording.record(
            _complete_input(assignment, clock, exit_at=(clock.now - timedelta(minutes=1)).isoformat())
        )


@pytest.mark.asyncio
async def test_plate_of_other_vehicle_is_mismatch(recording, assignment, store, clock):
    other = Vehicle(id=uuid4(), plate_number="001 ABC 02", body_volume_m3=10.0)
    store.vehicles[other.id] = other

    trip = await recording.record(_complete_input(assignment, clock, detected_plate_number="001abc02"))

    assert trip.status == TripStatus.MISMATCH_PLATE
    assert trip.violation_reason == "vehicle_mismatch"


@pytest.mark.asyncio
async def test_underloaded_entry(recording, assignment, clock):
    trip = await recording.record(_complete_input(assignment, clock, detected_volume_entry=3.0))
    assert trip.status == TripStatus.SUSPICIOUS_VOLUME


@pytest.mark.asyncio
async def test_gps_outside_cleaning_area(recording, assignment, vehicle, store, clock):
    store.positions.append(_position(vehicle, clock.now - timedelta(minutes=3), inside_area=False))

    trip = await recording.record(_complete_input(assignment, clock))

    assert trip.status == TripStatus.NO_AREA_WORK


@pytest.mark.asyncio
async def test_external_status_kept(recording, assignment, clock):
    trip = await recording.record(
        _complete_input(assignment, clock, status=TripStatus.OVER_CONTRACT_LIMIT)
    )
    assert trip.status == TripStatus.OVER_CONTRACT_LIMIT
    assert trip.violation_reason == "external"


# ─── close ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_open_trip_then_close_reclassifies(recording, assignment, ticket, store, clock):
    opened = await recording.record(
        _complete_input(
            assignment, clock, exit_at=None, exit_lpr_event_id=None,
            exit_volume_event_id=None, detected_volume_exit=None,
        )
    )
    assert opened.status == TripStatus.NO_EXIT_CAMERA

    # The driver already reported completion, so closing the trip completes the ticket.
    a = store.assignments[assignment.id]
    a.driver_mark_status = DriverMarkStatus.COMPLETED
    a.trip_started_at = a.trip_finished_at = clock.now

    closed = await recording.close(
        str(opened.id),
        CloseTripInput(
            exit_at=(clock.now + timedelta(minutes=30)).isoformat(),
            exit_lpr_event_id=str(uuid4()),
            exit_volume_event_id=str(uuid4()),
            detected_volume_exit=0.1,
        ),
    )

    assert closed.status == TripStatus.OK
    assert closed.violation_reason is None
    assert store.trips[opened.id].exit_at == clock.now + timedelta(minutes=30)
    assert store.tickets[ticket.id].status == TicketStatus.COMPLETED


@pytest.mark.asyncio
async def test_close_keeps_external_status(recording, assignment, clock):
    opened = await recording.record(
        _complete_input(assignment, clock, exit_at=None, status=TripStatus.FOREIGN_AREA)
    )
    closed = await recording.close(
        opened.id, CloseTripInput(exit_at=(clock.now + timedelta(minutes=5)).isoformat())
    )
    assert closed.status == TripStatus.FOREIGN_AREA


@pytest.mark.asyncio
async def test_close_closed_trip_conflicts(recording, assignment, clock):
    trip = await recording.record(_complete_input(assignment, clock))
    with pytest.raises(ConflictError):
        await recording.close(
            trip.id, CloseTripInput(exit_at=(clock.now + timedelta(hours=1)).isoformat())
        )


@pytest.mark.asyncio
async def test_close_unknown_trip(recording, clock):
    with pytest.raises(NotFoundError):
        await recording.close(str(uuid4()), CloseTripInput(exit_at=clock.now.isoformat()))


@pytest.mark.asyncio
async def test_close_malformed_trip_id(recording, clock):
    with pytest.raises(InvalidInputError):
        await recording.close("trip-1", CloseTripInput(exit_at=clock.now.isoformat()))
