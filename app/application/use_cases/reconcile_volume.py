"""VolumeReconciliationUseCase: derive a trip and its hauled volume from sensor events.

When a driver marks an assignment completed, the snow volume is recomputed
from the entry-direction events the sensor feed recorded for the vehicle
during the driving window, and the assignment's trip is created or updated.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

from app.application.ports.sensor_feed_port import SensorFeedError, SensorFeedPort
from app.application.ports.trip_repo import TripRepository
from app.application.ports.vehicle_repo import VehicleRepository
from app.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.trip import Trip
from app.domain.errors import InvalidInputError, NotFoundError
from app.domain.value_objects.enums import TripStatus
from app.domain.value_objects.plate import normalize_plate

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


@dataclass(frozen=True)
class VolumeLookup:
    """Outcome of querying the sensor feed.

    ``available`` is False when every attempt failed; the volume is then 0
    and ``error`` holds the last failure.
    """

    available: bool
    volume_m3: float
    events_count: int
    attempts: int
    error: str | None = None

    @classmethod
    def found(cls, volume_m3: float, events_count: int, attempts: int) -> "VolumeLookup":
        return cls(available=True, volume_m3=volume_m3, events_count=events_count, attempts=attempts)

    @classmethod
    def unavailable(cls, error: str, attempts: int) -> "VolumeLookup":
        return cls(available=False, volume_m3=0.0, events_count=0, attempts=attempts, error=error)


@dataclass
class ReconciliationResult:
    volume_m3: float
    trip: Trip
    feed: VolumeLookup
    created: bool


class VolumeReconciliationUseCase:
    """Sum entry volumes over the driving window and upsert the assignment's trip."""

    def __init__(
        self,
        sensor_feed: SensorFeedPort,
        trip_repo: TripRepository,
        vehicle_repo: VehicleRepository,
        lifecycle: TicketLifecycleUseCase,
        max_attempts: int = 3,
        backoff_seconds: float = 0.5,
        sleep: Sleep = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._feed = sensor_feed
        self._trips = trip_repo
        self._vehicles = vehicle_repo
        self._lifecycle = lifecycle
        self._max_attempts = max_attempts
        self._backoff = backoff_seconds
        self._sleep = sleep

    async def reconcile(self, assignment: TicketAssignment) -> ReconciliationResult:
        if not assignment.has_driving_window():
            raise InvalidInputError(
                f"Assignment {assignment.id}: trip start and finish must both be recorded"
            )

        vehicle = await self._vehicles.get_by_id(assignment.vehicle_id)
        if vehicle is None:
            raise NotFoundError(f"Vehicle {assignment.vehicle_id} not found")
        plate = normalize_plate(vehicle.plate_number)
        if not plate:
            raise InvalidInputError(f"Vehicle {vehicle.id} has no plate number")

        lookup = await self.lookup_volume(
            plate, assignment.trip_started_at, assignment.trip_finished_at
        )
        if not lookup.available:
            logger.error(
                "Sensor feed unavailable for assignment %s after %d attempt(s): %s; "
                "recording volume 0",
                assignment.id, lookup.attempts, lookup.error,
            )
        elif lookup.volume_m3 == 0 and lookup.events_count > 0:
            logger.warning(
                "Assignment %s: %d entry event(s) for %s carry no volume",
                assignment.id, lookup.events_count, plate,
            )

        trip = await self._trips.find_by_assignment(assignment.id)
        created = trip is None
        if trip is None:
            trip = await self._trips.save(Trip(
                id=None,
                entry_at=assignment.trip_started_at,
                exit_at=assignment.trip_finished_at,
                ticket_id=assignment.ticket_id,
                ticket_assignment_id=assignment.id,
                driver_id=assignment.driver_id,
                vehicle_id=assignment.vehicle_id,
                vehicle_plate_number=plate,
                vehicle_body_volume_m3=vehicle.body_volume_m3,
                total_volume_m3=lookup.volume_m3,
                status=TripStatus.OK,
                auto_created=True,
            ))
            await self._notify_trip_created(trip)
        else:
            trip.exit_at = assignment.trip_finished_at
            trip.total_volume_m3 = lookup.volume_m3
            trip.status = TripStatus.OK
            trip.violation_reason = None
            trip.auto_created = True
            trip = await self._trips.update(trip)

        logger.info(
            "Assignment %s reconciled: trip %s %s, volume %.3f m3 from %d event(s)",
            assignment.id, trip.id, "created" if created else "updated",
            lookup.volume_m3, lookup.events_count,
        )
        return ReconciliationResult(
            volume_m3=lookup.volume_m3, trip=trip, feed=lookup, created=created
        )

    async def lookup_volume(
        self, plate: str, start_time: datetime, end_time: datetime
    ) -> VolumeLookup:
        """Query the feed with bounded retries and linear backoff.

        Never raises SensorFeedError: exhaustion yields an unavailable lookup.
        """
        last_error = ""
        for attempt in range(1, self._max_attempts + 1):
            try:
                events = await self._feed.get_entry_events(plate, start_time, end_time)
            except SensorFeedError as e:
                last_error = str(e)
                logger.warning(
                    "Sensor feed attempt %d/%d for %s failed: %s",
                    attempt, self._max_attempts, plate, e,
                )
                if attempt < self._max_attempts:
                    await self._sleep(attempt * self._backoff)
                continue

            volume = sum(event.snow_volume_m3 or 0.0 for event in events)
            return VolumeLookup.found(volume, len(events), attempt)

        return VolumeLookup.unavailable(last_error, self._max_attempts)

    async def _notify_trip_created(self, trip: Trip) -> None:
        try:
            await self._lifecycle.on_trip_created(trip.ticket_id)
        except Exception:
            logger.warning(
                "Ticket %s: start-on-first-trip failed for trip %s",
                trip.ticket_id, trip.id, exc_info=True,
            )
