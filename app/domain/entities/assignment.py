"""TicketAssignment entity: one driver + one vehicle bound to a ticket."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.domain.errors import ConflictError
from app.domain.value_objects.enums import DriverMarkStatus


@dataclass
class TicketAssignment:
    id: UUID | None
    ticket_id: UUID
    driver_id: UUID
    vehicle_id: UUID
    driver_mark_status: DriverMarkStatus = DriverMarkStatus.NOT_STARTED
    trip_started_at: datetime | None = None
    trip_finished_at: datetime | None = None
    assigned_at: datetime | None = None
    unassigned_at: datetime | None = None
    is_active: bool = True

    def is_completed(self) -> bool:
        return self.driver_mark_status == DriverMarkStatus.COMPLETED

    def has_driving_window(self) -> bool:
        return self.trip_started_at is not None and self.trip_finished_at is not None

    def start_trip(self, now: datetime) -> None:
        """NOT_STARTED → IN_WORK. A trip can be started only once."""
        if self.trip_started_at is not None:
            raise ConflictError(f"Assignment {self.id}: trip already started")
        self.trip_started_at = now
        self.driver_mark_status = DriverMarkStatus.IN_WORK

    def finish_trip(self, now: datetime) -> None:
        """IN_WORK → COMPLETED. Requires a started, not yet finished trip."""
        if self.trip_started_at is None:
            raise ConflictError(f"Assignment {self.id}: trip not started")
        if self.trip_finished_at is not None:
            raise ConflictError(f"Assignment {self.id}: trip already finished")
        self.trip_finished_at = now
        self.driver_mark_status = DriverMarkStatus.COMPLETED

    def unassign(self, now: datetime) -> None:
        # Soft delete: historical trips keep pointing at this row.
        if not self.is_active:
            raise ConflictError(f"Assignment {self.id}: already unassigned")
        self.is_active = False
        self.unassigned_at = now
