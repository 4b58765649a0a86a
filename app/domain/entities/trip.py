"""Trip entity: one vehicle pass through a monitored area, entry to exit."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.domain.errors import ConflictError, InvalidInputError
from app.domain.value_objects.enums import TripStatus


@dataclass
class Trip:
    id: UUID | None
    entry_at: datetime
    ticket_id: UUID | None = None
    ticket_assignment_id: UUID | None = None
    driver_id: UUID | None = None
    vehicle_id: UUID | None = None
    camera_id: UUID | None = None
    polygon_id: UUID | None = None
    vehicle_plate_number: str = ""
    detected_plate_number: str = ""
    entry_lpr_event_id: UUID | None = None
    exit_lpr_event_id: UUID | None = None
    entry_volume_event_id: UUID | None = None
    exit_volume_event_id: UUID | None = None
    detected_volume_entry: float | None = None
    detected_volume_exit: float | None = None
    vehicle_body_volume_m3: float | None = None
    total_volume_m3: float | None = None
    exit_at: datetime | None = None
    status: TripStatus = TripStatus.OK
    violation_reason: str | None = None
    auto_created: bool = False

    def is_open(self) -> bool:
        return self.exit_at is None

    def has_exit_events(self) -> bool:
        return self.exit_lpr_event_id is not None and self.exit_volume_event_id is not None

    def is_closed_out(self) -> bool:
        """Closure criterion used by ticket completion.

        Sensor trips need an exit time and both exit event references;
        reconciliation-derived trips have no sensor references and are judged
        by the exit time alone.
        """
        if self.exit_at is None:
            return False
        return self.auto_created or self.has_exit_events()

    def close(self, exit_at: datetime) -> None:
        if not self.is_open():
            raise ConflictError(f"Trip {self.id} is already closed")
        if exit_at < self.entry_at:
            raise InvalidInputError(f"Trip {self.id}: exit_at precedes entry_at")
        self.exit_at = exit_at
