"""Port interface for assignment persistence."""

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from app.domain.entities.assignment import TicketAssignment


class AssignmentRepository(ABC):
    @abstractmethod
    async def save(self, assignment: TicketAssignment) -> TicketAssignment:
        ...

    @abstractmethod
    async def get_by_id(self, assignment_id: UUID) -> TicketAssignment | None:
        ...

    @abstractmethod
    async def find_active_by_driver(self, driver_id: UUID) -> TicketAssignment | None:
        """Most recently assigned active assignment of the driver."""
        ...

    @abstractmethod
    async def find_active_by_vehicle(self, vehicle_id: UUID) -> TicketAssignment | None:
        """Most recently assigned active assignment of the vehicle."""
        ...

    @abstractmethod
    async def start_trip(self, assignment_id: UUID, started_at: datetime) -> bool:
        """Set trip_started_at + IN_WORK only if trip_started_at is still NULL.

        Returns False when another request already started the trip.
        """
        ...

    @abstractmethod
    async def finish_trip(self, assignment_id: UUID, finished_at: datetime) -> bool:
        """Set trip_finished_at + COMPLETED only if trip_finished_at is still NULL.

        Returns False when another request already finished the trip.
        """
        ...

    @abstractmethod
    async def unassign(self, assignment_id: UUID, unassigned_at: datetime) -> bool:
        """Soft-delete an active assignment. Returns False if it was not active."""
        ...
