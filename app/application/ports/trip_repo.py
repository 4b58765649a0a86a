"""Port interface for trip persistence."""

from abc import ABC, abstractmethod
from uuid import UUID

from app.domain.entities.trip import Trip


class TripRepository(ABC):
    @abstractmethod
    async def save(self, trip: Trip) -> Trip:
        ...

    @abstractmethod
    async def update(self, trip: Trip) -> Trip:
        ...

    @abstractmethod
    async def get_by_id(self, trip_id: UUID) -> Trip | None:
        ...

    @abstractmethod
    async def find_by_assignment(self, assignment_id: UUID) -> Trip | None:
        ...

    @abstractmethod
    async def get_first_by_ticket(self, ticket_id: UUID) -> Trip | None:
        """Earliest trip (by entry_at) under the ticket, or None."""
        ...
