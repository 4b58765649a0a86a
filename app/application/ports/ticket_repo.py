"""Port interface for ticket persistence and ticket-scoped aggregates."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from uuid import UUID

from app.domain.entities.ticket import Ticket


@dataclass(frozen=True)
class TicketMetrics:
    total_trips: int
    total_volume_m3: float
    has_violations: bool


class TicketRepository(ABC):
    @abstractmethod
    async def save(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def get_by_id(self, ticket_id: UUID) -> Ticket | None:
        ...

    @abstractmethod
    async def update(self, ticket: Ticket) -> Ticket:
        ...

    @abstractmethod
    async def count_trips(self, ticket_id: UUID) -> int:
        ...

    @abstractmethod
    async def count_incomplete_trips(self, ticket_id: UUID) -> int:
        """Trips lacking an exit time, or (for sensor trips) an exit LPR/volume event."""
        ...

    @abstractmethod
    async def count_incomplete_assignments(self, ticket_id: UUID) -> int:
        """Active assignments whose driver_mark_status is not COMPLETED."""
        ...

    @abstractmethod
    async def count_invalid_exit_volume_trips(self, ticket_id: UUID, tolerance: float) -> int:
        """Trips whose |detected_volume_exit| exceeds the tolerance."""
        ...

    @abstractmethod
    async def get_metrics(self, ticket_id: UUID) -> TicketMetrics:
        ...
