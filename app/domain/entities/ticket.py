"""Ticket entity: a municipal snow-removal work order and its status machine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.domain.errors import ConflictError
from app.domain.value_objects.enums import TicketStatus

# Every permitted (from → to) pair. Anything else is a conflict.
ALLOWED_TRANSITIONS: dict[TicketStatus, frozenset[TicketStatus]] = {
    TicketStatus.PLANNED: frozenset({TicketStatus.IN_PROGRESS, TicketStatus.CANCELLED}),
    TicketStatus.IN_PROGRESS: frozenset({TicketStatus.COMPLETED, TicketStatus.CANCELLED}),
    TicketStatus.COMPLETED: frozenset({TicketStatus.CLOSED}),
    TicketStatus.CLOSED: frozenset(),
    TicketStatus.CANCELLED: frozenset(),
}


@dataclass
class Ticket:
    id: UUID | None
    cleaning_area_id: UUID
    contractor_id: UUID
    created_by_org_id: UUID
    contract_id: UUID
    planned_start_at: datetime
    planned_end_at: datetime
    status: TicketStatus = TicketStatus.PLANNED
    fact_start_at: datetime | None = None
    fact_end_at: datetime | None = None
    description: str | None = None

    def is_terminal(self) -> bool:
        return self.status.is_terminal()

    def has_started(self) -> bool:
        return self.fact_start_at is not None

    def can_transition_to(self, target: TicketStatus) -> bool:
        return target in ALLOWED_TRANSITIONS[self.status]

    def transition_to(self, target: TicketStatus) -> None:
        if not self.can_transition_to(target):
            raise ConflictError(
                f"Ticket {self.id}: transition {self.status.value} → {target.value} is not allowed"
            )
        self.status = target

    def start(self, now: datetime) -> bool:
        """Leave PLANNED for the first time. Returns True if the ticket changed.

        fact_start_at is stamped exactly once, together with this transition.
        """
        if self.status != TicketStatus.PLANNED or self.fact_start_at is not None:
            return False
        self.transition_to(TicketStatus.IN_PROGRESS)
        self.fact_start_at = now
        return True

    def complete(self, now: datetime) -> None:
        self.transition_to(TicketStatus.COMPLETED)
        if self.fact_end_at is None:
            self.fact_end_at = now
