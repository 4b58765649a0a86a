"""TicketLifecycleUseCase: creation, manual transitions and automatic progression of tickets."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.application.clock import Clock, utcnow
from app.application.parsing import parse_timestamp, parse_uuid
from app.application.ports.ticket_repo import TicketMetrics, TicketRepository
from app.application.ports.trip_repo import TripRepository
from app.domain.entities.principal import Principal
from app.domain.entities.ticket import Ticket
from app.domain.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PermissionDeniedError,
)
from app.domain.policies.ticket_completion import CompletionSnapshot, completion_blockers
from app.domain.value_objects.enums import TicketStatus
from app.domain.value_objects.thresholds import ComplianceThresholds

logger = logging.getLogger(__name__)


@dataclass
class CreateTicketInput:
    cleaning_area_id: str | UUID
    contractor_id: str | UUID
    contract_id: str | UUID
    planned_start_at: str | datetime
    planned_end_at: str | datetime
    description: str | None = None


class TicketLifecycleUseCase:
    """Owns every ticket status change.

    Manual transitions (cancel, complete, close) check the caller's role and
    organisation; automatic ones (first trip, driver start, auto-complete)
    are triggered by the assignment and trip use cases.
    """

    def __init__(
        self,
        ticket_repo: TicketRepository,
        trip_repo: TripRepository,
        thresholds: ComplianceThresholds,
        clock: Clock = utcnow,
    ):
        self._tickets = ticket_repo
        self._trips = trip_repo
        self._thresholds = thresholds
        self._now = clock

    # ── Queries ──────────────────────────────────────────────────────────

    async def get(self, ticket_id: UUID) -> Ticket:
        ticket = await self._tickets.get_by_id(ticket_id)
        if ticket is None:
            raise NotFoundError(f"Ticket {ticket_id} not found")
        return ticket

    async def metrics(self, ticket_id: UUID) -> TicketMetrics:
        """Trip count, summed volume and violation flag for the ticket."""
        await self.get(ticket_id)
        return await self._tickets.get_metrics(ticket_id)

    async def completion_snapshot(self, ticket_id: UUID) -> CompletionSnapshot:
        return CompletionSnapshot(
            incomplete_trips=await self._tickets.count_incomplete_trips(ticket_id),
            incomplete_assignments=await self._tickets.count_incomplete_assignments(ticket_id),
            invalid_exit_volume_trips=await self._tickets.count_invalid_exit_volume_trips(
                ticket_id, self._thresholds.exit_volume_tolerance
            ),
        )

    # ── Manual transitions ───────────────────────────────────────────────

    async def create(self, data: CreateTicketInput, principal: Principal) -> Ticket:
        if not principal.is_kgu():
            raise PermissionDeniedError("Only KGU users can create tickets")

        planned_start = parse_timestamp(data.planned_start_at, "planned_start_at")
        planned_end = parse_timestamp(data.planned_end_at, "planned_end_at")
        if planned_end <= planned_start:
            raise InvalidInputError("planned_end_at must be after planned_start_at")

        ticket = Ticket(
            id=None,
            cleaning_area_id=parse_uuid(data.cleaning_area_id, "cleaning_area_id"),
            contractor_id=parse_uuid(data.contractor_id, "contractor_id"),
            created_by_org_id=principal.org_id,
            contract_id=parse_uuid(data.contract_id, "contract_id"),
            planned_start_at=planned_start,
            planned_end_at=planned_end,
            description=data.description,
        )
        ticket = await self._tickets.save(ticket)
        logger.info("Ticket %s created by org %s", ticket.id, principal.org_id)
        return ticket

    async def cancel(self, ticket_id: UUID, principal: Principal) -> Ticket:
        ticket = await self.get(ticket_id)
        self._require_creator(ticket, principal)

        if ticket.has_started():
            raise ConflictError(f"Ticket {ticket_id} has already started")
        if await self._tickets.count_trips(ticket_id) > 0:
            raise ConflictError(f"Ticket {ticket_id} already has recorded trips")

        ticket.transition_to(TicketStatus.CANCELLED)
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s cancelled", ticket_id)
        return ticket

    async def complete(self, ticket_id: UUID, principal: Principal) -> Ticket:
        """Contractor-initiated completion. Idempotent on an already COMPLETED ticket."""
        ticket = await self.get(ticket_id)
        if not principal.is_contractor() or ticket.contractor_id != principal.org_id:
            raise PermissionDeniedError("Only the ticket's contractor can complete it")

        if ticket.status == TicketStatus.COMPLETED:
            return ticket
        if ticket.status != TicketStatus.IN_PROGRESS:
            raise ConflictError(
                f"Ticket {ticket_id} is {ticket.status.value}, expected IN_PROGRESS"
            )

        blockers = completion_blockers(await self.completion_snapshot(ticket_id))
        if blockers:
            raise ConflictError(f"Ticket {ticket_id} cannot be completed: " + "; ".join(blockers))

        ticket.complete(self._now())
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s completed by contractor %s", ticket_id, principal.org_id)
        return ticket

    async def close(self, ticket_id: UUID, principal: Principal) -> Ticket:
        ticket = await self.get(ticket_id)
        self._require_creator(ticket, principal)

        ticket.transition_to(TicketStatus.CLOSED)
        ticket = await self._tickets.update(ticket)
        logger.info("Ticket %s closed", ticket_id)
        return ticket

    # ── Automatic transitions ────────────────────────────────────────────

    async def on_trip_created(self, ticket_id: UUID) -> bool:
        """Start a PLANNED ticket once its first trip exists. Returns True if it moved."""
        ticket = await self.get(ticket_id)
        if ticket.status != TicketStatus.PLANNED or ticket.has_started():
            return False
        if await self._trips.get_first_by_ticket(ticket_id) is None:
            return False
        return await self._start(ticket, reason="first trip")

    async def on_assignment_started(self, ticket_id: UUID) -> bool:
        """Start a PLANNED ticket when one of its drivers marks in-work."""
        ticket = await self.get(ticket_id)
        return await self._start(ticket, reason="driver started work")

    async def try_auto_complete(self, ticket_id: UUID) -> bool:
        """Complete the ticket if every completion condition holds.

        A no-op (False) outside IN_PROGRESS or while any blocker remains.
        """
        ticket = await self.get(ticket_id)
        if ticket.status != TicketStatus.IN_PROGRESS:
            return False

        blockers = completion_blockers(await self.completion_snapshot(ticket_id))
        if blockers:
            logger.debug("Ticket %s not auto-completed: %s", ticket_id, "; ".join(blockers))
            return False

        ticket.complete(self._now())
        await self._tickets.update(ticket)
        logger.info("Ticket %s auto-completed", ticket_id)
        return True

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _start(self, ticket: Ticket, reason: str) -> bool:
        if not ticket.start(self._now()):
            return False
        await self._tickets.update(ticket)
        logger.info("Ticket %s moved to IN_PROGRESS (%s)", ticket.id, reason)
        return True

    @staticmethod
    def _require_creator(ticket: Ticket, principal: Principal) -> None:
        if not principal.is_kgu() or ticket.created_by_org_id != principal.org_id:
            raise PermissionDeniedError("Only the KGU that created the ticket can do this")
