"""AssignmentMarkUseCase: contractor-managed assignments and driver progress marks."""

from __future__ import annotations

import logging
from uuid import UUID

from app.application.clock import Clock, utcnow
from app.application.parsing import parse_uuid
from app.application.ports.assignment_repo import AssignmentRepository
from app.application.use_cases.reconcile_volume import VolumeReconciliationUseCase
from app.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.principal import Principal
from app.domain.entities.ticket import Ticket
from app.domain.errors import ConflictError, NotFoundError, PermissionDeniedError

logger = logging.getLogger(__name__)


class AssignmentMarkUseCase:
    """Create/unassign assignments and record a driver's IN_WORK / COMPLETED marks.

    Completion triggers volume reconciliation and then an auto-complete
    attempt on the ticket. A reconciliation failure never fails the mark.
    """

    def __init__(
        self,
        assignment_repo: AssignmentRepository,
        lifecycle: TicketLifecycleUseCase,
        reconciliation: VolumeReconciliationUseCase,
        clock: Clock = utcnow,
    ):
        self._assignments = assignment_repo
        self._lifecycle = lifecycle
        self._reconciliation = reconciliation
        self._now = clock

    # ── Contractor side ──────────────────────────────────────────────────

    async def create(
        self,
        ticket_id: str | UUID,
        driver_id: str | UUID,
        vehicle_id: str | UUID,
        principal: Principal,
    ) -> TicketAssignment:
        ticket_uuid = parse_uuid(ticket_id, "ticket_id")
        driver_uuid = parse_uuid(driver_id, "driver_id")
        vehicle_uuid = parse_uuid(vehicle_id, "vehicle_id")

        ticket = await self._lifecycle.get(ticket_uuid)
        self._require_contractor(ticket, principal)
        self._require_open(ticket)

        assignment = await self._assignments.save(TicketAssignment(
            id=None,
            ticket_id=ticket_uuid,
            driver_id=driver_uuid,
            vehicle_id=vehicle_uuid,
            assigned_at=self._now(),
        ))
        logger.info(
            "Assignment %s created: ticket %s, driver %s, vehicle %s",
            assignment.id, ticket_uuid, driver_uuid, vehicle_uuid,
        )
        return assignment

    async def unassign(self, assignment_id: UUID, principal: Principal) -> TicketAssignment:
        assignment = await self._get(assignment_id)
        ticket = await self._lifecycle.get(assignment.ticket_id)
        self._require_contractor(ticket, principal)
        self._require_open(ticket)

        now = self._now()
        assignment.unassign(now)
        if not await self._assignments.unassign(assignment_id, now):
            raise ConflictError(f"Assignment {assignment_id}: already unassigned")
        logger.info("Assignment %s unassigned", assignment_id)
        return assignment

    # ── Driver side ──────────────────────────────────────────────────────

    async def mark_in_work(self, assignment_id: UUID, principal: Principal) -> TicketAssignment:
        assignment = await self._get_for_driver(assignment_id, principal)
        ticket = await self._lifecycle.get(assignment.ticket_id)
        self._require_open(ticket)

        now = self._now()
        assignment.start_trip(now)
        if not await self._assignments.start_trip(assignment_id, now):
            raise ConflictError(f"Assignment {assignment_id}: trip already started")
        logger.info("Assignment %s marked IN_WORK by driver %s", assignment_id, principal.driver_id)

        await self._lifecycle.on_assignment_started(ticket.id)
        return assignment

    async def mark_completed(self, assignment_id: UUID, principal: Principal) -> TicketAssignment:
        assignment = await self._get_for_driver(assignment_id, principal)
        ticket = await self._lifecycle.get(assignment.ticket_id)
        self._require_open(ticket)

        now = self._now()
        assignment.finish_trip(now)
        if not await self._assignments.finish_trip(assignment_id, now):
            raise ConflictError(f"Assignment {assignment_id}: trip already finished")
        logger.info("Assignment %s marked COMPLETED by driver %s", assignment_id, principal.driver_id)

        # CancelledError is not an Exception subclass and still propagates.
        try:
            await self._reconciliation.reconcile(assignment)
        except Exception:
            logger.exception("Volume reconciliation failed for assignment %s", assignment_id)

        await self._lifecycle.try_auto_complete(ticket.id)
        return assignment

    # ── Helpers ──────────────────────────────────────────────────────────

    async def _get(self, assignment_id: UUID) -> TicketAssignment:
        assignment = await self._assignments.get_by_id(assignment_id)
        if assignment is None:
            raise NotFoundError(f"Assignment {assignment_id} not found")
        return assignment

    async def _get_for_driver(self, assignment_id: UUID, principal: Principal) -> TicketAssignment:
        if not principal.is_driver():
            raise PermissionDeniedError("Only drivers can mark assignments")
        assignment = await self._get(assignment_id)
        if assignment.driver_id != principal.driver_id:
            raise PermissionDeniedError(f"Assignment {assignment_id} belongs to another driver")
        if not assignment.is_active:
            raise ConflictError(f"Assignment {assignment_id} is no longer active")
        return assignment

    @staticmethod
    def _require_contractor(ticket: Ticket, principal: Principal) -> None:
        if not principal.is_contractor() or ticket.contractor_id != principal.org_id:
            raise PermissionDeniedError("Only the ticket's contractor can manage assignments")

    @staticmethod
    def _require_open(ticket: Ticket) -> None:
        if ticket.is_terminal():
            raise ConflictError(f"Ticket {ticket.id} is {ticket.status.value}")
