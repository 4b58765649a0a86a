"""Ticket endpoints: creation, detail view and manual status transitions."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.parsing import parse_uuid
from app.application.use_cases.assignment_marks import AssignmentMarkUseCase
from app.application.use_cases.ticket_lifecycle import CreateTicketInput, TicketLifecycleUseCase
from app.domain.entities.principal import Principal
from app.infrastructure.api.auth import get_principal
from app.infrastructure.api.dependencies import get_assignment_marks_uc, get_lifecycle_uc
from app.infrastructure.api.schemas import (
    CreateAssignmentRequest,
    CreateTicketRequest,
    serialize_assignment,
    serialize_ticket,
)

router = APIRouter(prefix="/tickets", tags=["tickets"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_ticket(
    body: CreateTicketRequest,
    principal: Principal = Depends(get_principal),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    """Create a PLANNED ticket (KGU only)."""
    ticket = await lifecycle.create(CreateTicketInput(**body.model_dump()), principal)
    await session.commit()
    return serialize_ticket(ticket)


@router.get("/{ticket_id}")
async def get_ticket(
    ticket_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
):
    """Get a single ticket with its trip metrics."""
    tid = parse_uuid(ticket_id, "ticket_id")
    ticket = await lifecycle.get(tid)
    return serialize_ticket(ticket, await lifecycle.metrics(tid))


@router.put("/{ticket_id}/cancel")
async def cancel_ticket(
    ticket_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await lifecycle.cancel(parse_uuid(ticket_id, "ticket_id"), principal)
    await session.commit()
    return serialize_ticket(ticket)


@router.put("/{ticket_id}/complete")
async def complete_ticket(
    ticket_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await lifecycle.complete(parse_uuid(ticket_id, "ticket_id"), principal)
    await session.commit()
    return serialize_ticket(ticket)


@router.put("/{ticket_id}/close")
async def close_ticket(
    ticket_id: str,
    principal: Principal = Depends(get_principal),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
    session: AsyncSession = Depends(get_session),
):
    ticket = await lifecycle.close(parse_uuid(ticket_id, "ticket_id"), principal)
    await session.commit()
    return serialize_ticket(ticket)


@router.post("/{ticket_id}/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    ticket_id: str,
    body: CreateAssignmentRequest,
    principal: Principal = Depends(get_principal),
    marks: AssignmentMarkUseCase = Depends(get_assignment_marks_uc),
    session: AsyncSession = Depends(get_session),
):
    """Bind a driver and a vehicle to the ticket (owning contractor only)."""
    assignment = await marks.create(ticket_id, body.driver_id, body.vehicle_id, principal)
    await session.commit()
    return serialize_assignment(assignment)
