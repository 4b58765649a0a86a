"""Assignment endpoints: unassign and driver progress marks."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.parsing import parse_uuid
from app.application.use_cases.assignment_marks import AssignmentMarkUseCase
from app.domain.entities.principal import Principal
from app.infrastructure.api.auth import get_principal
from app.infrastructure.api.dependencies import get_assignment_marks_uc
from app.infrastructure.api.schemas import serialize_assignment

router = APIRouter(prefix="/assignments", tags=["assignments"])


@router.delete("/{assignment_id}")
async def unassign(
    assignment_id: str,
    principal: Principal = Depends(get_principal),
    marks: AssignmentMarkUseCase = Depends(get_assignment_marks_uc),
    session: AsyncSession = Depends(get_session),
):
    """Soft-delete the assignment; its trips stay attached."""
    assignment = await marks.unassign(parse_uuid(assignment_id, "assignment_id"), principal)
    await session.commit()
    return serialize_assignment(assignment)


@router.put("/{assignment_id}/mark-in-work")
async def mark_in_work(
    assignment_id: str,
    principal: Principal = Depends(get_principal),
    marks: AssignmentMarkUseCase = Depends(get_assignment_marks_uc),
    session: AsyncSession = Depends(get_session),
):
    assignment = await marks.mark_in_work(parse_uuid(assignment_id, "assignment_id"), principal)
    await session.commit()
    return serialize_assignment(assignment)


@router.put("/{assignment_id}/mark-completed")
async def mark_completed(
    assignment_id: str,
    principal: Principal = Depends(get_principal),
    marks: AssignmentMarkUseCase = Depends(get_assignment_marks_uc),
    session: AsyncSession = Depends(get_session),
):
    """Finish the driver's trip, reconcile hauled volume and try to auto-complete the ticket."""
    assignment = await marks.mark_completed(parse_uuid(assignment_id, "assignment_id"), principal)
    await session.commit()
    return serialize_assignment(assignment)
