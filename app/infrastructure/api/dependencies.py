"""FastAPI dependency injection: wires adapters into use cases."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.adapters.persistence.repositories import (
    SqlAssignmentRepository,
    SqlTicketRepository,
    SqlTripRepository,
    SqlVehiclePositionRepository,
    SqlVehicleRepository,
)
from app.adapters.sensor_feed.anpr_adapter import AnprSensorFeedAdapter
from app.application.use_cases.assignment_marks import AssignmentMarkUseCase
from app.application.use_cases.reconcile_volume import VolumeReconciliationUseCase
from app.application.use_cases.record_trip import TripRecordingUseCase
from app.application.use_cases.ticket_lifecycle import TicketLifecycleUseCase
from app.config import settings
from app.domain.value_objects.thresholds import ComplianceThresholds

# Singleton adapter (stateless, opens a client per call)
_sensor_feed = AnprSensorFeedAdapter()


@lru_cache
def get_thresholds() -> ComplianceThresholds:
    return settings.compliance_thresholds()


def get_lifecycle_uc(
    session: AsyncSession = Depends(get_session),
    thresholds: ComplianceThresholds = Depends(get_thresholds),
) -> TicketLifecycleUseCase:
    return TicketLifecycleUseCase(
        ticket_repo=SqlTicketRepository(session),
        trip_repo=SqlTripRepository(session),
        thresholds=thresholds,
    )


def get_assignment_marks_uc(
    session: AsyncSession = Depends(get_session),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
) -> AssignmentMarkUseCase:
    reconciliation = VolumeReconciliationUseCase(
        sensor_feed=_sensor_feed,
        trip_repo=SqlTripRepository(session),
        vehicle_repo=SqlVehicleRepository(session),
        lifecycle=lifecycle,
        max_attempts=settings.anpr_max_attempts,
        backoff_seconds=settings.anpr_backoff_seconds,
    )
    return AssignmentMarkUseCase(
        assignment_repo=SqlAssignmentRepository(session),
        lifecycle=lifecycle,
        reconciliation=reconciliation,
    )


def get_trip_recording_uc(
    session: AsyncSession = Depends(get_session),
    lifecycle: TicketLifecycleUseCase = Depends(get_lifecycle_uc),
    thresholds: ComplianceThresholds = Depends(get_thresholds),
) -> TripRecordingUseCase:
    return TripRecordingUseCase(
        trip_repo=SqlTripRepository(session),
        assignment_repo=SqlAssignmentRepository(session),
        vehicle_repo=SqlVehicleRepository(session),
        position_repo=SqlVehiclePositionRepository(session),
        lifecycle=lifecycle,
        thresholds=thresholds,
    )
