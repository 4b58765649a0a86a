"""Trip endpoints: sensor pipeline records entries and closes trips on exit."""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.adapters.persistence.database import get_session
from app.application.use_cases.record_trip import (
    CloseTripInput,
    RecordTripInput,
    TripRecordingUseCase,
)
from app.domain.entities.principal import Principal
from app.infrastructure.api.auth import get_principal
from app.infrastructure.api.dependencies import get_trip_recording_uc
from app.infrastructure.api.schemas import CloseTripRequest, RecordTripRequest, serialize_trip

router = APIRouter(prefix="/trips", tags=["trips"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def record_trip(
    body: RecordTripRequest,
    principal: Principal = Depends(get_principal),
    trips: TripRecordingUseCase = Depends(get_trip_recording_uc),
    session: AsyncSession = Depends(get_session),
):
    """Record a trip and classify its compliance status."""
    trip = await trips.record(RecordTripInput(**body.model_dump()))
    await session.commit()
    return serialize_trip(trip)


@router.put("/{trip_id}/close")
async def close_trip(
    trip_id: str,
    body: CloseTripRequest,
    principal: Principal = Depends(get_principal),
    trips: TripRecordingUseCase = Depends(get_trip_recording_uc),
    session: AsyncSession = Depends(get_session),
):
    trip = await trips.close(trip_id, CloseTripInput(**body.model_dump()))
    await session.commit()
    return serialize_trip(trip)
