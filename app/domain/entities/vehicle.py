"""Vehicle entity and its GPS fixes: read-only inputs to trip classification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from app.domain.value_objects.geo_point import GeoPoint
from app.domain.value_objects.plate import normalize_plate


@dataclass
class Vehicle:
    id: UUID
    plate_number: str
    body_volume_m3: float | None = None

    @property
    def normalized_plate(self) -> str:
        return normalize_plate(self.plate_number)


@dataclass(frozen=True)
class VehiclePosition:
    vehicle_id: UUID
    location: GeoPoint
    recorded_at: datetime
    inside_cleaning_area: bool
    inside_polygon: bool
