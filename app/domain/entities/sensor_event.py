"""SensorEvent: one plate-recognition / volume detection from the ANPR feed."""

from dataclasses import dataclass
from datetime import datetime

from app.domain.value_objects.enums import EventDirection


@dataclass(frozen=True)
class SensorEvent:
    id: str
    plate: str
    event_time: datetime
    direction: EventDirection | None = None
    snow_volume_m3: float | None = None
    camera_id: str | None = None
    polygon_id: str | None = None
