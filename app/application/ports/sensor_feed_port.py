"""Port interface for the external plate-recognition / volume event feed."""

from abc import ABC, abstractmethod
from datetime import datetime

from app.domain.entities.sensor_event import SensorEvent


class SensorFeedError(Exception):
    """Raised when the feed cannot be reached or returns an unusable response."""


class SensorFeedPort(ABC):
    @abstractmethod
    async def get_entry_events(
        self, plate: str, start_time: datetime, end_time: datetime
    ) -> list[SensorEvent]:
        """Return entry-direction events for the plate within [start_time, end_time].

        A single attempt; retry policy belongs to the caller.

        Raises:
            SensorFeedError: on transport failure, non-200 status or bad payload.
        """
        ...
