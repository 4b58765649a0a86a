"""Port interfaces for vehicle reference data and GPS fixes."""

from abc import ABC, abstractmethod
from uuid import UUID

from app.domain.entities.vehicle import Vehicle, VehiclePosition


class VehicleRepository(ABC):
    @abstractmethod
    async def get_by_id(self, vehicle_id: UUID) -> Vehicle | None:
        ...

    @abstractmethod
    async def get_by_plate(self, plate: str) -> Vehicle | None:
        """Lookup by normalized plate. Empty plate returns None."""
        ...


class VehiclePositionRepository(ABC):
    @abstractmethod
    async def get_last(self, vehicle_id: UUID) -> VehiclePosition | None:
        """Most recent GPS fix of the vehicle."""
        ...
