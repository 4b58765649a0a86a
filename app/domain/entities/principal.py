"""Principal: an already-authenticated caller identity."""

from dataclasses import dataclass
from uuid import UUID

from app.domain.value_objects.enums import Role


@dataclass(frozen=True)
class Principal:
    user_id: UUID
    org_id: UUID
    role: Role
    driver_id: UUID | None = None

    def is_kgu(self) -> bool:
        return self.role == Role.KGU

    def is_contractor(self) -> bool:
        return self.role == Role.CONTRACTOR

    def is_driver(self) -> bool:
        return self.role == Role.DRIVER and self.driver_id is not None
