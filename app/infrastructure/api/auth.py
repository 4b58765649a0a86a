"""Caller identity from the API gateway's trusted headers."""

from __future__ import annotations

from uuid import UUID

from fastapi import Header, HTTPException

from app.domain.entities.principal import Principal
from app.domain.value_objects.enums import Role


def _parse(value: str | None, header: str) -> UUID:
    if not value:
        raise HTTPException(status_code=401, detail=f"Missing {header} header")
    try:
        return UUID(value)
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Malformed {header} header") from None


async def get_principal(
    x_user_id: str | None = Header(default=None),
    x_org_id: str | None = Header(default=None),
    x_role: str | None = Header(default=None),
    x_driver_id: str | None = Header(default=None),
) -> Principal:
    """Build the Principal; authentication itself happens upstream."""
    user_id = _parse(x_user_id, "X-User-Id")
    org_id = _parse(x_org_id, "X-Org-Id")
    try:
        role = Role((x_role or "").strip().upper())
    except ValueError:
        raise HTTPException(status_code=401, detail="Missing or unknown X-Role header") from None
    driver_id = _parse(x_driver_id, "X-Driver-Id") if x_driver_id else None
    return Principal(user_id=user_id, org_id=org_id, role=role, driver_id=driver_id)
