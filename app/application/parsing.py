"""Input parsing helpers. Malformed identifiers and timestamps become InvalidInputError."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from app.domain.errors import InvalidInputError


def parse_uuid(value: str | UUID, field_name: str) -> UUID:
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidInputError(f"{field_name}: invalid identifier {value!r}") from None


def parse_optional_uuid(value: str | UUID | None, field_name: str) -> UUID | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_uuid(value, field_name)


def parse_timestamp(value: str | datetime, field_name: str) -> datetime:
    """Parse an RFC 3339 timestamp. A UTC offset is mandatory."""
    if isinstance(value, datetime):
        parsed = value
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            raise InvalidInputError(f"{field_name}: invalid timestamp {value!r}") from None
    if parsed.tzinfo is None:
        raise InvalidInputError(f"{field_name}: timestamp must include a UTC offset")
    return parsed


def parse_optional_timestamp(value: str | datetime | None, field_name: str) -> datetime | None:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_timestamp(value, field_name)
