"""ANPR service adapter: implements SensorFeedPort over the internal HTTP API."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from app.application.ports.sensor_feed_port import SensorFeedError, SensorFeedPort
from app.config import settings
from app.domain.entities.sensor_event import SensorEvent
from app.domain.value_objects.enums import EventDirection

logger = logging.getLogger(__name__)

EVENTS_PATH = "/internal/anpr/events"
TOKEN_HEADER = "X-Internal-Token"


def _rfc3339(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def _parse_event(raw: dict) -> SensorEvent:
    direction = raw.get("direction")
    volume = raw.get("snow_volume_m3")
    camera_id = raw.get("camera_id")
    polygon_id = raw.get("polygon_id")
    return SensorEvent(
        id=str(raw["id"]),
        plate=raw.get("normalized_plate") or "",
        event_time=datetime.fromisoformat(str(raw["event_time"]).replace("Z", "+00:00")),
        direction=EventDirection(direction.lower()) if direction else None,
        snow_volume_m3=float(volume) if volume is not None else None,
        camera_id=str(camera_id) if camera_id is not None else None,
        polygon_id=str(polygon_id) if polygon_id is not None else None,
    )


class AnprSensorFeedAdapter(SensorFeedPort):
    """HTTP client for the ANPR events endpoint. One request per call, no retries."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._base_url = (base_url if base_url is not None else settings.anpr_service_url).rstrip("/")
        self._token = token if token is not None else settings.anpr_internal_token
        self._timeout = timeout if timeout is not None else settings.anpr_timeout_seconds
        self._transport = transport

    async def get_entry_events(
        self, plate: str, start_time: datetime, end_time: datetime
    ) -> list[SensorEvent]:
        if not self._base_url:
            raise SensorFeedError("ANPR service URL is not configured")

        headers = {TOKEN_HEADER: self._token} if self._token else {}
        params = {
            "plate": plate,
            "start_time": _rfc3339(start_time),
            "end_time": _rfc3339(end_time),
            "direction": EventDirection.ENTRY.value,
        }

        try:
            async with httpx.AsyncClient(
                base_url=self._base_url, timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.get(EVENTS_PATH, params=params, headers=headers)
        except httpx.HTTPError as e:
            raise SensorFeedError(f"ANPR request failed: {e}") from e

        if response.status_code != 200:
            raise SensorFeedError(
                f"ANPR service returned {response.status_code}: {response.text[:200]}"
            )

        try:
            payload = response.json()
            events = [_parse_event(item) for item in payload.get("data") or []]
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise SensorFeedError(f"Malformed ANPR response: {e}") from e

        logger.debug("ANPR returned %d entry event(s) for %s", len(events), plate)
        return events
