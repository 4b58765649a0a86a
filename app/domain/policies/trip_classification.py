"""TripClassificationPolicy: assign one compliance status to a trip.

Pure function over pre-resolved signals: no persistence, no I/O.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Callable
from uuid import UUID

from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.vehicle import VehiclePosition
from app.domain.value_objects.enums import TripStatus
from app.domain.value_objects.plate import normalize_plate, plates_match
from app.domain.value_objects.thresholds import ComplianceThresholds


@dataclass(frozen=True)
class TripSignals:
    """Everything the classifier looks at, resolved by the caller."""

    base_status: TripStatus = TripStatus.OK
    assignment: TicketAssignment | None = None
    provided_vehicle_id: UUID | None = None
    resolved_vehicle_id: UUID | None = None
    expected_plate: str | None = None
    detected_plate: str | None = None
    entry_volume: float | None = None
    exit_volume: float | None = None
    body_volume: float | None = None
    exit_plate_event_present: bool = False
    exit_volume_event_present: bool = False
    entry_at: datetime | None = None
    exit_at: datetime | None = None
    last_position: VehiclePosition | None = None


Predicate = Callable[[TripSignals, ComplianceThresholds], bool]


def _no_assignment(s: TripSignals, t: ComplianceThresholds) -> bool:
    return s.assignment is None


def _vehicle_differs(s: TripSignals, t: ComplianceThresholds) -> bool:
    expected = s.assignment.vehicle_id
    return any(
        vehicle_id is not None and vehicle_id != expected
        for vehicle_id in (s.provided_vehicle_id, s.resolved_vehicle_id)
    )


def _plate_differs(s: TripSignals, t: ComplianceThresholds) -> bool:
    if not normalize_plate(s.expected_plate) or not normalize_plate(s.detected_plate):
        return False
    return not plates_match(s.expected_plate, s.detected_plate)


def _underloaded_entry(s: TripSignals, t: ComplianceThresholds) -> bool:
    if s.body_volume is None or s.entry_volume is None or s.body_volume <= 0:
        return False
    return s.entry_volume < t.min_entry_volume_ratio * s.body_volume


def _not_empty_on_exit(s: TripSignals, t: ComplianceThresholds) -> bool:
    return s.exit_volume is not None and abs(s.exit_volume) > t.exit_volume_tolerance


def _exit_not_confirmed(s: TripSignals, t: ComplianceThresholds) -> bool:
    return not (s.exit_plate_event_present and s.exit_volume_event_present)


def _outside_cleaning_area(s: TripSignals, t: ComplianceThresholds) -> bool:
    pos = s.last_position
    if pos is None or s.entry_at is None:
        return False
    # Fixes on either side of entry_at count, within the window.
    if abs(s.entry_at - pos.recorded_at) > t.area_work_window:
        return False
    return not pos.inside_cleaning_area


def _left_polygon_before_exit(s: TripSignals, t: ComplianceThresholds) -> bool:
    pos = s.last_position
    if pos is None or s.exit_at is None:
        return False
    return pos.recorded_at < s.exit_at and not pos.inside_polygon


# Priority order matters: the first matching rule wins and later rules are
# never evaluated (each predicate may rely on the ones before it).
RULES: tuple[tuple[str, Predicate, TripStatus], ...] = (
    ("no_assignment", _no_assignment, TripStatus.NO_ASSIGNMENT),
    ("vehicle_mismatch", _vehicle_differs, TripStatus.MISMATCH_PLATE),
    ("plate_mismatch", _plate_differs, TripStatus.MISMATCH_PLATE),
    ("underloaded_entry", _underloaded_entry, TripStatus.SUSPICIOUS_VOLUME),
    ("not_empty_on_exit", _not_empty_on_exit, TripStatus.SUSPICIOUS_VOLUME),
    ("exit_not_confirmed", _exit_not_confirmed, TripStatus.NO_EXIT_CAMERA),
    ("outside_cleaning_area", _outside_cleaning_area, TripStatus.NO_AREA_WORK),
    ("left_polygon_before_exit", _left_polygon_before_exit, TripStatus.ROUTE_VIOLATION),
)


def explain(signals: TripSignals, thresholds: ComplianceThresholds) -> tuple[TripStatus, str | None]:
    """Classify and name the rule that decided the status.

    Returns (status, rule_name). rule_name is None for a clean OK trip and
    "external" when an upstream violation was passed through.
    """
    # An externally supplied violation is never downgraded.
    if signals.base_status != TripStatus.OK:
        return signals.base_status, "external"

    for name, predicate, status in RULES:
        if predicate(signals, thresholds):
            return status, name

    return TripStatus.OK, None


def classify(signals: TripSignals, thresholds: ComplianceThresholds) -> TripStatus:
    """Return the compliance status of a trip."""
    status, _ = explain(signals, thresholds)
    return status
