"""Tests for the trip classification rule chain."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from app.domain.entities.assignment import TicketAssignment
from app.domain.entities.vehicle import VehiclePosition
from app.domain.policies.trip_classification import TripSignals, classify, explain
from app.domain.value_objects.enums import TripStatus
from app.domain.value_objects.geo_point import GeoPoint
from app.domain.value_objects.thresholds import ComplianceThresholds

ENTRY = datetime(2026, 1, 15, 9, 0, tzinfo=timezone.utc)
EXIT = ENTRY + timedelta(minutes=40)
VEHICLE = uuid4()

THRESHOLDS = ComplianceThresholds(min_entry_volume_ratio=0.5, exit_volume_tolerance=0.3)


def _position(recorded_at, inside_area=True, inside_polygon=True) -> VehiclePosition:
    return VehiclePosition(
        vehicle_id=VEHICLE,
        location=GeoPoint(latitude=51.1, longitude=71.4),
        recorded_at=recorded_at,
        inside_cleaning_area=inside_area,
        inside_polygon=inside_polygon,
    )


@pytest.fixture
def clean() -> TripSignals:
    """A trip that passes every rule."""
    return TripSignals(
        assignment=TicketAssignment(
            id=uuid4(), ticket_id=uuid4(), driver_id=uuid4(), vehicle_id=VEHICLE
        ),
        provided_vehicle_id=VEHICLE,
        resolved_vehicle_id=VEHICLE,
        expected_plate="777 KZA 02",
        detected_plate="777kza02",
        entry_volume=8.0,
        exit_volume=0.1,
        body_volume=10.0,
        exit_plate_event_present=True,
        exit_volume_event_present=True,
        entry_at=ENTRY,
        exit_at=EXIT,
        last_position=_position(ENTRY + timedelta(minutes=2)),
    )


def test_clean_trip_is_ok(clean):
    assert explain(clean, THRESHOLDS) == (TripStatus.OK, None)


def test_external_status_is_never_downgraded(clean):
    signals = replace(clean, base_status=TripStatus.OVER_CAPACITY)
    assert explain(signals, THRESHOLDS) == (TripStatus.OVER_CAPACITY, "external")


def test_no_assignment_wins_over_everything_else(clean):
    signals = replace(
        clean,
        assignment=None,
        detected_plate="000XXX00",
        entry_volume=0.0,
        exit_plate_event_present=False,
    )
    assert explain(signals, THRESHOLDS) == (TripStatus.NO_ASSIGNMENT, "no_assignment")


def test_provided_vehicle_mismatch(clean):
    signals = replace(clean, provided_vehicle_id=uuid4())
    assert explain(signals, THRESHOLDS) == (TripStatus.MISMATCH_PLATE, "vehicle_mismatch")


def test_resolved_vehicle_mismatch(clean):
    signals = replace(clean, resolved_vehicle_id=uuid4())
    assert classify(signals, THRESHOLDS) == TripStatus.MISMATCH_PLATE


def test_unknown_vehicles_do_not_mismatch(clean):
    signals = replace(clean, provided_vehicle_id=None, resolved_vehicle_id=None)
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_plate_mismatch_after_normalization(clean):
    signals = replace(clean, detected_plate="777 KZA 03")
    assert explain(signals, THRESHOLDS) == (TripStatus.MISMATCH_PLATE, "plate_mismatch")


def test_empty_detected_plate_is_not_a_mismatch(clean):
    signals = replace(clean, detected_plate="")
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_underloaded_entry(clean):
    signals = replace(clean, entry_volume=4.9)
    assert explain(signals, THRESHOLDS) == (TripStatus.SUSPICIOUS_VOLUME, "underloaded_entry")


def test_entry_exactly_at_ratio_is_ok(clean):
    signals = replace(clean, entry_volume=5.0)
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_unknown_body_volume_skips_entry_check(clean):
    signals = replace(clean, entry_volume=0.1, body_volume=None)
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_not_empty_on_exit(clean):
    signals = replace(clean, exit_volume=-0.5)
    assert explain(signals, THRESHOLDS) == (TripStatus.SUSPICIOUS_VOLUME, "not_empty_on_exit")


def test_exit_within_tolerance_is_ok(clean):
    signals = replace(clean, exit_volume=0.3)
    assert classify(signals, THRESHOLDS) == TripStatus.OK


@pytest.mark.parametrize("plate_event,volume_event", [(False, True), (True, False), (False, False)])
def test_missing_exit_events(clean, plate_event, volume_event):
    signals = replace(
        clean, exit_plate_event_present=plate_event, exit_volume_event_present=volume_event
    )
    assert classify(signals, THRESHOLDS) == TripStatus.NO_EXIT_CAMERA


def test_outside_cleaning_area_near_entry(clean):
    signals = replace(clean, last_position=_position(ENTRY - timedelta(minutes=5), inside_area=False))
    assert explain(signals, THRESHOLDS) == (TripStatus.NO_AREA_WORK, "outside_cleaning_area")


def test_stale_position_is_ignored_for_area_rule(clean):
    signals = replace(
        clean,
        last_position=_position(ENTRY - timedelta(minutes=30), inside_area=False),
    )
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_left_polygon_before_exit(clean):
    signals = replace(
        clean,
        last_position=_position(EXIT - timedelta(minutes=1), inside_polygon=False),
    )
    assert explain(signals, THRESHOLDS) == (TripStatus.ROUTE_VIOLATION, "left_polygon_before_exit")


def test_outside_polygon_after_exit_is_ok(clean):
    signals = replace(
        clean,
        last_position=_position(EXIT + timedelta(minutes=1), inside_polygon=False),
    )
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_priority_volume_before_exit_camera(clean):
    signals = replace(clean, entry_volume=1.0, exit_plate_event_present=False)
    assert classify(signals, THRESHOLDS) == TripStatus.SUSPICIOUS_VOLUME


def test_no_position_skips_gps_rules(clean):
    signals = replace(clean, last_position=None)
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_vehicle_mismatch_wins_over_suspicious_volume(clean):
    signals = replace(clean, provided_vehicle_id=uuid4(), entry_volume=0.5, exit_volume=5.0)
    assert explain(signals, THRESHOLDS) == (TripStatus.MISMATCH_PLATE, "vehicle_mismatch")


def test_priority_exit_volume_before_exit_camera(clean):
    signals = replace(clean, exit_volume=5.0, exit_plate_event_present=False)
    assert explain(signals, THRESHOLDS) == (TripStatus.SUSPICIOUS_VOLUME, "not_empty_on_exit")


def test_priority_area_work_before_route(clean):
    signals = replace(
        clean,
        last_position=_position(ENTRY + timedelta(minutes=2), inside_area=False, inside_polygon=False),
    )
    assert explain(signals, THRESHOLDS) == (TripStatus.NO_AREA_WORK, "outside_cleaning_area")


def test_fix_shortly_after_entry_counts_for_area_rule(clean):
    signals = replace(clean, last_position=_position(ENTRY + timedelta(minutes=5), inside_area=False))
    assert classify(signals, THRESHOLDS) == TripStatus.NO_AREA_WORK


def test_fix_past_window_after_entry_is_ignored_for_area_rule(clean):
    signals = replace(clean, last_position=_position(ENTRY + timedelta(minutes=11), inside_area=False))
    assert classify(signals, THRESHOLDS) == TripStatus.OK


def test_plate_formatting_differences_are_not_a_mismatch(clean):
    signals = replace(clean, expected_plate="777-kza-02", detected_plate=" 777 KZA 02 ")
    assert classify(signals, THRESHOLDS) == TripStatus.OK
