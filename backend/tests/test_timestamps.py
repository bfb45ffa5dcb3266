"""Tests for timestamp normalisation"""
from datetime import datetime, timedelta, timezone

from timestamps import MonotonicClock, to_datetime, to_seconds_object

MOMENT = datetime(2025, 5, 6, 14, 30, 0, 250000, tzinfo=timezone.utc)


def test_seconds_object_round_trip():
    assert to_datetime(to_seconds_object(MOMENT)) == MOMENT


def test_admin_sdk_shape():
    raw = {"_seconds": int(MOMENT.timestamp()), "_nanoseconds": 250_000_000}
    assert to_datetime(raw) == MOMENT


def test_iso_string_with_z_suffix():
    assert to_datetime("2025-05-06T14:30:00.250000Z") == MOMENT


def test_naive_datetime_is_utc():
    assert to_datetime(datetime(2025, 5, 6, 14, 30)).tzinfo == timezone.utc


def test_epoch_number():
    assert to_datetime(0) == datetime(1970, 1, 1, tzinfo=timezone.utc)


def test_unparseable_values():
    assert to_datetime("next tuesday") is None
    assert to_datetime({"seconds": "soon"}) is None
    assert to_datetime(True) is None
    assert to_datetime(None) is None


def test_monotonic_clock_never_repeats():
    clock = MonotonicClock(source=lambda: MOMENT)
    readings = [clock.now() for _ in range(3)]
    assert readings == [MOMENT, MOMENT + timedelta(microseconds=1), MOMENT + timedelta(microseconds=2)]
