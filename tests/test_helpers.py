"""Tests for geo, unit and time helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from flightpath.utils.helpers import (
    celsius_to_kelvin,
    deep_merge,
    destination_point,
    ensure_utc,
    format_duration,
    haversine_distance,
    hpa_to_pa,
    initial_bearing,
    kelvin_to_celsius,
    normalize_angle,
    pa_to_hpa,
    round_coordinate_key,
    round_half_up,
    wind_components,
)


class TestAngles:
    def test_normalize_wraps_negative(self):
        """Negative angles wrap into [0, 360)."""
        assert normalize_angle(-90) == pytest.approx(270)

    def test_normalize_wraps_full_turn(self):
        assert normalize_angle(360) == 0
        assert normalize_angle(725) == pytest.approx(5)

    def test_normalize_tiny_negative_stays_in_range(self):
        """Rounding of tiny negatives never yields 360."""
        result = normalize_angle(-1e-15)
        assert 0 <= result < 360

    def test_west_wind_blows_east(self):
        """Wind from 270 degrees has a positive u component."""
        u, v = wind_components(10, 270)
        assert u == pytest.approx(10)
        assert v == pytest.approx(0, abs=1e-9)

    def test_north_wind_blows_south(self):
        u, v = wind_components(5, 0)
        assert u == pytest.approx(0, abs=1e-9)
        assert v == pytest.approx(-5)


class TestGreatCircle:
    def test_one_degree_of_latitude(self):
        """One degree of latitude is about 111 km."""
        distance = haversine_distance(0, 0, 1, 0)
        assert distance == pytest.approx(111195, rel=1e-3)

    def test_zero_distance(self):
        assert haversine_distance(39.74, -104.98, 39.74, -104.98) == 0

    def test_destination_then_bearing(self):
        """Travelling east from the equator keeps the latitude."""
        lat, lng = destination_point(0, 0, 90, 100)
        assert lat == pytest.approx(0, abs=1e-9)
        assert lng > 0
        assert initial_bearing(0, 0, lat, lng) == pytest.approx(90, abs=1e-6)

    def test_destination_wraps_dateline(self):
        """Longitude stays in [-180, 180) across the date line."""
        _, lng = destination_point(0, 179.9, 90, 50)
        assert -180 <= lng < 180
        assert lng < 0


class TestUnits:
    def test_celsius_to_kelvin(self):
        assert celsius_to_kelvin(25) == pytest.approx(298.15)
        assert kelvin_to_celsius(298.15) == pytest.approx(25)

    def test_hpa_to_pa(self):
        assert hpa_to_pa(1013.25) == pytest.approx(101325)
        assert pa_to_hpa(101325) == pytest.approx(1013.25)

    def test_round_trips(self):
        """Converting there and back returns the original value."""
        for value in (-56.5, 0, 15, 40.2):
            assert kelvin_to_celsius(celsius_to_kelvin(value)) == pytest.approx(value)
        for value in (1.2, 250, 1013.25):
            assert pa_to_hpa(hpa_to_pa(value)) == pytest.approx(value)


class TestMisc:
    def test_round_half_up(self):
        """Halves round towards positive infinity."""
        assert round_half_up(2.5) == 3
        assert round_half_up(-2.5) == -2
        assert round_half_up(2.4) == 2

    def test_coordinate_key_precision(self):
        assert round_coordinate_key(39.740049, -104.98) == "39.7400,-104.9800"

    def test_deep_merge_keeps_nested_defaults(self):
        merged = deep_merge({'a': {'x': 1, 'y': 2}, 'b': 1}, {'a': {'y': 3}})
        assert merged == {'a': {'x': 1, 'y': 3}, 'b': 1}

    def test_deep_merge_does_not_mutate_base(self):
        base = {'a': {'x': 1}}
        deep_merge(base, {'a': {'x': 2}})
        assert base == {'a': {'x': 1}}

    def test_format_duration(self):
        assert format_duration(8130) == "2h 15m 30s"
        assert format_duration(0) == "0s"

    def test_ensure_utc_on_naive(self):
        """Naive datetimes are taken as UTC."""
        value = ensure_utc(datetime(2026, 6, 1, 12, 0))
        assert value.tzinfo is not None
        assert value.utcoffset() == timedelta(0)

    def test_ensure_utc_converts_offset(self):
        value = ensure_utc(datetime(2026, 6, 1, 14, 0, tzinfo=timezone(timedelta(hours=2))))
        assert value.hour == 12
