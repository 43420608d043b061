"""Test configuration and fixtures."""

import copy
import math
from datetime import datetime, timedelta, timezone

import pytest

from flightpath.config import DEFAULT_CONFIG
from flightpath.data_collection.elevation_providers import ElevationProvider
from flightpath.data_collection.weather_providers import OpenMeteoWeatherProvider
from flightpath.exceptions import DataUnavailableError
from flightpath.models.forecast import BalloonSpecs
from flightpath.models.geo import GeoPoint, Position
from flightpath.models.weather import WeatherSample
from flightpath.utils.helpers import deep_merge
from flightpath.utils.logger import configure_logging


LAUNCH_TIME = datetime(2026, 6, 1, 12, 0, 0, tzinfo=timezone.utc)
DENVER = GeoPoint(latitude=39.74, longitude=-104.98, altitude=1609.0)
METERS_PER_DEGREE = 111320.0


@pytest.fixture(autouse=True, scope="session")
def quiet_logging():
    """Keep test runs free of log files and console noise."""
    configure_logging({'level': 'WARNING', 'file': None, 'console': False})


@pytest.fixture
def config():
    """Default configuration without retry backoff."""
    return deep_merge(copy.deepcopy(DEFAULT_CONFIG), {
        'elevation_service': {'retry_backoff_seconds': 0},
        'weather_service': {'retry_backoff_seconds': 0},
    })


@pytest.fixture
def balloon_specs():
    return BalloonSpecs(
        balloon_volume=4.0,
        payload_weight=1.5,
        balloon_weight=1.2,
        burst_altitude=30000,
        ascent_rate=5.0,
        drag_coefficient=1.5,
    )


class FakeElevationProvider(ElevationProvider):
    """Scripted elevation provider: queued failures first, then answers."""

    def __init__(self, name="Fake", elevation=1600.0, failures=(), fail_always=None,
                 fail_when=None, available=True, max_batch_size=0, batch_error=None, delay=0.0):
        self.name = name
        super().__init__(timeout=1)
        self.elevation = elevation
        self.failures = list(failures)
        self.fail_always = fail_always
        self.fail_when = fail_when
        self.available = available
        self.max_batch_size = max_batch_size
        self.batch_error = batch_error
        self.delay = delay
        self.batch_calls = 0

    def is_available_for_location(self, lat, lng):
        return self.available

    def _elevation_at(self, lat, lng):
        if callable(self.elevation):
            return self.elevation(lat, lng)
        return self.elevation

    async def get_elevation(self, point):
        self.call_count += 1
        if self.failures:
            raise self.failures.pop(0)
        if self.fail_always is not None:
            raise self.fail_always
        if self.fail_when is not None and self.fail_when(point.latitude, point.longitude):
            raise DataUnavailableError(f"{self.name} has no data here", provider=self.name)
        return self._sample(point.latitude, point.longitude, self._elevation_at(point.latitude, point.longitude))

    async def get_batch_elevation(self, points):
        self.batch_calls += 1
        if self.delay:
            import asyncio
            await asyncio.sleep(self.delay)
        if self.batch_error is not None:
            raise self.batch_error
        return [self._sample(p.latitude, p.longitude, self._elevation_at(p.latitude, p.longitude)) for p in points]


class FakeWeatherProvider(OpenMeteoWeatherProvider):
    """Weather provider answering from a canned payload or raising."""

    def __init__(self, endpoint="forecast", payload=None, error=None):
        super().__init__(endpoint=endpoint)
        self.payload = payload
        self.error = error

    async def get_weather(self, request):
        self.call_count += 1
        if self.error is not None:
            raise self.error
        return self.payload


def hourly_payload(start, hours, temperature=15.0, wind_speed=5.0, wind_direction=270.0):
    """Open-Meteo style hourly response starting at `start`."""
    times = [(start + timedelta(hours=h)).strftime('%Y-%m-%dT%H:%M') for h in range(hours)]
    return {
        'latitude': DENVER.latitude,
        'longitude': DENVER.longitude,
        'hourly': {
            'time': times,
            'temperature_2m': [temperature] * hours,
            'pressure_msl': [1013.25] * hours,
            'relative_humidity_2m': [50.0] * hours,
            'wind_speed_10m': [wind_speed] * hours,
            'wind_direction_10m': [wind_direction] * hours,
        }
    }


def make_grid(lat, lng, side, spacing_m, elevation=lambda row, col: 0.0):
    """Square grid of positions, `elevation(row, col)` giving each height."""
    cos_lat = math.cos(math.radians(lat))
    half = (side - 1) / 2
    positions = []
    for row in range(side):
        for col in range(side):
            positions.append(Position(
                latitude=lat + (row - half) * spacing_m / METERS_PER_DEGREE,
                longitude=lng + (col - half) * spacing_m / (METERS_PER_DEGREE * cos_lat),
                elevation=elevation(row, col),
            ))
    return positions


def weather_profile(start, hours=12, altitudes=(10.0, 10000.0, 30000.0), wind_speed=10.0, wind_direction=270.0):
    """Uniform wind at several levels, one sample per hour."""
    samples = []
    for altitude in altitudes:
        for h in range(hours):
            samples.append(WeatherSample.from_wind(
                timestamp=start + timedelta(hours=h),
                altitude=altitude,
                temperature=15.0 - 0.0065 * altitude,
                pressure=1013.25 * math.exp(-altitude / 7400),
                humidity=50.0,
                wind_speed=wind_speed,
                wind_direction=wind_direction,
            ))
    return samples
