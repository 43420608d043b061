"""
Wind and atmosphere along the flight path
Time-then-altitude interpolation over weather samples and drift integration
"""

from collections import defaultdict
from datetime import datetime
from typing import List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from flightpath.data_processing.interpolation import interpolate_angle, interpolate_value
from flightpath.models.prediction import TrajectoryPoint, WeatherImpact, WeatherValidation
from flightpath.models.weather import WeatherSample
from flightpath.utils.helpers import destination_point, ensure_utc, hpa_to_pa, normalize_angle


SCALAR_FIELDS = ('wind_speed', 'temperature', 'pressure', 'humidity', 'uncertainty')


class WindState(NamedTuple):
    wind_speed: float
    wind_direction: float
    temperature: float
    pressure: float
    humidity: float
    uncertainty: float


class _Level(NamedTuple):
    altitude: float
    times: np.ndarray
    values: dict
    directions: np.ndarray


def drift_position(lat: float, lng: float, wind_speed: float, wind_direction: float, duration: float) -> Tuple[float, float]:
    """
    Move a point downwind

    Args:
        lat: Start latitude
        lng: Start longitude
        wind_speed: Wind speed (m/s)
        wind_direction: Direction the wind blows from (degrees)
        duration: Seconds of drift

    Returns:
        Tuple of (latitude, longitude)
    """
    distance_km = wind_speed * duration / 1000
    if distance_km <= 0:
        return lat, lng
    return destination_point(lat, lng, normalize_angle(wind_direction + 180), distance_km)


class WindProfile:
    """
    Wind and atmosphere lookup over a set of weather samples

    Samples are grouped by altitude level. A lookup interpolates each level
    in time, then interpolates vertically between the two levels bracketing
    the target altitude. Outside the sampled range the nearest value holds.
    """

    def __init__(self, samples: Sequence[WeatherSample] = (), levels: Optional[List[_Level]] = None,
                 sample_count: int = 0):
        if levels is not None:
            self.levels = levels
            self.altitudes = np.array([level.altitude for level in levels])
            self.sample_count = sample_count
            return

        if not samples:
            raise ValueError("WindProfile needs at least one weather sample")

        grouped = defaultdict(list)
        for sample in samples:
            grouped[round(sample.altitude, 1)].append(sample)

        self.levels: List[_Level] = []
        for altitude in sorted(grouped):
            level_samples = sorted(grouped[altitude], key=lambda s: s.timestamp)
            self.levels.append(_Level(
                altitude=altitude,
                times=np.array([ensure_utc(s.timestamp).timestamp() for s in level_samples]),
                values={
                    field: np.array([getattr(s, field) for s in level_samples], dtype=float)
                    for field in SCALAR_FIELDS
                },
                directions=np.array([s.wind_direction for s in level_samples], dtype=float)
            ))

        self.altitudes = np.array([level.altitude for level in self.levels])
        self.sample_count = len(samples)

    @classmethod
    def constant(
        cls,
        timestamp: datetime,
        wind_speed: float,
        wind_direction: float,
        temperature: float = 15.0,
        pressure: float = 1013.25
    ) -> "WindProfile":
        """Single-sample profile used when no forecast is available"""
        return cls([WeatherSample.from_wind(
            timestamp=timestamp,
            altitude=0.0,
            temperature=temperature,
            pressure=pressure,
            humidity=50.0,
            wind_speed=wind_speed,
            wind_direction=wind_direction,
            quality=0.5
        )])

    def _at_level(self, level: _Level, epoch: float) -> WindState:
        times = level.times
        values = {field: float(np.interp(epoch, times, level.values[field])) for field in SCALAR_FIELDS}

        index = int(np.searchsorted(times, epoch))
        if index <= 0:
            direction = level.directions[0]
        elif index >= len(times):
            direction = level.directions[-1]
        else:
            span = times[index] - times[index - 1]
            ratio = (epoch - times[index - 1]) / span if span > 0 else 0.0
            direction = interpolate_angle(level.directions[index - 1], level.directions[index], ratio)

        return WindState(wind_direction=float(direction), **values)

    def at(self, altitude: float, timestamp: datetime) -> WindState:
        """
        Interpolated conditions at an altitude and time

        Args:
            altitude: Altitude (m)
            timestamp: Time of interest

        Returns:
            WindState with pressure in hPa and temperature in °C
        """
        epoch = ensure_utc(timestamp).timestamp()

        index = int(np.searchsorted(self.altitudes, altitude))
        if index <= 0:
            return self._at_level(self.levels[0], epoch)
        if index >= len(self.levels):
            return self._at_level(self.levels[-1], epoch)

        lower = self.levels[index - 1]
        upper = self.levels[index]
        ratio = (altitude - lower.altitude) / (upper.altitude - lower.altitude)

        below = self._at_level(lower, epoch)
        above = self._at_level(upper, epoch)
        return WindState(
            wind_speed=interpolate_value(below.wind_speed, above.wind_speed, ratio),
            wind_direction=interpolate_angle(below.wind_direction, above.wind_direction, ratio),
            temperature=interpolate_value(below.temperature, above.temperature, ratio),
            pressure=interpolate_value(below.pressure, above.pressure, ratio),
            humidity=interpolate_value(below.humidity, above.humidity, ratio),
            uncertainty=interpolate_value(below.uncertainty, above.uncertainty, ratio)
        )

    def perturbed(self, speed_offsets: np.ndarray, direction_offsets: np.ndarray) -> "WindProfile":
        """Copy with per-level speed and direction offsets (one entry per level)"""
        levels = []
        for level, speed_offset, direction_offset in zip(self.levels, speed_offsets, direction_offsets):
            values = dict(level.values)
            values['wind_speed'] = np.maximum(0.0, level.values['wind_speed'] + speed_offset)
            levels.append(level._replace(
                values=values,
                directions=np.mod(level.directions + direction_offset, 360.0)
            ))
        return WindProfile(levels=levels, sample_count=self.sample_count)


def calculate_wind_effects(trajectory: Sequence[TrajectoryPoint], profile: Optional[WindProfile]) -> WeatherImpact:
    """
    Aggregate weather impact along a trajectory

    Args:
        trajectory: Ordered trajectory points
        profile: Wind profile used for the flight

    Returns:
        WeatherImpact with drift (km), mean temperature effect and
        uncertainty radius (km)
    """
    if not trajectory or profile is None:
        return WeatherImpact()

    states = [profile.at(point.altitude, point.timestamp) for point in trajectory]

    wind_drift = 0.0
    for previous, current, state in zip(trajectory, trajectory[1:], states):
        seconds = (ensure_utc(current.timestamp) - ensure_utc(previous.timestamp)).total_seconds()
        wind_drift += state.wind_speed * seconds / 1000

    altitude_effect = sum(abs((s.temperature - 15) * 0.01) for s in states) / len(states)
    uncertainty = sum(s.uncertainty for s in states) / len(states)

    return WeatherImpact(
        wind_drift=wind_drift,
        altitude_effect=altitude_effect,
        uncertainty_radius=uncertainty * 5
    )


def validate_weather_data(samples: Sequence[WeatherSample]) -> WeatherValidation:
    """
    Range-check weather samples

    Valid when more than 80% of samples pass. Quality is high above 95%,
    medium from 50%.
    """
    issues = []
    valid_points = 0

    for sample in samples:
        point_issues = []
        pressure_pa = hpa_to_pa(sample.pressure)
        if not -100 <= sample.temperature <= 100:
            point_issues.append(f"Invalid temperature: {sample.temperature:.1f}°C at {sample.altitude:g}m")
        if not 0 <= pressure_pa <= 200000:
            point_issues.append(f"Invalid pressure: {pressure_pa:.0f}Pa at {sample.altitude:g}m")
        if not 0 <= sample.wind_speed <= 100:
            point_issues.append(f"Invalid wind speed: {sample.wind_speed:.1f}m/s at {sample.altitude:g}m")
        if not 0 <= sample.humidity <= 100:
            point_issues.append(f"Invalid humidity: {sample.humidity:.1f}% at {sample.altitude:g}m")

        if point_issues:
            issues.extend(point_issues)
        else:
            valid_points += 1

    ratio = valid_points / len(samples) if samples else 0.0
    if ratio > 0.95:
        quality = 'high'
    elif ratio >= 0.5:
        quality = 'medium'
    else:
        quality = 'low'

    return WeatherValidation(is_valid=ratio > 0.8, quality=quality, issues=issues)
