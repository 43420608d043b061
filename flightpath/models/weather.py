"""
Pydantic models for weather samples, requests and interpolation results.
"""
import json
import math
from datetime import date, datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from flightpath.utils.helpers import normalize_angle, wind_components


DEFAULT_HOURLY_VARIABLES = [
    "temperature_2m",
    "wind_speed_10m",
    "wind_direction_10m",
    "pressure_msl",
    "relative_humidity_2m",
]

InterpolationMethod = Literal["linear", "cubic", "spline"]


class WeatherSample(BaseModel):
    """
    Normalized weather observation at one time and altitude.

    Wind direction follows the meteorological convention (direction the wind
    blows from, 0 = north, clockwise). U/V components must agree with it.
    """

    timestamp: datetime
    altitude: float = Field(..., ge=0, description="Altitude (m)")
    temperature: float = Field(..., description="Temperature (°C)")
    pressure: float = Field(..., description="Pressure (hPa)")
    humidity: float = Field(..., ge=0, le=100, description="Relative humidity (%)")
    wind_speed: float = Field(..., ge=0, description="Wind speed (m/s)")
    wind_direction: float = Field(..., ge=0, lt=360, description="Wind direction (degrees)")
    wind_u: float = Field(..., description="Eastward wind component (m/s)")
    wind_v: float = Field(..., description="Northward wind component (m/s)")
    quality: float = Field(default=1.0, ge=0, le=1)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def _check_wind_components(self):
        u, v = wind_components(self.wind_speed, self.wind_direction)
        tolerance = 1e-6 * max(1.0, self.wind_speed)
        if abs(u - self.wind_u) > tolerance or abs(v - self.wind_v) > tolerance:
            raise ValueError("wind_u/wind_v inconsistent with wind_speed/wind_direction")
        return self

    @classmethod
    def from_wind(
        cls,
        timestamp: datetime,
        altitude: float,
        temperature: float,
        pressure: float,
        humidity: float,
        wind_speed: float,
        wind_direction: float,
        quality: float = 1.0,
    ) -> "WeatherSample":
        """Build a sample deriving U/V from speed and direction."""
        direction = normalize_angle(wind_direction)
        speed = max(0.0, wind_speed)
        u, v = wind_components(speed, direction)
        return cls(
            timestamp=timestamp,
            altitude=altitude,
            temperature=temperature,
            pressure=pressure,
            humidity=min(100.0, max(0.0, humidity)),
            wind_speed=speed,
            wind_direction=direction,
            wind_u=u,
            wind_v=v,
            quality=min(1.0, max(0.0, quality)),
        )

    @property
    def uncertainty(self) -> float:
        return 1.0 - self.quality

    def scalar_values(self) -> Dict[str, float]:
        """Scalar fields used by the interpolator."""
        return {
            "temperature": self.temperature,
            "pressure": self.pressure,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
            "wind_direction": self.wind_direction,
        }


class WeatherRequest(BaseModel):
    """Query sent to a weather provider."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    hourly: List[str] = Field(default_factory=lambda: list(DEFAULT_HOURLY_VARIABLES))
    start_date: date
    end_date: date
    timezone: str = "UTC"

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "latitude": 39.74,
                    "longitude": -104.98,
                    "start_date": "2026-06-01",
                    "end_date": "2026-06-02",
                    "timezone": "UTC"
                }
            ]
        }
    }

    def cache_key(self, precision: int = 4) -> str:
        """Canonical JSON signature of the request, coordinates rounded to `precision` places."""
        fields = self.model_dump(mode="json")
        fields['latitude'] = round(self.latitude, precision)
        fields['longitude'] = round(self.longitude, precision)
        return json.dumps(fields, sort_keys=True)


class WeatherDataset(BaseModel):
    """Surface samples plus their vertical extrapolations."""

    surface_data: List[WeatherSample] = Field(default_factory=list)
    altitude_data: List[WeatherSample] = Field(default_factory=list)
    provider: Optional[str] = None

    @property
    def all_samples(self) -> List[WeatherSample]:
        return list(self.surface_data) + list(self.altitude_data)


class TemporalDataPoint(BaseModel):
    """Sample fed to the temporal-spatial interpolator."""

    timestamp: datetime
    altitude: float
    values: Dict[str, float]
    quality: float = Field(default=1.0, ge=0, le=1)

    @classmethod
    def from_sample(cls, sample: WeatherSample) -> "TemporalDataPoint":
        return cls(
            timestamp=sample.timestamp,
            altitude=sample.altitude,
            values=sample.scalar_values(),
            quality=sample.quality,
        )


class InterpolationRequest(BaseModel):
    """Resolve values at an arbitrary time and altitude."""

    target_time: datetime
    target_altitude: float
    data_points: List[TemporalDataPoint]
    method: str = "linear"
    temporal_tolerance: Optional[float] = Field(default=None, description="Minutes")
    spatial_tolerance: Optional[float] = Field(default=None, description="Meters")


class InterpolationResult(BaseModel):
    """Interpolated values with confidence and provenance."""

    timestamp: datetime
    altitude: float
    values: Optional[Dict[str, float]] = None
    confidence: float = Field(default=0.0, ge=0, le=1)
    method: str = "none"
    data_points_used: int = 0
    quality: float = Field(default=0.0, ge=0, le=1)
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_null(self) -> bool:
        return self.values is None or any(math.isnan(v) for v in self.values.values())
