"""
Pydantic models for physics-based trajectory predictions.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from flightpath.models.forecast import BalloonSpecs
from flightpath.models.geo import GeoPoint


class PredictionInput(BaseModel):
    """Launch parameters for the trajectory physics engine."""

    launch_location: GeoPoint
    launch_time: datetime
    ascent_rate: float = Field(..., gt=0, description="Ascent rate (m/s)")
    burst_altitude: float = Field(..., gt=0, description="Burst altitude (m)")
    payload_weight: float = Field(..., gt=0, description="Payload weight (kg)")
    balloon_weight: float = Field(default=1.0, ge=0, description="Envelope weight (kg)")
    balloon_volume: float = Field(default=4.0, gt=0, description="Balloon volume (m³)")
    parachute_area: float = Field(default=1.0, gt=0, description="Parachute area (m²)")
    drag_coefficient: float = Field(default=1.5, gt=0, description="Parachute drag coefficient")
    landing_altitude: Optional[float] = Field(
        default=None, description="Ground altitude at landing (m), defaults to launch altitude"
    )
    surface_wind_speed: float = Field(default=0.0, ge=0, description="Fallback wind speed (m/s)")
    surface_wind_direction: float = Field(default=0.0, ge=0, lt=360, description="Fallback wind direction (degrees)")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "launch_location": {"latitude": 39.74, "longitude": -104.98, "altitude": 1609},
                    "launch_time": "2026-06-01T12:00:00Z",
                    "ascent_rate": 5.0,
                    "burst_altitude": 30000,
                    "payload_weight": 1.5,
                    "parachute_area": 1.0,
                    "drag_coefficient": 1.5
                }
            ]
        }
    }

    @property
    def launch_altitude(self) -> float:
        return self.launch_location.altitude or 0.0

    def balloon_specs(self) -> BalloonSpecs:
        return BalloonSpecs(
            balloon_volume=self.balloon_volume,
            payload_weight=self.payload_weight,
            balloon_weight=self.balloon_weight,
            burst_altitude=self.burst_altitude,
            ascent_rate=self.ascent_rate,
            drag_coefficient=self.drag_coefficient,
        )


class TrajectoryPoint(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    altitude: float = Field(..., ge=0)
    timestamp: datetime
    phase: Literal["ascent", "descent"]

    model_config = {"frozen": True}


class AscentResult(BaseModel):
    trajectory: List[TrajectoryPoint]
    burst_point: TrajectoryPoint
    ascent_duration: float = Field(..., description="Seconds")
    wind_drift: float = Field(..., description="Horizontal drift (km)")

    model_config = {"frozen": True}


class DescentResult(BaseModel):
    trajectory: List[TrajectoryPoint]
    landing_point: TrajectoryPoint
    descent_duration: float = Field(..., description="Seconds")
    terminal_velocity: float = Field(..., description="Terminal velocity at landing altitude (m/s)")
    max_velocity: float = Field(..., description="Peak descent speed (m/s)")
    wind_drift: float = Field(..., description="Horizontal drift (km)")
    landing_confidence: float = Field(..., ge=0, le=1)

    model_config = {"frozen": True}


class WeatherImpact(BaseModel):
    wind_drift: float = Field(default=0.0, description="Integrated wind drift (km)")
    altitude_effect: float = Field(default=0.0, description="Temperature-driven altitude effect (m)")
    uncertainty_radius: float = Field(default=0.0, description="Landing uncertainty radius (km)")

    model_config = {"frozen": True}


class WeatherValidation(BaseModel):
    is_valid: bool
    quality: Literal["high", "medium", "low"]
    issues: List[str] = Field(default_factory=list)


class PredictionResult(BaseModel):
    """Base trajectory with burst and landing sites. Immutable once built."""

    trajectory: List[TrajectoryPoint]
    ascent: AscentResult
    descent: DescentResult
    burst_site: TrajectoryPoint
    landing_site: TrajectoryPoint
    weather_impact: WeatherImpact
    weather_quality: Literal["high", "medium", "low"]
    total_duration: float = Field(..., description="Seconds")
    total_distance: float = Field(..., description="Launch to landing distance (km)")
    confidence: float = Field(..., ge=0, le=1)
    warnings: List[str] = Field(default_factory=list)

    model_config = {"frozen": True}


class MonteCarloLandingResult(BaseModel):
    """Landing scatter from perturbed wind profiles."""

    samples: int
    mean_latitude: float
    mean_longitude: float
    radius_95: float = Field(..., description="95th percentile distance from mean landing (km)")
    max_radius: float = Field(..., description="Largest sampled distance (km)")
