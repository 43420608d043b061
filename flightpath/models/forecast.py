"""
Pydantic models for forecast windows and weather model selection.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from flightpath.models.geo import GeoPoint


Resolution = Literal["hourly", "3hourly", "6hourly"]
ConfidenceLevel = Literal["high", "medium", "low"]


class BalloonSpecs(BaseModel):
    """Balloon and payload characteristics used for duration estimates."""

    balloon_volume: float = Field(..., description="Balloon volume (m³)")
    payload_weight: float = Field(..., description="Payload weight (kg)")
    balloon_weight: float = Field(default=1.0, description="Envelope weight (kg)")
    burst_altitude: float = Field(..., description="Burst altitude (m)")
    ascent_rate: float = Field(..., description="Ascent rate (m/s)")
    drag_coefficient: float = Field(default=1.5, description="Parachute drag coefficient")

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "balloon_volume": 4.0,
                    "payload_weight": 1.5,
                    "balloon_weight": 1.2,
                    "burst_altitude": 30000,
                    "ascent_rate": 5.0,
                    "drag_coefficient": 1.5
                }
            ]
        }
    }


class AtmosphericConditions(BaseModel):
    """Launch-site atmosphere, when known."""

    temperature: float = Field(..., description="Temperature (K)")
    pressure: float = Field(..., description="Pressure (Pa)")
    density: float = Field(..., description="Air density (kg/m³)")


class FlightDurationEstimate(BaseModel):
    """Estimated flight phases in minutes."""

    ascent_time: int
    descent_time: int
    total_flight_time: int
    uncertainty_margin: int = Field(..., description="± minutes")
    confidence: ConfidenceLevel


class AltitudeRequirements(BaseModel):
    """Altitude levels weather data must cover."""

    min: float
    max: float
    intervals: List[float]
    resolution: float
    safety_margin: float


class ForecastWindowQuality(BaseModel):
    confidence: ConfidenceLevel
    uncertainty_factor: float = Field(..., ge=0, le=1)
    recommendations: List[str] = Field(default_factory=list)


class ForecastWindowRequest(BaseModel):
    """Inputs for choosing a forecast window."""

    launch_time: datetime
    launch_location: GeoPoint
    balloon_specs: BalloonSpecs
    uncertainty_margin: Optional[float] = Field(default=None, description="Extra margin (minutes)")
    forecast_resolution: Optional[Resolution] = None


class ForecastWindow(BaseModel):
    """Time span and resolution of weather data covering a flight."""

    start: datetime
    end: datetime
    duration: int = Field(..., description="Window length in whole hours")
    resolution: Resolution
    safety_margin: float = Field(..., description="Minutes")
    flight_duration: FlightDurationEstimate
    altitude_requirements: AltitudeRequirements
    timezone: str = "UTC"
    quality: ForecastWindowQuality

    @model_validator(mode="after")
    def _check_bounds(self):
        if self.end <= self.start:
            raise ValueError("forecast window end must be after start")
        return self


class ModelResolution(BaseModel):
    temporal: Resolution
    spatial: float = Field(..., description="Grid spacing (km)")
    vertical: int = Field(..., description="Number of vertical levels")


class WeatherModel(BaseModel):
    """Availability characteristics of a numerical weather model."""

    model: str
    update_cycle: float = Field(..., description="Hours between runs")
    latency: float = Field(..., description="Hours until data is published")
    max_forecast_hours: float
    resolution: ModelResolution


class ModelSelection(BaseModel):
    selected_model: WeatherModel
    reasoning: List[str] = Field(default_factory=list)
    alternatives: List[WeatherModel] = Field(default_factory=list)


class ForecastWindowUpdate(BaseModel):
    should_update: bool
    update_reason: str
    updated_window: Optional[ForecastWindow] = None
