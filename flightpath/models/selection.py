"""
Pydantic models for the weather selection pipeline.
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from flightpath.models.forecast import BalloonSpecs, ForecastWindow, ModelSelection, Resolution
from flightpath.models.geo import GeoPoint
from flightpath.models.quality import WeatherQualityAssessment
from flightpath.models.weather import InterpolationMethod, InterpolationResult, TemporalDataPoint


class WeatherSelectionPreferences(BaseModel):
    forecast_resolution: Optional[Resolution] = None
    uncertainty_margin: Optional[float] = Field(default=None, description="Extra margin (minutes)")
    interpolation_method: InterpolationMethod = "linear"
    preferred_model: Optional[str] = None
    quality_threshold: Optional[float] = Field(default=None, ge=0, le=1)


class WeatherSelectionRequest(BaseModel):
    """Choose, fetch and interpolate weather data for a planned flight."""

    launch_time: datetime
    launch_location: GeoPoint
    balloon_specs: BalloonSpecs
    preferences: WeatherSelectionPreferences = Field(default_factory=WeatherSelectionPreferences)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "launch_time": "2026-06-01T12:00:00Z",
                    "launch_location": {"latitude": 39.74, "longitude": -104.98, "altitude": 1609},
                    "balloon_specs": {
                        "balloon_volume": 4.0,
                        "payload_weight": 1.5,
                        "balloon_weight": 1.2,
                        "burst_altitude": 30000,
                        "ascent_rate": 5.0,
                        "drag_coefficient": 1.5
                    },
                    "preferences": {"interpolation_method": "linear"}
                }
            ]
        }
    }


class SelectionWeatherData(BaseModel):
    surface_data: List[TemporalDataPoint] = Field(default_factory=list)
    altitude_data: List[TemporalDataPoint] = Field(default_factory=list)
    interpolated_data: List[InterpolationResult] = Field(default_factory=list)


class Timeline(BaseModel):
    data_freshness: str
    validity_period: str
    next_update: str


class SelectionPerformance(BaseModel):
    selection_time: float = Field(default=0.0, description="Milliseconds")
    data_points: int = 0
    cache_hit_rate: float = 0.0


class WeatherSelectionResult(BaseModel):
    success: bool
    forecast_window: ForecastWindow
    selected_model: ModelSelection
    weather_data: SelectionWeatherData = Field(default_factory=SelectionWeatherData)
    quality_assessment: WeatherQualityAssessment
    timeline: Timeline
    performance: SelectionPerformance = Field(default_factory=SelectionPerformance)
    warnings: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
