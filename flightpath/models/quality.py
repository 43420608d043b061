"""
Pydantic models for weather data quality assessment.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from flightpath.models.geo import GeoPoint


QualityRating = Literal["high", "medium", "low"]


class EnsembleData(BaseModel):
    member_count: int = Field(..., ge=0)
    spread: float = Field(..., ge=0, description="Normalized ensemble spread")


class HistoricalAccuracy(BaseModel):
    recent: float = Field(..., ge=0, le=1)
    seasonal: float = Field(..., ge=0, le=1)


class AltitudeRange(BaseModel):
    min: float
    max: float


class QualityRequest(BaseModel):
    """Forecast metadata to score."""

    forecast_time: datetime = Field(..., description="Model run / issue time")
    target_time: datetime = Field(..., description="Time the forecast is used for")
    location: GeoPoint
    altitude_range: AltitudeRange
    weather_model: str = Field(..., description="Model name, e.g. GFS")
    ensemble_data: Optional[EnsembleData] = None
    historical_accuracy: Optional[HistoricalAccuracy] = None


class SkillScores(BaseModel):
    temperature: float
    pressure: float
    wind_speed: float
    wind_direction: float

    def average(self) -> float:
        return (self.temperature + self.pressure + self.wind_speed + self.wind_direction) / 4


class ModelCharacteristics(BaseModel):
    """Static properties of a weather model used for scoring."""

    temporal_resolution: float = Field(..., description="Hours")
    spatial_resolution: float = Field(..., description="Kilometres")
    vertical_levels: int
    update_frequency: float = Field(..., description="Hours")
    skill_scores: SkillScores
    max_reliable_horizon: float = Field(..., description="Hours")


class ReliabilityMetrics(BaseModel):
    forecast_age: float = Field(..., description="Hours since model run")
    forecast_horizon: float = Field(..., description="Hours ahead of model run")
    model_confidence: float
    ensemble_spread: Optional[float] = None


class WeatherQualityAssessment(BaseModel):
    """Overall reliability verdict with advisory issues."""

    overall: Literal["excellent", "good", "fair", "poor"]
    temporal: QualityRating
    spatial: QualityRating
    confidence: float = Field(..., ge=0, le=1)
    uncertainty: float = Field(..., ge=0, le=1)
    reliability: ReliabilityMetrics
    issues: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
