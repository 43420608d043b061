"""
Pydantic models for prediction endpoints.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from flightpath.models.terrain_prediction import TerrainPredictionInput, TerrainPredictionResult


class PredictionRequest(TerrainPredictionInput):
    """Request model for a terrain-aware trajectory prediction."""

    timeout: Optional[float] = Field(
        default=None,
        gt=0,
        le=600,
        description="Seconds allowed for the whole prediction (server default when omitted)"
    )

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
                    "drag_coefficient": 1.5,
                    "terrain_config": {
                        "enable_terrain_analysis": True,
                        "terrain_resolution": 100,
                        "analysis_radius": 5
                    },
                    "timeout": 30
                }
            ]
        }
    }

    def to_input(self) -> TerrainPredictionInput:
        return TerrainPredictionInput(**self.model_dump(exclude={"timeout"}))


class LandingSummary(BaseModel):
    """Short summary of the predicted landing."""

    latitude: float = Field(..., description="Landing latitude")
    longitude: float = Field(..., description="Landing longitude")
    altitude: float = Field(..., description="Landing altitude (m)")
    timestamp: datetime = Field(..., description="Predicted landing time (UTC)")
    distance_km: float = Field(..., description="Distance from the launch site (km)")
    uncertainty_km: float = Field(..., description="Landing uncertainty radius (km)")


class PredictionResponse(BaseModel):
    """Response model for trajectory predictions."""

    landing: LandingSummary = Field(..., description="Predicted landing")
    confidence: float = Field(..., ge=0, le=1, description="Prediction confidence (0-1)")
    is_fallback: bool = Field(..., description="True when terrain analysis could not run")
    prediction: TerrainPredictionResult = Field(..., description="Full trajectory, terrain and adjustments")
    processing_time_ms: float = Field(..., description="Server-side processing time")
    generated_at: datetime = Field(..., description="Response creation time (UTC)")

    @classmethod
    def from_result(
        cls,
        result: TerrainPredictionResult,
        processing_time_ms: float,
        generated_at: datetime
    ) -> "PredictionResponse":
        landing = result.landing_site
        return cls(
            landing=LandingSummary(
                latitude=landing.latitude,
                longitude=landing.longitude,
                altitude=landing.altitude,
                timestamp=landing.timestamp,
                distance_km=result.total_distance,
                uncertainty_km=result.weather_impact.uncertainty_radius
            ),
            confidence=result.confidence,
            is_fallback=result.is_fallback,
            prediction=result,
            processing_time_ms=round(processing_time_ms, 1),
            generated_at=generated_at
        )


class ElevationResponse(BaseModel):
    """Ground elevation at one coordinate."""

    latitude: float
    longitude: float
    elevation: float = Field(..., description="Elevation above sea level (m)")
    data_source: str = Field(..., description="Provider that answered")
    timestamp: datetime
