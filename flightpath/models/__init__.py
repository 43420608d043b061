"""
Data models for the prediction pipeline.
"""
from flightpath.models.elevation import BatchElevationResult, ElevationSample
from flightpath.models.forecast import (
    AltitudeRequirements,
    AtmosphericConditions,
    BalloonSpecs,
    FlightDurationEstimate,
    ForecastWindow,
    ForecastWindowQuality,
    ForecastWindowRequest,
    ForecastWindowUpdate,
    ModelResolution,
    ModelSelection,
    WeatherModel,
)
from flightpath.models.geo import GeoPoint, Position
from flightpath.models.prediction import (
    PredictionInput,
    PredictionResult,
    TrajectoryPoint,
    WeatherImpact,
)
from flightpath.models.terrain import TerrainPoint
from flightpath.models.terrain_prediction import (
    TerrainConfig,
    TerrainPredictionInput,
    TerrainPredictionResult,
)
from flightpath.models.weather import (
    InterpolationRequest,
    InterpolationResult,
    TemporalDataPoint,
    WeatherDataset,
    WeatherRequest,
    WeatherSample,
)

__all__ = [
    "AltitudeRequirements",
    "AtmosphericConditions",
    "BalloonSpecs",
    "BatchElevationResult",
    "ElevationSample",
    "FlightDurationEstimate",
    "ForecastWindow",
    "ForecastWindowQuality",
    "ForecastWindowRequest",
    "ForecastWindowUpdate",
    "GeoPoint",
    "InterpolationRequest",
    "InterpolationResult",
    "ModelResolution",
    "ModelSelection",
    "Position",
    "PredictionInput",
    "PredictionResult",
    "TemporalDataPoint",
    "TerrainConfig",
    "TerrainPoint",
    "TerrainPredictionInput",
    "TerrainPredictionResult",
    "TrajectoryPoint",
    "WeatherDataset",
    "WeatherImpact",
    "WeatherModel",
    "WeatherRequest",
    "WeatherSample",
]
