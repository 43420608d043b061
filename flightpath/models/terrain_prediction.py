"""
Pydantic models for terrain-enhanced predictions.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from flightpath.models.geo import Position
from flightpath.models.prediction import PredictionInput, PredictionResult
from flightpath.models.quality import WeatherQualityAssessment
from flightpath.models.terrain import (
    ElevationProfile,
    LandingSiteAnalysis,
    TerrainPoint,
)


ComplexityLevel = Literal["flat", "gentle", "moderate", "mountainous", "extreme"]


class TerrainConfig(BaseModel):
    """Terrain options for one prediction. Checked by the orchestrator."""

    enable_terrain_analysis: bool = True
    terrain_resolution: float = Field(default=100.0, description="Meters per data point")
    analysis_radius: float = Field(default=5.0, description="Kilometres around the launch site")
    obstacle_avoidance: bool = True
    landing_site_filtering: bool = True
    burst_height_adjustment: bool = True
    max_terrain_obstacle_height: float = Field(default=500.0, description="Clearance (m)")
    min_landing_site_distance: float = Field(default=0.1, description="Kilometres from obstacles")


class TerrainPredictionInput(PredictionInput):
    terrain_config: TerrainConfig = Field(default_factory=TerrainConfig)
    elevation_data: Optional[List[TerrainPoint]] = None


class ObstacleReport(BaseModel):
    type: Literal["mountain", "hill", "ridge", "cliff", "building", "tower"]
    location: Position
    height: float
    clearance_required: float
    impact: Literal["minor", "moderate", "major", "blocking"]
    avoidance_recommendation: str


class TerrainComplexity(BaseModel):
    overall: ComplexityLevel
    roughness: float
    elevation_variation: float
    slope_variation: float
    obstacles_density: float
    predictability_factor: float


class ElevationStatistics(BaseModel):
    min_elevation: float = 0.0
    max_elevation: float = 0.0
    average_elevation: float = 0.0
    elevation_gain: float = 0.0
    elevation_loss: float = 0.0
    steepest_slope: float = 0.0
    flatness_ratio: float = 1.0


class TerrainCharacteristics(BaseModel):
    """Summary of the terrain around one site."""

    location: Position
    average_slope: float = 0.0
    max_slope: float = 0.0
    min_slope: float = 0.0
    roughness_index: float = 0.0
    elevation_variation: float = 0.0
    vegetation_cover: float = 0.0
    accessibility_score: float = 0.0
    difficulty_rating: int = 0
    features: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)
    confidence: float = 0.0


class TerrainAnalysisResult(BaseModel):
    trajectory_terrain: ElevationProfile
    burst_site_terrain: TerrainCharacteristics
    landing_site_terrain: LandingSiteAnalysis
    obstacles_detected: List[ObstacleReport] = Field(default_factory=list)
    terrain_complexity: TerrainComplexity
    elevation_stats: ElevationStatistics


class LandingSiteShift(BaseModel):
    latitude_shift: float = 0.0
    longitude_shift: float = 0.0
    distance_shift: float = Field(default=0.0, description="Kilometres")


class TerrainAdjustments(BaseModel):
    burst_height_adjustment: float = Field(default=0.0, description="Meters added to burst altitude")
    trajectory_deviation: float = Field(default=0.0, description="Degrees from original path")
    landing_site_shift: LandingSiteShift = Field(default_factory=LandingSiteShift)
    confidence_adjustment: float = Field(default=1.0, description="Factor applied to confidence")
    flight_time_adjustment: float = Field(default=0.0, description="Seconds")


class LandingSiteRecommendation(BaseModel):
    location: Position
    suitability: Literal["excellent", "good", "fair", "poor", "unsuitable"]
    difficulty_rating: int
    accessibility: Literal["easy", "moderate", "difficult", "very_difficult"]
    terrain_features: List[str] = Field(default_factory=list)
    risk_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    distance_from_predicted: float = Field(default=0.0, description="Kilometres")
    confidence: float = Field(..., ge=0, le=1)


class TerrainWarning(BaseModel):
    type: Literal["obstacle", "cliff", "water", "urban", "restricted"]
    severity: Literal["low", "medium", "high", "critical"]
    location: Position
    description: str
    recommendation: str
    affected_phase: Literal["ascent", "descent", "landing"]


class TerrainPredictionMetrics(BaseModel):
    terrain_analysis_time: float = Field(default=0.0, description="Milliseconds")
    elevation_data_points: int = 0
    obstacles_analyzed: int = 0
    landing_sites_evaluated: int = 0
    cache_hit_rate: float = 0.0


class TerrainPredictionResult(PredictionResult):
    """Physics prediction merged with terrain analysis and adjustments."""

    terrain: TerrainAnalysisResult
    adjusted_predictions: TerrainAdjustments
    landing_site_recommendations: List[LandingSiteRecommendation] = Field(default_factory=list)
    terrain_warnings: List[TerrainWarning] = Field(default_factory=list)
    is_fallback: bool = False
    weather_assessment: Optional[WeatherQualityAssessment] = None
