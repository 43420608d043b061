"""
Pydantic models for terrain analysis.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from flightpath.models.geo import Position


SteepnessCategory = Literal["flat", "gentle", "moderate", "steep", "very-steep", "cliff"]


class TerrainPoint(BaseModel):
    """Elevation sample enriched with local terrain metrics."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    elevation: float
    slope: Optional[float] = Field(default=None, ge=0, description="Degrees")
    roughness: Optional[float] = Field(default=None, ge=0, le=1)
    accessibility: Optional[float] = Field(default=None, ge=0, le=1)

    def position(self) -> Position:
        return Position(latitude=self.latitude, longitude=self.longitude, elevation=self.elevation)


class SlopeCalculation(BaseModel):
    slope_angle: float = Field(..., description="Degrees")
    slope_direction: float = Field(..., description="Bearing (degrees)")
    gradient: float
    steepness_category: SteepnessCategory


class ProfilePoint(BaseModel):
    distance: float = Field(..., description="Cumulative distance (m)")
    elevation: float
    latitude: float
    longitude: float


class ElevationProfile(BaseModel):
    points: List[ProfilePoint] = Field(default_factory=list)
    total_distance: float = 0.0
    elevation_gain: float = 0.0
    elevation_loss: float = 0.0
    max_elevation: float = 0.0
    min_elevation: float = 0.0
    average_slope: float = 0.0


class BoundingBox(BaseModel):
    north: float
    south: float
    east: float
    west: float


class TerrainFeature(BaseModel):
    type: Literal["mountain", "hill", "valley", "ridge", "plateau"]
    center_point: Position
    prominence: float
    area: float = Field(..., description="Approximate area (m²)")
    bounding_box: BoundingBox


class TerrainObstacle(BaseModel):
    """Local peak standing above its surroundings."""

    type: Literal["mountain", "hill", "tree-line", "building", "tower"]
    height: float = Field(..., description="Height above local baseline (m)")
    position: Position
    radius: float = 50.0
    clearance_required: float


class DifficultyRating(BaseModel):
    rating: int = Field(..., ge=1, le=10)
    description: str


class SiteCharacteristics(BaseModel):
    average_slope: float = 0.0
    max_slope: float = 0.0
    terrain_roughness: float = 0.0
    surface_type: str = "unknown"
    vegetation_density: Optional[float] = None


class LandingSiteAnalysis(BaseModel):
    """Suitability of one landing position."""

    position: Position
    difficulty_rating: int = Field(..., ge=1, le=10)
    difficulty_description: str
    suitability_score: float = Field(..., ge=0, le=1)
    accessibility_score: float = Field(..., ge=0, le=1)
    terrain_characteristics: SiteCharacteristics
    risk_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)


class TerrainAnalysisInput(BaseModel):
    coordinates: List[Position]
    analysis_radius: float = Field(..., description="Meters")
    resolution: float = Field(..., description="Meters")


class OverallDifficulty(BaseModel):
    rating: int
    description: str
    confidence: float


class AnalysisPerformance(BaseModel):
    analysis_time: float = Field(..., description="Milliseconds")
    points_analyzed: int
    features_detected: int
    obstacles_detected: int


class TerrainAnalysisReport(BaseModel):
    """Complete terrain analysis over a coordinate set."""

    analysis_id: str
    timestamp: datetime
    terrain_points: List[TerrainPoint]
    elevation_profile: ElevationProfile
    detected_features: List[TerrainFeature]
    detected_obstacles: List[TerrainObstacle]
    landing_sites: List[LandingSiteAnalysis]
    overall_difficulty: OverallDifficulty
    performance_metrics: AnalysisPerformance
