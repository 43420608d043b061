"""
Terrain analysis over elevation samples
Slopes, roughness, features, obstacles and landing-site difficulty
"""

import math
import time
import uuid
from typing import Dict, List, Optional, Sequence

import numpy as np

from flightpath.config import get_section
from flightpath.exceptions import InsufficientDataError, InvalidParametersError, TerrainAnalysisError
from flightpath.models.geo import Position
from flightpath.models.terrain import (
    AnalysisPerformance,
    BoundingBox,
    DifficultyRating,
    ElevationProfile,
    LandingSiteAnalysis,
    OverallDifficulty,
    ProfilePoint,
    SiteCharacteristics,
    SlopeCalculation,
    TerrainAnalysisInput,
    TerrainAnalysisReport,
    TerrainFeature,
    TerrainObstacle,
    TerrainPoint,
)
from flightpath.utils.helpers import EARTH_RADIUS_M, haversine_distance, initial_bearing, round_half_up, utc_now
from flightpath.utils.logger import get_logger


DIFFICULTY_DESCRIPTIONS = {
    1: 'Very Easy - Ideal landing conditions',
    2: 'Easy - Excellent landing site',
    3: 'Easy - Good landing conditions',
    4: 'Moderate - Generally suitable',
    5: 'Moderate - Some challenges present',
    6: 'Challenging - Requires careful approach',
    7: 'Difficult - Significant obstacles present',
    8: 'Very Difficult - High risk landing',
    9: 'Extremely Difficult - Emergency only',
    10: 'Unsuitable - Avoid if possible',
}

MIN_FEATURE_PROMINENCE = 50.0
MOUNTAIN_PROMINENCE = 300.0
OBSTACLE_NEIGHBOURHOOD = 100.0
LANDING_OBSTACLE_RADIUS = 500.0
MAX_LANDING_SITES = 10


def get_difficulty_description(rating: int) -> str:
    return DIFFICULTY_DESCRIPTIONS.get(rating, 'Unknown difficulty')


def calculate_distance(point1, point2) -> float:
    """Great-circle distance between two positions (m)"""
    return haversine_distance(point1.latitude, point1.longitude, point2.latitude, point2.longitude)


def calculate_bearing(point1, point2) -> float:
    return initial_bearing(point1.latitude, point1.longitude, point2.latitude, point2.longitude)


def distance_matrix(points: Sequence) -> np.ndarray:
    """
    Pairwise haversine distances

    Args:
        points: Objects with latitude and longitude

    Returns:
        (n, n) array of distances in meters
    """
    lat = np.radians([p.latitude for p in points])
    lng = np.radians([p.longitude for p in points])

    delta_lat = lat[:, None] - lat[None, :]
    delta_lng = lng[:, None] - lng[None, :]

    a = np.sin(delta_lat / 2) ** 2 + np.cos(lat)[:, None] * np.cos(lat)[None, :] * np.sin(delta_lng / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    return EARTH_RADIUS_M * 2 * np.arctan2(np.sqrt(a), np.sqrt(1 - a))


def calculate_terrain_roughness(points: Sequence) -> float:
    """Elevation standard deviation scaled so 50 m or more reads as 1.0"""
    if len(points) < 2:
        return 0.0
    elevations = np.array([p.elevation for p in points], dtype=float)
    return float(min(np.std(elevations) / 50.0, 1.0))


def calculate_bounding_box(points: Sequence) -> BoundingBox:
    latitudes = [p.latitude for p in points]
    longitudes = [p.longitude for p in points]
    return BoundingBox(
        north=max(latitudes),
        south=min(latitudes),
        east=max(longitudes),
        west=min(longitudes)
    )


def generate_elevation_profile(points: Sequence) -> ElevationProfile:
    """
    Cumulative distance and elevation along an ordered path

    Args:
        points: Ordered positions

    Returns:
        ElevationProfile

    Raises:
        InsufficientDataError: Fewer than 2 points
    """
    if len(points) < 2:
        raise InsufficientDataError('At least 2 points required for elevation profile')

    profile_points = [ProfilePoint(
        distance=0.0,
        elevation=points[0].elevation,
        latitude=points[0].latitude,
        longitude=points[0].longitude
    )]
    total_distance = 0.0
    elevation_gain = 0.0
    elevation_loss = 0.0

    for previous, current in zip(points, points[1:]):
        total_distance += calculate_distance(previous, current)
        change = current.elevation - previous.elevation
        if change > 0:
            elevation_gain += change
        else:
            elevation_loss += abs(change)

        profile_points.append(ProfilePoint(
            distance=total_distance,
            elevation=current.elevation,
            latitude=current.latitude,
            longitude=current.longitude
        ))

    elevations = [p.elevation for p in points]
    net_change = abs(points[-1].elevation - points[0].elevation)
    average_slope = math.degrees(math.atan(net_change / total_distance)) if total_distance > 0 else 0.0

    return ElevationProfile(
        points=profile_points,
        total_distance=total_distance,
        elevation_gain=elevation_gain,
        elevation_loss=elevation_loss,
        max_elevation=max(elevations),
        min_elevation=min(elevations),
        average_slope=average_slope
    )


class TerrainAnalyzer:
    """
    Terrain metrics and landing-site scoring for a set of elevation samples
    """

    def __init__(self, config: Optional[Dict] = None, logger=None):
        """
        Initialize analyzer

        Args:
            config: Full prediction config (the 'terrain_analysis' section is used)
            logger: Logger instance
        """
        section = get_section(config, 'terrain_analysis')
        self.slope_thresholds = section.get('slope_thresholds', {})
        self.difficulty_weights = section.get('difficulty_weights', {})
        self.min_landing_site_size = section.get('min_landing_site_size', 100)
        self.obstacle_detection_threshold = section.get('obstacle_detection_threshold', 10)
        self.logger = logger or get_logger()

    def categorize_steepness(self, slope_angle: float) -> str:
        thresholds = self.slope_thresholds
        if slope_angle < thresholds.get('flat', 5):
            return 'flat'
        if slope_angle < thresholds.get('gentle', 15):
            return 'gentle'
        if slope_angle < thresholds.get('moderate', 25):
            return 'moderate'
        if slope_angle < thresholds.get('steep', 45):
            return 'steep'
        if slope_angle < thresholds.get('very_steep', 70):
            return 'very-steep'
        return 'cliff'

    def calculate_slope(self, point1, point2) -> SlopeCalculation:
        """
        Slope from one position to another

        Args:
            point1: Origin (latitude, longitude, elevation)
            point2: Target (latitude, longitude, elevation)

        Returns:
            SlopeCalculation. Coincident points are flat.
        """
        distance = calculate_distance(point1, point2)
        if distance == 0:
            return SlopeCalculation(
                slope_angle=0.0, slope_direction=0.0, gradient=0.0, steepness_category='flat'
            )

        gradient = (point2.elevation - point1.elevation) / distance
        slope_angle = abs(math.degrees(math.atan(gradient)))

        return SlopeCalculation(
            slope_angle=slope_angle,
            slope_direction=calculate_bearing(point1, point2),
            gradient=gradient,
            steepness_category=self.categorize_steepness(slope_angle)
        )

    def _average_slope(self, position, points: Sequence) -> float:
        slopes = [self.calculate_slope(position, p).slope_angle for p in points]
        return sum(slopes) / len(slopes) if slopes else 0.0

    def calculate_accessibility_score(self, position, surrounding_points: Sequence) -> float:
        """Mean of slope accessibility (30 degrees reads as 0) and roughness accessibility"""
        average_slope = self._average_slope(position, surrounding_points)
        roughness = calculate_terrain_roughness(surrounding_points)

        slope_accessibility = max(0.0, 1 - average_slope / 30)
        roughness_accessibility = max(0.0, 1 - roughness)
        return (slope_accessibility + roughness_accessibility) / 2

    def detect_terrain_features(self, points: Sequence, analysis_radius: float = 1000) -> List[TerrainFeature]:
        """
        Local maxima with at least 50 m prominence over the neighbourhood median

        Args:
            points: Positions to scan
            analysis_radius: Neighbourhood radius (m)

        Returns:
            List of hill and mountain features
        """
        if not points:
            return []

        distances = distance_matrix(points)
        elevations = np.array([p.elevation for p in points], dtype=float)
        features = []

        for i, point in enumerate(points):
            nearby = np.flatnonzero(distances[i] <= analysis_radius)
            if len(nearby) < 3:
                continue

            # Stable descending order: the first of equal peaks wins
            ordered = nearby[np.argsort(-elevations[nearby], kind='stable')]
            if ordered[0] != i:
                continue

            prominence = float(elevations[i] - elevations[ordered[len(ordered) // 2]])
            if prominence <= MIN_FEATURE_PROMINENCE:
                continue

            features.append(TerrainFeature(
                type='mountain' if prominence > MOUNTAIN_PROMINENCE else 'hill',
                center_point=Position(
                    latitude=point.latitude, longitude=point.longitude, elevation=point.elevation
                ),
                prominence=prominence,
                area=math.pi * analysis_radius ** 2,
                bounding_box=calculate_bounding_box([points[j] for j in nearby])
            ))

        return features

    def detect_terrain_obstacles(
        self,
        points: Sequence,
        neighbourhood: float = OBSTACLE_NEIGHBOURHOOD
    ) -> List[TerrainObstacle]:
        """
        Points standing above the mean of their neighbourhood

        Args:
            points: Positions to scan
            neighbourhood: Radius of the baseline neighbourhood (m)

        Returns:
            List of TerrainObstacle
        """
        if not points:
            return []

        distances = distance_matrix(points)
        elevations = np.array([p.elevation for p in points], dtype=float)
        obstacles = []

        for i, point in enumerate(points):
            mask = (distances[i] > 0) & (distances[i] <= neighbourhood)
            if not mask.any():
                continue

            relative_height = float(elevations[i] - elevations[mask].mean())
            if relative_height >= self.obstacle_detection_threshold:
                obstacles.append(TerrainObstacle(
                    type='mountain' if relative_height > 100 else 'hill',
                    height=relative_height,
                    position=Position(
                        latitude=point.latitude, longitude=point.longitude, elevation=point.elevation
                    ),
                    radius=50.0,
                    clearance_required=relative_height + 20
                ))

        return obstacles

    def calculate_difficulty_rating(
        self,
        terrain_point: TerrainPoint,
        nearby_obstacles: Sequence[TerrainObstacle]
    ) -> DifficultyRating:
        """
        1-10 landing difficulty

        Weighted sum of slope (45 degrees is the maximum), roughness,
        inaccessibility and obstacle count (5 or more is the maximum).
        """
        weights = self.difficulty_weights
        slope = terrain_point.slope or 0.0
        roughness = terrain_point.roughness or 0.0
        accessibility = 1.0 if terrain_point.accessibility is None else terrain_point.accessibility

        combined = (
            min(slope / 45, 1.0) * weights.get('slope', 0.4) +
            roughness * weights.get('roughness', 0.3) +
            (1 - accessibility) * weights.get('accessibility', 0.2) +
            min(len(nearby_obstacles) / 5, 1.0) * weights.get('obstacles', 0.1)
        )

        rating = max(1, min(10, round_half_up(1 + combined * 9)))
        return DifficultyRating(rating=rating, description=get_difficulty_description(rating))

    def analyze_landing_site(self, position, surrounding_points: Sequence) -> LandingSiteAnalysis:
        """
        Full suitability analysis of one landing position

        Args:
            position: Candidate landing position
            surrounding_points: Elevation samples around it

        Returns:
            LandingSiteAnalysis
        """
        slopes = [self.calculate_slope(position, p).slope_angle for p in surrounding_points]
        average_slope = sum(slopes) / len(slopes) if slopes else 0.0
        max_slope = max(slopes) if slopes else 0.0
        roughness = calculate_terrain_roughness(surrounding_points)

        terrain_point = TerrainPoint(
            latitude=position.latitude,
            longitude=position.longitude,
            elevation=position.elevation,
            slope=average_slope,
            roughness=roughness,
            accessibility=self.calculate_accessibility_score(position, surrounding_points)
        )

        nearby_obstacles = [
            obstacle for obstacle in self.detect_terrain_obstacles(surrounding_points)
            if calculate_distance(position, obstacle.position) <= LANDING_OBSTACLE_RADIUS
        ]

        difficulty = self.calculate_difficulty_rating(terrain_point, nearby_obstacles)

        return LandingSiteAnalysis(
            position=terrain_point.position(),
            difficulty_rating=difficulty.rating,
            difficulty_description=difficulty.description,
            suitability_score=max(0.0, (11 - difficulty.rating) / 10),
            accessibility_score=terrain_point.accessibility,
            terrain_characteristics=SiteCharacteristics(
                average_slope=average_slope,
                max_slope=max_slope,
                terrain_roughness=roughness,
                surface_type='unknown'
            ),
            risk_factors=self._identify_risk_factors(terrain_point, nearby_obstacles),
            recommendations=self._generate_recommendations(terrain_point, nearby_obstacles, difficulty.rating)
        )

    @staticmethod
    def _identify_risk_factors(terrain_point: TerrainPoint, obstacles: Sequence[TerrainObstacle]) -> List[str]:
        risks = []
        if terrain_point.slope > 25:
            risks.append('Steep terrain - landing approach may be difficult')
        if terrain_point.roughness > 0.7:
            risks.append('Rough terrain - potential for payload damage')
        if terrain_point.accessibility < 0.3:
            risks.append('Poor accessibility - recovery may be challenging')
        if len(obstacles) > 2:
            risks.append('Multiple terrain obstacles - increased collision risk')
        if any(obstacle.height > 50 for obstacle in obstacles):
            risks.append('Tall terrain features - may affect descent trajectory')
        return risks

    @staticmethod
    def _generate_recommendations(
        terrain_point: TerrainPoint,
        obstacles: Sequence[TerrainObstacle],
        difficulty_rating: int
    ) -> List[str]:
        if difficulty_rating <= 3:
            recommendations = ['Excellent landing site - no special precautions needed']
        elif difficulty_rating <= 6:
            recommendations = [
                'Monitor weather conditions closely',
                'Ensure recovery team has appropriate equipment',
            ]
        else:
            recommendations = [
                'Consider alternative landing sites if possible',
                'Use experienced recovery team',
                'Monitor descent carefully for trajectory adjustments',
            ]

        if terrain_point.slope > 20:
            recommendations.append('Account for slope in recovery vehicle planning')
        if obstacles:
            recommendations.append('Brief recovery team on terrain obstacles')
        return recommendations

    def analyze_terrain_characteristics(self, analysis_input: TerrainAnalysisInput) -> TerrainAnalysisReport:
        """
        Complete terrain analysis over a coordinate set

        Args:
            analysis_input: Coordinates, neighbourhood radius and resolution (m)

        Returns:
            TerrainAnalysisReport with the ten easiest landing sites

        Raises:
            InsufficientDataError: Fewer than 3 coordinates
            InvalidParametersError: Non-positive radius or resolution
            TerrainAnalysisError: Any other failure
        """
        start_time = time.time()
        coordinates = list(analysis_input.coordinates)

        if len(coordinates) < 3:
            raise InsufficientDataError('At least 3 coordinate points required for terrain analysis')
        if analysis_input.analysis_radius <= 0 or analysis_input.resolution <= 0:
            raise InvalidParametersError('Analysis radius and resolution must be positive numbers')

        try:
            distances = distance_matrix(coordinates)

            terrain_points = []
            for i, point in enumerate(coordinates):
                nearby_idx = np.flatnonzero(distances[i] <= analysis_input.analysis_radius)
                nearby = [coordinates[j] for j in nearby_idx]
                others = [coordinates[j] for j in nearby_idx if j != i]

                terrain_points.append(TerrainPoint(
                    latitude=point.latitude,
                    longitude=point.longitude,
                    elevation=point.elevation,
                    slope=self._average_slope(point, others),
                    roughness=calculate_terrain_roughness(nearby),
                    accessibility=self.calculate_accessibility_score(point, nearby)
                ))

            elevation_profile = generate_elevation_profile(coordinates)
            features = self.detect_terrain_features(coordinates, analysis_input.analysis_radius)
            obstacles = self.detect_terrain_obstacles(
                coordinates, max(OBSTACLE_NEIGHBOURHOOD, analysis_input.resolution * 1.5)
            )

            landing_sites = []
            for i, point in enumerate(terrain_points):
                if point.slope >= 30 or point.accessibility <= 0.3:
                    continue
                surrounding = [
                    coordinates[j] for j in np.flatnonzero(distances[i] <= self.min_landing_site_size)
                ]
                landing_sites.append(self.analyze_landing_site(point, surrounding))

            landing_sites.sort(key=lambda site: site.difficulty_rating)
            landing_sites = landing_sites[:MAX_LANDING_SITES]

            if landing_sites:
                average_difficulty = sum(s.difficulty_rating for s in landing_sites) / len(landing_sites)
            else:
                average_difficulty = 8
            overall_rating = round_half_up(average_difficulty)

            analysis_time = (time.time() - start_time) * 1000
            self.logger.debug(
                f"Terrain analysis: {len(terrain_points)} points, {len(features)} features, "
                f"{len(obstacles)} obstacles in {analysis_time:.1f}ms"
            )

            return TerrainAnalysisReport(
                analysis_id=f"terrain_{int(start_time * 1000)}_{uuid.uuid4().hex[:9]}",
                timestamp=utc_now(),
                terrain_points=terrain_points,
                elevation_profile=elevation_profile,
                detected_features=features,
                detected_obstacles=obstacles,
                landing_sites=landing_sites,
                overall_difficulty=OverallDifficulty(
                    rating=overall_rating,
                    description=get_difficulty_description(overall_rating),
                    confidence=min(len(landing_sites) / 5, 1.0)
                ),
                performance_metrics=AnalysisPerformance(
                    analysis_time=analysis_time,
                    points_analyzed=len(terrain_points),
                    features_detected=len(features),
                    obstacles_detected=len(obstacles)
                )
            )

        except TerrainAnalysisError:
            raise
        except Exception as e:
            raise TerrainAnalysisError(f"Terrain analysis failed: {e}") from e
