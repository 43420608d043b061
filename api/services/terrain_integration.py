"""
Terrain integration service
Runs the physics prediction and adjusts it with terrain analysis
"""
import asyncio
import math
import time
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from api.services.elevation_service import ElevationService
from api.services.weather_selection import FALLBACK_MODEL
from api.services.weather_service import WeatherService
from flightpath.config import get_section
from flightpath.data_processing.forecast_window import ForecastWindowSelector, NoSuitableModelError
from flightpath.data_processing.terrain_analyzer import (
    TerrainAnalyzer,
    calculate_distance,
    calculate_terrain_roughness,
    generate_elevation_profile,
)
from flightpath.data_processing.weather_quality import WeatherQualityAssessor
from flightpath.exceptions import (
    AllProvidersFailedError,
    OrchestrationError,
    PredictionTimeoutError,
    ProviderError,
    ValidationError,
)
from flightpath.models.forecast import ForecastWindowRequest
from flightpath.models.geo import GeoPoint, Position
from flightpath.models.prediction import PredictionInput, PredictionResult
from flightpath.models.quality import (
    AltitudeRange,
    EnsembleData,
    HistoricalAccuracy,
    QualityRequest,
    WeatherQualityAssessment,
)
from flightpath.models.terrain import (
    ElevationProfile,
    LandingSiteAnalysis,
    SiteCharacteristics,
    TerrainAnalysisInput,
    TerrainAnalysisReport,
    TerrainObstacle,
    TerrainPoint,
)
from flightpath.models.terrain_prediction import (
    ElevationStatistics,
    LandingSiteRecommendation,
    LandingSiteShift,
    ObstacleReport,
    TerrainAdjustments,
    TerrainAnalysisResult,
    TerrainCharacteristics,
    TerrainComplexity,
    TerrainConfig,
    TerrainPredictionInput,
    TerrainPredictionMetrics,
    TerrainPredictionResult,
    TerrainWarning,
)
from flightpath.models.weather import WeatherRequest, WeatherSample
from flightpath.physics.trajectory import TrajectoryEngine
from flightpath.utils.helpers import ensure_utc, normalize_angle, utc_now
from flightpath.utils.logger import get_logger


KM_PER_DEGREE = 111.32
MAX_RECOMMENDATIONS = 5
PROFILE_SAMPLES = 200

SUITABILITY_TIERS = [
    (2, 'excellent'),
    (4, 'good'),
    (6, 'fair'),
    (8, 'poor'),
    (10, 'unsuitable'),
]

OBSTACLE_TYPES = {
    'mountain': 'mountain',
    'hill': 'hill',
    'building': 'building',
    'tower': 'tower',
    'tree-line': 'ridge',
}


def generate_elevation_grid(
    lat: float,
    lng: float,
    radius_km: float,
    resolution_m: float,
    max_points: int = 121
) -> Tuple[List[GeoPoint], float]:
    """
    Square sampling grid centred on a point

    Args:
        lat: Centre latitude
        lng: Centre longitude
        radius_km: Half-width of the grid (km)
        resolution_m: Requested spacing (m)
        max_points: Upper bound on the number of grid points

    Returns:
        Tuple of (grid points, actual spacing in metres)
    """
    radius_m = radius_km * 1000
    side = int(2 * radius_m // resolution_m) + 1
    side = max(3, min(side, int(math.sqrt(max_points))))
    spacing = 2 * radius_m / (side - 1)

    cos_lat = max(math.cos(math.radians(lat)), 0.01)
    offsets = [-radius_m + k * spacing for k in range(side)]

    points = []
    for north in offsets:
        point_lat = min(90.0, max(-90.0, lat + north / 1000 / KM_PER_DEGREE))
        for east in offsets:
            point_lng = (lng + east / 1000 / (KM_PER_DEGREE * cos_lat) + 180) % 360 - 180
            points.append(GeoPoint(latitude=point_lat, longitude=point_lng))
    return points, spacing


def nearest_indices(positions: Sequence, latitudes: np.ndarray, longitudes: np.ndarray) -> np.ndarray:
    """Index of the nearest position for every query coordinate (equirectangular)"""
    lats = np.array([p.latitude for p in positions], dtype=float)
    lngs = np.array([p.longitude for p in positions], dtype=float)

    cos_lat = np.cos(np.radians(latitudes))[:, None]
    d_lat = latitudes[:, None] - lats[None, :]
    d_lng = (longitudes[:, None] - lngs[None, :] + 180) % 360 - 180
    return np.argmin(d_lat ** 2 + (d_lng * cos_lat) ** 2, axis=1)


def classify_complexity(
    elevation_variation: float,
    roughness: float,
    bands: Sequence[Sequence]
) -> str:
    """First band whose variation and roughness limits both hold, else 'extreme'"""
    for name, max_variation, max_roughness in bands:
        if elevation_variation < max_variation and roughness < max_roughness:
            return name
    return 'extreme'


def suitability_for_rating(rating: int) -> str:
    for upper, tier in SUITABILITY_TIERS:
        if rating <= upper:
            return tier
    return 'unsuitable'


def accessibility_for_score(score: float) -> str:
    if score > 0.7:
        return 'easy'
    if score > 0.5:
        return 'moderate'
    if score > 0.3:
        return 'difficult'
    return 'very_difficult'


def obstacle_impact(height: float) -> str:
    if height >= 100:
        return 'blocking'
    if height >= 50:
        return 'major'
    if height >= 20:
        return 'moderate'
    return 'minor'


def calculate_burst_height_adjustment(
    obstacles: Sequence[ObstacleReport],
    elevation_stats: ElevationStatistics,
    config: TerrainConfig
) -> float:
    """
    Extra burst altitude needed to clear the tallest obstacle

    Zero unless the tallest obstacle plus the configured clearance exceeds
    the highest terrain elevation.
    """
    if not config.burst_height_adjustment:
        return 0.0
    max_obstacle_height = max([o.height for o in obstacles] + [0.0])
    return max(0.0, max_obstacle_height + config.max_terrain_obstacle_height - elevation_stats.max_elevation)


def build_neutral_terrain() -> Tuple[TerrainAnalysisResult, TerrainAdjustments]:
    """Canonical terrain block and adjustments used when no terrain analysis applies"""
    origin = Position(latitude=0.0, longitude=0.0, elevation=0.0)
    terrain = TerrainAnalysisResult(
        trajectory_terrain=ElevationProfile(),
        burst_site_terrain=TerrainCharacteristics(location=origin),
        landing_site_terrain=LandingSiteAnalysis(
            position=origin,
            difficulty_rating=5,
            difficulty_description='Unknown terrain',
            suitability_score=0.5,
            accessibility_score=0.5,
            terrain_characteristics=SiteCharacteristics()
        ),
        obstacles_detected=[],
        terrain_complexity=TerrainComplexity(
            overall='moderate',
            roughness=0.5,
            elevation_variation=0.0,
            slope_variation=0.0,
            obstacles_density=0.0,
            predictability_factor=0.5
        ),
        elevation_stats=ElevationStatistics()
    )
    return terrain, TerrainAdjustments()


class TerrainIntegrationService:
    """
    Terrain-enhanced prediction orchestrator

    Steps: validate, prepare terrain, base prediction, terrain analysis,
    adjustments, recommendations and warnings. Any failure after validation
    yields the base prediction wrapped in a neutral terrain block.
    """

    def __init__(
        self,
        elevation_service: ElevationService,
        weather_service: Optional[WeatherService] = None,
        config: Optional[Dict] = None,
        engine: Optional[TrajectoryEngine] = None,
        analyzer: Optional[TerrainAnalyzer] = None,
        window_selector: Optional[ForecastWindowSelector] = None,
        quality_assessor: Optional[WeatherQualityAssessor] = None,
        logger=None,
        clock=utc_now
    ):
        """
        Initialize orchestrator

        Args:
            elevation_service: Resilient elevation source
            weather_service: Resilient weather source (None runs on surface wind only)
            config: Full prediction config
            engine: Trajectory physics engine
            analyzer: Terrain analyzer
            window_selector: Forecast window selector
            quality_assessor: Weather quality assessor
            logger: Logger instance
            clock: Current-time source
        """
        self.logger = logger or get_logger()
        self.elevation_service = elevation_service
        self.weather_service = weather_service
        self.engine = engine or TrajectoryEngine(config, logger=self.logger)
        self.analyzer = analyzer or TerrainAnalyzer(config, logger=self.logger)
        self.window_selector = window_selector or ForecastWindowSelector(config, logger=self.logger, clock=clock)
        self.quality_assessor = quality_assessor or WeatherQualityAssessor(logger=self.logger, clock=clock)

        section = get_section(config, 'terrain_integration')
        self.grid_max_points = section.get('grid_max_points', 121)
        self.elevation_timeout = section.get('elevation_timeout', 30)
        self.complexity_bands = section.get('complexity_bands', [])
        self.complexity_factors = section.get('complexity_factors', {})
        self.max_landing_site_rating = section.get('max_landing_site_rating', 7)
        self.suitable_site_rating = section.get('suitable_site_rating', 5)
        self.suitable_site_max_slope = section.get('suitable_site_max_slope', 15)

        quality = get_section(config, 'weather_quality')
        self.ensemble = EnsembleData(
            member_count=quality.get('default_ensemble_members', 15),
            spread=quality.get('default_ensemble_spread', 0.3)
        )
        self.historical = HistoricalAccuracy(
            recent=quality.get('default_recent_accuracy', 0.85),
            seasonal=quality.get('default_seasonal_accuracy', 0.80)
        )

        self.metrics = TerrainPredictionMetrics()

    def get_metrics(self) -> TerrainPredictionMetrics:
        return self.metrics.model_copy()

    @staticmethod
    def validate_terrain_config(config: TerrainConfig):
        if config.terrain_resolution <= 0:
            raise ValidationError("Terrain resolution must be positive", field='terrain_resolution')
        if config.analysis_radius <= 0:
            raise ValidationError("Analysis radius must be positive", field='analysis_radius')

    async def calculate_terrain_enhanced_prediction(
        self,
        prediction_input: TerrainPredictionInput,
        timeout: Optional[float] = None
    ) -> TerrainPredictionResult:
        """
        Terrain-enhanced trajectory prediction

        Args:
            prediction_input: Launch, balloon and terrain parameters
            timeout: Overall deadline in seconds (None waits indefinitely)

        Returns:
            TerrainPredictionResult, flagged is_fallback when terrain
            analysis could not be applied

        Raises:
            ValidationError: Invalid terrain configuration or flight parameters
            PredictionTimeoutError: The deadline elapsed
        """
        self.validate_terrain_config(prediction_input.terrain_config)
        self.engine.validate_input(prediction_input)

        if timeout is None:
            return await self._run(prediction_input)

        try:
            return await asyncio.wait_for(self._run(prediction_input), timeout=timeout)
        except asyncio.TimeoutError as e:
            self.logger.error(f"Terrain-enhanced prediction timed out after {timeout}s")
            raise PredictionTimeoutError(f"Prediction did not finish within {timeout}s", timeout=timeout) from e

    async def _run(self, prediction_input: TerrainPredictionInput) -> TerrainPredictionResult:
        started = time.perf_counter()
        config = prediction_input.terrain_config
        self.logger.section("Terrain-enhanced prediction")

        weather, assessment = await self._fetch_weather(prediction_input)

        if not config.enable_terrain_analysis:
            base = self.engine.predict(prediction_input, weather)
            terrain, adjustments = build_neutral_terrain()
            return TerrainPredictionResult(
                **dict(base), terrain=terrain, adjusted_predictions=adjustments, weather_assessment=assessment
            )

        try:
            positions, spacing = await self._prepare_elevation_data(prediction_input)
            base = self.engine.predict(prediction_input, weather)

            report = self.analyzer.analyze_terrain_characteristics(TerrainAnalysisInput(
                coordinates=positions,
                analysis_radius=spacing * 1.5,
                resolution=spacing
            ))
            terrain = self._analyze_trajectory_terrain(base, positions, report, spacing)
            adjustments = self._calculate_adjustments(terrain, config)
            recommendations = self._landing_site_recommendations(base, terrain, report, config)
            warnings = self._terrain_warnings(terrain)

            self.metrics = TerrainPredictionMetrics(
                terrain_analysis_time=(time.perf_counter() - started) * 1000,
                elevation_data_points=len(positions),
                obstacles_analyzed=len(terrain.obstacles_detected),
                landing_sites_evaluated=len(report.landing_sites) + 1,
                cache_hit_rate=self._elevation_hit_rate()
            )

            self.logger.info(
                f"Terrain analysis: {terrain.terrain_complexity.overall} terrain, "
                f"{len(terrain.obstacles_detected)} obstacles, {len(warnings)} warnings"
            )

            fields = dict(base)
            fields['confidence'] = base.confidence * adjustments.confidence_adjustment
            return TerrainPredictionResult(
                **fields,
                terrain=terrain,
                adjusted_predictions=adjustments,
                landing_site_recommendations=recommendations,
                terrain_warnings=warnings,
                weather_assessment=assessment
            )

        except Exception as e:
            self.logger.error(f"Terrain-enhanced prediction failed, using base prediction: {e}")
            return self._fallback_result(self.engine.predict(prediction_input, weather))

    async def _fetch_weather(
        self,
        prediction_input: PredictionInput
    ) -> Tuple[Optional[List[WeatherSample]], WeatherQualityAssessment]:
        """
        Weather samples for the flight's forecast window and their quality

        Returns:
            Tuple of (samples, assessment); samples are None and the
            assessment is the fallback one when no weather is available
        """
        if self.weather_service is None:
            return None, self.quality_assessor.fallback_assessment()

        launch = prediction_input.launch_location
        window = self.window_selector.calculate_forecast_window(ForecastWindowRequest(
            launch_time=prediction_input.launch_time,
            launch_location=launch,
            balloon_specs=prediction_input.balloon_specs()
        ))

        try:
            model = self.window_selector.select_optimal_weather_model(window).selected_model.model
        except NoSuitableModelError as e:
            self.logger.warning(f"{e}, rating weather against the {FALLBACK_MODEL.model} model")
            model = FALLBACK_MODEL.model

        try:
            dataset = await self.weather_service.fetch_and_parse_weather(WeatherRequest(
                latitude=launch.latitude,
                longitude=launch.longitude,
                start_date=ensure_utc(window.start).date(),
                end_date=ensure_utc(window.end).date()
            ))
        except (AllProvidersFailedError, ProviderError) as e:
            self.logger.warning(f"Weather unavailable, running physics-only prediction: {e}")
            return None, self.quality_assessor.fallback_assessment()

        samples = dataset.all_samples
        if not samples:
            return None, self.quality_assessor.fallback_assessment()

        assessment = self.quality_assessor.assess(QualityRequest(
            forecast_time=window.start,
            target_time=prediction_input.launch_time,
            location=launch,
            altitude_range=AltitudeRange(
                min=window.altitude_requirements.min,
                max=window.altitude_requirements.max
            ),
            weather_model=model,
            ensemble_data=self.ensemble,
            historical_accuracy=self.historical
        ))
        self.logger.info(f"Weather quality {assessment.overall} ({model}, confidence {assessment.confidence:.2f})")
        return samples, assessment

    async def _prepare_elevation_data(self, prediction_input: TerrainPredictionInput) -> Tuple[List[Position], float]:
        """
        Raises:
            OrchestrationError: Elevation data could not be obtained
        """
        config = prediction_input.terrain_config
        if prediction_input.elevation_data:
            return [p.position() for p in prediction_input.elevation_data], config.terrain_resolution

        launch = prediction_input.launch_location
        grid, spacing = generate_elevation_grid(
            launch.latitude, launch.longitude,
            config.analysis_radius, config.terrain_resolution, self.grid_max_points
        )

        try:
            batch = await asyncio.wait_for(
                self.elevation_service.get_batch_elevation(grid), timeout=self.elevation_timeout
            )
        except asyncio.TimeoutError as e:
            raise OrchestrationError(f"Elevation data timed out after {self.elevation_timeout}s") from e

        if batch.status == 'ERROR' or len(batch.results) < 3:
            raise OrchestrationError(f"Elevation data unavailable: {batch.error}")
        if batch.status == 'PARTIAL':
            self.logger.warning(f"Elevation grid incomplete: {len(batch.failed_coordinates)} points missing")

        positions = [
            Position(latitude=s.latitude, longitude=s.longitude, elevation=s.elevation)
            for s in batch.results
        ]
        return positions, spacing

    def _ground_position(self, positions: Sequence[Position], lat: float, lng: float) -> Position:
        index = int(nearest_indices(positions, np.array([lat]), np.array([lng]))[0])
        return Position(latitude=lat, longitude=lng, elevation=positions[index].elevation)

    def _trajectory_profile(self, prediction: PredictionResult, positions: Sequence[Position]) -> ElevationProfile:
        trajectory = prediction.trajectory
        step = max(1, len(trajectory) // PROFILE_SAMPLES)
        track = list(trajectory[::step])
        if track[-1] is not trajectory[-1]:
            track.append(trajectory[-1])

        lats = np.array([p.latitude for p in track])
        lngs = np.array([p.longitude for p in track])
        indices = nearest_indices(positions, lats, lngs)
        ground = [
            Position(latitude=p.latitude, longitude=p.longitude, elevation=positions[i].elevation)
            for p, i in zip(track, indices)
        ]
        return generate_elevation_profile(ground)

    def _analyze_trajectory_terrain(
        self,
        prediction: PredictionResult,
        positions: List[Position],
        report: TerrainAnalysisReport,
        spacing: float
    ) -> TerrainAnalysisResult:
        terrain_points = report.terrain_points
        trajectory_terrain = self._trajectory_profile(prediction, positions)

        burst = prediction.burst_site
        burst_ground = self._ground_position(positions, burst.latitude, burst.longitude)
        burst_analysis = self.analyzer.analyze_landing_site(burst_ground, positions)

        landing = prediction.landing_site
        landing_ground = self._ground_position(positions, landing.latitude, landing.longitude)
        landing_analysis = self.analyzer.analyze_landing_site(landing_ground, positions)

        obstacles = self.convert_obstacles(
            self.analyzer.detect_terrain_obstacles(positions, max(100.0, spacing * 1.5))
        )

        return TerrainAnalysisResult(
            trajectory_terrain=trajectory_terrain,
            burst_site_terrain=self._to_characteristics(burst_analysis, positions),
            landing_site_terrain=landing_analysis,
            obstacles_detected=obstacles,
            terrain_complexity=self.calculate_terrain_complexity(terrain_points),
            elevation_stats=self._elevation_statistics(terrain_points, trajectory_terrain)
        )

    def calculate_terrain_complexity(self, terrain_points: Sequence[TerrainPoint]) -> TerrainComplexity:
        elevations = [p.elevation for p in terrain_points]
        slopes = [p.slope or 0.0 for p in terrain_points]
        variation = max(elevations) - min(elevations)
        roughness = calculate_terrain_roughness(terrain_points)

        return TerrainComplexity(
            overall=classify_complexity(variation, roughness, self.complexity_bands),
            roughness=roughness,
            elevation_variation=variation,
            slope_variation=max(slopes) - min(slopes),
            obstacles_density=sum(1 for s in slopes if s > 30) / len(slopes),
            predictability_factor=max(0.0, 1 - roughness)
        )

    @staticmethod
    def _elevation_statistics(terrain_points: Sequence[TerrainPoint], profile: ElevationProfile) -> ElevationStatistics:
        elevations = [p.elevation for p in terrain_points]
        slopes = [p.slope or 0.0 for p in terrain_points]
        return ElevationStatistics(
            min_elevation=min(elevations),
            max_elevation=max(elevations),
            average_elevation=sum(elevations) / len(elevations),
            elevation_gain=profile.elevation_gain,
            elevation_loss=profile.elevation_loss,
            steepest_slope=max(slopes),
            flatness_ratio=sum(1 for s in slopes if s < 5) / len(slopes)
        )

    @staticmethod
    def _to_characteristics(analysis: LandingSiteAnalysis, positions: Sequence[Position]) -> TerrainCharacteristics:
        nearby = [p.elevation for p in positions if calculate_distance(analysis.position, p) <= 1000]
        site = analysis.terrain_characteristics
        return TerrainCharacteristics(
            location=analysis.position,
            average_slope=site.average_slope,
            max_slope=site.max_slope,
            min_slope=0.0,
            roughness_index=site.terrain_roughness,
            elevation_variation=max(nearby) - min(nearby) if nearby else 0.0,
            vegetation_cover=site.vegetation_density or 0.0,
            accessibility_score=analysis.accessibility_score,
            difficulty_rating=analysis.difficulty_rating,
            features=[site.surface_type],
            risk_factors=list(analysis.risk_factors),
            confidence=analysis.suitability_score
        )

    @staticmethod
    def convert_obstacles(obstacles: Sequence[TerrainObstacle]) -> List[ObstacleReport]:
        reports = []
        for obstacle in obstacles:
            obstacle_type = OBSTACLE_TYPES.get(obstacle.type, 'hill')
            reports.append(ObstacleReport(
                type=obstacle_type,
                location=obstacle.position,
                height=obstacle.height,
                clearance_required=obstacle.clearance_required,
                impact=obstacle_impact(obstacle.height),
                avoidance_recommendation=f"Maintain {obstacle.clearance_required:.0f}m clearance above {obstacle.type}"
            ))
        return reports

    def _calculate_adjustments(self, terrain: TerrainAnalysisResult, config: TerrainConfig) -> TerrainAdjustments:
        roughness = terrain.terrain_complexity.roughness
        shift = roughness * 0.01

        return TerrainAdjustments(
            burst_height_adjustment=calculate_burst_height_adjustment(
                terrain.obstacles_detected, terrain.elevation_stats, config
            ),
            trajectory_deviation=roughness * 5,
            landing_site_shift=LandingSiteShift(
                latitude_shift=shift,
                longitude_shift=shift,
                distance_shift=shift * 111
            ),
            confidence_adjustment=max(0.5, 1 - roughness * 0.5),
            flight_time_adjustment=roughness * 300
        )

    def _recommendation(self, analysis: LandingSiteAnalysis, distance_km: float) -> LandingSiteRecommendation:
        return LandingSiteRecommendation(
            location=analysis.position,
            suitability=suitability_for_rating(analysis.difficulty_rating),
            difficulty_rating=analysis.difficulty_rating,
            accessibility=accessibility_for_score(analysis.accessibility_score),
            terrain_features=[analysis.terrain_characteristics.surface_type],
            risk_factors=list(analysis.risk_factors),
            recommendations=list(analysis.recommendations),
            distance_from_predicted=distance_km,
            confidence=analysis.suitability_score
        )

    def _landing_site_recommendations(
        self,
        prediction: PredictionResult,
        terrain: TerrainAnalysisResult,
        report: TerrainAnalysisReport,
        config: TerrainConfig
    ) -> List[LandingSiteRecommendation]:
        """Predicted landing site first, then the easiest alternatives nearby"""
        landing = terrain.landing_site_terrain.position
        recommendations = [self._recommendation(terrain.landing_site_terrain, 0.0)]

        for site in report.landing_sites:
            if len(recommendations) >= MAX_RECOMMENDATIONS:
                break
            if config.landing_site_filtering and site.difficulty_rating > self.max_landing_site_rating:
                continue
            distance_km = calculate_distance(landing, site.position) / 1000
            if distance_km < config.min_landing_site_distance:
                continue
            recommendations.append(self._recommendation(site, distance_km))

        return recommendations

    @staticmethod
    def _terrain_warnings(terrain: TerrainAnalysisResult) -> List[TerrainWarning]:
        warnings = []
        for obstacle in terrain.obstacles_detected:
            if obstacle.impact in ('major', 'blocking'):
                warnings.append(TerrainWarning(
                    type='obstacle',
                    severity='critical' if obstacle.impact == 'blocking' else 'high',
                    location=obstacle.location,
                    description=f"{obstacle.type} obstacle detected at {obstacle.height:.0f}m height",
                    recommendation=obstacle.avoidance_recommendation,
                    affected_phase='descent'
                ))

        if terrain.terrain_complexity.overall == 'extreme':
            warnings.append(TerrainWarning(
                type='cliff',
                severity='high',
                location=terrain.landing_site_terrain.position,
                description='Extremely complex terrain detected in landing area',
                recommendation='Consider alternative launch conditions or timing',
                affected_phase='landing'
            ))
        return warnings

    def _fallback_result(self, base: PredictionResult) -> TerrainPredictionResult:
        terrain, adjustments = build_neutral_terrain()
        return TerrainPredictionResult(
            **dict(base),
            terrain=terrain,
            adjusted_predictions=adjustments,
            landing_site_recommendations=[],
            terrain_warnings=[],
            is_fallback=True,
            weather_assessment=self.quality_assessor.fallback_assessment()
        )

    def _elevation_hit_rate(self) -> float:
        cache = self.elevation_service.cache
        return cache.hit_rate() if cache is not None else 0.0

    def complexity_factor(self, complexity: str) -> float:
        return self.complexity_factors.get(complexity, 1.0)

    def adjust_ascent_for_terrain(
        self,
        prediction_input: PredictionInput,
        terrain_points: Sequence[TerrainPoint],
        config: TerrainConfig
    ) -> PredictionInput:
        """
        Burst altitude raised to clear the highest terrain, ascent rate
        scaled by terrain complexity
        """
        if not config.enable_terrain_analysis or not terrain_points:
            return prediction_input

        burst_altitude = prediction_input.burst_altitude
        if config.burst_height_adjustment:
            max_terrain = max(p.elevation for p in terrain_points)
            burst_altitude = max(burst_altitude, max_terrain + config.max_terrain_obstacle_height)

        complexity = self.calculate_terrain_complexity(terrain_points)
        return prediction_input.model_copy(update={
            'burst_altitude': burst_altitude,
            'ascent_rate': prediction_input.ascent_rate * self.complexity_factor(complexity.overall)
        })

    def find_suitable_landing_sites(
        self,
        terrain_points: Sequence[TerrainPoint],
        config: TerrainConfig
    ) -> List[TerrainPoint]:
        """Points rated easy enough to land on, easiest first"""
        rated = []
        for point in terrain_points:
            rating = self.analyzer.calculate_difficulty_rating(point, []).rating
            if rating <= self.suitable_site_rating and (point.slope or 0.0) < self.suitable_site_max_slope:
                rated.append((rating, point))
        rated.sort(key=lambda item: item[0])
        return [point for _, point in rated]

    def adjust_descent_for_terrain(
        self,
        prediction_input: PredictionInput,
        terrain_points: Sequence[TerrainPoint],
        config: TerrainConfig
    ) -> PredictionInput:
        """Landing altitude taken from the best suitable landing site"""
        if not config.enable_terrain_analysis:
            return prediction_input

        sites = self.find_suitable_landing_sites(terrain_points, config)
        if not sites:
            return prediction_input
        return prediction_input.model_copy(update={'landing_altitude': sites[0].elevation})

    def adjust_wind_drift_for_terrain(
        self,
        wind_speed: float,
        wind_direction: float,
        terrain_points: Sequence[TerrainPoint],
        config: TerrainConfig
    ) -> Tuple[float, float]:
        """
        Wind slowed and turned by terrain obstacles

        Returns:
            Tuple of (wind speed, wind direction)
        """
        if not config.enable_terrain_analysis or not config.obstacle_avoidance:
            return wind_speed, wind_direction

        obstacle_count = len(self.analyzer.detect_terrain_obstacles(terrain_points))
        effect = obstacle_count * 0.05
        return wind_speed * max(0.8, 1 - effect), normalize_angle(wind_direction + effect * 10)

    def filter_landing_sites_by_terrain(
        self,
        landing_points: Sequence,
        terrain_points: Sequence[TerrainPoint],
        config: TerrainConfig
    ) -> List:
        """
        Drop predicted landing points whose terrain is too difficult

        A landing point without terrain data within 0.01 degrees is kept.
        """
        if not config.enable_terrain_analysis or not config.landing_site_filtering:
            return list(landing_points)

        obstacles = self.analyzer.detect_terrain_obstacles(terrain_points)
        kept = []
        for landing in landing_points:
            terrain_point = next((
                p for p in terrain_points
                if abs(p.latitude - landing.latitude) < 0.01 and abs(p.longitude - landing.longitude) < 0.01
            ), None)
            if terrain_point is None:
                kept.append(landing)
                continue

            nearby = [
                o for o in obstacles
                if abs(o.position.latitude - landing.latitude) < 0.01
                and abs(o.position.longitude - landing.longitude) < 0.01
            ]
            if self.analyzer.calculate_difficulty_rating(terrain_point, nearby).rating <= self.max_landing_site_rating:
                kept.append(landing)
        return kept
