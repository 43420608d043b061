"""Tests for the terrain-enhanced prediction orchestrator."""

from datetime import timedelta

import pytest

from api.services.elevation_service import ElevationService
from api.services.terrain_integration import (
    TerrainIntegrationService,
    build_neutral_terrain,
    calculate_burst_height_adjustment,
    classify_complexity,
    generate_elevation_grid,
    obstacle_impact,
)
from api.services.weather_service import WeatherService
from flightpath.config import DEFAULT_CONFIG
from flightpath.data_processing.forecast_window import ForecastWindowSelector, NoSuitableModelError
from flightpath.exceptions import DataUnavailableError, PredictionTimeoutError, ValidationError
from flightpath.models.geo import GeoPoint, Position
from flightpath.models.terrain import TerrainPoint
from flightpath.models.terrain_prediction import (
    ElevationStatistics,
    ObstacleReport,
    TerrainConfig,
    TerrainPredictionInput,
)

from tests.conftest import (
    DENVER,
    LAUNCH_TIME,
    FakeElevationProvider,
    FakeWeatherProvider,
    hourly_payload,
    make_grid,
)


BANDS = DEFAULT_CONFIG['terrain_integration']['complexity_bands']


def terrain_input(elevation_data=None, **terrain_options):
    options = dict(analysis_radius=1.0, terrain_resolution=200)
    options.update(terrain_options)
    return TerrainPredictionInput(
        launch_location=DENVER,
        launch_time=LAUNCH_TIME,
        ascent_rate=5.0,
        burst_altitude=5000,
        payload_weight=1.5,
        parachute_area=1.0,
        drag_coefficient=1.5,
        surface_wind_speed=10.0,
        surface_wind_direction=270.0,
        terrain_config=TerrainConfig(**options),
        elevation_data=elevation_data,
    )


def terrain_points(elevation, side=5, spacing=100):
    return [
        TerrainPoint(latitude=p.latitude, longitude=p.longitude, elevation=p.elevation, slope=0,
                     roughness=0, accessibility=1)
        for p in make_grid(DENVER.latitude, DENVER.longitude, side, spacing, elevation)
    ]


def checkerboard(row, col):
    return 3000.0 if (row + col) % 2 else 0.0


def build_service(config, provider=None, weather_service=None, **kwargs):
    provider = provider or FakeElevationProvider("Open-Meteo", elevation=1600.0, max_batch_size=200)
    elevation_service = ElevationService(config=config, providers=[provider])
    return TerrainIntegrationService(
        elevation_service=elevation_service,
        weather_service=weather_service,
        config=config,
        **kwargs
    ), provider


class TestGrid:
    def test_wide_area_is_capped(self):
        """A 5 km radius at 100 m is thinned to an 11x11 grid."""
        points, spacing = generate_elevation_grid(39.74, -104.98, 5, 100)

        assert len(points) == 121
        assert spacing == pytest.approx(1000)
        assert min(p.latitude for p in points) == pytest.approx(39.74 - 5 / 111.32)

    def test_small_area_uses_minimum_grid(self):
        points, spacing = generate_elevation_grid(39.74, -104.98, 0.1, 100)

        assert len(points) == 9
        assert spacing == pytest.approx(100)

    def test_longitude_wraps(self):
        points, _ = generate_elevation_grid(0, 179.99, 5, 1000)
        assert all(-180 <= p.longitude < 180 for p in points)


class TestComplexityAndAdjustments:
    def test_complexity_bands(self):
        assert classify_complexity(50, 0.1, BANDS) == 'flat'
        assert classify_complexity(300, 0.3, BANDS) == 'gentle'
        assert classify_complexity(1500, 0.7, BANDS) == 'mountainous'
        assert classify_complexity(2500, 0.1, BANDS) == 'extreme'

    def test_obstacle_impact_tiers_include_lower_bound(self):
        assert [obstacle_impact(h) for h in (100, 50, 20)] == ['blocking', 'major', 'moderate']
        assert [obstacle_impact(h) for h in (99.9, 49.9, 19.9)] == ['major', 'moderate', 'minor']

    def test_burst_adjustment_clears_tallest_obstacle(self):
        obstacle = ObstacleReport(
            type='hill', location=Position(latitude=0, longitude=0, elevation=300),
            height=200, clearance_required=220, impact='blocking', avoidance_recommendation='Climb'
        )
        stats = ElevationStatistics(max_elevation=300)

        assert calculate_burst_height_adjustment([obstacle], stats, TerrainConfig()) == pytest.approx(400)
        assert calculate_burst_height_adjustment(
            [obstacle], stats, TerrainConfig(burst_height_adjustment=False)
        ) == 0

    def test_no_adjustment_over_high_ground(self):
        stats = ElevationStatistics(max_elevation=1600)
        assert calculate_burst_height_adjustment([], stats, TerrainConfig()) == 0

    def test_neutral_terrain(self):
        terrain, adjustments = build_neutral_terrain()

        assert terrain.terrain_complexity.overall == 'moderate'
        assert terrain.obstacles_detected == []
        assert adjustments.confidence_adjustment == 1.0
        assert adjustments.burst_height_adjustment == 0


class TestTerrainEnhancedPrediction:
    @pytest.mark.asyncio
    async def test_flat_terrain(self, config):
        """Flat ground leaves the physics prediction untouched."""
        service, provider = build_service(config)

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())
        base = service.engine.predict(terrain_input())

        assert result.is_fallback is False
        assert provider.batch_calls == 1
        assert result.terrain.terrain_complexity.overall == 'flat'
        assert result.terrain.obstacles_detected == []
        assert result.terrain_warnings == []
        assert result.adjusted_predictions.confidence_adjustment == 1.0
        assert result.adjusted_predictions.burst_height_adjustment == 0
        assert result.confidence == pytest.approx(base.confidence)
        assert result.landing_site == base.landing_site
        assert result.terrain.elevation_stats.max_elevation == 1600

    @pytest.mark.asyncio
    async def test_recommendations(self, config):
        service, _ = build_service(config)

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())

        recommendations = result.landing_site_recommendations
        assert 1 <= len(recommendations) <= 5
        assert recommendations[0].distance_from_predicted == 0
        assert recommendations[0].suitability == 'excellent'

    @pytest.mark.asyncio
    async def test_metrics(self, config):
        service, _ = build_service(config)

        await service.calculate_terrain_enhanced_prediction(terrain_input())
        metrics = service.get_metrics()

        assert metrics.elevation_data_points == 121
        assert metrics.terrain_analysis_time > 0

    @pytest.mark.asyncio
    async def test_extreme_terrain_warns(self, config):
        """Caller-supplied rugged terrain adds a high-severity landing warning."""
        service, provider = build_service(config)
        prediction_input = terrain_input(
            elevation_data=terrain_points(checkerboard), terrain_resolution=100
        )

        result = await service.calculate_terrain_enhanced_prediction(prediction_input)

        assert provider.batch_calls == 0
        assert result.is_fallback is False
        assert result.terrain.terrain_complexity.overall == 'extreme'
        cliff = [w for w in result.terrain_warnings if w.type == 'cliff']
        assert len(cliff) == 1
        assert cliff[0].severity == 'high'
        assert cliff[0].affected_phase == 'landing'
        assert result.adjusted_predictions.confidence_adjustment == 0.5

    @pytest.mark.asyncio
    async def test_elevation_failure_falls_back(self, config):
        """Without elevation data the base prediction is returned, flagged."""
        provider = FakeElevationProvider(
            "Open-Meteo", max_batch_size=200,
            batch_error=DataUnavailableError("down"), fail_always=DataUnavailableError("down")
        )
        service, _ = build_service(config, provider)

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())

        assert result.is_fallback is True
        assert result.terrain_warnings == []
        assert result.landing_site_recommendations == []
        assert result.landing_site == service.engine.predict(terrain_input()).landing_site
        assert result.weather_assessment.overall == 'poor'

    @pytest.mark.asyncio
    async def test_terrain_disabled(self, config):
        service, provider = build_service(config)

        result = await service.calculate_terrain_enhanced_prediction(
            terrain_input(enable_terrain_analysis=False)
        )

        assert result.is_fallback is False
        assert provider.batch_calls == 0
        assert result.terrain.terrain_complexity.overall == 'moderate'
        assert result.terrain_warnings == []

    @pytest.mark.asyncio
    async def test_invalid_resolution(self, config):
        service, _ = build_service(config)

        with pytest.raises(ValidationError):
            await service.calculate_terrain_enhanced_prediction(terrain_input(terrain_resolution=0))

    @pytest.mark.asyncio
    async def test_invalid_flight(self, config):
        service, _ = build_service(config)
        prediction_input = terrain_input().model_copy(update={'burst_altitude': 1000})

        with pytest.raises(ValidationError):
            await service.calculate_terrain_enhanced_prediction(prediction_input)

    @pytest.mark.asyncio
    async def test_timeout(self, config):
        provider = FakeElevationProvider("Open-Meteo", max_batch_size=200, delay=1.0)
        service, _ = build_service(config, provider)

        with pytest.raises(PredictionTimeoutError) as exc_info:
            await service.calculate_terrain_enhanced_prediction(terrain_input(), timeout=0.05)
        assert exc_info.value.timeout == 0.05

    @pytest.mark.asyncio
    async def test_weather_failure_runs_physics_only(self, config):
        """Weather outage degrades to surface wind but keeps terrain analysis."""
        weather_service = WeatherService(
            config=config, providers=[FakeWeatherProvider(error=DataUnavailableError("down"))]
        )
        service, _ = build_service(config, weather_service=weather_service)

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())

        assert result.is_fallback is False
        assert result.weather_quality == 'low'
        assert 'Weather data unavailable - using surface wind only' in result.warnings
        assert result.weather_assessment == service.quality_assessor.fallback_assessment()

    @pytest.mark.asyncio
    async def test_with_weather(self, config):
        config['weather_service']['target_altitudes'] = [1000, 5000, 10000]
        payload = hourly_payload(LAUNCH_TIME - timedelta(hours=12), 48, wind_speed=8, wind_direction=180)
        weather_service = WeatherService(config=config, providers=[FakeWeatherProvider(payload=payload)])
        service, _ = build_service(config, weather_service=weather_service)

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())

        assert result.weather_quality == 'high'
        assert result.warnings == []
        assert result.landing_site.latitude > DENVER.latitude

    @pytest.mark.asyncio
    async def test_weather_assessment_attached(self, config):
        """The assessment rates the forecast window's data for launch time."""
        payload = hourly_payload(LAUNCH_TIME - timedelta(hours=12), 48)
        weather_service = WeatherService(config=config, providers=[FakeWeatherProvider(payload=payload)])
        service, _ = build_service(
            config, weather_service=weather_service, clock=lambda: LAUNCH_TIME - timedelta(hours=2)
        )

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())

        assessment = result.weather_assessment
        assert assessment != service.quality_assessor.fallback_assessment()
        assert assessment.reliability.forecast_age == pytest.approx(0)
        assert assessment.reliability.forecast_horizon == pytest.approx(2)
        assert assessment.reliability.ensemble_spread == pytest.approx(0.3)

    @pytest.mark.asyncio
    async def test_no_suitable_model_still_assessed(self, config):
        """Without a covering model the data is rated against the fallback model."""
        class NoModels(ForecastWindowSelector):
            def select_optimal_weather_model(self, window, available_models=None):
                raise NoSuitableModelError("No weather models can provide the required forecast horizon")

        payload = hourly_payload(LAUNCH_TIME - timedelta(hours=12), 48)
        weather_service = WeatherService(config=config, providers=[FakeWeatherProvider(payload=payload)])
        service, _ = build_service(config, weather_service=weather_service, window_selector=NoModels(config))

        result = await service.calculate_terrain_enhanced_prediction(terrain_input())

        assert 'Unknown model characteristics' in result.weather_assessment.issues

    @pytest.mark.asyncio
    async def test_terrain_disabled_without_weather_service(self, config):
        service, _ = build_service(config)

        result = await service.calculate_terrain_enhanced_prediction(
            terrain_input(enable_terrain_analysis=False)
        )

        assert result.weather_assessment == service.quality_assessor.fallback_assessment()


class TestTerrainHelpers:
    def setup_method(self):
        self.service = TerrainIntegrationService(elevation_service=ElevationService(providers=[]))

    def test_wind_slowed_by_obstacles(self):
        points = terrain_points(lambda row, col: 200.0 if (row, col) == (2, 2) else 0.0)

        speed, direction = self.service.adjust_wind_drift_for_terrain(10, 270, points, TerrainConfig())

        assert speed == pytest.approx(9.5)
        assert direction == pytest.approx(270.5)

    def test_wind_unchanged_without_obstacle_avoidance(self):
        points = terrain_points(lambda row, col: 200.0 if (row, col) == (2, 2) else 0.0)
        result = self.service.adjust_wind_drift_for_terrain(
            10, 270, points, TerrainConfig(obstacle_avoidance=False)
        )
        assert result == (10, 270)

    def test_ascent_clears_high_ground(self):
        prediction_input = terrain_input()
        points = terrain_points(lambda row, col: 4800.0)

        adjusted = self.service.adjust_ascent_for_terrain(prediction_input, points, TerrainConfig())

        assert adjusted.burst_altitude == 5300
        assert adjusted.ascent_rate == pytest.approx(5.0)

    def test_ascent_slowed_over_extreme_terrain(self):
        adjusted = self.service.adjust_ascent_for_terrain(
            terrain_input(), terrain_points(checkerboard), TerrainConfig(burst_height_adjustment=False)
        )

        assert adjusted.burst_altitude == 5000
        assert adjusted.ascent_rate == pytest.approx(4.0)

    def test_suitable_sites(self):
        easy = TerrainPoint(latitude=0, longitude=0, elevation=10, slope=0, roughness=0, accessibility=1)
        sloped = TerrainPoint(latitude=0, longitude=0, elevation=20, slope=20, roughness=0, accessibility=1)
        rough = TerrainPoint(latitude=0, longitude=0, elevation=30, slope=5, roughness=1, accessibility=0)

        sites = self.service.find_suitable_landing_sites([rough, sloped, easy], TerrainConfig())

        assert sites == [easy]

    def test_descent_lands_on_best_site(self):
        easy = TerrainPoint(latitude=0, longitude=0, elevation=1234, slope=0, roughness=0, accessibility=1)
        adjusted = self.service.adjust_descent_for_terrain(terrain_input(), [easy], TerrainConfig())
        assert adjusted.landing_altitude == 1234

    def test_filter_landing_sites(self):
        """Hard terrain removes a landing point, unknown terrain keeps it."""
        hard = TerrainPoint(latitude=10, longitude=10, elevation=0, slope=60, roughness=1, accessibility=0)
        near_hard = GeoPoint(latitude=10.001, longitude=10.001)
        far_away = GeoPoint(latitude=20, longitude=20)

        kept = self.service.filter_landing_sites_by_terrain([near_hard, far_away], [hard], TerrainConfig())

        assert kept == [far_away]

    def test_filter_disabled(self):
        hard = TerrainPoint(latitude=10, longitude=10, elevation=0, slope=60, roughness=1, accessibility=0)
        landing = GeoPoint(latitude=10, longitude=10)

        kept = self.service.filter_landing_sites_by_terrain(
            [landing], [hard], TerrainConfig(landing_site_filtering=False)
        )
        assert kept == [landing]
