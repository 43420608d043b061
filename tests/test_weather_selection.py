"""Tests for the weather selection pipeline."""

from datetime import timedelta

import pytest

from api.services.weather_selection import (
    WeatherSelectionService,
    calculate_weather_window,
    generate_timeline,
    trajectory_altitude,
)
from api.services.weather_service import WeatherService
from flightpath.data_processing.forecast_window import ForecastWindowSelector
from flightpath.exceptions import DataUnavailableError
from flightpath.models.forecast import BalloonSpecs, ForecastWindowRequest, ModelResolution, WeatherModel
from flightpath.models.geo import GeoPoint
from flightpath.models.selection import WeatherSelectionPreferences, WeatherSelectionRequest

from tests.conftest import LAUNCH_TIME, FakeWeatherProvider, hourly_payload


NOW = LAUNCH_TIME - timedelta(hours=48)
SEA_LEVEL_SITE = GeoPoint(latitude=39.74, longitude=-104.98, altitude=0)


def selection_request(specs, **preferences):
    return WeatherSelectionRequest(
        launch_time=LAUNCH_TIME,
        launch_location=SEA_LEVEL_SITE,
        balloon_specs=specs,
        preferences=WeatherSelectionPreferences(**preferences)
    )


def build_service(config, provider):
    weather_service = WeatherService(config=config, providers=[provider])
    return WeatherSelectionService(weather_service, config=config, clock=lambda: NOW)


@pytest.fixture
def provider():
    return FakeWeatherProvider(payload=hourly_payload(LAUNCH_TIME - timedelta(hours=3), 16))


class TestWindowHelpers:
    def test_weather_window(self):
        start, end = calculate_weather_window(LAUNCH_TIME, 475)

        assert start == LAUNCH_TIME - timedelta(hours=2)
        assert end == LAUNCH_TIME + timedelta(minutes=535)

    def test_trajectory_altitude(self):
        """Linear climb to burst, linear fall back to the launch altitude."""
        assert trajectory_altitude(0, 60, 180, 0, 1000) == 0
        assert trajectory_altitude(30, 60, 180, 0, 1000) == 500
        assert trajectory_altitude(60, 60, 180, 0, 1000) == 1000
        assert trajectory_altitude(120, 60, 180, 0, 1000) == 500
        assert trajectory_altitude(200, 60, 180, 0, 1000) == 0


class TestTimeline:
    def setup_method(self):
        selector = ForecastWindowSelector(clock=lambda: NOW)
        self.window = selector.calculate_forecast_window(ForecastWindowRequest(
            launch_time=LAUNCH_TIME,
            launch_location=SEA_LEVEL_SITE,
            balloon_specs=BalloonSpecs(balloon_volume=4, payload_weight=1.5, burst_altitude=30000, ascent_rate=5)
        ))
        self.model = WeatherModel(
            model='NAM', update_cycle=6, latency=1.5, max_forecast_hours=84,
            resolution=ModelResolution(temporal='hourly', spatial=12, vertical=40)
        )

    def test_fresh_data(self):
        now = self.window.start + timedelta(hours=3)

        timeline = generate_timeline(self.window, self.model, now)

        assert timeline.data_freshness == 'Fresh (3 hours old)'
        assert timeline.validity_period == 'Valid for 81 more hours'
        assert timeline.next_update == 'Next update in 5 hours'

    def test_ageing_data(self):
        assert generate_timeline(self.window, self.model, self.window.start).data_freshness == \
            'Very fresh (< 1 hour old)'
        assert generate_timeline(
            self.window, self.model, self.window.start + timedelta(hours=10)
        ).data_freshness == 'Moderate (10 hours old)'

        old = generate_timeline(self.window, self.model, self.window.start + timedelta(hours=100))
        assert old.data_freshness == 'Old (4 days old)'
        assert old.validity_period == 'Valid for 0 more hours'


class TestSelectWeatherData:
    @pytest.mark.asyncio
    async def test_successful_selection(self, config, balloon_specs, provider):
        service = build_service(config, provider)

        result = await service.select_weather_data(selection_request(balloon_specs))

        assert result.success is True
        assert result.selected_model.selected_model.model == 'NAM'
        assert result.forecast_window.start == LAUNCH_TIME - timedelta(hours=2)
        assert result.weather_data.surface_data
        assert result.weather_data.altitude_data
        assert result.performance.data_points == (
            len(result.weather_data.surface_data) + len(result.weather_data.altitude_data)
        )
        assert result.warnings == []
        assert provider.call_count == 1

    @pytest.mark.asyncio
    async def test_interpolates_whole_flight(self, config, balloon_specs, provider):
        """One result every ten minutes of the 475 minute flight."""
        service = build_service(config, provider)

        result = await service.select_weather_data(selection_request(balloon_specs))

        interpolated = result.weather_data.interpolated_data
        assert len(interpolated) == 48
        assert interpolated[0].timestamp == LAUNCH_TIME

    @pytest.mark.asyncio
    async def test_preferred_model(self, config, balloon_specs, provider):
        service = build_service(config, provider)

        result = await service.select_weather_data(selection_request(balloon_specs, preferred_model='GFS'))

        selection = result.selected_model
        assert selection.selected_model.model == 'GFS'
        assert selection.reasoning[0] == 'User preferred model selected'
        assert 'GFS' not in [m.model for m in selection.alternatives]
        assert 'NAM' in [m.model for m in selection.alternatives]

    @pytest.mark.asyncio
    async def test_unsuitable_preferred_model(self, config, balloon_specs, provider):
        service = build_service(config, provider)

        result = await service.select_weather_data(selection_request(balloon_specs, preferred_model='RAP'))

        assert result.success is True
        assert result.selected_model.selected_model.model == 'NAM'
        assert "Preferred model 'RAP' not suitable for this forecast window" in result.warnings

    @pytest.mark.asyncio
    async def test_strict_quality_threshold(self, config, balloon_specs, provider):
        service = build_service(config, provider)

        result = await service.select_weather_data(selection_request(balloon_specs, quality_threshold=0.8))

        assert 'Forecast window quality below threshold' in result.warnings
        assert 'Consider adjusting launch time or increasing safety margins' in result.recommendations

    @pytest.mark.asyncio
    async def test_invalid_request_falls_back(self, config, provider):
        """Specs that cannot fly return a fallback result instead of raising."""
        service = build_service(config, provider)
        specs = BalloonSpecs(balloon_volume=4, payload_weight=1.5, burst_altitude=30000, ascent_rate=0)

        result = await service.select_weather_data(selection_request(specs))

        assert result.success is False
        assert result.warnings[0].startswith('Invalid weather selection request:')
        assert result.selected_model.selected_model.model == 'Fallback'
        assert result.timeline.data_freshness == 'Unknown'
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_weather_outage_falls_back(self, config, balloon_specs):
        provider = FakeWeatherProvider(error=DataUnavailableError("down"))
        service = build_service(config, provider)

        result = await service.select_weather_data(selection_request(balloon_specs))

        assert result.success is False
        assert result.warnings[0].startswith('Weather selection error:')
        assert result.quality_assessment.issues == ['Weather selection failed']
        assert result.forecast_window.quality.recommendations == ['Error in weather selection - use fallback data']
        assert result.recommendations == ['Use alternative weather data sources', 'Consider postponing launch']
