"""Tests for the weather service."""

from datetime import date, datetime, timezone

import pytest

from api.services.weather_service import WeatherService
from flightpath.exceptions import AllProvidersFailedError, DataUnavailableError, NetworkError
from flightpath.models.weather import WeatherRequest

from tests.conftest import DENVER, FakeWeatherProvider, hourly_payload


START = datetime(2026, 6, 1, tzinfo=timezone.utc)


def weather_request():
    return WeatherRequest(
        latitude=DENVER.latitude,
        longitude=DENVER.longitude,
        start_date=date(2026, 6, 1),
        end_date=date(2026, 6, 2),
    )


class TestWeatherService:
    def test_default_provider_priority(self, config):
        service = WeatherService(config=config)
        assert service.get_available_providers() == [
            "Open-Meteo/forecast", "Open-Meteo/gfs", "Open-Meteo/ecmwf"
        ]

    @pytest.mark.asyncio
    async def test_fails_over_to_next_model(self, config):
        """When the blended forecast fails the GFS endpoint answers."""
        forecast = FakeWeatherProvider("forecast", error=DataUnavailableError("down"))
        gfs = FakeWeatherProvider("gfs", payload=hourly_payload(START, 24))
        service = WeatherService(config=config, providers=[forecast, gfs])

        dataset = await service.fetch_and_parse_weather(weather_request())

        assert dataset.provider == "Open-Meteo/gfs"
        assert len(dataset.surface_data) == 24

    @pytest.mark.asyncio
    async def test_extrapolates_to_configured_altitudes(self, config):
        provider = FakeWeatherProvider(payload=hourly_payload(START, 6))
        service = WeatherService(config=config, providers=[provider])

        dataset = await service.fetch_and_parse_weather(weather_request())

        levels = len(config['weather_service']['target_altitudes'])
        assert len(dataset.altitude_data) == 6 * levels
        assert len(dataset.all_samples) == 6 + 6 * levels

    @pytest.mark.asyncio
    async def test_empty_altitudes_skip_extrapolation(self, config):
        provider = FakeWeatherProvider(payload=hourly_payload(START, 6))
        service = WeatherService(config=config, providers=[provider])

        dataset = await service.fetch_and_parse_weather(weather_request(), target_altitudes=[])

        assert dataset.altitude_data == []

    @pytest.mark.asyncio
    async def test_same_request_is_cached(self, config):
        """Identical requests hit the provider once."""
        provider = FakeWeatherProvider(payload=hourly_payload(START, 6))
        service = WeatherService(config=config, providers=[provider])

        await service.get_weather(weather_request())
        await service.get_weather(weather_request())

        assert provider.call_count == 1
        assert service.get_cache_stats()['provider_calls'] == {"Open-Meteo/forecast": 1}

    @pytest.mark.asyncio
    async def test_all_models_fail(self, config):
        providers = [
            FakeWeatherProvider("forecast", error=NetworkError("timeout", retryable=True)),
            FakeWeatherProvider("gfs", error=DataUnavailableError("down")),
        ]
        service = WeatherService(config=config, providers=providers)

        with pytest.raises(AllProvidersFailedError):
            await service.get_weather(weather_request())

        assert providers[0].call_count == 3
        assert providers[1].call_count == 1

    def test_cache_key_is_stable(self):
        assert weather_request().cache_key() == weather_request().cache_key()

    def test_cache_key_rounds_coordinates(self):
        """Requests within the rounding precision share one key."""
        near = weather_request().model_copy(update={'latitude': DENVER.latitude + 0.00001})
        far = weather_request().model_copy(update={'latitude': DENVER.latitude + 0.001})

        assert near.cache_key() == weather_request().cache_key()
        assert far.cache_key() != weather_request().cache_key()
        assert near.cache_key(precision=6) != weather_request().cache_key(precision=6)

    @pytest.mark.asyncio
    async def test_nearby_requests_hit_cache(self, config):
        provider = FakeWeatherProvider(payload=hourly_payload(START, 24))
        service = WeatherService(config=config, providers=[provider])
        nearby = weather_request().model_copy(update={'longitude': DENVER.longitude + 0.00002})

        await service.get_weather(weather_request())
        await service.get_weather(nearby)

        assert provider.call_count == 1
