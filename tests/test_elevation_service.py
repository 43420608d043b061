"""Tests for the elevation service: retries, failover, caching and batches."""

import asyncio

import httpx
import pytest

from api.services.data_service import CallReport
from api.services.elevation_service import ElevationService
from flightpath.data_collection.elevation_providers import GoogleElevationProvider, OpenMeteoElevationProvider
from flightpath.exceptions import (
    AllProvidersFailedError,
    DataUnavailableError,
    NetworkError,
    RateLimitError,
)
from flightpath.models.geo import GeoPoint

from tests.conftest import DENVER, FakeElevationProvider
from tests.test_providers import mock_client


def transient(name="USGS"):
    return NetworkError("connection reset", provider=name, retryable=True)


class TestRetryAndFailover:
    @pytest.mark.asyncio
    async def test_retries_transient_errors_on_same_provider(self, config):
        """Two transient failures then success: the value comes from the first provider."""
        usgs = FakeElevationProvider("USGS", elevation=1609.0, failures=[transient(), transient()])
        backup = FakeElevationProvider("Open-Meteo", elevation=1500.0)
        service = ElevationService(config=config, providers=[usgs, backup])

        report = CallReport()
        sample = await service.get_elevation(DENVER.latitude, DENVER.longitude, report)

        assert sample.elevation == 1609.0
        assert sample.data_source == "USGS"
        assert usgs.call_count == 3
        assert backup.call_count == 0
        assert report.total_attempts == 3

    @pytest.mark.asyncio
    async def test_rate_limit_moves_to_next_provider(self, config):
        """A 429 is not retried against the same provider."""
        usgs = FakeElevationProvider("USGS", fail_always=RateLimitError("429", provider="USGS"))
        backup = FakeElevationProvider("Open-Meteo", elevation=1500.0)
        service = ElevationService(config=config, providers=[usgs, backup])

        sample = await service.get_elevation(DENVER.latitude, DENVER.longitude)

        assert sample.data_source == "Open-Meteo"
        assert usgs.call_count == 1
        assert backup.call_count == 1

    @pytest.mark.asyncio
    async def test_permanent_error_fails_over_immediately(self, config):
        usgs = FakeElevationProvider("USGS", fail_always=DataUnavailableError("no data", provider="USGS"))
        backup = FakeElevationProvider("Open-Meteo", elevation=1500.0)
        service = ElevationService(config=config, providers=[usgs, backup])

        report = CallReport()
        sample = await service.get_elevation(DENVER.latitude, DENVER.longitude, report)

        assert sample.data_source == "Open-Meteo"
        assert usgs.call_count == 1
        assert [r.provider for r in report.results] == ["USGS", "Open-Meteo"]

    @pytest.mark.asyncio
    async def test_transient_errors_exhaust_attempts_then_fail_over(self, config):
        usgs = FakeElevationProvider("USGS", fail_always=transient())
        backup = FakeElevationProvider("Open-Meteo", elevation=1500.0)
        service = ElevationService(config=config, providers=[usgs, backup])

        report = CallReport()
        await service.get_elevation(DENVER.latitude, DENVER.longitude, report)

        assert usgs.call_count == 3
        assert report.total_attempts == 4

    @pytest.mark.asyncio
    async def test_all_providers_fail(self, config):
        """Exhausting every provider raises AllProvidersFailedError."""
        usgs = FakeElevationProvider("USGS", fail_always=transient())
        backup = FakeElevationProvider("Open-Meteo", fail_always=DataUnavailableError("no data"))
        service = ElevationService(config=config, providers=[usgs, backup])

        with pytest.raises(AllProvidersFailedError) as exc_info:
            await service.get_elevation(DENVER.latitude, DENVER.longitude)

        assert exc_info.value.attempts == 4
        assert isinstance(exc_info.value.last_error, DataUnavailableError)

    @pytest.mark.asyncio
    async def test_no_available_provider(self, config):
        service = ElevationService(
            config=config, providers=[FakeElevationProvider("USGS", available=False)]
        )

        with pytest.raises(AllProvidersFailedError):
            await service.get_elevation(0, 0)

    @pytest.mark.asyncio
    async def test_malformed_payload_fails_over(self, config):
        """A Google body without elevations falls through to Open-Meteo."""
        google_body = {'status': 'OK', 'results': [{'location': {}}]}
        google = GoogleElevationProvider(
            api_key="key", client=mock_client(lambda r: httpx.Response(200, json=google_body))
        )
        open_meteo = OpenMeteoElevationProvider(
            client=mock_client(lambda r: httpx.Response(200, json={'elevation': [1234.0]}))
        )
        service = ElevationService(config=config, providers=[google, open_meteo])

        report = CallReport()
        sample = await service.get_elevation(48.85, 2.35, report)

        assert sample.elevation == 1234.0
        assert sample.data_source == "Open-Meteo"
        assert [r.provider for r in report.results] == ["Google", "Open-Meteo"]
        assert isinstance(report.results[0].error, DataUnavailableError)

    @pytest.mark.asyncio
    async def test_unexpected_exception_fails_over(self, config):
        """A stray exception from an adapter is not retried and the next provider answers."""
        usgs = FakeElevationProvider("USGS", fail_always=KeyError("elevation"))
        backup = FakeElevationProvider("Open-Meteo", elevation=1500.0)
        service = ElevationService(config=config, providers=[usgs, backup])

        sample = await service.get_elevation(DENVER.latitude, DENVER.longitude)

        assert sample.elevation == 1500.0
        assert usgs.call_count == 1


class TestCallReport:
    @pytest.mark.asyncio
    async def test_concurrent_calls_keep_separate_reports(self, config):
        usgs = FakeElevationProvider("USGS", elevation=1609.0, fail_when=lambda lat, lng: lat > 40)
        backup = FakeElevationProvider("Open-Meteo", elevation=1500.0)
        service = ElevationService(config=config, providers=[usgs, backup])

        south, north = CallReport(), CallReport()
        await asyncio.gather(
            service.get_elevation(39.0, -105.0, south),
            service.get_elevation(41.0, -105.0, north),
        )

        assert [r.provider for r in south.results] == ["USGS"]
        assert [r.provider for r in north.results] == ["USGS", "Open-Meteo"]


class TestRanking:
    def test_usgs_first_inside_united_states(self, config):
        providers = [
            FakeElevationProvider("Open-Meteo"),
            FakeElevationProvider("Google"),
            FakeElevationProvider("USGS"),
        ]
        service = ElevationService(config=config, providers=providers)

        assert service.get_available_providers(39.74, -104.98) == ["USGS", "Google", "Open-Meteo"]

    def test_google_first_elsewhere(self, config):
        """Outside the USGS polygon Google leads and USGS keeps its configured slot."""
        providers = [
            FakeElevationProvider("USGS"),
            FakeElevationProvider("Open-Meteo"),
            FakeElevationProvider("Google"),
        ]
        service = ElevationService(config=config, providers=providers)

        assert service.get_available_providers(48.85, 2.35)[0] == "Google"

    def test_default_providers_without_google_key(self, config):
        service = ElevationService(config=config)
        assert service.get_available_providers() == ["USGS", "Open-Meteo"]

    def test_default_providers_with_google_key(self, config):
        config['elevation_service']['google_api_key'] = "key"
        service = ElevationService(config=config)
        assert service.get_available_providers() == ["USGS", "Google", "Open-Meteo"]


class TestCaching:
    @pytest.mark.asyncio
    async def test_repeat_lookup_is_served_from_cache(self, config):
        """Same rounded coordinate, same sample, one provider call."""
        usgs = FakeElevationProvider("USGS", elevation=1609.0)
        service = ElevationService(config=config, providers=[usgs])

        first = await service.get_elevation(39.74, -104.98)
        second = await service.get_elevation(39.740001, -104.980001)

        assert first == second
        assert usgs.call_count == 1
        assert service.get_cache_stats()['hits'] == 1

    @pytest.mark.asyncio
    async def test_cache_disabled(self, config):
        config['elevation_service']['cache_enabled'] = False
        usgs = FakeElevationProvider("USGS", elevation=1609.0)
        service = ElevationService(config=config, providers=[usgs])

        await service.get_elevation(39.74, -104.98)
        await service.get_elevation(39.74, -104.98)

        assert usgs.call_count == 2
        assert service.get_cache_stats()['enabled'] is False

    @pytest.mark.asyncio
    async def test_clear_cache(self, config):
        usgs = FakeElevationProvider("USGS", elevation=1609.0)
        service = ElevationService(config=config, providers=[usgs])

        await service.get_elevation(39.74, -104.98)
        service.clear_cache()
        await service.get_elevation(39.74, -104.98)

        assert usgs.call_count == 2


class TestBatch:
    def points(self, count):
        return [GeoPoint(latitude=39.0 + i * 0.01, longitude=-105.0) for i in range(count)]

    @pytest.mark.asyncio
    async def test_native_batch(self, config):
        """A request that fits a batch provider uses one batch call."""
        provider = FakeElevationProvider("Open-Meteo", elevation=1500.0, max_batch_size=10)
        service = ElevationService(config=config, providers=[provider])

        result = await service.get_batch_elevation(self.points(5))

        assert result.status == 'OK'
        assert result.provider == "Open-Meteo"
        assert len(result.results) == 5
        assert provider.batch_calls == 1
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_batch_results_are_cached(self, config):
        provider = FakeElevationProvider("Open-Meteo", elevation=1500.0, max_batch_size=10)
        service = ElevationService(config=config, providers=[provider])
        points = self.points(3)

        await service.get_batch_elevation(points)
        await service.get_elevation(points[0].latitude, points[0].longitude)

        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_oversized_request_uses_single_lookups(self, config):
        provider = FakeElevationProvider("Open-Meteo", elevation=1500.0, max_batch_size=2)
        service = ElevationService(config=config, providers=[provider])

        result = await service.get_batch_elevation(self.points(3))

        assert result.status == 'OK'
        assert provider.batch_calls == 0
        assert provider.call_count == 3

    @pytest.mark.asyncio
    async def test_batch_failure_falls_back_to_single_lookups(self, config):
        provider = FakeElevationProvider(
            "Open-Meteo", elevation=1500.0, max_batch_size=10,
            batch_error=DataUnavailableError("batch rejected")
        )
        service = ElevationService(config=config, providers=[provider])

        result = await service.get_batch_elevation(self.points(4))

        assert result.status == 'OK'
        assert len(result.results) == 4
        assert provider.call_count == 4

    @pytest.mark.asyncio
    async def test_partial_failure(self, config):
        """Failed coordinates are listed, the rest are returned."""
        provider = FakeElevationProvider("USGS", elevation=1500.0, fail_when=lambda lat, lng: lat > 39.015)
        service = ElevationService(config=config, providers=[provider])

        result = await service.get_batch_elevation(self.points(3))

        assert result.status == 'PARTIAL'
        assert len(result.results) == 2
        assert result.failed_coordinates == [self.points(3)[2]]
        assert result.error is not None

    @pytest.mark.asyncio
    async def test_total_failure(self, config):
        provider = FakeElevationProvider("USGS", fail_always=DataUnavailableError("no data"))
        service = ElevationService(config=config, providers=[provider])

        result = await service.get_batch_elevation(self.points(2))

        assert result.status == 'ERROR'
        assert result.results == []
        assert len(result.failed_coordinates) == 2

    @pytest.mark.asyncio
    async def test_empty_request(self, config):
        service = ElevationService(config=config, providers=[FakeElevationProvider("USGS")])
        result = await service.get_batch_elevation([])
        assert result.status == 'OK'
        assert result.results == []
