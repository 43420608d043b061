"""
Async weather service for fetching and caching Open-Meteo forecasts.
"""
from typing import Any, Dict, List, Optional, Sequence, Tuple

import httpx

from api.services.data_service import CallReport, ResilientDataService
from flightpath.config import get_section
from flightpath.data_collection.cache import TTLCache
from flightpath.data_collection.weather_providers import (
    OpenMeteoWeatherProvider,
    extrapolate_profile,
    parse_weather_data,
)
from flightpath.models.weather import WeatherDataset, WeatherRequest


class WeatherService(ResilientDataService):
    """
    Weather data with provider failover and request-keyed caching.

    Providers are tried in the configured priority order (by default the
    blended forecast endpoint, then GFS, then ECMWF).
    """

    def __init__(
        self,
        config: Optional[Dict] = None,
        providers: Optional[List[OpenMeteoWeatherProvider]] = None,
        client: Optional[httpx.AsyncClient] = None,
        logger=None
    ):
        """
        Initialize weather service.

        Args:
            config: Full prediction config (the 'weather_service' section is used)
            providers: Provider adapters in priority order, built from config when omitted
            client: Shared AsyncClient handed to the built providers
            logger: Logger instance
        """
        section = get_section(config, 'weather_service')
        cache = None
        if section.get('cache_enabled', True):
            cache = TTLCache(
                max_size=section.get('cache_max_size', 1000),
                ttl_seconds=section.get('cache_ttl_seconds', 3600),
                logger=logger
            )

        super().__init__(
            retry_attempts=section.get('retry_attempts', 3),
            retry_backoff_seconds=section.get('retry_backoff_seconds', 0.5),
            cache=cache,
            logger=logger
        )

        self.target_altitudes = list(section.get('target_altitudes', []))
        self.precision = section.get('cache_precision', 4)
        if providers is not None:
            self.providers = providers
        else:
            self.providers = [
                OpenMeteoWeatherProvider(
                    endpoint=endpoint,
                    base_url=section.get('base_url', 'https://api.open-meteo.com/v1'),
                    timeout=section.get('timeout', 10),
                    client=client,
                    logger=self.logger
                )
                for endpoint in section.get('provider_priority', ['forecast'])
            ]

    def get_available_providers(self, lat: Optional[float] = None, lng: Optional[float] = None) -> List[str]:
        if lat is None or lng is None:
            return [p.name for p in self.providers]
        return [p.name for p in self.providers if p.is_available_for_location(lat, lng)]

    async def _fetch(
        self,
        request: WeatherRequest,
        report: Optional[CallReport] = None
    ) -> Tuple[str, Dict[str, Any]]:
        key = request.cache_key(self.precision)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        providers = [p for p in self.providers if p.is_available_for_location(request.latitude, request.longitude)]

        async def call(provider: OpenMeteoWeatherProvider):
            return provider.name, await provider.get_weather(request)

        entry = await self._run_ranked(
            providers,
            call,
            f"weather at {request.latitude}, {request.longitude} ({request.start_date} to {request.end_date})",
            report
        )

        if self.cache is not None:
            self.cache.set(key, entry)
        return entry

    async def get_weather(self, request: WeatherRequest, report: Optional[CallReport] = None) -> Dict[str, Any]:
        """
        Fetch the raw hourly forecast.

        Args:
            request: Weather query
            report: Trace of the providers tried (left empty on a cache hit)

        Returns:
            Decoded API response from the first provider that answers

        Raises:
            AllProvidersFailedError: Every provider failed
        """
        _, data = await self._fetch(request, report)
        return data

    async def fetch_and_parse_weather(
        self,
        request: WeatherRequest,
        target_altitudes: Optional[Sequence[float]] = None
    ) -> WeatherDataset:
        """
        Fetch, parse and extrapolate weather aloft.

        Args:
            request: Weather query
            target_altitudes: Altitudes to extrapolate to (m), configured
                defaults when omitted, none when empty

        Returns:
            WeatherDataset with surface samples and one sample per surface
            sample and target altitude

        Raises:
            AllProvidersFailedError: Every provider failed
            DataUnavailableError: Response had no hourly time series
        """
        provider, data = await self._fetch(request)
        surface_data = parse_weather_data(data)

        altitudes = self.target_altitudes if target_altitudes is None else list(target_altitudes)
        altitude_data = extrapolate_profile(surface_data, altitudes) if altitudes else []

        self.logger.info(
            f"Weather from {provider}: {len(surface_data)} surface samples, "
            f"{len(altitude_data)} samples aloft"
        )

        return WeatherDataset(
            surface_data=surface_data,
            altitude_data=altitude_data,
            provider=provider
        )

    def get_cache_stats(self) -> dict:
        stats = super().get_cache_stats()
        stats['provider_calls'] = {p.name: p.call_count for p in self.providers}
        return stats
