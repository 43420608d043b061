"""
Elevation service
Ranks USGS, Google and Open-Meteo per location, caches by rounded coordinate
"""
import asyncio
from typing import Dict, List, Optional, Sequence

import httpx

from api.services.data_service import CallReport, ResilientDataService
from flightpath.config import get_section
from flightpath.data_collection.cache import TTLCache
from flightpath.data_collection.elevation_providers import (
    ElevationProvider,
    GoogleElevationProvider,
    OpenMeteoElevationProvider,
    USGSElevationProvider,
    in_usgs_coverage,
)
from flightpath.exceptions import AllProvidersFailedError, ProviderError
from flightpath.models.elevation import BatchElevationResult, ElevationSample
from flightpath.models.geo import GeoPoint
from flightpath.utils.helpers import round_coordinate_key


class ElevationService(ResilientDataService):
    """Ground elevation lookups with provider failover"""

    def __init__(
        self,
        config: Optional[Dict] = None,
        providers: Optional[List[ElevationProvider]] = None,
        client: Optional[httpx.AsyncClient] = None,
        logger=None
    ):
        """
        Initialize elevation service

        Args:
            config: Full prediction config (the 'elevation_service' section is used)
            providers: Provider adapters, built from config when omitted
            client: Shared AsyncClient handed to the built providers
            logger: Logger instance
        """
        section = get_section(config, 'elevation_service')
        cache = None
        if section.get('cache_enabled', True):
            cache = TTLCache(
                max_size=section.get('cache_max_size', 10000),
                ttl_seconds=section.get('cache_ttl_seconds', 86400),
                logger=logger
            )

        super().__init__(
            retry_attempts=section.get('retry_attempts', 3),
            retry_backoff_seconds=section.get('retry_backoff_seconds', 0.5),
            cache=cache,
            logger=logger
        )

        self.precision = section.get('cache_precision', 4)
        self.batch_concurrency = section.get('batch_concurrency', 5)
        self.providers = providers if providers is not None else self._build_providers(section, client)

    def _build_providers(self, section: Dict, client: Optional[httpx.AsyncClient]) -> List[ElevationProvider]:
        common = {'timeout': section.get('timeout', 10), 'client': client, 'logger': self.logger}
        providers: List[ElevationProvider] = [USGSElevationProvider(**common)]

        api_key = section.get('google_api_key')
        if api_key:
            providers.append(GoogleElevationProvider(
                api_key, max_batch_size=section.get('google_max_batch_size', 512), **common
            ))

        providers.append(OpenMeteoElevationProvider(
            max_batch_size=section.get('open_meteo_max_batch_size', 100), **common
        ))
        return providers

    def rank_providers(self, lat: float, lng: float) -> List[ElevationProvider]:
        """
        Providers available at a location, most preferred first

        Inside the USGS polygon USGS leads, then Google. Elsewhere Google
        leads. The remaining providers keep their configured order.
        """
        available = [p for p in self.providers if p.is_available_for_location(lat, lng)]
        preference = ['USGS', 'Google'] if in_usgs_coverage(lat, lng) else ['Google']

        def rank(provider: ElevationProvider) -> int:
            if provider.name in preference:
                return preference.index(provider.name)
            return len(preference)

        return sorted(available, key=rank)

    def get_available_providers(self, lat: Optional[float] = None, lng: Optional[float] = None) -> List[str]:
        if lat is None or lng is None:
            return [p.name for p in self.providers]
        return [p.name for p in self.rank_providers(lat, lng)]

    async def get_elevation(
        self,
        lat: float,
        lng: float,
        report: Optional[CallReport] = None
    ) -> ElevationSample:
        """
        Ground elevation at a coordinate

        Args:
            lat: Latitude
            lng: Longitude
            report: Trace of the providers tried (left empty on a cache hit)

        Returns:
            ElevationSample from the first provider that answers

        Raises:
            AllProvidersFailedError: Every ranked provider failed
        """
        key = round_coordinate_key(lat, lng, self.precision)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return cached

        point = GeoPoint(latitude=lat, longitude=lng)
        sample = await self._run_ranked(
            self.rank_providers(lat, lng),
            lambda provider: provider.get_elevation(point),
            f"coordinates {lat}, {lng}",
            report
        )

        if self.cache is not None:
            self.cache.set(key, sample)
        return sample

    def _batch_provider(self, count: int) -> Optional[ElevationProvider]:
        for provider in self.providers:
            if provider.supports_batch and count <= provider.max_batch_size:
                return provider
        return None

    async def get_batch_elevation(self, coordinates: Sequence[GeoPoint]) -> BatchElevationResult:
        """
        Elevations for many coordinates

        Uses a provider's native batch call when the request fits, otherwise
        (or after a batch failure) individual lookups with bounded
        concurrency. Per-coordinate failures are reported, not raised.

        Args:
            coordinates: Points to look up

        Returns:
            BatchElevationResult with status OK, PARTIAL or ERROR
        """
        if not coordinates:
            return BatchElevationResult(status='OK')

        provider = self._batch_provider(len(coordinates))
        if provider is not None:
            try:
                samples = await provider.get_batch_elevation(coordinates)
                if self.cache is not None:
                    for sample in samples:
                        self.cache.set(
                            round_coordinate_key(sample.latitude, sample.longitude, self.precision), sample
                        )
                return BatchElevationResult(results=samples, status='OK', provider=provider.name)
            except ProviderError as e:
                self.logger.warning(f"{provider.name} batch elevation failed, falling back to individual requests: {e}")

        semaphore = asyncio.Semaphore(self.batch_concurrency)

        async def fetch(point: GeoPoint):
            async with semaphore:
                try:
                    return await self.get_elevation(point.latitude, point.longitude)
                except AllProvidersFailedError as e:
                    return e

        outcomes = await asyncio.gather(*(fetch(point) for point in coordinates))

        results = []
        failed = []
        last_error = None
        for point, outcome in zip(coordinates, outcomes):
            if isinstance(outcome, AllProvidersFailedError):
                failed.append(point)
                last_error = str(outcome)
            else:
                results.append(outcome)

        if not failed:
            status = 'OK'
        elif not results:
            status = 'ERROR'
        else:
            status = 'PARTIAL'

        if failed:
            self.logger.warning(f"Batch elevation: {len(failed)} of {len(coordinates)} coordinates failed")

        return BatchElevationResult(
            results=results,
            failed_coordinates=failed,
            status=status,
            error=last_error
        )

    def get_cache_stats(self) -> dict:
        stats = super().get_cache_stats()
        stats['provider_calls'] = {p.name: p.call_count for p in self.providers}
        return stats
