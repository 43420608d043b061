"""
Elevation provider adapters
USGS (United States), Google (global, API key) and Open-Meteo (global, free)
"""

from typing import List, Sequence

from flightpath.data_collection.api_client import ProviderClient
from flightpath.exceptions import DataUnavailableError
from flightpath.models.elevation import ElevationSample
from flightpath.models.geo import GeoPoint
from flightpath.utils.helpers import utc_now


USGS_NO_DATA = -1000000


def in_usgs_coverage(lat: float, lng: float) -> bool:
    """Rough bounding polygon of the United States and its territories"""
    return 15 <= lat <= 72 and -180 <= lng <= -60


class ElevationProvider(ProviderClient):
    """
    Common shape of an elevation adapter

    Subclasses implement get_elevation and may set max_batch_size to expose a
    native batch call.
    """

    max_batch_size = 0

    def is_available_for_location(self, lat: float, lng: float) -> bool:
        return -90 <= lat <= 90 and -180 <= lng <= 180

    @property
    def supports_batch(self) -> bool:
        return self.max_batch_size > 0

    async def get_elevation(self, point: GeoPoint) -> ElevationSample:
        raise NotImplementedError

    async def get_batch_elevation(self, points: Sequence[GeoPoint]) -> List[ElevationSample]:
        raise NotImplementedError(f"{self.name} has no batch endpoint")

    def _sample(self, lat: float, lng: float, elevation) -> ElevationSample:
        try:
            value = float(elevation)
        except (TypeError, ValueError) as e:
            raise DataUnavailableError(
                f"{self.name} returned a non-numeric elevation for {lat}, {lng}", provider=self.name
            ) from e

        return ElevationSample(
            latitude=lat,
            longitude=lng,
            elevation=value,
            data_source=self.name,
            timestamp=utc_now()
        )

    def _check_batch_size(self, points: Sequence[GeoPoint]):
        if len(points) > self.max_batch_size:
            raise DataUnavailableError(
                f"Too many coordinates for {self.name} batch request (max {self.max_batch_size})",
                provider=self.name
            )


class USGSElevationProvider(ElevationProvider):
    """USGS Elevation Point Query Service, 1/3 arc-second resolution"""

    name = "USGS"
    rate_limit = 1000
    base_url = "https://nationalmap.gov/epqs/pqs.php"

    def is_available_for_location(self, lat: float, lng: float) -> bool:
        return in_usgs_coverage(lat, lng)

    async def get_elevation(self, point: GeoPoint) -> ElevationSample:
        data = await self._get_json(self.base_url, {
            'x': point.longitude,
            'y': point.latitude,
            'units': 'Meters',
            'output': 'json'
        })

        try:
            elevation = float(
                data['USGS_Elevation_Point_Query_Service']['Elevation_Query']['Elevation']
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DataUnavailableError(
                f"USGS response missing elevation for {point.latitude}, {point.longitude}",
                provider=self.name
            ) from e

        if elevation == USGS_NO_DATA:
            raise DataUnavailableError(
                f"USGS has no elevation data for {point.latitude}, {point.longitude}",
                provider=self.name
            )

        return self._sample(point.latitude, point.longitude, elevation)


class GoogleElevationProvider(ElevationProvider):
    """Google Elevation API, global coverage, requires an API key"""

    name = "Google"
    rate_limit = 100
    max_batch_size = 512
    base_url = "https://maps.googleapis.com/maps/api/elevation/json"

    def __init__(self, api_key: str, max_batch_size: int = 512, **kwargs):
        super().__init__(**kwargs)
        self.api_key = api_key
        self.max_batch_size = max_batch_size

    def is_available_for_location(self, lat: float, lng: float) -> bool:
        return bool(self.api_key) and super().is_available_for_location(lat, lng)

    async def _query(self, points: Sequence[GeoPoint]) -> List[dict]:
        locations = "|".join(f"{p.latitude},{p.longitude}" for p in points)
        data = await self._get_json(self.base_url, {'locations': locations, 'key': self.api_key})

        status = data.get('status') if isinstance(data, dict) else None
        if status != 'OK':
            raise DataUnavailableError(f"Google elevation status: {status}", provider=self.name)

        results = data.get('results') or []
        if not isinstance(results, list):
            raise DataUnavailableError("Google response has no results list", provider=self.name)
        if len(results) != len(points):
            raise DataUnavailableError(
                f"Google returned {len(results)} results for {len(points)} coordinates",
                provider=self.name
            )
        return results

    def _elevation(self, result):
        try:
            return result['elevation']
        except (KeyError, TypeError) as e:
            raise DataUnavailableError("Google result has no elevation", provider=self.name) from e

    async def get_elevation(self, point: GeoPoint) -> ElevationSample:
        results = await self._query([point])
        return self._sample(point.latitude, point.longitude, self._elevation(results[0]))

    async def get_batch_elevation(self, points: Sequence[GeoPoint]) -> List[ElevationSample]:
        self._check_batch_size(points)
        results = await self._query(points)
        return [
            self._sample(p.latitude, p.longitude, self._elevation(r))
            for p, r in zip(points, results)
        ]


class OpenMeteoElevationProvider(ElevationProvider):
    """Open-Meteo elevation API, ~90 m SRTM data, no key required"""

    name = "Open-Meteo"
    rate_limit = 1000
    max_batch_size = 100
    base_url = "https://api.open-meteo.com/v1/elevation"

    def __init__(self, max_batch_size: int = 100, **kwargs):
        super().__init__(**kwargs)
        self.max_batch_size = max_batch_size

    async def _query(self, points: Sequence[GeoPoint]) -> List[float]:
        data = await self._get_json(self.base_url, {
            'latitude': ",".join(str(p.latitude) for p in points),
            'longitude': ",".join(str(p.longitude) for p in points)
        })

        elevations = data.get('elevation') if isinstance(data, dict) else None
        if not isinstance(elevations, list) or len(elevations) != len(points) or any(e is None for e in elevations):
            raise DataUnavailableError("Open-Meteo returned no elevation data", provider=self.name)
        return elevations

    async def get_elevation(self, point: GeoPoint) -> ElevationSample:
        elevations = await self._query([point])
        return self._sample(point.latitude, point.longitude, elevations[0])

    async def get_batch_elevation(self, points: Sequence[GeoPoint]) -> List[ElevationSample]:
        self._check_batch_size(points)
        elevations = await self._query(points)
        return [self._sample(p.latitude, p.longitude, e) for p, e in zip(points, elevations)]
