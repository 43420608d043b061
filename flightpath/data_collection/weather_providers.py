"""
Weather provider adapters for Open-Meteo model endpoints
Fetches hourly surface data, parses it with pandas and extrapolates it aloft
"""

import math
from typing import Any, Dict, List, Sequence

import pandas as pd

from flightpath.data_collection.api_client import ProviderClient
from flightpath.exceptions import DataUnavailableError
from flightpath.models.weather import WeatherRequest, WeatherSample
from flightpath.utils.helpers import celsius_to_kelvin, kelvin_to_celsius


SURFACE_ALTITUDE = 10.0
SURFACE_QUALITY = 0.9
ALTITUDE_QUALITY = 0.8

# Standard atmosphere constants
GRAVITY = 9.80665
MOLAR_MASS_AIR = 0.0289644
GAS_CONSTANT = 8.31432
LAPSE_RATE = 0.0065

# Hourly variable -> WeatherSample field
HOURLY_FIELDS = {
    'temperature_2m': 'temperature',
    'pressure_msl': 'pressure',
    'relative_humidity_2m': 'humidity',
    'wind_speed_10m': 'wind_speed',
    'wind_direction_10m': 'wind_direction',
}


def parse_weather_data(
    data: Dict[str, Any],
    altitude: float = SURFACE_ALTITUDE,
    quality: float = SURFACE_QUALITY
) -> List[WeatherSample]:
    """
    Parse an Open-Meteo hourly response into weather samples

    Rows with any missing value are skipped, never defaulted.

    Args:
        data: Decoded API response
        altitude: Altitude assigned to the samples (m)
        quality: Quality score assigned to the samples

    Returns:
        List of WeatherSample ordered by time

    Raises:
        DataUnavailableError: Response has no hourly time series
    """
    hourly = data.get('hourly') if isinstance(data, dict) else None
    if not hourly or not hourly.get('time'):
        raise DataUnavailableError("Invalid weather response: missing hourly data")

    columns = {'timestamp': pd.to_datetime(hourly['time'], utc=True)}
    for variable, field in HOURLY_FIELDS.items():
        columns[field] = hourly.get(variable)

    try:
        df = pd.DataFrame(columns)
    except ValueError as e:
        raise DataUnavailableError(f"Invalid weather response: {e}") from e

    df = df.dropna()

    samples = []
    for row in df.itertuples(index=False):
        samples.append(WeatherSample.from_wind(
            timestamp=row.timestamp.to_pydatetime(),
            altitude=altitude,
            temperature=float(row.temperature),
            pressure=float(row.pressure),
            humidity=float(row.humidity),
            wind_speed=float(row.wind_speed),
            wind_direction=float(row.wind_direction),
            quality=quality
        ))

    return samples


def interpolate_for_altitude(sample: WeatherSample, target_altitude: float) -> WeatherSample:
    """
    Extrapolate a surface sample to another altitude

    Temperature follows the standard lapse rate, pressure the barometric
    formula, wind speed a 1/7 power law. Humidity falls linearly and wind
    direction veers slightly above 1000 m.

    Args:
        sample: Source sample (usually at 10 m)
        target_altitude: Altitude to extrapolate to (m)

    Returns:
        WeatherSample at target_altitude
    """
    altitude_difference = target_altitude - sample.altitude
    surface_kelvin = celsius_to_kelvin(sample.temperature)

    temperature = kelvin_to_celsius(surface_kelvin - LAPSE_RATE * altitude_difference)
    pressure = sample.pressure * math.exp(
        -(GRAVITY * MOLAR_MASS_AIR * altitude_difference) / (GAS_CONSTANT * surface_kelvin)
    )
    humidity = min(100.0, max(0.0, sample.humidity - altitude_difference * 0.1))

    if sample.altitude > 0 and target_altitude > 0:
        wind_speed = sample.wind_speed * (target_altitude / sample.altitude) ** (1 / 7)
    else:
        wind_speed = sample.wind_speed

    wind_direction = sample.wind_direction
    if altitude_difference > 1000:
        wind_direction += (altitude_difference / 1000) * 5

    return WeatherSample.from_wind(
        timestamp=sample.timestamp,
        altitude=target_altitude,
        temperature=temperature,
        pressure=pressure,
        humidity=humidity,
        wind_speed=wind_speed,
        wind_direction=wind_direction,
        quality=min(sample.quality, ALTITUDE_QUALITY)
    )


def extrapolate_profile(
    surface_data: Sequence[WeatherSample],
    target_altitudes: Sequence[float]
) -> List[WeatherSample]:
    """Extrapolate every surface sample to every target altitude"""
    return [
        interpolate_for_altitude(sample, altitude)
        for sample in surface_data
        for altitude in target_altitudes
    ]


class OpenMeteoWeatherProvider(ProviderClient):
    """
    Open-Meteo hourly weather for one model endpoint

    The same adapter serves the blended 'forecast' endpoint and the
    model-specific 'gfs' and 'ecmwf' endpoints.
    """

    rate_limit = 100

    def __init__(
        self,
        endpoint: str = "forecast",
        base_url: str = "https://api.open-meteo.com/v1",
        **kwargs
    ):
        """
        Initialize weather provider

        Args:
            endpoint: Open-Meteo endpoint name (forecast, gfs, ecmwf)
            base_url: API base URL
            **kwargs: timeout, client and logger for ProviderClient
        """
        self.endpoint = endpoint
        self.name = f"Open-Meteo/{endpoint}"
        self.base_url = base_url.rstrip('/')
        super().__init__(**kwargs)

    def is_available_for_location(self, lat: float, lng: float) -> bool:
        return -90 <= lat <= 90 and -180 <= lng <= 180

    async def get_weather(self, request: WeatherRequest) -> Dict[str, Any]:
        """
        Fetch the raw hourly response

        Args:
            request: Weather query

        Returns:
            Decoded API response
        """
        params = {
            'latitude': request.latitude,
            'longitude': request.longitude,
            'hourly': ','.join(request.hourly),
            'wind_speed_unit': 'ms',
            'start_date': request.start_date.isoformat(),
            'end_date': request.end_date.isoformat(),
            'timezone': request.timezone
        }

        data = await self._get_json(f"{self.base_url}/{self.endpoint}", params)
        self._validate_response(data)
        return data

    def _validate_response(self, data: Any):
        """Raise DataUnavailableError for error payloads or missing fields"""
        if not isinstance(data, dict):
            raise DataUnavailableError(f"{self.name} returned an unexpected payload", provider=self.name)

        if data.get('error'):
            reason = data.get('reason', 'Unknown error')
            raise DataUnavailableError(f"{self.name} returned error: {reason}", provider=self.name)

        for field in ('latitude', 'longitude', 'hourly'):
            if field not in data:
                raise DataUnavailableError(f"{self.name} response missing '{field}'", provider=self.name)

    def parse_weather_data(self, data: Dict[str, Any]) -> List[WeatherSample]:
        return parse_weather_data(data)

    def interpolate_for_altitude(self, sample: WeatherSample, target_altitude: float) -> WeatherSample:
        return interpolate_for_altitude(sample, target_altitude)
