"""
Dependency injection for FastAPI.
Handles configuration loading and service caching.
"""
import os
from functools import lru_cache
from typing import Any, Dict

import httpx

from api.services.elevation_service import ElevationService
from api.services.terrain_integration import TerrainIntegrationService
from api.services.weather_selection import WeatherSelectionService
from api.services.weather_service import WeatherService
from flightpath.config import load_config
from flightpath.utils.helpers import load_yaml
from flightpath.utils.logger import configure_logging

BASE_DIR = os.path.join(os.path.dirname(__file__), "..")


@lru_cache()
def get_api_config() -> Dict[str, Any]:
    """Load the 'api' block of config/api.yaml once."""
    return load_yaml(os.path.join(BASE_DIR, "config", "api.yaml"))["api"]


@lru_cache()
def get_prediction_config() -> Dict[str, Any]:
    """
    Load prediction configuration once and install its logging settings.

    The PREDICTION_CONFIG environment variable overrides the path named in
    config/api.yaml.
    """
    path = os.environ.get("PREDICTION_CONFIG")
    if not path:
        configured = get_api_config().get("prediction_config")
        path = os.path.join(BASE_DIR, configured) if configured else None

    config = load_config(path)
    configure_logging(config.get("logging"))
    return config


@lru_cache()
def get_http_client() -> httpx.AsyncClient:
    """Shared HTTP client for all providers. Closed on application shutdown."""
    return httpx.AsyncClient(follow_redirects=True)


@lru_cache()
def get_elevation_service() -> ElevationService:
    return ElevationService(config=get_prediction_config(), client=get_http_client())


@lru_cache()
def get_weather_service() -> WeatherService:
    return WeatherService(config=get_prediction_config(), client=get_http_client())


@lru_cache()
def get_terrain_service() -> TerrainIntegrationService:
    return TerrainIntegrationService(
        elevation_service=get_elevation_service(),
        weather_service=get_weather_service(),
        config=get_prediction_config()
    )


@lru_cache()
def get_selection_service() -> WeatherSelectionService:
    return WeatherSelectionService(
        weather_service=get_weather_service(),
        config=get_prediction_config()
    )


def clear_service_cache():
    """Drop every cached service so the next request rebuilds them."""
    for factory in (
        get_selection_service,
        get_terrain_service,
        get_weather_service,
        get_elevation_service,
        get_http_client,
        get_prediction_config,
    ):
        factory.cache_clear()
