"""
Health check endpoint for monitoring API status.
"""
from fastapi import APIRouter, Depends, status
import httpx

from api.dependencies import get_elevation_service, get_prediction_config, get_weather_service
from api.services.elevation_service import ElevationService
from api.services.weather_service import WeatherService
from flightpath.config import get_section
from flightpath.utils.helpers import utc_now

router = APIRouter()


@router.get("/health", status_code=status.HTTP_200_OK)
async def health_check(
    check_upstream: bool = False,
    elevation_service: ElevationService = Depends(get_elevation_service),
    weather_service: WeatherService = Depends(get_weather_service),
    config: dict = Depends(get_prediction_config)
):
    """
    Health check endpoint to verify API status.

    Args:
        check_upstream: Also ping the Open-Meteo forecast API

    Returns:
        dict: Providers, cache statistics and optional weather API status
    """
    health_status = {
        "status": "healthy",
        "timestamp": utc_now().isoformat(),
        "elevation": {
            "providers": elevation_service.get_available_providers(),
            "cache": elevation_service.get_cache_stats()
        },
        "weather": {
            "providers": weather_service.get_available_providers(),
            "cache": weather_service.get_cache_stats()
        },
        "weather_api": "unchecked"
    }

    if not health_status["elevation"]["providers"] or not health_status["weather"]["providers"]:
        health_status["status"] = "degraded"

    if check_upstream:
        base_url = get_section(config, 'weather_service').get('base_url', 'https://api.open-meteo.com/v1')
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(
                    f"{base_url}/forecast",
                    params={"latitude": 39.74, "longitude": -104.98, "current": "temperature_2m"}
                )
            health_status["weather_api"] = "available" if response.status_code == 200 else f"error: {response.status_code}"
        except httpx.HTTPError as e:
            health_status["weather_api"] = f"error: {str(e)}"
            health_status["status"] = "degraded"

    return health_status
