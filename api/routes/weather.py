"""
Weather selection endpoints.
"""
from fastapi import APIRouter, Depends, status

from api.dependencies import get_selection_service
from api.services.weather_selection import WeatherSelectionService
from flightpath.models.selection import WeatherSelectionRequest, WeatherSelectionResult

router = APIRouter()


@router.post(
    "/weather/selection",
    response_model=WeatherSelectionResult,
    status_code=status.HTTP_200_OK,
    summary="Select weather data for a flight",
    description="Pick a forecast window and model, then fetch and interpolate weather along the expected trajectory"
)
async def select_weather(
    request: WeatherSelectionRequest,
    service: WeatherSelectionService = Depends(get_selection_service)
):
    """
    Select weather data for a planned flight.

    Selection never raises: failures come back with success=False, a
    fallback model and warnings describing what went wrong.

    Args:
        request: Launch time, location, balloon and preferences

    Returns:
        WeatherSelectionResult
    """
    return await service.select_weather_data(request)
