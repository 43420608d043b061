"""
Prediction endpoints for balloon trajectories.
"""
import time

from fastapi import APIRouter, Depends, HTTPException, status

from api.dependencies import get_api_config, get_terrain_service
from api.errors import to_http_exception
from api.models.prediction import PredictionRequest, PredictionResponse
from api.services.terrain_integration import TerrainIntegrationService
from flightpath.exceptions import PredictionError
from flightpath.models.terrain_prediction import TerrainPredictionMetrics
from flightpath.utils.helpers import utc_now
from flightpath.utils.logger import get_logger

router = APIRouter()
logger = get_logger()


@router.post(
    "/predictions",
    response_model=PredictionResponse,
    status_code=status.HTTP_200_OK,
    summary="Predict balloon trajectory",
    description="Terrain-aware trajectory, burst and landing prediction from weather and elevation data"
)
async def predict_trajectory(
    request: PredictionRequest,
    service: TerrainIntegrationService = Depends(get_terrain_service)
):
    """
    Generate a terrain-enhanced trajectory prediction.

    Process:
    1. Validate terrain configuration and flight parameters
    2. Fetch weather for the flight window (physics-only when unavailable)
    3. Sample the elevation grid around the launch site
    4. Integrate ascent and descent, then analyse terrain along the track
    5. Return the prediction with adjustments, landing sites and warnings

    Args:
        request: Launch, balloon and terrain parameters

    Returns:
        PredictionResponse: Landing summary with the full prediction

    Raises:
        422: Invalid terrain configuration or flight parameters
        503: Every data provider failed
        504: Prediction exceeded its timeout
        500: Prediction error
    """
    started = time.perf_counter()
    timeout = request.timeout or get_api_config().get("request_timeout")

    try:
        result = await service.calculate_terrain_enhanced_prediction(request.to_input(), timeout=timeout)
    except PredictionError as e:
        raise to_http_exception(e)
    except Exception as e:
        logger.error(f"Prediction failed: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Prediction error: {str(e)}"
        )

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(
        f"Prediction complete in {elapsed_ms:.0f}ms: landing {result.landing_site.latitude:.4f}, "
        f"{result.landing_site.longitude:.4f} (confidence {result.confidence:.2f})"
    )
    return PredictionResponse.from_result(result, elapsed_ms, utc_now())


@router.get(
    "/predictions/metrics",
    response_model=TerrainPredictionMetrics,
    summary="Last prediction metrics",
    description="Timing and data volume of the most recent terrain analysis"
)
async def prediction_metrics(service: TerrainIntegrationService = Depends(get_terrain_service)):
    return service.get_metrics()
