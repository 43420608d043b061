"""
Elevation lookup endpoints.
"""
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, status

from api.dependencies import get_elevation_service
from api.errors import to_http_exception
from api.models.prediction import ElevationResponse
from api.services.elevation_service import ElevationService
from flightpath.exceptions import PredictionError
from flightpath.models.elevation import BatchElevationResult
from flightpath.models.geo import GeoPoint

router = APIRouter()

MAX_BATCH_COORDINATES = 1000


@router.get(
    "/elevation",
    response_model=ElevationResponse,
    summary="Ground elevation",
    description="Elevation at one coordinate from the best provider available there"
)
async def get_elevation(
    latitude: float = Query(..., ge=-90, le=90, description="Latitude coordinate"),
    longitude: float = Query(..., ge=-180, le=180, description="Longitude coordinate"),
    service: ElevationService = Depends(get_elevation_service)
):
    """
    Raises:
        503: Every provider failed
    """
    try:
        sample = await service.get_elevation(latitude, longitude)
    except PredictionError as e:
        raise to_http_exception(e)

    return ElevationResponse(**sample.model_dump())


@router.post(
    "/elevation/batch",
    response_model=BatchElevationResult,
    summary="Batch ground elevation",
    description="Elevations for many coordinates, reporting per-coordinate failures"
)
async def get_batch_elevation(
    coordinates: List[GeoPoint],
    service: ElevationService = Depends(get_elevation_service)
):
    if len(coordinates) > MAX_BATCH_COORDINATES:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"At most {MAX_BATCH_COORDINATES} coordinates per request"
        )
    return await service.get_batch_elevation(coordinates)
