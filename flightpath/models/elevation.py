"""
Pydantic models for elevation data.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from flightpath.models.geo import GeoPoint


class ElevationSample(BaseModel):
    """Ground elevation returned by one provider. Immutable once fetched."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    elevation: float = Field(..., description="Elevation above sea level (m)")
    data_source: str = Field(..., description="Provider that produced the sample")
    timestamp: datetime = Field(..., description="Fetch time (UTC)")

    model_config = {"frozen": True}


class BatchElevationResult(BaseModel):
    """Result of a batch elevation request with per-coordinate failures."""

    results: List[ElevationSample] = Field(default_factory=list)
    failed_coordinates: List[GeoPoint] = Field(default_factory=list)
    status: Literal["OK", "PARTIAL", "ERROR"] = "OK"
    provider: Optional[str] = None
    error: Optional[str] = None
