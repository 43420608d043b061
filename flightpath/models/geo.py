"""
Pydantic models for geographic positions.
"""
from typing import Optional

from pydantic import BaseModel, Field


class GeoPoint(BaseModel):
    """Geographic point with optional altitude."""

    latitude: float = Field(..., ge=-90, le=90, description="Latitude coordinate")
    longitude: float = Field(..., ge=-180, le=180, description="Longitude coordinate")
    altitude: Optional[float] = Field(default=None, description="Altitude above sea level (m)")

    model_config = {
        "frozen": True,
        "json_schema_extra": {
            "examples": [
                {
                    "latitude": 39.74,
                    "longitude": -104.98,
                    "altitude": 1609.0
                }
            ]
        }
    }


class Position(BaseModel):
    """Surface position with ground elevation."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    elevation: float = Field(default=0.0, description="Ground elevation (m)")

    model_config = {"frozen": True}
