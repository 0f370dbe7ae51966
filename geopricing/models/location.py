"""Location collaborator Pydantic models.

Results returned by geocoding and drive-time providers.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from geopricing.models.geometry import Coordinate


class GeocodeResult(BaseModel):
    """Resolved address."""

    coordinate: Coordinate
    formatted_address: str = Field(..., alias="formattedAddress")
    city: Optional[str] = None
    postal_code: Optional[str] = Field(default=None, alias="postalCode")

    class Config:
        populate_by_name = True


class DriveTimeResult(BaseModel):
    """Drive time between a service origin and a customer."""

    drive_time_minutes: float = Field(..., ge=0, alias="driveTimeMinutes")
    distance_meters: float = Field(..., ge=0, alias="distanceMeters")
    distance_text: str = Field(..., alias="distanceText")
    duration_text: str = Field(..., alias="durationText")
    calculated_at: datetime = Field(..., alias="calculatedAt")
    from_cache: bool = Field(default=False, alias="fromCache")
    estimated: bool = Field(default=False, description="True when derived from straight-line distance")

    class Config:
        populate_by_name = True
