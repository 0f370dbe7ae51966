"""Geometry Pydantic models for geopricing.

Coordinates, polygons and measurement results produced by the
spherical geometry engine. All models here are immutable: a changed
polygon is re-measured, never patched.
"""

from typing import List

from pydantic import BaseModel, Field


class Coordinate(BaseModel):
    """WGS84 coordinate in decimal degrees."""

    lat: float = Field(..., ge=-90, le=90, description="Latitude (degrees)")
    lng: float = Field(..., ge=-180, le=180, description="Longitude (degrees)")

    class Config:
        frozen = True


Polygon = List[Coordinate]


class MeasurementResult(BaseModel):
    """Perimeter and area of a closed polygon."""

    perimeter_meters: float = Field(..., ge=0, alias="perimeterMeters")
    perimeter_feet: float = Field(..., ge=0, alias="perimeterFeet")
    area_square_meters: float = Field(..., ge=0, alias="areaSquareMeters")
    area_square_feet: float = Field(..., ge=0, alias="areaSquareFeet")
    acres: float = Field(..., ge=0)

    class Config:
        frozen = True
        populate_by_name = True


class SegmentMeasurement(BaseModel):
    """Length and initial bearing of one polygon edge."""

    distance_meters: float = Field(..., ge=0, alias="distanceMeters")
    bearing: float = Field(..., ge=0, lt=360, description="Initial bearing (degrees)")

    class Config:
        frozen = True
        populate_by_name = True


class MeasurementSummary(BaseModel):
    """Measurement plus display strings and per-edge breakdown."""

    measurement: MeasurementResult
    perimeter_formatted: str = Field(..., alias="perimeterFormatted")
    area_formatted: str = Field(..., alias="areaFormatted")
    segments: List[SegmentMeasurement] = Field(default_factory=list)

    class Config:
        frozen = True
        populate_by_name = True
