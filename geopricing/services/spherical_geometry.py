"""
Spherical Geometry Engine for geopricing.

Geodesic distance, perimeter, area and bearing of property polygons on a
spherical earth. Results are meant to agree with reference spherical-earth
measuring tools, so a single radius is used everywhere.

Architecture:
- Haversine great-circle distance for edges
- Spherical excess summation for polygon area
- Polygons are implicitly closed (last vertex connects to first)

Constants:
- Earth radius: 6,378,137 m (WGS84 equatorial)
- 1 m = 3.28084 ft, 1 m² = 10.7639 ft², 1 acre = 43,560 ft²
"""

import math
from typing import Dict, List, Sequence

import structlog

from geopricing.config.errors import InvalidPolygonError
from geopricing.models.geometry import (
    Coordinate,
    MeasurementResult,
    MeasurementSummary,
    SegmentMeasurement,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

EARTH_RADIUS_METERS = 6378137.0
FEET_PER_METER = 3.28084
SQ_FEET_PER_SQ_METER = 10.7639
SQ_FEET_PER_ACRE = 43560.0
FEET_PER_MILE = 5280.0


def _to_radians(degrees: float) -> float:
    return degrees * (math.pi / 180)


def _to_degrees(radians: float) -> float:
    return radians * (180 / math.pi)


def _is_closed(coordinates: Sequence[Coordinate]) -> bool:
    first, last = coordinates[0], coordinates[-1]
    return first.lat == last.lat and first.lng == last.lng


def close_polygon(coordinates: Sequence[Coordinate]) -> List[Coordinate]:
    """Return the polygon with its first vertex repeated at the end, if missing."""
    closed = list(coordinates)
    if closed and not _is_closed(closed):
        closed.append(closed[0])
    return closed


class SphericalGeometryEngine:
    """Geodesic measurements on a sphere of radius EARTH_RADIUS_METERS.

    Stateless; one instance can be shared across concurrent requests.
    """

    def __init__(self, radius_meters: float = EARTH_RADIUS_METERS):
        self.radius_meters = radius_meters

    # -------------------------------------------------------------------------
    # Distances
    # -------------------------------------------------------------------------

    def distance_meters(self, point1: Coordinate, point2: Coordinate) -> float:
        """Haversine great-circle distance in meters."""
        lat1 = _to_radians(point1.lat)
        lat2 = _to_radians(point2.lat)
        delta_lat = _to_radians(point2.lat - point1.lat)
        delta_lng = _to_radians(point2.lng - point1.lng)

        a = (
            math.sin(delta_lat / 2) ** 2
            + math.cos(lat1) * math.cos(lat2) * math.sin(delta_lng / 2) ** 2
        )
        c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))

        return self.radius_meters * c

    def distance(self, point1: Coordinate, point2: Coordinate) -> float:
        """Haversine great-circle distance in feet."""
        return self.distance_meters(point1, point2) * FEET_PER_METER

    def perimeter(self, coordinates: Sequence[Coordinate]) -> Dict[str, float]:
        """
        Perimeter of a closed polygon.

        Sums consecutive edges and, for more than two vertices, the closing
        edge from the last vertex back to the first.

        Args:
            coordinates: Polygon vertices (closing vertex optional)

        Returns:
            Dict with "meters" and "feet"; zeros for fewer than 2 vertices
        """
        if len(coordinates) < 2:
            return {"meters": 0.0, "feet": 0.0}

        total = sum(
            self.distance_meters(coordinates[i], coordinates[i + 1])
            for i in range(len(coordinates) - 1)
        )

        if len(coordinates) > 2:
            total += self.distance_meters(coordinates[-1], coordinates[0])

        return {"meters": total, "feet": total * FEET_PER_METER}

    def path_distance(self, coordinates: Sequence[Coordinate]) -> Dict[str, float]:
        """Length of an open path (no closing edge)."""
        if len(coordinates) < 2:
            return {"meters": 0.0, "feet": 0.0}

        total = sum(
            self.distance_meters(coordinates[i], coordinates[i + 1])
            for i in range(len(coordinates) - 1)
        )
        return {"meters": total, "feet": total * FEET_PER_METER}

    # -------------------------------------------------------------------------
    # Area
    # -------------------------------------------------------------------------

    def _spherical_excess(self, path: Sequence[Coordinate]) -> float:
        """Signed spherical excess (steradians) of a closed path."""
        excess = 0.0
        for v in range(len(path) - 1):
            phi1 = _to_radians(path[v].lat)
            phi2 = _to_radians(path[v + 1].lat)
            delta_lambda = _to_radians(path[v + 1].lng - path[v].lng)

            t1 = math.tan(phi1 / 2)
            t2 = math.tan(phi2 / 2)
            excess += 2 * math.atan2(
                math.tan(delta_lambda / 2) * (t1 + t2),
                1 + t1 * t2,
            )
        return excess

    def area(self, coordinates: Sequence[Coordinate]) -> Dict[str, float]:
        """
        Area of a polygon by spherical excess.

        Args:
            coordinates: Polygon vertices (closing vertex optional)

        Returns:
            Dict with "square_meters", "square_feet" and "acres"; zeros for
            fewer than 3 vertices
        """
        if len(coordinates) < 3:
            return {"square_meters": 0.0, "square_feet": 0.0, "acres": 0.0}

        path = close_polygon(coordinates)
        square_meters = abs(self._spherical_excess(path) * self.radius_meters ** 2)
        square_feet = square_meters * SQ_FEET_PER_SQ_METER

        return {
            "square_meters": square_meters,
            "square_feet": square_feet,
            "acres": square_feet / SQ_FEET_PER_ACRE,
        }

    # -------------------------------------------------------------------------
    # Bearing
    # -------------------------------------------------------------------------

    def bearing(self, point1: Coordinate, point2: Coordinate) -> float:
        """Initial bearing from point1 to point2, degrees in [0, 360)."""
        lat1 = _to_radians(point1.lat)
        lat2 = _to_radians(point2.lat)
        delta_lng = _to_radians(point2.lng - point1.lng)

        x = math.sin(delta_lng) * math.cos(lat2)
        y = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(delta_lng)

        return (_to_degrees(math.atan2(x, y)) + 360) % 360

    # -------------------------------------------------------------------------
    # Combined measurements
    # -------------------------------------------------------------------------

    def measure(self, coordinates: Sequence[Coordinate]) -> MeasurementResult:
        """
        Measure a property polygon.

        Unlike perimeter()/area(), this refuses polygons that cannot have an
        area instead of returning zeros.

        Raises:
            InvalidPolygonError: If fewer than 3 vertices are supplied
        """
        vertex_count = len(coordinates)
        if vertex_count >= 3 and _is_closed(coordinates):
            vertex_count -= 1

        if vertex_count < 3:
            raise InvalidPolygonError(
                f"Polygon needs at least 3 vertices to be measured, got {vertex_count}",
                vertex_count=vertex_count,
            )

        perimeter = self.perimeter(coordinates)
        area = self.area(coordinates)

        logger.debug(
            "polygon_measured",
            vertices=vertex_count,
            perimeter_m=round(perimeter["meters"], 2),
            area_m2=round(area["square_meters"], 2),
        )

        return MeasurementResult(
            perimeter_meters=perimeter["meters"],
            perimeter_feet=perimeter["feet"],
            area_square_meters=area["square_meters"],
            area_square_feet=area["square_feet"],
            acres=area["acres"],
        )

    def segments(self, coordinates: Sequence[Coordinate]) -> List[SegmentMeasurement]:
        """Length and bearing of every edge, including the closing edge."""
        result = [
            SegmentMeasurement(
                distance_meters=self.distance_meters(coordinates[i], coordinates[i + 1]),
                bearing=self.bearing(coordinates[i], coordinates[i + 1]),
            )
            for i in range(len(coordinates) - 1)
        ]

        if len(coordinates) > 2:
            result.append(
                SegmentMeasurement(
                    distance_meters=self.distance_meters(coordinates[-1], coordinates[0]),
                    bearing=self.bearing(coordinates[-1], coordinates[0]),
                )
            )
        return result

    def measurement_summary(self, coordinates: Sequence[Coordinate]) -> MeasurementSummary:
        """Measurement with display strings and per-edge breakdown."""
        measurement = self.measure(coordinates)
        return MeasurementSummary(
            measurement=measurement,
            perimeter_formatted=format_distance(measurement.perimeter_meters),
            area_formatted=format_area(measurement.area_square_meters),
            segments=self.segments(coordinates),
        )


# =============================================================================
# Formatting and validation helpers
# =============================================================================


def format_area(square_meters: float) -> str:
    """
    Format an area with the unit a map measuring tool would show.

    >= 0.5 acres -> acres, >= 5,000 sq ft -> sq ft, >= 100 m² -> sq m,
    otherwise sq m with two decimals.
    """
    square_feet = square_meters * SQ_FEET_PER_SQ_METER
    acres = square_feet / SQ_FEET_PER_ACRE

    if acres >= 0.5:
        return f"{acres:.2f} acres"
    if square_feet >= 5000:
        return f"{square_feet:,.0f} sq ft"
    if square_meters >= 100:
        return f"{square_meters:,.0f} sq m"
    return f"{square_meters:.2f} sq m"


def format_distance(meters: float) -> str:
    """
    Format a distance with the unit a map measuring tool would show.

    >= 0.5 mi -> mi, >= 1,000 ft -> ft, >= 100 m -> m, otherwise m with
    two decimals.
    """
    feet = meters * FEET_PER_METER
    miles = feet / FEET_PER_MILE

    if miles >= 0.5:
        return f"{miles:.2f} mi"
    if feet >= 1000:
        return f"{feet:,.0f} ft"
    if meters >= 100:
        return f"{meters:,.0f} m"
    return f"{meters:.2f} m"


def validate_measurement(calculated: float, expected: float, tolerance: float = 0.01) -> Dict[str, float]:
    """
    Compare a measurement with a reference value.

    Args:
        calculated: Value from this engine
        expected: Reference value (must be non-zero)
        tolerance: Allowed relative difference (0.01 = 1%)

    Returns:
        Dict with "valid", "difference" and "percent_diff"
    """
    if expected == 0:
        raise ValueError("expected must be non-zero")

    difference = abs(calculated - expected)
    percent_diff = difference / abs(expected) * 100

    return {
        "valid": percent_diff <= tolerance * 100,
        "difference": difference,
        "percent_diff": percent_diff,
    }
