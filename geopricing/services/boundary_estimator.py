"""Property Boundary Estimator for geopricing.

Produces a plausible boundary polygon, acreage and surface breakdown for a
property when no drawn or measured polygon exists.

Estimation order:
1. Static reference table of known large properties (confidence 0.92)
2. Address-text patterns such as "side road" or "court" (confidence 0.75)

The polygon is an irregular ellipse of the estimated area. Vertex jitter
comes from an injectable random source, so a seeded source reproduces the
same polygon for the same input.
"""

import math
import re
from typing import Dict, List, Optional, Protocol, Tuple

import numpy as np
import structlog

from geopricing.config.errors import InvalidPolygonError
from geopricing.models.geometry import Coordinate
from geopricing.models.property import (
    EstimateSource,
    PropertyCharacteristics,
    PropertyFeatures,
    PropertyIntelligence,
    PropertyType,
)
from geopricing.services.spherical_geometry import (
    SQ_FEET_PER_ACRE,
    SQ_FEET_PER_SQ_METER,
    SphericalGeometryEngine,
)

logger = structlog.get_logger(__name__)


class RandomSource(Protocol):
    """Anything with uniform(low, high): numpy Generator, random.Random."""

    def uniform(self, low: float, high: float) -> float:
        ...


# =============================================================================
# CONSTANTS
# =============================================================================

METERS_PER_DEGREE_LAT = 111320.0

REFERENCE_CONFIDENCE = 0.92
PATTERN_CONFIDENCE = 0.75

MIN_VERTICES = 8
MAX_VERTICES = 16
RADIUS_JITTER = 0.2  # +/-20% of base radius

# Reference-table properties are drawn 2:3 (width:depth)
REFERENCE_ASPECT_RATIO = 2 / 3


# =============================================================================
# REFERENCE DATA - KNOWN LARGE PROPERTIES
# =============================================================================


class ReferenceProperty:
    """Known property with surveyed acreage and characteristics."""

    def __init__(
        self,
        address: str,
        property_type: PropertyType,
        estimated_acres: float,
        characteristics: PropertyCharacteristics,
    ):
        self.address = address
        self.property_type = property_type
        self.estimated_acres = estimated_acres
        self.characteristics = characteristics


REFERENCE_PROPERTIES: Dict[str, ReferenceProperty] = {
    "6698 castlederg": ReferenceProperty(
        address="6698 Castlederg Side Road, ON L7C 3A1",
        property_type=PropertyType.ESTATE,
        estimated_acres=5.2,
        characteristics=PropertyCharacteristics(
            has_large_lawn=True,
            has_forest=True,
            has_pond=False,
            has_long_driveway=True,
            multiple_structures=True,
        ),
    ),
    "12072 woodbine": ReferenceProperty(
        address="12072 Woodbine Avenue, Gormley, ON L0H 1G0",
        property_type=PropertyType.LARGE_RESIDENTIAL,
        estimated_acres=2.8,
        characteristics=PropertyCharacteristics(
            has_large_lawn=True,
            has_forest=False,
            has_pond=False,
            has_long_driveway=True,
            multiple_structures=False,
        ),
    ),
}


# (pattern, property type, acreage low, acreage high), first match wins
ADDRESS_PATTERNS: List[Tuple[re.Pattern, PropertyType, float, float]] = [
    (re.compile(r"\b(side road|sideroad|concession|line)\b"), PropertyType.ESTATE, 3.5, 5.5),
    (re.compile(r"\b(farm|ranch)\b"), PropertyType.FARM, 10.0, 30.0),
    (re.compile(r"\b(estate|estates|manor)\b"), PropertyType.ESTATE, 2.0, 5.0),
    (re.compile(r"\b(court|crescent)\b"), PropertyType.STANDARD, 0.15, 0.25),
]

DEFAULT_ACRES = 0.25

# Fractions of total area per feature; remainder goes to agricultural/other
FEATURE_FRACTIONS: Dict[PropertyType, Dict[str, float]] = {
    PropertyType.ESTATE: {"lawn": 0.60, "forest": 0.20, "structures": 0.08, "driveway": 0.05},
    PropertyType.FARM: {"lawn": 0.30, "structures": 0.05, "driveway": 0.03},
    PropertyType.LARGE_RESIDENTIAL: {"lawn": 0.50, "structures": 0.05, "driveway": 0.02},
    PropertyType.COMMERCIAL: {"lawn": 0.15, "structures": 0.45, "driveway": 0.30},
    PropertyType.STANDARD: {"lawn": 0.60, "structures": 0.08, "driveway": 0.05},
}


# =============================================================================
# FEATURE DISTRIBUTION
# =============================================================================


def _with_remainder(features: Dict[str, float], total_sq_ft: float) -> PropertyFeatures:
    allocated = sum(features.values())
    if allocated < total_sq_ft:
        features["agricultural"] = features.get("agricultural", 0.0) + (total_sq_ft - allocated)
    return PropertyFeatures(**features)


def features_for_type(property_type: PropertyType, total_sq_ft: float) -> PropertyFeatures:
    """Distribute area over features using the fixed per-type fractions."""
    fractions = FEATURE_FRACTIONS[property_type]
    features = {name: total_sq_ft * fraction for name, fraction in fractions.items()}
    return _with_remainder(features, total_sq_ft)


def features_for_characteristics(
    characteristics: PropertyCharacteristics,
    total_sq_ft: float,
) -> PropertyFeatures:
    """Distribute area over features using known property characteristics."""
    lawn = total_sq_ft * (0.5 if characteristics.has_large_lawn else 0.3)
    forest = 0.0
    if characteristics.has_forest:
        forest = total_sq_ft * 0.25
        lawn *= 0.7

    features = {
        "lawn": lawn,
        "forest": forest,
        "water": total_sq_ft * 0.05 if characteristics.has_pond else 0.0,
        "structures": total_sq_ft * (0.10 if characteristics.multiple_structures else 0.05),
        "driveway": total_sq_ft * (0.02 if characteristics.has_long_driveway else 0.01),
    }
    return _with_remainder(features, total_sq_ft)


# =============================================================================
# ESTIMATOR
# =============================================================================


class PropertyBoundaryEstimator:
    """Estimate a property's boundary and features from its address.

    Output is an estimate only and must not be treated as equivalent to a
    drawn or measured polygon.
    """

    def __init__(
        self,
        rng: Optional[RandomSource] = None,
        geometry: Optional[SphericalGeometryEngine] = None,
        reference_properties: Optional[Dict[str, ReferenceProperty]] = None,
    ):
        """Initialize the estimator.

        Args:
            rng: Random source for acreage and vertex jitter. Defaults to an
                unseeded numpy Generator; pass a seeded one for reproducible
                output.
            geometry: Engine used to validate generated polygons.
            reference_properties: Known-property table keyed by
                "<number> <street>" in lower case.
        """
        self._rng = rng if rng is not None else np.random.default_rng()
        self._geometry = geometry or SphericalGeometryEngine()
        self._reference = REFERENCE_PROPERTIES if reference_properties is None else reference_properties

    def estimate(self, address: str, center: Coordinate) -> PropertyIntelligence:
        """
        Estimate boundary, acreage and features for an address.

        Args:
            address: Free-text street address
            center: Geocoded center of the property

        Returns:
            PropertyIntelligence with is_estimate=True
        """
        reference = self.match_reference(address)
        if reference is not None:
            return self._from_reference(reference, center)
        return self._from_patterns(address, center)

    def match_reference(self, address: str) -> Optional[ReferenceProperty]:
        """Find a reference property by exact key or both key tokens."""
        normalized = address.lower()
        for key, reference in self._reference.items():
            if key in normalized:
                return reference
            tokens = key.split()
            if len(tokens) >= 2 and tokens[0] in normalized and tokens[1] in normalized:
                return reference
        return None

    def classify_address(self, address: str) -> Tuple[PropertyType, float]:
        """Property type and acreage implied by address wording."""
        normalized = address.lower()
        for pattern, property_type, low, high in ADDRESS_PATTERNS:
            if pattern.search(normalized):
                return property_type, low + self._uniform(0.0, high - low)
        return PropertyType.STANDARD, DEFAULT_ACRES

    def generate_boundaries(
        self,
        center: Coordinate,
        acres: float,
        aspect_ratio: float = 1.0,
    ) -> List[Coordinate]:
        """
        Irregular closed polygon approximating an ellipse of the given area.

        Args:
            center: Polygon center
            acres: Target area in acres
            aspect_ratio: East-west to north-south axis ratio

        Returns:
            8-16 vertices (more for larger properties), not repeated at end
        """
        square_meters = acres * SQ_FEET_PER_ACRE / SQ_FEET_PER_SQ_METER
        base_radius = math.sqrt(square_meters / math.pi)
        semi_x = base_radius * math.sqrt(aspect_ratio)
        semi_y = base_radius / math.sqrt(aspect_ratio)

        meters_per_degree_lng = METERS_PER_DEGREE_LAT * math.cos(math.radians(center.lat))
        num_points = min(MAX_VERTICES, max(MIN_VERTICES, math.floor(acres * 2)))

        boundaries = []
        for i in range(num_points):
            angle = (i / num_points) * 2 * math.pi
            variation = self._uniform(1 - RADIUS_JITTER, 1 + RADIUS_JITTER)
            dx = semi_x * math.cos(angle) * variation
            dy = semi_y * math.sin(angle) * variation
            boundaries.append(
                Coordinate(
                    lat=center.lat + dy / METERS_PER_DEGREE_LAT,
                    lng=center.lng + dx / meters_per_degree_lng,
                )
            )
        return boundaries

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _uniform(self, low: float, high: float) -> float:
        return float(self._rng.uniform(low, high))

    def _validated_boundaries(
        self,
        center: Coordinate,
        acres: float,
        aspect_ratio: float = 1.0,
    ) -> List[Coordinate]:
        boundaries = self.generate_boundaries(center, acres, aspect_ratio)
        area = self._geometry.area(boundaries)
        if area["square_meters"] <= 0:
            raise InvalidPolygonError(
                "Generated boundary has no area",
                vertex_count=len(boundaries),
            )

        logger.debug(
            "boundary_generated",
            vertices=len(boundaries),
            target_acres=round(acres, 3),
            polygon_acres=round(area["acres"], 3),
        )
        return boundaries

    def _from_reference(self, reference: ReferenceProperty, center: Coordinate) -> PropertyIntelligence:
        acres = reference.estimated_acres
        square_feet = acres * SQ_FEET_PER_ACRE

        logger.info(
            "property_estimated",
            source=EstimateSource.REFERENCE_TABLE.value,
            property_type=reference.property_type.value,
            acres=acres,
        )

        return PropertyIntelligence(
            boundaries=self._validated_boundaries(center, acres, REFERENCE_ASPECT_RATIO),
            acreage=acres,
            square_feet=square_feet,
            property_type=reference.property_type,
            confidence=REFERENCE_CONFIDENCE,
            features=features_for_characteristics(reference.characteristics, square_feet),
            source=EstimateSource.REFERENCE_TABLE,
        )

    def _from_patterns(self, address: str, center: Coordinate) -> PropertyIntelligence:
        property_type, acres = self.classify_address(address)
        square_feet = acres * SQ_FEET_PER_ACRE

        logger.info(
            "property_estimated",
            source=EstimateSource.ADDRESS_PATTERN.value,
            property_type=property_type.value,
            acres=round(acres, 3),
        )

        return PropertyIntelligence(
            boundaries=self._validated_boundaries(center, acres),
            acreage=acres,
            square_feet=square_feet,
            property_type=property_type,
            confidence=PATTERN_CONFIDENCE,
            features=features_for_type(property_type, square_feet),
            source=EstimateSource.ADDRESS_PATTERN,
        )


# =============================================================================
# DISPLAY HELPERS
# =============================================================================


def format_acreage(acres: float) -> str:
    """Format acreage as square feet with an acre hint."""
    square_feet = f"{acres * SQ_FEET_PER_ACRE:,.0f} sq ft"
    if acres < 0.5:
        return square_feet
    if acres < 1:
        fraction = "¼" if acres < 0.35 else "½" if acres < 0.6 else "¾"
        return f"{square_feet} ({fraction} acre)"
    if acres == math.floor(acres):
        unit = "acre" if acres == 1 else "acres"
        return f"{square_feet} ({int(acres)} {unit})"
    return f"{square_feet} ({acres:.1f} acres)"


def property_summary(intelligence: PropertyIntelligence) -> str:
    """One-line description such as '... estate property with wooded area'."""
    summary = f"{format_acreage(intelligence.acreage)} {intelligence.property_type.value} property"

    if intelligence.features.forest > 0:
        summary += " with wooded area"
    if intelligence.features.water > 0:
        summary += " and water feature"
    if intelligence.confidence < 0.8:
        summary += " (estimated)"

    return summary
