"""
Unit Tests for the Property Boundary Estimator.

Tests:
- Reference-table matches win over address patterns
- Address patterns pick type and acreage range
- Seeded random sources reproduce the same polygon
- Feature areas never exceed the property area
- Display helpers
"""

import random

import numpy as np
import pytest

from geopricing.models.property import EstimateSource, PropertyCharacteristics, PropertyType
from geopricing.services.boundary_estimator import (
    DEFAULT_ACRES,
    MAX_VERTICES,
    MIN_VERTICES,
    PATTERN_CONFIDENCE,
    REFERENCE_CONFIDENCE,
    PropertyBoundaryEstimator,
    features_for_characteristics,
    features_for_type,
    format_acreage,
    property_summary,
)
from geopricing.services.spherical_geometry import SQ_FEET_PER_ACRE, SphericalGeometryEngine


class MidpointRandom:
    """Random source that always returns the middle of the range."""

    def uniform(self, low, high):
        return (low + high) / 2


@pytest.fixture
def estimator(seeded_rng):
    return PropertyBoundaryEstimator(rng=seeded_rng)


class TestReferenceProperties:
    """Tests for reference-table estimates."""

    def test_castlederg_reference(self, estimator, toronto_center):
        result = estimator.estimate("6698 Castlederg Side Road, Caledon, ON", toronto_center)

        assert result.source == EstimateSource.REFERENCE_TABLE
        assert result.property_type == PropertyType.ESTATE
        assert result.acreage == 5.2
        assert result.square_feet == pytest.approx(5.2 * SQ_FEET_PER_ACRE)
        assert result.confidence == REFERENCE_CONFIDENCE
        assert result.is_estimate is True
        assert result.features.forest > 0

    def test_reference_vertex_count(self, estimator, toronto_center):
        result = estimator.estimate("6698 Castlederg Side Road", toronto_center)
        assert len(result.boundaries) == 10

    def test_partial_address_tokens_match(self, estimator):
        reference = estimator.match_reference("12072 Highway 48 at Woodbine")
        assert reference is not None
        assert reference.property_type == PropertyType.LARGE_RESIDENTIAL

    def test_custom_reference_table(self, seeded_rng):
        estimator = PropertyBoundaryEstimator(rng=seeded_rng, reference_properties={})
        assert estimator.match_reference("6698 Castlederg Side Road") is None


class TestAddressPatterns:
    """Tests for address-pattern estimates."""

    def test_side_road_is_estate(self, estimator, toronto_center):
        result = estimator.estimate("1234 King Side Road", toronto_center)
        assert result.source == EstimateSource.ADDRESS_PATTERN
        assert result.property_type == PropertyType.ESTATE
        assert 3.5 <= result.acreage <= 5.5
        assert result.confidence == PATTERN_CONFIDENCE

    def test_farm(self, estimator):
        property_type, acres = estimator.classify_address("88 Maple Farm Lane")
        assert property_type == PropertyType.FARM
        assert 10 <= acres <= 30

    def test_court_is_standard(self, estimator):
        property_type, acres = estimator.classify_address("12 Willow Court")
        assert property_type == PropertyType.STANDARD
        assert 0.15 <= acres <= 0.25

    def test_pattern_needs_whole_word(self, estimator):
        # "Streamline" must not match the "line" pattern
        property_type, acres = estimator.classify_address("5 Streamline Drive")
        assert property_type == PropertyType.STANDARD
        assert acres == DEFAULT_ACRES

    def test_default_estimate(self, estimator, toronto_center):
        result = estimator.estimate("99 Queen Street", toronto_center)
        assert result.property_type == PropertyType.STANDARD
        assert result.acreage == DEFAULT_ACRES
        assert len(result.boundaries) == MIN_VERTICES

    def test_large_property_vertex_cap(self, estimator, toronto_center):
        boundaries = estimator.generate_boundaries(toronto_center, acres=25)
        assert len(boundaries) == MAX_VERTICES


class TestReproducibility:
    """Tests for seeded randomness."""

    def test_same_seed_same_polygon(self, toronto_center):
        first = PropertyBoundaryEstimator(rng=np.random.default_rng(7)).estimate("3 Elm Court", toronto_center)
        second = PropertyBoundaryEstimator(rng=np.random.default_rng(7)).estimate("3 Elm Court", toronto_center)

        assert first.boundaries == second.boundaries
        assert first.acreage == second.acreage

    def test_stdlib_random_is_accepted(self, toronto_center):
        estimator = PropertyBoundaryEstimator(rng=random.Random(3))
        result = estimator.estimate("3 Elm Court", toronto_center)
        assert len(result.boundaries) == MIN_VERTICES

    def test_polygon_area_close_to_target(self, toronto_center):
        estimator = PropertyBoundaryEstimator(rng=MidpointRandom())
        boundaries = estimator.generate_boundaries(toronto_center, acres=4.5)

        acres = SphericalGeometryEngine().area(boundaries)["acres"]
        # An inscribed polygon is slightly smaller than its ellipse
        assert 0.85 < acres / 4.5 < 1.01


class TestFeatures:
    """Tests for feature distribution."""

    @pytest.mark.parametrize("property_type", list(PropertyType))
    def test_features_sum_to_total(self, property_type):
        features = features_for_type(property_type, 100000)
        assert features.total == pytest.approx(100000)

    def test_characteristics_distribution(self):
        characteristics = PropertyCharacteristics(
            has_large_lawn=True,
            has_forest=True,
            has_long_driveway=True,
            multiple_structures=True,
        )
        features = features_for_characteristics(characteristics, 1000)

        assert features.lawn == pytest.approx(350)
        assert features.forest == pytest.approx(250)
        assert features.water == 0
        assert features.structures == pytest.approx(100)
        assert features.driveway == pytest.approx(20)
        assert features.agricultural == pytest.approx(280)

    @pytest.mark.parametrize(
        "address",
        ["6698 Castlederg Side Road", "12072 Woodbine Ave", "7 Green Farm Road", "1 Main St"],
    )
    def test_estimates_never_overallocate(self, estimator, toronto_center, address):
        result = estimator.estimate(address, toronto_center)
        assert result.features.total <= result.square_feet * (1 + 1e-9)


class TestDisplayHelpers:
    """Tests for format_acreage() and property_summary()."""

    @pytest.mark.parametrize(
        "acres,expected",
        [
            (0.25, "10,890 sq ft"),
            (0.5, "21,780 sq ft (½ acre)"),
            (1, "43,560 sq ft (1 acre)"),
            (2.8, "121,968 sq ft (2.8 acres)"),
        ],
    )
    def test_format_acreage(self, acres, expected):
        assert format_acreage(acres) == expected

    def test_reference_summary(self, estimator, toronto_center):
        result = estimator.estimate("6698 Castlederg Side Road", toronto_center)
        assert property_summary(result) == "226,512 sq ft (5.2 acres) estate property with wooded area"

    def test_pattern_summary_is_marked_estimated(self, estimator, toronto_center):
        result = estimator.estimate("1 Main St", toronto_center)
        assert property_summary(result).endswith("(estimated)")
