"""Pytest configuration and shared fixtures for geopricing tests."""

import os
import sys
from datetime import datetime, timezone

import numpy as np
import pytest
from unittest.mock import MagicMock


# ============================================================================
# Ensure the repository root is importable (geopricing.*)
# ============================================================================
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


from geopricing.models.geometry import Coordinate  # noqa: E402
from geopricing.models.pricing_rule import (  # noqa: E402
    PricingEffect,
    PricingRule,
    RuleConditions,
    RuleType,
    ServiceLineItem,
)
from geopricing.models.zones import default_zones  # noqa: E402


# ============================================================================
# Geometry
# ============================================================================

@pytest.fixture
def square_polygon():
    """Roughly 111 m x 85 m rectangle at latitude 40."""
    return [
        Coordinate(lat=40.0, lng=-75.0),
        Coordinate(lat=40.0, lng=-74.999),
        Coordinate(lat=40.001, lng=-74.999),
        Coordinate(lat=40.001, lng=-75.0),
    ]


@pytest.fixture
def toronto_center():
    """Property center north of Toronto."""
    return Coordinate(lat=43.9147, lng=-79.3662)


@pytest.fixture
def seeded_rng():
    """Deterministic numpy Generator."""
    return np.random.default_rng(42)


# ============================================================================
# Pricing
# ============================================================================

@pytest.fixture
def standard_zones():
    """Close -5% [0,5), standard 0% [5,20), extended +10% [20,inf)."""
    return default_zones()


@pytest.fixture
def lawn_item():
    """5,000 sq ft lawn at $0.02 / sq ft."""
    return ServiceLineItem(name="Lawn Mowing", area_sq_ft=5000, price_per_unit=0.02)


@pytest.fixture
def volume_rule():
    """5% off properties between 5,000 and 10,000 sq ft."""
    return PricingRule(
        id="rule-volume",
        name="Mid-size property discount",
        type=RuleType.VOLUME,
        priority=1,
        conditions=RuleConditions(min_area=5000, max_area=10000),
        pricing_effect=PricingEffect(price_multiplier=0.95),
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def geopricing_request_data(standard_zones):
    """Request dict in the camelCase shape an API client sends."""
    return {
        "driveTimeMinutes": 3,
        "propertySizeSqFt": 5000,
        "baseRatePer1000SqFt": 20,
        "minimumCharge": 50,
        "currency": "CAD",
        "zones": [zone.model_dump(by_alias=True) for zone in standard_zones],
    }


@pytest.fixture
def fixed_clock():
    """Clock that always returns 2024-06-01 12:00 UTC."""
    now = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)
    return lambda: now


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client with a collection().document() chain."""
    client = MagicMock()

    collection_mock = MagicMock()
    document_mock = MagicMock()

    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock
    collection_mock.where.return_value = collection_mock

    return client


@pytest.fixture
def mock_config_store(mock_firestore_client):
    """FirestoreConfigStore with mocked client."""
    from geopricing.services.firestore_service import FirestoreConfigStore

    return FirestoreConfigStore(db=mock_firestore_client)
