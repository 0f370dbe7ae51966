"""Geopricing configuration.

This package contains:
- settings: Environment variables and configuration
- secrets: Unified secret access (Secret Manager / environment)
- errors: Custom exceptions and error codes
"""

from geopricing.config.settings import Settings, load_settings
from geopricing.config.errors import (
    ErrorCode,
    GeopricingError,
    InvalidPolygonError,
    InvalidZoneConfigError,
    LocationUnresolvedError,
    RuleEvaluationError,
    MissingRequiredFieldError,
    ExternalServiceError,
    ConfigStoreError,
)
from geopricing.config.secrets import get_secret, get_google_maps_api_key

__all__ = [
    "Settings",
    "load_settings",
    "ErrorCode",
    "GeopricingError",
    "InvalidPolygonError",
    "InvalidZoneConfigError",
    "LocationUnresolvedError",
    "RuleEvaluationError",
    "MissingRequiredFieldError",
    "ExternalServiceError",
    "ConfigStoreError",
    "get_secret",
    "get_google_maps_api_key",
]
