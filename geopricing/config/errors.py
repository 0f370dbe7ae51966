"""Geopricing error handling.

Custom exceptions and error codes for the measurement and pricing engine.
"""

from typing import Optional, Dict, Any, List


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Geometry Errors (1xxx)
    INVALID_POLYGON = "INVALID_POLYGON"

    # Zone Errors (2xxx)
    INVALID_ZONE_CONFIG = "INVALID_ZONE_CONFIG"

    # Location Errors (3xxx)
    LOCATION_UNRESOLVED = "LOCATION_UNRESOLVED"

    # Rule Errors (4xxx)
    RULE_EVALUATION_ERROR = "RULE_EVALUATION_ERROR"

    # Validation Errors (5xxx)
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"

    # External Service Errors (6xxx)
    EXTERNAL_API_ERROR = "EXTERNAL_API_ERROR"
    CONFIG_STORE_ERROR = "CONFIG_STORE_ERROR"


class GeopricingError(Exception):
    """Base exception for geopricing errors.

    Provides structured error information for API responses.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        """Initialize GeopricingError.

        Args:
            code: Error code from ErrorCode constants
            message: Human-readable error message
            details: Additional error context
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for API response.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(code={self.code!r}, message={self.message!r})"


class InvalidPolygonError(GeopricingError):
    """Polygon has fewer vertices than the operation requires."""

    def __init__(self, message: str, vertex_count: int, required: int = 3):
        super().__init__(
            code=ErrorCode.INVALID_POLYGON,
            message=message,
            details={"vertex_count": vertex_count, "required": required}
        )
        self.vertex_count = vertex_count
        self.required = required


class InvalidZoneConfigError(GeopricingError):
    """No configured zone covers the requested drive time."""

    def __init__(self, message: str, drive_time_minutes: Optional[float] = None, zone_names: Optional[List[str]] = None):
        super().__init__(
            code=ErrorCode.INVALID_ZONE_CONFIG,
            message=message,
            details={"drive_time_minutes": drive_time_minutes, "zones": zone_names or []}
        )
        self.drive_time_minutes = drive_time_minutes


class LocationUnresolvedError(GeopricingError):
    """Drive time or coordinates could not be determined."""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.LOCATION_UNRESOLVED,
            message=message,
            details=details
        )


class RuleEvaluationError(GeopricingError):
    """Pricing rule has malformed conditions."""

    def __init__(self, message: str, rule_id: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.RULE_EVALUATION_ERROR,
            message=message,
            details={**(details or {}), "rule_id": rule_id}
        )
        self.rule_id = rule_id


class MissingRequiredFieldError(GeopricingError):
    """Request is missing a field the computation needs."""

    def __init__(self, message: str, fields: List[str]):
        super().__init__(
            code=ErrorCode.MISSING_REQUIRED_FIELD,
            message=message,
            details={"fields": fields}
        )
        self.fields = fields


class ExternalServiceError(GeopricingError):
    """Geocoding or drive-time provider failed."""

    def __init__(self, message: str, service: str, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.EXTERNAL_API_ERROR,
            message=message,
            details={**(details or {}), "service": service}
        )
        self.service = service


class ConfigStoreError(GeopricingError):
    """Zone or rule configuration could not be read or updated."""

    def __init__(self, message: str, business_id: Optional[str] = None, details: Optional[Dict] = None):
        super().__init__(
            code=ErrorCode.CONFIG_STORE_ERROR,
            message=message,
            details={**(details or {}), "business_id": business_id}
        )
        self.business_id = business_id
