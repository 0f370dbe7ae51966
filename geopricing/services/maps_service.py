"""
Google Maps Service for geopricing.

Resolves addresses and drive times, the two facts the pricing core takes
from the outside world.

Architecture:
- Geocoding API for address -> coordinate
- Distance Matrix API for drive time, preferring duration_in_traffic
- Drive times are rounded up to whole minutes
- Caller-owned DriveTimeCache (15 minute TTL by default)
- Optional straight-line fallback at 40 km/h, marked estimated=True

API Details:
- Endpoints: https://maps.googleapis.com/maps/api/{geocode,distancematrix}/json
- Transport errors are retried 3 times with exponential backoff
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol

import httpx
from tenacity import (
    retry,
    stop_after_attempt,
    wait_exponential,
    retry_if_exception_type,
)
import structlog

from geopricing.config.errors import ExternalServiceError, LocationUnresolvedError
from geopricing.models.geometry import Coordinate
from geopricing.models.location import DriveTimeResult, GeocodeResult
from geopricing.services.drive_time_cache import DriveTimeCache
from geopricing.services.spherical_geometry import SphericalGeometryEngine

logger = structlog.get_logger(__name__)


# =============================================================================
# Constants
# =============================================================================

GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
DISTANCE_MATRIX_URL = "https://maps.googleapis.com/maps/api/distancematrix/json"
DEFAULT_TIMEOUT_SECONDS = 10.0
DEFAULT_REGION = "ca"

# Average city driving speed used when the API cannot be reached
FALLBACK_SPEED_KMH = 40.0


# =============================================================================
# Collaborator protocols
# =============================================================================


class GeocodingService(Protocol):
    async def geocode(self, address: str) -> GeocodeResult:
        ...


class DriveTimeService(Protocol):
    async def drive_time(self, origin: Coordinate, destination: Coordinate) -> DriveTimeResult:
        ...


def _format_location(coordinate: Coordinate) -> str:
    return f"{coordinate.lat},{coordinate.lng}"


def _address_component(result: Dict[str, Any], component_type: str) -> Optional[str]:
    for component in result.get("address_components", []):
        if component_type in component.get("types", []):
            return component.get("long_name")
    return None


# =============================================================================
# Google Maps client
# =============================================================================


class GoogleMapsService:
    """Geocoding and drive-time lookups against the Google Maps web APIs."""

    def __init__(
        self,
        api_key: str,
        cache: Optional[DriveTimeCache] = None,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        straight_line_fallback: bool = False,
        geometry: Optional[SphericalGeometryEngine] = None,
        region: str = DEFAULT_REGION,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize GoogleMapsService.

        Args:
            api_key: Google Maps API key.
            cache: Drive-time cache shared across lookups (optional).
            timeout: HTTP timeout in seconds.
            straight_line_fallback: Estimate drive time from straight-line
                distance when the Distance Matrix lookup fails.
            geometry: Engine used for the straight-line estimate.
            region: Geocoding region bias.
            client: Pre-built httpx client (tests, connection reuse).
        """
        if not api_key:
            raise ValueError("Google Maps API key is not configured")
        self.api_key = api_key
        self.cache = cache
        self.timeout = timeout
        self.straight_line_fallback = straight_line_fallback
        self.geometry = geometry or SphericalGeometryEngine()
        self.region = region
        self._client = client

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        retry=retry_if_exception_type((httpx.HTTPError, httpx.TimeoutException)),
        reraise=True,
    )
    async def _get_json(self, url: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        GET a Maps endpoint with retry logic.

        Raises:
            httpx.HTTPError: On HTTP errors after retries
        """
        params = {**params, "key": self.api_key}
        if self._client is not None:
            response = await self._client.get(url, params=params)
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(url, params=params)
            response.raise_for_status()
            return response.json()

    # -------------------------------------------------------------------------
    # Geocoding
    # -------------------------------------------------------------------------

    async def geocode(self, address: str) -> GeocodeResult:
        """
        Resolve an address to a coordinate.

        Raises:
            LocationUnresolvedError: If Google returns no result
            ExternalServiceError: If the API cannot be reached
        """
        try:
            data = await self._get_json(GEOCODE_URL, {"address": address, "region": self.region})
        except httpx.HTTPError as e:
            logger.error("geocode_request_failed", address=address, error=str(e))
            raise ExternalServiceError(
                f"Geocoding request failed: {e}",
                service="google_maps_geocoding",
                details={"address": address},
            ) from e

        status = data.get("status")
        results = data.get("results") or []
        if status != "OK" or not results:
            logger.warning("geocode_unresolved", address=address, status=status)
            raise LocationUnresolvedError(
                f"Geocoding failed: {status}",
                details={"address": address, "status": status},
            )

        result = results[0]
        location = result["geometry"]["location"]
        geocoded = GeocodeResult(
            coordinate=Coordinate(lat=location["lat"], lng=location["lng"]),
            formatted_address=result.get("formatted_address", address),
            city=_address_component(result, "locality"),
            postal_code=_address_component(result, "postal_code"),
        )
        logger.info("address_geocoded", address=address, formatted_address=geocoded.formatted_address)
        return geocoded

    # -------------------------------------------------------------------------
    # Drive time
    # -------------------------------------------------------------------------

    def estimate_drive_time(self, origin: Coordinate, destination: Coordinate) -> DriveTimeResult:
        """Straight-line drive time at FALLBACK_SPEED_KMH."""
        distance_meters = self.geometry.distance_meters(origin, destination)
        distance_km = distance_meters / 1000
        minutes = math.ceil(distance_km / FALLBACK_SPEED_KMH * 60)

        return DriveTimeResult(
            drive_time_minutes=minutes,
            distance_meters=distance_meters,
            distance_text=f"{distance_km:.1f} km",
            duration_text=f"{minutes} mins (estimated)",
            calculated_at=datetime.now(timezone.utc),
            estimated=True,
        )

    def _unavailable(self, origin: Coordinate, destination: Coordinate, error: Exception) -> DriveTimeResult:
        if self.straight_line_fallback:
            logger.warning("drive_time_estimated", error=str(error))
            return self.estimate_drive_time(origin, destination)
        raise error

    async def drive_time(self, origin: Coordinate, destination: Coordinate) -> DriveTimeResult:
        """
        Drive time from origin to destination.

        Raises:
            LocationUnresolvedError: If no route is found
            ExternalServiceError: If the API cannot be reached
        """
        if self.cache is not None:
            cached = self.cache.get(origin, destination)
            if cached is not None:
                logger.debug("drive_time_cache_hit", minutes=cached.drive_time_minutes)
                return cached

        params = {
            "origins": _format_location(origin),
            "destinations": _format_location(destination),
            "mode": "driving",
            "units": "metric",
            "departure_time": "now",
            "traffic_model": "best_guess",
        }

        try:
            data = await self._get_json(DISTANCE_MATRIX_URL, params)
        except httpx.HTTPError as e:
            logger.error("drive_time_request_failed", error=str(e))
            return self._unavailable(
                origin,
                destination,
                ExternalServiceError(f"Distance Matrix request failed: {e}", service="google_maps_distance_matrix"),
            )

        status = data.get("status")
        if status != "OK":
            return self._unavailable(
                origin,
                destination,
                LocationUnresolvedError(f"Google Maps API error: {status}", details={"status": status}),
            )

        rows = data.get("rows") or [{}]
        elements = rows[0].get("elements") or [{}]
        element = elements[0]
        if element.get("status") != "OK":
            element_status = element.get("status", "UNKNOWN_ERROR")
            return self._unavailable(
                origin,
                destination,
                LocationUnresolvedError(f"No route found: {element_status}", details={"status": element_status}),
            )

        duration = element.get("duration_in_traffic") or element["duration"]
        result = DriveTimeResult(
            drive_time_minutes=math.ceil(duration["value"] / 60),
            distance_meters=element["distance"]["value"],
            distance_text=element["distance"]["text"],
            duration_text=duration["text"],
            calculated_at=datetime.now(timezone.utc),
        )

        if self.cache is not None:
            self.cache.set(origin, destination, result)

        logger.info(
            "drive_time_resolved",
            minutes=result.drive_time_minutes,
            distance_meters=result.distance_meters,
        )
        return result
