"""Geopricing service factory.

Builds the orchestrator, drive-time cache, Maps client and config store
from one Settings instance, and exposes the business-level entry point
that ties them together:

    services = create_services()
    result = await services.price_for_business("biz-123", request_data)
    quote = services.issue_quote("q-1", result)
"""

import os
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional

import httpx
import structlog
from firebase_admin import initialize_app

from geopricing.config.settings import Settings, load_settings
from geopricing.models.geopricing import GeopricingResult
from geopricing.models.quote import GeopricingQuote
from geopricing.services.drive_time_cache import DriveTimeCache
from geopricing.services.firestore_service import FirestoreConfigStore
from geopricing.services.geopricing_orchestrator import GeopricingOrchestrator
from geopricing.services.maps_service import GoogleMapsService
from geopricing.services.pricing_rules import PricingRuleEngine
from geopricing.utils.pricing_logger import configure_logging

logger = structlog.get_logger(__name__)


def _initialize_firebase(settings: Settings) -> None:
    if settings.use_firebase_emulators:
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", settings.firestore_emulator_host)

    options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
    try:
        initialize_app(options=options)
    except ValueError:
        # Already initialized
        pass


@dataclass
class GeopricingServices:
    """Wired geopricing components sharing one Settings instance."""

    settings: Settings
    orchestrator: GeopricingOrchestrator
    drive_time_cache: DriveTimeCache
    config_store: FirestoreConfigStore
    maps_service: Optional[GoogleMapsService] = None

    def apply_defaults(self, request_data: Dict[str, Any]) -> Dict[str, Any]:
        """Fill base rate, minimum charge and currency the request left out."""
        data = dict(request_data)
        defaults = (
            ("baseRatePer1000SqFt", "base_rate_per_1000_sq_ft", self.settings.default_base_rate_per_1000_sq_ft),
            ("minimumCharge", "minimum_charge", self.settings.default_minimum_charge),
            ("currency", "currency", self.settings.default_currency),
        )
        for alias, name, value in defaults:
            if data.get(alias) is None and data.get(name) is None:
                data[alias] = value
        return data

    async def price_for_business(self, business_id: str, request_data: Dict[str, Any]) -> GeopricingResult:
        """
        Price a request with the business's stored zones and rules.

        Zones and rules in the request take precedence over stored ones.
        Drive time is looked up through the Maps service when the request
        carries coordinates instead.

        Raises:
            ConfigStoreError: If the stored configuration cannot be read
            MissingRequiredFieldError: If the business has no zones
            LocationUnresolvedError: If drive time cannot be determined
        """
        data = self.apply_defaults(request_data)

        if not data.get("zones"):
            data["zones"] = await self.config_store.get_zones(business_id)
        if data.get("customPricingRules") is None and data.get("custom_pricing_rules") is None:
            data["customPricingRules"] = await self.config_store.get_pricing_rules(business_id)

        logger.info(
            "business_pricing_started",
            business_id=business_id,
            zones=len(data["zones"]),
            maps_enabled=self.maps_service is not None,
        )

        if self.maps_service is None:
            return self.orchestrator.price(data)
        return await self.orchestrator.price_with_drive_time(data, self.maps_service)

    def issue_quote(self, quote_id: str, result: GeopricingResult) -> GeopricingQuote:
        """Draft quote valid for the configured number of days."""
        return GeopricingQuote.from_result(
            quote_id,
            result,
            validity_days=self.settings.quote_validity_days,
            issued_at=result.calculated_at,
        )


def create_services(
    settings: Optional[Settings] = None,
    db=None,
    http_client: Optional[httpx.AsyncClient] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> GeopricingServices:
    """
    Build the geopricing components from settings.

    Args:
        settings: Settings to use (default: load_settings()).
        db: Firestore client. If not provided, Firebase Admin is
            initialized and the default client is used.
        http_client: Shared httpx client for the Maps service.
        clock: Clock for result timestamps.

    Returns:
        GeopricingServices. maps_service is None when no Google Maps API
        key is configured.
    """
    settings = settings or load_settings()
    configure_logging(settings.log_level)

    cache = DriveTimeCache(ttl_seconds=settings.drive_time_cache_ttl_seconds)

    maps_service = None
    api_key = settings.google_maps_api_key
    if api_key:
        maps_service = GoogleMapsService(
            api_key=api_key,
            cache=cache,
            timeout=settings.maps_timeout_seconds,
            straight_line_fallback=settings.straight_line_fallback,
            client=http_client,
        )
    else:
        logger.warning("google_maps_api_key_missing")

    if db is None:
        _initialize_firebase(settings)
    config_store = FirestoreConfigStore(db=db)

    orchestrator = GeopricingOrchestrator(
        rule_engine=PricingRuleEngine(usage_recorder=config_store),
        result_ttl_minutes=settings.pricing_result_ttl_minutes,
        clock=clock,
    )

    logger.info(
        "geopricing_services_created",
        maps_enabled=maps_service is not None,
        emulator=settings.is_emulator_mode,
    )
    return GeopricingServices(
        settings=settings,
        orchestrator=orchestrator,
        drive_time_cache=cache,
        config_store=config_store,
        maps_service=maps_service,
    )
