"""Geopricing Orchestrator.

Turns a drive time and property size into a priced quote.

Flow:
1. Validate the request
2. Classify the drive time into a zone
3. Zone-adjust the base rate and build the rate table for every zone
4. Derive line items at the zone-adjusted rate
5. Apply the business's custom pricing rules (optional)
6. Apply the minimum charge, clamp invalid totals, explain the result
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

import structlog
from pydantic import ValidationError

from geopricing.config.errors import LocationUnresolvedError, MissingRequiredFieldError
from geopricing.models.geopricing import GeopricingRequest, GeopricingResult
from geopricing.models.pricing_rule import AppliedRule, PricingContext, ServiceLineItem, SkippedRule
from geopricing.models.zones import AdjustmentType, RateTableEntry, ZoneDefinition
from geopricing.services.pricing_rules import PricingRuleEngine
from geopricing.services.zone_classifier import (
    DriveTimeZoneClassifier,
    apply_zone_adjustment,
    round_currency,
)

logger = structlog.get_logger(__name__)

DEFAULT_SERVICE_NAME = "Lawn Care"
DEFAULT_RESULT_TTL_MINUTES = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _is_invalid_amount(amount: Optional[float]) -> bool:
    return amount is None or math.isnan(amount) or amount < 0


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _format_money(amount: float) -> str:
    return f"${amount:,.2f}"


def describe_adjustment(zone: ZoneDefinition) -> str:
    """Human-readable net zone adjustment, e.g. 'a 5% discount'."""
    value = zone.adjustment_value
    if value == 0:
        return "no adjustment to the base rate"

    kind = "discount" if value < 0 else "travel surcharge"
    if zone.adjustment_type == AdjustmentType.PERCENTAGE:
        return f"a {abs(value):g}% {kind}"
    return f"a {_format_money(abs(value))} per 1,000 sq ft {kind}"


class GeopricingOrchestrator:
    """Compose zone classification and custom pricing rules into a quote.

    Two-stage composition: the zone stage sets the per-sq-ft rate of every
    line item, then the rule engine compounds custom rules on top of it.
    The orchestrator holds no request state and can be shared.
    """

    def __init__(
        self,
        classifier: Optional[DriveTimeZoneClassifier] = None,
        rule_engine: Optional[PricingRuleEngine] = None,
        result_ttl_minutes: int = DEFAULT_RESULT_TTL_MINUTES,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize GeopricingOrchestrator.

        Args:
            classifier: Zone classifier (default: DriveTimeZoneClassifier()).
            rule_engine: Rule engine (default: PricingRuleEngine()).
            result_ttl_minutes: How long a result stays valid.
            clock: Returns the current aware datetime.
        """
        self.classifier = classifier or DriveTimeZoneClassifier()
        self.rule_engine = rule_engine or PricingRuleEngine()
        self.result_ttl_minutes = result_ttl_minutes
        self._clock = clock or _utcnow

    # -------------------------------------------------------------------------
    # Request validation
    # -------------------------------------------------------------------------

    def _validate(self, request: Union[GeopricingRequest, Dict[str, Any]]) -> GeopricingRequest:
        if isinstance(request, GeopricingRequest):
            return request
        try:
            return GeopricingRequest.model_validate(request)
        except ValidationError as e:
            locs = [error["loc"] for error in e.errors()]
            if any(loc and loc[0] in ("driveTimeMinutes", "drive_time_minutes") for loc in locs):
                raise LocationUnresolvedError(
                    "Drive time is not a number",
                    details={"drive_time_minutes": request.get("driveTimeMinutes", request.get("drive_time_minutes"))},
                ) from e
            fields = [".".join(str(part) for part in loc) for loc in locs]
            raise MissingRequiredFieldError(
                f"Invalid geopricing request: {', '.join(fields)}",
                fields=fields,
            ) from e

    def _parse_request(self, request: Union[GeopricingRequest, Dict[str, Any]]) -> GeopricingRequest:
        parsed = self._validate(request)

        missing = []
        if parsed.base_rate_per_1000_sq_ft is None:
            missing.append("base_rate_per_1000_sq_ft")
        if parsed.property_size_sq_ft is None:
            missing.append("property_size_sq_ft")
        if not parsed.zones:
            missing.append("zones")
        if missing:
            raise MissingRequiredFieldError(
                f"Missing required field(s): {', '.join(missing)}",
                fields=missing,
            )

        drive_time = parsed.drive_time_minutes
        if drive_time is None or math.isnan(drive_time) or math.isinf(drive_time):
            raise LocationUnresolvedError(
                "Drive time could not be determined for this location",
                details={"drive_time_minutes": drive_time},
            )

        return parsed

    # -------------------------------------------------------------------------
    # Pricing stages
    # -------------------------------------------------------------------------

    def build_rate_table(
        self,
        base_rate: float,
        zones: Sequence[ZoneDefinition],
        current_zone: ZoneDefinition,
        property_size_sq_ft: Optional[float] = None,
        minimum_charge: float = 0.0,
    ) -> List[RateTableEntry]:
        """Rate for every configured zone, with the customer's zone marked."""
        table = []
        for zone in zones:
            rate = apply_zone_adjustment(base_rate, zone)
            price = None
            if property_size_sq_ft is not None:
                price = round_currency(max(property_size_sq_ft / 1000 * rate, minimum_charge))

            table.append(
                RateTableEntry(
                    zone_name=zone.name,
                    drive_time_range=zone.drive_time_range,
                    rate_per_1000_sq_ft=rate,
                    price_for_property=price,
                    adjustment_type=zone.adjustment_type,
                    adjustment_value=zone.adjustment_value,
                    is_current=zone is current_zone,
                )
            )
        return table

    def _zone_unit_rate(self, unit_rate: float, zone: ZoneDefinition) -> float:
        """Zone-adjust a per-sq-ft rate. Fixed adjustments are per 1,000 sq ft."""
        if zone.adjustment_type == AdjustmentType.PERCENTAGE:
            return unit_rate * (1 + zone.adjustment_value / 100)
        return unit_rate + zone.adjustment_value / 1000

    def build_line_items(
        self,
        request: GeopricingRequest,
        zone: ZoneDefinition,
        adjusted_rate: float,
    ) -> List[ServiceLineItem]:
        """Zone-priced copies of the caller's items, or one derived item."""
        if not request.service_line_items:
            return [
                ServiceLineItem(
                    name=DEFAULT_SERVICE_NAME,
                    area_sq_ft=request.property_size_sq_ft,
                    price_per_unit=adjusted_rate / 1000,
                )
            ]

        default_unit_rate = request.base_rate_per_1000_sq_ft / 1000
        items = []
        for item in request.service_line_items:
            priced = item.model_copy()
            priced.price_per_unit = self._zone_unit_rate(
                item.price_per_unit if item.price_per_unit is not None else default_unit_rate,
                zone,
            )
            items.append(priced.recalculate())
        return items

    def _clamp_line_items(self, line_items: List[ServiceLineItem], warnings: List[str]) -> None:
        for item in line_items:
            if _is_invalid_amount(item.total_price):
                logger.warning(
                    "line_item_total_clamped",
                    service=item.name,
                    total_price=item.total_price,
                )
                warnings.append(f"{item.name} produced an invalid price and was set to $0.00")
                item.price_per_unit = 0.0
                item.total_price = 0.0

    def _build_explanation(
        self,
        zone: ZoneDefinition,
        drive_time_minutes: float,
        total_price: float,
        applied_rules: Sequence[AppliedRule],
        skipped_rules: Sequence[SkippedRule],
        warnings: Sequence[str],
        service_area_name: Optional[str],
    ) -> str:
        location = f"our {service_area_name} service location" if service_area_name else "our service location"
        parts = [
            f"Your property is {_round_half_up(drive_time_minutes)} minutes from {location}, "
            f"in the {zone.name} zone ({zone.drive_time_range}), "
            f"with {describe_adjustment(zone)}."
        ]

        if applied_rules:
            names = ", ".join(rule.name for rule in applied_rules)
            parts.append(f"Pricing rules applied: {names}.")
        if skipped_rules:
            parts.append(f"{len(skipped_rules)} pricing rule(s) could not be evaluated and were skipped.")
        for warning in warnings:
            parts.append(f"Note: {warning}.")

        parts.append(f"Total: {_format_money(total_price)}.")
        return " ".join(parts)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def price(self, request: Union[GeopricingRequest, Dict[str, Any]]) -> GeopricingResult:
        """
        Price a property from its drive time.

        Args:
            request: GeopricingRequest or an equivalent dict (camelCase or
                snake_case keys)

        Returns:
            GeopricingResult

        Raises:
            MissingRequiredFieldError: If base rate, property size or zones
                are missing, or the request fails validation
            LocationUnresolvedError: If drive time is missing or NaN
            InvalidZoneConfigError: If no zone covers the drive time
        """
        request = self._parse_request(request)
        base_rate = request.base_rate_per_1000_sq_ft
        property_size = request.property_size_sq_ft
        drive_time = max(0.0, request.drive_time_minutes)

        logger.info(
            "geopricing_started",
            drive_time_minutes=drive_time,
            property_size_sq_ft=property_size,
            zones=len(request.zones),
            rules=len(request.custom_pricing_rules or []),
        )

        zone = self.classifier.classify(drive_time, request.zones)
        adjusted_rate = apply_zone_adjustment(base_rate, zone)
        rate_table = self.build_rate_table(
            base_rate,
            request.zones,
            zone,
            property_size_sq_ft=property_size,
            minimum_charge=request.minimum_charge,
        )
        property_price = round_currency(max(property_size / 1000 * adjusted_rate, request.minimum_charge))

        line_items = self.build_line_items(request, zone, adjusted_rate)
        applied_rules: List[AppliedRule] = []
        skipped_rules: List[SkippedRule] = []

        if request.custom_pricing_rules:
            context = request.context
            pricing_context = PricingContext(
                zip_code=context.zip_code if context else None,
                customer_tags=context.customer_tags if context else [],
                total_area_sq_ft=property_size,
                service_names=[item.name for item in line_items],
                as_of_date=context.as_of_date if context else None,
            )
            rule_result = self.rule_engine.apply(line_items, request.custom_pricing_rules, pricing_context)
            line_items = rule_result.line_items
            applied_rules = rule_result.applied_rules
            skipped_rules = rule_result.skipped_rules

        warnings: List[str] = []
        self._clamp_line_items(line_items, warnings)

        subtotal = sum(item.total_price for item in line_items)
        if _is_invalid_amount(subtotal):
            warnings.append("the combined price was invalid and was set to $0.00")
            subtotal = 0.0
        # Minimum charge floors the total after rules, so discounts cannot undercut it
        total_price = round_currency(max(subtotal, request.minimum_charge))

        calculated_at = self._clock()
        result = GeopricingResult(
            drive_time_minutes=drive_time,
            zone=zone,
            base_rate=base_rate,
            adjusted_rate=adjusted_rate,
            rate_table_all_zones=rate_table,
            line_items=line_items,
            applied_rules=applied_rules,
            skipped_rules=skipped_rules,
            property_size_sq_ft=property_size,
            property_price=property_price,
            total_price=total_price,
            currency=request.currency,
            explanation=self._build_explanation(
                zone,
                drive_time,
                total_price,
                applied_rules,
                skipped_rules,
                warnings,
                request.service_area_name,
            ),
            warnings=warnings,
            calculated_at=calculated_at,
            expires_at=calculated_at + timedelta(minutes=self.result_ttl_minutes),
        )

        logger.info(
            "geopricing_complete",
            zone=zone.name,
            adjusted_rate=adjusted_rate,
            total_price=total_price,
            applied_rules=len(applied_rules),
            skipped_rules=len(skipped_rules),
            warnings=len(warnings),
        )
        return result

    async def price_with_drive_time(
        self,
        request: Union[GeopricingRequest, Dict[str, Any]],
        drive_time_service,
    ) -> GeopricingResult:
        """
        Price a request whose drive time comes from a DriveTimeService.

        Uses the request's origin and destination coordinates when it does
        not already carry a drive time.

        Raises:
            LocationUnresolvedError: If the coordinates are missing
        """
        request = self._validate(request)
        if request.drive_time_minutes is None:
            if request.origin_coordinate is None or request.destination_coordinate is None:
                raise LocationUnresolvedError(
                    "Origin and destination coordinates are required to compute drive time"
                )
            drive = await drive_time_service.drive_time(request.origin_coordinate, request.destination_coordinate)
            request = request.model_copy(update={"drive_time_minutes": drive.drive_time_minutes})
        return self.price(request)
