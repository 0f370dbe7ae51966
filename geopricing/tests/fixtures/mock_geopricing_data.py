"""Mock geopricing data fixtures for testing.

Provides Firestore-shaped zone/rule documents, Google Maps API payloads
and a rule set exercising every rule type.
"""

from datetime import date, datetime, timezone
from typing import Any, Dict

from geopricing.models.pricing_rule import (
    DateRange,
    FixedPrices,
    PricingEffect,
    PricingRule,
    RuleConditions,
    RuleType,
)


# =============================================================================
# FIRESTORE DOCUMENTS
# =============================================================================

GEOPRICING_CONFIG_DOC: Dict[str, Any] = {
    "businessId": "biz-123",
    "pricing": {"baseRatePer1000SqFt": 20, "minimumCharge": 50, "currency": "CAD"},
    "zones": [
        {
            "name": "Close Proximity",
            "driveTimeMin": 0,
            "driveTimeMax": 5,
            "adjustmentType": "percentage",
            "adjustmentValue": -5,
        },
        {
            "name": "Standard Service",
            "driveTimeMin": 5,
            "driveTimeMax": 20,
            "adjustmentType": "percentage",
            "adjustmentValue": 0,
        },
        {
            "name": "Extended Service",
            "driveTimeMin": 20,
            "driveTimeMax": None,
            "adjustmentType": "percentage",
            "adjustmentValue": 10,
        },
    ],
}

PRICING_RULE_DOCS: Dict[str, Dict[str, Any]] = {
    "rule-vip": {
        "businessId": "biz-123",
        "name": "VIP customers",
        "type": "customer",
        "priority": 10,
        "isActive": True,
        "conditions": {"customerTags": ["vip"]},
        "pricingEffect": {"priceMultiplier": 0.9},
        "appliedCount": 4,
    },
    "rule-zip": {
        "businessId": "biz-123",
        "name": "Downtown surcharge",
        "type": "zone",
        "priority": 5,
        "isActive": True,
        "conditions": {"zipCodes": ["M5V"]},
        "pricingEffect": {"priceMultiplier": 1.1},
    },
}

# Missing required "type"
INVALID_RULE_DOC: Dict[str, Any] = {
    "businessId": "biz-123",
    "name": "Broken rule",
    "isActive": True,
}


# =============================================================================
# GOOGLE MAPS PAYLOADS
# =============================================================================

GEOCODE_OK_RESPONSE: Dict[str, Any] = {
    "status": "OK",
    "results": [
        {
            "formatted_address": "12072 Woodbine Ave, Gormley, ON L0H 1G0, Canada",
            "geometry": {"location": {"lat": 43.9398, "lng": -79.3683}},
            "address_components": [
                {"long_name": "Gormley", "types": ["locality", "political"]},
                {"long_name": "L0H 1G0", "types": ["postal_code"]},
            ],
        }
    ],
}

GEOCODE_ZERO_RESULTS_RESPONSE: Dict[str, Any] = {"status": "ZERO_RESULTS", "results": []}

DISTANCE_MATRIX_OK_RESPONSE: Dict[str, Any] = {
    "status": "OK",
    "rows": [
        {
            "elements": [
                {
                    "status": "OK",
                    "distance": {"value": 15230, "text": "15.2 km"},
                    "duration": {"value": 1010, "text": "17 mins"},
                    "duration_in_traffic": {"value": 1150, "text": "19 mins"},
                }
            ]
        }
    ],
}

DISTANCE_MATRIX_NO_ROUTE_RESPONSE: Dict[str, Any] = {
    "status": "OK",
    "rows": [{"elements": [{"status": "ZERO_RESULTS"}]}],
}


# =============================================================================
# RULE SET
# =============================================================================

def build_rule_set() -> Dict[str, PricingRule]:
    """One rule per type plus a scheduled rule, keyed by id."""
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return {
        "zone": PricingRule(
            id="zone",
            name="Downtown surcharge",
            type=RuleType.ZONE,
            priority=5,
            conditions=RuleConditions(zip_codes=["M5V", "M5H"]),
            pricing_effect=PricingEffect(price_multiplier=1.1),
            created_at=created,
        ),
        "customer": PricingRule(
            id="customer",
            name="VIP customers",
            type=RuleType.CUSTOMER,
            priority=10,
            conditions=RuleConditions(customer_tags=["vip"]),
            pricing_effect=PricingEffect(price_multiplier=0.9),
            created_at=created,
        ),
        "service": PricingRule(
            id="service",
            name="Driveway flat rate",
            type=RuleType.SERVICE,
            priority=3,
            conditions=RuleConditions(service_types=["driveway"]),
            pricing_effect=PricingEffect(fixed_prices=FixedPrices(driveway_per_sq_ft=0.05)),
            created_at=created,
        ),
        "summer": PricingRule(
            id="summer",
            name="Summer weekend promo",
            type=RuleType.VOLUME,
            priority=1,
            conditions=RuleConditions(
                min_area=0,
                date_range=DateRange(start=date(2024, 6, 1), end=date(2024, 8, 31)),
                day_of_week=[0, 6],
            ),
            pricing_effect=PricingEffect(price_multiplier=0.8),
            created_at=created,
        ),
    }
