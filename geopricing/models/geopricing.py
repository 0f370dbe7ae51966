"""Geopricing request/result Pydantic models.

GeopricingRequest is the input contract of GeopricingOrchestrator.price;
GeopricingResult is what it returns. Drive time is always supplied by
the caller's drive-time collaborator.
"""

from datetime import date, datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from geopricing.models.geometry import Coordinate
from geopricing.models.pricing_rule import (
    AppliedRule,
    PricingRule,
    ServiceLineItem,
    SkippedRule,
)
from geopricing.models.zones import RateTableEntry, ZoneDefinition


class RequestContext(BaseModel):
    """Customer facts used by the custom pricing rule stage."""

    zip_code: Optional[str] = Field(default=None, alias="zipCode")
    customer_tags: List[str] = Field(default_factory=list, alias="customerTags")
    as_of_date: Optional[date] = Field(default=None, alias="asOfDate")

    class Config:
        populate_by_name = True


class GeopricingRequest(BaseModel):
    """Input for a geopriced quote.

    Required-ness of drive time, base rate, property size and zones is
    checked by the orchestrator so it can raise the matching domain error
    instead of a generic validation error.
    """

    origin_coordinate: Optional[Coordinate] = Field(default=None, alias="originCoordinate")
    destination_coordinate: Optional[Coordinate] = Field(default=None, alias="destinationCoordinate")
    drive_time_minutes: Optional[float] = Field(default=None, alias="driveTimeMinutes")
    property_size_sq_ft: Optional[float] = Field(default=None, ge=0, alias="propertySizeSqFt")
    base_rate_per_1000_sq_ft: Optional[float] = Field(default=None, ge=0, alias="baseRatePer1000SqFt")
    minimum_charge: float = Field(default=0.0, ge=0, alias="minimumCharge")
    currency: str = Field(default="CAD", min_length=3, max_length=3)
    zones: List[ZoneDefinition] = Field(default_factory=list)
    service_line_items: List[ServiceLineItem] = Field(default_factory=list, alias="serviceLineItems")
    # Raw dicts are validated rule by rule so one bad rule cannot reject the request
    custom_pricing_rules: Optional[List[Union[PricingRule, Dict[str, Any]]]] = Field(
        default=None, alias="customPricingRules"
    )
    context: Optional[RequestContext] = None
    service_area_name: Optional[str] = Field(
        default=None, alias="serviceAreaName", description="Shown in the explanation, e.g. 'Toronto'"
    )

    class Config:
        populate_by_name = True

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()


class GeopricingResult(BaseModel):
    """Final priced quote with the full zone rate table."""

    drive_time_minutes: float = Field(..., ge=0, alias="driveTimeMinutes")
    zone: ZoneDefinition
    base_rate: float = Field(..., alias="baseRate")
    adjusted_rate: float = Field(..., alias="adjustedRate")
    rate_table_all_zones: List[RateTableEntry] = Field(default_factory=list, alias="rateTableAllZones")
    line_items: List[ServiceLineItem] = Field(default_factory=list, alias="lineItems")
    applied_rules: List[AppliedRule] = Field(default_factory=list, alias="appliedRules")
    skipped_rules: List[SkippedRule] = Field(default_factory=list, alias="skippedRules")
    property_size_sq_ft: float = Field(..., ge=0, alias="propertySizeSqFt")
    property_price: float = Field(..., ge=0, alias="propertyPrice", description="Zone-adjusted price before custom rules")
    total_price: float = Field(..., ge=0, alias="totalPrice")
    currency: str
    explanation: str
    warnings: List[str] = Field(default_factory=list)
    calculated_at: datetime = Field(..., alias="calculatedAt")
    expires_at: datetime = Field(..., alias="expiresAt")

    class Config:
        populate_by_name = True

    def to_api_output(self) -> dict:
        """Serialize with camelCase keys for API responses."""
        return self.model_dump(by_alias=True, mode="json")
