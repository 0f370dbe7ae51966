"""Pricing rule Pydantic models for geopricing.

Pricing rules are long-lived business configuration. The rule engine
evaluates them against a PricingContext and compounds their effects on
ServiceLineItem prices in priority order.
"""

from datetime import date, datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class RuleType(str, Enum):
    """What a rule's conditions are evaluated against."""

    ZONE = "zone"
    CUSTOMER = "customer"
    VOLUME = "volume"
    SERVICE = "service"


# =============================================================================
# LINE ITEMS
# =============================================================================


class ServiceLineItem(BaseModel):
    """A priced service on a property.

    price_per_unit is per square foot; None means the caller left pricing
    to the base rate. total_price is kept equal to area_sq_ft *
    price_per_unit by every stage that changes the rate.
    """

    name: str = Field(..., min_length=1, description="Service name, e.g. 'Lawn Mowing'")
    area_sq_ft: float = Field(..., ge=0, alias="areaSqFt")
    price_per_unit: Optional[float] = Field(default=None, alias="pricePerUnit", description="Price per sq ft")
    total_price: Optional[float] = Field(default=None, alias="totalPrice")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def fill_total(self):
        if self.total_price is None and self.price_per_unit is not None:
            self.total_price = self.area_sq_ft * self.price_per_unit
        return self

    def recalculate(self) -> "ServiceLineItem":
        """Re-derive total_price from area and rate."""
        self.total_price = self.area_sq_ft * (self.price_per_unit or 0.0)
        return self


# =============================================================================
# RULE CONDITIONS AND EFFECTS
# =============================================================================


class DateRange(BaseModel):
    """Inclusive date window a rule is valid in."""

    start: Optional[date] = None
    end: Optional[date] = None


class RuleConditions(BaseModel):
    """Type-specific rule conditions.

    All fields are optional at parse time; a rule whose type needs a
    condition it does not carry is reported as malformed when evaluated.
    """

    zip_codes: Optional[List[str]] = Field(default=None, alias="zipCodes")
    customer_tags: Optional[List[str]] = Field(default=None, alias="customerTags")
    min_area: Optional[float] = Field(default=None, alias="minArea")
    max_area: Optional[float] = Field(default=None, alias="maxArea")
    service_types: Optional[List[str]] = Field(default=None, alias="serviceTypes")
    date_range: Optional[DateRange] = Field(default=None, alias="dateRange")
    day_of_week: Optional[List[int]] = Field(
        default=None, alias="dayOfWeek", description="0-6, Sunday to Saturday"
    )

    class Config:
        populate_by_name = True


class FixedPrices(BaseModel):
    """Per-category price-per-sq-ft overrides."""

    lawn_per_sq_ft: Optional[float] = Field(default=None, alias="lawnPerSqFt")
    driveway_per_sq_ft: Optional[float] = Field(default=None, alias="drivewayPerSqFt")
    sidewalk_per_sq_ft: Optional[float] = Field(default=None, alias="sidewalkPerSqFt")
    building_per_sq_ft: Optional[float] = Field(default=None, alias="buildingPerSqFt")

    class Config:
        populate_by_name = True

    def price_for(self, service_name: str) -> Optional[float]:
        """Return the override for a line item, matched by name substring."""
        name = service_name.lower()
        if "lawn" in name:
            return self.lawn_per_sq_ft
        if "driveway" in name:
            return self.driveway_per_sq_ft
        if "sidewalk" in name:
            return self.sidewalk_per_sq_ft
        if "building" in name:
            return self.building_per_sq_ft
        return None


class PricingEffect(BaseModel):
    """What an applicable rule does to line-item prices."""

    fixed_prices: Optional[FixedPrices] = Field(default=None, alias="fixedPrices")
    price_multiplier: Optional[float] = Field(default=None, alias="priceMultiplier")

    class Config:
        populate_by_name = True


# =============================================================================
# MAIN PRICING RULE MODEL
# =============================================================================


class PricingRule(BaseModel):
    """Business pricing rule."""

    id: str = Field(..., description="Rule ID")
    name: str = Field(..., min_length=1)
    type: RuleType
    priority: int = Field(default=0, description="Higher applies first")
    is_active: bool = Field(default=True, alias="isActive")
    conditions: RuleConditions = Field(default_factory=RuleConditions)
    pricing_effect: PricingEffect = Field(default_factory=PricingEffect, alias="pricingEffect")
    applied_count: int = Field(default=0, ge=0, alias="appliedCount")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    description: Optional[str] = None

    class Config:
        populate_by_name = True


class PricingContext(BaseModel):
    """Facts about the request that rule conditions are matched against."""

    zip_code: Optional[str] = Field(default=None, alias="zipCode")
    customer_tags: List[str] = Field(default_factory=list, alias="customerTags")
    total_area_sq_ft: float = Field(default=0.0, ge=0, alias="totalAreaSqFt")
    service_names: List[str] = Field(default_factory=list, alias="serviceNames")
    as_of_date: Optional[date] = Field(default=None, alias="asOfDate")

    class Config:
        populate_by_name = True


# =============================================================================
# RESULTS
# =============================================================================


class AppliedRule(BaseModel):
    """Record of a rule that matched."""

    rule_id: str = Field(..., alias="ruleId")
    name: str
    type: RuleType
    adjustment: float = Field(default=0.0, description="Change in line-item totals caused by this rule")

    class Config:
        populate_by_name = True


class SkippedRule(BaseModel):
    """Record of a rule skipped because its conditions were malformed."""

    rule_id: str = Field(..., alias="ruleId")
    name: str
    reason: str

    class Config:
        populate_by_name = True


class RuleApplicationResult(BaseModel):
    """Output of the rule engine."""

    line_items: List[ServiceLineItem] = Field(default_factory=list, alias="lineItems")
    applied_rules: List[AppliedRule] = Field(default_factory=list, alias="appliedRules")
    skipped_rules: List[SkippedRule] = Field(default_factory=list, alias="skippedRules")

    class Config:
        populate_by_name = True

    @property
    def total(self) -> float:
        """Sum of line-item totals."""
        return sum(item.total_price or 0.0 for item in self.line_items)


class RulePreview(BaseModel):
    """Before/after totals for a rule set."""

    original_total: float = Field(..., alias="originalTotal")
    adjusted_total: float = Field(..., alias="adjustedTotal")
    total_adjustment: float = Field(..., alias="totalAdjustment")
    line_items: List[ServiceLineItem] = Field(default_factory=list, alias="lineItems")
    applied_rules: List[AppliedRule] = Field(default_factory=list, alias="appliedRules")

    class Config:
        populate_by_name = True
