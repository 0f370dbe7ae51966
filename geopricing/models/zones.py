"""Drive-time zone Pydantic models for geopricing.

A zone is a half-open drive-time band [min, max) with a price
adjustment. A business configures an ordered, non-overlapping list
of zones; the last one may leave max unset to catch all overflow.
"""

import math
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class AdjustmentType(str, Enum):
    """How a zone adjustment changes the base rate."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"


class ZoneDefinition(BaseModel):
    """Drive-time band with its price adjustment."""

    name: str = Field(..., min_length=1, description="Zone name")
    drive_time_min: float = Field(..., ge=0, alias="driveTimeMin", description="Lower bound (minutes, inclusive)")
    drive_time_max: Optional[float] = Field(
        default=None, alias="driveTimeMax", description="Upper bound (minutes, exclusive); None means unbounded"
    )
    adjustment_type: AdjustmentType = Field(..., alias="adjustmentType")
    adjustment_value: float = Field(
        ..., alias="adjustmentValue", description="Signed adjustment; negative is a discount"
    )
    description: str = Field(default="")

    class Config:
        populate_by_name = True

    @property
    def upper_bound(self) -> float:
        """Exclusive upper bound, +inf when unbounded."""
        return math.inf if self.drive_time_max is None else self.drive_time_max

    def contains(self, drive_time_minutes: float) -> bool:
        """Check whether a drive time falls in [min, max)."""
        return self.drive_time_min <= drive_time_minutes < self.upper_bound

    @property
    def drive_time_range(self) -> str:
        """Display string such as '5-20 minutes' or '20+ minutes'."""
        low = f"{self.drive_time_min:g}"
        if self.drive_time_max is None:
            return f"{low}+ minutes"
        return f"{low}-{self.drive_time_max:g} minutes"


class RateTableEntry(BaseModel):
    """One row of the all-zones rate comparison table."""

    zone_name: str = Field(..., alias="zoneName")
    drive_time_range: str = Field(..., alias="driveTimeRange")
    rate_per_1000_sq_ft: float = Field(..., alias="ratePer1000SqFt")
    price_for_property: Optional[float] = Field(default=None, alias="priceForProperty")
    adjustment_type: AdjustmentType = Field(..., alias="adjustmentType")
    adjustment_value: float = Field(..., alias="adjustmentValue")
    is_current: bool = Field(default=False, alias="isCurrent")

    class Config:
        populate_by_name = True


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================


def default_zones() -> List[ZoneDefinition]:
    """Get the standard three-zone configuration.

    Close Proximity [0, 5) gets 5% off, Standard Service [5, 20) pays the
    base rate, Extended Service [20, inf) pays a 10% surcharge.

    Returns:
        Ordered list of ZoneDefinition.
    """
    return [
        ZoneDefinition(
            name="Close Proximity",
            drive_time_min=0,
            drive_time_max=5,
            adjustment_type=AdjustmentType.PERCENTAGE,
            adjustment_value=-5,
            description="Quick service with minimal travel",
        ),
        ZoneDefinition(
            name="Standard Service",
            drive_time_min=5,
            drive_time_max=20,
            adjustment_type=AdjustmentType.PERCENTAGE,
            adjustment_value=0,
            description="Regular service area",
        ),
        ZoneDefinition(
            name="Extended Service",
            drive_time_min=20,
            drive_time_max=None,
            adjustment_type=AdjustmentType.PERCENTAGE,
            adjustment_value=10,
            description="Distant locations requiring extra travel",
        ),
    ]
