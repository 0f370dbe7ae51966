"""Property intelligence Pydantic models for geopricing.

This module defines the estimated-boundary output of the property
boundary estimator. Everything here is an estimate; a manually drawn
or measured polygon always takes precedence.
"""

from enum import Enum
from typing import List

from pydantic import BaseModel, Field, model_validator

from geopricing.models.geometry import Coordinate


# =============================================================================
# ENUMS
# =============================================================================


class PropertyType(str, Enum):
    """Property classification used for feature distribution."""

    ESTATE = "estate"
    LARGE_RESIDENTIAL = "large-residential"
    FARM = "farm"
    COMMERCIAL = "commercial"
    STANDARD = "standard"


class EstimateSource(str, Enum):
    """Where the acreage estimate came from."""

    REFERENCE_TABLE = "reference_table"
    ADDRESS_PATTERN = "address_pattern"


# =============================================================================
# FEATURE MODELS
# =============================================================================


class PropertyCharacteristics(BaseModel):
    """Known characteristics of a reference-table property."""

    has_large_lawn: bool = False
    has_forest: bool = False
    has_pond: bool = False
    has_long_driveway: bool = False
    multiple_structures: bool = False


class PropertyFeatures(BaseModel):
    """Square footage per surface feature."""

    lawn: float = Field(default=0.0, ge=0, description="Lawn area (sq ft)")
    forest: float = Field(default=0.0, ge=0, description="Wooded area (sq ft)")
    water: float = Field(default=0.0, ge=0, description="Water features (sq ft)")
    structures: float = Field(default=0.0, ge=0, description="Building footprint (sq ft)")
    driveway: float = Field(default=0.0, ge=0, description="Driveway (sq ft)")
    agricultural: float = Field(default=0.0, ge=0, description="Agricultural or other (sq ft)")

    @property
    def total(self) -> float:
        """Sum of all feature areas."""
        return self.lawn + self.forest + self.water + self.structures + self.driveway + self.agricultural


# =============================================================================
# MAIN PROPERTY INTELLIGENCE MODEL
# =============================================================================


class PropertyIntelligence(BaseModel):
    """Estimated property boundary, size and surface breakdown."""

    boundaries: List[Coordinate] = Field(..., min_length=3, description="Estimated boundary polygon")
    acreage: float = Field(..., gt=0, description="Estimated acreage")
    square_feet: float = Field(..., gt=0, alias="squareFeet")
    property_type: PropertyType = Field(..., alias="propertyType")
    confidence: float = Field(..., ge=0, le=1, description="Confidence in the estimate (0-1)")
    features: PropertyFeatures
    source: EstimateSource = Field(..., description="Estimate source")
    is_estimate: bool = Field(default=True, alias="isEstimate")

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def features_fit_property(self):
        """Feature areas may not exceed the property area."""
        # Tolerance for float accumulation across six fractions
        if self.features.total > self.square_feet * (1 + 1e-9):
            raise ValueError(
                f"Feature total {self.features.total:.2f} exceeds property area {self.square_feet:.2f}"
            )
        return self
