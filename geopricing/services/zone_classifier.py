"""Drive-Time Zone Classifier for geopricing.

Maps a drive time to the first configured zone whose [min, max) band
contains it, and applies that zone's adjustment to a base rate.
"""

import math
from typing import Optional, Sequence

import structlog

from geopricing.config.errors import InvalidZoneConfigError, LocationUnresolvedError
from geopricing.models.zones import AdjustmentType, ZoneDefinition

logger = structlog.get_logger(__name__)


def round_currency(amount: float) -> float:
    """Round to cents with halves rounded up, like JavaScript's Math.round(x*100)/100."""
    return math.floor(amount * 100 + 0.5) / 100


def apply_zone_adjustment(base_rate: float, zone: ZoneDefinition) -> float:
    """
    Apply a zone adjustment to a rate per 1,000 sq ft.

    Percentage zones scale the rate by (1 + value/100); fixed zones add
    value. The result is rounded to cents.
    """
    if zone.adjustment_type == AdjustmentType.PERCENTAGE:
        adjusted = base_rate * (1 + zone.adjustment_value / 100)
    else:
        adjusted = base_rate + zone.adjustment_value
    return round_currency(adjusted)


class DriveTimeZoneClassifier:
    """Pick the zone for a drive time.

    Zone lists are a caller contract: ordered and non-overlapping. The
    classifier does not repair gaps; a drive time that falls in one is a
    configuration error, not a reason to invent a default zone.
    """

    def classify(
        self,
        drive_time_minutes: Optional[float],
        zones: Sequence[ZoneDefinition],
    ) -> ZoneDefinition:
        """
        Return the first zone containing the drive time.

        Args:
            drive_time_minutes: Drive time; negatives are treated as 0
            zones: Ordered zone configuration

        Returns:
            The matching ZoneDefinition

        Raises:
            LocationUnresolvedError: If drive time is None or NaN
            InvalidZoneConfigError: If no zone contains the drive time
        """
        if drive_time_minutes is None or math.isnan(drive_time_minutes):
            raise LocationUnresolvedError(
                "Drive time is required to determine a pricing zone",
                details={"drive_time_minutes": drive_time_minutes},
            )

        if not zones:
            raise InvalidZoneConfigError(
                "No pricing zones are configured",
                drive_time_minutes=drive_time_minutes,
            )

        minutes = max(0.0, drive_time_minutes)

        for zone in zones:
            if zone.contains(minutes):
                logger.debug("zone_classified", zone=zone.name, drive_time_minutes=minutes)
                return zone

        zone_names = [z.name for z in zones]
        logger.error(
            "zone_classification_failed",
            drive_time_minutes=minutes,
            zones=zone_names,
        )
        raise InvalidZoneConfigError(
            f"No configured zone covers a drive time of {minutes:g} minutes",
            drive_time_minutes=minutes,
            zone_names=zone_names,
        )
