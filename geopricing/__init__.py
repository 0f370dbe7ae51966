"""Geopricing - geodesic property measurement and drive-time pricing.

This package measures property polygons on a spherical earth and prices
service quotes from a customer's drive time.

Architecture:
- SphericalGeometryEngine: distance, perimeter, area and bearing
- PropertyBoundaryEstimator: approximate boundaries from an address
- DriveTimeZoneClassifier: drive time -> pricing zone
- PricingRuleEngine: prioritized business pricing rules
- GeopricingOrchestrator: zone stage + rule stage -> priced quote
"""

__version__ = "0.1.0"
