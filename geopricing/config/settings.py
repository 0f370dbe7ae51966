"""Geopricing configuration settings.

Loads configuration from environment variables with documented defaults.
Secrets are loaded via Google Cloud Secret Manager (production) or environment variables (emulator).
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv


@dataclass
class Settings:
    """Application settings loaded from environment variables.

    Defaults:
        currency: CAD
        base rate: $20 per 1,000 sq ft, minimum charge $50
        drive-time cache TTL: 900 seconds (15 minutes)
        quote validity: 30 days, pricing result validity: 30 minutes

    Note: the Google Maps API key is a secret and is resolved through
    config.secrets, not read directly by this class.
    """

    # Pricing defaults
    default_currency: str = field(default_factory=lambda: os.getenv("GEOPRICING_CURRENCY", "CAD"))
    default_base_rate_per_1000_sq_ft: float = field(default_factory=lambda: float(os.getenv("GEOPRICING_BASE_RATE", "20")))
    default_minimum_charge: float = field(default_factory=lambda: float(os.getenv("GEOPRICING_MINIMUM_CHARGE", "50")))

    # Validity windows
    pricing_result_ttl_minutes: int = field(default_factory=lambda: int(os.getenv("PRICING_RESULT_TTL_MINUTES", "30")))
    quote_validity_days: int = field(default_factory=lambda: int(os.getenv("QUOTE_VALIDITY_DAYS", "30")))

    # Google Maps
    maps_timeout_seconds: float = field(default_factory=lambda: float(os.getenv("MAPS_TIMEOUT_SECONDS", "10")))
    drive_time_cache_ttl_seconds: int = field(default_factory=lambda: int(os.getenv("DRIVE_TIME_CACHE_TTL_SECONDS", "900")))
    straight_line_fallback: bool = field(default_factory=lambda: os.getenv("STRAIGHT_LINE_FALLBACK", "false").lower() == "true")

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    # Internal: cached secret value (use google_maps_api_key property instead)
    _google_maps_api_key: Optional[str] = field(default=None, repr=False)

    @property
    def google_maps_api_key(self) -> Optional[str]:
        """Get Google Maps API key from Secret Manager or environment."""
        if self._google_maps_api_key is None:
            from geopricing.config.secrets import get_google_maps_api_key
            self._google_maps_api_key = get_google_maps_api_key()
        return self._google_maps_api_key

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting is out of range.
        """
        if self.default_base_rate_per_1000_sq_ft < 0:
            raise ValueError("GEOPRICING_BASE_RATE must not be negative")
        if self.default_minimum_charge < 0:
            raise ValueError("GEOPRICING_MINIMUM_CHARGE must not be negative")
        if self.drive_time_cache_ttl_seconds <= 0:
            raise ValueError("DRIVE_TIME_CACHE_TTL_SECONDS must be positive")

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


def load_settings(env_file: Optional[str] = None) -> Settings:
    """Load settings from the environment.

    Reads a .env file first (non-secret configuration only), then builds a
    fresh Settings instance. Callers own the returned object; nothing is
    cached at module level.

    Args:
        env_file: Optional path to a .env file. Defaults to dotenv's lookup.

    Returns:
        Validated Settings instance.
    """
    load_dotenv(env_file)
    settings = Settings()
    settings.validate()
    return settings
