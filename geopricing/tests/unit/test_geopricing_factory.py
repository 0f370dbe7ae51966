"""Unit tests for the geopricing service factory."""

from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from geopricing.config.errors import LocationUnresolvedError
from geopricing.config.settings import Settings
from geopricing.services.geopricing_factory import create_services
from geopricing.tests.fixtures.mock_geopricing_data import (
    GEOPRICING_CONFIG_DOC,
    PRICING_RULE_DOCS,
)


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep the global structlog configuration untouched."""
    with patch("geopricing.services.geopricing_factory.configure_logging") as configure:
        yield configure


@pytest.fixture
def settings():
    return Settings(
        default_currency="CAD",
        default_base_rate_per_1000_sq_ft=20.0,
        default_minimum_charge=50.0,
        pricing_result_ttl_minutes=45,
        quote_validity_days=7,
        maps_timeout_seconds=5.0,
        drive_time_cache_ttl_seconds=60,
        straight_line_fallback=True,
        log_level="DEBUG",
        _google_maps_api_key="test-key",
    )


@pytest.fixture
def services(settings, mock_firestore_client, fixed_clock):
    return create_services(settings, db=mock_firestore_client, clock=fixed_clock)


def make_doc(doc_id, data):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = True
    doc.to_dict.return_value = dict(data)
    return doc


class TestCreateServices:
    """Settings reach the components they configure."""

    def test_settings_wired(self, services, settings, no_logging_setup):
        assert services.drive_time_cache.ttl_seconds == 60
        assert services.orchestrator.result_ttl_minutes == 45
        assert services.maps_service.timeout == 5.0
        assert services.maps_service.straight_line_fallback is True
        assert services.maps_service.cache is services.drive_time_cache
        no_logging_setup.assert_called_once_with("DEBUG")

    def test_config_store_records_rule_usage(self, services):
        assert services.orchestrator.rule_engine._usage_recorder is services.config_store

    def test_no_api_key_disables_maps(self, settings, mock_firestore_client):
        settings._google_maps_api_key = None
        with patch("geopricing.config.secrets.get_google_maps_api_key", return_value=None):
            services = create_services(settings, db=mock_firestore_client)
        assert services.maps_service is None


class TestDefaults:
    """Tests for apply_defaults()."""

    def test_missing_values_filled(self, services):
        data = services.apply_defaults({"driveTimeMinutes": 3})
        assert data["baseRatePer1000SqFt"] == 20.0
        assert data["minimumCharge"] == 50.0
        assert data["currency"] == "CAD"

    def test_request_values_kept(self, services):
        data = services.apply_defaults({"base_rate_per_1000_sq_ft": 30, "minimumCharge": 0, "currency": "USD"})
        assert "baseRatePer1000SqFt" not in data
        assert data["minimumCharge"] == 0
        assert data["currency"] == "USD"


class TestPriceForBusiness:
    """Tests for price_for_business() and issue_quote()."""

    @pytest.fixture
    def stored_config(self, mock_firestore_client):
        collection = mock_firestore_client.collection.return_value
        collection.document.return_value.get = AsyncMock(
            return_value=make_doc("biz-123", GEOPRICING_CONFIG_DOC)
        )
        collection.get = AsyncMock(return_value=[make_doc("rule-vip", PRICING_RULE_DOCS["rule-vip"])])
        return collection

    @pytest.mark.asyncio
    async def test_stored_zones_and_rules(self, services, stored_config):
        request = {"driveTimeMinutes": 3, "propertySizeSqFt": 5000, "context": {"customerTags": ["vip"]}}

        result = await services.price_for_business("biz-123", request)

        assert result.zone.name == "Close Proximity"
        assert result.total_price == 85.5
        assert [r.rule_id for r in result.applied_rules] == ["rule-vip"]
        stored_config.document.assert_any_call("rule-vip")
        stored_config.document.return_value.update.assert_called_once()

    @pytest.mark.asyncio
    async def test_request_rules_override_stored(self, services, stored_config):
        request = {
            "driveTimeMinutes": 3,
            "propertySizeSqFt": 5000,
            "customPricingRules": [],
            "context": {"customerTags": ["vip"]},
        }

        result = await services.price_for_business("biz-123", request)

        assert result.total_price == 95.0
        stored_config.get.assert_not_called()

    @pytest.mark.asyncio
    async def test_drive_time_required_without_maps(self, settings, mock_firestore_client, stored_config):
        settings._google_maps_api_key = None
        with patch("geopricing.config.secrets.get_google_maps_api_key", return_value=None):
            services = create_services(settings, db=mock_firestore_client)

        with pytest.raises(LocationUnresolvedError):
            await services.price_for_business("biz-123", {"propertySizeSqFt": 5000})

    @pytest.mark.asyncio
    async def test_issue_quote_uses_validity_days(self, services, stored_config):
        result = await services.price_for_business("biz-123", {"driveTimeMinutes": 10, "propertySizeSqFt": 5000})

        quote = services.issue_quote("q-1", result)

        assert quote.issued_at == result.calculated_at
        assert quote.valid_until - quote.issued_at == timedelta(days=7)
        assert result.expires_at - result.calculated_at == timedelta(minutes=45)
