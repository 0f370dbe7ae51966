"""Unit tests for the Firestore config store."""

import pytest
from unittest.mock import AsyncMock, MagicMock

from firebase_admin import firestore

from geopricing.config.errors import ConfigStoreError
from geopricing.models.zones import AdjustmentType
from geopricing.tests.fixtures.mock_geopricing_data import (
    GEOPRICING_CONFIG_DOC,
    INVALID_RULE_DOC,
    PRICING_RULE_DOCS,
)


def make_doc(doc_id, data, exists=True):
    doc = MagicMock()
    doc.id = doc_id
    doc.exists = exists
    doc.to_dict.return_value = dict(data) if data is not None else None
    return doc


class TestGetZones:
    """Tests for get_config() and get_zones()."""

    @pytest.mark.asyncio
    async def test_get_zones(self, mock_config_store, mock_firestore_client):
        document = mock_firestore_client.collection.return_value.document.return_value
        document.get = AsyncMock(return_value=make_doc("biz-123", GEOPRICING_CONFIG_DOC))

        zones = await mock_config_store.get_zones("biz-123")

        assert [zone.name for zone in zones] == ["Close Proximity", "Standard Service", "Extended Service"]
        assert zones[0].adjustment_type == AdjustmentType.PERCENTAGE
        assert zones[2].drive_time_max is None
        mock_firestore_client.collection.assert_called_with("geopricingConfigs")
        mock_firestore_client.collection.return_value.document.assert_called_with("biz-123")

    @pytest.mark.asyncio
    async def test_sync_client_supported(self, mock_config_store, mock_firestore_client):
        document = mock_firestore_client.collection.return_value.document.return_value
        document.get.return_value = make_doc("biz-123", GEOPRICING_CONFIG_DOC)

        config = await mock_config_store.get_config("biz-123")

        assert config["pricing"]["currency"] == "CAD"

    @pytest.mark.asyncio
    async def test_missing_config(self, mock_config_store, mock_firestore_client):
        document = mock_firestore_client.collection.return_value.document.return_value
        document.get = AsyncMock(return_value=make_doc("biz-404", None, exists=False))

        assert await mock_config_store.get_config("biz-404") is None
        assert await mock_config_store.get_zones("biz-404") == []

    @pytest.mark.asyncio
    async def test_malformed_zone(self, mock_config_store, mock_firestore_client):
        bad = {"zones": [{"name": "Broken", "driveTimeMin": -1}]}
        document = mock_firestore_client.collection.return_value.document.return_value
        document.get = AsyncMock(return_value=make_doc("biz-123", bad))

        with pytest.raises(ConfigStoreError):
            await mock_config_store.get_zones("biz-123")

    @pytest.mark.asyncio
    async def test_read_failure(self, mock_config_store, mock_firestore_client):
        document = mock_firestore_client.collection.return_value.document.return_value
        document.get = AsyncMock(side_effect=RuntimeError("unavailable"))

        with pytest.raises(ConfigStoreError) as exc_info:
            await mock_config_store.get_config("biz-123")

        assert exc_info.value.to_dict()["code"] == "CONFIG_STORE_ERROR"


class TestGetPricingRules:
    """Tests for get_pricing_rules()."""

    @pytest.mark.asyncio
    async def test_valid_rules_loaded(self, mock_config_store, mock_firestore_client):
        docs = [make_doc(doc_id, data) for doc_id, data in PRICING_RULE_DOCS.items()]
        mock_firestore_client.collection.return_value.get = AsyncMock(return_value=docs)

        rules = await mock_config_store.get_pricing_rules("biz-123")

        assert [rule.id for rule in rules] == ["rule-vip", "rule-zip"]
        assert rules[0].conditions.customer_tags == ["vip"]
        assert rules[0].applied_count == 4
        mock_firestore_client.collection.assert_called_with("pricingRules")
        assert mock_firestore_client.collection.return_value.where.call_count == 2

    @pytest.mark.asyncio
    async def test_inactive_rules_included_on_request(self, mock_config_store, mock_firestore_client):
        mock_firestore_client.collection.return_value.get = AsyncMock(return_value=[])

        await mock_config_store.get_pricing_rules("biz-123", active_only=False)

        assert mock_firestore_client.collection.return_value.where.call_count == 1

    @pytest.mark.asyncio
    async def test_invalid_rule_skipped(self, mock_config_store, mock_firestore_client):
        docs = [
            make_doc("rule-broken", INVALID_RULE_DOC),
            make_doc("rule-vip", PRICING_RULE_DOCS["rule-vip"]),
        ]
        mock_firestore_client.collection.return_value.get = AsyncMock(return_value=docs)

        rules = await mock_config_store.get_pricing_rules("biz-123")

        assert [rule.id for rule in rules] == ["rule-vip"]

    @pytest.mark.asyncio
    async def test_query_failure(self, mock_config_store, mock_firestore_client):
        mock_firestore_client.collection.return_value.get = AsyncMock(side_effect=RuntimeError("denied"))

        with pytest.raises(ConfigStoreError):
            await mock_config_store.get_pricing_rules("biz-123")


class TestRecordRuleApplied:
    """Tests for record_rule_applied()."""

    def test_increments_applied_count(self, mock_config_store, mock_firestore_client, volume_rule):
        mock_config_store.record_rule_applied(volume_rule)

        mock_firestore_client.collection.return_value.document.assert_called_with("rule-volume")
        update = mock_firestore_client.collection.return_value.document.return_value.update
        update.assert_called_once()
        payload = update.call_args[0][0]
        assert isinstance(payload["appliedCount"], firestore.Increment)
        assert payload["lastAppliedAt"] is firestore.SERVER_TIMESTAMP

    def test_write_failure(self, mock_config_store, mock_firestore_client, volume_rule):
        update = mock_firestore_client.collection.return_value.document.return_value.update
        update.side_effect = RuntimeError("quota exceeded")

        with pytest.raises(ConfigStoreError):
            mock_config_store.record_rule_applied(volume_rule)
