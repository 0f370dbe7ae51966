"""Firestore config store for geopricing.

Reads a business's zone configuration and pricing rules, and records
rule usage.
"""

from typing import Any, Dict, List, Optional, Protocol
import inspect
import structlog

from firebase_admin import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from geopricing.config.errors import ConfigStoreError
from geopricing.models.pricing_rule import PricingRule
from geopricing.models.zones import ZoneDefinition

logger = structlog.get_logger(__name__)


class PricingConfigStore(Protocol):
    """Source of a business's zones and pricing rules."""

    async def get_zones(self, business_id: str) -> List[ZoneDefinition]:
        ...

    async def get_pricing_rules(self, business_id: str, active_only: bool = True) -> List[PricingRule]:
        ...


class FirestoreConfigStore:
    """Pricing configuration backed by Firestore.

    Layout:
        geopricingConfigs/{businessId}   {zones: [...], pricing: {...}}
        pricingRules/{ruleId}            {businessId, isActive, ...}

    Note: Firebase Admin SDK for Python is synchronous. Reads are async
    for interface compatibility; record_rule_applied is sync because the
    rule engine calls it inline.
    """

    COLLECTION_CONFIGS = "geopricingConfigs"
    COLLECTION_RULES = "pricingRules"

    def __init__(self, db=None):
        """Initialize FirestoreConfigStore.

        Args:
            db: Optional Firestore client. If not provided, uses default.
        """
        self._db = db

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            self._db = firestore.client()
        return self._db

    async def _maybe_await(self, result: Any) -> Any:
        """Await result if it is awaitable (supports AsyncMock in unit tests)."""
        if inspect.isawaitable(result):
            return await result
        return result

    async def get_config(self, business_id: str) -> Optional[Dict[str, Any]]:
        """Fetch the raw geopricing config document, or None if absent.

        Raises:
            ConfigStoreError: If the Firestore read fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_CONFIGS).document(business_id)
            doc = await self._maybe_await(doc_ref.get())
        except Exception as e:
            logger.error("firestore_get_config_failed", business_id=business_id, error=str(e))
            raise ConfigStoreError(
                f"Failed to get geopricing config: {str(e)}",
                business_id=business_id,
            ) from e

        if not doc.exists:
            return None
        return doc.to_dict()

    async def get_zones(self, business_id: str) -> List[ZoneDefinition]:
        """Zones for a business, in stored order (empty if unconfigured).

        Raises:
            ConfigStoreError: If the read fails or a zone is malformed.
        """
        config = await self.get_config(business_id)
        if config is None:
            logger.warning("geopricing_config_missing", business_id=business_id)
            return []

        try:
            zones = [ZoneDefinition.model_validate(zone) for zone in config.get("zones", [])]
        except ValueError as e:
            raise ConfigStoreError(
                f"Stored zone configuration is invalid: {str(e)}",
                business_id=business_id,
            ) from e

        logger.debug("zones_loaded", business_id=business_id, count=len(zones))
        return zones

    async def get_pricing_rules(self, business_id: str, active_only: bool = True) -> List[PricingRule]:
        """Pricing rules for a business.

        Documents that fail validation are logged and left out; one bad
        rule does not block pricing.

        Raises:
            ConfigStoreError: If the Firestore query fails.
        """
        try:
            query = self.db.collection(self.COLLECTION_RULES).where(filter=FieldFilter("businessId", "==", business_id))
            if active_only:
                query = query.where(filter=FieldFilter("isActive", "==", True))
            docs = await self._maybe_await(query.get())
        except Exception as e:
            logger.error("firestore_get_rules_failed", business_id=business_id, error=str(e))
            raise ConfigStoreError(
                f"Failed to get pricing rules: {str(e)}",
                business_id=business_id,
            ) from e

        rules = []
        for doc in docs:
            try:
                rules.append(PricingRule.model_validate({"id": doc.id, **doc.to_dict()}))
            except ValueError as e:
                logger.warning("pricing_rule_invalid", business_id=business_id, rule_id=doc.id, error=str(e))

        logger.debug("pricing_rules_loaded", business_id=business_id, count=len(rules))
        return rules

    def record_rule_applied(self, rule: PricingRule) -> None:
        """Increment a rule's appliedCount.

        Raises:
            ConfigStoreError: If the Firestore write fails.
        """
        try:
            doc_ref = self.db.collection(self.COLLECTION_RULES).document(rule.id)
            doc_ref.update({
                "appliedCount": firestore.Increment(1),
                "lastAppliedAt": firestore.SERVER_TIMESTAMP,
            })
        except Exception as e:
            logger.error("firestore_rule_usage_failed", rule_id=rule.id, error=str(e))
            raise ConfigStoreError(
                f"Failed to record rule usage: {str(e)}",
                details={"rule_id": rule.id},
            ) from e
