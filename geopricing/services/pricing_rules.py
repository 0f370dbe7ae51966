"""Pricing Rule Engine for geopricing.

Applies a business's conditional pricing rules to service line items.

Composition contract:
- Only active rules are evaluated
- Rules run in (priority desc, created_at desc) order
- Each rule compounds on the price_per_unit left by the rules before it
- Within a rule, a fixed-price override is applied first, then the
  multiplier, then total_price is recomputed as area * price_per_unit

A rule with malformed conditions is skipped and logged; it never aborts
the remaining rules or the request.
"""

import math
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple, Union

import structlog
from pydantic import ValidationError

from geopricing.config.errors import RuleEvaluationError
from geopricing.models.pricing_rule import (
    AppliedRule,
    PricingContext,
    PricingRule,
    RuleApplicationResult,
    RulePreview,
    RuleType,
    ServiceLineItem,
    SkippedRule,
)

logger = structlog.get_logger(__name__)


class RuleUsageRecorder(Protocol):
    """Persists rule usage counters (e.g. FirestoreConfigStore)."""

    def record_rule_applied(self, rule: PricingRule) -> None:
        ...


def _sort_key(rule: PricingRule):
    created = rule.created_at.timestamp() if rule.created_at else -math.inf
    return (rule.priority, created)


RuleInput = Union[PricingRule, Dict[str, Any]]


def _describe_validation_error(error: ValidationError) -> str:
    fields = [".".join(str(part) for part in detail["loc"]) for detail in error.errors()]
    return f"Invalid rule definition: {', '.join(fields)}"


def parse_rules(rules: Sequence[RuleInput]) -> Tuple[List[PricingRule], List[SkippedRule]]:
    """Validate raw rule definitions one at a time.

    A definition that fails validation becomes a SkippedRule instead of
    failing the whole rule set.
    """
    parsed: List[PricingRule] = []
    skipped: List[SkippedRule] = []
    for rule in rules:
        if isinstance(rule, PricingRule):
            parsed.append(rule)
            continue
        try:
            parsed.append(PricingRule.model_validate(rule))
        except ValidationError as e:
            raw = rule if isinstance(rule, dict) else {}
            rule_id = str(raw.get("id") or "unknown")
            name = str(raw.get("name") or rule_id)
            reason = _describe_validation_error(e)
            logger.warning("rule_evaluation_failed", rule_id=rule_id, rule_name=name, error=reason)
            skipped.append(SkippedRule(rule_id=rule_id, name=name, reason=reason))
    return parsed, skipped


def order_rules(rules: Sequence[PricingRule]) -> List[PricingRule]:
    """Active rules in application order."""
    active = [rule for rule in rules if rule.is_active]
    return sorted(active, key=_sort_key, reverse=True)


def _matches_service(service_name: str, service_types: Sequence[str]) -> bool:
    name = service_name.lower()
    return any(service_type.lower() in name for service_type in service_types)


class PricingRuleEngine:
    """Evaluate and apply pricing rules.

    Stateless apart from the optional usage recorder, which is called once
    for every rule that applies.
    """

    def __init__(self, usage_recorder: Optional[RuleUsageRecorder] = None):
        self._usage_recorder = usage_recorder

    # -------------------------------------------------------------------------
    # Condition evaluation
    # -------------------------------------------------------------------------

    def is_applicable(
        self,
        rule: PricingRule,
        context: PricingContext,
        line_items: Sequence[ServiceLineItem],
    ) -> bool:
        """
        Check whether a rule's conditions hold for the request.

        Raises:
            RuleEvaluationError: If the rule lacks the conditions its type
                needs or they are inconsistent
        """
        conditions = rule.conditions

        if not self._within_schedule(rule, context):
            return False

        if rule.type == RuleType.ZONE:
            if not conditions.zip_codes:
                raise RuleEvaluationError("Zone rule has no zip codes", rule_id=rule.id)
            return context.zip_code is not None and context.zip_code in conditions.zip_codes

        if rule.type == RuleType.CUSTOMER:
            if not conditions.customer_tags:
                raise RuleEvaluationError("Customer rule has no customer tags", rule_id=rule.id)
            return bool(set(context.customer_tags) & set(conditions.customer_tags))

        if rule.type == RuleType.VOLUME:
            if conditions.min_area is None and conditions.max_area is None:
                raise RuleEvaluationError("Volume rule has no area bounds", rule_id=rule.id)
            min_area = conditions.min_area or 0.0
            if conditions.max_area is not None and conditions.max_area < min_area:
                raise RuleEvaluationError(
                    "Volume rule max_area is below min_area",
                    rule_id=rule.id,
                    details={"min_area": min_area, "max_area": conditions.max_area},
                )
            if context.total_area_sq_ft < min_area:
                return False
            return conditions.max_area is None or context.total_area_sq_ft <= conditions.max_area

        if rule.type == RuleType.SERVICE:
            if not conditions.service_types:
                raise RuleEvaluationError("Service rule has no service types", rule_id=rule.id)
            return any(_matches_service(item.name, conditions.service_types) for item in line_items)

        raise RuleEvaluationError(f"Unknown rule type {rule.type!r}", rule_id=rule.id)

    def _within_schedule(self, rule: PricingRule, context: PricingContext) -> bool:
        """Date-range and day-of-week conditions, checked against as_of_date."""
        conditions = rule.conditions
        if conditions.date_range is None and not conditions.day_of_week:
            return True

        if context.as_of_date is None:
            raise RuleEvaluationError(
                "Rule has a schedule condition but the request has no as_of_date",
                rule_id=rule.id,
            )

        as_of = context.as_of_date
        date_range = conditions.date_range
        if date_range is not None:
            if date_range.start and date_range.end and date_range.end < date_range.start:
                raise RuleEvaluationError("Rule date range ends before it starts", rule_id=rule.id)
            if date_range.start and as_of < date_range.start:
                return False
            if date_range.end and as_of > date_range.end:
                return False

        if conditions.day_of_week:
            if any(day < 0 or day > 6 for day in conditions.day_of_week):
                raise RuleEvaluationError(
                    "Rule day_of_week values must be 0-6",
                    rule_id=rule.id,
                    details={"day_of_week": conditions.day_of_week},
                )
            # 0 = Sunday
            if as_of.isoweekday() % 7 not in conditions.day_of_week:
                return False

        return True

    # -------------------------------------------------------------------------
    # Effects
    # -------------------------------------------------------------------------

    def _apply_effect(self, item: ServiceLineItem, rule: PricingRule) -> ServiceLineItem:
        effect = rule.pricing_effect
        adjusted = item.model_copy()

        if effect.fixed_prices is not None:
            override = effect.fixed_prices.price_for(item.name)
            if override is not None:
                adjusted.price_per_unit = override

        if (
            effect.price_multiplier is not None
            and effect.price_multiplier != 1
            and adjusted.price_per_unit is not None
        ):
            adjusted.price_per_unit *= effect.price_multiplier

        return adjusted.recalculate()

    def _record_usage(self, rule: PricingRule) -> None:
        rule.applied_count += 1
        if self._usage_recorder is None:
            return
        try:
            self._usage_recorder.record_rule_applied(rule)
        except Exception as e:
            logger.warning("rule_usage_record_failed", rule_id=rule.id, error=str(e))

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    def apply(
        self,
        line_items: Sequence[ServiceLineItem],
        rules: Sequence[RuleInput],
        context: PricingContext,
    ) -> RuleApplicationResult:
        """
        Apply rules to line items in priority order.

        Args:
            line_items: Items to price; not mutated
            rules: Business rules or raw rule dicts (inactive ones are
                ignored, invalid ones are skipped)
            context: Request facts for condition matching

        Returns:
            RuleApplicationResult with adjusted copies of the line items, the
            rules that applied and the rules skipped as malformed
        """
        items = [item.model_copy() for item in line_items]
        applied: List[AppliedRule] = []
        parsed, skipped = parse_rules(rules)

        for rule in order_rules(parsed):
            try:
                applies = self.is_applicable(rule, context, items)
            except RuleEvaluationError as e:
                logger.warning(
                    "rule_evaluation_failed",
                    rule_id=rule.id,
                    rule_name=rule.name,
                    error=e.message,
                )
                skipped.append(SkippedRule(rule_id=rule.id, name=rule.name, reason=e.message))
                continue

            if not applies:
                continue

            before = sum(item.total_price or 0.0 for item in items)
            for index, item in enumerate(items):
                if rule.type == RuleType.SERVICE and not _matches_service(item.name, rule.conditions.service_types):
                    continue
                items[index] = self._apply_effect(item, rule)
            after = sum(item.total_price or 0.0 for item in items)

            applied.append(
                AppliedRule(rule_id=rule.id, name=rule.name, type=rule.type, adjustment=after - before)
            )
            self._record_usage(rule)

            logger.info(
                "pricing_rule_applied",
                rule_id=rule.id,
                rule_type=rule.type.value,
                priority=rule.priority,
                adjustment=round(after - before, 2),
            )

        return RuleApplicationResult(line_items=items, applied_rules=applied, skipped_rules=skipped)

    def preview(
        self,
        line_items: Sequence[ServiceLineItem],
        rules: Sequence[RuleInput],
        context: PricingContext,
    ) -> RulePreview:
        """Totals before and after applying rules."""
        original_total = sum(item.area_sq_ft * (item.price_per_unit or 0.0) for item in line_items)
        result = self.apply(line_items, rules, context)
        adjusted_total = result.total

        return RulePreview(
            original_total=original_total,
            adjusted_total=adjusted_total,
            total_adjustment=adjusted_total - original_total,
            line_items=result.line_items,
            applied_rules=result.applied_rules,
        )
