"""Threshold rules — raise alerts when indicator values or incident counts cross a line."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta

from conflict_engine.alerting.models import (
    AlertRequest,
    ThresholdEvaluation,
    ThresholdRule,
    ThresholdTrigger,
)
from conflict_engine.ports import AlertSink, IncidentSource, RiskIndicatorSource, ThresholdRuleSource
from conflict_engine.records.models import (
    IncidentRecord,
    RiskIndicatorRecord,
    Severity,
    utcnow,
)

logger = logging.getLogger("engine.alerting")

DEFAULT_MESSAGE = "Threshold condition met."
DEFAULT_WITHIN_DAYS = 7


def _same_region(wanted: str | None, actual: str | None) -> bool:
    if not wanted:
        return True
    return (actual or "").lower() == wanted.lower()


def _config_number(config: dict, key: str, cast, default):
    """Read a numeric trigger setting; admin-edited JSON may hold numbers as strings."""
    value = config.get(key)
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        raise ValueError(f"{key} must be a number")
    return cast(value)


def indicator_rule_fires(rule: ThresholdRule, indicators: list[RiskIndicatorRecord]) -> bool:
    config = rule.trigger_config
    indicator_id = _config_number(config, "indicatorId", int, None)
    min_value = _config_number(config, "minValue", float, 0.0)
    return any(
        (indicator_id is None or r.id == indicator_id)
        and _same_region(config.get("region"), r.region)
        and r.value >= min_value
        for r in indicators
    )


def incident_count_rule_fires(
    rule: ThresholdRule, incidents: list[IncidentRecord], as_of: datetime
) -> bool:
    config = rule.trigger_config
    within_days = _config_number(config, "withinDays", int, DEFAULT_WITHIN_DAYS) or DEFAULT_WITHIN_DAYS
    count = _config_number(config, "count", int, 0)
    since = as_of - timedelta(days=within_days)
    matching = [
        i for i in incidents
        if i.reported_at >= since and _same_region(config.get("region"), i.region)
    ]
    return len(matching) >= count


def rule_fires(
    rule: ThresholdRule,
    indicators: list[RiskIndicatorRecord],
    incidents: list[IncidentRecord],
    as_of: datetime,
) -> bool:
    try:
        if rule.trigger_type == ThresholdTrigger.INDICATOR.value:
            return indicator_rule_fires(rule, indicators)
        if rule.trigger_type == ThresholdTrigger.INCIDENT_COUNT.value:
            return incident_count_rule_fires(rule, incidents, as_of)
    except (AttributeError, TypeError, ValueError, OverflowError) as exc:
        logger.warning("Skipping threshold rule %d with malformed trigger config: %s", rule.id, exc)
        return False
    logger.warning("Unknown threshold trigger type %r on rule %d", rule.trigger_type, rule.id)
    return False


def evaluate_threshold_rules(
    rules: list[ThresholdRule],
    indicators: list[RiskIndicatorRecord],
    incidents: list[IncidentRecord],
    as_of: datetime | None = None,
) -> list[AlertRequest]:
    """One alert request per active rule whose condition currently holds."""
    as_of = as_of or utcnow()
    requests = []
    for rule in rules:
        if not rule.active or not rule_fires(rule, indicators, incidents, as_of):
            continue
        requests.append(AlertRequest(
            title=rule.name,
            message=rule.message_template if rule.message_template is not None else DEFAULT_MESSAGE,
            severity=rule.severity or Severity.HIGH,
            threshold_rule_id=rule.id,
        ))
    return requests


class ThresholdEvaluator:
    def __init__(
        self,
        rules: ThresholdRuleSource,
        indicators: RiskIndicatorSource,
        incidents: IncidentSource,
        alerts: AlertSink,
    ) -> None:
        self._rules = rules
        self._indicators = indicators
        self._incidents = incidents
        self._alerts = alerts

    async def evaluate(self, as_of: datetime | None = None) -> ThresholdEvaluation:
        rules = await self._rules.list_threshold_rules()
        indicators = await self._indicators.list_indicators()
        incidents = await self._incidents.list_incidents()

        requests = evaluate_threshold_rules(rules, indicators, incidents, as_of=as_of)
        created = 0
        for request in requests:
            await self._alerts.create_alert(request)
            created += 1

        logger.info("Threshold rules evaluated: %d triggered, %d alerts created", len(requests), created)
        return ThresholdEvaluation(triggered=len(requests), created=created)
