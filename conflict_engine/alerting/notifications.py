"""Notification rule engine — turns new incidents and alerts into user notifications.

Rules are read fresh from the rule store on every evaluation. When no enabled rule
exists for the event, a fallback policy notifies every active admin or high-clearance
user. Evaluation is not deduplicated against earlier runs: evaluating the same record
twice sends the notifications twice.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, Union

import pydantic

from conflict_engine.alerting.models import (
    NotificationRequest,
    NotificationRule,
    NotificationRuleEvent,
    NotificationType,
    RuleActions,
    RuleConditions,
)
from conflict_engine.config import Settings, settings
from conflict_engine.ports import NotificationSink, RuleStore, UserDirectory
from conflict_engine.records.grouping import stable_id
from conflict_engine.records.models import AlertRecord, IncidentRecord, Severity, UserRecord
from conflict_engine.telemetry.metrics import notifications_dispatched

logger = logging.getLogger("engine.alerting")

EventRecord = Union[IncidentRecord, AlertRecord]

_PLACEHOLDER = re.compile(r"\{\{\s*([a-zA-Z0-9_]+)\s*\}\}")

_FALLBACK_TITLE = {
    NotificationRuleEvent.INCIDENT_CREATED: "New Incident: ",
    NotificationRuleEvent.ALERT_CREATED: "New Alert: ",
}
_RULE_TITLE = {
    NotificationRuleEvent.INCIDENT_CREATED: "Incident: ",
    NotificationRuleEvent.ALERT_CREATED: "Alert: ",
}
_VAR_PREFIX = {
    NotificationRuleEvent.INCIDENT_CREATED: "incident",
    NotificationRuleEvent.ALERT_CREATED: "alert",
}


def _coerce_part(model: type[pydantic.BaseModel], value: Any, rule_id: str):
    if not isinstance(value, dict):
        return None
    try:
        return model.model_validate(value)
    except pydantic.ValidationError:
        logger.warning("Ignoring malformed %s on notification rule %s", model.__name__, rule_id)
        return None


def coerce_rules(value: Any) -> list[NotificationRule]:
    """Leniently build rules from stored JSON; anything that is not an object is skipped."""
    if not isinstance(value, list):
        return []

    rules = []
    for index, raw in enumerate(value):
        if not isinstance(raw, dict):
            continue
        rule_id = raw.get("id")
        if not isinstance(rule_id, str):
            rule_id = stable_id("rule", index, json.dumps(raw, sort_keys=True, default=str))
        name = raw.get("name")
        enabled = raw.get("enabled")
        event = (
            NotificationRuleEvent.ALERT_CREATED
            if raw.get("event") == NotificationRuleEvent.ALERT_CREATED.value
            else NotificationRuleEvent.INCIDENT_CREATED
        )
        rules.append(NotificationRule(
            id=rule_id,
            name=name if isinstance(name, str) else "Rule",
            enabled=enabled if isinstance(enabled, bool) else True,
            event=event,
            conditions=_coerce_part(RuleConditions, raw.get("conditions"), rule_id),
            actions=_coerce_part(RuleActions, raw.get("actions"), rule_id) or RuleActions(),
        ))
    return rules


def normalize_rules(rules: list[Any]) -> list[NotificationRule]:
    """Prepare a rule list for saving: entries without a string id and name are dropped."""
    normalized = []
    for rule in rules:
        data = rule.model_dump(mode="json", by_alias=True) if isinstance(rule, NotificationRule) else rule
        if not isinstance(data, dict):
            continue
        if not isinstance(data.get("id"), str) or not isinstance(data.get("name"), str):
            continue
        data = {**data, "enabled": bool(data.get("enabled")), "conditions": data.get("conditions") or {}}
        normalized.extend(coerce_rules([data]))
    return normalized


def render_template(template: str | None, variables: dict[str, str]) -> str:
    """Substitute ``{{name}}`` placeholders; unknown names render empty."""
    if not template:
        return ""
    return _PLACEHOLDER.sub(lambda m: variables.get(m.group(1), ""), template)


def template_vars(event: NotificationRuleEvent, record: EventRecord) -> dict[str, str]:
    fields = record.model_dump(mode="json", by_alias=True)
    prefix = _VAR_PREFIX[event]
    variables: dict[str, str] = {}
    for key, value in fields.items():
        text = "" if value is None else str(value)
        variables[key] = text
        variables[prefix + key[0].upper() + key[1:]] = text
    return variables


def matches_conditions(conditions: RuleConditions | None, record: EventRecord) -> bool:
    if conditions is None:
        return True

    severity = record.severity.value if record.severity else None
    source = getattr(record, "source", None)
    checks = (
        (conditions.severity_in, severity),
        (conditions.region_in, record.region),
        (conditions.category_in, record.category),
        (conditions.source_in, source),
    )
    for allowed, actual in checks:
        if allowed and (not actual or actual not in allowed):
            return False

    if conditions.escalation_level_gte is not None:
        level = getattr(record, "escalation_level", None) or 0
        if level < conditions.escalation_level_gte:
            return False

    return True


def resolve_recipients(actions: RuleActions, users: list[UserRecord]) -> list[UserRecord]:
    """Explicit user ids first, then role members; active users only, first occurrence wins."""
    by_id = {u.id: u for u in users}
    candidates = [by_id[uid] for uid in actions.notify_user_ids if uid in by_id]
    if actions.notify_roles:
        candidates.extend(u for u in users if u.role in actions.notify_roles)

    recipients: dict[int, UserRecord] = {}
    for user in candidates:
        if user.active and user.id not in recipients:
            recipients[user.id] = user
    return list(recipients.values())


def default_type(record: EventRecord) -> NotificationType:
    if record.severity in (Severity.CRITICAL, Severity.HIGH):
        return NotificationType.CRITICAL
    return NotificationType.WARNING


def fallback_recipients(users: list[UserRecord], min_security_level: int) -> list[UserRecord]:
    return [
        u for u in users
        if u.active and (u.role == "admin" or u.security_level >= min_security_level)
    ]


def _request(
    event: NotificationRuleEvent,
    record: EventRecord,
    user: UserRecord,
    title: str,
    message: str,
    kind: NotificationType,
) -> NotificationRequest:
    is_incident = event == NotificationRuleEvent.INCIDENT_CREATED
    return NotificationRequest(
        user_id=user.id,
        incident_id=record.id if is_incident else None,
        alert_id=None if is_incident else record.id,
        title=title,
        message=message,
        type=kind,
    )


def plan_notifications(
    event: NotificationRuleEvent,
    record: EventRecord,
    rules: list[NotificationRule],
    users: list[UserRecord],
    cfg: Settings | None = None,
) -> list[NotificationRequest]:
    """Every notification the rule set yields for one record, in rule order."""
    cfg = cfg or settings
    enabled = [r for r in rules if r.enabled and r.event == event]

    if not enabled:
        title = _FALLBACK_TITLE[event] + record.title
        return [
            _request(event, record, user, title, record.description, default_type(record))
            for user in fallback_recipients(users, cfg.fallback_security_level)
        ]

    variables = template_vars(event, record)
    requests = []
    for rule in enabled:
        if not matches_conditions(rule.conditions, record):
            continue
        recipients = resolve_recipients(rule.actions, users)
        if not recipients:
            continue

        actions = rule.actions
        title = render_template(actions.title_template, variables) or _RULE_TITLE[event] + record.title
        message = render_template(actions.message_template, variables) or record.description
        kind = actions.notification_type or default_type(record)
        requests.extend(_request(event, record, user, title, message, kind) for user in recipients)
    return requests


class NotificationRuleEngine:
    def __init__(
        self,
        rules: RuleStore,
        users: UserDirectory,
        sink: NotificationSink,
        cfg: Settings | None = None,
    ) -> None:
        self._rules = rules
        self._users = users
        self._sink = sink
        self._cfg = cfg or settings

    async def evaluate(self, event: NotificationRuleEvent, record: EventRecord) -> int:
        """Dispatch notifications for a newly created record and return how many were sent."""
        rules = await self._rules.load_rules()
        users = await self._users.list_users()
        requests = plan_notifications(event, record, rules, users, cfg=self._cfg)

        for request in requests:
            await self._sink.create_notification(request)
            notifications_dispatched.labels(event=event.value).inc()

        logger.info(
            "Notification rules evaluated: event=%s record=%d notifications=%d",
            event.value, record.id, len(requests),
        )
        return len(requests)
