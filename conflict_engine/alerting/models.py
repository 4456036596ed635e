"""Notification rules, threshold rules, and the requests they emit."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import Field

from conflict_engine.records.models import CamelModel, Severity


class NotificationRuleEvent(str, Enum):
    INCIDENT_CREATED = "incident_created"
    ALERT_CREATED = "alert_created"


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"
    CRISIS = "crisis"


class RuleConditions(CamelModel):
    """Every non-empty list must contain the record's value for the rule to match."""

    severity_in: list[str] | None = None
    region_in: list[str] | None = None
    category_in: list[str] | None = None
    source_in: list[str] | None = None
    escalation_level_gte: int | None = None


class RuleActions(CamelModel):
    notify_roles: list[str] = []
    notify_user_ids: list[int] = []
    notification_type: NotificationType | None = None
    title_template: str | None = None
    message_template: str | None = None


class NotificationRule(CamelModel):
    id: str
    name: str
    enabled: bool = True
    event: NotificationRuleEvent = NotificationRuleEvent.INCIDENT_CREATED
    conditions: RuleConditions | None = None
    actions: RuleActions = Field(default_factory=RuleActions)


class NotificationRequest(CamelModel):
    user_id: int
    incident_id: int | None = None
    alert_id: int | None = None
    title: str
    message: str = ""
    type: NotificationType


class ThresholdTrigger(str, Enum):
    INDICATOR = "indicator"
    INCIDENT_COUNT = "incident_count"


class ThresholdRule(CamelModel):
    """An administrator-defined condition that raises an alert when met.

    ``trigger_config`` keys depend on ``trigger_type``: ``indicatorId``, ``region`` and
    ``minValue`` for indicator rules; ``region``, ``count`` and ``withinDays`` for
    incident-count rules.
    """

    id: int
    name: str
    active: bool = True
    trigger_type: str
    trigger_config: dict[str, Any] = {}
    severity: Severity | None = None
    message_template: str | None = None


class AlertRequest(CamelModel):
    title: str
    message: str
    severity: Severity = Severity.HIGH
    status: str = "active"
    source: str = "threshold_rule"
    threshold_rule_id: int | None = None


class ThresholdEvaluation(CamelModel):
    triggered: int = 0
    created: int = 0


class NotificationEvaluation(CamelModel):
    event: NotificationRuleEvent
    created: int = 0
