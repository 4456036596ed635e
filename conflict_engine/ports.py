"""External collaborator interfaces the engine calls through.

Every persistence concern lives behind one of these protocols so the scoring,
pattern, and prediction logic can run against in-memory fakes. The Redis
adapters in ``conflict_engine.store`` implement all of them.
"""

from __future__ import annotations

from typing import Protocol

from conflict_engine.alerting.models import (
    AlertRequest,
    NotificationRequest,
    NotificationRule,
    ThresholdRule,
)
from conflict_engine.prediction.models import EscalationPrediction, PeaceOpportunity
from conflict_engine.records.models import (
    IncidentRecord,
    RawIncident,
    RiskIndicatorRecord,
    UserRecord,
)


class IncidentSource(Protocol):
    async def get_incident(self, incident_id: int) -> IncidentRecord | None: ...

    async def list_incidents(self) -> list[IncidentRecord]: ...

    async def list_raw_incidents(self) -> list[RawIncident]: ...


class RiskIndicatorSource(Protocol):
    async def top_indicators(
        self, region: str | None, limit: int = 10
    ) -> list[RiskIndicatorRecord]: ...

    async def list_indicators(self) -> list[RiskIndicatorRecord]: ...


class UserDirectory(Protocol):
    async def list_users(self) -> list[UserRecord]: ...


class RuleStore(Protocol):
    async def load_rules(self) -> list[NotificationRule]: ...

    async def save_rules(self, rules: list[NotificationRule]) -> list[NotificationRule]: ...


class ThresholdRuleSource(Protocol):
    async def list_threshold_rules(self) -> list[ThresholdRule]: ...


class AuditLog(Protocol):
    async def record_prediction(
        self, prediction: EscalationPrediction, model_source: str
    ) -> None: ...


class SnapshotStore(Protocol):
    async def save_opportunities(self, opportunities: list[PeaceOpportunity]) -> None: ...


class NotificationSink(Protocol):
    async def create_notification(self, request: NotificationRequest) -> None: ...


class AlertSink(Protocol):
    async def create_alert(self, request: AlertRequest) -> None: ...
