"""Shared fixtures: an in-memory store implementing every engine port, plus record factories."""

from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from conflict_engine.alerting.models import (
    AlertRequest,
    NotificationRequest,
    NotificationRule,
    ThresholdRule,
)
from conflict_engine.alerting.notifications import normalize_rules
from conflict_engine.prediction.models import EscalationPrediction, PeaceOpportunity
from conflict_engine.records.models import (
    IncidentRecord,
    RawIncident,
    RiskIndicatorRecord,
    UserRecord,
)
from conflict_engine.records.normalizer import normalize_incidents

AS_OF = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)


class FakeStore:
    """Implements every port over plain lists; records every write."""

    def __init__(self) -> None:
        self.rows: list[dict[str, Any]] = []
        self.indicators: list[RiskIndicatorRecord] = []
        self.users: list[UserRecord] = []
        self.rules: list[NotificationRule] = []
        self.threshold_rules: list[ThresholdRule] = []
        self.audits: list[tuple[EscalationPrediction, str]] = []
        self.snapshots: list[list[PeaceOpportunity]] = []
        self.notifications: list[NotificationRequest] = []
        self.alerts: list[AlertRequest] = []
        self.fail_writes = False

    def add_incidents(self, *incidents: IncidentRecord) -> None:
        self.rows.extend(i.model_dump(mode="json", by_alias=True) for i in incidents)

    async def get_incident(self, incident_id: int) -> IncidentRecord | None:
        for incident in await self.list_incidents():
            if incident.id == incident_id:
                return incident
        return None

    async def list_incidents(self) -> list[IncidentRecord]:
        return normalize_incidents(self.rows)

    async def list_raw_incidents(self) -> list[RawIncident]:
        return [RawIncident.model_validate(row) for row in self.rows]

    async def top_indicators(self, region: str | None, limit: int = 10) -> list[RiskIndicatorRecord]:
        matching = sorted(
            (r for r in self.indicators if region is None or r.region == region), key=lambda r: (-r.value, r.id)
        )
        return matching[:limit]

    async def list_indicators(self) -> list[RiskIndicatorRecord]:
        return list(self.indicators)

    async def list_users(self) -> list[UserRecord]:
        return list(self.users)

    async def load_rules(self) -> list[NotificationRule]:
        return list(self.rules)

    async def save_rules(self, rules: list[Any]) -> list[NotificationRule]:
        self.rules = normalize_rules(rules)
        return list(self.rules)

    async def list_threshold_rules(self) -> list[ThresholdRule]:
        return list(self.threshold_rules)

    async def record_prediction(self, prediction: EscalationPrediction, model_source: str) -> None:
        if self.fail_writes:
            raise RuntimeError("audit table unavailable")
        self.audits.append((prediction, model_source))

    async def save_opportunities(self, opportunities: list[PeaceOpportunity]) -> None:
        if self.fail_writes:
            raise RuntimeError("snapshot table unavailable")
        self.snapshots.append(list(opportunities))

    async def create_notification(self, request: NotificationRequest) -> None:
        self.notifications.append(request)

    async def create_alert(self, request: AlertRequest) -> None:
        self.alerts.append(request)


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def make_incident():
    """Build an IncidentRecord reported ``days_ago`` days before AS_OF."""
    counter = iter(range(1, 10_000))

    def _make(
        severity: str = "medium",
        days_ago: float = 1,
        region: str | None = "North West",
        category: str | None = "violence",
        status: str = "active",
        description: str = "Incident report",
        **overrides: Any,
    ) -> IncidentRecord:
        incident_id = overrides.pop("id", None) or next(counter)
        fields = {
            "id": incident_id,
            "title": f"Incident {incident_id}",
            "description": description,
            "location": "Gusau",
            "region": region,
            "category": category,
            "severity": severity,
            "status": status,
            "reported_at": AS_OF - timedelta(days=days_ago),
        }
        fields.update(overrides)
        return IncidentRecord(**fields)

    return _make


@pytest.fixture
def make_user():
    def _make(user_id: int, role: str = "user", security_level: int = 0, active: bool = True) -> UserRecord:
        return UserRecord(
            id=user_id,
            username=f"user{user_id}",
            role=role,
            security_level=security_level,
            active=active,
        )

    return _make
