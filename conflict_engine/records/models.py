"""Value records shared by every analysis component."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Snake_case attributes, camelCase on the wire; either form accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Severity(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def score(self) -> int:
        return _SEVERITY_SCORES[self]


_SEVERITY_SCORES = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class IncidentStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    PENDING = "pending"


class VerificationStatus(str, Enum):
    UNVERIFIED = "unverified"
    VERIFIED = "verified"
    REJECTED = "rejected"


class RiskBand(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


def as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class IncidentRecord(CamelModel):
    """A validated incident report."""

    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str = ""
    location: str = ""
    region: str | None = None
    state: str | None = None
    category: str | None = None
    severity: Severity
    status: IncidentStatus
    verification_status: VerificationStatus | None = None
    reported_at: datetime
    updated_at: datetime | None = None
    impacted_population: int | None = None

    @field_validator("reported_at", "updated_at")
    @classmethod
    def _to_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None


class RawIncident(CamelModel):
    """An incident row exactly as stored; nothing is guaranteed, not even field types."""

    model_config = ConfigDict(extra="allow")

    id: Any = None
    title: Any = None
    description: Any = None
    location: Any = None
    region: Any = None
    state: Any = None
    category: Any = None
    severity: Any = None
    status: Any = None
    verification_status: Any = None
    reported_at: Any = None
    updated_at: Any = None
    impacted_population: Any = None


class RiskIndicatorRecord(CamelModel):
    id: int
    name: str = ""
    region: str | None = None
    value: float = Field(default=0.0, ge=0.0, le=100.0)
    timestamp: datetime | None = None


class AlertRecord(CamelModel):
    """A raised alert, the payload of an ``alert_created`` event."""

    id: int
    title: str
    description: str = ""
    location: str | None = None
    region: str | None = None
    severity: Severity = Severity.MEDIUM
    category: str | None = None
    source: str | None = None
    escalation_level: int | None = None
    created_at: datetime = Field(default_factory=utcnow)


class UserRecord(CamelModel):
    id: int
    username: str = ""
    role: str = "user"
    security_level: int = 0
    active: bool = True
