"""Data models for anomaly detection and data-quality scanning."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from conflict_engine.records.models import CamelModel, Severity, utcnow


class Anomaly(CamelModel):
    id: str
    region: str
    day: str
    observed: int
    expected: float
    ratio: float
    severity: Severity
    related_incidents: list[int] = []
    description: str


class AnomalySummary(CamelModel):
    total_anomalies: int = 0
    high_severity: int = 0
    regions: list[str] = []


class AnomalyDetectionResult(CamelModel):
    anomalies: list[Anomaly] = []
    summary: AnomalySummary
    generated_at: datetime = Field(default_factory=utcnow)


class IssueType(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_VALUE = "invalid_value"
    SUSPICIOUS_DATE = "suspicious_date"


class DataQualityIssue(CamelModel):
    entity_type: str = "incident"
    entity_id: str
    issue_type: IssueType
    field: str | None = None
    severity: Severity
    message: str


class QualitySummary(CamelModel):
    total_issues: int = 0
    high_severity: int = 0
    by_type: dict[str, int] = {}


class DataQualityReport(CamelModel):
    issues: list[DataQualityIssue] = []
    summary: QualitySummary
    scanned: int = 0
    generated_at: datetime = Field(default_factory=utcnow)
