"""Data-quality scan over raw incident rows; one issue per defect found."""

from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable

from conflict_engine.anomaly.models import (
    DataQualityIssue,
    DataQualityReport,
    IssueType,
    QualitySummary,
)
from conflict_engine.config import Settings, settings
from conflict_engine.records.models import IncidentStatus, RawIncident, Severity, utcnow
from conflict_engine.records.normalizer import parse_ts

logger = logging.getLogger("engine.anomaly")

REQUIRED_FIELDS = (
    ("title", "title"),
    ("description", "description"),
    ("location", "location"),
    ("region", "region"),
    ("severity", "severity"),
    ("status", "status"),
    ("reported_at", "reportedAt"),
)

_TEXT_FIELDS = (
    ("title", "title"),
    ("description", "description"),
    ("location", "location"),
    ("region", "region"),
    ("state", "state"),
    ("category", "category"),
    ("verification_status", "verificationStatus"),
)

_ENUM_FIELDS = (
    ("severity", Severity),
    ("status", IncidentStatus),
)


def _is_blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _is_count(value) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, str) and value.strip().isdigit())


def scan_incident(raw: RawIncident, as_of: datetime, cfg: Settings) -> list[DataQualityIssue]:
    entity_id = "unknown" if raw.id is None else str(raw.id)

    def issue(kind: IssueType, field: str, severity: Severity, message: str) -> DataQualityIssue:
        return DataQualityIssue(
            entity_id=entity_id, issue_type=kind, field=field, severity=severity, message=message
        )

    issues = []
    for attr, field in REQUIRED_FIELDS:
        if _is_blank(getattr(raw, attr)):
            issues.append(issue(
                IssueType.MISSING_FIELD, field, Severity.MEDIUM,
                f"Incident {entity_id} is missing required field '{field}'",
            ))

    for attr, field in _TEXT_FIELDS:
        value = getattr(raw, attr)
        if value is not None and not isinstance(value, str):
            issues.append(issue(
                IssueType.INVALID_VALUE, field, Severity.MEDIUM,
                f"Incident {entity_id} has a non-text {field} ({type(value).__name__})",
            ))

    if raw.impacted_population is not None and not _is_count(raw.impacted_population):
        issues.append(issue(
            IssueType.INVALID_VALUE, "impactedPopulation", Severity.MEDIUM,
            f"Incident {entity_id} has a non-numeric impactedPopulation '{raw.impacted_population}'",
        ))

    for attr, enum_cls in _ENUM_FIELDS:
        value = getattr(raw, attr)
        if _is_blank(value):
            continue
        allowed = {member.value for member in enum_cls}
        if not isinstance(value, str) or value not in allowed:
            issues.append(issue(
                IssueType.INVALID_VALUE, attr, Severity.MEDIUM,
                f"Incident {entity_id} has invalid {attr} '{value}' "
                f"(expected one of {', '.join(sorted(allowed))})",
            ))

    if not _is_blank(raw.reported_at):
        reported_at = parse_ts(raw.reported_at)
        if reported_at is None:
            issues.append(issue(
                IssueType.INVALID_VALUE, "reportedAt", Severity.MEDIUM,
                f"Incident {entity_id} has an unparsable reportedAt '{raw.reported_at}'",
            ))
        elif reported_at > as_of + timedelta(seconds=cfg.quality_future_tolerance_seconds):
            issues.append(issue(
                IssueType.SUSPICIOUS_DATE, "reportedAt", Severity.HIGH,
                f"Incident {entity_id} is reported in the future ({reported_at.isoformat()})",
            ))

    return issues


def scan_quality(
    raw_incidents: Iterable[RawIncident | dict],
    as_of: datetime | None = None,
    cfg: Settings | None = None,
) -> DataQualityReport:
    cfg = cfg or settings
    as_of = as_of or utcnow()

    scanned = 0
    issues: list[DataQualityIssue] = []
    for row in raw_incidents:
        raw = RawIncident.model_validate(row) if isinstance(row, dict) else row
        issues.extend(scan_incident(raw, as_of, cfg))
        scanned += 1

    by_type = Counter(i.issue_type.value for i in issues)
    logger.info("Data quality scan completed: %d incidents, %d issues", scanned, len(issues))
    return DataQualityReport(
        issues=issues,
        scanned=scanned,
        summary=QualitySummary(
            total_issues=len(issues),
            high_severity=sum(1 for i in issues if i.severity in (Severity.HIGH, Severity.CRITICAL)),
            by_type=dict(sorted(by_type.items())),
        ),
    )
