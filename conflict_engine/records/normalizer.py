"""Normalize raw stored incident rows into validated IncidentRecords."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable

import pydantic

from conflict_engine.errors import ValidationError
from conflict_engine.records.models import (
    IncidentRecord,
    IncidentStatus,
    RawIncident,
    Severity,
    VerificationStatus,
    as_utc,
)

logger = logging.getLogger("engine.records")

_FORMATS = ("%Y-%m-%dT%H:%M:%S.%f%z", "%Y-%m-%dT%H:%M:%S%z", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d")


def parse_ts(raw: Any) -> datetime | None:
    """Parse a datetime or ISO-8601 string into aware UTC; None when unparsable."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, datetime):
        return as_utc(raw)
    if not isinstance(raw, str):
        return None
    text = raw.strip().replace("Z", "+00:00")
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        pass
    for fmt in _FORMATS:
        try:
            parsed = datetime.strptime(text, fmt)
        except ValueError:
            continue
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return as_utc(parsed)
    return None


def _enum_value(enum_cls, raw: Any, field: str, required: bool = True):
    if raw is None or raw == "":
        if required:
            raise ValidationError(f"Incident is missing required field '{field}'")
        return None
    if not isinstance(raw, str):
        raise ValidationError(f"Invalid {field} value '{raw}'")
    try:
        return enum_cls(raw.strip().lower())
    except ValueError:
        raise ValidationError(f"Invalid {field} value '{raw}'") from None


def normalize_incident(raw: RawIncident | dict) -> IncidentRecord:
    """Validate a raw row. Raises ValidationError naming the offending field."""
    if isinstance(raw, dict):
        raw = RawIncident.model_validate(raw)

    if raw.id is None:
        raise ValidationError("Incident is missing required field 'id'")
    try:
        incident_id = int(raw.id)
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid id value '{raw.id}'") from None

    if not raw.title:
        raise ValidationError(f"Incident {incident_id} is missing required field 'title'")

    reported_at = parse_ts(raw.reported_at)
    if reported_at is None:
        raise ValidationError(f"Incident {incident_id} has no parsable 'reportedAt'")

    try:
        return _build(incident_id, raw, reported_at)
    except pydantic.ValidationError as exc:
        field = exc.errors()[0]["loc"][0]
        raise ValidationError(f"Incident {incident_id} has an invalid '{field}'") from None


def _build(incident_id: int, raw: RawIncident, reported_at: datetime) -> IncidentRecord:
    return IncidentRecord(
        id=incident_id,
        title=raw.title,
        description=raw.description or "",
        location=raw.location or "",
        region=raw.region or None,
        state=raw.state or None,
        category=raw.category or None,
        severity=_enum_value(Severity, raw.severity, "severity"),
        status=_enum_value(IncidentStatus, raw.status, "status"),
        verification_status=_enum_value(
            VerificationStatus, raw.verification_status, "verificationStatus", required=False
        ),
        reported_at=reported_at,
        updated_at=parse_ts(raw.updated_at),
        impacted_population=raw.impacted_population,
    )


def normalize_incidents(rows: Iterable[RawIncident | dict]) -> list[IncidentRecord]:
    """Normalize a batch, skipping (and logging) rows that fail validation."""
    incidents = []
    for row in rows:
        try:
            incidents.append(normalize_incident(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed incident row: %s", exc)
    return incidents
