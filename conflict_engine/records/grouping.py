"""Bucketing helpers over incident lists."""

from __future__ import annotations

import hashlib
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Callable, Iterable

from conflict_engine.records.models import IncidentRecord

UNKNOWN = "Unknown"


def chronological(incidents: Iterable[IncidentRecord]) -> list[IncidentRecord]:
    """Sort by report time; id breaks ties so input order never matters."""
    return sorted(incidents, key=lambda i: (i.reported_at, i.id))


def in_window(
    incidents: Iterable[IncidentRecord], start: datetime, end: datetime
) -> list[IncidentRecord]:
    return chronological(i for i in incidents if start <= i.reported_at <= end)


def window_for(as_of: datetime, timeframe_days: int) -> tuple[datetime, datetime]:
    return as_of - timedelta(days=timeframe_days), as_of


def _group(
    incidents: Iterable[IncidentRecord], key: Callable[[IncidentRecord], object]
) -> dict:
    groups: dict = defaultdict(list)
    for incident in incidents:
        groups[key(incident)].append(incident)
    return dict(sorted(groups.items()))


def by_region(incidents: Iterable[IncidentRecord]) -> dict[str, list[IncidentRecord]]:
    return _group(incidents, lambda i: i.region or UNKNOWN)


def by_category(incidents: Iterable[IncidentRecord]) -> dict[str, list[IncidentRecord]]:
    return _group(incidents, lambda i: i.category or UNKNOWN)


def by_day(incidents: Iterable[IncidentRecord]) -> dict[str, list[IncidentRecord]]:
    return _group(incidents, lambda i: i.reported_at.date().isoformat())


def by_month(incidents: Iterable[IncidentRecord]) -> dict[int, list[IncidentRecord]]:
    """Calendar month (1-12) across every year observed."""
    return _group(incidents, lambda i: i.reported_at.month)


def average_severity(incidents: list[IncidentRecord]) -> float:
    if not incidents:
        return 0.0
    return sum(i.severity.score for i in incidents) / len(incidents)


def escalating_pairs(ordered: list[IncidentRecord]) -> list[IncidentRecord]:
    """The later member of every adjacent pair whose severity strictly increases."""
    return [
        curr
        for prev, curr in zip(ordered, ordered[1:])
        if curr.severity.score > prev.severity.score
    ]


def regions_of(incidents: Iterable[IncidentRecord]) -> list[str]:
    return sorted({i.region or UNKNOWN for i in incidents})


def stable_id(kind: str, *parts: object) -> str:
    digest = hashlib.sha1("|".join(str(p) for p in parts).encode()).hexdigest()[:12]
    return f"{kind}_{digest}"
