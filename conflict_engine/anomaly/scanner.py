"""Volume anomalies — days on which a region reports far more incidents than usual."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from conflict_engine.anomaly.models import Anomaly, AnomalyDetectionResult, AnomalySummary
from conflict_engine.config import Settings, settings
from conflict_engine.records import grouping
from conflict_engine.records.models import IncidentRecord, Severity, utcnow

logger = logging.getLogger("engine.anomaly")


def _severity_for(ratio: float) -> Severity:
    if ratio >= 4:
        return Severity.CRITICAL
    if ratio >= 3:
        return Severity.HIGH
    return Severity.MEDIUM


def _days(start: date, end: date) -> list[date]:
    return [start + timedelta(days=n) for n in range((end - start).days + 1)]


def detect_region_anomalies(
    region: str,
    incidents: list[IncidentRecord],
    start: date,
    end: date,
    cfg: Settings,
) -> list[Anomaly]:
    """Compare each day's count with the mean of the preceding trailing days.

    ``incidents`` may reach back before ``start``; those days only feed the history.
    """
    daily = grouping.by_day(incidents)
    trailing = cfg.anomaly_trailing_days
    days = _days(start - timedelta(days=trailing), end)
    counts = [len(daily.get(d.isoformat(), [])) for d in days]

    anomalies = []
    for idx in range(trailing, len(days)):
        day = days[idx]
        observed = counts[idx]
        if observed == 0:
            continue
        history = counts[idx - trailing:idx]
        mean = sum(history) / len(history) if history else 0.0
        expected = max(cfg.anomaly_expected_floor, mean)
        if observed <= expected * cfg.anomaly_multiplier:
            continue

        ratio = observed / expected
        related = [i.id for i in daily[day.isoformat()]]
        anomalies.append(Anomaly(
            id=grouping.stable_id("anomaly", region, day.isoformat(), *related),
            region=region,
            day=day.isoformat(),
            observed=observed,
            expected=round(expected, 2),
            ratio=round(ratio, 2),
            severity=_severity_for(ratio),
            related_incidents=related,
            description=(
                f"{region} reported {observed} incidents on {day.isoformat()} against an "
                f"expected {expected:.1f} ({ratio:.1f}x the trailing average)."
            ),
        ))
    return anomalies


def detect_anomalies(
    incidents: list[IncidentRecord],
    timeframe_days: int = 90,
    region: str | None = None,
    as_of: datetime | None = None,
    cfg: Settings | None = None,
) -> AnomalyDetectionResult:
    cfg = cfg or settings
    as_of = as_of or utcnow()
    start, end = grouping.window_for(as_of, timeframe_days)
    # one extra day so the first history day is counted whole
    history_start = start - timedelta(days=cfg.anomaly_trailing_days + 1)
    pool = grouping.in_window(incidents, history_start, end)
    if region:
        pool = [i for i in pool if (i.region or grouping.UNKNOWN) == region.strip()]

    anomalies = [
        anomaly
        for name, region_incidents in grouping.by_region(pool).items()
        for anomaly in detect_region_anomalies(name, region_incidents, start.date(), end.date(), cfg)
    ]
    anomalies.sort(key=lambda a: (a.day, a.region))

    logger.info("Anomaly detection completed: %d anomalies over %d days", len(anomalies), timeframe_days)
    return AnomalyDetectionResult(
        anomalies=anomalies,
        summary=AnomalySummary(
            total_anomalies=len(anomalies),
            high_severity=sum(1 for a in anomalies if a.severity in (Severity.HIGH, Severity.CRITICAL)),
            regions=sorted({a.region for a in anomalies}),
        ),
    )
