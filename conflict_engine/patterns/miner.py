"""Pattern miner — five independent detectors over a window of incidents."""

from __future__ import annotations

import logging
import math
from datetime import datetime, timedelta
from typing import Callable

from conflict_engine.config import Settings, settings
from conflict_engine.patterns.models import (
    ConflictPattern,
    PatternDetectionResult,
    PatternSummary,
    PatternType,
    TimeWindow,
)
from conflict_engine.records import grouping
from conflict_engine.records.models import IncidentRecord, Severity, utcnow

logger = logging.getLogger("engine.patterns")

RESOURCE_KEYWORDS = ("farmer", "herder", "land", "water", "grazing", "crop", "cattle", "resource")

Detector = Callable[[list[IncidentRecord], TimeWindow, Settings], ConflictPattern | None]


def detect_geographic_escalation(
    incidents: list[IncidentRecord], window: TimeWindow, cfg: Settings
) -> ConflictPattern | None:
    """Fires when several regions each show a run of rising severity."""
    spreading: list[str] = []
    related: list[int] = []

    for region, region_incidents in grouping.by_region(incidents).items():
        rising = grouping.escalating_pairs(region_incidents)
        if len(rising) > len(region_incidents) * cfg.geo_escalation_pair_ratio:
            spreading.append(region)
            related.extend(i.id for i in region_incidents)

    if len(spreading) < cfg.geo_min_spreading_regions:
        return None

    count = len(spreading)
    if count >= 4:
        severity = Severity.CRITICAL
    elif count >= 3:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM

    return ConflictPattern(
        id=grouping.stable_id("geo_escalation", *related),
        type=PatternType.GEOGRAPHIC_SPREAD,
        title="Geographic Conflict Escalation Detected",
        description=(
            "Conflict patterns are spreading across multiple regions with increasing severity. "
            f"{count} regions showing escalation trends."
        ),
        confidence=min(95, 60 + 10 * count),
        severity=severity,
        regions=spreading,
        timeframe=window,
        indicators=[
            "Cross-regional incident correlation",
            "Increasing severity trends",
            "Geographic proximity clustering",
            "Similar conflict types across regions",
        ],
        related_incidents=related,
        risk_factors=[
            "Porous borders enabling conflict spread",
            "Similar socio-economic conditions",
            "Weak governance structures",
            "Resource competition spillover",
        ],
        recommendations=[
            "Enhance inter-regional security coordination",
            "Deploy rapid response teams to border areas",
            "Strengthen early warning systems",
            "Address root causes of regional tensions",
        ],
    )


def detect_temporal_clustering(
    incidents: list[IncidentRecord], window: TimeWindow, cfg: Settings
) -> ConflictPattern | None:
    """Fires when enough days carry more than twice the average daily volume."""
    window_days = max(1, math.ceil((window.end - window.start) / timedelta(days=1)))
    threshold = len(incidents) / window_days * cfg.temporal_spike_multiplier

    daily = grouping.by_day(incidents)
    flagged = {day: items for day, items in daily.items() if len(items) > threshold}

    if len(flagged) < cfg.temporal_min_flagged_days:
        return None

    hot = any(grouping.average_severity(items) > 3 for items in flagged.values())
    related = [i.id for items in flagged.values() for i in items]

    return ConflictPattern(
        id=grouping.stable_id("temporal_cluster", *flagged.keys()),
        type=PatternType.TEMPORAL,
        title="Temporal Incident Clustering Detected",
        description=(
            f"{len(flagged)} days with significantly elevated incident rates detected, "
            "suggesting coordinated or cascading conflicts."
        ),
        confidence=min(90, 50 + 8 * len(flagged)),
        severity=Severity.HIGH if hot else Severity.MEDIUM,
        regions=grouping.regions_of(incidents),
        timeframe=window,
        indicators=[
            "Spike in daily incident rates",
            "Temporal correlation patterns",
            "Coordinated timing indicators",
            "Cascading effect evidence",
        ],
        related_incidents=related,
        risk_factors=[
            "Coordinated attacks",
            "Retaliatory violence cycles",
            "Seasonal conflict patterns",
            "Event-triggered escalations",
        ],
        recommendations=[
            "Implement 24/7 monitoring during high-risk periods",
            "Pre-position response teams",
            "Activate emergency protocols",
            "Enhance intelligence gathering",
        ],
    )


def detect_actor_patterns(
    incidents: list[IncidentRecord], window: TimeWindow, cfg: Settings
) -> ConflictPattern | None:
    """Fires when one category recurs across several regions."""
    fragments: list[str] = []
    related: list[int] = []

    for category, category_incidents in grouping.by_category(incidents).items():
        if len(category_incidents) < cfg.actor_min_incidents:
            continue
        regions = grouping.regions_of(category_incidents)
        if len(regions) >= cfg.actor_min_regions:
            fragments.append(f"{category} incidents across {len(regions)} regions")
            related.extend(i.id for i in category_incidents)

    if not fragments:
        return None

    return ConflictPattern(
        id=grouping.stable_id("actor_pattern", *related),
        type=PatternType.ACTOR_BASED,
        title="Actor-Based Conflict Pattern Detected",
        description=(
            "Coordinated conflict patterns suggesting organized actor involvement: "
            f"{', '.join(fragments)}."
        ),
        confidence=min(85, 40 + 15 * len(fragments)),
        severity=Severity.HIGH if len(fragments) >= 3 else Severity.MEDIUM,
        regions=grouping.regions_of(incidents),
        timeframe=window,
        indicators=[
            "Similar modus operandi across regions",
            "Coordinated timing patterns",
            "Consistent target selection",
            "Geographic expansion patterns",
        ],
        related_incidents=related,
        risk_factors=[
            "Organized criminal networks",
            "Terrorist group activities",
            "Political manipulation",
            "Resource extraction conflicts",
        ],
        recommendations=[
            "Enhance intelligence sharing between regions",
            "Investigate potential actor connections",
            "Strengthen border security",
            "Target root causes of organized violence",
        ],
    )


def _mentions_resource(incident: IncidentRecord) -> bool:
    title = incident.title.lower()
    description = incident.description.lower()
    return any(k in title or k in description for k in RESOURCE_KEYWORDS)


def detect_resource_conflict(
    incidents: list[IncidentRecord], window: TimeWindow, cfg: Settings
) -> ConflictPattern | None:
    """Fires on a sustained volume of farmer/herder, land, and water incidents."""
    matches = [i for i in incidents if _mentions_resource(i)]
    if len(matches) < cfg.resource_min_incidents:
        return None

    regions = grouping.regions_of(matches)
    serious = sum(1 for i in matches if i.severity in (Severity.HIGH, Severity.CRITICAL))
    if serious >= 5:
        severity = Severity.HIGH
    elif serious >= 3:
        severity = Severity.MEDIUM
    else:
        severity = Severity.LOW

    related = [i.id for i in matches]
    return ConflictPattern(
        id=grouping.stable_id("resource_conflict", *related),
        type=PatternType.RESOURCE_CONFLICT,
        title="Resource-Based Conflict Pattern Detected",
        description=(
            f"{len(matches)} resource-related conflicts detected across {len(regions)} regions, "
            "indicating systemic resource competition issues."
        ),
        confidence=min(90, 50 + 3 * len(matches)),
        severity=severity,
        regions=regions,
        timeframe=window,
        indicators=[
            "Farmer-herder conflict patterns",
            "Land dispute escalations",
            "Water resource competition",
            "Seasonal migration conflicts",
        ],
        related_incidents=related,
        risk_factors=[
            "Climate change impacts",
            "Population growth pressure",
            "Weak land tenure systems",
            "Inadequate conflict resolution mechanisms",
        ],
        recommendations=[
            "Establish resource-sharing agreements",
            "Create early warning systems for resource stress",
            "Strengthen traditional conflict resolution",
            "Implement sustainable resource management",
        ],
    )


def escalation_rate(ordered: list[IncidentRecord]) -> tuple[float, list[IncidentRecord]]:
    """Share of adjacent pairs with rising severity; 0 for fewer than two incidents."""
    if len(ordered) <= 1:
        return 0.0, []
    rising = grouping.escalating_pairs(ordered)
    return len(rising) / (len(ordered) - 1), rising


def detect_severity_escalation(
    incidents: list[IncidentRecord], window: TimeWindow, cfg: Settings
) -> ConflictPattern | None:
    """Fires when severity rises across a large share of consecutive incidents."""
    rate, rising = escalation_rate(incidents)
    if rate <= cfg.severity_escalation_rate:
        return None

    if rate > 0.6:
        severity = Severity.CRITICAL
    elif rate > 0.4:
        severity = Severity.HIGH
    else:
        severity = Severity.MEDIUM

    related = [i.id for i in rising]
    return ConflictPattern(
        id=grouping.stable_id("escalation_pattern", *related),
        type=PatternType.ESCALATION,
        title="Conflict Severity Escalation Pattern",
        description=(
            f"{rate * 100:.1f}% of incidents show escalating severity trends, "
            "indicating deteriorating security conditions."
        ),
        confidence=min(95, round(40 + 100 * rate)),
        severity=severity,
        regions=grouping.regions_of(incidents),
        timeframe=window,
        indicators=[
            "Increasing incident severity",
            "Escalating violence patterns",
            "Deteriorating security metrics",
            "Rising casualty rates",
        ],
        related_incidents=related,
        risk_factors=[
            "Unresolved underlying tensions",
            "Weak conflict resolution mechanisms",
            "Proliferation of weapons",
            "Breakdown of social cohesion",
        ],
        recommendations=[
            "Immediate de-escalation interventions",
            "Strengthen peacekeeping presence",
            "Address root causes urgently",
            "Implement emergency response protocols",
        ],
    )


DETECTORS: tuple[Detector, ...] = (
    detect_geographic_escalation,
    detect_temporal_clustering,
    detect_actor_patterns,
    detect_resource_conflict,
    detect_severity_escalation,
)


def summarize(patterns: list[ConflictPattern]) -> PatternSummary:
    return PatternSummary(
        total_patterns=len(patterns),
        critical_patterns=sum(1 for p in patterns if p.severity == Severity.CRITICAL),
        emerging_threats=sum(1 for p in patterns if p.confidence > 75),
        affected_regions=sorted({r for p in patterns for r in p.regions}),
    )


def detect_patterns(
    incidents: list[IncidentRecord],
    timeframe_days: int = 90,
    as_of: datetime | None = None,
    cfg: Settings | None = None,
) -> PatternDetectionResult:
    """Run every detector over incidents reported within the trailing window."""
    cfg = cfg or settings
    as_of = as_of or utcnow()
    start, end = grouping.window_for(as_of, timeframe_days)
    window = TimeWindow(start=start, end=end)
    recent = grouping.in_window(incidents, start, end)

    logger.info(
        "Starting pattern detection: %d of %d incidents in the last %d days",
        len(recent), len(incidents), timeframe_days,
    )

    patterns = [p for p in (detect(recent, window, cfg) for detect in DETECTORS) if p]
    patterns.sort(key=lambda p: p.confidence, reverse=True)

    logger.info("Pattern detection completed: %d patterns detected", len(patterns))
    return PatternDetectionResult(patterns=patterns, summary=summarize(patterns))
