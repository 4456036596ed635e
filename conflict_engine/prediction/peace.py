"""Peace opportunity predictor — windows where peace initiatives are likely to land."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta
from typing import Callable

from dateutil.relativedelta import relativedelta

from conflict_engine.config import Settings, settings
from conflict_engine.ports import IncidentSource, SnapshotStore
from conflict_engine.prediction.models import (
    OpportunityWindow,
    PeaceIndicatorsResult,
    PeaceOpportunity,
    PeaceSummary,
)
from conflict_engine.records import grouping
from conflict_engine.records.models import IncidentRecord, IncidentStatus, Priority, utcnow
from conflict_engine.telemetry.metrics import best_effort_failures

logger = logging.getLogger("engine.prediction")

NATIONAL = "National"

Detector = Callable[[list[IncidentRecord], datetime, datetime, Settings], list[PeaceOpportunity]]


def _window(as_of: datetime, length_days: int, optimal_in_days: int) -> OpportunityWindow:
    return OpportunityWindow(
        start=as_of,
        end=as_of + timedelta(days=length_days),
        optimal=as_of + timedelta(days=optimal_in_days),
    )


def detect_declining_violence(
    incidents: list[IncidentRecord], start: datetime, as_of: datetime, cfg: Settings
) -> list[PeaceOpportunity]:
    """Regions whose incidents in the later half of the window are fewer and less severe."""
    midpoint = start + (as_of - start) / 2
    opportunities = []
    for region, region_incidents in grouping.by_region(incidents).items():
        first = [i for i in region_incidents if i.reported_at < midpoint]
        second = [i for i in region_incidents if i.reported_at >= midpoint]
        if not first or not second:
            continue

        reduction = grouping.average_severity(first) - grouping.average_severity(second)
        if reduction <= cfg.declining_min_severity_drop:
            continue
        if len(second) >= len(first) * cfg.declining_max_count_ratio:
            continue

        frequency_drop = (1 - len(second) / len(first)) * 100
        opportunities.append(PeaceOpportunity(
            id=grouping.stable_id("declining_violence", region, *(i.id for i in region_incidents)),
            title=f"Declining Violence Trend in {region}",
            description=(
                f"{region} shows a {reduction * 25:.1f}% reduction in conflict severity and "
                f"{frequency_drop:.1f}% decrease in incident frequency."
            ),
            region=region,
            confidence=min(90, round(60 + reduction * 30)),
            priority=Priority.HIGH if reduction > 1.0 else Priority.MEDIUM,
            time_window=_window(as_of, 60, 14),
            indicators=[
                "Decreasing incident frequency",
                "Reducing conflict severity",
                "Improved security metrics",
                "Stabilizing conditions",
            ],
            prerequisites=[
                "Sustained security presence",
                "Community engagement",
                "Economic stability",
                "Political will",
            ],
            recommendations=[
                "Launch community dialogue initiatives",
                "Implement development projects",
                "Strengthen local governance",
                "Support reconciliation programs",
            ],
            risk_factors=[
                "External spoilers",
                "Economic deterioration",
                "Political instability",
                "Seasonal factors",
            ],
            success_probability=min(85, round(50 + reduction * 25)),
        ))
    return opportunities


def _resolution_days(incident: IncidentRecord) -> float:
    resolved_at = incident.updated_at or incident.reported_at
    return (resolved_at - incident.reported_at) / timedelta(days=1)


def detect_resolution_patterns(
    incidents: list[IncidentRecord], start: datetime, as_of: datetime, cfg: Settings
) -> list[PeaceOpportunity]:
    """Regions that resolve incidents quickly and often."""
    opportunities = []
    resolved = [i for i in incidents if i.status == IncidentStatus.RESOLVED]

    for region, resolutions in grouping.by_region(resolved).items():
        count = len(resolutions)
        if count < cfg.resolution_min_count:
            continue
        avg_days = sum(_resolution_days(i) for i in resolutions) / count
        if avg_days >= cfg.resolution_max_days:
            continue

        opportunities.append(PeaceOpportunity(
            id=grouping.stable_id("resolution_pattern", region, *(i.id for i in resolutions)),
            title=f"Successful Resolution Pattern in {region}",
            description=(
                f"{region} demonstrates effective conflict resolution with {count} incidents "
                f"resolved in an average of {avg_days:.1f} days."
            ),
            region=region,
            confidence=min(85, 50 + count * 5),
            priority=Priority.HIGH if count >= 5 else Priority.MEDIUM,
            time_window=_window(as_of, 45, 7),
            indicators=[
                "Effective resolution mechanisms",
                "Community cooperation",
                "Strong local leadership",
                "Rapid response capabilities",
            ],
            prerequisites=[
                "Maintain current leadership",
                "Preserve resolution mechanisms",
                "Continue community engagement",
                "Sustain resource allocation",
            ],
            recommendations=[
                "Scale successful resolution models",
                "Document best practices",
                "Train other regions",
                "Institutionalize processes",
            ],
            risk_factors=[
                "Leadership changes",
                "Resource constraints",
                "External interference",
                "Complacency",
            ],
            success_probability=min(90, 60 + count * 3),
        ))
    return opportunities


def next_month_start(month: int, as_of: datetime) -> datetime:
    """First instant of the next occurrence of ``month`` strictly after ``as_of``."""
    candidate = as_of + relativedelta(month=month, day=1, hour=0, minute=0, second=0, microsecond=0)
    if candidate <= as_of:
        candidate += relativedelta(years=1)
    return candidate


def detect_seasonal_windows(
    incidents: list[IncidentRecord], start: datetime, as_of: datetime, cfg: Settings
) -> list[PeaceOpportunity]:
    """Calendar months that are historically quiet nationwide."""
    monthly = grouping.by_month(incidents)
    counts = {month: len(monthly.get(month, [])) for month in range(1, 13)}
    average = sum(counts.values()) / 12

    opportunities = []
    for month, count in counts.items():
        if count >= average * cfg.seasonal_candidate_ratio:
            continue
        if count >= average * cfg.seasonal_flag_ratio:
            continue

        name = calendar.month_name[month]
        gap = average - count
        optimal = next_month_start(month, as_of)
        opportunities.append(PeaceOpportunity(
            id=grouping.stable_id("seasonal", month, count, *(i.id for i in incidents)),
            title=f"Seasonal Peace Window - {name}",
            description=(
                f"{name} historically shows {(1 - count / average) * 100:.1f}% fewer conflicts, "
                "presenting optimal conditions for peace initiatives."
            ),
            region=NATIONAL,
            confidence=min(80, round(40 + gap * 5)),
            priority=Priority.HIGH if count < average * 0.3 else Priority.MEDIUM,
            time_window=OpportunityWindow(
                start=optimal - timedelta(days=7),
                end=optimal + timedelta(days=30),
                optimal=optimal,
            ),
            indicators=[
                "Historical low conflict periods",
                "Seasonal stability patterns",
                "Reduced tension indicators",
                "Favorable conditions",
            ],
            prerequisites=[
                "Advance planning",
                "Resource preparation",
                "Stakeholder alignment",
                "Timing coordination",
            ],
            recommendations=[
                "Schedule major peace initiatives",
                "Conduct reconciliation ceremonies",
                "Implement development projects",
                "Hold community dialogues",
            ],
            risk_factors=[
                "Changing seasonal patterns",
                "External disruptions",
                "Resource competition",
                "Political changes",
            ],
            success_probability=min(75, round(45 + gap * 3)),
        ))
    return opportunities


def detect_political_stability(
    incidents: list[IncidentRecord], start: datetime, as_of: datetime, cfg: Settings
) -> list[PeaceOpportunity]:
    """Regions with activity in the window but no political incidents."""
    opportunities = []
    for region, region_incidents in grouping.by_region(incidents).items():
        if any(i.category == "political" for i in region_incidents):
            continue
        opportunities.append(PeaceOpportunity(
            id=grouping.stable_id("political_stability", region),
            title=f"Political Stability Window in {region}",
            description=(
                f"{region} shows political stability with no political incidents in the "
                "analysis period, creating favorable conditions for peace initiatives."
            ),
            region=region,
            confidence=75,
            priority=Priority.MEDIUM,
            time_window=_window(as_of, 90, 10),
            indicators=[
                "Absence of political violence",
                "Stable governance",
                "Peaceful political processes",
                "Institutional functionality",
            ],
            prerequisites=[
                "Maintain political dialogue",
                "Preserve institutional integrity",
                "Continue inclusive governance",
                "Address grievances proactively",
            ],
            recommendations=[
                "Strengthen democratic institutions",
                "Promote inclusive governance",
                "Support civil society",
                "Enhance transparency",
            ],
            risk_factors=[
                "Electoral periods",
                "Economic pressures",
                "External interference",
                "Leadership changes",
            ],
            success_probability=70,
        ))
    return opportunities


def detect_reconciliation_signals(
    incidents: list[IncidentRecord], start: datetime, as_of: datetime, cfg: Settings
) -> list[PeaceOpportunity]:
    """Regions with conflict history but a recent quiet spell."""
    quiet_since = as_of - timedelta(days=cfg.reconciliation_quiet_days)
    conflicts = [i for i in incidents if i.category == "conflict"]

    opportunities = []
    for region, region_conflicts in grouping.by_region(conflicts).items():
        if any(i.reported_at >= quiet_since for i in region_conflicts):
            continue
        opportunities.append(PeaceOpportunity(
            id=grouping.stable_id("reconciliation", region, *(i.id for i in region_conflicts)),
            title=f"Community Reconciliation Opportunity in {region}",
            description=(
                f"{region} shows signs of community reconciliation with no recent conflicts "
                "after a period of tension, indicating readiness for peace-building initiatives."
            ),
            region=region,
            confidence=65,
            priority=Priority.MEDIUM,
            time_window=_window(as_of, 60, 5),
            indicators=[
                "Cessation of recent conflicts",
                "Community fatigue with violence",
                "Emerging reconciliation signals",
                "Readiness for dialogue",
            ],
            prerequisites=[
                "Neutral facilitation",
                "Safe dialogue spaces",
                "Community leader engagement",
                "Trust-building measures",
            ],
            recommendations=[
                "Facilitate community dialogues",
                "Support traditional reconciliation",
                "Implement joint projects",
                "Promote inter-community activities",
            ],
            risk_factors=[
                "Unresolved grievances",
                "Spoiler activities",
                "Resource competition",
                "External manipulation",
            ],
            success_probability=60,
        ))
    return opportunities


DETECTORS: tuple[Detector, ...] = (
    detect_declining_violence,
    detect_resolution_patterns,
    detect_seasonal_windows,
    detect_political_stability,
    detect_reconciliation_signals,
)


def summarize(
    opportunities: list[PeaceOpportunity], as_of: datetime, cfg: Settings
) -> PeaceSummary:
    horizon = timedelta(days=cfg.optimal_window_days)
    return PeaceSummary(
        total_opportunities=len(opportunities),
        high_priority_opportunities=sum(
            1 for o in opportunities if o.priority in (Priority.HIGH, Priority.CRITICAL)
        ),
        optimal_windows=sum(
            1 for o in opportunities if abs(o.time_window.optimal - as_of) <= horizon
        ),
        affected_regions=sorted({o.region for o in opportunities}),
    )


def predict_peace_opportunities(
    incidents: list[IncidentRecord],
    timeframe_days: int = 90,
    region: str | None = None,
    as_of: datetime | None = None,
    cfg: Settings | None = None,
) -> PeaceIndicatorsResult:
    """Run every opportunity detector; optionally keep one region plus national windows."""
    cfg = cfg or settings
    as_of = as_of or utcnow()
    start, end = grouping.window_for(as_of, timeframe_days)
    recent = grouping.in_window(incidents, start, end)

    logger.info(
        "Starting peace opportunity prediction for %d days%s",
        timeframe_days, f", region: {region}" if region else "",
    )

    opportunities = [o for detect in DETECTORS for o in detect(recent, start, as_of, cfg)]

    wanted = region.strip() if region else ""
    if wanted:
        opportunities = [o for o in opportunities if o.region in (wanted, NATIONAL)]

    opportunities.sort(key=lambda o: o.confidence, reverse=True)
    logger.info("Peace opportunity prediction completed: %d opportunities", len(opportunities))

    return PeaceIndicatorsResult(
        opportunities=opportunities,
        summary=summarize(opportunities, as_of, cfg),
    )


class PeaceOpportunityPredictor:
    """Predicts opportunities over the stored incidents and snapshots them best-effort."""

    def __init__(
        self,
        incidents: IncidentSource,
        snapshots: SnapshotStore,
        cfg: Settings | None = None,
    ) -> None:
        self._incidents = incidents
        self._snapshots = snapshots
        self._cfg = cfg or settings

    async def predict(
        self,
        timeframe_days: int = 90,
        region: str | None = None,
        as_of: datetime | None = None,
    ) -> PeaceIndicatorsResult:
        incidents = await self._incidents.list_incidents()
        result = predict_peace_opportunities(
            incidents, timeframe_days, region=region, as_of=as_of, cfg=self._cfg
        )

        if result.opportunities:
            try:
                await self._snapshots.save_opportunities(result.opportunities)
            except Exception:
                best_effort_failures.labels(write="peace_snapshot").inc()
                logger.exception(
                    "Failed to persist peace opportunities snapshot (%d rows)",
                    len(result.opportunities),
                )

        return result
