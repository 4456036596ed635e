"""Response advisor — immediate, short-term, and long-term response recommendations."""

from __future__ import annotations

import logging

from conflict_engine.advisor.models import (
    AdvisorSummary,
    ResponseAdvisorResult,
    ResponseHorizon,
    ResponseRecommendation,
)
from conflict_engine.errors import NotFoundError
from conflict_engine.records import grouping
from conflict_engine.records.models import (
    IncidentRecord,
    IncidentStatus,
    Priority,
    RiskBand,
    Severity,
)

logger = logging.getLogger("engine.advisor")

RESOURCE_TERMS = ("farmer", "herder", "land")


def _ids(incidents: list[IncidentRecord]) -> list[int]:
    return [i.id for i in incidents]


def immediate_response(incidents: list[IncidentRecord]) -> list[ResponseRecommendation]:
    recommendations = []
    critical = [i for i in incidents if i.severity == Severity.CRITICAL]
    active = [i for i in incidents if i.status == IncidentStatus.ACTIVE]

    if critical:
        recommendations.append(ResponseRecommendation(
            id=grouping.stable_id("immediate_critical", *_ids(critical)),
            title="Emergency Response Activation",
            description=(
                f"{len(critical)} critical incidents require immediate emergency response activation."
            ),
            priority=Priority.CRITICAL,
            category=ResponseHorizon.IMMEDIATE,
            confidence=95,
            actions=[
                "Activate emergency operations center",
                "Deploy rapid response teams",
                "Coordinate with security forces",
                "Establish incident command structure",
            ],
            resources=["Emergency response teams", "Security personnel", "Medical support", "Communication systems"],
            timeline="0-2 hours",
            success_probability=85,
            risk_level=RiskBand.HIGH,
        ))

    if len(active) > 10:
        recommendations.append(ResponseRecommendation(
            id=grouping.stable_id("immediate_surge", *_ids(active)),
            title="Surge Response Protocol",
            description=(
                f"High volume of active incidents ({len(active)}) requires surge response protocols."
            ),
            priority=Priority.HIGH,
            category=ResponseHorizon.IMMEDIATE,
            confidence=88,
            actions=[
                "Scale up response capacity",
                "Prioritize incident triage",
                "Mobilize additional resources",
                "Enhance coordination mechanisms",
            ],
            resources=["Additional personnel", "Mobile command units", "Communication equipment", "Transportation"],
            timeline="2-6 hours",
            success_probability=78,
            risk_level=RiskBand.MEDIUM,
        ))

    return recommendations


def short_term_response(incidents: list[IncidentRecord]) -> list[ResponseRecommendation]:
    recommendations = []
    hotspots = {r: rows for r, rows in grouping.by_region(incidents).items() if len(rows) > 5}

    if hotspots:
        recommendations.append(ResponseRecommendation(
            id=grouping.stable_id("shortterm_hotspots", *hotspots),
            title="Hotspot Stabilization Initiative",
            description=(
                f"{len(hotspots)} regions identified as conflict hotspots requiring targeted "
                "stabilization efforts."
            ),
            priority=Priority.HIGH,
            category=ResponseHorizon.SHORT_TERM,
            confidence=82,
            actions=[
                "Deploy specialized teams to hotspots",
                "Establish forward operating bases",
                "Implement community engagement programs",
                "Strengthen local security presence",
            ],
            resources=["Specialized units", "Community liaisons", "Development funds", "Security equipment"],
            timeline="1-4 weeks",
            success_probability=72,
            risk_level=RiskBand.MEDIUM,
        ))

    categories = grouping.by_category(incidents)
    if categories:
        # first category wins ties (categories are sorted by name)
        dominant, rows = max(categories.items(), key=lambda item: len(item[1]))
        if len(rows) > 8:
            recommendations.append(ResponseRecommendation(
                id=grouping.stable_id("shortterm_specialized", dominant, *_ids(rows)),
                title=f"Specialized {dominant} Response Program",
                description=(
                    f"High frequency of {dominant} incidents ({len(rows)}) requires specialized "
                    "response program."
                ),
                priority=Priority.MEDIUM,
                category=ResponseHorizon.SHORT_TERM,
                confidence=75,
                actions=[
                    f"Deploy {dominant} specialists",
                    "Develop targeted intervention strategies",
                    "Train local response teams",
                    "Implement prevention measures",
                ],
                resources=["Subject matter experts", "Training materials", "Prevention tools", "Monitoring systems"],
                timeline="2-8 weeks",
                success_probability=68,
                risk_level=RiskBand.LOW,
            ))

    return recommendations


def long_term_response(incidents: list[IncidentRecord]) -> list[ResponseRecommendation]:
    recommendations = []

    if len(incidents) > 20:
        recommendations.append(ResponseRecommendation(
            id=grouping.stable_id("longterm_systemic", *_ids(incidents)),
            title="Systemic Conflict Prevention Program",
            description=(
                f"High incident volume ({len(incidents)}) indicates need for comprehensive "
                "systemic interventions."
            ),
            priority=Priority.HIGH,
            category=ResponseHorizon.LONG_TERM,
            confidence=85,
            actions=[
                "Develop comprehensive peace strategy",
                "Address structural conflict drivers",
                "Strengthen governance systems",
                "Implement sustainable development programs",
            ],
            resources=["Policy experts", "Development funds", "Institutional capacity", "International support"],
            timeline="6-24 months",
            success_probability=65,
            risk_level=RiskBand.MEDIUM,
        ))

    resource_conflicts = [
        i for i in incidents
        if any(term in i.description.lower() for term in RESOURCE_TERMS)
    ]
    if len(resource_conflicts) > 5:
        recommendations.append(ResponseRecommendation(
            id=grouping.stable_id("longterm_resource", *_ids(resource_conflicts)),
            title="Resource Management and Reconciliation Program",
            description=(
                f"{len(resource_conflicts)} resource-related conflicts require comprehensive "
                "resource management strategy."
            ),
            priority=Priority.MEDIUM,
            category=ResponseHorizon.LONG_TERM,
            confidence=78,
            actions=[
                "Establish resource-sharing frameworks",
                "Implement sustainable land use policies",
                "Create conflict resolution mechanisms",
                "Develop alternative livelihoods",
            ],
            resources=["Land use experts", "Mediation services", "Development programs", "Legal frameworks"],
            timeline="12-36 months",
            success_probability=60,
            risk_level=RiskBand.LOW,
        ))

    return recommendations


def generate_response_recommendations(
    incidents: list[IncidentRecord],
    incident_id: int | None = None,
    region: str | None = None,
) -> ResponseAdvisorResult:
    """Recommend responses for one incident, one region, or every incident supplied."""
    targets = grouping.chronological(incidents)
    if incident_id is not None:
        targets = [i for i in targets if i.id == incident_id]
        if not targets:
            raise NotFoundError(f"Incident {incident_id} not found")
    elif region:
        targets = [i for i in targets if i.region == region.strip()]

    logger.info("Generating response recommendations for %d incidents", len(targets))
    recommendations = [
        *immediate_response(targets),
        *short_term_response(targets),
        *long_term_response(targets),
    ]
    recommendations.sort(key=lambda r: r.confidence, reverse=True)

    return ResponseAdvisorResult(
        recommendations=recommendations,
        summary=AdvisorSummary(
            total_recommendations=len(recommendations),
            critical_actions=sum(1 for r in recommendations if r.priority == Priority.CRITICAL),
            immediate_actions=sum(1 for r in recommendations if r.category == ResponseHorizon.IMMEDIATE),
        ),
    )
