"""Escalation predictor — heuristic escalation risk for a single incident."""

from __future__ import annotations

import logging

from conflict_engine.config import Settings, settings
from conflict_engine.errors import NotFoundError
from conflict_engine.ports import AuditLog, IncidentSource, RiskIndicatorSource
from conflict_engine.prediction.models import EscalationPrediction, EscalationPredictionResult
from conflict_engine.records.models import (
    IncidentRecord,
    IncidentStatus,
    RiskBand,
    RiskIndicatorRecord,
    VerificationStatus,
)
from conflict_engine.telemetry.metrics import best_effort_failures

logger = logging.getLogger("engine.prediction")

MODEL_SOURCE = "heuristic-v1"

_TIME_WINDOWS = {RiskBand.HIGH: 14, RiskBand.MEDIUM: 21, RiskBand.LOW: 30}

_ACTIONS = {
    RiskBand.HIGH: [
        "Activate escalation response plan for the region.",
        "Increase monitoring and deploy field teams to the affected area.",
        "Engage community leaders and security agencies to de-escalate.",
    ],
    RiskBand.MEDIUM: [
        "Enhance monitoring of the situation and update risk indicators regularly.",
        "Initiate dialogue and confidence-building measures with local stakeholders.",
    ],
    RiskBand.LOW: [
        "Maintain routine monitoring and update the incident if new information emerges.",
    ],
}


def predict_escalation(
    incident: IncidentRecord, indicators: list[RiskIndicatorRecord]
) -> EscalationPrediction:
    """Combine incident severity with the strongest regional risk indicators."""
    avg_indicator = (
        sum(r.value for r in indicators) / len(indicators) if indicators else 0.0
    )
    risk_score = incident.severity.score * 20 + avg_indicator * 0.5
    if incident.status == IncidentStatus.ACTIVE:
        risk_score += 10
    if incident.verification_status == VerificationStatus.UNVERIFIED:
        risk_score -= 5

    probability = max(5, min(95, round(risk_score)))
    if probability >= 70:
        band = RiskBand.HIGH
    elif probability >= 40:
        band = RiskBand.MEDIUM
    else:
        band = RiskBand.LOW

    drivers = [r.name or f"Indicator #{r.id}" for r in indicators[:3]]
    if incident.category:
        drivers.append(f"Incident category: {incident.category}")
    if incident.location:
        drivers.append(f"Reported location: {incident.location}")

    return EscalationPrediction(
        incident_id=incident.id,
        region=incident.region,
        current_severity=incident.severity,
        escalation_risk=band,
        probability=probability,
        time_window_days=_TIME_WINDOWS[band],
        key_drivers=drivers,
        recommended_actions=list(_ACTIONS[band]),
    )


class EscalationPredictor:
    """Loads an incident and its regional context, predicts, and audits the result."""

    def __init__(
        self,
        incidents: IncidentSource,
        indicators: RiskIndicatorSource,
        audit: AuditLog,
        cfg: Settings | None = None,
    ) -> None:
        self._incidents = incidents
        self._indicators = indicators
        self._audit = audit
        self._cfg = cfg or settings

    async def predict_for_incident(self, incident_id: int) -> EscalationPredictionResult:
        incident = await self._incidents.get_incident(incident_id)
        if incident is None:
            raise NotFoundError(f"Incident {incident_id} not found")

        indicators = await self._indicators.top_indicators(
            incident.region, limit=self._cfg.escalation_indicator_limit
        )
        prediction = predict_escalation(incident, indicators)
        logger.info(
            "Escalation predicted: incident=%d risk=%s probability=%d",
            incident.id, prediction.escalation_risk.value, prediction.probability,
        )

        audited = True
        try:
            await self._audit.record_prediction(prediction, model_source=MODEL_SOURCE)
        except Exception:
            audited = False
            best_effort_failures.labels(write="escalation_audit").inc()
            logger.exception("Failed to audit escalation prediction for incident=%d", incident.id)

        return EscalationPredictionResult(prediction=prediction, audited=audited)
