"""Data models for escalation and peace-opportunity predictions."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from conflict_engine.records.models import CamelModel, Priority, RiskBand, Severity, utcnow


class EscalationPrediction(CamelModel):
    incident_id: int
    region: str | None = None
    current_severity: Severity
    escalation_risk: RiskBand
    probability: int = Field(ge=0, le=100)
    time_window_days: int
    key_drivers: list[str] = []
    recommended_actions: list[str] = []


class EscalationPredictionResult(CamelModel):
    prediction: EscalationPrediction
    audited: bool = False


class OpportunityWindow(CamelModel):
    start: datetime
    end: datetime
    optimal: datetime


class PeaceOpportunity(CamelModel):
    """A predicted window in which a peace initiative is likely to land."""

    id: str
    title: str
    description: str
    region: str
    confidence: int = Field(ge=0, le=100)
    priority: Priority
    time_window: OpportunityWindow
    indicators: list[str] = []
    prerequisites: list[str] = []
    recommendations: list[str] = []
    risk_factors: list[str] = []
    success_probability: int = Field(ge=0, le=100)
    detected_at: datetime = Field(default_factory=utcnow)


class PeaceSummary(CamelModel):
    total_opportunities: int = 0
    high_priority_opportunities: int = 0
    optimal_windows: int = 0
    affected_regions: list[str] = []


class PeaceIndicatorsResult(CamelModel):
    opportunities: list[PeaceOpportunity] = []
    summary: PeaceSummary
    generated_at: datetime = Field(default_factory=utcnow)
