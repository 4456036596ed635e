"""Data models for conflict pattern detection."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from conflict_engine.records.models import CamelModel, Severity, utcnow


class PatternType(str, Enum):
    ESCALATION = "escalation"
    GEOGRAPHIC_SPREAD = "geographic_spread"
    TEMPORAL = "temporal"
    ACTOR_BASED = "actor_based"
    RESOURCE_CONFLICT = "resource_conflict"


class TimeWindow(CamelModel):
    start: datetime
    end: datetime


class ConflictPattern(CamelModel):
    """One detector's finding over the analysis window."""

    id: str
    type: PatternType
    title: str
    description: str
    confidence: int = Field(ge=0, le=100)
    severity: Severity
    regions: list[str] = []
    timeframe: TimeWindow
    indicators: list[str] = []
    related_incidents: list[int] = []
    risk_factors: list[str] = []
    recommendations: list[str] = []
    detected_at: datetime = Field(default_factory=utcnow)


class PatternSummary(CamelModel):
    total_patterns: int = 0
    critical_patterns: int = 0
    emerging_threats: int = 0
    affected_regions: list[str] = []


class PatternDetectionResult(CamelModel):
    patterns: list[ConflictPattern] = []
    summary: PatternSummary
    generated_at: datetime = Field(default_factory=utcnow)
