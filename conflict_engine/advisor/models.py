"""Data models for response recommendations."""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import Field

from conflict_engine.records.models import CamelModel, Priority, RiskBand, utcnow


class ResponseHorizon(str, Enum):
    IMMEDIATE = "immediate"
    SHORT_TERM = "short_term"
    LONG_TERM = "long_term"


class ResponseRecommendation(CamelModel):
    id: str
    title: str
    description: str
    priority: Priority
    category: ResponseHorizon
    confidence: int = Field(ge=0, le=100)
    actions: list[str] = []
    resources: list[str] = []
    timeline: str
    success_probability: int = Field(ge=0, le=100)
    risk_level: RiskBand


class AdvisorSummary(CamelModel):
    total_recommendations: int = 0
    critical_actions: int = 0
    immediate_actions: int = 0


class ResponseAdvisorResult(CamelModel):
    recommendations: list[ResponseRecommendation] = []
    summary: AdvisorSummary
    generated_at: datetime = Field(default_factory=utcnow)
