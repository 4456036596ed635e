"""Data models for text signal scoring."""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from conflict_engine.records.models import CamelModel, Severity


class SentimentLabel(str, Enum):
    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


class Recommendation(str, Enum):
    ACCEPT = "accept"
    REVIEW = "review"
    REJECT = "reject"


class SentimentResult(CamelModel):
    score: int
    comparative: float
    label: SentimentLabel


class IndicatorHits(CamelModel):
    violence: list[str] = []
    tension: list[str] = []
    peace: list[str] = []
    humanitarian: list[str] = []


class Entities(CamelModel):
    locations: list[str] = []
    groups: list[str] = []
    actors: list[str] = []


class ConflictAnalysis(CamelModel):
    """Lexicon and sentiment signals extracted from one text."""

    conflict_score: int = Field(ge=0, le=100)
    peace_score: int = Field(ge=0, le=100)
    sentiment: SentimentResult
    indicators: IndicatorHits
    risk_level: Severity
    keywords: list[str] = []
    entities: Entities


class ScreeningResult(CamelModel):
    is_conflict_related: bool
    confidence: int = Field(ge=0, le=100)
    analysis: ConflictAnalysis
    recommendation: Recommendation


class SimilarityResult(CamelModel):
    similarity: float = Field(ge=0.0, le=1.0)
    is_duplicate: bool
    confidence: int


class ConflictEvent(CamelModel):
    type: str  # "violence" | "tension"
    description: str
    location: str | None = None
    actors: list[str] = []
    severity: Severity
