"""Engine facade — the logical operations exposed to the HTTP layer.

Each operation validates its input, fetches the record set it needs through the
store ports, and runs one analysis component over it.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

import pydantic
from opentelemetry import trace

from conflict_engine.advisor.models import ResponseAdvisorResult
from conflict_engine.advisor.recommender import generate_response_recommendations
from conflict_engine.alerting.models import (
    NotificationEvaluation,
    NotificationRule,
    NotificationRuleEvent,
    ThresholdEvaluation,
)
from conflict_engine.alerting.notifications import EventRecord, NotificationRuleEngine
from conflict_engine.alerting.threshold import ThresholdEvaluator
from conflict_engine.anomaly.models import AnomalyDetectionResult, DataQualityReport
from conflict_engine.anomaly.quality import scan_quality
from conflict_engine.anomaly.scanner import detect_anomalies
from conflict_engine.config import Settings, settings
from conflict_engine.errors import ValidationError
from conflict_engine.patterns.miner import detect_patterns
from conflict_engine.patterns.models import PatternDetectionResult
from conflict_engine.prediction.escalation import EscalationPredictor
from conflict_engine.prediction.models import EscalationPredictionResult, PeaceIndicatorsResult
from conflict_engine.prediction.peace import PeaceOpportunityPredictor
from conflict_engine.records.models import AlertRecord
from conflict_engine.records.normalizer import normalize_incident
from conflict_engine.telemetry.metrics import analyses_total, findings_total
from conflict_engine.text.models import (
    ConflictAnalysis,
    ConflictEvent,
    ScreeningResult,
    SimilarityResult,
)
from conflict_engine.text.scorer import TextSignalScorer

tracer = trace.get_tracer(__name__)


def _require_text(value: str | None, name: str) -> str:
    if value is None or not value.strip():
        raise ValidationError(f"'{name}' must be a non-empty string")
    return value


def _require_timeframe(days: int) -> int:
    if days < 1:
        raise ValidationError("timeframeDays must be at least 1")
    return days


class ConflictEngine:
    """Wires the analysis components to a store that implements every port."""

    def __init__(
        self,
        store: Any,
        scorer: TextSignalScorer | None = None,
        cfg: Settings | None = None,
    ) -> None:
        self._store = store
        self._cfg = cfg or settings
        self._scorer = scorer or TextSignalScorer(cfg=self._cfg)
        self._escalation = EscalationPredictor(store, store, store, cfg=self._cfg)
        self._peace = PeaceOpportunityPredictor(store, store, cfg=self._cfg)
        self._notifications = NotificationRuleEngine(store, store, store, cfg=self._cfg)
        self._thresholds = ThresholdEvaluator(store, store, store, store)

    def _timeframe(self, timeframe_days: int | None) -> int:
        if timeframe_days is None:
            return self._cfg.default_timeframe_days
        return _require_timeframe(timeframe_days)

    # -- text -----------------------------------------------------------

    def analyze_text(self, text: str) -> ConflictAnalysis:
        analyses_total.labels(operation="analyze_text").inc()
        return self._scorer.analyze(_require_text(text, "text"))

    def screen_statement(self, statement: str) -> ScreeningResult:
        analyses_total.labels(operation="screen_statement").inc()
        return self._scorer.screen_statement(_require_text(statement, "statement"))

    def calculate_similarity(self, text1: str, text2: str) -> SimilarityResult:
        analyses_total.labels(operation="calculate_similarity").inc()
        if text1 is None or text2 is None:
            raise ValidationError("'text1' and 'text2' are required")
        return self._scorer.compare(text1, text2)

    def extract_conflict_events(self, text: str) -> list[ConflictEvent]:
        analyses_total.labels(operation="extract_conflict_events").inc()
        return self._scorer.extract_conflict_events(_require_text(text, "text"))

    def batch_analyze(self, texts: list[str]) -> list[ConflictAnalysis]:
        analyses_total.labels(operation="batch_analyze").inc()
        if not texts:
            raise ValidationError("'texts' must contain at least one entry")
        for index, text in enumerate(texts):
            _require_text(text, f"texts[{index}]")
        return self._scorer.batch_analyze(texts)

    # -- incident analytics ---------------------------------------------

    async def detect_patterns(
        self, timeframe_days: int | None = None, as_of: datetime | None = None
    ) -> PatternDetectionResult:
        days = self._timeframe(timeframe_days)
        with tracer.start_as_current_span("detect-patterns") as span:
            span.set_attribute("analysis.timeframe_days", days)
            analyses_total.labels(operation="detect_patterns").inc()
            incidents = await self._store.list_incidents()
            result = detect_patterns(incidents, days, as_of=as_of, cfg=self._cfg)
            span.set_attribute("analysis.findings", len(result.patterns))
        findings_total.labels(kind="pattern").inc(len(result.patterns))
        return result

    async def predict_peace_opportunities(
        self,
        timeframe_days: int | None = None,
        region: str | None = None,
        as_of: datetime | None = None,
    ) -> PeaceIndicatorsResult:
        days = self._timeframe(timeframe_days)
        with tracer.start_as_current_span("predict-peace-opportunities") as span:
            span.set_attribute("analysis.timeframe_days", days)
            analyses_total.labels(operation="predict_peace_opportunities").inc()
            result = await self._peace.predict(days, region=region, as_of=as_of)
            span.set_attribute("analysis.findings", len(result.opportunities))
        findings_total.labels(kind="peace_opportunity").inc(len(result.opportunities))
        return result

    async def predict_escalation(self, incident_id: int) -> EscalationPredictionResult:
        with tracer.start_as_current_span("predict-escalation") as span:
            span.set_attribute("incident.id", incident_id)
            analyses_total.labels(operation="predict_escalation").inc()
            return await self._escalation.predict_for_incident(incident_id)

    async def generate_response_recommendations(
        self, incident_id: int | None = None, region: str | None = None
    ) -> ResponseAdvisorResult:
        analyses_total.labels(operation="generate_response_recommendations").inc()
        incidents = await self._store.list_incidents()
        result = generate_response_recommendations(incidents, incident_id=incident_id, region=region)
        findings_total.labels(kind="recommendation").inc(len(result.recommendations))
        return result

    async def detect_anomalies(
        self,
        timeframe_days: int | None = None,
        region: str | None = None,
        as_of: datetime | None = None,
    ) -> AnomalyDetectionResult:
        days = self._timeframe(timeframe_days)
        analyses_total.labels(operation="detect_anomalies").inc()
        incidents = await self._store.list_incidents()
        result = detect_anomalies(incidents, days, region=region, as_of=as_of, cfg=self._cfg)
        findings_total.labels(kind="anomaly").inc(len(result.anomalies))
        return result

    async def scan_quality(self, as_of: datetime | None = None) -> DataQualityReport:
        analyses_total.labels(operation="scan_quality").inc()
        raws = await self._store.list_raw_incidents()
        report = scan_quality(raws, as_of=as_of, cfg=self._cfg)
        findings_total.labels(kind="quality_issue").inc(len(report.issues))
        return report

    # -- alerting -------------------------------------------------------

    async def evaluate_threshold_rules(self, as_of: datetime | None = None) -> ThresholdEvaluation:
        analyses_total.labels(operation="evaluate_threshold_rules").inc()
        return await self._thresholds.evaluate(as_of=as_of)

    async def evaluate_notification_rules(
        self, event: NotificationRuleEvent, record: EventRecord | dict
    ) -> NotificationEvaluation:
        analyses_total.labels(operation="evaluate_notification_rules").inc()
        if isinstance(record, dict):
            record = self._parse_record(event, record)
        created = await self._notifications.evaluate(event, record)
        return NotificationEvaluation(event=event, created=created)

    @staticmethod
    def _parse_record(event: NotificationRuleEvent, record: dict) -> EventRecord:
        if event == NotificationRuleEvent.INCIDENT_CREATED:
            return normalize_incident(record)
        try:
            return AlertRecord.model_validate(record)
        except pydantic.ValidationError as exc:
            raise ValidationError(f"Invalid alert record: {exc.errors()[0]['msg']}") from None

    async def get_notification_rules(self) -> list[NotificationRule]:
        return await self._store.load_rules()

    async def set_notification_rules(self, rules: list[Any]) -> list[NotificationRule]:
        return await self._store.save_rules(rules)
