"""Analysis, prediction, and alerting endpoints."""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query, Request
from pydantic import Field

from conflict_engine.advisor.models import ResponseAdvisorResult
from conflict_engine.alerting.models import (
    NotificationEvaluation,
    NotificationRule,
    NotificationRuleEvent,
    ThresholdEvaluation,
)
from conflict_engine.anomaly.models import AnomalyDetectionResult, DataQualityReport
from conflict_engine.patterns.models import PatternDetectionResult
from conflict_engine.prediction.models import EscalationPredictionResult, PeaceIndicatorsResult
from conflict_engine.records.models import CamelModel
from conflict_engine.service import ConflictEngine
from conflict_engine.text.models import (
    ConflictAnalysis,
    ConflictEvent,
    ScreeningResult,
    SimilarityResult,
)

router = APIRouter(tags=["analysis"])


def get_engine(request: Request) -> ConflictEngine:
    return request.app.state.engine


class TextRequest(CamelModel):
    text: str = ""


class StatementRequest(CamelModel):
    statement: str = ""


class SimilarityRequest(CamelModel):
    text1: str
    text2: str


class BatchRequest(CamelModel):
    texts: list[str] = []


class NotificationEvaluateRequest(CamelModel):
    event: NotificationRuleEvent
    record: dict[str, Any]


class RulesDocument(CamelModel):
    rules: list[dict[str, Any]] = Field(default_factory=list)


class RulesResponse(CamelModel):
    rules: list[NotificationRule] = []


TimeframeDays = Query(default=None, alias="timeframeDays")


# -- text --------------------------------------------------------------

@router.post("/analysis/text", response_model=ConflictAnalysis)
async def analyze_text(body: TextRequest, engine: ConflictEngine = Depends(get_engine)):
    return engine.analyze_text(body.text)


@router.post("/analysis/screen", response_model=ScreeningResult)
async def screen_statement(body: StatementRequest, engine: ConflictEngine = Depends(get_engine)):
    return engine.screen_statement(body.statement)


@router.post("/analysis/similarity", response_model=SimilarityResult)
async def calculate_similarity(body: SimilarityRequest, engine: ConflictEngine = Depends(get_engine)):
    return engine.calculate_similarity(body.text1, body.text2)


@router.post("/analysis/events", response_model=list[ConflictEvent])
async def extract_events(body: TextRequest, engine: ConflictEngine = Depends(get_engine)):
    return engine.extract_conflict_events(body.text)


@router.post("/analysis/batch", response_model=list[ConflictAnalysis])
async def batch_analyze(body: BatchRequest, engine: ConflictEngine = Depends(get_engine)):
    return engine.batch_analyze(body.texts)


# -- incident analytics ------------------------------------------------

@router.get("/patterns", response_model=PatternDetectionResult)
async def detect_patterns(
    timeframe_days: Optional[int] = TimeframeDays,
    engine: ConflictEngine = Depends(get_engine),
):
    return await engine.detect_patterns(timeframe_days)


@router.get("/peace-opportunities", response_model=PeaceIndicatorsResult)
async def peace_opportunities(
    timeframe_days: Optional[int] = TimeframeDays,
    region: Optional[str] = None,
    engine: ConflictEngine = Depends(get_engine),
):
    return await engine.predict_peace_opportunities(timeframe_days, region=region)


@router.post("/escalation/{incident_id}", response_model=EscalationPredictionResult)
async def predict_escalation(incident_id: int, engine: ConflictEngine = Depends(get_engine)):
    return await engine.predict_escalation(incident_id)


@router.get("/recommendations", response_model=ResponseAdvisorResult)
async def recommendations(
    incident_id: Optional[int] = Query(default=None, alias="incidentId"),
    region: Optional[str] = None,
    engine: ConflictEngine = Depends(get_engine),
):
    return await engine.generate_response_recommendations(incident_id=incident_id, region=region)


@router.get("/anomalies", response_model=AnomalyDetectionResult)
async def anomalies(
    timeframe_days: Optional[int] = TimeframeDays,
    region: Optional[str] = None,
    engine: ConflictEngine = Depends(get_engine),
):
    return await engine.detect_anomalies(timeframe_days, region=region)


@router.get("/data-quality", response_model=DataQualityReport)
async def data_quality(engine: ConflictEngine = Depends(get_engine)):
    return await engine.scan_quality()


# -- alerting ----------------------------------------------------------

@router.post("/thresholds/evaluate", response_model=ThresholdEvaluation, tags=["alerting"])
async def evaluate_thresholds(engine: ConflictEngine = Depends(get_engine)):
    return await engine.evaluate_threshold_rules()


@router.post("/notifications/evaluate", response_model=NotificationEvaluation, tags=["alerting"])
async def evaluate_notifications(
    body: NotificationEvaluateRequest, engine: ConflictEngine = Depends(get_engine)
):
    return await engine.evaluate_notification_rules(body.event, body.record)


@router.get("/notifications/rules", response_model=RulesResponse, tags=["alerting"])
async def get_rules(engine: ConflictEngine = Depends(get_engine)):
    return RulesResponse(rules=await engine.get_notification_rules())


@router.put("/notifications/rules", response_model=RulesResponse, tags=["alerting"])
async def put_rules(body: RulesDocument, engine: ConflictEngine = Depends(get_engine)):
    return RulesResponse(rules=await engine.set_notification_rules(body.rules))
