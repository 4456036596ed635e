"""Tests for the escalation predictor."""

import pytest

from conflict_engine.errors import NotFoundError
from conflict_engine.prediction.escalation import MODEL_SOURCE, EscalationPredictor, predict_escalation
from conflict_engine.records.models import RiskBand, RiskIndicatorRecord


def _indicator(indicator_id, value, region="North West", name=""):
    return RiskIndicatorRecord(id=indicator_id, name=name, region=region, value=value)


class TestPredictEscalation:
    def test_critical_active_incident_is_high_risk(self, make_incident):
        incident = make_incident("critical", status="active")
        indicators = [_indicator(1, 80, name="Small arms flow"), _indicator(2, 60)]

        prediction = predict_escalation(incident, indicators)

        # 4*20 + 70*0.5 + 10
        assert prediction.probability == 95
        assert prediction.escalation_risk == RiskBand.HIGH
        assert prediction.time_window_days == 14
        assert prediction.key_drivers[:2] == ["Small arms flow", "Indicator #2"]

    def test_low_resolved_unverified_is_low_risk(self, make_incident):
        incident = make_incident("low", status="resolved", verification_status="unverified")

        prediction = predict_escalation(incident, [])

        assert prediction.probability == 15
        assert prediction.escalation_risk == RiskBand.LOW
        assert prediction.time_window_days == 30

    def test_medium_band(self, make_incident):
        prediction = predict_escalation(make_incident("medium", status="active"), [_indicator(1, 20)])

        assert prediction.probability == 60
        assert prediction.escalation_risk == RiskBand.MEDIUM
        assert prediction.time_window_days == 21

    def test_drivers_include_category_and_location(self, make_incident):
        prediction = predict_escalation(make_incident(category="banditry"), [])

        assert "Incident category: banditry" in prediction.key_drivers
        assert "Reported location: Gusau" in prediction.key_drivers


class TestEscalationPredictor:
    @pytest.mark.asyncio
    async def test_prediction_is_audited(self, store, make_incident):
        incident = make_incident("high")
        store.add_incidents(incident)
        store.indicators = [_indicator(1, 90), _indicator(2, 10, region="South East")]
        predictor = EscalationPredictor(store, store, store)

        result = await predictor.predict_for_incident(incident.id)

        assert result.audited
        assert store.audits[0][1] == MODEL_SOURCE
        assert result.prediction.key_drivers[0] == "Indicator #1"

    @pytest.mark.asyncio
    async def test_audit_failure_still_returns_prediction(self, store, make_incident):
        incident = make_incident("high")
        store.add_incidents(incident)
        store.fail_writes = True
        predictor = EscalationPredictor(store, store, store)

        result = await predictor.predict_for_incident(incident.id)

        assert not result.audited
        assert result.prediction.incident_id == incident.id

    @pytest.mark.asyncio
    async def test_unknown_incident(self, store):
        predictor = EscalationPredictor(store, store, store)

        with pytest.raises(NotFoundError):
            await predictor.predict_for_incident(404)
