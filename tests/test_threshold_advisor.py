"""Tests for threshold alert rules and the response advisor."""

import pytest

from conflict_engine.advisor.models import ResponseHorizon
from conflict_engine.advisor.recommender import generate_response_recommendations
from conflict_engine.alerting.models import ThresholdRule
from conflict_engine.alerting.threshold import (
    DEFAULT_MESSAGE,
    ThresholdEvaluator,
    evaluate_threshold_rules,
)
from conflict_engine.errors import NotFoundError
from conflict_engine.records.models import Priority, RiskIndicatorRecord, Severity


def _indicator_rule(rule_id=1, **config):
    return ThresholdRule(id=rule_id, name=f"Indicator rule {rule_id}", trigger_type="indicator", trigger_config=config)


def _count_rule(rule_id=2, **config):
    return ThresholdRule(id=rule_id, name=f"Count rule {rule_id}", trigger_type="incident_count", trigger_config=config)


INDICATORS = [
    RiskIndicatorRecord(id=1, name="Arms flow", region="North East", value=82),
    RiskIndicatorRecord(id=2, name="Food prices", region="South West", value=40),
]


class TestThresholdRules:
    def test_indicator_rule_region_is_case_insensitive(self, as_of):
        rules = [_indicator_rule(region="north east", minValue=80)]

        [alert] = evaluate_threshold_rules(rules, INDICATORS, [], as_of=as_of)

        assert alert.title == "Indicator rule 1"
        assert alert.message == DEFAULT_MESSAGE
        assert alert.source == "threshold_rule"
        assert alert.severity == Severity.HIGH
        assert alert.threshold_rule_id == 1

    def test_indicator_rule_below_minimum(self, as_of):
        rules = [_indicator_rule(indicatorId=2, minValue=50)]

        assert evaluate_threshold_rules(rules, INDICATORS, [], as_of=as_of) == []

    def test_incident_count_within_days(self, make_incident, as_of):
        incidents = [make_incident(days_ago=d, region="Borno") for d in (1, 2, 3, 20)]
        rules = [
            _count_rule(2, region="BORNO", count=3),
            _count_rule(3, region="Borno", count=4),
            _count_rule(4, count=4, withinDays=30),
        ]

        alerts = evaluate_threshold_rules(rules, [], incidents, as_of=as_of)

        assert [a.threshold_rule_id for a in alerts] == [2, 4]

    def test_inactive_and_unknown_rules_are_skipped(self, as_of):
        rules = [
            _indicator_rule(1, minValue=0).model_copy(update={"active": False}),
            ThresholdRule(id=5, name="Odd", trigger_type="sentiment", trigger_config={}),
        ]

        assert evaluate_threshold_rules(rules, INDICATORS, [], as_of=as_of) == []

    def test_numbers_stored_as_strings_are_coerced(self, make_incident, as_of):
        incidents = [make_incident(days_ago=d) for d in (1, 2)]
        rules = [
            _count_rule(2, withinDays="7", count="2"),
            _indicator_rule(3, indicatorId="1", minValue="80"),
        ]

        alerts = evaluate_threshold_rules(rules, INDICATORS, incidents, as_of=as_of)

        assert [a.threshold_rule_id for a in alerts] == [2, 3]

    def test_malformed_config_skips_only_that_rule(self, make_incident, as_of):
        rules = [
            _count_rule(2, withinDays="a week", count=1),
            _indicator_rule(3, minValue=[80]),
            _indicator_rule(4, region=5),
            _count_rule(5, count=1),
        ]

        alerts = evaluate_threshold_rules(rules, INDICATORS, [make_incident()], as_of=as_of)

        assert [a.threshold_rule_id for a in alerts] == [5]

    def test_message_template_and_severity(self, as_of):
        rule = _indicator_rule(minValue=10).model_copy(
            update={"message_template": "Arms flow critical", "severity": Severity.CRITICAL}
        )

        [alert] = evaluate_threshold_rules([rule], INDICATORS, [], as_of=as_of)

        assert alert.message == "Arms flow critical"
        assert alert.severity == Severity.CRITICAL

    @pytest.mark.asyncio
    async def test_evaluator_creates_alerts(self, store, make_incident, as_of):
        store.indicators = list(INDICATORS)
        store.threshold_rules = [_indicator_rule(minValue=80), _indicator_rule(9, minValue=99)]

        result = await ThresholdEvaluator(store, store, store, store).evaluate(as_of=as_of)

        assert (result.triggered, result.created) == (1, 1)
        assert store.alerts[0].title == "Indicator rule 1"


class TestResponseAdvisor:
    def test_critical_incident_needs_emergency_response(self, make_incident):
        result = generate_response_recommendations([make_incident("critical")])

        [recommendation] = result.recommendations
        assert recommendation.title == "Emergency Response Activation"
        assert recommendation.priority == Priority.CRITICAL
        assert recommendation.confidence == 95
        assert result.summary.critical_actions == 1
        assert result.summary.immediate_actions == 1

    def test_large_caseload(self, make_incident):
        incidents = [
            make_incident("medium", region="Borno", category="insurgency", description="Farmers displaced")
            for _ in range(21)
        ]

        result = generate_response_recommendations(incidents)

        titles = [r.title for r in result.recommendations]
        assert titles == [
            "Surge Response Protocol",
            "Systemic Conflict Prevention Program",
            "Hotspot Stabilization Initiative",
            "Resource Management and Reconciliation Program",
            "Specialized insurgency Response Program",
        ]
        horizons = {r.category for r in result.recommendations}
        assert horizons == {ResponseHorizon.IMMEDIATE, ResponseHorizon.SHORT_TERM, ResponseHorizon.LONG_TERM}

    def test_region_filter(self, make_incident):
        incidents = [make_incident("critical", region="Borno"), make_incident("low", region="Lagos")]

        assert generate_response_recommendations(incidents, region="Lagos").recommendations == []

    def test_single_incident(self, make_incident):
        incidents = [make_incident("critical", id=10), make_incident("low", id=11)]

        assert generate_response_recommendations(incidents, incident_id=11).recommendations == []

    def test_unknown_incident(self, make_incident):
        with pytest.raises(NotFoundError):
            generate_response_recommendations([make_incident()], incident_id=999)

    def test_empty_input(self):
        result = generate_response_recommendations([])

        assert result.recommendations == []
        assert result.summary.total_recommendations == 0
