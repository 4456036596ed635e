"""Tests for the pattern miner."""

import random

from conflict_engine.patterns.miner import detect_patterns, escalation_rate
from conflict_engine.patterns.models import PatternType
from conflict_engine.records.models import Severity


def _by_type(result, pattern_type):
    return [p for p in result.patterns if p.type == pattern_type]


def _strip_detected_at(result):
    return [p.model_dump(exclude={"detected_at"}) for p in result.patterns]


class TestSeverityEscalation:
    def test_three_rising_incidents_fire_critical(self, make_incident, as_of):
        incidents = [
            make_incident("low", days_ago=3),
            make_incident("high", days_ago=2),
            make_incident("critical", days_ago=1),
        ]

        result = detect_patterns(incidents, 30, as_of=as_of)

        [pattern] = _by_type(result, PatternType.ESCALATION)
        assert pattern.severity == Severity.CRITICAL
        assert pattern.confidence == 95
        assert pattern.description.startswith("100.0%")
        assert pattern.related_incidents == [incidents[1].id, incidents[2].id]

    def test_single_incident_never_escalates(self, make_incident, as_of):
        result = detect_patterns([make_incident("critical")], 30, as_of=as_of)

        assert _by_type(result, PatternType.ESCALATION) == []
        assert escalation_rate([make_incident("critical")]) == (0.0, [])

    def test_empty_input(self, as_of):
        result = detect_patterns([], 30, as_of=as_of)

        assert result.patterns == []
        assert result.summary.total_patterns == 0

    def test_flat_severity_does_not_fire(self, make_incident, as_of):
        incidents = [make_incident("high", days_ago=d) for d in (3, 2, 1)]

        assert _by_type(detect_patterns(incidents, 30, as_of=as_of), PatternType.ESCALATION) == []


class TestGeographicEscalation:
    def test_two_escalating_regions(self, make_incident, as_of):
        incidents = [
            make_incident("low", days_ago=4, region="North East"),
            make_incident("critical", days_ago=3, region="North East"),
            make_incident("low", days_ago=2, region="North Central"),
            make_incident("high", days_ago=1, region="North Central"),
        ]

        [pattern] = _by_type(detect_patterns(incidents, 30, as_of=as_of), PatternType.GEOGRAPHIC_SPREAD)

        assert pattern.regions == ["North Central", "North East"]
        assert pattern.severity == Severity.MEDIUM
        assert pattern.confidence == 80


class TestTemporalClustering:
    def test_three_busy_days(self, make_incident, as_of):
        incidents = [make_incident(days_ago=d) for d in (1, 2, 3) for _ in range(4)]

        [pattern] = _by_type(detect_patterns(incidents, 30, as_of=as_of), PatternType.TEMPORAL)

        assert pattern.confidence == 74
        assert len(pattern.related_incidents) == 12


class TestActorPatterns:
    def test_category_across_three_regions(self, make_incident, as_of):
        regions = ["North East", "North West", "South South", "North East", "North West"]
        incidents = [
            make_incident(category="kidnapping", region=r, days_ago=i + 1)
            for i, r in enumerate(regions)
        ]

        [pattern] = _by_type(detect_patterns(incidents, 30, as_of=as_of), PatternType.ACTOR_BASED)

        assert "kidnapping incidents across 3 regions" in pattern.description
        assert pattern.confidence == 55


class TestResourceConflict:
    def test_farmer_herder_volume(self, make_incident, as_of):
        incidents = [
            make_incident("high", days_ago=i + 1, description="Clash between farmers and herders")
            for i in range(8)
        ]

        [pattern] = _by_type(detect_patterns(incidents, 30, as_of=as_of), PatternType.RESOURCE_CONFLICT)

        assert pattern.severity == Severity.HIGH
        assert pattern.confidence == 74

    def test_below_threshold(self, make_incident, as_of):
        incidents = [make_incident(description="land dispute", days_ago=i + 1) for i in range(7)]

        assert _by_type(detect_patterns(incidents, 30, as_of=as_of), PatternType.RESOURCE_CONFLICT) == []


class TestDeterminism:
    def test_input_order_does_not_matter(self, make_incident, as_of):
        incidents = [
            make_incident(sev, days_ago=d, region=region, description="farmers and herders")
            for d, (sev, region) in enumerate(
                [("low", "A"), ("high", "B"), ("critical", "A"), ("medium", "B"), ("high", "C")] * 2,
                start=1,
            )
        ]
        shuffled = list(incidents)
        random.Random(7).shuffle(shuffled)

        first = detect_patterns(incidents, 30, as_of=as_of)
        second = detect_patterns(shuffled, 30, as_of=as_of)

        assert _strip_detected_at(first) == _strip_detected_at(second)
        assert first.summary == second.summary

    def test_window_excludes_old_incidents(self, make_incident, as_of):
        incidents = [
            make_incident("low", days_ago=200),
            make_incident("critical", days_ago=1),
        ]

        assert detect_patterns(incidents, 90, as_of=as_of).patterns == []


def test_patterns_sorted_by_confidence(make_incident, as_of):
    incidents = [
        make_incident(sev, days_ago=d, description="farmers and herders")
        for d, sev in enumerate(["low", "medium", "high", "critical"] * 3, start=1)
    ]

    confidences = [p.confidence for p in detect_patterns(incidents, 30, as_of=as_of).patterns]

    assert confidences == sorted(confidences, reverse=True)
    assert confidences
