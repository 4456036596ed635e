"""Tests for raw row normalization, bucketing helpers, and log formatting."""

import logging
from datetime import datetime, timezone

import pytest

from conflict_engine.errors import ValidationError
from conflict_engine.records import grouping
from conflict_engine.records.models import IncidentStatus, Severity
from conflict_engine.records.normalizer import normalize_incident, normalize_incidents, parse_ts
from conflict_engine.telemetry.logging import SafeOtelFormatter
from conflict_engine.telemetry.tracing import service_resource


def _row(**overrides):
    row = {
        "id": "12",
        "title": "Cattle raid",
        "severity": " HIGH ",
        "status": "Active",
        "reportedAt": "2025-06-01T08:00:00Z",
    }
    row.update(overrides)
    return row


class TestParseTimestamp:
    def test_zulu_suffix(self):
        assert parse_ts("2025-06-01T08:00:00Z") == datetime(2025, 6, 1, 8, tzinfo=timezone.utc)

    def test_offset_is_converted_to_utc(self):
        assert parse_ts("2025-06-01T09:00:00+01:00") == datetime(2025, 6, 1, 8, tzinfo=timezone.utc)

    def test_naive_is_treated_as_utc(self):
        assert parse_ts(datetime(2025, 6, 1, 8)).tzinfo == timezone.utc

    @pytest.mark.parametrize("raw", [None, "", "yesterday", 42])
    def test_unparsable(self, raw):
        assert parse_ts(raw) is None


class TestNormalizeIncident:
    def test_coerces_enums_and_id(self):
        incident = normalize_incident(_row())

        assert incident.id == 12
        assert incident.severity == Severity.HIGH
        assert incident.status == IncidentStatus.ACTIVE
        assert incident.description == ""
        assert incident.region is None

    def test_unknown_severity_names_the_field(self):
        with pytest.raises(ValidationError, match="severity"):
            normalize_incident(_row(severity="extreme"))

    def test_missing_report_time(self):
        with pytest.raises(ValidationError, match="reportedAt"):
            normalize_incident(_row(reportedAt=None))

    def test_non_numeric_id(self):
        with pytest.raises(ValidationError, match="id"):
            normalize_incident(_row(id="abc"))

    def test_non_text_fields_are_validation_errors(self):
        with pytest.raises(ValidationError, match="title"):
            normalize_incident(_row(title=42))
        with pytest.raises(ValidationError, match="severity"):
            normalize_incident(_row(severity=3))

    def test_batch_skips_bad_rows(self):
        incidents = normalize_incidents([_row(), _row(id=13, title=""), _row(id=14)])

        assert [i.id for i in incidents] == [12, 14]


class TestGrouping:
    def test_chronological_breaks_ties_by_id(self, make_incident):
        a = make_incident(id=2, days_ago=1)
        b = make_incident(id=1, days_ago=1)

        assert [i.id for i in grouping.chronological([a, b])] == [1, 2]

    def test_missing_region_groups_as_unknown(self, make_incident):
        groups = grouping.by_region([make_incident(region=None), make_incident(region="Borno")])

        assert list(groups) == ["Borno", grouping.UNKNOWN]

    def test_escalating_pairs(self, make_incident):
        ordered = [
            make_incident("low", id=1, days_ago=3),
            make_incident("high", id=2, days_ago=2),
            make_incident("medium", id=3, days_ago=1),
        ]

        assert [i.id for i in grouping.escalating_pairs(ordered)] == [2]

    def test_stable_id(self):
        assert grouping.stable_id("pattern", 1, 2) == grouping.stable_id("pattern", 1, 2)
        assert grouping.stable_id("pattern", 1, 2) != grouping.stable_id("pattern", 2, 1)


class TestTelemetry:
    def test_formatter_fills_trace_defaults(self):
        record = logging.LogRecord("engine.test", logging.INFO, __file__, 1, "hello", None, None)

        line = SafeOtelFormatter('%(message)s %(otelTraceID)s').format(record)

        assert line == "hello 0"

    def test_resource_carries_environment(self):
        attributes = service_resource("staging").attributes

        assert attributes["service.name"] == "conflict-engine"
        assert attributes["deployment.environment"] == "staging"
