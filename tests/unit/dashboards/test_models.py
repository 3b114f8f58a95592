"""Tests for models.py."""

from datetime import datetime, timezone

import pytest

from cwnote.dashboards.models import (
    AnnotationRequest,
    DashboardTarget,
    format_timestamp,
    parse_timestamp,
)


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("2025-01-01T00:00:00Z") == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_lowercase_zulu(self):
        assert parse_timestamp("2025-01-01T00:00:00z") == datetime(2025, 1, 1, tzinfo=timezone.utc)

    def test_offset(self):
        ts = parse_timestamp("2025-01-20T14:00:00+02:00")
        assert ts == datetime(2025, 1, 20, 12, tzinfo=timezone.utc)

    def test_fraction_padded_to_microseconds(self):
        assert parse_timestamp("2025-01-20T12:00:00.5Z").microsecond == 500000
        assert parse_timestamp("2025-01-20T12:00:00.123456Z").microsecond == 123456

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "   ",
            "yesterday",
            "2025-13-01T00:00:00Z",
            "2025-01-20",
            "2025-W04-1T12:00:00Z",
            "20250120T120000Z",
            "2025-01-20 12:00",
            "2025-01-20 12:00:00Z",
            "2025-01-20T12:00:00",
            "2025-01-20T12:00Z",
            "2025-01-20T12:00:00+0200",
            "2025-01-20T12:00:00.Z",
            "2025-01-20T12:00:00.123456789Z",
        ],
    )
    def test_invalid(self, raw):
        with pytest.raises(ValueError):
            parse_timestamp(raw)


class TestFormatTimestamp:
    def test_whole_seconds(self):
        assert format_timestamp(datetime(2025, 1, 20, 12, tzinfo=timezone.utc)) == "2025-01-20T12:00:00Z"

    def test_microseconds(self):
        ts = datetime(2025, 1, 20, 12, 0, 0, 123456, tzinfo=timezone.utc)
        assert format_timestamp(ts) == "2025-01-20T12:00:00.123456Z"

    @pytest.mark.parametrize(
        "digits, expected",
        [
            (0, "2025-01-20T12:00:00Z"),
            (1, "2025-01-20T12:00:00.5Z"),
            (3, "2025-01-20T12:00:00.500Z"),
            (6, "2025-01-20T12:00:00.500000Z"),
        ],
    )
    def test_fixed_fraction_width(self, digits, expected):
        ts = datetime(2025, 1, 20, 12, 0, 0, 500000, tzinfo=timezone.utc)
        assert format_timestamp(ts, digits) == expected

    def test_fixed_width_keeps_offset(self):
        ts = parse_timestamp("2025-01-20T14:00:00.25+02:00")
        assert format_timestamp(ts, 2) == "2025-01-20T14:00:00.25+02:00"


class TestAnnotationRequest:
    def test_defaults_to_current_utc_second(self):
        now = datetime(2026, 2, 4, 12, 0, 5, 987000, tzinfo=timezone.utc)
        req = AnnotationRequest.build(label="version", value_text="1.2.3", now=now)
        assert req.annotation_value == "2026-02-04T12:00:05Z"

    def test_annotation_label(self):
        req = AnnotationRequest.build(label="deploy", value_text="0.0.0-49u4ref", timestamp="2025-01-01T00:00:00Z")
        assert req.to_annotation() == {"label": "deploy: 0.0.0-49u4ref", "value": "2025-01-01T00:00:00Z"}

    def test_empty_title_filter_normalised(self):
        req = AnnotationRequest.build(label="a", value_text="b", widget_title_filter="")
        assert req.widget_title_filter is None

    @pytest.mark.parametrize(
        "raw",
        [
            "2025-01-20T12:00:00.5Z",
            "2025-01-20T12:00:00.250Z",
            "2025-01-20T12:00:00.123456Z",
            "2025-01-20T12:00:00.000Z",
        ],
    )
    def test_fraction_width_preserved(self, raw):
        req = AnnotationRequest.build(label="a", value_text="b", timestamp=raw)
        assert req.annotation_value == raw

    def test_lowercase_zulu_written_as_z(self):
        req = AnnotationRequest.build(label="a", value_text="b", timestamp="2025-01-20t12:00:00z")
        assert req.annotation_value == "2025-01-20T12:00:00Z"

    def test_naive_datetime_is_utc(self):
        req = AnnotationRequest.build(label="a", value_text="b", timestamp=datetime(2025, 1, 20, 12))
        assert req.timestamp.tzinfo == timezone.utc

    def test_naive_string_rejected(self):
        with pytest.raises(ValueError):
            AnnotationRequest.build(label="a", value_text="b", timestamp="2025-01-20T12:00:00")


class TestDashboardTarget:
    def test_empty_value_rejected(self):
        with pytest.raises(ValueError):
            DashboardTarget.prefix("")

    def test_unknown_kind_rejected(self):
        with pytest.raises(ValueError):
            DashboardTarget("regex", "svc-.*")

    def test_describe(self):
        assert DashboardTarget.exact("svc").describe() == "dashboard 'svc'"
        assert DashboardTarget.suffix("-prod").describe() == "suffix '-prod'"
