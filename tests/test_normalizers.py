"""Unit Tests for the shared normalizers.

Run with: pytest tests/ -v
"""
import math

import pytest

from models.enums import Qualitative, Severity, Trend
from tools.normalizers import (
    clamp,
    clamp_optional,
    compute_trend,
    finite_or_none,
    has_qualitative_issue,
    max_numeric_token,
    parse_first_number,
    parse_qualitative,
    parse_severity,
)


class TestSeverityParsing:
    """Free-text severities map onto the ordered Severity enum."""

    @pytest.mark.parametrize("text,expected", [
        ("none", Severity.NONE),
        ("No", Severity.NONE),
        ("0", Severity.NONE),
        ("Mild plaque", Severity.MILD),
        ("MODERATE", Severity.MODERATE),
        ("mod", Severity.MODERATE),
        ("severe stenosis", Severity.SEVERE),
        ("high", Severity.SEVERE),
    ])
    def test_known_values(self, text, expected):
        assert parse_severity(text) == expected

    def test_blank_and_unrecognised_are_unknown(self):
        """No match means not triggered."""
        assert parse_severity(None) == Severity.UNKNOWN
        assert parse_severity("   ") == Severity.UNKNOWN
        assert parse_severity("pending") == Severity.UNKNOWN

    def test_none_wins_over_other_words(self):
        assert parse_severity("none, previously mild") == Severity.NONE

    def test_severity_is_ordered(self):
        assert Severity.UNKNOWN < Severity.NONE < Severity.MILD < Severity.MODERATE < Severity.SEVERE


class TestQualitativeParsing:
    """Only the exact four words are recognised."""

    def test_exact_words(self):
        assert parse_qualitative(" Low ") == Qualitative.LOW
        assert parse_qualitative("moderate") == Qualitative.MODERATE
        assert parse_qualitative("HIGH") == Qualitative.HIGH
        assert parse_qualitative("severe") == Qualitative.SEVERE

    def test_other_text_is_unknown(self):
        assert parse_qualitative("low risk") == Qualitative.UNKNOWN
        assert parse_qualitative(None) == Qualitative.UNKNOWN


class TestNumericHelpers:
    """Clamps and finite checks."""

    def test_clamp(self):
        assert clamp(150, 1, 99) == 99
        assert clamp(-3, 1, 99) == 1
        assert clamp(42, 1, 99) == 42

    def test_finite_or_none(self):
        assert finite_or_none(None) is None
        assert finite_or_none(float("nan")) is None
        assert finite_or_none(math.inf) is None
        assert finite_or_none("3.5") == 3.5

    def test_clamp_optional(self):
        assert clamp_optional(None, 0, 70) is None
        assert clamp_optional(85, 0, 70) == 70


class TestFreeTextExtraction:
    """Numbers and deficit keywords from clinician text."""

    @pytest.mark.parametrize("text,expected", [
        ("8/10", 8.0),
        ("Score: 7.5", 7.5),
        ("~12 cm", 12.0),
        ("-3 cm", -3.0),
    ])
    def test_first_number(self, text, expected):
        assert parse_first_number(text) == expected

    def test_first_number_absent_or_malformed(self):
        assert parse_first_number("no score recorded") is None
        assert parse_first_number("--") is None
        assert parse_first_number("") is None

    def test_max_numeric_token(self):
        assert max_numeric_token("4-6 drinks per week") == 6.0
        assert max_numeric_token("none") is None

    def test_qualitative_issue_keywords(self):
        assert has_qualitative_issue("Left hip pain on rotation")
        assert has_qualitative_issue("tight hamstrings")
        assert has_qualitative_issue("Weak on the right")

    def test_normal_answers_never_trigger(self):
        assert not has_qualitative_issue("Normal")
        assert not has_qualitative_issue("WNL")
        assert not has_qualitative_issue("full range, symmetric")
        assert not has_qualitative_issue(None)


class TestTrend:
    """Trend detection with a missing prior reads as Unknown."""

    def test_missing_values_are_unknown(self):
        assert compute_trend(50, None) == Trend.UNKNOWN
        assert compute_trend(None, 50) == Trend.UNKNOWN

    def test_higher_is_better(self):
        assert compute_trend(40, 35, delta=2) == Trend.IMPROVING
        assert compute_trend(35, 40, delta=2) == Trend.WORSENING
        assert compute_trend(41, 40, delta=2) == Trend.STABLE

    def test_lower_is_better(self):
        assert compute_trend(55, 60, delta=2, lower_is_better=True) == Trend.IMPROVING
        assert compute_trend(60, 55, delta=2, lower_is_better=True) == Trend.WORSENING
