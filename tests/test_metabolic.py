"""Unit Tests for metabolic classification and the MetabolicInsightAgent.

Run with: pytest tests/ -v
"""
import json
from dataclasses import replace
from types import SimpleNamespace

import pytest

from agents.metabolic_agent import MetabolicInsightAgent
from models.enums import MetricGrade
from models.inputs import HealthAgeInputs
from tools.metabolic import (
    DYSFUNCTION,
    MILD_DYSFUNCTION,
    OPTIMAL_METABOLISM,
    build_metabolic_assessment,
    enforce_metabolic_category,
    fib4,
    grade_a1c,
    grade_lean_to_fat,
    grade_tg_hdl,
)

INSULIN_RESISTANT = HealthAgeInputs(
    chronological_age_years=50,
    fasting_insulin_uiu_ml=15,
    fasting_glucose_mg_dl=100,
    visceral_fat_percentile=80,
)


class FakeModel:
    """Stands in for a Gemini GenerativeModel."""

    def __init__(self, payload):
        self.payload = payload
        self.prompts = []

    def generate_content(self, prompt, generation_config=None):
        self.prompts.append(prompt)
        text = self.payload if isinstance(self.payload, str) else json.dumps(self.payload)
        return SimpleNamespace(text=text)


class TestGrading:
    """Metric grade ladders."""

    def test_a1c_bands(self):
        assert grade_a1c(5.2) == MetricGrade.OPTIMAL
        assert grade_a1c(5.3) == MetricGrade.MILD
        assert grade_a1c(5.7) == MetricGrade.MODERATE
        assert grade_a1c(6.5) == MetricGrade.SEVERE
        assert grade_a1c(None) == MetricGrade.UNKNOWN

    def test_ratio_band_edges_resolve_to_less_severe(self):
        assert grade_tg_hdl(0.9) == MetricGrade.OPTIMAL
        assert grade_tg_hdl(1.0) == MetricGrade.MILD
        assert grade_tg_hdl(2.0) == MetricGrade.MILD
        assert grade_tg_hdl(3.0) == MetricGrade.MODERATE
        assert grade_tg_hdl(3.01) == MetricGrade.SEVERE

    def test_lean_to_fat_needs_sex(self):
        assert grade_lean_to_fat(3.0, None) == MetricGrade.UNKNOWN
        assert grade_lean_to_fat(3.0, "Female") == MetricGrade.OPTIMAL
        assert grade_lean_to_fat(3.0, "male") == MetricGrade.MILD

    def test_fib4_requires_positive_alt(self):
        assert fib4(50, 30, 0, 250) is None
        assert fib4(50, 30, 25, 250) == pytest.approx(50 * 30 / (250 * 5))


class TestCategory:
    """Counts and flags decide the category."""

    def test_no_data_is_optimal(self):
        assessment = build_metabolic_assessment(HealthAgeInputs())
        assert assessment.metabolic_health_category == OPTIMAL_METABOLISM
        assert assessment.counts.non_optimal_count == 0
        assert assessment.notes

    def test_isolated_a1c_is_optimal(self):
        assessment = build_metabolic_assessment(HealthAgeInputs(hemoglobin_a1c=6.0))
        assert assessment.flags.isolated_a1c_elevation
        assert assessment.metabolic_health_category == OPTIMAL_METABOLISM

    def test_single_mild_marker(self):
        assessment = build_metabolic_assessment(HealthAgeInputs(fasting_insulin_uiu_ml=8))
        assert assessment.metabolic_health_category == MILD_DYSFUNCTION
        assert assessment.flags.isolated_insulin_resistance_marker

    def test_severe_markers(self):
        assessment = build_metabolic_assessment(INSULIN_RESISTANT)
        assert assessment.derived_metrics["homa_ir"] == pytest.approx(100 * 15 / 405)
        assert assessment.grades["homa_ir"] == MetricGrade.SEVERE
        assert assessment.metabolic_health_category == DYSFUNCTION
        assert [c.metric_name for c in assessment.biggest_contributors] == [
            "HOMA-IR", "Visceral Fat Percentile", "Fasting Insulin",
        ]

    def test_supplied_ratio_used_without_raw_labs(self):
        assessment = build_metabolic_assessment(HealthAgeInputs(triglycerides_hdl_ratio=2.5))
        assert assessment.derived_metrics["tg_hdl_ratio"] == 2.5
        assert assessment.grades["tg_hdl_ratio"] == MetricGrade.MODERATE


class TestEnforcement:
    """A proposed category never overrides the computed one."""

    def test_matching_category_is_unchanged(self):
        assessment = build_metabolic_assessment(INSULIN_RESISTANT)
        assert enforce_metabolic_category(assessment) is assessment

    def test_wrong_category_is_corrected_with_note(self):
        assessment = replace(build_metabolic_assessment(INSULIN_RESISTANT),
                             metabolic_health_category=OPTIMAL_METABOLISM)
        enforced = enforce_metabolic_category(assessment)
        assert enforced.metabolic_health_category == DYSFUNCTION
        assert enforced.notes[-1].startswith("[Server override]")

    def test_enforcement_is_idempotent(self):
        assessment = replace(build_metabolic_assessment(INSULIN_RESISTANT),
                             metabolic_health_category="whatever")
        once = enforce_metabolic_category(assessment)
        twice = enforce_metabolic_category(once)
        assert twice == once


class TestMetabolicInsightAgent:
    """Model output merged under the deterministic category."""

    def test_offline_returns_deterministic_assessment(self):
        agent = MetabolicInsightAgent(offline=True)
        assert agent.model is None
        assert agent.run(INSULIN_RESISTANT) == build_metabolic_assessment(INSULIN_RESISTANT)

    def test_model_category_is_overridden(self):
        model = FakeModel({
            "metabolicHealthCategory": OPTIMAL_METABOLISM,
            "topInterventions": [
                {"bucket": "Fitness", "recommendationText": "Walk after meals.", "priority": 1},
                {"bucket": "Astrology", "recommendationText": "Check your stars.", "priority": 2},
                {"bucket": "SleepOptimization", "recommendationText": "Keep a regular bedtime.", "priority": 3},
            ],
            "notes": ["Insulin markers drive the picture."],
        })
        result = MetabolicInsightAgent(model=model).run(INSULIN_RESISTANT)

        assert result.metabolic_health_category == DYSFUNCTION
        assert [i.bucket for i in result.top_interventions] == ["Fitness", "SleepOptimization"]
        assert [i.priority for i in result.top_interventions] == [1, 2]
        assert "Insulin markers drive the picture." in result.notes
        assert result.notes[-1].startswith("[Server override]")
        assert result.grades == build_metabolic_assessment(INSULIN_RESISTANT).grades

    def test_malformed_json_falls_back(self):
        agent = MetabolicInsightAgent(model=FakeModel("```json\nnot json\n```"))
        assert agent.run(INSULIN_RESISTANT) == build_metabolic_assessment(INSULIN_RESISTANT)

    def test_fallback_paragraphs_name_contributors(self):
        agent = MetabolicInsightAgent(offline=True)
        assessment = agent.run(INSULIN_RESISTANT)
        paragraphs = agent.opportunity_paragraphs(INSULIN_RESISTANT, assessment)
        assert len(paragraphs) == len(assessment.top_interventions)
        assert "HOMA-IR" in paragraphs[0]

    def test_no_interventions_no_paragraphs(self):
        agent = MetabolicInsightAgent(offline=True)
        assessment = agent.run(HealthAgeInputs())
        assert agent.opportunity_paragraphs(HealthAgeInputs(), assessment) == []

    def test_model_paragraphs_are_used(self):
        model = FakeModel({"opportunityParagraphs": ["First.", "  ", "Second."]})
        agent = MetabolicInsightAgent(model=model)
        assessment = build_metabolic_assessment(INSULIN_RESISTANT)
        assert agent.opportunity_paragraphs(INSULIN_RESISTANT, assessment) == ["First.", "Second."]
