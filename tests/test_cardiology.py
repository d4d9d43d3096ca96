"""Unit Tests for the cardiology risk engine.

Run with: pytest tests/ -v
"""
import pytest

from core.errors import InvalidInput
from models.enums import BaselineCategory
from models.inputs import CardiologyInputs, HealthAgeInputs, PerformanceAgeInputs, PhenoAgeInputs
from tools.cardiology import (
    V1,
    V3_2,
    calculate_cardiology,
    calculate_modifiable_score,
    category_from_baseline,
    plaque_evidence,
    score_lean_to_fat,
)


class TestHeartHealthScore:
    """Two-stage v3_2 scoring."""

    def test_empty_inputs_are_low_risk(self):
        result = calculate_cardiology(CardiologyInputs(), V3_2)
        assert result.plaque_score == 18
        assert result.cardiac_physiology_score == 12
        assert result.baseline_heart_health_score == 30
        assert result.risk_category == "LOW"
        assert result.cardiac_physiology_status.startswith("Unknown")
        assert result.heart_health_score_is_partial

    def test_early_plaque_is_mild(self):
        result = calculate_cardiology(CardiologyInputs(cac_score=50), V3_2)
        assert result.plaque_score == 12
        assert result.baseline_risk_category == BaselineCategory.MILD
        assert result.risk_category == "MILD"
        assert result.vascular_health_status == "Early/subclinical plaque"

    def test_cac_percentile_over_25_is_moderate(self):
        result = calculate_cardiology(CardiologyInputs(cac_percentile=40), V3_2)
        assert result.plaque_score == 6
        assert result.risk_category == "MODERATE"
        assert result.triggered_by_moderate_finding

    def test_low_ejection_fraction_sets_minimum(self):
        """EF below 35 forces the highest baseline category."""
        result = calculate_cardiology(CardiologyInputs(ejection_fraction_percent=30), V3_2)
        assert result.score_category == BaselineCategory.MILD
        assert result.ef_min_category == BaselineCategory.HIGH
        assert result.risk_category == "SEVERE"

    def test_baseline_bands(self):
        assert category_from_baseline(28) == BaselineCategory.LOW
        assert category_from_baseline(27) == BaselineCategory.MILD
        assert category_from_baseline(17) == BaselineCategory.MODERATE
        assert category_from_baseline(16) == BaselineCategory.HIGH

    def test_cta_low_counts_as_plaque(self):
        any_plaque, moderate_plus = plaque_evidence(CardiologyInputs(cta_overall_result="low"))
        assert any_plaque
        assert not moderate_plus

    def test_supplied_modifiable_score_is_clamped(self):
        result = calculate_cardiology(CardiologyInputs(modifiable_heart_health_score=85), V3_2)
        assert result.modifiable_heart_health_score == 70
        assert result.heart_health_score == 100
        assert not result.heart_health_score_is_partial

    def test_override_used_when_not_supplied(self):
        result = calculate_cardiology(CardiologyInputs(), V3_2, modifiable_override=40)
        assert result.heart_health_score == 70

    def test_supplied_score_wins_over_override(self):
        result = calculate_cardiology(CardiologyInputs(modifiable_heart_health_score=20), V3_2, 60)
        assert result.modifiable_heart_health_score == 20


class TestRuleLadder:
    """v1 qualitative ladder."""

    def test_no_findings(self):
        assert calculate_cardiology(CardiologyInputs(), V1).risk_category == "LOW"

    def test_low_cta_is_mild(self):
        result = calculate_cardiology(CardiologyInputs(cta_overall_result="Low"), V1)
        assert result.risk_category == "MILD"
        assert result.triggered_by_mild_finding

    def test_moderate_plaque(self):
        result = calculate_cardiology(CardiologyInputs(carotid_plaque_severity="Moderate"), V1)
        assert result.risk_category == "MODERATE"

    def test_high_treadmill_is_severe(self):
        result = calculate_cardiology(CardiologyInputs(treadmill_overall_result="high"), V1)
        assert result.risk_category == "SEVERE"
        assert result.risk_explanation.startswith("Severe cardiology risk.")


class TestClinicalHistory:
    """ASCVD history always forces SEVERE."""

    @pytest.mark.parametrize("version", [V1, V3_2])
    def test_ascvd_history_forces_severe(self, version):
        result = calculate_cardiology(CardiologyInputs(has_clinical_ascvd_history=True), version)
        assert result.risk_category == "SEVERE"
        assert result.triggered_by_clinical_history

    def test_unknown_version_raises(self):
        with pytest.raises(InvalidInput) as exc:
            calculate_cardiology(CardiologyInputs(), "v2")
        assert exc.value.field == "cardiology_model_version"


class TestModifiableScore:
    """Seven-part modifiable heart health score."""

    def _inputs(self, **health_overrides):
        health = dict(
            sex="male", systolic_bp=110, diastolic_bp=70, non_hdl_mg_dl=95,
            homa_ir=0.8, visceral_fat_percentile=20, total_lean_mass=60, total_fat_mass=15,
        )
        health.update(health_overrides)
        return (
            HealthAgeInputs(**health),
            PerformanceAgeInputs(vo2_max_percentile=80),
            PhenoAgeInputs(crp_mg_l=0.5),
            CardiologyInputs(coronary_plaque_severity="none"),
        )

    def test_all_parts_present(self):
        assert calculate_modifiable_score(*self._inputs()) == 67

    def test_missing_part_returns_none(self):
        assert calculate_modifiable_score(*self._inputs(sex=None)) is None

    def test_missing_cardiology_section(self):
        health, performance, pheno, _ = self._inputs()
        assert calculate_modifiable_score(health, performance, pheno, None) is None

    def test_lean_to_fat_bands_by_sex(self):
        assert score_lean_to_fat("male", 3.0) == 7
        assert score_lean_to_fat("female", 3.0) == 10
        assert score_lean_to_fat("female", 1.0) == 0
