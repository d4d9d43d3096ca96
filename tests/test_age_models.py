"""Unit Tests for PhenoAge, HealthAge and PerformanceAge.

Run with: pytest tests/ -v
"""
import math
from dataclasses import replace

import pytest

from core.errors import InvalidInput
from models.inputs import HealthAgeInputs, PerformanceAgeInputs, PhenoAgeInputs
from tools.health_age import (
    calculate_health_age,
    homa_ir,
    non_hdl_percent,
    normalize_risk_group,
    tg_hdl_ratio,
)
from tools.performance_age import calculate_performance_age
from tools.phenoage import calculate_pheno_age, mortality_from_xb, phenotypic_age_from_mortality

BASE_PHENO = PhenoAgeInputs(
    chronological_age_years=50,
    albumin_g_dl=4.5,
    creatinine_mg_dl=0.9,
    glucose_mg_dl=90,
    crp_mg_l=1.0,
    lymphocyte_percent=30,
    mcv_fl=90,
    rdw_percent=13,
    alkaline_phosphatase_u_l=70,
    wbc_10e3_per_ul=6,
)


class TestPhenoAge:
    """Levine 2018 phenotypic age."""

    def test_healthy_panel_is_younger_than_chronological(self):
        result = calculate_pheno_age(BASE_PHENO)
        assert 38 < result.phenotypic_age_years < 46
        assert 0 < result.mortality_10yr < 1

    def test_higher_inflammation_ages_faster(self):
        inflamed = calculate_pheno_age(replace(BASE_PHENO, crp_mg_l=10.0, rdw_percent=15.5))
        baseline = calculate_pheno_age(BASE_PHENO)
        assert inflamed.phenotypic_age_years > baseline.phenotypic_age_years

    @pytest.mark.parametrize("field_name", [
        "chronological_age_years", "albumin_g_dl", "crp_mg_l", "wbc_10e3_per_ul",
    ])
    def test_missing_biomarker_raises(self, field_name):
        with pytest.raises(InvalidInput) as exc:
            calculate_pheno_age(replace(BASE_PHENO, **{field_name: None}))
        assert exc.value.field == field_name

    def test_non_positive_biomarker_raises(self):
        with pytest.raises(InvalidInput) as exc:
            calculate_pheno_age(replace(BASE_PHENO, crp_mg_l=0))
        assert exc.value.field == "crp_mg_l"

    def test_extreme_predictor_stays_finite(self):
        """Mortality is clamped so the inverse transform never blows up."""
        for xb in (-60.0, 40.0):
            m = mortality_from_xb(xb)
            assert 0 < m < 1
            age = phenotypic_age_from_mortality(m)
            assert age == age  # not NaN

    def test_very_high_white_cell_count(self):
        """A large positive biomarker saturates mortality instead of overflowing."""
        result = calculate_pheno_age(replace(BASE_PHENO, wbc_10e3_per_ul=20000))
        assert result.xb > 709
        assert 0 < result.mortality_10yr < 1
        assert result.mortality_10yr == pytest.approx(1.0 - 1e-15)
        assert math.isfinite(result.phenotypic_age_years)

    def test_predictor_past_exp_limit(self):
        assert mortality_from_xb(1e6) == mortality_from_xb(800.0)
        assert 0 < mortality_from_xb(1e6) < 1


class TestHealthAge:
    """HealthAge factor aggregation."""

    def test_only_supplied_factors_contribute(self):
        inputs = HealthAgeInputs(
            chronological_age_years=50,
            phenotypic_age_years=45,
            body_fat_percentile=30,
            systolic_bp=120,
            diastolic_bp=75,
        )
        result = calculate_health_age(inputs)
        assert set(result.factors) == {"body_fat", "blood_pressure"}
        assert result.factors["body_fat"].contribution_years == pytest.approx(-1.5)
        assert result.factors["blood_pressure"].contribution_years == pytest.approx(-7.5)
        assert result.sum_contribution_years == pytest.approx(-9.0)
        assert result.contribution_years_scaled == pytest.approx(-2.7)
        assert result.health_age_final == pytest.approx(42.3)
        assert result.delta_vs_chrono_years == pytest.approx(-7.7)

    def test_no_factors_equals_phenotypic_age(self):
        result = calculate_health_age(HealthAgeInputs(chronological_age_years=50, phenotypic_age_years=47))
        assert result.factors == {}
        assert result.health_age_final == pytest.approx(47)

    def test_missing_ages_raise(self):
        with pytest.raises(InvalidInput) as exc:
            calculate_health_age(HealthAgeInputs(phenotypic_age_years=45))
        assert exc.value.field == "chronological_age_years"
        with pytest.raises(InvalidInput) as exc:
            calculate_health_age(HealthAgeInputs(chronological_age_years=50))
        assert exc.value.field == "phenotypic_age_years"

    def test_unrecognised_risk_group_raises(self):
        with pytest.raises(InvalidInput) as exc:
            normalize_risk_group("very high")
        assert exc.value.field == "non_hdl_risk_group"

    def test_risk_group_ignored_without_non_hdl_value(self):
        result = calculate_health_age(HealthAgeInputs(
            chronological_age_years=50, phenotypic_age_years=47, non_hdl_risk_group="very high",
        ))
        assert "non_hdl" not in result.factors

    def test_unrecognised_risk_group_with_non_hdl_value_raises(self):
        with pytest.raises(InvalidInput) as exc:
            calculate_health_age(HealthAgeInputs(
                chronological_age_years=50, phenotypic_age_years=47,
                non_hdl_mg_dl=140, non_hdl_risk_group="very high",
            ))
        assert exc.value.field == "non_hdl_risk_group"

    def test_risk_group_aliases(self):
        assert normalize_risk_group("2") == "moderate"
        assert normalize_risk_group(" High ") == "high"
        assert normalize_risk_group("") is None

    def test_non_hdl_band_edges(self):
        assert non_hdl_percent(129, "low") == -0.12
        assert non_hdl_percent(130, "low") == -0.06
        assert non_hdl_percent(159, "low") == -0.06
        assert non_hdl_percent(190, "low") == 0.12
        assert non_hdl_percent(49, "high") == -0.20

    def test_derived_ratios_need_both_values(self):
        assert homa_ir(90, 10) == pytest.approx(90 * 10 / 405)
        assert homa_ir(0, 10) is None
        assert homa_ir(90, None) is None
        assert tg_hdl_ratio(100, 0) is None
        assert tg_hdl_ratio(100, 50) == pytest.approx(2.0)


class TestPerformanceAge:
    """PerformanceAge percentile factors."""

    def test_low_vo2_adds_years(self):
        result = calculate_performance_age(PerformanceAgeInputs(chronological_age_years=50, vo2_max_percentile=10))
        assert result.factors["vo2_max"].contribution_years == pytest.approx(12.5)
        assert result.performance_age == pytest.approx(53.75)
        assert result.delta_vs_age_years == pytest.approx(3.75)

    def test_absent_percentiles_are_excluded(self):
        result = calculate_performance_age(PerformanceAgeInputs(
            chronological_age_years=60, grip_strength_percentile=80, balance_percentile=40,
        ))
        assert list(result.factors) == ["grip_strength", "balance"]
        assert result.factors["balance"].percent_of_age == 0.0

    def test_raw_measures_pass_through(self):
        result = calculate_performance_age(PerformanceAgeInputs(
            chronological_age_years=60, vo2_max=31.5, floor_to_stand_test="7/10",
        ))
        assert result.informational == {"vo2_max": 31.5, "floor_to_stand_test": "7/10"}
        assert result.performance_age == pytest.approx(60)

    def test_missing_age_raises(self):
        with pytest.raises(InvalidInput):
            calculate_performance_age(PerformanceAgeInputs(vo2_max_percentile=50))
