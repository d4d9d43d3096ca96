"""Unit Tests for physical performance assessment and strategy ranking.

Run with: pytest tests/ -v
"""
import pytest

from models.enums import PerformanceStatus
from models.inputs import PerformanceAgeInputs
from tools.physical_performance import (
    FIT_AND_MOBILE,
    MAX_STRATEGIES,
    STRONG_AND_STABLE,
    assess_metrics,
    assess_physical_performance,
    severity_from_percentile,
)


def _by_metric(inputs):
    return {m.metric: m for m in assess_metrics(inputs)}


class TestSeverityLadder:
    """Percentile to severity mapping."""

    @pytest.mark.parametrize("percentile,expected", [
        (99, 0), (75, 0), (74.9, 1), (50, 1), (49, 2), (26, 2), (25.9, 3), (1, 3),
    ])
    def test_ladder(self, percentile, expected):
        assert severity_from_percentile(percentile) == expected


class TestMetricAssessment:
    """Per-metric status and severity."""

    def test_empty_inputs_are_data_missing(self):
        metrics = assess_metrics(PerformanceAgeInputs())
        assert len(metrics) == 15
        assert all(m.status == PerformanceStatus.DATA_MISSING for m in metrics)

    def test_asymmetry_adds_severity(self):
        metrics = _by_metric(PerformanceAgeInputs(
            grip_strength_percentile=80, grip_asymmetry_percent=15,
            quadriceps_strength_percentile=80, quadriceps_asymmetry_percent=25,
        ))
        grip = metrics["Grip Strength"]
        assert grip.status == PerformanceStatus.SUB_OPTIMAL
        assert grip.severity == 1
        assert grip.reasons == ["Side-to-side asymmetry 15% (>10%)"]
        assert metrics["Quadriceps Strength"].severity == 2

    def test_small_asymmetry_stays_optimal(self):
        grip = _by_metric(PerformanceAgeInputs(grip_strength_percentile=80, grip_asymmetry_percent=8))["Grip Strength"]
        assert grip.status == PerformanceStatus.OPTIMAL

    def test_timed_chair_tests(self):
        chair = _by_metric(PerformanceAgeInputs(
            chair_rise_percentile=80, chair_rise_five_times=16, chair_rise_thirty_seconds=12,
        ))["Chair Rise"]
        assert chair.status == PerformanceStatus.SUB_OPTIMAL
        assert chair.severity == 2
        assert len(chair.reasons) == 1
        assert chair.reasons[0].startswith("Five-times sit-to-stand 16 s")

    def test_slow_heart_rate_recovery(self):
        aerobic = _by_metric(PerformanceAgeInputs(vo2_max_percentile=80, heart_rate_recovery=18))[
            "Aerobic Fitness (VO₂ Max / HRR)"]
        assert aerobic.severity == 2

    def test_informational_metrics(self):
        metrics = _by_metric(PerformanceAgeInputs(
            isometric_thigh_pull=2500, isometric_thigh_pull_percentile=60,
            gait_speed_comfortable_percentile=40, floor_to_stand_test="not attempted",
        ))
        imtp = metrics["Isometric Mid-Thigh Pull"]
        assert imtp.status == PerformanceStatus.INFORMATIONAL
        assert imtp.finding == "Peak force 2500, 60th percentile"
        assert metrics["Gait Speed"].status == PerformanceStatus.INFORMATIONAL
        assert metrics["Floor-to-Stand"].status == PerformanceStatus.INFORMATIONAL

    def test_posture_and_reported_pain(self):
        metrics = _by_metric(PerformanceAgeInputs(posture_assessment="12 cm", hip_strength="Weak on left"))
        assert metrics["Posture (Tragus-to-Wall)"].severity == 1
        assert metrics["Hip Strength"].status == PerformanceStatus.SUB_OPTIMAL
        assert metrics["Mobility / ROM"].status == PerformanceStatus.SUB_OPTIMAL


class TestStrategies:
    """Ranking of sub-optimal findings."""

    def test_top_three_by_score(self):
        result = assess_physical_performance(PerformanceAgeInputs(
            vo2_max_percentile=20,
            balance_percentile=30,
            quadriceps_strength_percentile=40,
            grip_strength_percentile=60,
            floor_to_stand_test="6/10",
        ))
        assert len(result.strategies) == MAX_STRATEGIES
        assert [s.trigger_metric for s in result.strategies] == [
            "VO₂ Max / Heart Rate Recovery", "Floor-to-Stand", "Balance",
        ]
        assert [s.total_score for s in result.strategies] == [353, 242, 232]
        assert all(s.modules for s in result.strategies)

    def test_all_optimal_has_no_strategies(self):
        result = assess_physical_performance(PerformanceAgeInputs(
            vo2_max_percentile=80,
            gait_speed_max_percentile=90,
            quadriceps_strength_percentile=85,
            grip_strength_percentile=90,
            balance_percentile=80,
        ))
        assert result.strategies == []
        assert len(result.reassurances) == 2
        assert [r.domain for r in result.reassurances] == [STRONG_AND_STABLE, FIT_AND_MOBILE]
        assert [r.metric for r in result.reassurances] == [
            "Quadriceps Strength", "Aerobic Fitness (VO₂ Max / HRR)",
        ]

    def test_asymmetry_and_timed_chair_tests_drive_strategies(self):
        """Strong percentiles do not hide asymmetry or slow chair rises."""
        result = assess_physical_performance(PerformanceAgeInputs(
            quadriceps_strength_percentile=80, quadriceps_asymmetry_percent=25,
            chair_rise_percentile=90, chair_rise_five_times=20,
        ))
        statuses = {m.metric: (m.status, m.severity) for m in result.metrics
                    if m.status != PerformanceStatus.DATA_MISSING}
        assert statuses == {
            "Quadriceps Strength": (PerformanceStatus.SUB_OPTIMAL, 2),
            "Chair Rise": (PerformanceStatus.SUB_OPTIMAL, 2),
        }
        assert [s.trigger_metric for s in result.strategies] == ["Chair Rise", "Quadriceps Strength"]
        assert [s.severity for s in result.strategies] == [2, 2]
        assert result.strategies[1].status_text == "Side-to-side asymmetry 25% (>20%)"
        assert result.reassurances == []

    def test_sub_optimal_metric_is_never_reassured(self):
        result = assess_physical_performance(PerformanceAgeInputs(
            grip_strength_percentile=90, grip_asymmetry_percent=12, balance_percentile=85,
        ))
        sub_optimal = {m.metric for m in result.metrics if m.status == PerformanceStatus.SUB_OPTIMAL}
        assert sub_optimal == {"Grip Strength"}
        assert [r.metric for r in result.reassurances] == ["Balance"]
        assert [s.trigger_metric for s in result.strategies] == ["Grip Strength"]

    def test_slow_recovery_with_optimal_vo2(self):
        result = assess_physical_performance(PerformanceAgeInputs(vo2_max_percentile=80, heart_rate_recovery=18))
        strategy = result.strategies[0]
        assert strategy.trigger_metric == "Heart Rate Recovery"
        assert strategy.severity == 2
        assert strategy.status_text == "Sub-optimal: VO₂ 80th percentile, HRR 18 bpm"

    def test_normal_recovery_alone_is_not_a_finding(self):
        result = assess_physical_performance(PerformanceAgeInputs(heart_rate_recovery=30))
        assert result.strategies == []
        assert result.reassurances == []

    def test_gait_comfortable_speed_raises_impact(self):
        result = assess_physical_performance(PerformanceAgeInputs(
            gait_speed_max_percentile=60, gait_speed_comfortable_percentile=30,
        ))
        assert result.strategies[0].impact == 4
        assert result.strategies[0].domain == FIT_AND_MOBILE

    def test_reported_pain_yields_hip_and_mobility_strategies(self):
        result = assess_physical_performance(PerformanceAgeInputs(hip_strength="pain with loading"))
        assert {s.trigger_metric for s in result.strategies} == {"Hip Strength", "Mobility / ROM"}
