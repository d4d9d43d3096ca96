"""PerformanceAge: chronological age adjusted by physical-performance percentiles.

    performance_age = age + 0.3 * sum(percent_i * age)

Absent percentiles are excluded from the factor list. Raw measures that do
not feed the model (VO2max value, heart-rate recovery, floor-to-stand, timed
chair rises...) are passed through for the report.
"""
import logging
from typing import Dict, Optional

from core.errors import InvalidInput
from models.inputs import PerformanceAgeInputs
from models.results import FactorDetail, PerformanceAgeResult

logger = logging.getLogger(__name__)

MODEL_VERSION = "performanceage-v1-excel"
SCALE = 0.3


def vo2_percent(p: float) -> float:
    if p < 25:
        return 0.25
    if p < 50:
        return 0.10
    if p < 75:
        return -0.05
    if p < 97.5:
        return -0.15
    return -0.25


def standard_percent(p: float) -> float:
    """Quadriceps, maximal gait speed, power, chair rise."""
    if p < 10:
        return 0.10
    if p < 25:
        return 0.05
    if p < 50:
        return 0.0
    if p < 75:
        return -0.05
    return -0.10


def grip_percent(p: float) -> float:
    """Grip strength and comfortable gait speed."""
    if p < 10:
        return 0.15
    if p < 25:
        return 0.07
    if p < 50:
        return 0.0
    if p < 75:
        return -0.07
    return -0.15


def balance_percent(p: float) -> float:
    if p < 10:
        return 0.05
    if p < 25:
        return 0.025
    if p < 50:
        return 0.0
    if p < 75:
        return -0.025
    return -0.05


# (factor name, input field, step function), in report order
FACTORS = (
    ("vo2_max", "vo2_max_percentile", vo2_percent),
    ("quadriceps_strength", "quadriceps_strength_percentile", standard_percent),
    ("grip_strength", "grip_strength_percentile", grip_percent),
    ("gait_speed_comfortable", "gait_speed_comfortable_percentile", grip_percent),
    ("gait_speed_max", "gait_speed_max_percentile", standard_percent),
    ("power", "power_percentile", standard_percent),
    ("balance", "balance_percentile", balance_percent),
    ("chair_rise", "chair_rise_percentile", standard_percent),
)

INFORMATIONAL_FIELDS = (
    "vo2_max",
    "heart_rate_recovery",
    "floor_to_stand_test",
    "trunk_endurance",
    "posture_assessment",
    "mobility_rom",
    "hip_strength",
    "calf_strength",
    "rotator_cuff_integrity",
    "isometric_thigh_pull",
    "isometric_thigh_pull_percentile",
    "chair_rise_five_times",
    "chair_rise_thirty_seconds",
)


def calculate_performance_age(inputs: PerformanceAgeInputs) -> PerformanceAgeResult:
    age: Optional[float] = inputs.chronological_age_years
    if age is None or not age > 0:
        raise InvalidInput("chronological_age_years", "Chronological age must be > 0")

    factors: Dict[str, FactorDetail] = {}
    for name, field_name, step in FACTORS:
        percentile = getattr(inputs, field_name)
        if percentile is None:
            continue
        pct = step(percentile)
        factors[name] = FactorDetail(percent_of_age=pct, contribution_years=pct * age)

    total = sum(f.contribution_years for f in factors.values())
    scaled = total * SCALE
    performance_age = age + scaled

    informational = {
        name: getattr(inputs, name)
        for name in INFORMATIONAL_FIELDS
        if getattr(inputs, name) is not None
    }

    logger.debug(f"PerformanceAge factors={list(factors)} age={performance_age:.2f}")
    return PerformanceAgeResult(
        sum_contribution_years=total,
        contribution_years_scaled=scaled,
        performance_age=performance_age,
        delta_vs_age_years=performance_age - age,
        delta_vs_age_percent=performance_age / age - 1.0,
        factors=factors,
        informational=informational,
    )
