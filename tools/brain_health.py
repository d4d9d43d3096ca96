"""BrainHealth score: nine weighted sub-scores summed to 0-100.

Sources:
- BrainCheck cognitive percentile (capped 1-99)
- PROMIS Depression 8a / Anxiety 8a / Sleep Disturbance T-scores
- Perceived Stress Scale (PSS-10)
- Brief Resilience Scale, LOT-R, Meaning in Life Questionnaire, Flourishing Scale

Level: >= 85 Optimal, >= 70 Healthy, else Needs Attention.
"""
import logging
from typing import Dict, List, Optional

from models.inputs import BrainHealthInputs
from models.results import BrainHealthResult
from tools.normalizers import clamp, compute_trend

logger = logging.getLogger(__name__)

MODEL_VERSION = "brainhealth-v2-updated-sheet"

WEIGHTS = {
    "cognitive": 0.30,
    "depression": 0.12,
    "anxiety": 0.10,
    "stress": 0.10,
    "sleep": 0.10,
    "resilience": 0.10,
    "optimism": 0.06,
    "meaning": 0.06,
    "flourishing": 0.06,
}

LOW_PERCENTILE = 20
DROP_POINTS = 20


# ============================================================================
# SUB-SCORE BANDS
# ============================================================================

def promis_subscore(t_score: float) -> float:
    if t_score <= 55:
        return 100
    if t_score < 60:
        return 90
    if t_score < 70:
        return 40
    return 20


def stress_subscore(pss: float) -> float:
    if pss <= 13:
        return 100
    if pss <= 26:
        return 70
    return 30


def resilience_subscore(brs_total: float) -> float:
    mean = brs_total / 6.0
    if mean > 4.31:
        return 100
    if 3.0 <= mean <= 4.3:
        return 70
    return 30


def optimism_subscore(lot_r: float) -> float:
    if lot_r >= 19:
        return 100
    if lot_r >= 13:
        return 70
    return 30


def meaning_subscore(mlq_total: float) -> float:
    mean = mlq_total / 10.0
    if mean > 5.5:
        return 100
    if 3.5 <= mean <= 5.4:
        return 70
    return 30


def flourishing_subscore(score: float) -> float:
    if score > 50:
        return 100
    if 38 <= score <= 49:
        return 70
    return 30


def brain_level(total: float) -> str:
    if total >= 85:
        return "Optimal"
    if total >= 70:
        return "Healthy"
    return "Needs Attention"


def _cognitive_subscore(percentile: float) -> float:
    return clamp(percentile, 1, 99)


_SUBSCORES: Dict[str, tuple] = {
    "cognitive": ("cognitive_function", _cognitive_subscore),
    "depression": ("promis_depression_8a", promis_subscore),
    "anxiety": ("promis_anxiety_8a", promis_subscore),
    "stress": ("perceived_stress_score", stress_subscore),
    "sleep": ("promis_sleep_disturbance", promis_subscore),
    "resilience": ("brief_resilience_scale", resilience_subscore),
    "optimism": ("life_orientation_test_r", optimism_subscore),
    "meaning": ("meaning_in_life_questionnaire", meaning_subscore),
    "flourishing": ("flourishing_scale", flourishing_subscore),
}


# ============================================================================
# CONFIRM / EVALUATE FLAG
# ============================================================================

def braincheck_flag(capped: Optional[float], prior_capped: Optional[float]):
    """
    Return (confirm_evaluate, reason).

    A low single score and a sharp drop are independent triggers; both are
    reported when both fire.
    """
    low = capped is not None and capped < LOW_PERCENTILE
    drop = capped is not None and prior_capped is not None and prior_capped - capped >= DROP_POINTS

    if low and drop:
        return True, "LOW_AND_DROP"
    if low:
        return True, "LOW_UNDER_20TH"
    if drop:
        return True, "DROP_20_OR_MORE"
    return False, None


def calculate_brain_health(inputs: BrainHealthInputs) -> BrainHealthResult:
    subscores: Dict[str, float] = {}
    weighted: Dict[str, float] = {}
    missing: List[str] = []

    for domain, (field_name, band) in _SUBSCORES.items():
        value = getattr(inputs, field_name)
        if value is None:
            missing.append(field_name)
            subscores[domain] = 0.0
            weighted[domain] = 0.0
            continue
        sub = float(band(value))
        subscores[domain] = sub
        weighted[domain] = sub * WEIGHTS[domain]

    total = sum(weighted.values())

    capped = (
        clamp(inputs.cognitive_function, 1, 99)
        if inputs.cognitive_function is not None else None
    )
    prior_capped = (
        clamp(inputs.cognitive_function_prior, 1, 99)
        if inputs.cognitive_function_prior is not None else None
    )
    confirm, reason = braincheck_flag(capped, prior_capped)

    if missing:
        logger.info(f"BrainHealth scored with missing inputs: {', '.join(missing)}")

    return BrainHealthResult(
        total_score=total,
        level=brain_level(total),
        subscores=subscores,
        weighted_points=weighted,
        confirm_evaluate=confirm,
        confirm_reason=reason,
        cognitive_percentile_capped=capped,
        cognitive_percentile_prior_capped=prior_capped,
        cognitive_trend=compute_trend(capped, prior_capped, delta=1.0),
        missing_inputs=missing,
    )
