"""Protect Your Brain: cognitive classification, dementia risk context and
modifiable-risk triggers drawn from the rest of the report.

Clinical Reference: Lancet Commission on dementia prevention (2020/2024),
modifiable risk factors (sleep, metabolic, vascular, fitness, muscle,
inflammation, toxins).
"""
from typing import Optional

from models.enums import Trend
from models.inputs import HealthAgeInputs, ReportRequest
from models.results import (
    BrainHealthResult,
    CardiologyResult,
    PerformanceAgeResult,
    ProtectBrainResult,
    ToxinsResult,
)
from tools.normalizers import clamp

ABOVE_AVERAGE = "Above Average"
AVERAGE = "Average"
BELOW_AVERAGE = "Below Average"

HOMOZYGOUS = "ApoE4 homozygous"
HETEROZYGOUS = "ApoE4 heterozygous"

SIGNIFICANT_DECLINE_POINTS = 20


def classify_cognition(capped: Optional[float]) -> str:
    if capped is None:
        return "Unknown"
    if capped >= 75:
        return ABOVE_AVERAGE
    if capped >= 25:
        return AVERAGE
    return BELOW_AVERAGE


def cognitive_trend(capped: Optional[float], prior_capped: Optional[float]) -> Trend:
    """Any change counts; there is no tolerance band here."""
    if capped is None or prior_capped is None:
        return Trend.UNKNOWN
    if capped > prior_capped:
        return Trend.IMPROVING
    if capped < prior_capped:
        return Trend.WORSENING
    return Trend.STABLE


def normalize_apoe4(value: Optional[str]) -> str:
    if not value or not value.strip():
        return "Unknown"
    lowered = value.strip().lower()
    if "homo" in lowered:
        return HOMOZYGOUS
    if "hetero" in lowered:
        return HETEROZYGOUS
    if "not" in lowered or "unknown" in lowered:
        return "Unknown"
    return value.strip()


def normalize_family_history(value: Optional[str]) -> str:
    if not value or not value.strip():
        return "Unknown"
    lowered = value.strip().lower()
    if lowered.startswith("y"):
        return "Yes"
    if lowered.startswith("n"):
        return "No"
    if "unknown" in lowered:
        return "Unknown"
    return value.strip()


def brain_risk_category(classification: str, apoe4: str, family_history: str, significant_decline: bool) -> str:
    genetic_risk = apoe4 in (HETEROZYGOUS, HOMOZYGOUS)
    if classification == BELOW_AVERAGE or apoe4 == HOMOZYGOUS or significant_decline:
        return "Higher Risk"
    if classification in (ABOVE_AVERAGE, AVERAGE) and (genetic_risk or family_history == "Yes"):
        return "Intermediate Risk"
    return "Lower Risk"


# ============================================================================
# MODIFIABLE-RISK TRIGGERS
# ============================================================================

def is_sleep_disturbed(value: Optional[float]) -> bool:
    """PSQI-style scores (<= 10) trigger at 6; PROMIS T-scores at 60."""
    if value is None:
        return False
    if value <= 10:
        return value >= 6
    return value >= 60


def is_metabolic_not_optimal(h: HealthAgeInputs) -> bool:
    return any((
        h.homa_ir is not None and h.homa_ir >= 2.0,
        h.fasting_glucose_mg_dl is not None and h.fasting_glucose_mg_dl >= 100,
        h.hemoglobin_a1c is not None and h.hemoglobin_a1c >= 5.7,
        h.triglycerides_mg_dl is not None and h.triglycerides_mg_dl >= 150,
        h.visceral_fat_percentile is not None and h.visceral_fat_percentile >= 75,
    ))


def is_vascular_not_optimal(h: HealthAgeInputs, cardiology: Optional[CardiologyResult]) -> bool:
    if h.systolic_bp is not None and h.systolic_bp >= 130:
        return True
    if h.diastolic_bp is not None and h.diastolic_bp >= 80:
        return True
    return cardiology is not None and cardiology.risk_category.upper() != "LOW"


def assess_protect_brain(
    request: ReportRequest,
    brain: BrainHealthResult,
    performance: Optional[PerformanceAgeResult],
    cardiology: Optional[CardiologyResult],
    toxins: Optional[ToxinsResult],
) -> ProtectBrainResult:
    b = request.brain_health
    h = request.health_age
    p = request.performance_age

    capped = clamp(b.cognitive_function, 1, 99) if b.cognitive_function is not None else None
    prior_capped = (
        clamp(b.cognitive_function_prior, 1, 99) if b.cognitive_function_prior is not None else None
    )
    classification = classify_cognition(capped)
    apoe4 = normalize_apoe4(b.apoe4_status)
    family = normalize_family_history(b.family_history_dementia)
    significant_decline = (
        capped is not None and prior_capped is not None
        and prior_capped - capped >= SIGNIFICANT_DECLINE_POINTS
    )

    crp = request.pheno_age.crp_mg_l
    triggers = {
        "improve_cognitive_function": classification == BELOW_AVERAGE or brain.confirm_evaluate,
        "improve_sleep_quality": is_sleep_disturbed(b.promis_sleep_disturbance),
        "address_hearing_or_vision_loss": False,
        "optimize_metabolic_health": is_metabolic_not_optimal(h),
        "optimize_vascular_health": is_vascular_not_optimal(h, cardiology),
        "improve_fitness": (
            (p.vo2_max_percentile is not None and p.vo2_max_percentile < 75)
            or (performance is not None and performance.delta_vs_age_years > 0)
        ),
        "improve_muscle_mass": (
            h.appendicular_muscle_percentile is not None and h.appendicular_muscle_percentile < 50
        ),
        "reduce_inflammation": crp is not None and crp >= 1.0,
        "minimize_toxins": bool(toxins and toxins.exposures),
    }

    sources = {
        "promis_sleep_disturbance": b.promis_sleep_disturbance,
        "systolic_bp": h.systolic_bp,
        "diastolic_bp": h.diastolic_bp,
        "vo2_max_percentile": p.vo2_max_percentile,
        "appendicular_muscle_percentile": h.appendicular_muscle_percentile,
        "homa_ir": h.homa_ir,
        "fasting_glucose": h.fasting_glucose_mg_dl,
        "hemoglobin_a1c": h.hemoglobin_a1c,
        "triglycerides": h.triglycerides_mg_dl,
        "visceral_fat_percentile": h.visceral_fat_percentile,
        "hs_crp": crp,
        "cardiology_risk_category": cardiology.risk_category if cardiology else None,
    }

    return ProtectBrainResult(
        cognitive_percentile=capped,
        cognitive_percentile_prior=prior_capped,
        cognitive_classification=classification,
        cognitive_trend=cognitive_trend(capped, prior_capped),
        significant_decline=significant_decline,
        confirm_evaluate=brain.confirm_evaluate,
        confirm_reason=brain.confirm_reason,
        apoe4_status=apoe4,
        family_history_dementia=family,
        dementia_onset_age=b.dementia_onset_age,
        risk_category=brain_risk_category(classification, apoe4, family, significant_decline),
        triggers=triggers,
        sources=sources,
    )
