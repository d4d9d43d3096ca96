"""Cardiology risk engine.

Two versioned strategies behind one entry point, selected by
``CARDIOLOGY_MODEL_VERSION``:

- ``v3_2``: two-stage heart health score. Plaque (18/12/6) plus cardiac
  physiology (0-12) gives a 0-30 baseline. The baseline category is the most
  severe of the score band, the plaque-implied minimum and the ejection
  fraction-implied minimum. An optional modifiable score (0-70) completes a
  0-100 total.
- ``v1``: rule ladder on qualitative findings.

Both emit the legacy LOW / MILD / MODERATE / SEVERE category; a clinical
ASCVD history always forces SEVERE.
"""
import logging
from typing import Callable, Dict, Optional

from config import settings
from core.errors import InvalidInput
from models.enums import BaselineCategory, Qualitative, Severity
from models.inputs import CardiologyInputs, HealthAgeInputs, PerformanceAgeInputs, PhenoAgeInputs
from models.results import CardiologyResult
from tools.normalizers import clamp, clamp_optional, parse_qualitative, parse_severity

logger = logging.getLogger(__name__)

V1 = "v1"
V3_2 = "v3_2"

_LEGACY = {
    BaselineCategory.LOW: "LOW",
    BaselineCategory.MILD: "MILD",
    BaselineCategory.MODERATE: "MODERATE",
    BaselineCategory.HIGH: "SEVERE",    # legacy buckets have no HIGH
}


# ============================================================================
# PHYSIOLOGY SUB-SCORES (missing input scores as normal-equivalent)
# ============================================================================

def score_ejection_fraction(ef: Optional[float]) -> int:
    if ef is None:
        return 4
    if ef > 52:
        return 4
    if ef >= 45:
        return 3
    if ef >= 35:
        return 2
    if ef >= 25:
        return 1
    return 0


def score_structure(severity: Optional[str]) -> int:
    sev = parse_severity(severity)
    if sev in (Severity.UNKNOWN, Severity.NONE):
        return 2
    if sev == Severity.MILD:
        return 1
    return 0


def score_duke(duke: Optional[float]) -> int:
    if duke is None:
        return 4
    if duke >= 5:
        return 4
    if duke >= 0:
        return 3
    if duke >= -5:
        return 2
    if duke >= -10:
        return 1
    return 0


def score_ecg(severity: Optional[str]) -> int:
    v = (severity or "").strip().lower()
    if v == "" or "normal" in v:
        return 2
    if "lbbb" in v or "mild" in v:
        return 1
    if "af" in v or "flutter" in v or "moderate" in v:
        return 0
    return 1


# ============================================================================
# CATEGORY RULES
# ============================================================================

def category_from_baseline(baseline: int) -> BaselineCategory:
    if baseline >= 28:
        return BaselineCategory.LOW
    if baseline >= 22:
        return BaselineCategory.MILD
    if baseline >= 17:
        return BaselineCategory.MODERATE
    return BaselineCategory.HIGH


def min_category_from_ef(ef: Optional[float]) -> BaselineCategory:
    if ef is None or ef >= 52:
        return BaselineCategory.LOW
    if ef >= 45:
        return BaselineCategory.MILD
    if ef >= 35:
        return BaselineCategory.MODERATE
    return BaselineCategory.HIGH


def plaque_evidence(x: CardiologyInputs):
    """Return (any_plaque, moderate_plus) over the union of available signals."""
    carotid = parse_severity(x.carotid_plaque_severity)
    coronary = parse_severity(x.coronary_plaque_severity)
    cta = parse_qualitative(x.cta_overall_result)
    cac_score = clamp_optional(x.cac_score, 0, 100000)
    cac_pct = clamp_optional(x.cac_percentile, 0, 100)
    stenosis = clamp_optional(x.cta_max_stenosis_percent, 0, 100)

    any_plaque = (
        carotid >= Severity.MILD
        or coronary >= Severity.MILD
        or (cac_score is not None and cac_score > 0)
        or (cac_pct is not None and cac_pct > 0)
        or (stenosis is not None and stenosis >= 1)
        or cta >= Qualitative.LOW
    )
    moderate_plus = (
        carotid >= Severity.MODERATE
        or coronary >= Severity.MODERATE
        or (cac_pct is not None and cac_pct > 25)
        or (stenosis is not None and stenosis >= 25)
        or cta >= Qualitative.MODERATE
    )
    return any_plaque, moderate_plus


def _normalize_modifiable(value: Optional[float]) -> Optional[int]:
    value = clamp_optional(value, 0, 70)
    return int(round(value)) if value is not None else None


def _explanation(
    category: BaselineCategory,
    baseline: int,
    plaque: int,
    physiology: int,
    vascular_status: str,
    physiology_status: str,
    any_plaque: bool,
    moderate_plus: bool,
    missing_count: int,
    clinical: bool,
) -> str:
    text = (
        f"{category.label} baseline risk based on vascular findings and cardiac physiology. "
        f"Baseline score {baseline}/30 (Plaque {plaque}/18, Physiology {physiology}/12). "
        f"Vascular status: {vascular_status}. Cardiac physiology status: {physiology_status}."
    )
    if clinical:
        text += (" Clinical ASCVD history was indicated, which elevates overall concern"
                 " regardless of imaging score.")
    if missing_count >= 3:
        text += (" Note: detailed cardiac physiology inputs (EF/structure/Duke/ECG) were not fully"
                 " provided, so physiology scoring may be incomplete.")
    if not any_plaque:
        text += " No imaging evidence of plaque was detected in the provided inputs."
    elif moderate_plus:
        text += (" Moderate-or-greater plaque criteria were met (e.g., moderate plaque, CAC"
                 " percentile >25, or CTA stenosis ≥25%).")
    return text


# ============================================================================
# STRATEGY: v3_2
# ============================================================================

def calculate_v3_2(x: CardiologyInputs, modifiable_override: Optional[float] = None) -> CardiologyResult:
    any_plaque, moderate_plus = plaque_evidence(x)
    plaque = 18 if not any_plaque else (6 if moderate_plus else 12)

    subscores = {
        "ejection_fraction": score_ejection_fraction(x.ejection_fraction_percent),
        "structure": score_structure(x.heart_structure_severity),
        "duke_treadmill": score_duke(x.duke_treadmill_score),
        "ecg": score_ecg(x.ecg_severity),
    }
    missing = [
        x.ejection_fraction_percent is None,
        not (x.heart_structure_severity or "").strip(),
        x.duke_treadmill_score is None,
        not (x.ecg_severity or "").strip(),
    ]
    physiology = sum(subscores.values())
    baseline = plaque + physiology

    score_cat = category_from_baseline(baseline)
    plaque_min = (
        BaselineCategory.MODERATE if moderate_plus
        else BaselineCategory.MILD if any_plaque
        else BaselineCategory.LOW
    )
    ef_min = min_category_from_ef(x.ejection_fraction_percent)
    category = max(score_cat, plaque_min, ef_min)

    if not any_plaque:
        vascular_status = "No plaque detected"
    elif moderate_plus:
        vascular_status = "Moderate or greater plaque burden"
    else:
        vascular_status = "Early/subclinical plaque"

    if all(missing):
        physiology_status = "Unknown (insufficient physiology inputs)"
    elif physiology >= 10:
        physiology_status = "Normal"
    elif physiology >= 7:
        physiology_status = "Mild abnormality"
    elif physiology >= 4:
        physiology_status = "Moderate abnormality"
    else:
        physiology_status = "High concern physiology"

    supplied = x.modifiable_heart_health_score
    modifiable = _normalize_modifiable(supplied if supplied is not None else modifiable_override)
    total = clamp(baseline + (modifiable or 0), 0, 100)

    clinical = x.has_clinical_ascvd_history is True
    return CardiologyResult(
        model_version=V3_2,
        risk_category="SEVERE" if clinical else _LEGACY[category],
        triggered_by_clinical_history=clinical,
        triggered_by_severe_finding=clinical or category == BaselineCategory.HIGH,
        triggered_by_moderate_finding=category == BaselineCategory.MODERATE,
        triggered_by_mild_finding=category == BaselineCategory.MILD,
        risk_explanation=_explanation(
            category, baseline, plaque, physiology, vascular_status, physiology_status,
            any_plaque, moderate_plus, sum(missing), clinical,
        ),
        baseline_heart_health_score=baseline,
        plaque_score=plaque,
        cardiac_physiology_score=physiology,
        physiology_subscores=subscores,
        baseline_risk_category=category,
        score_category=score_cat,
        plaque_min_category=plaque_min,
        ef_min_category=ef_min,
        vascular_health_status=vascular_status,
        cardiac_physiology_status=physiology_status,
        modifiable_heart_health_score=modifiable,
        heart_health_score=total,
        heart_health_score_is_partial=modifiable is None,
    )


# ============================================================================
# STRATEGY: v1
# ============================================================================

def calculate_v1(x: CardiologyInputs, modifiable_override: Optional[float] = None) -> CardiologyResult:
    """Rule ladder: ASCVD, then any severe, moderate, mild finding."""
    severities = [
        parse_severity(x.carotid_plaque_severity),
        parse_severity(x.coronary_plaque_severity),
        parse_severity(x.heart_structure_severity),
    ]
    qualitative = [
        parse_qualitative(x.cta_overall_result),
        parse_qualitative(x.treadmill_overall_result),
        parse_qualitative(x.echo_overall_result),
    ]

    clinical = x.has_clinical_ascvd_history is True
    severe = Severity.SEVERE in severities or any(q >= Qualitative.HIGH for q in qualitative)
    moderate = Severity.MODERATE in severities or Qualitative.MODERATE in qualitative
    mild = Severity.MILD in severities or Qualitative.LOW in qualitative

    if clinical:
        category, reason = "SEVERE", "Clinical ASCVD history was indicated."
    elif severe:
        category, reason = "SEVERE", "At least one severe or high-risk finding was reported."
    elif moderate:
        category, reason = "MODERATE", "At least one moderate finding was reported."
    elif mild:
        category, reason = "MILD", "Only mild or low-risk findings were reported."
    else:
        category, reason = "LOW", "No abnormal cardiology findings were reported."

    return CardiologyResult(
        model_version=V1,
        risk_category=category,
        triggered_by_clinical_history=clinical,
        triggered_by_severe_finding=severe,
        triggered_by_moderate_finding=moderate,
        triggered_by_mild_finding=mild,
        risk_explanation=f"{category.capitalize()} cardiology risk. {reason}",
        modifiable_heart_health_score=_normalize_modifiable(
            x.modifiable_heart_health_score
            if x.modifiable_heart_health_score is not None else modifiable_override
        ),
    )


STRATEGIES: Dict[str, Callable[..., CardiologyResult]] = {
    V1: calculate_v1,
    V3_2: calculate_v3_2,
}


def calculate_cardiology(
    inputs: Optional[CardiologyInputs],
    version: Optional[str] = None,
    modifiable_override: Optional[float] = None,
) -> CardiologyResult:
    """
    Score cardiology inputs with the configured model version.

    Args:
        inputs: Cardiology inputs; None is treated as an empty record.
        version: "v1" or "v3_2"; defaults to settings.CARDIOLOGY_MODEL_VERSION.
        modifiable_override: Calculated modifiable score used when the
            inputs do not carry one.
    """
    version = version or settings.CARDIOLOGY_MODEL_VERSION
    strategy = STRATEGIES.get(version)
    if strategy is None:
        raise InvalidInput("cardiology_model_version", f"Unknown cardiology model version: {version!r}")
    return strategy(inputs or CardiologyInputs(), modifiable_override)


# ============================================================================
# MODIFIABLE HEART HEALTH SCORE (7 parts x 0-10)
# ============================================================================

def score_blood_pressure(systolic: Optional[float], diastolic: Optional[float]) -> Optional[int]:
    if systolic is None or diastolic is None:
        return None
    if systolic < 120 and diastolic < 80:
        return 10
    if 120 <= systolic <= 129 and diastolic < 80:
        return 7
    if 130 <= systolic <= 139 or 80 <= diastolic <= 89:
        return 4
    if systolic >= 140 or diastolic >= 90:
        return 0
    return None


_PLAQUE_TIERS = {"none": "low", "mild": "intermediate", "moderate": "high", "severe": "high"}
_NON_HDL_LIMITS = {
    "low": (100, 129, 159),
    "intermediate": (90, 119, 149),
    "high": (60, 89, 119),
}


def score_non_hdl(non_hdl: Optional[float], coronary_plaque: Optional[str]) -> Optional[int]:
    if non_hdl is None or not coronary_plaque:
        return None
    tier = _PLAQUE_TIERS.get(coronary_plaque.strip().lower())
    if tier is None:
        return None
    optimal, good, fair = _NON_HDL_LIMITS[tier]
    if non_hdl < optimal:
        return 10
    if non_hdl <= good:
        return 7
    if non_hdl <= fair:
        return 4
    return 0


def score_homa_ir(homa: Optional[float]) -> Optional[int]:
    if homa is None:
        return None
    if homa < 1.0:
        return 10
    if homa <= 2.0:
        return 7
    if homa <= 3.0:
        return 4
    return 0


def score_fitness(percentile: Optional[float]) -> Optional[int]:
    if percentile is None:
        return None
    if percentile > 97.5:
        return 10
    if percentile >= 75:
        return 7
    if percentile >= 50:
        return 4
    return 0


def score_visceral_fat(percentile: Optional[float]) -> Optional[int]:
    if percentile is None:
        return None
    if percentile < 25:
        return 10
    if percentile <= 49:
        return 7
    if percentile <= 74:
        return 4
    return 0


def lean_to_fat_ratio(h: HealthAgeInputs) -> Optional[float]:
    """Per-height masses when available, else total masses."""
    if (h.total_lean_mass_per_height is not None and h.total_fat_mass_per_height
            and h.total_fat_mass_per_height != 0):
        return h.total_lean_mass_per_height / h.total_fat_mass_per_height
    if h.total_lean_mass is not None and h.total_fat_mass:
        return h.total_lean_mass / h.total_fat_mass
    return None


def score_lean_to_fat(sex: Optional[str], ratio: Optional[float]) -> Optional[int]:
    if not sex or not sex.strip() or ratio is None:
        return None
    bands = (3.2, 2.2, 1.4) if sex.strip().lower() == "male" else (2.6, 1.8, 1.2)
    for limit, points in zip(bands, (10, 7, 4)):
        if ratio >= limit:
            return points
    return 0


def score_hs_crp(crp_mg_l: Optional[float]) -> Optional[int]:
    if crp_mg_l is None:
        return None
    if crp_mg_l < 1.0:
        return 10
    if crp_mg_l < 2.0:
        return 7
    if crp_mg_l < 3.0:
        return 4
    return 0


def resolve_homa_ir(h: HealthAgeInputs) -> Optional[float]:
    if h.homa_ir is not None:
        return h.homa_ir
    if h.fasting_glucose_mg_dl and h.fasting_insulin_uiu_ml is not None:
        return h.fasting_glucose_mg_dl * h.fasting_insulin_uiu_ml / 405.0
    return None


def calculate_modifiable_score(
    health: HealthAgeInputs,
    performance: PerformanceAgeInputs,
    pheno: PhenoAgeInputs,
    cardiology: Optional[CardiologyInputs],
) -> Optional[int]:
    """Sum of seven 0-10 parts, or None when any part cannot be scored."""
    coronary = cardiology.coronary_plaque_severity if cardiology else None
    parts = {
        "blood_pressure": score_blood_pressure(health.systolic_bp, health.diastolic_bp),
        "non_hdl": score_non_hdl(health.non_hdl_mg_dl, coronary),
        "homa_ir": score_homa_ir(resolve_homa_ir(health)),
        "fitness": score_fitness(performance.vo2_max_percentile),
        "visceral_fat": score_visceral_fat(health.visceral_fat_percentile),
        "lean_to_fat": score_lean_to_fat(health.sex, lean_to_fat_ratio(health)),
        "hs_crp": score_hs_crp(pheno.crp_mg_l),
    }
    missing = [name for name, points in parts.items() if points is None]
    if missing:
        logger.info(f"Modifiable heart score unavailable; missing parts: {', '.join(missing)}")
        return None
    return sum(parts.values())
