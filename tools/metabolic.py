"""Metabolic health classification and category enforcement.

Derived metrics:
- TG/HDL = triglycerides / HDL
- HOMA-IR = fasting glucose * fasting insulin / 405
- FIB-4 = age * AST / (platelets * sqrt(ALT))

Each metric is graded Optimal / Mild / Moderate / Severe (Unknown when
absent). Counts and two isolation flags feed ``compute_category_from_counts``,
the single source of truth for the metabolic category. Any category proposed
elsewhere (e.g. by a language model) goes through
``enforce_metabolic_category`` before it reaches the report.
"""
import math
import logging
from dataclasses import replace
from typing import Dict, List, Optional

from models.enums import MetricGrade
from models.inputs import HealthAgeInputs
from models.results import (
    BiggestContributor,
    Intervention,
    MetabolicAssessment,
    MetabolicCounts,
    MetabolicFlags,
)
from tools.health_age import homa_ir as _homa_ir, tg_hdl_ratio as _tg_hdl_ratio

logger = logging.getLogger(__name__)

OPTIMAL_METABOLISM = "Optimal Metabolism"
MILD_DYSFUNCTION = "Mild Metabolic Dysfunction"
DYSFUNCTION = "Metabolic Dysfunction"

MAX_CONTRIBUTORS = 3
MAX_INTERVENTIONS = 3

INTERVENTION_BUCKETS = (
    "Fitness",
    "LeanMassRelativeToFat",
    "NutritionOptimization",
    "CGM",
    "SleepOptimization",
    "StressManagement",
    "MedicalTherapy",
)


# ============================================================================
# DERIVED METRICS
# ============================================================================

def fib4(age: Optional[float], ast: Optional[float], alt: Optional[float],
         platelets: Optional[float]) -> Optional[float]:
    if None in (age, ast, alt, platelets) or platelets == 0 or alt <= 0:
        return None
    return age * ast / (platelets * math.sqrt(alt))


def derive_metrics(h: HealthAgeInputs) -> Dict[str, Optional[float]]:
    """Compute from raw labs; fall back to a directly supplied value."""
    tg_hdl = _tg_hdl_ratio(h.triglycerides_mg_dl, h.hdl_mg_dl)
    homa = _homa_ir(h.fasting_glucose_mg_dl, h.fasting_insulin_uiu_ml)
    fib = fib4(h.chronological_age_years, h.ast, h.alt, h.platelets)
    return {
        "tg_hdl_ratio": tg_hdl if tg_hdl is not None else h.triglycerides_hdl_ratio,
        "homa_ir": homa if homa is not None else h.homa_ir,
        "fib4": fib if fib is not None else h.fib4_score,
    }


def lean_to_fat_mass_ratio(h: HealthAgeInputs) -> Optional[float]:
    if h.total_lean_mass_per_height is not None and h.total_fat_mass_per_height:
        return h.total_lean_mass_per_height / h.total_fat_mass_per_height
    if h.total_lean_mass is not None and h.total_fat_mass:
        return h.total_lean_mass / h.total_fat_mass
    return None


# ============================================================================
# GRADING (band gaps resolve to the less severe tier)
# ============================================================================

def _ladder(value: Optional[float], cuts, inclusive: bool = False) -> MetricGrade:
    """Grade against ascending cut points: below cuts[0] Optimal, ... else Severe."""
    if value is None:
        return MetricGrade.UNKNOWN
    grades = (MetricGrade.OPTIMAL, MetricGrade.MILD, MetricGrade.MODERATE)
    for cut, grade in zip(cuts, grades):
        if value < cut or (inclusive and grade != MetricGrade.OPTIMAL and value == cut):
            return grade
    return MetricGrade.SEVERE


def grade_a1c(a1c: Optional[float]) -> MetricGrade:
    return _ladder(a1c, (5.3, 5.7, 6.5))


def grade_fasting_insulin(insulin: Optional[float]) -> MetricGrade:
    return _ladder(insulin, (7, 11, 20))


def grade_tg_hdl(ratio: Optional[float]) -> MetricGrade:
    # Optimal < 1; Mild 1-2; Moderate 2-3; Severe > 3
    return _ladder(ratio, (1, 2, 3), inclusive=True)


def grade_homa_ir(homa: Optional[float]) -> MetricGrade:
    return _ladder(homa, (1, 2, 3), inclusive=True)


def grade_visceral_fat(percentile: Optional[float]) -> MetricGrade:
    return _ladder(percentile, (25, 50, 75))


def grade_fib4(value: Optional[float]) -> MetricGrade:
    return _ladder(value, (1.3, 2.0, 2.67))


def grade_lean_to_fat(ratio: Optional[float], sex: Optional[str]) -> MetricGrade:
    if ratio is None or not sex or not sex.strip():
        return MetricGrade.UNKNOWN
    optimal, mild, moderate = (3.2, 2.2, 1.4) if sex.strip().lower() == "male" else (2.6, 1.8, 1.2)
    if ratio >= optimal:
        return MetricGrade.OPTIMAL
    if ratio >= mild:
        return MetricGrade.MILD
    if ratio >= moderate:
        return MetricGrade.MODERATE
    return MetricGrade.SEVERE


def grade_metrics(h: HealthAgeInputs, derived: Dict[str, Optional[float]]) -> Dict[str, MetricGrade]:
    return {
        "a1c": grade_a1c(h.hemoglobin_a1c),
        "fasting_insulin": grade_fasting_insulin(h.fasting_insulin_uiu_ml),
        "tg_hdl_ratio": grade_tg_hdl(derived["tg_hdl_ratio"]),
        "homa_ir": grade_homa_ir(derived["homa_ir"]),
        "visceral_fat_percentile": grade_visceral_fat(h.visceral_fat_percentile),
        "lean_to_fat_mass_ratio": grade_lean_to_fat(lean_to_fat_mass_ratio(h), h.sex),
        "fib4": grade_fib4(derived["fib4"]),
    }


# ============================================================================
# COUNTS, FLAGS, CATEGORY
# ============================================================================

_NON_OPTIMAL = (MetricGrade.MILD, MetricGrade.MODERATE, MetricGrade.SEVERE)


def count_grades(grades: Dict[str, MetricGrade]) -> MetabolicCounts:
    values = list(grades.values())
    mild = values.count(MetricGrade.MILD)
    moderate = values.count(MetricGrade.MODERATE)
    severe = values.count(MetricGrade.SEVERE)
    return MetabolicCounts(
        mild_count=mild,
        moderate_count=moderate,
        severe_count=severe,
        non_optimal_count=mild + moderate + severe,
    )


def metabolic_flags(grades: Dict[str, MetricGrade]) -> MetabolicFlags:
    def bad(key: str) -> bool:
        return grades.get(key) in _NON_OPTIMAL

    others_clear = not any(bad(k) for k in grades if k != "a1c")
    insulin_marker = bad("fasting_insulin") or bad("homa_ir")
    insulin_isolated = insulin_marker and not any(
        bad(k) for k in ("a1c", "tg_hdl_ratio", "visceral_fat_percentile", "lean_to_fat_mass_ratio")
    )
    return MetabolicFlags(
        isolated_a1c_elevation=bad("a1c") and others_clear,
        isolated_insulin_resistance_marker=insulin_isolated,
    )


def compute_category_from_counts(counts: MetabolicCounts, flags: MetabolicFlags) -> str:
    """The authoritative metabolic category for a set of counts and flags."""
    if counts.non_optimal_count == 0 or flags.isolated_a1c_elevation:
        return OPTIMAL_METABOLISM
    if counts.non_optimal_count < 3 and counts.moderate_count == 0 and counts.severe_count == 0:
        return MILD_DYSFUNCTION
    return DYSFUNCTION


def enforce_metabolic_category(assessment: MetabolicAssessment) -> MetabolicAssessment:
    """
    Recompute the category from counts/flags and override a disagreeing value.

    The correction is recorded as a note; a matching category is returned
    unchanged.
    """
    computed = compute_category_from_counts(assessment.counts, assessment.flags)
    proposed = (assessment.metabolic_health_category or "").strip()
    if proposed.lower() == computed.lower():
        return assessment

    logger.warning(f"Metabolic category mismatch: proposed={proposed!r} computed={computed!r}; overriding")
    note = f"[Server override] metabolicHealthCategory corrected to '{computed}' from counts/flags rules."
    return replace(
        assessment,
        metabolic_health_category=computed,
        notes=list(assessment.notes) + [note],
    )


# ============================================================================
# CONTRIBUTORS & INTERVENTIONS
# ============================================================================

METRIC_LABELS = {
    "a1c": ("Hemoglobin A1c", "Glycemic control"),
    "fasting_insulin": ("Fasting Insulin", "Hyperinsulinemia"),
    "tg_hdl_ratio": ("TG/HDL Ratio", "Atherogenic dyslipidemia"),
    "homa_ir": ("HOMA-IR", "Insulin resistance"),
    "visceral_fat_percentile": ("Visceral Fat Percentile", "Visceral adiposity"),
    "lean_to_fat_mass_ratio": ("Lean-to-Fat Mass Ratio", "Low lean mass relative to fat"),
    "fib4": ("FIB-4", "Hepatic fibrosis risk"),
}

_SEVERITY_RANK = {MetricGrade.SEVERE: 3, MetricGrade.MODERATE: 2, MetricGrade.MILD: 1}

_METRIC_INTERVENTIONS = {
    "a1c": ("CGM", "Consider a short continuous glucose monitoring period to see how daily patterns affect glucose."),
    "fasting_insulin": ("Fitness", "Regular aerobic and resistance training improves insulin sensitivity."),
    "homa_ir": ("Fitness", "Regular aerobic and resistance training improves insulin sensitivity."),
    "tg_hdl_ratio": ("NutritionOptimization", "Review dietary patterns with a clinician in light of the lipid ratio."),
    "visceral_fat_percentile": ("Fitness", "Consistent activity volume supports reduction of visceral fat over time."),
    "lean_to_fat_mass_ratio": ("LeanMassRelativeToFat", "Progressive strength training helps build lean mass relative to fat."),
    "fib4": ("MedicalTherapy", "Review the liver fibrosis index with a clinician to decide on further evaluation."),
}


def biggest_contributors(grades: Dict[str, MetricGrade]) -> List[BiggestContributor]:
    """Non-optimal metrics ranked Severe > Moderate > Mild, at most three."""
    ranked = sorted(
        (k for k, g in grades.items() if g in _NON_OPTIMAL),
        key=lambda k: -_SEVERITY_RANK[grades[k]],
    )
    return [
        BiggestContributor(
            metric_name=METRIC_LABELS[k][0],
            severity=grades[k],
            mechanism_label=METRIC_LABELS[k][1],
        )
        for k in ranked[:MAX_CONTRIBUTORS]
    ]


def default_interventions(grades: Dict[str, MetricGrade]) -> List[Intervention]:
    ranked = sorted(
        (k for k, g in grades.items() if g in _NON_OPTIMAL),
        key=lambda k: -_SEVERITY_RANK[grades[k]],
    )
    interventions: List[Intervention] = []
    seen = set()
    for key in ranked:
        bucket, text = _METRIC_INTERVENTIONS[key]
        if bucket in seen:
            continue
        seen.add(bucket)
        interventions.append(Intervention(bucket=bucket, recommendation_text=text, priority=len(interventions) + 1))
        if len(interventions) == MAX_INTERVENTIONS:
            break
    return interventions


def build_metabolic_assessment(h: HealthAgeInputs) -> MetabolicAssessment:
    """Deterministic metabolic assessment from HealthAge labs and body composition."""
    derived = derive_metrics(h)
    grades = grade_metrics(h, derived)
    counts = count_grades(grades)
    flags = metabolic_flags(grades)

    notes = []
    unknown = [METRIC_LABELS[k][0] for k, g in grades.items() if g == MetricGrade.UNKNOWN]
    if unknown:
        notes.append(f"Missing or incomplete data for: {', '.join(unknown)}.")

    return MetabolicAssessment(
        metabolic_health_category=compute_category_from_counts(counts, flags),
        derived_metrics=derived,
        grades=grades,
        counts=counts,
        flags=flags,
        biggest_contributors=biggest_contributors(grades),
        top_interventions=default_interventions(grades),
        notes=notes,
    )
