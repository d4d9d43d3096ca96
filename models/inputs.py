"""Input records for every scoring component.

Each record is a flat, immutable bag of optional fields grouped by clinical
concept. Records are built from request JSON with ``from_dict``, which
accepts snake_case or camelCase keys (``systolicBP``, ``systolic_bp``,
``FastingInsulin_uIU_mL``) and ignores anything it does not recognise.
"""
from dataclasses import dataclass, field, fields
from typing import Any, ClassVar, Dict, Optional


def _key(name: str) -> str:
    return name.replace("_", "").replace("-", "").lower()


def _coerce_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace("%", "").strip())
    except (ValueError, TypeError):
        return None


def _coerce_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in ("true", "yes", "y", "1"):
        return True
    if text in ("false", "no", "n", "0"):
        return False
    return None


def _coerce_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


_COERCERS = {
    Optional[float]: _coerce_float,
    Optional[bool]: _coerce_bool,
    Optional[str]: _coerce_str,
}


class _FromDictMixin:
    """Shared request-JSON binding for flat input records."""

    _aliases: ClassVar[Dict[str, str]] = {}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]):
        if data is None:
            return cls()
        by_key = {_key(f.name): f for f in fields(cls)}
        for alias, target in cls._aliases.items():
            by_key[alias] = next(f for f in fields(cls) if f.name == target)

        kwargs = {}
        for raw_key, value in data.items():
            f = by_key.get(_key(raw_key))
            if f is None or f.name in kwargs and value is None:
                continue
            coerce = _COERCERS.get(f.type)
            kwargs[f.name] = coerce(value) if coerce else value
        return cls(**kwargs)


# ============================================================================
# PHENOAGE (Levine 2018 biomarkers)
# ============================================================================

@dataclass(frozen=True)
class PhenoAgeInputs(_FromDictMixin):
    """Nine mandatory blood biomarkers plus chronological age."""
    chronological_age_years: Optional[float] = None
    albumin_g_dl: Optional[float] = None
    creatinine_mg_dl: Optional[float] = None
    glucose_mg_dl: Optional[float] = None
    crp_mg_l: Optional[float] = None
    lymphocyte_percent: Optional[float] = None
    mcv_fl: Optional[float] = None
    rdw_percent: Optional[float] = None
    alkaline_phosphatase_u_l: Optional[float] = None
    wbc_10e3_per_ul: Optional[float] = None


# ============================================================================
# HEALTH AGE (body composition, BP, lipids, metabolic, liver)
# ============================================================================

@dataclass(frozen=True)
class HealthAgeInputs(_FromDictMixin):
    chronological_age_years: Optional[float] = None
    phenotypic_age_years: Optional[float] = None
    sex: Optional[str] = None

    # Percentiles (0-100)
    body_fat_percentile: Optional[float] = None
    visceral_fat_percentile: Optional[float] = None
    appendicular_muscle_percentile: Optional[float] = None

    systolic_bp: Optional[float] = None
    diastolic_bp: Optional[float] = None

    non_hdl_mg_dl: Optional[float] = None
    non_hdl_risk_group: Optional[str] = None    # "Low" | "Moderate" | "High" (or 1/2/3)

    fasting_insulin_uiu_ml: Optional[float] = None
    fasting_glucose_mg_dl: Optional[float] = None
    triglycerides_mg_dl: Optional[float] = None
    hdl_mg_dl: Optional[float] = None
    fib4_score: Optional[float] = None

    # Report-only body composition and labs
    body_fat_percentage: Optional[float] = None
    total_fat_mass: Optional[float] = None
    total_fat_mass_per_height: Optional[float] = None
    visceral_fat_mass: Optional[float] = None
    total_lean_mass: Optional[float] = None
    total_lean_mass_per_height: Optional[float] = None
    appendicular_lean_mass: Optional[float] = None
    total_cholesterol: Optional[float] = None
    triglycerides_hdl_ratio: Optional[float] = None
    ast: Optional[float] = None
    alt: Optional[float] = None
    platelets: Optional[float] = None
    homa_ir: Optional[float] = None
    hemoglobin_a1c: Optional[float] = None

    _aliases: ClassVar[Dict[str, str]] = {"hemaglobina1c": "hemoglobin_a1c"}


# ============================================================================
# PERFORMANCE AGE (fitness, strength, mobility)
# ============================================================================

@dataclass(frozen=True)
class PerformanceAgeInputs(_FromDictMixin):
    chronological_age_years: Optional[float] = None

    vo2_max_percentile: Optional[float] = None
    quadriceps_strength_percentile: Optional[float] = None
    grip_strength_percentile: Optional[float] = None
    gait_speed_comfortable_percentile: Optional[float] = None
    gait_speed_max_percentile: Optional[float] = None
    power_percentile: Optional[float] = None
    balance_percentile: Optional[float] = None
    chair_rise_percentile: Optional[float] = None

    # Raw and clinician-entered measures (not part of the percentile model)
    vo2_max: Optional[float] = None                     # ml/kg/min
    heart_rate_recovery: Optional[float] = None         # bpm drop at 1 min
    floor_to_stand_test: Optional[str] = None           # "7/10"
    trunk_endurance: Optional[str] = None
    posture_assessment: Optional[str] = None            # tragus-to-wall, "12 cm"
    mobility_rom: Optional[str] = None
    hip_strength: Optional[str] = None
    calf_strength: Optional[str] = None
    rotator_cuff_integrity: Optional[str] = None
    isometric_thigh_pull: Optional[float] = None        # peak force
    isometric_thigh_pull_percentile: Optional[float] = None
    chair_rise_five_times: Optional[float] = None       # seconds for 5 reps
    chair_rise_thirty_seconds: Optional[float] = None   # reps in 30 s
    grip_asymmetry_percent: Optional[float] = None
    quadriceps_asymmetry_percent: Optional[float] = None

    _aliases: ClassVar[Dict[str, str]] = {"imtppercentile": "isometric_thigh_pull_percentile"}


# ============================================================================
# BRAIN HEALTH (cognition, PROMIS, mindset questionnaires)
# ============================================================================

@dataclass(frozen=True)
class BrainHealthInputs(_FromDictMixin):
    cognitive_function: Optional[float] = None          # BrainCheck percentile
    promis_depression_8a: Optional[float] = None        # T-score
    promis_anxiety_8a: Optional[float] = None           # T-score
    brief_resilience_scale: Optional[float] = None      # BRS total (6-30)
    life_orientation_test_r: Optional[float] = None     # LOT-R (0-24)
    meaning_in_life_questionnaire: Optional[float] = None  # MLQ total (10-70)
    flourishing_scale: Optional[float] = None           # 8-56
    promis_sleep_disturbance: Optional[float] = None    # T-score
    perceived_stress_score: Optional[float] = None      # PSS (0-40)

    cognitive_function_prior: Optional[float] = None
    apoe4_status: Optional[str] = None
    family_history_dementia: Optional[str] = None
    dementia_onset_age: Optional[float] = None
    assessment_date: Optional[str] = None

    promis_depression_prior: Optional[float] = None
    promis_anxiety_prior: Optional[float] = None
    perceived_stress_score_prior: Optional[float] = None
    flourishing_scale_prior: Optional[float] = None
    brief_resilience_scale_prior: Optional[float] = None
    life_orientation_test_prior: Optional[float] = None
    meaning_in_life_presence: Optional[float] = None
    meaning_in_life_search: Optional[float] = None
    meaning_in_life_presence_prior: Optional[float] = None
    meaning_in_life_search_prior: Optional[float] = None


# ============================================================================
# CARDIOLOGY (imaging, physiology, history)
# ============================================================================

@dataclass(frozen=True)
class CardiologyInputs(_FromDictMixin):
    carotid_plaque_severity: Optional[str] = None       # none | mild | moderate | severe
    coronary_plaque_severity: Optional[str] = None
    cac_score: Optional[float] = None
    cac_percentile: Optional[float] = None
    cta_max_stenosis_percent: Optional[float] = None
    cta_overall_result: Optional[str] = None            # low | moderate | high | severe
    treadmill_overall_result: Optional[str] = None
    echo_overall_result: Optional[str] = None
    echo_details: Optional[str] = None

    has_clinical_ascvd_history: Optional[bool] = None
    clinical_ascvd_history_details: Optional[str] = None
    has_family_history_premature_ascvd: Optional[bool] = None
    family_history_premature_ascvd_details: Optional[str] = None
    lipoprotein_a: Optional[float] = None
    apo_b: Optional[float] = None

    specific_cardiology_instructions: Optional[str] = None
    ecg_details: Optional[str] = None
    abdominal_aorta_screening: Optional[str] = None
    ett_interpretation: Optional[str] = None
    ett_fac: Optional[str] = None
    cta_plaque_quantification: Optional[str] = None
    cta_soft_plaque: Optional[str] = None
    cta_calcified_plaque: Optional[str] = None
    hard_soft_plaque_ratio: Optional[str] = None

    # Physiology
    ejection_fraction_percent: Optional[float] = None
    heart_structure_severity: Optional[str] = None
    duke_treadmill_score: Optional[float] = None
    ecg_severity: Optional[str] = None                  # normal | mild | lbbb | af/flutter

    modifiable_heart_health_score: Optional[float] = None  # 0-70

    _aliases: ClassVar[Dict[str, str]] = {
        "ctaplaququantification": "cta_plaque_quantification",
        "hasclinicalascvdhistory": "has_clinical_ascvd_history",
    }


# ============================================================================
# TOXINS & LIFESTYLE
# ============================================================================

@dataclass(frozen=True)
class ToxinsInputs(_FromDictMixin):
    alcohol_intake: Optional[str] = None                # free text, "4-6 drinks/week"
    alcohol_drinks_per_week: Optional[float] = None
    smoking: Optional[str] = None
    chewing_tobacco: Optional[str] = None
    vaping: Optional[str] = None
    other_nicotine_use: Optional[str] = None
    cannabis_use: Optional[str] = None
    screen_time: Optional[str] = None                   # hours/day or possibly/yes
    ultra_processed_food_intake: Optional[str] = None
    medications_or_supplements_impact: Optional[str] = None
    physical_environment_impact: Optional[str] = None
    media_exposure_impact: Optional[str] = None
    stressful_environments_or_relationships_impact: Optional[str] = None
    blood_lead_level: Optional[float] = None            # ug/dL
    blood_mercury: Optional[float] = None               # ug/L


# ============================================================================
# FULL REPORT REQUEST
# ============================================================================

@dataclass(frozen=True)
class ReportRequest:
    """One immutable snapshot handed to every component."""
    pheno_age: PhenoAgeInputs = field(default_factory=PhenoAgeInputs)
    health_age: HealthAgeInputs = field(default_factory=HealthAgeInputs)
    performance_age: PerformanceAgeInputs = field(default_factory=PerformanceAgeInputs)
    brain_health: BrainHealthInputs = field(default_factory=BrainHealthInputs)
    cardiology: Optional[CardiologyInputs] = None
    toxins_lifestyle: ToxinsInputs = field(default_factory=ToxinsInputs)
    clinical_data: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ReportRequest":
        sections = {_key(k): v for k, v in (data or {}).items()}
        cardiology = sections.get("cardiology")
        return cls(
            pheno_age=PhenoAgeInputs.from_dict(sections.get("phenoage")),
            health_age=HealthAgeInputs.from_dict(sections.get("healthage")),
            performance_age=PerformanceAgeInputs.from_dict(sections.get("performanceage")),
            brain_health=BrainHealthInputs.from_dict(sections.get("brainhealth")),
            cardiology=CardiologyInputs.from_dict(cardiology) if cardiology is not None else None,
            toxins_lifestyle=ToxinsInputs.from_dict(sections.get("toxinslifestyle")),
            clinical_data=sections.get("clinicaldata") or {},
        )
