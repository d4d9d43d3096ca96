"""Report JSON assembly.

Builds the canonical report document (schema ``report-json-v3``) from the
request, the computed component results and the narrative sections. Any
renderer downstream (web, PDF) reads only this document.

Layout:
    meta, chronological_age_years, health_scores,
    pillars[avoiddisease | strongandindepedent | mentallysharp]
        .domains[].tests[{test, result, reference, status}]
        .domains[].assessment
"""
import re
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from config.settings import REPORT_SCHEMA_VERSION
from models.enums import MetricGrade
from models.inputs import ReportRequest
from models.results import ReportComponents, ReportNarratives
from tools.metabolic import lean_to_fat_mass_ratio
from tools.physical_performance import FIT_AND_MOBILE, STRONG_AND_STABLE
from tools.toxins import LEAD_UPPER_LIMIT, MERCURY_UPPER_LIMIT

logger = logging.getLogger(__name__)


def _test(test: str, result: Any, reference: Optional[str] = None, status: Optional[str] = None) -> Dict[str, Any]:
    return {"test": test, "result": result, "reference": reference, "status": status}


def _title(key: str) -> str:
    """'tshValue' / 'tsh_value' -> 'Tsh Value'."""
    words = re.sub(r"([a-z0-9])([A-Z])", r"\1 \2", key).replace("_", " ").split()
    return " ".join(w[:1].upper() + w[1:] for w in words)


def _grade_status(grade: Optional[MetricGrade]) -> Optional[str]:
    if grade is None or grade == MetricGrade.UNKNOWN:
        return None
    return grade.value


def _range_status(value: Optional[float], upper: float) -> Optional[str]:
    if value is None:
        return None
    return "Above range" if value > upper else "Within range"


# ============================================================================
# TEST ROWS PER DOMAIN
# ============================================================================

def cardiology_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    c = req.cardiology
    h = req.health_age

    def cv(name: str):
        return getattr(c, name) if c is not None else None

    return [
        _test("CAC Score", cv("cac_score")),
        _test("CAC Percentile", cv("cac_percentile")),
        _test("Carotid Plaque Severity", cv("carotid_plaque_severity")),
        _test("Coronary Plaque Severity", cv("coronary_plaque_severity")),
        _test("CTA Max Stenosis Percent", cv("cta_max_stenosis_percent")),
        _test("CTA Overall Result", cv("cta_overall_result")),
        _test("Treadmill Overall Result", cv("treadmill_overall_result")),
        _test("Echo Overall Result", cv("echo_overall_result")),
        _test("Echo Details", cv("echo_details")),
        _test("Ejection Fraction Percent", cv("ejection_fraction_percent")),
        _test("Heart Structure Severity", cv("heart_structure_severity")),
        _test("Duke Treadmill Score", cv("duke_treadmill_score")),
        _test("ECG Severity", cv("ecg_severity")),
        _test("ECG Details", cv("ecg_details")),
        _test("Abdominal Aorta Screening", cv("abdominal_aorta_screening")),
        _test("ETT Interpretation", cv("ett_interpretation")),
        _test("ETT FAC", cv("ett_fac")),
        _test("CTA Plaque Quantification", cv("cta_plaque_quantification")),
        _test("CTA Soft Plaque", cv("cta_soft_plaque")),
        _test("CTA Calcified Plaque", cv("cta_calcified_plaque")),
        _test("Hard Soft Plaque Ratio", cv("hard_soft_plaque_ratio")),
        _test("Has Clinical ASCVD History", cv("has_clinical_ascvd_history")),
        _test("Clinical ASCVD History Details", cv("clinical_ascvd_history_details")),
        _test("Has Family History Premature ASCVD", cv("has_family_history_premature_ascvd")),
        _test("Family History Premature ASCVD Details", cv("family_history_premature_ascvd_details")),
        _test("Specific Cardiology Instructions", cv("specific_cardiology_instructions")),
        _test("Lipoprotein A", cv("lipoprotein_a")),
        _test("ApoB", cv("apo_b")),
        _test("Modifiable Heart Health Score", cv("modifiable_heart_health_score"), "0-70"),
        _test("Blood Pressure Systolic", h.systolic_bp, "< 130 mmHg"),
        _test("Blood Pressure Diastolic", h.diastolic_bp, "< 80 mmHg"),
        _test("Non HDL", h.non_hdl_mg_dl),
        _test("Non HDL Risk Group", h.non_hdl_risk_group),
        _test("Total Cholesterol", h.total_cholesterol),
        _test("Triglycerides", h.triglycerides_mg_dl),
        _test("HDL", h.hdl_mg_dl),
        _test("hs CRP", req.pheno_age.crp_mg_l, "< 1.0 mg/L"),
    ]


def metabolic_tests(req: ReportRequest, components: ReportComponents) -> List[Dict[str, Any]]:
    h = req.health_age
    m = components.metabolic
    grades = m.grades
    derived = m.derived_metrics
    return [
        _test("Sex", h.sex),
        _test("Body Fat Percentile", h.body_fat_percentile),
        _test("Visceral Fat Percentile", h.visceral_fat_percentile, "< 25th percentile",
              _grade_status(grades.get("visceral_fat_percentile"))),
        _test("Appendicular Muscle Percentile", h.appendicular_muscle_percentile),
        _test("Lean To Fat Mass Ratio", lean_to_fat_mass_ratio(h), None,
              _grade_status(grades.get("lean_to_fat_mass_ratio"))),
        _test("Fasting Insulin", h.fasting_insulin_uiu_ml, "< 7 uIU/mL",
              _grade_status(grades.get("fasting_insulin"))),
        _test("Fasting Glucose", h.fasting_glucose_mg_dl),
        _test("Hemoglobin A1c", h.hemoglobin_a1c, "< 5.3 %", _grade_status(grades.get("a1c"))),
        _test("Triglycerides", h.triglycerides_mg_dl),
        _test("HDL", h.hdl_mg_dl),
        _test("Triglycerides HDL Ratio", derived.get("tg_hdl_ratio"), "< 1.0",
              _grade_status(grades.get("tg_hdl_ratio"))),
        _test("HOMA IR", derived.get("homa_ir"), "< 1.0", _grade_status(grades.get("homa_ir"))),
        _test("FIB 4 Score", derived.get("fib4"), "< 1.3", _grade_status(grades.get("fib4"))),
        _test("AST", h.ast),
        _test("ALT", h.alt),
        _test("Platelets", h.platelets),
        _test("Body Fat Percentage", h.body_fat_percentage),
        _test("Total Fat Mass", h.total_fat_mass),
        _test("Total Fat Mass Per Height", h.total_fat_mass_per_height),
        _test("Visceral Fat Mass", h.visceral_fat_mass),
        _test("Total Lean Mass", h.total_lean_mass),
        _test("Total Lean Mass Per Height", h.total_lean_mass_per_height),
        _test("Appendicular Lean Mass", h.appendicular_lean_mass),
    ]


def clinical_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    p = req.pheno_age
    rows = [
        _test("Albumin", p.albumin_g_dl),
        _test("Creatinine", p.creatinine_mg_dl),
        _test("Glucose", p.glucose_mg_dl),
        _test("CRP", p.crp_mg_l),
        _test("Lymphocyte Percent", p.lymphocyte_percent),
        _test("MCV", p.mcv_fl),
        _test("RDW Percent", p.rdw_percent),
        _test("Alkaline Phosphatase", p.alkaline_phosphatase_u_l),
        _test("WBC", p.wbc_10e3_per_ul),
    ]
    # Clinical data is free-form: one row per leaf, one level of nesting.
    for section, value in req.clinical_data.items():
        if isinstance(value, dict):
            for key, leaf in value.items():
                rows.append(_test(f"{_title(section)} {_title(key)}", leaf))
        else:
            rows.append(_test(_title(section), value))
    return rows


def toxins_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    t = req.toxins_lifestyle
    return [
        _test("Alcohol Intake", t.alcohol_intake),
        _test("Alcohol Drinks Per Week", t.alcohol_drinks_per_week, "≤ 7 per week"),
        _test("Smoking", t.smoking),
        _test("Chewing Tobacco", t.chewing_tobacco),
        _test("Vaping", t.vaping),
        _test("Other Nicotine Use", t.other_nicotine_use),
        _test("Cannabis Use", t.cannabis_use),
        _test("Screen Time", t.screen_time),
        _test("Ultra Processed Food Intake", t.ultra_processed_food_intake),
        _test("Medications Or Supplements Impact", t.medications_or_supplements_impact),
        _test("Physical Environment Impact", t.physical_environment_impact),
        _test("Media Exposure Impact", t.media_exposure_impact),
        _test("Stressful Environments Or Relationships Impact", t.stressful_environments_or_relationships_impact),
        _test("Blood Lead Level", t.blood_lead_level, f"≤ {LEAD_UPPER_LIMIT} ug/dL",
              _range_status(t.blood_lead_level, LEAD_UPPER_LIMIT)),
        _test("Blood Mercury", t.blood_mercury, f"≤ {MERCURY_UPPER_LIMIT} ug/L",
              _range_status(t.blood_mercury, MERCURY_UPPER_LIMIT)),
    ]


def _metric_status(components: ReportComponents, metric: str) -> Optional[str]:
    for m in components.physical_performance.metrics:
        if m.metric == metric:
            return m.status.value
    return None


def fitness_tests(req: ReportRequest, components: ReportComponents) -> List[Dict[str, Any]]:
    p = req.performance_age

    def status(metric):
        return _metric_status(components, metric)

    return [
        _test("VO2 Max Percentile", p.vo2_max_percentile, "≥ 75th percentile",
              status("Aerobic Fitness (VO₂ Max / HRR)")),
        _test("Heart Rate Recovery", p.heart_rate_recovery, "> 20 bpm"),
        _test("Gait Speed Comfortable Percentile", p.gait_speed_comfortable_percentile),
        _test("Gait Speed Max Percentile", p.gait_speed_max_percentile, "≥ 75th percentile", status("Gait Speed")),
        _test("Trunk Endurance", p.trunk_endurance, None, status("Trunk Endurance")),
        _test("Posture Tragus To Wall", p.posture_assessment, "≤ 10 cm", status("Posture (Tragus-to-Wall)")),
        _test("Floor To Stand Score", p.floor_to_stand_test, "≥ 8/10", status("Floor-to-Stand")),
        _test("Mobility ROM Flags", p.mobility_rom, None, status("Mobility / ROM")),
    ]


def strength_tests(req: ReportRequest, components: ReportComponents) -> List[Dict[str, Any]]:
    p = req.performance_age

    def status(metric):
        return _metric_status(components, metric)

    return [
        _test("Quadriceps Strength Percentile", p.quadriceps_strength_percentile, "≥ 75th percentile",
              status("Quadriceps Strength")),
        _test("Quadriceps Asymmetry Percent", p.quadriceps_asymmetry_percent, "≤ 10 %"),
        _test("Hip Strength", p.hip_strength, None, status("Hip Strength")),
        _test("Calf Strength", p.calf_strength, None, status("Calf Strength")),
        _test("Rotator Cuff Integrity", p.rotator_cuff_integrity, None, status("Rotator Cuff Integrity")),
        _test("IMTP Percentile", p.isometric_thigh_pull_percentile),
        _test("IMTP Force", p.isometric_thigh_pull),
        _test("Grip Strength Percentile", p.grip_strength_percentile, "≥ 75th percentile", status("Grip Strength")),
        _test("Grip Asymmetry Percent", p.grip_asymmetry_percent, "≤ 10 %"),
        _test("Power Percentile", p.power_percentile, "≥ 75th percentile", status("Power")),
        _test("Balance Percentile", p.balance_percentile, "≥ 75th percentile", status("Balance")),
        _test("Chair Rise Percentile", p.chair_rise_percentile, "≥ 75th percentile", status("Chair Rise")),
        _test("5x Sit-to-Stand", p.chair_rise_five_times, "≤ 15 s"),
        _test("30-Second Sit-to-Stand Count", p.chair_rise_thirty_seconds, "≥ 12"),
    ]


def brain_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    b = req.brain_health
    return [
        _test("Cognitive Function", b.cognitive_function),
        _test("Cognitive Function Prior", b.cognitive_function_prior),
        _test("ApoE4 Status", b.apoe4_status),
        _test("Family History Dementia", b.family_history_dementia),
        _test("Dementia Onset Age", b.dementia_onset_age),
    ]


def mental_emotional_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    b = req.brain_health
    return [
        _test("PROMIS Depression", b.promis_depression_8a),
        _test("PROMIS Anxiety", b.promis_anxiety_8a),
        _test("PROMIS Sleep Disturbance", b.promis_sleep_disturbance),
        _test("Perceived Stress Score", b.perceived_stress_score),
        _test("Assessment Date", b.assessment_date),
        _test("PROMIS Depression Prior", b.promis_depression_prior),
        _test("PROMIS Anxiety Prior", b.promis_anxiety_prior),
        _test("Perceived Stress Score Prior", b.perceived_stress_score_prior),
    ]


def social_connection_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    b = req.brain_health
    return [
        _test("Flourishing Scale", b.flourishing_scale),
        _test("Flourishing Scale Prior", b.flourishing_scale_prior),
    ]


def longevity_mindset_tests(req: ReportRequest) -> List[Dict[str, Any]]:
    b = req.brain_health
    return [
        _test("Brief Resilience Scale", b.brief_resilience_scale),
        _test("Brief Resilience Scale Prior", b.brief_resilience_scale_prior),
        _test("Life Orientation Test", b.life_orientation_test_r),
        _test("Life Orientation Test Prior", b.life_orientation_test_prior),
        _test("Meaning In Life Questionnaire", b.meaning_in_life_questionnaire),
        _test("Meaning In Life Presence", b.meaning_in_life_presence),
        _test("Meaning In Life Search", b.meaning_in_life_search),
        _test("Meaning In Life Presence Prior", b.meaning_in_life_presence_prior),
        _test("Meaning In Life Search Prior", b.meaning_in_life_search_prior),
    ]


# ============================================================================
# DOCUMENT
# ============================================================================

def _performance_assessment(components: ReportComponents, domain: str, narrative: str) -> Dict[str, Any]:
    physical = components.physical_performance
    return {
        "narrative": narrative,
        "strategies": [
            dict(s.to_dict(), total_score=s.total_score)
            for s in physical.strategies if s.domain == domain
        ],
        "reassurances": [r.to_dict() for r in physical.reassurances if r.domain == domain],
    }


def build_report_json(
    request: ReportRequest,
    components: ReportComponents,
    narratives: Optional[ReportNarratives] = None,
    generated_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Assemble the report document as plain JSON-serialisable data."""
    narratives = narratives or ReportNarratives()
    generated_at = generated_at or datetime.now(timezone.utc)
    cardio = components.cardiology
    metabolic = components.metabolic
    toxins = components.toxins

    report = {
        "meta": {
            "generated_at_utc": generated_at.isoformat(),
            "schema_version": REPORT_SCHEMA_VERSION,
            "model_versions": dict(components.model_versions),
        },
        "chronological_age_years": request.pheno_age.chronological_age_years,
        "health_scores": {
            "health_age": components.health_age.health_age_final,
            "brain_score": components.brain_health.total_score,
            "physical_performance_score": components.performance_age.performance_age,
            "heart_score": cardio.heart_health_score if cardio else None,
        },
        "pillars": [
            {
                "pillar": "avoiddisease",
                "domains": [
                    {
                        "domain": "cardiology",
                        "tests": cardiology_tests(request),
                        "assessment": {
                            "risk_category": cardio.risk_category if cardio else None,
                            "details": cardio.to_dict() if cardio else None,
                            "interpretation": narratives.cardiology_interpretation,
                        },
                    },
                    {
                        "domain": "metabolichealth",
                        "tests": metabolic_tests(request, components),
                        "assessment": {
                            "metabolic_health_category": metabolic.metabolic_health_category,
                            "counts": metabolic.counts.to_dict(),
                            "flags": metabolic.flags.to_dict(),
                            "biggest_contributors": [c.to_dict() for c in metabolic.biggest_contributors],
                            "top_interventions": [i.to_dict() for i in metabolic.top_interventions],
                            "opportunity_paragraphs": list(metabolic.opportunity_paragraphs),
                            "notes": list(metabolic.notes),
                        },
                    },
                    {
                        "domain": "clinical",
                        "tests": clinical_tests(request),
                        "assessment": {
                            "phenotypic_age_years": components.pheno_age.phenotypic_age_years,
                            "mortality_10yr": components.pheno_age.mortality_10yr,
                        },
                    },
                    {
                        "domain": "toxinsandlifestyle",
                        "tests": toxins_tests(request),
                        "assessment": toxins.to_dict(),
                    },
                ],
            },
            {
                "pillar": "strongandindepedent",
                "domains": [
                    {
                        "domain": "fitnessandmobility",
                        "tests": fitness_tests(request, components),
                        "assessment": _performance_assessment(
                            components, FIT_AND_MOBILE, narratives.fitness_mobility_assessment),
                    },
                    {
                        "domain": "strengthandstability",
                        "tests": strength_tests(request, components),
                        "assessment": _performance_assessment(
                            components, STRONG_AND_STABLE, narratives.strength_stability_assessment),
                    },
                ],
            },
            {
                "pillar": "mentallysharp",
                "domains": [
                    {
                        "domain": "brainhealth",
                        "tests": brain_tests(request),
                        "assessment": dict(
                            components.protect_brain.to_dict(),
                            brain_health_score=components.brain_health.total_score,
                            brain_health_level=components.brain_health.level,
                        ),
                    },
                    {
                        "domain": "mentalemotionalwellness",
                        "tests": mental_emotional_tests(request),
                        "assessment": components.mental_wellness.to_dict(),
                    },
                    {
                        "domain": "socialconnection",
                        "tests": social_connection_tests(request),
                        "assessment": components.be_connected.to_dict(),
                    },
                    {
                        "domain": "longevitymindset",
                        "tests": longevity_mindset_tests(request),
                        "assessment": components.longevity_mindset.to_dict(),
                    },
                ],
            },
        ],
        "improvement_paragraph": narratives.improvement_paragraph,
    }
    logger.debug(f"Report assembled: schema={REPORT_SCHEMA_VERSION}")
    return report
