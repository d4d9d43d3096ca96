"""NarrativeAgent - Report Prose Around Computed Results

Writes the free-text sections of the report:
- Heart and blood vessel interpretation (cardiology)
- Fitness & Mobility assessment
- Strength & Stability assessment
- General improvement paragraph

Every section receives the already-computed results and only interprets them;
no score, category or status is ever taken from the model. Each method has a
deterministic fallback built from the same results, used when the model is
unavailable or the call fails.

Prompt Rules (all sections):
    - Never use the dash character in the output
    - Do not invent tests or results that are not in the data
    - Multiple paragraphs, no bullet points
"""
from typing import Any, Dict, List, Optional
import json
import logging
from dataclasses import asdict

from config.llm import get_gemini_model
from models.enums import PerformanceStatus
from models.inputs import ReportRequest
from models.results import CardiologyResult, PerformanceAgeResult, PhysicalPerformanceResult

logger = logging.getLogger(__name__)

FITNESS_MOBILITY_METRICS = (
    "Aerobic Fitness (VO₂ Max / HRR)",
    "Gait Speed",
    "Trunk Endurance",
    "Posture (Tragus-to-Wall)",
    "Floor-to-Stand",
    "Mobility / ROM",
)

STRENGTH_STABILITY_METRICS = (
    "Quadriceps Strength",
    "Hip Strength",
    "Calf Strength",
    "Rotator Cuff Integrity",
    "Isometric Mid-Thigh Pull",
    "Grip Strength",
    "Power",
    "Balance",
    "Chair Rise",
)

CARDIOLOGY_TARGETS = {
    "LOW": ("Targets focus on protecting and sustaining current health: blood pressure below 130/80, "
            "hs-CRP below 1.0 mg/L, and LDL/apoB kept in an optimal range as set by your clinician."),
    "MILD": ("Targets focus on stopping progression: blood pressure below 130/80, hs-CRP below 1.0 mg/L, "
             "and LDL/apoB commonly below 70 mg/dL unless your clinician sets a different goal."),
    "MODERATE": ("Targets focus on stopping progression: blood pressure below 130/80, hs-CRP below 1.0 mg/L, "
                 "and LDL/apoB commonly below 70 mg/dL unless your clinician sets a different goal."),
    "SEVERE": ("Targets reflect aggressive prevention: blood pressure below 120/80, hs-CRP below 1.0 mg/L, "
               "and LDL/apoB commonly below 30 mg/dL unless your clinician sets a different goal."),
}

_COMMON_RULES = """
Hard requirements:
- Never use the dash character in the output.
- Do not invent tests or results that are not in the JSON.
- Use medical language and a clear, educated-patient tone.
- Multiple paragraphs. No bullet points.
"""


def _strip_dashes(text: str) -> str:
    return text.replace(" — ", ", ").replace("—", ", ").replace(" – ", ", ").replace("–", ", ")


class NarrativeAgent:
    """Gemini-backed prose writer with deterministic fallbacks."""

    def __init__(self, model=None, offline: bool = False):
        self.model = None if offline else (model or get_gemini_model())

    def _generate(self, section: str, prompt: str, fallback: str) -> str:
        if not self.model:
            return fallback
        try:
            response = self.model.generate_content(prompt)
            text = (response.text or "").strip()
            if not text:
                logger.warning(f"NarrativeAgent: empty {section} response, using fallback")
                return fallback
            logger.info(f"NarrativeAgent: generated {section} narrative")
            return _strip_dashes(text)
        except Exception as e:
            logger.error(f"Narrative generation failed for {section}: {e}", exc_info=True)
            return fallback

    # ------------------------------------------------------------------
    # Cardiology
    # ------------------------------------------------------------------

    def cardiology_interpretation(self, request: ReportRequest, cardiology: CardiologyResult) -> str:
        instructions = (request.cardiology.specific_cardiology_instructions
                        if request.cardiology else None)
        data = {
            "cardiologyRiskCategory": cardiology.to_dict(),
            "cardiology": asdict(request.cardiology) if request.cardiology else None,
            "vitalsAndLabs": {
                "systolic_bp": request.health_age.systolic_bp,
                "diastolic_bp": request.health_age.diastolic_bp,
                "non_hdl_mg_dl": request.health_age.non_hdl_mg_dl,
                "hs_crp_mg_l": request.pheno_age.crp_mg_l,
                "vo2_max_percentile": request.performance_age.vo2_max_percentile,
            },
        }
        prompt = f"""
You are a physician writing the "Heart and Blood Vessel Health Interpretation and Strategy" section.
The risk category is already computed: {cardiology.risk_category}.
SpecificCardiologyInstructions (clinician orders, follow exactly): {instructions or "None provided"}

Start by stating what is OPTIMAL vs NOT OPTIMAL based on the findings, then give targets for this risk level.
Targets guidance (unless clinician instructions override):
- LOW: protect and sustain; BP < 130/80; hs-CRP < 1.0.
- MILD or MODERATE: stop progression; BP < 130/80; hs-CRP < 1.0; LDL/apoB commonly < 70 mg/dL.
- SEVERE: aggressive prevention; BP < 120/80; hs-CRP < 1.0; LDL/apoB commonly < 30 mg/dL.
{_COMMON_RULES}
DATA (JSON):
{json.dumps(data, default=str)}
"""
        return self._generate("cardiology", prompt, self.fallback_cardiology(cardiology, instructions))

    @staticmethod
    def fallback_cardiology(cardiology: CardiologyResult, instructions: Optional[str] = None) -> str:
        paragraphs = [cardiology.risk_explanation]
        paragraphs.append(CARDIOLOGY_TARGETS.get(cardiology.risk_category, CARDIOLOGY_TARGETS["LOW"]))
        if instructions and instructions.strip():
            paragraphs.append(f"Clinician instructions: {instructions.strip()}")
        return _strip_dashes("\n\n".join(paragraphs))

    # ------------------------------------------------------------------
    # Physical performance
    # ------------------------------------------------------------------

    def fitness_mobility_assessment(self, request: ReportRequest, performance: PerformanceAgeResult,
                                    physical: PhysicalPerformanceResult) -> str:
        return self._performance_section("Fitness and Mobility", FITNESS_MOBILITY_METRICS,
                                         request, performance, physical)

    def strength_stability_assessment(self, request: ReportRequest, performance: PerformanceAgeResult,
                                      physical: PhysicalPerformanceResult) -> str:
        return self._performance_section("Strength and Stability", STRENGTH_STABILITY_METRICS,
                                         request, performance, physical)

    def _performance_section(self, domain_name: str, metric_names, request: ReportRequest,
                             performance: PerformanceAgeResult, physical: PhysicalPerformanceResult) -> str:
        metrics = [m for m in physical.metrics if m.metric in metric_names]
        data = {
            "chronologicalAgeYears": request.pheno_age.chronological_age_years,
            "performanceAgeYears": performance.performance_age,
            "performanceDeltaYears": performance.delta_vs_age_years,
            "performanceDeltaPercent": performance.delta_vs_age_percent,
            "tests": [m.to_dict() for m in metrics if m.status != PerformanceStatus.DATA_MISSING],
        }
        prompt = f"""
You are a clinician writing the "{domain_name} Assessment" section.
This is an assessment-only narrative: do not prescribe exercise tactics, workouts, or step-by-step plans.
Start by stating what is OPTIMAL vs NOT OPTIMAL based on the findings and numbers.
Only discuss the tests provided for {domain_name}. Do not reference other physical performance domains.
{_COMMON_RULES}
DATA (JSON):
{json.dumps(data, default=str)}
"""
        fallback = self.fallback_performance(domain_name, request, performance, metrics)
        return self._generate(domain_name, prompt, fallback)

    @staticmethod
    def fallback_performance(domain_name: str, request: ReportRequest, performance: PerformanceAgeResult,
                             metrics) -> str:
        optimal = [m.metric for m in metrics if m.status == PerformanceStatus.OPTIMAL]
        not_optimal = [f"{m.metric} ({m.finding})" for m in metrics if m.status == PerformanceStatus.SUB_OPTIMAL]

        paragraphs = []
        age = request.pheno_age.chronological_age_years
        if age is not None:
            paragraphs.append(
                f"Performance age is {performance.performance_age:.1f} years against a chronological age of "
                f"{age:g} ({performance.delta_vs_age_years:+.1f} years)."
            )
        if optimal:
            paragraphs.append(f"Optimal in {domain_name.lower()}: {', '.join(optimal)}.")
        if not_optimal:
            paragraphs.append(f"Not optimal: {'; '.join(not_optimal)}.")
        if not optimal and not not_optimal:
            paragraphs.append(f"No {domain_name.lower()} tests were provided for this report.")
        return _strip_dashes("\n\n".join(paragraphs))

    # ------------------------------------------------------------------
    # General improvement
    # ------------------------------------------------------------------

    def improvement_paragraph(self, summary: Dict[str, Any]) -> str:
        prompt = f"""
You write brief, practical medical and wellness improvement guidance for an educated patient.
Focus ONLY on areas labeled non-optimal.
{_COMMON_RULES}
JSON:
{json.dumps(summary, default=str)}
"""
        return self._generate("improvement", prompt, self.fallback_improvement(summary))

    @staticmethod
    def fallback_improvement(summary: Dict[str, Any]) -> str:
        areas: List[str] = list(summary.get("non_optimal_areas") or [])
        if not areas:
            return ("All assessed areas are currently in an optimal range. "
                    "Keep the habits that support them and repeat testing on your usual schedule.")
        return ("The areas with the most room for improvement are "
                f"{', '.join(areas)}. Review the opportunities listed in each section with your clinician "
                "and focus on the highest ranked items first.")
