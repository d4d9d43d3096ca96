"""Toxins & lifestyle exposure evaluator.

Exposures come from three evidence classes:
- Objective: current tobacco/nicotine use, alcohol > 7 drinks/week
- Subjective: self-report answers of possibly / yes / occasional / current / maybe
- Lab: blood lead > 3.5 ug/dL, blood mercury > 10.0 ug/L (strictly above)

Stress amplification needs both a triggered stressful-environments answer and
a PSS above 13; a high PSS alone never amplifies. Opportunities are ordered by
a fixed priority table, not by detection order.
"""
import logging
from typing import List, Optional

from models.enums import EvidenceClass
from models.inputs import ToxinsInputs
from models.results import Exposure, Opportunity, ToxinsResult
from tools.normalizers import max_numeric_token

logger = logging.getLogger(__name__)

LEAD_UPPER_LIMIT = 3.5
MERCURY_UPPER_LIMIT = 10.0
ALCOHOL_WEEKLY_LIMIT = 7
SCREEN_HOURS_LIMIT = 6
STRESS_NORMAL_UPPER = 13

CURRENT_USE_WORDS = {"current", "occasional", "yes", "cigarettes", "vaping", "smokeless", "other"}
SUBJECTIVE_WORDS = {"possibly", "possible", "yes", "occasional", "current", "maybe"}

STATUS_EXPOSED = "Potential Harmful Exposures Identified"
STATUS_CLEAR = "No Potential Harmful Exposures Identified"
SUMMARY_EXPOSED = "Potential exposures were identified based on self-report and available lab data."
SUMMARY_CLEAR = "No potential harmful or toxic exposures were identified based on current inputs."

_SUBJECTIVE_DETAIL = "Possibly or yes"
_LAB_DETAIL = "High flag or above reference range"

NARRATIVES = {
    "tobacco-nicotine": (
        "Tobacco and nicotine exposure are associated with accelerated vascular disease, lung disease, "
        "and cognitive decline. The optimal level for long-term cardiovascular and brain health is "
        "complete avoidance. Reducing or eliminating exposure is a high-impact opportunity to improve healthspan."
    ),
    "alcohol": (
        "Alcohol intake above moderate levels can negatively affect blood pressure, metabolic health, "
        "sleep quality, and long-term disease risk. The optimal level for healthspan is no more than "
        "7 drinks per week. Even modest reductions can provide meaningful benefits."
    ),
    "cannabis": (
        "Chronic cannabis use, particularly smoked forms, may affect lung health, cardiovascular strain, "
        "memory, and motivation. The optimal level for brain and cardiovascular health is minimal or no use."
    ),
    "screen-time": (
        "Excessive screen time can contribute to sedentary behavior, sleep disruption, and increased stress. "
        "The optimal pattern supports balance, prioritizing physical activity, in-person connection, and "
        "restorative sleep."
    ),
    "processed-foods": (
        "Highly processed foods and beverages can increase metabolic and inflammatory stress. Minimizing "
        "intake may support better metabolic, cardiovascular, and brain health."
    ),
    "medications-supplements": (
        "Some medications or supplements may create unintended strain when not well matched to individual "
        "needs. Periodic review to ensure necessity, safety, and appropriate use can help reduce cumulative "
        "stress on the body."
    ),
    "environmental": (
        "Environmental exposures such as air pollution, chemicals, or occupational hazards can contribute "
        "to cumulative physiologic stress. Reducing exposure where feasible may support long-term health."
    ),
    "media": (
        "Chronic exposure to distressing or negative media can contribute to emotional and physiologic "
        "stress. Reducing exposure may support mental resilience and overall well-being."
    ),
    "stressful-environments": (
        "Ongoing exposure to stressful environments or relationships can contribute to chronic stress, "
        "which affects cardiovascular, metabolic, and brain health. Identifying and reducing these "
        "stressors where possible may be an important opportunity to support healthspan."
    ),
    "lead": (
        "Your lead level is above the lab's normal reference range, which suggests recent or ongoing lead "
        "exposure. Even low-level lead exposure is associated with adverse health effects, and the optimal "
        "level is as low as possible. Next steps typically include confirming the result, identifying "
        "likely exposure sources, and reducing exposure."
    ),
    "mercury": (
        "Your mercury level is above the lab's normal reference range, suggesting increased mercury "
        "exposure. The optimal level is as low as possible. Next steps typically include confirming the "
        "result, identifying exposure sources (often dietary fish/seafood or occupational), and reducing "
        "exposure where feasible."
    ),
}

LAB_FOLLOW_UP = {
    "lead": {
        "next_steps": [
            "Confirm: repeat venous blood lead to confirm and trend.",
            "Source review: occupation or hobby exposure (construction, shooting ranges, stained glass, "
            "ceramics, fishing weights).",
            "Source review: older housing or renovations, plumbing, or well water.",
        ],
        "escalation": [
            "If markedly elevated (well above lab upper limit or rising on repeat), consider "
            "occupational/environmental health evaluation and toxicology input.",
            "Management decisions depend on level and clinical context; public health thresholds vary.",
        ],
        "note": None,
    },
    "mercury": {
        "next_steps": [
            "Confirm: repeat level to confirm and trend (especially if unexpected).",
            "Source review: high-mercury seafood intake patterns.",
            "Source review: occupational exposures (dental or industrial).",
        ],
        "escalation": [
            "If levels are significantly elevated or symptoms suggest toxicity, consider further evaluation "
            "(speciation/exposure pathway assessment) and specialist input.",
        ],
        "note": (
            "Note: blood mercury reflects recent exposure and can be influenced by organic vs inorganic "
            "forms; interpretation is context-dependent."
        ),
    },
}

_RANKS = {
    "lead": 1,
    "mercury": 2,
    "tobacco-nicotine": 3,
    "alcohol": 4,
    "cannabis": 6,
    "screen-time": 7,
    "processed-foods": 8,
    "medications-supplements": 9,
    "environmental": 10,
    "media": 11,
}


def opportunity_rank(key: str, stress_amplified: bool) -> int:
    if key == "stressful-environments":
        return 5 if stress_amplified else 12
    return _RANKS.get(key, 99)


# ============================================================================
# PREDICATES
# ============================================================================

def is_current_use(value: Optional[str]) -> bool:
    return bool(value and value.strip()) and value.strip().lower() in CURRENT_USE_WORDS


def is_subjective_exposure(value: Optional[str]) -> bool:
    return bool(value and value.strip()) and value.strip().lower() in SUBJECTIVE_WORDS


def is_screen_time_exposure(value: Optional[str]) -> bool:
    """Numeric answers are hours per day; anything else uses the self-report vocabulary."""
    if not value or not value.strip():
        return False
    try:
        hours = float(value.strip())
    except ValueError:
        return is_subjective_exposure(value)
    return hours >= SCREEN_HOURS_LIMIT


def is_lab_exposure(value: Optional[float], upper_limit: float) -> bool:
    return value is not None and value > upper_limit


def drinks_per_week(inputs: ToxinsInputs) -> Optional[float]:
    """Structured value first, else the largest number in the free-text answer."""
    if inputs.alcohol_drinks_per_week is not None:
        return inputs.alcohol_drinks_per_week
    return max_numeric_token(inputs.alcohol_intake)


# ============================================================================
# EVALUATION
# ============================================================================

def evaluate_toxins(inputs: Optional[ToxinsInputs], perceived_stress_score: Optional[float] = None) -> ToxinsResult:
    x = inputs or ToxinsInputs()
    stress_not_optimal = perceived_stress_score is not None and perceived_stress_score > STRESS_NORMAL_UPPER
    exposures: List[Exposure] = []

    def add(key: str, label: str, evidence: EvidenceClass, detail: str, amplified: bool = False):
        exposures.append(Exposure(key=key, label=label, evidence_class=evidence, detail=detail, amplified=amplified))

    if any(is_current_use(v) for v in (x.smoking, x.chewing_tobacco, x.vaping, x.other_nicotine_use)):
        add("tobacco-nicotine", "Tobacco / Nicotine", EvidenceClass.OBJECTIVE, "Any current use")

    alcohol = drinks_per_week(x)
    if alcohol is not None and alcohol > ALCOHOL_WEEKLY_LIMIT:
        add("alcohol", "Alcohol", EvidenceClass.OBJECTIVE, "More than 7 drinks per week")

    if is_subjective_exposure(x.cannabis_use):
        add("cannabis", "Cannabis", EvidenceClass.SUBJECTIVE, _SUBJECTIVE_DETAIL)
    if is_screen_time_exposure(x.screen_time):
        add("screen-time", "Screen Time", EvidenceClass.SUBJECTIVE,
            "Possibly or yes (derived from hours per day)")
    if is_subjective_exposure(x.ultra_processed_food_intake):
        add("processed-foods", "Processed Foods & Beverages", EvidenceClass.SUBJECTIVE, _SUBJECTIVE_DETAIL)
    if is_subjective_exposure(x.medications_or_supplements_impact):
        add("medications-supplements", "Medications / Supplements", EvidenceClass.SUBJECTIVE, _SUBJECTIVE_DETAIL)
    if is_subjective_exposure(x.physical_environment_impact):
        add("environmental", "Environmental Exposures", EvidenceClass.SUBJECTIVE, _SUBJECTIVE_DETAIL)
    if is_subjective_exposure(x.media_exposure_impact):
        add("media", "Media Exposure", EvidenceClass.SUBJECTIVE, _SUBJECTIVE_DETAIL)

    stress_exposure = is_subjective_exposure(x.stressful_environments_or_relationships_impact)
    stress_amplified = stress_exposure and stress_not_optimal
    if stress_exposure:
        add("stressful-environments", "Stressful Environments or Relationships",
            EvidenceClass.SUBJECTIVE, _SUBJECTIVE_DETAIL, amplified=stress_amplified)

    if is_lab_exposure(x.blood_lead_level, LEAD_UPPER_LIMIT):
        add("lead", "Lead (Blood Lead Level)", EvidenceClass.LAB, _LAB_DETAIL)
    if is_lab_exposure(x.blood_mercury, MERCURY_UPPER_LIMIT):
        add("mercury", "Mercury (Blood)", EvidenceClass.LAB, _LAB_DETAIL)

    opportunities = [
        Opportunity(
            key=e.key,
            label=e.label,
            narrative=NARRATIVES[e.key],
            rank=opportunity_rank(e.key, stress_amplified),
            next_steps=list(LAB_FOLLOW_UP.get(e.key, {}).get("next_steps", [])),
            escalation=list(LAB_FOLLOW_UP.get(e.key, {}).get("escalation", [])),
            note=LAB_FOLLOW_UP.get(e.key, {}).get("note"),
        )
        for e in exposures
    ]
    opportunities.sort(key=lambda o: o.rank)

    if exposures:
        logger.info(f"Toxin exposures identified: {[e.key for e in exposures]}")

    return ToxinsResult(
        overall_status=STATUS_EXPOSED if exposures else STATUS_CLEAR,
        summary=SUMMARY_EXPOSED if exposures else SUMMARY_CLEAR,
        exposures=exposures,
        opportunities=opportunities,
        stress_amplified=stress_amplified,
    )
