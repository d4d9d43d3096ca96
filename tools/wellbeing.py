"""Wellbeing scorers built on the BrainHealth questionnaire inputs.

- LongevityMindset: resilience (BRS mean), optimism (LOT-R), meaning in life
  (MLQ presence/search means)
- MentallyEmotionallyWell: PROMIS depression/anxiety and PSS, lower is better
- BeConnected: Flourishing Scale

Trends compare against the prior assessment with a 1.0-point delta. A domain
without a prior has no trend; it never reads as "Stable".
"""
import logging
from typing import List, Optional

from models.enums import Trend
from models.inputs import BrainHealthInputs
from models.results import (
    BeConnectedResult,
    EmotionalDomain,
    LongevityMindsetResult,
    MentalWellnessResult,
    MindsetDomain,
    WellbeingOpportunity,
)
from tools.normalizers import compute_trend

logger = logging.getLogger(__name__)

TREND_DELTA = 1.0

OPTIMAL = "Optimal"
NEEDS_ATTENTION = "Needs Attention"
DATA_MISSING = "Data Missing"
OPPORTUNITIES = "Opportunities Identified"


def _optional_trend(current: Optional[float], prior: Optional[float], lower_is_better: bool = False) -> Optional[Trend]:
    if prior is None:
        return None
    return compute_trend(current, prior, TREND_DELTA, lower_is_better)


def _scaled(value: Optional[float], divisor: float) -> Optional[float]:
    return value / divisor if value is not None else None


# ============================================================================
# LONGEVITY MINDSET
# Clinical Reference: BRS (Smith 2008), LOT-R (Scheier 1994), MLQ (Steger 2006)
# ============================================================================

RESILIENCE_OPTIMAL = 3.0
OPTIMISM_OPTIMAL = 13.0
MEANING_PRESENCE_OPTIMAL = 3.5
MEANING_SEARCH_HIGH = 5.5

MINDSET_SUMMARIES = {
    "missing": (
        "Some longevity mindset measures are missing, so we cannot fully interpret "
        "resilience, optimism, and meaning at this time."
    ),
    "optimal": (
        "Your longevity mindset measures are in healthy ranges. This suggests you currently "
        "approach life with resilience, optimism, and a sense of meaning, qualities that "
        "support adaptability, engagement, and long-term health as you age."
    ),
    "optimal_trend": (
        "Your longevity mindset measures are in healthy ranges and have remained stable or "
        "improved over time. This indicates that your resilience, outlook, and sense of purpose "
        "are supporting your ability to adapt, recover from challenges, and stay engaged with "
        "long-term health goals."
    ),
    "opportunity": (
        "Your results suggest opportunities to strengthen aspects of your longevity mindset. "
        "Longevity mindset reflects how resilient, optimistic, and purposeful you feel. "
        "Improving these areas can support emotional well-being, recovery from stress, and "
        "healthy aging over time."
    ),
    "opportunity_trend": (
        "Your results suggest opportunities to strengthen your longevity mindset, with changes "
        "compared to prior assessments. Shifts in resilience, optimism, or sense of meaning can "
        "occur during periods of stress or transition. Addressing these areas early may help "
        "support long-term well-being and adaptability."
    ),
}

MINDSET_OPPORTUNITIES = {
    "Resilience": WellbeingOpportunity(
        domain="Resilience",
        why_it_matters="Lower resilience can make stressors feel more overwhelming and slow recovery from challenges.",
        opportunity="Strengthening resilience supports emotional stability, adaptive coping, and long-term health.",
    ),
    "Optimism": WellbeingOpportunity(
        domain="Optimism",
        why_it_matters=(
            "Lower optimism is associated with higher stress perception and reduced engagement "
            "in health-promoting behaviors."
        ),
        opportunity="Supporting a more optimistic outlook can improve motivation, coping, and long-term well-being.",
    ),
    "Meaning in Life": WellbeingOpportunity(
        domain="Meaning in Life",
        why_it_matters="A reduced sense of meaning or purpose can affect motivation, engagement, and emotional well-being.",
        opportunity="Strengthening clarity of purpose may support resilience, fulfillment, and sustained health behaviors.",
    ),
}


def _threshold_status(score: Optional[float], optimal_at: float) -> str:
    if score is None:
        return DATA_MISSING
    return NEEDS_ATTENTION if score < optimal_at else OPTIMAL


def meaning_status(presence_mean: Optional[float], search_mean: Optional[float]) -> str:
    if presence_mean is None or search_mean is None:
        return DATA_MISSING
    low_presence = presence_mean < MEANING_PRESENCE_OPTIMAL
    searching_without_presence = search_mean >= MEANING_SEARCH_HIGH and presence_mean < MEANING_SEARCH_HIGH
    return NEEDS_ATTENTION if low_presence or searching_without_presence else OPTIMAL


def meaning_trend(
    presence: Optional[float],
    presence_prior: Optional[float],
    search: Optional[float],
    search_prior: Optional[float],
) -> Trend:
    """Rising presence or falling search is improvement; the reverse is worsening."""
    if presence is None and search is None:
        return Trend.UNKNOWN
    if presence_prior is None and search_prior is None:
        return Trend.UNKNOWN

    presence_change = compute_trend(presence, presence_prior, TREND_DELTA)
    search_change = compute_trend(search, search_prior, TREND_DELTA, lower_is_better=True)

    if Trend.IMPROVING in (presence_change, search_change):
        return Trend.IMPROVING
    if Trend.WORSENING in (presence_change, search_change):
        return Trend.WORSENING
    return Trend.STABLE


def calculate_longevity_mindset(inputs: BrainHealthInputs) -> LongevityMindsetResult:
    resilience = _scaled(inputs.brief_resilience_scale, 6.0)
    resilience_prior = _scaled(inputs.brief_resilience_scale_prior, 6.0)
    optimism = inputs.life_orientation_test_r
    presence = _scaled(inputs.meaning_in_life_presence, 5.0)
    search = _scaled(inputs.meaning_in_life_search, 5.0)
    presence_prior = _scaled(inputs.meaning_in_life_presence_prior, 5.0)
    search_prior = _scaled(inputs.meaning_in_life_search_prior, 5.0)

    domains = [
        MindsetDomain(
            domain="Resilience",
            score=resilience,
            status=_threshold_status(resilience, RESILIENCE_OPTIMAL),
            trend=_optional_trend(resilience, resilience_prior),
        ),
        MindsetDomain(
            domain="Optimism",
            score=optimism,
            status=_threshold_status(optimism, OPTIMISM_OPTIMAL),
            trend=_optional_trend(optimism, inputs.life_orientation_test_prior),
        ),
        MindsetDomain(
            domain="Meaning in Life",
            score=presence,
            status=meaning_status(presence, search),
            trend=(
                None if presence_prior is None and search_prior is None
                else meaning_trend(presence, presence_prior, search, search_prior)
            ),
        ),
    ]

    has_missing = any(d.status == DATA_MISSING for d in domains)
    needs_attention = [d for d in domains if d.status == NEEDS_ATTENTION]

    if has_missing:
        overall = DATA_MISSING
    elif needs_attention:
        overall = OPPORTUNITIES
    else:
        overall = OPTIMAL

    has_trend = any(d.trend is not None for d in domains)
    if has_missing:
        summary = MINDSET_SUMMARIES["missing"]
    elif overall == OPTIMAL:
        summary = MINDSET_SUMMARIES["optimal_trend" if has_trend else "optimal"]
    else:
        summary = MINDSET_SUMMARIES["opportunity_trend" if has_trend else "opportunity"]

    return LongevityMindsetResult(
        overall_status=overall,
        summary=summary,
        domains=domains,
        opportunities=[MINDSET_OPPORTUNITIES[d.domain] for d in needs_attention],
    )


# ============================================================================
# MENTALLY & EMOTIONALLY WELL
# Clinical Reference: PROMIS T-score > 55 above normal; PSS > 13 moderate stress
# ============================================================================

PROMIS_NORMAL_UPPER = 55.0
STRESS_NORMAL_UPPER = 13.0

MENTAL_SUMMARY_OPTIMAL = (
    "Your depression, anxiety, and stress scores are in healthy ranges, with stable or "
    "improving trends. We will continue to monitor over time to ensure they remain at this level."
)
MENTAL_SUMMARY_OPPORTUNITY = (
    "Your assessment shows opportunities to improve depression, anxiety, or stress levels. "
    "Addressing these early can support emotional well-being and protect long-term health."
)


def _emotional_domain(current: Optional[float], prior: Optional[float], normal_upper: float) -> EmotionalDomain:
    trend = compute_trend(current, prior, TREND_DELTA, lower_is_better=True)
    if current is None:
        status = DATA_MISSING
    elif current > normal_upper or trend == Trend.WORSENING:
        status = NEEDS_ATTENTION
    else:
        status = OPTIMAL
    return EmotionalDomain(status=status, trend=trend, current_score=current, prior_score=prior)


def calculate_mental_wellness(inputs: BrainHealthInputs) -> MentalWellnessResult:
    depression = _emotional_domain(inputs.promis_depression_8a, inputs.promis_depression_prior, PROMIS_NORMAL_UPPER)
    anxiety = _emotional_domain(inputs.promis_anxiety_8a, inputs.promis_anxiety_prior, PROMIS_NORMAL_UPPER)
    stress = _emotional_domain(inputs.perceived_stress_score, inputs.perceived_stress_score_prior, STRESS_NORMAL_UPPER)

    triggers = {
        "depression": depression.status == NEEDS_ATTENTION,
        "anxiety": anxiety.status == NEEDS_ATTENTION,
        "stress": stress.status == NEEDS_ATTENTION,
    }
    triggers["stress_emphasis"] = triggers["stress"]

    any_attention = triggers["depression"] or triggers["anxiety"] or triggers["stress"]
    overall = OPPORTUNITIES if any_attention else OPTIMAL

    return MentalWellnessResult(
        overall_status=overall,
        summary=MENTAL_SUMMARY_OPTIMAL if overall == OPTIMAL else MENTAL_SUMMARY_OPPORTUNITY,
        depression=depression,
        anxiety=anxiety,
        stress=stress,
        triggers=triggers,
        assessment_date=inputs.assessment_date,
    )


# ============================================================================
# BE CONNECTED
# Clinical Reference: Flourishing Scale (Diener 2010), 8-56
# ============================================================================

FLOURISHING_OPTIMAL_ABOVE = 45.0

CONNECTED_SUMMARIES = {
    "missing": (
        "No Flourishing Scale score was provided, so we cannot interpret connection, engagement, "
        "or sense of purpose at this time."
    ),
    "optimal_no_prior": (
        "Your Flourishing Scale score is in the optimal range. This means your life currently "
        "reflects a strong sense of purpose, satisfaction, and connection. These factors support "
        "emotional well-being and resilience and are associated with better physical health and "
        "longevity over time."
    ),
    "optimal_holding": (
        "Your Flourishing Scale score is in the optimal range and has remained stable or improved "
        "over time. This suggests that your sense of purpose, engagement, and connection is "
        "supporting your overall well-being and reinforcing your long-term health and longevity goals."
    ),
    "optimal_prior": (
        "Your Flourishing Scale score is in the optimal range. These results suggest strong "
        "connection, engagement, and sense of purpose that support emotional well-being and "
        "long-term health."
    ),
    "opportunity": (
        "Your Flourishing Scale score suggests opportunities to strengthen connection, engagement, "
        "or sense of purpose. Flourishing reflects how supported, connected, and fulfilled you feel "
        "in daily life. Improving these areas can positively influence emotional health, cognitive "
        "resilience, and physical health over time."
    ),
    "worsening": (
        "Your Flourishing Scale score suggests opportunities to strengthen connection and engagement, "
        "and it has declined compared with prior assessments. Changes in flourishing can reflect "
        "shifts in relationships, purpose, or life satisfaction. Addressing these areas early may "
        "help support resilience and long-term health."
    ),
}

FLOURISHING_WHY = (
    "Lower flourishing scores can reflect reduced connection, engagement, or sense of purpose. "
    "These factors are closely linked to emotional resilience and physical health."
)
FLOURISHING_OPPORTUNITY = (
    FLOURISHING_WHY
    + " Strengthening connection and meaning represents an opportunity to support your overall healthspan."
)
FLOURISHING_WORSENING_NOTE = (
    " Because this represents a change from prior assessments, addressing these areas now may "
    "help prevent further decline and support recovery."
)


def calculate_be_connected(inputs: BrainHealthInputs) -> BeConnectedResult:
    score = inputs.flourishing_scale
    prior = inputs.flourishing_scale_prior
    trend = _optional_trend(score, prior)

    optimal = score is not None and score > FLOURISHING_OPTIMAL_ABOVE
    worsening = trend == Trend.WORSENING
    needs_attention = not optimal or worsening

    if score is None:
        status = DATA_MISSING
    else:
        status = OPPORTUNITIES if needs_attention else OPTIMAL

    if score is None:
        summary = CONNECTED_SUMMARIES["missing"]
    elif optimal and prior is None:
        summary = CONNECTED_SUMMARIES["optimal_no_prior"]
    elif optimal and trend in (Trend.STABLE, Trend.IMPROVING):
        summary = CONNECTED_SUMMARIES["optimal_holding"]
    elif not needs_attention:
        summary = CONNECTED_SUMMARIES["optimal_prior"]
    elif worsening:
        summary = CONNECTED_SUMMARIES["worsening"]
    else:
        summary = CONNECTED_SUMMARIES["opportunity"]

    opportunities: List[WellbeingOpportunity] = []
    if needs_attention and score is not None:
        text = FLOURISHING_OPPORTUNITY + (FLOURISHING_WORSENING_NOTE if worsening else "")
        opportunities.append(WellbeingOpportunity(
            domain="Flourishing", why_it_matters=FLOURISHING_WHY, opportunity=text,
        ))

    return BeConnectedResult(
        flourishing_score=score,
        flourishing_prior=prior,
        status=status,
        trend=trend,
        summary=summary,
        opportunities=opportunities,
    )
