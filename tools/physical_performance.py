"""Physical performance assessment and strategy ranking.

Two passes over the PerformanceAge inputs:

1. Per-metric assessment: each of ~15 metrics gets a status (Optimal,
   Sub-optimal, Informational, Data missing) and a severity 0-3. When a
   metric has several signals (percentile, asymmetry, timed tests) the
   severity is the maximum and every triggered reason is kept.
2. Strategy engine: sub-optimal findings are ranked by
   severity * 100 + impact * 10 + leverage and the top three become
   strategies with tactic modules. Optimal findings feed up to two
   reassurances. No strategy is ever emitted without a sub-optimal finding,
   and strength findings reuse the pass-1 severity so both passes agree.

Percentile ladder: >= 75 Optimal (0), >= 50 Mild (1), >= 26 Moderate (2),
else Severe (3).
"""
import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from models.enums import PerformanceStatus
from models.inputs import PerformanceAgeInputs
from models.results import (
    MetricAssessment,
    PhysicalPerformanceResult,
    Reassurance,
    Strategy,
    TacticModule,
)
from tools.normalizers import has_qualitative_issue, parse_first_number

logger = logging.getLogger(__name__)

FIT_AND_MOBILE = "Be Fit & Mobile"
STRONG_AND_STABLE = "Stay Strong & Stable"

OPTIMAL_PERCENTILE = 75
HRR_IMPAIRED_BPM = 20
FLOOR_TO_STAND_OPTIMAL = 8
POSTURE_OFFSET_CM = 10
ASYMMETRY_MILD = 10
ASYMMETRY_MODERATE = 20
FIVE_TIMES_SIT_TO_STAND_SECONDS = 15
THIRTY_SECOND_CHAIR_REPS = 12

MAX_STRATEGIES = 3
MAX_REASSURANCES = 2

_SEVERITY_LABELS = {0: "Optimal", 1: "Mild", 2: "Moderate", 3: "Severe"}


def severity_from_percentile(p: float) -> int:
    if p >= 75:
        return 0
    if p >= 50:
        return 1
    if p >= 26:
        return 2
    return 3


def severity_label(severity: int) -> str:
    return _SEVERITY_LABELS.get(severity, "Optimal")


def _fmt(value: float) -> str:
    """One decimal at most: 62.0 -> '62', 62.25 -> '62.3'."""
    return f"{value:.1f}".rstrip("0").rstrip(".")


# ============================================================================
# PASS 1: PER-METRIC ASSESSMENT
# ============================================================================

def _assessment(metric: str, domain: str, signals: List[Tuple[int, str]],
                informational: Optional[str] = None) -> MetricAssessment:
    """Combine (severity, reason) signals into one assessment."""
    if not signals:
        if informational:
            return MetricAssessment(metric, domain, PerformanceStatus.INFORMATIONAL, 0, informational)
        return MetricAssessment(metric, domain, PerformanceStatus.DATA_MISSING, 0, "Data missing")

    severity = max(s for s, _ in signals)
    triggered = [reason for s, reason in signals if s > 0]
    if severity == 0:
        return MetricAssessment(metric, domain, PerformanceStatus.OPTIMAL, 0,
                                "; ".join(r for _, r in signals), [r for _, r in signals])
    return MetricAssessment(metric, domain, PerformanceStatus.SUB_OPTIMAL, severity,
                            "; ".join(triggered), triggered)


def _percentile_signal(p: Optional[float], label: str = "") -> List[Tuple[int, str]]:
    if p is None:
        return []
    sev = severity_from_percentile(p)
    prefix = f"{label} " if label else ""
    if sev == 0:
        return [(0, f"Optimal ({prefix}{_fmt(p)}th percentile)")]
    return [(sev, f"{severity_label(sev)} deficit ({prefix}{_fmt(p)}th percentile)")]


def _asymmetry_signal(percent: Optional[float]) -> List[Tuple[int, str]]:
    if percent is None:
        return []
    if percent > ASYMMETRY_MODERATE:
        return [(2, f"Side-to-side asymmetry {_fmt(percent)}% (>{ASYMMETRY_MODERATE}%)")]
    if percent > ASYMMETRY_MILD:
        return [(1, f"Side-to-side asymmetry {_fmt(percent)}% (>{ASYMMETRY_MILD}%)")]
    return [(0, f"Asymmetry {_fmt(percent)}%")]


def _qualitative_signal(text: Optional[str]) -> List[Tuple[int, str]]:
    if not text or not text.strip():
        return []
    if has_qualitative_issue(text):
        return [(1, f"Pain / restriction / weakness reported ({text.strip()})")]
    return [(0, "Optimal / no issues reported")]


def assess_metrics(x: PerformanceAgeInputs) -> List[MetricAssessment]:
    metrics: List[MetricAssessment] = []

    # Aerobic fitness: VO2max percentile plus heart-rate recovery
    aerobic = _percentile_signal(x.vo2_max_percentile, "VO₂")
    if x.heart_rate_recovery is not None:
        if x.heart_rate_recovery <= HRR_IMPAIRED_BPM:
            aerobic.append((2, f"Slow heart rate recovery ({_fmt(x.heart_rate_recovery)} bpm, ≤{HRR_IMPAIRED_BPM})"))
        else:
            aerobic.append((0, f"HRR {_fmt(x.heart_rate_recovery)} bpm"))
    metrics.append(_assessment("Aerobic Fitness (VO₂ Max / HRR)", FIT_AND_MOBILE, aerobic))

    gait = _percentile_signal(x.gait_speed_max_percentile, "max")
    comfortable = (
        f"Comfortable gait {_fmt(x.gait_speed_comfortable_percentile)}th percentile"
        if x.gait_speed_comfortable_percentile is not None else None
    )
    metrics.append(_assessment("Gait Speed", FIT_AND_MOBILE, gait, informational=comfortable))

    metrics.append(_assessment(
        "Quadriceps Strength", STRONG_AND_STABLE,
        _percentile_signal(x.quadriceps_strength_percentile) + _asymmetry_signal(x.quadriceps_asymmetry_percent),
    ))
    metrics.append(_assessment(
        "Grip Strength", STRONG_AND_STABLE,
        _percentile_signal(x.grip_strength_percentile) + _asymmetry_signal(x.grip_asymmetry_percent),
    ))
    metrics.append(_assessment("Power", STRONG_AND_STABLE, _percentile_signal(x.power_percentile)))
    metrics.append(_assessment("Balance", STRONG_AND_STABLE, _percentile_signal(x.balance_percentile)))

    chair = _percentile_signal(x.chair_rise_percentile)
    if x.chair_rise_five_times is not None:
        if x.chair_rise_five_times > FIVE_TIMES_SIT_TO_STAND_SECONDS:
            chair.append((2, f"Five-times sit-to-stand {_fmt(x.chair_rise_five_times)} s "
                             f"(>{FIVE_TIMES_SIT_TO_STAND_SECONDS} s)"))
        else:
            chair.append((0, f"Five-times sit-to-stand {_fmt(x.chair_rise_five_times)} s"))
    if x.chair_rise_thirty_seconds is not None:
        if x.chair_rise_thirty_seconds < THIRTY_SECOND_CHAIR_REPS:
            chair.append((2, f"30-second chair stand {_fmt(x.chair_rise_thirty_seconds)} reps "
                             f"(<{THIRTY_SECOND_CHAIR_REPS})"))
        else:
            chair.append((0, f"30-second chair stand {_fmt(x.chair_rise_thirty_seconds)} reps"))
    metrics.append(_assessment("Chair Rise", STRONG_AND_STABLE, chair))

    floor_score = parse_first_number(x.floor_to_stand_test)
    floor: List[Tuple[int, str]] = []
    if floor_score is not None:
        if floor_score >= FLOOR_TO_STAND_OPTIMAL:
            floor.append((0, f"Optimal (score {_fmt(floor_score)}/10)"))
        else:
            floor.append((2, f"Task deficit (score {_fmt(floor_score)}/10)"))
    metrics.append(_assessment("Floor-to-Stand", STRONG_AND_STABLE, floor,
                               informational=(x.floor_to_stand_test or "").strip() or None))

    posture_cm = parse_first_number(x.posture_assessment)
    posture: List[Tuple[int, str]] = []
    if posture_cm is not None:
        if posture_cm > POSTURE_OFFSET_CM:
            posture.append((1, f"Postural offset (>10 cm; ~{_fmt(posture_cm)} cm)"))
        else:
            posture.append((0, f"Optimal (≤10 cm; ~{_fmt(posture_cm)} cm)"))
    elif has_qualitative_issue(x.posture_assessment):
        posture = _qualitative_signal(x.posture_assessment)
    metrics.append(_assessment("Posture (Tragus-to-Wall)", STRONG_AND_STABLE, posture,
                               informational=(x.posture_assessment or "").strip() or None))

    metrics.append(_assessment("Mobility / ROM", STRONG_AND_STABLE, _mobility_signals(x)))

    trunk = []
    if x.trunk_endurance and x.trunk_endurance.strip():
        trunk = ([(1, "Sub-optimal trunk endurance (reported)")] if has_qualitative_issue(x.trunk_endurance)
                 else [(0, f"No deficit reported ({x.trunk_endurance.strip()})")])
    metrics.append(_assessment("Trunk Endurance", STRONG_AND_STABLE, trunk))

    metrics.append(_assessment("Hip Strength", STRONG_AND_STABLE, _qualitative_signal(x.hip_strength)))
    metrics.append(_assessment("Calf Strength", STRONG_AND_STABLE, _qualitative_signal(x.calf_strength)))
    metrics.append(_assessment("Rotator Cuff Integrity", STRONG_AND_STABLE,
                               _qualitative_signal(x.rotator_cuff_integrity)))

    imtp_parts = []
    if x.isometric_thigh_pull is not None:
        imtp_parts.append(f"Peak force {_fmt(x.isometric_thigh_pull)}")
    if x.isometric_thigh_pull_percentile is not None:
        imtp_parts.append(f"{_fmt(x.isometric_thigh_pull_percentile)}th percentile")
    metrics.append(_assessment("Isometric Mid-Thigh Pull", STRONG_AND_STABLE, [],
                               informational=", ".join(imtp_parts) or None))
    return metrics


def _mobility_signals(x: PerformanceAgeInputs) -> List[Tuple[int, str]]:
    sources = (x.mobility_rom, x.posture_assessment, x.hip_strength, x.calf_strength, x.rotator_cuff_integrity)
    if any(has_qualitative_issue(s) for s in sources):
        return [(1, "Reported pain or restricted motion")]
    if x.mobility_rom and x.mobility_rom.strip():
        return [(0, "Optimal / no issues reported")]
    return []


# ============================================================================
# PASS 2: STRATEGY ENGINE
# ============================================================================

@dataclass(frozen=True)
class Finding:
    domain: str
    metric: str
    finding: str
    why: str
    triggered: bool
    optimal: bool
    severity: int
    impact: int
    leverage: int
    build: Optional[Callable[[], Strategy]] = None

    @property
    def total_score(self) -> int:
        return self.severity * 100 + self.impact * 10 + self.leverage if self.triggered else 0


def _strategy(f: Finding, trigger_metric: str, status_text: str, why: str, statement: str,
              modules: List[TacticModule]) -> Strategy:
    return Strategy(
        domain=f.domain,
        trigger_metric=trigger_metric,
        status_text=status_text,
        why_it_matters=why,
        statement=statement,
        severity=f.severity,
        impact=f.impact,
        leverage=f.leverage,
        modules=modules,
    )


DEFAULT_STATEMENTS = {
    "Quadriceps Strength": ("Improve lower-body strength by emphasizing controlled knee-dominant patterns "
                            "and progressive loading once technique is stable."),
    "Grip Strength": ("Improve overall strength capacity with progressive full-body training while adding "
                      "targeted grip work to close the gap."),
    "Power": ("Improve power by building strength first, then adding faster concentric intent and controlled "
              "plyometric progressions."),
    "Balance": ("Improve balance by training stability under gradually increasing sensory and mechanical "
                "challenge, without provoking fear or pain."),
    "Chair Rise": ("Improve sit-to-stand capacity by pairing lower-body strength with repeated, high-quality "
                   "practice of the rising pattern."),
}

DEFAULT_TACTICS = {
    "Quadriceps Strength": TacticModule(
        "Strength Foundation",
        "Quadriceps strength improves stair-climbing, chair rise, and gait reserve.",
        [
            "Use controlled knee-dominant work (split squats, step-ups, leg press) within pain-free ranges.",
            "Progress load or reps slowly; keep form strict and knee tracking stable.",
            "If knee pain is present, bias tempo/isometrics and reduce depth until tolerated.",
        ],
    ),
    "Grip Strength": TacticModule(
        "Carry + Hold Progressions",
        "Grip responds well to frequent, submaximal exposure.",
        [
            "Use loaded carries or timed holds at a challenging but controlled intensity.",
            "Train both crush grip (closing) and support grip (holding) over the week.",
            "Keep shoulders down/back to avoid turning grip work into neck tension.",
        ],
    ),
    "Power": TacticModule(
        "Speed Intent",
        "Power is strength expressed quickly; improve rate of force development.",
        [
            "Use lighter loads with 'move fast' intent while staying controlled.",
            "Progress to low-volume plyometrics only if landings are quiet and joints tolerate it.",
            "Prioritize recovery between high-power sets to preserve speed output.",
        ],
    ),
    "Balance": TacticModule(
        "Progressive Stability",
        "Balance improves through progressive exposure to challenge.",
        [
            "Start with stable single-leg holds, then add head turns, reach patterns, or softer surfaces.",
            "Keep sessions frequent and short rather than occasional and brutal.",
            "If dizziness or pain occurs, regress the challenge and rebuild confidence.",
        ],
    ),
    "Chair Rise": TacticModule(
        "Pattern + Strength",
        "Practice the specific pattern while improving strength to make it easier.",
        [
            "Use repeated sit-to-stand practice with consistent tempo and alignment.",
            "Increase challenge by lowering chair height gradually or adding light load when form stays clean.",
            "Pair with lower-body strength work to raise the 'ceiling' of the pattern.",
        ],
    ),
}

_FALLBACK_STATEMENT = ("Target the limiting capability with progressive practice and loading while keeping "
                       "symptom response calm.")


def _percentile_finding(metric: str, assessment: Optional[MetricAssessment], p: Optional[float],
                        impact: int, leverage: int, why: str) -> Optional[Finding]:
    """Strength-side finding driven by the combined per-metric severity.

    Asymmetry and timed chair tests raise severity on top of the percentile,
    so a strong percentile alone never makes the metric optimal.
    """
    if assessment is None or assessment.status not in (PerformanceStatus.OPTIMAL, PerformanceStatus.SUB_OPTIMAL):
        return None
    sev = assessment.severity
    optimal = assessment.status == PerformanceStatus.OPTIMAL
    if optimal:
        text = f"Optimal (≥75th percentile; {_fmt(p)}th)" if p is not None else assessment.finding
    else:
        text = assessment.finding

    def build() -> Strategy:
        modules = [DEFAULT_TACTICS[metric]] if metric in DEFAULT_TACTICS else []
        return _strategy(f, metric, text, why, DEFAULT_STATEMENTS.get(metric, _FALLBACK_STATEMENT), modules)

    f = Finding(STRONG_AND_STABLE, metric, text, why, not optimal, optimal, sev, impact, leverage, build)
    return f


def _gait_finding(x: PerformanceAgeInputs) -> Optional[Finding]:
    """Only maximal gait speed can trigger; comfortable speed refines ranking."""
    max_p = x.gait_speed_max_percentile
    if max_p is None:
        return None
    comfortable = x.gait_speed_comfortable_percentile
    note = f" (comfortable {_fmt(comfortable)}th percentile)" if comfortable is not None else ""

    if max_p >= OPTIMAL_PERCENTILE:
        return Finding(
            FIT_AND_MOBILE, "Gait Speed (Maximum)",
            f"Optimal (≥75th percentile; {_fmt(max_p)}th){note}",
            "Strong maximal walking speed suggests good mobility reserve and functional resilience.",
            False, True, 0, 3, 2,
        )

    sev = severity_from_percentile(max_p)
    text = f"{severity_label(sev)} deficit (max {_fmt(max_p)}th percentile){note}"
    impact = 4 if comfortable is not None and comfortable < 50 else 3

    def build() -> Strategy:
        return _strategy(
            f, "Gait Speed (Maximum)", text,
            "Maximal walking speed is a direct marker of mobility reserve, the 'extra gear' you rely on "
            "under fatigue, stress, or uneven terrain.",
            "Improve mobility reserve by practicing controlled, faster-paced walking (or equivalent "
            "locomotion) with planned recovery so speed can rise without provoking pain.",
            [TacticModule(
                "Speed Reserve Practice",
                "Building a safe 'speed buffer' improves functional resilience and reduces fall risk.",
                [
                    "Use short bouts of brisk walking where form stays crisp, followed by easy recovery walking.",
                    "Prioritize smooth mechanics (quiet foot strike, stable pelvis, relaxed shoulders) over "
                    "'pushing through.'",
                    "Progress by adding total brisk time or slightly increasing pace only when recovery stays easy.",
                ],
            )],
        )

    f = Finding(
        FIT_AND_MOBILE, "Gait Capacity", text,
        "Lower maximal gait speed reflects reduced mobility reserve, which can increase fall risk and "
        "reduce independence over time.",
        True, False, sev, impact, 2, build,
    )
    return f


def vo2_hrr_status(vo2_p: Optional[float], hrr: Optional[float], triggered: bool) -> str:
    parts = []
    if vo2_p is not None:
        parts.append(f"VO₂ {_fmt(vo2_p)}th percentile")
    if hrr is not None:
        parts.append(f"HRR {_fmt(hrr)} bpm")
    joined = ", ".join(parts) or "VO₂/HRR data provided"
    return f"Sub-optimal: {joined}" if triggered else f"Optimal: {joined}"


def _vo2_strategy(f: Finding, vo2_p: Optional[float], hrr: Optional[float]) -> Strategy:
    status = vo2_hrr_status(vo2_p, hrr, True)
    vo2_optimal = vo2_p is not None and vo2_p >= OPTIMAL_PERCENTILE
    hrr_impaired = hrr is not None and hrr <= HRR_IMPAIRED_BPM

    if vo2_optimal and hrr_impaired:
        return _strategy(
            f, "Heart Rate Recovery", status,
            "Slow recovery can reflect limited autonomic resilience and reduced tolerance for repeated "
            "high-demand efforts.",
            "Maintain aerobic fitness while improving recovery by prioritizing steady aerobic work and using "
            "higher intensity sparingly until recovery improves.",
            [TacticModule(
                "Aerobic Base Priority",
                "Steady aerobic training improves efficiency and often improves recovery capacity.",
                [
                    "Prioritize consistent, moderate efforts you can sustain without 'spiking' effort.",
                    "Track recovery quality (HRR trends, perceived recovery) rather than chasing intensity.",
                    "Re-introduce intervals only when recovery improves and fatigue is stable.",
                ],
            )],
        )

    return _strategy(
        f, "VO₂ Max / Heart Rate Recovery", status,
        "Improving aerobic capacity is one of the highest-leverage levers for healthspan: it supports "
        "metabolic flexibility, cardiovascular resilience, and daily functional reserve.",
        "Enhance aerobic capacity by building a steady aerobic base and layering in carefully dosed "
        "higher-intensity work to raise VO₂ Max while supporting recovery.",
        [
            TacticModule(
                "Build an Aerobic Base",
                "Steady aerobic work builds endurance reserve and improves efficiency.",
                [
                    "Accumulate consistent moderate-intensity work where breathing is controlled and sustainable.",
                    "Progress volume gradually while keeping effort stable.",
                    "Use low-impact modalities if joints are limiting (bike/row/elliptical) to maintain consistency.",
                ],
            ),
            TacticModule(
                "Layer Carefully Dosed Intensity",
                "A small amount of intensity can improve maximal capacity when recovery tolerates it.",
                [
                    "Introduce short, controlled intervals with full recovery between bouts.",
                    "Keep intensity proportional; the goal is adaptation, not exhaustion.",
                    "If recovery worsens, reduce interval frequency or intensity and rebuild base volume.",
                ],
            ),
        ],
    )


def _aerobic_finding(x: PerformanceAgeInputs) -> Optional[Finding]:
    vo2_p = x.vo2_max_percentile
    hrr = x.heart_rate_recovery
    if vo2_p is None and hrr is None:
        return None

    vo2_triggered = vo2_p is not None and vo2_p < OPTIMAL_PERCENTILE
    hrr_triggered = hrr is not None and hrr <= HRR_IMPAIRED_BPM

    if not vo2_triggered and not hrr_triggered:
        if vo2_p is None:
            # A normal HRR alone cannot confirm aerobic fitness either way.
            return None
        return Finding(
            FIT_AND_MOBILE, "Aerobic Fitness (VO₂ Max / HRR)", vo2_hrr_status(vo2_p, hrr, False),
            "Strong aerobic fitness supports cardiovascular resilience, metabolic efficiency, and long-term "
            "functional capacity.",
            False, True, 0, 4, 3,
        )

    sev = severity_from_percentile(vo2_p) if vo2_p is not None else 1
    if hrr_triggered and (vo2_p is None or vo2_p >= 50):
        sev = max(sev, 2)

    f = Finding(
        FIT_AND_MOBILE, "VO₂ Max / Heart Rate Recovery", vo2_hrr_status(vo2_p, hrr, True),
        "Lower aerobic fitness or slow recovery reduces physiologic reserve, making daily tasks harder and "
        "reducing resilience under stress, illness, or injury.",
        True, False, sev, 5, 3,
        lambda: _vo2_strategy(f, vo2_p, hrr),
    )
    return f


def _floor_to_stand_finding(x: PerformanceAgeInputs) -> Optional[Finding]:
    score = parse_first_number(x.floor_to_stand_test)
    if score is None:
        return None
    if score >= FLOOR_TO_STAND_OPTIMAL:
        return Finding(
            STRONG_AND_STABLE, "Floor-to-Stand", f"Optimal (score {_fmt(score)}/10)",
            "Strong floor-to-stand ability reflects mobility, strength, and coordination that protect "
            "independence over time.",
            False, True, 0, 3, 2,
        )

    def build() -> Strategy:
        return _strategy(
            f, "Floor-to-Stand", f"Score {_fmt(score)}/10 (trigger <8/10)",
            "Floor-to-stand is a practical proxy for real-world mobility, strength, and coordination; it is "
            "'fall recovery' capacity.",
            "Improve floor-to-stand capacity by practicing the movement pattern progressively, prioritizing "
            "control and confidence over speed.",
            [TacticModule(
                "Pattern Practice",
                "Practicing the specific transition builds coordination and reduces fear/avoidance.",
                [
                    "Break the movement into steps (kneel, half-kneel, stand) and smooth the transitions.",
                    "Use supports (chair/bench) as needed, reducing reliance as control improves.",
                    "Add light loaded carries or get-ups only once pain-free and consistent.",
                ],
            )],
        )

    f = Finding(
        STRONG_AND_STABLE, "Floor-to-Stand", f"Task deficit (score {_fmt(score)}/10)",
        "Difficulty transitioning from the floor can predict loss of independence and higher fall risk, "
        "especially as demands increase.",
        True, False, 2, 4, 2, build,
    )
    return f


def _posture_finding(x: PerformanceAgeInputs) -> Optional[Finding]:
    cm = parse_first_number(x.posture_assessment)
    if cm is None:
        return None
    if cm <= POSTURE_OFFSET_CM:
        return Finding(
            STRONG_AND_STABLE, "Posture (Tragus-to-Wall)", f"Optimal (≤10 cm; ~{_fmt(cm)} cm)",
            "Good postural alignment supports efficient breathing mechanics and reduces compensatory loading.",
            False, True, 0, 1, 1,
        )

    def build() -> Strategy:
        return _strategy(
            f, "Posture (Tragus-to-Wall)", f"~{_fmt(cm)} cm (trigger >10 cm)",
            "Improving alignment can reduce compensations and unlock more efficient strength and aerobic work.",
            "Improve postural alignment by pairing thoracic mobility with targeted upper-back endurance and "
            "frequent low-dose postural resets.",
            [TacticModule(
                "Mobility + Endurance Pairing",
                "Mobility creates range; endurance 'keeps' it.",
                [
                    "Emphasize thoracic extension and controlled scapular movement within comfortable ranges.",
                    "Build upper-back endurance (light, high-quality reps) to maintain neutral posture longer.",
                    "Use brief posture 'check-ins' during the day to reduce accumulated forward-head drift.",
                ],
            )],
        )

    f = Finding(
        STRONG_AND_STABLE, "Posture (Tragus-to-Wall)", f"Postural offset (>10 cm; ~{_fmt(cm)} cm)",
        "Postural offsets can shift joint loading and contribute to neck/shoulder discomfort, limited "
        "overhead capacity, and inefficient breathing.",
        True, False, 1, 2, 1, build,
    )
    return f


def _mobility_finding(x: PerformanceAgeInputs) -> Optional[Finding]:
    sources = (x.mobility_rom, x.posture_assessment, x.hip_strength, x.calf_strength, x.rotator_cuff_integrity)
    if not any(has_qualitative_issue(s) for s in sources):
        return None

    def build() -> Strategy:
        return _strategy(
            f, "Mobility / ROM", "Pain/restriction reported",
            "Restoring comfortable range can reduce compensations and enable safer strength and aerobic "
            "progression.",
            "Address the limiting joint(s) with pain-free mobility work and gradual loading through end ranges "
            "to rebuild tolerance.",
            [TacticModule(
                "Pain-Free Range Expansion",
                "The goal is to expand comfortable range first, then load it.",
                [
                    "Stay in ranges that feel 'challenging but safe' and avoid sharp pain.",
                    "Progress from isometrics to slow eccentrics to full-range loading as tolerance improves.",
                    "If a movement reliably flares pain, regress the range or reduce load and rebuild.",
                ],
            )],
        )

    f = Finding(
        STRONG_AND_STABLE, "Mobility / ROM", "Reported pain or restricted motion",
        "Mobility restrictions can drive compensations that increase injury risk and limit training options.",
        True, False, 1, 2, 2, build,
    )
    return f


def _trunk_finding(x: PerformanceAgeInputs) -> Optional[Finding]:
    if not has_qualitative_issue(x.trunk_endurance):
        return None

    def build() -> Strategy:
        return _strategy(
            f, "Trunk Endurance", "Reported deficit",
            "Better trunk endurance improves movement efficiency and lowers injury risk as intensity rises.",
            "Build trunk endurance with progressive anti-extension/anti-rotation work and bracing practice "
            "under low fatigue.",
            [TacticModule(
                "Endurance First",
                "Endurance capacity creates a stable platform for strength and gait mechanics.",
                [
                    "Prioritize high-quality holds/reps over intensity; stop before form degrades.",
                    "Train multiple vectors (front/side/rotation) to reduce weak-link compensation.",
                    "Layer trunk control into carries and hinging patterns once baseline endurance improves.",
                ],
            )],
        )

    f = Finding(
        STRONG_AND_STABLE, "Trunk Endurance", "Sub-optimal trunk endurance (reported)",
        "Trunk endurance supports safe force transfer, posture under fatigue, and reduces "
        "compensation-driven overuse.",
        True, False, 1, 2, 2, build,
    )
    return f


def _qualitative_finding(metric: str, text: Optional[str], impact: int, leverage: int, why: str) -> Optional[Finding]:
    if not text or not text.strip():
        return None
    if not has_qualitative_issue(text):
        return Finding(STRONG_AND_STABLE, metric, "Optimal / no issues reported", why,
                       False, True, 0, impact, leverage)

    def build() -> Strategy:
        return _strategy(
            f, metric, "Issue reported", why,
            f"Address the limiting factor in {metric.lower()} with pain-free patterning first, then "
            f"progressive loading once control and tolerance improve.",
            [TacticModule(
                "Stability + Capacity",
                "Improve control first, then add load and volume to make the change durable.",
                [
                    "Start with pain-free isometrics and controlled range work.",
                    "Progress to slow eccentrics and full-range strength when symptoms stay calm.",
                    "Keep the rest of training supportive (avoid movements that repeatedly flare the area).",
                ],
            )],
        )

    f = Finding(STRONG_AND_STABLE, metric, "Pain / restriction / weakness reported", why,
                True, False, 1, impact, leverage, build)
    return f


def collect_findings(x: PerformanceAgeInputs, metrics: Optional[List[MetricAssessment]] = None) -> List[Finding]:
    by_metric = {m.metric: m for m in (metrics if metrics is not None else assess_metrics(x))}
    candidates = [
        _gait_finding(x),
        _aerobic_finding(x),
        _percentile_finding(
            "Quadriceps Strength", by_metric.get("Quadriceps Strength"), x.quadriceps_strength_percentile, 3, 2,
            "Lower quadriceps strength is linked to reduced stair-climbing capacity, slower gait, and greater "
            "fall risk."),
        _percentile_finding(
            "Grip Strength", by_metric.get("Grip Strength"), x.grip_strength_percentile, 2, 2,
            "Grip strength correlates with overall strength and functional independence; deficits often track "
            "broader deconditioning."),
        _percentile_finding(
            "Power", by_metric.get("Power"), x.power_percentile, 2, 2,
            "Power supports rapid balance correction, rising from a chair, and athletic performance; low power "
            "can raise fall risk."),
        _percentile_finding(
            "Balance", by_metric.get("Balance"), x.balance_percentile, 3, 2,
            "Balance is a direct predictor of fall risk and functional confidence, especially under fatigue or "
            "sensory challenge."),
        _percentile_finding(
            "Chair Rise", by_metric.get("Chair Rise"), x.chair_rise_percentile, 3, 2,
            "Chair rise performance reflects lower-body strength and neuromuscular coordination; deficits often "
            "show up as mobility limitations."),
        _floor_to_stand_finding(x),
        _posture_finding(x),
        _mobility_finding(x),
        _trunk_finding(x),
        _qualitative_finding(
            "Hip Strength", x.hip_strength, 2, 2,
            "Hip strength supports gait mechanics, pelvic stability, and knee/low-back loading; deficits can "
            "drive compensation patterns."),
        _qualitative_finding(
            "Calf Strength", x.calf_strength, 2, 1,
            "Calf strength supports propulsion and balance corrections; deficits can reduce walking reserve and "
            "increase overuse risk."),
        _qualitative_finding(
            "Rotator Cuff Integrity", x.rotator_cuff_integrity, 1, 1,
            "Shoulder stability supports pain-free loading and overhead capacity; deficits can limit training "
            "options and daily tasks."),
    ]
    return [f for f in candidates if f is not None]


def reassurance_text(domain: str) -> str:
    if domain == FIT_AND_MOBILE:
        return ("Your mobility reserve appears strong in this domain. Keep doing what you're doing; "
                "consistency is the maintenance dose.")
    return ("This area looks strong for your age and sex. Maintain it with steady training so it stays a "
            "protective asset over time.")


def build_reassurances(optimal: List[Finding]) -> List[Reassurance]:
    """One pick per domain, largest domain first, at most two."""
    groups = {}
    for f in optimal:
        groups.setdefault(f.domain, []).append(f)

    reassurances = []
    for domain, members in sorted(groups.items(), key=lambda item: -len(item[1])):
        if len(reassurances) >= MAX_REASSURANCES:
            break
        pick = sorted(members, key=lambda f: (-f.impact, -f.leverage))[0]
        reassurances.append(Reassurance(
            domain=domain,
            metric=pick.metric,
            status_text=pick.finding,
            text=reassurance_text(domain),
        ))
    return reassurances


def rank_strategies(findings: List[Finding]) -> List[Strategy]:
    triggered = [f for f in findings if f.triggered]
    ranked = sorted(triggered, key=lambda f: (-f.total_score, f.domain, f.metric))
    return [f.build() for f in ranked[:MAX_STRATEGIES]]


def assess_physical_performance(inputs: PerformanceAgeInputs) -> PhysicalPerformanceResult:
    metrics = assess_metrics(inputs)
    findings = collect_findings(inputs, metrics)
    strategies = rank_strategies(findings)
    sub_optimal = {m.metric for m in metrics if m.status == PerformanceStatus.SUB_OPTIMAL}
    reassurances = build_reassurances([f for f in findings if f.optimal and f.metric not in sub_optimal])
    logger.debug(
        f"Physical performance: {len(findings)} findings, {len(strategies)} strategies, "
        f"{len(reassurances)} reassurances"
    )
    return PhysicalPerformanceResult(
        metrics=metrics,
        strategies=strategies,
        reassurances=reassurances,
    )
