"""Result records returned by the scoring tools.

Results are constructed once per calculation and never mutated. Each one
carries the composite score(s), the category/status vocabulary used in the
report, and enough factor-level detail to rebuild the number from its parts.
"""
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from models.enums import (
    BaselineCategory, EvidenceClass, MetricGrade, PerformanceStatus, Trend,
)


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value if not isinstance(value, BaselineCategory) else value.label
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return value


class _ToDictMixin:
    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


# ============================================================================
# AGE MODELS
# ============================================================================

@dataclass(frozen=True)
class FactorDetail(_ToDictMixin):
    """One weighted factor: contribution_years = percent_of_age * chronological age."""
    percent_of_age: float
    contribution_years: float


@dataclass(frozen=True)
class PhenoAgeResult(_ToDictMixin):
    xb: float
    mortality_10yr: float
    phenotypic_age_years: float


@dataclass(frozen=True)
class HealthAgeResult(_ToDictMixin):
    sum_contribution_years: float
    health_age_uncapped: float
    contribution_years_scaled: float
    health_age_final: float
    delta_vs_chrono_years: float
    delta_vs_chrono_percent: float
    factors: Dict[str, FactorDetail] = field(default_factory=dict)


@dataclass(frozen=True)
class PerformanceAgeResult(_ToDictMixin):
    sum_contribution_years: float
    contribution_years_scaled: float
    performance_age: float
    delta_vs_age_years: float
    delta_vs_age_percent: float
    factors: Dict[str, FactorDetail] = field(default_factory=dict)
    # Informational pass-through measures
    informational: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# BRAIN & WELLBEING
# ============================================================================

@dataclass(frozen=True)
class BrainHealthResult(_ToDictMixin):
    total_score: float
    level: str
    subscores: Dict[str, float]
    weighted_points: Dict[str, float]
    confirm_evaluate: bool
    confirm_reason: Optional[str]
    cognitive_percentile_capped: Optional[float]
    cognitive_percentile_prior_capped: Optional[float]
    cognitive_trend: Trend
    missing_inputs: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class WellbeingOpportunity(_ToDictMixin):
    domain: str
    why_it_matters: str
    opportunity: str


@dataclass(frozen=True)
class MindsetDomain(_ToDictMixin):
    domain: str
    score: Optional[float]
    status: str
    trend: Optional[Trend] = None


@dataclass(frozen=True)
class LongevityMindsetResult(_ToDictMixin):
    overall_status: str
    summary: str
    domains: List[MindsetDomain]
    opportunities: List[WellbeingOpportunity] = field(default_factory=list)


@dataclass(frozen=True)
class EmotionalDomain(_ToDictMixin):
    status: str
    trend: Trend
    current_score: Optional[float]
    prior_score: Optional[float]


@dataclass(frozen=True)
class MentalWellnessResult(_ToDictMixin):
    overall_status: str
    summary: str
    depression: EmotionalDomain
    anxiety: EmotionalDomain
    stress: EmotionalDomain
    triggers: Dict[str, bool]
    assessment_date: Optional[str] = None


@dataclass(frozen=True)
class BeConnectedResult(_ToDictMixin):
    flourishing_score: Optional[float]
    flourishing_prior: Optional[float]
    status: str
    trend: Optional[Trend]
    summary: str
    opportunities: List[WellbeingOpportunity] = field(default_factory=list)


@dataclass(frozen=True)
class ProtectBrainResult(_ToDictMixin):
    cognitive_percentile: Optional[float]
    cognitive_percentile_prior: Optional[float]
    cognitive_classification: str
    cognitive_trend: Trend
    significant_decline: bool
    confirm_evaluate: bool
    confirm_reason: Optional[str]
    apoe4_status: str
    family_history_dementia: str
    dementia_onset_age: Optional[float]
    risk_category: str
    triggers: Dict[str, bool]
    sources: Dict[str, Any] = field(default_factory=dict)


# ============================================================================
# CARDIOLOGY
# ============================================================================

@dataclass(frozen=True)
class CardiologyResult(_ToDictMixin):
    model_version: str
    risk_category: str                      # LOW | MILD | MODERATE | SEVERE
    triggered_by_clinical_history: bool
    triggered_by_severe_finding: bool
    triggered_by_moderate_finding: bool
    triggered_by_mild_finding: bool
    risk_explanation: str

    baseline_heart_health_score: Optional[int] = None
    plaque_score: Optional[int] = None
    cardiac_physiology_score: Optional[int] = None
    physiology_subscores: Dict[str, int] = field(default_factory=dict)
    baseline_risk_category: Optional[BaselineCategory] = None
    score_category: Optional[BaselineCategory] = None
    plaque_min_category: Optional[BaselineCategory] = None
    ef_min_category: Optional[BaselineCategory] = None
    vascular_health_status: Optional[str] = None
    cardiac_physiology_status: Optional[str] = None
    modifiable_heart_health_score: Optional[float] = None
    heart_health_score: Optional[float] = None
    heart_health_score_is_partial: bool = True


# ============================================================================
# METABOLIC
# ============================================================================

@dataclass(frozen=True)
class MetabolicCounts(_ToDictMixin):
    mild_count: int = 0
    moderate_count: int = 0
    severe_count: int = 0
    non_optimal_count: int = 0


@dataclass(frozen=True)
class MetabolicFlags(_ToDictMixin):
    isolated_a1c_elevation: bool = False
    isolated_insulin_resistance_marker: bool = False


@dataclass(frozen=True)
class BiggestContributor(_ToDictMixin):
    metric_name: str
    severity: MetricGrade
    mechanism_label: str


@dataclass(frozen=True)
class Intervention(_ToDictMixin):
    bucket: str
    recommendation_text: str
    priority: int


@dataclass(frozen=True)
class MetabolicAssessment(_ToDictMixin):
    metabolic_health_category: str
    derived_metrics: Dict[str, Optional[float]]
    grades: Dict[str, MetricGrade]
    counts: MetabolicCounts
    flags: MetabolicFlags
    biggest_contributors: List[BiggestContributor] = field(default_factory=list)
    top_interventions: List[Intervention] = field(default_factory=list)
    optional_programs_offered: List[str] = field(default_factory=list)
    opportunity_paragraphs: List[str] = field(default_factory=list)
    notes: List[str] = field(default_factory=list)


# ============================================================================
# TOXINS
# ============================================================================

@dataclass(frozen=True)
class Exposure(_ToDictMixin):
    key: str
    label: str
    evidence_class: EvidenceClass
    detail: str
    amplified: bool = False


@dataclass(frozen=True)
class Opportunity(_ToDictMixin):
    key: str
    label: str
    narrative: str
    rank: int
    next_steps: List[str] = field(default_factory=list)
    escalation: List[str] = field(default_factory=list)
    note: Optional[str] = None


@dataclass(frozen=True)
class ToxinsResult(_ToDictMixin):
    overall_status: str
    summary: str
    exposures: List[Exposure]
    opportunities: List[Opportunity]
    stress_amplified: bool


# ============================================================================
# PHYSICAL PERFORMANCE
# ============================================================================

@dataclass(frozen=True)
class MetricAssessment(_ToDictMixin):
    metric: str
    domain: str
    status: PerformanceStatus
    severity: int                  # 0 Optimal .. 3 Severe
    finding: str
    reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class TacticModule(_ToDictMixin):
    title: str
    rationale: str
    tactics: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Strategy(_ToDictMixin):
    domain: str
    trigger_metric: str
    status_text: str
    why_it_matters: str
    statement: str
    severity: int
    impact: int
    leverage: int
    modules: List[TacticModule] = field(default_factory=list)

    @property
    def total_score(self) -> int:
        return self.severity * 100 + self.impact * 10 + self.leverage


@dataclass(frozen=True)
class Reassurance(_ToDictMixin):
    domain: str
    metric: str
    status_text: str
    text: str
    status: str = "Optimal"


@dataclass(frozen=True)
class PhysicalPerformanceResult(_ToDictMixin):
    metrics: List[MetricAssessment]
    strategies: List[Strategy]
    reassurances: List[Reassurance] = field(default_factory=list)


# ============================================================================
# FULL REPORT
# ============================================================================

@dataclass(frozen=True)
class ReportNarratives(_ToDictMixin):
    cardiology_interpretation: str = ""
    fitness_mobility_assessment: str = ""
    strength_stability_assessment: str = ""
    improvement_paragraph: str = ""


@dataclass(frozen=True)
class ReportComponents:
    """Every component result for one request, in pipeline order."""
    pheno_age: PhenoAgeResult
    health_age: HealthAgeResult
    performance_age: PerformanceAgeResult
    brain_health: BrainHealthResult
    longevity_mindset: LongevityMindsetResult
    mental_wellness: MentalWellnessResult
    be_connected: BeConnectedResult
    cardiology: Optional[CardiologyResult]
    metabolic: MetabolicAssessment
    toxins: ToxinsResult
    physical_performance: PhysicalPerformanceResult
    protect_brain: ProtectBrainResult
    model_versions: Dict[str, str] = field(default_factory=dict)
