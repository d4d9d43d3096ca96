"""Report Service - Full Healthspan Report Pipeline

Runs every scoring component for one ReportRequest, then the narrative
collaborators, then assembles the report JSON.

Pipeline (each step traced):
    PhenoAge → HealthAge → PerformanceAge → BrainHealth → Wellbeing
    → Cardiology → Metabolic → Toxins → PhysicalPerformance → ProtectBrain
    → Narratives → Report JSON

PhenoAge output feeds HealthAge: the computed phenotypic age always replaces
any value supplied in the HealthAge section. InvalidInput from any component
is logged and re-raised; narrative failures never are (agents fall back to
deterministic text).
"""
import logging
from dataclasses import replace
from typing import Any, Dict, List, Optional

from config import settings
from core.errors import InvalidInput
from core.observability import Tracer, trace_component
from agents.metabolic_agent import MetabolicInsightAgent
from agents.narrative_agent import NarrativeAgent
from models.inputs import ReportRequest
from models.results import ReportComponents, ReportNarratives
from services.report_builder import build_report_json
from tools import brain_health, health_age, performance_age, phenoage
from tools.cardiology import calculate_cardiology, calculate_modifiable_score
from tools.metabolic import OPTIMAL_METABOLISM
from tools.physical_performance import assess_physical_performance
from tools.protect_brain import assess_protect_brain
from tools.toxins import evaluate_toxins
from tools.wellbeing import (
    OPPORTUNITIES,
    calculate_be_connected,
    calculate_longevity_mindset,
    calculate_mental_wellness,
)

logger = logging.getLogger(__name__)


class ReportService:
    """
    Orchestrates one report end to end.

    Agents are created lazily on first use. With narratives disabled they run
    offline, so the report carries deterministic text only and the Gemini
    client is never configured.
    """

    def __init__(self, metabolic_agent: Optional[MetabolicInsightAgent] = None,
                 narrative_agent: Optional[NarrativeAgent] = None,
                 enable_narratives: Optional[bool] = None,
                 cardiology_version: Optional[str] = None):
        self._metabolic_agent = metabolic_agent
        self._narrative_agent = narrative_agent
        self.enable_narratives = settings.ENABLE_NARRATIVES if enable_narratives is None else enable_narratives
        self.cardiology_version = cardiology_version or settings.CARDIOLOGY_MODEL_VERSION

    @property
    def metabolic_agent(self) -> MetabolicInsightAgent:
        if self._metabolic_agent is None:
            self._metabolic_agent = MetabolicInsightAgent(offline=not self.enable_narratives)
        return self._metabolic_agent

    @property
    def narrative_agent(self) -> NarrativeAgent:
        if self._narrative_agent is None:
            self._narrative_agent = NarrativeAgent(offline=not self.enable_narratives)
        return self._narrative_agent

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, request: ReportRequest) -> Dict[str, Any]:
        """Compute all components, write narratives, return the report JSON."""
        components = self.compute(request)
        components = self.add_metabolic_paragraphs(request, components)
        narratives = self.write_narratives(request, components)
        with Tracer("ReportBuilder"):
            return build_report_json(request, components, narratives)

    def compute(self, request: ReportRequest) -> ReportComponents:
        """Run the scoring pipeline. Raises InvalidInput on bad inputs."""
        try:
            return self._compute(request)
        except InvalidInput as e:
            logger.error(f"Report aborted: invalid input for {e.field}: {e}")
            raise

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    def _compute(self, request: ReportRequest) -> ReportComponents:
        chrono = request.pheno_age.chronological_age_years

        with Tracer("PhenoAge"):
            pheno = phenoage.calculate_pheno_age(request.pheno_age)

        with Tracer("HealthAge"):
            health_inputs = replace(
                request.health_age,
                phenotypic_age_years=pheno.phenotypic_age_years,
                chronological_age_years=_first(request.health_age.chronological_age_years, chrono),
            )
            health = health_age.calculate_health_age(health_inputs)

        with Tracer("PerformanceAge"):
            performance_inputs = replace(
                request.performance_age,
                chronological_age_years=_first(request.performance_age.chronological_age_years, chrono),
            )
            performance = performance_age.calculate_performance_age(performance_inputs)

        with Tracer("BrainHealth"):
            brain = brain_health.calculate_brain_health(request.brain_health)

        with Tracer("Wellbeing"):
            mindset = calculate_longevity_mindset(request.brain_health)
            mental = calculate_mental_wellness(request.brain_health)
            connected = calculate_be_connected(request.brain_health)

        cardiology = None
        if request.cardiology is not None:
            with Tracer("Cardiology"):
                modifiable = calculate_modifiable_score(
                    request.health_age, request.performance_age, request.pheno_age, request.cardiology,
                )
                cardiology = calculate_cardiology(request.cardiology, self.cardiology_version, modifiable)
        else:
            logger.info("No cardiology section supplied; skipping cardiology risk")

        with Tracer("Metabolic"):
            metabolic = self.metabolic_agent.run(health_inputs)

        with Tracer("Toxins"):
            toxins = evaluate_toxins(request.toxins_lifestyle, request.brain_health.perceived_stress_score)

        with Tracer("PhysicalPerformance"):
            physical = assess_physical_performance(performance_inputs)

        with Tracer("ProtectBrain"):
            protect = assess_protect_brain(request, brain, performance, cardiology, toxins)

        return ReportComponents(
            pheno_age=pheno,
            health_age=health,
            performance_age=performance,
            brain_health=brain,
            longevity_mindset=mindset,
            mental_wellness=mental,
            be_connected=connected,
            cardiology=cardiology,
            metabolic=metabolic,
            toxins=toxins,
            physical_performance=physical,
            protect_brain=protect,
            model_versions={
                "phenoage": phenoage.MODEL_VERSION,
                "healthage": health_age.MODEL_VERSION,
                "performanceage": performance_age.MODEL_VERSION,
                "brainhealth": brain_health.MODEL_VERSION,
                "cardiology": cardiology.model_version if cardiology else self.cardiology_version,
            },
        )

    @trace_component("MetabolicNarrative")
    def add_metabolic_paragraphs(self, request: ReportRequest, components: ReportComponents) -> ReportComponents:
        paragraphs = self.metabolic_agent.opportunity_paragraphs(request.health_age, components.metabolic)
        return replace(components, metabolic=replace(components.metabolic, opportunity_paragraphs=paragraphs))

    @trace_component("Narratives")
    def write_narratives(self, request: ReportRequest, components: ReportComponents) -> ReportNarratives:
        agent = self.narrative_agent
        cardiology_text = (
            agent.cardiology_interpretation(request, components.cardiology)
            if components.cardiology else ""
        )
        fitness = agent.fitness_mobility_assessment(
            request, components.performance_age, components.physical_performance)
        strength = agent.strength_stability_assessment(
            request, components.performance_age, components.physical_performance)
        improvement = agent.improvement_paragraph(improvement_summary(request, components))

        return ReportNarratives(
            cardiology_interpretation=cardiology_text,
            fitness_mobility_assessment=fitness,
            strength_stability_assessment=strength,
            improvement_paragraph=improvement,
        )


def _first(*values):
    for v in values:
        if v is not None:
            return v
    return None


def non_optimal_areas(components: ReportComponents) -> List[str]:
    """Areas the improvement paragraph should focus on, in report order."""
    areas = []
    if components.health_age.delta_vs_chrono_years > 0:
        areas.append("health age")
    if components.performance_age.delta_vs_age_years > 0:
        areas.append("physical performance")
    if components.cardiology and components.cardiology.risk_category.upper() != "LOW":
        areas.append("heart and blood vessel health")
    if components.metabolic.metabolic_health_category != OPTIMAL_METABOLISM:
        areas.append("metabolic health")
    if components.toxins.exposures:
        areas.append("toxins and lifestyle exposures")
    if components.mental_wellness.overall_status == OPPORTUNITIES:
        areas.append("mental and emotional wellness")
    if components.be_connected.status == OPPORTUNITIES:
        areas.append("social connection")
    if components.longevity_mindset.overall_status == OPPORTUNITIES:
        areas.append("longevity mindset")
    if components.protect_brain.triggers.get("improve_cognitive_function"):
        areas.append("cognitive function")
    return areas


def improvement_summary(request: ReportRequest, components: ReportComponents) -> Dict[str, Any]:
    return {
        "chronological_age_years": request.pheno_age.chronological_age_years,
        "phenotypic_age_years": components.pheno_age.phenotypic_age_years,
        "mortality_10yr": components.pheno_age.mortality_10yr,
        "health_age_years": components.health_age.health_age_final,
        "health_delta_years": components.health_age.delta_vs_chrono_years,
        "performance_age_years": components.performance_age.performance_age,
        "performance_delta_years": components.performance_age.delta_vs_age_years,
        "brain_score": components.brain_health.total_score,
        "brain_level": components.brain_health.level,
        "non_optimal_areas": non_optimal_areas(components),
    }
