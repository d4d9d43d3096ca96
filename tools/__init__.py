"""Healthspan Tools Module.

Deterministic scoring and classification tools. Nothing here talks to a
language model; every number in the report comes from these functions.

Tools:
    calculate_pheno_age: Levine 2018 phenotypic age.
    calculate_health_age: Body composition and lab driven HealthAge.
    calculate_performance_age: Fitness percentile driven PerformanceAge.
    calculate_brain_health: Weighted brain health score and level.
    calculate_cardiology: Cardiology risk category (v3.2 or v1 rules).
    calculate_modifiable_score: Modifiable heart health score (0-70).
    build_metabolic_assessment: Graded metabolic category with overrides.
    evaluate_toxins: Toxin and lifestyle exposures with ranked opportunities.
    assess_physical_performance: Per-metric status plus ranked strategies.
    assess_protect_brain: Cognitive trend and brain risk triggers.
"""
from tools.phenoage import calculate_pheno_age
from tools.health_age import calculate_health_age
from tools.performance_age import calculate_performance_age
from tools.brain_health import calculate_brain_health
from tools.cardiology import calculate_cardiology, calculate_modifiable_score
from tools.metabolic import build_metabolic_assessment, enforce_metabolic_category
from tools.toxins import evaluate_toxins
from tools.physical_performance import assess_physical_performance
from tools.protect_brain import assess_protect_brain
from tools.wellbeing import (
    calculate_longevity_mindset,
    calculate_mental_wellness,
    calculate_be_connected,
)

__all__ = [
    "calculate_pheno_age",
    "calculate_health_age",
    "calculate_performance_age",
    "calculate_brain_health",
    "calculate_cardiology",
    "calculate_modifiable_score",
    "build_metabolic_assessment",
    "enforce_metabolic_category",
    "evaluate_toxins",
    "assess_physical_performance",
    "assess_protect_brain",
    "calculate_longevity_mindset",
    "calculate_mental_wellness",
    "calculate_be_connected",
]
