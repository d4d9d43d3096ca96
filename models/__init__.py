"""Healthspan Data Models.

Frozen dataclasses for report inputs and component results.

Models:
    ReportRequest: All input sections for one report.
    PhenoAgeInputs, HealthAgeInputs, PerformanceAgeInputs: Age model inputs.
    BrainHealthInputs, CardiologyInputs, ToxinsInputs: Domain inputs.
    *Result: Output of each scoring component.
"""
from models.inputs import (
    ReportRequest,
    PhenoAgeInputs,
    HealthAgeInputs,
    PerformanceAgeInputs,
    BrainHealthInputs,
    CardiologyInputs,
    ToxinsInputs,
)
from models.results import (
    PhenoAgeResult,
    HealthAgeResult,
    PerformanceAgeResult,
    BrainHealthResult,
    CardiologyResult,
    MetabolicAssessment,
    ToxinsResult,
    PhysicalPerformanceResult,
    ProtectBrainResult,
)

__all__ = [
    "ReportRequest",
    "PhenoAgeInputs",
    "HealthAgeInputs",
    "PerformanceAgeInputs",
    "BrainHealthInputs",
    "CardiologyInputs",
    "ToxinsInputs",
    "PhenoAgeResult",
    "HealthAgeResult",
    "PerformanceAgeResult",
    "BrainHealthResult",
    "CardiologyResult",
    "MetabolicAssessment",
    "ToxinsResult",
    "PhysicalPerformanceResult",
    "ProtectBrainResult",
]
