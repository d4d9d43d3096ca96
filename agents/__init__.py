"""Healthspan Agent Module.

Gemini-backed collaborators that write report prose around the computed
results. Neither agent can change a score or category.

Agents:
    MetabolicInsightAgent: Metabolic prioritisation with category enforcement.
    NarrativeAgent: Cardiology, physical performance and improvement prose.
"""
from agents.metabolic_agent import MetabolicInsightAgent
from agents.narrative_agent import NarrativeAgent

__all__ = [
    "MetabolicInsightAgent",
    "NarrativeAgent",
]
