"""MetabolicInsightAgent - Metabolic Category and Opportunity Narratives

This agent asks Gemini to prioritise the metabolic findings (biggest
contributors, top interventions, notes) and to write short opportunity
paragraphs. Counts, flags and grades always come from tools/metabolic.py.

Trust Boundary:
    The model may propose a metabolicHealthCategory, but the value that reaches
    the report is whatever enforce_metabolic_category() computes from the
    deterministic counts and flags. A disagreeing proposal is overridden and
    the correction is recorded in the notes.

Fallback:
    Without an API key, or when the model returns malformed JSON, the
    deterministic assessment is returned unchanged.
"""
from typing import Any, Dict, List, Optional
import json
import logging
from dataclasses import asdict, replace

from config.llm import get_gemini_model
from models.enums import MetricGrade
from models.inputs import HealthAgeInputs
from models.results import Intervention, MetabolicAssessment
from tools.metabolic import (
    INTERVENTION_BUCKETS,
    MAX_INTERVENTIONS,
    build_metabolic_assessment,
    enforce_metabolic_category,
)

logger = logging.getLogger(__name__)


def _clean_json(raw: str) -> str:
    return raw.replace("```json", "").replace("```", "").strip()


class MetabolicInsightAgent:
    """
    Metabolic decision-support with a deterministic safety net.

    run() returns a MetabolicAssessment whose category always agrees with
    compute_category_from_counts(). opportunity_paragraphs() returns one
    paragraph per top intervention.
    """

    def __init__(self, model=None, offline: bool = False):
        self.model = None if offline else (model or get_gemini_model())

    def run(self, inputs: HealthAgeInputs) -> MetabolicAssessment:
        assessment = build_metabolic_assessment(inputs)

        if not self.model:
            return assessment

        prompt = self._build_prompt(inputs, assessment)
        try:
            response = self.model.generate_content(
                prompt,
                generation_config={"response_mime_type": "application/json"},
            )
            data = json.loads(_clean_json(response.text))
            merged = self._merge(assessment, data)
            logger.info("MetabolicInsightAgent: merged model prioritisation")
            return enforce_metabolic_category(merged)
        except Exception as e:
            logger.error(f"Metabolic insight generation failed: {e}", exc_info=True)
            return assessment

    def opportunity_paragraphs(self, inputs: HealthAgeInputs, assessment: MetabolicAssessment) -> List[str]:
        if not assessment.top_interventions:
            return []
        if not self.model:
            return self._fallback_paragraphs(assessment)

        prompt = f"""
You are a physician writing short opportunity paragraphs for a metabolic health report.
Never use the dash character in the output.

Hard requirements:
1) Write one short paragraph per opportunity in TopInterventions, in the same order.
2) Each paragraph is 2 to 4 sentences, patient-friendly and clinically accurate.
3) No bullet points or numbering.
4) Do not invent tests or results not present in the data.
5) Keep nutrition guidance high-level (review patterns with a clinician).

Return ONLY JSON: {{"opportunityParagraphs": ["...", "..."]}}

DATA (JSON):
{json.dumps({"metabolicInput": asdict(inputs), "algorithmResult": assessment.to_dict()}, default=str)}
"""
        try:
            response = self.model.generate_content(
                prompt,
                generation_config={"response_mime_type": "application/json"},
            )
            data = json.loads(_clean_json(response.text))
            paragraphs = [str(p).strip() for p in data.get("opportunityParagraphs") or [] if str(p).strip()]
            if not paragraphs:
                return self._fallback_paragraphs(assessment)
            return paragraphs[:MAX_INTERVENTIONS]
        except Exception as e:
            logger.error(f"Metabolic opportunity paragraphs failed: {e}", exc_info=True)
            return self._fallback_paragraphs(assessment)

    def _build_prompt(self, inputs: HealthAgeInputs, assessment: MetabolicAssessment) -> str:
        grades = {k: g.value for k, g in assessment.grades.items()}
        return f"""
You are a metabolic health decision-support and prioritization engine.
Return ONLY valid JSON (no prose, no markdown). Never use the dash character in the output.

The derived metrics, grades, counts and flags below are already computed. Do not change them.

DERIVED METRICS: {json.dumps(assessment.derived_metrics)}
GRADES: {json.dumps(grades)}
COUNTS: {json.dumps(assessment.counts.to_dict())}
FLAGS: {json.dumps(assessment.flags.to_dict())}
SEX: {inputs.sex or "Unknown"}

Category rules (STRICT):
- Optimal Metabolism if nonOptimalCount == 0 OR isolatedA1cElevation
- Mild Metabolic Dysfunction if nonOptimalCount < 3 AND moderateCount == 0 AND severeCount == 0
- Metabolic Dysfunction otherwise

TopInterventions: up to 3, each with a bucket from {list(INTERVENTION_BUCKETS)}.
Only recommend actions tied to the graded metrics. Do not prescribe specific diets.

Return JSON with keys:
{{
  "metabolicHealthCategory": "...",
  "topInterventions": [{{"bucket": "...", "recommendationText": "...", "priority": 1}}],
  "optionalProgramsOffered": ["..."],
  "notes": ["..."]
}}
"""

    @staticmethod
    def _merge(assessment: MetabolicAssessment, data: Dict[str, Any]) -> MetabolicAssessment:
        """Take the model's prose fields; keep every computed number."""
        interventions = []
        for item in data.get("topInterventions") or []:
            bucket = str(item.get("bucket", "")).strip()
            text = str(item.get("recommendationText", "")).strip()
            if bucket not in INTERVENTION_BUCKETS or not text:
                logger.warning(f"Dropping intervention with unknown bucket or empty text: {bucket!r}")
                continue
            interventions.append(Intervention(bucket=bucket, recommendation_text=text,
                                              priority=len(interventions) + 1))
            if len(interventions) == MAX_INTERVENTIONS:
                break

        category: Optional[str] = data.get("metabolicHealthCategory")
        return replace(
            assessment,
            metabolic_health_category=str(category) if category else assessment.metabolic_health_category,
            top_interventions=interventions or assessment.top_interventions,
            optional_programs_offered=[str(p) for p in data.get("optionalProgramsOffered") or []],
            notes=list(assessment.notes) + [str(n) for n in data.get("notes") or []],
        )

    @staticmethod
    def _fallback_paragraphs(assessment: MetabolicAssessment) -> List[str]:
        contributors = ", ".join(
            c.metric_name for c in assessment.biggest_contributors
            if c.severity != MetricGrade.OPTIMAL
        )
        paragraphs = []
        for intervention in assessment.top_interventions:
            text = intervention.recommendation_text
            if contributors:
                text = f"{text} This is most relevant to your results for {contributors}."
            paragraphs.append(text)
        return paragraphs
