"""Integration Tests for the report pipeline, narratives and CLI.

Narratives run offline or against a fake model, so no API key is needed.

Run with: pytest tests/ -v
"""
import json
from types import SimpleNamespace

import pytest

from agents.narrative_agent import NarrativeAgent
from core.errors import InvalidInput
from core.observability import Tracer, get_metrics_summary, metrics
from models.inputs import ReportRequest
from report_main import main
from services.report_service import ReportService, non_optimal_areas

SAMPLE_REQUEST = {
    "phenoAge": {
        "chronologicalAgeYears": 50,
        "albuminGDl": 4.5,
        "creatinineMgDl": 0.9,
        "glucoseMgDl": 90,
        "crpMgL": 1.0,
        "lymphocytePercent": 30,
        "mcvFl": 90,
        "rdwPercent": 13,
        "alkalinePhosphataseUL": 70,
        "wbc10e3PerUl": 6,
    },
    "healthAge": {
        "sex": "male",
        "bodyFatPercentile": 30,
        "systolicBP": 120,
        "diastolicBP": 75,
        "nonHdlMgDl": 95,
        "nonHdlRiskGroup": "Low",
        "fastingInsulin_uIU_mL": 15,
        "fastingGlucose_mg_dL": 100,
        "visceralFatPercentile": 80,
        "totalLeanMass": 60,
        "totalFatMass": 15,
    },
    "performanceAge": {
        "vo2MaxPercentile": 20,
        "balancePercentile": 30,
        "gripStrengthPercentile": 80,
        "heartRateRecovery": 25,
        "floorToStandTest": "6/10",
    },
    "brainHealth": {
        "cognitiveFunction": 70,
        "promisDepression8a": 45,
        "promisAnxiety8a": 48,
        "briefResilienceScale": 27,
        "lifeOrientationTestR": 20,
        "meaningInLifeQuestionnaire": 60,
        "flourishingScale": 52,
        "promisSleepDisturbance": 50,
        "perceivedStressScore": 20,
    },
    "cardiology": {
        "cacScore": 50,
        "coronaryPlaqueSeverity": "mild",
        "specificCardiologyInstructions": "Repeat lipid panel in 3 months.",
    },
    "toxinsLifestyle": {
        "smoking": "current",
        "bloodLeadLevel": 4.0,
    },
    "clinicalData": {
        "ldl": 120,
        "lipidPanel": {"apoB": 90},
    },
}


@pytest.fixture
def request_model():
    return ReportRequest.from_dict(SAMPLE_REQUEST)


@pytest.fixture
def service():
    return ReportService(enable_narratives=False, cardiology_version="v3_2")


def _domain(report, pillar, domain):
    for p in report["pillars"]:
        if p["pillar"] == pillar:
            for d in p["domains"]:
                if d["domain"] == domain:
                    return d
    raise KeyError(f"{pillar}/{domain}")


class TestRequestParsing:
    """Request JSON binding."""

    def test_camel_case_keys(self, request_model):
        assert request_model.pheno_age.alkaline_phosphatase_u_l == 70
        assert request_model.health_age.systolic_bp == 120
        assert request_model.health_age.fasting_insulin_uiu_ml == 15
        assert request_model.cardiology.coronary_plaque_severity == "mild"
        assert request_model.clinical_data["lipidPanel"] == {"apoB": 90}

    def test_missing_cardiology_section(self):
        data = dict(SAMPLE_REQUEST)
        del data["cardiology"]
        assert ReportRequest.from_dict(data).cardiology is None

    def test_string_numbers_are_coerced(self):
        request = ReportRequest.from_dict({"healthAge": {"bodyFatPercentile": "42%", "unknownField": 1}})
        assert request.health_age.body_fat_percentile == 42.0


class TestReportService:
    """End-to-end report generation with deterministic narratives."""

    def test_report_shape(self, service, request_model):
        report = service.generate(request_model)

        assert report["meta"]["schema_version"] == "report-json-v3"
        assert report["meta"]["model_versions"]["cardiology"] == "v3_2"
        assert report["chronological_age_years"] == 50
        assert [p["pillar"] for p in report["pillars"]] == [
            "avoiddisease", "strongandindepedent", "mentallysharp",
        ]
        json.dumps(report, default=str)

    def test_heart_score_includes_modifiable_part(self, service, request_model):
        report = service.generate(request_model)
        cardiology = _domain(report, "avoiddisease", "cardiology")["assessment"]
        assert cardiology["risk_category"] == "MILD"
        assert report["health_scores"]["heart_score"] == 55
        assert "Clinician instructions: Repeat lipid panel" in cardiology["interpretation"]

    def test_metabolic_domain(self, service, request_model):
        report = service.generate(request_model)
        metabolic = _domain(report, "avoiddisease", "metabolichealth")["assessment"]
        assert metabolic["metabolic_health_category"] == "Metabolic Dysfunction"
        assert metabolic["opportunity_paragraphs"]

    def test_toxins_ranked(self, service, request_model):
        report = service.generate(request_model)
        toxins = _domain(report, "avoiddisease", "toxinsandlifestyle")["assessment"]
        assert [o["key"] for o in toxins["opportunities"]] == ["lead", "tobacco-nicotine"]

    def test_clinical_data_flattened(self, service, request_model):
        report = service.generate(request_model)
        tests = {t["test"] for t in _domain(report, "avoiddisease", "clinical")["tests"]}
        assert "Ldl" in tests
        assert "Lipid Panel Apo B" in tests

    def test_strategies_split_by_domain(self, service, request_model):
        report = service.generate(request_model)
        fitness = _domain(report, "strongandindepedent", "fitnessandmobility")["assessment"]
        strength = _domain(report, "strongandindepedent", "strengthandstability")["assessment"]
        assert [s["trigger_metric"] for s in fitness["strategies"]] == ["VO₂ Max / Heart Rate Recovery"]
        assert [s["trigger_metric"] for s in strength["strategies"]] == ["Floor-to-Stand", "Balance"]
        assert fitness["narrative"].startswith("Performance age is")

    def test_improvement_paragraph(self, service, request_model):
        report = service.generate(request_model)
        assert report["improvement_paragraph"].startswith("The areas with the most room for improvement are")

    def test_non_optimal_areas(self, service, request_model):
        areas = non_optimal_areas(service.compute(request_model))
        assert "metabolic health" in areas
        assert "toxins and lifestyle exposures" in areas
        assert "heart and blood vessel health" in areas
        assert "social connection" not in areas

    def test_without_cardiology(self, service):
        data = dict(SAMPLE_REQUEST)
        del data["cardiology"]
        report = service.generate(ReportRequest.from_dict(data))
        assert report["health_scores"]["heart_score"] is None
        assert _domain(report, "avoiddisease", "cardiology")["assessment"]["risk_category"] is None

    def test_invalid_input_propagates(self, service):
        data = dict(SAMPLE_REQUEST, phenoAge=dict(SAMPLE_REQUEST["phenoAge"], crpMgL=None))
        with pytest.raises(InvalidInput) as exc:
            service.generate(ReportRequest.from_dict(data))
        assert exc.value.field == "crp_mg_l"


class FakeModel:
    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error

    def generate_content(self, prompt, generation_config=None):
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


class TestNarrativeAgent:
    """Model prose is cleaned; failures fall back to deterministic text."""

    def test_dashes_removed(self):
        agent = NarrativeAgent(model=FakeModel("Strong result — keep going."))
        assert agent.improvement_paragraph({"non_optimal_areas": []}) == "Strong result, keep going."

    def test_model_error_falls_back(self):
        agent = NarrativeAgent(model=FakeModel(error=RuntimeError("quota exceeded")))
        text = agent.improvement_paragraph({"non_optimal_areas": ["metabolic health"]})
        assert "metabolic health" in text

    def test_empty_response_falls_back(self):
        agent = NarrativeAgent(model=FakeModel("   "))
        assert agent.improvement_paragraph({}).startswith("All assessed areas")


class TestCli:
    """report_main entry point."""

    def test_writes_report(self, tmp_path):
        request_path = tmp_path / "request.json"
        out_path = tmp_path / "report.json"
        request_path.write_text(json.dumps(SAMPLE_REQUEST), encoding="utf-8")

        code = main([str(request_path), "--no-narratives", "--out", str(out_path)])

        assert code == 0
        report = json.loads(out_path.read_text(encoding="utf-8"))
        assert report["meta"]["schema_version"] == "report-json-v3"

    def test_invalid_input_exit_code(self, tmp_path, capsys):
        data = dict(SAMPLE_REQUEST, phenoAge={"chronologicalAgeYears": 50})
        request_path = tmp_path / "request.json"
        request_path.write_text(json.dumps(data), encoding="utf-8")

        assert main([str(request_path), "--no-narratives"]) == 2
        assert "Invalid input" in capsys.readouterr().err


class TestObservability:
    """Component tracing feeds the metrics summary."""

    def test_failed_component_is_recorded(self):
        metrics.reset()
        with pytest.raises(InvalidInput):
            with Tracer("PhenoAge"):
                raise InvalidInput("crp_mg_l", "missing")
        with Tracer("HealthAge"):
            pass

        summary = get_metrics_summary()
        assert summary["total_calls"] == 2
        assert summary["failed_calls"] == 1
        assert set(summary["component_avg_latency_ms"]) == {"PhenoAge", "HealthAge"}
