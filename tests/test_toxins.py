"""Unit Tests for the toxins & lifestyle evaluator.

Run with: pytest tests/ -v
"""
from models.enums import EvidenceClass
from models.inputs import ToxinsInputs
from tools.toxins import STATUS_CLEAR, STATUS_EXPOSED, evaluate_toxins, is_screen_time_exposure


def _keys(result):
    return [o.key for o in result.opportunities]


class TestLabExposures:
    """Lab values must be strictly above the reference limit."""

    def test_lead_at_limit_is_clear(self):
        result = evaluate_toxins(ToxinsInputs(blood_lead_level=3.5))
        assert result.exposures == []
        assert result.overall_status == STATUS_CLEAR

    def test_lead_above_limit(self):
        result = evaluate_toxins(ToxinsInputs(blood_lead_level=3.51))
        assert _keys(result) == ["lead"]
        assert result.exposures[0].evidence_class == EvidenceClass.LAB
        assert result.opportunities[0].next_steps

    def test_mercury_carries_note(self):
        result = evaluate_toxins(ToxinsInputs(blood_mercury=12))
        assert result.opportunities[0].note.startswith("Note:")


class TestSelfReport:
    """Objective and subjective answers."""

    def test_never_smoker(self):
        assert evaluate_toxins(ToxinsInputs(smoking="never")).exposures == []

    def test_alcohol_free_text_uses_largest_number(self):
        assert evaluate_toxins(ToxinsInputs(alcohol_intake="4-6 drinks per week")).exposures == []
        assert _keys(evaluate_toxins(ToxinsInputs(alcohol_intake="8-10 drinks"))) == ["alcohol"]

    def test_structured_alcohol_wins(self):
        result = evaluate_toxins(ToxinsInputs(alcohol_drinks_per_week=7, alcohol_intake="12"))
        assert result.exposures == []

    def test_screen_time(self):
        assert is_screen_time_exposure("6")
        assert not is_screen_time_exposure("5.5")
        assert is_screen_time_exposure("Possibly")
        assert not is_screen_time_exposure("no")


class TestRanking:
    """Opportunities follow the fixed priority table."""

    def test_priority_order(self):
        result = evaluate_toxins(ToxinsInputs(
            screen_time="7",
            alcohol_intake="10 drinks",
            smoking="current",
            blood_mercury=12,
        ))
        assert _keys(result) == ["mercury", "tobacco-nicotine", "alcohol", "screen-time"]
        assert result.overall_status == STATUS_EXPOSED

    def test_stress_amplified_needs_exposure_and_high_pss(self):
        result = evaluate_toxins(ToxinsInputs(
            stressful_environments_or_relationships_impact="yes", media_exposure_impact="yes",
        ), perceived_stress_score=20)
        assert result.stress_amplified
        assert _keys(result) == ["stressful-environments", "media"]
        assert result.opportunities[0].rank == 5

    def test_high_pss_alone_never_amplifies(self):
        result = evaluate_toxins(ToxinsInputs(), perceived_stress_score=30)
        assert not result.stress_amplified
        assert result.exposures == []

    def test_stress_exposure_with_normal_pss_ranks_last(self):
        result = evaluate_toxins(ToxinsInputs(
            stressful_environments_or_relationships_impact="maybe", media_exposure_impact="yes",
        ), perceived_stress_score=10)
        assert _keys(result) == ["media", "stressful-environments"]
        assert result.opportunities[-1].rank == 12
