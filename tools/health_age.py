"""HealthAge: phenotypic age adjusted by modifiable risk factors.

Each factor maps a percentile or ratio through a step function to a signed
percent of chronological age. A factor whose inputs are absent is excluded
from the factor list entirely; it is never defaulted to a band.

    health_age = phenotypic_age + 0.3 * sum(percent_i * chronological_age)
"""
import logging
from typing import Callable, Dict, Optional

from core.errors import InvalidInput
from models.inputs import HealthAgeInputs
from models.results import FactorDetail, HealthAgeResult

logger = logging.getLogger(__name__)

MODEL_VERSION = "healthage-v1-excel"
SCALE = 0.3


# ============================================================================
# FACTOR STEP FUNCTIONS (return fraction of age, or None when no band applies)
# ============================================================================

def body_fat_percent(p: float) -> Optional[float]:
    if p > 85:
        return 0.08
    if p >= 50:
        return 0.03
    if p >= 26:
        return -0.03
    if p <= 25:
        return -0.08
    return None


def visceral_fat_percent(p: float) -> Optional[float]:
    if p > 85:
        return 0.15
    if p >= 50:
        return 0.07
    if p >= 21:
        return -0.07
    if p <= 20:
        return -0.15
    return None


def appendicular_muscle_percent(p: float) -> Optional[float]:
    if p > 80:
        return -0.12
    if p >= 50:
        return -0.06
    if p >= 21:
        return 0.06
    if p <= 20:
        return 0.12
    return None


def blood_pressure_percent(systolic: float, diastolic: float) -> float:
    if systolic > 150 or diastolic > 90:
        return 0.20
    if systolic >= 130 or diastolic >= 80:
        return 0.10
    if systolic < 115 and diastolic < 80:
        return -0.20
    if 116 <= systolic <= 129 and diastolic < 80:
        return -0.15
    return 0.0


_RISK_GROUPS = {
    "low": "low", "1": "low",
    "moderate": "moderate", "2": "moderate",
    "high": "high", "3": "high",
}

# (upper bound, inclusive?, percent) rows; the last row is the catch-all.
_NON_HDL_BANDS = {
    "low": ((130, False, -0.12), (159, True, -0.06), (189, True, 0.02), (None, None, 0.12)),
    "moderate": ((100, False, -0.15), (129, True, -0.08), (159, True, 0.0), (None, None, 0.15)),
    "high": ((50, False, -0.20), (74, True, -0.10), (99, True, 0.0), (None, None, 0.20)),
}


def normalize_risk_group(group: Optional[str]) -> Optional[str]:
    """Map a non-HDL risk group to low/moderate/high; blank means absent."""
    if group is None or not str(group).strip():
        return None
    key = str(group).strip().lower()
    if key not in _RISK_GROUPS:
        raise InvalidInput("non_hdl_risk_group", f"Unrecognised non-HDL risk group: {group!r}")
    return _RISK_GROUPS[key]


def non_hdl_percent(non_hdl: float, group: str) -> float:
    bands = _NON_HDL_BANDS[group]
    for bound, inclusive, pct in bands[:-1]:
        if non_hdl < bound or (inclusive and non_hdl == bound):
            return pct
    return bands[-1][2]


def homa_ir_percent(homa: float) -> float:
    if homa < 1:
        return -0.15
    if homa < 2:
        return 0.07
    if homa < 3:
        return 0.0
    if homa < 4:
        return 0.07
    return 0.15


def tg_hdl_percent(ratio: float) -> float:
    if ratio < 1:
        return -0.10
    if ratio < 2:
        return -0.05
    if ratio < 3:
        return 0.0
    if ratio < 4:
        return 0.05
    return 0.10


def fib4_percent(fib4: float) -> float:
    if fib4 < 1:
        return -0.08
    if fib4 < 1.3:
        return -0.04
    if fib4 <= 2.66:
        return 0.0
    if fib4 <= 3.24:
        return 0.05
    return 0.10


# ============================================================================
# DERIVED RATIOS
# ============================================================================

def homa_ir(glucose_mg_dl: Optional[float], insulin_uiu_ml: Optional[float]) -> Optional[float]:
    """HOMA-IR = glucose * insulin / 405; None unless both present and glucose != 0."""
    if glucose_mg_dl is None or insulin_uiu_ml is None or glucose_mg_dl == 0:
        return None
    return glucose_mg_dl * insulin_uiu_ml / 405.0


def tg_hdl_ratio(triglycerides: Optional[float], hdl: Optional[float]) -> Optional[float]:
    if triglycerides is None or hdl is None or hdl == 0:
        return None
    return triglycerides / hdl


# ============================================================================
# AGGREGATION
# ============================================================================

def _add(factors: Dict[str, FactorDetail], name: str, pct: Optional[float], age: float) -> None:
    if pct is None:
        return
    factors[name] = FactorDetail(percent_of_age=pct, contribution_years=pct * age)


def _single(value: Optional[float], fn: Callable[[float], Optional[float]]) -> Optional[float]:
    return fn(value) if value is not None else None


def calculate_health_age(inputs: HealthAgeInputs) -> HealthAgeResult:
    """
    Compute HealthAge from phenotypic age and up to eight risk factors.

    Raises:
        InvalidInput: chronological or phenotypic age missing or <= 0, or an
            unrecognised non-HDL risk group alongside a non-HDL value.
    """
    age = inputs.chronological_age_years
    pheno = inputs.phenotypic_age_years
    if age is None or not age > 0:
        raise InvalidInput("chronological_age_years", "Chronological age must be > 0")
    if pheno is None or not pheno > 0:
        raise InvalidInput("phenotypic_age_years", "Phenotypic age must be > 0")

    factors: Dict[str, FactorDetail] = {}
    _add(factors, "body_fat", _single(inputs.body_fat_percentile, body_fat_percent), age)
    _add(factors, "visceral_fat", _single(inputs.visceral_fat_percentile, visceral_fat_percent), age)
    _add(factors, "appendicular_muscle",
         _single(inputs.appendicular_muscle_percentile, appendicular_muscle_percent), age)

    if inputs.systolic_bp is not None and inputs.diastolic_bp is not None:
        _add(factors, "blood_pressure",
             blood_pressure_percent(inputs.systolic_bp, inputs.diastolic_bp), age)

    # The risk group is only checked when there is a non-HDL value to score.
    group = normalize_risk_group(inputs.non_hdl_risk_group) if inputs.non_hdl_mg_dl is not None else None
    if group is not None:
        _add(factors, "non_hdl", non_hdl_percent(inputs.non_hdl_mg_dl, group), age)

    homa = homa_ir(inputs.fasting_glucose_mg_dl, inputs.fasting_insulin_uiu_ml)
    _add(factors, "homa_ir", _single(homa, homa_ir_percent), age)

    ratio = tg_hdl_ratio(inputs.triglycerides_mg_dl, inputs.hdl_mg_dl)
    _add(factors, "tg_hdl", _single(ratio, tg_hdl_percent), age)

    _add(factors, "fib4", _single(inputs.fib4_score, fib4_percent), age)

    total = sum(f.contribution_years for f in factors.values())
    scaled = total * SCALE
    final = pheno + scaled

    logger.debug(f"HealthAge factors={sorted(factors)} sum={total:.2f} final={final:.2f}")
    return HealthAgeResult(
        sum_contribution_years=total,
        health_age_uncapped=pheno + total,
        contribution_years_scaled=scaled,
        health_age_final=final,
        delta_vs_chrono_years=final - age,
        delta_vs_chrono_percent=final / age - 1.0,
        factors=factors,
    )
