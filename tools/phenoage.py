"""PhenoAge: biological age from nine blood biomarkers.

Source: Levine ME et al. "An epigenetic biomarker of aging for lifespan and
healthspan." Aging (2018). The linear predictor feeds a Gompertz hazard
giving 10-year mortality, which is inverted back into an age.
"""
import math
import logging

from core.errors import InvalidInput
from models.inputs import PhenoAgeInputs
from models.results import PhenoAgeResult
from tools.normalizers import (
    albumin_g_per_l,
    creatinine_umol_per_l,
    glucose_mmol_per_l,
    crp_mg_per_dl,
)

logger = logging.getLogger(__name__)

MODEL_VERSION = "phenoage-levine-2018-v1"

B0 = -19.9067
COEFFICIENTS = {
    "albumin": -0.0336,
    "creatinine": 0.0095,
    "glucose": 0.1953,
    "ln_crp": 0.0954,
    "lymphocyte": -0.0120,
    "mcv": 0.0268,
    "rdw": 0.3306,
    "alkaline_phosphatase": 0.0019,
    "wbc": 0.0554,
    "age": 0.0804,
}

GAMMA = 0.0076927
HORIZON_MONTHS = 120.0

# Inverse transform: age = C1 + ln(C3 * ln(1 - m)) / C2
C1 = 141.50225
C2 = 0.090165
C3 = -0.00553

_EPS = 1e-15
# exp() overflows a double just above 709; past this mortality is already 1 - _EPS.
_MAX_XB = 700.0

_REQUIRED = (
    "chronological_age_years",
    "albumin_g_dl",
    "creatinine_mg_dl",
    "glucose_mg_dl",
    "crp_mg_l",
    "lymphocyte_percent",
    "mcv_fl",
    "rdw_percent",
    "alkaline_phosphatase_u_l",
    "wbc_10e3_per_ul",
)


def _validate(inputs: PhenoAgeInputs) -> None:
    for name in _REQUIRED:
        value = getattr(inputs, name)
        if value is None or not value > 0:
            raise InvalidInput(name, f"{name} must be > 0 (got {value!r})")


def linear_predictor(inputs: PhenoAgeInputs) -> float:
    _validate(inputs)
    c = COEFFICIENTS
    return (
        B0
        + c["albumin"] * albumin_g_per_l(inputs.albumin_g_dl)
        + c["creatinine"] * creatinine_umol_per_l(inputs.creatinine_mg_dl)
        + c["glucose"] * glucose_mmol_per_l(inputs.glucose_mg_dl)
        + c["ln_crp"] * math.log(crp_mg_per_dl(inputs.crp_mg_l))
        + c["lymphocyte"] * inputs.lymphocyte_percent
        + c["mcv"] * inputs.mcv_fl
        + c["rdw"] * inputs.rdw_percent
        + c["alkaline_phosphatase"] * inputs.alkaline_phosphatase_u_l
        + c["wbc"] * inputs.wbc_10e3_per_ul
        + c["age"] * inputs.chronological_age_years
    )


def mortality_from_xb(xb: float) -> float:
    """10-year mortality, clamped so the inverse log-of-log stays finite."""
    hazard = math.exp(min(xb, _MAX_XB)) * (math.exp(HORIZON_MONTHS * GAMMA) - 1.0) / GAMMA
    mortality = 1.0 - math.exp(-hazard)
    return min(max(mortality, _EPS), 1.0 - _EPS)


def phenotypic_age_from_mortality(mortality: float) -> float:
    return C1 + math.log(C3 * math.log(1.0 - mortality)) / C2


def calculate_pheno_age(inputs: PhenoAgeInputs) -> PhenoAgeResult:
    """
    Compute phenotypic age.

    Raises:
        InvalidInput: when any biomarker or the chronological age is missing
            or not strictly positive.
    """
    xb = linear_predictor(inputs)
    mortality = mortality_from_xb(xb)
    pheno_age = phenotypic_age_from_mortality(mortality)
    logger.debug(f"PhenoAge xb={xb:.4f} mortality={mortality:.6f} age={pheno_age:.2f}")
    return PhenoAgeResult(xb=xb, mortality_10yr=mortality, phenotypic_age_years=pheno_age)
