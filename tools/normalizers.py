"""Unit & severity normalizers shared by every scoring tool.

Clinician-entered fields arrive as loose strings ("Mild plaque", "8/10",
"tight hamstrings"). These helpers turn them into ordered enums and numbers
with a "no match means not triggered" contract, so scoring code never has to
embed its own regex.
"""
import math
import re
from typing import Optional

from models.enums import Severity, Qualitative, Trend


# ============================================================================
# SEVERITY / QUALITATIVE PARSING
# ============================================================================

def parse_severity(text: Optional[str]) -> Severity:
    """
    Parse a free-text severity ("none", "mild plaque", "Moderate", "high").

    Order matters: "none" wins over everything, then mild, moderate, severe.
    """
    v = (text or "").strip().lower()
    if v == "":
        return Severity.UNKNOWN
    if "none" in v or v == "no" or v == "0":
        return Severity.NONE
    if "mild" in v:
        return Severity.MILD
    if "moderate" in v or "mod" in v:
        return Severity.MODERATE
    if "severe" in v or "high" in v:
        return Severity.SEVERE
    return Severity.UNKNOWN


def parse_qualitative(text: Optional[str]) -> Qualitative:
    """Parse an overall test result; only exact low/moderate/high/severe are recognised."""
    v = (text or "").strip().lower()
    return {
        "low": Qualitative.LOW,
        "moderate": Qualitative.MODERATE,
        "high": Qualitative.HIGH,
        "severe": Qualitative.SEVERE,
    }.get(v, Qualitative.UNKNOWN)


# ============================================================================
# NUMERIC CLAMPS
# ============================================================================

def clamp(value: float, lo: float, hi: float) -> float:
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def finite_or_none(value: Optional[float]) -> Optional[float]:
    """Return None for missing, NaN or infinite values."""
    if value is None:
        return None
    try:
        value = float(value)
    except (ValueError, TypeError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def clamp_optional(value: Optional[float], lo: float, hi: float) -> Optional[float]:
    value = finite_or_none(value)
    if value is None:
        return None
    return clamp(value, lo, hi)


# ============================================================================
# LAB UNIT CONVERSIONS
# Source: Levine et al. 2018 (PhenoAge) model units
# ============================================================================

def albumin_g_per_l(albumin_g_dl: float) -> float:
    return albumin_g_dl * 10.0


def creatinine_umol_per_l(creatinine_mg_dl: float) -> float:
    return creatinine_mg_dl * 88.4


def glucose_mmol_per_l(glucose_mg_dl: float) -> float:
    return glucose_mg_dl * 0.05551


def crp_mg_per_dl(crp_mg_l: float) -> float:
    return crp_mg_l / 10.0


# ============================================================================
# FREE-TEXT EXTRACTION
# ============================================================================

_NUMBER_CHARS = set("0123456789.-")
_NUMERIC_TOKEN = re.compile(r"\d+(\.\d+)?")

_CLEARLY_NORMAL = {
    "normal", "none", "no", "ok", "okay", "good", "wnl", "within normal limits",
}

_DEFICIT_KEYWORDS = (
    "pain", "hurt", "aching", "ache", "restricted", "limit", "limited",
    "stiff", "tight", "weak", "unstable", "instability", "cannot", "can't",
    "unable", "reduced", "poor",
)


def parse_first_number(text: Optional[str]) -> Optional[float]:
    """
    Extract the first run of digits, '.' and '-' and parse it.

    "8/10" -> 8.0, "Score: 7.5" -> 7.5, "-3 cm" -> -3.0.
    Returns None when the string has no such run or the run is not a number
    (e.g. "--").
    """
    if not text or not text.strip():
        return None

    buf = []
    for ch in text:
        if ch in _NUMBER_CHARS:
            buf.append(ch)
        elif buf:
            break

    if not buf:
        return None
    try:
        return float("".join(buf))
    except ValueError:
        return None


def max_numeric_token(text: Optional[str]) -> Optional[float]:
    """Largest unsigned number found in free text ("4-6 drinks" -> 6.0)."""
    if not text:
        return None
    values = [float(m.group(0)) for m in _NUMERIC_TOKEN.finditer(text)]
    return max(values) if values else None


def has_qualitative_issue(text: Optional[str]) -> bool:
    """
    True when clinician text reports pain, restriction or weakness.

    Exact "normal"-style answers never trigger, and text with no deficit
    keyword does not trigger either.
    """
    if not text or not text.strip():
        return False
    t = text.strip().lower()
    if t in _CLEARLY_NORMAL:
        return False
    return any(keyword in t for keyword in _DEFICIT_KEYWORDS)


# ============================================================================
# TREND DETECTION
# ============================================================================

def compute_trend(
    current: Optional[float],
    prior: Optional[float],
    delta: float = 1.0,
    lower_is_better: bool = False,
) -> Trend:
    """
    Compare a current score with its prior assessment.

    Returns Trend.UNKNOWN when either value is missing; a missing prior
    never reads as "Stable".
    """
    if current is None or prior is None:
        return Trend.UNKNOWN

    change = current - prior
    if lower_is_better:
        change = -change

    if change >= delta:
        return Trend.IMPROVING
    if change <= -delta:
        return Trend.WORSENING
    return Trend.STABLE
