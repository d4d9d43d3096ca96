from enum import Enum, IntEnum


class Severity(IntEnum):
    """Ordered finding severity; compare with >= rather than string equality."""
    UNKNOWN = 0
    NONE = 1
    MILD = 2
    MODERATE = 3
    SEVERE = 4


class Qualitative(IntEnum):
    """Overall qualitative test result (CTA, treadmill, echo)."""
    UNKNOWN = 0
    LOW = 1
    MODERATE = 2
    HIGH = 3
    SEVERE = 4


class BaselineCategory(IntEnum):
    """Cardiology baseline risk; combined across signals by taking the max."""
    LOW = 0
    MILD = 1
    MODERATE = 2
    HIGH = 3

    @property
    def label(self) -> str:
        return self.name.capitalize()


class Trend(str, Enum):
    IMPROVING = "Improving"
    STABLE = "Stable"
    WORSENING = "Worsening"
    UNKNOWN = "Unknown"


class EvidenceClass(str, Enum):
    OBJECTIVE = "Objective"
    SUBJECTIVE = "Subjective"
    LAB = "Lab"


class MetricGrade(str, Enum):
    """Per-metric metabolic grade."""
    OPTIMAL = "Optimal"
    MILD = "Mild"
    MODERATE = "Moderate"
    SEVERE = "Severe"
    UNKNOWN = "Unknown"


class PerformanceStatus(str, Enum):
    OPTIMAL = "Optimal"
    SUB_OPTIMAL = "Sub-optimal"
    INFORMATIONAL = "Informational"
    DATA_MISSING = "Data missing"
