"""Error types raised by the scoring engine."""
from typing import Optional


class InvalidInput(ValueError):
    """
    Raised when a mandatory input is missing, non-positive, or outside a
    controlled vocabulary.

    Attributes:
        field: Name of the offending input field.
    """

    def __init__(self, field: str, message: Optional[str] = None):
        self.field = field
        super().__init__(message or f"Invalid input: {field}")
