"""
RoundLens — Error Types

Raised only at the ingestion boundary. The analysis engines never raise for
"no data" conditions; they return neutral values instead.
"""

from __future__ import annotations

from typing import Optional


class RoundLensError(Exception):
    """Base class for all RoundLens errors."""


class OutcomeValidationError(RoundLensError, ValueError):
    """A raw outcome record failed validation.

    Carries the record position and the offending field so callers can
    report exactly which row was rejected.
    """

    def __init__(self, message: str, position: Optional[int] = None, field: Optional[str] = None):
        self.position = position
        self.field = field
        prefix = f"outcome[{position}]" if position is not None else "outcome"
        if field:
            prefix = f"{prefix}.{field}"
        super().__init__(f"{prefix}: {message}")
