"""
Type definitions for single-operation timing.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class OperationOutcome:
    """Result of one attempted request against the system under test."""

    success: bool
    elapsed_ms: float
    error_message: Optional[str] = None
