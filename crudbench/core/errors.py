"""
Harness-level errors.

Failures of individual operations never surface as exceptions; they are
recorded in `OperationOutcome`. The errors below are the orchestrator-level
failures that abort a run and end the process with a non-zero exit code.
"""

from __future__ import annotations


class BenchmarkError(Exception):
    """Base class for fatal harness errors."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ReadinessError(BenchmarkError):
    """The system under test never became ready within the retry budget."""


class PersistenceError(BenchmarkError):
    """A result document could not be written."""


class StoreUnavailableError(BenchmarkError):
    """A backing store could not be reached for direct (advanced mode) access."""


class MissingResultsError(BenchmarkError):
    """A result document needed for comparison has not been produced yet."""
