"""
Result Models

Defines Pydantic models for aggregated operation statistics and the
per-backend result document that is persisted at the end of a run.
"""

from datetime import UTC, datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class OperationStats(BaseModel):
    """
    Summary of one (scenario, operation type) batch.

    Latency fields are computed over successful operations only.
    """

    model_config = ConfigDict(frozen=True)

    total_operations: int = Field(..., ge=0, description="Operations attempted")
    successful: int = Field(..., ge=0, description="Successful operations")
    failed: int = Field(..., ge=0, description="Failed operations")
    avg_time_ms: float = Field(..., description="Mean latency (ms), 2 decimals")
    min_time_ms: float = Field(..., description="Fastest successful operation (ms)")
    max_time_ms: float = Field(..., description="Slowest successful operation (ms)")
    p50: float = Field(..., description="50th percentile, nearest rank (ms)")
    p95: float = Field(..., description="95th percentile, nearest rank (ms)")
    p99: float = Field(..., description="99th percentile, nearest rank (ms)")
    success_rate: str = Field(..., description="Success percentage, e.g. '99.50'")

    @model_validator(mode="after")
    def _check_counts(self) -> "OperationStats":
        if self.successful + self.failed != self.total_operations:
            raise ValueError(
                "successful + failed must equal total_operations "
                f"({self.successful} + {self.failed} != {self.total_operations})"
            )
        return self


# Operation-type name -> stats. Operation types with no successful
# operations are absent rather than zero-filled.
ScenarioResult = Dict[str, OperationStats]


class BenchmarkResultDocument(BaseModel):
    """
    Complete result set of one orchestrator run against one backend.

    Written exactly once at the end of the run and read back, never
    mutated, by the comparison reporter.
    """

    backend: str = Field(..., description="Backend key, e.g. 'postgres'")
    database: str = Field(..., description="Display name, e.g. 'PostgreSQL'")
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Generation timestamp (UTC)",
    )
    results: Dict[str, ScenarioResult] = Field(
        default_factory=dict, description="Scenario name -> operation stats"
    )

    def stats_for(self, scenario: str, operation: str) -> Optional[OperationStats]:
        return self.results.get(scenario, {}).get(operation)


class ComparisonRecord(BaseModel):
    """Head-to-head comparison of one metric between two backends."""

    metric: str
    backend_a: str
    backend_a_time: float
    backend_b: str
    backend_b_time: float
    winner: Optional[str] = Field(None, description="Faster backend, None on a tie")
    percent_improvement: float = Field(
        0.0, description="(max - min) / max * 100, one decimal"
    )
