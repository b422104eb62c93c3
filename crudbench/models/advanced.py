"""
Advanced Test Models

Results of the bulk-insert, aggregation and concurrent fan-out tests.
Each persisted document is keyed first by backend, then by test parameter.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field

from crudbench.models.stats import OperationStats


class BulkInsertResult(BaseModel):
    """One bulk insert of `records` rows/documents in a single round trip."""

    records: int = Field(..., ge=1, description="Batch size")
    time_ms: float = Field(..., description="Elapsed wall-clock time (ms)")
    records_per_second: float = Field(..., description="Derived throughput")


class AggregationResult(BaseModel):
    """Repeated execution of one named aggregate query."""

    avg_time_ms: float = Field(..., description="Mean over successful iterations")
    iterations: int = Field(..., ge=1, description="Iterations attempted")
    successful: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)


class FanOutResult(BaseModel):
    """C concurrent logical clients, each issuing R sequential requests."""

    concurrency: int = Field(..., ge=1, description="Concurrent clients (C)")
    requests_per_client: int = Field(..., ge=1, description="Requests per client (R)")
    total_requests: int = Field(..., description="C * R")
    successful: int = Field(..., ge=0)
    failed: int = Field(..., ge=0)
    time_ms: float = Field(..., description="Wall-clock span of the whole fan-out")
    throughput: float = Field(..., description="Requests per second (C*R / seconds)")
    latency: Optional[OperationStats] = Field(
        None, description="Per-request latency stats across all clients"
    )


# backend key -> parameter (as string) -> result
BulkInsertDocument = Dict[str, Dict[str, BulkInsertResult]]
AggregationDocument = Dict[str, Dict[str, AggregationResult]]
FanOutDocument = Dict[str, Dict[str, FanOutResult]]
