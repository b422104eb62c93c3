"""
Data models for crudbench.

This package contains:
- Single-operation outcomes (dataclass)
- Aggregated statistics and result documents (Pydantic)
- Scenario configuration and the operation mix
- Advanced test results
"""

from crudbench.models.outcome import OperationOutcome

from crudbench.models.stats import (
    OperationStats,
    ScenarioResult,
    BenchmarkResultDocument,
    ComparisonRecord,
)

from crudbench.models.backend import (
    BackendTarget,
    POSTGRES,
    MONGODB,
    BACKENDS,
    get_backend,
)

from crudbench.models.scenario import (
    OperationType,
    OPERATION_MIX,
    PRODUCT_CATEGORIES,
    ScenarioConfig,
    operation_counts,
    default_scenarios,
)

from crudbench.models.advanced import (
    BulkInsertResult,
    AggregationResult,
    FanOutResult,
    BulkInsertDocument,
    AggregationDocument,
    FanOutDocument,
)

__all__ = [
    # outcome
    "OperationOutcome",
    # stats
    "OperationStats",
    "ScenarioResult",
    "BenchmarkResultDocument",
    "ComparisonRecord",
    # backend
    "BackendTarget",
    "POSTGRES",
    "MONGODB",
    "BACKENDS",
    "get_backend",
    # scenario
    "OperationType",
    "OPERATION_MIX",
    "PRODUCT_CATEGORIES",
    "ScenarioConfig",
    "operation_counts",
    "default_scenarios",
    # advanced
    "BulkInsertResult",
    "AggregationResult",
    "FanOutResult",
    "BulkInsertDocument",
    "AggregationDocument",
    "FanOutDocument",
]
