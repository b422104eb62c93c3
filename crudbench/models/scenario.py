"""
Scenario Configuration Models

Load tiers, operation types and the fixed operation mix.
"""

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class OperationType(str, Enum):
    """Operation types issued by the scenario runner."""

    READ = "read"
    WRITE = "write"
    COMPLEX_QUERY = "complexQuery"
    PRODUCT_QUERY = "productQuery"


# Share of a scenario's total operation count, in percent.
OPERATION_MIX: Dict[OperationType, int] = {
    OperationType.READ: 100,
    OperationType.WRITE: 20,
    OperationType.COMPLEX_QUERY: 30,
    OperationType.PRODUCT_QUERY: 50,
}

PRODUCT_CATEGORIES: tuple[str, ...] = (
    "Electronics",
    "Clothing",
    "Books",
    "Home & Garden",
    "Sports",
)


class ScenarioConfig(BaseModel):
    """A named load tier with its total operation count."""

    name: str = Field(..., min_length=1, description="Scenario name")
    operations: int = Field(..., ge=1, description="Total operation count (N)")
    severity: Optional[int] = Field(
        None, description="Ordering key; defaults to the operation count"
    )

    @property
    def sort_key(self) -> int:
        return self.severity if self.severity is not None else self.operations


def operation_counts(total: int) -> Dict[OperationType, int]:
    """Per-type operation counts for a scenario of `total` operations (floored)."""
    return {op: total * pct // 100 for op, pct in OPERATION_MIX.items()}


def default_scenarios() -> List[ScenarioConfig]:
    return [
        ScenarioConfig(name="Light", operations=100),
        ScenarioConfig(name="Medium", operations=500),
        ScenarioConfig(name="Heavy", operations=1000),
        ScenarioConfig(name="Very Heavy", operations=2000),
    ]
