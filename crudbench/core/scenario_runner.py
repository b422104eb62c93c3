"""
Scenario Runner

Issues one scenario's operation mix against a single backend and reduces
each operation type to OperationStats.

Phases run one after another (read, write, complex query, product query)
and each phase issues its requests strictly one at a time, so measured
latency carries no queueing introduced by the harness itself.
"""

from __future__ import annotations

import logging
import random
import uuid
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from crudbench.connectors.api_client import BackendApi
from crudbench.core.stats_aggregator import aggregate_outcomes
from crudbench.core.timer import time_operation
from crudbench.models import (
    OperationOutcome,
    OperationType,
    PRODUCT_CATEGORIES,
    ScenarioConfig,
    ScenarioResult,
    operation_counts,
)

logger = logging.getLogger(__name__)

PHASE_ORDER: tuple[OperationType, ...] = (
    OperationType.READ,
    OperationType.WRITE,
    OperationType.COMPLEX_QUERY,
    OperationType.PRODUCT_QUERY,
)


class ScenarioRunner:
    """
    Runs load scenarios against one backend through the shared API client.

    Features:
    - Fixed operation mix (100% read, 20% write, 30% complex, 50% product)
    - Randomized parameters, optionally seeded for reproducible runs
    - Progress logging every `progress_interval` operations
    - Failed operations are counted, never abort the scenario
    """

    def __init__(
        self,
        api: BackendApi,
        corpus_size: int = 1000,
        categories: Sequence[str] = PRODUCT_CATEGORIES,
        product_limit: int = 20,
        progress_interval: int = 200,
        rng: Optional[random.Random] = None,
    ):
        """
        Args:
            api: Backend-bound API endpoints
            corpus_size: Entity ids are drawn from [1, corpus_size]
            categories: Category set for product lookups
            product_limit: Page size for product lookups
            progress_interval: Log progress every N operations (0 disables)
            rng: Random source; pass a seeded instance for reproducible runs
        """
        if corpus_size < 1:
            raise ValueError("corpus_size must be >= 1")
        if not categories:
            raise ValueError("categories must not be empty")

        self.api = api
        self.corpus_size = corpus_size
        self.categories = tuple(categories)
        self.product_limit = product_limit
        self.progress_interval = progress_interval
        self.rng = rng or random.Random()

    async def run(self, scenario: ScenarioConfig) -> ScenarioResult:
        """
        Run every phase of `scenario` and collect per-operation stats.

        Operation types whose phase produced no successful operation are
        left out of the result.
        """
        counts = operation_counts(scenario.operations)
        result: ScenarioResult = {}

        logger.info(
            f"[{self.api.target.display_name}] Scenario '{scenario.name}' "
            f"({scenario.operations} operations)"
        )

        for op_type in PHASE_ORDER:
            outcomes = await self.run_phase(op_type, counts[op_type])
            stats = aggregate_outcomes(outcomes)
            if stats is None:
                logger.warning(
                    f"  ✗ {op_type.value}: all {len(outcomes)} operations failed"
                )
                continue
            result[op_type.value] = stats

        return result

    async def run_phase(self, op_type: OperationType, count: int) -> List[OperationOutcome]:
        """Issue `count` operations of one type sequentially."""
        logger.info(f"  Testing {op_type.value} operations ({count} requests)...")
        outcomes: List[OperationOutcome] = []
        failures = 0

        for i in range(count):
            outcome = await time_operation(self._build_work(op_type, i))
            outcomes.append(outcome)
            if not outcome.success:
                failures += 1

            if self.progress_interval and (i + 1) % self.progress_interval == 0:
                logger.info(f"    Progress: {i + 1}/{count} ({failures} failed)")

        return outcomes

    def _build_work(self, op_type: OperationType, index: int) -> Callable[[], Awaitable[Any]]:
        if op_type is OperationType.READ:
            user_id = self._random_id()
            return lambda: self.api.get_user(user_id)

        if op_type is OperationType.WRITE:
            payload = self._new_user_payload(index)
            return lambda: self.api.create_user(payload)

        if op_type is OperationType.COMPLEX_QUERY:
            user_id = self._random_id()
            return lambda: self.api.get_user_orders(user_id)

        if op_type is OperationType.PRODUCT_QUERY:
            category = self.rng.choice(self.categories)
            return lambda: self.api.list_products(category, self.product_limit)

        raise ValueError(f"Unsupported operation type: {op_type}")

    def _random_id(self) -> int:
        return self.rng.randint(1, self.corpus_size)

    def _new_user_payload(self, index: int) -> Dict[str, str]:
        token = uuid.UUID(int=self.rng.getrandbits(128)).hex[:12]
        return {
            "name": f"Test User {token}-{index}",
            "email": f"test{token}-{index}@example.com",
        }
