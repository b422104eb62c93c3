"""
Advanced Orchestrator

Exercises three extra dimensions against both backends in one process:
bulk insertion, repeated aggregate queries and concurrent fan-out through
the API.
"""

import asyncio
import logging
import random
import time
from contextlib import AsyncExitStack
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence

from crudbench.config import settings
from crudbench.connectors.api_client import ApiClient
from crudbench.core.comparison import compare_values
from crudbench.core.errors import BenchmarkError
from crudbench.core.readiness import RetryPolicy, wait_until_ready
from crudbench.core.results_store import ResultsStore
from crudbench.core.stats_aggregator import aggregate_outcomes
from crudbench.core.stores import AGGREGATIONS, BenchmarkStore
from crudbench.core.timer import time_operation
from crudbench.models import (
    AggregationDocument,
    AggregationResult,
    BackendTarget,
    BulkInsertDocument,
    BulkInsertResult,
    FanOutDocument,
    FanOutResult,
    OperationOutcome,
)

logger = logging.getLogger(__name__)

BULK_RESULTS_FILE = "bulk-operations-results.json"
AGGREGATION_RESULTS_FILE = "aggregation-results.json"
CONCURRENT_RESULTS_FILE = "concurrent-results.json"

# Builds the request for (client index, request index)
RequestFactory = Callable[[int, int], Awaitable[Any]]


async def run_fan_out(
    request_factory: RequestFactory,
    concurrency: int,
    requests_per_client: int,
) -> FanOutResult:
    """
    Launch `concurrency` logical clients, each issuing `requests_per_client`
    requests one after another, and time the whole batch.

    The batch time is the wall-clock span from launch until the last client
    finishes, so it tracks the slowest client rather than the sum of all
    request durations.
    """
    if concurrency < 1 or requests_per_client < 1:
        raise ValueError("concurrency and requests_per_client must be >= 1")

    async def client_task(client_index: int) -> List[OperationOutcome]:
        outcomes = []
        for request_index in range(requests_per_client):
            outcomes.append(
                await time_operation(
                    lambda: request_factory(client_index, request_index)
                )
            )
        return outcomes

    start = time.perf_counter()
    per_client = await asyncio.gather(*(client_task(i) for i in range(concurrency)))
    elapsed = time.perf_counter() - start

    outcomes = [o for client_outcomes in per_client for o in client_outcomes]
    total = concurrency * requests_per_client
    successful = sum(1 for o in outcomes if o.success)

    return FanOutResult(
        concurrency=concurrency,
        requests_per_client=requests_per_client,
        total_requests=total,
        successful=successful,
        failed=total - successful,
        time_ms=round(elapsed * 1000.0, 3),
        throughput=round(total / elapsed, 2) if elapsed > 0 else 0.0,
        latency=aggregate_outcomes(outcomes),
    )


class AdvancedOrchestrator:
    """
    Runs the bulk, aggregation and concurrency tests for every store.

    Tests run one backend after the other so they never compete for host
    resources; only the fan-out itself is concurrent.
    """

    def __init__(
        self,
        client: ApiClient,
        stores: Sequence[BenchmarkStore],
        store: ResultsStore,
        bulk_sizes: Sequence[int] = (100, 500, 1000, 2000),
        aggregation_iterations: int = 100,
        concurrency_levels: Sequence[int] = (10, 25, 50, 100),
        requests_per_client: int = 10,
        corpus_size: int = 1000,
        retry_policy: Optional[RetryPolicy] = None,
        probe_timeout: float = 2.0,
        rng: Optional[random.Random] = None,
    ):
        counts = {
            "bulk_sizes": min(bulk_sizes, default=1),
            "aggregation_iterations": aggregation_iterations,
            "concurrency_levels": min(concurrency_levels, default=1),
            "requests_per_client": requests_per_client,
        }
        invalid = [name for name, value in counts.items() if value < 1]
        if invalid:
            raise BenchmarkError(
                f"Advanced test parameters must be >= 1: {', '.join(invalid)}",
                hint="Check BULK_SIZES, AGGREGATION_ITERATIONS, CONCURRENCY_LEVELS "
                "and REQUESTS_PER_CLIENT.",
            )

        self.client = client
        self.stores = list(stores)
        self.results_store = store
        self.bulk_sizes = list(bulk_sizes)
        self.aggregation_iterations = aggregation_iterations
        self.concurrency_levels = list(concurrency_levels)
        self.requests_per_client = requests_per_client
        self.corpus_size = corpus_size
        self.retry_policy = retry_policy or RetryPolicy()
        self.probe_timeout = probe_timeout
        self.rng = rng or random.Random()

    @classmethod
    def from_settings(
        cls, client: ApiClient, stores: Sequence[BenchmarkStore], store: ResultsStore
    ) -> "AdvancedOrchestrator":
        return cls(
            client=client,
            stores=stores,
            store=store,
            bulk_sizes=settings.BULK_SIZES,
            aggregation_iterations=settings.AGGREGATION_ITERATIONS,
            concurrency_levels=settings.CONCURRENCY_LEVELS,
            requests_per_client=settings.REQUESTS_PER_CLIENT,
            corpus_size=settings.CORPUS_SIZE,
            retry_policy=RetryPolicy.from_settings(),
            probe_timeout=settings.READINESS_PROBE_TIMEOUT_SECONDS,
            rng=random.Random(settings.RANDOM_SEED),
        )

    async def run(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """
        Run all three tests and persist their documents.

        Returns:
            Mapping of results filename -> persisted document
        """
        logger.info("🚀 Starting advanced tests...")

        async with self.client:
            await wait_until_ready(
                self._health_probe,
                self.retry_policy,
                description="API",
                hint="Start the API service before running advanced tests.",
            )

            async with AsyncExitStack() as stack:
                for store in self.stores:
                    await stack.enter_async_context(store)
                bulk = await self.test_bulk_insert()
                aggregation = await self.test_aggregation()
                concurrent = await self.test_concurrent_fan_out()

        documents = {
            BULK_RESULTS_FILE: _dump(bulk),
            AGGREGATION_RESULTS_FILE: _dump(aggregation),
            CONCURRENT_RESULTS_FILE: _dump(concurrent),
        }
        for filename, payload in documents.items():
            self.results_store.write_json(filename, payload)

        logger.info("🎉 All advanced tests complete!")
        return documents

    async def _health_probe(self) -> bool:
        await self.client.health(timeout=self.probe_timeout)
        return True

    async def test_bulk_insert(self) -> BulkInsertDocument:
        logger.info("Bulk operations performance test")
        results: BulkInsertDocument = {s.target.result_key: {} for s in self.stores}

        for size in self.bulk_sizes:
            logger.info(f"Testing bulk insert of {size} records...")
            for store in self.stores:
                outcome = await time_operation(lambda: store.insert_users_bulk(size))
                if not outcome.success:
                    logger.error(
                        f"  ✗ {store.target.display_name}: {outcome.error_message}"
                    )
                    continue
                seconds = outcome.elapsed_ms / 1000.0
                result = BulkInsertResult(
                    records=size,
                    time_ms=outcome.elapsed_ms,
                    records_per_second=round(size / seconds, 2) if seconds > 0 else 0.0,
                )
                results[store.target.result_key][str(size)] = result
                logger.info(
                    f"  ✓ {store.target.display_name}: inserted {size} records in "
                    f"{result.time_ms}ms ({result.records_per_second} rec/s)"
                )
            self._log_winner(str(size), results, lambda r: r.time_ms)

        return results

    async def test_aggregation(self) -> AggregationDocument:
        logger.info(
            f"Aggregation pipeline performance test ({self.aggregation_iterations} iterations)"
        )
        results: AggregationDocument = {s.target.result_key: {} for s in self.stores}

        for name in AGGREGATIONS:
            for store in self.stores:
                outcomes = [
                    await time_operation(lambda: store.run_aggregation(name))
                    for _ in range(self.aggregation_iterations)
                ]
                stats = aggregate_outcomes(outcomes)
                if stats is None:
                    logger.error(
                        f"  ✗ {store.target.display_name} {name}: all iterations failed "
                        f"({outcomes[-1].error_message})"
                    )
                    continue
                results[store.target.result_key][name] = AggregationResult(
                    avg_time_ms=stats.avg_time_ms,
                    iterations=self.aggregation_iterations,
                    successful=stats.successful,
                    failed=stats.failed,
                )
                logger.info(
                    f"  ✓ {store.target.display_name} {name}: average {stats.avg_time_ms}ms"
                )
            self._log_winner(name, results, lambda r: r.avg_time_ms)

        return results

    async def test_concurrent_fan_out(self) -> FanOutDocument:
        logger.info("Concurrent connections performance test")
        targets = [s.target for s in self.stores]
        results: FanOutDocument = {t.result_key: {} for t in targets}

        for level in self.concurrency_levels:
            logger.info(
                f"Testing {level} concurrent clients "
                f"({level * self.requests_per_client} total requests)..."
            )
            # Every logical client needs its own connection or requests queue in the pool
            async with self.client.with_pool_size(level) as fan_out_client:
                for target in targets:
                    result = await run_fan_out(
                        self._read_request_factory(fan_out_client, target),
                        level,
                        self.requests_per_client,
                    )
                    results[target.result_key][str(level)] = result
                    logger.info(
                        f"  ✓ {target.display_name}: completed in {result.time_ms}ms "
                        f"({result.throughput} req/s, {result.failed} failed)"
                    )
            self._log_winner(str(level), results, lambda r: r.time_ms)

        return results

    def _read_request_factory(self, client: ApiClient, target: BackendTarget) -> RequestFactory:
        api = client.for_backend(target)

        def factory(client_index: int, request_index: int) -> Awaitable[Any]:
            return api.get_user(self.rng.randint(1, self.corpus_size))

        return factory

    def _log_winner(
        self,
        param: str,
        results: Dict[str, Dict[str, Any]],
        metric: Callable[[Any], float],
    ) -> None:
        measured = [
            (store.target.display_name, results[store.target.result_key].get(param))
            for store in self.stores
        ]
        measured = [(name, r) for name, r in measured if r is not None]
        if len(measured) != 2:
            return
        (a_name, a), (b_name, b) = measured
        record = compare_values(param, a_name, metric(a), b_name, metric(b))
        if record.winner is None:
            logger.info(f"    Tie at {param}")
        else:
            logger.info(
                f"    Winner: {record.winner} ({record.percent_improvement}% faster)"
            )


def _dump(document: Dict[str, Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {
        backend: {param: result.model_dump(mode="json") for param, result in by_param.items()}
        for backend, by_param in document.items()
    }
