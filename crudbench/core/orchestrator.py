"""
Benchmark Orchestrator

Drives the full scenario matrix against one backend and persists the
resulting document.
"""

import logging
import random
from typing import List, Optional, Sequence

from crudbench.config import settings
from crudbench.connectors.api_client import ApiClient, BackendApi
from crudbench.core.readiness import RetryPolicy, wait_until_ready
from crudbench.core.results_store import ResultsStore
from crudbench.core.scenario_runner import PHASE_ORDER, ScenarioRunner
from crudbench.models import (
    BackendTarget,
    BenchmarkResultDocument,
    PRODUCT_CATEGORIES,
    ScenarioConfig,
    default_scenarios,
)

logger = logging.getLogger(__name__)

READINESS_HINT = (
    "Make sure the API service and its databases are running "
    "(e.g. `docker compose up -d`) and that API_BASE_URL points at it."
)


class BenchmarkOrchestrator:
    """
    Runs every configured scenario against one backend.

    Lifecycle of a run:
    1. Open the HTTP client (closed again whatever happens)
    2. Wait for the service health check and a smoke read on the backend
    3. Run scenarios in ascending severity order
    4. Persist the result document once, at the end
    5. Log a per-scenario summary
    """

    def __init__(
        self,
        target: BackendTarget,
        client: ApiClient,
        store: ResultsStore,
        scenarios: Optional[Sequence[ScenarioConfig]] = None,
        retry_policy: Optional[RetryPolicy] = None,
        probe_timeout: float = 2.0,
        corpus_size: int = 1000,
        product_limit: int = 20,
        progress_interval: int = 200,
        seed: Optional[int] = None,
    ):
        self.target = target
        self.client = client
        self.store = store
        self.scenarios: List[ScenarioConfig] = sorted(
            scenarios if scenarios is not None else default_scenarios(),
            key=lambda s: s.sort_key,
        )
        self.retry_policy = retry_policy or RetryPolicy()
        self.probe_timeout = probe_timeout
        self.corpus_size = corpus_size
        self.product_limit = product_limit
        self.progress_interval = progress_interval
        self.seed = seed

    @classmethod
    def from_settings(
        cls,
        target: BackendTarget,
        client: ApiClient,
        store: ResultsStore,
        scenarios: Optional[Sequence[ScenarioConfig]] = None,
        seed: Optional[int] = None,
    ) -> "BenchmarkOrchestrator":
        return cls(
            target=target,
            client=client,
            store=store,
            scenarios=scenarios,
            retry_policy=RetryPolicy.from_settings(),
            probe_timeout=settings.READINESS_PROBE_TIMEOUT_SECONDS,
            corpus_size=settings.CORPUS_SIZE,
            product_limit=settings.PRODUCT_QUERY_LIMIT,
            progress_interval=settings.PROGRESS_INTERVAL,
            seed=seed if seed is not None else settings.RANDOM_SEED,
        )

    async def run(self) -> BenchmarkResultDocument:
        """
        Execute the full matrix and persist the document.

        Raises:
            ReadinessError: the service never became ready; nothing is written.
            PersistenceError: the document could not be written.
        """
        logger.info(f"🚀 Starting {self.target.display_name} benchmark...")

        async with self.client:
            api = self.client.for_backend(self.target)
            await self.wait_for_service(api)

            runner = ScenarioRunner(
                api,
                corpus_size=self.corpus_size,
                categories=PRODUCT_CATEGORIES,
                product_limit=self.product_limit,
                progress_interval=self.progress_interval,
                rng=random.Random(self.seed),
            )

            document = BenchmarkResultDocument(
                backend=self.target.key, database=self.target.display_name
            )
            for scenario in self.scenarios:
                document.results[scenario.name] = await runner.run(scenario)

        self.store.write_document(self.target.results_filename, document)
        self.log_summary(document)
        logger.info(f"✅ {self.target.display_name} benchmark completed")
        return document

    async def wait_for_service(self, api: BackendApi) -> int:
        """Block until health and a smoke read of entity 1 both succeed."""

        async def probe() -> bool:
            await self.client.health(timeout=self.probe_timeout)
            await api.get_user(1, timeout=self.probe_timeout)
            return True

        return await wait_until_ready(
            probe,
            self.retry_policy,
            description=f"API ({self.target.display_name})",
            hint=READINESS_HINT,
        )

    def log_summary(self, document: BenchmarkResultDocument) -> None:
        logger.info(f"📊 {document.database} benchmark summary")
        for scenario in self.scenarios:
            result = document.results.get(scenario.name, {})
            logger.info(f"{scenario.name} ({scenario.operations} operations):")
            for op_type in PHASE_ORDER:
                stats = result.get(op_type.value)
                label = op_type.value.upper()
                if stats is None:
                    logger.info(f"  ✗ {label}: All operations failed")
                else:
                    logger.info(
                        f"  ✓ {label}: Avg {stats.avg_time_ms}ms | P99 {stats.p99}ms "
                        f"| Success {stats.success_rate}%"
                    )
