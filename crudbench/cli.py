"""Command-line entry points: run, advanced and compare."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

import yaml
from pydantic import ValidationError

from crudbench.config import settings
from crudbench.connectors.api_client import ApiClient
from crudbench.connectors.mongo_client import MongoConnection
from crudbench.connectors.postgres_pool import PostgresConnectionPool
from crudbench.core.advanced import AdvancedOrchestrator
from crudbench.core.comparison import load_comparison_pair, render_comparison_report
from crudbench.core.errors import BenchmarkError
from crudbench.core.orchestrator import BenchmarkOrchestrator
from crudbench.core.results_store import ResultsStore
from crudbench.core.stores import MongoBenchmarkStore, PostgresBenchmarkStore
from crudbench.models import BACKENDS, ScenarioConfig, default_scenarios, get_backend

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("httpx", "httpcore", "asyncpg", "pymongo")


def configure_logging() -> None:
    if settings.LOG_FILE:
        try:
            file_handler: logging.Handler = logging.FileHandler(settings.LOG_FILE)
        except OSError as e:
            raise BenchmarkError(
                f"Cannot open log file {settings.LOG_FILE}: {e}",
                hint="Create the directory or point LOG_FILE elsewhere.",
            ) from e
    else:
        file_handler = logging.NullHandler()

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
        handlers=[logging.StreamHandler(), file_handler],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def load_scenarios(path: Optional[str]) -> List[ScenarioConfig]:
    """
    Load a scenario matrix from YAML, or the default matrix when `path` is None.

    Expected layout:

        scenarios:
          - name: Light
            operations: 100
    """
    if not path:
        return default_scenarios()

    scenario_file = Path(path)
    try:
        with scenario_file.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise BenchmarkError(f"Cannot read scenarios file {scenario_file}: {e}") from e
    except yaml.YAMLError as e:
        raise BenchmarkError(f"Invalid YAML in {scenario_file}: {e}") from e

    entries = data.get("scenarios") if isinstance(data, dict) else data
    if not isinstance(entries, list) or not entries:
        raise BenchmarkError(
            f"No scenarios defined in {scenario_file}",
            hint="Expected a top-level 'scenarios' list of {name, operations}.",
        )
    try:
        scenarios = [ScenarioConfig.model_validate(entry) for entry in entries]
    except ValidationError as e:
        raise BenchmarkError(f"Invalid scenario in {scenario_file}: {e}") from e

    names = [s.name for s in scenarios]
    if len(set(names)) != len(names):
        raise BenchmarkError(f"Duplicate scenario names in {scenario_file}")
    return scenarios


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--results-dir",
        default=None,
        help=f"Directory for result documents (default: {settings.RESULTS_DIR}).",
    )


def _build_run_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run the CRUD scenario matrix against one backend."
    )
    parser.add_argument(
        "--backend",
        required=True,
        choices=sorted(BACKENDS),
        help="Backend to benchmark.",
    )
    parser.add_argument(
        "--scenarios",
        default=None,
        help="YAML file overriding the default scenario matrix.",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help=f"API base URL (default: {settings.API_BASE_URL}).",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducible parameter sequences.",
    )
    _add_common_arguments(parser)
    return parser


def _build_advanced_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Run bulk insert, aggregation and concurrency tests on both backends."
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help=f"API base URL (default: {settings.API_BASE_URL}).",
    )
    _add_common_arguments(parser)
    return parser


def _build_compare_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare the PostgreSQL and MongoDB result documents."
    )
    _add_common_arguments(parser)
    return parser


def _results_store(args: argparse.Namespace) -> ResultsStore:
    return ResultsStore(args.results_dir or settings.RESULTS_DIR)


async def _run_benchmark(args: argparse.Namespace) -> int:
    target = get_backend(args.backend)
    scenarios = load_scenarios(args.scenarios or settings.SCENARIOS_FILE)
    orchestrator = BenchmarkOrchestrator.from_settings(
        target,
        ApiClient.from_settings(args.base_url),
        _results_store(args),
        scenarios=scenarios,
        seed=args.seed,
    )
    await orchestrator.run()
    return 0


async def _run_advanced(args: argparse.Namespace) -> int:
    stores = [
        PostgresBenchmarkStore(PostgresConnectionPool.from_settings()),
        MongoBenchmarkStore(MongoConnection.from_settings()),
    ]
    orchestrator = AdvancedOrchestrator.from_settings(
        ApiClient.from_settings(args.base_url), stores, _results_store(args)
    )
    await orchestrator.run()
    return 0


def _run_compare(args: argparse.Namespace) -> int:
    doc_pg, doc_mongo = load_comparison_pair(_results_store(args))
    print(render_comparison_report(doc_pg, doc_mongo))
    return 0


def _report_failure(error: BenchmarkError) -> int:
    logger.error(f"❌ {error}")
    if error.hint:
        logger.error(f"   {error.hint}")
    return 1


def main_run(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_run_parser().parse_args(argv)
    try:
        configure_logging()
        return asyncio.run(_run_benchmark(args))
    except BenchmarkError as e:
        return _report_failure(e)
    except KeyboardInterrupt:
        print("[crudbench] interrupted", file=sys.stderr)
        return 130


def main_advanced(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_advanced_parser().parse_args(argv)
    try:
        configure_logging()
        return asyncio.run(_run_advanced(args))
    except BenchmarkError as e:
        return _report_failure(e)
    except KeyboardInterrupt:
        print("[crudbench] interrupted", file=sys.stderr)
        return 130


def main_compare(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_compare_parser().parse_args(argv)
    try:
        configure_logging()
        return _run_compare(args)
    except BenchmarkError as e:
        return _report_failure(e)


if __name__ == "__main__":
    raise SystemExit(main_run())
