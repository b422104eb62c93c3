"""
Comparison Reporter

Reads two persisted result documents and compares them metric by metric.
"""

import logging
import re
from typing import Dict, List, Optional, Tuple

from crudbench.core.results_store import ResultsStore
from crudbench.models import (
    BackendTarget,
    BenchmarkResultDocument,
    ComparisonRecord,
    MONGODB,
    POSTGRES,
)

logger = logging.getLogger(__name__)

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def compare_values(
    metric: str,
    a_name: str,
    a_time: float,
    b_name: str,
    b_time: float,
) -> ComparisonRecord:
    """
    Compare two timings where lower is better.

    Equal timings yield no winner and 0% improvement.

    Example:
        >>> compare_values("read", "A", 2.0, "B", 2.5).percent_improvement
        20.0
    """
    slower = max(a_time, b_time)
    faster = min(a_time, b_time)

    if a_time < b_time:
        winner: Optional[str] = a_name
    elif b_time < a_time:
        winner = b_name
    else:
        winner = None

    improvement = round((slower - faster) / slower * 100, 1) if slower > 0 else 0.0

    return ComparisonRecord(
        metric=metric,
        backend_a=a_name,
        backend_a_time=a_time,
        backend_b=b_name,
        backend_b_time=b_time,
        winner=winner,
        percent_improvement=improvement,
    )


def compare_documents(
    doc_a: BenchmarkResultDocument,
    doc_b: BenchmarkResultDocument,
    field: str = "avg_time_ms",
) -> Dict[str, List[ComparisonRecord]]:
    """
    Compare every (scenario, operation) pair present in both documents.

    Returns:
        Scenario name -> comparison records, in `doc_a`'s scenario order.
        Pairs missing from either side are skipped.
    """
    comparisons: Dict[str, List[ComparisonRecord]] = {}
    for scenario, ops_a in doc_a.results.items():
        ops_b = doc_b.results.get(scenario)
        if ops_b is None:
            continue
        records = []
        for op, stats_a in ops_a.items():
            stats_b = ops_b.get(op)
            if stats_b is None:
                continue
            records.append(
                compare_values(
                    op,
                    doc_a.database,
                    getattr(stats_a, field),
                    doc_b.database,
                    getattr(stats_b, field),
                )
            )
        comparisons[scenario] = records
    return comparisons


def count_wins(comparisons: Dict[str, List[ComparisonRecord]]) -> Dict[str, int]:
    """Number of metrics won per backend (ties count for neither)."""
    wins: Dict[str, int] = {}
    for records in comparisons.values():
        for record in records:
            wins.setdefault(record.backend_a, 0)
            wins.setdefault(record.backend_b, 0)
            if record.winner is not None:
                wins[record.winner] += 1
    return wins


def operation_label(op: str) -> str:
    """'complexQuery' -> 'complex Query'"""
    return _CAMEL_BOUNDARY.sub(" ", op)


def render_comparison_report(
    doc_a: BenchmarkResultDocument,
    doc_b: BenchmarkResultDocument,
    detail_scenario: Optional[str] = None,
) -> str:
    """
    Human-readable comparison of two result documents.

    Sections: one table per scenario, overall win counts, and detailed
    metrics for `detail_scenario` (the last scenario of `doc_a` by default).
    """
    comparisons = compare_documents(doc_a, doc_b)
    a, b = doc_a.database, doc_b.database
    lines: List[str] = ["📊 Performance Comparison Summary", ""]

    for scenario, records in comparisons.items():
        lines.append(f"{scenario} Load:")
        lines.append(f"  {'Operation':<15} {a:<12} {b:<12} {'Winner':<10}")
        for record in records:
            lines.append(
                f"  {operation_label(record.metric):<15} "
                f"{record.backend_a_time:<12} {record.backend_b_time:<12} "
                f"{record.winner or 'tie':<10}"
            )
        lines.append("")

    lines.append("✨ Overall Performance Winners:")
    for name, count in count_wins(comparisons).items():
        lines.append(f"  {name} wins: {count} operations")
    lines.append("")

    if detail_scenario is None and doc_a.results:
        detail_scenario = list(doc_a.results)[-1]
    if detail_scenario in comparisons:
        lines.append(f"📈 Detailed Metrics ({detail_scenario} Load):")
        for record in comparisons[detail_scenario]:
            stats_a = doc_a.stats_for(detail_scenario, record.metric)
            stats_b = doc_b.stats_for(detail_scenario, record.metric)
            lines.append(f"{operation_label(record.metric).upper()}:")
            for name, stats in ((a, stats_a), (b, stats_b)):
                lines.append(
                    f"  {name + ':':<12} Avg {stats.avg_time_ms}ms | P99 {stats.p99}ms "
                    f"| Success {stats.success_rate}%"
                )
            if record.winner is None:
                lines.append("  Winner: tie")
            else:
                lines.append(
                    f"  Winner: {record.winner} ({record.percent_improvement}% faster)"
                )
        lines.append("")

    return "\n".join(lines)


def run_hint(target: BackendTarget) -> str:
    return (
        f"Run the {target.display_name} benchmark first: "
        f"crudbench-run --backend {target.key}"
    )


def load_backend_document(
    store: ResultsStore, target: BackendTarget
) -> BenchmarkResultDocument:
    """
    Read one backend's result document from its fixed location.

    Raises:
        MissingResultsError: with a hint naming the command to run.
    """
    return store.read_document(
        target.results_filename, BenchmarkResultDocument, hint=run_hint(target)
    )


def load_comparison_pair(
    store: ResultsStore,
) -> Tuple[BenchmarkResultDocument, BenchmarkResultDocument]:
    return load_backend_document(store, POSTGRES), load_backend_document(store, MONGODB)
