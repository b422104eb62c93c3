"""
Stats Aggregator

Reduces a batch of operation outcomes into an OperationStats summary.
"""

import math
from typing import Iterable, Optional, Sequence

from crudbench.models import OperationOutcome, OperationStats

PERCENTILES = (0.50, 0.95, 0.99)


def nearest_rank_percentile(sorted_values: Sequence[float], q: float) -> float:
    """
    Nearest-rank percentile (no interpolation) of an ascending sequence.

    The q-quantile is the sample of rank ceil(n * q), i.e. zero-based index
    ceil(n * q) - 1 clamped to [0, n - 1]. For fractional n * q this is the
    element at index floor(n * q); a single sample is returned as-is.

    Args:
        sorted_values: Pre-sorted sequence (ascending)
        q: Quantile in (0, 1]

    Example:
        >>> nearest_rank_percentile(list(range(1, 101)), 0.95)
        95
        >>> nearest_rank_percentile([7.5], 0.99)
        7.5
    """
    if not sorted_values:
        raise ValueError("percentile of an empty sequence")
    n = len(sorted_values)
    # round() absorbs binary float error in n * q before ceil
    rank = math.ceil(round(n * q, 9))
    idx = min(max(rank - 1, 0), n - 1)
    return sorted_values[idx]


def aggregate_outcomes(outcomes: Iterable[OperationOutcome]) -> Optional[OperationStats]:
    """
    Summarize a batch of outcomes.

    Returns None when the batch contains no successful operation; callers
    omit that batch instead of reporting zeros.
    """
    outcomes = list(outcomes)
    times = sorted(o.elapsed_ms for o in outcomes if o.success)
    if not times:
        return None

    total = len(outcomes)
    successful = len(times)
    p50, p95, p99 = (nearest_rank_percentile(times, q) for q in PERCENTILES)

    return OperationStats(
        total_operations=total,
        successful=successful,
        failed=total - successful,
        avg_time_ms=round(math.fsum(times) / successful, 2),
        min_time_ms=times[0],
        max_time_ms=times[-1],
        p50=p50,
        p95=p95,
        p99=p99,
        success_rate=f"{successful / total * 100:.2f}",
    )
