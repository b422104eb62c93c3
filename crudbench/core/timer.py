"""
Operation Timer

Times a single request/response round trip and classifies it.
"""

import logging
import time
from typing import Any, Awaitable, Callable

from crudbench.models import OperationOutcome

logger = logging.getLogger(__name__)

UnitOfWork = Callable[[], Awaitable[Any]]


async def time_operation(work: UnitOfWork) -> OperationOutcome:
    """
    Execute `work` once and measure its wall-clock duration.

    Any failure of the unit of work (non-2xx status, transport error,
    timeout) is captured as an unsuccessful outcome rather than raised.
    Cancellation still propagates.

    Args:
        work: Zero-argument callable returning an awaitable

    Returns:
        OperationOutcome with elapsed milliseconds
    """
    start = time.perf_counter()
    try:
        await work()
    except Exception as e:
        elapsed_ms = (time.perf_counter() - start) * 1000.0
        logger.debug("Operation failed after %.3fms: %s", elapsed_ms, e)
        return OperationOutcome(
            success=False,
            elapsed_ms=round(elapsed_ms, 3),
            error_message=str(e) or type(e).__name__,
        )
    elapsed_ms = (time.perf_counter() - start) * 1000.0
    return OperationOutcome(success=True, elapsed_ms=round(elapsed_ms, 3))
