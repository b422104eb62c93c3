"""
Tests for the operation timer.
"""

import asyncio

import pytest

from crudbench.core.timer import time_operation
from crudbench.models import POSTGRES

pytestmark = pytest.mark.asyncio


async def test_successful_operation_is_timed() -> None:
    async def work():
        await asyncio.sleep(0.01)
        return "ok"

    outcome = await time_operation(work)

    assert outcome.success is True
    assert outcome.error_message is None
    assert outcome.elapsed_ms >= 9.0


async def test_failure_is_captured_not_raised() -> None:
    async def work():
        raise RuntimeError("connection reset")

    outcome = await time_operation(work)

    assert outcome.success is False
    assert outcome.error_message == "connection reset"
    assert outcome.elapsed_ms >= 0.0


async def test_failure_without_message_uses_exception_type() -> None:
    async def work():
        raise asyncio.TimeoutError()

    outcome = await time_operation(work)

    assert outcome.success is False
    assert outcome.error_message == "TimeoutError"


async def test_cancellation_propagates() -> None:
    async def work():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        await time_operation(work)


async def test_non_2xx_response_is_a_failure(api_client, stub_state) -> None:
    """A 500 from the API is recorded as an unsuccessful outcome."""
    stub_state.fail_kinds.add("read")

    async with api_client:
        api = api_client.for_backend(POSTGRES)
        outcome = await time_operation(lambda: api.get_user(1))

    assert outcome.success is False
    assert "500" in outcome.error_message
    assert stub_state.count("postgres", "read") == 1
