"""Unit tests for the caller-side timeout."""

import pytest
import asyncio
from orchestrator.core.exceptions import ToolTimeoutError
from orchestrator.core.utils.timeout import pending_orphans, run_with_timeout


@pytest.mark.asyncio
async def test_returns_result_when_settled_in_time():
    async def quick():
        return 42

    assert await run_with_timeout(quick(), 1.0, label="quick") == 42


@pytest.mark.asyncio
async def test_reraises_operation_error():
    async def broken():
        raise ValueError("boom")

    with pytest.raises(ValueError, match="boom"):
        await run_with_timeout(broken(), 1.0)


@pytest.mark.asyncio
async def test_timeout_does_not_cancel_the_operation():
    finished = asyncio.Event()

    async def slow():
        await asyncio.sleep(0.1)
        finished.set()
        return "late"

    with pytest.raises(ToolTimeoutError) as exc_info:
        await run_with_timeout(slow(), 0.01, label="Tool slow")

    assert exc_info.value.timeout == 0.01
    assert "Tool slow timed out" in exc_info.value.message
    assert pending_orphans() >= 1

    # The orphaned operation still runs to completion
    await asyncio.wait_for(finished.wait(), timeout=1.0)
    await asyncio.sleep(0)
    assert finished.is_set()
