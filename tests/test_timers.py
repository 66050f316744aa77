import asyncio

import pytest

from kelvinshift.services.timers import AsyncioScheduler


@pytest.mark.asyncio
async def test_repeats_until_cancelled():
    calls = []
    task = AsyncioScheduler().every(0.01, lambda: calls.append(1), name="probe")
    await asyncio.sleep(0.1)
    task.cancel()
    count = len(calls)
    assert count >= 3
    await asyncio.sleep(0.05)
    assert len(calls) == count
    assert task.cancelled


@pytest.mark.asyncio
async def test_failing_callback_keeps_running():
    calls = []

    def flaky():
        calls.append(1)
        raise RuntimeError("boom")

    task = AsyncioScheduler().every(0.01, flaky)
    await asyncio.sleep(0.1)
    task.cancel()
    assert len(calls) >= 2


@pytest.mark.asyncio
async def test_callback_can_cancel_itself():
    calls = []
    holder = {}

    def once():
        calls.append(1)
        holder["task"].cancel()

    holder["task"] = AsyncioScheduler().every(0.01, once)
    await asyncio.sleep(0.08)
    assert calls == [1]
