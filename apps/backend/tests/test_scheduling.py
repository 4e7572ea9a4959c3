"""Tests for the trailing-edge debouncer."""

import asyncio

from resume_builder.services.scheduling import AsyncioScheduler, Debouncer


def test_burst_runs_last_callback_once(scheduler):
    calls = []
    debouncer = Debouncer(scheduler)
    for value in range(5):
        debouncer.schedule(lambda value=value: calls.append(value), 1.0)
        scheduler.advance(0.5)
    assert calls == []
    scheduler.advance(0.5)
    assert calls == [4]
    assert not debouncer.pending


def test_cancel_pending(scheduler):
    calls = []
    debouncer = Debouncer(scheduler)
    debouncer.schedule(lambda: calls.append(1), 1.0)
    debouncer.cancel_pending()
    scheduler.advance(5)
    assert calls == []
    assert scheduler.pending == 0


def test_flush_runs_now(scheduler):
    calls = []
    debouncer = Debouncer(scheduler)
    assert debouncer.flush() is False
    debouncer.schedule(lambda: calls.append(1), 1.0)
    assert debouncer.flush() is True
    assert calls == [1]
    scheduler.advance(5)
    assert calls == [1]


async def test_asyncio_scheduler_fires_on_loop():
    fired = asyncio.Event()
    debouncer = Debouncer(AsyncioScheduler())
    debouncer.schedule(fired.set, 0.01)
    await asyncio.wait_for(fired.wait(), timeout=1)
    assert not debouncer.pending
