"""
Tests for async_utils module.

Covers run_sync, run_exclusive and reset_lock.
"""

import asyncio
import threading

import pytest

import revolver_sync.core.async_utils as mod
from revolver_sync.core.async_utils import reset_lock, run_exclusive, run_sync


@pytest.fixture(autouse=True)
def _fresh_lock():
    reset_lock()
    yield
    reset_lock()


def _sync_add(a: int, b: int) -> int:
    return a + b


async def test_run_sync_calls_function():
    assert await run_sync(_sync_add, 3, 4) == 7


async def test_run_sync_passes_kwargs():
    def _kw_func(*, name: str) -> str:
        return f"hello {name}"

    assert await run_sync(_kw_func, name="world") == "hello world"


async def test_run_sync_runs_off_the_event_loop_thread():
    loop_thread = threading.get_ident()
    worker_thread = await run_sync(threading.get_ident)
    assert worker_thread != loop_thread


async def test_run_sync_propagates_exceptions():
    def _boom():
        raise RuntimeError("sync failed")

    with pytest.raises(RuntimeError, match="sync failed"):
        await run_sync(_boom)


async def test_run_exclusive_returns_result():
    assert await run_exclusive(_sync_add, 1, 2) == 3


async def test_run_exclusive_serialises_calls():
    """Two exclusive runs never overlap."""
    active = 0
    peak = 0
    guard = threading.Lock()

    def _work():
        nonlocal active, peak
        with guard:
            active += 1
            peak = max(peak, active)
        threading.Event().wait(0.05)
        with guard:
            active -= 1

    await asyncio.gather(*(run_exclusive(_work) for _ in range(3)))

    assert peak == 1


async def test_run_exclusive_releases_lock_on_error():
    def _boom():
        raise OSError("disk full")

    with pytest.raises(OSError):
        await run_exclusive(_boom)

    assert not mod._get_lock().locked()
    assert await run_exclusive(_sync_add, 2, 2) == 4


async def test_waiting_is_logged(caplog):
    started = threading.Event()
    release = threading.Event()

    def _slow():
        started.set()
        release.wait(5)

    first = asyncio.create_task(run_exclusive(_slow))
    await run_sync(started.wait, 5)
    with caplog.at_level("INFO", logger="revolver_sync.core.async_utils"):
        second = asyncio.create_task(run_exclusive(_sync_add, 1, 1))
        await asyncio.sleep(0)
        release.set()
        await first
        assert await second == 2

    assert "Sync already running" in caplog.text


def test_reset_lock_drops_instance():
    lock = mod._get_lock()
    assert mod._get_lock() is lock
    reset_lock()
    assert mod._sync_lock is None
    assert mod._get_lock() is not lock
