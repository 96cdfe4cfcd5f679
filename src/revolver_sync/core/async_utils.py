"""Async helpers for running blocking WebDAV sync work from MCP handlers."""

import asyncio
import logging
from typing import Any, Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)

# At most one sync run per process; see run_exclusive().
_sync_lock: asyncio.Lock | None = None


def _get_lock() -> asyncio.Lock:
    global _sync_lock
    if _sync_lock is None:
        _sync_lock = asyncio.Lock()
    return _sync_lock


def reset_lock() -> None:
    """Drop the module lock (used when a new event loop starts)."""
    global _sync_lock
    _sync_lock = None


async def run_sync(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Run a synchronous function in a thread pool without blocking the event loop.

    Args:
        func: Synchronous function to call
        *args: Positional arguments for func
        **kwargs: Keyword arguments for func

    Returns:
        Result of func(*args, **kwargs)

    Example:
        # In MCP tool handler:
        status = await run_sync(client.probe, endpoint)
    """
    return await asyncio.to_thread(func, *args, **kwargs)


async def run_exclusive(
    func: Callable[..., T], *args: Any, **kwargs: Any
) -> T:
    """Like :func:`run_sync`, but serialised behind a process-wide lock.

    Two sync runs against the same local directories must never overlap,
    so every upload/download tool goes through here.
    """
    lock = _get_lock()
    if lock.locked():
        logger.info("Sync already running; waiting for it to finish")
    async with lock:
        return await asyncio.to_thread(func, *args, **kwargs)
