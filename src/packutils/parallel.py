"""Simple asyncio-aware helpers for running blocking work in an executor."""
from __future__ import annotations

import asyncio
import os
from concurrent.futures import Executor, ProcessPoolExecutor
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional, TypeVar

T = TypeVar("T")


async def run_in_executor(
    func: Callable[..., T], *args: Any, executor: Optional[Executor] = None
) -> T:
    """Run ``func`` in ``executor`` (the loop's default thread pool if omitted) and await it."""

    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, func, *args)


def default_workers() -> int:
    return os.cpu_count() or 1


@contextmanager
def worker_pool(workers: Optional[int]) -> Iterator[Optional[Executor]]:
    """Yield a process pool sized to ``workers``.

    ``None`` selects one worker per CPU. A single worker yields ``None`` so
    work falls back to the event loop's default thread pool and never forks.
    """

    count = workers or default_workers()
    if count <= 1:
        yield None
        return
    executor = ProcessPoolExecutor(max_workers=count)
    try:
        yield executor
    finally:
        executor.shutdown()
