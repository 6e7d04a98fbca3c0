"""Structured fan-out for concurrent source queries."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any


async def run_together(*coros: Coroutine[Any, Any, Any]) -> list[Any]:
    """Await ``coros`` concurrently and return their results in order.

    The first failure cancels the remaining queries and waits for them to
    unwind. That failure is then re-raised as-is, not wrapped in an
    ``ExceptionGroup``, so callers catch the same errors as for one query.
    """
    failure: Exception | None = None
    try:
        async with asyncio.TaskGroup() as group:
            tasks = [group.create_task(coro) for coro in coros]
    except ExceptionGroup as exc_group:
        failure = exc_group.exceptions[0]

    if failure is not None:
        raise failure
    return [task.result() for task in tasks]
