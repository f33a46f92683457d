"""Deadline and cancellation helpers for awaiting remote calls."""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from .errors import OperationCancelled

T = TypeVar("T")


def check_cancelled(cancel: asyncio.Event | None) -> None:
    """Raise OperationCancelled if the cancel signal has been set."""
    if cancel is not None and cancel.is_set():
        raise OperationCancelled("Operation cancelled.")


async def guarded(
    awaitable: Awaitable[T],
    *,
    timeout: float | None = None,
    cancel: asyncio.Event | None = None,
) -> T:
    """Await *awaitable* unless the deadline passes or *cancel* is set first.

    Raises:
        TimeoutError: The deadline passed before the awaitable finished.
        OperationCancelled: The cancel signal was set.
    """
    if cancel is not None and cancel.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise OperationCancelled("Operation cancelled.")

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel.wait()) if cancel is not None else None

    pending = {task} if waiter is None else {task, waiter}
    try:
        done, _ = await asyncio.wait(
            pending, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
    finally:
        if waiter is not None:
            waiter.cancel()
        if not task.done():
            task.cancel()

    if task in done:
        return task.result()

    if waiter is not None and waiter in done:
        raise OperationCancelled("Operation cancelled.")
    raise TimeoutError(f"Operation did not finish within {timeout} seconds")
