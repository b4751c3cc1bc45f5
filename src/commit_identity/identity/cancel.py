"""Races a background lookup against the caller's cancellation event."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any, TypeVar

from commit_identity.identity.errors import MatchCanceledError

T = TypeVar("T")


def _consume_outcome(task: asyncio.Task) -> None:
    # A task abandoned after cancellation may still finish with an error;
    # retrieve it so asyncio does not report it as never retrieved.
    if not task.cancelled():
        task.exception()


async def run_cancellable(
    coro: Coroutine[Any, Any, T], cancel: asyncio.Event | None = None
) -> T:
    """Run ``coro`` as a task and return its result, unless ``cancel`` fires first.

    If the cancellation event wins the race, the task is cancelled (which
    interrupts pending HTTP requests and rate-limit sleeps) and
    MatchCanceledError is raised without waiting for the task to wind down.
    Exceptions raised by the task propagate unchanged.
    """
    if cancel is None:
        return await coro
    if cancel.is_set():
        coro.close()
        raise MatchCanceledError()

    task = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(cancel.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        raise
    finally:
        waiter.cancel()

    if task.done():
        return task.result()
    task.add_done_callback(_consume_outcome)
    task.cancel()
    raise MatchCanceledError()
