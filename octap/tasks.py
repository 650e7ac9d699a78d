"""Tracking of fire-and-forget tasks so they can be drained before exit."""

import asyncio
from collections.abc import Coroutine
from typing import Any


class TaskTracker:
    """Task group whose members may outlive the code that spawned them.

    Holds a strong reference to every pending task (the event loop only
    keeps weak ones) and an idle event that is set whenever the pending
    count drops to zero. All bookkeeping happens on the event loop thread.
    """

    def __init__(self) -> None:
        self._tasks: set[asyncio.Task[None]] = set()
        self._idle = asyncio.Event()
        self._idle.set()

    @property
    def pending(self) -> int:
        """Number of tasks spawned and not finished yet."""
        return len(self._tasks)

    def spawn(
        self, coro: Coroutine[Any, Any, None], *, name: str | None = None
    ) -> asyncio.Task[None]:
        """Schedule ``coro`` and track it until it finishes."""
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        self._idle.clear()
        task.add_done_callback(self._discard)
        return task

    async def wait_all(self) -> None:
        """Wait until every task spawned so far, and since, has finished."""
        await self._idle.wait()

    def _discard(self, task: asyncio.Task[None]) -> None:
        self._tasks.discard(task)
        if not self._tasks:
            self._idle.set()
