"""Debounced scheduling with sequence tokens for metadata lookups."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional, Set


class Debouncer:
    """
    Runs only the most recently scheduled action, `delay` seconds after it
    was scheduled.

    Rescheduling cancels an action that is still waiting out its delay. An
    action that already started keeps running; callers compare the token it
    was given with `is_current` before applying its result.
    """

    def __init__(self, delay: float) -> None:
        self._delay = max(0.0, float(delay))
        self._token = 0
        self._pending: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def token(self) -> int:
        return self._token

    @property
    def has_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    def is_current(self, token: int) -> bool:
        return token == self._token

    def invalidate(self) -> int:
        """Drop the waiting action, if any, and retire every issued token."""
        if self.has_pending:
            self._pending.cancel()
        self._pending = None
        self._token += 1
        return self._token

    def schedule(self, action: Callable[[int], Awaitable[None]]) -> int:
        token = self.invalidate()
        task = asyncio.get_running_loop().create_task(self._fire(token, action))
        self._pending = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return token

    async def wait_idle(self) -> None:
        """Wait for waiting and in-flight actions, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _fire(self, token: int, action: Callable[[int], Awaitable[None]]) -> None:
        await asyncio.sleep(self._delay)
        if self._pending is asyncio.current_task():
            self._pending = None
        await action(token)
