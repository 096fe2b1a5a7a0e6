"""Progress status channel and periodic tickers used while an audit streams."""

from __future__ import annotations

import asyncio
import contextlib
from typing import AsyncIterator, Callable, List, Optional


LOADING_PHASES = [
    "Изпращане на заявка...",
    "Анализиране на видеото...",
    "Проверка на твърдения...",
    "Финализиране на доклада...",
]

_CLOSED = object()


class ProgressChannel:
    """
    Last-value-wins stream of free-text status events.

    Events are informational: a slow subscriber only ever sees the newest
    pending value, older ones are dropped.
    """

    def __init__(self) -> None:
        self._latest: Optional[str] = None
        self._subscribers: List[asyncio.Queue] = []

    @property
    def latest(self) -> Optional[str]:
        return self._latest

    def publish(self, status: str) -> None:
        self._latest = status
        for queue in list(self._subscribers):
            self._offer(queue, status)

    def clear(self) -> None:
        self._latest = None

    def close(self) -> None:
        """End current subscriptions. The channel stays usable for new ones."""
        for queue in list(self._subscribers):
            self._offer(queue, _CLOSED)
        self._subscribers.clear()

    async def subscribe(self) -> AsyncIterator[str]:
        queue: asyncio.Queue = asyncio.Queue(maxsize=1)
        self._subscribers.append(queue)
        try:
            while True:
                item = await queue.get()
                if item is _CLOSED:
                    return
                yield item
        finally:
            if queue in self._subscribers:
                self._subscribers.remove(queue)

    @staticmethod
    def _offer(queue: asyncio.Queue, item: object) -> None:
        if queue.full():
            queue.get_nowait()
        queue.put_nowait(item)


class Ticker:
    """Calls `callback` every `interval` seconds until stopped."""

    def __init__(self, interval: float, callback: Callable[[], None]) -> None:
        self._interval = max(0.001, float(interval))
        self._callback = callback
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            self._callback()
