"""
In-process single-flight: concurrent callers with the same key share one
in-flight execution. The shared task is cancelled only when every waiter has
gone away.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Dict, Hashable, TypeVar

T = TypeVar("T")


class _Call:
    __slots__ = ("task", "waiters")

    def __init__(self, task: "asyncio.Task") -> None:
        self.task = task
        self.waiters = 0


class SingleFlight:
    def __init__(self) -> None:
        self._calls: Dict[Hashable, _Call] = {}

    def in_flight(self, key: Hashable) -> bool:
        return key in self._calls

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        call = self._calls.get(key)
        if call is None:
            call = _Call(asyncio.ensure_future(factory()))
            self._calls[key] = call
            call.task.add_done_callback(lambda _task, key=key, call=call: self._forget(key, call))
        call.waiters += 1
        try:
            return await asyncio.shield(call.task)
        except asyncio.CancelledError:
            if call.waiters == 1 and not call.task.done():
                call.task.cancel()
            raise
        finally:
            call.waiters -= 1

    def _forget(self, key: Hashable, call: _Call) -> None:
        if self._calls.get(key) is call:
            del self._calls[key]
