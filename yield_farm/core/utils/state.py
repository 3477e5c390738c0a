"""Observable value containers used to push state changes to presenters."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable

from loguru import logger


class StateCell[T]:
    """Hold one value and notify subscribers whenever it is replaced.

    Synchronous listeners registered with `subscribe` run inline during
    `set`. Async consumers use `listen`, which yields the current value first
    and then every later one through a private queue.
    """

    def __init__(self, value: T, *, name: str = "state") -> None:
        self._value = value
        self._name = name
        self._listeners: list[Callable[[T], None]] = []
        self._queues: list[asyncio.Queue[T]] = []

    @property
    def value(self) -> T:
        return self._value

    def set(self, value: T) -> None:
        self._value = value
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception as exc:  # noqa: BLE001
                logger.error(f"Listener on {self._name} raised: {exc}")
        for queue in list(self._queues):
            queue.put_nowait(value)

    def subscribe(self, listener: Callable[[T], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    async def listen(self) -> AsyncIterator[T]:
        queue: asyncio.Queue[T] = asyncio.Queue()
        queue.put_nowait(self._value)
        self._queues.append(queue)
        try:
            while True:
                yield await queue.get()
        finally:
            self._queues.remove(queue)

    def __repr__(self) -> str:
        return f"StateCell({self._name}={self._value!r})"
