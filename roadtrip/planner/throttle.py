from __future__ import annotations

import time
from typing import Callable, Generic, Iterable, Iterator, TypeVar

T = TypeVar("T")


class ThrottledTask(Generic[T]):
    """
    Iterate over ``items`` yielding at most one item per ``min_interval`` seconds.

    The gap is measured between consecutive yields, so the time the caller
    spends processing an item counts towards the next wait.
    """

    def __init__(
        self,
        items: Iterable[T],
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval must be >= 0")
        self._items = items
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_step: float | None = None
        self.steps = 0

    def __iter__(self) -> Iterator[T]:
        for item in self._items:
            self._wait_turn()
            self.steps += 1
            yield item

    def _wait_turn(self) -> None:
        if self._last_step is not None:
            remaining = self._last_step + self.min_interval - self._clock()
            if remaining > 0:
                self._sleep(remaining)
        self._last_step = self._clock()
