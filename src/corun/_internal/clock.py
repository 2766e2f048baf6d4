"""Time sources used by the executor to fire timers."""

from __future__ import annotations

import time
from abc import ABC, abstractmethod

from typing_extensions import override


class Clock(ABC):
    """Monotonic time source measured in seconds.

    The executor reads ``now()`` to compute sleep deadlines and calls
    ``advance_to()`` when every task is blocked on a timer.
    """

    __slots__: tuple[str, ...] = ()

    @abstractmethod
    def now(self) -> float:
        raise NotImplementedError

    @abstractmethod
    def advance_to(self, deadline: float, /) -> None:
        raise NotImplementedError


class VirtualClock(Clock):
    """Clock that jumps straight to the next deadline.

    Nothing ever really waits, so relative ordering of timers is exactly
    reproducible.
    """

    __slots__: tuple[str, ...] = ("_now",)

    def __init__(self, start: float = 0.0) -> None:
        self._now: float = start

    @override
    def now(self) -> float:
        return self._now

    @override
    def advance_to(self, deadline: float, /) -> None:
        self._now = max(self._now, deadline)


class MonotonicClock(Clock):
    """Wall clock backed by ``time.monotonic``; advancing blocks the thread."""

    __slots__: tuple[str, ...] = ()

    @override
    def now(self) -> float:
        return time.monotonic()

    @override
    def advance_to(self, deadline: float, /) -> None:
        remaining = deadline - time.monotonic()
        if remaining > 0:
            time.sleep(remaining)
