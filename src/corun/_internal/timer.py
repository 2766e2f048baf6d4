from __future__ import annotations

import heapq
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from corun._internal.exceptions import NegativeDelayError
from corun._internal.traps import Sleep, Trap

if TYPE_CHECKING:
    from corun._internal.task import Task


@dataclass(slots=True, order=True, frozen=True)
class TimerEntry:
    deadline: float
    task_id: int
    task: Task[Any] = field(compare=False)  # pyright: ignore[reportExplicitAny]


class TimerQueue:
    """Deadline-ordered timers; equal deadlines fire by ascending task id."""

    __slots__: tuple[str, ...] = ("_heap",)

    def __init__(self) -> None:
        self._heap: list[TimerEntry] = []

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def push(self, deadline: float, task: Task[Any]) -> None:  # pyright: ignore[reportExplicitAny]
        heapq.heappush(self._heap, TimerEntry(deadline, task.task_id, task))

    def next_deadline(self) -> float | None:
        if not self._heap:
            return None
        return self._heap[0].deadline

    def pop_due(self, now: float) -> list[TimerEntry]:
        due: list[TimerEntry] = []
        while self._heap and self._heap[0].deadline <= now:
            due.append(heapq.heappop(self._heap))
        return due

    def clear(self) -> None:
        self._heap.clear()


async def sleep(delay_seconds: float, /) -> None:
    """Suspend the running task for ``delay_seconds`` of executor time."""
    if delay_seconds < 0:
        raise NegativeDelayError(delay_seconds)
    _ = await Trap(Sleep(delay_seconds))
