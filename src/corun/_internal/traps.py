"""Suspension points.

A task talks to the executor driving it by yielding an operation object
from ``__await__``. The executor inspects the operation, decides whether the
task keeps running or suspends, and later resumes the coroutine with the
value the operation produces. No executor is ever looked up globally.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar, cast, final

if TYPE_CHECKING:
    from collections.abc import Generator

    from corun._internal.task import Task

_T = TypeVar("_T")


class Operation:
    __slots__: tuple[str, ...] = ()


@final
@dataclass(slots=True, frozen=True)
class CurrentTask(Operation):
    """Resume immediately with the running ``Task``."""


@final
@dataclass(slots=True, frozen=True)
class Yield(Operation):
    """Move to the back of the ready queue."""


@final
@dataclass(slots=True, frozen=True)
class Sleep(Operation):
    delay_seconds: float


@final
@dataclass(slots=True, frozen=True)
class Park(Operation):
    """Suspend until a primitive wakes the task.

    The primitive must have registered the task in its own wait queue
    before yielding this operation.
    """

    reason: str


@final
class Trap(Generic[_T]):
    __slots__: tuple[str, ...] = ("operation",)

    def __init__(self, operation: Operation) -> None:
        self.operation: Operation = operation

    def __await__(self) -> Generator[Operation, Any, _T]:  # pyright: ignore[reportExplicitAny]
        value = yield self.operation
        return cast("_T", value)


async def current_task() -> Task[Any]:  # pyright: ignore[reportExplicitAny]
    task: Task[Any] = await Trap(CurrentTask())  # pyright: ignore[reportExplicitAny]
    return task


async def park(reason: str) -> Any:  # noqa: ANN401  # pyright: ignore[reportExplicitAny]
    return await Trap(Park(reason))


async def yield_now() -> None:
    """Let every other ready task run once before continuing."""
    _ = await Trap(Yield())


async def current_task_id() -> int:
    """Return the id the executor assigned to the running task."""
    task = await current_task()
    return task.task_id
