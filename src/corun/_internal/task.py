from __future__ import annotations

from collections import deque
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar, final

from corun._internal._types import EMPTY
from corun._internal.exceptions import (
    DeadlockError,
    TaskNotCompletedError,
    TaskPanicError,
)
from corun._internal.traps import current_task, park

if TYPE_CHECKING:
    from collections.abc import Coroutine, Generator

    from corun._internal.executor import Executor
    from corun._internal.traps import Operation

_R = TypeVar("_R")


class TaskStatus(str, Enum):
    RUNNABLE = "runnable"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAILED = "failed"


@final
class Task(Generic[_R]):
    __slots__: tuple[str, ...] = (
        "_coro",
        "_executor",
        "_resume_exc",
        "_resume_value",
        "detached",
        "exception",
        "joiners",
        "name",
        "observed",
        "result",
        "status",
        "task_id",
    )

    def __init__(
        self,
        *,
        task_id: int,
        name: str,
        coro: Coroutine[Any, Any, _R],  # pyright: ignore[reportExplicitAny]
        executor: Executor,
    ) -> None:
        self._coro: Coroutine[Any, Any, _R] = coro  # pyright: ignore[reportExplicitAny]
        self._executor: Executor = executor
        self._resume_value: object = None
        self._resume_exc: BaseException | None = None
        self.task_id: int = task_id
        self.name: str = name
        self.status: TaskStatus = TaskStatus.RUNNABLE
        self.result: _R = EMPTY
        self.exception: BaseException | None = None
        self.joiners: deque[Task[Any]] = deque()  # pyright: ignore[reportExplicitAny]
        self.observed: bool = False
        self.detached: bool = False

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}("
            f"task_id={self.task_id}, name={self.name!r}, "
            f"status={self.status.value})"
        )

    def is_done(self) -> bool:
        return self.status in (TaskStatus.COMPLETED, TaskStatus.FAILED)

    def resume(self) -> Operation:
        """Run the coroutine up to its next suspension point.

        Raises ``StopIteration`` when the coroutine returns.
        """
        exc, self._resume_exc = self._resume_exc, None
        value, self._resume_value = self._resume_value, None
        if exc is not None:
            return self._coro.throw(exc)
        return self._coro.send(value)

    def set_resume(
        self,
        value: object = None,
        exc: BaseException | None = None,
    ) -> None:
        self._resume_value = value
        self._resume_exc = exc

    def wake(self, value: object = None) -> None:
        """Make a suspended task runnable, resuming it with ``value``."""
        self._executor.wake(self, value=value)

    def wake_with_error(self, exc: BaseException) -> None:
        """Make a suspended task runnable, raising ``exc`` inside it."""
        self._executor.wake(self, exc=exc)

    def close(self) -> None:
        self._coro.close()

    def mark_observed(self) -> None:
        self.observed = True
        if self.is_done():
            self._executor.forget(self)


class TaskHandle(Generic[_R]):
    """Reference to a spawned task used to retrieve its eventual result.

    Outside of the executor call ``result()`` once the task is done. Inside
    another task ``await handle`` suspends until the task finishes and
    returns its value, or raises ``TaskPanicError`` if it failed.
    """

    __slots__: tuple[str, ...] = ("_task",)

    def __init__(self, task: Task[_R]) -> None:
        self._task: Task[_R] = task

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self._task!r})"

    @property
    def task_id(self) -> int:
        return self._task.task_id

    @property
    def name(self) -> str:
        return self._task.name

    @property
    def status(self) -> TaskStatus:
        return self._task.status

    def is_done(self) -> bool:
        return self._task.is_done()

    def result(self) -> _R:
        task = self._task
        if not task.is_done():
            raise TaskNotCompletedError
        task.mark_observed()
        if task.exception is not None:
            reason = f"{type(task.exception).__name__}: {task.exception}"
            raise TaskPanicError(task.task_id, reason) from task.exception
        return task.result

    def detach(self) -> None:
        """Give up interest in the result; a later failure is only logged."""
        self._task.detached = True
        if self._task.is_done():
            self._task.mark_observed()

    async def join(self) -> _R:
        if not self._task.is_done():
            me = await current_task()
            if me is self._task:
                raise DeadlockError({me.task_id: "join on itself"})
            self._task.joiners.append(me)
            _ = await park(f"join task {self._task.task_id}")
        return self.result()

    def __await__(self) -> Generator[Any, Any, _R]:  # pyright: ignore[reportExplicitAny]
        return self.join().__await__()
