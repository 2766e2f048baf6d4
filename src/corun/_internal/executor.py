from __future__ import annotations

import inspect
import itertools
import logging
from collections import deque
from typing import TYPE_CHECKING, Any, TypeVar, overload

from corun._internal._type_guards import is_async_callable
from corun._internal._types import EMPTY
from corun._internal.clock import VirtualClock
from corun._internal.configuration import ExecutorConfiguration
from corun._internal.exceptions import (
    DeadlockError,
    InvalidTaskTypeError,
    SchedulerInvariantError,
    raise_executor_running_error,
    raise_executor_shut_down_error,
)
from corun._internal.task import Task, TaskHandle, TaskStatus
from corun._internal.timer import TimerQueue
from corun._internal.traps import CurrentTask, Park, Sleep, Yield

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine
    from types import TracebackType

    from corun._internal.clock import Clock

_R = TypeVar("_R")

logger = logging.getLogger(__name__)


class Executor:
    """Cooperative scheduler driving ``async def`` computations.

    Tasks run one at a time and only switch at suspension points: ``sleep``,
    a contended ``Mutex.lock``, a full ``send`` or an empty ``receive``, a join
    on an unfinished handle, or ``yield_now``. Ready tasks run in the order they
    became ready; timers fire in deadline order, ties by ascending task id.

    The executor is an explicit object. Nothing is registered globally, so
    several executors can coexist, each with its own clock.
    """

    def __init__(
        self,
        *,
        clock: Clock | None = None,
        strict: bool = False,
    ) -> None:
        self.config: ExecutorConfiguration = ExecutorConfiguration(
            clock=clock or VirtualClock(),
            strict=strict,
        )
        self._ids: itertools.count[int] = itertools.count()
        self._tasks: dict[int, Task[Any]] = {}  # pyright: ignore[reportExplicitAny]
        self._ready: deque[Task[Any]] = deque()  # pyright: ignore[reportExplicitAny]
        self._waiting: dict[int, str] = {}
        self._timers: TimerQueue = TimerQueue()
        self._running: bool = False
        self._closed: bool = False

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}("
            f"tasks={len(self._tasks)}, ready={len(self._ready)}, "
            f"waiting={len(self._waiting)}, now={self.now()})"
        )

    @property
    def clock(self) -> Clock:
        return self.config.clock

    def now(self) -> float:
        return self.config.clock.now()

    def waiting(self) -> dict[int, str]:
        """Snapshot of suspended task ids and what each one waits on."""
        return dict(self._waiting)

    @overload
    def spawn(
        self,
        computation: Coroutine[Any, Any, _R],  # pyright: ignore[reportExplicitAny]
        /,
        *,
        name: str | None = None,
    ) -> TaskHandle[_R]: ...

    @overload
    def spawn(
        self,
        computation: Callable[..., Coroutine[Any, Any, _R]],  # pyright: ignore[reportExplicitAny]
        /,
        *args: Any,  # pyright: ignore[reportExplicitAny]
        name: str | None = None,
        **kwargs: Any,  # pyright: ignore[reportExplicitAny]
    ) -> TaskHandle[_R]: ...

    def spawn(
        self,
        computation: (
            Coroutine[Any, Any, _R]  # pyright: ignore[reportExplicitAny]
            | Callable[..., Coroutine[Any, Any, _R]]  # pyright: ignore[reportExplicitAny]
        ),
        /,
        *args: Any,  # pyright: ignore[reportExplicitAny]
        name: str | None = None,
        **kwargs: Any,  # pyright: ignore[reportExplicitAny]
    ) -> TaskHandle[_R]:
        """Register a new runnable task and return its handle.

        The task does not start here; it runs the next time the executor
        drains its ready queue.
        """
        if self._closed:
            raise_executor_shut_down_error("spawn")
        coro = _as_coroutine(computation, args, kwargs)
        task_id = next(self._ids)
        task = Task(
            task_id=task_id,
            name=name or f"task-{task_id}",
            coro=coro,
            executor=self,
        )
        self._tasks[task_id] = task
        self._ready.append(task)
        logger.debug("Spawned task %d (%s)", task_id, task.name)
        return TaskHandle(task)

    @overload
    def run_until_complete(
        self,
        root: Coroutine[Any, Any, _R],  # pyright: ignore[reportExplicitAny]
        /,
    ) -> _R: ...

    @overload
    def run_until_complete(
        self,
        root: Callable[..., Coroutine[Any, Any, _R]],  # pyright: ignore[reportExplicitAny]
        /,
        *args: Any,  # pyright: ignore[reportExplicitAny]
        **kwargs: Any,  # pyright: ignore[reportExplicitAny]
    ) -> _R: ...

    def run_until_complete(
        self,
        root: (
            Coroutine[Any, Any, _R]  # pyright: ignore[reportExplicitAny]
            | Callable[..., Coroutine[Any, Any, _R]]  # pyright: ignore[reportExplicitAny]
        ),
        /,
        *args: Any,  # pyright: ignore[reportExplicitAny]
        **kwargs: Any,  # pyright: ignore[reportExplicitAny]
    ) -> _R:
        """Run ``root`` and everything it spawns, then return its result.

        Scheduling continues after the root finishes until no task can make
        progress. A failed root raises ``TaskPanicError``; a root that can
        never finish raises ``DeadlockError``.
        """
        if self._closed:
            _close_if_coroutine(root)
            raise_executor_shut_down_error("run_until_complete")
        if self._running:
            _close_if_coroutine(root)
            raise_executor_running_error("run_until_complete")
        handle = self.spawn(root, *args, name="root", **kwargs)
        self._running = True
        try:
            self._drive(handle)
        finally:
            self._running = False
        return handle.result()

    def _drive(self, root: TaskHandle[Any]) -> None:  # pyright: ignore[reportExplicitAny]
        clock = self.config.clock
        while True:
            self._fire_due_timers(clock.now())
            if self._ready:
                self._step(self._ready.popleft())
                if self.config.strict:
                    self._check_invariants()
                continue
            deadline = self._timers.next_deadline()
            if deadline is not None:
                clock.advance_to(deadline)
                logger.debug("Clock advanced to %.6f", clock.now())
                continue
            if root.is_done():
                break
            raise DeadlockError(dict(self._waiting))

        if self._waiting:
            logger.warning(
                "Root finished with %d task(s) still blocked: %s",
                len(self._waiting),
                self._waiting,
            )

    def _fire_due_timers(self, now: float) -> None:
        for entry in self._timers.pop_due(now):
            self.wake(entry.task)

    def _step(self, task: Task[Any]) -> None:  # pyright: ignore[reportExplicitAny]
        while True:
            try:
                operation = task.resume()
            except StopIteration as stop:
                self._finish(task, result=stop.value)
                return
            except Exception as exc:  # noqa: BLE001
                self._finish(task, exc=exc)
                return

            match operation:
                case CurrentTask():
                    task.set_resume(task)
                case Yield():
                    self._ready.append(task)
                    return
                case Sleep(delay_seconds=delay_seconds):
                    self._suspend(task, "sleep")
                    self._timers.push(self.now() + delay_seconds, task)
                    return
                case Park(reason=reason):
                    self._suspend(task, reason)
                    return
                case _:
                    err_msg = (
                        f"Task {task.task_id} awaited unsupported object "
                        f"{operation!r}; only corun primitives can suspend "
                        "a task"
                    )
                    task.set_resume(exc=TypeError(err_msg))

    def _suspend(self, task: Task[Any], reason: str) -> None:  # pyright: ignore[reportExplicitAny]
        task.status = TaskStatus.SUSPENDED
        self._waiting[task.task_id] = reason

    def wake(
        self,
        task: Task[Any],  # pyright: ignore[reportExplicitAny]
        *,
        value: object = None,
        exc: BaseException | None = None,
    ) -> None:
        del self._waiting[task.task_id]
        task.status = TaskStatus.RUNNABLE
        task.set_resume(value, exc)
        self._ready.append(task)

    def _finish(
        self,
        task: Task[Any],  # pyright: ignore[reportExplicitAny]
        *,
        result: object = EMPTY,
        exc: Exception | None = None,
    ) -> None:
        if exc is None:
            task.status = TaskStatus.COMPLETED
            task.result = result
            logger.debug("Task %d (%s) completed", task.task_id, task.name)
        else:
            task.status = TaskStatus.FAILED
            task.exception = exc
            logger.debug(
                "Task %d (%s) failed: %r",
                task.task_id,
                task.name,
                exc,
            )
        while task.joiners:
            task.joiners.popleft().wake()
        if task.detached:
            if exc is not None:
                logger.error(
                    "Detached task %d (%s) failed",
                    task.task_id,
                    task.name,
                    exc_info=exc,
                )
            self.forget(task)

    def forget(self, task: Task[Any]) -> None:  # pyright: ignore[reportExplicitAny]
        _ = self._tasks.pop(task.task_id, None)

    def _check_invariants(self) -> None:
        ready_ids = [task.task_id for task in self._ready]
        if len(set(ready_ids)) != len(ready_ids):
            detail = f"duplicate ids in ready queue {ready_ids}"
            raise SchedulerInvariantError(detail)
        if both := set(ready_ids) & self._waiting.keys():
            detail = f"tasks {sorted(both)} are both ready and waiting"
            raise SchedulerInvariantError(detail)
        live = {
            task_id
            for task_id, task in self._tasks.items()
            if not task.is_done()
        }
        if untracked := live - set(ready_ids) - self._waiting.keys():
            detail = f"tasks {sorted(untracked)} are neither ready nor waiting"
            raise SchedulerInvariantError(detail)

    def shutdown(self) -> None:
        """Close every live task and report failures nobody observed."""
        if self._running:
            raise_executor_running_error("shutdown")
        if self._closed:
            return
        self._closed = True
        try:
            for task in list(self._tasks.values()):
                self._dispose(task)
        finally:
            self._tasks.clear()
            self._ready.clear()
            self._waiting.clear()
            self._timers.clear()

    def _dispose(self, task: Task[Any]) -> None:  # pyright: ignore[reportExplicitAny]
        if task.status is TaskStatus.FAILED and not task.observed:
            logger.error(
                "Task %d (%s) failed and its result was never observed",
                task.task_id,
                task.name,
                exc_info=task.exception,
            )
            return
        if task.is_done():
            return
        logger.warning(
            "Task %d (%s) abandoned while waiting on %r",
            task.task_id,
            task.name,
            self._waiting.get(task.task_id, "ready queue"),
        )
        try:
            task.close()
        except Exception:
            logger.exception(
                "Task %d (%s) did not close cleanly",
                task.task_id,
                task.name,
            )

    def __enter__(self) -> Executor:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        self.shutdown()


def _as_coroutine(
    computation: object,
    args: tuple[Any, ...],  # pyright: ignore[reportExplicitAny]
    kwargs: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> Coroutine[Any, Any, Any]:  # pyright: ignore[reportExplicitAny]
    if inspect.iscoroutine(computation):
        if args or kwargs:
            computation.close()
            err_msg = "Cannot pass arguments together with a coroutine object"
            raise TypeError(err_msg)
        return computation
    if is_async_callable(computation):
        return computation(*args, **kwargs)
    raise InvalidTaskTypeError(
        func_type=type(computation).__name__,
        func_name=getattr(computation, "__name__", repr(computation)),
    )


def _close_if_coroutine(computation: object) -> None:
    if inspect.iscoroutine(computation):
        computation.close()
