from typing import NoReturn


class CorunError(Exception):
    pass


class TaskNotCompletedError(CorunError):
    """Raised when trying to access result of incomplete task."""

    def __init__(
        self,
        message: str = (
            "Task result is not ready yet, "
            "please run the executor or await the handle first"
        ),
    ) -> None:
        super().__init__(message)


class TaskPanicError(CorunError):
    """Raised to the awaiter of a task whose body raised an exception.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, task_id: int, reason: str) -> None:
        self.task_id: int = task_id
        self.reason: str = reason
        message = f"task_id: {task_id}, failed_reason: {reason}"
        super().__init__(message)


class ChannelClosedError(CorunError):
    """Raised when sending into a channel that has been closed."""

    def __init__(
        self,
        message: str = "Cannot send - channel is closed.",
    ) -> None:
        super().__init__(message)


class MutexPoisonedError(CorunError):
    """Raised when acquiring a mutex whose previous holder failed.

    An exception escaping the ``async with mutex.lock()`` block leaves the
    protected value in an unknown state. Every later acquisition raises this
    error until ``Mutex.clear_poison()`` is called.
    """

    def __init__(
        self,
        message: str = (
            "Mutex is poisoned - a previous holder failed while holding "
            "the lock. Call clear_poison() to accept the current value."
        ),
    ) -> None:
        super().__init__(message)


class GuardReleasedError(CorunError):
    """Raised when a mutex guard is used after it has been released."""

    def __init__(
        self,
        message: str = "Mutex guard was already released.",
    ) -> None:
        super().__init__(message)


class DeadlockError(CorunError):
    """Raised when the root task can never make progress again.

    Nothing is ready to run and no timer is pending, yet the root task has
    not finished. A task locking a mutex it already holds ends up here.
    """

    def __init__(self, waiting: dict[int, str]) -> None:
        self.waiting: dict[int, str] = waiting
        details = ", ".join(
            f"task {task_id} on {reason!r}"
            for task_id, reason in waiting.items()
        )
        message = f"Deadlock detected - every live task is blocked: {details}"
        super().__init__(message)


class NegativeDelayError(CorunError):
    """Exception raised when negative delay_seconds is provided."""

    def __init__(
        self,
        delay_seconds: float,
        message: str = (
            "Negative delay_seconds ({delay_seconds}) is not supported. "
            "Please provide non-negative values."
        ),
    ) -> None:
        super().__init__(message.format(delay_seconds=delay_seconds))
        self.delay_seconds: float = delay_seconds


class InvalidCapacityError(CorunError):
    """Exception raised when a channel is created with capacity below 1."""

    def __init__(
        self,
        capacity: int,
        message: str = (
            "Channel capacity must be at least 1, got {capacity}."
        ),
    ) -> None:
        super().__init__(message.format(capacity=capacity))
        self.capacity: int = capacity


class InvalidTaskTypeError(TypeError):
    """Raised when spawning something that is not a coroutine.

    Tasks are cooperative: only coroutine functions and coroutine objects
    have suspension points the executor can drive.
    """

    def __init__(
        self,
        *,
        func_type: str,
        func_name: str,
        message: str | None = None,
    ) -> None:
        if message is None:
            message = (
                f"Expected coroutine function or coroutine, got {func_type}. "
                f"{func_name!r} must be declared 'async def'; call other "
                "callables and spawn the coroutine object they return."
            )
        super().__init__(message)


class ExecutorStateError(CorunError):
    """Raised when executor is in wrong state for the requested operation."""

    def __init__(
        self,
        *,
        operation: str,
        required_state: str,
        actual_state: str,
    ) -> None:
        message = (
            f"Cannot {operation!r} - executor must be {required_state!r}, "
            f"but is currently {actual_state!r}."
        )
        super().__init__(message)


class SchedulerInvariantError(CorunError):
    """Raised in strict mode when a live task is not tracked exactly once.

    Every live task must sit either in the ready queue or in the wait set,
    never both and never neither.
    """

    def __init__(self, detail: str) -> None:
        super().__init__(f"Scheduler invariant violated: {detail}")


def raise_executor_shut_down_error(operation: str) -> NoReturn:
    raise ExecutorStateError(
        operation=operation,
        required_state="open",
        actual_state="shut down",
    )


def raise_executor_running_error(operation: str) -> NoReturn:
    raise ExecutorStateError(
        operation=operation,
        required_state="idle",
        actual_state="running",
    )
