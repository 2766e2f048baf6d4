"""Exceptions raised by the corun runtime.

``TaskPanicError`` reaches whoever awaits the handle of a failed task, with
the original exception chained as ``__cause__``. ``ChannelClosedError`` and
``MutexPoisonedError`` are raised by the shared primitives, and
``DeadlockError`` by the executor when the root task can never finish.
"""

__all__ = (
    "ChannelClosedError",
    "CorunError",
    "DeadlockError",
    "ExecutorStateError",
    "GuardReleasedError",
    "InvalidCapacityError",
    "InvalidTaskTypeError",
    "MutexPoisonedError",
    "NegativeDelayError",
    "SchedulerInvariantError",
    "TaskNotCompletedError",
    "TaskPanicError",
)

from corun._internal.exceptions import (
    ChannelClosedError,
    CorunError,
    DeadlockError,
    ExecutorStateError,
    GuardReleasedError,
    InvalidCapacityError,
    InvalidTaskTypeError,
    MutexPoisonedError,
    NegativeDelayError,
    SchedulerInvariantError,
    TaskNotCompletedError,
    TaskPanicError,
)
