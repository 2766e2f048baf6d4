import pytest

from corun.errors import (
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


@pytest.mark.parametrize(
    ("exc", "message"),
    [
        pytest.param(
            TaskPanicError(3, "ValueError: bad"),
            "task_id: 3, failed_reason: ValueError: bad",
            id="panic",
        ),
        pytest.param(
            DeadlockError({0: "mutex lock", 2: "channel receive"}),
            "Deadlock detected - every live task is blocked: "
            "task 0 on 'mutex lock', task 2 on 'channel receive'",
            id="deadlock",
        ),
        pytest.param(
            NegativeDelayError(-1.5),
            "Negative delay_seconds (-1.5) is not supported. "
            "Please provide non-negative values.",
            id="negative-delay",
        ),
        pytest.param(
            ExecutorStateError(
                operation="spawn",
                required_state="open",
                actual_state="shut down",
            ),
            "Cannot 'spawn' - executor must be 'open', "
            "but is currently 'shut down'.",
            id="executor-state",
        ),
        pytest.param(
            SchedulerInvariantError("task 1 lost"),
            "Scheduler invariant violated: task 1 lost",
            id="invariant",
        ),
        pytest.param(
            InvalidTaskTypeError(func_type="function", func_name="f"),
            "Expected coroutine function or coroutine, got function. "
            "'f' must be declared 'async def'; call other callables and spawn "
            "the coroutine object they return.",
            id="task-type",
        ),
    ],
)
def test_messages(exc: Exception, message: str) -> None:
    assert str(exc) == message


@pytest.mark.parametrize(
    "exc_type",
    [
        ChannelClosedError,
        GuardReleasedError,
        MutexPoisonedError,
        TaskNotCompletedError,
    ],
)
def test_default_messages(exc_type: type[CorunError]) -> None:
    exc = exc_type()
    assert isinstance(exc, CorunError)
    assert str(exc)


def test_attributes_are_kept() -> None:
    assert TaskPanicError(1, "r").task_id == 1
    assert NegativeDelayError(-2).delay_seconds == -2
    assert InvalidCapacityError(0).capacity == 0
    assert isinstance(InvalidTaskTypeError(func_type="x", func_name="y"), TypeError)
