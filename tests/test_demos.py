import pytest

from corun import Executor
from corun.__main__ import main
from corun.demos import (
    DEMOS,
    AccountNotFoundError,
    BasicBank,
    async_bank,
    basic_bank,
    basic_spawn,
    channel_pipeline,
    deferred_start,
    message_passing_bank,
    multiple_tasks,
    shared_state,
)


def test_basic_spawn(executor: Executor) -> None:
    assert basic_spawn(executor) == [
        "Main task: Number 0",
        "Task 1: Number 0",
        "Main task: Number 1",
        "Task 1: Number 1",
        "Main task: Number 2",
        "Task 1: Number 2",
        "Spawned task result: Task 1 Complete",
    ]


def test_multiple_tasks(executor: Executor) -> None:
    assert multiple_tasks(executor) == [
        "Task 0 starting",
        "Task 1 starting",
        "Task 2 starting",
        "Task 0 completed",
        "Task returned: 0",
        "Task 1 completed",
        "Task returned: 1",
        "Task 2 completed",
        "Task returned: 2",
    ]


def test_shared_state(executor: Executor) -> None:
    assert shared_state(executor) == [
        "Task 0 incremented counter to 1",
        "Task 1 incremented counter to 2",
        "Task 2 incremented counter to 3",
        "Task 3 incremented counter to 4",
        "Task 4 incremented counter to 5",
        "Final counter value: 5",
    ]


@pytest.mark.parametrize("capacity", [1, 2, 32])
def test_channel_pipeline(executor: Executor, capacity: int) -> None:
    lines = channel_pipeline(executor, capacity=capacity)
    produced = [line for line in lines if line.startswith("Produced")]
    consumed = [line for line in lines if line.startswith("Consumed")]
    assert produced == [f"Produced: {i}" for i in range(5)]
    assert consumed == [f"Consumed: {i}" for i in range(5)]
    assert len(lines) == 10


def test_basic_bank(executor: Executor) -> None:
    assert basic_bank(executor) == [
        "[   0ms] Task - 0 starting",
        "[   0ms] Task - 0 completed - Balance: 150",
        "[   0ms] Task - 1 starting",
        "[   0ms] Task - 1 completed - Balance: 200",
        "[   0ms] Task - 2 starting",
        "[   0ms] Task - 2 completed - Balance: 250",
    ]


def test_basic_bank_deposit_is_synchronous() -> None:
    bank = BasicBank()
    assert bank.deposit("Alice", 50) == 150
    with pytest.raises(AccountNotFoundError, match="Account not found"):
        _ = bank.deposit("Bob", 10)
    assert bank.accounts == {"Alice": 150}


def test_async_bank(executor: Executor) -> None:
    assert async_bank(executor) == [
        "[   0ms] Task - 0 starting",
        "[   0ms] Task - 1 starting",
        "[   0ms] Task - 2 starting",
        "[ 200ms] Task - 0 completed - Balance: 150",
        "[ 400ms] Task - 1 completed - Balance: 200",
        "[ 600ms] Task - 2 completed - Balance: 250",
    ]


def test_message_passing_bank(executor: Executor) -> None:
    assert message_passing_bank(executor) == [
        "[   0ms] Client - 0 sending request",
        "[   0ms] Client - 1 sending request",
        "[   0ms] Client - 2 sending request",
        "[ 200ms] Client - 0 got response - Balance: 150",
        "[ 400ms] Client - 1 got response - Balance: 200",
        "[ 600ms] Client - 2 got response - Balance: 250",
    ]
    assert executor.waiting() == {}


def test_deferred_start(executor: Executor) -> None:
    assert deferred_start(executor) == [
        "[   0ms] Main - tasks created, but not yet started",
        "[ 500ms] Main - starting task execution now",
        "[ 500ms] Task 1 - created",
        "[ 500ms] Task 2 - created",
        "[1500ms] Task 2 - completed",
        "[2500ms] Task 1 - completed",
        "All results: ["
        "TaskResult(name='Task 1', duration=2000, result='Task 1 result'), "
        "TaskResult(name='Task 2', duration=1000, result='Task 2 result')]",
    ]


def test_demos_run_back_to_back_on_one_executor(executor: Executor) -> None:
    for _, demo in DEMOS.values():
        assert demo(executor)
    assert executor.waiting() == {}


def test_cli_runs_selected_demos(capsys: pytest.CaptureFixture[str]) -> None:
    assert main(["shared-state", "spawn"]) == 0
    out = capsys.readouterr().out
    assert "=== Shared State Example ===" in out
    assert "Final counter value: 5" in out
    assert "=== Basic Spawn Example ===" in out
    assert out.index("Shared State") < out.index("Basic Spawn")
    assert "Channel Communication" not in out


def test_cli_rejects_unknown_demo(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        _ = main(["nope"])
    assert exc_info.value.code == 2
    assert "unknown demo(s): nope" in capsys.readouterr().err
