"""The guide's examples, rebuilt on the corun runtime.

Every demo takes the executor to run on and returns the console lines it
produced. Timestamps are rendered as milliseconds elapsed on the executor
clock, so under the default ``VirtualClock`` the transcript is identical
on every run.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from corun._internal.channel import Sender, channel
from corun._internal.mutex import Mutex
from corun._internal.timer import sleep

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from corun._internal.executor import Executor


class Transcript:
    __slots__: tuple[str, ...] = ("_executor", "_start", "lines")

    def __init__(self, executor: Executor) -> None:
        self._executor: Executor = executor
        self._start: float = executor.now()
        self.lines: list[str] = []

    def elapsed_ms(self) -> int:
        return round((self._executor.now() - self._start) * 1000)

    def say(self, text: str) -> None:
        self.lines.append(text)

    def log(self, operation: str, details: str) -> None:
        self.lines.append(f"[{self.elapsed_ms():>4}ms] {operation} - {details}")


def basic_spawn(executor: Executor) -> list[str]:
    out = Transcript(executor)

    async def counting_task() -> str:
        for i in range(3):
            out.say(f"Task 1: Number {i}")
            await sleep(0.1)
        return "Task 1 Complete"

    async def main() -> None:
        handle = executor.spawn(counting_task)
        for i in range(3):
            out.say(f"Main task: Number {i}")
            await sleep(0.1)
        result = await handle
        out.say(f"Spawned task result: {result}")

    executor.run_until_complete(main)
    return out.lines


def multiple_tasks(executor: Executor, count: int = 3) -> list[str]:
    out = Transcript(executor)

    async def staggered(i: int) -> int:
        out.say(f"Task {i} starting")
        await sleep(0.1 * (i + 1))
        out.say(f"Task {i} completed")
        return i

    async def main() -> None:
        handles = [executor.spawn(staggered, i) for i in range(count)]
        for handle in handles:
            result = await handle
            out.say(f"Task returned: {result}")

    executor.run_until_complete(main)
    return out.lines


def shared_state(executor: Executor, count: int = 5) -> list[str]:
    out = Transcript(executor)
    counter = Mutex(0)

    async def increment(i: int) -> None:
        async with counter.lock() as guard:
            guard.value += 1
            out.say(f"Task {i} incremented counter to {guard.value}")
        await sleep(0.1)

    async def main() -> None:
        handles = [executor.spawn(increment, i) for i in range(count)]
        for handle in handles:
            await handle
        async with counter.lock() as guard:
            out.say(f"Final counter value: {guard.value}")

    executor.run_until_complete(main)
    return out.lines


def channel_pipeline(
    executor: Executor,
    *,
    capacity: int = 32,
    items: int = 5,
    produce_every: float = 0.1,
    consume_every: float = 0.2,
) -> list[str]:
    out = Transcript(executor)
    tx, rx = channel(capacity)

    async def producer() -> None:
        with tx:
            for i in range(items):
                await tx.send(i)
                out.say(f"Produced: {i}")
                await sleep(produce_every)

    async def consumer() -> None:
        async for value in rx:
            out.say(f"Consumed: {value}")
            await sleep(consume_every)

    async def main() -> None:
        produced = executor.spawn(producer)
        consumed = executor.spawn(consumer)
        await produced
        await consumed

    executor.run_until_complete(main)
    return out.lines


class AccountNotFoundError(LookupError):
    pass


ACCOUNT_NOT_FOUND: Final = "Account not found"


class BasicBank:
    """Accounts behind a blocking lock.

    ``deposit`` is synchronous: it never suspends, so each client runs from
    request to balance before the executor can switch to another task.
    """

    def __init__(self) -> None:
        self._lock: threading.Lock = threading.Lock()
        self.accounts: dict[str, int] = {"Alice": 100}

    def deposit(self, account: str, amount: int) -> int:
        with self._lock:
            if account not in self.accounts:
                raise AccountNotFoundError(ACCOUNT_NOT_FOUND)
            self.accounts[account] += amount
            return self.accounts[account]


class AsyncBank:
    """Accounts behind an async mutex that is held across the processing."""

    def __init__(self, processing_seconds: float = 0.2) -> None:
        self.accounts: Mutex[dict[str, int]] = Mutex({"Alice": 100})
        self.processing_seconds: float = processing_seconds

    async def process_deposit(self, account: str, amount: int) -> int:
        async with self.accounts.lock() as guard:
            await sleep(self.processing_seconds)
            if account not in guard.value:
                raise AccountNotFoundError(ACCOUNT_NOT_FOUND)
            guard.value[account] += amount
            return guard.value[account]


def _bank_clients(
    executor: Executor,
    deposit: Callable[[str, int], Awaitable[int]],
    out: Transcript,
) -> None:
    async def client(i: int) -> None:
        out.log("Task", f"{i} starting")
        try:
            balance = await deposit("Alice", 50)
        except AccountNotFoundError as exc:
            out.log("Task", f"{i} failed - {exc}")
        else:
            out.log("Task", f"{i} completed - Balance: {balance}")

    async def main() -> None:
        handles = [executor.spawn(client, i) for i in range(3)]
        for handle in handles:
            await handle

    executor.run_until_complete(main)


def basic_bank(executor: Executor) -> list[str]:
    out = Transcript(executor)
    bank = BasicBank()

    async def deposit(account: str, amount: int) -> int:
        return bank.deposit(account, amount)

    _bank_clients(executor, deposit, out)
    return out.lines


def async_bank(executor: Executor) -> list[str]:
    out = Transcript(executor)
    _bank_clients(executor, AsyncBank().process_deposit, out)
    return out.lines


@dataclass(slots=True, kw_only=True, frozen=True)
class Deposit:
    account: str
    amount: int
    respond_to: Sender[int | str]


def message_passing_bank(executor: Executor) -> list[str]:
    out = Transcript(executor)
    tx, rx = channel(32)

    async def manager() -> None:
        accounts = {"Alice": 100}
        async for message in rx:
            await sleep(0.2)
            if message.account in accounts:
                accounts[message.account] += message.amount
                reply: int | str = accounts[message.account]
            else:
                reply = ACCOUNT_NOT_FOUND
            with message.respond_to:
                await message.respond_to.send(reply)

    async def client(i: int, requests: Sender[Deposit]) -> None:
        out.log("Client", f"{i} sending request")
        reply_tx, reply_rx = channel(1)
        with requests:
            await requests.send(
                Deposit(account="Alice", amount=50, respond_to=reply_tx),
            )
        response = await reply_rx.receive()
        if isinstance(response, int):
            out.log("Client", f"{i} got response - Balance: {response}")
        else:
            out.log("Client", f"{i} got error - {response}")

    async def main() -> None:
        bank_manager = executor.spawn(manager, name="bank-manager")
        clients = [executor.spawn(client, i, tx.clone()) for i in range(3)]
        for handle in clients:
            await handle
        tx.close()
        await bank_manager

    executor.run_until_complete(main)
    return out.lines


@dataclass(slots=True, kw_only=True, frozen=True)
class TaskResult:
    name: str
    duration: int
    result: str


def deferred_start(executor: Executor) -> list[str]:
    out = Transcript(executor)

    async def execute_task(name: str, duration_ms: int) -> TaskResult:
        out.log(name, "created")
        await sleep(duration_ms / 1000)
        out.log(name, "completed")
        return TaskResult(name=name, duration=duration_ms, result=f"{name} result")

    async def main() -> None:
        first = execute_task("Task 1", 2000)
        second = execute_task("Task 2", 1000)
        out.log("Main", "tasks created, but not yet started")
        await sleep(0.5)
        out.log("Main", "starting task execution now")
        handles = [executor.spawn(first), executor.spawn(second)]
        results = [await handle for handle in handles]
        out.say(f"All results: {results}")

    executor.run_until_complete(main)
    return out.lines


DEMOS: Final[dict[str, tuple[str, Callable[[Executor], list[str]]]]] = {
    "spawn": ("Basic Spawn Example", basic_spawn),
    "multiple": ("Multiple Tasks Example", multiple_tasks),
    "shared-state": ("Shared State Example", shared_state),
    "channel": ("Channel Communication Example", channel_pipeline),
    "basic-bank": ("Basic Mutex Example", basic_bank),
    "async-bank": ("Async Mutex Example", async_bank),
    "message-passing": ("Message Passing Example", message_passing_bank),
    "deferred": ("Deferred Start Example", deferred_start),
}
