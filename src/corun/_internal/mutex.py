from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any, Generic, TypeVar, final

from corun._internal.exceptions import GuardReleasedError, MutexPoisonedError
from corun._internal.traps import current_task, park

if TYPE_CHECKING:
    from collections.abc import Generator
    from types import TracebackType

    from corun._internal.task import Task

_T = TypeVar("_T")


class Mutex(Generic[_T]):
    """Asynchronous mutual exclusion around a single value.

    At most one task holds the lock at a time. Contended lockers queue up and
    are granted the lock strictly in arrival order: the releasing task hands
    ownership directly to the longest waiter, so nobody can barge in.

    The lock is not re-entrant. A task that locks a mutex it already holds
    waits for itself forever; the executor reports this as a deadlock.
    """

    __slots__: tuple[str, ...] = (
        "_held",
        "_owner",
        "_poisoned",
        "_value",
        "_waiters",
    )

    def __init__(self, value: _T) -> None:
        self._value: _T = value
        self._held: bool = False
        self._owner: Task[Any] | None = None  # pyright: ignore[reportExplicitAny]
        self._poisoned: bool = False
        self._waiters: deque[Task[Any]] = deque()  # pyright: ignore[reportExplicitAny]

    def __repr__(self) -> str:
        owner = self._owner.task_id if self._owner is not None else None
        return (
            f"{self.__class__.__qualname__}("
            f"owner={owner}, waiters={len(self._waiters)}, "
            f"poisoned={self._poisoned})"
        )

    def locked(self) -> bool:
        return self._held

    def is_poisoned(self) -> bool:
        return self._poisoned

    def clear_poison(self) -> None:
        self._poisoned = False

    def lock(self) -> LockRequest[_T]:
        """Request the lock.

        Use as ``async with mutex.lock() as guard`` to release on scope exit,
        or ``guard = await mutex.lock()`` and call ``guard.release()``.
        """
        return LockRequest(self)

    async def acquire(self) -> MutexGuard[_T]:
        task = await current_task()
        if self._held:
            self._waiters.append(task)
            try:
                _ = await park("mutex lock")
            except BaseException:
                if task in self._waiters:
                    self._waiters.remove(task)
                else:
                    self._release()
                raise
        else:
            self._held = True
            self._owner = task
        if self._poisoned:
            self._release()
            raise MutexPoisonedError
        return MutexGuard(self)

    def _release(self) -> None:
        if self._waiters:
            successor = self._waiters.popleft()
            self._owner = successor
            successor.wake()
        else:
            self._held = False
            self._owner = None

    def _poison(self) -> None:
        self._poisoned = True


@final
class MutexGuard(Generic[_T]):
    """Exclusive access to the value of a locked ``Mutex``."""

    __slots__: tuple[str, ...] = ("_mutex", "_released")

    def __init__(self, mutex: Mutex[_T]) -> None:
        self._mutex: Mutex[_T] = mutex
        self._released: bool = False

    @property
    def released(self) -> bool:
        return self._released

    @property
    def value(self) -> _T:
        if self._released:
            raise GuardReleasedError
        return self._mutex._value  # noqa: SLF001  # pyright: ignore[reportPrivateUsage]

    @value.setter
    def value(self, new_value: _T) -> None:
        if self._released:
            raise GuardReleasedError
        self._mutex._value = new_value  # noqa: SLF001  # pyright: ignore[reportPrivateUsage]

    def release(self) -> None:
        if self._released:
            return
        self._released = True
        self._mutex._release()  # noqa: SLF001  # pyright: ignore[reportPrivateUsage]


@final
class LockRequest(Generic[_T]):
    __slots__: tuple[str, ...] = ("_guard", "_mutex")

    def __init__(self, mutex: Mutex[_T]) -> None:
        self._mutex: Mutex[_T] = mutex
        self._guard: MutexGuard[_T] | None = None

    def __await__(self) -> Generator[Any, Any, MutexGuard[_T]]:  # pyright: ignore[reportExplicitAny]
        return self._mutex.acquire().__await__()

    async def __aenter__(self) -> MutexGuard[_T]:
        self._guard = await self._mutex.acquire()
        return self._guard

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        guard = self._guard
        if guard is None or guard.released:
            return
        if exc_type is not None and issubclass(exc_type, Exception):
            self._mutex._poison()  # noqa: SLF001  # pyright: ignore[reportPrivateUsage]
        guard.release()
