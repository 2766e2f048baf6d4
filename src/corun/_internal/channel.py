from __future__ import annotations

from collections import deque
from typing import TYPE_CHECKING, Any, Generic, TypeVar, final

from corun._internal._types import EMPTY
from corun._internal.exceptions import ChannelClosedError, InvalidCapacityError
from corun._internal.traps import current_task, park

if TYPE_CHECKING:
    from types import TracebackType

    from corun._internal.task import Task

_T = TypeVar("_T")


class Channel(Generic[_T]):
    """Bounded FIFO queue between tasks.

    ``send`` suspends while ``capacity`` items are buffered and ``receive``
    suspends while the buffer is empty. Waiters on either side are served in
    arrival order by direct hand-off: a freed slot goes to the longest
    waiting sender, a new item to the longest waiting receiver.

    Closing wakes every waiter. Blocked senders fail with
    ``ChannelClosedError``; receivers keep draining the buffer and then see
    end-of-stream.
    """

    __slots__: tuple[str, ...] = (
        "_buffer",
        "_closed",
        "_receivers",
        "_sender_count",
        "_senders",
        "capacity",
    )

    def __init__(self, capacity: int) -> None:
        if capacity < 1:
            raise InvalidCapacityError(capacity)
        self.capacity: int = capacity
        self._buffer: deque[_T] = deque()
        self._sender_count: int = 0
        self._closed: bool = False
        self._senders: deque[tuple[Task[Any], _T]] = deque()  # pyright: ignore[reportExplicitAny]
        self._receivers: deque[Task[Any]] = deque()  # pyright: ignore[reportExplicitAny]

    def __len__(self) -> int:
        return len(self._buffer)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__qualname__}("
            f"capacity={self.capacity}, buffered={len(self._buffer)}, "
            f"closed={self._closed})"
        )

    def is_closed(self) -> bool:
        return self._closed

    async def send(self, item: _T) -> None:
        if self._closed:
            raise ChannelClosedError
        if self._receivers:
            self._receivers.popleft().wake(item)
            return
        if len(self._buffer) < self.capacity and not self._senders:
            self._buffer.append(item)
            return

        task = await current_task()
        entry = (task, item)
        self._senders.append(entry)
        try:
            _ = await park("channel send")
        except BaseException:
            _discard(self._senders, entry)
            raise

    async def receive(self) -> _T | None:
        """Return the next item, or ``None`` once closed and drained."""
        item = await self.receive_or_empty()
        return None if item is EMPTY else item

    async def receive_or_empty(self) -> _T:
        if self._buffer:
            item = self._buffer.popleft()
            if self._senders:
                sender, pending = self._senders.popleft()
                self._buffer.append(pending)
                sender.wake()
            return item
        if self._closed:
            return EMPTY

        task = await current_task()
        self._receivers.append(task)
        try:
            received: _T = await park("channel receive")
        except BaseException:
            if task in self._receivers:
                self._receivers.remove(task)
            raise
        return received

    def attach_sender(self) -> None:
        self._sender_count += 1

    def detach_sender(self) -> None:
        self._sender_count -= 1
        if self._sender_count == 0:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        while self._receivers:
            self._receivers.popleft().wake(EMPTY)
        while self._senders:
            sender, _ = self._senders.popleft()
            sender.wake_with_error(ChannelClosedError())


@final
class Sender(Generic[_T]):
    """Sending half of a channel. ``clone()`` for additional producers.

    The channel closes once every sender has been closed, or as soon as the
    receiver closes it.
    """

    __slots__: tuple[str, ...] = ("_channel", "_closed")

    def __init__(self, channel: Channel[_T]) -> None:
        self._channel: Channel[_T] = channel
        self._closed: bool = False
        channel.attach_sender()

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self._channel!r})"

    @property
    def capacity(self) -> int:
        return self._channel.capacity

    def is_closed(self) -> bool:
        return self._closed or self._channel.is_closed()

    def clone(self) -> Sender[_T]:
        if self._closed:
            raise ChannelClosedError
        return Sender(self._channel)

    async def send(self, item: _T) -> None:
        if self._closed:
            raise ChannelClosedError
        await self._channel.send(item)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._channel.detach_sender()

    def __enter__(self) -> Sender[_T]:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_val: BaseException | None = None,
        exc_tb: TracebackType | None = None,
    ) -> None:
        self.close()


@final
class Receiver(Generic[_T]):
    """Receiving half of a channel; iterate with ``async for``."""

    __slots__: tuple[str, ...] = ("_channel",)

    def __init__(self, channel: Channel[_T]) -> None:
        self._channel: Channel[_T] = channel

    def __repr__(self) -> str:
        return f"{self.__class__.__qualname__}({self._channel!r})"

    def __len__(self) -> int:
        return len(self._channel)

    @property
    def capacity(self) -> int:
        return self._channel.capacity

    def is_closed(self) -> bool:
        return self._channel.is_closed()

    async def receive(self) -> _T | None:
        return await self._channel.receive()

    def close(self) -> None:
        """Stop accepting items; already buffered ones stay receivable."""
        self._channel.close()

    def __aiter__(self) -> Receiver[_T]:
        return self

    async def __anext__(self) -> _T:
        item = await self._channel.receive_or_empty()
        if item is EMPTY:
            raise StopAsyncIteration
        return item


def channel(capacity: int) -> tuple[Sender[_T], Receiver[_T]]:
    """Create a bounded channel and return its two halves."""
    chan: Channel[_T] = Channel(capacity)
    return Sender(chan), Receiver(chan)


def _discard(queue: deque[Any], entry: object) -> None:  # pyright: ignore[reportExplicitAny]
    for index, waiting in enumerate(queue):
        if waiting is entry:
            del queue[index]
            return
