import pytest

from corun import Channel, Executor, Sender, channel, sleep
from corun.errors import (
    ChannelClosedError,
    InvalidCapacityError,
    TaskPanicError,
)


@pytest.mark.parametrize(
    ("capacity", "produce_every", "consume_every"),
    [
        pytest.param(1, 1, 2, id="capacity-1"),
        pytest.param(2, 1, 2, id="capacity-2"),
        pytest.param(3, 1, 5, id="slow-consumer"),
        pytest.param(2, 3, 1, id="fast-consumer"),
    ],
)
def test_backpressure_bounds_buffer(
    executor: Executor,
    capacity: int,
    produce_every: int,
    consume_every: int,
) -> None:
    tx, rx = channel(capacity)
    buffered: list[int] = []
    consumed: list[int] = []

    async def producer() -> None:
        with tx:
            for i in range(10):
                await tx.send(i)
                buffered.append(len(rx))
                await sleep(produce_every)

    async def consumer() -> None:
        async for item in rx:
            buffered.append(len(rx))
            consumed.append(item)
            await sleep(consume_every)

    async def main() -> None:
        _ = executor.spawn(producer)
        _ = executor.spawn(consumer)

    executor.run_until_complete(main)
    assert consumed == list(range(10))
    assert max(buffered) <= capacity


def test_capacity_two_pipeline_blocks_producer(executor: Executor) -> None:
    tx, rx = channel(2)
    events: list[str] = []

    async def producer() -> None:
        with tx:
            for i in range(5):
                await tx.send(i)
                events.append(f"produced {i} at {executor.now():g}")
                await sleep(1)

    async def consumer() -> None:
        async for value in rx:
            events.append(f"consumed {value} at {executor.now():g}")
            await sleep(2)

    async def main() -> None:
        _ = executor.spawn(producer)
        _ = executor.spawn(consumer)

    executor.run_until_complete(main)
    assert events == [
        "produced 0 at 0",
        "consumed 0 at 0",
        "produced 1 at 1",
        "produced 2 at 2",
        "consumed 1 at 2",
        "produced 3 at 3",
        "consumed 2 at 4",
        "produced 4 at 4",
        "consumed 3 at 6",
        "consumed 4 at 8",
    ]


def test_close_keeps_buffered_items(executor: Executor) -> None:
    tx, rx = channel(3)

    async def main() -> list[int | None]:
        for i in range(3):
            await tx.send(i)
        tx.close()
        assert rx.is_closed()
        return [await rx.receive() for _ in range(5)]

    assert executor.run_until_complete(main) == [0, 1, 2, None, None]


def test_send_after_close(executor: Executor) -> None:
    tx, rx = channel(1)

    async def main() -> None:
        rx.close()
        await tx.send(1)

    with pytest.raises(TaskPanicError, match="channel is closed"):
        executor.run_until_complete(main)


def test_closed_sender_cannot_send(executor: Executor) -> None:
    tx, _ = channel(1)
    tx.close()
    assert tx.is_closed()

    async def main() -> None:
        await tx.send(1)

    with pytest.raises(TaskPanicError) as exc_info:
        executor.run_until_complete(main)
    assert isinstance(exc_info.value.__cause__, ChannelClosedError)
    with pytest.raises(ChannelClosedError):
        _ = tx.clone()


def test_close_fails_blocked_senders(executor: Executor) -> None:
    tx, rx = channel(1)
    outcomes: list[str] = []

    async def sender(i: int) -> None:
        try:
            await tx.send(i)
        except ChannelClosedError:
            outcomes.append(f"{i} failed")
        else:
            outcomes.append(f"{i} sent")

    async def main() -> list[int]:
        for i in range(3):
            _ = executor.spawn(sender, i)
        await sleep(1)
        rx.close()
        await sleep(1)
        return [item async for item in rx]

    assert executor.run_until_complete(main) == [0]
    assert outcomes == ["0 sent", "1 failed", "2 failed"]


def test_close_wakes_blocked_receivers(executor: Executor) -> None:
    tx, rx = channel(4)

    async def receiver() -> int | None:
        return await rx.receive()

    async def main() -> list[int | None]:
        handles = [executor.spawn(receiver) for _ in range(2)]
        await sleep(1)
        tx.close()
        return [await handle for handle in handles]

    assert executor.run_until_complete(main) == [None, None]


def test_receivers_are_served_in_arrival_order(executor: Executor) -> None:
    tx, rx = channel(1)

    async def receiver(i: int) -> tuple[int, int | None]:
        return i, await rx.receive()

    async def main() -> list[tuple[int, int | None]]:
        handles = [executor.spawn(receiver, i) for i in range(3)]
        await sleep(1)
        for item in (10, 20, 30):
            await tx.send(item)
        return [await handle for handle in handles]

    assert executor.run_until_complete(main) == [(0, 10), (1, 20), (2, 30)]


def test_blocked_senders_deliver_in_arrival_order(executor: Executor) -> None:
    tx, rx = channel(1)

    async def sender(i: int) -> None:
        await tx.send(i)

    async def main() -> list[int]:
        await tx.send(-1)
        for i in range(4):
            _ = executor.spawn(sender, i)
        await sleep(1)
        # a newcomer queues behind the blocked senders
        late = executor.spawn(sender, 99)
        await sleep(1)
        received = [await rx.receive() for _ in range(6)]
        await late
        return [item for item in received if item is not None]

    assert executor.run_until_complete(main) == [-1, 0, 1, 2, 3, 99]


def test_channel_closes_when_every_sender_closed(executor: Executor) -> None:
    tx, rx = channel(8)
    extra = tx.clone()

    async def produce(sender_id: int, sender: Sender[int]) -> None:
        with sender:
            await sender.send(sender_id)

    async def main() -> list[int]:
        first = executor.spawn(produce, 1, tx)
        await first
        assert not rx.is_closed()
        second = executor.spawn(produce, 2, extra)
        await second
        assert rx.is_closed()
        return [item async for item in rx]

    assert executor.run_until_complete(main) == [1, 2]


def test_buffer_never_exceeds_capacity_with_many_producers(
    executor: Executor,
) -> None:
    tx, rx = channel(3)
    chan_sizes: list[int] = []

    async def producer(base: int, own: Sender[int]) -> None:
        with own:
            for i in range(5):
                await own.send(base + i)
                chan_sizes.append(len(rx))

    async def main() -> list[int]:
        for base in (0, 100, 200):
            _ = executor.spawn(producer, base, tx.clone())
        tx.close()
        items: list[int] = []
        async for item in rx:
            items.append(item)
            await sleep(1)
        return items

    items = executor.run_until_complete(main)
    assert sorted(items) == sorted(
        base + i for base in (0, 100, 200) for i in range(5)
    )
    for base in (0, 100, 200):
        own = [item for item in items if base <= item < base + 100]
        assert own == sorted(own)
    assert max(chan_sizes) <= 3


@pytest.mark.parametrize("capacity", [0, -1])
def test_invalid_capacity(capacity: int) -> None:
    match = f"Channel capacity must be at least 1, got {capacity}"
    with pytest.raises(InvalidCapacityError, match=match):
        _ = Channel(capacity)
