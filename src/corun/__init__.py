"""Cooperative task concurrency for ``async def`` code.

The package provides an explicit ``Executor`` that runs coroutines as tasks
on a single thread of control, together with the primitives tasks use to
suspend: ``sleep`` on the executor clock, an asynchronous ``Mutex`` with FIFO
hand-off, and bounded ``channel`` pairs with backpressure. Ordering is
deterministic, so with the default ``VirtualClock`` every run of a program
produces exactly the same interleaving.
"""

from corun._internal.channel import Channel, Receiver, Sender, channel
from corun._internal.clock import Clock, MonotonicClock, VirtualClock
from corun._internal.executor import Executor
from corun._internal.mutex import LockRequest, Mutex, MutexGuard
from corun._internal.task import TaskHandle, TaskStatus
from corun._internal.timer import sleep
from corun._internal.traps import current_task_id, yield_now

__all__ = (
    "Channel",
    "Clock",
    "Executor",
    "LockRequest",
    "MonotonicClock",
    "Mutex",
    "MutexGuard",
    "Receiver",
    "Sender",
    "TaskHandle",
    "TaskStatus",
    "VirtualClock",
    "channel",
    "current_task_id",
    "sleep",
    "yield_now",
)
__version__ = "0.1.0"
