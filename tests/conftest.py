from collections.abc import Iterator

import pytest

from corun import Executor, VirtualClock


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def executor(clock: VirtualClock) -> Iterator[Executor]:
    with Executor(clock=clock, strict=True) as executor:
        yield executor
