from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from corun._internal.clock import Clock


@dataclass(slots=True, kw_only=True, frozen=True)
class ExecutorConfiguration:
    clock: Clock
    strict: bool = False
