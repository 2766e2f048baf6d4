from __future__ import annotations

import functools
import inspect
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable, Coroutine

    from typing_extensions import TypeIs


def is_async_callable(
    obj: object,
) -> TypeIs[Callable[..., Coroutine[Any, Any, Any]]]:  # pyright: ignore[reportExplicitAny]
    """Tell whether calling ``obj`` is declared to produce a coroutine.

    Looks through ``functools.partial`` layers and callable instances with an
    ``async def __call__``. Nothing is called.
    """
    while isinstance(obj, functools.partial):
        obj = obj.func  # pyright: ignore[reportUnknownMemberType]
    return inspect.iscoroutinefunction(obj) or (
        callable(obj)
        and inspect.iscoroutinefunction(getattr(obj, "__call__", None))  # noqa: B004
    )
