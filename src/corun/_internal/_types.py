from typing import Any, Final, final


@final
class _EmptyType:
    __slots__: tuple[str, ...] = ()

    def __repr__(self) -> str:
        return "EMPTY"

    def __bool__(self) -> bool:
        return False


EMPTY: Final[Any] = _EmptyType()  # pyright: ignore[reportExplicitAny]
