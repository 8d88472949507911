"""Type-keyed store for objects shared across handler invocations."""

from typing import Annotated, Any, TypeVar

from .exceptions import MissingDependencyError

T = TypeVar("T")


class TypedStore:
    """
    Holds at most one value per concrete type.

    Filled once at startup (clients, session managers, limiters) and read by
    every dispatch afterwards. Values must be safe to share between
    concurrent dispatches.
    """

    def __init__(self, *values: Any):
        self._values: dict[type, Any] = {}
        for value in values:
            self.put(value)

    def put(self, value: Any) -> Any | None:
        """Store value under its exact type. Returns the replaced value, if any."""
        previous = self._values.get(type(value))
        self._values[type(value)] = value
        return previous

    def get(self, type_: type[T]) -> T | None:
        """Get the value stored for type_, or None."""
        return self._values.get(type_)

    def require(self, type_: type[T]) -> T:
        """Get the value stored for type_ or raise MissingDependencyError."""
        try:
            return self._values[type_]
        except KeyError:
            raise MissingDependencyError(type_) from None

    def __contains__(self, type_: type) -> bool:
        return type_ in self._values

    def __len__(self) -> int:
        return len(self._values)

    def __repr__(self) -> str:
        names = ", ".join(t.__qualname__ for t in self._values)
        return f"TypedStore({names})"


class Ref:
    """
    Marks a handler argument to be read from the TypedStore.

    ``client: Ref[ApiClient]`` receives the stored ApiClient instance. A
    missing value fails extraction instead of skipping the handler.
    """

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, cls]
