"""Typed extraction of handler arguments from the dispatch input."""

import inspect
import types
from dataclasses import dataclass
from enum import Enum
from typing import (
    Annotated,
    Any,
    Awaitable,
    Callable,
    Protocol,
    Union,
    get_args,
    get_origin,
    runtime_checkable,
)

from .exceptions import ExtractionError, MissingDependencyError
from .models import (
    CallbackQuery,
    Chat,
    ChatId,
    Command,
    InlineQuery,
    Message,
    Text,
    Update,
    User,
    UserId,
)
from .store import Ref, TypedStore


@dataclass(frozen=True)
class HandlerInput:
    """Shared store plus the update, built once per dispatch."""

    context: TypedStore
    update: Update


class ExtractionStatus(str, Enum):
    """Outcome of an extraction attempt."""

    PRESENT = "present"
    ABSENT = "absent"  # handler does not apply, not an error
    FAILED = "failed"


@dataclass(frozen=True)
class Extraction:
    """Three-valued result of materializing one argument."""

    status: ExtractionStatus
    value: Any = None
    error: ExtractionError | None = None

    @classmethod
    def present(cls, value: Any) -> "Extraction":
        return cls(ExtractionStatus.PRESENT, value=value)

    @classmethod
    def absent(cls) -> "Extraction":
        return cls(ExtractionStatus.ABSENT)

    @classmethod
    def failed(cls, error: BaseException) -> "Extraction":
        return cls(ExtractionStatus.FAILED, error=ExtractionError.wrap(error))

    @classmethod
    def from_optional(cls, value: Any | None) -> "Extraction":
        """Present for a value, absent for None."""
        return cls.absent() if value is None else cls.present(value)

    @property
    def is_present(self) -> bool:
        return self.status is ExtractionStatus.PRESENT

    @property
    def is_absent(self) -> bool:
        return self.status is ExtractionStatus.ABSENT

    @property
    def is_failed(self) -> bool:
        return self.status is ExtractionStatus.FAILED


@runtime_checkable
class IExtractor(Protocol):
    """Materializes one value from a HandlerInput."""

    async def extract(self, input: HandlerInput) -> Extraction:
        """Return present, absent or failed."""
        ...


ExtractFn = Callable[[HandlerInput], Union[Extraction, Awaitable[Extraction]]]

_REGISTRY: dict[type, ExtractFn] = {}


def register_extractor(type_: type) -> Callable[[ExtractFn], ExtractFn]:
    """Register a function producing an Extraction for an exact type."""

    def decorator(func: ExtractFn) -> ExtractFn:
        _REGISTRY[type_] = func
        return func

    return decorator


class FunctionExtractor:
    """Runs a registered extraction function (sync or async)."""

    def __init__(self, func: ExtractFn, name: str):
        self._func = func
        self._name = name

    async def extract(self, input: HandlerInput) -> Extraction:
        try:
            result = self._func(input)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            return Extraction.failed(e)
        if not isinstance(result, Extraction):
            return Extraction.failed(
                TypeError(f"extractor for {self._name} returned {result!r}, not an Extraction")
            )
        return result

    def __repr__(self) -> str:
        return f"FunctionExtractor({self._name})"


class FromInputExtractor:
    """Delegates to an async ``from_input`` classmethod of the target type."""

    def __init__(self, type_: type):
        self._type = type_

    async def extract(self, input: HandlerInput) -> Extraction:
        try:
            return await self._type.from_input(input)
        except Exception as e:
            return Extraction.failed(e)

    def __repr__(self) -> str:
        return f"FromInputExtractor({self._type.__qualname__})"


class StoreExtractor:
    """Reads a shared value from the TypedStore; missing values fail."""

    def __init__(self, type_: type):
        self._type = type_

    async def extract(self, input: HandlerInput) -> Extraction:
        value = input.context.get(self._type)
        if value is None:
            return Extraction.failed(MissingDependencyError(self._type))
        return Extraction.present(value)

    def __repr__(self) -> str:
        return f"StoreExtractor({self._type.__qualname__})"


class OptionalExtractor:
    """Turns an absent inner extraction into present(None)."""

    def __init__(self, inner: IExtractor):
        self._inner = inner

    async def extract(self, input: HandlerInput) -> Extraction:
        result = await self._inner.extract(input)
        if result.is_absent:
            return Extraction.present(None)
        return result

    def __repr__(self) -> str:
        return f"OptionalExtractor({self._inner!r})"


class TupleExtractor:
    """
    Extracts every field in order.

    The first absent field makes the whole tuple absent, the first failed
    field makes it failed; later fields are not extracted.
    """

    def __init__(self, *extractors: IExtractor):
        self._extractors = extractors

    def __len__(self) -> int:
        return len(self._extractors)

    async def extract(self, input: HandlerInput) -> Extraction:
        values = []
        for extractor in self._extractors:
            result = await extractor.extract(input)
            if not result.is_present:
                return result
            values.append(result.value)
        return Extraction.present(tuple(values))

    def __repr__(self) -> str:
        inner = ", ".join(repr(e) for e in self._extractors)
        return f"TupleExtractor({inner})"


def resolve_extractor(annotation: Any) -> IExtractor:
    """
    Build an extractor for a handler parameter annotation.

    Raises TypeError when the annotation cannot be extracted.
    """
    if isinstance(annotation, IExtractor) and not isinstance(annotation, type):
        return annotation

    origin = get_origin(annotation)

    if origin is Annotated:
        base, *metadata = get_args(annotation)
        if Ref in metadata:
            return StoreExtractor(base)
        return resolve_extractor(base)

    if origin is Union or origin is types.UnionType:
        args = get_args(annotation)
        inner = [arg for arg in args if arg is not type(None)]
        if len(inner) == 1 and len(args) == 2:
            return OptionalExtractor(resolve_extractor(inner[0]))
        raise TypeError(f"Only Optional unions can be extracted, got {annotation!r}")

    if origin is tuple:
        args = get_args(annotation)
        if Ellipsis in args:
            raise TypeError(f"Variadic tuples can not be extracted: {annotation!r}")
        return TupleExtractor(*(resolve_extractor(arg) for arg in args))

    if isinstance(annotation, type):
        if annotation in _REGISTRY:
            return FunctionExtractor(_REGISTRY[annotation], annotation.__qualname__)
        if hasattr(annotation, "from_input"):
            return FromInputExtractor(annotation)

    raise TypeError(f"No extractor for {annotation!r}")


@register_extractor(HandlerInput)
def _extract_input(input: HandlerInput) -> Extraction:
    return Extraction.present(input)


@register_extractor(TypedStore)
def _extract_context(input: HandlerInput) -> Extraction:
    return Extraction.present(input.context)


@register_extractor(Update)
def _extract_update(input: HandlerInput) -> Extraction:
    return Extraction.present(input.update)


@register_extractor(Message)
def _extract_message(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.get_message())


@register_extractor(Text)
def _extract_text(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.text)


@register_extractor(Command)
def _extract_command(input: HandlerInput) -> Extraction:
    message = input.update.get_message()
    if message is None:
        return Extraction.absent()
    return Extraction.from_optional(Command.parse(message))


@register_extractor(ChatId)
def _extract_chat_id(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.chat_id)


@register_extractor(UserId)
def _extract_user_id(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.user_id)


@register_extractor(Chat)
def _extract_chat(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.chat)


@register_extractor(User)
def _extract_user(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.user)


@register_extractor(CallbackQuery)
def _extract_callback_query(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.callback_query)


@register_extractor(InlineQuery)
def _extract_inline_query(input: HandlerInput) -> Extraction:
    return Extraction.from_optional(input.update.inline_query)
