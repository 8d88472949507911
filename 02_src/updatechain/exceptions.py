"""Exception hierarchy shared by the dispatch core and its decorators."""


class UpdateChainError(Exception):
    """Base class for all updatechain errors."""


class HandlerError(UpdateChainError):
    """A handler failed; the original exception is kept as ``__cause__``."""

    def __init__(self, message: str, handler_name: str | None = None):
        super().__init__(message)
        self.handler_name = handler_name

    @classmethod
    def wrap(cls, err: BaseException, handler_name: str | None = None) -> "HandlerError":
        """Wrap an arbitrary exception; errors already of this class are returned unchanged."""
        if isinstance(err, cls):
            return err
        wrapped = cls(f"{type(err).__name__}: {err}", handler_name=handler_name)
        wrapped.__cause__ = err
        return wrapped


class ExtractionError(HandlerError):
    """A handler argument could not be materialized from the input."""


class MissingDependencyError(ExtractionError):
    """A value required from the typed store was never registered."""

    def __init__(self, type_: type):
        super().__init__(f"{type_.__qualname__} not found in context")
        self.type = type_


class CommandError(ExtractionError):
    """Command text could not be parsed into name and arguments."""


class SessionError(ExtractionError):
    """A session could not be created for the current update."""


class PolicyError(HandlerError):
    """An access policy failed while evaluating a grant decision."""


class DialogueError(HandlerError):
    """Dialogue state could not be loaded or saved."""


class StorageError(UpdateChainError):
    """A session backend failed to read, write or evict a record."""
