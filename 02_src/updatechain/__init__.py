"""Dispatch inbound chat-bot updates through composable typed handlers."""

from .app import Application, IApplication
from .chain import Chain, ChainStrategy
from .config import Settings
from .dialogue import Dialogue, DialogueResult
from .errors import ErrorDecorator, IErrorHandler, LoggingErrorHandler, on_error
from .exceptions import (
    CommandError,
    DialogueError,
    ExtractionError,
    HandlerError,
    MissingDependencyError,
    PolicyError,
    SessionError,
    StorageError,
    UpdateChainError,
)
from .extract import (
    Extraction,
    ExtractionStatus,
    HandlerInput,
    IExtractor,
    register_extractor,
    resolve_extractor,
)
from .handler import FnHandler, HandlerResult, IHandler, as_handler
from .predicate import (
    CommandPredicate,
    FnPredicate,
    IPredicate,
    Predicate,
    PredicateResult,
    with_command,
    with_predicate,
)
from .store import Ref, TypedStore

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    # Store and extraction
    "TypedStore",
    "Ref",
    "Extraction",
    "ExtractionStatus",
    "HandlerInput",
    "IExtractor",
    "register_extractor",
    "resolve_extractor",
    # Handlers
    "HandlerResult",
    "IHandler",
    "FnHandler",
    "as_handler",
    "Chain",
    "ChainStrategy",
    "Predicate",
    "PredicateResult",
    "IPredicate",
    "FnPredicate",
    "CommandPredicate",
    "with_predicate",
    "with_command",
    "ErrorDecorator",
    "IErrorHandler",
    "LoggingErrorHandler",
    "on_error",
    "Dialogue",
    "DialogueResult",
    # Errors
    "UpdateChainError",
    "HandlerError",
    "ExtractionError",
    "MissingDependencyError",
    "CommandError",
    "SessionError",
    "PolicyError",
    "DialogueError",
    "StorageError",
]
