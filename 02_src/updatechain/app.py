"""Application bootstrap and lifecycle management."""

from typing import Any, Protocol

from .config import Settings, resolve_session_path
from .exceptions import HandlerError
from .extract import HandlerInput
from .handler import HandlerResult, IHandler, as_handler, handler_name
from .logging_config import get_logger, log_context
from .models import Update
from .session import (
    FilesystemBackend,
    ISessionBackend,
    MemoryBackend,
    RedisBackend,
    SessionCollector,
    SessionCollectorHandle,
    SessionManager,
    SqliteBackend,
)
from .store import TypedStore

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap, lifecycle and dispatch."""

    async def start(self) -> None:
        """Open the session backend and start the collector."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def dispatch(self, update: Update) -> HandlerResult | None:
        """Run the handler tree for one update."""
        ...


def create_session_backend(settings: Settings) -> ISessionBackend:
    """Build the session backend selected by settings."""
    if settings.session_backend == "redis":
        return RedisBackend(settings.redis_url)
    path = resolve_session_path(settings.session_backend, settings.session_path)
    if settings.session_backend == "fs":
        return FilesystemBackend(path)
    if settings.session_backend == "sqlite":
        return SqliteBackend(path)
    return MemoryBackend()


class Application:
    """
    Owns the typed store, the session backend and the collector task.

    Values placed in ``context`` before start() are shared by every
    dispatch; start() adds the SessionManager.
    """

    def __init__(
        self,
        handler: Any,
        settings: Settings | None = None,
        backend: ISessionBackend | None = None,
        context: TypedStore | None = None,
    ):
        self._handler: IHandler = as_handler(handler)
        self._settings = settings or Settings()
        self._backend = backend
        self._context = context if context is not None else TypedStore()

        # Components (will be initialized in start())
        self._session_manager: SessionManager | None = None
        self._collector: SessionCollectorHandle | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Session backend
        if self._backend is None:
            self._backend = create_session_backend(self._settings)
        await self._backend.init()
        logger.info("Session backend initialized: %s", type(self._backend).__name__)

        # 2. SessionManager, shared through the typed store
        self._session_manager = SessionManager(self._backend)
        self._context.put(self._session_manager)

        # 3. Collector task
        collector = SessionCollector(
            self._backend,
            period=self._settings.session_gc_period,
            lifetime=self._settings.session_lifetime,
        )
        self._collector = collector.start()
        logger.info(
            "Session collector started (period=%ss, lifetime=%ss)",
            collector.period,
            collector.lifetime,
        )

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._collector:
            await self._collector.stop()
            self._collector = None
            logger.info("Session collector stopped")
        if self._session_manager and self._backend:
            await self._backend.close()
            logger.info("Session backend closed")
        self._session_manager = None

    async def dispatch(self, update: Update) -> HandlerResult | None:
        """
        Run the handler tree for one update.

        Handler errors are logged and reported as None; they never reach
        the transport.
        """
        input = HandlerInput(context=self.context, update=update)
        with log_context(
            update_id=update.id, chat_id=update.chat_id, user_id=update.user_id
        ):
            try:
                result = await self._handler.handle(input)
            except Exception as e:
                error = HandlerError.wrap(e, handler_name(self._handler))
                logger.error(
                    "Failed to handle update %s: %s",
                    update.id,
                    error,
                    exc_info=True,
                    extra={"context": {"handler": error.handler_name}},
                )
                return None
            logger.debug("Update %s handled: %s", update.id, result.value)
        return result

    @property
    def context(self) -> TypedStore:
        """Get the typed store shared by all dispatches."""
        if not self._session_manager:
            raise RuntimeError("Application not started")
        return self._context

    @property
    def session_manager(self) -> SessionManager:
        """Get session manager instance."""
        if not self._session_manager:
            raise RuntimeError("Application not started")
        return self._session_manager
