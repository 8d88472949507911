"""Tests for the error decorator."""

import logging

import pytest

from updatechain.errors import ErrorDecorator, LoggingErrorHandler, on_error
from updatechain.exceptions import HandlerError
from updatechain.handler import HandlerResult
from updatechain.models import Text


def failing(text: Text) -> None:
    raise ValueError("broken")


class TestErrorDecorator:
    """Tests for ErrorDecorator."""

    async def test_passes_result_through(self, make_input):
        """Test results of a successful handler are unchanged."""
        decorated = on_error(lambda: HandlerResult.STOP, lambda e: HandlerResult.CONTINUE)

        assert await decorated.handle(make_input()) is HandlerResult.STOP

    async def test_recovers_with_result(self, make_input):
        """Test error handler result replaces the error."""
        seen = []

        def recover(error: HandlerError) -> HandlerResult:
            seen.append(error)
            return HandlerResult.CONTINUE

        result = await ErrorDecorator(failing, recover).handle(make_input())

        assert result is HandlerResult.CONTINUE
        assert isinstance(seen[0].__cause__, ValueError)

    async def test_async_error_handler(self, make_input):
        """Test async error handlers are awaited."""

        async def recover(error: HandlerError) -> HandlerResult:
            return HandlerResult.SKIPPED

        assert await on_error(failing, recover).handle(make_input()) is HandlerResult.SKIPPED

    async def test_reraises_returned_exception(self, make_input):
        """Test a returned exception is raised instead."""

        class Fatal(HandlerError):
            pass

        decorated = on_error(failing, lambda e: Fatal("fatal"))

        with pytest.raises(Fatal):
            await decorated.handle(make_input())

    async def test_skipped_handler_untouched(self, make_input):
        """Test skipped handler is not an error."""
        decorated = on_error(failing, lambda e: HandlerResult.CONTINUE)

        assert await decorated.handle(make_input(text=None)) is HandlerResult.SKIPPED


class TestLoggingErrorHandler:
    """Tests for LoggingErrorHandler."""

    async def test_logs_and_stops_by_default(self, make_input, caplog):
        """Test default error handler logs and stops."""
        with caplog.at_level(logging.ERROR, logger="updatechain.errors"):
            result = await on_error(failing).handle(make_input())

        assert result is HandlerResult.STOP
        assert any("broken" in record.getMessage() for record in caplog.records)

    async def test_policy(self, make_input):
        """Test configured policy is the recovery result."""
        decorated = on_error(failing, LoggingErrorHandler(HandlerResult.CONTINUE))

        assert await decorated.handle(make_input()) is HandlerResult.CONTINUE
