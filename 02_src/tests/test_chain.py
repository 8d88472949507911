"""Tests for Chain."""

import pytest

from updatechain.chain import Chain
from updatechain.exceptions import HandlerError
from updatechain.handler import HandlerResult
from updatechain.models import Text


def recorder(log: list, name: str, result: HandlerResult | None = None):
    """Handler appending its name to log and returning result."""

    def handler(text: Text) -> HandlerResult | None:
        log.append(name)
        return result

    return handler


def skipper(log: list, name: str):
    """Handler that always skips."""

    def handler(text: Text) -> HandlerResult:
        log.append(name)
        return HandlerResult.SKIPPED

    return handler


class TestChainAll:
    """Tests for Chain.all()."""

    async def test_runs_all_in_order(self, make_input):
        """Test every handler runs in insertion order."""
        log = []
        chain = Chain.all().add(recorder(log, "a")).add(recorder(log, "b")).add(recorder(log, "c"))

        assert await chain.handle(make_input()) is HandlerResult.CONTINUE
        assert log == ["a", "b", "c"]

    async def test_stops_on_stop(self, make_input):
        """Test STOP halts the chain and is returned."""
        log = []
        chain = (
            Chain.all()
            .add(recorder(log, "a"))
            .add(recorder(log, "b", HandlerResult.STOP))
            .add(recorder(log, "c"))
        )

        assert await chain.handle(make_input()) is HandlerResult.STOP
        assert log == ["a", "b"]

    async def test_error_propagates(self, make_input):
        """Test a raised error halts the chain and propagates."""
        log = []

        def failing(text: Text) -> None:
            log.append("fail")
            raise RuntimeError("boom")

        chain = Chain.all().add(recorder(log, "a")).add(failing).add(recorder(log, "c"))

        with pytest.raises(HandlerError):
            await chain.handle(make_input())
        assert log == ["a", "fail"]

    async def test_foreign_handler_error_is_wrapped(self, make_input):
        """Test exceptions from custom IHandler members become HandlerError."""
        log = []

        class Exploding:
            name = "exploding"

            async def handle(self, input):
                raise ValueError("bad state")

        chain = Chain.all().add(Exploding()).add(recorder(log, "b"))

        with pytest.raises(HandlerError) as exc_info:
            await chain.handle(make_input())
        assert exc_info.value.handler_name == "exploding"
        assert isinstance(exc_info.value.__cause__, ValueError)
        assert log == []

    async def test_skipped_members_continue(self, make_input):
        """Test skipped members do not stop the chain."""
        log = []
        chain = Chain.all().add(skipper(log, "a")).add(recorder(log, "b"))

        assert await chain.handle(make_input()) is HandlerResult.CONTINUE
        assert log == ["a", "b"]

    async def test_all_skipped(self, make_input):
        """Test chain skips when every member skipped."""
        log = []
        chain = Chain.all().add(recorder(log, "a")).add(recorder(log, "b"))

        assert await chain.handle(make_input(text=None)) is HandlerResult.SKIPPED
        assert log == []

    async def test_empty(self, make_input):
        """Test empty chain skips."""
        assert await Chain.all().handle(make_input()) is HandlerResult.SKIPPED


class TestChainOnce:
    """Tests for Chain.once()."""

    async def test_first_applicable_wins(self, make_input):
        """Test first non-skipped result is returned and later members do not run."""
        log = []
        chain = (
            Chain.once()
            .add(skipper(log, "a"))
            .add(recorder(log, "b"))
            .add(recorder(log, "c"))
        )

        assert await chain.handle(make_input()) is HandlerResult.CONTINUE
        assert log == ["a", "b"]

    async def test_returns_stop(self, make_input):
        """Test STOP of the applicable member is the chain result."""
        log = []
        chain = Chain.once().add(recorder(log, "a", HandlerResult.STOP)).add(recorder(log, "b"))

        assert await chain.handle(make_input()) is HandlerResult.STOP
        assert log == ["a"]

    async def test_none_applicable(self, make_input):
        """Test chain skips when no member applies."""
        log = []
        chain = Chain.once().add(skipper(log, "a")).add(skipper(log, "b"))

        assert await chain.handle(make_input()) is HandlerResult.SKIPPED
        assert log == ["a", "b"]


class TestNestedChains:
    """Tests for chains inside chains."""

    async def test_stop_in_nested_chain_stops_parent(self, make_input):
        """Test STOP from a nested chain halts the outer one."""
        log = []
        inner = Chain.all().add(recorder(log, "inner", HandlerResult.STOP))
        outer = Chain.all().add(inner).add(recorder(log, "after"))

        assert await outer.handle(make_input()) is HandlerResult.STOP
        assert log == ["inner"]

    async def test_skipped_nested_chain(self, make_input):
        """Test a fully skipped nested chain lets once fall through."""
        log = []
        inner = Chain.all().add(skipper(log, "inner"))
        outer = Chain.once().add(inner).add(recorder(log, "fallback"))

        assert await outer.handle(make_input()) is HandlerResult.CONTINUE
        assert log == ["inner", "fallback"]
        assert len(outer) == 2
