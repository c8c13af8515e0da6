"""Pytest configuration and fixtures for call-rbac tests."""

from collections.abc import Callable
from typing import Any

import pytest

from call_rbac.calls.dispatcher import HandlerDispatcher
from call_rbac.core.engine import CallRBAC
from call_rbac.events import EventLog
from call_rbac.permissions.origin import Origin
from helpers import MAX_CALLS, InsufficientBalance


@pytest.fixture
def balances() -> dict[str, int]:
    """Ledger the transfer handler operates on."""
    return {"alice": 10, "bob": 10, "carol": 10}


@pytest.fixture
def dispatcher(balances: dict[str, int]) -> HandlerDispatcher:
    """HandlerDispatcher with a balances.transfer handler."""
    dispatcher = HandlerDispatcher()

    @dispatcher.register("balances", "transfer")
    def handle_transfer(origin: Origin, dest: str, value: int) -> dict[str, Any]:
        source = origin.ensure_signed()
        if balances.get(source, 0) < value:
            raise InsufficientBalance(f"{source} cannot send {value}")
        balances[source] -= value
        balances[dest] = balances.get(dest, 0) + value
        return {"from": source, "to": dest, "value": value}

    return dispatcher


@pytest.fixture
def events() -> EventLog:
    return EventLog()


@pytest.fixture
def engine(dispatcher: HandlerDispatcher, events: EventLog) -> CallRBAC:
    """In-memory engine with root as the only super authority."""
    return CallRBAC(dispatcher=dispatcher, events=events, max_calls=MAX_CALLS)


@pytest.fixture
def assert_noop(engine: CallRBAC, events: EventLog) -> Callable[..., Exception]:
    """Assert an operation fails with ``error`` and changes nothing.

    Returns the raised exception for further checks.
    """

    def check(error: type[Exception], func: Callable[..., Any], *args: Any) -> Exception:
        before = engine.state.to_dict()
        index_before = {
            account: engine.executor_groups(account)
            for account in ("alice", "bob", "carol", "dave", "1", "2", "3")
        }
        events_before = len(events)

        with pytest.raises(error) as exc_info:
            func(*args)

        assert engine.state.to_dict() == before
        assert {account: engine.executor_groups(account) for account in index_before} == (
            index_before
        )
        assert len(events) == events_before
        return exc_info.value

    return check

