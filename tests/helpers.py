"""Shared test helpers (imported by conftest and test modules)."""

from call_rbac.calls.action import Action
from call_rbac.permissions.origin import Origin

MAX_CALLS = 10

ROOT = Origin.root()


def signed(account: str) -> Origin:
    return Origin.signed(account)


def transfer(dest: str, value: int) -> Action:
    """A balances transfer action, the running example in these tests."""
    return Action(module="balances", name="transfer", args={"dest": dest, "value": value})


class InsufficientBalance(Exception):
    """Raised by the test ledger when a transfer overdraws."""
