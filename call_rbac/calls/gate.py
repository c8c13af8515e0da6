"""Validate-then-execute protocol for caller-supplied actions."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from call_rbac.utils.validation import check_account

from .action import Action

if TYPE_CHECKING:
    from call_rbac.permissions.origin import Origin
    from call_rbac.storage.state import AccessState

logger = logging.getLogger(__name__)


class CallGate:
    """Answers "may this caller run this action, and as whom?".

    Reads only: the PermissionIndex to find the caller's executor groups
    and the ActionRegistry to find the action in one of them. Dispatch is
    done by the engine so that no lock is held while the action runs.
    """

    def __init__(self, state: AccessState):
        self.state = state

    def validate_call(self, account: str, action: Action) -> Origin | None:
        """Find the identity ``action`` runs under when ``account`` calls it.

        Executor groups are searched in ascending group id; the first group
        that registers the action decides the identity.

        Returns:
            The impersonation identity, or None if no membership covers it
        """
        check_account(account)
        for group in self.state.permissions.groups_for(account):
            entry = self.state.calls.get(group, action)
            if entry is not None:
                logger.debug(f"{action} allowed for '{account}' via group {group}")
                return entry.identity
        return None

    def get_allowed_calls(self, account: str) -> list[Action]:
        """Union of actions whitelisted across ``account``'s executor groups.

        Ordered by group, then registration order; each action appears once.
        """
        check_account(account)
        seen: set[bytes] = set()
        allowed: list[Action] = []
        for group in self.state.permissions.groups_for(account):
            for entry in self.state.calls.entries(group):
                key = entry.action.encode()
                if key not in seen:
                    seen.add(key)
                    allowed.append(entry.action)
        return allowed
