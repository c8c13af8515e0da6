"""Super-authority management of each group's whitelisted actions."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING

from call_rbac.events import CallsUpdated
from call_rbac.utils.errors import TooManyCallsError
from call_rbac.utils.validation import check_group

from .action import CallEntry

if TYPE_CHECKING:
    from call_rbac.permissions.origin import Origin, SuperAuthority
    from call_rbac.storage.state import AccessState

logger = logging.getLogger(__name__)


class CallAllowlist:
    """Writes the ActionRegistry.

    Group admins have no say here: only the super authority decides which
    actions a group's executors may trigger and under which identity.
    """

    def __init__(self, state: AccessState, super_authority: SuperAuthority, max_calls: int):
        self.state = state
        self.super_authority = super_authority
        self.max_calls = max_calls

    def set_calls(
        self, origin: Origin, group: int, entries: Sequence[CallEntry]
    ) -> CallsUpdated:
        """Replace the whole action set of ``group``.

        Duplicate actions are not an error: the later entry's identity wins.

        Args:
            origin: Caller; must be the super authority
            group: Access group id
            entries: Actions and the identity each is dispatched under

        Returns:
            The CallsUpdated event to publish once committed

        Raises:
            AuthorizationRejectedError: Caller is not the super authority
            TooManyCallsError: More than ``max_calls`` entries
        """
        check_group(group)
        self.super_authority.ensure(origin)
        if len(entries) > self.max_calls:
            raise TooManyCallsError(len(entries), self.max_calls)
        for entry in entries:
            if not isinstance(entry, CallEntry):
                raise TypeError(f"Expected CallEntry, got {type(entry).__name__}")

        registered = self.state.calls.replace(group, entries)
        logger.info(f"Group {group} now allows {registered} calls (set by {origin})")
        return CallsUpdated(group=group)

    def get_calls(self, group: int) -> list[CallEntry]:
        """Entries currently registered for ``group``."""
        check_group(group)
        return self.state.calls.entries(group)
