"""The call gate engine.

``CallRBAC`` owns the state of one deployment and serializes every
operation against it:

- grant_access / revoke_access: role changes (AccessController)
- set_calls: per-group action allowlists (CallAllowlist)
- validate_call / execute_call: the gate itself (CallGate + Dispatcher)

Example usage:
    dispatcher = HandlerDispatcher()
    engine = CallRBAC(dispatcher=dispatcher)

    engine.grant_access(Origin.root(), 7, "alice", Role.ADMIN)
    engine.grant_access(Origin.signed("alice"), 7, "bob", Role.EXECUTOR)
    engine.set_calls(Origin.root(), 7, [CallEntry(transfer, Origin.signed("alice"))])

    # Runs as alice, not bob
    await engine.execute_call(Origin.signed("bob"), transfer)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

from call_rbac.calls.action import Action, CallEntry
from call_rbac.calls.allowlist import CallAllowlist
from call_rbac.calls.dispatcher import Dispatcher, HandlerDispatcher
from call_rbac.calls.gate import CallGate
from call_rbac.events import AccessGranted, AccessRevoked, CallsUpdated, Event, EventLog, EventSink
from call_rbac.permissions.access_controller import AccessController
from call_rbac.permissions.origin import Origin, SuperAuthority
from call_rbac.permissions.roles import Authority, Role
from call_rbac.storage.state import AccessState
from call_rbac.storage.state_file import StateFile
from call_rbac.utils.errors import CallNotPermittedError
from call_rbac.utils.validation import check_account, check_group

from .config import Settings

logger = logging.getLogger(__name__)

DEFAULT_MAX_CALLS = 10


class CallRBAC:
    """Authorization gate delegating whitelisted actions to access groups.

    Every mutating operation is one transaction: preconditions are checked,
    the tables change, the state file (if any) is written, and only then
    are events published. A failure at any step restores the previous
    tables and publishes nothing.

    ``execute_call`` checks permission once, under the lock, and then
    dispatches without holding it. A dispatched action may therefore call
    back into the engine; such changes apply to later calls only.

    With a state file, the file is the shared owner of the tables: every
    operation holds its lock (exclusive for commands, shared for queries)
    and reloads the snapshot first if another process has replaced it.
    The CLI and a running server can therefore work on the same file.

    A failing event sink is logged and never turns a committed operation
    into an error.
    """

    def __init__(
        self,
        *,
        dispatcher: Dispatcher | None = None,
        events: EventSink | None = None,
        super_authority: SuperAuthority | None = None,
        max_calls: int = DEFAULT_MAX_CALLS,
        state_file: StateFile | None = None,
    ):
        """
        Initialize the engine.

        Args:
            dispatcher: Execution collaborator for authorized actions
            events: Sink for state-change notifications (defaults to an EventLog)
            super_authority: Super authority check (defaults to root only)
            max_calls: Maximum entries per set_calls
            state_file: Optional snapshot file; loaded now, reloaded when another
                process replaces it, written on every commit
        """
        self.dispatcher: Dispatcher = dispatcher or HandlerDispatcher()
        self.events: EventSink = events if events is not None else EventLog()
        self.super_authority = super_authority or SuperAuthority()
        self.state_file = state_file
        if state_file is not None:
            with state_file.lock(shared=True):
                self.state = state_file.load()
        else:
            self.state = AccessState()
        self._lock = threading.RLock()

        self.access = AccessController(self.state, self.super_authority)
        self.allowlist = CallAllowlist(self.state, self.super_authority, max_calls)
        self.gate = CallGate(self.state)

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        dispatcher: Dispatcher | None = None,
        events: EventSink | None = None,
    ) -> CallRBAC:
        """Build an engine from configuration."""
        state_file = None
        if settings.state_path is not None:
            state_file = StateFile(settings.state_path, settings.state_encryption_key)
        return cls(
            dispatcher=dispatcher,
            events=events,
            super_authority=SuperAuthority(settings.super_accounts),
            max_calls=settings.max_calls,
            state_file=state_file,
        )

    @property
    def max_calls(self) -> int:
        return self.allowlist.max_calls

    @contextmanager
    def _synced(self, shared: bool) -> Iterator[None]:
        """Hold the state file lock and pick up snapshots written by others."""
        if self.state_file is None:
            yield
            return
        with self.state_file.lock(shared=shared):
            if self.state_file.is_stale():
                logger.info(f"State file {self.state_file.path} changed, reloading")
                self.state.adopt(self.state_file.load())
            yield

    @contextmanager
    def _reading(self) -> Iterator[None]:
        with self._lock, self._synced(shared=True):
            yield

    @contextmanager
    def _transaction(self) -> Iterator[list[Event]]:
        """Serialize, snapshot, persist, then publish collected events."""
        with self._lock:
            pending: list[Event] = []
            with self._synced(shared=False):
                with self.state.transaction():
                    yield pending
                    if self.state_file is not None:
                        self.state_file.save(self.state)
            for event in pending:
                self._publish(event)

    def _publish(self, event: Event) -> None:
        try:
            self.events.publish(event)
        except Exception:
            # committed already; sink failures are only logged
            logger.exception(f"Event sink failed to publish {event.kind}")

    # =========================================================================
    # Commands
    # =========================================================================

    def ensure_origin(self, origin: Origin, group: int) -> Authority:
        """Classify ``origin`` as super authority or admin of ``group``."""
        with self._reading():
            return self.access.ensure_origin(origin, group)

    def grant_access(self, origin: Origin, group: int, account: str, role: Role) -> AccessGranted:
        with self._transaction() as pending:
            event = self.access.grant_access(origin, group, account, role)
            pending.append(event)
        return event

    def revoke_access(self, origin: Origin, group: int, account: str) -> AccessRevoked:
        with self._transaction() as pending:
            event = self.access.revoke_access(origin, group, account)
            pending.append(event)
        return event

    def set_calls(self, origin: Origin, group: int, entries: Sequence[CallEntry]) -> CallsUpdated:
        with self._transaction() as pending:
            event = self.allowlist.set_calls(origin, group, entries)
            pending.append(event)
        return event

    def validate_call(self, account: str, action: Action) -> Origin | None:
        """Identity ``action`` would run under for ``account``, or None."""
        with self._reading():
            return self.gate.validate_call(account, action)

    async def execute_call(self, origin: Origin, action: Action) -> Any:
        """Dispatch ``action`` under its registered identity.

        Returns:
            Whatever the dispatcher returns

        Raises:
            AuthorizationRejectedError: ``origin`` is not a signed account
            CallNotPermittedError: No executor membership covers ``action``
            Exception: Any dispatcher failure, unchanged
        """
        account = origin.ensure_signed()
        identity = self.validate_call(account, action)
        if identity is None:
            logger.warning(f"Call {action} rejected for '{account}'")
            raise CallNotPermittedError(account, action.qualified_name)

        logger.info(f"Executing {action} for '{account}' as {identity}")
        return await self.dispatcher.dispatch(action, identity)

    # =========================================================================
    # Queries
    # =========================================================================

    def get_role(self, group: int, account: str) -> Role | None:
        check_group(group)
        check_account(account)
        with self._reading():
            return self.state.roles.get(group, account)

    def group_members(self, group: int) -> dict[str, Role]:
        check_group(group)
        with self._reading():
            return self.state.roles.members(group)

    def executor_groups(self, account: str) -> list[int]:
        check_account(account)
        with self._reading():
            return self.state.permissions.groups_for(account)

    def get_calls(self, group: int) -> list[CallEntry]:
        with self._reading():
            return self.allowlist.get_calls(group)

    def get_allowed_calls(self, account: str) -> list[Action]:
        """Every action ``account`` may currently execute."""
        with self._reading():
            return self.gate.get_allowed_calls(account)
