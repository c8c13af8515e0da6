"""The state object owned by one engine instance."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from call_rbac.calls.action import CallEntry
from call_rbac.permissions.roles import Role

from .tables import ActionRegistry, PermissionIndex, RoleStore

logger = logging.getLogger(__name__)

STATE_FORMAT_VERSION = 1


class AccessState:
    """RoleStore, PermissionIndex and ActionRegistry, changed together.

    Every mutation runs inside ``transaction()``: the tables are
    snapshotted on entry and restored if the block raises, so a failed
    operation never leaves an intermediate configuration behind.
    """

    def __init__(
        self,
        roles: RoleStore | None = None,
        calls: ActionRegistry | None = None,
    ):
        self.roles = roles if roles is not None else RoleStore()
        self.permissions = PermissionIndex.rebuild(self.roles)
        self.calls = calls if calls is not None else ActionRegistry()
        self._depth = 0

    @contextmanager
    def transaction(self) -> Iterator[AccessState]:
        """Run a block atomically against the three tables.

        Nested transactions join the outermost one.
        """
        if self._depth:
            self._depth += 1
            try:
                yield self
            finally:
                self._depth -= 1
            return

        snapshot = (self.roles.copy(), self.permissions.copy(), self.calls.copy())
        self._depth = 1
        try:
            yield self
        except BaseException:
            self.roles, self.permissions, self.calls = snapshot
            logger.debug("Transaction rolled back")
            raise
        finally:
            self._depth = 0

    def adopt(self, other: AccessState) -> None:
        """Take over the tables of ``other``, e.g. a freshly loaded snapshot.

        Raises:
            RuntimeError: If called inside a transaction
        """
        if self._depth:
            raise RuntimeError("Cannot replace tables inside a transaction")
        self.roles, self.permissions, self.calls = other.roles, other.permissions, other.calls

    def to_dict(self) -> dict[str, Any]:
        """Serialize RoleStore and ActionRegistry; the index is derived."""
        return {
            "version": STATE_FORMAT_VERSION,
            "roles": [
                {"group": group, "account": account, "role": role.to_name()}
                for group, account, role in self.roles.items()
            ],
            "calls": [
                {
                    "group": group,
                    "entries": [entry.to_dict() for entry in self.calls.entries(group)],
                }
                for group in self.calls.groups()
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AccessState:
        """Rebuild state from ``to_dict`` output.

        Raises:
            ValueError: If the version is unsupported or the payload is malformed
        """
        version = data.get("version")
        if version != STATE_FORMAT_VERSION:
            raise ValueError(f"Unsupported state format version: {version}")

        roles = RoleStore()
        for item in data.get("roles", []):
            roles.insert(int(item["group"]), item["account"], Role.from_name(item["role"]))

        calls = ActionRegistry()
        for item in data.get("calls", []):
            calls.replace(
                int(item["group"]),
                [CallEntry.from_dict(entry) for entry in item.get("entries", [])],
            )

        return cls(roles=roles, calls=calls)
