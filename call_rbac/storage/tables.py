"""Key-value tables backing the call gate.

Three tables, each owned by one AccessState:

- RoleStore:       (group, account) -> Role            (authoritative)
- PermissionIndex: account -> {groups as Executor}     (derived from RoleStore)
- ActionRegistry:  (group, action encoding) -> CallEntry

The tables do no authorization; they only keep their own shape. The
services in ``call_rbac.permissions`` and ``call_rbac.calls`` decide what
may change.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from call_rbac.calls.action import Action, CallEntry
    from call_rbac.permissions.roles import Role


class RoleStore:
    """Persistent mapping ``(group, account) -> Role``."""

    def __init__(self) -> None:
        self._roles: dict[int, dict[str, Role]] = {}

    def get(self, group: int, account: str) -> Role | None:
        return self._roles.get(group, {}).get(account)

    def contains(self, group: int, account: str) -> bool:
        return self.get(group, account) is not None

    def insert(self, group: int, account: str, role: Role) -> None:
        self._roles.setdefault(group, {})[account] = role

    def remove(self, group: int, account: str) -> Role | None:
        members = self._roles.get(group)
        if members is None:
            return None
        role = members.pop(account, None)
        if not members:
            del self._roles[group]
        return role

    def members(self, group: int) -> dict[str, Role]:
        """All accounts holding a role in ``group``."""
        return dict(self._roles.get(group, {}))

    def groups(self) -> list[int]:
        return sorted(self._roles)

    def items(self) -> Iterator[tuple[int, str, Role]]:
        for group in sorted(self._roles):
            for account, role in self._roles[group].items():
                yield group, account, role

    def copy(self) -> RoleStore:
        clone = RoleStore()
        clone._roles = {group: dict(members) for group, members in self._roles.items()}
        return clone

    def __len__(self) -> int:
        return sum(len(members) for members in self._roles.values())


class PermissionIndex:
    """Reverse index ``account -> {groups where account is Executor}``.

    Presence-only. Maintained in lockstep with RoleStore and never read as
    the source of truth for roles.
    """

    def __init__(self) -> None:
        self._groups: dict[str, set[int]] = {}

    def add(self, account: str, group: int) -> None:
        self._groups.setdefault(account, set()).add(group)

    def discard(self, account: str, group: int) -> None:
        groups = self._groups.get(account)
        if groups is None:
            return
        groups.discard(group)
        if not groups:
            del self._groups[account]

    def contains(self, account: str, group: int) -> bool:
        return group in self._groups.get(account, ())

    def groups_for(self, account: str) -> list[int]:
        """Groups where ``account`` is an executor, in ascending group order."""
        return sorted(self._groups.get(account, ()))

    def copy(self) -> PermissionIndex:
        clone = PermissionIndex()
        clone._groups = {account: set(groups) for account, groups in self._groups.items()}
        return clone

    @classmethod
    def rebuild(cls, roles: RoleStore) -> PermissionIndex:
        """Derive the index from a RoleStore."""
        from call_rbac.permissions.roles import Role

        index = cls()
        for group, account, role in roles.items():
            if role is Role.EXECUTOR:
                index.add(account, group)
        return index

    def __len__(self) -> int:
        return sum(len(groups) for groups in self._groups.values())


class ActionRegistry:
    """Persistent mapping ``(group, action encoding) -> CallEntry``.

    Keys are the full canonical encoding of the action. A group's entries
    are only ever replaced as a whole.
    """

    def __init__(self) -> None:
        self._calls: dict[int, dict[bytes, CallEntry]] = {}

    def get(self, group: int, action: Action) -> CallEntry | None:
        return self._calls.get(group, {}).get(action.encode())

    def replace(self, group: int, entries: Iterable[CallEntry]) -> int:
        """Clear ``group`` and insert ``entries``; later duplicates win.

        Returns:
            Number of distinct actions now registered for the group
        """
        table: dict[bytes, CallEntry] = {}
        for entry in entries:
            table[entry.action.encode()] = entry
        if table:
            self._calls[group] = table
        else:
            self._calls.pop(group, None)
        return len(table)

    def entries(self, group: int) -> list[CallEntry]:
        """All entries registered for ``group``, in registration order."""
        return list(self._calls.get(group, {}).values())

    def groups(self) -> list[int]:
        return sorted(self._calls)

    def copy(self) -> ActionRegistry:
        clone = ActionRegistry()
        clone._calls = {group: dict(table) for group, table in self._calls.items()}
        return clone

    def __len__(self) -> int:
        return sum(len(table) for table in self._calls.values())
