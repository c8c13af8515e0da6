"""Role and authority definitions.

A ``(group, account)`` pair holds at most one Role. The Authority is what
``ensure_origin`` resolves a privileged caller to.
"""

from __future__ import annotations

from enum import Enum, auto


class Role(Enum):
    """Roles an account can hold inside an access group.

    - EXECUTOR: may invoke the actions whitelisted for the group
    - ADMIN: may grant and revoke EXECUTOR within the group

    An account is never both in the same group; switching requires a
    revoke followed by a grant.
    """

    EXECUTOR = auto()
    ADMIN = auto()

    def to_name(self) -> str:
        """Serialized form used by the state file and the API."""
        return self.name

    @classmethod
    def from_name(cls, name: str) -> Role:
        """Parse a role name (case-insensitive).

        Accepts the historical spelling "Executer" as an alias of EXECUTOR.

        Raises:
            ValueError: If the name is not a valid Role
        """
        normalized = name.strip().upper()
        if normalized == "EXECUTER":
            normalized = "EXECUTOR"
        try:
            return cls[normalized]
        except KeyError:
            raise ValueError(f"Unknown role: {name}") from None


class Authority(Enum):
    """How a privileged caller was authorized for a group operation."""

    SUPER = auto()
    GROUP_ADMIN = auto()
