"""Error types for the call gate."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from call_rbac.permissions.roles import Role


class CallRBACError(Exception):
    """Base exception for call gate errors."""

    pass


class ValidationError(CallRBACError):
    """Raised when an operation input is malformed (bad group id, empty account)."""

    pass


# Authorization errors
class AuthorizationRejectedError(CallRBACError):
    """Raised when the caller is neither super authority nor a qualifying principal."""

    def __init__(self, reason: str = "Bad origin"):
        super().__init__(reason)
        self.reason = reason


class CallerNotAdminError(CallRBACError):
    """Raised when the caller holds a role in the group, but not Admin."""

    def __init__(self, group: int, account: str):
        super().__init__(f"Account '{account}' is not an admin of group {group}")
        self.group = group
        self.account = account


class AdminOnlyGrantsExecuterAccessError(CallRBACError):
    """Raised when a group admin tries to grant the Admin role."""

    def __init__(self, group: int, account: str):
        super().__init__(
            f"Group admins may only grant executor access (group {group}, account '{account}')"
        )
        self.group = group
        self.account = account


class AdminOnlyRevokesExecuterAccessError(CallRBACError):
    """Raised when a group admin tries to revoke another admin."""

    def __init__(self, group: int, account: str):
        super().__init__(
            f"Group admins may only revoke executor access (group {group}, account '{account}')"
        )
        self.group = group
        self.account = account


class AlreadyGrantedAccessError(CallRBACError):
    """Raised when granting a role to an account that already holds one."""

    def __init__(self, group: int, account: str, role: Role):
        super().__init__(f"Account '{account}' already has {role.name} access in group {group}")
        self.group = group
        self.account = account
        self.role = role


class AccessDNEError(CallRBACError):
    """Raised when revoking access that does not exist."""

    def __init__(self, group: int, account: str):
        super().__init__(f"Account '{account}' has no access in group {group}")
        self.group = group
        self.account = account


# Call registry / execution errors
class TooManyCallsError(CallRBACError):
    """Raised when set_calls receives more entries than the configured maximum."""

    def __init__(self, count: int, limit: int):
        super().__init__(f"{count} calls exceeds the limit of {limit}")
        self.count = count
        self.limit = limit


class CallNotPermittedError(CallRBACError):
    """Raised when no executor membership of the caller covers the action."""

    def __init__(self, account: str, action_name: str):
        super().__init__(f"Account '{account}' is not permitted to call {action_name}")
        self.account = account
        self.action_name = action_name


class UnknownActionError(CallRBACError):
    """Raised by the handler dispatcher when no handler is registered for an action."""

    def __init__(self, action_name: str):
        super().__init__(f"No handler registered for {action_name}")
        self.action_name = action_name


# Configuration / persistence errors
class ConfigurationError(CallRBACError):
    """Raised when configuration is missing or invalid."""

    pass


class StateFileError(CallRBACError):
    """Raised when the persisted state cannot be read or written."""

    def __init__(self, path: str, detail: str):
        super().__init__(f"State file {path}: {detail}")
        self.path = path
        self.detail = detail
