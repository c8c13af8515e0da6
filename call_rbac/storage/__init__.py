"""Storage for roles, the executor index and the action registry."""

from .state import AccessState
from .state_file import StateFile
from .tables import ActionRegistry, PermissionIndex, RoleStore

__all__ = [
    "AccessState",
    "ActionRegistry",
    "PermissionIndex",
    "RoleStore",
    "StateFile",
]
