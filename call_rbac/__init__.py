"""call-rbac - delegate execution of whitelisted actions to access groups."""

__version__ = "0.1.0"

from .calls import Action, CallEntry, Dispatcher, HandlerDispatcher
from .core import CallRBAC, Settings, setup_logging
from .events import AccessGranted, AccessRevoked, CallsUpdated, EventLog
from .permissions import Authority, Origin, Role, SuperAuthority
from .storage import AccessState, StateFile
from .utils.errors import (
    AccessDNEError,
    AdminOnlyGrantsExecuterAccessError,
    AdminOnlyRevokesExecuterAccessError,
    AlreadyGrantedAccessError,
    AuthorizationRejectedError,
    CallerNotAdminError,
    CallNotPermittedError,
    CallRBACError,
    TooManyCallsError,
)

__all__ = [
    "CallRBAC",
    "Settings",
    "setup_logging",
    # Model
    "Action",
    "CallEntry",
    "Authority",
    "Origin",
    "Role",
    "SuperAuthority",
    # Execution
    "Dispatcher",
    "HandlerDispatcher",
    # Events
    "AccessGranted",
    "AccessRevoked",
    "CallsUpdated",
    "EventLog",
    # Storage
    "AccessState",
    "StateFile",
    # Errors
    "CallRBACError",
    "AuthorizationRejectedError",
    "CallerNotAdminError",
    "AdminOnlyGrantsExecuterAccessError",
    "AdminOnlyRevokesExecuterAccessError",
    "AlreadyGrantedAccessError",
    "AccessDNEError",
    "TooManyCallsError",
    "CallNotPermittedError",
]
