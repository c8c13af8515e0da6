"""Utility functions and classes."""

from .errors import (
    AccessDNEError,
    AdminOnlyGrantsExecuterAccessError,
    AdminOnlyRevokesExecuterAccessError,
    AlreadyGrantedAccessError,
    AuthorizationRejectedError,
    CallerNotAdminError,
    CallNotPermittedError,
    CallRBACError,
    ConfigurationError,
    StateFileError,
    TooManyCallsError,
    UnknownActionError,
    ValidationError,
)
from .validation import MAX_GROUP_ID, check_account, check_group, check_role

__all__ = [
    "CallRBACError",
    "ValidationError",
    "AuthorizationRejectedError",
    "CallerNotAdminError",
    "AdminOnlyGrantsExecuterAccessError",
    "AdminOnlyRevokesExecuterAccessError",
    "AlreadyGrantedAccessError",
    "AccessDNEError",
    "TooManyCallsError",
    "CallNotPermittedError",
    "UnknownActionError",
    "ConfigurationError",
    "StateFileError",
    "MAX_GROUP_ID",
    "check_account",
    "check_group",
    "check_role",
]
