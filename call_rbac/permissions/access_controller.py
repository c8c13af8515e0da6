"""Grant and revoke roles under the two-tier delegation rules.

- The super authority grants and revokes both roles in any group.
- A group admin grants and revokes EXECUTOR in its own group only.
- Executors and outsiders change nothing.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from call_rbac.events import AccessGranted, AccessRevoked
from call_rbac.utils.errors import (
    AccessDNEError,
    AdminOnlyGrantsExecuterAccessError,
    AdminOnlyRevokesExecuterAccessError,
    AlreadyGrantedAccessError,
    AuthorizationRejectedError,
    CallerNotAdminError,
)
from call_rbac.utils.validation import check_account, check_group, check_role

from .origin import Origin, SuperAuthority
from .roles import Authority, Role

if TYPE_CHECKING:
    from call_rbac.storage.state import AccessState

logger = logging.getLogger(__name__)


class AccessController:
    """Role bookkeeping for RoleStore and PermissionIndex.

    Every method validates all preconditions before touching a table, and
    is expected to run inside ``AccessState.transaction()``.
    """

    def __init__(self, state: AccessState, super_authority: SuperAuthority):
        self.state = state
        self.super_authority = super_authority

    def ensure_origin(self, origin: Origin, group: int) -> Authority:
        """Classify a caller for a privileged operation on ``group``.

        The super authority is checked first. Otherwise the caller must be
        a signed account holding a role in the group: no role at all
        re-raises the super authority rejection, and a non-admin role raises
        CallerNotAdminError.

        Returns:
            Authority.SUPER or Authority.GROUP_ADMIN

        Raises:
            AuthorizationRejectedError: If the caller is unsigned or has no role
            CallerNotAdminError: If the caller's role is not ADMIN
        """
        try:
            self.super_authority.ensure(origin)
            return Authority.SUPER
        except AuthorizationRejectedError as super_error:
            account = origin.ensure_signed()
            role = self.state.roles.get(group, account)
            if role is None:
                logger.warning(f"{origin} has no role in group {group}")
                raise super_error
            if role is not Role.ADMIN:
                logger.warning(f"{origin} is {role.name} in group {group}, admin required")
                raise CallerNotAdminError(group, account) from None
            return Authority.GROUP_ADMIN

    def grant_access(
        self, origin: Origin, group: int, account: str, role: Role
    ) -> AccessGranted:
        """Give ``account`` a role in ``group``.

        Args:
            origin: Caller; super authority or an admin of ``group``
            group: Access group id
            account: Account receiving the role
            role: Role to grant; group admins may only grant EXECUTOR

        Returns:
            The AccessGranted event to publish once committed

        Raises:
            ValidationError: Malformed group, account or role
            AdminOnlyGrantsExecuterAccessError: Group admin granting ADMIN
            AlreadyGrantedAccessError: ``account`` already holds a role in ``group``
        """
        check_group(group)
        check_account(account)
        check_role(role)
        authority = self.ensure_origin(origin, group)

        if authority is Authority.GROUP_ADMIN and role is not Role.EXECUTOR:
            raise AdminOnlyGrantsExecuterAccessError(group, account)

        existing = self.state.roles.get(group, account)
        if existing is not None:
            raise AlreadyGrantedAccessError(group, account, existing)

        self.state.roles.insert(group, account, role)
        if role is Role.EXECUTOR:
            self.state.permissions.add(account, group)

        logger.info(f"Granted {role.name} in group {group} to '{account}' by {origin}")
        return AccessGranted(group=group, account=account, role=role)

    def revoke_access(self, origin: Origin, group: int, account: str) -> AccessRevoked:
        """Remove ``account``'s role in ``group``.

        Returns:
            The AccessRevoked event to publish once committed

        Raises:
            AccessDNEError: ``account`` holds no role in ``group``
            AdminOnlyRevokesExecuterAccessError: Group admin revoking an ADMIN
        """
        check_group(group)
        check_account(account)
        authority = self.ensure_origin(origin, group)

        role = self.state.roles.get(group, account)
        if role is None:
            raise AccessDNEError(group, account)
        if authority is Authority.GROUP_ADMIN and role is not Role.EXECUTOR:
            raise AdminOnlyRevokesExecuterAccessError(group, account)

        self.state.roles.remove(group, account)
        if role is Role.EXECUTOR:
            self.state.permissions.discard(account, group)

        logger.info(f"Revoked {role.name} in group {group} from '{account}' by {origin}")
        return AccessRevoked(group=group, account=account, role=role)
