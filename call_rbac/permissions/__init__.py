"""Roles, origins and the super authority.

- Role: EXECUTOR or ADMIN within one access group
- Authority: how a privileged caller was authorized (SUPER or GROUP_ADMIN)
- Origin: who issues a request, or whose identity an action runs under
- SuperAuthority: the check that decides whether an Origin is super

Role changes themselves live in ``access_controller.AccessController``.

Security model:
- Only the super authority appoints group admins
- Group admins manage executors of their own group, nothing else
- Executors may only run actions whitelisted for their groups
"""

from .origin import Origin, SuperAuthority
from .roles import Authority, Role

__all__ = [
    "Authority",
    "Origin",
    "Role",
    "SuperAuthority",
]
