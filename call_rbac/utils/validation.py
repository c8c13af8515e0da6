"""Input validation for group ids, account names and roles."""

from call_rbac.permissions.roles import Role

from .errors import ValidationError

# Groups are unsigned 64-bit identifiers
MAX_GROUP_ID = 2**64 - 1


def check_group(group: object) -> int:
    """Validate an access group identifier.

    Args:
        group: Candidate group id

    Returns:
        The group id, unchanged

    Raises:
        ValidationError: If the id is not an int in [0, 2**64)
    """
    # bool is an int subclass; True is not a group
    if isinstance(group, bool) or not isinstance(group, int):
        raise ValidationError(f"Group id must be an integer, got {type(group).__name__}")
    if not 0 <= group <= MAX_GROUP_ID:
        raise ValidationError(f"Group id {group} is outside the unsigned 64-bit range")
    return group


def check_account(account: object) -> str:
    """Validate an account name.

    Raises:
        ValidationError: If the account is not a non-empty string
    """
    if not isinstance(account, str) or not account.strip():
        raise ValidationError("Account must be a non-empty string")
    return account


def check_role(role: object) -> Role:
    """Validate a role value.

    Raises:
        ValidationError: If ``role`` is not a Role member (names are parsed by callers)
    """
    if not isinstance(role, Role):
        raise ValidationError(f"Role must be a Role, got {role!r}")
    return role
