"""Request origins and the super authority check.

An Origin identifies who issues a request, or whose identity a whitelisted
action runs under. Signature and credential verification happen before an
Origin is constructed; the engine trusts what it is handed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from call_rbac.utils.errors import AuthorizationRejectedError
from call_rbac.utils.validation import check_account

logger = logging.getLogger(__name__)

ROOT = "root"
SIGNED = "signed"
NONE = "none"

_KINDS = (ROOT, SIGNED, NONE)


@dataclass(frozen=True)
class Origin:
    """The identity behind a request.

    Attributes:
        kind: "root" (the super authority), "signed" (an authenticated
            account) or "none" (unauthenticated)
        account: The account name for signed origins, None otherwise

    Example:
        # Operator console
        Origin.root()

        # Authenticated account
        Origin.signed("alice")
    """

    kind: str
    account: str | None = None

    def __post_init__(self) -> None:
        if self.kind not in _KINDS:
            raise ValueError(f"Unknown origin kind: {self.kind}")
        if self.kind == SIGNED:
            check_account(self.account)
        elif self.account is not None:
            raise ValueError(f"{self.kind} origin cannot carry an account")

    @classmethod
    def root(cls) -> Origin:
        return cls(ROOT)

    @classmethod
    def signed(cls, account: str) -> Origin:
        return cls(SIGNED, account)

    @classmethod
    def none(cls) -> Origin:
        return cls(NONE)

    @property
    def is_root(self) -> bool:
        return self.kind == ROOT

    @property
    def is_signed(self) -> bool:
        return self.kind == SIGNED

    def ensure_signed(self) -> str:
        """Return the signing account.

        Raises:
            AuthorizationRejectedError: If the origin is not a signed account
        """
        if self.kind != SIGNED or self.account is None:
            raise AuthorizationRejectedError(f"Expected a signed origin, got {self}")
        return self.account

    def __str__(self) -> str:
        if self.kind == SIGNED:
            return f"signed({self.account})"
        return self.kind

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"kind": self.kind, "account": self.account}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Origin:
        """Create from dictionary (for deserialization).

        Raises:
            ValueError: If the kind is unknown or the account is malformed
        """
        return cls(kind=data["kind"], account=data.get("account"))


class SuperAuthority:
    """Decides whether an origin carries the super authority credential.

    The root origin always qualifies. Signed accounts listed in
    ``accounts`` qualify as well, for deployments where the operator is
    an ordinary authenticated account rather than a root console.
    """

    def __init__(self, accounts: Iterable[str] = ()):
        self.accounts: frozenset[str] = frozenset(accounts)

    def is_super(self, origin: Origin) -> bool:
        if origin.is_root:
            return True
        return origin.is_signed and origin.account in self.accounts

    def ensure(self, origin: Origin) -> None:
        """Require the super authority.

        Raises:
            AuthorizationRejectedError: If the origin is not super
        """
        if not self.is_super(origin):
            logger.debug(f"Super authority check failed for {origin}")
            raise AuthorizationRejectedError(f"{origin} is not the super authority")
