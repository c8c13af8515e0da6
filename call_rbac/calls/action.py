"""Action descriptions and their canonical identity.

An Action names an operation (``module`` + ``name``) and its arguments.
Its identity is the canonical byte encoding of the whole description, so
``transfer(bob, 5)`` and ``transfer(bob, 6)`` are different actions.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from call_rbac.permissions.origin import Origin


class Action(BaseModel):
    """A request to perform an operation with specific arguments.

    Equality and hashing follow ``encode()``, so actions work as set members
    and dict keys with the same identity the registry uses.
    """

    model_config = ConfigDict(frozen=True)

    module: str = Field(..., min_length=1, description="Component that owns the operation")
    name: str = Field(..., min_length=1, description="Operation name within the module")
    args: dict[str, Any] = Field(default_factory=dict, description="JSON-compatible arguments")

    def encode(self) -> bytes:
        """Canonical encoding: compact JSON with sorted keys, UTF-8.

        Two actions are the same action iff their encodings are equal.
        """
        return json.dumps(
            self.model_dump(mode="json"),
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
        ).encode("utf-8")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Action):
            return NotImplemented
        return self.encode() == other.encode()

    def __hash__(self) -> int:
        return hash(self.encode())

    def digest(self) -> str:
        """Short BLAKE2b digest of the encoding, for logs and display only."""
        return hashlib.blake2b(self.encode(), digest_size=16).hexdigest()

    @property
    def qualified_name(self) -> str:
        return f"{self.module}.{self.name}"

    def __str__(self) -> str:
        return f"{self.qualified_name}#{self.digest()[:12]}"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Action:
        """Create from dictionary."""
        return cls.model_validate(data)


@dataclass(frozen=True)
class CallEntry:
    """A whitelisted action and the identity it is dispatched under."""

    action: Action
    identity: Origin

    def to_dict(self) -> dict[str, Any]:
        return {"action": self.action.to_dict(), "identity": self.identity.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CallEntry:
        return cls(
            action=Action.from_dict(data["action"]),
            identity=Origin.from_dict(data["identity"]),
        )
