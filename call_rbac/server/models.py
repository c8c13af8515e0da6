"""Pydantic models for the call gate REST API."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from call_rbac.calls.action import Action


class OriginModel(BaseModel):
    """Serialized Origin."""

    kind: Literal["root", "signed", "none"]
    account: str | None = None


class GrantRequest(BaseModel):
    """Request body for granting a role."""

    account: str = Field(..., min_length=1, description="Account receiving the role")
    role: str = Field(..., description="EXECUTOR or ADMIN")


class RoleInfo(BaseModel):
    """One role assignment."""

    group: int
    account: str
    role: str


class GroupMembersResponse(BaseModel):
    """All role assignments of a group."""

    group: int
    members: list[RoleInfo]


class CallEntryModel(BaseModel):
    """A whitelisted action and its impersonation identity."""

    action: Action
    identity: OriginModel


class SetCallsRequest(BaseModel):
    """Request body replacing a group's allowlist."""

    calls: list[CallEntryModel] = Field(default_factory=list)


class GroupCallsResponse(BaseModel):
    """Allowlist of a group."""

    group: int
    calls: list[CallEntryModel]


class ExecuteRequest(BaseModel):
    """Request body for executing an action."""

    action: Action


class ExecuteResponse(BaseModel):
    """Result of a dispatched action."""

    status: str = "ok"
    action: str
    result: Any = None


class AllowedCallsResponse(BaseModel):
    """Actions an account may execute."""

    account: str
    actions: list[Action]


class EventResponse(BaseModel):
    """Event emitted by a successful command."""

    kind: str
    group: int
    account: str | None = None
    role: str | None = None
    emitted_at: datetime


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "ok"
    max_calls: int
