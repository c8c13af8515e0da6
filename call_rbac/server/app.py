"""FastAPI REST server exposing the call gate.

Endpoints:
    GET    /health
    POST   /groups/{group}/roles              {"account": "...", "role": "EXECUTOR"}
    GET    /groups/{group}/roles
    DELETE /groups/{group}/roles/{account}
    PUT    /groups/{group}/calls              {"calls": [{"action": ..., "identity": ...}]}
    GET    /groups/{group}/calls
    POST   /calls/execute                     {"action": {...}}
    GET    /accounts/{account}/allowed-calls

Caller identity is established upstream (gateway, mTLS terminator): the
``X-Caller`` header names the signed account. A request carrying an
``X-Super-Token`` equal to the configured super token is a root origin.

Run with:
    python -m call_rbac.server
"""

import logging
import secrets
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Security
from fastapi.responses import JSONResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from call_rbac.calls.action import Action, CallEntry
from call_rbac.calls.dispatcher import load_dispatcher
from call_rbac.core.config import Settings
from call_rbac.core.engine import CallRBAC
from call_rbac.permissions.origin import Origin
from call_rbac.permissions.roles import Role
from call_rbac.utils.errors import (
    AccessDNEError,
    AdminOnlyGrantsExecuterAccessError,
    AdminOnlyRevokesExecuterAccessError,
    AlreadyGrantedAccessError,
    AuthorizationRejectedError,
    CallerNotAdminError,
    CallNotPermittedError,
    CallRBACError,
    TooManyCallsError,
    ValidationError,
)

from .models import (
    AllowedCallsResponse,
    CallEntryModel,
    EventResponse,
    ExecuteRequest,
    ExecuteResponse,
    GrantRequest,
    GroupCallsResponse,
    GroupMembersResponse,
    HealthResponse,
    OriginModel,
    RoleInfo,
    SetCallsRequest,
)

logger = logging.getLogger(__name__)

_ERROR_STATUS: dict[type[CallRBACError], int] = {
    AuthorizationRejectedError: 403,
    CallerNotAdminError: 403,
    AdminOnlyGrantsExecuterAccessError: 403,
    AdminOnlyRevokesExecuterAccessError: 403,
    CallNotPermittedError: 403,
    AccessDNEError: 404,
    AlreadyGrantedAccessError: 409,
    TooManyCallsError: 422,
    ValidationError: 422,
}


def _sanitize_log_input(value: str) -> str:
    """Escape newlines and control characters before logging user input."""
    sanitized = value.replace("\n", "\\n").replace("\r", "\\r")
    return "".join(c if c == "\t" or (ord(c) >= 0x20) else f"\\x{ord(c):02x}" for c in sanitized)


def _status_for(error: CallRBACError) -> int:
    for error_type in type(error).__mro__:
        if error_type in _ERROR_STATUS:
            return _ERROR_STATUS[error_type]
    return 500


def _origin_model(origin: Origin) -> OriginModel:
    return OriginModel(kind=origin.kind, account=origin.account)  # type: ignore[arg-type]


def _to_origin(model: OriginModel) -> Origin:
    try:
        return Origin(model.kind, model.account)
    except (ValueError, ValidationError) as e:
        raise HTTPException(status_code=422, detail=f"Invalid identity: {e}") from e


def _event_response(event: Any) -> EventResponse:
    role = getattr(event, "role", None)
    return EventResponse(
        kind=event.kind,
        group=event.group,
        account=getattr(event, "account", None),
        role=role.to_name() if role is not None else None,
        emitted_at=event.emitted_at,
    )


def create_app(engine: CallRBAC | None = None, settings: Settings | None = None) -> FastAPI:
    """Build the API around an engine.

    Args:
        engine: Engine to serve. Built from ``settings`` when omitted, with
            the dispatcher named by ``settings.dispatcher``.
        settings: Configuration (defaults to the environment)
    """
    settings = settings or Settings()
    if engine is None:
        dispatcher = load_dispatcher(settings.dispatcher) if settings.dispatcher else None
        engine = CallRBAC.from_settings(settings, dispatcher=dispatcher)

    app = FastAPI(
        title="Call RBAC API",
        description="Delegated execution of whitelisted actions per access group.",
        version="0.1.0",
    )
    app.state.engine = engine

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    security = HTTPBearer(auto_error=False)

    async def verify_api_key(
        credentials: HTTPAuthorizationCredentials | None = Security(security),
    ) -> None:
        """Require ``Authorization: Bearer <api_key>`` when an API key is configured.

        Uses constant-time comparison to prevent timing attacks.
        """
        if not settings.api_key:
            return
        if not credentials or not secrets.compare_digest(
            credentials.credentials.encode("utf-8"),
            settings.api_key.encode("utf-8"),
        ):
            raise HTTPException(status_code=401, detail="Invalid or missing API key")

    async def get_origin(
        x_caller: str | None = Header(default=None),
        x_super_token: str | None = Header(default=None),
    ) -> Origin:
        """Resolve the request origin from gateway-provided headers."""
        if x_super_token is not None:
            if not settings.super_token or not secrets.compare_digest(
                x_super_token.encode("utf-8"), settings.super_token.encode("utf-8")
            ):
                raise HTTPException(status_code=401, detail="Invalid super token")
            return Origin.root()
        if x_caller:
            return Origin.signed(x_caller)
        return Origin.none()

    @app.exception_handler(CallRBACError)
    async def handle_call_rbac_error(request: Request, exc: CallRBACError) -> JSONResponse:
        status = _status_for(exc)
        logger.warning(
            f"{request.method} {_sanitize_log_input(request.url.path)} -> {status}: {exc}"
        )
        return JSONResponse(
            status_code=status,
            content={"detail": str(exc), "error_type": type(exc).__name__},
        )

    # -------------------------------------------------------------------------
    # Health
    # -------------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    async def health() -> HealthResponse:
        return HealthResponse(max_calls=engine.max_calls)

    # -------------------------------------------------------------------------
    # Roles
    # -------------------------------------------------------------------------

    @app.post("/groups/{group}/roles", response_model=EventResponse, status_code=201)
    async def grant_access(
        group: int,
        body: GrantRequest,
        origin: Origin = Depends(get_origin),
        _: None = Depends(verify_api_key),
    ) -> EventResponse:
        try:
            role = Role.from_name(body.role)
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e)) from e
        event = engine.grant_access(origin, group, body.account, role)
        return _event_response(event)

    @app.delete("/groups/{group}/roles/{account}", response_model=EventResponse)
    async def revoke_access(
        group: int,
        account: str,
        origin: Origin = Depends(get_origin),
        _: None = Depends(verify_api_key),
    ) -> EventResponse:
        event = engine.revoke_access(origin, group, account)
        return _event_response(event)

    @app.get("/groups/{group}/roles", response_model=GroupMembersResponse)
    async def group_members(
        group: int,
        _: None = Depends(verify_api_key),
    ) -> GroupMembersResponse:
        members = engine.group_members(group)
        return GroupMembersResponse(
            group=group,
            members=[
                RoleInfo(group=group, account=account, role=role.to_name())
                for account, role in sorted(members.items())
            ],
        )

    # -------------------------------------------------------------------------
    # Calls
    # -------------------------------------------------------------------------

    @app.put("/groups/{group}/calls", response_model=EventResponse)
    async def set_calls(
        group: int,
        body: SetCallsRequest,
        origin: Origin = Depends(get_origin),
        _: None = Depends(verify_api_key),
    ) -> EventResponse:
        entries = [CallEntry(item.action, _to_origin(item.identity)) for item in body.calls]
        event = engine.set_calls(origin, group, entries)
        return _event_response(event)

    @app.get("/groups/{group}/calls", response_model=GroupCallsResponse)
    async def get_calls(
        group: int,
        _: None = Depends(verify_api_key),
    ) -> GroupCallsResponse:
        return GroupCallsResponse(
            group=group,
            calls=[
                CallEntryModel(action=entry.action, identity=_origin_model(entry.identity))
                for entry in engine.get_calls(group)
            ],
        )

    @app.post("/calls/execute", response_model=ExecuteResponse)
    async def execute_call(
        body: ExecuteRequest,
        origin: Origin = Depends(get_origin),
        _: None = Depends(verify_api_key),
    ) -> ExecuteResponse:
        action: Action = body.action
        try:
            result = await engine.execute_call(origin, action)
        except CallRBACError:
            raise
        except Exception as e:
            logger.exception(f"Dispatch of {action} failed")
            raise HTTPException(status_code=500, detail=str(e)) from e
        return ExecuteResponse(action=action.qualified_name, result=result)

    @app.get("/accounts/{account}/allowed-calls", response_model=AllowedCallsResponse)
    async def allowed_calls(
        account: str,
        _: None = Depends(verify_api_key),
    ) -> AllowedCallsResponse:
        return AllowedCallsResponse(account=account, actions=engine.get_allowed_calls(account))

    return app
