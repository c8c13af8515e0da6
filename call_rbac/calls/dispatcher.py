"""Execution collaborators: run an authorized action under an identity.

The gate never interprets what an action does. Once authorized, it hands
the action and the resolved identity to a Dispatcher and propagates
whatever the dispatcher returns or raises.
"""

from __future__ import annotations

import importlib
import inspect
import logging
from collections.abc import Callable
from typing import Any, Protocol

from call_rbac.permissions.origin import Origin
from call_rbac.utils.errors import ConfigurationError, UnknownActionError

from .action import Action

logger = logging.getLogger(__name__)

Handler = Callable[..., Any]


class Dispatcher(Protocol):
    """Runs an action as if it were issued by ``origin``."""

    async def dispatch(self, action: Action, origin: Origin) -> Any: ...


class HandlerDispatcher:
    """Dispatcher backed by handlers registered per ``(module, name)``.

    Handlers receive the impersonated origin followed by the action's
    arguments as keyword arguments. Sync and async handlers both work.

    Example:
        dispatcher = HandlerDispatcher()

        @dispatcher.register("balances", "transfer")
        def transfer(origin: Origin, dest: str, value: int) -> None:
            ledger.move(origin.ensure_signed(), dest, value)
    """

    def __init__(self) -> None:
        self._handlers: dict[tuple[str, str], Handler] = {}

    def register(
        self, module: str, name: str, handler: Handler | None = None
    ) -> Callable[[Handler], Handler] | Handler:
        """Register a handler, directly or as a decorator."""

        def decorator(func: Handler) -> Handler:
            self._handlers[(module, name)] = func
            logger.info(f"Registered action handler: {module}.{name}")
            return func

        if handler is not None:
            return decorator(handler)
        return decorator

    def has_handler(self, module: str, name: str) -> bool:
        return (module, name) in self._handlers

    @property
    def actions(self) -> list[str]:
        return sorted(f"{module}.{name}" for module, name in self._handlers)

    async def dispatch(self, action: Action, origin: Origin) -> Any:
        handler = self._handlers.get((action.module, action.name))
        if handler is None:
            raise UnknownActionError(action.qualified_name)

        logger.info(f"Dispatching {action} as {origin}")
        result = handler(origin, **action.args)
        if inspect.isawaitable(result):
            result = await result
        return result


def load_dispatcher(path: str) -> Dispatcher:
    """Resolve a dispatcher from ``"package.module:attribute"``.

    The attribute may be a dispatcher instance or a zero-argument factory
    returning one.

    Raises:
        ConfigurationError: If the path cannot be imported or does not
            yield an object with a ``dispatch`` method
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ConfigurationError(f"Dispatcher path must look like 'module:attribute', got {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ConfigurationError(f"Cannot import dispatcher module {module_name!r}: {e}") from e

    try:
        target = getattr(module, attr)
    except AttributeError:
        raise ConfigurationError(f"Module {module_name!r} has no attribute {attr!r}") from None

    if inspect.isclass(target) or (callable(target) and not hasattr(target, "dispatch")):
        target = target()
    if not callable(getattr(target, "dispatch", None)):
        raise ConfigurationError(f"{path!r} does not provide a dispatcher")
    return target
