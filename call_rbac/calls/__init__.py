"""Actions, the per-group allowlist and the call gate."""

from .action import Action, CallEntry
from .allowlist import CallAllowlist
from .dispatcher import Dispatcher, HandlerDispatcher, load_dispatcher
from .gate import CallGate

__all__ = [
    "Action",
    "CallAllowlist",
    "CallEntry",
    "CallGate",
    "Dispatcher",
    "HandlerDispatcher",
    "load_dispatcher",
]
