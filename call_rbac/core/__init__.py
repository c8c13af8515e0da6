"""Core engine, configuration and logging."""

from .config import Settings
from .engine import CallRBAC
from .logging_config import setup_logging

__all__ = ["CallRBAC", "Settings", "setup_logging"]
