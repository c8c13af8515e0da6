"""HTTP surface for the call gate."""

from .app import create_app

__all__ = ["create_app"]
