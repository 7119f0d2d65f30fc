"""HTTP API for the helper."""

from .server import app, create_app

__all__ = ["app", "create_app"]
