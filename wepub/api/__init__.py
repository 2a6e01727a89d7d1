"""HTTP API for WePub."""

from .server import app

__all__ = ["app"]
