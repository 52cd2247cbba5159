"""HTTP API for the wealth coach."""

from .routes import get_storage, router

__all__ = ["get_storage", "router"]
