"""HTTP API exposing the routing engine."""

from .main import create_app

__all__ = ["create_app"]
