"""HTTP API for Tempest weather alerts."""

from .app import create_app

__all__ = ["create_app"]
