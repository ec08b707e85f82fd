"""Stateless request relay for browser clients."""

from flowpulse.relay.server import app, create_app

__all__ = ["app", "create_app"]
