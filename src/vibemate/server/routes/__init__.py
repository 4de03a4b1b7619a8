"""
vibemate.server.routes - API route handlers.
"""

from vibemate.server.routes import admin, health, rules

__all__ = ["admin", "health", "rules"]
