"""
vibemate.server.middleware - ASGI middleware.
"""

from vibemate.server.middleware.logging import RequestLoggingMiddleware

__all__ = ["RequestLoggingMiddleware"]
