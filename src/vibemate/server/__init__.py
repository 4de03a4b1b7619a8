"""
vibemate.server - FastAPI admin application.

Note: create_app is imported lazily to avoid circular imports.
Use `from vibemate.server.app import create_app` directly when needed.
"""

from vibemate.server.config import Settings, get_settings


def __getattr__(name: str):
    """Lazy import for create_app to avoid circular imports."""
    if name == "create_app":
        from vibemate.server.app import create_app

        return create_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["create_app", "Settings", "get_settings"]
