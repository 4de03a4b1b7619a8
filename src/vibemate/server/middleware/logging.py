"""
Request logging middleware.

Logs method, path, status and latency of every admin API call.
"""

import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestLoggingMiddleware:
    """
    Pure ASGI middleware that logs each HTTP request once it completes.

    Uses pure ASGI so streaming responses and request bodies pass through
    untouched.
    """

    # Paths not worth logging
    SKIP_PATHS = ["/health", "/docs", "/redoc", "/openapi.json"]

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI interface."""
        if scope["type"] != "http" or self._should_skip(scope["path"]):
            await self.app(scope, receive, send)
            return

        start_time = time.perf_counter()
        status_code = 500

        async def send_wrapper(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        finally:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            level = logging.WARNING if status_code >= 400 else logging.INFO
            logger.log(
                level,
                f"{scope['method']} {scope['path']} -> {status_code} ({latency_ms}ms)",
            )

    def _should_skip(self, path: str) -> bool:
        return any(path.startswith(prefix) for prefix in self.SKIP_PATHS)
