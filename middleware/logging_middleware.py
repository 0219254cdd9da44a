"""
Request logging middleware for ClimateGuard API
"""
import time
import uuid

import structlog

logger = structlog.get_logger(__name__)


class LoggingMiddleware:
    """ASGI middleware logging one line per HTTP response with a request id"""

    def __init__(self, app):
        self.app = app

    async def __call__(self, scope, receive, send):
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = uuid.uuid4().hex[:8]
        start_time = time.time()

        async def send_wrapper(message):
            if message["type"] == "http.response.start":
                logger.info(
                    "HTTP Request",
                    request_id=request_id,
                    method=scope.get("method", "UNKNOWN"),
                    path=scope.get("path", "UNKNOWN"),
                    query_string=scope.get("query_string", b"").decode(),
                    status_code=message.get("status", 0),
                    process_time_ms=round((time.time() - start_time) * 1000, 2),
                )
            await send(message)

        await self.app(scope, receive, send_wrapper)


def setup_logging_middleware(app):
    """Setup logging middleware for the application"""
    app.add_middleware(LoggingMiddleware)
    return app
