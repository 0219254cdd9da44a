from .logging_middleware import LoggingMiddleware, setup_logging_middleware

__all__ = ["LoggingMiddleware", "setup_logging_middleware"]
