"""
Middleware components for request processing.

- Request context (request ID bound to structured logs, X-Request-ID header)
"""

from clicktocall.middleware.request_context import RequestContextMiddleware

__all__ = ["RequestContextMiddleware"]
