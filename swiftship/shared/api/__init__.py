"""
Shared API Layer
================

Middleware and exception handlers shared by every router.
"""

from swiftship.shared.api.middleware import (
    CorrelationIDMiddleware,
    MetricsMiddleware,
    LoggingMiddleware,
    global_exception_handler,
)

__all__ = [
    "CorrelationIDMiddleware",
    "MetricsMiddleware",
    "LoggingMiddleware",
    "global_exception_handler",
]
