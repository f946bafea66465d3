"""
Infrastructure Layer
=====================

Low-level technical concerns shared by every bounded context:
- Structured logging
- Metrics export
"""

from swiftship.shared.infrastructure.logging import (
    setup_logging,
    get_logger,
    get_context_logger,
    log_latency,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "get_context_logger",
    "log_latency",
]
