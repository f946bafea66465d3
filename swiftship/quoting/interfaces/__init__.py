"""
Quoting Interfaces Layer
========================

FastAPI route handlers for the quoting module.
"""

from swiftship.quoting.interfaces.controllers import quotes_router, geocoding_router

__all__ = ["quotes_router", "geocoding_router"]
