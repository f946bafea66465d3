"""
Agents Interfaces Layer
=======================

FastAPI route handlers for the chat API.
"""

from swiftship.agents.interfaces.controllers import agents_router

__all__ = ["agents_router"]
