"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (quoting, agents,
streaming).

Architecture Pattern: Modular Monolith
- Each module (quoting, agents) is a bounded context
- Shared kernel contains only generic infrastructure

DO NOT add quoting or agent business logic to the shared kernel.
"""

__version__ = "1.0.0"
