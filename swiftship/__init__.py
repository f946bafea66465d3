"""
Swift Ship Agents
=================

Freight quoting and customer-support agents behind a streaming chat API.
"""

__version__ = "1.0.0"
