"""
Shared Infrastructure
=====================

Database engine, LLM clients, vector store and geocoding providers.
"""
