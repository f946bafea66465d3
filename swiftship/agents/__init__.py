"""
Agents Bounded Context
======================

LLM-backed chat agents and the router that picks between them.

Layers:
- domain: messages, context, prompts, shipment formatting, site map
- application: agents, router, coordinator, chat DTOs
- infrastructure: knowledge base search and ingestion
- interfaces: chat HTTP routes
"""
