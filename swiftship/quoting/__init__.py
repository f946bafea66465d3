"""
Quoting Bounded Context
=======================

Freight pricing and the multi-turn shipping quote conversation.

Layers:
- domain: entities, pricing engine, extractors, message templates
- application: quote state machine and quote service
- infrastructure: route gateway, pricing config, conversation store, repositories
- interfaces: HTTP routes
"""
