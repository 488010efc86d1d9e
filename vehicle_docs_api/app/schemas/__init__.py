"""
Pydantic schema definitions for API payloads.

Each domain (vehicles, documents, history, statistics, users) defines
its own Pydantic models for request and response bodies.  Field names
are snake_case in Python and camelCase on the wire, matching the JSON
records kept in the record store.
"""
