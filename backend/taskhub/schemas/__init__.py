"""Pydantic Schemas — request/response shapes for API endpoints.

Invariants:
    - Request schemas check types only; field rules (lengths, enums, formats)
      live in the services so REST and Discord share one set of messages
    - Response schemas never expose api_token_hash or invite_token_hash

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
