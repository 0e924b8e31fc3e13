"""
Pydantic schema definitions for API payloads.

Schemas are separated from the database tables so that the API
representation (external UUID, ``createAt``) stays decoupled from
persistence (integer keys, ``created_at``).
"""
