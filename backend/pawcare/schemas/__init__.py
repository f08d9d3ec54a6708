# Schemas package init
"""
PawCare Backend — Pydantic Request/Response Schemas
=====================================================

Schemas are separate from the ORM models: the API decides what leaves the
server (never password hashes, never the public feed's email addresses),
independently of the table layout.
"""
