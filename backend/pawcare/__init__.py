"""
PawCare Backend — Application Package Initializer
===================================================

What: The `pawcare` package: booking form API, admin dashboard API and
      customer portal API for a pet-care business.
Who:  Imported by uvicorn (`pawcare.main:app`), Alembic and pytest.

Architecture Note:

    ┌─────────────────────────────────────┐
    │     Middleware (cross-cutting)      │  ← request id, access log, rate limit, session
    ├─────────────────────────────────────┤
    │           Routes (API Layer)        │  ← HTTP concerns, response envelope
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← validation, auth, notifications, export
    ├─────────────────────────────────────┤
    │     Storage Adapter (Persistence)   │  ← one contract, SQLite / MySQL / PostgreSQL
    └─────────────────────────────────────┘

    Routes never touch SQL directly and services never branch on which
    database engine is configured.
"""

__version__ = "1.0.0"
