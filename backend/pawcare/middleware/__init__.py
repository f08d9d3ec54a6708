# Middleware package init
"""
PawCare Backend — Middleware Package
======================================

Middleware Chain (order matters!):
    Request → [Request ID] → [Logging] → [Rate Limit] → [Session] → [GZip/CORS] → Route

    1. Request ID first: every later log line and error envelope can carry it
    2. Logging: records rejected (429) requests too
    3. Rate Limit: rejects abuse before a session is loaded from storage
    4. Session: loads identities into request.state.session, saves them back
"""
