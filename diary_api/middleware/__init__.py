# Middleware package init
"""
Diary API — Middleware Package
================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [CORS] → Route Handler

    The request ID is set before the logging middleware runs, so the access
    log line and every log line of the handler carry the same ID.
"""
