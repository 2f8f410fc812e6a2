# Middleware package init
"""
Prescription API — Middleware Package
======================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the logging middleware and every handler log
    line see the same correlation ID.
"""
