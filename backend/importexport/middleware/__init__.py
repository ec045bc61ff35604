# Middleware package init
"""
Import-Export Backend — Middleware Package
===========================================

Middleware Chain:
    Request → [Request ID] → [Access Log] → [GZip] → [CORS] → Route Handler

    Request ID runs first so the access log line carries the id.
"""
