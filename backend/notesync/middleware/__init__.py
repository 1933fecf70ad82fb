# Middleware package init
"""
NoteSync Backend: Middleware Package
====================================

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    1. Request ID first, so every later log line can carry it
    2. Logging records method, path, status and duration with that ID
    3. GZip and CORS are FastAPI/Starlette built-ins

    Responses pass back through the chain in reverse order.
"""
