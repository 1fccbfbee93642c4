"""
Profile Service - Middleware Package
=====================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [CORS] → [Trailing slash] → [Session] → [Rate limit] → Routes

    1. CORS first: preflights are answered before anything else runs
    2. Trailing slash: non-canonical paths are redirected before any work
    3. Session: correlation token, bound logger, lifecycle and timeout
    4. Rate limit: rejections are logged with the session token

    Each stage may end the request with its own envelope; otherwise it
    calls through to the next one.
"""
