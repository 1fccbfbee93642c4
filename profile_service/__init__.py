"""
Profile Service - Application Package
======================================

What: User-profile HTTP API (read and update) behind bearer authorization,
      per-IP rate limiting and a uniform JSON response envelope.

Layout:

    ┌─────────────────────────────────────┐
    │   Middleware (CORS, slash, session, │  ← cross-cutting request pipeline
    │   rate limit)                       │
    ├─────────────────────────────────────┤
    │   Gates (auth, validation)          │  ← FastAPI dependencies
    ├─────────────────────────────────────┤
    │   Routes                            │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services                          │  ← profile rules, identity provider
    ├─────────────────────────────────────┤
    │   Models & Database                 │  ← async SQLAlchemy
    └─────────────────────────────────────┘

Every response, whichever layer produces it, goes through the envelope
builder in ``profile_service.envelope``.
"""

__version__ = "1.0.0"
