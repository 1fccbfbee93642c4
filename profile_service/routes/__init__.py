"""
Profile Service - API Routes Package
=====================================

Route Inventory:
    - index.py:  GET /         (service banner)
    - user.py:   GET /user/    (read, lazily create, the caller's profile)
                 PUT /user/    (update the caller's profile)

Routes are registered on their canonical slash form; the trailing-slash
middleware redirects everything else there.

Routes stay thin: extract input, call the service, wrap the result in the
envelope. Failures are raised as ProfileServiceError and rendered by the
global handlers.
"""
