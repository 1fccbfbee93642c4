"""
Profile Service - Services Layer
=================================

Service Inventory:
    - IdentityProvider (abstract): bearer credential → Identity
    - JWTIdentityProvider: PyJWT implementation (HMAC secret or JWKS)
    - UserService: profile read, lazy creation and update
"""
