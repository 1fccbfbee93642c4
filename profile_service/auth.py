"""
Profile Service - Authorization Gate
=====================================

What:  FastAPI dependency that resolves the caller's Identity from the
       `Authorization: Bearer <credential>` header.
How:   Missing or malformed header → AuthError 401.
       Credential rejected by the identity provider → AuthError 403.
       Either way the failure is logged once and the request ends there;
       nothing is retried. On success the Identity is handed to the route
       as a dependency value.

The provider is the singleton the app factory stores on
app.state.identity_provider.
"""

from typing import Optional

from fastapi import Depends, Request

from profile_service.context import RequestContext, get_request_context
from profile_service.exceptions import AuthError, InvalidCredentialError
from profile_service.schemas.user import Identity
from profile_service.services.identity import IdentityProvider


def bearer_credential(authorization: Optional[str]) -> Optional[str]:
    """The credential part of a `Bearer <credential>` header, or None."""
    if not authorization:
        return None
    scheme, _, credential = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not credential.strip():
        return None
    return credential.strip()


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


async def require_identity(
    request: Request,
    ctx: RequestContext = Depends(get_request_context),
    provider: IdentityProvider = Depends(get_identity_provider),
) -> Identity:
    credential = bearer_credential(request.headers.get("Authorization"))
    if credential is None:
        ctx.logger.warning("Missing bearer credential for %s %s", ctx.method, ctx.url)
        raise AuthError(401)

    try:
        identity = await provider.verify(credential)
    except InvalidCredentialError as e:
        ctx.logger.warning("Rejected bearer credential: %s", e.reason)
        raise AuthError(403, context={"reason": e.reason}) from e

    ctx.logger.debug("Authorized %s", identity.email)
    return identity
