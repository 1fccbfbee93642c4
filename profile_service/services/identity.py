"""
Profile Service - Identity Providers
=====================================

What:  Turns a bearer credential into the caller's Identity.
How:   IdentityProvider is the abstract contract the authorization gate
       depends on; JWTIdentityProvider is the concrete implementation, built
       on PyJWT. Keys come either from a shared HMAC secret or from a JWKS
       endpoint (the usual setup for hosted identity providers).

Claims read:
    email                        required
    firstname | given_name       first name
    lastname  | family_name      last name
    name                         split into first/last when the above are absent
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import jwt

from profile_service.config import Settings
from profile_service.exceptions import InvalidCredentialError
from profile_service.schemas.user import Identity

logger = logging.getLogger(__name__)


class IdentityProvider(ABC):
    """
    Contract for credential verification.

    Implementations raise InvalidCredentialError for any credential they
    cannot vouch for; the caller never needs to know which provider is used.
    """

    @abstractmethod
    async def verify(self, credential: str) -> Identity:
        """
        Verify `credential` and return the identity it asserts.

        Raises:
            InvalidCredentialError: malformed, expired, wrongly signed, or
                missing the email claim.
        """
        ...


def identity_from_claims(claims: Dict[str, Any]) -> Identity:
    email = claims.get("email")
    if not email or not isinstance(email, str):
        raise InvalidCredentialError("credential carries no email claim")

    firstname = claims.get("firstname") or claims.get("given_name") or ""
    lastname = claims.get("lastname") or claims.get("family_name") or ""
    if not firstname and not lastname and claims.get("name"):
        first, _, last = str(claims["name"]).partition(" ")
        firstname, lastname = first, last

    return Identity(email=email, firstname=str(firstname), lastname=str(lastname))


class JWTIdentityProvider(IdentityProvider):
    """
    Verifies JSON Web Tokens.

    Examples
    --------
    >>> provider = JWTIdentityProvider(secret="s3cret")
    >>> identity = await provider.verify(token)
    >>> identity.email
    'ada@example.com'
    """

    def __init__(
        self,
        secret: str = "",
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        jwks_url: Optional[str] = None,
    ):
        if not secret and not jwks_url:
            raise ValueError("JWTIdentityProvider needs a secret or a JWKS URL")
        self._secret = secret
        self._algorithms = algorithms or ["HS256"]
        self._audience = audience
        self._issuer = issuer
        self._jwks_client = jwt.PyJWKClient(jwks_url) if jwks_url else None

    @classmethod
    def from_settings(cls, settings: Settings) -> "JWTIdentityProvider":
        return cls(
            secret=settings.auth_secret,
            algorithms=settings.auth_algorithms_list,
            audience=settings.auth_audience,
            issuer=settings.auth_issuer,
            jwks_url=settings.auth_jwks_url,
        )

    async def _signing_key(self, credential: str) -> Any:
        if self._jwks_client is None:
            return self._secret
        # PyJWKClient fetches over blocking HTTP; keep it off the event loop
        signing_key = await asyncio.to_thread(
            self._jwks_client.get_signing_key_from_jwt, credential
        )
        return signing_key.key

    async def verify(self, credential: str) -> Identity:
        try:
            key = await self._signing_key(credential)
            claims = jwt.decode(
                credential,
                key,
                algorithms=self._algorithms,
                audience=self._audience,
                issuer=self._issuer,
                options={"verify_aud": self._audience is not None},
            )
        except jwt.PyJWTError as e:
            raise InvalidCredentialError(str(e)) from e

        return identity_from_claims(claims)


class UnconfiguredIdentityProvider(IdentityProvider):
    """Rejects every credential. Used when no verifier is configured."""

    async def verify(self, credential: str) -> Identity:
        raise InvalidCredentialError("no credential verifier configured")


def build_identity_provider(settings: Settings) -> IdentityProvider:
    if not settings.auth_secret and not settings.auth_jwks_url:
        logger.warning("No AUTH_SECRET or AUTH_JWKS_URL; all credentials will be rejected")
        return UnconfiguredIdentityProvider()
    return JWTIdentityProvider.from_settings(settings)
