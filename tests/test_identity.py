"""
Profile Service - Identity Provider and Authorization Gate Tests
==================================================================

What we test:
    ✅ Valid tokens resolve to an Identity
    ✅ Expired, wrongly signed, garbage and email-less tokens are rejected
    ✅ Name claims fall back through given_name/family_name and name
    ✅ Bearer header parsing
    ✅ Provider selection from settings
"""

import os

import pytest

from profile_service.auth import bearer_credential
from profile_service.config import Settings
from profile_service.exceptions import InvalidCredentialError
from profile_service.services.identity import (
    JWTIdentityProvider,
    UnconfiguredIdentityProvider,
    build_identity_provider,
    identity_from_claims,
)


class TestJWTIdentityProvider:

    @pytest.mark.asyncio
    async def test_valid_token(self, identity_provider, make_token):
        identity = await identity_provider.verify(make_token())

        assert identity.email == "ada@example.com"
        assert identity.firstname == "Ada"
        assert identity.lastname == "Lovelace"

    @pytest.mark.asyncio
    async def test_expired_token_is_rejected(self, identity_provider, make_token):
        with pytest.raises(InvalidCredentialError):
            await identity_provider.verify(make_token(expires_in=-10))

    @pytest.mark.asyncio
    async def test_wrong_secret_is_rejected(self, identity_provider, make_token):
        token = make_token(secret="another-secret-entirely-0123456789")

        with pytest.raises(InvalidCredentialError):
            await identity_provider.verify(token)

    @pytest.mark.asyncio
    async def test_garbage_is_rejected(self, identity_provider):
        with pytest.raises(InvalidCredentialError):
            await identity_provider.verify("not-a-jwt")

    @pytest.mark.asyncio
    async def test_token_without_email_is_rejected(self, identity_provider, make_token):
        with pytest.raises(InvalidCredentialError) as exc_info:
            await identity_provider.verify(make_token(email=None))

        assert "email" in exc_info.value.reason

    @pytest.mark.asyncio
    async def test_audience_is_enforced_when_configured(self, make_token):
        provider = JWTIdentityProvider(secret=os.environ["AUTH_SECRET"], audience="profiles")

        with pytest.raises(InvalidCredentialError):
            await provider.verify(make_token(aud="someone-else"))
        identity = await provider.verify(make_token(aud="profiles"))
        assert identity.email == "ada@example.com"

    def test_needs_a_key_source(self):
        with pytest.raises(ValueError):
            JWTIdentityProvider()


class TestIdentityFromClaims:

    def test_explicit_name_claims_win(self):
        identity = identity_from_claims(
            {"email": "a@b.c", "firstname": "Ann", "given_name": "Other", "lastname": "Lee"}
        )

        assert (identity.firstname, identity.lastname) == ("Ann", "Lee")

    def test_full_name_is_split(self):
        identity = identity_from_claims({"email": "a@b.c", "name": "Grace Brewster Hopper"})

        assert identity.firstname == "Grace"
        assert identity.lastname == "Brewster Hopper"

    def test_no_names_at_all(self):
        identity = identity_from_claims({"email": "a@b.c"})
        assert (identity.firstname, identity.lastname) == ("", "")

    def test_non_string_email_is_rejected(self):
        with pytest.raises(InvalidCredentialError):
            identity_from_claims({"email": 42})


class TestUnconfiguredProvider:

    @pytest.mark.asyncio
    async def test_rejects_everything(self, make_token):
        with pytest.raises(InvalidCredentialError):
            await UnconfiguredIdentityProvider().verify(make_token())

    def test_selected_without_key_source(self):
        settings = Settings(auth_secret="", auth_jwks_url=None)
        assert isinstance(build_identity_provider(settings), UnconfiguredIdentityProvider)

    def test_jwt_selected_with_secret(self):
        settings = Settings(auth_secret="abc")
        assert isinstance(build_identity_provider(settings), JWTIdentityProvider)


class TestBearerCredential:

    @pytest.mark.parametrize(
        "header, expected",
        [
            ("Bearer abc.def.ghi", "abc.def.ghi"),
            ("bearer token", "token"),
            ("  Bearer   spaced  ", "spaced"),
            ("Basic dXNlcjpwYXNz", None),
            ("Bearer", None),
            ("Bearer    ", None),
            ("", None),
            (None, None),
        ],
    )
    def test_parsing(self, header, expected):
        assert bearer_credential(header) == expected
