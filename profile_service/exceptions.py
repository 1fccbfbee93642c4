"""
Profile Service - Custom Exception Hierarchy
=============================================

What:  Application-specific exceptions, one per failure path of the request
       pipeline.
How:   Each exception carries everything needed to render the response
       envelope: the body `code`, the HTTP status, the `success` flag, a
       client-safe message and `data`. A `context` dict holds debug details
       that are logged but never returned. Global handlers (registered in
       main.py) turn any of these into an envelope.
Who:   Raised by gates, middleware and services; caught by global handlers.

Exception Hierarchy:
    ProfileServiceError (base)
    ├── ValidationError          code 400, HTTP 200 (all violations in data.errors)
    ├── AuthError                code 401/403, same HTTP status
    ├── RateLimitExceededError   code 429, HTTP 429
    ├── NotFoundError            code 404, HTTP 404
    ├── ProfileNotFoundError     code 600, HTTP 200 (soft failure)
    ├── AccountDisabledError     code 601, HTTP 200 (soft failure)
    └── InternalError            code 500, HTTP 500
        └── DatabaseError        code 500, HTTP 500

    InvalidCredentialError is raised by identity providers only; the
    authorization gate translates it into AuthError.

Body code vs HTTP status:
    Clients branch on the envelope `code`, not on the HTTP status. Validation
    failures and the 600/601 outcomes therefore travel with HTTP 200.
"""

from typing import Any, Dict, List, Optional

from profile_service.codes import response_codes


class ProfileServiceError(Exception):
    """
    Base exception for all Profile Service application errors.

    Attributes:
        code:        Envelope code (also the key into the response-code table)
        http_status: HTTP status the envelope is sent with
        success:     Envelope success flag
        message:     Client-safe description; defaults to the table message
        data:        Envelope payload
        context:     Debug details (logged, NOT returned to the client)
        headers:     Extra response headers
    """

    code: int = 500
    http_status: int = 500
    success: bool = False

    def __init__(
        self,
        message: Optional[str] = None,
        data: Any = None,
        context: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.message = message or response_codes.message(self.code)
        self.data = {} if data is None else data
        self.context = context or {}
        self.headers = headers or {}
        super().__init__(self.message)


class ValidationError(ProfileServiceError):
    """
    Raised when a request body fails one or more field predicates.

    Every failing predicate is reported, so the client sees all problems in
    one round trip:

        {
            "success": false,
            "code": 400,
            "message": "Bad Request",
            "data": {"errors": [{"field": "firstname",
                                 "message": "First name is required and cannot be empty",
                                 "location": "body"}]}
        }
    """

    code = 400
    http_status = 200

    def __init__(
        self,
        errors: List[Dict[str, Any]],
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.errors = errors
        super().__init__(message=message, data={"errors": errors}, context=context)


class AuthError(ProfileServiceError):
    """
    Raised by the authorization gate.

    401 when the bearer credential is missing or malformed, 403 when the
    identity provider rejects it. Never retried by this service.
    """

    code = 401
    http_status = 401

    def __init__(
        self,
        code: int = 401,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.code = code
        self.http_status = code
        super().__init__(message=message, context=context)


class RateLimitExceededError(ProfileServiceError):
    """
    Raised when a client exceeds the per-IP request quota.

    Carries retry_after (seconds until the oldest request leaves the window),
    sent back as the standard Retry-After header.
    """

    code = 429
    http_status = 429

    def __init__(self, retry_after: int = 60, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["retry_after"] = retry_after
        super().__init__(context=ctx, headers={"Retry-After": str(retry_after)})
        self.retry_after = retry_after


class NotFoundError(ProfileServiceError):
    """No route is associated with the requested URL."""

    code = 404
    http_status = 404

    def __init__(self, url: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["url"] = url
        super().__init__(
            message=f"No service is associated with the url => {url}",
            context=ctx,
        )
        self.url = url


class ProfileNotFoundError(ProfileServiceError):
    """
    The profile row could not be read back, even after lazy creation.

    A soft failure: HTTP 200 with body code 600.
    """

    code = 600
    http_status = 200
    success = True


class AccountDisabledError(ProfileServiceError):
    """The caller's profile exists but is disabled (status = 0). No profile data is returned."""

    code = 601
    http_status = 200
    success = True


class InternalError(ProfileServiceError):
    """
    Raised for failures the client cannot fix.

    The message is always the generic table text; whatever went wrong is
    recorded in `context` and the server log only.
    """

    code = 500
    http_status = 500

    def __init__(self, context: Optional[Dict[str, Any]] = None):
        super().__init__(context=context)


class DatabaseError(InternalError):
    """
    Raised when a database query, insert or update fails.

    Security Note:
        Detailed driver errors could reveal schema, table names or data.
        They go to `context` (logged server-side), never to the response.
    """


class InvalidCredentialError(Exception):
    """Raised by an IdentityProvider when a credential cannot be verified."""

    def __init__(self, reason: str = "invalid credential"):
        self.reason = reason
        super().__init__(reason)
