"""
Profile Service - FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn (uvicorn profile_service.main:app) or by run().
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │                        FastAPI App                          │
    │                                                             │
    │  Middleware Chain (outermost first):                        │
    │  ┌──────┐ ┌────────────────┐ ┌─────────┐ ┌──────────────┐   │
    │  │ CORS │→│ Trailing slash │→│ Session │→│ Rate limit   │   │
    │  └──────┘ └────────────────┘ └─────────┘ └──────────────┘   │
    │                                                             │
    │  Routes (gates run as dependencies):                        │
    │  ┌───────┐ ┌──────────────────┐ ┌─────────────────────────┐ │
    │  │ GET / │ │ GET /user/ (auth)│ │ PUT /user/ (auth, body) │ │
    │  └───────┘ └──────────────────┘ └─────────────────────────┘ │
    │                                                             │
    │  Exception Handlers (all render the envelope):              │
    │  ┌─────────────────────────────────────────────────────────┐│
    │  │ ProfileServiceError→own code │ 404/405→404 │ other→500  ││
    │  └─────────────────────────────────────────────────────────┘│
    └─────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, validate configuration, log the address
    Shutdown: dispose the database engine
"""

import logging
import sys
from http import HTTPStatus
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from profile_service import __version__
from profile_service.codes import response_codes
from profile_service.config import settings
from profile_service.context import SessionFilter, get_request_context
from profile_service.database import dispose_engine
from profile_service.envelope import responses
from profile_service.exceptions import (
    InternalError,
    ProfileServiceError,
    ValidationError,
)
from profile_service.middleware.rate_limit import RateLimitMiddleware
from profile_service.middleware.session import SessionMiddleware
from profile_service.middleware.trailing_slash import TrailingSlashMiddleware
from profile_service.routes import index, user
from profile_service.services.identity import IdentityProvider, build_identity_provider

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Every record carries the request's session token, either from the bound
    request logger or, for module loggers, from session_var via
    SessionFilter. Records emitted outside a request show "-".
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(session)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    for handler in logging.getLogger().handlers:
        handler.addFilter(SessionFilter())

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("Profile Service %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: unauthenticated routes still work and every
        # authenticated one answers with the 403 envelope
        logger.error("Configuration error: %s", str(e))

    if settings.timeout is None:
        logger.info("No request timeout configured")
    logger.info(
        "Service running on http://%s:%d", settings.service_address, settings.service_port
    )

    yield

    logger.info("Profile Service shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_response(exc: ProfileServiceError) -> JSONResponse:
    return responses.output(
        responses.payload(exc.success, exc.code, exc.message, exc.data),
        exc.http_status,
        headers=exc.headers or None,
    )


def status_phrase(status_code: int) -> Optional[str]:
    """Standard reason phrase for an HTTP status, None for non-standard codes."""
    try:
        return HTTPStatus(status_code).phrase
    except ValueError:
        return None


def request_validation_errors(exc: RequestValidationError) -> List[Dict[str, Any]]:
    errors = []
    for error in exc.errors():
        location, *field = [str(part) for part in error.get("loc", ("body",))]
        errors.append({
            "field": ".".join(field) or location,
            "message": error.get("msg", "Invalid value"),
            "location": location,
        })
    return errors


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers.

    Handler hierarchy:
        InternalError (+ DatabaseError) → 500, context logged server-side
        ProfileServiceError             → the exception's own code/status
        RequestValidationError          → 400 body code, same shape as the gate
        HTTPException 404/405           → 404 envelope (unmatched path or method)
        HTTPException other             → envelope with the HTTP status as code
        Exception                       → 500, stack trace logged (outer middleware only;
                                          SessionMiddleware answers route errors)

    Security: response bodies never carry stack traces, SQL or driver text.
    """

    @app.exception_handler(InternalError)
    async def handle_internal_error(request: Request, exc: InternalError):
        ctx = get_request_context(request)
        ctx.logger.error("Internal error: %s | Context: %s", exc.message, exc.context)
        return error_response(exc)

    @app.exception_handler(ProfileServiceError)
    async def handle_service_error(request: Request, exc: ProfileServiceError):
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        ctx = get_request_context(request)
        errors = request_validation_errors(exc)
        ctx.logger.warning("Request validation failed: %s", errors)
        return error_response(ValidationError(errors=errors))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        ctx = get_request_context(request)
        if exc.status_code in (404, 405):
            msg = f"No service is associated with the url => {ctx.url}"
            ctx.logger.error(msg)
            return responses.output(responses.not_found(msg, {}), 404)
        message = exc.detail if isinstance(exc.detail, str) else None
        if message is None and exc.status_code not in response_codes:
            message = status_phrase(exc.status_code)
        return responses.output(
            responses.payload(False, exc.status_code, message, {}),
            exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for errors raised outside SessionMiddleware.

        Errors from the routes are answered by SessionMiddleware, inside the
        CORS layer. This handler covers the outer middleware. The stack trace
        is logged server-side only; the client gets the generic 500 envelope.
        """
        ctx = get_request_context(request)
        ctx.logger.error("Unexpected error: %s", str(exc), exc_info=exc)
        return responses.output(responses.payload(False, 500, None, {}), 500)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    identity_provider: Optional[IdentityProvider] = None,
    timeout: Optional[float] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        identity_provider: Credential verifier; built from settings when omitted.
        timeout:           Request timeout in seconds; defaults to settings.timeout.

    Each call builds an independent app (own rate-limit counters, own
    provider), which is what the test-suite relies on.
    """
    app = FastAPI(
        title="Profile Service",
        description="User profile read/update API.",
        version=__version__,
        # The trailing-slash policy would redirect the default doc URLs
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        # Slash normalization is TrailingSlashMiddleware's job; the router
        # must not redirect the OPTIONS requests it lets through
        redirect_slashes=False,
        lifespan=lifespan,
    )

    app.state.identity_provider = identity_provider or build_identity_provider(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Middleware executes in REVERSE order of addition (last added = outermost).
    # Added: RateLimit → Session → TrailingSlash → CORS
    # Runs:  CORS → TrailingSlash → Session → RateLimit → routes
    app.add_middleware(RateLimitMiddleware)
    app.add_middleware(
        SessionMiddleware,
        timeout=timeout if timeout is not None else settings.timeout,
    )
    app.add_middleware(TrailingSlashMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=settings.cors_allow_methods_list,
        allow_headers=settings.cors_allow_headers_list,
    )

    register_exception_handlers(app)

    app.include_router(index.router)
    app.include_router(user.router)

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(
        "profile_service.main:app",
        host=settings.service_address,
        port=settings.service_port,
        log_config=None,
    )


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
