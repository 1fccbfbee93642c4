"""
Profile Service - Request Context
==================================

What:  The per-request record threaded through the pipeline: correlation
       token, bound logger, client address and the request lifecycle.
How:   The session middleware builds one RequestContext per request and
       stores it in the ASGI scope state; everything downstream reads it
       through get_request_context(). The context itself is frozen; only the
       lifecycle state machine inside it moves.

Lifecycle:

    ACTIVE ──▶ COMPLETED     response finished normally
       │
       ├────▶ TIMED_OUT     deadline expired before the handler finished
       │
       └────▶ CLOSED        client went away first

    Terminal states are mutually exclusive: the first transition out of
    ACTIVE wins and every later attempt is a no-op that returns False.
"""

import enum
import logging
import threading
import uuid
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Optional

from starlette.requests import HTTPConnection

# Session token of the request being handled, read by the logging filter so
# module-level loggers (services, database) carry it too.
session_var: ContextVar[str] = ContextVar("session", default="-")

REQUEST_LOGGER = "profile_service.request"


class RequestState(str, enum.Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TIMED_OUT = "timed_out"
    CLOSED = "closed"


class RequestLifecycle:
    """First-wins state machine for one request."""

    def __init__(self) -> None:
        self._state = RequestState.ACTIVE
        # The timeout and disconnect paths can race the handler
        self._lock = threading.Lock()

    @property
    def state(self) -> RequestState:
        return self._state

    @property
    def is_active(self) -> bool:
        return self._state is RequestState.ACTIVE

    def transition(self, target: RequestState) -> bool:
        """Move from ACTIVE to `target`. Returns False if already terminal."""
        if target is RequestState.ACTIVE:
            raise ValueError("cannot transition back to ACTIVE")
        with self._lock:
            if self._state is not RequestState.ACTIVE:
                return False
            self._state = target
            return True


class SessionLoggerAdapter(logging.LoggerAdapter):
    """Logger bound to one session token."""

    def process(self, msg, kwargs):
        extra = kwargs.setdefault("extra", {})
        extra.setdefault("session", self.extra["session"])
        return msg, kwargs


@dataclass(frozen=True)
class RequestContext:
    session: str
    logger: SessionLoggerAdapter
    client: str
    method: str
    url: str
    lifecycle: RequestLifecycle


def new_session_token() -> str:
    """Short random correlation token (10 hex chars); for log correlation, not security."""
    return uuid.uuid4().hex[:10]


def create_request_context(client: str, method: str, url: str,
                           session: Optional[str] = None) -> RequestContext:
    session = session or new_session_token()
    logger = SessionLoggerAdapter(logging.getLogger(REQUEST_LOGGER), {"session": session})
    return RequestContext(
        session=session,
        logger=logger,
        client=client,
        method=method,
        url=url,
        lifecycle=RequestLifecycle(),
    )


def get_request_context(request: HTTPConnection) -> RequestContext:
    """
    FastAPI dependency returning the current RequestContext.

    Requests that never went through the session middleware (e.g. an app
    mounted without it in a test) get a fresh context so callers can always
    log through ctx.logger.
    """
    ctx = request.scope.get("state", {}).get("context")
    if ctx is None:
        client = request.client.host if request.client else "unknown"
        ctx = create_request_context(client, request.scope.get("method", ""), str(request.url))
        request.scope.setdefault("state", {})["context"] = ctx
    return ctx


class SessionFilter(logging.Filter):
    """Fills record.session from session_var unless a bound logger already set it."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "session"):
            record.session = session_var.get()
        return True
