"""
Profile Service - Session / Logging Context Middleware
=======================================================

What:  Gives every request a correlation token and a logger bound to it,
       and watches the request until it reaches a terminal state.
How:   Pure ASGI middleware (it needs to see the raw send/receive channels,
       which BaseHTTPMiddleware hides):

       1. Build the RequestContext, store it in scope["state"], set
          session_var for the logging filter.
       2. Log the start of the request.
       3. Run the rest of the app with a guarded `send`: the first
          http.response.start wins, anything that tries to respond after
          that is dropped.
       4. With a configured timeout, run the app under asyncio.wait_for. On
          expiry: TIMED_OUT, error log, and the 408 timeout envelope if no
          response has started. A response the handler starts after the
          deadline is dropped.
       5. On return: COMPLETED and the "Finished processing" log line.
       6. A client disconnect seen before the response completed: CLOSED.

An exception escaping the app is logged with its stack trace here and
answered with the generic 500 envelope through the same `send`, so the
response still passes through CORSMiddleware and the request still ends
with the "Finished processing" line.
"""

import asyncio
import logging
import time
from typing import Optional

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from profile_service.context import (
    RequestState,
    create_request_context,
    session_var,
)
from profile_service.envelope import ResponseBuilder, responses


def _request_url(scope: Scope) -> str:
    path = scope.get("path", "")
    query = scope.get("query_string", b"").decode("latin-1")
    return f"{path}?{query}" if query else path


def _status_level(status: Optional[int]) -> int:
    if status is None or status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class SessionMiddleware:
    """Per-request session token, lifecycle logging and timeout envelope."""

    def __init__(
        self,
        app: ASGIApp,
        timeout: Optional[float] = None,
        builder: ResponseBuilder = responses,
    ) -> None:
        self.app = app
        self.timeout = timeout
        self.responses = builder

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        client = scope["client"][0] if scope.get("client") else "unknown"
        method = scope.get("method", "")
        url = _request_url(scope)

        ctx = create_request_context(client, method, url)
        scope.setdefault("state", {})["context"] = ctx
        token = session_var.set(ctx.session)

        ctx.logger.info("Started processing %s request from %s => %s", method, client, url)
        start_time = time.perf_counter()

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout if self.timeout else None

        # Which writer owns the response: None, "app", "timeout" or "error"
        sent_by: Optional[str] = None
        status_code: Optional[int] = None
        response_complete = False

        def expired() -> bool:
            return deadline is not None and loop.time() >= deadline

        async def guarded_send(message: Message) -> None:
            nonlocal sent_by, status_code, response_complete
            if sent_by is None and message["type"] == "http.response.start":
                if expired():
                    ctx.logger.warning("Response started after the timeout, dropping it")
                    return
                sent_by = "app"
                status_code = message["status"]
            if sent_by != "app":
                ctx.logger.debug("Response already sent, dropping %s", message["type"])
                return
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                response_complete = True
            await send(message)

        async def watched_receive() -> Message:
            message = await receive()
            if message["type"] == "http.disconnect" and not response_complete:
                if ctx.lifecycle.transition(RequestState.CLOSED):
                    ctx.logger.info("Closed connection")
            return message

        async def respond(envelope_status: int) -> None:
            nonlocal sent_by, status_code
            if envelope_status == 408:
                envelope = self.responses.timeout(408)
                sent_by = "timeout"
            else:
                envelope = self.responses.payload(False, envelope_status, None, {})
                sent_by = "error"
            status_code = envelope_status
            response = self.responses.output(envelope, envelope_status)
            await response(scope, receive, send)

        timed_out = False
        try:
            if self.timeout:
                await asyncio.wait_for(
                    self.app(scope, watched_receive, guarded_send), self.timeout
                )
            else:
                await self.app(scope, watched_receive, guarded_send)
        except Exception as exc:
            if self.timeout and isinstance(exc, asyncio.TimeoutError):
                timed_out = True
            else:
                ctx.logger.error("Unhandled error: %s", exc, exc_info=exc)
                if sent_by is None:
                    await respond(500)
        finally:
            session_var.reset(token)

        # A handler that answered only after the deadline had its response dropped
        if timed_out or (sent_by is None and expired()):
            if ctx.lifecycle.transition(RequestState.TIMED_OUT):
                ctx.logger.error("Request timeout %s => %s", client, url)
            if sent_by is None:
                await respond(408)
            return

        if ctx.lifecycle.transition(RequestState.COMPLETED):
            duration_ms = (time.perf_counter() - start_time) * 1000
            ctx.logger.log(
                _status_level(status_code),
                "Finished processing %s request from %s => %s (%s, %.1fms)",
                method,
                client,
                url,
                status_code,
                duration_ms,
            )
