"""
Profile Service - Trailing Slash Middleware
============================================

What:  Makes the slash-suffixed form of every path canonical.
How:   Any non-root path without a trailing slash gets a 307 redirect to
       the same path plus "/", with the query string preserved. 307 keeps
       the method and body, so a PUT is replayed as a PUT.
       OPTIONS requests pass through untouched so CORS preflights are
       answered on the URL the browser asked for.
"""

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import RedirectResponse, Response


class TrailingSlashMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if request.method == "OPTIONS" or path == "/" or path.endswith("/"):
            return await call_next(request)

        location = path + "/"
        if request.url.query:
            location += "?" + request.url.query
        return RedirectResponse(location, status_code=307)
