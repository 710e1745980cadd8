"""
HTTP middleware.

Request context for structured logs, and a CORS middleware that leaves
selected path prefixes to the sub-application mounted there.
"""

from __future__ import annotations

import re
import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Receive, Scope, Send

from utsav.core.logging_config import bind_request_context, clear_request_context

logger = structlog.get_logger(__name__)

ORG_PATH = re.compile(r"^/api/v1/organizations/([a-z0-9][a-z0-9-]*[a-z0-9])(?:/|$)")


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Bind a request id (and the organization slug, if any) to every log line."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:16]
        request.state.request_id = request_id

        match = ORG_PATH.match(request.url.path)
        bind_request_context(request_id, org_slug=match.group(1) if match else None)

        started = time.perf_counter()
        try:
            response = await call_next(request)
            logger.info(
                "request_completed",
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - started) * 1000, 1),
            )
        finally:
            clear_request_context()

        response.headers["X-Request-Id"] = request_id
        return response


class ScopedCORSMiddleware(CORSMiddleware):
    """CORSMiddleware that passes `exclude_prefixes` paths through untouched."""

    def __init__(self, app: ASGIApp, exclude_prefixes: tuple[str, ...] = (), **kwargs) -> None:
        super().__init__(app, **kwargs)
        self.exclude_prefixes = exclude_prefixes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(self.exclude_prefixes):
            await self.app(scope, receive, send)
            return
        await super().__call__(scope, receive, send)
