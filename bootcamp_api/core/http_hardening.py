"""Per-request context for the JSON API: request ids, response headers, access log.

Listing endpoints accept arbitrary ``field[op]=value`` filters, so the access
log records the matched route template and the query parameter *names* only.
Filter values and path ids stay out of the log.
"""

from __future__ import annotations

import logging
import re
from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

REQUEST_ID_HEADER = "X-Request-ID"
_LOG = logging.getLogger("bootcamp_api.http")

API_RESPONSE_HEADERS = {
    "Cache-Control": "no-store",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cross-Origin-Opener-Policy": "same-origin",
    "Cross-Origin-Resource-Policy": "same-origin",
}


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag every request with an id and log one line when it completes."""

    id_pattern = re.compile(r"[A-Za-z0-9._-]{1,128}")

    def request_id_for(self, request: Request) -> str:
        incoming = (request.headers.get(REQUEST_ID_HEADER) or "").strip()
        if self.id_pattern.fullmatch(incoming):
            return incoming
        return uuid4().hex

    @staticmethod
    def route_label(request: Request) -> str:
        route = request.scope.get("route")
        return getattr(route, "path", None) or request.url.path

    @staticmethod
    def param_names(request: Request) -> str:
        names = sorted({key for key, _ in request.query_params.multi_items()})
        return ",".join(names) or "-"

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = self.request_id_for(request)
        request.state.request_id = request_id
        started_at = perf_counter()

        response = await call_next(request)

        response.headers.update(API_RESPONSE_HEADERS)
        response.headers[REQUEST_ID_HEADER] = request_id
        _LOG.info(
            "%s %s params=%s status=%s duration_ms=%.2f request_id=%s",
            request.method,
            self.route_label(request),
            self.param_names(request),
            response.status_code,
            (perf_counter() - started_at) * 1000.0,
            request_id,
        )
        return response


def install_http_hardening(app: FastAPI) -> None:
    app.add_middleware(RequestContextMiddleware)
