"""
Correlation ID middleware
=========================
Tags every request with an X-Correlation-ID (taken from the client or
generated) so log lines for one HTTP call can be grouped, and echoes it
back along with X-Tab-ID when the client sent one.
"""
from __future__ import annotations

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORRELATION_HEADER = "X-Correlation-ID"
TAB_HEADER = "X-Tab-ID"


class CorrelationMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next) -> Response:
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        tab_id = request.headers.get(TAB_HEADER, "")

        request.state.correlation_id = correlation_id
        request.state.tab_id = tab_id

        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        logger.info(
            "%s %s -> %s (%.1f ms) cid=%s",
            request.method, request.url.path, response.status_code, elapsed_ms, correlation_id,
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        if tab_id:
            response.headers[TAB_HEADER] = tab_id
        return response
