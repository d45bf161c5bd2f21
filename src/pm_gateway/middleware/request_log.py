"""Request logging middleware.

Every request gets a short request id, stored on request.state (so handlers
can echo it in ApiResponse via `respond`) and returned as X-Request-Id.
The acting user, when the X-User-Id header is present, is logged with it.

Log format:
    INFO [POST] /api/v1/trades → 200 (4ms) req_a1b2c3d4e5f6 user=alice
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from src.pm_common.response import new_request_id

logger = logging.getLogger("pm.request")


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = new_request_id()
        request.state.request_id = request_id

        start = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        response.headers["X-Request-Id"] = request_id

        logger.info(
            "[%s] %s → %d (%.0fms) %s user=%s",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
            request_id,
            request.headers.get("x-user-id", "-"),
        )
        return response
