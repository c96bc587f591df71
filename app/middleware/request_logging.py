"""
Request logging middleware with per-request trace ids.
"""
import time
import uuid
import logging
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

TRACE_HEADER = "X-Trace-ID"
MAX_TRACE_ID_LENGTH = 64


def _incoming_trace_id(request: Request) -> str:
    """Reuse a caller-supplied trace id when it is short and printable."""
    value = (request.headers.get(TRACE_HEADER) or "").strip()
    if value and len(value) <= MAX_TRACE_ID_LENGTH and value.isprintable():
        return value
    return str(uuid.uuid4())


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs every request with its trace id, status and latency."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        trace_id = _incoming_trace_id(request)
        request.state.trace_id = trace_id

        start_time = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            latency_ms = int((time.perf_counter() - start_time) * 1000)
            logger.error(
                f"[{trace_id}] {request.method} {request.url.path} -> EXCEPTION after {latency_ms}ms: {exc}",
                exc_info=True
            )
            # Re-raise to let global exception handler deal with it
            raise

        latency_ms = int((time.perf_counter() - start_time) * 1000)
        status_code = response.status_code
        log_level = logging.WARNING if status_code >= 400 else logging.INFO
        logger.log(
            log_level,
            f"[{trace_id}] {request.method} {request.url.path} -> {status_code} ({latency_ms}ms)"
        )

        response.headers[TRACE_HEADER] = trace_id
        return response
