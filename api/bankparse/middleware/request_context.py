"""
Middleware to add request context (request_id, timing) for structured logging.
"""

import logging
import time
import uuid
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from ..logging_config import log_with_context

logger = logging.getLogger(__name__)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Stamp each request with a short id and log its duration."""

    async def dispatch(self, request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        t0 = time.time()

        response = await call_next(request)

        # Add request ID to response headers for tracing
        response.headers["X-Request-ID"] = request_id
        log_with_context(
            logger,
            logging.INFO,
            "Request handled",
            request_id=request_id,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=int((time.time() - t0) * 1000),
        )
        return response
