"""
Request Logging Middleware: log slow, failed and erroring API requests.

Every request gets a short request id, echoed back in `X-Request-ID` and
attached to the log records it produces. Does NOT block requests, only
monitors and logs.
"""
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
import logging
import time
import json
import uuid
from typing import Dict

from pos_terminal.utils.config import settings

logger = logging.getLogger("pos_terminal.requests")

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Monitor terminal API requests without altering them."""

    def __init__(self, app, slow_threshold: float = None):
        super().__init__(app)
        self.slow_threshold = slow_threshold if slow_threshold is not None else settings.SLOW_REQUEST_THRESHOLD

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        request.state.request_id = request_id
        context = self._build_context(request)
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            self._log("error_request", context, request_id, start, logging.ERROR, error=str(e)[:500])
            raise

        duration = time.perf_counter() - start
        if duration > self.slow_threshold:
            self._log("slow_request", context, request_id, start, logging.WARNING)
        if response.status_code >= 500:
            self._log("failed_request", context, request_id, start, logging.ERROR, status_code=response.status_code)
        elif response.status_code >= 400:
            self._log("failed_request", context, request_id, start, logging.INFO, status_code=response.status_code)

        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    def _build_context(self, request: Request) -> Dict:
        return {
            'method': request.method,
            'path': request.url.path,
            'client_ip': request.client.host if request.client else 'unknown',
        }

    def _log(self, event_type: str, context: Dict, request_id: str, start: float, level: int, **fields):
        duration_ms = round((time.perf_counter() - start) * 1000, 1)
        entry = {'event_type': event_type, **context, **fields}
        logger.log(
            level,
            f"{event_type.upper()} {context['method']} {context['path']}: {json.dumps(entry)}",
            extra={'request_id': request_id, 'duration_ms': duration_ms},
        )
