import logging
import uuid
from contextvars import ContextVar

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

REQUEST_ID_HEADER = "X-Request-ID"

request_id_context: ContextVar[str] = ContextVar("request_id", default="-")


def current_request_id(request: Request) -> str:
    """Request id for handlers running outside the middleware (e.g. the 500 handler)"""
    return getattr(request.state, "request_id", None) or request_id_context.get()


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Tag each request with an id, available to logging for the duration of the call"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:12]
        # request.state lives in the ASGI scope, so outer middleware still sees it
        request.state.request_id = request_id
        token = request_id_context.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_context.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestIdFilter(logging.Filter):
    """Attach the current request id to every log record that lacks one"""

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, "request_id", None):
            record.request_id = request_id_context.get()
        return True
