import logging
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from context import REQUEST_ID_HEADER, current_request_id

logger = logging.getLogger(__name__)


class APIError(Exception):
    """Base error rendered as {success: false, message}"""
    status_code = 500
    message = "Server Error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class BadRequestError(APIError):
    status_code = 400
    message = "Bad request"


class UnauthorizedError(APIError):
    status_code = 401
    message = "Not authorized to access this route"


class ForbiddenError(APIError):
    status_code = 403
    message = "Not authorized to perform this action"


class NotFoundError(APIError):
    status_code = 404
    message = "Resource not found"


def _validation_details(exc: RequestValidationError) -> List[Dict[str, Any]]:
    details = []
    for error in exc.errors():
        # loc is ("body", "title") / ("query", "page"); drop the source
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.append({"field": ".".join(loc), "message": error.get("msg", "Invalid value")})
    return details


def register_exception_handlers(app: FastAPI) -> None:
    """Install the handlers that shape every failure into the response envelope"""

    @app.exception_handler(APIError)
    async def handle_api_error(request: Request, exc: APIError):
        logger.info("%s %s -> %s: %s", request.method, request.url.path, exc.status_code, exc.message)
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "message": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={
                "success": False,
                "message": "Validation failed",
                "errors": _validation_details(exc),
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # runs in ServerErrorMiddleware, after RequestContextMiddleware has unwound
        request_id = current_request_id(request)
        logger.exception(
            "Unhandled error on %s %s", request.method, request.url.path,
            extra={"request_id": request_id},
        )
        return JSONResponse(
            status_code=500,
            content={"success": False, "message": "Server Error"},
            headers={REQUEST_ID_HEADER: request_id},
        )
