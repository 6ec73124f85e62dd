import logging
from http import HTTPStatus

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)

# Messages shared between interceptors and handlers
BODY_MISSING = "Request body missing."
BODY_NOT_OBJECT = "Request body must be a JSON object."
INVALID_JSON = "Invalid JSON body."
BODY_TOO_LARGE = "Request body too large."
MISSING_SECRET = "Failed to get JWT_SECRET."
TOKEN_INVALID = "Failed to verify token."
METHOD_NOT_ALLOWED = "Method not allowed."
INTERNAL_ERROR = "Internal server error."


# PUBLIC_INTERFACE
def error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    """JSON error body: a short category plus a human readable message."""
    return JSONResponse(
        status_code=status_code,
        content={"error": HTTPStatus(status_code).phrase, "message": message},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 405:
        message = METHOD_NOT_ALLOWED
    else:
        message = exc.detail if isinstance(exc.detail, str) else HTTPStatus(exc.status_code).phrase
    return error_response(exc.status_code, message, headers=getattr(exc, "headers", None))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return error_response(500, INTERNAL_ERROR)


# PUBLIC_INTERFACE
def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
