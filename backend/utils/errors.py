"""
Error taxonomy and the single translator that turns every exception raised
while handling a request into the failure envelope:

    {"success": false, "message": ..., "statusCode": ..., "errors"?: [...]}

Expected failures are raised as ``AppError`` subclasses at the point of
detection. Everything else is an internal error; its message only reaches
the client in development.
"""

import logging
import traceback

from bson.errors import InvalidId
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from jose import ExpiredSignatureError, JWTError
from pymongo.errors import DuplicateKeyError
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


# =====================================================
# TAXONOMY
# =====================================================

class AppError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Something went wrong"

    def __init__(self, message: str | None = None, errors: list | None = None):
        self.message = message or self.default_message
        self.errors = errors
        super().__init__(self.message)


class Unauthenticated(AppError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Not authorized to access this route"


class AccountDeactivated(Unauthenticated):
    default_message = "Account is deactivated"


class Forbidden(AppError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Forbidden"


class NotFound(AppError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Resource not found"


class ValidationFailed(AppError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Validation failed"


class Conflict(ValidationFailed):
    default_message = "Resource already exists"


# =====================================================
# TRANSLATION
# =====================================================

def _duplicate_key_error(exc: DuplicateKeyError) -> AppError:
    key_value = (exc.details or {}).get("keyValue") or {}
    field = next(iter(key_value), "field")
    return Conflict(f"{field.capitalize()} already exists. Please use another {field}.")


def _validation_message(error: dict) -> str:
    loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
    message = error.get("msg", "Invalid value")
    if loc:
        return f"{'.'.join(loc)}: {message}"
    return message


def translate_exception(exc: Exception) -> AppError | None:
    """
    Map a known library exception onto the taxonomy.
    Returns None for anything unexpected.
    """
    if isinstance(exc, AppError):
        return exc

    if isinstance(exc, RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in e.get("loc", ())), "message": e.get("msg")}
            for e in exc.errors()
        ]
        first = _validation_message(exc.errors()[0]) if errors else "Validation failed"
        return ValidationFailed(first, errors=errors)

    if isinstance(exc, InvalidId):
        return ValidationFailed("Invalid id")

    if isinstance(exc, DuplicateKeyError):
        return _duplicate_key_error(exc)

    if isinstance(exc, ExpiredSignatureError):
        return Unauthenticated("Your token has expired! Please log in again.")

    if isinstance(exc, JWTError):
        return Unauthenticated("Invalid token. Please log in again!")

    return None


def build_error_response(exc: Exception, *, development: bool) -> JSONResponse:
    error = translate_exception(exc)

    if error is None:
        logger.exception("UNHANDLED_ERROR", exc_info=exc)
        status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
        body = {
            "success": False,
            "statusCode": status_code,
            "message": str(exc) if development else "Something went wrong",
        }
    else:
        status_code = error.status_code
        body = {
            "success": False,
            "statusCode": status_code,
            "message": error.message,
        }
        if error.errors:
            body["errors"] = error.errors

    if development:
        body["error"] = type(exc).__name__
        body["stack"] = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )

    return JSONResponse(status_code=status_code, content=body)


def install_error_handlers(app: FastAPI, *, development: bool) -> None:

    async def handle_known(request: Request, exc: Exception):
        response = build_error_response(exc, development=development)
        if response.status_code in (401, 403):
            logger.warning(
                "HTTP %s at %s %s",
                response.status_code,
                request.method,
                request.url.path,
            )
        return response

    for exc_class in (AppError, RequestValidationError, InvalidId, DuplicateKeyError, JWTError):
        app.add_exception_handler(exc_class, handle_known)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http(request: Request, exc: StarletteHTTPException):
        message = exc.detail
        if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
            message = f"Can't find {request.url.path} on this server!"

        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "statusCode": exc.status_code, "message": message},
            headers=getattr(exc, "headers", None),
        )

    # unexpected errors end up in the server error middleware
    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        return build_error_response(exc, development=development)
