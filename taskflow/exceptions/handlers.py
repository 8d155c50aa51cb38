"""
Exception handlers for the application.
"""
import logging

from taskflow.adapters.http_framework import HTTPFrameworkAdapter
from taskflow.exceptions.errors import (
    StoreError,
    TaskNotFoundError,
    StoreValidationError,
    StoreAuthorizationError,
    TransientStoreError,
)
from taskflow.monitoring import get_request_id

# Initialize adapter
http_adapter = HTTPFrameworkAdapter()
Request = http_adapter.Request
JSONResponse = http_adapter.JSONResponse
RequestValidationError = http_adapter.RequestValidationError

logger = logging.getLogger(__name__)


def _is_mcp_path(request: Request) -> bool:
    return request.url.path.startswith("/mcp/")


def _store_status_code(exc: StoreError) -> int:
    if isinstance(exc, TaskNotFoundError):
        return 404
    if isinstance(exc, StoreValidationError):
        return 400
    if isinstance(exc, StoreAuthorizationError):
        return 502
    if isinstance(exc, TransientStoreError):
        return 503
    return 502


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Global exception handler for unhandled exceptions.
    """
    request_id = get_request_id() or '-'
    logger.error(
        f"Unhandled exception in {request.method} {request.url.path}: {str(exc)}",
        exc_info=True,
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "exception_type": type(exc).__name__,
        }
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": "An unexpected error occurred. Please try again.",
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )


async def store_exception_handler(request: Request, exc: StoreError) -> JSONResponse:
    """
    Handler for task store (Notion) errors.
    Returns 200 OK with success: False for MCP endpoints to make errors visible to agents.
    """
    request_id = get_request_id() or '-'
    error_detail = str(exc)
    error_type = type(exc).__name__

    logger.error(
        f"Store error in {request.method} {request.url.path}: {error_detail}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "error_type": error_type,
            "store_status_code": exc.status_code,
        }
    )

    if _is_mcp_path(request):
        return JSONResponse(
            status_code=200,
            content={
                "success": False,
                "error": f"Store error in {request.url.path}: {error_detail}",
                "error_type": error_type,
                "error_details": error_detail,
                "path": request.url.path,
                "request_id": request_id
            }
        )
    return JSONResponse(
        status_code=_store_status_code(exc),
        content={
            "error": "Store error",
            "detail": error_detail,
            "error_type": error_type,
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )


async def value_error_handler(request: Request, exc: ValueError) -> JSONResponse:
    """
    Handler for invalid input rejected by the service layer.
    """
    request_id = get_request_id() or '-'
    logger.warning(
        f"Invalid request in {request.method} {request.url.path}: {exc}",
        extra={"request_id": request_id, "path": request.url.path}
    )
    if _is_mcp_path(request):
        return JSONResponse(
            status_code=200,
            content={
                "success": False,
                "error": str(exc),
                "error_type": type(exc).__name__,
                "path": request.url.path,
                "request_id": request_id
            }
        )
    return JSONResponse(
        status_code=400,
        content={
            "error": "Invalid request",
            "detail": str(exc),
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle request validation errors with clear messages.
    """
    request_id = get_request_id() or '-'
    errors = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error["loc"])
        errors.append(f"{field}: {error['msg']}")

    logger.warning(
        f"Validation error in {request.method} {request.url.path}: {', '.join(errors)}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
    )
    response = JSONResponse(
        status_code=422,
        content={
            "error": "Validation error",
            "detail": "One or more fields failed validation",
            "errors": errors,
            "path": request.url.path,
            "method": request.method,
            "request_id": request_id
        }
    )
    if request_id != '-':
        response.headers["X-Request-ID"] = request_id
    return response


def setup_exception_handlers(app):
    """
    Register exception handlers with the FastAPI app.
    """
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(StoreError, store_exception_handler)
    app.add_exception_handler(ValueError, value_error_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
