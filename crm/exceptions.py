"""Global exception handlers - domain errors keep their message, unexpected ones stay generic"""
import uuid
import traceback
from datetime import datetime, timezone
from fastapi import Request, HTTPException, FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from loguru import logger

from crm.errors import (
    BackendError,
    CRMError,
    EmptyResultError,
    NotFoundError,
    ParseError,
    ValidationError,
    error_message,
)

STATUS_BY_ERROR = [
    (NotFoundError, 404),
    (BackendError, 502),
    (ValidationError, 422),
    (ParseError, 400),
    (EmptyResultError, 400),
]


def status_for(exc: CRMError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return 400


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log full error, return generic message to client"""
    request_id = str(uuid.uuid4())

    logger.error(
        f"Request failed: {request.method} {request.url.path} "
        f"[{request_id}] {type(exc).__name__}: {exc}\n{traceback.format_exc()}"
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "An error occurred while processing your request",
            "request_id": request_id,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


async def crm_exception_handler(request: Request, exc: CRMError) -> JSONResponse:
    """Domain errors: the message is meant for the user, pass it through"""
    request_id = str(uuid.uuid4())
    status_code = status_for(exc)

    log = logger.error if isinstance(exc, BackendError) and status_code >= 500 else logger.warning
    log(f"{type(exc).__name__} on {request.method} {request.url.path} [{request_id}]: {exc.message}")

    return JSONResponse(
        status_code=status_code,
        content={"error": error_message(exc), "request_id": request_id}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request body/query validation errors"""
    request_id = str(uuid.uuid4())

    logger.warning(f"Validation error: {request.method} {request.url.path} [{request_id}]: {exc.errors()}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "Validation failed",
            "details": jsonable_errors(exc),
            "request_id": request_id
        }
    )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
        for error in exc.errors()
    ]


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """5xx: generic error, 4xx: specific error"""
    request_id = str(uuid.uuid4())

    if exc.status_code >= 500:
        logger.error(f"HTTP {exc.status_code}: {request.method} {request.url.path} [{request_id}]: {exc.detail}")
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "An error occurred",
                "request_id": request_id,
                "timestamp": datetime.now(timezone.utc).isoformat()
            }
        )

    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "request_id": request_id}
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers"""
    app.add_exception_handler(Exception, global_exception_handler)
    app.add_exception_handler(CRMError, crm_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(HTTPException, http_exception_handler)
