"""Global exception normalizer.

Every failure that leaves a route ends up here: typed service errors, framework
HTTP errors, request validation errors and anything unexpected. The handler
logs the failure with the request snapshot and always answers with the same
JSON shape.
"""
import traceback
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ...application.errors import ServiceError
from .request_context import CORRELATION_RESPONSE_HEADER, build_log_context, get_correlation_id
from .schemas import ErrorResp

console = structlog.get_logger("user_service.errors")


def status_for_exception(exc: BaseException) -> int:
    if isinstance(exc, ServiceError):
        return exc.status_code
    if isinstance(exc, StarletteHTTPException):
        return exc.status_code
    if isinstance(exc, RequestValidationError):
        return 400
    return 500


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path")]
        parts.append(f"{'.'.join(loc)}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Validation failed"


def message_for_exception(exc: BaseException) -> str:
    if isinstance(exc, ServiceError):
        return exc.message
    if isinstance(exc, RequestValidationError):
        return _validation_message(exc)
    if isinstance(exc, StarletteHTTPException):
        return exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return str(exc) or "Internal server error"


def format_stack(exc: BaseException) -> str | None:
    if exc.__traceback__ is None:
        return None
    if isinstance(exc, RequestValidationError):
        # str() ошибки валидации содержит сырые входные значения (пароли и т.п.)
        frames = "".join(traceback.format_tb(exc.__traceback__))
        return (f"Traceback (most recent call last):\n{frames}"
                f"{type(exc).__name__}: {_validation_message(exc)}\n")
    return "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))


async def normalize_exception(request: Request, exc: Exception) -> JSONResponse:
    status_code = status_for_exception(exc)
    message = message_for_exception(exc)
    correlation_id = get_correlation_id(request)

    try:
        log_context = build_log_context(request, correlation_id, getattr(request.state, "request_body", None))
        log_context.status_code = status_code
        store_logger = request.app.state.store_logger
        await run_in_threadpool(
            store_logger.error, f"Unhandled Exception: {message}", format_stack(exc), "Exception", log_context,
        )
    except Exception as e:
        console.error("exception_logging_failed", error=str(e), correlation_id=correlation_id)

    body = ErrorResp(
        status_code=status_code,
        timestamp=datetime.now(timezone.utc).isoformat(),
        path=request.url.path,
        method=request.method,
        message=message,
        correlation_id=correlation_id,
    )
    headers = {CORRELATION_RESPONSE_HEADER: correlation_id}
    if isinstance(exc, StarletteHTTPException) and exc.headers:
        headers.update(exc.headers)
    return JSONResponse(status_code=status_code, content=body.model_dump(by_alias=True), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    for exc_class in (ServiceError, StarletteHTTPException, RequestValidationError, Exception):
        app.add_exception_handler(exc_class, normalize_exception)
