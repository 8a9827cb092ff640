"""Exception-to-ProblemDetail mapping for every error that leaves a route.

`register_exception_handlers` wires them onto the app; each handler logs
with the request's trace id and answers with an RFC 7807 body.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from pydantic_core import ValidationError as PydanticCoreValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.schemas import ProblemDetail
from core.utils import ensure_trace_id, problem_response
from pagerender.core.exceptions import BaseError

logger = logging.getLogger(__name__)


def _problem(
    request: Request,
    trace_id: str,
    *,
    code: str,
    title: str,
    status_code: int,
    detail: str,
    retryable: bool = False,
) -> ProblemDetail:
    return ProblemDetail(
        type=f"/errors/{code}",
        title=title,
        status=status_code,
        detail=detail,
        instance=request.url.path,
        code=code,
        category="server_error" if status_code >= 500 else "client_error",
        retryable=retryable,
        trace_id=trace_id,
    )


def _first_error_detail(errors: list[dict]) -> str:
    if not errors:
        return "Validation failed"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    msg = first.get("msg", "Validation failed")
    return f"{field}: {msg}" if field else msg


async def handle_validation_error(request: Request, exc: RequestValidationError):
    """Malformed request body or query: 422 naming the first bad field."""
    trace_id = ensure_trace_id(request)
    detail = _first_error_detail(exc.errors())

    logger.warning(
        f"Rejected request: {detail}",
        extra={"trace_id": trace_id, "error_code": "VALIDATION_ERROR"},
    )
    problem = _problem(
        request,
        trace_id,
        code="VALIDATION_ERROR",
        title="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=detail,
    )
    return problem_response(problem, trace_id)


async def handle_pydantic_error(request: Request, exc: PydanticCoreValidationError):
    """Model validation that failed after request parsing."""
    trace_id = ensure_trace_id(request)
    detail = _first_error_detail(exc.errors())

    logger.warning(
        f"Model validation failed: {detail}",
        extra={"trace_id": trace_id, "error_code": "VALIDATION_ERROR"},
    )
    problem = _problem(
        request,
        trace_id,
        code="VALIDATION_ERROR",
        title="Request validation failed",
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=detail,
    )
    return problem_response(problem, trace_id)


async def handle_app_error(request: Request, exc: BaseError):
    """Pipeline errors carry their own code, status and retryability."""
    trace_id = ensure_trace_id(request)

    log = logger.warning if exc.http_status < 500 else logger.error
    log(
        f"Conversion error: {exc.message}",
        extra={
            "trace_id": trace_id,
            "error_code": exc.error_code,
            "error_kind": exc.kind.value,
            "http_status": exc.http_status,
        },
    )
    problem = ProblemDetail(**exc.to_dict(), instance=request.url.path, trace_id=trace_id)
    return problem_response(problem, trace_id)


async def handle_http_error(request: Request, exc: StarletteHTTPException):
    """Framework HTTP errors (401, 404, 503 from dependencies)."""
    trace_id = ensure_trace_id(request)

    logger.warning(
        f"HTTP {exc.status_code}: {exc.detail}",
        extra={"trace_id": trace_id, "status_code": exc.status_code},
    )
    problem = _problem(
        request,
        trace_id,
        code=f"HTTP_{exc.status_code}",
        title=str(exc.detail),
        status_code=exc.status_code,
        detail=str(exc.detail),
        retryable=exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE,
    )
    response = problem_response(problem, trace_id)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def handle_unknown_error(request: Request, exc: Exception):
    """Anything unhandled: 500 without internals, full traceback in the log."""
    trace_id = ensure_trace_id(request)

    logger.exception(
        f"Unhandled {type(exc).__name__} on {request.url.path}",
        extra={"trace_id": trace_id},
    )
    problem = _problem(
        request,
        trace_id,
        code="INTERNAL_SERVER_ERROR",
        title="Internal server error",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail="An unexpected error occurred. Please contact support with trace ID.",
    )
    return problem_response(problem, trace_id)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_validation_error)
    app.add_exception_handler(PydanticCoreValidationError, handle_pydantic_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_error)
    app.add_exception_handler(BaseError, handle_app_error)
    app.add_exception_handler(Exception, handle_unknown_error)
