import uuid

from fastapi import Request
from fastapi.responses import JSONResponse

TRACE_HEADER = "X-Trace-ID"


def ensure_trace_id(request: Request) -> str:
    """Ensure trace_id exists on request state, honouring an incoming header."""
    trace_id = getattr(request.state, "trace_id", None)
    if not trace_id:
        trace_id = request.headers.get(TRACE_HEADER) or str(uuid.uuid4())
        request.state.trace_id = trace_id
    return trace_id


def problem_response(problem, trace_id: str) -> JSONResponse:
    """Serialize a ProblemDetail with its status and the trace header."""
    return JSONResponse(
        status_code=problem.status,
        content=problem.model_dump(exclude_none=True),
        headers={TRACE_HEADER: trace_id},
    )
