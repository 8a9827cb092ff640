"""Errors raised by the page pipeline.

Every error is a `BaseError` carrying an `ErrorKind`. Retry loops look only
at the kind; the API layer turns `to_dict()` into an RFC 7807 body.
"""

from enum import Enum
from typing import Any, Optional


class ErrorCategory(str, Enum):
    """Coarse bucket reported to clients and dashboards."""

    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    EXTERNAL_SERVICE = "external_service"
    VALIDATION = "validation"


class ErrorKind(str, Enum):
    """Why a stage failed; decides whether another attempt is made."""

    TRANSIENT = "transient"  # network blip or expired signed URL
    VALIDATION = "validation"  # the input itself is wrong
    POLICY = "policy"  # blocked by content policy
    RESOURCE_EXHAUSTED = "resource_exhausted"  # render out of memory
    UPSTREAM = "upstream"  # remote said no, and will keep saying no


def _rebuild_error(cls, state: dict[str, Any], args: tuple) -> "BaseError":
    error = cls.__new__(cls)
    Exception.__init__(error, *args)
    error.__dict__.update(state)
    return error


class BaseError(Exception):
    """Root of the pipeline's errors.

    Attributes:
        message: Short, client-safe summary (Problem Details `title`)
        error_code: Stable machine-readable code
        category: Reporting bucket
        kind: Retry classification
        http_status: Status the API answers with
        details: Extra context; `details["detail"]` becomes the Problem `detail`
        retryable: Whether the client may resubmit the same request
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        category: ErrorCategory,
        http_status: int,
        kind: ErrorKind = ErrorKind.UPSTREAM,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.category = category
        self.http_status = http_status
        self.kind = kind
        self.details = dict(details or {})
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": f"/errors/{self.error_code}",
            "title": self.message,
            "status": self.http_status,
            "detail": self.details.get("detail"),
            "code": self.error_code,
            "category": self.category.value,
            "retryable": self.retryable,
        }

    def __reduce__(self):
        # Subclass constructors do not accept `self.args`; rebuild from state
        return (_rebuild_error, (type(self), self.__dict__, self.args))

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.error_code}, kind={self.kind.value})"


class ValidationError(BaseError):
    """The request or the fetched document is unusable as given (422)."""

    def __init__(self, message: str, error_code: str, details=None, http_status: int = 422):
        super().__init__(
            message,
            error_code,
            ErrorCategory.VALIDATION,
            http_status,
            kind=ErrorKind.VALIDATION,
            details=details,
        )


class NotAPdfError(ValidationError):
    """The download did not start with `%PDF`.

    Usually an expired signed URL answering 200 with an HTML error page.
    """

    def __init__(self, first_bytes: str, preview: str = "", content_type: Optional[str] = None):
        super().__init__(
            "URL did not return a PDF",
            "NOT_A_PDF",
            details={
                "detail": f"Content-Type: {content_type}. Preview: {preview[:50]}",
                "first_bytes": first_bytes,
                "content_type": content_type,
            },
        )


class UnreadableDocumentError(ValidationError):
    def __init__(self, reason: str):
        super().__init__(
            "PDF document could not be opened",
            "UNREADABLE_DOCUMENT",
            details={"detail": reason},
        )


class PageOutOfRangeError(ValidationError):
    def __init__(self, page_number: int, page_count: int):
        super().__init__(
            f"Page {page_number} out of range",
            "PAGE_OUT_OF_RANGE",
            details={
                "detail": f"Document has {page_count} pages",
                "page_number": page_number,
                "page_count": page_count,
            },
        )


class InvalidGeometryError(ValidationError):
    """Page bounds with zero or negative width or height."""

    def __init__(self, width: float, height: float):
        super().__init__(
            f"Invalid page dimensions: {width} × {height} points",
            "INVALID_GEOMETRY",
            details={"width": width, "height": height},
        )


class ServerError(BaseError):
    """Failure on our side or behind us (5xx)."""

    def __init__(
        self,
        message: str,
        error_code: str,
        *,
        category: ErrorCategory = ErrorCategory.SERVER_ERROR,
        http_status: int = 500,
        kind: ErrorKind = ErrorKind.UPSTREAM,
        details: Optional[dict[str, Any]] = None,
        retryable: bool = False,
    ):
        super().__init__(message, error_code, category, http_status, kind, details, retryable)


class ExternalServiceError(ServerError):
    """A dependency (source host, bucket, config store, database) failed.

    Args:
        service_name: Dependency label, prefix of the error code ("PDF_SOURCE", "S3")
        error_type: Failure label, suffix of the error code ("timeout", "unauthorized")
        kind: TRANSIENT when another attempt may succeed
        message: Overrides the generated summary
        details: Extra context merged with service and error type
        http_status: Overrides 504 for timeouts and 502 otherwise
    """

    def __init__(
        self,
        service_name: str,
        error_type: str,
        kind: ErrorKind = ErrorKind.TRANSIENT,
        message: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
        http_status: Optional[int] = None,
    ):
        if http_status is None:
            http_status = 504 if error_type == "timeout" else 502
        super().__init__(
            message or f"{service_name} service {error_type}",
            f"{service_name.upper()}_{error_type.upper()}",
            category=ErrorCategory.EXTERNAL_SERVICE,
            http_status=http_status,
            kind=kind,
            details={**(details or {}), "service": service_name, "error_type": error_type},
            retryable=kind is ErrorKind.TRANSIENT,
        )


class FetchFailedError(ExternalServiceError):
    """The source answered with a status that another attempt will not change."""

    def __init__(self, status_code: int, body_preview: str = ""):
        super().__init__(
            "PDF_SOURCE",
            "error",
            kind=ErrorKind.UPSTREAM,
            message=f"PDF fetch failed with status {status_code}",
            details={"http_code": status_code, "detail": body_preview},
        )
        self.status_code = status_code


class _AttemptsExhausted(ExternalServiceError):
    service_name = ""
    action = ""

    def __init__(self, attempts: int, last_error: Optional[BaseException]):
        super().__init__(
            self.service_name,
            "exhausted",
            message=f"Failed to {self.action} after {attempts} attempts",
            details={"attempts": attempts, "detail": str(last_error)},
        )
        self.attempts = attempts
        self.last_error = last_error


class FetchExhaustedError(_AttemptsExhausted):
    service_name = "PDF_SOURCE"
    action = "fetch PDF"


class UploadExhaustedError(_AttemptsExhausted):
    service_name = "BLOB_STORE"
    action = "upload"


class RasterizationFailedError(ServerError):
    """The page could not be rendered even at the degraded scale factor."""

    def __init__(self, scale_factor: float, reason: str):
        super().__init__(
            "Failed to rasterize page",
            "RASTERIZATION_FAILED",
            kind=ErrorKind.RESOURCE_EXHAUSTED,
            details={"detail": reason, "scale_factor": scale_factor},
        )
