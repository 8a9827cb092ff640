"""Unit tests for exception hierarchy."""

from pagerender.core.exceptions import (
    BaseError,
    ErrorCategory,
    ErrorKind,
    ExternalServiceError,
    FetchExhaustedError,
    FetchFailedError,
    InvalidGeometryError,
    NotAPdfError,
    PageOutOfRangeError,
    RasterizationFailedError,
    UnreadableDocumentError,
    UploadExhaustedError,
)


class TestBaseError:
    """Tests for BaseError class."""

    def test_base_error_to_dict(self):
        """Test BaseError converts to RFC 7807 format."""
        error = BaseError(
            message="Test error",
            error_code="TEST_ERROR",
            category=ErrorCategory.CLIENT_ERROR,
            http_status=400,
            details={"detail": "Additional context"},
        )

        result = error.to_dict()

        assert result["type"] == "/errors/TEST_ERROR"
        assert result["title"] == "Test error"
        assert result["status"] == 400
        assert result["code"] == "TEST_ERROR"
        assert result["category"] == "client_error"
        assert result["detail"] == "Additional context"
        assert result["retryable"] is False

    def test_default_kind_is_upstream(self):
        error = BaseError("x", "X", ErrorCategory.SERVER_ERROR, 500)

        assert error.kind is ErrorKind.UPSTREAM


class TestValidationErrors:
    """Document and request validation failures are never retried."""

    def test_not_a_pdf(self):
        error = NotAPdfError(first_bytes="<htm", preview="<html>expired", content_type="text/html")

        assert error.http_status == 422
        assert error.kind is ErrorKind.VALIDATION
        assert error.retryable is False
        assert error.details["first_bytes"] == "<htm"
        assert "text/html" in error.details["detail"]

    def test_page_out_of_range(self):
        error = PageOutOfRangeError(page_number=5, page_count=2)

        assert error.error_code == "PAGE_OUT_OF_RANGE"
        assert error.details["page_count"] == 2

    def test_unreadable_and_geometry(self):
        assert UnreadableDocumentError("broken xref").kind is ErrorKind.VALIDATION
        assert InvalidGeometryError(0, 800).details == {"width": 0, "height": 800}


class TestExternalServiceErrors:
    def test_timeout_maps_to_504(self):
        error = ExternalServiceError(service_name="PDF_SOURCE", error_type="timeout")

        assert error.http_status == 504
        assert error.error_code == "PDF_SOURCE_TIMEOUT"
        assert error.kind is ErrorKind.TRANSIENT
        assert error.retryable is True
        assert error.details["service"] == "PDF_SOURCE"

    def test_fetch_failed_is_upstream(self):
        error = FetchFailedError(404, "Not Found")

        assert error.http_status == 502
        assert error.kind is ErrorKind.UPSTREAM
        assert error.retryable is False
        assert error.status_code == 404

    def test_exhaustion_errors_carry_attempts(self):
        cause = ExternalServiceError(service_name="S3", error_type="upload")

        fetch = FetchExhaustedError(3, cause)
        upload = UploadExhaustedError(3, cause)

        assert fetch.attempts == upload.attempts == 3
        assert fetch.last_error is cause
        assert fetch.error_code == "PDF_SOURCE_EXHAUSTED"
        assert upload.error_code == "BLOB_STORE_EXHAUSTED"


def test_rasterization_failed_is_resource_exhausted():
    error = RasterizationFailedError(1.0, "cannot allocate pixmap")

    assert error.http_status == 500
    assert error.kind is ErrorKind.RESOURCE_EXHAUSTED
    assert error.category is ErrorCategory.SERVER_ERROR
