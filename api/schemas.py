"""Pydantic request/response schemas for API endpoints.

Wire field names are camelCase (the calling web app's convention); Python
attributes stay snake_case through aliases.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from pagerender.models.dto import SourceDescriptor

StorageType = Literal["S3_PATH", "VERCEL_BLOB"]


class ProblemDetail(BaseModel):
    """RFC 7807 Problem Details for HTTP APIs.

    See: https://www.rfc-editor.org/rfc/rfc7807
    """

    type: str = Field(..., description="URI reference identifying the problem type")
    title: str = Field(..., description="Short, human-readable summary of the problem")
    status: int = Field(..., description="HTTP status code for this problem")
    detail: Optional[str] = Field(
        None, description="Human-readable explanation specific to this occurrence"
    )
    instance: Optional[str] = Field(
        None,
        description="URI reference identifying this specific occurrence (e.g., request path)",
    )

    # Extension members (allowed by RFC 7807)
    code: str = Field(..., description="Application-specific error code")
    category: str = Field(..., description="Error category (client_error, server_error, etc.)")
    retryable: bool = Field(default=False, description="Whether the request can be retried")
    trace_id: Optional[str] = Field(
        None, description="Distributed tracing ID for correlation across services"
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "type": "/errors/PAGE_OUT_OF_RANGE",
                "title": "Page 12 out of range",
                "status": 422,
                "detail": "Document has 4 pages",
                "instance": "/v1/mupdf/convert-page",
                "code": "PAGE_OUT_OF_RANGE",
                "category": "validation",
                "retryable": False,
                "trace_id": "a1b2c3d4-e5f6-7890-abcd-ef1234567890",
            }
        }
    }


class SourceFields(BaseModel):
    url: str = Field(..., min_length=1, description="Download URL of the source PDF")
    storage_type: Optional[StorageType] = Field(
        None, alias="storageType", description="Storage backend of the source file"
    )
    file_key: Optional[str] = Field(
        None, alias="fileKey", description="Storage key, used to re-sign expired URLs"
    )

    model_config = {"populate_by_name": True}

    def to_source(self) -> SourceDescriptor:
        return SourceDescriptor(
            url=self.url, storage_type=self.storage_type, storage_key=self.file_key
        )


class ConvertPageRequest(SourceFields):
    document_version_id: str = Field(..., min_length=1, alias="documentVersionId")
    page_number: int = Field(..., ge=1, alias="pageNumber", description="1-based page number")
    team_id: str = Field(..., min_length=1, alias="teamId")

    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "documentVersionId": "clx1version",
                "pageNumber": 1,
                "url": "https://bucket.example.com/team_1/doc_abc/report.pdf?X-Amz-Signature=...",
                "teamId": "team_1",
                "storageType": "S3_PATH",
                "fileKey": "team_1/doc_abc/report.pdf",
            }
        },
    }


class ConvertPageResponse(BaseModel):
    document_page_id: str = Field(..., alias="documentPageId")

    model_config = {"populate_by_name": True}


class BlockedResponse(BaseModel):
    """Returned with HTTP 400 when a page links to a blocklisted destination."""

    error: str = "Document processing blocked"
    matched_url: str = Field(..., alias="matchedUrl")
    matched_keyword: str = Field(..., alias="matchedKeyword")
    page_number: int = Field(..., alias="pageNumber")

    model_config = {"populate_by_name": True}


class GetPagesRequest(SourceFields):
    model_config = {
        "populate_by_name": True,
        "json_schema_extra": {
            "example": {
                "url": "https://bucket.example.com/team_1/doc_abc/report.pdf",
                "storageType": "S3_PATH",
                "fileKey": "team_1/doc_abc/report.pdf",
            }
        },
    }


class GetPagesResponse(BaseModel):
    num_pages: int = Field(..., alias="numPages")

    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    error: str


class DatabaseHealth(BaseModel):
    status: str = Field(..., description="'connected' or 'disconnected'")
    latency_ms: Optional[float] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(..., description="'healthy' or 'unhealthy'")
    service: str
    version: str
    database: DatabaseHealth
