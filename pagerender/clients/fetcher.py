"""Download the source PDF with signed-URL regeneration and backoff."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Protocol

import httpx

from pagerender.core.config import (
    AUTH_RETRY_STATUSES,
    BACKOFF_MULTIPLIER,
    ERROR_BODY_MAX_CHARS,
    FETCH_MAX_ATTEMPTS,
    FETCH_USER_AGENT,
    INITIAL_BACKOFF_SECONDS,
    PDF_SIGNATURE,
    PREVIEW_MAX_CHARS,
)
from pagerender.core.exceptions import (
    ExternalServiceError,
    FetchExhaustedError,
    FetchFailedError,
    NotAPdfError,
)
from pagerender.models.dto import SourceDescriptor
from pagerender.resilience.retry import RetriesExhausted, RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_FETCH_RETRY = RetryConfig(
    max_attempts=FETCH_MAX_ATTEMPTS,
    initial_delay_seconds=INITIAL_BACKOFF_SECONDS,
    exponential_base=BACKOFF_MULTIPLIER,
)


class UrlSigner(Protocol):
    async def get_signed_url(self, storage_type: str, key: str, is_download: bool = True) -> str: ...


def check_pdf_signature(data: bytes, content_type: Optional[str] = None) -> None:
    """
    Raises:
        NotAPdfError: `data` does not start with %PDF
    """
    if data[: len(PDF_SIGNATURE)] == PDF_SIGNATURE:
        return
    first_bytes = data[: len(PDF_SIGNATURE)].decode("latin-1")
    preview = data[:PREVIEW_MAX_CHARS].decode("utf-8", errors="replace")
    logger.error(f"Source did not return a PDF. First bytes: {first_bytes!r}")
    raise NotAPdfError(first_bytes=first_bytes, preview=preview, content_type=content_type)


class PdfFetcher:
    """Fetches source documents over HTTP.

    Args:
        client: Shared async HTTP client
        signer: Blob store used to re-sign URLs after 401/403
        retry: Attempt budget and backoff schedule
        sleep: Awaitable sleep, injectable for tests
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        signer: Optional[UrlSigner] = None,
        retry: RetryConfig = DEFAULT_FETCH_RETRY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.client = client
        self.signer = signer
        self.retry = retry
        self.sleep = sleep

    async def _resolve_url(self, source: SourceDescriptor, attempt: int) -> str:
        if attempt == 0 or not source.can_resign or self.signer is None:
            return source.url
        logger.info(
            f"Attempt {attempt + 1}: regenerating download URL",
            extra={"attempt": attempt + 1},
        )
        return await self.signer.get_signed_url(
            source.storage_type, source.storage_key, is_download=True
        )

    async def _attempt(
        self, source: SourceDescriptor, attempt: int
    ) -> tuple[bytes, Optional[str]]:
        url = await self._resolve_url(source, attempt)
        try:
            response = await self.client.get(
                url,
                headers={"Accept": "application/pdf", "User-Agent": FETCH_USER_AGENT},
            )
        except httpx.TimeoutException as e:
            raise ExternalServiceError(
                service_name="PDF_SOURCE",
                error_type="timeout",
                details={"detail": str(e)},
            ) from e
        except httpx.TransportError as e:
            raise ExternalServiceError(
                service_name="PDF_SOURCE",
                error_type="unavailable",
                details={"detail": str(e)},
            ) from e

        logger.info(
            f"PDF fetch response: status={response.status_code}",
            extra={"attempt": attempt + 1, "status_code": response.status_code},
        )

        if response.is_success:
            return response.content, response.headers.get("content-type")

        body = response.text[:ERROR_BODY_MAX_CHARS]
        if response.status_code in AUTH_RETRY_STATUSES:
            raise ExternalServiceError(
                service_name="PDF_SOURCE",
                error_type="unauthorized",
                message=f"HTTP {response.status_code}: {body}",
                details={"http_code": response.status_code, "detail": body},
            )
        raise FetchFailedError(response.status_code, body)

    async def fetch(self, source: SourceDescriptor) -> bytes:
        """
        Download the PDF described by `source`.

        Raises:
            FetchExhaustedError: Every attempt failed with 401/403 or a network error
            FetchFailedError: Source answered with any other error status
            NotAPdfError: Payload is not a PDF
        """
        async def attempt_once(attempt: int) -> tuple[bytes, Optional[str]]:
            return await self._attempt(source, attempt)

        try:
            data, content_type = await retry_with_backoff(
                attempt_once,
                self.retry,
                operation="PDF fetch",
                sleep=self.sleep,
            )
        except RetriesExhausted as e:
            raise FetchExhaustedError(e.attempts, e.last_error) from e.last_error

        check_pdf_signature(data, content_type)
        logger.info(f"Fetched PDF ({len(data)} bytes)")
        return data
