"""Store rendered page images with bounded retries."""

import asyncio
import logging
import re
import uuid
from typing import Any, Awaitable, Callable, Optional, Protocol

from pagerender.core.config import (
    BACKOFF_MULTIPLIER,
    DOC_ID_PATTERN,
    INITIAL_BACKOFF_SECONDS,
    UPLOAD_MAX_ATTEMPTS,
)
from pagerender.core.exceptions import UploadExhaustedError
from pagerender.models.dto import StoredObject
from pagerender.resilience.retry import RetriesExhausted, RetryConfig, retry_with_backoff

logger = logging.getLogger(__name__)

DEFAULT_UPLOAD_RETRY = RetryConfig(
    max_attempts=UPLOAD_MAX_ATTEMPTS,
    initial_delay_seconds=INITIAL_BACKOFF_SECONDS,
    exponential_base=BACKOFF_MULTIPLIER,
)

_DOC_ID_RE = re.compile(DOC_ID_PATTERN)


class BlobWriter(Protocol):
    async def put(
        self,
        data: bytes,
        name: str,
        team_id: str,
        doc_id: str,
        content_type: str,
    ) -> StoredObject: ...


def doc_id_from_url(url: str) -> Optional[str]:
    """Extract the `doc_...` path segment of a source URL, if any."""
    match = _DOC_ID_RE.search(url)
    return match.group(1) if match else None


def new_doc_id() -> str:
    return f"doc_{uuid.uuid4().hex}"


def page_file_name(page_number: int, extension: str) -> str:
    return f"page-{page_number}.{extension}"


class PageUploader:
    def __init__(
        self,
        store: BlobWriter,
        retry: RetryConfig = DEFAULT_UPLOAD_RETRY,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.store_client = store
        self.retry = retry
        self.sleep = sleep

    async def store(
        self,
        data: bytes,
        logical_name: str,
        team_id: str,
        doc_id: Optional[str],
        content_type: str,
    ) -> StoredObject:
        """
        Upload `data`, retrying transient failures.

        A missing `doc_id` is generated once; every attempt uses the same
        object key.

        Raises:
            UploadExhaustedError: Every attempt failed
        """
        doc_id = doc_id or new_doc_id()

        async def attempt_once(attempt: int) -> StoredObject:
            return await self.store_client.put(data, logical_name, team_id, doc_id, content_type)

        try:
            stored = await retry_with_backoff(
                attempt_once,
                self.retry,
                operation="Page upload",
                sleep=self.sleep,
            )
        except RetriesExhausted as e:
            raise UploadExhaustedError(e.attempts, e.last_error) from e.last_error

        logger.info(
            f"Upload successful: {stored.storage_type} {stored.storage_key}",
        )
        return stored
