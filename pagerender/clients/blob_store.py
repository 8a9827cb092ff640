"""MinIO/S3 blob store: signed download URLs and page image uploads."""

import asyncio
import io
import logging
import ssl
from datetime import timedelta
from functools import partial
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import urllib3
from minio import Minio
from minio.error import MinioException

from pagerender.core.config import STORAGE_TYPE_S3, STORAGE_TYPE_VERCEL_BLOB
from pagerender.core.exceptions import ExternalServiceError, ValidationError
from pagerender.models.dto import StoredObject

logger = logging.getLogger(__name__)

# Failures of a single S3 call that another attempt may not repeat
_TRANSIENT_S3_ERRORS = (MinioException, urllib3.exceptions.HTTPError, OSError)


class UnsupportedStorageTypeError(ValidationError):
    def __init__(self, storage_type: str):
        super().__init__(
            message=f"Unsupported storage type: {storage_type}",
            error_code="UNSUPPORTED_STORAGE_TYPE",
            details={"storage_type": storage_type},
        )


def _with_download_flag(url: str) -> str:
    parts = urlsplit(url)
    query = dict(parse_qsl(parts.query))
    query["download"] = "1"
    return urlunsplit(parts._replace(query=urlencode(query)))


class BlobStore:
    """Client for the object store that holds source PDFs and page images."""

    def __init__(
        self,
        endpoint: str,
        access_key: str,
        secret_key: str,
        bucket: str,
        secure: bool = True,
        verify_ssl: bool = True,
        presign_expiry_seconds: int = 3600,
        client: Optional[Minio] = None,
    ):
        """
        Args:
            endpoint: S3 endpoint (e.g., "s3.example.com:9000")
            access_key: S3 access key
            secret_key: S3 secret key
            bucket: Bucket holding documents and rendered pages
            secure: Use HTTPS (default: True)
            verify_ssl: Verify the endpoint's TLS certificate
            presign_expiry_seconds: Lifetime of generated signed URLs
            client: Pre-built Minio client (tests)
        """
        self.bucket = bucket
        self.endpoint = endpoint
        self.presign_expiry = timedelta(seconds=presign_expiry_seconds)

        if client is None:
            http_client = None
            if not verify_ssl:
                http_client = urllib3.PoolManager(cert_reqs=ssl.CERT_NONE, assert_hostname=False)
            client = Minio(
                endpoint,
                access_key=access_key,
                secret_key=secret_key,
                secure=secure,
                http_client=http_client,
            )
        self.client = client

        logger.info(f"BlobStore initialized: endpoint={endpoint}, bucket={bucket}")

    async def _run(self, func, *args, **kwargs):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args, **kwargs))

    async def get_signed_url(self, storage_type: str, key: str, is_download: bool = True) -> str:
        """
        Return a fresh URL for reading object `key`.

        Raises:
            UnsupportedStorageTypeError: Unknown storage type
            ExternalServiceError: Signing failed (transient)
        """
        if storage_type == STORAGE_TYPE_VERCEL_BLOB:
            # Blob keys are already public URLs
            return _with_download_flag(key) if is_download else key
        if storage_type != STORAGE_TYPE_S3:
            raise UnsupportedStorageTypeError(storage_type)

        response_headers = None
        if is_download:
            response_headers = {"response-content-disposition": "attachment"}

        try:
            return await self._run(
                self.client.presigned_get_object,
                self.bucket,
                key,
                expires=self.presign_expiry,
                response_headers=response_headers,
            )
        except _TRANSIENT_S3_ERRORS as e:
            raise ExternalServiceError(
                service_name="S3",
                error_type="sign",
                details={"detail": str(e), "key": key},
            ) from e

    async def put(
        self,
        data: bytes,
        name: str,
        team_id: str,
        doc_id: str,
        content_type: str,
    ) -> StoredObject:
        """
        Store `data` under `{team_id}/{doc_id}/{name}`.

        Raises:
            ExternalServiceError: Upload failed (transient)
        """
        object_key = f"{team_id}/{doc_id}/{name}"
        try:
            await self._run(
                self.client.put_object,
                self.bucket,
                object_key,
                io.BytesIO(data),
                len(data),
                content_type=content_type,
            )
        except _TRANSIENT_S3_ERRORS as e:
            raise ExternalServiceError(
                service_name="S3",
                error_type="upload",
                details={"detail": str(e), "key": object_key},
            ) from e

        logger.info(f"Stored {len(data)} bytes at s3://{self.bucket}/{object_key}")
        return StoredObject(storage_type=STORAGE_TYPE_S3, storage_key=object_key)
