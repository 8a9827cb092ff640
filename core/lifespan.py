import logging
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI

from core.settings import (
    alert_settings,
    app_settings,
    config_service_settings,
    db_settings,
    s3_settings,
)
from pagerender.clients.alert_logger import AlertLogger
from pagerender.clients.blob_store import BlobStore
from pagerender.clients.config_service import ConfigServiceClient
from pagerender.clients.fetcher import PdfFetcher
from pagerender.clients.uploader import PageUploader
from pagerender.core.config import CONFIG_SERVICE_TIMEOUT_SECONDS
from pagerender.database.manager import DatabaseManager
from pagerender.database.page_records import PageRecordStore
from pagerender.orchestrator import PageConverter, PageCounter

logger = logging.getLogger(__name__)


def create_render_executor() -> Executor:
    """Bounded pool for MuPDF work, separate from the loop's default executor."""
    workers = app_settings.RENDER_MAX_WORKERS
    if app_settings.RENDER_EXECUTOR == "thread":
        return ThreadPoolExecutor(max_workers=workers, thread_name_prefix="render")
    return ProcessPoolExecutor(max_workers=workers)


def create_blob_store() -> BlobStore:
    return BlobStore(
        endpoint=s3_settings.S3_ENDPOINT,
        access_key=s3_settings.S3_ACCESS_KEY,
        secret_key=s3_settings.S3_SECRET_KEY.get_secret_value(),
        bucket=s3_settings.S3_BUCKET,
        secure=s3_settings.S3_SECURE,
        verify_ssl=s3_settings.S3_VERIFY_SSL,
        presign_expiry_seconds=s3_settings.S3_PRESIGN_EXPIRY_SECONDS,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager for startup/shutdown tasks."""

    db_manager = DatabaseManager.from_settings(db_settings)
    try:
        await db_manager.connect()
        app.state.db_manager = db_manager
    except Exception as e:
        logger.error(f"Page store unreachable at startup: {e}", exc_info=True)
        logger.warning("Page counts still served; conversions will return 503")
        app.state.db_manager = None

    fetch_client = httpx.AsyncClient(
        timeout=app_settings.FETCH_TIMEOUT_SECONDS, follow_redirects=True
    )
    service_client = httpx.AsyncClient(timeout=CONFIG_SERVICE_TIMEOUT_SECONDS)
    render_executor = create_render_executor()
    alerts = AlertLogger(url=alert_settings.ALERT_WEBHOOK_URL)

    token = config_service_settings.EDGE_CONFIG_TOKEN
    blob_store = create_blob_store()
    app.state.alerts = alerts
    app.state.render_executor = render_executor
    fetcher = PdfFetcher(fetch_client, signer=blob_store)
    app.state.page_counter = PageCounter(fetcher, render_executor)
    app.state.page_converter = None

    if app.state.db_manager is not None:
        app.state.page_converter = PageConverter(
            fetcher=fetcher,
            config_client=ConfigServiceClient(
                service_client,
                config_service_settings.EDGE_CONFIG_URL,
                token.get_secret_value() if token else None,
            ),
            blocklist_key=config_service_settings.BLOCKLIST_KEY,
            uploader=PageUploader(blob_store),
            records=PageRecordStore(app.state.db_manager),
            alerts=alerts,
            render_executor=render_executor,
        )
        logger.info(
            f"Page converter ready ({app_settings.RENDER_EXECUTOR} pool, "
            f"{app_settings.RENDER_MAX_WORKERS} workers)"
        )

    yield

    await alerts.drain()
    await fetch_client.aclose()
    await service_client.aclose()
    render_executor.shutdown(wait=True)

    if app.state.db_manager is not None:
        await app.state.db_manager.disconnect()
