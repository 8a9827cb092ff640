"""
Single-page conversion pipeline.

One `convert` call handles one page: idempotency pre-check, fetch, inspect,
plan, link scan, render, upload, persist. Network stages run on the event
loop; inspection and rendering run in the injected render executor so the
loop never blocks on MuPDF.
"""

import asyncio
import logging
from concurrent.futures import Executor
from typing import Optional

from pagerender.clients.alert_logger import AlertLogger, format_page_context
from pagerender.clients.fetcher import PdfFetcher
from pagerender.clients.uploader import PageUploader, doc_id_from_url, page_file_name
from pagerender.core.exceptions import BaseError
from pagerender.database.page_records import PageRecordStore
from pagerender.models.dto import (
    ConversionOutcome,
    PageJob,
    PageMetadata,
    ScanResult,
    SourceDescriptor,
)
from pagerender.processors import render_worker
from pagerender.processors.link_scanner import ConfigSource, load_blocklist, scan_links
from pagerender.processors.scale_planner import plan_scale_factor
from pagerender.utils.timing import StageTimers

logger = logging.getLogger(__name__)


async def run_in_render_pool(executor: Optional[Executor], func, *args):
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(executor, func, *args)


class PageCounter:
    """Answers page counts; needs only the fetcher and the render executor."""

    def __init__(self, fetcher: PdfFetcher, render_executor: Optional[Executor] = None):
        self.fetcher = fetcher
        self.render_executor = render_executor

    async def count_pages(self, source: SourceDescriptor) -> int:
        """Fetch the document and return its page count."""
        pdf_bytes = await self.fetcher.fetch(source)
        num_pages = await run_in_render_pool(
            self.render_executor, render_worker.count_pages, pdf_bytes
        )
        logger.info(f"Document has {num_pages} pages")
        return num_pages


class PageConverter:
    """Runs the conversion stages for one page per call.

    Args:
        fetcher: Source PDF downloader
        config_client: Dynamic configuration store holding the blocklist
        blocklist_key: Config key of the keyword blocklist
        uploader: Page image uploader
        records: Page row persistence
        alerts: Alert sink for fatal and policy events
        render_executor: Bounded executor for MuPDF work (None = loop default)
    """

    def __init__(
        self,
        fetcher: PdfFetcher,
        config_client: ConfigSource,
        blocklist_key: str,
        uploader: PageUploader,
        records: PageRecordStore,
        alerts: AlertLogger,
        render_executor: Optional[Executor] = None,
    ):
        self.fetcher = fetcher
        self.config_client = config_client
        self.blocklist_key = blocklist_key
        self.uploader = uploader
        self.records = records
        self.alerts = alerts
        self.render_executor = render_executor

    async def _in_render_pool(self, func, *args):
        return await run_in_render_pool(self.render_executor, func, *args)

    async def convert(self, job: PageJob) -> ConversionOutcome:
        """
        Convert and store one page, or report why it was blocked.

        Raises:
            BaseError: Fetch, validation, rasterization, upload or persistence
                failure; an alert has already been emitted
        """
        log_extra = job.log_extra
        context = format_page_context(job.team_id, job.version_id, job.page_number)

        try:
            existing_id = await self.records.find_page_id(job.version_id, job.page_number)
            if existing_id is not None:
                logger.info(
                    f"Page already converted as {existing_id}, skipping", extra=log_extra
                )
                return ConversionOutcome(page_id=existing_id, reused=True)

            return await self._convert_new(job, log_extra, context)
        except BaseError as e:
            logger.error(
                f"Page conversion failed: {e.message}",
                extra={**log_extra, "error_code": e.error_code, "error_kind": e.kind.value},
            )
            self.alerts.log(f"Error processing PDF page: {e.message}. {context}")
            raise
        except Exception as e:
            logger.error(f"Unexpected conversion failure: {e}", extra=log_extra, exc_info=True)
            self.alerts.log(f"Unexpected error processing PDF page: {e}. {context}")
            raise

    async def _convert_new(self, job: PageJob, log_extra: dict, context: str) -> ConversionOutcome:
        timers = StageTimers()

        with timers.stage("fetch"):
            pdf_bytes = await self.fetcher.fetch(job.source)

        with timers.stage("inspect"):
            info = await self._in_render_pool(
                render_worker.inspect_page, pdf_bytes, job.page_number
            )
        scale_factor = plan_scale_factor(info.width, info.height)
        logger.info(
            f"Page {job.page_number}: {info.width}x{info.height}pt, "
            f"{len(info.links)} links, scale {scale_factor}",
            extra={**log_extra, "scale_factor": scale_factor},
        )

        if info.links:
            with timers.stage("scan"):
                scan = await self._scan(info.links, log_extra, context)
            if scan.blocked:
                logger.warning(
                    f"Page blocked: link {scan.matched_url} matches '{scan.matched_keyword}'",
                    extra=log_extra,
                )
                self.alerts.log(
                    f"Blocked document: link {scan.matched_url} matches keyword "
                    f"'{scan.matched_keyword}'. {context}",
                    severity="warning",
                    notify=False,
                )
                return ConversionOutcome(scan=scan)

        with timers.stage("render"):
            rendered = await self._in_render_pool(
                render_worker.render_and_encode, pdf_bytes, job.page_number, scale_factor
            )
        # Release the source before the slow network stages
        del pdf_bytes

        with timers.stage("upload"):
            stored = await self.uploader.store(
                rendered.image.data,
                page_file_name(job.page_number, rendered.image.extension),
                job.team_id,
                doc_id_from_url(job.source.url),
                rendered.image.content_type,
            )

        with timers.stage("persist"):
            page_id = await self.records.upsert_page(
                job.version_id,
                job.page_number,
                stored.storage_type,
                stored.storage_key,
                info.links,
                PageMetadata.from_geometry(info.width, info.height, rendered.scale_factor),
            )

        logger.info(
            f"Page {job.page_number} stored as {page_id} "
            f"({rendered.image.format}, {rendered.width_px}x{rendered.height_px}px)",
            extra={**log_extra, "stage_timings": timers.as_millis()},
        )
        return ConversionOutcome(page_id=page_id, scan=ScanResult.clean())

    async def _scan(self, links, log_extra: dict, context: str) -> ScanResult:
        blocklist, error = await load_blocklist(
            self.config_client, self.blocklist_key, log_extra=log_extra
        )
        if error is not None:
            self.alerts.log(
                f"Failed to load link blocklist, continuing without it: {error.message}. {context}",
                severity="warning",
                notify=False,
            )
        return scan_links(links, blocklist)
