"""Page conversion endpoints called by the document viewer backend."""

import logging
import time

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from api.schemas import (
    BlockedResponse,
    ConvertPageRequest,
    ConvertPageResponse,
    ErrorResponse,
    GetPagesRequest,
    GetPagesResponse,
    ProblemDetail,
)
from core.dependencies import get_page_converter, get_page_counter
from core.security import require_internal_token
from pagerender.models.dto import PageJob
from pagerender.orchestrator import PageConverter, PageCounter

router = APIRouter(prefix="/v1/mupdf", dependencies=[Depends(require_internal_token)])
logger = logging.getLogger(__name__)


@router.post(
    "/convert-page",
    response_model=ConvertPageResponse,
    tags=["pages"],
    responses={
        400: {"description": "Page links to a blocked destination", "model": BlockedResponse},
        422: {"description": "Invalid request or document", "model": ProblemDetail},
        502: {"description": "Source or storage unavailable", "model": ProblemDetail},
    },
)
async def convert_page(
    request: Request,
    body: ConvertPageRequest,
    converter: PageConverter = Depends(get_page_converter),
):
    start_time = time.time()
    trace_id = getattr(request.state, "trace_id", None)
    job = PageJob(
        version_id=body.document_version_id,
        page_number=body.page_number,
        team_id=body.team_id,
        source=body.to_source(),
    )

    logger.info(
        "[NEW REQUEST] convert page",
        extra={"trace_id": trace_id, **job.log_extra},
    )

    outcome = await converter.convert(job)

    if outcome.blocked:
        blocked = BlockedResponse(
            matched_url=outcome.scan.matched_url,
            matched_keyword=outcome.scan.matched_keyword,
            page_number=job.page_number,
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=blocked.model_dump(by_alias=True),
        )

    logger.info(
        f"[RESPONSE] page_id={outcome.page_id} reused={outcome.reused}",
        extra={
            "trace_id": trace_id,
            **job.log_extra,
            "duration_ms": round((time.time() - start_time) * 1000, 1),
        },
    )
    return ConvertPageResponse(document_page_id=outcome.page_id)


@router.post(
    "/get-pages",
    response_model=GetPagesResponse,
    tags=["pages"],
    responses={500: {"description": "Document could not be read", "model": ErrorResponse}},
)
async def get_pages(
    request: Request,
    body: GetPagesRequest,
    counter: PageCounter = Depends(get_page_counter),
):
    trace_id = getattr(request.state, "trace_id", None)
    try:
        num_pages = await counter.count_pages(body.to_source())
    except Exception as e:
        logger.error(
            f"Failed to count pages: {e}",
            extra={"trace_id": trace_id},
            exc_info=True,
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=ErrorResponse(error="Internal Server Error").model_dump(),
        )

    return GetPagesResponse(num_pages=num_pages)
