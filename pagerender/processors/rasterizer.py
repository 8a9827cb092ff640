"""Render a loaded page to an RGB pixel buffer.

One degraded retry: if the first render fails (usually an allocation failure
on a very large pixmap) the page is rendered again at half the scale, never
below 1.0. The scale that actually produced the buffer is returned with it.
"""

import logging
import time
from dataclasses import dataclass

import fitz  # PyMuPDF

from pagerender.core.config import (
    HIGH_MEMORY_WARNING_MB,
    MIN_SCALE_FACTOR,
    RETRY_SCALE_MULTIPLIER,
)
from pagerender.core.exceptions import RasterizationFailedError
from pagerender.models.dto import PixelBuffer
from pagerender.processors.page_loader import LoadedPage
from pagerender.processors.scale_planner import estimate_memory_mb

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RasterResult:
    buffer: PixelBuffer
    scale_factor: float


def degraded_scale_factor(scale_factor: float) -> float:
    return max(MIN_SCALE_FACTOR, scale_factor * RETRY_SCALE_MULTIPLIER)


def _rasterize(page: fitz.Page, scale_factor: float) -> PixelBuffer:
    matrix = fitz.Matrix(scale_factor, scale_factor)
    pixmap = page.get_pixmap(matrix=matrix, colorspace=fitz.csRGB, alpha=False, annots=True)
    try:
        return PixelBuffer(width=pixmap.width, height=pixmap.height, samples=bytes(pixmap.samples))
    finally:
        del pixmap


def render_page(loaded: LoadedPage, scale_factor: float) -> RasterResult:
    """
    Rasterize `loaded.page` at `scale_factor`, retrying once at a lower scale.

    Raises:
        RasterizationFailedError: Both attempts failed
    """
    estimated_mb = estimate_memory_mb(loaded.width, loaded.height, scale_factor)
    logger.info(
        f"Estimated memory usage: {estimated_mb:.1f}MB at scale {scale_factor}",
        extra={"page_number": loaded.page_number, "scale_factor": scale_factor},
    )
    if estimated_mb > HIGH_MEMORY_WARNING_MB:
        logger.warning(
            f"High memory usage expected: {estimated_mb:.1f}MB",
            extra={"page_number": loaded.page_number, "scale_factor": scale_factor},
        )

    start = time.perf_counter()
    try:
        buffer = _rasterize(loaded.page, scale_factor)
    except Exception as first_error:
        reduced = degraded_scale_factor(scale_factor)
        logger.warning(
            f"Pixmap creation failed ({first_error}), retrying with reduced scale factor {reduced}",
            extra={"page_number": loaded.page_number, "scale_factor": reduced},
        )
        try:
            buffer = _rasterize(loaded.page, reduced)
        except Exception as second_error:
            raise RasterizationFailedError(reduced, str(second_error)) from second_error
        scale_factor = reduced

    logger.info(
        f"Rendered {buffer.width} × {buffer.height} px",
        extra={
            "page_number": loaded.page_number,
            "scale_factor": scale_factor,
            "duration_ms": round((time.perf_counter() - start) * 1000, 1),
        },
    )
    return RasterResult(buffer=buffer, scale_factor=scale_factor)
