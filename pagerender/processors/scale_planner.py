import logging
import math

from pagerender.core.config import (
    BYTES_PER_PIXEL,
    DEFAULT_SCALE_FACTOR,
    FORBIDDEN_SCALE_FACTOR,
    MAX_PIXEL_DIMENSION,
    MAX_TOTAL_PIXELS,
    MIN_SCALE_FACTOR,
    WIDE_PAGE_SCALE_FACTOR,
    WIDE_PAGE_THRESHOLD_POINTS,
)

logger = logging.getLogger(__name__)


def baseline_scale_factor(width: float) -> float:
    return WIDE_PAGE_SCALE_FACTOR if width >= WIDE_PAGE_THRESHOLD_POINTS else DEFAULT_SCALE_FACTOR


def exceeds_limits(width: float, height: float, scale_factor: float) -> bool:
    scaled_width = width * scale_factor
    scaled_height = height * scale_factor
    return (
        scaled_width > MAX_PIXEL_DIMENSION
        or scaled_height > MAX_PIXEL_DIMENSION
        or scaled_width * scaled_height > MAX_TOTAL_PIXELS
    )


def plan_scale_factor(width: float, height: float) -> float:
    """
    Pick the points-to-pixels multiplier for a page of the given size.

    Normal pages render at 2.95 (2.0 when at least 1600pt wide). When that
    would exceed the pixel ceilings the largest safe factor is used instead,
    rounded down to one decimal and never below 1.0, so a page larger than
    the ceilings at 1x still renders at 1x.

    Args:
        width: Page width in points (> 0)
        height: Page height in points (> 0)

    Returns:
        Scale factor, never exactly 3.0
    """
    baseline = baseline_scale_factor(width)
    scale_factor = baseline

    if exceeds_limits(width, height, scale_factor):
        max_by_width = MAX_PIXEL_DIMENSION / width
        max_by_height = MAX_PIXEL_DIMENSION / height
        max_by_total = math.sqrt(MAX_TOTAL_PIXELS / (width * height))

        scale_factor = min(max_by_width, max_by_height, max_by_total)
        scale_factor = max(MIN_SCALE_FACTOR, math.floor(scale_factor * 10) / 10)

        logger.info(
            f"Large page detected. Reduced scale factor from {baseline} to {scale_factor}",
            extra={"scale_factor": scale_factor},
        )

    if scale_factor == FORBIDDEN_SCALE_FACTOR:
        scale_factor = DEFAULT_SCALE_FACTOR

    return scale_factor


def estimate_memory_mb(width: float, height: float, scale_factor: float) -> float:
    """Approximate size of the RGB pixel buffer for this page, in MB."""
    final_width = math.floor(width * scale_factor)
    final_height = math.floor(height * scale_factor)
    return (final_width * final_height * BYTES_PER_PIXEL) / (1024 * 1024)
