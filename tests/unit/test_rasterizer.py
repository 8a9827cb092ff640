"""Unit tests for rasterization with degraded retry."""

from unittest.mock import patch

import pytest

from pagerender.core.exceptions import ErrorKind, RasterizationFailedError
from pagerender.models.dto import PixelBuffer
from pagerender.processors import rasterizer
from pagerender.processors.page_loader import open_page
from pagerender.processors.rasterizer import degraded_scale_factor, render_page


def _buffer(width=10, height=10):
    return PixelBuffer(width=width, height=height, samples=b"\xff" * width * height * 3)


class TestRenderPage:
    def test_renders_rgb_at_requested_scale(self, make_pdf):
        pdf = make_pdf(pages=[(100, 200)])

        with open_page(pdf, 1) as loaded:
            result = render_page(loaded, 1.0)

        assert result.scale_factor == 1.0
        assert (result.buffer.width, result.buffer.height) == (100, 200)
        assert len(result.buffer.samples) == 100 * 200 * 3

    def test_scale_multiplies_dimensions(self, make_pdf):
        pdf = make_pdf(pages=[(100, 200)])

        with open_page(pdf, 1) as loaded:
            result = render_page(loaded, 2.0)

        assert (result.buffer.width, result.buffer.height) == (200, 400)

    def test_retries_once_at_half_scale(self, make_pdf):
        """The returned scale factor is the one that actually rendered."""
        pdf = make_pdf(pages=[(100, 100)])

        with open_page(pdf, 1) as loaded:
            with patch.object(
                rasterizer, "_rasterize", side_effect=[MemoryError("pixmap"), _buffer()]
            ) as mock_rasterize:
                result = render_page(loaded, 2.95)

        assert result.scale_factor == pytest.approx(1.475)
        assert mock_rasterize.call_count == 2
        assert mock_rasterize.call_args_list[1].args[1] == pytest.approx(1.475)

    def test_second_failure_raises(self, make_pdf):
        pdf = make_pdf(pages=[(100, 100)])

        with open_page(pdf, 1) as loaded:
            with patch.object(
                rasterizer, "_rasterize", side_effect=RuntimeError("out of memory")
            ) as mock_rasterize:
                with pytest.raises(RasterizationFailedError) as exc_info:
                    render_page(loaded, 2.0)

        assert mock_rasterize.call_count == 2
        assert exc_info.value.kind is ErrorKind.RESOURCE_EXHAUSTED
        assert exc_info.value.details["scale_factor"] == 1.0


class TestDegradedScale:
    def test_halves(self):
        assert degraded_scale_factor(2.95) == pytest.approx(1.475)

    def test_never_below_one(self):
        assert degraded_scale_factor(1.5) == 1.0
        assert degraded_scale_factor(1.0) == 1.0
