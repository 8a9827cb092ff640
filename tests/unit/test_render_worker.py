"""Render worker entry points under the production process-pool executor."""

import pickle
from concurrent.futures import ProcessPoolExecutor

import pytest

from pagerender.core.exceptions import (
    ErrorKind,
    FetchExhaustedError,
    InvalidGeometryError,
    NotAPdfError,
    PageOutOfRangeError,
    RasterizationFailedError,
    UnreadableDocumentError,
)
from pagerender.processors import render_worker


@pytest.fixture
def process_pool():
    pool = ProcessPoolExecutor(max_workers=1)
    yield pool
    pool.shutdown(wait=True)


class TestProcessPool:
    def test_inspect_page(self, process_pool, make_pdf):
        info = process_pool.submit(render_worker.inspect_page, make_pdf(), 1).result()

        assert (info.width, info.height) == (600, 800)

    def test_render_and_encode(self, process_pool, make_pdf):
        rendered = process_pool.submit(
            render_worker.render_and_encode, make_pdf(pages=[(200, 100)]), 1, 1.0
        ).result()

        assert (rendered.width_px, rendered.height_px) == (200, 100)
        assert rendered.image.data

    def test_validation_error_reaches_caller_and_pool_survives(self, process_pool, make_pdf):
        pdf = make_pdf()

        with pytest.raises(PageOutOfRangeError) as exc_info:
            process_pool.submit(render_worker.inspect_page, pdf, 5).result()

        assert exc_info.value.details["page_count"] == 1
        assert exc_info.value.http_status == 422
        assert process_pool.submit(render_worker.count_pages, pdf).result() == 1

    def test_unreadable_document(self, process_pool):
        with pytest.raises(UnreadableDocumentError):
            process_pool.submit(
                render_worker.count_pages, b"this is definitely not a pdf document"
            ).result()


@pytest.mark.parametrize(
    "error",
    [
        PageOutOfRangeError(page_number=5, page_count=2),
        InvalidGeometryError(0, 800),
        RasterizationFailedError(1.0, "cannot allocate pixmap"),
        UnreadableDocumentError("broken xref"),
        NotAPdfError(first_bytes="<htm", preview="<html>", content_type="text/html"),
        FetchExhaustedError(3, None),
    ],
)
def test_errors_survive_pickling(error):
    restored = pickle.loads(pickle.dumps(error))

    assert type(restored) is type(error)
    assert restored.to_dict() == error.to_dict()
    assert restored.details == error.details
    assert restored.kind is error.kind
    assert str(restored) == str(error)


def test_rasterization_failure_keeps_resource_kind_after_pickling():
    restored = pickle.loads(pickle.dumps(RasterizationFailedError(1.0, "oom")))

    assert restored.kind is ErrorKind.RESOURCE_EXHAUSTED
    assert restored.details["scale_factor"] == 1.0
