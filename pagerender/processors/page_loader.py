"""Open one page of an in-memory PDF with PyMuPDF.

The document handle is owned by the `open_page` context manager and is
closed on every exit path, including validation failures raised while the
page is being loaded.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator

import fitz  # PyMuPDF

from pagerender.core.exceptions import (
    InvalidGeometryError,
    PageOutOfRangeError,
    UnreadableDocumentError,
)
from pagerender.models.dto import PageInfo, PageLink

logger = logging.getLogger(__name__)


@dataclass
class LoadedPage:
    """A page plus its geometry; valid only inside `open_page`."""

    page: fitz.Page
    page_number: int
    bounds: tuple[float, float, float, float]
    width: float
    height: float
    links: list[PageLink]

    def info(self) -> PageInfo:
        return PageInfo(
            page_number=self.page_number,
            bounds=self.bounds,
            width=self.width,
            height=self.height,
            links=list(self.links),
        )


@contextmanager
def open_document(pdf_bytes: bytes) -> Iterator[fitz.Document]:
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except (fitz.FileDataError, RuntimeError, ValueError) as e:
        raise UnreadableDocumentError(str(e)) from e
    try:
        yield doc
    finally:
        doc.close()


def extract_links(page: fitz.Page) -> list[PageLink]:
    """URI links of the page in document order; internal jumps are skipped."""
    links = []
    for link in page.get_links():
        href = link.get("uri")
        if not href:
            continue
        rect = link["from"]
        links.append(PageLink(href=href, bounding_box=(rect.x0, rect.y0, rect.x1, rect.y1)))
    return links


@contextmanager
def open_page(pdf_bytes: bytes, page_number: int) -> Iterator[LoadedPage]:
    """
    Load page `page_number` (1-based) and measure it.

    Raises:
        UnreadableDocumentError: PDF bytes cannot be parsed
        PageOutOfRangeError: Page number beyond the document's page count
        InvalidGeometryError: Page width or height is not positive
    """
    with open_document(pdf_bytes) as doc:
        page_count = doc.page_count
        if page_number < 1 or page_number > page_count:
            raise PageOutOfRangeError(page_number, page_count)

        page = doc.load_page(page_number - 1)
        rect = page.bound()
        x0, y0, x1, y1 = rect.x0, rect.y0, rect.x1, rect.y1
        width = abs(x1 - x0)
        height = abs(y1 - y0)

        if width <= 0 or height <= 0:
            raise InvalidGeometryError(width, height)

        logger.info(
            f"Original page dimensions: {width} × {height} points "
            f'({width / 72:.1f}" × {height / 72:.1f}")',
            extra={"page_number": page_number},
        )

        yield LoadedPage(
            page=page,
            page_number=page_number,
            bounds=(x0, y0, x1, y1),
            width=width,
            height=height,
            links=extract_links(page),
        )


def count_pages(pdf_bytes: bytes) -> int:
    with open_document(pdf_bytes) as doc:
        return doc.page_count
