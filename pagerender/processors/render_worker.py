"""Entry points executed inside the dedicated render executor.

Each function opens the document from bytes, does its work and closes every
native handle before returning plain, picklable values, so the same functions
work in a thread pool or a process pool.
"""

from pagerender.models.dto import PageInfo, RenderedPage
from pagerender.processors import page_loader
from pagerender.processors.encoder import encode
from pagerender.processors.rasterizer import render_page


def inspect_page(pdf_bytes: bytes, page_number: int) -> PageInfo:
    with page_loader.open_page(pdf_bytes, page_number) as loaded:
        return loaded.info()


def render_and_encode(pdf_bytes: bytes, page_number: int, scale_factor: float) -> RenderedPage:
    with page_loader.open_page(pdf_bytes, page_number) as loaded:
        raster = render_page(loaded, scale_factor)

    image = encode(raster.buffer)
    return RenderedPage(
        image=image,
        scale_factor=raster.scale_factor,
        width_px=raster.buffer.width,
        height_px=raster.buffer.height,
    )


def count_pages(pdf_bytes: bytes) -> int:
    return page_loader.count_pages(pdf_bytes)
