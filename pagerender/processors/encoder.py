"""Encode a pixel buffer as PNG and JPEG and keep the smaller one."""

import io
import logging

from PIL import Image

from pagerender.core.config import JPEG_QUALITY
from pagerender.models.dto import EncodedImage, PixelBuffer

logger = logging.getLogger(__name__)


def select_smaller(png: EncodedImage, jpeg: EncodedImage) -> EncodedImage:
    """Lossless wins unless the lossy candidate is strictly smaller."""
    if len(jpeg.data) < len(png.data):
        return jpeg
    return png


def encode_png(image: Image.Image) -> EncodedImage:
    out = io.BytesIO()
    image.save(out, format="PNG")
    return EncodedImage(data=out.getvalue(), format="png")


def encode_jpeg(image: Image.Image, quality: int = JPEG_QUALITY) -> EncodedImage:
    out = io.BytesIO()
    image.save(out, format="JPEG", quality=quality)
    return EncodedImage(data=out.getvalue(), format="jpeg")


def encode(buffer: PixelBuffer) -> EncodedImage:
    with Image.frombytes("RGB", (buffer.width, buffer.height), buffer.samples) as image:
        png = encode_png(image)
        jpeg = encode_jpeg(image)

    chosen = select_smaller(png, jpeg)
    logger.info(
        f"Chosen format: {chosen.format} (png={len(png.data)}B, jpeg={len(jpeg.data)}B)"
    )
    return chosen
