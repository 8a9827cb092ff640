"""
Typed contracts passed between the conversion stages.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from pydantic import BaseModel


class SourceDescriptor(BaseModel):
    """
    Where to download the source PDF from.

    `storage_type` / `storage_key` are optional; when both are present a
    fresh signed URL can be requested after an authorization failure.
    """

    url: str
    storage_type: Optional[str] = None
    storage_key: Optional[str] = None

    @property
    def can_resign(self) -> bool:
        return bool(self.storage_type and self.storage_key)


class PageLink(BaseModel):
    """
    Embedded URI link and its rectangle in page points.
    """

    href: str
    bounding_box: tuple[float, float, float, float]

    def to_record(self) -> dict:
        """Shape stored in `document_pages.page_links`."""
        return {
            "href": self.href,
            "coords": ",".join(_format_coord(c) for c in self.bounding_box),
        }


def _format_coord(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


class PageMetadata(BaseModel):
    """
    Original geometry and the scale the page was actually rendered at.
    """

    original_width: float
    original_height: float
    width: float
    height: float
    scale_factor: float

    @classmethod
    def from_geometry(cls, width: float, height: float, scale_factor: float) -> PageMetadata:
        return cls(
            original_width=width,
            original_height=height,
            width=width * scale_factor,
            height=height * scale_factor,
            scale_factor=scale_factor,
        )

    @property
    def is_vertical(self) -> bool:
        # Square pages are not vertical
        return self.original_height > self.original_width

    def to_record(self) -> dict:
        """Shape stored in `document_pages.metadata`."""
        return {
            "originalWidth": self.original_width,
            "originalHeight": self.original_height,
            "width": self.width,
            "height": self.height,
            "scaleFactor": self.scale_factor,
        }


class StoredObject(BaseModel):
    storage_type: str
    storage_key: str


class ScanResult(BaseModel):
    """
    Outcome of checking page links against the blocklist.
    """

    blocked: bool = False
    matched_url: Optional[str] = None
    matched_keyword: Optional[str] = None

    @classmethod
    def clean(cls) -> ScanResult:
        return cls()

    @classmethod
    def block(cls, href: str, keyword: str) -> ScanResult:
        return cls(blocked=True, matched_url=href, matched_keyword=keyword)


@dataclass(frozen=True)
class PageInfo:
    """Geometry and links of one page, detached from any native handle."""

    page_number: int
    bounds: tuple[float, float, float, float]
    width: float
    height: float
    links: list[PageLink] = field(default_factory=list)


@dataclass(frozen=True)
class PixelBuffer:
    """Raw RGB samples, row-major, 3 bytes per pixel, no padding."""

    width: int
    height: int
    samples: bytes


@dataclass(frozen=True)
class EncodedImage:
    data: bytes
    format: str  # "png" or "jpeg"

    @property
    def content_type(self) -> str:
        return f"image/{self.format}"

    @property
    def extension(self) -> str:
        return self.format


@dataclass(frozen=True)
class RenderedPage:
    """Encoded image plus the scale factor that produced it."""

    image: EncodedImage
    scale_factor: float
    width_px: int
    height_px: int


@dataclass(frozen=True)
class ConversionOutcome:
    """Result of one convert-page invocation.

    Exactly one of `page_id` / `scan` is meaningful: a blocked scan means no
    page was rendered or stored.
    """

    page_id: Optional[str] = None
    scan: Optional[ScanResult] = None
    reused: bool = False

    @property
    def blocked(self) -> bool:
        return self.scan is not None and self.scan.blocked


class PageJob(BaseModel):
    """One convert-page invocation: which page of which document version."""

    version_id: str
    page_number: int
    team_id: str
    source: SourceDescriptor

    @property
    def log_extra(self) -> dict:
        return {
            "version_id": self.version_id,
            "page_number": self.page_number,
            "team_id": self.team_id,
        }
