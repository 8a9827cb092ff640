"""Shared fixtures: generated PDFs and in-memory collaborators."""

import os

# Settings singletons are built at import time
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_NAME", "pagerender_test")
os.environ.setdefault("DB_USER", "pagerender")
os.environ.setdefault("DB_PASSWORD", "secret")
os.environ.setdefault("S3_ENDPOINT", "localhost:9000")
os.environ.setdefault("S3_ACCESS_KEY", "minio")
os.environ.setdefault("S3_SECRET_KEY", "minio-secret")
os.environ.setdefault("S3_BUCKET", "documents")
os.environ.setdefault("EDGE_CONFIG_URL", "https://edge-config.example.com/ecfg_test")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")

from typing import Optional

import fitz
import pytest

from pagerender.core.config import STORAGE_TYPE_S3
from pagerender.models.dto import PageLink, PageMetadata, StoredObject


def build_pdf(pages=((600, 800),), links=None, goto_links=None) -> bytes:
    """
    Build an in-memory PDF.

    Args:
        pages: (width, height) in points for each page
        links: {page_index: [(uri, (x0, y0, x1, y1)), ...]}
        goto_links: {page_index: [(target_page_index, rect), ...]}
    """
    doc = fitz.open()
    try:
        for index, (width, height) in enumerate(pages):
            page = doc.new_page(width=width, height=height)
            page.insert_text((20, 40), f"Page {index + 1}", fontsize=12)
        for index, page_links in (links or {}).items():
            page = doc[index]
            for uri, rect in page_links:
                page.insert_link({"kind": fitz.LINK_URI, "from": fitz.Rect(*rect), "uri": uri})
        for index, page_links in (goto_links or {}).items():
            page = doc[index]
            for target, rect in page_links:
                page.insert_link(
                    {"kind": fitz.LINK_GOTO, "from": fitz.Rect(*rect), "page": target}
                )
        return doc.tobytes()
    finally:
        doc.close()


class FakeBlobStore:
    """Records uploads and attempted keys; optional scripted failures per call."""

    def __init__(self, failures=None):
        self.failures = list(failures or [])
        self.puts = []
        self.attempted_keys = []
        self.signed = []

    async def put(self, data, name, team_id, doc_id, content_type) -> StoredObject:
        key = f"{team_id}/{doc_id}/{name}"
        self.attempted_keys.append(key)
        if self.failures:
            raise self.failures.pop(0)
        self.puts.append(
            {"data": data, "key": key, "content_type": content_type, "doc_id": doc_id}
        )
        return StoredObject(storage_type=STORAGE_TYPE_S3, storage_key=key)

    async def get_signed_url(self, storage_type, key, is_download=True) -> str:
        self.signed.append((storage_type, key, is_download))
        return f"https://signed.example.com/{key}?fresh={len(self.signed)}"


class FakeRecords:
    """In-memory PageRecordStore with the same idempotency contract."""

    def __init__(self):
        self.rows: dict[tuple[str, int], dict] = {}
        self.orientation: dict[str, bool] = {}
        self.upsert_calls = 0

    async def find_page_id(self, version_id: str, page_number: int) -> Optional[str]:
        row = self.rows.get((version_id, page_number))
        return row["id"] if row else None

    async def upsert_page(
        self,
        version_id: str,
        page_number: int,
        storage_type: str,
        storage_key: str,
        links: list[PageLink],
        metadata: PageMetadata,
    ) -> str:
        self.upsert_calls += 1
        key = (version_id, page_number)
        if key not in self.rows:
            self.rows[key] = {
                "id": f"page_{len(self.rows) + 1}",
                "file": storage_key,
                "storage_type": storage_type,
                "page_links": [link.to_record() for link in links],
                "metadata": metadata.to_record(),
            }
            if page_number == 1:
                self.orientation[version_id] = metadata.is_vertical
        return self.rows[key]["id"]


class FakeConfig:
    def __init__(self, value=None, error: Optional[Exception] = None):
        self.value = value
        self.error = error
        self.calls = []

    async def get(self, key):
        self.calls.append(key)
        if self.error is not None:
            raise self.error
        return self.value


@pytest.fixture
def simple_pdf() -> bytes:
    return build_pdf()


@pytest.fixture
def blob_store() -> FakeBlobStore:
    return FakeBlobStore()


@pytest.fixture
def records() -> FakeRecords:
    return FakeRecords()


@pytest.fixture
def make_pdf():
    return build_pdf


@pytest.fixture
def make_blob_store():
    return FakeBlobStore


@pytest.fixture
def make_config():
    return FakeConfig
