"""Persistence of rendered pages and document orientation.

Idempotency under job redelivery rests on the UNIQUE (version_id,
page_number) constraint of `document_pages`: the insert is
`ON CONFLICT DO NOTHING`, and a lost race falls back to reading the
winner's id. No locks are taken.
"""

import json
import logging
import uuid
from typing import Optional

from pagerender.database.manager import DatabaseManager
from pagerender.models.dto import PageLink, PageMetadata

logger = logging.getLogger(__name__)

SELECT_PAGE_ID_SQL = """
    SELECT id FROM document_pages
    WHERE version_id = $1 AND page_number = $2
"""

INSERT_PAGE_SQL = """
    INSERT INTO document_pages (
        id, version_id, page_number, file, storage_type, page_links, metadata
    ) VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7::jsonb)
    ON CONFLICT (version_id, page_number) DO NOTHING
    RETURNING id
"""

UPDATE_ORIENTATION_SQL = """
    UPDATE document_versions
    SET is_vertical = $1
    WHERE id = $2
"""


def new_page_id() -> str:
    return str(uuid.uuid4())


class PageRecordStore:
    """Reads and writes `document_pages` / `document_versions` rows."""

    def __init__(self, db_manager: DatabaseManager):
        self.db_manager = db_manager

    async def find_page_id(self, version_id: str, page_number: int) -> Optional[str]:
        pool = await self.db_manager.get_pool()
        async with pool.acquire() as conn:
            return await conn.fetchval(SELECT_PAGE_ID_SQL, version_id, page_number)

    async def set_orientation(self, version_id: str, is_vertical: bool, conn=None) -> None:
        """Overwrite the version's orientation flag; safe to repeat."""
        if conn is None:
            pool = await self.db_manager.get_pool()
            async with pool.acquire() as conn:
                await conn.execute(UPDATE_ORIENTATION_SQL, is_vertical, version_id)
        else:
            await conn.execute(UPDATE_ORIENTATION_SQL, is_vertical, version_id)
        logger.info(
            f"Orientation set: is_vertical={is_vertical}",
            extra={"version_id": version_id},
        )

    async def upsert_page(
        self,
        version_id: str,
        page_number: int,
        storage_type: str,
        storage_key: str,
        links: list[PageLink],
        metadata: PageMetadata,
    ) -> str:
        """
        Create the page row unless one already exists for the key.

        Page 1 also updates the version's orientation in the same
        transaction as its insert.

        Returns:
            Id of the new row, or of the existing row for (version_id, page_number)
        """
        log_extra = {"version_id": version_id, "page_number": page_number}
        pool = await self.db_manager.get_pool()

        async with pool.acquire() as conn:
            existing = await conn.fetchval(SELECT_PAGE_ID_SQL, version_id, page_number)
            if existing is not None:
                logger.info(f"Page already stored as {existing}", extra=log_extra)
                return existing

            async with conn.transaction():
                page_id = await conn.fetchval(
                    INSERT_PAGE_SQL,
                    new_page_id(),
                    version_id,
                    page_number,
                    storage_key,
                    storage_type,
                    json.dumps([link.to_record() for link in links]),
                    json.dumps(metadata.to_record()),
                )
                if page_id is None:
                    # Concurrent delivery inserted first
                    page_id = await conn.fetchval(SELECT_PAGE_ID_SQL, version_id, page_number)
                    logger.info(f"Lost insert race to page {page_id}", extra=log_extra)
                    return page_id

                if page_number == 1:
                    await self.set_orientation(version_id, metadata.is_vertical, conn=conn)

        logger.info(f"✅ DB INSERT SUCCESS | page_id={page_id}", extra=log_extra)
        return page_id
