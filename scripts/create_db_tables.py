"""Database setup script - creates document_versions and document_pages tables."""

import asyncio
import os

import asyncpg
from dotenv import load_dotenv

load_dotenv()

DB_HOST = os.getenv("DB_HOST")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("DB_NAME")
DB_USER = os.getenv("DB_USER")
DB_PASSWORD = os.getenv("DB_PASSWORD")

CREATE_VERSIONS_SQL = """
CREATE TABLE IF NOT EXISTS document_versions (
    id VARCHAR(255) PRIMARY KEY,
    is_vertical BOOLEAN NOT NULL DEFAULT TRUE,
    num_pages INTEGER,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);
"""

CREATE_PAGES_SQL = """
CREATE TABLE IF NOT EXISTS document_pages (
    id VARCHAR(255) PRIMARY KEY,
    version_id VARCHAR(255) NOT NULL REFERENCES document_versions(id) ON DELETE CASCADE,
    page_number INTEGER NOT NULL CHECK (page_number >= 1),
    file TEXT NOT NULL,
    storage_type VARCHAR(50) NOT NULL DEFAULT 'S3_PATH',

    -- [{"href": ..., "coords": "x0,y0,x1,y1"}]
    page_links JSONB NOT NULL DEFAULT '[]',
    -- {"originalWidth", "originalHeight", "width", "height", "scaleFactor"}
    metadata JSONB NOT NULL DEFAULT '{}',

    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),

    CONSTRAINT uq_document_pages_version_page UNIQUE (version_id, page_number)
);
"""

CREATE_INDEXES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_document_pages_version_id ON document_pages(version_id);",
    "CREATE INDEX IF NOT EXISTS idx_document_pages_created_at ON document_pages(created_at DESC);",
]

ADD_COMMENTS_SQL = [
    "COMMENT ON TABLE document_pages IS 'One rendered image per (document version, page)';",
    "COMMENT ON COLUMN document_pages.file IS 'Storage key of the rendered page image';",
    "COMMENT ON COLUMN document_versions.is_vertical IS 'Page 1 height > width';",
]


async def setup_database():
    """Connect to PostgreSQL and create tables with indexes."""
    print(f"🔧 Connecting to {DB_HOST}:{DB_PORT}/{DB_NAME}...")

    conn = await asyncpg.connect(
        host=DB_HOST,
        port=DB_PORT,
        database=DB_NAME,
        user=DB_USER,
        password=DB_PASSWORD,
        timeout=10.0,
    )
    print("✅ Connected successfully!")

    try:
        print("\n📋 Creating tables...")
        await conn.execute(CREATE_VERSIONS_SQL)
        await conn.execute(CREATE_PAGES_SQL)
        print("✅ Tables created!")

        print("\n🔍 Creating indexes...")
        for idx_sql in CREATE_INDEXES_SQL:
            await conn.execute(idx_sql)
            print(f"  ✅ {idx_sql.split('idx_')[1].split(' ')[0]}")

        for comment_sql in ADD_COMMENTS_SQL:
            await conn.execute(comment_sql)

        count = await conn.fetchval("SELECT COUNT(*) FROM document_pages")
        print(f"\n📈 Current pages: {count}")
        print("\n🎉 Database setup complete!")
    finally:
        await conn.close()


if __name__ == "__main__":
    asyncio.run(setup_database())
