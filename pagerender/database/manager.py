"""
Asyncpg pool owner for the page store.

The pool is opened once by the application lifespan and shared by every
`PageRecordStore`. `health_check` also confirms that the page tables exist,
since a reachable database without the schema cannot store pages.
"""

import logging
import time
from typing import Any, Optional

import asyncpg

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("document_versions", "document_pages")

SCHEMA_CHECK_SQL = """
    SELECT count(*) FROM information_schema.tables
    WHERE table_schema = current_schema() AND table_name = ANY($1::text[])
"""


class DatabaseManager:
    """Opens, hands out and closes the page store connection pool.

    Args:
        host: Postgres host
        database: Database name
        user: Login role
        password: Login password
        port: Postgres port
        min_size: Connections kept open while idle
        max_size: Upper bound on concurrent connections
        timeout: Seconds to wait when opening a connection
        command_timeout: Seconds before a statement is cancelled
    """

    def __init__(
        self,
        host: str,
        database: str,
        user: str,
        password: str,
        port: int = 5432,
        min_size: int = 2,
        max_size: int = 10,
        timeout: float = 10.0,
        command_timeout: float = 10.0,
    ):
        self._pool_kwargs: dict[str, Any] = {
            "host": host,
            "port": port,
            "database": database,
            "user": user,
            "password": password,
            "min_size": min_size,
            "max_size": max_size,
            "timeout": timeout,
            "command_timeout": command_timeout,
        }
        self._pool: Optional[asyncpg.Pool] = None
        self._closed = False

    @classmethod
    def from_settings(cls, settings) -> "DatabaseManager":
        """Build a manager from a validated `DatabaseSettings` instance."""
        return cls(
            host=settings.DB_HOST,
            database=settings.DB_NAME,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD.get_secret_value(),
            port=settings.DB_PORT,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            timeout=settings.DB_POOL_TIMEOUT,
            command_timeout=settings.DB_COMMAND_TIMEOUT,
        )

    @property
    def target(self) -> str:
        """`host:port/database`, safe to log."""
        kw = self._pool_kwargs
        return f"{kw['host']}:{kw['port']}/{kw['database']}"

    async def connect(self) -> None:
        if self._pool is not None:
            logger.warning(f"Page store pool for {self.target} is already open")
            return
        self._pool = await asyncpg.create_pool(**self._pool_kwargs)
        self._closed = False
        logger.info(
            f"Page store pool open: {self.target}",
            extra={
                "pool_min": self._pool_kwargs["min_size"],
                "pool_max": self._pool_kwargs["max_size"],
            },
        )

    async def disconnect(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        self._closed = True
        await pool.close()
        logger.info(f"Page store pool closed: {self.target}")

    async def get_pool(self) -> asyncpg.Pool:
        if self._pool is None:
            state = "closed" if self._closed else "not connected yet"
            raise RuntimeError(f"Page store pool is {state}")
        return self._pool

    async def health_check(self) -> dict[str, Any]:
        """Round-trip to the database and confirm the page tables exist.

        Returns:
            {"healthy": bool, "error": str | None, "latency_ms": float | None}
        """
        started = time.perf_counter()
        try:
            pool = await self.get_pool()
            async with pool.acquire() as conn:
                found = await conn.fetchval(SCHEMA_CHECK_SQL, list(REQUIRED_TABLES))
        except Exception as e:
            logger.error(f"Page store health check failed: {e}", exc_info=True)
            return {"healthy": False, "error": str(e), "latency_ms": None}

        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        if found != len(REQUIRED_TABLES):
            error = f"missing page tables (found {found} of {len(REQUIRED_TABLES)})"
            logger.error(f"Page store health check failed: {error}")
            return {"healthy": False, "error": error, "latency_ms": latency_ms}
        return {"healthy": True, "error": None, "latency_ms": latency_ms}

    async def __aenter__(self) -> "DatabaseManager":
        await self.connect()
        return self

    async def __aexit__(self, *_) -> None:
        await self.disconnect()
