# services/db_service.py
from __future__ import annotations

from contextlib import asynccontextmanager
from time import monotonic
from typing import Any, AsyncIterator, List, Optional
from urllib.parse import urlparse

import asyncpg

from app.config import Settings, require_database_url
from app.core.logging import get_logger

logger = get_logger().bind(module="db")

APPLICATION_NAME = "news-bias-backend"
SLOW_QUERY_THRESHOLD_MS = 1_000


def normalize_database_url(raw_dsn: str) -> str:
    """
    Rewrite a SQLAlchemy-style scheme (postgresql+asyncpg://) to the plain
    postgresql:// asyncpg expects. Nothing else in the DSN is touched.
    """
    raw_dsn = raw_dsn.strip()
    if raw_dsn.startswith("postgresql+asyncpg://"):
        raw_dsn = "postgresql://" + raw_dsn[len("postgresql+asyncpg://"):]
    return raw_dsn


class Database:
    """
    Thin wrapper around an asyncpg pool with timing and slow-query logging.

    Created once in the application lifespan (or by a script) and passed to
    the store; there is no module-level pool.
    """

    def __init__(self, pool: asyncpg.Pool, *, default_timeout_ms: int = 30000) -> None:
        self._pool = pool
        self._default_timeout_s = default_timeout_ms / 1000

    @classmethod
    async def connect(cls, settings: Settings) -> "Database":
        dsn = normalize_database_url(require_database_url())
        logger.info(
            "db_pool_initializing",
            dsn_host=urlparse(dsn).hostname,
            dsn_port=urlparse(dsn).port,
            application_name=APPLICATION_NAME,
        )
        pool = await asyncpg.create_pool(
            dsn=dsn,
            min_size=settings.DB_POOL_MIN_SIZE,
            max_size=settings.DB_POOL_MAX_SIZE,
            command_timeout=60,
            timeout=60,
            statement_cache_size=0,
            server_settings={
                "application_name": APPLICATION_NAME,
                "statement_timeout": str(settings.STATEMENT_TIMEOUT_MS),
            },
        )
        return cls(pool, default_timeout_ms=settings.DEFAULT_QUERY_TIMEOUT_MS)

    async def close(self) -> None:
        await self._pool.close()

    async def _execute_with_timing(
        self,
        conn: asyncpg.Connection,
        method: str,
        query: str,
        *args: Any,
    ) -> Any:
        start_ms = monotonic() * 1000
        try:
            func = getattr(conn, method)
            return await func(query, *args, timeout=self._default_timeout_s)
        finally:
            duration_ms = (monotonic() * 1000) - start_ms
            if duration_ms >= SLOW_QUERY_THRESHOLD_MS:
                logger.warning(
                    "db_slow_query",
                    duration_ms=round(duration_ms, 2),
                    method=method,
                    arg_count=len(args),
                    query_snippet=query.strip().split("\n")[0][:200],
                )

    async def _run(self, method: str, query: str, args: tuple, conn: Optional[asyncpg.Connection]) -> Any:
        if conn is not None:
            return await self._execute_with_timing(conn, method, query, *args)
        async with self._pool.acquire() as pooled:
            return await self._execute_with_timing(pooled, method, query, *args)

    async def fetch(self, query: str, *args: Any, conn: Optional[asyncpg.Connection] = None) -> List[asyncpg.Record]:
        return await self._run("fetch", query, args, conn)

    async def fetchrow(self, query: str, *args: Any, conn: Optional[asyncpg.Connection] = None) -> Optional[asyncpg.Record]:
        return await self._run("fetchrow", query, args, conn)

    async def fetchval(self, query: str, *args: Any, conn: Optional[asyncpg.Connection] = None) -> Any:
        return await self._run("fetchval", query, args, conn)

    async def execute(self, query: str, *args: Any, conn: Optional[asyncpg.Connection] = None) -> str:
        return await self._run("execute", query, args, conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        async with self._pool.acquire() as conn:
            tx = conn.transaction()
            await tx.start()
            try:
                yield conn
            except Exception:
                await tx.rollback()
                raise
            else:
                await tx.commit()
