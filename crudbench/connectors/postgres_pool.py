"""
Postgres Connection Pool

asyncpg pool used by advanced mode for bulk COPY loads and aggregate
queries. The pool is an owned resource: open it with `async with` (or
`initialize()` / `close()`) and hand it to the store that needs it.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional, Sequence

import asyncpg
from asyncpg.exceptions import CannotConnectNowError, TooManyConnectionsError

from crudbench.config import settings
from crudbench.core.readiness import RetryPolicy

logger = logging.getLogger(__name__)

# Failures worth retrying while the server is still starting up
TRANSIENT_CONNECT_ERRORS = (CannotConnectNowError, TooManyConnectionsError, OSError)


class PostgresConnectionPool:
    """
    Bounded asyncpg pool with retried startup.
    """

    def __init__(
        self,
        host: str,
        port: int,
        database: str,
        user: str,
        password: str,
        min_size: int = 5,
        max_size: int = 20,
        command_timeout: float = 60.0,
        connect_retry: Optional[RetryPolicy] = None,
    ):
        """
        Args:
            host: Database host
            port: Database port
            database: Database name
            user: Username
            password: Password
            min_size: Connections opened up front
            max_size: Upper bound of pooled connections
            command_timeout: Default statement timeout in seconds
            connect_retry: Retry budget for pool creation (3 quick attempts by default)
        """
        self.host = host
        self.port = port
        self.database = database
        self.user = user
        self.password = password
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.connect_retry = connect_retry or RetryPolicy(
            max_attempts=3, interval_seconds=1.0, backoff_multiplier=2.0
        )

        self._pool: Optional[asyncpg.Pool] = None

    @classmethod
    def from_settings(cls) -> "PostgresConnectionPool":
        return cls(
            host=settings.POSTGRES_HOST,
            port=settings.POSTGRES_PORT,
            database=settings.POSTGRES_DATABASE,
            user=settings.POSTGRES_USER,
            password=settings.POSTGRES_PASSWORD,
            min_size=settings.POSTGRES_POOL_MIN_SIZE,
            max_size=settings.POSTGRES_POOL_MAX_SIZE,
        )

    @property
    def target(self) -> str:
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    @property
    def is_open(self) -> bool:
        return self._pool is not None

    async def __aenter__(self) -> "PostgresConnectionPool":
        await self.initialize()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def initialize(self) -> None:
        """Create the pool, retrying while the server refuses connections."""
        if self._pool is not None:
            return

        policy = self.connect_retry
        for attempt in range(1, policy.max_attempts + 1):
            try:
                self._pool = await asyncpg.create_pool(
                    host=self.host,
                    port=self.port,
                    database=self.database,
                    user=self.user,
                    password=self.password,
                    min_size=self.min_size,
                    max_size=self.max_size,
                    command_timeout=self.command_timeout,
                )
            except TRANSIENT_CONNECT_ERRORS as e:
                if attempt == policy.max_attempts:
                    logger.error(
                        f"PostgreSQL pool for {self.target} failed after {attempt} attempts"
                    )
                    raise
                logger.warning(f"PostgreSQL connect attempt {attempt} failed, retrying: {e}")
                await asyncio.sleep(policy.delay_after(attempt))
                continue

            logger.info(
                f"✅ PostgreSQL pool ready: {self.target} (size {self.min_size}-{self.max_size})"
            )
            return

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Borrow a connection, opening the pool on first use."""
        await self.initialize()
        async with self._pool.acquire() as conn:
            yield conn

    async def fetch_all(
        self, query: str, *args, timeout: Optional[float] = None
    ) -> List[asyncpg.Record]:
        async with self.acquire() as conn:
            return await conn.fetch(query, *args, timeout=timeout)

    async def copy_records(
        self,
        table: str,
        records: Sequence[tuple],
        columns: Sequence[str],
        timeout: Optional[float] = None,
    ) -> str:
        """
        Load `records` into `table` with one COPY, committed as a single
        transaction.

        Returns:
            Server status string, e.g. "COPY 500"
        """
        async with self.acquire() as conn:
            async with conn.transaction():
                return await conn.copy_records_to_table(
                    table, records=records, columns=list(columns), timeout=timeout
                )

    async def close(self) -> None:
        if self._pool is None:
            return
        pool, self._pool = self._pool, None
        await pool.close()
        logger.info(f"PostgreSQL pool closed ({self.target})")
