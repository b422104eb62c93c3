"""
MongoDB Connection

Owns one pooled `AsyncMongoClient` bound to the benchmark database.
Startup is verified with a ping and retried like the Postgres pool.
"""

import asyncio
import logging
from typing import Optional

from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import ConnectionFailure

from crudbench.config import settings
from crudbench.core.readiness import RetryPolicy

logger = logging.getLogger(__name__)


class MongoConnection:
    def __init__(
        self,
        url: str,
        database: str,
        min_pool_size: int = 5,
        max_pool_size: int = 20,
        server_selection_timeout_ms: int = 5000,
        connect_retry: Optional[RetryPolicy] = None,
    ):
        self.url = url
        self.database_name = database
        self.min_pool_size = min_pool_size
        self.max_pool_size = max_pool_size
        self.server_selection_timeout_ms = server_selection_timeout_ms
        self.connect_retry = connect_retry or RetryPolicy(
            max_attempts=3, interval_seconds=1.0, backoff_multiplier=2.0
        )

        self._client: Optional[AsyncMongoClient] = None

    @classmethod
    def from_settings(cls) -> "MongoConnection":
        return cls(
            url=settings.mongo_url,
            database=settings.MONGO_DATABASE,
            min_pool_size=settings.MONGO_POOL_MIN_SIZE,
            max_pool_size=settings.MONGO_POOL_MAX_SIZE,
            server_selection_timeout_ms=settings.MONGO_SERVER_SELECTION_TIMEOUT_MS,
        )

    def _new_client(self) -> AsyncMongoClient:
        return AsyncMongoClient(
            self.url,
            minPoolSize=self.min_pool_size,
            maxPoolSize=self.max_pool_size,
            serverSelectionTimeoutMS=self.server_selection_timeout_ms,
        )

    async def initialize(self) -> None:
        """Connect and ping; a client that fails the ping is closed before retrying."""
        if self._client is not None:
            return

        policy = self.connect_retry
        for attempt in range(1, policy.max_attempts + 1):
            client = self._new_client()
            try:
                await client.admin.command("ping")
            except ConnectionFailure as e:
                await client.close()
                if attempt == policy.max_attempts:
                    logger.error(f"MongoDB at {self.url} unreachable after {attempt} attempts")
                    raise
                logger.warning(f"MongoDB connect attempt {attempt} failed, retrying: {e}")
                await asyncio.sleep(policy.delay_after(attempt))
                continue

            self._client = client
            logger.info(
                f"✅ MongoDB connected: {self.url}/{self.database_name} "
                f"(pool {self.min_pool_size}-{self.max_pool_size})"
            )
            return

    @property
    def db(self) -> AsyncDatabase:
        if self._client is None:
            raise RuntimeError("MongoDB client not initialized")
        return self._client[self.database_name]

    async def close(self) -> None:
        if self._client is None:
            return
        client, self._client = self._client, None
        await client.close()
        logger.info("MongoDB client closed")
