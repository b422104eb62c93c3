"""
Direct store access for advanced mode.

Bulk inserts and aggregate queries bypass the HTTP API and talk to the
databases through their native async drivers. Each store exposes the
same small surface so the advanced orchestrator can treat them alike.
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any, Dict, List, Tuple

import asyncpg
from pymongo.errors import PyMongoError

from crudbench.connectors.mongo_client import MongoConnection
from crudbench.connectors.postgres_pool import PostgresConnectionPool
from crudbench.core.errors import StoreUnavailableError
from crudbench.models import MONGODB, POSTGRES, BackendTarget

logger = logging.getLogger(__name__)

_STORE_HINT = (
    "Advanced tests connect to the databases directly; check the "
    "POSTGRES_* and MONGO_* settings."
)

AVG_ORDER_TOTAL = "avgOrderTotal"
CATEGORY_STATS = "categoryStats"
AGGREGATIONS: Tuple[str, ...] = (AVG_ORDER_TOTAL, CATEGORY_STATS)

# Mongo user ids continue after the seeded range when the collection is empty
MONGO_FIRST_BULK_ID = 10000


def _bulk_user(batch_token: str, i: int) -> Tuple[str, str]:
    return f"Bulk User {batch_token}-{i}", f"bulk{batch_token}-{i}@test.com"


class BenchmarkStore(ABC):
    """A backend reachable through its native driver."""

    target: BackendTarget

    async def __aenter__(self) -> "BenchmarkStore":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @abstractmethod
    async def open(self) -> None: ...

    @abstractmethod
    async def close(self) -> None: ...

    @abstractmethod
    async def insert_users_bulk(self, count: int) -> int:
        """Insert `count` users in one bulk round trip; return rows written."""

    @abstractmethod
    async def run_aggregation(self, name: str) -> List[Any]:
        """Execute the named aggregate query once and return its rows."""


class PostgresBenchmarkStore(BenchmarkStore):
    """PostgreSQL via the asyncpg pool."""

    target = POSTGRES

    QUERIES: Dict[str, str] = {
        AVG_ORDER_TOTAL: """
            SELECT u.id, u.name, AVG(o.total) AS avg_order_total, COUNT(o.id) AS order_count
            FROM users u
            LEFT JOIN orders o ON u.id = o.user_id
            GROUP BY u.id, u.name
            HAVING COUNT(o.id) > 0
            LIMIT 10
        """,
        CATEGORY_STATS: """
            SELECT p.category, COUNT(p.id) AS product_count, COUNT(r.id) AS review_count
            FROM products p
            LEFT JOIN reviews r ON p.id = r.product_id
            GROUP BY p.category
            ORDER BY product_count DESC
        """,
    }

    def __init__(self, pool: PostgresConnectionPool):
        self.pool = pool

    async def open(self) -> None:
        try:
            await self.pool.initialize()
        except (asyncpg.PostgresError, OSError) as e:
            raise StoreUnavailableError(
                f"Cannot connect to PostgreSQL: {e}", hint=_STORE_HINT
            ) from e

    async def close(self) -> None:
        await self.pool.close()

    async def insert_users_bulk(self, count: int) -> int:
        token = str(time.time_ns())
        records = [_bulk_user(token, i) for i in range(count)]
        status = await self.pool.copy_records("users", records, columns=("name", "email"))
        logger.debug(f"Postgres bulk insert: {status}")
        return count

    async def run_aggregation(self, name: str) -> List[Any]:
        try:
            query = self.QUERIES[name]
        except KeyError:
            raise ValueError(f"Unknown aggregation '{name}'") from None
        return await self.pool.fetch_all(query)


class MongoBenchmarkStore(BenchmarkStore):
    """MongoDB via the pymongo async client."""

    target = MONGODB

    PIPELINES: Dict[str, Tuple[str, List[Dict[str, Any]]]] = {
        AVG_ORDER_TOTAL: (
            "users",
            [
                {"$match": {"orders.0": {"$exists": True}}},
                {
                    "$project": {
                        "name": 1,
                        "avg_order_total": {"$avg": "$orders.total"},
                        "order_count": {"$size": "$orders"},
                    }
                },
                {"$limit": 10},
            ],
        ),
        CATEGORY_STATS: (
            "products",
            [
                {
                    "$group": {
                        "_id": "$category",
                        "product_count": {"$sum": 1},
                        "review_count": {"$sum": {"$size": {"$ifNull": ["$reviews", []]}}},
                    }
                },
                {"$sort": {"product_count": -1}},
            ],
        ),
    }

    def __init__(self, connection: MongoConnection):
        self.connection = connection

    async def open(self) -> None:
        try:
            await self.connection.initialize()
        except PyMongoError as e:
            raise StoreUnavailableError(
                f"Cannot connect to MongoDB: {e}", hint=_STORE_HINT
            ) from e

    async def close(self) -> None:
        await self.connection.close()

    async def insert_users_bulk(self, count: int) -> int:
        users = self.connection.db["users"]
        last = await users.find_one({}, sort=[("_id", -1)], projection={"_id": 1})
        start_id = last["_id"] + 1 if last else MONGO_FIRST_BULK_ID

        token = str(time.time_ns())
        now = datetime.now(UTC)
        docs = []
        for i in range(count):
            name, email = _bulk_user(token, i)
            docs.append(
                {"_id": start_id + i, "name": name, "email": email, "created_at": now, "orders": []}
            )

        result = await users.insert_many(docs, ordered=False)
        return len(result.inserted_ids)

    async def run_aggregation(self, name: str) -> List[Any]:
        try:
            collection, pipeline = self.PIPELINES[name]
        except KeyError:
            raise ValueError(f"Unknown aggregation '{name}'") from None
        cursor = await self.connection.db[collection].aggregate(pipeline)
        return await cursor.to_list()
