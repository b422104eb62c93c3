"""
System-Under-Test API Client

Async HTTP client (httpx) for the benchmarked service. One pooled
connection set is shared by every backend route within a run; the
concurrency test opens a wider pool per level.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from crudbench.config import settings
from crudbench.models.backend import BackendTarget

logger = logging.getLogger(__name__)


class ApiClient:
    """
    Pooled HTTP client for the system under test.

    The client is an explicitly owned resource: open it with `async with`
    (or `open()` / `close()`) and pass it to the components that need it.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        connect_timeout_seconds: float = 2.0,
        max_connections: int = 20,
        keepalive_expiry_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            base_url: Root URL of the service, e.g. http://localhost:3000
            timeout_seconds: Per-request timeout
            connect_timeout_seconds: Connection establishment timeout
            max_connections: Upper bound of pooled connections
            keepalive_expiry_seconds: Idle time before a pooled connection is dropped
            transport: Optional transport override (in-process apps in tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds
        self.max_connections = max_connections
        self.keepalive_expiry_seconds = keepalive_expiry_seconds
        self.timeout = httpx.Timeout(timeout_seconds, connect=connect_timeout_seconds)
        self.limits = httpx.Limits(
            max_connections=max_connections,
            max_keepalive_connections=max_connections,
            keepalive_expiry=keepalive_expiry_seconds,
        )
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @classmethod
    def from_settings(cls, base_url: Optional[str] = None) -> "ApiClient":
        return cls(
            base_url=base_url or settings.API_BASE_URL,
            timeout_seconds=settings.HTTP_TIMEOUT_SECONDS,
            connect_timeout_seconds=settings.HTTP_CONNECT_TIMEOUT_SECONDS,
            max_connections=settings.HTTP_MAX_CONNECTIONS,
            keepalive_expiry_seconds=settings.HTTP_KEEPALIVE_EXPIRY_SECONDS,
        )

    def with_pool_size(self, max_connections: int) -> "ApiClient":
        """
        Unopened client for the same service whose pool holds at least
        `max_connections` connections.
        """
        return ApiClient(
            base_url=self.base_url,
            timeout_seconds=self.timeout_seconds,
            connect_timeout_seconds=self.connect_timeout_seconds,
            max_connections=max(max_connections, self.max_connections),
            keepalive_expiry_seconds=self.keepalive_expiry_seconds,
            transport=self._transport,
        )

    async def __aenter__(self) -> "ApiClient":
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def open(self) -> None:
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            limits=self.limits,
            transport=self._transport,
        )
        logger.info(f"HTTP client opened for {self.base_url}")

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("HTTP client closed")

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("ApiClient is not open")
        return self._client

    async def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue one request; non-2xx responses raise `httpx.HTTPStatusError`."""
        response = await self.client.request(method, path, **kwargs)
        response.raise_for_status()
        return response

    async def health(self, timeout: Optional[float] = None) -> httpx.Response:
        return await self.request("GET", "/health", **_timeout_kwargs(timeout))

    def for_backend(self, target: BackendTarget) -> "BackendApi":
        return BackendApi(self, target)


class BackendApi:
    """The four workload endpoints of one backend, bound to a shared client."""

    def __init__(self, api: ApiClient, target: BackendTarget):
        self.api = api
        self.target = target

    def _path(self, suffix: str) -> str:
        return f"{self.target.route_prefix}{suffix}"

    async def get_user(self, user_id: int, timeout: Optional[float] = None) -> httpx.Response:
        return await self.api.request(
            "GET", self._path(f"/users/{user_id}"), **_timeout_kwargs(timeout)
        )

    async def get_user_orders(self, user_id: int) -> httpx.Response:
        return await self.api.request("GET", self._path(f"/users/{user_id}/orders"))

    async def list_products(self, category: str, limit: int) -> httpx.Response:
        return await self.api.request(
            "GET",
            self._path("/products"),
            params={"category": category, "limit": limit},
        )

    async def create_user(self, payload: Dict[str, Any]) -> httpx.Response:
        return await self.api.request("POST", self._path("/users"), json=payload)


def _timeout_kwargs(timeout: Optional[float]) -> Dict[str, Any]:
    # httpx treats timeout=None as "no timeout"; omit it to keep the client default.
    return {} if timeout is None else {"timeout": timeout}
