"""
Global pytest configuration and fixtures for crudbench tests.

This module provides:
- An in-process stub of the system-under-test API (FastAPI)
- ApiClient fixtures wired to the stub through httpx.ASGITransport
- A results store rooted in a temporary directory

No database or network access is required.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from dataclasses import dataclass, field
from typing import List, Set

import httpx
import pytest
from fastapi import FastAPI, HTTPException, Request

from crudbench.connectors.api_client import ApiClient
from crudbench.core.results_store import ResultsStore

ROUTE_PREFIXES = {"pg": "postgres", "mongo": "mongodb"}


@dataclass
class StubState:
    """Knobs and counters shared between a test and the stub API."""

    latency_seconds: float = 0.001
    healthy: bool = True
    # Operation kinds ("read", "write", "complexQuery", "productQuery") that return 500
    fail_kinds: Set[str] = field(default_factory=set)
    calls: Counter = field(default_factory=Counter)
    paths: List[str] = field(default_factory=list)

    def count(self, backend: str, kind: str) -> int:
        return self.calls[(backend, kind)]


def create_stub_app(state: StubState) -> FastAPI:
    app = FastAPI()

    async def handle(request: Request, backend: str, kind: str) -> None:
        if backend not in ROUTE_PREFIXES:
            raise HTTPException(status_code=404, detail="unknown backend")
        state.calls[(ROUTE_PREFIXES[backend], kind)] += 1
        state.paths.append(str(request.url.path) + (f"?{request.url.query}" if request.url.query else ""))
        await asyncio.sleep(state.latency_seconds)
        if kind in state.fail_kinds:
            raise HTTPException(status_code=500, detail="injected failure")

    @app.get("/health")
    async def health():
        if not state.healthy:
            raise HTTPException(status_code=503, detail="starting")
        return {"status": "ok"}

    @app.get("/api/{backend}/users/{user_id}")
    async def get_user(backend: str, user_id: int, request: Request):
        await handle(request, backend, "read")
        return {"id": user_id, "name": f"User {user_id}"}

    @app.get("/api/{backend}/users/{user_id}/orders")
    async def get_user_orders(backend: str, user_id: int, request: Request):
        await handle(request, backend, "complexQuery")
        return [{"id": 1, "user_id": user_id, "total": 10.0}]

    @app.get("/api/{backend}/products")
    async def list_products(backend: str, category: str, limit: int, request: Request):
        await handle(request, backend, "productQuery")
        return [{"id": i, "category": category} for i in range(min(limit, 3))]

    @app.post("/api/{backend}/users", status_code=201)
    async def create_user(backend: str, request: Request):
        await handle(request, backend, "write")
        payload = await request.json()
        return {"id": 1001, **payload}

    return app


@pytest.fixture
def stub_state() -> StubState:
    return StubState()


@pytest.fixture
def stub_app(stub_state: StubState) -> FastAPI:
    return create_stub_app(stub_state)


@pytest.fixture
def api_client(stub_app: FastAPI) -> ApiClient:
    """ApiClient bound to the stub app; not yet opened."""
    return ApiClient(
        base_url="http://testserver",
        timeout_seconds=5.0,
        transport=httpx.ASGITransport(app=stub_app),
    )


@pytest.fixture
def results_store(tmp_path) -> ResultsStore:
    return ResultsStore(tmp_path / "benchmarks")
