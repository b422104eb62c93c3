"""
Tests for ScenarioRunner against the in-process stub API.
"""

import logging
import random

import pytest

from crudbench.core.scenario_runner import ScenarioRunner
from crudbench.models import MONGODB, POSTGRES, PRODUCT_CATEGORIES, ScenarioConfig

pytestmark = pytest.mark.asyncio


async def test_operation_mix_for_hundred(api_client, stub_state) -> None:
    """N=100 issues 100 reads, 20 writes, 30 complex and 50 product queries."""
    async with api_client:
        runner = ScenarioRunner(api_client.for_backend(POSTGRES), rng=random.Random(1))
        result = await runner.run(ScenarioConfig(name="Light", operations=100))

    assert stub_state.count("postgres", "read") == 100
    assert stub_state.count("postgres", "write") == 20
    assert stub_state.count("postgres", "complexQuery") == 30
    assert stub_state.count("postgres", "productQuery") == 50
    assert stub_state.count("mongodb", "read") == 0

    assert list(result) == ["read", "write", "complexQuery", "productQuery"]
    assert result["read"].total_operations == 100
    assert result["write"].total_operations == 20
    assert result["complexQuery"].total_operations == 30
    assert result["productQuery"].total_operations == 50
    assert all(stats.success_rate == "100.00" for stats in result.values())


async def test_counts_are_floored(api_client, stub_state) -> None:
    async with api_client:
        runner = ScenarioRunner(api_client.for_backend(MONGODB))
        result = await runner.run(ScenarioConfig(name="Tiny", operations=7))

    assert stub_state.count("mongodb", "read") == 7
    assert stub_state.count("mongodb", "write") == 1
    assert stub_state.count("mongodb", "complexQuery") == 2
    assert stub_state.count("mongodb", "productQuery") == 3
    assert result["write"].total_operations == 1


async def test_parameters_stay_in_range(api_client, stub_state) -> None:
    async with api_client:
        runner = ScenarioRunner(
            api_client.for_backend(POSTGRES), corpus_size=5, rng=random.Random(3)
        )
        await runner.run(ScenarioConfig(name="Light", operations=40))

    user_ids = {
        int(path.split("/")[4])
        for path in stub_state.paths
        if path.startswith("/api/pg/users/")
    }
    assert user_ids <= {1, 2, 3, 4, 5}

    product_paths = [p for p in stub_state.paths if p.startswith("/api/pg/products")]
    assert len(product_paths) == 20
    assert all("limit=20" in p and "category=" in p for p in product_paths)


async def test_categories_come_from_fixed_set(api_client, stub_state, monkeypatch) -> None:
    seen = []
    api = api_client.for_backend(POSTGRES)
    original = api.list_products

    async def recording_list_products(category, limit):
        seen.append((category, limit))
        return await original(category, limit)

    monkeypatch.setattr(api, "list_products", recording_list_products)

    async with api_client:
        await ScenarioRunner(api, rng=random.Random(5)).run(
            ScenarioConfig(name="Light", operations=60)
        )

    assert len(seen) == 30
    assert {category for category, _ in seen} <= set(PRODUCT_CATEGORIES)
    assert {limit for _, limit in seen} == {20}


async def test_seeded_runs_are_reproducible(api_client, stub_state) -> None:
    scenario = ScenarioConfig(name="Light", operations=20)

    async with api_client:
        api = api_client.for_backend(POSTGRES)
        await ScenarioRunner(api, rng=random.Random(42)).run(scenario)
        first = list(stub_state.paths)
        stub_state.paths.clear()
        await ScenarioRunner(api, rng=random.Random(42)).run(scenario)
        second = list(stub_state.paths)

    assert first == second


async def test_failing_phase_is_omitted(api_client, stub_state) -> None:
    """A phase where every operation fails yields no stats; other phases still run."""
    stub_state.fail_kinds.add("complexQuery")

    async with api_client:
        runner = ScenarioRunner(api_client.for_backend(POSTGRES))
        result = await runner.run(ScenarioConfig(name="Light", operations=10))

    assert "complexQuery" not in result
    assert set(result) == {"read", "write", "productQuery"}
    assert stub_state.count("postgres", "complexQuery") == 3
    assert stub_state.count("postgres", "productQuery") == 5


async def test_progress_is_logged(api_client, caplog) -> None:
    caplog.set_level(logging.INFO, logger="crudbench.core.scenario_runner")

    async with api_client:
        runner = ScenarioRunner(api_client.for_backend(POSTGRES), progress_interval=5)
        await runner.run(ScenarioConfig(name="Light", operations=10))

    messages = [r.getMessage() for r in caplog.records]
    assert any("Progress: 5/10" in m for m in messages)
    assert any("Progress: 10/10" in m for m in messages)


async def test_invalid_corpus_size_rejected(api_client) -> None:
    with pytest.raises(ValueError):
        ScenarioRunner(api_client.for_backend(POSTGRES), corpus_size=0)
