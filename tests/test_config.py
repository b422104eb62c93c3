"""
Tests for environment-driven settings.
"""

import pytest
from pydantic import ValidationError

from crudbench.config import Settings


def test_defaults(monkeypatch) -> None:
    monkeypatch.delenv("API_BASE_URL", raising=False)
    settings = Settings(_env_file=None)

    assert settings.API_BASE_URL == "http://localhost:3000"
    assert settings.READINESS_MAX_ATTEMPTS == 60
    assert settings.BULK_SIZES == [100, 500, 1000, 2000]
    assert settings.CONCURRENCY_LEVELS == [10, 25, 50, 100]
    assert settings.RANDOM_SEED is None


def test_environment_overrides(monkeypatch) -> None:
    monkeypatch.setenv("API_BASE_URL", "http://api:8080")
    monkeypatch.setenv("RANDOM_SEED", "42")
    monkeypatch.setenv("BULK_SIZES", "[10, 20]")
    monkeypatch.setenv("MONGO_HOST", "mongo")

    settings = Settings(_env_file=None)

    assert settings.API_BASE_URL == "http://api:8080"
    assert settings.RANDOM_SEED == 42
    assert settings.BULK_SIZES == [10, 20]
    assert settings.mongo_url == "mongodb://mongo:27017"


@pytest.mark.parametrize(
    "name, value",
    [
        ("AGGREGATION_ITERATIONS", "0"),
        ("REQUESTS_PER_CLIENT", "0"),
        ("CONCURRENCY_LEVELS", "[10, 0]"),
        ("BULK_SIZES", "[-1]"),
    ],
)
def test_advanced_counts_must_be_positive(monkeypatch, name, value) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(ValidationError):
        Settings(_env_file=None)
