"""
Backend targets reachable through the system-under-test API.
"""

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class BackendTarget:
    """Static description of one backend under test."""

    key: str
    display_name: str
    route_prefix: str
    results_filename: str
    # Key used by the advanced-test documents
    result_key: str


POSTGRES = BackendTarget(
    key="postgres",
    display_name="PostgreSQL",
    route_prefix="/api/pg",
    results_filename="postgres-results.json",
    result_key="postgresql",
)

MONGODB = BackendTarget(
    key="mongodb",
    display_name="MongoDB",
    route_prefix="/api/mongo",
    results_filename="mongodb-results.json",
    result_key="mongodb",
)

BACKENDS: Dict[str, BackendTarget] = {POSTGRES.key: POSTGRES, MONGODB.key: MONGODB}


def get_backend(key: str) -> BackendTarget:
    try:
        return BACKENDS[key]
    except KeyError:
        raise ValueError(
            f"Unknown backend '{key}' (expected one of: {', '.join(BACKENDS)})"
        ) from None
