"""
Application settings.

All values can be overridden through environment variables (or a local
`.env` file) using the upper-case field name, e.g. `API_BASE_URL`.
"""

from typing import List, Optional

from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Benchmark harness configuration."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # System under test (HTTP API)
    API_BASE_URL: str = "http://localhost:3000"
    HTTP_TIMEOUT_SECONDS: float = 10.0
    HTTP_CONNECT_TIMEOUT_SECONDS: float = 2.0
    HTTP_MAX_CONNECTIONS: int = Field(default=20, ge=1)
    HTTP_KEEPALIVE_EXPIRY_SECONDS: float = 30.0

    # Readiness wait
    READINESS_MAX_ATTEMPTS: int = 60
    READINESS_INTERVAL_SECONDS: float = 1.0
    READINESS_PROBE_TIMEOUT_SECONDS: float = 2.0

    # Workload
    CORPUS_SIZE: int = 1000
    PRODUCT_QUERY_LIMIT: int = 20
    PROGRESS_INTERVAL: int = 200
    RANDOM_SEED: Optional[int] = None
    SCENARIOS_FILE: Optional[str] = None

    # Persistence
    RESULTS_DIR: str = "benchmarks"

    # PostgreSQL (advanced mode talks to the stores directly)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_DATABASE: str = "ecommerce"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_POOL_MIN_SIZE: int = 5
    POSTGRES_POOL_MAX_SIZE: int = 20

    # MongoDB
    MONGO_HOST: str = "localhost"
    MONGO_PORT: int = 27017
    MONGO_DATABASE: str = "ecommerce"
    MONGO_POOL_MIN_SIZE: int = 5
    MONGO_POOL_MAX_SIZE: int = 20
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = 5000

    # Advanced mode
    BULK_SIZES: List[PositiveInt] = [100, 500, 1000, 2000]
    AGGREGATION_ITERATIONS: int = Field(default=100, ge=1)
    CONCURRENCY_LEVELS: List[PositiveInt] = [10, 25, 50, 100]
    REQUESTS_PER_CLIENT: int = Field(default=10, ge=1)

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    LOG_FILE: Optional[str] = None

    @property
    def mongo_url(self) -> str:
        return f"mongodb://{self.MONGO_HOST}:{self.MONGO_PORT}"


settings = Settings()
