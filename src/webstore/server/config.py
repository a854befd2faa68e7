"""Server configuration from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class Settings:
    """Application settings loaded from environment."""

    mongo_uri: str = ""
    database_name: str = "webstore"
    host: str = "0.0.0.0"
    port: int = 3000

    # Upper bound on every storage call, in seconds
    storage_timeout_seconds: float = 5.0

    # Observability
    metrics_enabled: bool = True
    log_format: str = "pretty"  # "json" or "pretty"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> Settings:
        return cls(
            mongo_uri=os.environ.get("MONGO_URI", ""),
            database_name=os.environ.get("DATABASE_NAME", "webstore"),
            host=os.environ.get("HOST", "0.0.0.0"),
            port=int(os.environ.get("PORT", "3000")),
            storage_timeout_seconds=float(os.environ.get("STORAGE_TIMEOUT_SECONDS", "5.0")),
            metrics_enabled=os.environ.get("METRICS_ENABLED", "true").lower() in ("true", "1", "yes"),
            log_format=os.environ.get("LOG_FORMAT", "pretty"),
            log_level=os.environ.get("LOG_LEVEL", "INFO").upper(),
        )


settings = Settings.from_env()
