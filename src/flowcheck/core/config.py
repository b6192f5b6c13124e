from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # App
    app_name: str = "flowcheck"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True  # Set to False in production

    # Database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full

    # Apply Alembic migrations during startup (single-instance deployments)
    run_migrations_on_startup: bool = False

    # Shutdown (in-flight requests and background test runs)
    shutdown_grace_period: int = 30

    # Inbound webhooks
    webhook_secret: str | None = None  # HMAC-SHA256 key for x-webhook-signature
    webhook_api_key: str | None = None  # Shared key for x-api-key
    webhook_auth_mode: str = "hardened"  # hardened, permissive
    webhook_rate_limit: str = "60/minute"

    # Operator API (test cases, test runs, executions)
    operator_api_key: str | None = None  # If set, X-Operator-Key is required

    # External execution engine
    engine_backend: str = "none"  # none, http, temporal
    engine_api_url: str = "http://localhost:5678/api/v1"
    engine_api_key: str | None = None
    engine_request_timeout_seconds: float = 30.0
    engine_max_retries: int = 3
    engine_retry_backoff_seconds: float = 0.5

    # Temporal (engine_backend=temporal)
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "flowcheck-engine"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    @field_validator("webhook_auth_mode")
    @classmethod
    def validate_webhook_auth_mode(cls, v: str) -> str:
        if v not in ("hardened", "permissive"):
            raise ValueError("WEBHOOK_AUTH_MODE must be 'hardened' or 'permissive'")
        return v

    @field_validator("engine_backend")
    @classmethod
    def validate_engine_backend(cls, v: str) -> str:
        if v not in ("none", "http", "temporal"):
            raise ValueError("ENGINE_BACKEND must be one of: none, http, temporal")
        return v

    @field_validator("engine_max_retries")
    @classmethod
    def validate_engine_max_retries(cls, v: int) -> int:
        if v < 0 or v > 10:
            raise ValueError("ENGINE_MAX_RETRIES must be between 0 and 10")
        return v

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Validate CORS origins - reject wildcards when credentials are used."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")


@lru_cache
def get_settings() -> Settings:
    return Settings()
