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
    app_name: str = "Taskhive"
    app_env: str = "development"  # development, testing, production
    debug: bool = False
    enable_openapi: bool = True

    # Registry database
    database_url: str
    database_pool_size: int = 5
    database_max_overflow: int = 10
    database_statement_cache_size: int = 100
    database_ssl_mode: str = "prefer"  # disable, prefer, require, verify-ca, verify-full
    database_migrations_url: str | None = None

    # Tenant databases
    database_admin_database: str = "postgres"
    tenant_database_prefix: str = "project_"
    tenant_pool_size: int = 10
    tenant_max_overflow: int = 0
    tenant_pool_timeout_seconds: float = 2.0
    tenant_pool_recycle_seconds: int = 1800
    tenant_idle_window_seconds: float = 30.0
    tenant_idle_check_interval_seconds: float = 15.0
    tenant_drain_timeout_seconds: float = 30.0
    tenant_cancel_grace_seconds: float = 5.0

    # Provisioning retries
    provisioning_max_attempts: int = 3
    provisioning_initial_backoff_seconds: float = 0.5
    provisioning_backoff_coefficient: float = 2.0

    # Workflow engine
    operation_timeout_seconds: float = 10.0
    workflow_allow_initial_assignment: bool = True
    workflow_allow_self_transition: bool = True

    # Shutdown
    shutdown_grace_period: int = 30

    # Temporal
    temporal_host: str = "localhost:7233"
    temporal_namespace: str = "default"
    temporal_task_queue: str = "taskhive.projects"

    # CORS
    cors_origins: list[str] = ["http://localhost:3000"]

    # Metrics
    metrics_api_key: str | None = None  # If set, /metrics requires this key

    @field_validator("cors_origins")
    @classmethod
    def validate_cors_origins(cls, v: list[str]) -> list[str]:
        """Reject wildcards since credentials are allowed."""
        for origin in v:
            if origin == "*":
                raise ValueError(
                    "CORS wildcard '*' is not allowed when allow_credentials=True. "
                    "Specify explicit origins instead."
                )
        return v

    @field_validator("tenant_database_prefix")
    @classmethod
    def validate_tenant_database_prefix(cls, v: str) -> str:
        allowed = all(c.islower() or c.isdigit() or c == "_" for c in v)
        if not v or not v[0].isalpha() or not allowed:
            raise ValueError(
                "TENANT_DATABASE_PREFIX must start with a letter and contain only "
                "lowercase letters, digits and underscores"
            )
        return v

    @field_validator("provisioning_max_attempts")
    @classmethod
    def validate_provisioning_max_attempts(cls, v: int) -> int:
        if v < 1:
            raise ValueError("PROVISIONING_MAX_ATTEMPTS must be at least 1")
        return v


@lru_cache
def get_settings() -> Settings:
    return Settings()
