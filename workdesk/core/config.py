"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. The upstream instance and the service credential are
validated at load time.
"""

from functools import lru_cache

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Everything has a default except the upstream instance and the service
    account credential (validated in validate_required).
    """

    # App
    app_name: str = "workdesk"
    app_version: str = "1.0.0"
    debug: bool = False

    # Upstream record store. Instance may be a bare host ("acme.service-now.com")
    # or a full base URL (used as-is, e.g. for local fakes).
    upstream_instance: str = ""
    upstream_username: str = ""
    upstream_password: SecretStr = SecretStr("")
    # When True every session calls upstream with the service credential; the
    # signed-in identity is still used for query scoping.
    use_service_account_for_all: bool = True
    upstream_timeout_ms: int = 15_000
    upstream_retries: int = 1
    upstream_backoff_ms: int = 100

    # Stores: "memory" (single process) or "redis" (shared across instances)
    store_backend: str = "memory"
    session_ttl_seconds: int = 8 * 60 * 60
    session_max_entries: int = 10_000
    name_cache_ttl_seconds: int = 300
    name_cache_max_entries: int = 5_000

    # Unresolved assignment references: pass through (False) or reject (True)
    strict_reference_resolution: bool = False

    # Stop upstream calls when the browser goes away
    cancel_on_disconnect: bool = True
    disconnect_poll_seconds: float = 0.5

    # CORS ("*" allows any origin)
    allowed_origins: str = "http://localhost:5173"

    # Request / middleware
    request_timeout_seconds: int = 60
    request_id_header: str = "X-Request-ID"
    correlation_id_header: str = "X-Correlation-ID"
    rate_limit_enabled: bool = True
    login_rate_limit: str = "10/minute"

    # Redis
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None
    redis_key_prefix: str = "workdesk"

    # OpenTelemetry
    telemetry_enabled: bool = False
    telemetry_exporter: str = "console"
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0
    telemetry_environment: str = "development"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @property
    def upstream_base_url(self) -> str:
        """Base URL for upstream calls (https:// is assumed for bare hosts)."""
        instance = self.upstream_instance.strip().rstrip("/")
        if instance.startswith(("http://", "https://")):
            return instance
        return f"https://{instance}"

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Validate the upstream connection and store backend.

        - UPSTREAM_INSTANCE, UPSTREAM_USERNAME and UPSTREAM_PASSWORD are required.
        - STORE_BACKEND must be 'memory' or 'redis'.
        """
        if not self.upstream_instance.strip():
            raise ValueError(
                "UPSTREAM_INSTANCE is required (e.g. acme.service-now.com). "
                "Set in environment or .env file."
            )
        if not self.upstream_username or not self.upstream_password.get_secret_value():
            raise ValueError(
                "UPSTREAM_USERNAME and UPSTREAM_PASSWORD are required: they form the "
                "service credential used for audit reads and service-account mode."
            )
        if self.store_backend not in ("memory", "redis"):
            raise ValueError(
                f"store_backend must be 'memory' or 'redis', got: {self.store_backend!r}"
            )
        if self.upstream_retries < 0:
            raise ValueError("upstream_retries must be >= 0")
        return self


@lru_cache
def get_settings() -> Settings:
    """Return cached application settings (single instance per process).

    Validation runs on first call, not at import time. In tests, call
    get_settings.cache_clear() before overriding env vars so the next
    get_settings() uses the new values.

    Returns:
        Loaded and validated Settings instance.
    """
    return Settings()
