"""Application configuration (settings and environment).

Single source of truth for all configuration. Uses pydantic-settings
with .env support. Engine tunables (cache TTL, scheduler window, batch
sizes) live here so tests and deployments override them the same way.
"""

import re
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_HHMM_RE = re.compile(r"^([01]?\d|2[0-3]):[0-5]\d$")


class Settings(BaseSettings):
    """Application settings loaded from environment and .env.

    Only database_url is required for the HTTP app and repositories; the
    engine services can be built without a database (tests inject fakes).
    """

    # App
    app_name: str = "taskflow"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # Database (PostgreSQL via asyncpg; SQLite via aiosqlite in tests)
    database_url: str = ""
    database_echo: bool = False
    db_pool_size: int | None = None
    db_max_overflow: int | None = None
    db_command_timeout: int | None = None

    # Entity cache: "memory" (per process) or "redis" (shared)
    cache_backend: str = "memory"
    cache_ttl_seconds: int = 300
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_db: int = 0
    redis_password: SecretStr | None = None

    # Wall-clock interpretation for schedules, date tokens and due dates
    timezone: str = "UTC"
    date_format: str = "%d.%m.%Y"
    time_format: str = "%H:%M:%S"

    # Scheduler
    scheduler_window_minutes: int = 15
    due_date_batch_size: int = 10
    due_date_batch_delay_ms: int = 100
    default_due_date_check_time: str = "09:00"
    # Claim scheduled runs with a compare-and-swap on last_executed before executing.
    scheduler_exclusive_runs: bool = False
    # If set, POST /scheduler/run must send X-Scheduler-Secret with this value.
    scheduler_secret: SecretStr | None = None

    # Actions
    batch_update_limit: int = 50
    # Partial runs are recorded but not notified unless this is enabled.
    notify_on_partial: bool = False

    # OpenTelemetry spans around engine entry points (no-op without an SDK).
    telemetry_enabled: bool = True
    telemetry_exporter: str = "none"  # console, otlp, none
    telemetry_otlp_endpoint: str | None = None
    telemetry_sample_rate: float = 1.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    @model_validator(mode="after")
    def validate_engine_settings(self) -> "Settings":
        """Validate timezone, cache backend and scheduler tunables."""
        try:
            ZoneInfo(self.timezone)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(
                f"timezone must be a valid IANA zone name, got: {self.timezone!r}"
            ) from e
        if self.cache_backend not in ("memory", "redis"):
            raise ValueError(
                f"cache_backend must be 'memory' or 'redis', got: {self.cache_backend!r}"
            )
        if not _HHMM_RE.match(self.default_due_date_check_time):
            raise ValueError(
                "default_due_date_check_time must use HH:MM format, "
                f"got: {self.default_due_date_check_time!r}"
            )
        if self.due_date_batch_size < 1:
            raise ValueError("due_date_batch_size must be at least 1")
        if self.batch_update_limit < 1:
            raise ValueError("batch_update_limit must be at least 1")
        if self.cache_ttl_seconds < 1:
            raise ValueError("cache_ttl_seconds must be at least 1")
        return self

    @property
    def tzinfo(self) -> ZoneInfo:
        """Configured timezone as a ZoneInfo."""
        return ZoneInfo(self.timezone)


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
