from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="allow")

    environment: Literal["development", "staging", "production"] = "development"

    log_level: str = "INFO"

    # Tracing
    otel_exporter_otlp_endpoint: str | None = None
    otel_exporter_otlp_headers: str | None = None
    tracing_console_export: bool = False

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 8000

    # Internal API security
    internal_api_key: str = ""

    # Upstream push service
    upstream_url: str = "https://prima789.net"
    upstream_socketio_path: str = "socket.io"
    upstream_strategy_names: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["polling-only", "polling-upgrade", "polling-browser-headers"]
    )
    upstream_default_timeout_seconds: float = 10.0
    upstream_header_timeout_seconds: float = 20.0
    upstream_user_agent: str = "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36"
    upstream_probe_timeout_seconds: float = 5.0

    @field_validator("upstream_strategy_names", mode="before")
    @classmethod
    def _parse_strategy_names(cls, value: object) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        if isinstance(value, (list, tuple)):
            return [str(item).strip() for item in value if str(item).strip()]
        return []

    # Session attempt resolution
    bridge_grace_window_seconds: float = 5.0
    bridge_overall_deadline_seconds: float | None = None

    # Fallback member synthesis
    fallback_enabled: bool = True
    fallback_balance_fuzz: float = 0.0


@lru_cache
def get_settings() -> Settings:
    return Settings()  # type: ignore[arg-type]


settings = get_settings()
