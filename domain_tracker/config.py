from typing import Optional
from urllib.parse import urlparse

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ALLOWED_PREFERENCE_BACKENDS = {"redis", "memory"}
_ALLOWED_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _require_absolute_http_url(value: str, name: str) -> str:
    parsed = urlparse(value)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"{name} must be an absolute http/https URL")
    return value


class Settings(BaseSettings):
    # Runtime environment
    environment: str = "development"

    # Domain probe
    probe_url: str = "https://www.google.com/searchdomaincheck?format=domain&type=chrome"
    default_domain: str = "http://www.google.com/"
    probe_response_prefix: str = ".google."
    probe_max_retries: int = 5
    probe_timeout_seconds: float = 10.0
    probe_retry_backoff_seconds: float = 0.0
    startup_delay_seconds: float = 5.0
    disable_background_networking: bool = False

    # Preference store
    preference_backend: str = "redis"
    redis_url: str = "redis://localhost:6379/0"
    pref_last_known_domain_key: str = "domain_tracker:last_known_domain"
    pref_last_prompted_domain_key: str = "domain_tracker:last_prompted_domain"

    # API versioning
    api_latest_version: str = "v1"
    api_supported_versions: list[str] = ["v1"]

    # Readiness checks
    redis_health_required: bool = False

    # Observability
    log_level: str = "INFO"
    enable_optional_observability: bool = True
    metrics_enabled: bool = True
    otel_exporter_otlp_endpoint: Optional[str] = None
    otel_service_name: str = "domain-tracker"
    sentry_dsn: Optional[str] = None
    sentry_environment: str = "development"
    sentry_traces_sample_rate: float = 0.0

    # Request security controls
    trusted_hosts: list[str] = ["localhost", "127.0.0.1", "testserver"]
    security_headers_enabled: bool = True

    # CORS
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8000",
        "http://127.0.0.1:8000",
    ]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("probe_url")
    @classmethod
    def validate_probe_url(cls, value: str) -> str:
        return _require_absolute_http_url(value, "PROBE_URL")

    @field_validator("default_domain")
    @classmethod
    def validate_default_domain(cls, value: str) -> str:
        return _require_absolute_http_url(value, "DEFAULT_DOMAIN")

    @field_validator("probe_response_prefix")
    @classmethod
    def validate_probe_response_prefix(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("PROBE_RESPONSE_PREFIX must not be empty")
        return value.strip()

    @field_validator("probe_max_retries")
    @classmethod
    def validate_probe_max_retries(cls, value: int) -> int:
        if value < 0:
            raise ValueError("PROBE_MAX_RETRIES must be zero or positive")
        return value

    @field_validator("startup_delay_seconds")
    @classmethod
    def validate_startup_delay(cls, value: float) -> float:
        if value < 0:
            raise ValueError("STARTUP_DELAY_SECONDS must be zero or positive")
        return value

    @field_validator("preference_backend")
    @classmethod
    def validate_preference_backend(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in _ALLOWED_PREFERENCE_BACKENDS:
            allowed = ", ".join(sorted(_ALLOWED_PREFERENCE_BACKENDS))
            raise ValueError(f"PREFERENCE_BACKEND must be one of: {allowed}")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _ALLOWED_LOG_LEVELS:
            allowed = ", ".join(sorted(_ALLOWED_LOG_LEVELS))
            raise ValueError(f"LOG_LEVEL must be one of: {allowed}")
        return normalized


settings = Settings()
