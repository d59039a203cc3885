from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # App
    app_env: str = "development"
    app_debug: bool = True
    app_host: str = "0.0.0.0"
    app_port: int = 8000

    # CORS
    allowed_origins: str = "*"  # comma-separated, e.g. "https://app.example.com,https://admin.example.com"

    # Custom providers (per-user premium backends), persisted as one JSON file
    custom_providers_file: str = "user_data/custom_providers.json"

    # Provider dispatch
    provider_cooldown_seconds: float = 60.0
    default_temperature: float = 0.7

    # HTTP timeouts (seconds). Local Ollama models may be slow to load.
    request_timeout_seconds: float = 120.0
    ollama_timeout_seconds: float = 300.0
    connect_timeout_seconds: float = 10.0

    # Keep-alive connection pool shared by all providers
    use_keepalive_transport: bool = True
    keepalive_max_connections: int = 10
    keepalive_expiry_seconds: float = 30.0

    # Rate limiting (slowapi syntax)
    chat_rate_limit: str = "30/minute"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False  # set True in production for structured JSON logs

    # Sentry
    sentry_dsn: str = ""  # leave empty to disable


settings = Settings()


def validate_settings_for_production() -> None:
    """Validate critical settings. Called on startup."""
    errors: list[str] = []

    if settings.provider_cooldown_seconds <= 0:
        errors.append("PROVIDER_COOLDOWN_SECONDS must be positive")

    if settings.request_timeout_seconds <= 0 or settings.ollama_timeout_seconds <= 0:
        errors.append("REQUEST_TIMEOUT_SECONDS and OLLAMA_TIMEOUT_SECONDS must be positive")

    if settings.app_env == "production":
        if settings.allowed_origins == "*":
            errors.append("ALLOWED_ORIGINS must not be '*' in production")
        if settings.app_debug:
            errors.append("APP_DEBUG must be false in production")

    if errors:
        raise SystemExit("Configuration errors:\n  - " + "\n  - ".join(errors))
