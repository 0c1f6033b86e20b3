from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

APP_NAME = "pg_maintenance"
APP_VERSION = "0.1.0"

# Modes that never fall back to a plaintext connection
SUPPORTED_SSL_MODES = ("require", "verify-ca", "verify-full")


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DB_", env_file=None, case_sensitive=False)

    host: str = "localhost"
    port: int = 5432
    name: str = "postgres"
    username: str = "postgres"
    password: str | None = None

    sslmode: str = "require"
    connect_timeout: int = 10  # seconds, 0 waits indefinitely


def validate_settings(settings: Settings) -> None:
    """Reject incomplete or insecure connection settings before connecting."""
    if not (settings.password or "").strip():
        raise ConfigurationError("--password or DB_PASSWORD is required")
    for label, value in (
        ("host", settings.host),
        ("dbname", settings.name),
        ("user", settings.username),
    ):
        if not (value or "").strip():
            raise ConfigurationError(f"--{label} must not be empty")
    if not 0 < settings.port < 65536:
        raise ConfigurationError(f"Invalid port: {settings.port}")
    if settings.sslmode not in SUPPORTED_SSL_MODES:
        raise ConfigurationError(
            f"Unsupported sslmode {settings.sslmode!r}, "
            f"expected one of: {', '.join(SUPPORTED_SSL_MODES)}"
        )
    if settings.connect_timeout < 0:
        raise ConfigurationError("--connect-timeout must not be negative")
