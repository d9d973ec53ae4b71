"""Nester-Engine configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
}


class NesterSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="NESTER_")

    environment: str = "development"
    secret_key: str = "insecure-dev-key-change-me"
    log_level: str = "INFO"

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/nester.db"

    # API
    api_title: str = "Nester-Engine"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]

    # Public URL of this service, used to build workflow callback URLs
    app_url: str = ""
    login_path: str = "/auth/login"

    # Express backend
    backend_url: str = "http://localhost:3001"

    # Workflow engine
    workflow_url: str = ""
    workflow_api_key: str = ""
    workflow_webhook_secret: str = ""

    # Identity provider
    identity_url: str = ""
    identity_anon_key: str = ""

    def callback_url(self, path: str) -> str:
        """Absolute URL the workflow engine should call back on."""
        return f"{self.app_url.rstrip('/')}{self.api_prefix}{path}"

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"NESTER_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default session key — set NESTER_SECRET_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> NesterSettings:
    settings = NesterSettings()
    settings.validate_for_production()
    return settings
