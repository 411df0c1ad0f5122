"""
Application configuration with environment-based settings.

This module uses Pydantic Settings for automatic environment variable loading
and validation following FastAPI best practices.
"""

import os
import secrets
import tomllib
from base64 import urlsafe_b64encode
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import AnyUrl, BeforeValidator, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


def parse_cors(v: Any) -> list[str] | str:
    """Parse CORS origins from string or list"""
    if isinstance(v, str) and not v.startswith("["):
        return [i.strip() for i in v.split(",") if i.strip()]
    elif isinstance(v, list | str):
        return v
    raise ValueError(v)


def _load_app_version_from_pyproject() -> str:
    """Load application version from pyproject.toml"""
    try:
        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"

        if not pyproject_path.exists():
            return "0.0.0"

        with open(pyproject_path, "rb") as f:
            config = tomllib.load(f)
            version = config.get("project", {}).get("version")

            if not version:
                return "0.0.0"

            return version

    except Exception:
        return "0.0.0"


class Settings(BaseSettings):
    """
    Relay settings with validation.

    All settings except the Atlassian OAuth app credentials have defaults
    for local development.
    """

    model_config = SettingsConfigDict(
        # Disable .env loading when TESTING=1 (set by conftest.py)
        env_file=None if os.getenv("TESTING") else ".env",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=True,
    )

    PROJECT_NAME: str = "Jira Relay"
    APP_VERSION: str = _load_app_version_from_pyproject()
    PORT: int = 3000
    ENVIRONMENT: Literal["local", "development", "staging", "production"] = "local"
    LOG_LEVEL: str = "INFO"

    BACKEND_CORS_ORIGINS: Annotated[
        list[AnyUrl] | str, BeforeValidator(parse_cors)
    ] = []

    @computed_field  # type: ignore[prop-decorator]
    @property
    def all_cors_origins(self) -> list[str]:
        """Get all CORS origins"""
        return [str(origin).rstrip("/") for origin in self.BACKEND_CORS_ORIGINS]

    # Atlassian OAuth 2.0 (3LO) app
    # Register at: https://developer.atlassian.com/console/myapps/
    JIRA_CLIENT_ID: str | None = None
    JIRA_CLIENT_SECRET: str | None = None
    CALLBACK_URL: str = "http://localhost:3000/auth/callback"

    ATLASSIAN_AUTH_URL: str = "https://auth.atlassian.com/authorize"
    ATLASSIAN_TOKEN_URL: str = "https://auth.atlassian.com/oauth/token"
    ATLASSIAN_API_URL: str = "https://api.atlassian.com"
    ATLASSIAN_AUDIENCE: str = "api.atlassian.com"
    JIRA_SCOPES: list[str] = [
        "read:jira-work",
        "write:jira-work",
        "read:me",
        "offline_access",
    ]

    HTTP_TIMEOUT_SECONDS: float = 30.0

    # Session storage
    # "memory" keeps sessions in the process; "database" persists them
    # (encrypted) through SQLModel so they survive restarts.
    SESSION_BACKEND: Literal["memory", "database"] = "memory"
    SESSION_COOKIE_NAME: str = "jira_relay_sid"
    SESSION_COOKIE_SECURE: bool = False  # Set to true in production with HTTPS
    SESSION_TTL_HOURS: int = 24
    SESSION_CLEANUP_INTERVAL_SECONDS: int = 300

    DATABASE_URL: str = "sqlite:///./jira_relay.db"

    # Fernet key used to encrypt session payloads in the database backend.
    # Auto-generated for local use (stored sessions won't survive key changes).
    # For production, set explicitly and persist:
    #   python -c "from cryptography.fernet import Fernet; print(Fernet.generate_key().decode())"
    TOKEN_ENCRYPTION_KEY: str = urlsafe_b64encode(secrets.token_bytes(32)).decode()

    @computed_field  # type: ignore[prop-decorator]
    @property
    def is_oauth_configured(self) -> bool:
        """True when both Atlassian client credentials are present."""
        return bool(self.JIRA_CLIENT_ID and self.JIRA_CLIENT_SECRET)


settings = Settings()
