"""Inoreader client configuration via pydantic-settings."""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings


class InoreaderSettings(BaseSettings):
    # Registered app credentials (OAuth client id/secret, or AppId/AppKey for password login)
    app_id: str = ""
    app_key: str = ""
    redirect_uri: str = "http://localhost:8080/oauth2/callback"
    oauth_scope: str = "read write"

    # Password login is used instead of OAuth when both are set
    user_email: str | None = None
    user_password: str | None = None

    base_url: str = "https://www.inoreader.com"
    token_dir: str = "~/.inoreader"
    http_timeout_seconds: float = 30.0

    early_refresh_seconds: int = 300
    label_cache_ttl_seconds: int = 3600
    consent_timeout_seconds: int = 300

    model_config = {"env_prefix": "INOREADER_", "env_file": ".env", "extra": "ignore"}

    @property
    def root_url(self) -> str:
        return self.base_url.rstrip("/")

    @property
    def api_url(self) -> str:
        return f"{self.root_url}/reader/api/0/"

    @property
    def token_path(self) -> Path:
        return Path(self.token_dir).expanduser()

    @property
    def app_configured(self) -> bool:
        return bool(self.app_id and self.app_key)

    @property
    def password_configured(self) -> bool:
        return bool(self.user_email and self.user_password)


settings = InoreaderSettings()
