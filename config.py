"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

Decision on the extension signing secret: the first non-empty value of
JWT_SECRET, ACCESS_TOKEN_SECRET and SECRET is used, falling back to a fixed
development default (handled in ExtensionTokenSettings.signing_secret).
Production deployments must set one of the three.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_SIGNING_SECRET = "dev_jwt_secret_change_me"


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "ontrac"


class PairingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    pairing_ttl_seconds: int = 600
    pairing_max_attempts: int = 8
    # Lockout pushes expires_at this far ahead instead of deleting the record
    pairing_lockout_grace_seconds: int = 5
    pairing_default_device_name: str = "Browser Extension"


class ExtensionTokenSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    extension_token_issuer: str = "ontrac"
    extension_token_audience: str = "ontrac-extension"
    extension_token_ttl_seconds: int = 2592000  # 30 days

    # Secret sources, in priority order
    jwt_secret: str = ""
    access_token_secret: str = ""
    secret: str = ""

    @property
    def signing_secret(self) -> str:
        for candidate in (self.jwt_secret, self.access_token_secret, self.secret):
            if candidate and candidate.strip():
                return candidate
        return DEFAULT_SIGNING_SECRET

    @property
    def uses_default_secret(self) -> bool:
        return self.signing_secret == DEFAULT_SIGNING_SECRET


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Core
    env: str = "development"
    app_name: str = "ontrac"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    pairing: Optional[PairingSettings] = None
    extension_token: Optional[ExtensionTokenSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        # Populate sub-configs from the same env/dotenv source
        if self.db is None:
            self.db = DatabaseSettings()
        if self.pairing is None:
            self.pairing = PairingSettings()
        if self.extension_token is None:
            self.extension_token = ExtensionTokenSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
